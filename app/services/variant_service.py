"""Variant resolution for products sold by flavor and/or weight.

Everything here is pure: the selector works on ORM rows as well as on any
objects exposing the same attributes, and never touches the database.
"""
import enum
from typing import Any, Iterable, List, NamedTuple, Optional, Sequence, Tuple

import structlog

from app.core.exceptions import NoMatchingVariant

logger = structlog.get_logger()

LIMITED_STOCK_MESSAGE = "Only {available} items available in stock."


class Combination(NamedTuple):
    flavor_id: Optional[int]
    weight_id: Optional[int]
    variant: Any


class QuantityClamp(NamedTuple):
    quantity: int
    warning: Optional[str] = None

    @property
    def limited_stock(self) -> bool:
        return self.warning is not None


class SelectionState(str, enum.Enum):
    UNSELECTED = "unselected"
    FLAVOR_ONLY = "flavor_only"
    WEIGHT_ONLY = "weight_only"
    FULLY_SELECTED = "fully_selected"
    NO_MATCH = "no_match"


def build_combinations(variants: Optional[Iterable[Any]]) -> List[Combination]:
    """Index the active variants of a product by (flavor_id, weight_id)."""
    return [
        Combination(variant.flavor_id, variant.weight_id, variant)
        for variant in (variants or [])
        if variant.is_active
    ]


def clamp_quantity(requested: int, variant: Optional[Any]) -> QuantityClamp:
    """Bound a requested quantity to [1, variant.quantity]."""
    if requested < 1:
        return QuantityClamp(quantity=1)
    if variant is None:
        return QuantityClamp(quantity=requested)
    if requested > variant.quantity:
        return QuantityClamp(
            quantity=variant.quantity,
            warning=LIMITED_STOCK_MESSAGE.format(available=variant.quantity),
        )
    return QuantityClamp(quantity=requested)


def _option_rank(options: Sequence[Any], option_id: Optional[int]) -> int:
    for index, option in enumerate(options):
        if option.id == option_id:
            return index
    # Variants without this dimension sort first, orphaned ids last.
    return 0 if option_id is None else len(options)


def _find_option(options: Sequence[Any], option_id: Optional[int]) -> Optional[Any]:
    if option_id is None:
        return None
    return next((option for option in options if option.id == option_id), None)


class VariantSelector:
    """Flavor/weight selection state machine for a single product.

    Each user action has exactly one transition method; the resulting
    state is stored on ``state`` rather than derived from the fields.
    """

    def __init__(
        self,
        flavor_options: Optional[Iterable[Any]] = None,
        weight_options: Optional[Iterable[Any]] = None,
        variants: Optional[Iterable[Any]] = None,
    ):
        self.flavor_options = list(flavor_options or [])
        self.weight_options = list(weight_options or [])
        self.combinations = build_combinations(variants)

        self.selected_flavor = None
        self.selected_weight = None
        self.selected_variant = None
        self.quantity = 1
        self.state = SelectionState.UNSELECTED

    @classmethod
    def for_product(cls, product: Any) -> "VariantSelector":
        return cls(product.flavor_options, product.weight_options, product.variants)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def available_weight_ids(self, flavor_id: Optional[int]) -> List[Optional[int]]:
        return [c.weight_id for c in self.combinations if c.flavor_id == flavor_id]

    def available_flavor_ids(self, weight_id: Optional[int]) -> List[Optional[int]]:
        return [c.flavor_id for c in self.combinations if c.weight_id == weight_id]

    def resolve_variant(self, flavor_id: Optional[int] = None, weight_id: Optional[int] = None):
        for combination in self.combinations:
            if combination.flavor_id == flavor_id and combination.weight_id == weight_id:
                return combination.variant
        return None

    def compatible_flavor_ids(self) -> List[int]:
        """Declared flavors that pair with the selected weight, if any."""
        if self.selected_weight is not None:
            candidates = set(self.available_flavor_ids(self.selected_weight.id))
        else:
            candidates = {c.flavor_id for c in self.combinations}
        return [flavor.id for flavor in self.flavor_options if flavor.id in candidates]

    def compatible_weight_ids(self) -> List[int]:
        """Declared weights that pair with the selected flavor, if any."""
        if self.selected_flavor is not None:
            candidates = set(self.available_weight_ids(self.selected_flavor.id))
        else:
            candidates = {c.weight_id for c in self.combinations}
        return [weight.id for weight in self.weight_options if weight.id in candidates]

    def flavor_by_id(self, flavor_id: int):
        flavor = _find_option(self.flavor_options, flavor_id)
        if flavor is None:
            raise NoMatchingVariant(f"Unknown flavor option {flavor_id}")
        return flavor

    def weight_by_id(self, weight_id: int):
        weight = _find_option(self.weight_options, weight_id)
        if weight is None:
            raise NoMatchingVariant(f"Unknown weight option {weight_id}")
        return weight

    @property
    def is_purchasable(self) -> bool:
        return self.selected_variant is not None and self.selected_variant.quantity > 0

    @property
    def is_out_of_stock(self) -> bool:
        return self.selected_variant is not None and self.selected_variant.quantity <= 0

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def select_flavor(self, flavor: Any) -> SelectionState:
        self.selected_flavor = flavor
        weight, variant = self._resolve_counterpart(
            current=self.selected_weight,
            options=self.weight_options,
            available_ids=self.available_weight_ids(flavor.id),
            lookup=lambda weight_id: self.resolve_variant(flavor.id, weight_id),
        )
        self.selected_weight = weight
        return self._settle(variant)

    def select_weight(self, weight: Any) -> SelectionState:
        self.selected_weight = weight
        flavor, variant = self._resolve_counterpart(
            current=self.selected_flavor,
            options=self.flavor_options,
            available_ids=self.available_flavor_ids(weight.id),
            lookup=lambda flavor_id: self.resolve_variant(flavor_id, weight.id),
        )
        self.selected_flavor = flavor
        return self._settle(variant)

    def auto_select(self) -> SelectionState:
        """Pick the default selection when a product is first loaded."""
        self.selected_flavor = None
        self.selected_weight = None

        if not self.flavor_options and not self.weight_options:
            active = [c.variant for c in self.combinations]
            in_stock = next((v for v in active if v.quantity > 0), None)
            variant = in_stock or (active[0] if active else None)
            self._set_variant(variant)
            self.state = SelectionState.FULLY_SELECTED if variant is not None else SelectionState.UNSELECTED
            return self.state

        for combination in self._ordered_combinations():
            if combination.variant.quantity > 0:
                self.selected_flavor = _find_option(self.flavor_options, combination.flavor_id)
                self.selected_weight = _find_option(self.weight_options, combination.weight_id)
                self._set_variant(combination.variant)
                self.state = SelectionState.FULLY_SELECTED
                return self.state

        self._set_variant(None)
        self.state = SelectionState.UNSELECTED
        return self.state

    def restore(self, flavor_id: Optional[int] = None, weight_id: Optional[int] = None) -> SelectionState:
        """Rebuild a previously made selection without running transitions."""
        self.selected_flavor = self.flavor_by_id(flavor_id) if flavor_id is not None else None
        self.selected_weight = self.weight_by_id(weight_id) if weight_id is not None else None

        has_dimensions = bool(self.flavor_options or self.weight_options)
        flavor_known = self.selected_flavor is not None or not self.flavor_options
        weight_known = self.selected_weight is not None or not self.weight_options

        if has_dimensions and self.selected_flavor is None and self.selected_weight is None:
            self._set_variant(None)
            self.state = SelectionState.UNSELECTED
        elif flavor_known and weight_known:
            self.state = self._settle(self.resolve_variant(flavor_id, weight_id))
        elif self.selected_flavor is not None:
            self._set_variant(None)
            self.state = SelectionState.FLAVOR_ONLY
        else:
            self._set_variant(None)
            self.state = SelectionState.WEIGHT_ONLY
        return self.state

    def set_quantity(self, requested: int) -> QuantityClamp:
        result = clamp_quantity(requested, self.selected_variant)
        self.quantity = result.quantity
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _resolve_counterpart(self, *, current, options, available_ids, lookup) -> Tuple[Any, Any]:
        if not options:
            return None, lookup(None)
        if not available_ids:
            return None, None
        if current is not None and current.id in available_ids:
            return current, lookup(current.id)
        for option in options:
            if option.id in available_ids:
                return option, lookup(option.id)
        return None, None

    def _ordered_combinations(self) -> List[Combination]:
        return sorted(
            self.combinations,
            key=lambda c: (
                _option_rank(self.flavor_options, c.flavor_id),
                _option_rank(self.weight_options, c.weight_id),
            ),
        )

    def _settle(self, variant: Any) -> SelectionState:
        self._set_variant(variant)
        if variant is None:
            self.state = SelectionState.NO_MATCH
            logger.debug(
                "variant_selection_no_match",
                flavor_id=getattr(self.selected_flavor, "id", None),
                weight_id=getattr(self.selected_weight, "id", None),
            )
        else:
            self.state = SelectionState.FULLY_SELECTED
        return self.state

    def _set_variant(self, variant: Any) -> None:
        if getattr(self.selected_variant, "id", None) != getattr(variant, "id", None):
            self.quantity = 1
        self.selected_variant = variant
