"""Client-side product page state.

Product fetches may resolve out of order when the shopper navigates quickly
between products; only the response for the most recent request is applied.
"""
from types import SimpleNamespace
from typing import Any, Dict, Optional

import httpx
import structlog

from app.client.storefront import StorefrontAPIError, StorefrontClient
from app.core.exceptions import NoMatchingVariant, OutOfStock
from app.services.variant_service import QuantityClamp, SelectionState, VariantSelector

logger = structlog.get_logger()


class RequestSequencer:
    """Hands out increasing tokens; only the newest one is current."""

    def __init__(self):
        self._latest = 0

    def issue(self) -> int:
        self._latest += 1
        return self._latest

    def is_latest(self, token: int) -> bool:
        return token == self._latest


def _as_namespace(items):
    return [SimpleNamespace(**item) for item in items or []]


class ProductView:
    def __init__(self, client: StorefrontClient):
        self.client = client
        self.product: Optional[Dict[str, Any]] = None
        self.selector: Optional[VariantSelector] = None
        self._sequencer = RequestSequencer()
        self._add_in_flight = False

    @property
    def state(self) -> SelectionState:
        return self.selector.state if self.selector else SelectionState.UNSELECTED

    @property
    def selected_variant(self):
        return self.selector.selected_variant if self.selector else None

    @property
    def is_adding(self) -> bool:
        return self._add_in_flight

    async def load(self, slug: str) -> bool:
        """Fetch a product and reset the selection. Returns False if superseded."""
        token = self._sequencer.issue()
        try:
            product = await self.client.get_product(slug)
        except (StorefrontAPIError, httpx.HTTPError):
            if not self._sequencer.is_latest(token):
                logger.info("stale_product_error_discarded", slug=slug, request_token=token)
                return False
            raise

        if not self._sequencer.is_latest(token):
            logger.info("stale_product_response_discarded", slug=slug, request_token=token)
            return False

        self.product = product
        self.selector = VariantSelector(
            _as_namespace(product.get("flavor_options")),
            _as_namespace(product.get("weight_options")),
            _as_namespace(product.get("variants")),
        )
        self.selector.auto_select()
        return True

    def select_flavor(self, flavor_id: int) -> SelectionState:
        selector = self._require_selector()
        return selector.select_flavor(selector.flavor_by_id(flavor_id))

    def select_weight(self, weight_id: int) -> SelectionState:
        selector = self._require_selector()
        return selector.select_weight(selector.weight_by_id(weight_id))

    def set_quantity(self, requested: int) -> QuantityClamp:
        return self._require_selector().set_quantity(requested)

    async def add_to_cart(self, cart_token: str) -> Optional[Dict[str, Any]]:
        """Add the selected variant; ignored while a previous add is pending."""
        if self._add_in_flight:
            logger.info("add_to_cart_ignored_pending", cart_token=cart_token)
            return None

        variant = self.selected_variant
        if variant is None:
            raise NoMatchingVariant("Select a flavor and weight before adding to cart")
        if self.selector.is_out_of_stock:
            raise OutOfStock()

        self._add_in_flight = True
        try:
            return await self.client.add_to_cart(cart_token, variant.id, self.selector.quantity)
        finally:
            self._add_in_flight = False

    def _require_selector(self) -> VariantSelector:
        if self.selector is None:
            raise NoMatchingVariant("Product has not been loaded")
        return self.selector
