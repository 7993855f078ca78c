from datetime import datetime
from html import escape
from app.core.config import settings


def checkout_summary_template(lines, totals, coupon_code=None):
    """HTML email template summarizing a cart at checkout"""
    items_html = ""
    for line in lines:
        details = f" ({escape(line.variant_details)})" if line.variant_details else ""
        items_html += f"""
        <tr>
            <td>{escape(line.product_name)}{details}</td>
            <td>{line.quantity}</td>
            <td>₹{line.unit_price:,.2f}</td>
            <td>₹{line.total_price:,.2f}</td>
        </tr>
        """

    discount_label = f"Discount ({escape(coupon_code)}):" if coupon_code else "Discount:"
    shipping_value = f"₹{totals.shipping:,.2f}" if totals.shipping > 0 else "Free"
    current_year = datetime.utcnow().year

    html = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
            .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
            .header {{ background: #cc0000; color: white; padding: 20px; text-align: center; }}
            table {{ width: 100%; border-collapse: collapse; margin: 20px 0; }}
            th, td {{ padding: 10px; text-align: left; border-bottom: 1px solid #ddd; }}
            .total {{ font-size: 18px; font-weight: bold; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>{escape(settings.EMAILS_FROM_NAME)}</h1>
                <p>Your Order Summary</p>
            </div>

            <p>Thank you for shopping with us! Here is a summary of your cart.</p>

            <table>
                <thead>
                    <tr>
                        <th>Item</th>
                        <th>Qty</th>
                        <th>Price</th>
                        <th>Total</th>
                    </tr>
                </thead>
                <tbody>
                    {items_html}
                </tbody>
            </table>

            <table>
                <tr>
                    <td>Subtotal:</td>
                    <td>₹{totals.subtotal:,.2f}</td>
                </tr>
                <tr>
                    <td>{discount_label}</td>
                    <td>- ₹{totals.discount:,.2f}</td>
                </tr>
                <tr>
                    <td>Shipping:</td>
                    <td>{shipping_value}</td>
                </tr>
                <tr class="total">
                    <td>Total:</td>
                    <td>₹{totals.total:,.2f}</td>
                </tr>
            </table>

            <p>Complete your order: <a href="{settings.FRONTEND_URL}/checkout">Continue to checkout</a></p>

            <p>&copy; {current_year} {escape(settings.EMAILS_FROM_NAME)}</p>
        </div>
    </body>
    </html>
    """

    return html
