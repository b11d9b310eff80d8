"""
Mock order-confirmation email.

Nothing is delivered; the rendered message is written to the log.
"""
import logging
from datetime import datetime

logger = logging.getLogger(__name__)


def _format_date(value) -> str:
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, str):
        return datetime.fromisoformat(value).strftime("%Y-%m-%d %H:%M")
    return "-"


def render_order_confirmation(order: dict, user: dict) -> str:
    lines = []
    for index, item in enumerate(order["products"], start=1):
        name = (item.get("product") or {}).get("name") or "Product"
        qty = item["quantity"]
        price = item["price"]
        lines.append(f"{index}. {name} - Qty: {qty} x ${price:.2f} = ${qty * price:.2f}")

    address = order["shippingAddress"]
    return "\n".join([
        f"Dear {user['name']},",
        "",
        f"Thank you for your order! Order ID: {order['orderId']}",
        "",
        f"Order Date: {_format_date(order.get('createdAt'))}",
        f"Total Amount: ${order['totalAmount']:.2f}",
        "",
        "Products:",
        *lines,
        "",
        "Shipping Address:",
        address["name"],
        address["address"],
        f"{address['city']}, {address['pincode']}",
        "",
        "We'll notify you once your order ships!",
        "",
        "Best regards,",
        "E-Commerce Team",
    ])


def send_order_confirmation(order: dict, user: dict) -> dict:
    content = render_order_confirmation(order, user)
    logger.info(
        "ORDER CONFIRMATION EMAIL (MOCK)\nTo: %s\nSubject: Order Confirmation - %s\n%s",
        user["email"], order["orderId"], content,
    )
    return {"success": True, "message": "Email sent (mock)", "emailContent": content}
