"""
Order placement and order status management.

Stock is claimed per line with a conditional `$inc` so two concurrent orders
can never push a product below zero. When a later line fails, the stock
already claimed by the same call is released before the error propagates.
"""
import logging
import secrets
import string
import time
from typing import Callable, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from database import create_document, find_by_id, now, serialize_doc, to_object_id
from errors import Conflict, InsufficientStock, NotFound, ValidationError
from notifications import send_order_confirmation
from schemas import ORDER_STATUSES, Order, OrderCreateBody, OrderItem

logger = logging.getLogger(__name__)

ONLINE_PAYMENT = "Online Pay"
CODE_ALPHABET = string.digits + string.ascii_uppercase


def generate_order_code() -> str:
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(9))
    return f"ORD{int(time.time() * 1000)}{suffix}"


def _claim_stock(db: Database, product_id: str, quantity: int) -> dict:
    product = find_by_id(db, "product", product_id)
    if not product:
        raise NotFound(f"Product {product_id} not found", productId=product_id)

    claimed = db["product"].find_one_and_update(
        {"_id": product["_id"], "stock": {"$gte": quantity}},
        {"$inc": {"stock": -quantity}, "$set": {"updatedAt": now()}},
        return_document=ReturnDocument.AFTER,
    )
    if claimed is None:
        current = db["product"].find_one({"_id": product["_id"]}, {"stock": 1})
        if current is None:
            raise NotFound(f"Product {product_id} not found", productId=product_id)
        raise InsufficientStock(product_id, product["name"], current["stock"])
    return claimed


def _release_stock(db: Database, claims: List[Tuple[object, int]]) -> None:
    for _id, quantity in claims:
        db["product"].update_one({"_id": _id}, {"$inc": {"stock": quantity}, "$set": {"updatedAt": now()}})
        logger.warning("Released %s unit(s) of product %s after a failed order", quantity, _id)


def _insert_order(db: Database, order: Order, make_code: Callable[[], str], attempts: int) -> str:
    for attempt in range(1, attempts + 1):
        order.orderId = make_code()
        try:
            return create_document(db, "order", order)
        except DuplicateKeyError:
            logger.warning("Order code %s already taken (attempt %s/%s)", order.orderId, attempt, attempts)
    raise Conflict("Could not allocate a unique order id")


def place_order(
    db: Database,
    user_id: str,
    body: OrderCreateBody,
    notify: Callable[[dict, dict], object] = send_order_confirmation,
    make_code: Callable[[], str] = generate_order_code,
    code_attempts: int = 3,
) -> dict:
    if not body.products:
        raise ValidationError("At least one product is required")

    user = find_by_id(db, "user", user_id)
    if not user:
        raise NotFound(f"User {user_id} not found")

    claims: List[Tuple[object, int]] = []
    items: List[OrderItem] = []
    total = 0.0
    try:
        for line in body.products:
            product = _claim_stock(db, line.productId, line.quantity)
            claims.append((product["_id"], line.quantity))
            price = float(product["price"])
            total += price * line.quantity
            items.append(OrderItem(productId=str(product["_id"]), quantity=line.quantity, price=price))

        order = Order(
            orderId="",
            userId=str(user["_id"]),
            products=items,
            totalAmount=total,
            shippingAddress=body.shippingAddress,
            paymentMethod=body.paymentMethod,
            paymentStatus="Completed" if body.paymentMethod == ONLINE_PAYMENT else "Pending",
        )
        order_id = _insert_order(db, order, make_code, code_attempts)
    except Exception:
        _release_stock(db, claims)
        raise

    created = populate_order(db, find_by_id(db, "order", order_id))
    logger.info("Order %s placed by user %s for %.2f", created["orderId"], user_id, created["totalAmount"])

    try:
        notify(created, serialize_doc(user))
    except Exception:
        logger.warning("Order confirmation for %s could not be sent", created["orderId"], exc_info=True)

    return created


def update_order_status(db: Database, order_id: str, status: str) -> dict:
    if status not in ORDER_STATUSES:
        raise ValidationError("Invalid order status", allowed=list(ORDER_STATUSES))

    update = {"orderStatus": status, "updatedAt": now()}
    if status == "Delivered":
        update["paymentStatus"] = "Completed"

    _id = to_object_id(order_id)
    order = None
    if _id is not None:
        order = db["order"].find_one_and_update(
            {"_id": _id}, {"$set": update}, return_document=ReturnDocument.AFTER
        )
    if not order:
        raise NotFound("Order not found")
    logger.info("Order %s moved to %s", order["orderId"], status)
    return populate_order(db, order)


def list_user_orders(db: Database, user_id: str) -> List[dict]:
    docs = db["order"].find({"userId": user_id}).sort([("createdAt", -1), ("_id", -1)])
    return [populate_order(db, d) for d in docs]


def list_orders(db: Database, page: int = 1, limit: int = 10) -> dict:
    skip = (page - 1) * limit
    docs = db["order"].find().sort([("createdAt", -1), ("_id", -1)]).skip(skip).limit(limit)
    total = db["order"].count_documents({})
    return {
        "orders": [populate_order(db, d, with_user=True) for d in docs],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": -(-total // limit)},
    }


def populate_order(db: Database, order: Optional[dict], with_user: bool = False) -> dict:
    """Attach product summaries (and optionally the buyer) to a stored order."""
    order = serialize_doc(order)
    ids = [to_object_id(item["productId"]) for item in order.get("products", [])]
    found = db["product"].find({"_id": {"$in": [i for i in ids if i is not None]}}, {"name": 1, "images": 1})
    summaries = {str(p["_id"]): {"id": str(p["_id"]), "name": p["name"], "images": p.get("images", [])} for p in found}

    order["products"] = [
        {**item, "product": summaries.get(item["productId"])} for item in order.get("products", [])
    ]
    if with_user:
        user = find_by_id(db, "user", order["userId"], {"name": 1, "email": 1})
        order["user"] = {"id": order["userId"], "name": user["name"], "email": user["email"]} if user else None
    return order
