"""
Review upsert/delete and product rating aggregation.
"""
import logging
import threading
import weakref
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from auth import is_admin
from database import find_by_id, get_documents, now, serialize_doc, to_object_id
from errors import Forbidden, NotFound, ValidationError
from schemas import REVIEW_COMMENT_MAX, Review

logger = logging.getLogger(__name__)

_locks_guard = threading.Lock()
# entries disappear once no recompute holds the lock
_rating_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()


def _rating_lock(product_id: str) -> threading.Lock:
    with _locks_guard:
        lock = _rating_locks.get(product_id)
        if lock is None:
            lock = threading.Lock()
            _rating_locks[product_id] = lock
        return lock


def average_rating(ratings: List[int]) -> float:
    """Mean of `ratings` rounded half-up to one decimal; 0 for no ratings."""
    if not ratings:
        return 0
    mean = Decimal(sum(ratings)) / Decimal(len(ratings))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def update_product_rating(db: Database, product_id: str) -> dict:
    """Recompute rating and numReviews from the product's full review set."""
    _id = to_object_id(product_id)
    if _id is not None:
        product_id = str(_id)
    with _rating_lock(product_id):
        ratings = [r["rating"] for r in db["review"].find({"productId": product_id}, {"rating": 1})]
        stats = {"rating": average_rating(ratings), "numReviews": len(ratings)}
        if _id is not None:
            db["product"].update_one({"_id": _id}, {"$set": {**stats, "updatedAt": now()}})
    logger.debug("Product %s rating is now %s over %s review(s)", product_id, stats["rating"], stats["numReviews"])
    return stats


def _with_author(db: Database, review: dict) -> dict:
    review = serialize_doc(review)
    user = find_by_id(db, "user", review["userId"], {"name": 1})
    review["user"] = {"id": review["userId"], "name": user["name"]} if user else None
    return review


def _save_review(collection: Collection, key: dict, review: Review) -> None:
    stamp = now()
    fields = {"rating": review.rating, "comment": review.comment, "updatedAt": stamp}
    try:
        collection.update_one(key, {"$set": fields, "$setOnInsert": {"createdAt": stamp}}, upsert=True)
    except DuplicateKeyError:
        # a concurrent first review for the same pair won the insert
        logger.info("Review for %s already inserted concurrently; updating it", key)
        collection.update_one(key, {"$set": fields})


def upsert_review(db: Database, product_id: str, user_id: str, rating: int, comment: Optional[str] = None) -> dict:
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5")
    comment = (comment or "").strip()
    if len(comment) > REVIEW_COMMENT_MAX:
        raise ValidationError(f"Comment must be less than {REVIEW_COMMENT_MAX} characters")

    product = find_by_id(db, "product", product_id, {"_id": 1})
    if not product:
        raise NotFound("Product not found")
    product_id = str(product["_id"])

    review = Review(productId=product_id, userId=user_id, rating=rating, comment=comment)
    key = {"productId": review.productId, "userId": review.userId}
    _save_review(db["review"], key, review)
    update_product_rating(db, product_id)
    return _with_author(db, db["review"].find_one(key))


def delete_review(db: Database, review_id: str, user: dict) -> None:
    review = find_by_id(db, "review", review_id)
    if not review:
        raise NotFound("Review not found")
    if review["userId"] != user["id"] and not is_admin(user):
        raise Forbidden("Not authorized")

    db["review"].delete_one({"_id": review["_id"]})
    update_product_rating(db, review["productId"])


def list_product_reviews(db: Database, product_id: str) -> List[dict]:
    _id = to_object_id(product_id)
    if _id is None:
        return []
    docs = get_documents(db, "review", {"productId": str(_id)})
    docs.sort(key=lambda d: (d["createdAt"], d["_id"]), reverse=True)
    return [_with_author(db, d) for d in docs]
