import logging
import re
from typing import List, Optional

from pymongo.database import Database

from database import create_document, find_by_id, now, serialize_doc
from errors import NotFound
from schemas import Product

logger = logging.getLogger(__name__)

SORTS = {
    "price-asc": [("price", 1), ("_id", 1)],
    "price-desc": [("price", -1), ("_id", -1)],
    "newest": [("createdAt", -1), ("_id", -1)],
}


def list_products(
    db: Database,
    page: int = 1,
    limit: int = 12,
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
) -> dict:
    filt = {}
    if category:
        filt["category"] = category.strip()
    if search and search.strip():
        pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
        filt["$or"] = [{"name": pattern}, {"description": pattern}]

    skip = (page - 1) * limit
    docs = db["product"].find(filt).sort(SORTS.get(sort, SORTS["newest"])).skip(skip).limit(limit)
    total = db["product"].count_documents(filt)
    return {
        "products": [serialize_doc(d) for d in docs],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": -(-total // limit)},
    }


def get_product(db: Database, product_id: str) -> dict:
    product = find_by_id(db, "product", product_id)
    if not product:
        raise NotFound("Product not found")
    return serialize_doc(product)


def create_product(db: Database, product: Product) -> dict:
    pid = create_document(db, "product", product)
    logger.info("Product %s created (%s image(s))", product.name, len(product.images))
    return get_product(db, pid)


def update_product(db: Database, product_id: str, fields: dict, new_images: List[str]) -> dict:
    product = find_by_id(db, "product", product_id)
    if not product:
        raise NotFound("Product not found")

    update = {k: v for k, v in fields.items() if v is not None}
    if new_images:
        update["images"] = list(product.get("images", [])) + list(new_images)
    update["updatedAt"] = now()
    db["product"].update_one({"_id": product["_id"]}, {"$set": update})
    logger.info("Product %s updated", product_id)
    return get_product(db, product_id)


def delete_product(db: Database, product_id: str) -> None:
    product = find_by_id(db, "product", product_id, {"_id": 1})
    if not product:
        raise NotFound("Product not found")
    db["product"].delete_one({"_id": product["_id"]})
    logger.info("Product %s deleted", product_id)
