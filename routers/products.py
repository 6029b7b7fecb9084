import logging
import math
import re
from typing import List, Optional, Tuple

from fastapi import APIRouter, Body, Depends, Query, status
from pydantic import ValidationError
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import create_document, get_db, now, object_id, populate, to_public, transaction
from errors import ApiError
from schemas import CATEGORIES, PRODUCTS, REVIEWS, USERS, WISHLISTS, Product, ProductUpdate
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])

SORTABLE = {"name", "price", "popularity", "rating", "numReviews", "createdAt", "updatedAt"}
SELLER_FIELDS = ["_id", "name", "email", "profileImage", "rating", "numReviews"]


def parse_sort(sort: Optional[str]) -> List[Tuple[str, int]]:
    """"-price,name" -> [("price", DESCENDING), ("name", ASCENDING)]"""
    keys = []
    for part in (sort or "").split(","):
        part = part.strip()
        if not part:
            continue
        direction = DESCENDING if part.startswith("-") else ASCENDING
        field = part.lstrip("-+")
        if field in SORTABLE:
            keys.append((field, direction))
    return keys or [("createdAt", DESCENDING)]


@router.get("")
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    category: Optional[str] = None,
    sort: Optional[str] = None,
    user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    filt = {}
    if search:
        pattern = re.escape(search)
        filt["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    if category:
        filt["category"] = object_id(category)

    try:
        total = db[PRODUCTS].count_documents(filt)
        docs = list(
            db[PRODUCTS]
            .find(filt)
            .sort(parse_sort(sort))
            .skip((page - 1) * limit)
            .limit(limit)
        )
    except PyMongoError as e:
        logger.error("Error listing products: %s", e)
        raise ApiError(500, "Error fetching products! 😢")

    return {
        "data": to_public(docs),
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if total else 0,
    }


@router.get("/{product_id}")
def get_product(product_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    oid = object_id(product_id)
    try:
        doc = db[PRODUCTS].find_one({"_id": oid})
    except PyMongoError as e:
        logger.error("Error fetching product %s: %s", product_id, e)
        raise ApiError(500, "Error fetching product! 😢")
    if not doc:
        raise ApiError(404, "Product not found! 😢")

    populate(db, doc, "category", CATEGORIES)
    populate(db, doc, "seller", USERS, SELLER_FIELDS)
    return to_public(doc)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_product(payload: dict = Body(...), user=Depends(get_current_user), db: Database = Depends(get_db)):
    try:
        product = Product(**payload)
        doc = product.model_dump()
        doc.update(
            category=object_id(product.category),
            seller=user["_id"],
            rating=0,
            numReviews=0,
            reviews=[],
        )
        product_id = create_document(db, PRODUCTS, doc)
    except (ValidationError, ApiError, PyMongoError) as e:
        logger.error("Error adding product: %s", e)
        raise ApiError(500, "Error adding product! 😢", error=str(e))

    saved = db[PRODUCTS].find_one({"_id": object_id(product_id)})
    logger.info("Product %s listed by %s", product_id, user["_id"])
    return {
        "type": "success",
        "message": "Product added successfully! 🎉",
        "product": to_public(saved),
    }


@router.put("/{product_id}")
def update_product(
    product_id: str,
    payload: ProductUpdate,
    user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    oid = object_id(product_id)
    product = db[PRODUCTS].find_one({"_id": oid})
    if not product:
        raise ApiError(404, "Product not found! 😢")
    if product.get("seller") != user["_id"]:
        raise ApiError(401, "You are not authorized to perform this action! 🔒")

    changes = payload.model_dump(exclude_none=True)
    if "category" in changes:
        changes["category"] = object_id(changes["category"])
    updated = db[PRODUCTS].find_one_and_update(
        {"_id": oid},
        {"$set": {**changes, "updatedAt": now()}},
        return_document=ReturnDocument.AFTER,
    )
    return {
        "message": "Product updated successfully 🎉",
        "type": "success",
        "product": to_public(updated),
    }


@router.delete("/{product_id}")
def delete_product(product_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    oid = object_id(product_id)
    product = db[PRODUCTS].find_one({"_id": oid})
    if not product:
        raise ApiError(404, "Product doesn't exist! 😢")
    if product.get("seller") != user["_id"]:
        raise ApiError(401, "You're not authorized to delete this product! 🔒")

    target = {"target.type": "Product", "target.id": oid}
    with transaction(db) as session:
        reviews = list(db[REVIEWS].find(target, {"reviewer": 1}, session=session))
        for review in reviews:
            db[USERS].update_one({"_id": review["reviewer"]}, {"$pull": {"comments": review["_id"]}}, session=session)
        db[REVIEWS].delete_many(target, session=session)
        db[WISHLISTS].update_many({"products": oid}, {"$pull": {"products": oid}}, session=session)
        db[PRODUCTS].delete_one({"_id": oid}, session=session)
    logger.info("Product %s deleted with %d reviews", product_id, len(reviews))
    return {"message": "Product deleted successfully! 🗑️", "type": "success"}
