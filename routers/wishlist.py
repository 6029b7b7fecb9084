import logging

from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, get_db, get_documents, now, object_id, populate, to_public
from errors import ApiError
from schemas import PRODUCTS, WISHLISTS, WishlistCreate, WishlistProductRequest
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])

PRODUCT_FIELDS = ["_id", "name", "image", "price"]
NOT_FOUND = "Wishlist doesn't exist! 😢"


def _populated(db: Database, wishlist: dict) -> dict:
    return to_public(populate(db, wishlist, "products", PRODUCTS, PRODUCT_FIELDS))


@router.get("")
def list_wishlists(user=Depends(get_current_user), db: Database = Depends(get_db)):
    wishlists = get_documents(db, WISHLISTS, {"user": user["_id"]})
    return to_public(populate(db, wishlists, "products", PRODUCTS, PRODUCT_FIELDS))


@router.post("")
def create_wishlist(payload: WishlistCreate, user=Depends(get_current_user), db: Database = Depends(get_db)):
    wishlist_id = create_document(
        db,
        WISHLISTS,
        {"user": user["_id"], "name": payload.name, "description": payload.description, "products": []},
    )
    return to_public(db[WISHLISTS].find_one({"_id": object_id(wishlist_id)}))


@router.post("/{wishlist_id}/products")
def add_product(
    wishlist_id: str,
    payload: WishlistProductRequest,
    user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    product_id = object_id(payload.productId)
    if not db[PRODUCTS].find_one({"_id": product_id}, {"_id": 1}):
        raise ApiError(404, "Product not found! 😢")

    wishlist = db[WISHLISTS].find_one_and_update(
        {"_id": object_id(wishlist_id), "user": user["_id"]},
        {"$addToSet": {"products": product_id}, "$set": {"updatedAt": now()}},
        return_document=ReturnDocument.AFTER,
    )
    if not wishlist:
        raise ApiError(404, NOT_FOUND)
    return _populated(db, wishlist)


@router.delete("/{wishlist_id}/products/{product_id}")
def remove_product(
    wishlist_id: str,
    product_id: str,
    user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    wishlist = db[WISHLISTS].find_one_and_update(
        {"_id": object_id(wishlist_id), "user": user["_id"]},
        {"$pull": {"products": object_id(product_id)}, "$set": {"updatedAt": now()}},
        return_document=ReturnDocument.AFTER,
    )
    if not wishlist:
        raise ApiError(404, NOT_FOUND)
    return _populated(db, wishlist)


@router.delete("/{wishlist_id}")
def delete_wishlist(wishlist_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    result = db[WISHLISTS].delete_one({"_id": object_id(wishlist_id), "user": user["_id"]})
    if result.deleted_count == 0:
        raise ApiError(404, NOT_FOUND)
    logger.info("Wishlist %s deleted by %s", wishlist_id, user["_id"])
    return {"message": "Wishlist deleted successfully! 🎉", "type": "success"}
