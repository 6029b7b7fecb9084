import logging

from fastapi import APIRouter, Depends
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import get_db, now, object_id, to_public
from errors import ApiError
from schemas import CARTS, PRODUCTS, CartAddRequest, CartUpdateRequest
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["cart"])

SERVER_ERROR = "Internal server error! 😢"


def cart_total(db: Database, cart: dict) -> float:
    """Sum of price * quantity at current prices; deleted products count as 0."""
    items = cart.get("products", [])
    ids = [item["product"] for item in items]
    prices = {p["_id"]: p.get("price", 0) for p in db[PRODUCTS].find({"_id": {"$in": ids}}, {"price": 1})}
    return round(sum(prices.get(item["product"], 0) * item.get("quantity", 1) for item in items), 2)


def _response(db: Database, cart: dict, **extra) -> dict:
    return {**extra, "cart": to_public(cart), "total": cart_total(db, cart)}


@router.get("")
def get_cart(user=Depends(get_current_user), db: Database = Depends(get_db)):
    try:
        cart = db[CARTS].find_one_and_update(
            {"user": user["_id"]},
            {"$setOnInsert": {"products": [], "createdAt": now()}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return _response(db, cart)
    except PyMongoError as e:
        logger.error("Error loading cart for %s: %s", user["_id"], e)
        raise ApiError(500, SERVER_ERROR)


@router.post("")
def add_to_cart(payload: CartAddRequest, user=Depends(get_current_user), db: Database = Depends(get_db)):
    product_id = object_id(payload.productId)
    try:
        if not db[PRODUCTS].find_one({"_id": product_id}, {"_id": 1}):
            raise ApiError(404, "Product not found! 😢")

        db[CARTS].update_one(
            {"user": user["_id"]},
            {"$setOnInsert": {"products": [], "createdAt": now(), "updatedAt": now()}},
            upsert=True,
        )
        # Matches only while the product is not in the cart yet
        cart = db[CARTS].find_one_and_update(
            {"user": user["_id"], "products.product": {"$ne": product_id}},
            {
                "$push": {"products": {"product": product_id, "quantity": payload.quantity}},
                "$set": {"updatedAt": now()},
            },
            return_document=ReturnDocument.AFTER,
        )
        if cart is None:
            raise ApiError(400, "Product already exists in the cart! 🛒")
        return _response(db, cart, message="Product added to cart! 🛒", type="success")
    except PyMongoError as e:
        logger.error("Error adding to cart for %s: %s", user["_id"], e)
        raise ApiError(500, SERVER_ERROR)


@router.put("/{product_id}")
def update_quantity(
    product_id: str,
    payload: CartUpdateRequest,
    user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    oid = object_id(product_id)
    cart = db[CARTS].find_one({"user": user["_id"]})
    if not cart or not any(item["product"] == oid for item in cart.get("products", [])):
        raise ApiError(404, "Product doesn't exist in cart! 😢")

    items = [
        {**item, "quantity": payload.quantity} if item["product"] == oid else item
        for item in cart["products"]
    ]
    cart = db[CARTS].find_one_and_update(
        {"_id": cart["_id"]},
        {"$set": {"products": items, "updatedAt": now()}},
        return_document=ReturnDocument.AFTER,
    )
    return _response(db, cart, message="Cart updated! 🛒", type="success")


@router.delete("/{product_id}")
def remove_from_cart(product_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    oid = object_id(product_id)
    cart = db[CARTS].find_one({"user": user["_id"]})
    if not cart:
        raise ApiError(404, "Cart doesn't exist! 😢")
    if not any(item["product"] == oid for item in cart.get("products", [])):
        raise ApiError(404, "Product doesn't exist in cart! 😢")

    items = [item for item in cart["products"] if item["product"] != oid]
    cart = db[CARTS].find_one_and_update(
        {"_id": cart["_id"]},
        {"$set": {"products": items, "updatedAt": now()}},
        return_document=ReturnDocument.AFTER,
    )
    return _response(db, cart, message="Product removed from cart! 😃", type="success")
