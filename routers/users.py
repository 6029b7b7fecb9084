from fastapi import APIRouter, Depends
from pymongo.database import Database

from database import get_db, get_documents, now, object_id, populate, to_public
from errors import ApiError
from schemas import CATEGORIES, PRODUCTS, REVIEWS, USERS, WISHLISTS, ProfileUpdate
from security import get_current_user, public_user

router = APIRouter(prefix="/api/users", tags=["users"])

REVIEWER_FIELDS = ["_id", "name", "profileImage"]
PUBLIC_PROJECTION = {"password": 0, "refreshToken": 0}


def _seller_reviews(db: Database, user_id) -> list:
    reviews = list(
        db[REVIEWS]
        .find({"target.type": "Seller", "target.id": user_id})
        .sort("createdAt", -1)
    )
    return populate(db, reviews, "reviewer", USERS, REVIEWER_FIELDS)


@router.get("")
def list_users(db: Database = Depends(get_db)):
    return to_public(list(db[USERS].find({}, PUBLIC_PROJECTION)))


@router.get("/me")
def me(user=Depends(get_current_user), db: Database = Depends(get_db)):
    profile = public_user(user)
    wishlists = get_documents(db, WISHLISTS, {"user": user["_id"]})
    profile["wishlists"] = populate(db, wishlists, "products", PRODUCTS, ["_id", "name", "image", "price"])
    profile["reviews"] = _seller_reviews(db, user["_id"])
    return to_public(profile)


@router.put("/me")
def update_me(payload: ProfileUpdate, user=Depends(get_current_user), db: Database = Depends(get_db)):
    updates = payload.model_dump(exclude_none=True)
    if updates:
        updates["updatedAt"] = now()
        db[USERS].update_one({"_id": user["_id"]}, {"$set": updates})
    updated = db[USERS].find_one({"_id": user["_id"]}, PUBLIC_PROJECTION)
    return {"message": "Profile updated successfully! 🎉", "type": "success", "user": to_public(updated)}


@router.get("/{user_id}")
def get_user(user_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    oid = object_id(user_id)
    found = db[USERS].find_one({"_id": oid}, PUBLIC_PROJECTION)
    if not found:
        raise ApiError(404, "User not found! 😢")
    found["reviews"] = _seller_reviews(db, oid)
    return to_public(found)


@router.get("/{user_id}/reviews")
def user_reviews(user_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    return to_public(_seller_reviews(db, object_id(user_id)))


@router.get("/{user_id}/products")
def user_products(user_id: str, db: Database = Depends(get_db)):
    products = list(
        db[PRODUCTS].find(
            {"seller": object_id(user_id)},
            {"_id": 1, "name": 1, "image": 1, "category": 1, "price": 1, "createdAt": 1},
        )
    )
    return to_public(populate(db, products, "category", CATEGORIES))
