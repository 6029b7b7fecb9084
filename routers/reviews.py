"""
Reviews of products and sellers.

Every target document (a product, or a user acting as seller) carries
`rating`, `numReviews` and `reviews`; these are kept in step with the
reviews collection inside a single transaction per mutation.
"""

import logging

from fastapi import APIRouter, Depends, status
from pymongo.database import Database

from database import get_db, now, object_id, populate, to_public, transaction
from errors import ApiError
from ratings import mean_rating, rating_after_add, rating_after_remove
from schemas import PRODUCTS, REVIEWS, USERS, ReviewCreate, ReviewUpdate
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reviews", tags=["reviews"])

TARGET_COLLECTIONS = {"Product": PRODUCTS, "Seller": USERS}
REVIEWER_FIELDS = ["_id", "name", "profileImage"]


def target_collection(target_type: str) -> str:
    collection = TARGET_COLLECTIONS.get(target_type)
    if collection is None:
        raise ApiError(400, "Please specify target type and ID! 🤔")
    return collection


@router.get("/written")
def written_reviews(user=Depends(get_current_user), db: Database = Depends(get_db)):
    reviews = list(db[REVIEWS].find({"reviewer": user["_id"]}).sort("createdAt", -1))
    return to_public(reviews)


@router.get("/received/{user_id}")
def received_reviews(user_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    oid = object_id(user_id)
    if not db[USERS].find_one({"_id": oid}, {"_id": 1}):
        raise ApiError(404, "User not found! 😢")
    reviews = list(db[REVIEWS].find({"target.id": oid}).sort("createdAt", -1))
    return to_public(populate(db, reviews, "reviewer", USERS, REVIEWER_FIELDS))


@router.get("/{target_type}/{target_id}")
def target_reviews(target_type: str, target_id: str, db: Database = Depends(get_db)):
    collection = target_collection(target_type)
    oid = object_id(target_id)
    if not db[collection].find_one({"_id": oid}, {"_id": 1}):
        raise ApiError(404, f"{target_type} not found! 😢")
    reviews = list(db[REVIEWS].find({"target.type": target_type, "target.id": oid}).sort("createdAt", -1))
    return {"reviews": to_public(populate(db, reviews, "reviewer", USERS, REVIEWER_FIELDS))}


@router.post("", status_code=status.HTTP_201_CREATED)
def create_review(payload: ReviewCreate, user=Depends(get_current_user), db: Database = Depends(get_db)):
    collection = target_collection(payload.target.type)
    target_id = object_id(payload.target.id)

    with transaction(db) as session:
        target = db[collection].find_one({"_id": target_id}, session=session)
        if not target:
            raise ApiError(404, f"{payload.target.type} not found! 😢")

        stamp = now()
        review = {
            "target": {"type": payload.target.type, "id": target_id},
            "reviewer": user["_id"],
            "rating": payload.rating,
            "comment": payload.comment,
            "createdAt": stamp,
            "updatedAt": stamp,
        }
        review["_id"] = db[REVIEWS].insert_one(review, session=session).inserted_id
        db[USERS].update_one({"_id": user["_id"]}, {"$push": {"comments": review["_id"]}}, session=session)

        rating = rating_after_add(target.get("rating", 0), target.get("numReviews", 0), payload.rating)
        db[collection].update_one(
            {"_id": target_id},
            {
                "$push": {"reviews": review["_id"]},
                "$inc": {"numReviews": 1},
                "$set": {"rating": rating},
            },
            session=session,
        )

    logger.info("Review %s added to %s %s", review["_id"], payload.target.type, target_id)
    return {"message": "Review added successfully! 👍", "type": "success", "review": to_public(review)}


@router.put("/{review_id}")
def update_review(
    review_id: str,
    payload: ReviewUpdate,
    user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    oid = object_id(review_id)
    review = db[REVIEWS].find_one({"_id": oid})
    if not review:
        raise ApiError(404, "Review not found! 😢")
    if review["reviewer"] != user["_id"]:
        raise ApiError(403, "You are not authorized to edit this review! 🔒")

    collection = target_collection(review["target"]["type"])
    target_id = review["target"]["id"]
    changes = payload.model_dump(exclude_none=True)

    with transaction(db) as session:
        db[REVIEWS].update_one({"_id": oid}, {"$set": {**changes, "updatedAt": now()}}, session=session)
        ratings = [
            r["rating"]
            for r in db[REVIEWS].find(
                {"target.type": review["target"]["type"], "target.id": target_id},
                {"rating": 1},
                session=session,
            )
        ]
        db[collection].update_one({"_id": target_id}, {"$set": {"rating": mean_rating(ratings)}}, session=session)
        updated = db[REVIEWS].find_one({"_id": oid}, session=session)

    return {"message": "Review updated successfully! 👍", "type": "success", "review": to_public(updated)}


@router.delete("/{review_id}")
def delete_review(review_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    oid = object_id(review_id)

    with transaction(db) as session:
        review = db[REVIEWS].find_one({"_id": oid}, session=session)
        if not review:
            raise ApiError(404, "Review not found! 😢")
        if review["reviewer"] != user["_id"]:
            raise ApiError(403, "You are not authorized to delete this review! 🔒")

        target_type = review["target"]["type"]
        collection = target_collection(target_type)
        target = db[collection].find_one({"_id": review["target"]["id"]}, session=session)
        if not target:
            raise ApiError(404, f"{target_type} not found! 😢")

        db[USERS].update_one({"_id": review["reviewer"]}, {"$pull": {"comments": oid}}, session=session)

        remaining = len([r for r in target.get("reviews", []) if r != oid])
        rating = rating_after_remove(target.get("rating", 0), remaining, review["rating"])
        db[collection].update_one(
            {"_id": target["_id"]},
            {"$pull": {"reviews": oid}, "$set": {"rating": rating, "numReviews": remaining}},
            session=session,
        )
        db[REVIEWS].delete_one({"_id": oid}, session=session)

    return {"message": "Review deleted successfully! 😀", "type": "success"}
