import logging

from fastapi import APIRouter, Depends, status
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from database import create_document, get_db, now, object_id, to_public
from errors import ApiError
from schemas import CATEGORIES, Category, CategoryPayload
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["categories"])

NOT_FOUND = "Category not found! 😢"


@router.post("", status_code=status.HTTP_201_CREATED)
def create_category(payload: CategoryPayload, user=Depends(get_current_user), db: Database = Depends(get_db)):
    try:
        category = Category(**payload.model_dump(exclude_none=True))
        category_id = create_document(db, CATEGORIES, category)
    except (ValidationError, PyMongoError) as e:
        logger.error("Error creating category: %s", e)
        raise ApiError(500, "Error creating category! 😕", error=str(e))

    doc = db[CATEGORIES].find_one({"_id": object_id(category_id)})
    return {"message": "Category created successfully! 👍", "category": to_public(doc)}


@router.get("")
def list_categories(db: Database = Depends(get_db)):
    return {"categories": to_public(list(db[CATEGORIES].find().sort("name", 1)))}


@router.get("/{category_id}")
def get_category(category_id: str, db: Database = Depends(get_db)):
    doc = db[CATEGORIES].find_one({"_id": object_id(category_id)})
    if not doc:
        raise ApiError(404, NOT_FOUND)
    return {"category": to_public(doc)}


@router.patch("/{category_id}")
def update_category(
    category_id: str,
    payload: CategoryPayload,
    user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    changes = payload.model_dump(include={"name", "description"}, exclude_none=True)
    doc = db[CATEGORIES].find_one_and_update(
        {"_id": object_id(category_id)},
        {"$set": {**changes, "updatedAt": now()}},
        return_document=ReturnDocument.AFTER,
    )
    if not doc:
        raise ApiError(404, NOT_FOUND)
    return {"message": "Category updated successfully! 👍", "category": to_public(doc)}


@router.delete("/{category_id}")
def delete_category(category_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    doc = db[CATEGORIES].find_one_and_delete({"_id": object_id(category_id)})
    if not doc:
        raise ApiError(404, NOT_FOUND)
    return {"message": "Category deleted successfully! 👍", "category": to_public(doc)}
