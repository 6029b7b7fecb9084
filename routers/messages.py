import logging

from fastapi import APIRouter, Depends
from pymongo.database import Database

from database import create_document, get_db, now, object_id, populate, to_public
from errors import ApiError
from schemas import CONVERSATIONS, MESSAGES, USERS, MessageCreate
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/messages", tags=["messages"])

SENDER_FIELDS = ["_id", "name", "email", "profileImage"]


def _member_conversation(db: Database, conversation_id: str, user: dict) -> dict:
    conversation = db[CONVERSATIONS].find_one({"_id": object_id(conversation_id)})
    if not conversation:
        raise ApiError(404, "Conversation not found! 😢")
    if user["_id"] not in conversation.get("users", []):
        raise ApiError(403, "You are not part of this conversation! 🔒")
    return conversation


@router.post("")
def send_message(payload: MessageCreate, user=Depends(get_current_user), db: Database = Depends(get_db)):
    if not payload.content or not payload.conversationId:
        logger.info("Invalid data passed into message request")
        raise ApiError(400, "Bad request! 😕")

    conversation = _member_conversation(db, payload.conversationId, user)
    message_id = object_id(
        create_document(
            db,
            MESSAGES,
            {
                "sender": user["_id"],
                "content": payload.content,
                "chat": conversation["_id"],
                "readBy": [user["_id"]],
            },
        )
    )
    db[CONVERSATIONS].update_one(
        {"_id": conversation["_id"]},
        {"$set": {"latestMessage": message_id, "updatedAt": now()}},
    )

    message = db[MESSAGES].find_one({"_id": message_id})
    populate(db, message, "sender", USERS, ["_id", "name", "profileImage"])
    populate(db, message, "chat", CONVERSATIONS)
    populate(db, message, "chat.users", USERS, SENDER_FIELDS)
    return to_public(message)


@router.get("/{conversation_id}")
def list_messages(conversation_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    conversation = _member_conversation(db, conversation_id, user)
    messages = list(db[MESSAGES].find({"chat": conversation["_id"]}).sort([("createdAt", 1), ("_id", 1)]))
    populate(db, messages, "sender", USERS, SENDER_FIELDS)
    for message in messages:
        message["chat"] = conversation
    return to_public(messages)


@router.put("/{conversation_id}/read")
def mark_read(conversation_id: str, user=Depends(get_current_user), db: Database = Depends(get_db)):
    conversation = _member_conversation(db, conversation_id, user)
    result = db[MESSAGES].update_many(
        {"chat": conversation["_id"], "readBy": {"$ne": user["_id"]}},
        {"$addToSet": {"readBy": user["_id"]}},
    )
    return {"modified": result.modified_count}
