import logging

from fastapi import APIRouter, Depends
from pymongo import DESCENDING
from pymongo.database import Database

from database import create_document, get_db, object_id, populate, to_public
from errors import ApiError
from schemas import CONVERSATIONS, MESSAGES, USERS, ConversationCreate, GroupConversationCreate
from security import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/conversations", tags=["conversations"])

MEMBER_FIELDS = ["_id", "name", "email", "profileImage"]


def populate_conversations(db: Database, conversations):
    populate(db, conversations, "users", USERS, MEMBER_FIELDS)
    populate(db, conversations, "groupAdmin", USERS, MEMBER_FIELDS)
    populate(db, conversations, "latestMessage", MESSAGES)
    populate(db, conversations, "latestMessage.sender", USERS, MEMBER_FIELDS)
    return conversations


@router.post("")
def access_conversation(payload: ConversationCreate, user=Depends(get_current_user), db: Database = Depends(get_db)):
    """Return the one-to-one conversation with `userId`, creating it if needed."""
    if not payload.userId:
        logger.info("userId not sent with conversation request")
        raise ApiError(400, "Bad request! 😕")

    other_id = object_id(payload.userId)
    if other_id == user["_id"]:
        raise ApiError(400, "You can't start a conversation with yourself! 😕")
    if not db[USERS].find_one({"_id": other_id}, {"_id": 1}):
        raise ApiError(404, "User not found! 😢")

    existing = db[CONVERSATIONS].find_one(
        {"isGroupChat": False, "users": {"$all": [user["_id"], other_id]}}
    )
    if existing:
        return to_public(populate_conversations(db, existing))

    conversation_id = create_document(
        db,
        CONVERSATIONS,
        {
            "chatName": "sender",
            "isGroupChat": False,
            "users": [user["_id"], other_id],
            "groupAdmin": None,
            "latestMessage": None,
        },
    )
    logger.info("Conversation %s started between %s and %s", conversation_id, user["_id"], other_id)
    created = db[CONVERSATIONS].find_one({"_id": object_id(conversation_id)})
    return to_public(populate_conversations(db, created))


@router.get("")
def list_conversations(user=Depends(get_current_user), db: Database = Depends(get_db)):
    conversations = list(
        db[CONVERSATIONS].find({"users": user["_id"]}).sort([("updatedAt", DESCENDING), ("_id", DESCENDING)])
    )
    return to_public(populate_conversations(db, conversations))


@router.post("/group")
def create_group(payload: GroupConversationCreate, user=Depends(get_current_user), db: Database = Depends(get_db)):
    if not payload.users or not payload.name:
        raise ApiError(400, "Please fill all the fields")

    members = []
    for raw in payload.users:
        oid = object_id(raw)
        if oid != user["_id"] and oid not in members:
            members.append(oid)
    if len(members) < 2:
        raise ApiError(400, "More than 2 users are required to form a group chat")
    members.append(user["_id"])

    conversation_id = create_document(
        db,
        CONVERSATIONS,
        {
            "chatName": payload.name,
            "isGroupChat": True,
            "users": members,
            "groupAdmin": user["_id"],
            "latestMessage": None,
        },
    )
    created = db[CONVERSATIONS].find_one({"_id": object_id(conversation_id)})
    return to_public(populate_conversations(db, created))


@router.get("/find/{first_user_id}/{second_user_id}")
def find_conversation(
    first_user_id: str,
    second_user_id: str,
    user=Depends(get_current_user),
    db: Database = Depends(get_db),
):
    conversation = db[CONVERSATIONS].find_one(
        {"users": {"$all": [object_id(first_user_id), object_id(second_user_id)]}}
    )
    return to_public(conversation)
