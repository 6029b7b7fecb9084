import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Header, Response
from pymongo.database import Database

from config import Config
from database import get_db, object_id
from errors import ApiError
from schemas import USERS

logger = logging.getLogger(__name__)

REFRESH_COOKIE = "refreshToken"

# Never sent to clients
PRIVATE_USER_FIELDS = ("password", "refreshToken")


def hash_password(plain: str) -> str:
    salt = bcrypt.gensalt(rounds=Config.SALT_WORK_FACTOR)
    return bcrypt.hashpw(plain.encode(), salt).decode()


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        return False


def _sign(payload: dict, secret: str, lifetime: int) -> str:
    payload = {**payload, "exp": datetime.now(timezone.utc) + timedelta(seconds=lifetime)}
    return jwt.encode(payload, secret, algorithm=Config.JWT_ALGO)


def verify_token(token: str, secret: str) -> dict:
    """Decode a token; raises jwt.InvalidTokenError on any problem."""
    return jwt.decode(token, secret, algorithms=[Config.JWT_ALGO])


def create_access_token(user_id) -> str:
    return _sign({"id": str(user_id)}, Config.ACCESS_TOKEN_SECRET, Config.ACCESS_TOKEN_LIFE)


def create_refresh_token(user_id) -> str:
    # jti keeps rotated tokens distinct within the same second
    return _sign({"id": str(user_id), "jti": uuid.uuid4().hex}, Config.REFRESH_TOKEN_SECRET, Config.REFRESH_TOKEN_LIFE)


def create_email_verification_token(user: dict) -> str:
    # Keyed on the address, so it stops working if the email changes
    return _sign({"id": str(user["_id"])}, user["email"], Config.VERIFY_EMAIL_TOKEN_LIFE)


def create_password_reset_token(user: dict) -> str:
    # Keyed on the current hash, so it is single use
    return _sign(
        {"id": str(user["_id"]), "email": user["email"]},
        user["password"],
        Config.PASSWORD_RESET_TOKEN_LIFE,
    )


def set_refresh_cookie(response: Response, token: str):
    response.set_cookie(
        REFRESH_COOKIE,
        token,
        max_age=Config.REFRESH_TOKEN_LIFE,
        httponly=True,
        secure=True,
        samesite="none",
    )


def clear_refresh_cookie(response: Response):
    response.delete_cookie(REFRESH_COOKIE, httponly=True, secure=True, samesite="none")


def public_user(user: Optional[dict]) -> Optional[dict]:
    if user is None:
        return None
    return {k: v for k, v in user.items() if k not in PRIVATE_USER_FIELDS}


def get_current_user(
    authorization: Optional[str] = Header(None),
    db: Database = Depends(get_db),
) -> dict:
    if not authorization:
        raise ApiError(401, "No token! 🤔")

    parts = authorization.split(" ")
    token = parts[1] if len(parts) > 1 else ""
    try:
        payload = verify_token(token, Config.ACCESS_TOKEN_SECRET)
    except jwt.InvalidTokenError:
        raise ApiError(403, "Invalid token! 🤔")

    user_id = payload.get("id")
    if not user_id:
        raise ApiError(401, "Invalid token! 🤔")

    user = db[USERS].find_one({"_id": object_id(user_id)})
    if not user:
        raise ApiError(404, "User doesn't exist! 😢")
    return user
