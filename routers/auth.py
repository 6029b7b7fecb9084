import logging

import jwt
from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import PlainTextResponse
from pymongo.database import Database

import mailer
from config import Config
from database import create_document, get_db, now, object_id, to_public
from errors import ApiError
from schemas import (
    USERS,
    LoginRequest,
    PasswordResetEmailRequest,
    PasswordResetRequest,
    RegisterRequest,
    User,
)
from security import (
    REFRESH_COOKIE,
    clear_refresh_cookie,
    create_access_token,
    create_email_verification_token,
    create_password_reset_token,
    create_refresh_token,
    get_current_user,
    hash_password,
    public_user,
    set_refresh_cookie,
    verify_password,
    verify_token,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])
account_router = APIRouter(prefix="/api", tags=["account"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Database = Depends(get_db)):
    if db[USERS].find_one({"email": payload.email}):
        raise ApiError(409, "User already exists! Try logging in. 😄", type="warning")

    user = User(
        name=payload.name,
        email=payload.email,
        password=hash_password(payload.password),
        phoneNumber=payload.phoneNumber,
        address=payload.address,
        profileImage=payload.profileImage,
    )
    user_id = create_document(db, USERS, user)
    saved = db[USERS].find_one({"_id": object_id(user_id)})
    logger.info("Registered user %s", user_id)

    token = create_email_verification_token(saved)
    url = mailer.email_verification_url(user_id, token)
    if not mailer.send_email(mailer.email_verification_message(saved, url)):
        raise ApiError(500, "Error sending email! 😢")

    return {
        "message": "Verify your email by clicking the link sent to your email! 📧",
        "type": "success",
    }


@router.post("/login")
def login(payload: LoginRequest, response: Response, db: Database = Depends(get_db)):
    user = db[USERS].find_one({"email": payload.email})
    if not user:
        raise ApiError(404, "User doesn't exist! 😢")
    if not verify_password(payload.password, user["password"]):
        raise ApiError(403, "Password is incorrect! ⚠️")

    access_token = create_access_token(user["_id"])
    refresh_token = create_refresh_token(user["_id"])
    db[USERS].update_one({"_id": user["_id"]}, {"$set": {"refreshToken": refresh_token}})

    set_refresh_cookie(response, refresh_token)
    return {
        "accessToken": access_token,
        "user": to_public(public_user(user)),
        "message": "Sign in Successful 🥳",
        "type": "success",
    }


@router.post("/logout")
def logout(response: Response):
    clear_refresh_cookie(response)
    return {"message": "Logged out successfully! 🤗", "type": "success"}


@router.post("/refresh_token")
def refresh_token(request: Request, response: Response, db: Database = Depends(get_db)):
    token = request.cookies.get(REFRESH_COOKIE)
    if not token:
        raise ApiError(404, "No refresh token! 🤔")

    try:
        user_id = verify_token(token, Config.REFRESH_TOKEN_SECRET).get("id")
    except jwt.InvalidTokenError as e:
        logger.info("Rejected refresh token: %s", e)
        raise ApiError(401, "Invalid refresh token! 🤔")
    if not user_id:
        raise ApiError(401, "Invalid refresh token! 🤔")

    user = db[USERS].find_one({"_id": object_id(user_id)})
    if not user:
        raise ApiError(404, "User doesn't exist! 😢", id=user_id)
    if user.get("refreshToken") != token:
        raise ApiError(403, "Invalid refresh token! 🤔")

    access_token = create_access_token(user["_id"])
    new_refresh_token = create_refresh_token(user["_id"])
    db[USERS].update_one({"_id": user["_id"]}, {"$set": {"refreshToken": new_refresh_token}})

    set_refresh_cookie(response, new_refresh_token)
    return {
        "message": "Refreshed successfully! 🤗",
        "type": "success",
        "accessToken": access_token,
        "user": to_public(public_user(user)),
    }


@account_router.get("/", response_class=PlainTextResponse)
def live():
    return "Live!! 👌"


@account_router.get("/protected")
def protected(user=Depends(get_current_user)):
    return {
        "message": "You are logged in! 🤗",
        "type": "success",
        "user": to_public(public_user(user)),
    }


@account_router.get("/verify-email/{user_id}/{token}")
def verify_email(user_id: str, token: str, db: Database = Depends(get_db)):
    user = db[USERS].find_one({"_id": object_id(user_id)})
    if not user:
        raise ApiError(404, "User doesn't exist! 😢")

    try:
        verify_token(token, user["email"])
    except jwt.InvalidTokenError:
        raise ApiError(403, "Invalid token! 😢")

    db[USERS].update_one({"_id": user["_id"]}, {"$set": {"verified": True, "updatedAt": now()}})
    if not mailer.send_email(mailer.email_verified_message(user)):
        raise ApiError(500, "Error sending email! 😢")
    return {"message": "Email verification success! 📧", "type": "success"}


@account_router.post("/send-password-reset-email")
def send_password_reset_email(payload: PasswordResetEmailRequest, db: Database = Depends(get_db)):
    user = db[USERS].find_one({"email": payload.email})
    if not user:
        raise ApiError(404, "User doesn't exist! 😢")

    token = create_password_reset_token(user)
    url = mailer.password_reset_url(user["_id"], token)
    if not mailer.send_email(mailer.password_reset_message(user, url)):
        raise ApiError(500, "Error sending email! 😢")
    return {
        "message": "Password reset link has been sent to your email! 📧",
        "type": "success",
    }


@account_router.post("/reset-password/{user_id}/{token}")
def reset_password(user_id: str, token: str, payload: PasswordResetRequest, db: Database = Depends(get_db)):
    user = db[USERS].find_one({"_id": object_id(user_id)})
    if not user:
        raise ApiError(404, "User doesn't exist! 😢")

    try:
        verify_token(token, user["password"])
    except jwt.InvalidTokenError:
        raise ApiError(403, "Invalid token! 😢")

    db[USERS].update_one(
        {"_id": user["_id"]},
        {"$set": {"password": hash_password(payload.newPassword), "refreshToken": None, "updatedAt": now()}},
    )
    logger.info("Password reset for user %s", user_id)
    if not mailer.send_email(mailer.password_reset_confirmation_message(user)):
        raise ApiError(500, "Error sending email! 😢")
    return {"message": "Password reset successful!", "type": "success"}
