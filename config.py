"""Application configuration settings"""

import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes", "on"}


DEFAULT_ORIGINS = ",".join(
    [
        "http://127.0.0.1:3000",
        "http://localhost:3000",
        "http://localhost:5010",
        "http://127.0.0.1:5010",
        "http://localhost:8080",
        "https://sell-easy.vercel.app",
    ]
)


class Config:
    ENV = os.getenv("ENV", "development")
    PORT = int(os.getenv("PORT", "8000"))
    CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")
    ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", DEFAULT_ORIGINS).split(",") if o.strip()]

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
    DATABASE_NAME = os.getenv("DATABASE_NAME", "sell_easy")
    # Transactions need a replica set; standalone servers must turn this off
    MONGO_TRANSACTIONS = _flag("MONGO_TRANSACTIONS", "true")

    # Tokens (lifetimes in seconds)
    ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "dev-access-secret")
    REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "dev-refresh-secret")
    ACCESS_TOKEN_LIFE = int(os.getenv("ACCESS_TOKEN_LIFE", str(15 * 60)))
    REFRESH_TOKEN_LIFE = int(os.getenv("REFRESH_TOKEN_LIFE", str(7 * 24 * 60 * 60)))
    PASSWORD_RESET_TOKEN_LIFE = int(os.getenv("PASSWORD_RESET_TOKEN_LIFE", str(15 * 60)))
    VERIFY_EMAIL_TOKEN_LIFE = int(os.getenv("VERIFY_EMAIL_TOKEN_LIFE", str(90 * 24 * 60 * 60)))
    JWT_ALGO = "HS256"
    SALT_WORK_FACTOR = int(os.getenv("SALT_WORK_FACTOR", "12"))

    # Email
    SMTP_SERVER = os.getenv("SMTP_SERVER", "")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USER = os.getenv("SMTP_USER", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    EMAIL_FROM = os.getenv("EMAIL_FROM", "Sell Easy <noreply@sell-easy.app>")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT = os.getenv("LOG_FORMAT", "%(asctime)s %(levelname)s [%(name)s] %(message)s")
