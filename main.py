import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import Config
from database import close_client, get_db
from errors import install_exception_handlers
from logger import RequestLoggerMiddleware, setup_logging
from realtime import router as realtime_router
from routers import (
    account_router,
    auth_router,
    cart_router,
    categories_router,
    conversations_router,
    messages_router,
    products_router,
    reviews_router,
    users_router,
    wishlist_router,
)
from schemas import CARTS, CATEGORIES, CONVERSATIONS, MESSAGES, PRODUCTS, REVIEWS, USERS, WISHLISTS

setup_logging(Config.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Sell Easy backend starting (env=%s)", Config.ENV)
    yield
    close_client()
    logger.info("Sell Easy backend stopped")


app = FastAPI(title="Sell Easy API", lifespan=lifespan)

app.add_middleware(RequestLoggerMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["OPTIONS", "GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

install_exception_handlers(app)

for router in (
    account_router,
    auth_router,
    users_router,
    categories_router,
    products_router,
    cart_router,
    wishlist_router,
    reviews_router,
    conversations_router,
    messages_router,
    realtime_router,
):
    app.include_router(router)


@app.get("/")
def root():
    return {"status": "ok", "service": "sell-easy-backend"}


@app.get("/schema")
def schema_overview():
    return {
        "collections": [USERS, CATEGORIES, PRODUCTS, CARTS, WISHLISTS, REVIEWS, CONVERSATIONS, MESSAGES],
    }


# Simple health
@app.get("/test")
def test_database(db: Database = Depends(get_db)):
    status = {
        "backend": "running",
        "database": "not-configured",
    }
    try:
        db.list_collection_names()
        status["database"] = "connected"
    except PyMongoError as e:
        logger.error("Database health check failed: %s", e)
        status["database"] = "error"
    return status


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=Config.PORT)
