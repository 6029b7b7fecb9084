from routers.auth import account_router, router as auth_router
from routers.cart import router as cart_router
from routers.categories import router as categories_router
from routers.conversations import router as conversations_router
from routers.messages import router as messages_router
from routers.products import router as products_router
from routers.reviews import router as reviews_router
from routers.users import router as users_router
from routers.wishlist import router as wishlist_router

__all__ = [
    "account_router",
    "auth_router",
    "cart_router",
    "categories_router",
    "conversations_router",
    "messages_router",
    "products_router",
    "reviews_router",
    "users_router",
    "wishlist_router",
]
