"""
Database Schemas for the Sell Easy marketplace

Each document model maps onto a MongoDB collection:
- User -> "users"
- Category -> "categories"
- Product -> "products"
- Cart -> "carts"
- Wishlist -> "wishlists"
- Review -> "reviews"
- Conversation -> "conversations"
- Message -> "messages"

Reference fields hold ObjectIds in storage and are accepted as strings in
request models.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

USERS = "users"
CATEGORIES = "categories"
PRODUCTS = "products"
CARTS = "carts"
WISHLISTS = "wishlists"
REVIEWS = "reviews"
CONVERSATIONS = "conversations"
MESSAGES = "messages"

ReviewTargetType = Literal["Product", "Seller"]


class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Email address")
    password: str = Field(..., description="BCrypt password hash")
    phoneNumber: Optional[str] = None
    address: Optional[str] = None
    profileImage: Optional[str] = None
    verified: bool = Field(False, description="Email address confirmed")
    refreshToken: Optional[str] = None
    rating: float = Field(0, ge=0, le=5, description="Average seller rating")
    numReviews: int = Field(0, ge=0)
    reviews: List[str] = Field(default_factory=list, description="Reviews received as seller")
    comments: List[str] = Field(default_factory=list, description="Reviews written")


class Category(BaseModel):
    name: str = Field(..., min_length=1, description="Category name")
    description: Optional[str] = None
    image: Optional[str] = Field(None, description="Cover image URL")


class Product(BaseModel):
    name: str = Field(..., min_length=1, description="Product name")
    description: str = Field(..., description="Product description")
    price: float = Field(..., ge=0, description="Price")
    category: str = Field(..., description="Category id")
    image: Optional[str] = Field(None, description="Cover image URL")
    media: List[str] = Field(default_factory=list, description="Gallery image URLs")
    popularity: int = Field(0, ge=0)


class ReviewTarget(BaseModel):
    type: ReviewTargetType
    id: str


# Request models


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    phoneNumber: Optional[str] = None
    address: Optional[str] = None
    profileImage: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class PasswordResetEmailRequest(BaseModel):
    email: EmailStr


class PasswordResetRequest(BaseModel):
    newPassword: str = Field(..., min_length=6)


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    phoneNumber: Optional[str] = None
    address: Optional[str] = None
    profileImage: Optional[str] = None


class CategoryPayload(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None


class ProductUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    image: Optional[str] = None
    media: Optional[List[str]] = None
    popularity: Optional[int] = Field(None, ge=0)


class CartAddRequest(BaseModel):
    productId: str
    quantity: int = Field(1, ge=1)


class CartUpdateRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class WishlistCreate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class WishlistProductRequest(BaseModel):
    productId: str


class ReviewCreate(BaseModel):
    target: ReviewTarget
    rating: float = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)


class ReviewUpdate(BaseModel):
    rating: Optional[float] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=1)


class ConversationCreate(BaseModel):
    userId: Optional[str] = None


class GroupConversationCreate(BaseModel):
    name: Optional[str] = None
    users: Optional[List[str]] = None


class MessageCreate(BaseModel):
    content: Optional[str] = None
    conversationId: Optional[str] = None

    @field_validator("content")
    @classmethod
    def strip_content(cls, v):
        return v.strip() if isinstance(v, str) else v
