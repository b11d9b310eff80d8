"""
Database Schemas for the Storefront API

Each Pydantic model corresponds to one MongoDB collection.
Collection name is the lowercase of the class name.
Request bodies accepted by the API are declared at the bottom.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

ORDER_STATUSES = ("Pending", "Processing", "Shipped", "Delivered")
REVIEW_COMMENT_MAX = 500

OrderStatus = Literal["Pending", "Processing", "Shipped", "Delivered"]
PaymentMethod = Literal["Cash on Delivery", "Online Pay"]
PaymentStatus = Literal["Pending", "Completed"]


class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr
    password_hash: str = Field(..., description="Hashed password")
    role: Literal["user", "admin"] = "user"


class Product(BaseModel):
    name: str
    description: str
    price: float = Field(..., ge=0)
    category: str
    stock: int = Field(0, ge=0)
    images: List[str] = Field(default_factory=list)
    rating: float = Field(0, ge=0, le=5)
    numReviews: int = Field(0, ge=0)


class Review(BaseModel):
    productId: str
    userId: str
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field("", max_length=REVIEW_COMMENT_MAX)


class ShippingAddress(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    pincode: str = Field(..., min_length=1)


class OrderItem(BaseModel):
    productId: str
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0, description="Unit price captured at order time")


class Order(BaseModel):
    orderId: str
    userId: str
    products: List[OrderItem]
    totalAmount: float
    shippingAddress: ShippingAddress
    orderStatus: OrderStatus = "Pending"
    paymentMethod: PaymentMethod = "Cash on Delivery"
    paymentStatus: PaymentStatus = "Pending"


# ----------------------- Request bodies -----------------------
class RegisterBody(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginBody(BaseModel):
    email: EmailStr
    password: str


class OrderLineBody(BaseModel):
    productId: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class OrderCreateBody(BaseModel):
    products: List[OrderLineBody] = Field(..., min_length=1)
    shippingAddress: ShippingAddress
    paymentMethod: PaymentMethod = "Cash on Delivery"


class OrderStatusBody(BaseModel):
    orderStatus: OrderStatus


class ReviewCreateBody(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    productId: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=REVIEW_COMMENT_MAX)
