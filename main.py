import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

import catalog
import orders
import reviews
from auth import get_current_user, hash_password, is_admin, issue_token, public_user, require_admin
from config import Settings, get_settings
from dashboard import dashboard_summary
from database import close_db, create_document, get_db, init_db, serialize_doc
from errors import Conflict, Forbidden, ShopError
from images import ImageUploader, get_image_uploader
from schemas import (
    LoginBody,
    OrderCreateBody,
    OrderStatusBody,
    Product as ProductSchema,
    RegisterBody,
    ReviewCreateBody,
    User as UserSchema,
)

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    init_db(settings)
    try:
        yield
    finally:
        close_db()


app = FastAPI(title="Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ----------------------- Errors -----------------------
@app.exception_handler(ShopError)
async def shop_error_handler(request: Request, exc: ShopError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in e["loc"] if p != "body"), "message": e["msg"]}
        for e in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"message": "Validation failed", "errors": errors})


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Server error"})


# ----------------------- Health -----------------------
@app.get("/")
def root():
    return {"status": "ok", "service": "Storefront API"}


# ----------------------- Auth -----------------------
@app.post("/auth/register", status_code=201)
def register(body: RegisterBody, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    if db["user"].find_one({"email": body.email}):
        raise Conflict("Email already registered")
    user = UserSchema(name=body.name, email=body.email, password_hash=hash_password(body.password, settings.auth_salt))
    try:
        uid = create_document(db, "user", user)
    except DuplicateKeyError:
        raise Conflict("Email already registered")
    return issue_token({"id": uid, "name": user.name, "email": user.email, "role": user.role}, settings)


@app.post("/auth/login")
def login(body: LoginBody, db: Database = Depends(get_db), settings: Settings = Depends(get_settings)):
    user = db["user"].find_one({"email": body.email})
    if not user or user.get("password_hash") != hash_password(body.password, settings.auth_salt):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return issue_token(serialize_doc(user), settings)


@app.get("/auth/me")
def me(user=Depends(get_current_user)):
    return public_user(user)


# ----------------------- Products -----------------------
@app.get("/products")
def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = Query(None, pattern="^(price-asc|price-desc|newest)$"),
    db: Database = Depends(get_db),
):
    return catalog.list_products(db, page=page, limit=limit, category=category, search=search, sort=sort)


@app.get("/products/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    return catalog.get_product(db, product_id)


@app.post("/products", status_code=201)
def create_product(
    name: str = Form(..., min_length=1),
    description: str = Form(..., min_length=1),
    price: float = Form(..., ge=0),
    category: str = Form(..., min_length=1),
    stock: int = Form(0, ge=0),
    images: List[UploadFile] = File(default=[]),
    db: Database = Depends(get_db),
    uploader: ImageUploader = Depends(get_image_uploader),
    user=Depends(require_admin),
):
    urls = uploader.upload_many(images)
    product = ProductSchema(
        name=name.strip(),
        description=description.strip(),
        price=price,
        category=category.strip(),
        stock=stock,
        images=urls,
    )
    return catalog.create_product(db, product)


@app.put("/products/{product_id}")
def update_product(
    product_id: str,
    name: Optional[str] = Form(None, min_length=1),
    description: Optional[str] = Form(None, min_length=1),
    price: Optional[float] = Form(None, ge=0),
    category: Optional[str] = Form(None, min_length=1),
    stock: Optional[int] = Form(None, ge=0),
    images: List[UploadFile] = File(default=[]),
    db: Database = Depends(get_db),
    uploader: ImageUploader = Depends(get_image_uploader),
    user=Depends(require_admin),
):
    catalog.get_product(db, product_id)
    fields = {"name": name, "description": description, "price": price, "category": category, "stock": stock}
    return catalog.update_product(db, product_id, fields, uploader.upload_many(images))


@app.delete("/products/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_db), user=Depends(require_admin)):
    catalog.delete_product(db, product_id)
    return {"message": "Product deleted successfully"}


# ----------------------- Orders -----------------------
@app.post("/orders", status_code=201)
def create_order(
    body: OrderCreateBody,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
    user=Depends(get_current_user),
):
    return orders.place_order(db, user["id"], body, code_attempts=settings.order_code_attempts)


@app.get("/orders")
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Database = Depends(get_db),
    user=Depends(require_admin),
):
    return orders.list_orders(db, page=page, limit=limit)


@app.get("/orders/user/{user_id}")
def get_user_orders(user_id: str, db: Database = Depends(get_db), user=Depends(get_current_user)):
    if user["id"] != user_id and not is_admin(user):
        raise Forbidden("Access denied")
    return orders.list_user_orders(db, user_id)


@app.put("/orders/{order_id}/status")
def update_order_status(
    order_id: str, body: OrderStatusBody, db: Database = Depends(get_db), user=Depends(require_admin)
):
    return orders.update_order_status(db, order_id, body.orderStatus)


# ----------------------- Reviews -----------------------
@app.post("/reviews", status_code=201)
def create_review(body: ReviewCreateBody, db: Database = Depends(get_db), user=Depends(get_current_user)):
    return reviews.upsert_review(db, body.productId, user["id"], body.rating, body.comment)


@app.get("/reviews/product/{product_id}")
def get_product_reviews(product_id: str, db: Database = Depends(get_db)):
    return reviews.list_product_reviews(db, product_id)


@app.delete("/reviews/{review_id}")
def delete_review(review_id: str, db: Database = Depends(get_db), user=Depends(get_current_user)):
    reviews.delete_review(db, review_id, user)
    return {"message": "Review deleted"}


# ----------------------- Admin -----------------------
@app.get("/admin/dashboard")
def admin_dashboard(db: Database = Depends(get_db), user=Depends(require_admin)):
    return dashboard_summary(db)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
