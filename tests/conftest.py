import mongomock
import pytest
from fastapi.testclient import TestClient

import main
from auth import hash_password, issue_token
from config import Settings, get_settings
from database import create_document, ensure_indexes, find_by_id, get_db, serialize_doc
from schemas import OrderCreateBody, Product, User

ADDRESS = {
    "name": "Asha Rao",
    "phone": "9876543210",
    "address": "12 MG Road",
    "city": "Bengaluru",
    "pincode": "560001",
}


@pytest.fixture
def settings():
    return Settings(jwt_secret="storefront-test-secret-0123456789abcdef", auth_salt="test-salt", admin_email="root@shopmail.com", admin_password="s3cret!")


@pytest.fixture
def db():
    database = mongomock.MongoClient()["storefront_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(db, settings):
    main.app.dependency_overrides[get_db] = lambda: db
    main.app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides.clear()


@pytest.fixture
def make_user(db, settings):
    def _make(name="Shopper", email=None, role="user", password="password1"):
        email = email or f"{name.lower().replace(' ', '.')}@shopmail.com"
        user = User(name=name, email=email, password_hash=hash_password(password, settings.auth_salt), role=role)
        uid = create_document(db, "user", user)
        doc = serialize_doc(find_by_id(db, "user", uid))
        doc["headers"] = {"Authorization": f"Bearer {issue_token(doc, settings)['token']}"}
        return doc
    return _make


@pytest.fixture
def user(make_user):
    return make_user("Shopper")


@pytest.fixture
def admin(make_user):
    return make_user("Admin", role="admin")


@pytest.fixture
def make_product(db):
    def _make(name="Widget", price=10.0, stock=10, category="Gadgets", description="A useful widget"):
        product = Product(name=name, description=description, price=price, category=category, stock=stock)
        return create_document(db, "product", product)
    return _make


@pytest.fixture
def order_body():
    def _body(*lines, payment_method="Cash on Delivery"):
        return OrderCreateBody(
            products=[{"productId": pid, "quantity": qty} for pid, qty in lines],
            shippingAddress=ADDRESS,
            paymentMethod=payment_method,
        )
    return _body
