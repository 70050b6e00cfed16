import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from main import app, get_mailer, get_store
from tests.fakes import FakeMailer, FakeOrderStore

ADMIN_TOKEN = "test-admin-token"


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        admin_token=ADMIN_TOKEN,
        mail_user="shop@example.com",
        mail_password="app-password",
        notify_max_attempts=3,
        notify_retry_delay=0,
    )


@pytest.fixture
def store() -> FakeOrderStore:
    return FakeOrderStore()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def client(store, mailer, test_settings):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def checkout_payload() -> dict:
    return {
        "customer_details": {
            "first_name": "Nusrat",
            "last_name": "Jahan",
            "email": "nusrat@example.com",
            "phone": "01711000000",
            "address": "House 12, Road 4",
            "city": "Dhaka",
            "note": "Call before delivery",
        },
        "cart_items": [
            {"product_id": "p1", "name": "Silk Saree", "size": "Free", "price": 100, "quantity": 2},
            {"product_id": "p2", "name": "Rose Lip Tint", "size": "-", "price": 50, "quantity": 1},
        ],
        "total": 250,
        "payment_info": {"payment_method": "Cash on Delivery"},
    }
