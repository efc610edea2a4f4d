import json
import os
from itertools import count
from typing import Dict, List, Optional, Tuple

# Тесты работают на SQLite в памяти; задаём до импорта настроек приложения
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")

import httpx
import pytest
from fastapi.testclient import TestClient

from app.client.session import Session, SessionUser
from app.database import Base, SessionLocal, engine
from app.enums import UserRole
from app.main import app
from app.models import Product, ProductImage
from app.services.auth_service import AuthService, create_access_token

PASSWORD = "secret-password"


@pytest.fixture
def db():
    """Сессия БД с чистой схемой на каждый тест"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def users(db):
    service = AuthService(db)
    return {
        "buyer": service.create_user("buyer@example.com", PASSWORD, "Buyer", UserRole.BUYER),
        "other_buyer": service.create_user("other@example.com", PASSWORD, "Other", UserRole.BUYER),
        "seller": service.create_user("seller@example.com", PASSWORD, "Seller", UserRole.SELLER),
        "other_seller": service.create_user("seller2@example.com", PASSWORD, "Seller 2", UserRole.SELLER),
        "admin": service.create_user("admin@example.com", PASSWORD, "Admin", UserRole.ADMIN),
    }


def auth_headers(user) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}


def make_product(db, seller, **overrides) -> Product:
    data = {
        "name": "Basic T-shirt",
        "description": "Cotton t-shirt",
        "price": 500.0,
        "category": "t-shirts",
        "sizes": ["S", "M", "L"],
        "colors": ["black", "white"],
        "stock": 10,
    }
    data.update(overrides)
    product = Product(seller_id=seller.id, **data)
    product.images = [ProductImage(url=f"https://cdn.example.com/{data['name']}.jpg", alt=data["name"], position=0)]
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


@pytest.fixture
def products(db, users):
    seller = users["seller"]
    other = users["other_seller"]
    return {
        "shirt": make_product(db, seller),
        "jeans": make_product(
            db, seller, name="Slim jeans", description="Blue denim", price=2500.0,
            category="jeans", sizes=["30", "32"], colors=["blue"], stock=2
        ),
        "dress": make_product(
            db, other, name="Summer dress", description="Light dress", price=1800.0,
            category="dresses", sizes=["S", "M"], colors=["red"], stock=5
        ),
    }


def make_session(token: str = "test-token", role: UserRole = UserRole.BUYER) -> Session:
    return Session(
        user=SessionUser(id="user-1", email="buyer@example.com", name="Buyer", role=role),
        access_token=token
    )


class FakeCartServer:
    """Корзина в памяти с тем же HTTP-контрактом, что у /api/cart"""

    def __init__(self, token: str = "test-token"):
        self.token = token
        self.products = {
            "p1": {"name": "Basic T-shirt", "price": 500.0, "images": [{"url": "https://cdn.example.com/p1.jpg"}]},
            "p2": {"name": "Slim jeans", "price": 2500.0, "images": []},
        }
        self.lines: Dict[str, dict] = {}
        self.requests: List[httpx.Request] = []
        self._failures: Dict[Tuple[str, str], Tuple[int, dict]] = {}
        self._ids = count(1)

    def fail_next(self, method: str, path: str, status_code: int, body: Optional[dict] = None) -> None:
        self._failures[(method, path)] = (status_code, body or {"detail": "Something went wrong"})

    def seed(self, product_id: str, quantity: int = 1, size: Optional[str] = None,
             color: Optional[str] = None, price: Optional[float] = None) -> str:
        line_id = f"line-{next(self._ids)}"
        self.lines[line_id] = {
            "id": line_id,
            "productId": product_id,
            "quantity": quantity,
            "priceAtAddition": self.products[product_id]["price"] if price is None else price,
            "size": size,
            "color": color,
        }
        return line_id

    def calls(self, method: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"detail": "Invalid token"})

        failure = self._failures.pop((request.method, request.url.path), None)
        if failure:
            status_code, body = failure
            return httpx.Response(status_code, json=body)

        path = request.url.path
        if path == "/api/cart":
            if request.method == "GET":
                return httpx.Response(200, json={"items": [self._render(line) for line in self.lines.values()]})
            if request.method == "POST":
                return self._add(json.loads(request.content))

        if path.startswith("/api/cart/items/"):
            line_id = path.rsplit("/", 1)[1]
            line = self.lines.get(line_id)
            if line is None:
                return httpx.Response(404, json={"error": "Resource not found", "detail": f"Cart item {line_id} not found"})
            if request.method == "PATCH":
                line["quantity"] = json.loads(request.content)["quantity"]
                return httpx.Response(200, json=line)
            if request.method == "DELETE":
                del self.lines[line_id]
                return httpx.Response(200, json={"success": True})

        return httpx.Response(404, json={"error": "Resource not found"})

    def _add(self, body: dict) -> httpx.Response:
        product_id = body["productId"]
        if product_id not in self.products:
            return httpx.Response(404, json={"detail": f"Product {product_id} not found"})

        variant = (product_id, body.get("size"), body.get("color"))
        for line in self.lines.values():
            if (line["productId"], line["size"], line["color"]) == variant:
                line["quantity"] += body["quantity"]
                return httpx.Response(201, json=line)

        line_id = self.seed(product_id, body["quantity"], body.get("size"), body.get("color"))
        return httpx.Response(201, json=self.lines[line_id])

    def _render(self, line: dict) -> dict:
        product = self.products[line["productId"]]
        return {**line, "product": {"name": product["name"], "images": product["images"]}}


@pytest.fixture
def cart_server():
    return FakeCartServer()
