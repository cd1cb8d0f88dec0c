import time
from dataclasses import dataclass
from typing import Any, Dict

import jwt
import mongomock
import pytest
from fastapi.testclient import TestClient

from server import create_app
from supplyhub.app_config import Settings
from supplyhub.mongo import ensure_indexes

SECRET = "unit-test-shared-secret-with-enough-bytes-for-hs256"
PROJECT = "street-supply-test"


def make_token(uid: str, email: str = None, secret: str = SECRET, project: str = PROJECT,
               expires_in: int = 3600, **extra: Any) -> str:
    now = int(time.time())
    payload = {
        "sub": uid,
        "user_id": uid,
        "aud": project,
        "iss": f"https://securetoken.google.com/{project}",
        "iat": now,
        "exp": now + expires_in,
    }
    if email:
        payload["email"] = email
    payload.update(extra)
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(uid: str, email: str = None) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(uid, email or f'{uid}@example.com')}"}


@dataclass
class Actor:
    uid: str
    headers: Dict[str, str]
    user: Dict[str, Any]

    @property
    def id(self) -> str:
        return self.user["id"]


@pytest.fixture
def settings():
    return Settings(identity_project_id=PROJECT, identity_shared_secret=SECRET)


@pytest.fixture
def db():
    database = mongomock.MongoClient().get_database("street_supply_test")
    ensure_indexes(database)
    return database


@pytest.fixture
def app(settings, db):
    return create_app(settings=settings, db=db)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    def _register(uid: str, role: str, **fields: Any) -> Actor:
        headers = bearer(uid)
        body = {"firstName": uid.title(), "lastName": "Tester", "role": role, **fields}
        r = client.post("/api/auth/register", json=body, headers=headers)
        assert r.status_code == 201, r.text
        return Actor(uid=uid, headers=headers, user=r.json()["user"])
    return _register


@pytest.fixture
def distributor(register):
    return register("dist-1", "distributor", companyName="Premium Food Distributors Inc.")


@pytest.fixture
def vendor(register):
    return register("vendor-1", "street_vendor", address="Downtown Market, stall 4")


@pytest.fixture
def agent(register):
    return register("agent-a", "delivery_agent", phone="+1-555-0199")


@pytest.fixture
def agent_b(register):
    return register("agent-b", "delivery_agent")


@pytest.fixture
def make_product(client, distributor):
    def _make(actor: Actor = None, **fields: Any) -> Dict[str, Any]:
        actor = actor or distributor
        body = {"name": "Basmati Rice 25kg", "category": "Grains", "price": "10.50",
                "stockQuantity": 100, "unit": "bags", **fields}
        r = client.post("/api/distributor/products", json=body, headers=actor.headers)
        assert r.status_code == 201, r.text
        return r.json()["product"]
    return _make


@pytest.fixture
def place_order(client, vendor, distributor):
    def _place(items, actor: Actor = None, distributor_id: str = None, **fields: Any):
        actor = actor or vendor
        body = {"distributorId": distributor_id or distributor.id, "items": items, **fields}
        return client.post("/api/vendor/orders", json=body, headers=actor.headers)
    return _place


@pytest.fixture
def shipped_assignment(client, distributor, make_product, place_order):
    """An order walked to shipped; returns (order, assignment id)."""
    product = make_product()
    order = place_order([{"productId": product["id"], "quantity": 3}]).json()["order"]
    for status in ("confirmed", "shipped"):
        r = client.patch(f"/api/distributor/orders/{order['id']}", json={"status": status},
                         headers=distributor.headers)
        assert r.status_code == 200, r.text
    return order, r.json()["order"]["deliveryAssignmentId"]
