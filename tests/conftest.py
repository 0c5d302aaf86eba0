import json
import os

import httpx
import mongomock
import pytest
from fastapi.testclient import TestClient

from pizza_service import database
from pizza_service.catalog import Catalog
from pizza_service.clients import PaymentClient
from pizza_service.main import app, get_payment_client

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")

GATEWAY_URL = "https://gateway.test/pg"


class FakeGateway:
    """In-memory stand-in for the gateway endpoints, served through httpx.MockTransport."""

    def __init__(self):
        self.orders = {}
        self.requests = []
        self.create_status = 200
        self.create_body = None
        self.status_failures = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.endswith("/orders"):
            if self.create_status != 200:
                return httpx.Response(self.create_status, json={"message": "gateway says no"})
            if self.create_body is not None:
                return httpx.Response(200, text=self.create_body, headers={"content-type": "text/html"})
            body = json.loads(request.content)
            order = {
                "cf_order_id": f"cf_{len(self.orders) + 1}",
                "order_id": body["order_id"],
                "order_amount": body["order_amount"],
                "order_currency": body["order_currency"],
                "order_status": "ACTIVE",
                "payment_session_id": f"session_{body['order_id']}",
            }
            self.orders[body["order_id"]] = order
            return httpx.Response(200, json=order)

        if request.method == "GET":
            if self.status_failures:
                self.status_failures -= 1
                return httpx.Response(503, json={"message": "unavailable"})
            order = self.orders.get(path.rsplit("/", 1)[-1])
            if order is None:
                return httpx.Response(404, json={"message": "order not found"})
            return httpx.Response(200, json=order)

        return httpx.Response(404)

    def pay(self, order_id):
        self.orders[order_id]["order_status"] = "PAID"

    def status_reads(self):
        return [r for r in self.requests if r.method == "GET"]


@pytest.fixture
def db():
    database_ = mongomock.MongoClient()["pizza_test"]
    database.seed_defaults(database_)
    return database_


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def payment_client(gateway):
    client = PaymentClient(
        base_url=GATEWAY_URL,
        verify_attempts=3,
        verify_backoff=0,
        transport=httpx.MockTransport(gateway.handler),
    )
    yield client
    client.close()


@pytest.fixture
def api(db, payment_client):
    app.dependency_overrides[database.get_db] = lambda: db
    app.dependency_overrides[get_payment_client] = lambda: payment_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers():
    return {"X-User-Id": "user-1", "X-User-Role": "user"}


@pytest.fixture
def admin_headers():
    return {"X-User-Id": "admin-1", "X-User-Role": "admin"}


@pytest.fixture
def pricing_vectors():
    with open(os.path.join(DATA_DIR, "pricing_vectors.json"), encoding="utf-8") as fh:
        return json.load(fh)


@pytest.fixture
def vector_catalog(pricing_vectors):
    return Catalog.from_payload(pricing_vectors["catalog"])


@pytest.fixture
def vector_db(pricing_vectors):
    """A database holding only the conformance vector catalog."""
    database_ = mongomock.MongoClient()["pizza_vectors"]
    for key, category in (("bases", "base"), ("sauces", "sauce"), ("cheeses", "cheese"), ("veggies", "veggie")):
        database_["variants"].insert_many(
            [dict(entry, category=category) for entry in pricing_vectors["catalog"][key]]
        )
    return database_


def menu_pizza_id(db, name="Margherita"):
    return str(db["pizzas"].find_one({"name": name})["_id"])


def set_stock(db, category, variant_id, stock, threshold=None):
    fields = {"stock": stock}
    if threshold is not None:
        fields["threshold"] = threshold
    db["variants"].update_one({"category": category, "id": variant_id}, {"$set": fields})


VALID_CUSTOM = {
    "base": "thinCrust",
    "sauce": "tomato",
    "cheese": "mozzarella",
    "veggies": ["capsicum"],
    "density": {"sauce": "normal", "cheese": "extra", "toppings": "normal"},
    "toppingLevels": {},
}
