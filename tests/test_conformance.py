"""
Shared pricing vectors: the client session price and the server price must be
identical at two decimals for every (catalog, composition) pair.
"""

import pytest
from fastapi.testclient import TestClient

from pizza_service import database
from pizza_service.catalog import Catalog
from pizza_service.clients import StorefrontClient
from pizza_service.main import app, get_payment_client
from pizza_service.models import Composition
from pizza_service.pricing import format_price, price_composition
from pizza_service.session import StorefrontSession


@pytest.fixture
def vector_api(vector_db, payment_client):
    app.dependency_overrides[database.get_db] = lambda: vector_db
    app.dependency_overrides[get_payment_client] = lambda: payment_client
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_vectors_against_local_engine(pricing_vectors, vector_catalog):
    for case in pricing_vectors["cases"]:
        composition = Composition(**case["composition"])
        assert format_price(price_composition(composition, vector_catalog)) == case["price"], case["name"]


def test_vectors_against_database_snapshot(pricing_vectors, vector_db):
    catalog = database.load_catalog(vector_db)
    for case in pricing_vectors["cases"]:
        composition = Composition(**case["composition"])
        assert format_price(price_composition(composition, catalog)) == case["price"], case["name"]


def test_client_session_matches_server_quote(pricing_vectors, vector_api):
    session = StorefrontSession(StorefrontClient(http_client=vector_api))
    session.refresh_catalog()

    for case in pricing_vectors["cases"]:
        composition = Composition(**case["composition"])
        client_price = format_price(session.estimate(composition)["price"])
        server_price = "%.2f" % vector_api.post("/api/customize/quote", json=case["composition"]).json()["price"]
        assert client_price == server_price == case["price"], case["name"]


def test_public_payload_keeps_disabled_answers(vector_api, vector_db):
    vector_db["variants"].update_one({"id": "olive"}, {"$set": {"stock": 0}})
    catalog = Catalog.from_payload(vector_api.get("/api/customize").json())
    assert catalog.get("veggie", "olive").disabled is True
    assert catalog.get("veggie", "corn").disabled is False


def test_cart_line_price_is_the_order_price(pricing_vectors, vector_api):
    session = StorefrontSession(StorefrontClient(http_client=vector_api, user_id="user-1"))
    valid = [c for c in pricing_vectors["cases"] if c["name"] == "per veggie override beats global topping density"][0]

    line = session.add_custom(Composition(**valid["composition"]))
    result = session.checkout(address="1 Main St")

    assert "%.2f" % line.price == valid["price"]
    assert "%.2f" % result["total"] == valid["price"]
    assert session.cart_total() == price_composition(Composition(**valid["composition"]), session.catalog)
