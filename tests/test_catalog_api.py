import pytest

from conftest import VALID_CUSTOM, menu_pizza_id, set_stock


def test_health(api):
    response = api.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_customize_groups_variants_with_disabled_flag(api):
    response = api.get("/api/customize")
    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"bases", "sauces", "cheeses", "veggies"}
    thin = next(v for v in body["bases"] if v["id"] == "thinCrust")
    assert thin == {"id": "thinCrust", "name": "Thin Crust", "price": 3.0, "disabled": False}
    assert len(body["veggies"]) == 7


def test_customize_hides_inventory_numbers(api):
    body = api.get("/api/customize").json()
    assert all("stock" not in v and "threshold" not in v for v in body["sauces"])


def test_disabled_is_recomputed_from_current_stock(api, db):
    set_stock(db, "sauce", "pesto", 9)
    pesto = next(v for v in api.get("/api/customize").json()["sauces"] if v["id"] == "pesto")
    assert pesto["disabled"] is True

    set_stock(db, "sauce", "pesto", 10)
    pesto = next(v for v in api.get("/api/customize").json()["sauces"] if v["id"] == "pesto")
    assert pesto["disabled"] is False


def test_variants_are_never_stored_with_disabled(api, db, admin_headers):
    api.put("/api/inventory/variants", headers=admin_headers,
            json={"bases": [{"id": "thinCrust", "stock": 0, "threshold": 5}]})
    assert db["variants"].count_documents({"disabled": {"$exists": True}}) == 0


@pytest.mark.parametrize("method", ["get", "put"])
def test_inventory_requires_login(api, method):
    response = getattr(api, method)("/api/inventory/variants", **({"json": {}} if method == "put" else {}))
    assert response.status_code == 401
    assert response.json()["message"] == "Login required"


def test_inventory_requires_admin(api, user_headers):
    response = api.get("/api/inventory/variants", headers=user_headers)
    assert response.status_code == 403


def test_admin_inventory_exposes_stock_and_threshold(api, admin_headers):
    body = api.get("/api/inventory/variants", headers=admin_headers).json()
    mozzarella = next(v for v in body["cheeses"] if v["id"] == "mozzarella")
    assert mozzarella["stock"] == 50
    assert mozzarella["threshold"] == 10
    assert mozzarella["disabled"] is False


@pytest.mark.parametrize("method", ["put", "post"])
def test_bulk_inventory_save(api, admin_headers, method):
    payload = {
        "sauces": [{"id": "pesto", "stock": 2, "threshold": 3}],
        "veggies": [{"id": "paneer", "stock": 7, "threshold": 0}, {"id": "pineapple", "stock": 1, "threshold": 1}],
    }
    response = getattr(api, method)("/api/inventory/variants", headers=admin_headers, json=payload)
    assert response.status_code == 200
    body = response.json()
    assert body["updated"] == 2
    assert body["unknown"] == [{"category": "veggie", "id": "pineapple"}]

    pesto = next(v for v in body["variants"]["sauces"] if v["id"] == "pesto")
    assert pesto == {"id": "pesto", "name": "Pesto", "price": 1.0, "disabled": True, "stock": 2, "threshold": 3}


def test_bulk_inventory_save_only_touches_the_given_category(api, db, admin_headers):
    api.put("/api/inventory/variants", headers=admin_headers,
            json={"cheeses": [{"id": "tomato", "stock": 0, "threshold": 9}]})
    tomato = db["variants"].find_one({"category": "sauce", "id": "tomato"})
    assert tomato["stock"] == 50


def test_bulk_inventory_save_rejects_negative_numbers(api, admin_headers):
    response = api.put("/api/inventory/variants", headers=admin_headers,
                       json={"bases": [{"id": "thinCrust", "stock": -1, "threshold": 0}]})
    assert response.status_code == 422


def test_quote_prices_valid_composition(api):
    response = api.post("/api/customize/quote", json=VALID_CUSTOM)
    assert response.status_code == 200
    body = response.json()
    # 2 + 3.0 + 0.5x2 + 1.0x3 + 0.5x2
    assert body["price"] == 10.0
    assert body["valid"] is True
    assert body["issues"] == []
    assert body["breakdown"]["cheese"] == 3.0


def test_quote_prices_but_flags_incomplete_composition(api):
    body = api.post("/api/customize/quote", json={"base": "handTossed"}).json()
    assert body["price"] == 5.5
    assert body["valid"] is False
    assert {"slot": "sauce", "reason": "missing"} in body["issues"]


def test_quote_flags_disabled_variant(api, db):
    set_stock(db, "veggie", "capsicum", 0)
    body = api.post("/api/customize/quote", json=VALID_CUSTOM).json()
    assert body["valid"] is False
    assert body["issues"] == [{"slot": "veggies", "reason": "disabled", "id": "capsicum"}]


def test_list_pizzas(api):
    pizzas = api.get("/api/pizzas").json()
    assert [p["name"] for p in pizzas] == ["Farmhouse", "Margherita", "Peppy Paneer", "Veggie Supreme"]
    assert set(pizzas[0]) == {"id", "name", "price", "description", "imageUrl"}


def test_admin_creates_pizza(api, admin_headers):
    response = api.post("/api/pizzas", headers=admin_headers,
                        json={"name": "Hawaiian", "price": 11.5, "description": "Pineapple."})
    assert response.status_code == 201
    assert response.json()["id"]
    assert "Hawaiian" in [p["name"] for p in api.get("/api/pizzas").json()]


def test_customer_cannot_create_pizza(api, user_headers):
    response = api.post("/api/pizzas", headers=user_headers, json={"name": "Free", "price": 0})
    assert response.status_code == 403


def test_admin_deletes_pizza(api, db, admin_headers):
    pizza_id = menu_pizza_id(db, "Farmhouse")
    response = api.delete(f"/api/pizzas/{pizza_id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"deleted": pizza_id}
    assert "Farmhouse" not in [p["name"] for p in api.get("/api/pizzas").json()]


@pytest.mark.parametrize("pizza_id", ["nope", "64b7f0c2a1b2c3d4e5f60718"])
def test_deleting_unknown_pizza_is_not_found(api, admin_headers, pizza_id):
    assert api.delete(f"/api/pizzas/{pizza_id}", headers=admin_headers).status_code == 404


def test_customer_cannot_delete_pizza(api, db, user_headers):
    response = api.delete(f"/api/pizzas/{menu_pizza_id(db)}", headers=user_headers)
    assert response.status_code == 403
    assert len(api.get("/api/pizzas").json()) == 4
