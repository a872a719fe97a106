from decimal import Decimal

import pytest

from app.models.inventory import ProductForm
from tests.conftest import auth_headers


@pytest.fixture
def headers(owner):
    return auth_headers(owner)


def _create_product(client, headers, club, **overrides):
    payload = {
        "club_id": club.id,
        "form": "sealed",
        "name": "Protein Bar",
        "category": "snacks",
        "sale_price": "3.50",
        "purchase_price": "1.20",
    }
    payload.update(overrides)
    response = client.post("/products", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def _move(client, headers, product_id, club_id, movement_type, quantity, unit="sealed", **extra):
    return client.post(
        "/inventory/movements",
        json={
            "product_id": product_id,
            "club_id": club_id,
            "type": movement_type,
            "unit": unit,
            "quantity": quantity,
            **extra,
        },
        headers=headers,
    )


def test_created_product_starts_with_zero_stock(client, headers, club):
    product = _create_product(client, headers, club)

    response = client.get(f"/inventory/records/{product['id']}", params={"club_id": club.id}, headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["record"]["sealed"] == 0
    assert body["status"]["sealed"] == "critical"
    assert body["status"]["preparation"] is None


def test_movement_flow_and_insufficient_stock(client, headers, club):
    product = _create_product(client, headers, club)

    bought = _move(client, headers, product["id"], club.id, "compra", 10)
    assert bought.status_code == 201
    assert bought.json()["record"]["sealed"] == 10
    assert bought.json()["movement"]["type"] == "compra"

    assert _move(client, headers, product["id"], club.id, "venta", 7).json()["record"]["sealed"] == 3

    rejected = _move(client, headers, product["id"], club.id, "venta", 4)
    assert rejected.status_code == 409
    detail = rejected.json()["detail"]
    assert detail["code"] == "INSUFFICIENT_STOCK"
    assert detail["available"] == 3
    assert detail["requested"] == 4

    history = client.get(
        "/inventory/movements",
        params={"product_id": product["id"], "club_id": club.id, "order": "asc"},
        headers=headers,
    )
    assert [m["quantity"] for m in history.json()] == [10, 7]


@pytest.mark.parametrize("quantity", [0, -2])
def test_invalid_quantity_is_reported_with_code(client, headers, club, quantity):
    product = _create_product(client, headers, club)

    response = _move(client, headers, product["id"], club.id, "compra", quantity)

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "INVALID_QUANTITY"


def test_record_lookup_is_tagged(client, headers, owner, club, make_product):
    product = make_product(club)
    payload = {"product_id": product.id, "club_id": club.id}

    missing = client.get(f"/inventory/records/{product.id}", params={"club_id": club.id}, headers=headers)
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "RECORD_NOT_FOUND"

    first = client.post("/inventory/records", json=payload, headers=headers)
    second = client.post("/inventory/records", json=payload, headers=headers)
    assert first.json()["created"] is True
    assert second.json()["created"] is False
    assert first.json()["record"]["id"] == second.json()["record"]["id"]


def test_unknown_product_is_reported(client, headers, club):
    response = client.post("/inventory/records", json={"product_id": 777, "club_id": club.id}, headers=headers)
    assert response.status_code == 404
    assert response.json()["detail"]["code"] == "PRODUCT_NOT_FOUND"


def test_purchase_price_records_an_expense(client, headers, club):
    product = _create_product(client, headers, club)

    response = _move(client, headers, product["id"], club.id, "compra", 4, purchase_price="2.50")

    assert response.status_code == 201
    assert response.json()["expense_id"] is not None
    expenses = client.get("/expenses", params={"club_id": club.id}, headers=headers).json()
    assert len(expenses) == 1
    assert expenses[0]["category"] == "product"
    assert Decimal(expenses[0]["amount"]) == Decimal("10.00")


def test_purchase_price_only_on_purchases(client, headers, club):
    product = _create_product(client, headers, club)
    _move(client, headers, product["id"], club.id, "compra", 4)

    response = _move(client, headers, product["id"], club.id, "venta", 1, purchase_price="2.50")
    assert response.status_code == 400


def test_alerts_list_low_and_critical_products(client, headers, owner, club):
    healthy = _create_product(client, headers, club, name="Healthy")
    low = _create_product(client, headers, club, name="Low")
    _create_product(client, headers, club, name="Empty")
    _move(client, headers, healthy["id"], club.id, "compra", 6)
    _move(client, headers, low["id"], club.id, "compra", 2)

    alerts = client.get("/inventory/alerts", params={"club_id": club.id}, headers=headers).json()

    assert [(a["product_name"], a["status"]["overall"]) for a in alerts] == [
        ("Empty", "critical"),
        ("Low", "low"),
    ]


def test_ideal_stock_comes_from_account_settings(client, headers, club):
    product = _create_product(client, headers, club)
    _move(client, headers, product["id"], club.id, "compra", 6)
    client.patch("/auth/me/settings", json={"ideal_stock": 10}, headers=headers)

    items = client.get("/inventory", params={"club_id": club.id}, headers=headers).json()

    assert items[0]["ideal_stock"] == 10
    assert items[0]["status"]["sealed"] == "low"


def test_prepared_product_portions(client, headers, club):
    product = _create_product(
        client,
        headers,
        club,
        form="prepared",
        name="Whey",
        portions=20,
        portion_price="1.50",
        sale_price=None,
    )

    bought = _move(client, headers, product["id"], club.id, "compra", 2, unit="portion")
    assert bought.json()["record"]["current_portions"] == 40

    used = _move(client, headers, product["id"], club.id, "uso", 45, unit="portion")
    assert used.status_code == 409


def test_rebuild_reports_consistency(client, headers, club):
    product = _create_product(client, headers, club)
    _move(client, headers, product["id"], club.id, "compra", 3)
    _move(client, headers, product["id"], club.id, "venta", 1)

    response = client.post(
        "/inventory/rebuild",
        json={"product_id": product["id"], "club_id": club.id},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.json()["consistent"] is True
    assert response.json()["expected"]["sealed"] == 2
    assert response.json()["movement_count"] == 2


def test_employee_permissions_on_movements(client, owner, club, make_employee, make_product):
    employee = make_employee(owner, club)
    product = make_product(club, form=ProductForm.SEALED)
    owner_headers = auth_headers(owner)
    _move(client, owner_headers, product.id, club.id, "compra", 5)

    employee_headers = auth_headers(employee)
    assert _move(client, employee_headers, product.id, club.id, "compra", 1).status_code == 403
    assert _move(client, employee_headers, product.id, club.id, "ajuste", 1).status_code == 403
    assert _move(client, employee_headers, product.id, club.id, "venta", 1).status_code == 201
    assert _move(client, employee_headers, product.id, club.id, "uso", 1).status_code == 201


def test_other_accounts_cannot_touch_club_stock(client, make_owner, make_club, make_product):
    owner = make_owner()
    intruder = make_owner()
    club = make_club(owner)
    product = make_product(club)

    response = _move(client, auth_headers(intruder), product.id, club.id, "compra", 1)

    assert response.status_code == 403
