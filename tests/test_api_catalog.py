from decimal import Decimal

from app.models.inventory import MovementType, MovementUnit
from app.models.user import SubscriptionPlan
from app.services.inventory import apply_movement, get_record
from tests.conftest import auth_headers


def test_club_limit_follows_plan(client, make_owner):
    owner = make_owner(plan=SubscriptionPlan.INTERMEDIATE)
    headers = auth_headers(owner)

    statuses = [client.post("/clubs", json={"name": f"Club {i}"}, headers=headers).status_code for i in range(3)]

    assert statuses == [201, 201, 403]
    assert len(client.get("/clubs", headers=headers).json()) == 2


def test_custom_plan_adds_extra_clubs(client, make_owner):
    owner = make_owner(plan=SubscriptionPlan.CUSTOM, extra_clubs=1)
    headers = auth_headers(owner)

    statuses = [client.post("/clubs", json={"name": f"Club {i}"}, headers=headers).status_code for i in range(3)]

    assert statuses == [201, 201, 403]


def test_employee_lists_only_assigned_club(client, owner, club, make_club, make_employee):
    make_club(owner, name="Other")
    employee = make_employee(owner, club)

    clubs = client.get("/clubs", headers=auth_headers(employee)).json()

    assert [c["id"] for c in clubs] == [club.id]


def test_product_requires_price_for_its_form(client, owner, club):
    response = client.post(
        "/products",
        json={"club_id": club.id, "form": "both", "name": "Mix", "category": "drinks", "purchase_price": "1.00", "sale_price": "2.00"},
        headers=auth_headers(owner),
    )
    assert response.status_code == 422


def test_prefix_search_excludes_archived(client, owner, club, make_product):
    make_product(club, name="Protein Bar")
    make_product(club, name="Protein Shake", archived=True)
    make_product(club, name="Energy Protein")
    headers = auth_headers(owner)

    results = client.get("/products/search", params={"club_id": club.id, "query": "prot"}, headers=headers).json()

    assert [p["name"] for p in results] == ["Protein Bar"]


def test_search_treats_wildcards_literally(client, owner, club, make_product):
    make_product(club, name="Bar")

    results = client.get("/products/search", params={"club_id": club.id, "query": "%"}, headers=auth_headers(owner))

    assert results.json() == []


def test_sales_search_returns_stock(client, db_session, owner, club, make_product):
    product = make_product(club, name="Gel")
    apply_movement(
        db_session,
        product_id=product.id,
        club_id=club.id,
        movement_type=MovementType.PURCHASE,
        quantity=4,
        unit=MovementUnit.SEALED,
        actor_id=owner.id,
    )

    results = client.get("/products/sales-search", params={"club_id": club.id, "query": "g"}, headers=auth_headers(owner)).json()

    assert results[0]["sealed"] == 4
    assert results[0]["current_portions"] == 0


def test_archive_and_update_product(client, owner, club, make_product):
    product = make_product(club)
    headers = auth_headers(owner)

    updated = client.patch(f"/products/{product.id}", json={"sale_price": "12.00", "flavor": " vanilla "}, headers=headers)
    assert updated.status_code == 200
    assert Decimal(updated.json()["sale_price"]) == Decimal("12.00")
    assert updated.json()["flavor"] == "vanilla"

    archived = client.delete(f"/products/{product.id}", headers=headers)
    assert archived.json()["archived"] is True
    assert client.get("/products", params={"club_id": club.id}, headers=headers).json() == []


def test_product_detail_includes_stock(client, owner, club):
    headers = auth_headers(owner)
    created = client.post(
        "/products",
        json={
            "club_id": club.id,
            "form": "both",
            "name": "Creatine",
            "category": "supplements",
            "portions": 30,
            "portion_price": "0.80",
            "sale_price": "20.00",
            "purchase_price": "11.00",
        },
        headers=headers,
    ).json()

    detail = client.get(f"/products/{created['id']}", headers=headers).json()

    assert detail["record"]["portions_per_unit"] == 30
    assert detail["status"]["sealed"] == "critical"
    assert detail["status"]["preparation"] == "critical"


def test_purchase_expense_issues_a_purchase_movement(client, db_session, owner, club, make_product):
    product = make_product(club)
    headers = auth_headers(owner)

    response = client.post(
        "/expenses",
        json={
            "club_id": club.id,
            "category": "Purchase",
            "amount": "30.00",
            "product_id": product.id,
            "quantity": 5,
            "unit": "sealed",
        },
        headers=headers,
    )

    assert response.status_code == 201, response.text
    assert response.json()["category"] == "purchase"
    assert get_record(db_session, product.id, club.id).sealed == 5
    history = client.get("/inventory/movements", params={"product_id": product.id}, headers=headers).json()
    assert history[0]["type"] == "compra"
    assert "30.00" in history[0]["description"]


def test_purchase_expense_requires_stock_details(client, owner, club, make_product):
    product = make_product(club)

    response = client.post(
        "/expenses",
        json={"club_id": club.id, "category": "purchase", "amount": "30.00", "product_id": product.id},
        headers=auth_headers(owner),
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "MISSING_FIELD"
    assert client.get("/expenses", params={"club_id": club.id}, headers=auth_headers(owner)).json() == []


def test_plain_expense_and_date_filter(client, owner, club):
    headers = auth_headers(owner)
    client.post(
        "/expenses",
        json={"club_id": club.id, "category": "rent", "amount": "500", "incurred_at": "2026-01-15T10:00:00"},
        headers=headers,
    )
    client.post(
        "/expenses",
        json={"club_id": club.id, "category": "rent", "amount": "500", "incurred_at": "2026-02-15T10:00:00"},
        headers=headers,
    )

    january = client.get(
        "/expenses",
        params={"club_id": club.id, "date_from": "2026-01-01T00:00:00", "date_to": "2026-01-31T23:59:59"},
        headers=headers,
    ).json()

    assert len(january) == 1


def test_clients_crud(client, owner, club, make_employee):
    employee = make_employee(owner, club)
    headers = auth_headers(employee)

    created = client.post("/clients", json={"club_id": club.id, "name": "Ari", "phone": " 555 "}, headers=headers)
    assert created.status_code == 201
    assert created.json()["phone"] == "555"

    updated = client.patch(f"/clients/{created.json()['id']}", json={"kind": "wholesale"}, headers=headers)
    assert updated.json()["kind"] == "wholesale"

    listed = client.get("/clients", params={"club_id": club.id, "name": "ar"}, headers=headers).json()
    assert [c["name"] for c in listed] == ["Ari"]


def test_clubs_overview_reports_plan_limits(client, owner, club, make_club, make_employee):
    make_club(owner, name="Annex")
    employee = make_employee(owner, club)

    overview = client.get("/clubs/me", headers=auth_headers(owner)).json()
    assert overview["plan"] == "trial"
    assert overview["clubs_max"] == 1
    assert overview["employees_max"] == 2
    assert [c["name"] for c in overview["clubs"]] == ["Annex", "Central"]

    employee_view = client.get("/clubs/me", headers=auth_headers(employee)).json()
    assert [c["id"] for c in employee_view["clubs"]] == [club.id]


def test_expense_search_matches_anywhere_in_name(client, db_session, owner, club, make_product):
    product = make_product(club, name="Whey Protein", purchase_price=Decimal("7.50"))
    make_product(club, name="Oats")
    make_product(club, name="Protein Old", archived=True)
    apply_movement(
        db_session,
        product_id=product.id,
        club_id=club.id,
        movement_type=MovementType.PURCHASE,
        quantity=2,
        unit=MovementUnit.SEALED,
        actor_id=owner.id,
    )
    headers = auth_headers(owner)

    matches = client.get("/products/search/expenses", params={"club_id": club.id, "query": "PROT"}, headers=headers)
    everything = client.get("/products/search/expenses", params={"club_id": club.id}, headers=headers)

    assert matches.status_code == 200
    assert [(p["name"], p["sealed"]) for p in matches.json()] == [("Whey Protein", 2)]
    assert Decimal(matches.json()[0]["purchase_price"]) == Decimal("7.50")
    assert [p["name"] for p in everything.json()] == ["Oats", "Whey Protein"]


def test_expense_search_is_owner_only(client, owner, club, make_employee):
    employee = make_employee(owner, club)

    response = client.get("/products/search/expenses", params={"club_id": club.id}, headers=auth_headers(employee))

    assert response.status_code == 403


def test_client_detail_lists_their_sales(client, db_session, owner, club, make_product):
    product = make_product(club, sale_price=Decimal("4.00"))
    apply_movement(
        db_session,
        product_id=product.id,
        club_id=club.id,
        movement_type=MovementType.PURCHASE,
        quantity=5,
        unit=MovementUnit.SEALED,
        actor_id=owner.id,
    )
    headers = auth_headers(owner)
    ari = client.post("/clients", json={"club_id": club.id, "name": "Ari"}, headers=headers).json()
    client.post("/clients", json={"club_id": club.id, "name": "Bo"}, headers=headers)
    sale_item = {"product_id": product.id, "unit": "sealed", "quantity": 1}
    client.post(
        "/sales",
        json={"club_id": club.id, "client_id": ari["id"], "groups": [{"items": [sale_item]}]},
        headers=headers,
    )
    client.post("/sales", json={"club_id": club.id, "groups": [{"items": [sale_item]}]}, headers=headers)

    detail = client.get(f"/clients/{ari['id']}", params={"club_id": club.id}, headers=headers)

    assert detail.status_code == 200
    body = detail.json()
    assert body["client"]["visit_count"] == 1
    assert len(body["sales"]) == 1
    assert Decimal(body["sales"][0]["total"]) == Decimal("4.00")


def test_client_detail_is_scoped_to_club(client, owner, club, make_club):
    headers = auth_headers(owner)
    created = client.post("/clients", json={"club_id": club.id, "name": "Ari"}, headers=headers).json()
    other = make_club(owner, name="Annex")

    response = client.get(f"/clients/{created['id']}", params={"club_id": other.id}, headers=headers)

    assert response.status_code == 404
