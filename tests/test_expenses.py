import pytest
from fastapi import HTTPException

from conftest import auth_headers, make_category, make_expense, make_user, make_zone
from app.expenses import schemas, service
from app.expenses.models import Expense


@pytest.fixture
def refs(db, admin):
    return make_category(db, "Food", creator=admin), make_zone(db, "South", creator=admin)


def test_create_expense_through_api(client, member, refs) -> None:
    category, zone = refs

    response = client.post(
        "/api/expenses/",
        json={
            "amount": 18.75,
            "description": "Lunch",
            "expenseDate": "2025-04-01T12:30:00",
            "categoryId": category.id,
            "zoneId": zone.id,
        },
        headers=auth_headers(member),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["amount"] == 18.75
    assert body["user_id"] == member.id
    assert body["category_name"] == "Food"
    assert body["zone_name"] == "South"


def test_create_expense_validates_input(client, member, refs) -> None:
    category, zone = refs
    headers = auth_headers(member)

    missing = client.post("/api/expenses/", json={"amount": 5, "categoryId": category.id}, headers=headers)
    assert missing.status_code == 422

    negative = client.post(
        "/api/expenses/",
        json={"amount": -1, "categoryId": category.id, "zoneId": zone.id},
        headers=headers,
    )
    assert negative.status_code == 422

    unknown_zone = client.post(
        "/api/expenses/",
        json={"amount": 5, "categoryId": category.id, "zoneId": 999},
        headers=headers,
    )
    assert unknown_zone.status_code == 404


def test_owner_can_patch_supplied_fields_only(db, member, refs) -> None:
    category, zone = refs
    expense = make_expense(db, member, category, zone, 10, description="Taxi")

    result = service.update_expense(
        db, expense.id, schemas.ExpenseUpdate(amount=12.5), user_id=member.id
    )

    assert result["amount"] == 12.5
    assert result["description"] == "Taxi"


def test_non_owner_update_is_forbidden_and_row_unchanged(db, member, refs) -> None:
    category, zone = refs
    intruder = make_user(db, email="intruder@example.com")
    expense = make_expense(db, member, category, zone, 10, description="Taxi")

    with pytest.raises(HTTPException) as exc:
        service.update_expense(
            db, expense.id, schemas.ExpenseUpdate(amount=999, description="Hijacked"),
            user_id=intruder.id,
        )

    assert exc.value.status_code == 403
    row = db.query(Expense).filter(Expense.id == expense.id).one()
    assert row.amount == 10
    assert row.description == "Taxi"


def test_non_owner_with_unknown_references_is_still_forbidden(db, member, refs) -> None:
    category, zone = refs
    intruder = make_user(db, email="intruder@example.com")
    expense = make_expense(db, member, category, zone, 10)

    with pytest.raises(HTTPException) as exc:
        service.update_expense(
            db, expense.id, schemas.ExpenseUpdate(category_id=9999, zone_id=9999),
            user_id=intruder.id,
        )
    assert exc.value.status_code == 403

    with pytest.raises(HTTPException) as exc:
        service.update_expense(
            db, expense.id, schemas.ExpenseUpdate(category_id=9999), user_id=member.id
        )
    assert exc.value.status_code == 404
    assert exc.value.detail == "Category not found"


def test_update_missing_expense_is_not_found(db, member) -> None:
    with pytest.raises(HTTPException) as exc:
        service.update_expense(db, 12345, schemas.ExpenseUpdate(amount=1), user_id=member.id)
    assert exc.value.status_code == 404


def test_update_cannot_clear_required_fields(db, member, refs) -> None:
    category, zone = refs
    expense = make_expense(db, member, category, zone, 10)

    with pytest.raises(HTTPException) as exc:
        service.update_expense(db, expense.id, schemas.ExpenseUpdate(zone_id=None), user_id=member.id)
    assert exc.value.status_code == 400


def test_update_through_api_by_non_owner(client, db, member, refs) -> None:
    category, zone = refs
    other = make_user(db, email="other@example.com")
    expense = make_expense(db, member, category, zone, 10)

    response = client.put(
        f"/api/expenses/{expense.id}", json={"amount": 1}, headers=auth_headers(other)
    )

    assert response.status_code == 403


def test_delete_rules(client, db, admin, member, refs) -> None:
    category, zone = refs
    other = make_user(db, email="other@example.com")
    mine_id = make_expense(db, member, category, zone, 10).id
    theirs_id = make_expense(db, other, category, zone, 20).id

    assert client.delete(f"/api/expenses/{theirs_id}", headers=auth_headers(member)).status_code == 403
    assert client.delete(f"/api/expenses/{mine_id}", headers=auth_headers(member)).status_code == 200
    assert client.delete(f"/api/expenses/{theirs_id}", headers=auth_headers(admin)).status_code == 200
    assert client.delete(f"/api/expenses/{theirs_id}", headers=auth_headers(admin)).status_code == 404
    assert db.query(Expense).count() == 0


def test_list_only_returns_own_expenses_with_filters(client, db, member, refs) -> None:
    category, zone = refs
    other_zone = make_zone(db, "Other")
    other = make_user(db, email="other@example.com")
    make_expense(db, member, category, zone, 1)
    make_expense(db, member, category, other_zone, 2)
    make_expense(db, other, category, zone, 3)
    headers = auth_headers(member)

    everything = client.get("/api/expenses/", headers=headers).json()
    filtered = client.get("/api/expenses/", params={"zoneId": zone.id}, headers=headers).json()

    assert sorted(e["amount"] for e in everything) == [1, 2]
    assert [e["amount"] for e in filtered] == [1]


def test_receipt_upload_stores_url(client, db, storage, member, refs) -> None:
    category, zone = refs
    expense = make_expense(db, member, category, zone, 10)

    response = client.post(
        f"/api/expenses/{expense.id}/upload-receipt",
        files={"image": ("receipt.jpg", b"jpeg-bytes", "image/jpeg")},
        headers=auth_headers(member),
    )

    assert response.status_code == 200
    url = response.json()["receiptUrl"]
    assert storage.uploads == [("receipts", b"jpeg-bytes")]
    assert db.query(Expense).filter(Expense.id == expense.id).one().receipt_url == url


def test_receipt_upload_by_non_owner_uploads_nothing(client, db, storage, member, refs) -> None:
    category, zone = refs
    other = make_user(db, email="other@example.com")
    expense = make_expense(db, member, category, zone, 10)

    response = client.post(
        f"/api/expenses/{expense.id}/upload-receipt",
        files={"image": ("receipt.jpg", b"x", "image/jpeg")},
        headers=auth_headers(other),
    )

    assert response.status_code == 403
    assert storage.uploads == []
