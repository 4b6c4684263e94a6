import pytest
from fastapi import HTTPException

from conftest import auth_headers, make_category, make_expense, make_zone
from app.categories import schemas, service
from app.categories.models import Category


def test_create_category_is_admin_only_and_unique(client, admin, member) -> None:
    payload = {"name": "Supplies", "description": "Office supplies"}

    assert client.post("/api/categories/", json=payload, headers=auth_headers(member)).status_code == 403

    created = client.post("/api/categories/", json=payload, headers=auth_headers(admin))
    assert created.status_code == 201
    assert created.json()["created_by"] == admin.id

    duplicate = client.post("/api/categories/", json=payload, headers=auth_headers(admin))
    assert duplicate.status_code == 400


def test_update_category_checks_name_clash(db, admin) -> None:
    make_category(db, "Rent", creator=admin)
    utilities = make_category(db, "Utilities", creator=admin)

    with pytest.raises(HTTPException) as exc:
        service.update_category(db, utilities.id, schemas.CategoryUpdate(name="Rent"))
    assert exc.value.status_code == 400

    updated = service.update_category(
        db, utilities.id, schemas.CategoryUpdate(description="Power and water")
    )
    assert updated.name == "Utilities"
    assert updated.description == "Power and water"


@pytest.mark.parametrize("blank", ["", "   "])
def test_update_category_rejects_blank_name(db, blank) -> None:
    category = make_category(db, "Rent")

    with pytest.raises(HTTPException) as exc:
        service.update_category(db, category.id, schemas.CategoryUpdate(name=blank))
    assert exc.value.status_code == 400

    db.refresh(category)
    assert category.name == "Rent"


def test_delete_category_in_use_is_refused(db, admin) -> None:
    used = make_category(db, "Used")
    unused = make_category(db, "Unused")
    make_expense(db, admin, used, make_zone(db, "Z"), 3)
    unused_id = unused.id

    with pytest.raises(HTTPException) as exc:
        service.delete_category(db, used.id)
    assert exc.value.status_code == 400

    assert service.delete_category(db, unused_id) == {"message": "Category deleted successfully"}
    assert db.query(Category).filter(Category.id == unused_id).first() is None


def test_categories_summary(client, db, admin, member) -> None:
    zone = make_zone(db, "Z")
    food = make_category(db, "Food", creator=admin)
    make_category(db, "Idle")
    make_expense(db, member, food, zone, 7)
    make_expense(db, admin, food, zone, 3)

    assert client.get("/api/categories/summary", headers=auth_headers(member)).status_code == 403

    rows = client.get("/api/categories/summary", headers=auth_headers(admin)).json()
    by_name = {row["name"]: row for row in rows}
    assert by_name["Food"]["total_expense"] == 10
    assert by_name["Food"]["created_by"] == "Admin"
    assert by_name["Idle"]["total_expense"] == 0
    assert by_name["Idle"]["created_by"] == "—"


def test_list_categories_for_any_user(client, db, member) -> None:
    make_category(db, "One")
    make_category(db, "Two")

    response = client.get("/api/categories/", headers=auth_headers(member))

    assert response.status_code == 200
    assert {c["name"] for c in response.json()} == {"One", "Two"}
