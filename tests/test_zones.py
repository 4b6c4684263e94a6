import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError

from conftest import assign, auth_headers, make_category, make_expense, make_user, make_zone
from app.expenses.models import Expense
from app.zones import service
from app.zones.models import Zone, UserZone


def _pairs(db, user_id, zone_id):
    return (
        db.query(UserZone)
        .filter(UserZone.user_id == user_id, UserZone.zone_id == zone_id)
        .count()
    )


def test_toggle_assigns_then_removes(db, member) -> None:
    zone = make_zone(db, "East")

    first = service.toggle_user_zone(db, member.id, zone.id)
    assert first == {"message": "Zone assigned to user"}
    assert _pairs(db, member.id, zone.id) == 1

    second = service.toggle_user_zone(db, member.id, zone.id)
    assert second == {"message": "Zone removed from user"}
    assert _pairs(db, member.id, zone.id) == 0


def test_toggle_rejects_unknown_ids(db, member) -> None:
    zone = make_zone(db, "East")

    with pytest.raises(HTTPException) as exc:
        service.toggle_user_zone(db, 9999, zone.id)
    assert exc.value.status_code == 404

    with pytest.raises(HTTPException) as exc:
        service.toggle_user_zone(db, member.id, 9999)
    assert exc.value.status_code == 404


def test_toggle_conflict_rolls_back_and_reports_409(db, member, monkeypatch) -> None:
    zone = make_zone(db, "East")

    def conflicting_commit():
        # The pair reaches the database, then the unique key rejects the commit
        db.flush()
        raise IntegrityError("INSERT INTO user_zones", {}, Exception("UNIQUE constraint failed"))

    monkeypatch.setattr(db, "commit", conflicting_commit)

    with pytest.raises(HTTPException) as exc:
        service.toggle_user_zone(db, member.id, zone.id)

    assert exc.value.status_code == 409
    assert not db.new
    assert _pairs(db, member.id, zone.id) == 0


def test_delete_zone_cascades_to_assignments_and_expenses(db, admin, member) -> None:
    doomed = make_zone(db, "Doomed")
    kept = make_zone(db, "Kept")
    category = make_category(db, "Misc")
    assign(db, member, doomed)
    assign(db, admin, doomed)
    assign(db, member, kept)
    make_expense(db, member, category, doomed, 10)
    make_expense(db, admin, category, doomed, 20)
    survivor = make_expense(db, member, category, kept, 5)
    doomed_id = doomed.id

    assert service.delete_zone(db, doomed_id) == {"message": "Zone deleted successfully"}

    assert db.query(Zone).filter(Zone.id == doomed_id).first() is None
    assert db.query(UserZone).filter(UserZone.zone_id == doomed_id).count() == 0
    assert db.query(Expense).filter(Expense.zone_id == doomed_id).count() == 0
    assert db.query(Expense).filter(Expense.id == survivor.id).count() == 1
    assert _pairs(db, member.id, kept.id) == 1


def test_delete_missing_zone(db) -> None:
    with pytest.raises(HTTPException) as exc:
        service.delete_zone(db, 42)
    assert exc.value.status_code == 404


def test_zone_listing_depends_on_role(client, db, admin, member) -> None:
    north = make_zone(db, "North")
    make_zone(db, "Alpha")
    assign(db, member, north)

    admin_view = client.get("/api/zones/", headers=auth_headers(admin)).json()
    member_view = client.get("/api/zones/", headers=auth_headers(member)).json()

    assert [z["name"] for z in admin_view] == ["Alpha", "North"]
    assert [z["name"] for z in member_view] == ["North"]

    mine = client.get("/api/zones/me", headers=auth_headers(member)).json()
    assert mine[0]["zone"]["name"] == "North"


def test_create_zone_requires_admin(client, admin, member) -> None:
    denied = client.post("/api/zones/", json={"name": "West"}, headers=auth_headers(member))
    assert denied.status_code == 403

    created = client.post("/api/zones/", json={"name": " West "}, headers=auth_headers(admin))
    assert created.status_code == 201
    assert created.json()["name"] == "West"
    assert created.json()["created_by"] == admin.id

    blank = client.post("/api/zones/", json={"name": "  "}, headers=auth_headers(admin))
    assert blank.status_code == 400


def test_assign_endpoint_toggles_and_validates(client, db, admin) -> None:
    worker = make_user(db, email="worker@example.com")
    zone = make_zone(db, "Depot")
    headers = auth_headers(admin)

    missing = client.post("/api/zones/assign", json={"userId": worker.id}, headers=headers)
    assert missing.status_code == 422

    on = client.post("/api/zones/assign", json={"userId": worker.id, "zoneId": zone.id}, headers=headers)
    assert on.json() == {"message": "Zone assigned to user"}

    ids = client.get(f"/api/admin/users/{worker.id}/zones", headers=headers).json()
    assert ids == [zone.id]

    off = client.post("/api/zones/assign", json={"userId": worker.id, "zoneId": zone.id}, headers=headers)
    assert off.json() == {"message": "Zone removed from user"}


def test_update_zone_patches_name(client, db, admin) -> None:
    zone = make_zone(db, "Old")

    response = client.put(f"/api/zones/{zone.id}", json={"name": "New"}, headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["name"] == "New"
