from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException, status
from loguru import logger

from . import models, schemas
from app.users.models import User
from app.expenses.models import Expense


def _get_zone_or_404(db: Session, zone_id: int) -> models.Zone:
    zone = db.query(models.Zone).filter(models.Zone.id == zone_id).first()
    if not zone:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Zone not found"
        )
    return zone


# ================= CREATE =================
def create_zone(db: Session, zone: schemas.ZoneCreate, user_id: int):
    name = zone.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Zone name required")

    db_zone = models.Zone(name=name, created_by=user_id)
    db.add(db_zone)
    db.commit()
    db.refresh(db_zone)

    logger.info(f"Zone '{db_zone.name}' created by user {user_id}")
    return db_zone


# ================= LIST =================
def list_zones(db: Session):
    return db.query(models.Zone).order_by(models.Zone.name).all()


def list_zones_for_user(db: Session, user_id: int):
    return (
        db.query(models.Zone)
        .join(models.UserZone, models.UserZone.zone_id == models.Zone.id)
        .filter(models.UserZone.user_id == user_id)
        .order_by(models.Zone.name)
        .all()
    )


def get_my_zones(db: Session, user_id: int):
    return (
        db.query(models.UserZone)
        .options(joinedload(models.UserZone.zone))
        .filter(models.UserZone.user_id == user_id)
        .all()
    )


def get_user_zone_ids(db: Session, user_id: int):
    rows = (
        db.query(models.UserZone.zone_id)
        .filter(models.UserZone.user_id == user_id)
        .order_by(models.UserZone.zone_id)
        .all()
    )
    return [row.zone_id for row in rows]


# ================= UPDATE =================
def update_zone(db: Session, zone_id: int, zone: schemas.ZoneUpdate):
    db_zone = _get_zone_or_404(db, zone_id)

    data = zone.model_dump(exclude_unset=True)
    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Zone name required")
        db_zone.name = name

    db.commit()
    db.refresh(db_zone)
    return db_zone


# ================= DELETE =================
def delete_zone(db: Session, zone_id: int):
    """
    Remove a zone with its assignments and expenses.
    All three deletes commit together or not at all.
    """
    db_zone = _get_zone_or_404(db, zone_id)

    try:
        removed_members = (
            db.query(models.UserZone)
            .filter(models.UserZone.zone_id == zone_id)
            .delete(synchronize_session=False)
        )
        removed_expenses = (
            db.query(Expense)
            .filter(Expense.zone_id == zone_id)
            .delete(synchronize_session=False)
        )
        db.delete(db_zone)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Zone {zone_id} deleted with {removed_members} assignment(s) "
        f"and {removed_expenses} expense(s)"
    )
    return {"message": "Zone deleted successfully"}


# ================= ASSIGNMENT =================
def toggle_user_zone(db: Session, user_id: int, zone_id: int):
    """
    Flip membership of a user in a zone: remove the pair if present,
    create it otherwise.
    """
    if not db.query(User.id).filter(User.id == user_id).first():
        raise HTTPException(status_code=404, detail="User not found")
    _get_zone_or_404(db, zone_id)

    try:
        existing = (
            db.query(models.UserZone)
            .filter(
                models.UserZone.user_id == user_id,
                models.UserZone.zone_id == zone_id
            )
            .first()
        )

        if existing:
            db.delete(existing)
            message = "Zone removed from user"
        else:
            db.add(models.UserZone(user_id=user_id, zone_id=zone_id))
            message = "Zone assigned to user"

        db.commit()
    except IntegrityError:
        # A concurrent toggle inserted the same pair first
        db.rollback()
        logger.warning(f"Concurrent zone toggle for user {user_id}, zone {zone_id}")
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Zone assignment changed concurrently, retry"
        )
    except Exception:
        db.rollback()
        raise

    logger.info(f"{message}: user {user_id}, zone {zone_id}")
    return {"message": message}
