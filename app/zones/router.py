from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from app.database import get_db
from . import schemas, service
from app.users.auth import get_current_user
from app.users.permissions import admin_required
from app.users.schemas import UserDisplaySchema


router = APIRouter()


# ================= CREATE =================
@router.post(
    "/",
    response_model=schemas.ZoneOut,
    status_code=status.HTTP_201_CREATED
)
def create_zone(
    zone: schemas.ZoneCreate,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required)
):
    return service.create_zone(db, zone, user_id=current_user.id)


# ================= LIST =================
@router.get("/", response_model=List[schemas.ZoneOut])
def list_zones(
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user)
):
    """
    Admins see every zone, other users only the zones they are assigned to.
    """
    if current_user.role == "admin":
        return service.list_zones(db)
    return service.list_zones_for_user(db, current_user.id)


@router.get("/me", response_model=List[schemas.UserZoneOut])
def get_my_zones(
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user)
):
    return service.get_my_zones(db, current_user.id)


# ================= ASSIGNMENT =================
@router.post("/assign")
def toggle_user_zone(
    payload: schemas.ZoneToggle,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required)
):
    return service.toggle_user_zone(db, payload.userId, payload.zoneId)


# ================= UPDATE =================
@router.put("/{zone_id}", response_model=schemas.ZoneOut)
def update_zone(
    zone_id: int,
    zone: schemas.ZoneUpdate,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required)
):
    return service.update_zone(db, zone_id, zone)


# ================= DELETE =================
@router.delete("/{zone_id}")
def delete_zone(
    zone_id: int,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required)
):
    return service.delete_zone(db, zone_id)
