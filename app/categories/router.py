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
    response_model=schemas.CategoryOut,
    status_code=status.HTTP_201_CREATED
)
def create_category(
    category: schemas.CategoryCreate,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required)
):
    return service.create_category(db, category, user_id=current_user.id)


# ================= LIST =================
@router.get(
    "/",
    response_model=List[schemas.CategoryOut]
)
def list_categories(
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(get_current_user)
):
    return service.list_categories(db)


# ================= SUMMARY =================
@router.get("/summary", response_model=List[schemas.CategorySummaryOut])
def categories_summary(
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required)
):
    """
    Categories with creator name and total spend, for the admin table.
    """
    return service.get_categories_summary(db)


# ================= UPDATE =================
@router.put(
    "/{category_id}",
    response_model=schemas.CategoryOut
)
def update_category(
    category_id: int,
    category: schemas.CategoryUpdate,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required)
):
    return service.update_category(db, category_id, category)


# ================= DELETE =================
@router.delete(
    "/{category_id}"
)
def delete_category(
    category_id: int,
    db: Session = Depends(get_db),
    current_user: UserDisplaySchema = Depends(admin_required)
):
    return service.delete_category(db, category_id)
