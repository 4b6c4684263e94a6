from datetime import datetime
from typing import Optional

from fastapi import HTTPException, UploadFile, status
from loguru import logger
from sqlalchemy.orm import Session, joinedload

from . import models, schemas
from app.categories.models import Category
from app.zones.models import Zone
from app.uploads.storage import RECEIPT_FOLDER, store_upload


# Columns that may be patched but never cleared
REQUIRED_FIELDS = ("amount", "expense_date", "category_id", "zone_id")


# =========================
# Helper: serialize expense
# =========================
def serialize_expense(expense: models.Expense):
    return {
        "id": expense.id,
        "amount": expense.amount,
        "description": expense.description,
        "expense_date": expense.expense_date,
        "user_id": expense.user_id,
        "category_id": expense.category_id,
        "category_name": expense.category.name if expense.category else None,
        "zone_id": expense.zone_id,
        "zone_name": expense.zone.name if expense.zone else None,
        "receipt_url": expense.receipt_url,
        "created_at": expense.created_at,
    }


def _ensure_references(db: Session, category_id: Optional[int], zone_id: Optional[int]):
    if category_id is not None:
        if not db.query(Category.id).filter(Category.id == category_id).first():
            raise HTTPException(status_code=404, detail="Category not found")

    if zone_id is not None:
        if not db.query(Zone.id).filter(Zone.id == zone_id).first():
            raise HTTPException(status_code=404, detail="Zone not found")


def _load_expense(db: Session, expense_id: int) -> Optional[models.Expense]:
    return (
        db.query(models.Expense)
        .options(
            joinedload(models.Expense.category),
            joinedload(models.Expense.zone),
        )
        .filter(models.Expense.id == expense_id)
        .first()
    )


def _not_found_or_forbidden(db: Session, expense_id: int, user_id: int):
    """
    Called after an owner-scoped statement touched no rows: decide whether
    the expense is missing or belongs to someone else.
    """
    exists = db.query(models.Expense.id).filter(models.Expense.id == expense_id).first()
    if not exists:
        raise HTTPException(status_code=404, detail="Expense not found")

    logger.warning(f"User {user_id} denied access to expense {expense_id}")
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only modify your own expenses"
    )


# =========================
# Create Expense
# =========================
def create_expense(
    db: Session,
    expense: schemas.ExpenseCreate,
    user_id: int
):
    _ensure_references(db, expense.category_id, expense.zone_id)

    new_expense = models.Expense(
        amount=expense.amount,
        description=expense.description,
        expense_date=expense.expense_date or datetime.utcnow(),
        category_id=expense.category_id,
        zone_id=expense.zone_id,
        user_id=user_id
    )

    db.add(new_expense)
    db.commit()

    logger.info(f"Expense {new_expense.id} ({new_expense.amount}) recorded by user {user_id}")
    return serialize_expense(_load_expense(db, new_expense.id))


# =========================
# List Expenses
# =========================
def list_user_expenses(
    db: Session,
    user_id: int,
    zone_id: Optional[int] = None,
    category_id: Optional[int] = None,
):
    query = (
        db.query(models.Expense)
        .options(
            joinedload(models.Expense.category),
            joinedload(models.Expense.zone),
        )
        .filter(models.Expense.user_id == user_id)
    )

    if zone_id is not None:
        query = query.filter(models.Expense.zone_id == zone_id)

    if category_id is not None:
        query = query.filter(models.Expense.category_id == category_id)

    expenses = query.order_by(
        models.Expense.created_at.desc(),
        models.Expense.id.desc()
    ).all()

    return [serialize_expense(exp) for exp in expenses]


# =========================
# Update Expense
# =========================
def update_expense(
    db: Session,
    expense_id: int,
    expense_data: schemas.ExpenseUpdate,
    user_id: int
):
    """
    Patch an expense owned by user_id.
    Ownership is part of the UPDATE's WHERE clause, so a non-owner can
    never change the row, even between a read and a write.
    """
    data = expense_data.model_dump(exclude_unset=True)

    for field in REQUIRED_FIELDS:
        if field in data and data[field] is None:
            raise HTTPException(status_code=400, detail=f"{field} cannot be empty")

    owned = db.query(models.Expense).filter(
        models.Expense.id == expense_id,
        models.Expense.user_id == user_id
    )

    # Ownership is decided before the new references are looked up
    if owned.count() == 0:
        _not_found_or_forbidden(db, expense_id, user_id)

    _ensure_references(db, data.get("category_id"), data.get("zone_id"))

    updated = owned.update(data, synchronize_session=False) if data else 1
    if updated == 0:
        # Deleted or reassigned since the ownership check
        db.rollback()
        _not_found_or_forbidden(db, expense_id, user_id)

    db.commit()
    logger.info(f"Expense {expense_id} updated by user {user_id}: {sorted(data)}")
    return serialize_expense(_load_expense(db, expense_id))


# =========================
# Delete Expense
# =========================
def delete_expense(db: Session, expense_id: int, user_id: int, is_admin: bool = False):
    query = db.query(models.Expense).filter(models.Expense.id == expense_id)
    if not is_admin:
        query = query.filter(models.Expense.user_id == user_id)

    deleted = query.delete(synchronize_session=False)
    if deleted == 0:
        db.rollback()
        _not_found_or_forbidden(db, expense_id, user_id)

    db.commit()
    logger.info(f"Expense {expense_id} deleted by user {user_id}")
    return {"message": "Expense deleted successfully"}


# =========================
# Receipt upload
# =========================
def upload_receipt(
    db: Session,
    storage,
    expense_id: int,
    user_id: int,
    file: UploadFile
):
    owned = db.query(models.Expense).filter(
        models.Expense.id == expense_id,
        models.Expense.user_id == user_id
    )
    if owned.count() == 0:
        _not_found_or_forbidden(db, expense_id, user_id)

    url = store_upload(storage, file, RECEIPT_FOLDER)

    updated = owned.update({"receipt_url": url}, synchronize_session=False)
    if updated == 0:
        # Deleted while the upload was in flight
        db.rollback()
        _not_found_or_forbidden(db, expense_id, user_id)

    db.commit()
    return {"message": "Receipt uploaded", "receiptUrl": url}
