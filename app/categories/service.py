from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from fastapi import HTTPException, status
from loguru import logger

from . import models, schemas
from app.expenses.models import Expense


def _get_category_or_404(db: Session, category_id: int) -> models.Category:
    db_category = (
        db.query(models.Category)
        .filter(models.Category.id == category_id)
        .first()
    )

    if not db_category:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Category not found"
        )
    return db_category


# ================= CREATE =================
def create_category(db: Session, category: schemas.CategoryCreate, user_id: int):
    name = category.name.strip()
    if not name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Category name required"
        )

    existing = (
        db.query(models.Category)
        .filter(models.Category.name == name)
        .first()
    )

    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Category '{name}' already exists"
        )

    db_category = models.Category(
        name=name,
        description=category.description,
        created_by=user_id
    )

    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    logger.info(f"Category '{name}' created by user {user_id}")
    return db_category


# ================= LIST =================
def list_categories(db: Session):
    return (
        db.query(models.Category)
        .order_by(models.Category.created_at.desc(), models.Category.id.desc())
        .all()
    )


def get_categories_summary(db: Session):
    """
    Every category with its creator and lifetime expense total, newest first.
    """
    totals = dict(
        db.query(Expense.category_id, func.sum(Expense.amount))
        .group_by(Expense.category_id)
        .all()
    )

    categories = (
        db.query(models.Category)
        .options(joinedload(models.Category.creator))
        .order_by(models.Category.created_at.desc(), models.Category.id.desc())
        .all()
    )

    return [
        {
            "id": c.id,
            "name": c.name,
            "description": c.description,
            "created_by": c.creator.name if c.creator and c.creator.name else "—",
            "created_at": c.created_at,
            "total_expense": totals.get(c.id) or 0,
        }
        for c in categories
    ]


# ================= UPDATE =================
def update_category(
    db: Session,
    category_id: int,
    category: schemas.CategoryUpdate
):
    db_category = _get_category_or_404(db, category_id)

    data = category.model_dump(exclude_unset=True)
    if "name" in data:
        name = (data["name"] or "").strip()
        if not name:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Category name required"
            )
        name_exists = (
            db.query(models.Category)
            .filter(models.Category.name == name)
            .filter(models.Category.id != category_id)
            .first()
        )
        if name_exists:
            raise HTTPException(
                status_code=400,
                detail="Another category with this name already exists"
            )
        db_category.name = name

    if category.description is not None:
        db_category.description = category.description

    db.commit()
    db.refresh(db_category)
    return db_category


# ================= DELETE =================
def delete_category(db: Session, category_id: int):
    db_category = _get_category_or_404(db, category_id)

    usage_count = db.query(Expense).filter(Expense.category_id == category_id).count()
    if usage_count > 0:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete category '{db_category.name}'. It is used by {usage_count} expense(s)."
        )

    db.delete(db_category)
    db.commit()
    logger.info(f"Category {category_id} deleted")
    return {"message": "Category deleted successfully"}
