from fastapi import HTTPException, UploadFile
from loguru import logger
from sqlalchemy.orm import Session, joinedload

from app.users.models import User
from app.zones.models import UserZone
from app.expenses.models import Expense
from app.expenses.service import serialize_expense
from app.uploads.storage import PROFILE_FOLDER, discard_stored_object, store_upload


def get_user_dashboard(db: Session, user_id: int):
    """
    Spend overview for one user: total, zone names, spend per category
    and the most recent expense.
    """
    expenses = (
        db.query(Expense)
        .options(joinedload(Expense.category), joinedload(Expense.zone))
        .filter(Expense.user_id == user_id)
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
        .all()
    )

    total_spent = sum(e.amount for e in expenses)

    zone_rows = (
        db.query(UserZone)
        .options(joinedload(UserZone.zone))
        .filter(UserZone.user_id == user_id)
        .all()
    )

    category_map = {}
    for e in expenses:
        name = e.category.name if e.category else "Other"
        category_map[name] = category_map.get(name, 0) + e.amount

    return {
        "totalSpent": total_spent,
        "zones": [row.zone.name for row in zone_rows],
        "categoryData": [
            {"name": name, "value": value} for name, value in category_map.items()
        ],
        "lastExpense": serialize_expense(expenses[0]) if expenses else None,
    }


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


def upload_profile_photo(db: Session, storage, user_id: int, file: UploadFile):
    user = _get_user_or_404(db, user_id)

    user.profile_photo = store_upload(storage, file, PROFILE_FOLDER)
    db.commit()
    db.refresh(user)

    return {"message": "Profile picture uploaded", "profilePhoto": user.profile_photo}


def replace_profile_photo(db: Session, storage, user_id: int, file: UploadFile):
    """
    Upload a new profile photo, then drop the previous one from the store.
    Removing the old object is best-effort and does not undo the update.
    """
    user = _get_user_or_404(db, user_id)
    previous = user.profile_photo

    user.profile_photo = store_upload(storage, file, PROFILE_FOLDER)
    db.commit()
    db.refresh(user)

    if previous:
        discard_stored_object(storage, previous)

    logger.info(f"Profile photo replaced for user {user_id}")
    return {
        "message": "Profile image updated successfully",
        "profilePhoto": user.profile_photo,
    }
