from typing import Optional

from fastapi import HTTPException, UploadFile, status
from loguru import logger
from sqlalchemy.orm import Session, selectinload

from app.security.passwords import hash_password
from app.uploads.storage import PROFILE_FOLDER, discard_stored_object, store_upload
from app.users import crud as user_crud
from app.users import schemas as user_schemas
from app.users.models import User, Role
from app.zones.models import UserZone
from app.expenses.models import Expense


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = user_crud.get_user(db, user_id)
    if not user:
        logger.warning(f"User not found: {user_id}")
        raise HTTPException(status_code=404, detail="User not found")
    return user


def list_users_with_zones(db: Session):
    users = (
        db.query(User)
        .options(selectinload(User.zones).joinedload(UserZone.zone))
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )

    return [
        {
            "id": u.id,
            "name": u.name,
            "email": u.email,
            "role": u.role.value,
            "dob": u.dob,
            "created_at": u.created_at,
            "profile_photo_url": u.profile_photo,
            "zone_names": ",".join(uz.zone.name for uz in u.zones),
        }
        for u in users
    ]


def create_user(
    db: Session,
    storage,
    payload: user_schemas.SignupSchema,
    role: str = "user",
    photo: Optional[UploadFile] = None,
    **profile
):
    if user_crud.get_user_by_email(db, payload.email):
        raise HTTPException(status_code=400, detail="User already exists")

    image_url = None
    if photo is not None and photo.filename:
        image_url = store_upload(storage, photo, PROFILE_FOLDER)

    user = user_crud.create_user(
        db,
        email=payload.email,
        hashed_password=hash_password(payload.password),
        name=payload.name,
        role=role,
        profile_photo=image_url,
        **profile
    )
    logger.info(f"Admin created user {user.email} ({role})")
    return user


def update_user(
    db: Session,
    storage,
    user_id: int,
    changes: user_schemas.UserUpdateSchema,
    photo: Optional[UploadFile] = None,
):
    """
    Apply only the supplied fields. A new photo replaces the stored one,
    the old object is removed best-effort afterwards.
    """
    user = _get_user_or_404(db, user_id)
    data = changes.model_dump(exclude_unset=True)

    if "email" in data:
        email = (data["email"] or "").strip().lower()
        if not email:
            raise HTTPException(status_code=400, detail="Email cannot be empty")
        taken = user_crud.get_user_by_email(db, email)
        if taken and taken.id != user_id:
            raise HTTPException(status_code=400, detail="Email already in use")
        data["email"] = email

    if "role" in data:
        if data["role"] is None:
            raise HTTPException(status_code=400, detail="Invalid role")
        data["role"] = Role(data["role"])

    for key, value in data.items():
        setattr(user, key, value)

    previous_photo = None
    if photo is not None and photo.filename:
        previous_photo = user.profile_photo
        user.profile_photo = store_upload(storage, photo, PROFILE_FOLDER)

    db.commit()
    db.refresh(user)

    if previous_photo:
        discard_stored_object(storage, previous_photo)

    logger.info(f"User {user_id} updated: {sorted(data)}")
    return user


def update_role(db: Session, user_id: int, role: str):
    user = _get_user_or_404(db, user_id)
    user.role = Role(role)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user_id} role set to {role}")
    return user


def reset_password(db: Session, user_id: int, new_password: str):
    user = _get_user_or_404(db, user_id)
    user.hashed_password = hash_password(new_password)
    db.commit()
    logger.info(f"Password reset for user {user_id}")
    return {"message": "Password reset successfully"}


def delete_user(db: Session, user_id: int, acting_user_id: int):
    # Prevent self-deletion
    if user_id == acting_user_id:
        logger.warning(f"Admin {acting_user_id} attempted to delete themselves.")
        raise HTTPException(status_code=400, detail="You cannot delete yourself.")

    user = _get_user_or_404(db, user_id)

    expense_count = db.query(Expense).filter(Expense.user_id == user_id).count()
    if expense_count > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot delete user '{user.email}'. They own {expense_count} expense(s)."
        )

    try:
        db.query(UserZone).filter(UserZone.user_id == user_id).delete(
            synchronize_session=False
        )
        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(f"User {user_id} deleted successfully")
    return {"message": "User deleted successfully"}
