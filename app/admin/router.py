from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.database import get_db
from app.uploads.storage import get_storage
from app.users import schemas as user_schemas
from app.users.permissions import admin_required
from app.zones import service as zone_service
from . import service


router = APIRouter()


def _form_error(exc: ValidationError) -> HTTPException:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return HTTPException(status_code=400, detail=f"{field}: {first.get('msg')}")


@router.get("/users", response_model=List[user_schemas.AdminUserOut])
def get_all_users(
    db: Session = Depends(get_db),
    current_user: user_schemas.UserDisplaySchema = Depends(admin_required),
):
    return service.list_users_with_zones(db)


@router.get("/users/{user_id}/zones", response_model=List[int])
def get_user_zones(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: user_schemas.UserDisplaySchema = Depends(admin_required),
):
    return zone_service.get_user_zone_ids(db, user_id)


@router.post(
    "/create-user",
    response_model=user_schemas.UserOut,
    status_code=status.HTTP_201_CREATED
)
def create_user(
    email: str = Form(...),
    password: str = Form(...),
    name: Optional[str] = Form(None),
    role: user_schemas.RoleName = Form("user"),
    phone: Optional[str] = Form(None),
    dob: Optional[date] = Form(None),
    gender: Optional[str] = Form(None),
    profilePhoto: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    current_user: user_schemas.UserDisplaySchema = Depends(admin_required),
):
    try:
        payload = user_schemas.SignupSchema(email=email, password=password, name=name)
    except ValidationError as e:
        raise _form_error(e)

    return service.create_user(
        db,
        storage,
        payload,
        role=role,
        photo=profilePhoto,
        phone=phone,
        dob=dob,
        gender=gender,
    )


@router.put("/update-user/{user_id}", response_model=user_schemas.UserOut)
def update_user(
    user_id: int,
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    dob: Optional[date] = Form(None),
    phone: Optional[str] = Form(None),
    gender: Optional[str] = Form(None),
    id_proof_type: Optional[str] = Form(None),
    role: Optional[user_schemas.RoleName] = Form(None),
    profilePhoto: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    current_user: user_schemas.UserDisplaySchema = Depends(admin_required),
):
    # Form fields that were not sent arrive as None: treat them as untouched
    supplied = {
        key: value
        for key, value in {
            "name": name,
            "email": email,
            "dob": dob,
            "phone": phone,
            "gender": gender,
            "id_proof_type": id_proof_type,
            "role": role,
        }.items()
        if value is not None
    }
    try:
        changes = user_schemas.UserUpdateSchema(**supplied)
    except ValidationError as e:
        raise _form_error(e)

    return service.update_user(db, storage, user_id, changes, photo=profilePhoto)


@router.delete("/delete-users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: user_schemas.UserDisplaySchema = Depends(admin_required),
):
    return service.delete_user(db, user_id, acting_user_id=current_user.id)


@router.put("/reset-password/{user_id}")
def reset_password(
    user_id: int,
    payload: user_schemas.PasswordResetSchema,
    db: Session = Depends(get_db),
    current_user: user_schemas.UserDisplaySchema = Depends(admin_required),
):
    return service.reset_password(db, user_id, payload.newPassword)


@router.put("/role", response_model=user_schemas.UserOut)
def update_user_role(
    payload: user_schemas.RoleUpdateSchema,
    db: Session = Depends(get_db),
    current_user: user_schemas.UserDisplaySchema = Depends(admin_required),
):
    return service.update_role(db, payload.userId, payload.role)
