from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from . import schemas, service

from app.uploads.storage import get_storage
from app.users.auth import get_current_user
from app.users import schemas as user_schemas


router = APIRouter()


@router.post(
    "/",
    response_model=schemas.ExpenseOut,
    status_code=status.HTTP_201_CREATED
)
def create_expense(
    expense: schemas.ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: user_schemas.UserDisplaySchema = Depends(get_current_user)
):
    return service.create_expense(
        db,
        expense,
        user_id=current_user.id
    )


@router.get("/", response_model=List[schemas.ExpenseOut])
def list_my_expenses(
    zone_id: Optional[int] = Query(None, alias="zoneId"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    db: Session = Depends(get_db),
    current_user: user_schemas.UserDisplaySchema = Depends(get_current_user)
):
    return service.list_user_expenses(
        db,
        user_id=current_user.id,
        zone_id=zone_id,
        category_id=category_id,
    )


@router.put("/{expense_id}", response_model=schemas.ExpenseOut)
def update_expense(
    expense_id: int,
    expense: schemas.ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: user_schemas.UserDisplaySchema = Depends(get_current_user),
):
    return service.update_expense(db, expense_id, expense, user_id=current_user.id)


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: user_schemas.UserDisplaySchema = Depends(get_current_user),
):
    return service.delete_expense(
        db,
        expense_id,
        user_id=current_user.id,
        is_admin=current_user.role == "admin",
    )


@router.post("/{expense_id}/upload-receipt", response_model=schemas.ReceiptResponse)
def upload_receipt(
    expense_id: int,
    image: UploadFile = File(...),
    db: Session = Depends(get_db),
    storage=Depends(get_storage),
    current_user: user_schemas.UserDisplaySchema = Depends(get_current_user),
):
    return service.upload_receipt(db, storage, expense_id, current_user.id, image)
