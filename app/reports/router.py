from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Dict, Any, Optional

from app.database import get_db
from app.users.permissions import admin_required
from . import service


router = APIRouter(dependencies=[Depends(admin_required)])


@router.get("/dashboard", response_model=Dict[str, Any])
def get_dashboard_summary(db: Session = Depends(get_db)):
    """
    Platform totals for the admin dashboard (Admin only).
    """
    return service.get_dashboard_summary(db)


@router.get("/reports/users", response_model=Dict[str, Any])
def get_user_report(
    page: int = Query(1, description="1-indexed page number"),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    search: str = Query("", description="Case-insensitive match on user name"),
    db: Session = Depends(get_db),
):
    return service.get_user_report(db, page=page, page_size=page_size, search=search)


@router.get("/reports/categories", response_model=Dict[str, Any])
def get_category_report(
    page: int = Query(1, description="1-indexed page number"),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    search: str = Query("", description="Case-insensitive match on category name"),
    db: Session = Depends(get_db),
):
    return service.get_category_report(db, page=page, page_size=page_size, search=search)


@router.get("/reports/zones", response_model=Dict[str, Any])
def get_zone_report(
    page: int = Query(1, description="1-indexed page number"),
    page_size: Optional[int] = Query(None, alias="pageSize"),
    search: str = Query("", description="Case-insensitive match on zone name"),
    db: Session = Depends(get_db),
):
    return service.get_zone_report(db, page=page, page_size=page_size, search=search)
