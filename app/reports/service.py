from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func

from app.users.models import User
from app.zones.models import Zone
from app.categories.models import Category
from app.expenses.models import Expense

from .aggregation import (
    aggregate_map,
    clamp_paging,
    grand_total,
    merge_with_aggregates,
    paginate,
)


def _name_filter(column, search: str | None):
    search = (search or "").strip()
    if not search:
        return None
    # Literal substring: % and _ typed by the user are not wildcards
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


# =========================
# User report
# =========================
def get_user_report(
    db: Session,
    page: int | None = 1,
    page_size: int | None = None,
    search: str | None = None,
):
    page, page_size = clamp_paging(page, page_size)

    # All matching users, so users with 0 expenses are listed too
    query = db.query(User.id, User.name, User.email)
    condition = _name_filter(User.name, search)
    if condition is not None:
        query = query.filter(condition)
    users = query.order_by(User.id).all()

    grouped = (
        db.query(
            Expense.user_id.label("entity_id"),
            func.sum(Expense.amount).label("total"),
            func.max(Expense.expense_date).label("last_expense"),
        )
        .group_by(Expense.user_id)
        .all()
    )
    expense_map = aggregate_map(grouped, "entity_id", {"total": 0, "last_expense": None})

    merged = merge_with_aggregates(
        users,
        expense_map,
        key=lambda u: u.id,
        default={"total": 0, "last_expense": None},
        build_row=lambda u, agg: {
            "userId": u.id,
            "userName": u.name or u.email,
            "totalAmount": agg["total"],
            "lastExpenseDate": agg["last_expense"],
        },
    )

    data, total_pages = paginate(merged, page, page_size)

    return {
        "data": data,
        "totalPlatformExpense": grand_total(merged, "totalAmount"),
        "totalPages": total_pages,
    }


# =========================
# Category report
# =========================
def get_category_report(
    db: Session,
    page: int | None = 1,
    page_size: int | None = None,
    search: str | None = None,
):
    page, page_size = clamp_paging(page, page_size)

    query = db.query(Category.id, Category.name)
    condition = _name_filter(Category.name, search)
    if condition is not None:
        query = query.filter(condition)
    categories = query.order_by(Category.id).all()

    grouped = (
        db.query(
            Expense.category_id.label("entity_id"),
            func.sum(Expense.amount).label("total"),
            func.max(Expense.expense_date).label("last_expense"),
        )
        .group_by(Expense.category_id)
        .all()
    )
    expense_map = aggregate_map(grouped, "entity_id", {"total": 0, "last_expense": None})

    merged = merge_with_aggregates(
        categories,
        expense_map,
        key=lambda c: c.id,
        default={"total": 0, "last_expense": None},
        build_row=lambda c, agg: {
            "category_id": c.id,
            "name": c.name,
            "total": agg["total"],
            "last_expense_date": agg["last_expense"],
        },
    )

    data, total_pages = paginate(merged, page, page_size)

    return {
        "data": data,
        "totalPlatformExpense": grand_total(merged, "total"),
        "totalPages": total_pages,
    }


# =========================
# Zone report
# =========================
def _creator_label(zone: Zone) -> str:
    if zone.creator is None:
        return "—"
    return zone.creator.name or zone.creator.email or "—"


def get_zone_report(
    db: Session,
    page: int | None = 1,
    page_size: int | None = None,
    search: str | None = None,
):
    page, page_size = clamp_paging(page, page_size)

    query = db.query(Zone).options(joinedload(Zone.creator))
    condition = _name_filter(Zone.name, search)
    if condition is not None:
        query = query.filter(condition)
    zones = query.order_by(Zone.id).all()

    grouped = (
        db.query(
            Expense.zone_id.label("entity_id"),
            func.sum(Expense.amount).label("total"),
            func.count(Expense.id).label("expense_count"),
        )
        .group_by(Expense.zone_id)
        .all()
    )
    expense_map = aggregate_map(grouped, "entity_id", {"total": 0, "expense_count": 0})

    merged = merge_with_aggregates(
        zones,
        expense_map,
        key=lambda z: z.id,
        default={"total": 0, "expense_count": 0},
        build_row=lambda z, agg: {
            "id": z.id,
            "name": z.name,
            "created_at": z.created_at,
            "created_by": _creator_label(z),
            "total_expenses": agg["total"],
            "expense_count": agg["expense_count"],
        },
    )

    data, total_pages = paginate(merged, page, page_size)

    return {
        "data": data,
        "totalExpenses": grand_total(merged, "total_expenses"),
        "totalPages": total_pages,
    }


# =========================
# Dashboard summary
# =========================
def get_dashboard_summary(db: Session):
    """
    Platform-wide counts and sums.
    Grouped totals are raw GROUP BY rows: zones or categories without
    expenses are absent rather than zero-filled.
    """
    total_amount = db.query(func.sum(Expense.amount)).scalar() or 0

    zone_totals = (
        db.query(Expense.zone_id, func.sum(Expense.amount).label("total"))
        .group_by(Expense.zone_id)
        .order_by(Expense.zone_id)
        .all()
    )

    category_totals = (
        db.query(Expense.category_id, func.sum(Expense.amount).label("total"))
        .group_by(Expense.category_id)
        .order_by(Expense.category_id)
        .all()
    )

    return {
        "totalUsers": db.query(func.count(User.id)).scalar(),
        "totalZones": db.query(func.count(Zone.id)).scalar(),
        "totalCategories": db.query(func.count(Category.id)).scalar(),
        "totalExpenses": db.query(func.count(Expense.id)).scalar(),
        "totalAmount": total_amount,
        "zoneWiseTotals": [
            {"zoneId": row.zone_id, "total": row.total or 0} for row in zone_totals
        ],
        "categoryWiseTotals": [
            {"categoryId": row.category_id, "total": row.total or 0} for row in category_totals
        ],
    }
