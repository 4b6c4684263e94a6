from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional


# =========================
# Create
# =========================
class ExpenseCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: float = Field(..., gt=0)
    description: Optional[str] = None
    expense_date: Optional[datetime] = Field(None, alias="expenseDate")
    category_id: int = Field(..., alias="categoryId")
    zone_id: int = Field(..., alias="zoneId")


# =========================
# Update
# =========================
class ExpenseUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: Optional[float] = Field(None, gt=0)
    description: Optional[str] = None
    expense_date: Optional[datetime] = Field(None, alias="expenseDate")
    category_id: Optional[int] = Field(None, alias="categoryId")
    zone_id: Optional[int] = Field(None, alias="zoneId")


# =========================
# Output
# =========================
class ExpenseOut(BaseModel):
    id: int
    amount: float
    description: Optional[str] = None
    expense_date: datetime
    user_id: int
    category_id: int
    category_name: Optional[str] = None
    zone_id: int
    zone_name: Optional[str] = None
    receipt_url: Optional[str] = None
    created_at: datetime


class ReceiptResponse(BaseModel):
    message: str
    receiptUrl: str
