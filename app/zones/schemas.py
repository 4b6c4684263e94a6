from pydantic import BaseModel
from typing import Optional
from datetime import datetime


# ================= CREATE =================
class ZoneCreate(BaseModel):
    name: str


# ================= UPDATE =================
class ZoneUpdate(BaseModel):
    name: Optional[str] = None


# ================= RESPONSE =================
class ZoneOut(BaseModel):
    id: int
    name: str
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserZoneOut(BaseModel):
    user_id: int
    zone_id: int
    zone: ZoneOut

    class Config:
        from_attributes = True


# ================= ASSIGNMENT =================
class ZoneToggle(BaseModel):
    userId: int
    zoneId: int
