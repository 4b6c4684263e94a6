from pydantic import BaseModel, Field, validator
from typing import List, Optional, Literal
from datetime import date, datetime


RoleName = Literal["admin", "user"]


def normalize_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip().lower()
    if "@" not in value:
        raise ValueError("Invalid email address")
    return value


# -------- AUTH --------
class SignupSchema(BaseModel):
    email: str
    password: str = Field(..., min_length=6)
    name: Optional[str] = None

    @validator("email")
    def check_email(cls, v):
        return normalize_email(v)


class LoginSchema(BaseModel):
    email: str
    password: str

    @validator("email")
    def lowercase_email(cls, v):
        return v.strip().lower()


# -------- USERS --------
class UserDisplaySchema(BaseModel):
    """Authenticated principal resolved from a bearer token."""

    id: int
    email: str
    name: Optional[str] = None
    role: RoleName = "user"
    profile_photo: Optional[str] = None

    @validator("role", pre=True)
    def ensure_role_value(cls, v):
        # Enum members come straight off the ORM row
        return getattr(v, "value", v)

    class Config:
        from_attributes = True


class UserOut(UserDisplaySchema):
    phone: Optional[str] = None
    dob: Optional[date] = None
    gender: Optional[str] = None
    id_proof_type: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    token: str
    user: UserOut


class AdminUserOut(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    role: RoleName
    dob: Optional[date] = None
    created_at: Optional[datetime] = None
    profile_photo_url: Optional[str] = None
    zone_names: str = ""


class UserUpdateSchema(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    dob: Optional[date] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    id_proof_type: Optional[str] = None
    role: Optional[RoleName] = None

    @validator("email")
    def check_email(cls, v):
        return normalize_email(v)


class RoleUpdateSchema(BaseModel):
    userId: int
    role: RoleName


class PasswordResetSchema(BaseModel):
    newPassword: str = Field(..., min_length=6)


class ProfilePhotoResponse(BaseModel):
    message: str
    profilePhoto: Optional[str] = None


class CategorySlice(BaseModel):
    name: str
    value: float


class UserDashboard(BaseModel):
    totalSpent: float
    zones: List[str]
    categoryData: List[CategorySlice]
    lastExpense: Optional[dict] = None
