from pydantic import BaseModel, EmailStr, field_validator
from typing import Literal, Optional
from datetime import datetime
from bson import ObjectId


class UserBase(BaseModel):
    email: EmailStr
    full_name: Optional[str] = None
    role: Literal["admin", "employee"] = "employee"
    account_type: Literal["SuperAdmin", "Admin", "Employee"] = "Employee"
    is_active: bool = True


class UserCreate(UserBase):
    full_name: str
    password: str
    employee: Optional[str] = None


class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None
    role: Optional[Literal["admin", "employee"]] = None
    is_active: Optional[bool] = None


class UserResponse(UserBase):
    id: str
    employee: Optional[str] = None
    created_at: datetime

    @field_validator("id", "employee", mode="before")
    @classmethod
    def validate_id(cls, v):
        if isinstance(v, ObjectId):
            return str(v)
        return v


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    role: Optional[str] = None
    user_id: Optional[str] = None


class TokenRefresh(BaseModel):
    refresh_token: str


def user_out(user) -> dict:
    user_dict = user.model_dump(exclude={"hashed_password"})
    user_dict["id"] = str(user.id)
    if user_dict.get("employee") is not None:
        user_dict["employee"] = str(user_dict["employee"])
    return user_dict
