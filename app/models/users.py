from beanie import Document, Indexed, PydanticObjectId
from pydantic import EmailStr, Field
from datetime import datetime, timezone
from typing import Literal, Optional

AccountType = Literal["SuperAdmin", "Admin", "Employee"]

SUPER_ADMIN = "SuperAdmin"


class User(Document):
    email: Indexed(EmailStr, unique=True)
    hashed_password: str
    full_name: Optional[str] = None
    role: Literal["admin", "employee"] = "employee"
    account_type: AccountType = "Employee"
    # employee record this login belongs to, if any
    employee: Optional[PydanticObjectId] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "users"
