from fastapi import HTTPException, status

from app.models.users import User

ADMIN_ACCOUNT_TYPES = {"SuperAdmin", "Admin"}


class PermissionService:
    @staticmethod
    def is_admin(user: User) -> bool:
        if user is None:
            return False
        return getattr(user, "role", None) == "admin" or getattr(user, "account_type", None) in ADMIN_ACCOUNT_TYPES

    @staticmethod
    def can_edit_user(actor: User, target: User) -> bool:
        return str(actor.id) == str(target.id) or PermissionService.is_admin(actor)


def ensure_admin(user: User):
    if not PermissionService.is_admin(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin required")
