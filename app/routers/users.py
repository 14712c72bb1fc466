from fastapi import APIRouter, Depends, HTTPException, status, Query
from fastapi.security import HTTPBearer
from typing import List, Optional
from bson import ObjectId
from app.models.users import User
from app.schemas.users import UserResponse, UserUpdate, user_out
from app.routers.auth import get_current_user
from app.services.permission import PermissionService, ensure_admin


async def _get_user_or_404(user_id: str) -> User:
    user = await User.get(user_id) if ObjectId.is_valid(user_id) else None
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


class UsersRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/users", tags=["users"])
        self.security = HTTPBearer()
        self.setup_routes()

    def setup_routes(self):
        self.router.add_api_route("/", self.get_users, methods=["GET"], response_model=List[UserResponse], dependencies=[Depends(self.security)])
        self.router.add_api_route("/{user_id}", self.get_user, methods=["GET"], response_model=UserResponse, dependencies=[Depends(self.security)])
        self.router.add_api_route("/{user_id}", self.update_user, methods=["PUT"], response_model=UserResponse, dependencies=[Depends(self.security)])
        self.router.add_api_route("/{user_id}", self.delete_user, methods=["DELETE"], dependencies=[Depends(self.security)])

    async def get_users(
        self,
        skip: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=1000),
        role: Optional[str] = Query(None),
        is_active: Optional[bool] = Query(None),
        current_user: User = Depends(get_current_user)
    ):
        ensure_admin(current_user)
        query = {}
        if role:
            query["role"] = role
        if is_active is not None:
            query["is_active"] = is_active

        users = await User.find(query, skip=skip, limit=limit).to_list()
        return [user_out(user) for user in users]

    async def get_user(self, user_id: str, current_user: User = Depends(get_current_user)):
        user = await _get_user_or_404(user_id)
        if not PermissionService.can_edit_user(current_user, user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )
        return user_out(user)

    async def update_user(
        self,
        user_id: str,
        user_data: UserUpdate,
        current_user: User = Depends(get_current_user)
    ):
        user = await _get_user_or_404(user_id)

        # Only allow users to update their own profile or admins
        if not PermissionService.can_edit_user(current_user, user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )

        update_data = user_data.model_dump(exclude_unset=True)
        if "role" in update_data and not PermissionService.is_admin(current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admins can change roles"
            )
        if update_data.get("email") and update_data["email"] != user.email:
            taken = await User.find_one(User.email == update_data["email"])
            if taken is not None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Email already registered"
                )
        if update_data:
            await user.set(update_data)

        return user_out(user)

    async def delete_user(
        self,
        user_id: str,
        current_user: User = Depends(get_current_user)
    ):
        if not PermissionService.is_admin(current_user):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Only admins can delete users"
            )

        user = await _get_user_or_404(user_id)
        await user.delete()
        return {"message": "User deleted successfully"}


users_router = UsersRouter().router
