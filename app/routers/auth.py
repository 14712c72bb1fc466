import logging

from fastapi.security import HTTPBearer
from fastapi import APIRouter, Depends, HTTPException, status, Header
from pydantic import BaseModel
from beanie import PydanticObjectId
from bson import ObjectId
from app.core.security import (
    verify_password, get_password_hash,
    create_access_token, create_refresh_token, verify_token
)
from app.models.users import User
from app.models.employee import Employee
from app.schemas.users import Token, UserCreate, UserResponse, TokenRefresh, user_out
from app.services.permission import ensure_admin
from typing import Optional

logger = logging.getLogger(__name__)

security = HTTPBearer()


class LoginRequest(BaseModel):
    email: str
    password: str


# token subject is the user id, not the email
async def _user_from_subject(subject) -> Optional[User]:
    if not subject or not ObjectId.is_valid(str(subject)):
        return None
    return await User.get(PydanticObjectId(str(subject)))


async def get_current_user_dependency(authorization: Optional[str] = Header(None)):
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
        )

    try:
        # Extract token from "Bearer <token>"
        scheme, token = authorization.split()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Use: Bearer <token>",
        )
    if scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication scheme",
        )

    payload = verify_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials - Invalid token",
        )

    user_id = payload.get("sub")
    token_type = payload.get("type")

    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials - No subject in token",
        )

    if token_type != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type - Use access token",
        )

    user = await _user_from_subject(user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user"
        )

    return user


# Export the dependency for use in other routers
get_current_user = get_current_user_dependency


class AuthRouter:
    def __init__(self):
        self.router = APIRouter(prefix="/auth", tags=["authentication"])
        self.setup_routes()

    def setup_routes(self):
        self.router.add_api_route("/register", self.register, methods=["POST"], response_model=UserResponse, dependencies=[Depends(security)])
        self.router.add_api_route("/login", self.login, methods=["POST"], response_model=Token)
        self.router.add_api_route("/refresh", self.refresh_token, methods=["POST"], response_model=Token)
        self.router.add_api_route("/me", self.get_current_user, methods=["GET"], response_model=UserResponse, dependencies=[Depends(security)])

    async def register(self, user_data: UserCreate, current_user: User = Depends(get_current_user)):
        # logins are issued by admins only
        ensure_admin(current_user)

        existing_user = await User.find_one(User.email == user_data.email)
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )

        if user_data.account_type == "SuperAdmin":
            if await User.find_one(User.account_type == "SuperAdmin"):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="A SuperAdmin already exists"
                )

        employee_id = None
        if user_data.employee:
            if not ObjectId.is_valid(user_data.employee):
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid employee ID")
            employee_id = PydanticObjectId(user_data.employee)
            if await Employee.get(employee_id) is None:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

        user = User(
            email=user_data.email,
            hashed_password=get_password_hash(user_data.password),
            full_name=user_data.full_name,
            role=user_data.role,
            account_type=user_data.account_type,
            employee=employee_id,
            is_active=user_data.is_active,
        )
        await user.insert()
        logger.info("User %s registered by %s", user.id, current_user.id)

        return UserResponse(**user_out(user))

    async def login(self, login_data: LoginRequest):
        user = await User.find_one(User.email == login_data.email)
        if not user or not verify_password(login_data.password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect email or password",
            )

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Inactive user"
            )

        return {
            "access_token": create_access_token(data={"sub": str(user.id)}),
            "refresh_token": create_refresh_token(data={"sub": str(user.id)}),
            "token_type": "bearer",
            "user_id": str(user.id),
            "role": user.role,
        }

    async def refresh_token(self, refresh_data: TokenRefresh):
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

        payload = verify_token(refresh_data.refresh_token)
        if payload is None:
            raise credentials_exception

        user_id: str = payload.get("sub")
        token_type: str = payload.get("type")

        if user_id is None or token_type != "refresh":
            raise credentials_exception

        user = await _user_from_subject(user_id)
        if user is None:
            raise credentials_exception

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Inactive user"
            )

        return {
            "access_token": create_access_token(data={"sub": str(user.id)}),
            "refresh_token": refresh_data.refresh_token,  # Return same refresh token
            "token_type": "bearer",
            "user_id": str(user.id),
            "role": user.role,
        }

    async def get_current_user(self, current_user: User = Depends(get_current_user_dependency)):
        return UserResponse(**user_out(current_user))


auth_router = AuthRouter().router
