# app/routers/__init__.py
from .auth import auth_router
from .users import users_router
from .employees import employees_router

__all__ = [
    "auth_router",
    "users_router",
    "employees_router",
]
