import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi

from app.core.config import settings
from app.core.database import init_db
from app.routers import auth_router, users_router, employees_router

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = await init_db()
    logger.info("%s %s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    client.close()


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# OpenAPI with bearer applied to all except /auth/login and /auth/refresh
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="HR records API with JWT Authentication",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "Bearer": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT"
        }
    }

    public = {f"{settings.API_V1_STR}/auth/login", f"{settings.API_V1_STR}/auth/refresh"}
    for path, methods in openapi_schema.get("paths", {}).items():
        if path not in public:
            for method in methods.values():
                method["security"] = [{"Bearer": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi

api_prefix = settings.API_V1_STR
app.include_router(auth_router, prefix=api_prefix)
app.include_router(users_router, prefix=api_prefix)
app.include_router(employees_router, prefix=api_prefix)


@app.get("/")
async def root():
    return {"message": "HR records API is up and running", "version": settings.VERSION}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}
