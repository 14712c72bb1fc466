import logging

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from app.core.config import settings
from app.models.users import User
from app.models.employee import Employee
from app.models.lookups import Company, Department, JobTitle, LeaveGroup

logger = logging.getLogger(__name__)

DOCUMENT_MODELS = [
    User,
    Employee,
    Company,
    Department,
    JobTitle,
    LeaveGroup,
]


async def init_db(client=None):
    if client is None:
        client = AsyncIOMotorClient(settings.MONGODB_URL)
    db = client[settings.MONGODB_DB_NAME]

    await init_beanie(database=db, document_models=DOCUMENT_MODELS)
    logger.info("Database %s initialized", settings.MONGODB_DB_NAME)
    return client
