"""
Seed the lookup tables and the SuperAdmin login.

Usage: python -m scripts.seed_lookups <ADMIN_EMAIL> <ADMIN_PASSWORD>
"""
import asyncio
import logging
import sys

from app.core.database import init_db
from app.core.security import get_password_hash
from app.models.lookups import Company, Department, JobTitle, LeaveGroup
from app.models.users import SUPER_ADMIN, User

logger = logging.getLogger("seed_lookups")

COMPANIES = ["Head Office"]
DEPARTMENTS = ["Engineering", "Human Resources", "Finance", "Operations"]
JOB_TITLES = ["Software Engineer", "HR Officer", "Accountant", "Team Lead"]
LEAVE_GROUPS = ["Regular", "Probationary"]


async def _ensure(model, field: str, values):
    created = 0
    for value in values:
        if await model.find_one({field: value}) is None:
            await model(**{field: value}).insert()
            created += 1
    logger.info("%s: %s new rows", model.Settings.name, created)


async def main(admin_email: str, admin_password: str):
    client = await init_db()

    await _ensure(Company, "company_name", COMPANIES)
    await _ensure(Department, "department_name", DEPARTMENTS)
    await _ensure(JobTitle, "job_title", JOB_TITLES)
    await _ensure(LeaveGroup, "group_name", LEAVE_GROUPS)

    if await User.find_one(User.account_type == SUPER_ADMIN) is None:
        await User(
            email=admin_email,
            hashed_password=get_password_hash(admin_password),
            full_name="Super Admin",
            role="admin",
            account_type=SUPER_ADMIN,
        ).insert()
        logger.info("Created SuperAdmin %s", admin_email)

    client.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    if len(sys.argv) != 3:
        print("Usage: python -m scripts.seed_lookups <ADMIN_EMAIL> <ADMIN_PASSWORD>")
        sys.exit(1)
    asyncio.run(main(sys.argv[1], sys.argv[2]))
