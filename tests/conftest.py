import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from mongomock_motor import AsyncMongoMockClient

from app.core.database import init_db
from app.core.security import create_access_token, get_password_hash
from app.main import app
from app.models.lookups import Company, Department, JobTitle, LeaveGroup
from app.models.users import User

API = "/api/v1"


@pytest_asyncio.fixture
async def db():
    client = AsyncMongoMockClient()
    await init_db(client)
    yield client


@pytest_asyncio.fixture
async def client(db):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def lookups(db):
    company = await Company(company_name="Acme Corp").insert()
    engineering = await Department(department_name="Engineering").insert()
    finance = await Department(department_name="Finance").insert()
    job_title = await JobTitle(job_title="Software Engineer").insert()
    leave_group = await LeaveGroup(group_name="Regular").insert()
    return {
        "company": company,
        "engineering": engineering,
        "finance": finance,
        "job_title": job_title,
        "leave_group": leave_group,
    }


@pytest_asyncio.fixture
async def super_admin(db):
    user = User(
        email="root@example.com",
        hashed_password=get_password_hash("secret"),
        full_name="Root Admin",
        role="admin",
        account_type="SuperAdmin",
    )
    await user.insert()
    return user


@pytest.fixture
def admin_headers(super_admin):
    token = create_access_token(data={"sub": str(super_admin.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def staff_headers(db):
    user = User(
        email="staff@example.com",
        hashed_password=get_password_hash("secret"),
        full_name="Staff Member",
    )
    await user.insert()
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def employee_payload(lookups):
    def _make(**overrides):
        body = {
            "firstName": "Jane",
            "lastName": "Doe",
            "email": "jane.doe@example.com",
            "dialCode": "+63",
            "phoneNumber": "9171234567",
            "address": "1 Main St",
            "gender": "FEMALE",
            "civilStatus": "Single",
            "height": "165",
            "weight": "55",
            "age": "30",
            "birthday": "1994-05-01",
            "nationalId": "N-0001",
            "placeOfBirth": "Manila",
            "img": "https://cdn.example.com/jane.png",
            "company": str(lookups["company"].id),
            "department": str(lookups["engineering"].id),
            "jobTitle": str(lookups["job_title"].id),
            "pin": "4321",
            "companyEmail": "jane@acme.example.com",
            "leaveGroup": str(lookups["leave_group"].id),
            "employmentType": "Full-time",
            "employmentStatus": "Active",
            "officialStartDate": "2020-01-06",
            "dateRegularized": "2020-07-06",
            "faceDescriptor": [0.1, 0.25, -0.5],
        }
        body.update(overrides)
        return body

    return _make


@pytest.fixture
def create_employee(client, admin_headers, employee_payload):
    async def _create(**overrides):
        resp = await client.post(f"{API}/employees/", json=employee_payload(**overrides), headers=admin_headers)
        assert resp.status_code == 200, resp.text
        return resp.json()["employee"]

    return _create
