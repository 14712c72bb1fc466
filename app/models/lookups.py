from beanie import Document
from typing import Optional


class Company(Document):
    company_name: str
    address: Optional[str] = None

    class Settings:
        name = "companies"


class Department(Document):
    department_name: str
    description: Optional[str] = None

    class Settings:
        name = "departments"


class JobTitle(Document):
    job_title: str
    description: Optional[str] = None

    class Settings:
        name = "job_titles"


class LeaveGroup(Document):
    group_name: str
    description: Optional[str] = None

    class Settings:
        name = "leavegroups"
