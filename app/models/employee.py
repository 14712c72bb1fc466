from typing import List, Literal, Optional

from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field

EmployeeStatus = Literal["Active", "Archived"]
Gender = Literal["MALE", "FEMALE", "OTHER"]

ACTIVE = "Active"
ARCHIVED = "Archived"


class FaceInfo(BaseModel):
    # label the external matcher reports back; the stringified employee id
    name: Optional[str] = None
    descriptors: List[List[float]] = Field(default_factory=list)


class Employee(Document):
    first_name: str
    last_name: str
    full_name: str
    email: Indexed(str, unique=True)
    dial_code: str
    phone_number: str
    img: str
    face_info: FaceInfo = Field(default_factory=FaceInfo)
    address: str
    gender: Gender
    civil_status: str
    height: str
    weight: str
    age: str
    birthday: str
    national_id: str
    place_of_birth: str

    company_id: PydanticObjectId
    department_id: PydanticObjectId
    job_title_id: PydanticObjectId
    leave_group_id: PydanticObjectId

    pin: str  # ciphertext, see app.core.crypto
    company_email: str
    employee_type: str
    employee_status: EmployeeStatus = ACTIVE
    official_start_date: str
    date_regularized: str

    class Settings:
        name = "employees"


def build_full_name(first_name: str, last_name: str) -> str:
    return f"{first_name} {last_name}"
