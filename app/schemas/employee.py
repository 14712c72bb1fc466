from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel
from typing import Any, List, Literal, Optional

from beanie import PydanticObjectId


class _CamelModel(BaseModel):
    # the frontend posts camelCase keys and may send numbers for text fields
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class EmployeeCreate(_CamelModel):
    first_name: str
    last_name: str
    email: EmailStr
    dial_code: str
    phone_number: str
    address: str
    gender: Literal["MALE", "FEMALE", "OTHER"]
    civil_status: str
    height: str
    weight: str
    age: str
    birthday: str
    national_id: str
    place_of_birth: str
    img: str
    company: PydanticObjectId
    department: PydanticObjectId
    job_title: PydanticObjectId
    pin: str
    company_email: EmailStr
    leave_group: PydanticObjectId
    employment_type: str
    employment_status: Literal["Active", "Archived"] = "Active"
    official_start_date: str
    date_regularized: str
    # shape checked by the service so a bad descriptor is a 400, not a 422
    face_descriptor: Optional[Any] = None


class EmployeeUpdate(EmployeeCreate):
    employee_id: Optional[str] = Field(None, alias="_id")
    # status changes go through archive; a missing key keeps the stored one
    employment_status: Optional[Literal["Active", "Archived"]] = None


class ArchiveRequest(_CamelModel):
    employee_id: Optional[str] = None


class DeleteRequest(_CamelModel):
    employee_ids: List[str]
