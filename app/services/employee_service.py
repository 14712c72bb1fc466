"""
Write side of the employee records: create, update, archive, batch delete
and the face descriptor export.
"""
import logging
from typing import Any, Dict, List, Optional

from beanie import PydanticObjectId
from beanie.operators import In

from app.core.crypto import encrypt
from app.models.employee import ARCHIVED, Employee, FaceInfo, build_full_name
from app.models.users import User
from app.schemas.employee import EmployeeCreate, EmployeeUpdate
from app.services.employee_query import parse_object_id

logger = logging.getLogger(__name__)


class InvalidFaceDescriptor(ValueError):
    pass


class DuplicateEmployeeEmail(ValueError):
    pass


class LinkedUserSyncError(RuntimeError):
    """The employee was saved but its linked login could not take the new email."""


class EmployeeNotFound(LookupError):
    def __init__(self, missing_ids=None):
        super().__init__(missing_ids)
        self.missing_ids = missing_ids or []


def _record_fields(payload: EmployeeCreate) -> Dict[str, Any]:
    """Map the request body onto stored field names; PIN is always re-encrypted."""
    return {
        "first_name": payload.first_name,
        "last_name": payload.last_name,
        "full_name": build_full_name(payload.first_name, payload.last_name),
        "email": payload.email,
        "dial_code": payload.dial_code,
        "phone_number": payload.phone_number,
        "img": payload.img,
        "address": payload.address,
        "gender": payload.gender,
        "civil_status": payload.civil_status,
        "height": payload.height,
        "weight": payload.weight,
        "age": payload.age,
        "birthday": payload.birthday,
        "national_id": payload.national_id,
        "place_of_birth": payload.place_of_birth,
        "company_id": payload.company,
        "department_id": payload.department,
        "job_title_id": payload.job_title,
        "leave_group_id": payload.leave_group,
        "pin": encrypt(payload.pin),
        "company_email": payload.company_email,
        "employee_type": payload.employment_type,
        "employee_status": payload.employment_status,
        "official_start_date": payload.official_start_date,
        "date_regularized": payload.date_regularized,
    }


def _check_descriptor(descriptor) -> List[float]:
    if not isinstance(descriptor, list):
        raise InvalidFaceDescriptor()
    for value in descriptor:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidFaceDescriptor()
    return [float(v) for v in descriptor]


def _face_info(employee_id, descriptor: List[float]) -> FaceInfo:
    return FaceInfo(name=str(employee_id), descriptors=[descriptor])


async def _ensure_email_free(email: str, employee_id=None):
    existing = await Employee.find_one(Employee.email == email)
    if existing and existing.id != employee_id:
        raise DuplicateEmployeeEmail(email)


async def create_employee(payload: EmployeeCreate) -> Employee:
    descriptor = _check_descriptor(payload.face_descriptor)

    await _ensure_email_free(payload.email)

    # the face label is the record id, so the id is allocated before the insert
    employee_id = PydanticObjectId()
    employee = Employee(
        id=employee_id,
        face_info=_face_info(employee_id, descriptor),
        **_record_fields(payload),
    )
    await employee.insert()
    logger.info("Created employee %s", employee_id)
    return employee


async def update_employee(payload: EmployeeUpdate) -> Employee:
    oid = PydanticObjectId(parse_object_id(payload.employee_id))

    employee = await Employee.get(oid)
    if employee is None:
        raise EmployeeNotFound([payload.employee_id])

    descriptor = None
    if payload.face_descriptor is not None:
        descriptor = _check_descriptor(payload.face_descriptor)

    await _ensure_email_free(payload.email, employee.id)

    fields = _record_fields(payload)
    if fields["employee_status"] is None:
        del fields["employee_status"]
    if descriptor is not None:
        fields["face_info"] = _face_info(employee.id, descriptor)
    for key, value in fields.items():
        setattr(employee, key, value)
    await employee.replace()

    await sync_linked_user_email(employee.id, employee.email)
    return employee


async def sync_linked_user_email(employee_id, email: str) -> Optional[User]:
    """Copy a changed employee email onto the login linked to that employee."""
    user = await User.find_one(User.employee == employee_id)
    if user is None:
        return None
    if user.email != email:
        taken = await User.find_one(User.email == email)
        if taken is not None and taken.id != user.id:
            raise LinkedUserSyncError(f"email already used by user {taken.id}")
        user.email = email
        await user.save()
        logger.info("Synced email of user %s from employee %s", user.id, employee_id)
    return user


async def archive_employee(employee_id) -> Employee:
    oid = PydanticObjectId(parse_object_id(employee_id))
    employee = await Employee.get(oid)
    if employee is None:
        raise EmployeeNotFound([employee_id])

    await employee.set({Employee.employee_status: ARCHIVED})
    return employee


async def delete_employees(employee_ids: List[str]) -> int:
    """
    Hard-delete a batch. Every id is checked before anything is removed, so a
    missing or malformed id leaves the whole batch in place.
    """
    oids = [PydanticObjectId(parse_object_id(i)) for i in employee_ids]

    found = await Employee.find(In(Employee.id, oids)).to_list()
    found_ids = {e.id for e in found}
    missing = [str(i) for i in oids if i not in found_ids]
    if missing:
        raise EmployeeNotFound(missing)

    result = await Employee.find(In(Employee.id, oids)).delete()
    deleted = result.deleted_count if result is not None else 0
    if deleted != len(found_ids):
        logger.warning("Batch delete removed %s of %s employees", deleted, len(found_ids))
    logger.info("Deleted %s employees", deleted)
    return deleted


async def export_face_info() -> Dict[str, Dict[str, Any]]:
    employees = await Employee.find(
        {"face_info.descriptors": {"$exists": True, "$ne": []}}
    ).to_list()

    face_info_data: Dict[str, Dict[str, Any]] = {}
    for employee in employees:
        if employee.face_info and employee.face_info.descriptors:
            face_info_data[employee.full_name] = {
                "name": employee.face_info.name,
                "descriptors": employee.face_info.descriptors,
            }
    return face_info_data
