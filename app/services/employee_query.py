"""
Read model for employees: joined, filtered, sorted and paginated listings
built as MongoDB aggregation pipelines.
"""
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId

from app.core.crypto import PinDecryptError, decrypt
from app.models.employee import ACTIVE, Employee
from app.models.users import SUPER_ADMIN, User

logger = logging.getLogger(__name__)

# (collection, local field, joined field name)
LOOKUPS = [
    ("companies", "company_id", "company"),
    ("departments", "department_id", "department"),
    ("job_titles", "job_title_id", "job_title"),
    ("leavegroups", "leave_group_id", "leave_group"),
]

SEARCH_FIELDS = [
    "full_name",
    "employee_status",
    "company.company_name",
    "department.department_name",
    "job_title.job_title",
    "leave_group.group_name",
]

SORTABLE_FIELDS = {
    "full_name",
    "first_name",
    "last_name",
    "email",
    "employee_status",
    "employee_type",
    "official_start_date",
    "date_regularized",
    "company.company_name",
    "department.department_name",
    "job_title.job_title",
    "leave_group.group_name",
}

DEFAULT_SORT = {"full_name": 1}


class InvalidObjectId(ValueError):
    pass


class SuperAdminNotFound(LookupError):
    pass


class UnsupportedSortKey(ValueError):
    pass


def parse_object_id(value) -> ObjectId:
    if not value or not ObjectId.is_valid(str(value)):
        raise InvalidObjectId(value)
    return ObjectId(str(value))


def lookup_stages() -> List[Dict[str, Any]]:
    """Left-outer join of the four lookup collections."""
    stages: List[Dict[str, Any]] = [
        {
            "$lookup": {
                "from": collection,
                "localField": local_field,
                "foreignField": "_id",
                "as": alias,
            }
        }
        for collection, local_field, alias in LOOKUPS
    ]
    stages += [
        {"$unwind": {"path": f"${alias}", "preserveNullAndEmptyArrays": True}}
        for _, _, alias in LOOKUPS
    ]
    return stages


def visibility_filter(excluded_employee_id: Optional[ObjectId]) -> Dict[str, Any]:
    return {
        "_id": {"$ne": excluded_employee_id},
        "employee_status": ACTIVE,
    }


def search_match(query: str, excluded_employee_id: Optional[ObjectId]) -> Dict[str, Any]:
    match = visibility_filter(excluded_employee_id)
    # substring search, so user input is never treated as a pattern
    pattern = re.escape(query or "")
    match["$or"] = [
        {field: {"$regex": pattern, "$options": "i"}} for field in SEARCH_FIELDS
    ]
    return {"$match": match}


def sort_stage(sort_key: Optional[str] = None, sort_order: Optional[str] = None) -> Dict[str, Any]:
    if not sort_key:
        spec = dict(DEFAULT_SORT)
    else:
        if sort_key not in SORTABLE_FIELDS:
            raise UnsupportedSortKey(sort_key)
        spec = {sort_key: 1 if sort_order == "asc" else -1}
    # tie breaker keeps skip/limit pages stable
    spec["_id"] = 1
    return {"$sort": spec}


def page_facet(page_index: int, page_size: int) -> Dict[str, Any]:
    skip = (page_index - 1) * page_size
    return {
        "$facet": {
            "metadata": [{"$count": "totalEmployees"}],
            "data": [{"$skip": skip}, {"$limit": page_size}],
        }
    }


def build_list_pipeline(
    page_index: int,
    page_size: int,
    query: str,
    excluded_employee_id: Optional[ObjectId],
    sort_key: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> List[Dict[str, Any]]:
    return lookup_stages() + [
        search_match(query, excluded_employee_id),
        {"$project": {"pin": 0}},
        sort_stage(sort_key, sort_order),
        page_facet(page_index, page_size),
    ]


def build_detail_pipeline(employee_id: ObjectId) -> List[Dict[str, Any]]:
    return [{"$match": {"_id": employee_id}}] + lookup_stages()


def fill_missing_lookups(row: Dict[str, Any]) -> Dict[str, Any]:
    # an unwound empty join drops the key; report it as null instead
    for _, _, alias in LOOKUPS:
        if not row.get(alias):
            row[alias] = None
    return row


async def _excluded_employee_id() -> Optional[ObjectId]:
    # the SuperAdmin's own employee row is never listed; without that user
    # there is nothing safe to exclude, so refuse to list at all
    admin = await User.find_one(User.account_type == SUPER_ADMIN)
    if admin is None:
        raise SuperAdminNotFound()
    return admin.employee


async def list_employees(
    page_index: int = 1,
    page_size: int = 10,
    query: str = "",
    sort_key: Optional[str] = None,
    sort_order: Optional[str] = None,
) -> Tuple[List[Dict[str, Any]], int]:
    excluded = await _excluded_employee_id()
    pipeline = build_list_pipeline(page_index, page_size, query, excluded, sort_key, sort_order)

    result = await Employee.aggregate(pipeline).to_list()
    if not result:
        return [], 0

    facet = result[0]
    metadata = facet.get("metadata") or []
    total = metadata[0]["totalEmployees"] if metadata else 0
    return [fill_missing_lookups(row) for row in facet.get("data", [])], total


async def list_all_active_employees() -> List[Dict[str, Any]]:
    excluded = await _excluded_employee_id()
    pipeline = lookup_stages() + [
        {"$match": visibility_filter(excluded)},
        {"$project": {"pin": 0}},
    ]
    rows = await Employee.aggregate(pipeline).to_list()
    return [fill_missing_lookups(row) for row in rows]


def reveal_pin(row: Dict[str, Any]) -> Dict[str, Any]:
    if row.get("pin"):
        try:
            row["pin"] = decrypt(row["pin"])
        except PinDecryptError:
            logger.warning("Could not decrypt PIN for employee %s", row.get("_id"))
            row["pin"] = None
    return row


async def get_employee_detail(employee_id) -> Optional[Dict[str, Any]]:
    oid = parse_object_id(employee_id)
    rows = await Employee.aggregate(build_detail_pipeline(oid)).to_list()
    if not rows:
        return None
    return reveal_pin(fill_missing_lookups(rows[0]))
