import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Path, status
from fastapi.security import HTTPBearer

from app.models.lookups import Company, Department, JobTitle, LeaveGroup
from app.models.users import User
from app.routers.auth import get_current_user
from app.schemas.employee import ArchiveRequest, DeleteRequest, EmployeeCreate, EmployeeUpdate
from app.services import employee_query, employee_service
from app.services.employee_query import InvalidObjectId, SuperAdminNotFound, UnsupportedSortKey
from app.services.employee_service import DuplicateEmployeeEmail, EmployeeNotFound, InvalidFaceDescriptor
from app.services.permission import ensure_admin
from app.utils.serialization import document_out, serialize

logger = logging.getLogger(__name__)

security = HTTPBearer()
router = APIRouter(prefix="/employees", tags=["employees"], dependencies=[Depends(security)])

INTERNAL_ERROR = "Internal server error"
EMPLOYEE_EXCLUDE = {"pin", "revision_id"}


def _server_error(action: str) -> HTTPException:
    logger.exception("Error %s", action)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=INTERNAL_ERROR)


@router.get("/fields")
async def get_total_fields_data(current_user: User = Depends(get_current_user)):
    """Every company, department, job title and leave group, for the employee form."""
    try:
        company = await Company.find_all().to_list()
        department = await Department.find_all().to_list()
        job_title = await JobTitle.find_all().to_list()
        leave_group = await LeaveGroup.find_all().to_list()
    except Exception:
        raise _server_error("loading lookup tables")

    return {
        "company": [document_out(c, exclude={"revision_id"}) for c in company],
        "department": [document_out(d, exclude={"revision_id"}) for d in department],
        "jobTitle": [document_out(j, exclude={"revision_id"}) for j in job_title],
        "leaveGroup": [document_out(g, exclude={"revision_id"}) for g in leave_group],
    }


@router.get("/")
async def list_employees(
    page_index: int = Query(1, ge=1, alias="pageIndex"),
    page_size: int = Query(10, ge=1, le=500, alias="pageSize"),
    query: str = Query(""),
    sort_key: Optional[str] = Query(None, alias="sortKey"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    current_user: User = Depends(get_current_user),
):
    try:
        rows, total = await employee_query.list_employees(
            page_index=page_index,
            page_size=page_size,
            query=query,
            sort_key=sort_key,
            sort_order=sort_order,
        )
    except SuperAdminNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except UnsupportedSortKey:
        raise HTTPException(status_code=400, detail="Unsupported sort key")
    except Exception:
        raise _server_error("listing employees")

    return {
        "message": "Employees fetched successfully",
        "list": serialize(rows),
        "total": total,
    }


@router.get("/all")
async def get_total_employee(current_user: User = Depends(get_current_user)):
    try:
        rows = await employee_query.list_all_active_employees()
    except SuperAdminNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception:
        raise _server_error("listing all employees")
    return {"employeeData": serialize(rows)}


@router.get("/face-info")
async def get_total_employee_face_info(current_user: User = Depends(get_current_user)):
    try:
        return await employee_service.export_face_info()
    except Exception:
        raise _server_error("fetching employee face info")


@router.get("/{employee_id}")
async def get_employee_detail(employee_id: str = Path(...), current_user: User = Depends(get_current_user)):
    try:
        employee = await employee_query.get_employee_detail(employee_id)
    except InvalidObjectId:
        raise HTTPException(status_code=400, detail="Invalid employee ID")
    except Exception:
        raise _server_error("getting employee details")

    if employee is None:
        raise HTTPException(status_code=404, detail="Employee not found")
    return {"message": "Employee fetched successfully", "data": serialize(employee)}


@router.post("/")
async def create_employee(payload: EmployeeCreate, current_user: User = Depends(get_current_user)):
    ensure_admin(current_user)
    try:
        employee = await employee_service.create_employee(payload)
    except InvalidFaceDescriptor:
        raise HTTPException(status_code=400, detail="Face descriptor is invalid or missing")
    except DuplicateEmployeeEmail:
        raise HTTPException(status_code=400, detail="Employee with email already exists")
    except Exception:
        raise _server_error("creating employee")

    return {
        "message": "Employee created successfully",
        "employee": document_out(employee, exclude=EMPLOYEE_EXCLUDE),
    }


@router.put("/")
async def update_employee(payload: EmployeeUpdate, current_user: User = Depends(get_current_user)):
    ensure_admin(current_user)
    try:
        employee = await employee_service.update_employee(payload)
    except InvalidObjectId:
        raise HTTPException(status_code=400, detail="Invalid employee ID")
    except InvalidFaceDescriptor:
        raise HTTPException(status_code=400, detail="Face descriptor is invalid or missing")
    except EmployeeNotFound:
        raise HTTPException(status_code=404, detail="Employee not found")
    except DuplicateEmployeeEmail:
        raise HTTPException(status_code=400, detail="Employee with email already exists")
    except Exception:
        raise _server_error("updating employee")

    return {
        "message": "Employee updated successfully",
        "employee": document_out(employee, exclude=EMPLOYEE_EXCLUDE),
    }


@router.post("/archive")
async def archive_employee(payload: ArchiveRequest, current_user: User = Depends(get_current_user)):
    ensure_admin(current_user)
    if not payload.employee_id:
        raise HTTPException(status_code=400, detail="Employee ID is required")
    try:
        employee = await employee_service.archive_employee(payload.employee_id)
    except InvalidObjectId:
        raise HTTPException(status_code=400, detail="Invalid Employee ID")
    except EmployeeNotFound:
        raise HTTPException(status_code=404, detail="Employee not found")
    except Exception:
        raise _server_error("archiving employee")

    return {
        "message": "Employee archived successfully",
        "employee": document_out(employee, exclude=EMPLOYEE_EXCLUDE),
    }


@router.post("/delete")
async def delete_employees(payload: DeleteRequest, current_user: User = Depends(get_current_user)):
    ensure_admin(current_user)
    if not payload.employee_ids:
        raise HTTPException(status_code=400, detail="Employee IDs are required")
    try:
        deleted = await employee_service.delete_employees(payload.employee_ids)
    except InvalidObjectId:
        raise HTTPException(status_code=400, detail="Invalid employee ID")
    except EmployeeNotFound as e:
        raise HTTPException(status_code=404, detail=f"Employee not found: {', '.join(e.missing_ids)}")
    except Exception:
        raise _server_error("deleting employees")

    return {"message": "Delete Successfully", "deleted": deleted}


employees_router = router
