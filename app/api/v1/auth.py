"""
Authentication endpoints: employee-code login and the caller's identity
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.core.deps import get_clock, get_current_user, get_db
from app.core.security import create_access_token, verify_password
from app.models.employee import Employee
from app.schemas.auth import EmployeeDto, LoginRequest, TokenResponse
from app.services.audit_service import log_audit
from app.utils.datetime_utils import Clock

router = APIRouter()
logger = logging.getLogger(__name__)

_BAD_CREDENTIALS = "Invalid employee code or password"


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """
    Exchange emp_code and password for a JWT.

    Unknown codes, wrong passwords and accounts without a password all get the
    same 401; inactive accounts get 403. The token's sub is the employee id.
    """
    employee = db.query(Employee).filter(Employee.emp_code == login_data.emp_code).first()

    if (
        employee is None
        or employee.password_hash is None
        or not verify_password(login_data.password, employee.password_hash)
    ):
        logger.warning("Login rejected: emp_code=%s", login_data.emp_code)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_BAD_CREDENTIALS)

    if not employee.active:
        logger.warning("Login rejected for inactive account: employee_id=%s", employee.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive")

    access_token = create_access_token(
        data={"sub": str(employee.id), "emp_code": employee.emp_code, "role": employee.role}
    )

    log_audit(
        db=db,
        at=clock.now(),
        actor_id=employee.id,
        action="AUTH_LOGIN_SUCCESS",
        entity=employee,
        meta={"role": employee.role},
    )
    db.commit()
    logger.info("Login: employee_id=%s role=%s", employee.id, employee.role)

    return TokenResponse(access_token=access_token, role=employee.role, employee_id=employee.id)


@router.get("/me", response_model=EmployeeDto)
async def me(current_user: Employee = Depends(get_current_user)):
    """The authenticated employee, so the client can pick worker or supervisor screens."""
    return EmployeeDto.from_employee(current_user)
