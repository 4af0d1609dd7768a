"""
Dependencies and guards for FastAPI endpoints
"""
from typing import Generator, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.db.session import SessionLocal
from app.core.security import decode_token
from app.models.employee import Employee, Role
from app.utils.datetime_utils import Clock


security = HTTPBearer()


def get_db() -> Generator:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_clock() -> Clock:
    """The request's source of "now" and the work date. Overridden in tests."""
    return Clock()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _employee_id_from_token(token: str) -> int:
    try:
        payload = decode_token(token)
        # JWT 'sub' is a string
        return int(payload["sub"])
    except (KeyError, ValueError, TypeError):
        raise _unauthorized("Invalid authentication credentials")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> Employee:
    """
    The active employee named by the bearer token. A token for a deleted
    employee is a 401; a deactivated employee is a 403.
    """
    employee_id = _employee_id_from_token(credentials.credentials)

    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if employee is None:
        raise _unauthorized("User not found")

    if not employee.active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return employee


def require_roles(*allowed_roles: Role):
    """
    Dependency factory for role-based access control

    Usage:
        @router.post("/assignments")
        async def create(user: Employee = Depends(require_roles(Role.SUPERVISOR))):
            ...
    """
    def role_checker(current_user: Employee = Depends(get_current_user)) -> Employee:
        # ADMIN passes every role check
        if current_user.role == Role.ADMIN or current_user.role in allowed_roles:
            return current_user
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Access denied. Required roles: {[r.value for r in allowed_roles]}"
        )
    return role_checker


def is_supervisor(employee: Employee) -> bool:
    return employee.role in (Role.SUPERVISOR, Role.ADMIN)


def resolve_worker_scope(worker_id: Optional[int], current_user: Employee) -> int:
    """
    The worker a read is about: the caller by default. Supervisors and admins
    may name any worker; workers may only name themselves.
    """
    if worker_id is None or worker_id == current_user.id:
        return current_user.id
    if not is_supervisor(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Workers can only view their own records",
        )
    return worker_id
