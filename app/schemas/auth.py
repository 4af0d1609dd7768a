"""
Authentication schemas
"""
from pydantic import BaseModel, Field

from app.models.employee import Role
from app.schemas.common import CamelModel


class LoginRequest(BaseModel):
    """Credentials as typed on the site device"""
    emp_code: str = Field(..., min_length=1, max_length=64, description="Employee code")
    password: str = Field(..., min_length=1, description="Password")


class TokenResponse(BaseModel):
    """Bearer token plus the identity the client needs to pick its screens"""
    access_token: str
    token_type: str = "bearer"
    role: Role
    employee_id: int


class EmployeeDto(CamelModel):
    id: int
    emp_code: str
    name: str
    role: Role
    active: bool

    @classmethod
    def from_employee(cls, employee) -> "EmployeeDto":
        return cls(
            id=employee.id,
            emp_code=employee.emp_code,
            name=employee.name,
            role=employee.role,
            active=employee.active,
        )
