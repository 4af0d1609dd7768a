"""
Task assignment schemas
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import Field, field_serializer, model_validator

from app.models.task_assignment import TaskStatus
from app.schemas.common import CamelModel, CamelRequest
from app.schemas.project import ProjectGeofenceDto
from app.utils.datetime_utils import iso_work_tz


class TaskStartRequest(CamelRequest):
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)
    accuracy: Optional[float] = Field(None, gt=0)


class TaskPauseRequest(CamelRequest):
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)


class TaskCompleteRequest(CamelRequest):
    """Final progress; percent defaults to 100 when omitted."""
    progress_quantity: Optional[float] = Field(None, ge=0)
    progress_percent: Optional[float] = Field(None, ge=0, le=100)
    lat: Optional[float] = Field(None, ge=-90, le=90)
    lon: Optional[float] = Field(None, ge=-180, le=180)


class TaskProgressRequest(CamelRequest):
    progress_quantity: Optional[float] = Field(None, ge=0)
    progress_percent: Optional[float] = Field(None, ge=0, le=100)

    @model_validator(mode="after")
    def check_any_progress(self) -> "TaskProgressRequest":
        if self.progress_quantity is None and self.progress_percent is None:
            raise ValueError("progressQuantity or progressPercent is required")
        return self


class AssignmentCreate(CamelRequest):
    """Supervisor assigns a task instance to a worker for a work date."""
    worker_id: int
    project_id: int
    task_code: str = Field(..., min_length=1, max_length=64)
    task_name: str = Field(..., min_length=1, max_length=200)
    work_date: Optional[date] = Field(None, description="Defaults to today in the work time zone")
    sequence: Optional[int] = Field(None, ge=1, description="Defaults to the next sequence for that day")
    dependencies: List[int] = Field(default_factory=list, description="Assignment ids that must be completed first")
    daily_target_quantity: Optional[float] = Field(None, ge=0)
    daily_target_unit: Optional[str] = Field(None, max_length=32)


class DailyTargetDto(CamelModel):
    quantity: Optional[float] = None
    unit: Optional[str] = None


class AssignmentDto(CamelModel):
    assignment_id: int
    task_id: str
    task_name: str
    worker_id: int
    project_id: int
    work_date: date
    status: TaskStatus
    sequence: int
    dependencies: List[int]
    daily_target: DailyTargetDto
    progress_quantity: float
    progress_percent: float
    started_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    project_geofence: ProjectGeofenceDto
    can_start: bool
    unmet_dependencies: List[int]
    active_seconds: int

    @field_serializer("started_at", "paused_at", "completed_at", when_used="always")
    def _serialize_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_work_tz(dt)

    @classmethod
    def from_view(cls, view) -> "AssignmentDto":
        a = view.assignment
        return cls(
            assignment_id=a.id,
            task_id=a.task_code,
            task_name=a.task_name,
            worker_id=a.employee_id,
            project_id=a.project_id,
            work_date=a.work_date,
            status=a.status,
            sequence=a.sequence,
            dependencies=a.dependency_ids,
            daily_target=DailyTargetDto(quantity=a.daily_target_quantity, unit=a.daily_target_unit),
            progress_quantity=a.progress_quantity,
            progress_percent=a.progress_percent,
            started_at=a.started_at,
            paused_at=a.paused_at,
            completed_at=a.completed_at,
            project_geofence=ProjectGeofenceDto.from_project(a.project),
            can_start=view.can_start,
            unmet_dependencies=view.unmet_dependencies,
            active_seconds=view.active_seconds,
        )


class TaskActionResponse(CamelModel):
    status: TaskStatus
    assignment: AssignmentDto


class TaskHistoryPaginationDto(CamelModel):
    current_page: int
    limit: int
    total_pages: int
    total_tasks: int
    has_next: bool
    has_previous: bool


class TaskHistorySummaryDto(CamelModel):
    """Counts over every task matching the filters; seconds are active time of completed tasks."""
    total_completed: int
    total_in_progress: int
    completed_active_seconds: int
    average_task_seconds: int


class TaskHistoryResponse(CamelModel):
    items: List[AssignmentDto]
    pagination: TaskHistoryPaginationDto
    summary: TaskHistorySummaryDto

    @classmethod
    def from_page(cls, page) -> "TaskHistoryResponse":
        return cls(
            items=[AssignmentDto.from_view(v) for v in page.views],
            pagination=TaskHistoryPaginationDto(
                current_page=page.page,
                limit=page.limit,
                total_pages=page.total_pages,
                total_tasks=page.total,
                has_next=page.has_next,
                has_previous=page.has_previous,
            ),
            summary=TaskHistorySummaryDto(
                total_completed=page.total_completed,
                total_in_progress=page.total_in_progress,
                completed_active_seconds=page.completed_active_seconds,
                average_task_seconds=page.average_task_seconds,
            ),
        )
