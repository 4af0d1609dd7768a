"""Initial engine schema: employees, projects, attendance, task assignments, location and audit logs

Revision ID: 001_initial_engine_schema
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001_initial_engine_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    is_sqlite = bind.dialect.name == "sqlite"
    ts_default = sa.text("CURRENT_TIMESTAMP") if is_sqlite else sa.text("now()")

    op.create_table(
        "employees",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("emp_code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="WORKER"),
        sa.Column("password_hash", sa.String(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_employees_id"), "employees", ["id"], unique=False)
    op.create_index(op.f("ix_employees_emp_code"), "employees", ["emp_code"], unique=True)

    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("geofence_lat", sa.Float(), nullable=False),
        sa.Column("geofence_lng", sa.Float(), nullable=False),
        sa.Column("geofence_radius_m", sa.Float(), nullable=False),
        sa.Column("geofence_tolerance_m", sa.Float(), nullable=False, server_default="0"),
        sa.Column("required_accuracy_m", sa.Float(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("geofence_radius_m > 0", name="ck_projects_radius_positive"),
        sa.CheckConstraint("geofence_tolerance_m >= 0", name="ck_projects_tolerance_non_negative"),
        sa.CheckConstraint("required_accuracy_m > 0", name="ck_projects_accuracy_positive"),
    )
    op.create_index(op.f("ix_projects_id"), "projects", ["id"], unique=False)
    op.create_index(op.f("ix_projects_code"), "projects", ["code"], unique=True)

    op.create_table(
        "attendance_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("check_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_out_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("lunch_start_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("lunch_end_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("check_in_geo", sa.JSON(), nullable=True),
        sa.Column("check_out_geo", sa.JSON(), nullable=True),
        sa.Column("inside_geofence_at_checkin", sa.Boolean(), nullable=True),
        sa.Column("inside_geofence_at_checkout", sa.Boolean(), nullable=True),
        sa.Column("check_in_distance_m", sa.Float(), nullable=True),
        sa.Column("check_out_distance_m", sa.Float(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("employee_id", "work_date", "project_id", name="uq_attendance_employee_date_project"),
    )
    op.create_index(op.f("ix_attendance_records_id"), "attendance_records", ["id"], unique=False)
    op.create_index(op.f("ix_attendance_records_employee_id"), "attendance_records", ["employee_id"], unique=False)
    op.create_index(op.f("ix_attendance_records_project_id"), "attendance_records", ["project_id"], unique=False)
    op.create_index(op.f("ix_attendance_records_work_date"), "attendance_records", ["work_date"], unique=False)
    op.create_index(
        "uq_attendance_one_open_per_day",
        "attendance_records",
        ["employee_id", "work_date"],
        unique=True,
        postgresql_where=sa.text("check_out_at IS NULL"),
        sqlite_where=sa.text("check_out_at IS NULL"),
    )

    op.create_table(
        "attendance_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("record_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column(
            "event_type",
            sa.Enum("CLOCK_IN", "CLOCK_OUT", "LUNCH_START", "LUNCH_END", name="attendanceeventtype"),
            nullable=False,
        ),
        sa.Column("event_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("meta_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["record_id"], ["attendance_records.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_attendance_events_id"), "attendance_events", ["id"], unique=False)
    op.create_index(op.f("ix_attendance_events_record_id"), "attendance_events", ["record_id"], unique=False)
    op.create_index(op.f("ix_attendance_events_employee_id"), "attendance_events", ["employee_id"], unique=False)

    op.create_table(
        "worker_task_assignments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_code", sa.String(), nullable=False),
        sa.Column("task_name", sa.String(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("supervisor_id", sa.Integer(), nullable=True),
        sa.Column("work_date", sa.Date(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("dependencies", sa.JSON(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("queued", "in_progress", "paused", "completed", name="taskstatus"),
            nullable=False,
            server_default="queued",
        ),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_resumed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("paused_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("daily_target_quantity", sa.Float(), nullable=True),
        sa.Column("daily_target_unit", sa.String(), nullable=True),
        sa.Column("progress_quantity", sa.Float(), nullable=False, server_default="0"),
        sa.Column("progress_percent", sa.Float(), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["supervisor_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_worker_task_assignments_id"), "worker_task_assignments", ["id"], unique=False)
    op.create_index(op.f("ix_worker_task_assignments_employee_id"), "worker_task_assignments", ["employee_id"], unique=False)
    op.create_index(op.f("ix_worker_task_assignments_project_id"), "worker_task_assignments", ["project_id"], unique=False)
    op.create_index(op.f("ix_worker_task_assignments_work_date"), "worker_task_assignments", ["work_date"], unique=False)
    op.create_index(op.f("ix_worker_task_assignments_status"), "worker_task_assignments", ["status"], unique=False)
    op.create_index(
        "uq_task_one_in_progress_per_employee",
        "worker_task_assignments",
        ["employee_id"],
        unique=True,
        postgresql_where=sa.text("status = 'in_progress'"),
        sqlite_where=sa.text("status = 'in_progress'"),
    )

    op.create_table(
        "task_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("assignment_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column(
            "event_type",
            sa.Enum("START", "RESUME", "PAUSE", "AUTO_PAUSE", "COMPLETE", "PROGRESS", name="taskeventtype"),
            nullable=False,
        ),
        sa.Column("event_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("meta_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["assignment_id"], ["worker_task_assignments.id"]),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_task_events_id"), "task_events", ["id"], unique=False)
    op.create_index(op.f("ix_task_events_assignment_id"), "task_events", ["assignment_id"], unique=False)
    op.create_index(op.f("ix_task_events_employee_id"), "task_events", ["employee_id"], unique=False)

    op.create_table(
        "location_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=False),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("accuracy", sa.Float(), nullable=True),
        sa.Column("distance_m", sa.Float(), nullable=False),
        sa.Column("inside_geofence", sa.Boolean(), nullable=False),
        sa.Column("log_type", sa.String(), nullable=False),
        sa.Column("task_assignment_id", sa.Integer(), nullable=True),
        sa.Column("logged_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=ts_default, nullable=False),
        sa.ForeignKeyConstraint(["employee_id"], ["employees.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.ForeignKeyConstraint(["task_assignment_id"], ["worker_task_assignments.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_location_logs_id"), "location_logs", ["id"], unique=False)
    op.create_index(op.f("ix_location_logs_employee_id"), "location_logs", ["employee_id"], unique=False)
    op.create_index(op.f("ix_location_logs_project_id"), "location_logs", ["project_id"], unique=False)

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=True),
        sa.Column("meta_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["actor_id"], ["employees.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_logs_id"), "audit_logs", ["id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_audit_logs_id"), table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index(op.f("ix_location_logs_project_id"), table_name="location_logs")
    op.drop_index(op.f("ix_location_logs_employee_id"), table_name="location_logs")
    op.drop_index(op.f("ix_location_logs_id"), table_name="location_logs")
    op.drop_table("location_logs")
    op.drop_index(op.f("ix_task_events_employee_id"), table_name="task_events")
    op.drop_index(op.f("ix_task_events_assignment_id"), table_name="task_events")
    op.drop_index(op.f("ix_task_events_id"), table_name="task_events")
    op.drop_table("task_events")
    op.drop_index("uq_task_one_in_progress_per_employee", table_name="worker_task_assignments")
    op.drop_index(op.f("ix_worker_task_assignments_status"), table_name="worker_task_assignments")
    op.drop_index(op.f("ix_worker_task_assignments_work_date"), table_name="worker_task_assignments")
    op.drop_index(op.f("ix_worker_task_assignments_project_id"), table_name="worker_task_assignments")
    op.drop_index(op.f("ix_worker_task_assignments_employee_id"), table_name="worker_task_assignments")
    op.drop_index(op.f("ix_worker_task_assignments_id"), table_name="worker_task_assignments")
    op.drop_table("worker_task_assignments")
    op.drop_index(op.f("ix_attendance_events_employee_id"), table_name="attendance_events")
    op.drop_index(op.f("ix_attendance_events_record_id"), table_name="attendance_events")
    op.drop_index(op.f("ix_attendance_events_id"), table_name="attendance_events")
    op.drop_table("attendance_events")
    op.drop_index("uq_attendance_one_open_per_day", table_name="attendance_records")
    op.drop_index(op.f("ix_attendance_records_work_date"), table_name="attendance_records")
    op.drop_index(op.f("ix_attendance_records_project_id"), table_name="attendance_records")
    op.drop_index(op.f("ix_attendance_records_employee_id"), table_name="attendance_records")
    op.drop_index(op.f("ix_attendance_records_id"), table_name="attendance_records")
    op.drop_table("attendance_records")
    op.drop_index(op.f("ix_projects_code"), table_name="projects")
    op.drop_index(op.f("ix_projects_id"), table_name="projects")
    op.drop_table("projects")
    op.drop_index(op.f("ix_employees_emp_code"), table_name="employees")
    op.drop_index(op.f("ix_employees_id"), table_name="employees")
    op.drop_table("employees")
    if op.get_bind().dialect.name == "postgresql":
        sa.Enum(name="taskeventtype").drop(op.get_bind(), checkfirst=True)
        sa.Enum(name="taskstatus").drop(op.get_bind(), checkfirst=True)
        sa.Enum(name="attendanceeventtype").drop(op.get_bind(), checkfirst=True)
