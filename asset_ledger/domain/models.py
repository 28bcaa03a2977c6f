from __future__ import annotations

from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Any
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict
from pydantic import Field as PydanticField
from sqlalchemy import JSON, Column, Index, UniqueConstraint, text
from sqlmodel import Field, SQLModel

from asset_ledger.domain.state_machine import AssignmentStatus


def now_utc() -> datetime:
    return datetime.now(UTC)


def today_utc() -> date:
    return now_utc().date()


class EventRecord(SQLModel, table=True):
    __tablename__ = "events"

    event_id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    event_type: str = Field(index=True)
    ts: datetime = Field(default_factory=now_utc, index=True)
    actor_id: str | None = Field(default=None, index=True)
    correlation_id: str | None = Field(default=None, index=True)
    payload: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )


class EventEnvelope(BaseModel):
    event_id: str = PydanticField(default_factory=lambda: str(uuid4()))
    event_type: str
    ts: datetime = PydanticField(default_factory=now_utc)
    actor_id: str | None = None
    correlation_id: str | None = None
    payload: dict[str, Any] = PydanticField(default_factory=dict)


class EquipmentKind(StrEnum):
    LAPTOP = "Laptop"
    DESKTOP = "Desktop"
    PRINTER = "Printer"
    SWITCH = "Switch"
    SERVER = "Server"
    LICENSE = "License"
    PHONE = "Phone"
    IPAD = "iPad"
    OTHER = "Other"


class AssetStatus(StrEnum):
    SERVICEABLE = "Serviceable"
    UNSERVICEABLE = "Unserviceable"
    ASSIGNED = "Assigned"
    AVAILABLE = "Available"
    UNDER_MAINTENANCE = "Under Maintenance"
    IN_STORAGE = "In Storage"
    STOLEN = "Stolen"


class MaintenanceType(StrEnum):
    SCHEDULED = "Scheduled"
    PREVENTIVE = "Preventive"
    CORRECTIVE = "Corrective"
    EMERGENCY = "Emergency"


class MaintenanceInterval(StrEnum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    BI_ANNUALLY = "Bi-annually"
    ANNUALLY = "Annually"
    AS_NEEDED = "As needed"


class Asset(SQLModel, table=True):
    __tablename__ = "assets"
    __table_args__ = (UniqueConstraint("asset_tag", name="uq_assets_asset_tag"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    equipment: EquipmentKind = Field(index=True)
    model: str = Field(max_length=200)
    serial_number: str = Field(max_length=100, index=True)
    asset_tag: str = Field(max_length=100, index=True)
    department: str = Field(max_length=100, index=True)
    location: str | None = Field(default=None, max_length=100)
    holder_name: str | None = Field(default=None, max_length=200, index=True)
    status: AssetStatus = Field(default=AssetStatus.AVAILABLE, index=True)
    last_maintenance_date: date | None = None
    next_maintenance_date: date | None = Field(default=None, index=True)
    detail: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    version: int = Field(default=0)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc, index=True)


class CustodyInterval(SQLModel, table=True):
    __tablename__ = "custody_intervals"
    __table_args__ = (
        Index(
            "uq_custody_intervals_open_per_asset",
            "asset_id",
            unique=True,
            sqlite_where=text("to_date IS NULL"),
            postgresql_where=text("to_date IS NULL"),
        ),
        Index("ix_custody_intervals_asset_from", "asset_id", "from_date"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    asset_id: str = Field(foreign_key="assets.id", index=True)
    holder_name: str | None = Field(default=None, max_length=200)
    department: str | None = Field(default=None, max_length=100)
    from_date: date
    to_date: date | None = None
    reason: str = ""
    created_at: datetime = Field(default_factory=now_utc, index=True)


class MaintenanceRecord(SQLModel, table=True):
    __tablename__ = "maintenance_records"
    __table_args__ = (Index("ix_maintenance_records_asset_performed", "asset_id", "date_performed"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    asset_id: str = Field(foreign_key="assets.id", index=True)
    maintenance_type: MaintenanceType = Field(index=True)
    technician_name: str = Field(max_length=200)
    technician_id: str | None = Field(default=None, index=True)
    date_performed: date = Field(index=True)
    next_maintenance_date: date | None = Field(default=None, index=True)
    maintenance_interval: MaintenanceInterval | None = None
    issues_found: bool = Field(default=False)
    issues_description: str | None = None
    parts_replaced: str | None = None
    software_updated: str | None = None
    time_spent: float | None = None
    followup_required: bool = Field(default=False)
    additional_comments: str | None = None
    inspection: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc, index=True)


class Personnel(SQLModel, table=True):
    __tablename__ = "personnel"
    __table_args__ = (UniqueConstraint("email", name="uq_personnel_email"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    full_name: str = Field(max_length=200, index=True)
    email: str | None = Field(default=None, max_length=200)
    department: str | None = Field(default=None, max_length=100)
    designation: str | None = Field(default=None, max_length=100)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=now_utc, index=True)


class Assignment(SQLModel, table=True):
    __tablename__ = "asset_assignments"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    asset_id: str = Field(foreign_key="assets.id", index=True)
    assigned_to: str = Field(foreign_key="personnel.id", index=True)
    assigned_by: str = Field(max_length=200)
    assignment_date: date = Field(index=True)
    expected_return_date: date | None = Field(default=None, index=True)
    actual_return_date: date | None = None
    status: AssignmentStatus = Field(default=AssignmentStatus.ACTIVE, index=True)
    notes: str | None = None
    version: int = Field(default=0)
    created_at: datetime = Field(default_factory=now_utc, index=True)
    updated_at: datetime = Field(default_factory=now_utc, index=True)


class ORMReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class AssetCreate(BaseModel):
    equipment: EquipmentKind
    model: str
    serial_number: str
    asset_tag: str
    department: str
    location: str | None = None
    status: AssetStatus = AssetStatus.AVAILABLE
    holder_name: str | None = None
    custody_reason: str | None = None
    detail: dict[str, Any] = PydanticField(default_factory=dict)


class AssetRead(ORMReadModel):
    id: str
    equipment: EquipmentKind
    model: str
    serial_number: str
    asset_tag: str
    department: str
    location: str | None = None
    holder_name: str | None = None
    status: AssetStatus
    last_maintenance_date: date | None = None
    next_maintenance_date: date | None = None
    detail: dict[str, Any]
    version: int
    created_at: datetime
    updated_at: datetime


class CustodyTransferRequest(BaseModel):
    new_holder: str | None = None
    department: str
    reason: str = ""
    occurred_at: date | None = None
    expected_version: int | None = None


class CustodyIntervalRead(ORMReadModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: str
    asset_id: str
    holder_name: str | None = None
    department: str | None = None
    from_date: date = PydanticField(
        validation_alias=AliasChoices("from_date", "from"),
        serialization_alias="from",
    )
    to_date: date | None = PydanticField(
        default=None,
        validation_alias=AliasChoices("to_date", "to"),
        serialization_alias="to",
    )
    reason: str
    created_at: datetime


class MaintenanceRecordCreate(BaseModel):
    asset_id: str | None = None
    maintenance_type: MaintenanceType | None = None
    technician_name: str | None = None
    technician_id: str | None = None
    date_performed: date | None = None
    next_maintenance_date: date | None = None
    maintenance_interval: MaintenanceInterval | None = None
    issues_found: bool = False
    issues_description: str | None = None
    parts_replaced: str | None = None
    software_updated: str | None = None
    time_spent: float | None = None
    followup_required: bool = False
    additional_comments: str | None = None
    inspection: dict[str, Any] = PydanticField(default_factory=dict)


class MaintenanceRecordUpdate(BaseModel):
    asset_id: str | None = None
    maintenance_type: MaintenanceType | None = None
    technician_name: str | None = None
    technician_id: str | None = None
    date_performed: date | None = None
    next_maintenance_date: date | None = None
    maintenance_interval: MaintenanceInterval | None = None
    issues_found: bool | None = None
    issues_description: str | None = None
    parts_replaced: str | None = None
    software_updated: str | None = None
    time_spent: float | None = None
    followup_required: bool | None = None
    additional_comments: str | None = None
    inspection: dict[str, Any] | None = None


class MaintenanceRecordRead(ORMReadModel):
    id: str
    asset_id: str
    maintenance_type: MaintenanceType
    technician_name: str
    technician_id: str | None = None
    date_performed: date
    next_maintenance_date: date | None = None
    maintenance_interval: MaintenanceInterval | None = None
    issues_found: bool
    issues_description: str | None = None
    parts_replaced: str | None = None
    software_updated: str | None = None
    time_spent: float | None = None
    followup_required: bool
    additional_comments: str | None = None
    inspection: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class MaintenanceRecordPage(BaseModel):
    records: list[MaintenanceRecordRead]
    total: int


class PersonnelCreate(BaseModel):
    full_name: str
    email: str | None = None
    department: str | None = None
    designation: str | None = None


class PersonnelRead(ORMReadModel):
    id: str
    full_name: str
    email: str | None = None
    department: str | None = None
    designation: str | None = None
    is_active: bool
    created_at: datetime


class AssignmentCreate(BaseModel):
    asset_id: str
    assigned_to: str
    assigned_by: str
    expected_return_date: date | None = None
    notes: str | None = None


class AssignmentStatusRequest(BaseModel):
    status: AssignmentStatus
    notes: str | None = None


class AssignmentReturnRequest(BaseModel):
    actual_return_date: date
    notes: str | None = None


class OverdueSweepRequest(BaseModel):
    as_of: date | None = None


class AssignmentRead(ORMReadModel):
    id: str
    asset_id: str
    assigned_to: str
    assigned_by: str
    assignment_date: date
    expected_return_date: date | None = None
    actual_return_date: date | None = None
    status: AssignmentStatus
    notes: str | None = None
    version: int
    created_at: datetime
    updated_at: datetime


class CapabilityRead(BaseModel):
    equipment: EquipmentKind
    allowed_fields: list[str]
