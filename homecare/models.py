from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Roles
ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"
ROLE_VIEWER = "viewer"
USER_ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_STAFF, ROLE_VIEWER)

# Event types; "both" is a visit where a prescription is also handled
EVENT_VISIT = "visit"
EVENT_PRESCRIPTION = "prescription"
EVENT_BOTH = "both"
EVENT_TYPES = (EVENT_VISIT, EVENT_PRESCRIPTION, EVENT_BOTH)

EVENT_STATUSES = ("draft", "confirmed")
DISPLAY_MODES = ("grouped", "individual")
APPROACH_TYPES = ("normal", "careful", "contact_first")
DOCUMENT_TYPES = ("facesheet", "report", "prescription", "consent", "photo", "other")


class Organization(Base):
    """A tenant: one care-provider company"""

    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    users = relationship("User", back_populates="organization")
    facilities = relationship("Facility", back_populates="organization")
    patients = relationship("Patient", back_populates="organization")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), default=ROLE_STAFF, nullable=False)
    # NULL only for super_admin, who spans every organization
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="users")
    reminder_setting = relationship(
        "ReminderSetting", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    ics_token = relationship(
        "IcsToken", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN


class Facility(Base):
    """Care facility housing several patients"""

    __tablename__ = "facilities"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    name_kana = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    area = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    contact_person = Column(String(255), nullable=True)
    # grouped: calendar shows one entry per facility and day; individual: one per patient
    display_mode = Column(String(20), default="grouped", nullable=False)
    memo = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="facilities")
    patients = relationship("Patient", back_populates="facility")


class Patient(Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    # NULL means the patient is visited at home
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    name_kana = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    area = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    memo = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    organization = relationship("Organization", back_populates="patients")
    facility = relationship("Facility", back_populates="patients")
    summary = relationship(
        "PatientSummary", back_populates="patient", uselist=False, cascade="all, delete-orphan"
    )
    documents = relationship("PatientDocument", back_populates="patient")


class Event(Base):
    """A scheduled visit and/or prescription for a patient or a whole facility"""

    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint(
            "patient_id IS NOT NULL OR facility_id IS NOT NULL", name="ck_events_target"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    type = Column(String(20), default=EVENT_VISIT, nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=True)  # HH:MM local time, NULL = all day
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=True, index=True)
    facility_id = Column(Integer, ForeignKey("facilities.id"), nullable=True, index=True)
    assignee_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    memo = Column(Text, nullable=True)
    status = Column(String(20), default="draft", nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    report_done = Column(Boolean, default=False, nullable=False)
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurring_interval = Column(Integer, nullable=True)  # days
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient")
    facility = relationship("Facility")
    assignee = relationship("User", foreign_keys=[assignee_id])
    creator = relationship("User", foreign_keys=[created_by])
    reminders = relationship("Reminder", back_populates="event", cascade="all, delete-orphan")

    @property
    def is_facility_event(self) -> bool:
        return self.facility_id is not None and self.patient_id is None


class PatientSummary(Base):
    """Handover summary: what the next visitor must know about a patient"""

    __tablename__ = "patient_summaries"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), unique=True, nullable=False)

    # 1. Key cautions
    caution_medication_refusal = Column(Boolean, default=False, nullable=False)
    caution_understanding_difficulty = Column(Boolean, default=False, nullable=False)
    caution_family_presence_required = Column(Boolean, default=False, nullable=False)
    caution_time_restriction = Column(Boolean, default=False, nullable=False)
    caution_trouble_risk = Column(Boolean, default=False, nullable=False)
    caution_other = Column(Boolean, default=False, nullable=False)
    caution_other_text = Column(String(100), nullable=True)
    # 2. Things never to do
    prohibited_actions = Column(Text, nullable=True)
    # 3. Approach
    approach_type = Column(String(20), nullable=False)
    approach_note = Column(String(100), nullable=True)
    # 4. Contacts
    primary_contact_name = Column(String(100), nullable=False)
    primary_contact_relation = Column(String(50), nullable=False)
    primary_contact_phone = Column(String(30), nullable=False)
    secondary_contact_name = Column(String(100), nullable=True)
    secondary_contact_relation = Column(String(50), nullable=True)
    secondary_contact_phone = Column(String(30), nullable=True)
    # 5. Recent changes
    recent_changes = Column(Text, nullable=False)
    recent_changes_updated_at = Column(DateTime, nullable=True)
    recent_changes_updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    # 6. Free note
    free_note = Column(Text, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    patient = relationship("Patient", back_populates="summary")
    recent_changes_updater = relationship("User", foreign_keys=[recent_changes_updated_by])
    updater = relationship("User", foreign_keys=[updated_by])
    history = relationship(
        "PatientSummaryHistory", back_populates="summary", cascade="all, delete-orphan"
    )


class PatientSummaryHistory(Base):
    __tablename__ = "patient_summary_history"

    id = Column(Integer, primary_key=True, index=True)
    summary_id = Column(Integer, ForeignKey("patient_summaries.id"), nullable=False, index=True)
    snapshot = Column(JSON, nullable=False)  # previous values
    changed_fields = Column(JSON, default=list, nullable=False)
    changed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    changed_at = Column(DateTime, server_default=func.now())

    summary = relationship("PatientSummary", back_populates="history")
    changer = relationship("User")


class PatientDocument(Base):
    __tablename__ = "patient_documents"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False, index=True)
    type = Column(String(20), default="other", nullable=False)
    file_name = Column(String(255), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    storage_path = Column(String(500), nullable=False)  # object key, never a URL
    description = Column(Text, nullable=True)
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    uploaded_at = Column(DateTime, server_default=func.now())

    patient = relationship("Patient", back_populates="documents")
    uploader = relationship("User")


class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", "scheduled_at", name="uq_reminder_slot"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    message = Column(String(500), nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    event = relationship("Event", back_populates="reminders")
    user = relationship("User")


class ReminderSetting(Base):
    __tablename__ = "reminder_settings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    visit_enabled = Column(Boolean, default=True, nullable=False)
    visit_timings = Column(JSON, default=list, nullable=False)
    rx_enabled = Column(Boolean, default=True, nullable=False)
    rx_timings = Column(JSON, default=list, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="reminder_setting")


class IcsToken(Base):
    """Secret for subscribing external calendar apps to the ICS feeds"""

    __tablename__ = "ics_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    token = Column(String(64), unique=True, index=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="ics_token")
