from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .constants import PROJECT_STATUS_ACTIVE, project_status_label
from .extensions import BaseModel, db, login_manager
from .security import LoginUser


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )


custom_fields_projects = db.Table(
    "custom_fields_projects",
    db.Column(
        "custom_field_id",
        Integer,
        ForeignKey("custom_fields.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    db.Column(
        "project_id",
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class User(BaseModel, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_admin: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class CustomField(BaseModel, TimestampMixin):
    """A named, typed field attachable to projects.

    Names are not unique; administrators can create duplicates and lookups by
    name have to cope with that.
    """

    __tablename__ = "custom_fields"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    field_format: Mapped[str] = mapped_column(
        String(30), nullable=False, default="string"
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    possible_values: Mapped[list[str]] = mapped_column(
        db.JSON, default=list, nullable=False
    )
    is_for_all: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    position: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    projects: Mapped[list["Project"]] = relationship(
        "Project", secondary=custom_fields_projects, back_populates="custom_fields"
    )
    values: Mapped[list["CustomValue"]] = relationship(
        "CustomValue", back_populates="custom_field", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<CustomField {self.id} {self.name!r}>"


class Project(BaseModel, TimestampMixin):
    __tablename__ = "projects"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    identifier: Mapped[str] = mapped_column(
        String(100), nullable=False, unique=True, index=True
    )
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[int] = mapped_column(
        Integer, default=PROJECT_STATUS_ACTIVE, nullable=False
    )

    issues: Mapped[list["Issue"]] = relationship(
        "Issue",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Issue.id",
    )
    custom_values: Mapped[list["CustomValue"]] = relationship(
        "CustomValue", back_populates="project", cascade="all, delete-orphan"
    )
    custom_fields: Mapped[list["CustomField"]] = relationship(
        "CustomField", secondary=custom_fields_projects, back_populates="projects"
    )

    @property
    def status_label(self) -> str:
        return project_status_label(self.status)

    def available_custom_fields(self) -> list[CustomField]:
        """Fields that apply to this project: global ones plus explicit links."""
        linked = {field.id for field in self.custom_fields}
        fields = CustomField.query.order_by(CustomField.position, CustomField.id).all()
        return [field for field in fields if field.is_for_all or field.id in linked]

    def applicable_field_ids(self) -> set[int]:
        global_ids = {
            field_id
            for (field_id,) in CustomField.query.with_entities(CustomField.id).filter_by(
                is_for_all=True
            )
        }
        return global_ids | {field.id for field in self.custom_fields}

    def custom_value_for(self, field_id: int) -> Optional["CustomValue"]:
        for custom_value in self.custom_values:
            if custom_value.custom_field_id == field_id:
                return custom_value
        return None

    def custom_field_value(
        self, field_id: int, applicable_ids: Optional[set[int]] = None
    ) -> Optional[str]:
        """Stored value for ``field_id``.

        When ``applicable_ids`` is given, values left behind by a field that no
        longer applies to the project read as None.
        """
        if applicable_ids is not None and field_id not in applicable_ids:
            return None
        custom_value = self.custom_value_for(field_id)
        return custom_value.value if custom_value else None

    def set_custom_field_value(
        self,
        field_id: int,
        value: Optional[str],
        applicable_ids: Optional[set[int]] = None,
    ) -> bool:
        """Store ``value`` for ``field_id``; returns False if the field does not apply."""
        if applicable_ids is None:
            applicable_ids = self.applicable_field_ids()
        if field_id not in applicable_ids:
            return False
        custom_value = self.custom_value_for(field_id)
        if custom_value is None:
            self.custom_values.append(
                CustomValue(custom_field_id=field_id, value=value)
            )
        else:
            custom_value.value = value
        return True


class CustomValue(BaseModel):
    __tablename__ = "custom_values"
    __table_args__ = (
        UniqueConstraint(
            "project_id", "custom_field_id", name="uq_custom_value_project_field"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    custom_field_id: Mapped[int] = mapped_column(
        ForeignKey("custom_fields.id", ondelete="CASCADE"), nullable=False
    )
    value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    project: Mapped["Project"] = relationship(
        "Project", back_populates="custom_values"
    )
    custom_field: Mapped["CustomField"] = relationship(
        "CustomField", back_populates="values"
    )


class Issue(BaseModel, TimestampMixin):
    __tablename__ = "issues"

    id: Mapped[int] = mapped_column(primary_key=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    estimated_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    project: Mapped["Project"] = relationship("Project", back_populates="issues")
    time_entries: Mapped[list["TimeEntry"]] = relationship(
        "TimeEntry",
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by="TimeEntry.id",
    )

    @property
    def spent_hours(self) -> Optional[float]:
        """Total logged hours, or None when nothing has been logged yet."""
        if not self.time_entries:
            return None
        return sum(entry.hours or 0.0 for entry in self.time_entries)


class TimeEntry(BaseModel, TimestampMixin):
    __tablename__ = "time_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    issue_id: Mapped[int] = mapped_column(
        ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    hours: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    spent_on: Mapped[date] = mapped_column(Date, nullable=False)
    comments: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    issue: Mapped["Issue"] = relationship("Issue", back_populates="time_entries")


@login_manager.user_loader
def load_user(user_id: str) -> Optional[LoginUser]:
    user = db.session.get(User, int(user_id))
    return LoginUser(user) if user else None
