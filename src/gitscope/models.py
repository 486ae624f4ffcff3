"""SQLModel tables persisting project classes, bindings, and trusted values.

Configuration values are stored as JSON text.  Only JSON-representable
values can be persisted; callables (custom completion) cannot.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class ProjectClassRecord(SQLModel, table=True):
    """A persisted project class — ``gitscope_classes``."""

    __tablename__ = "gitscope_classes"

    name: str = Field(primary_key=True)
    variables: str = Field(default="{}")
    file_kind_overrides: str = Field(default="{}")
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),
    )


class ProjectBindingRecord(SQLModel, table=True):
    """A persisted directory binding — ``gitscope_bindings``."""

    __tablename__ = "gitscope_bindings"

    path: str = Field(primary_key=True)
    class_name: str = Field(index=True)
    overrides: str = Field(default="{}")
    file_kind_overrides: str = Field(default="{}")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),
    )


class TrustedValueRecord(SQLModel, table=True):
    """A persisted trust-list entry — ``gitscope_trusted``."""

    __tablename__ = "gitscope_trusted"

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    directory: str = Field(index=True)
    variable: str = Field(default="")
    value: str = Field(default="null")
