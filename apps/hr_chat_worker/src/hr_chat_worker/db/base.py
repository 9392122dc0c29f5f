"""SQLAlchemy base metadata and model registration utilities."""

import enum
from importlib import import_module

from sqlalchemy import Enum
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for ORM models."""


def enum_column_type(enum_cls: type[enum.Enum], name: str) -> Enum:
    """Enum column type persisting member values instead of member names."""

    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


def import_orm_models() -> None:
    """Import ORM models so metadata is fully populated."""

    modules = (
        "hr_chat_worker.db.models.chat_message",
        "hr_chat_worker.db.models.intent_record",
        "hr_chat_worker.db.models.employee",
        "hr_chat_worker.db.models.salary",
        "hr_chat_worker.db.models.pitch_table",
        "hr_chat_worker.db.models.allowance_master",
        "hr_chat_worker.db.models.salary_draft",
        "hr_chat_worker.db.models.approval_log",
        "hr_chat_worker.db.models.audit_log",
    )
    for module_name in modules:
        import_module(module_name)
