from __future__ import annotations

import json
from collections.abc import Generator
from dataclasses import dataclass, field
from datetime import date
from typing import Any
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from hr_chat_worker.api.app import create_app
from hr_chat_worker.api.dependencies import get_chat_api_client, get_openai_client
from hr_chat_worker.db.base import Base, import_orm_models
from hr_chat_worker.db.models.allowance_master import AllowanceMasterEntry
from hr_chat_worker.db.models.employee import Employee
from hr_chat_worker.db.models.pitch_table import PitchTableEntry
from hr_chat_worker.db.models.salary import Salary
from hr_chat_worker.db.session import create_session_factory, get_db_session
from hr_chat_worker.domain.value_objects import AllowanceType

PITCH_AMOUNTS: tuple[tuple[int, int, int], ...] = (
    (1, 1, 240_000),
    (1, 2, 247_000),
    (2, 1, 255_000),
    (2, 2, 263_000),
    (3, 1, 270_000),
    (3, 2, 280_000),
    (4, 1, 290_000),
)


@dataclass
class FakeChatApiClient:
    messages: dict[str, dict[str, Any] | None] = field(default_factory=dict)
    members: dict[str, dict[str, Any] | None] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def get_message(self, message_name: str) -> dict[str, Any] | None:
        self.calls.append(message_name)
        return self.messages.get(message_name)

    def get_member(self, member_name: str) -> dict[str, Any] | None:
        self.calls.append(member_name)
        return self.members.get(member_name)


@dataclass
class ScriptedOpenAIClient:
    """Answers each strict-schema request with the payload queued for its name."""

    payloads: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[dict[str, Any]] = field(default_factory=list)
    error: Exception | None = None

    def responses_create(self, **kwargs: Any) -> dict[str, Any]:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        schema_name = kwargs["text"]["format"]["name"]
        return {
            "output": [
                {
                    "type": "message",
                    "content": [
                        {
                            "type": "output_text",
                            "text": json.dumps(self.payloads[schema_name]),
                        }
                    ],
                }
            ]
        }

    def schema_names(self) -> list[str]:
        return [call["text"]["format"]["name"] for call in self.calls]


def seed_employee_with_salary(session: Session) -> UUID:
    employee = Employee(
        employee_number="E001",
        name="田中太郎",
        employment_type="full_time",
        department="Care",
        position="Staff",
        is_active=True,
    )
    session.add(employee)
    session.flush()
    session.add(
        Salary(
            employee_id=employee.id,
            base_salary=247_000,
            position_allowance=20_000,
            region_allowance=0,
            qualification_allowance=0,
            other_allowance=0,
            total_salary=267_000,
            effective_from=date(2024, 4, 1),
            effective_to=None,
        )
    )
    session.commit()
    return employee.id


def seed_master_data(session: Session) -> None:
    session.add_all(
        [
            PitchTableEntry(grade=grade, step=step, amount=amount, is_active=True)
            for grade, step, amount in PITCH_AMOUNTS
        ]
    )
    session.add_all(
        [
            AllowanceMasterEntry(
                allowance_type=AllowanceType.QUALIFICATION,
                code="CARE_WORKER",
                name="Certified care worker",
                amount=10_000,
                is_active=True,
            ),
            AllowanceMasterEntry(
                allowance_type=AllowanceType.POSITION,
                code="LEADER",
                name="Team leader",
                amount=30_000,
                is_active=True,
            ),
        ]
    )
    session.commit()


@pytest.fixture
def sqlite_session_factory() -> Generator[sessionmaker[Session], None, None]:
    import_orm_models()
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    factory = create_session_factory(engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(engine)


@pytest.fixture
def chat_api_client() -> FakeChatApiClient:
    return FakeChatApiClient()


@pytest.fixture
def openai_client() -> ScriptedOpenAIClient:
    return ScriptedOpenAIClient()


@pytest.fixture
def client(
    sqlite_session_factory: sessionmaker[Session],
    chat_api_client: FakeChatApiClient,
    openai_client: ScriptedOpenAIClient,
) -> Generator[TestClient, None, None]:
    app = create_app()

    def override_get_db_session() -> Generator[Session, None, None]:
        with sqlite_session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_chat_api_client] = lambda: chat_api_client
    app.dependency_overrides[get_openai_client] = lambda: openai_client
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seeded_employee_id(sqlite_session_factory: sessionmaker[Session]) -> UUID:
    with sqlite_session_factory() as session:
        employee_id = seed_employee_with_salary(session)
        seed_master_data(session)
    return employee_id
