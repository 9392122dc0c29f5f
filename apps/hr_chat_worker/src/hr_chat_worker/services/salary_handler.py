"""Turns salary-classified chat messages into persisted salary drafts."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from hr_chat_worker.application.ports.repositories import (
    AuditLogRepositoryProtocol,
    EmployeeRepositoryProtocol,
    MasterDataRepositoryProtocol,
    SalaryDraftRepositoryProtocol,
    SessionProtocol,
)
from hr_chat_worker.application.schemas.classification import (
    IntentClassification,
    SalaryChangeParams,
)
from hr_chat_worker.db.models.audit_log import AuditLog
from hr_chat_worker.db.models.employee import Employee
from hr_chat_worker.db.models.salary_draft import SalaryDraft, SalaryDraftItem
from hr_chat_worker.domain.effective_date import first_day_of_next_month
from hr_chat_worker.domain.errors import (
    EmployeeNotFoundError,
    SalaryCalculationError,
    TransientInfraError,
)
from hr_chat_worker.domain.salary import (
    AddAllowance,
    MasterData,
    PitchChange,
    SalaryBreakdown,
    SalaryCalculationResult,
)
from hr_chat_worker.domain.services.salary_calculator import (
    apply_mechanical_change,
    build_breakdown,
    find_nearest_pitch,
    generate_discretionary_proposals,
)
from hr_chat_worker.domain.value_objects import (
    AllowanceType,
    AuditEventType,
    ChangeType,
    DraftStatus,
)
from hr_chat_worker.services.audit_recorder import utc_now

logger = logging.getLogger(__name__)

DRAFT_ENTITY_TYPE = "salary_draft"


class SalaryParamExtractorProtocol(Protocol):
    def extract(self, message_text: str) -> SalaryChangeParams: ...


@dataclass(frozen=True, slots=True)
class SalaryHandlingResult:
    """Extracted parameters and the drafts persisted for one chat message."""

    params: SalaryChangeParams
    drafts: list[SalaryDraft]


@dataclass(frozen=True, slots=True)
class _DraftPlan:
    result: SalaryCalculationResult
    reason: str
    applied_rules: dict[str, Any]
    audit_details: dict[str, Any]


class SalaryHandler:
    """Resolves the employee, computes the change and stores drafts atomically."""

    def __init__(
        self,
        *,
        extractor: SalaryParamExtractorProtocol,
        employee_repository: EmployeeRepositoryProtocol,
        master_data_repository: MasterDataRepositoryProtocol,
        salary_draft_repository: SalaryDraftRepositoryProtocol,
        audit_log_repository: AuditLogRepositoryProtocol,
        session: SessionProtocol,
        timezone: ZoneInfo,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._extractor = extractor
        self._employee_repository = employee_repository
        self._master_data_repository = master_data_repository
        self._salary_draft_repository = salary_draft_repository
        self._audit_log_repository = audit_log_repository
        self._session = session
        self._timezone = timezone
        self._clock = clock

    def handle(
        self,
        *,
        chat_message_id: UUID,
        message_text: str,
        intent: IntentClassification,
    ) -> SalaryHandlingResult:
        """Create drafts for one salary instruction.

        Raises:
            TransientInfraError: extraction, a store read or the draft batch
                failed.
            EmployeeNotFoundError: no active employee matches the identifier.
            SalaryCalculationError: the parameters or the master data cannot
                produce a draft.
        """
        params = self._extractor.extract(message_text)

        try:
            employee = self._find_employee(params.employee_identifier)
            current = self._current_breakdown(employee)
            master = self._master_data_repository.load_active()
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise TransientInfraError(
                code="DB_ERROR",
                message=f"Salary reference lookup failed: {exc}",
            ) from exc

        if params.change_type == ChangeType.DISCRETIONARY:
            plans = self._plan_discretionary(
                chat_message_id, employee, current, params, master
            )
        else:
            plans = [
                self._plan_mechanical(
                    chat_message_id, employee, current, params, master
                )
            ]

        drafts = self._persist(
            chat_message_id=chat_message_id,
            employee=employee,
            change_type=params.change_type,
            plans=plans,
            params=params,
            intent=intent,
        )
        logger.info(
            "drafts_created",
            extra={
                "chat_message_id": str(chat_message_id),
                "employee_id": str(employee.id),
                "change_type": params.change_type.value,
                "draft_count": len(drafts),
            },
        )
        return SalaryHandlingResult(params=params, drafts=drafts)

    def _find_employee(self, identifier: str | None) -> Employee:
        if not identifier:
            raise EmployeeNotFoundError(
                message="No employee identifier could be extracted."
            )

        employee = self._employee_repository.get_active_by_employee_number(identifier)
        if employee is None:
            employee = self._employee_repository.get_active_by_name(identifier)
        if employee is None:
            raise EmployeeNotFoundError(details={"employee_identifier": identifier})
        return employee

    def _current_breakdown(self, employee: Employee) -> SalaryBreakdown:
        salary = self._employee_repository.get_current_salary(employee.id)
        if salary is None:
            raise SalaryCalculationError(
                message="Current salary record not found.",
                details={"employee_id": str(employee.id)},
            )
        return build_breakdown(
            salary.base_salary,
            salary.position_allowance,
            salary.region_allowance,
            salary.qualification_allowance,
            salary.other_allowance,
        )

    def _plan_discretionary(
        self,
        chat_message_id: UUID,
        employee: Employee,
        current: SalaryBreakdown,
        params: SalaryChangeParams,
        master: MasterData,
    ) -> list[_DraftPlan]:
        if params.target_salary is None:
            raise SalaryCalculationError(
                message="Discretionary changes require a target salary.",
                details={"employee_id": str(employee.id)},
            )

        proposals = generate_discretionary_proposals(
            current, params.target_salary, master
        )
        if not proposals:
            raise SalaryCalculationError(
                message="No discretionary proposal could be generated.",
                details={
                    "employee_id": str(employee.id),
                    "target_salary": params.target_salary,
                },
            )

        return [
            _DraftPlan(
                result=proposal.result,
                reason=f"{proposal.description} (proposal {proposal.proposal_number})",
                applied_rules={
                    "kind": "discretionary_proposal",
                    "proposal_number": proposal.proposal_number,
                    "target_salary": params.target_salary,
                },
                audit_details={
                    "chat_message_id": str(chat_message_id),
                    "proposal_number": proposal.proposal_number,
                },
            )
            for proposal in proposals
        ]

    def _plan_mechanical(
        self,
        chat_message_id: UUID,
        employee: Employee,
        current: SalaryBreakdown,
        params: SalaryChangeParams,
        master: MasterData,
    ) -> _DraftPlan:
        if params.allowance_type:
            try:
                allowance_type = AllowanceType(params.allowance_type)
            except ValueError as exc:
                raise SalaryCalculationError(
                    message=f"Unknown allowance type: {params.allowance_type}",
                    details={
                        "employee_id": str(employee.id),
                        "allowance_type": params.allowance_type,
                    },
                ) from exc

            allowance = next(
                (
                    entry
                    for entry in master.allowance_master
                    if entry.allowance_type == allowance_type
                ),
                None,
            )
            if allowance is None:
                raise SalaryCalculationError(
                    message=(
                        f"Allowance master has no entry for {allowance_type.value}."
                    ),
                    details={
                        "employee_id": str(employee.id),
                        "allowance_type": allowance_type.value,
                    },
                )
            result = apply_mechanical_change(
                AddAllowance(
                    current=current,
                    allowance_type=allowance_type,
                    allowance_code=allowance.code,
                ),
                master,
            )
            applied_rules: dict[str, Any] = {
                "kind": "add_allowance",
                "allowance_type": allowance_type.value,
                "allowance_code": allowance.code,
            }
        elif params.target_salary is not None:
            pitch = find_nearest_pitch(params.target_salary, master.pitch_table)
            if pitch is None:
                raise SalaryCalculationError(
                    message="Pitch table has no entry to match the target salary.",
                    details={
                        "employee_id": str(employee.id),
                        "target_salary": params.target_salary,
                    },
                )
            result = apply_mechanical_change(
                PitchChange(
                    current=current, new_grade=pitch.grade, new_step=pitch.step
                ),
                master,
            )
            applied_rules = {
                "kind": "pitch_change",
                "grade": pitch.grade,
                "step": pitch.step,
            }
        else:
            raise SalaryCalculationError(
                message=(
                    "Mechanical changes require a target salary"
                    " or an allowance type."
                ),
                details={"employee_id": str(employee.id)},
            )

        return _DraftPlan(
            result=result,
            reason=params.reasoning,
            applied_rules=applied_rules,
            audit_details={"chat_message_id": str(chat_message_id)},
        )

    def _persist(
        self,
        *,
        chat_message_id: UUID,
        employee: Employee,
        change_type: ChangeType,
        plans: list[_DraftPlan],
        params: SalaryChangeParams,
        intent: IntentClassification,
    ) -> list[SalaryDraft]:
        now = self._clock()
        effective_date = first_day_of_next_month(now, self._timezone)

        drafts: list[SalaryDraft] = []
        audit_entries: list[AuditLog] = []
        for plan in plans:
            draft = SalaryDraft(
                id=uuid4(),
                employee_id=employee.id,
                chat_message_id=chat_message_id,
                status=DraftStatus.DRAFT,
                change_type=change_type,
                reason=plan.reason,
                before_base_salary=plan.result.before.base_salary,
                after_base_salary=plan.result.after.base_salary,
                before_total=plan.result.before.total,
                after_total=plan.result.after.total,
                effective_date=effective_date,
                ai_confidence=intent.confidence,
                ai_reasoning=params.reasoning,
                applied_rules=plan.applied_rules,
                created_at=now,
                updated_at=now,
                items=[
                    SalaryDraftItem(
                        position=position,
                        item_type=item.item_type,
                        item_name=item.item_name,
                        before_amount=item.before_amount,
                        after_amount=item.after_amount,
                        is_changed=item.is_changed,
                    )
                    for position, item in enumerate(plan.result.items)
                ],
            )
            drafts.append(draft)
            audit_entries.append(
                AuditLog(
                    event_type=AuditEventType.DRAFT_CREATED,
                    entity_type=DRAFT_ENTITY_TYPE,
                    entity_id=str(draft.id),
                    actor_email=None,
                    actor_role=None,
                    details=plan.audit_details,
                    created_at=now,
                )
            )

        try:
            created = self._salary_draft_repository.add_all(drafts)
            for entry in audit_entries:
                self._audit_log_repository.add(entry)
            self._session.commit()
        except Exception as exc:
            self._session.rollback()
            raise TransientInfraError(
                code="DB_ERROR",
                message=f"Salary draft batch write failed: {exc}",
                details={"chat_message_id": str(chat_message_id)},
            ) from exc
        return created
