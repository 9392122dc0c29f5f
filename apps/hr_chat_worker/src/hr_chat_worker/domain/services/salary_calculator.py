"""Deterministic salary calculation rules.

Model-extracted values enter here already structured; every amount below is
computed by plain integer arithmetic against the reference tables.
"""

from __future__ import annotations

from collections.abc import Sequence

from hr_chat_worker.domain.errors import SalaryCalculationError
from hr_chat_worker.domain.money import format_signed_yen, format_yen
from hr_chat_worker.domain.salary import (
    AddAllowance,
    MasterData,
    MechanicalChange,
    PitchChange,
    PitchEntry,
    RemoveAllowance,
    SalaryBreakdown,
    SalaryCalculationResult,
    SalaryChangeItem,
    SalaryProposal,
)
from hr_chat_worker.domain.value_objects import (
    AllowanceType,
    ChangeType,
    SalaryItemType,
)

MAX_DISCRETIONARY_PROPOSALS = 3

_BREAKDOWN_FIELDS: tuple[tuple[SalaryItemType, str, str], ...] = (
    (SalaryItemType.BASE_SALARY, "Base salary", "base_salary"),
    (SalaryItemType.POSITION_ALLOWANCE, "Position allowance", "position_allowance"),
    (SalaryItemType.REGION_ALLOWANCE, "Region allowance", "region_allowance"),
    (
        SalaryItemType.QUALIFICATION_ALLOWANCE,
        "Qualification allowance",
        "qualification_allowance",
    ),
    (SalaryItemType.OTHER_ALLOWANCE, "Other allowance", "other_allowance"),
)


def build_breakdown(
    base_salary: int,
    position_allowance: int,
    region_allowance: int,
    qualification_allowance: int,
    other_allowance: int,
) -> SalaryBreakdown:
    """Assemble a breakdown; its total is always derived from the components."""
    return SalaryBreakdown(
        base_salary=base_salary,
        position_allowance=position_allowance,
        region_allowance=region_allowance,
        qualification_allowance=qualification_allowance,
        other_allowance=other_allowance,
    )


def to_change_items(
    before: SalaryBreakdown, after: SalaryBreakdown
) -> tuple[SalaryChangeItem, ...]:
    """Return one change item per component, changed or not."""
    items: list[SalaryChangeItem] = []
    for item_type, item_name, attribute in _BREAKDOWN_FIELDS:
        before_amount = getattr(before, attribute)
        after_amount = getattr(after, attribute)
        items.append(
            SalaryChangeItem(
                item_type=item_type,
                item_name=item_name,
                before_amount=before_amount,
                after_amount=after_amount,
                is_changed=before_amount != after_amount,
            )
        )
    return tuple(items)


def _with_allowance(
    current: SalaryBreakdown, allowance_type: AllowanceType, amount: int
) -> SalaryBreakdown:
    return build_breakdown(
        current.base_salary,
        amount
        if allowance_type == AllowanceType.POSITION
        else current.position_allowance,
        amount if allowance_type == AllowanceType.REGION else current.region_allowance,
        amount
        if allowance_type == AllowanceType.QUALIFICATION
        else current.qualification_allowance,
        current.other_allowance,
    )


def apply_mechanical_change(
    change: MechanicalChange, master: MasterData
) -> SalaryCalculationResult:
    """Apply a table-driven change and return the before/after comparison.

    Raises:
        SalaryCalculationError: the pitch ``(grade, step)`` or the allowance
            ``(type, code)`` pair is missing from the master data.
    """
    before = change.current

    if isinstance(change, PitchChange):
        pitch = next(
            (
                entry
                for entry in master.pitch_table
                if entry.grade == change.new_grade and entry.step == change.new_step
            ),
            None,
        )
        if pitch is None:
            raise SalaryCalculationError(
                message=(
                    f"Pitch entry not found: grade={change.new_grade}, "
                    f"step={change.new_step}"
                ),
                details={"grade": change.new_grade, "step": change.new_step},
            )
        after = build_breakdown(
            pitch.amount,
            before.position_allowance,
            before.region_allowance,
            before.qualification_allowance,
            before.other_allowance,
        )
    elif isinstance(change, AddAllowance):
        allowance = next(
            (
                entry
                for entry in master.allowance_master
                if entry.allowance_type == change.allowance_type
                and entry.code == change.allowance_code
            ),
            None,
        )
        if allowance is None:
            raise SalaryCalculationError(
                message=(
                    f"Allowance not found: type={change.allowance_type.value}, "
                    f"code={change.allowance_code}"
                ),
                details={
                    "allowance_type": change.allowance_type.value,
                    "allowance_code": change.allowance_code,
                },
            )
        after = _with_allowance(before, change.allowance_type, allowance.amount)
    elif isinstance(change, RemoveAllowance):
        after = _with_allowance(before, change.allowance_type, 0)
    else:
        raise TypeError(f"Unsupported mechanical change: {type(change).__name__}")

    return SalaryCalculationResult(
        change_type=ChangeType.MECHANICAL,
        before=before,
        after=after,
        items=to_change_items(before, after),
    )


def find_nearest_pitch(
    target_amount: int, pitch_table: Sequence[PitchEntry]
) -> PitchEntry | None:
    """Return the pitch entry closest to ``target_amount``; the first one wins ties."""
    nearest: PitchEntry | None = None
    for entry in pitch_table:
        if nearest is None or abs(entry.amount - target_amount) < abs(
            nearest.amount - target_amount
        ):
            nearest = entry
    return nearest


def generate_discretionary_proposals(
    current: SalaryBreakdown, target_total: int, master: MasterData
) -> list[SalaryProposal]:
    """Propose up to three base-salary candidates closest to the target total.

    Only the base salary moves; every allowance stays at its current value.
    An empty pitch table yields no proposals.
    """
    target_base = target_total - current.allowances_total
    ranked = sorted(
        master.pitch_table, key=lambda entry: abs(entry.amount - target_base)
    )

    seen_amounts: set[int] = set()
    candidates: list[PitchEntry] = []
    for entry in ranked:
        if entry.amount in seen_amounts:
            continue
        seen_amounts.add(entry.amount)
        candidates.append(entry)
        if len(candidates) == MAX_DISCRETIONARY_PROPOSALS:
            break

    proposals: list[SalaryProposal] = []
    for index, entry in enumerate(candidates, start=1):
        after = build_breakdown(
            entry.amount,
            current.position_allowance,
            current.region_allowance,
            current.qualification_allowance,
            current.other_allowance,
        )
        description = (
            f"Proposal {index}: base salary {format_yen(entry.amount)} "
            f"(grade {entry.grade}/step {entry.step}) -> "
            f"total {format_yen(after.total)} "
            f"({format_signed_yen(after.total - current.total)})"
        )
        proposals.append(
            SalaryProposal(
                proposal_number=index,
                description=description,
                result=SalaryCalculationResult(
                    change_type=ChangeType.DISCRETIONARY,
                    before=current,
                    after=after,
                    items=to_change_items(current, after),
                ),
            )
        )
    return proposals
