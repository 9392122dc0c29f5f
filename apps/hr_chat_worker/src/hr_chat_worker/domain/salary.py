"""Value types used by the salary calculation engine.

All amounts are integer yen. Nothing in here talks to a store or a model;
master data is injected by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from hr_chat_worker.domain.value_objects import (
    AllowanceType,
    ChangeType,
    SalaryItemType,
)


@dataclass(frozen=True, slots=True)
class SalaryBreakdown:
    """Monthly salary split into its five components."""

    base_salary: int
    position_allowance: int
    region_allowance: int
    qualification_allowance: int
    other_allowance: int

    @property
    def total(self) -> int:
        return (
            self.base_salary
            + self.position_allowance
            + self.region_allowance
            + self.qualification_allowance
            + self.other_allowance
        )

    @property
    def allowances_total(self) -> int:
        """Sum of every component except the base salary."""
        return self.total - self.base_salary


@dataclass(frozen=True, slots=True)
class SalaryChangeItem:
    """Before/after comparison of one salary component."""

    item_type: SalaryItemType
    item_name: str
    before_amount: int
    after_amount: int
    is_changed: bool


@dataclass(frozen=True, slots=True)
class PitchEntry:
    grade: int
    step: int
    amount: int


@dataclass(frozen=True, slots=True)
class AllowanceEntry:
    allowance_type: AllowanceType
    code: str
    name: str
    amount: int


@dataclass(frozen=True, slots=True)
class MasterData:
    """Reference tables required by the calculation engine."""

    pitch_table: tuple[PitchEntry, ...] = ()
    allowance_master: tuple[AllowanceEntry, ...] = ()


@dataclass(frozen=True, slots=True)
class PitchChange:
    current: SalaryBreakdown
    new_grade: int
    new_step: int


@dataclass(frozen=True, slots=True)
class AddAllowance:
    current: SalaryBreakdown
    allowance_type: AllowanceType
    allowance_code: str


@dataclass(frozen=True, slots=True)
class RemoveAllowance:
    current: SalaryBreakdown
    allowance_type: AllowanceType


MechanicalChange = PitchChange | AddAllowance | RemoveAllowance


@dataclass(frozen=True, slots=True)
class SalaryCalculationResult:
    change_type: ChangeType
    before: SalaryBreakdown
    after: SalaryBreakdown
    items: tuple[SalaryChangeItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class SalaryProposal:
    """One candidate of a discretionary change, numbered from 1."""

    proposal_number: int
    description: str
    result: SalaryCalculationResult
