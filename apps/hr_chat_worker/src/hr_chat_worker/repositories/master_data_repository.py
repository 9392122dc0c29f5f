"""Reference table lookups for the salary calculation engine."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from hr_chat_worker.db.models.allowance_master import AllowanceMasterEntry
from hr_chat_worker.db.models.pitch_table import PitchTableEntry
from hr_chat_worker.domain.salary import AllowanceEntry, MasterData, PitchEntry


class MasterDataRepository:
    """Loads active pitch table and allowance master rows."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def load_active(self) -> MasterData:
        pitch_statement = (
            select(PitchTableEntry)
            .where(PitchTableEntry.is_active.is_(True))
            .order_by(PitchTableEntry.grade.asc(), PitchTableEntry.step.asc())
        )
        allowance_statement = (
            select(AllowanceMasterEntry)
            .where(AllowanceMasterEntry.is_active.is_(True))
            .order_by(
                AllowanceMasterEntry.allowance_type.asc(),
                AllowanceMasterEntry.code.asc(),
            )
        )
        return MasterData(
            pitch_table=tuple(
                PitchEntry(grade=row.grade, step=row.step, amount=row.amount)
                for row in self._session.scalars(pitch_statement)
            ),
            allowance_master=tuple(
                AllowanceEntry(
                    allowance_type=row.allowance_type,
                    code=row.code,
                    name=row.name,
                    amount=row.amount,
                )
                for row in self._session.scalars(allowance_statement)
            ),
        )
