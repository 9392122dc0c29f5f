"""ORM models for the hr_chat_worker domain."""

from hr_chat_worker.db.models.allowance_master import AllowanceMasterEntry
from hr_chat_worker.db.models.approval_log import ApprovalLog
from hr_chat_worker.db.models.audit_log import AuditLog
from hr_chat_worker.db.models.chat_message import ChatMessage
from hr_chat_worker.db.models.employee import Employee
from hr_chat_worker.db.models.intent_record import IntentRecord
from hr_chat_worker.db.models.pitch_table import PitchTableEntry
from hr_chat_worker.db.models.salary import Salary
from hr_chat_worker.db.models.salary_draft import SalaryDraft, SalaryDraftItem

__all__ = [
    "AllowanceMasterEntry",
    "ApprovalLog",
    "AuditLog",
    "ChatMessage",
    "Employee",
    "IntentRecord",
    "PitchTableEntry",
    "Salary",
    "SalaryDraft",
    "SalaryDraftItem",
]
