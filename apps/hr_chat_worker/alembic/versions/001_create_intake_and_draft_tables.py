"""Create chat intake, HR master data and salary draft tables."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001_create_intake_and_draft_tables"
down_revision = None
branch_labels = None
depends_on = None


def _enum(name: str, *values: str) -> postgresql.ENUM:
    return postgresql.ENUM(*values, name=name, create_type=False)


chat_category_enum = _enum(
    "chat_category",
    "salary",
    "retirement",
    "hiring",
    "contract",
    "transfer",
    "foreigner",
    "training",
    "health_check",
    "attendance",
    "other",
)
classification_method_enum = _enum("classification_method", "ai", "regex", "manual")
allowance_type_enum = _enum("allowance_type", "position", "region", "qualification")
draft_status_enum = _enum(
    "draft_status",
    "draft",
    "reviewed",
    "pending_ceo_approval",
    "approved",
    "processing",
    "completed",
    "rejected",
    "failed",
)
change_type_enum = _enum("change_type", "mechanical", "discretionary")
salary_item_type_enum = _enum(
    "salary_item_type",
    "base_salary",
    "position_allowance",
    "region_allowance",
    "qualification_allowance",
    "other_allowance",
)
approval_action_enum = _enum("approval_action", "reviewed", "approved", "rejected")
actor_role_enum = _enum("actor_role", "hr_staff", "hr_manager", "ceo", "system")
audit_event_type_enum = _enum(
    "audit_event_type",
    "chat_received",
    "intent_classified",
    "draft_created",
    "status_changed",
)

ENUMS = (
    chat_category_enum,
    classification_method_enum,
    allowance_type_enum,
    draft_status_enum,
    change_type_enum,
    salary_item_type_enum,
    approval_action_enum,
    actor_role_enum,
    audit_event_type_enum,
)


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False
    )


def upgrade() -> None:
    """Apply schema upgrades."""
    bind = op.get_bind()
    for enum_type in ENUMS:
        postgresql.ENUM(*enum_type.enums, name=enum_type.name).create(
            bind, checkfirst=True
        )

    op.create_table(
        "chat_messages",
        _uuid_pk(),
        sa.Column("space_name", sa.String(length=120), nullable=False),
        sa.Column("google_message_id", sa.String(length=255), nullable=False),
        sa.Column("sender_user_id", sa.String(length=120), nullable=False),
        sa.Column("sender_name", sa.String(length=255), nullable=False),
        sa.Column("sender_type", sa.String(length=16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("formatted_content", sa.Text(), nullable=True),
        sa.Column("message_type", sa.String(length=16), nullable=False),
        sa.Column("thread_name", sa.String(length=255), nullable=True),
        sa.Column("parent_message_id", sa.String(length=255), nullable=True),
        sa.Column("mentioned_users", postgresql.JSONB(), nullable=False),
        sa.Column("annotations", postgresql.JSONB(), nullable=False),
        sa.Column("attachments", postgresql.JSONB(), nullable=False),
        sa.Column("is_edited", sa.Boolean(), nullable=False),
        sa.Column("is_deleted", sa.Boolean(), nullable=False),
        sa.Column("raw_payload", postgresql.JSONB(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_chat_messages_google_message_id",
        "chat_messages",
        ["google_message_id"],
        unique=False,
    )
    op.create_index(
        "ix_chat_messages_thread_name_created_at",
        "chat_messages",
        ["thread_name", "created_at"],
        unique=False,
    )

    op.create_table(
        "intent_records",
        _uuid_pk(),
        sa.Column(
            "chat_message_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("chat_messages.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("category", chat_category_enum, nullable=False),
        sa.Column("confidence_score", sa.Float(), nullable=False),
        sa.Column("classification_method", classification_method_enum, nullable=False),
        sa.Column("regex_pattern", sa.String(length=64), nullable=True),
        sa.Column("llm_input", sa.Text(), nullable=True),
        sa.Column("llm_output", sa.Text(), nullable=True),
        sa.Column("extracted_params", postgresql.JSONB(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    )
    op.create_index(
        "ix_intent_records_chat_message_id",
        "intent_records",
        ["chat_message_id"],
        unique=False,
    )

    op.create_table(
        "employees",
        _uuid_pk(),
        sa.Column("employee_number", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("employment_type", sa.String(length=32), nullable=False),
        sa.Column("department", sa.String(length=120), nullable=False),
        sa.Column("position", sa.String(length=120), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.UniqueConstraint("employee_number", name="uq_employees_employee_number"),
    )
    op.create_index("ix_employees_name", "employees", ["name"], unique=False)

    op.create_table(
        "salaries",
        _uuid_pk(),
        sa.Column(
            "employee_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("employees.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("base_salary", sa.Integer(), nullable=False),
        sa.Column("position_allowance", sa.Integer(), nullable=False),
        sa.Column("region_allowance", sa.Integer(), nullable=False),
        sa.Column("qualification_allowance", sa.Integer(), nullable=False),
        sa.Column("other_allowance", sa.Integer(), nullable=False),
        sa.Column("total_salary", sa.Integer(), nullable=False),
        sa.Column("effective_from", sa.Date(), nullable=False),
        sa.Column("effective_to", sa.Date(), nullable=True),
        sa.CheckConstraint(
            "total_salary = base_salary + position_allowance + region_allowance"
            " + qualification_allowance + other_allowance",
            name="ck_salaries_total_matches_components",
        ),
    )
    op.create_index(
        "ix_salaries_employee_id", "salaries", ["employee_id"], unique=False
    )

    op.create_table(
        "pitch_tables",
        _uuid_pk(),
        sa.Column("grade", sa.Integer(), nullable=False),
        sa.Column("step", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.UniqueConstraint("grade", "step", name="uq_pitch_tables_grade_step"),
    )

    op.create_table(
        "allowance_masters",
        _uuid_pk(),
        sa.Column("allowance_type", allowance_type_enum, nullable=False),
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")
        ),
        sa.UniqueConstraint(
            "allowance_type", "code", name="uq_allowance_masters_type_code"
        ),
    )

    op.create_table(
        "salary_drafts",
        _uuid_pk(),
        sa.Column(
            "employee_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("employees.id"),
            nullable=False,
        ),
        sa.Column(
            "chat_message_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("chat_messages.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("status", draft_status_enum, nullable=False),
        sa.Column("change_type", change_type_enum, nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("before_base_salary", sa.Integer(), nullable=False),
        sa.Column("after_base_salary", sa.Integer(), nullable=False),
        sa.Column("before_total", sa.Integer(), nullable=False),
        sa.Column("after_total", sa.Integer(), nullable=False),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("ai_confidence", sa.Float(), nullable=True),
        sa.Column("ai_reasoning", sa.Text(), nullable=True),
        sa.Column("applied_rules", postgresql.JSONB(), nullable=True),
        sa.Column("reviewed_by", sa.String(length=255), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", sa.String(length=255), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_salary_drafts_employee_id", "salary_drafts", ["employee_id"], unique=False
    )
    op.create_index("ix_salary_drafts_status", "salary_drafts", ["status"], unique=False)
    op.create_index(
        "ix_salary_drafts_chat_message_id",
        "salary_drafts",
        ["chat_message_id"],
        unique=False,
    )

    op.create_table(
        "salary_draft_items",
        _uuid_pk(),
        sa.Column(
            "draft_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("salary_drafts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("item_type", salary_item_type_enum, nullable=False),
        sa.Column("item_name", sa.String(length=120), nullable=False),
        sa.Column("before_amount", sa.Integer(), nullable=False),
        sa.Column("after_amount", sa.Integer(), nullable=False),
        sa.Column("is_changed", sa.Boolean(), nullable=False),
    )
    op.create_index(
        "ix_salary_draft_items_draft_id",
        "salary_draft_items",
        ["draft_id"],
        unique=False,
    )

    op.create_table(
        "approval_logs",
        _uuid_pk(),
        sa.Column(
            "draft_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("salary_drafts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action", approval_action_enum, nullable=False),
        sa.Column("from_status", draft_status_enum, nullable=False),
        sa.Column("to_status", draft_status_enum, nullable=False),
        sa.Column("actor_email", sa.String(length=255), nullable=False),
        sa.Column("actor_role", actor_role_enum, nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_approval_logs_draft_id", "approval_logs", ["draft_id"], unique=False
    )

    op.create_table(
        "audit_logs",
        _uuid_pk(),
        sa.Column("event_type", audit_event_type_enum, nullable=False),
        sa.Column("entity_type", sa.String(length=64), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("actor_email", sa.String(length=255), nullable=True),
        sa.Column("actor_role", actor_role_enum, nullable=True),
        sa.Column("details", postgresql.JSONB(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_audit_logs_entity",
        "audit_logs",
        ["entity_type", "entity_id"],
        unique=False,
    )


def downgrade() -> None:
    """Revert schema upgrades."""
    op.drop_index("ix_audit_logs_entity", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_approval_logs_draft_id", table_name="approval_logs")
    op.drop_table("approval_logs")
    op.drop_index("ix_salary_draft_items_draft_id", table_name="salary_draft_items")
    op.drop_table("salary_draft_items")
    op.drop_index("ix_salary_drafts_chat_message_id", table_name="salary_drafts")
    op.drop_index("ix_salary_drafts_status", table_name="salary_drafts")
    op.drop_index("ix_salary_drafts_employee_id", table_name="salary_drafts")
    op.drop_table("salary_drafts")
    op.drop_table("allowance_masters")
    op.drop_table("pitch_tables")
    op.drop_index("ix_salaries_employee_id", table_name="salaries")
    op.drop_table("salaries")
    op.drop_index("ix_employees_name", table_name="employees")
    op.drop_table("employees")
    op.drop_index("ix_intent_records_chat_message_id", table_name="intent_records")
    op.drop_table("intent_records")
    op.drop_index(
        "ix_chat_messages_thread_name_created_at", table_name="chat_messages"
    )
    op.drop_index("ix_chat_messages_google_message_id", table_name="chat_messages")
    op.drop_table("chat_messages")

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        postgresql.ENUM(name=enum_type.name).drop(bind, checkfirst=True)
