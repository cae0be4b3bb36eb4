"""Create the care schema.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_ROLES = ("patient", "caregiver", "admin")

# Tables scoped by patient_id, in creation order
_PATIENT_TABLES = (
    "tasks",
    "medications",
    "medication_logs",
    "mood_entries",
    "memories",
    "care_team_members",
    "appointments",
    "patient_notes",
    "caregiver_patients",
)


def _id() -> sa.Column:
    return sa.Column("id", sa.UUID(), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        server_default=sa.text("now()"),
        nullable=False,
    )


def _patient_fk() -> sa.Column:
    return sa.Column(
        "patient_id",
        sa.UUID(),
        sa.ForeignKey("patients.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    user_role = postgresql.ENUM(*_ROLES, name="userrole")
    user_role.create(op.get_bind())

    op.create_table(
        "profiles",
        _id(),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column(
            "role",
            postgresql.ENUM(*_ROLES, name="userrole", create_type=False),
            nullable=False,
            server_default="patient",
        ),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_profiles_email"), "profiles", ["email"], unique=True)
    op.create_index(op.f("ix_profiles_role"), "profiles", ["role"])

    op.create_table(
        "patients",
        sa.Column(
            "id",
            sa.UUID(),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("preferred_name", sa.String(length=100), nullable=True),
        sa.Column("date_of_birth", sa.String(length=10), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("affirmation", sa.Text(), nullable=True),
        sa.Column("diagnosis_date", sa.String(length=10), nullable=True),
        sa.Column("dementia_stage", sa.String(length=10), nullable=True),
        sa.Column("emergency_contact_name", sa.String(length=100), nullable=True),
        sa.Column("emergency_contact_relationship", sa.String(length=50), nullable=True),
        sa.Column("emergency_contact_phone", sa.String(length=30), nullable=True),
        sa.Column("emergency_contact_email", sa.String(length=255), nullable=True),
        sa.Column("preferences_language", sa.String(length=10), nullable=True),
        sa.Column("preferences_font_size", sa.String(length=20), nullable=True),
        sa.Column("preferences_high_contrast", sa.Boolean(), nullable=True),
        sa.Column("preferences_audio_enabled", sa.Boolean(), nullable=True),
        sa.Column("preferences_notifications_enabled", sa.Boolean(), nullable=True),
        sa.Column("preferences_tone", sa.String(length=20), nullable=True),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "tasks",
        _id(),
        _patient_fk(),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(length=50), nullable=True),
        sa.Column("time_of_day", sa.String(length=20), nullable=True),
        sa.Column("scheduled_time", sa.String(length=10), nullable=True),
        sa.Column("days_of_week", postgresql.ARRAY(sa.Integer()), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("completed_at", sa.String(length=40), nullable=True),
        sa.Column("is_recurring", sa.Boolean(), nullable=True, server_default="true"),
        sa.Column("difficulty", sa.String(length=20), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True, server_default="true"),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tasks_is_active"), "tasks", ["is_active"])

    op.create_table(
        "medications",
        _id(),
        _patient_fk(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("generic_name", sa.String(length=200), nullable=True),
        sa.Column("dosage", sa.String(length=100), nullable=True),
        sa.Column("form", sa.String(length=50), nullable=True),
        sa.Column("instructions", sa.Text(), nullable=True),
        sa.Column("prescribed_by", sa.String(length=200), nullable=True),
        sa.Column("prescription_date", sa.String(length=10), nullable=True),
        sa.Column("side_effects", postgresql.ARRAY(sa.String(length=200)), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True, server_default="true"),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_medications_is_active"), "medications", ["is_active"])

    op.create_table(
        "medication_logs",
        _id(),
        sa.Column(
            "medication_id",
            sa.UUID(),
            sa.ForeignKey("medications.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _patient_fk(),
        sa.Column("scheduled_time", sa.String(length=10), nullable=True),
        sa.Column("taken_time", sa.String(length=40), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("recorded_by", sa.String(length=100), nullable=True),
        sa.Column("date", sa.String(length=10), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_medication_logs_date"), "medication_logs", ["date"])

    op.create_table(
        "mood_entries",
        _id(),
        _patient_fk(),
        sa.Column("mood", sa.String(length=30), nullable=False),
        sa.Column("intensity", sa.Integer(), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("triggers", postgresql.ARRAY(sa.String(length=100)), nullable=True),
        sa.Column("time_of_day", sa.String(length=20), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("recorded_by", sa.String(length=100), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_mood_entries_timestamp"), "mood_entries", ["timestamp"])

    op.create_table(
        "memories",
        _id(),
        _patient_fk(),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("audio_url", sa.Text(), nullable=True),
        sa.Column("date", sa.String(length=10), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("people", postgresql.ARRAY(sa.String(length=100)), nullable=True),
        sa.Column("category", sa.String(length=50), nullable=True),
        sa.Column("tags", postgresql.ARRAY(sa.String(length=50)), nullable=True),
        sa.Column("is_favorite", sa.Boolean(), nullable=True, server_default="false"),
        sa.Column("created_by", sa.String(length=100), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "care_team_members",
        _id(),
        _patient_fk(),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("role", sa.String(length=100), nullable=True),
        sa.Column("specialty", sa.String(length=100), nullable=True),
        sa.Column("organization", sa.String(length=200), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=True, server_default="false"),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "appointments",
        _id(),
        _patient_fk(),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("provider", sa.String(length=200), nullable=True),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("time", sa.String(length=10), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("reminder_set", sa.Boolean(), nullable=True, server_default="false"),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "patient_notes",
        _id(),
        _patient_fk(),
        sa.Column(
            "caregiver_id",
            sa.UUID(),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("note", sa.Text(), nullable=False),
        sa.Column("note_type", sa.String(length=20), nullable=False, server_default="general"),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_patient_notes_caregiver_id"), "patient_notes", ["caregiver_id"])

    op.create_table(
        "caregiver_patients",
        _id(),
        sa.Column(
            "caregiver_id",
            sa.UUID(),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _patient_fk(),
        sa.Column("relationship", sa.String(length=100), nullable=True),
        sa.Column("is_primary", sa.Boolean(), nullable=True, server_default="false"),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("caregiver_id", "patient_id", name="uq_caregiver_patient"),
        sa.CheckConstraint("caregiver_id != patient_id", name="ck_no_self_link"),
    )
    op.create_index(
        op.f("ix_caregiver_patients_caregiver_id"), "caregiver_patients", ["caregiver_id"]
    )

    for table in _PATIENT_TABLES:
        op.create_index(op.f(f"ix_{table}_patient_id"), table, ["patient_id"])

    op.create_table(
        "audit_logs",
        _id(),
        sa.Column(
            "user_id",
            sa.UUID(),
            sa.ForeignKey("profiles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("details", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_audit_logs_action"), "audit_logs", ["action"])
    op.create_index(op.f("ix_audit_logs_user_id"), "audit_logs", ["user_id"])

    for table in (
        "profiles",
        "patients",
        "tasks",
        "medications",
        "medication_logs",
        "memories",
        "care_team_members",
        "appointments",
        "patient_notes",
        "caregiver_patients",
        "audit_logs",
    ):
        op.create_index(op.f(f"ix_{table}_created_at"), table, ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    for table in reversed(_PATIENT_TABLES):
        op.drop_table(table)
    op.drop_table("patients")
    op.drop_table("profiles")

    user_role = postgresql.ENUM(*_ROLES, name="userrole")
    user_role.drop(op.get_bind())
