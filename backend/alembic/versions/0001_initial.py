"""initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=False),
        sa.Column(
            "kind",
            sa.Enum("practitioner", "client", name="account_kind"),
            nullable=False,
        ),
        sa.Column("linked_practitioner_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=True),
        sa.Column("invite_code", sa.String(length=12), nullable=True),
        sa.Column("specialty", sa.String(length=100), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("education", sa.Text(), nullable=True),
        sa.Column("certifications", sa.Text(), nullable=True),
        sa.Column("profile_image", sa.String(length=255), nullable=True),
        sa.Column("timezone", sa.String(length=50), nullable=False, server_default="UTC"),
        sa.Column("language_preference", sa.String(length=10), nullable=False, server_default="es"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
        sa.UniqueConstraint("invite_code"),
    )
    op.create_index("ix_accounts_username", "accounts", ["username"])
    op.create_index("ix_accounts_email", "accounts", ["email"])
    op.create_index("ix_accounts_kind", "accounts", ["kind"])
    op.create_index("ix_accounts_linked_practitioner_id", "accounts", ["linked_practitioner_id"])

    op.create_table(
        "sessions",
        sa.Column("token_hash", sa.String(length=64), primary_key=True),
        sa.Column("account_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_sessions_account_id", "sessions", ["account_id"])
    op.create_index("ix_sessions_expires_at", "sessions", ["expires_at"])

    op.create_table(
        "patients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("practitioner_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("client_account_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("emergency_contact", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        *_timestamps(),
        sa.UniqueConstraint("client_account_id"),
    )
    op.create_index("ix_patients_practitioner_id", "patients", ["practitioner_id"])
    op.create_index("ix_patients_name", "patients", ["name"])
    op.create_index("ix_patients_email", "patients", ["email"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("practitioner_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("patient_id", sa.Integer(), sa.ForeignKey("patients.id"), nullable=False),
        sa.Column("date_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum(
                "pending",
                "approved",
                "rejected",
                "scheduled",
                "completed",
                "cancelled",
                "missed",
                name="appointment_status",
            ),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column(
            "meeting_type",
            sa.Enum("video", "in_person", "phone", name="meeting_type"),
            nullable=False,
            server_default="video",
        ),
        sa.Column("video_url", sa.String(length=255), nullable=True),
        sa.Column("payment_receipt", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_appointments_practitioner_id", "appointments", ["practitioner_id"])
    op.create_index("ix_appointments_patient_id", "appointments", ["patient_id"])
    op.create_index("ix_appointments_date_time", "appointments", ["date_time"])
    op.create_index("ix_appointments_status", "appointments", ["status"])

    op.create_table(
        "consent_forms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("practitioner_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("version", sa.String(length=10), nullable=False, server_default="1.0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("language", sa.String(length=10), nullable=False, server_default="es"),
        *_timestamps(),
    )
    op.create_index("ix_consent_forms_practitioner_id", "consent_forms", ["practitioner_id"])

    op.create_table(
        "patient_consents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("patient_id", sa.Integer(), sa.ForeignKey("patients.id"), nullable=False),
        sa.Column("consent_form_id", sa.Integer(), sa.ForeignKey("consent_forms.id"), nullable=False),
        sa.Column("form_version", sa.String(length=10), nullable=False),
        sa.Column("form_title", sa.String(length=100), nullable=False),
        sa.Column("form_content", sa.Text(), nullable=False),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("signature", sa.Text(), nullable=False),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("is_valid", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_patient_consents_patient_id", "patient_consents", ["patient_id"])
    op.create_index("ix_patient_consents_consent_form_id", "patient_consents", ["consent_form_id"])
    op.create_index("ix_patient_consents_signed_at", "patient_consents", ["signed_at"])

    op.create_table(
        "messages",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("recipient_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("related_appointment_id", sa.Integer(), sa.ForeignKey("appointments.id"), nullable=True),
        sa.Column("parent_message_id", sa.Integer(), sa.ForeignKey("messages.id"), nullable=True),
        sa.Column("is_deleted_by_sender", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_deleted_by_recipient", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])
    op.create_index("ix_messages_recipient_id", "messages", ["recipient_id"])
    op.create_index("ix_messages_sent_at", "messages", ["sent_at"])
    op.create_index("ix_messages_related_appointment_id", "messages", ["related_appointment_id"])

    op.create_table(
        "message_templates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("practitioner_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column(
            "kind",
            sa.Enum(
                "appointment_reminder",
                "follow_up",
                "welcome",
                "cancellation",
                "rescheduling",
                "custom",
                name="message_template_kind",
            ),
            nullable=False,
        ),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("language", sa.String(length=10), nullable=False, server_default="es"),
        *_timestamps(),
    )
    op.create_index("ix_message_templates_practitioner_id", "message_templates", ["practitioner_id"])
    op.create_index("ix_message_templates_kind", "message_templates", ["kind"])

    op.create_table(
        "availability",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("practitioner_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("is_available", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_availability_practitioner_id", "availability", ["practitioner_id"])
    op.create_index("ix_availability_day_of_week", "availability", ["day_of_week"])

    op.create_table(
        "contact_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("specialty", sa.String(length=100), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("source", sa.String(length=50), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_contact_requests_email", "contact_requests", ["email"])
    op.create_index("ix_contact_requests_status", "contact_requests", ["status"])
    op.create_index("ix_contact_requests_created_at", "contact_requests", ["created_at"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("actor_account_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=True),
        sa.Column("actor_username", sa.String(length=50), nullable=True),
        sa.Column("practitioner_id", sa.Integer(), sa.ForeignKey("accounts.id"), nullable=True),
        sa.Column("action", sa.String(length=64), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("request_id", sa.String(length=120), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
    )
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])
    op.create_index("ix_audit_logs_practitioner_id", "audit_logs", ["practitioner_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("contact_requests")
    op.drop_table("availability")
    op.drop_table("message_templates")
    op.drop_table("messages")
    op.drop_table("patient_consents")
    op.drop_table("consent_forms")
    op.drop_table("appointments")
    op.drop_table("patients")
    op.drop_table("sessions")
    op.drop_table("accounts")
    sa.Enum(name="message_template_kind").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="meeting_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="appointment_status").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="account_kind").drop(op.get_bind(), checkfirst=True)
