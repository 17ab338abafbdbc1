"""001: Initial schema: employees, leave requests, attendance, audit trail.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+05:30
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("user_role", ["employee", "manager", "hr", "admin"]),
    ("leave_status", ["pending", "approved", "rejected"]),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            employee_code  VARCHAR(20)  NOT NULL UNIQUE,
            full_name      VARCHAR(200) NOT NULL,
            email          VARCHAR(255) NOT NULL UNIQUE,
            role           user_role    NOT NULL DEFAULT 'employee',
            manager_id     UUID REFERENCES employees(id),
            is_active      BOOLEAN DEFAULT TRUE,
            created_at     TIMESTAMPTZ DEFAULT NOW(),
            updated_at     TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_employees_manager ON employees(manager_id)")

    # ── 2. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            requester_id     UUID NOT NULL REFERENCES employees(id),
            start_date       DATE NOT NULL,
            end_date         DATE NOT NULL,
            reason           VARCHAR(1000) NOT NULL,
            status           leave_status NOT NULL DEFAULT 'pending',
            total_days       INTEGER NOT NULL,
            paid_days        INTEGER NOT NULL,
            unpaid_days      INTEGER NOT NULL,
            salary_cut       BOOLEAN NOT NULL,
            approver_id      UUID REFERENCES employees(id),
            decided_at       TIMESTAMPTZ,
            reviewer_remarks TEXT,
            created_at       TIMESTAMPTZ DEFAULT NOW(),
            updated_at       TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT ck_leave_days_sum CHECK (total_days = paid_days + unpaid_days),
            CONSTRAINT ck_leave_range CHECK (end_date >= start_date),
            CONSTRAINT ck_leave_days_non_negative CHECK (paid_days >= 0 AND unpaid_days >= 0)
        )
    """)
    op.execute(
        "CREATE INDEX ix_leave_requests_requester_dates "
        "ON leave_requests(requester_id, start_date)"
    )
    op.execute("CREATE INDEX idx_leave_requests_status ON leave_requests(status)")

    # ── 3. attendance_records ─────────────────────────────────────────────
    op.execute("""
        CREATE TABLE attendance_records (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id          UUID NOT NULL REFERENCES employees(id),
            date             DATE NOT NULL,
            check_in         TIMESTAMPTZ NOT NULL,
            check_out        TIMESTAMPTZ,
            worked_minutes   INTEGER NOT NULL DEFAULT 0,
            short_by_minutes INTEGER NOT NULL DEFAULT 0,
            salary_cut       BOOLEAN NOT NULL DEFAULT FALSE,
            photo_url        VARCHAR(500),
            latitude         DOUBLE PRECISION,
            longitude        DOUBLE PRECISION,
            location_name    VARCHAR(255),
            device_type      VARCHAR(50),
            created_at       TIMESTAMPTZ DEFAULT NOW(),
            updated_at       TIMESTAMPTZ DEFAULT NOW(),
            CONSTRAINT uq_attendance_user_date UNIQUE (user_id, date),
            CONSTRAINT ck_attendance_checkout_order
                CHECK (check_out IS NULL OR check_out >= check_in),
            CONSTRAINT ck_attendance_minutes_non_negative
                CHECK (worked_minutes >= 0 AND short_by_minutes >= 0)
        )
    """)
    op.execute("CREATE INDEX idx_attendance_date ON attendance_records(date)")

    # ── 4. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id    UUID,
            action      VARCHAR(50) NOT NULL,
            entity_type VARCHAR(50) NOT NULL,
            entity_id   UUID NOT NULL,
            old_values  JSONB,
            new_values  JSONB,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id   ON audit_trail(actor_id)")
    op.execute("CREATE INDEX ix_audit_trail_entity     ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "attendance_records",
        "leave_requests",
        "employees",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
