"""Initial schema — users, complaints, complaint history and feedback.

Revision ID: 0001
Revises:     (none)
Create Date: 2026-10-18
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op


def upgrade() -> None:
    # ---------------------------------------------------------------------- #
    # ENUM-like CHECK constraints are expressed as VARCHAR + CHECK            #
    # so that values can be added without a schema migration.                  #
    # ---------------------------------------------------------------------- #

    # ------------------------------------------------------------------ #
    # users                                                                #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE users (
            id            SERIAL        NOT NULL,
            name          VARCHAR(255)  NOT NULL,
            email         VARCHAR(255)  NOT NULL,
            password_hash VARCHAR(255)  NOT NULL,
            role          VARCHAR(20)   NOT NULL,
            department    VARCHAR(100),
            student_id    VARCHAR(50),              -- students only
            created_at    TIMESTAMP     NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc'),
            updated_at    TIMESTAMP     NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc'),
            CONSTRAINT pk_users PRIMARY KEY (id),
            CONSTRAINT uq_users_email UNIQUE (email),
            CONSTRAINT uq_users_student_id UNIQUE (student_id),
            CONSTRAINT ck_users_role CHECK (role IN ('student', 'worker', 'admin'))
        )
    """)

    # ------------------------------------------------------------------ #
    # complaints                                                           #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE complaints (
            id                 SERIAL        NOT NULL,
            student_id         INTEGER       NOT NULL,
            title              VARCHAR(255)  NOT NULL,
            description        TEXT          NOT NULL,
            category           VARCHAR(100)  NOT NULL,
            urgency            VARCHAR(20)   NOT NULL DEFAULT 'medium',
            status             VARCHAR(20)   NOT NULL DEFAULT 'open',
            assigned_worker_id INTEGER,
            assigned_department VARCHAR(100),
            resolution_message TEXT,
            ai_summary         TEXT,                 -- cached on first view
            created_at         TIMESTAMP     NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc'),
            updated_at         TIMESTAMP     NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc'),
            CONSTRAINT pk_complaints PRIMARY KEY (id),
            CONSTRAINT fk_complaints_student
                FOREIGN KEY (student_id) REFERENCES users (id) ON DELETE CASCADE,
            CONSTRAINT fk_complaints_worker
                FOREIGN KEY (assigned_worker_id) REFERENCES users (id) ON DELETE SET NULL,
            CONSTRAINT ck_complaints_urgency
                CHECK (urgency IN ('low', 'medium', 'high', 'critical')),
            CONSTRAINT ck_complaints_status
                CHECK (status IN ('open', 'in_progress', 'resolved', 'closed'))
        )
    """)

    # ------------------------------------------------------------------ #
    # complaint_history — insert-only audit trail                          #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE complaint_history (
            id            SERIAL       NOT NULL,
            complaint_id  INTEGER      NOT NULL,
            actor_user_id INTEGER,
            action_type   VARCHAR(30)  NOT NULL,
            old_status    VARCHAR(20),
            new_status    VARCHAR(20),
            note          TEXT,
            is_public     BOOLEAN      NOT NULL DEFAULT FALSE,
            timestamp     TIMESTAMP    NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc'),
            CONSTRAINT pk_complaint_history PRIMARY KEY (id),
            CONSTRAINT fk_complaint_history_complaint
                FOREIGN KEY (complaint_id) REFERENCES complaints (id) ON DELETE CASCADE,
            CONSTRAINT fk_complaint_history_actor
                FOREIGN KEY (actor_user_id) REFERENCES users (id) ON DELETE SET NULL,
            CONSTRAINT ck_complaint_history_action CHECK (action_type IN (
                'created', 'status_change', 'assigned', 'reassigned',
                'note_added', 'resolved', 'feedback_added'
            ))
        )
    """)

    # ------------------------------------------------------------------ #
    # feedback — at most one row per (complaint, student)                  #
    # ------------------------------------------------------------------ #
    op.execute("""
        CREATE TABLE feedback (
            id           SERIAL    NOT NULL,
            complaint_id INTEGER   NOT NULL,
            student_id   INTEGER   NOT NULL,
            rating       SMALLINT  NOT NULL,
            comments     TEXT,
            created_at   TIMESTAMP NOT NULL DEFAULT (NOW() AT TIME ZONE 'utc'),
            CONSTRAINT pk_feedback PRIMARY KEY (id),
            CONSTRAINT fk_feedback_complaint
                FOREIGN KEY (complaint_id) REFERENCES complaints (id) ON DELETE CASCADE,
            CONSTRAINT fk_feedback_student
                FOREIGN KEY (student_id) REFERENCES users (id) ON DELETE CASCADE,
            CONSTRAINT uq_feedback_complaint_student UNIQUE (complaint_id, student_id),
            CONSTRAINT ck_feedback_rating CHECK (rating BETWEEN 1 AND 5)
        )
    """)

    # ------------------------------------------------------------------ #
    # Indexes                                                               #
    # ------------------------------------------------------------------ #

    # users — role / department filters on the admin user list
    op.execute("CREATE INDEX idx_users_role ON users (role)")
    op.execute("CREATE INDEX idx_users_department ON users (department)")

    # complaints
    op.execute("CREATE INDEX idx_complaints_student ON complaints (student_id)")
    op.execute("CREATE INDEX idx_complaints_worker ON complaints (assigned_worker_id)")
    op.execute("CREATE INDEX idx_complaints_status ON complaints (status)")
    op.execute("CREATE INDEX idx_complaints_category ON complaints (category)")
    op.execute("CREATE INDEX idx_complaints_created_at ON complaints (created_at)")

    # complaint_history
    op.execute("CREATE INDEX idx_complaint_history_complaint ON complaint_history (complaint_id)")
    op.execute("CREATE INDEX idx_complaint_history_timestamp ON complaint_history (timestamp)")

    # updated_at is written by the application on lifecycle changes only;
    # cache writes such as ai_summary must not move it.


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS feedback CASCADE")
    op.execute("DROP TABLE IF EXISTS complaint_history CASCADE")
    op.execute("DROP TABLE IF EXISTS complaints CASCADE")
    op.execute("DROP TABLE IF EXISTS users CASCADE")
