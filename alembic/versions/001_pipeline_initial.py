"""
Initial migration - create the hiring pipeline tables.

Revision ID: 001_pipeline_initial
Revises:
Create Date: 2026-10-19

Creates job_posting (read model of the posting catalog), application,
stage_transition_event (append-only activity log) and
pipeline_stage_count (per-scope stage counters).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_pipeline_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables."""

    # ===== JOB POSTING TABLE =====
    op.create_table(
        'job_posting',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='open'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_job_posting_organization_id', 'job_posting', ['organization_id'])

    # ===== APPLICATION TABLE =====
    op.create_table(
        'application',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('job_posting_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('job_posting.id'), nullable=False),
        sa.Column('candidate_id', sa.String(255), nullable=False),
        sa.Column('candidate_name', sa.String(255), nullable=True),
        sa.Column('candidate_email', sa.String(255), nullable=True),
        sa.Column('cover_letter', sa.Text(), nullable=True),
        sa.Column('resume_url', sa.String(1000), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('stage', sa.String(20), nullable=False, server_default='applied'),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('job_posting_id', 'candidate_id', name='uq_application_job_candidate'),
        sa.CheckConstraint(
            "stage IN ('applied', 'screening', 'interview', 'assessment', 'offer', 'hired', 'rejected')",
            name='ck_application_stage',
        ),
    )
    op.create_index('ix_application_organization_id', 'application', ['organization_id'])
    op.create_index('ix_application_candidate_id', 'application', ['candidate_id'])
    op.create_index('ix_application_job_stage', 'application', ['job_posting_id', 'stage'])
    op.create_index('ix_application_org_stage', 'application', ['organization_id', 'stage'])

    # ===== STAGE TRANSITION EVENT TABLE =====
    op.create_table(
        'stage_transition_event',
        sa.Column('id', sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column('application_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('application.id'), nullable=False),
        sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('kind', sa.String(20), nullable=False, server_default='stage_change'),
        sa.Column('from_stage', sa.String(20), nullable=False),
        sa.Column('to_stage', sa.String(20), nullable=False),
        sa.Column('actor_id', sa.String(255), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_stage_transition_event_organization_id', 'stage_transition_event', ['organization_id'])
    op.create_index(
        'ix_stage_transition_event_application',
        'stage_transition_event',
        ['application_id', 'occurred_at', 'id'],
    )

    # The activity log is append-only; refuse UPDATE/DELETE at the database too
    op.execute(
        """
        CREATE OR REPLACE FUNCTION stage_transition_event_immutable() RETURNS trigger AS $$
        BEGIN
            RAISE EXCEPTION 'stage_transition_event rows are immutable';
        END;
        $$ LANGUAGE plpgsql
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_stage_transition_event_immutable
        BEFORE UPDATE OR DELETE ON stage_transition_event
        FOR EACH ROW EXECUTE FUNCTION stage_transition_event_immutable()
        """
    )

    # ===== PIPELINE STAGE COUNT TABLE =====
    op.create_table(
        'pipeline_stage_count',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('scope_type', sa.String(20), nullable=False),
        sa.Column('scope_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('stage', sa.String(20), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('scope_type', 'scope_id', 'stage', name='uq_pipeline_stage_count_scope_stage'),
        sa.CheckConstraint('count >= 0', name='ck_pipeline_stage_count_non_negative'),
    )


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('pipeline_stage_count')
    op.execute("DROP TRIGGER IF EXISTS trg_stage_transition_event_immutable ON stage_transition_event")
    op.execute("DROP FUNCTION IF EXISTS stage_transition_event_immutable()")
    op.drop_table('stage_transition_event')
    op.drop_table('application')
    op.drop_table('job_posting')
