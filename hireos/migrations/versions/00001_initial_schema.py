"""Initial schema - tenancy, pipeline, offers, notifications, integrations.

Revision ID: 00001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '00001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # =====================
    # Tenancy
    # =====================

    # accounts
    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )

    # users
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('calendar_link', sa.String(500), nullable=True),
        sa.Column('calendar_provider', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        sa.UniqueConstraint('email'),
    )

    # account_members
    op.create_table(
        'account_members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('role', sa.String(50), nullable=False, server_default='hiringManager'),
        sa.Column('joined_at', sa.DateTime(), nullable=True),
        sa.Column('invited_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['invited_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('account_id', 'user_id', name='uq_account_members_account_user'),
    )

    # =====================
    # Pipeline
    # =====================

    # jobs
    op.create_table(
        'jobs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('skills', sa.Text(), nullable=True),
        sa.Column('department', sa.String(255), nullable=True),
        sa.Column('type', sa.String(50), nullable=False, server_default='Full-time'),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('express_review', sa.Boolean(), server_default=sa.false()),
        sa.Column('hi_people_link', sa.String(500), nullable=True),
        sa.Column('submitter_id', sa.Integer(), nullable=True),
        sa.Column('posted_date', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['submitter_id'], ['users.id'], ondelete='SET NULL'),
    )
    op.create_index('idx_jobs_account', 'jobs', ['account_id'])

    # candidates
    op.create_table(
        'candidates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('job_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('resume_url', sa.String(1000), nullable=True),
        sa.Column('skills', sa.Text(), nullable=True),
        sa.Column('experience_years', sa.Integer(), nullable=True),
        sa.Column('summary', sa.Text(), nullable=True),
        sa.Column('match_score', sa.Integer(), nullable=True),
        sa.Column('parsed_resume_data', sa.Text(), nullable=True),
        sa.Column('status', sa.String(50), nullable=False, server_default='00_application_submitted'),
        sa.Column('final_decision_status', sa.String(20), nullable=True),
        sa.Column('last_interview_date', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('hi_people_score', sa.Integer(), nullable=True),
        sa.Column('hi_people_percentile', sa.Integer(), nullable=True),
        sa.Column('hi_people_completed_at', sa.DateTime(), nullable=True),
        sa.Column('hi_people_assessment_link', sa.String(500), nullable=True),
        sa.Column('technical_proficiency', sa.Float(), nullable=True),
        sa.Column('leadership_initiative', sa.Float(), nullable=True),
        sa.Column('problem_solving', sa.Float(), nullable=True),
        sa.Column('communication_skills', sa.Float(), nullable=True),
        sa.Column('cultural_fit', sa.Float(), nullable=True),
        sa.Column('ghl_contact_id', sa.String(100), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id'], ondelete='SET NULL'),
    )
    op.create_index('idx_candidates_account', 'candidates', ['account_id'])
    op.create_index('idx_candidates_account_email', 'candidates', ['account_id', 'email'])
    op.create_index('idx_candidates_ghl_contact', 'candidates', ['ghl_contact_id'])

    # interviews
    op.create_table(
        'interviews',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('candidate_id', sa.Integer(), nullable=False),
        sa.Column('interviewer_id', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(50), nullable=False, server_default='video'),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('scheduled_date', sa.DateTime(), nullable=True),
        sa.Column('conducted_date', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['interviewer_id'], ['users.id'], ondelete='SET NULL'),
    )
    op.create_index('idx_interviews_account', 'interviews', ['account_id'])
    op.create_index('idx_interviews_candidate', 'interviews', ['candidate_id'])

    # At most one active interview per candidate
    op.create_index(
        'uq_interviews_active_candidate',
        'interviews',
        ['candidate_id'],
        unique=True,
        postgresql_where=sa.text("status IN ('scheduled', 'pending')"),
    )

    # evaluations
    op.create_table(
        'evaluations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('interview_id', sa.Integer(), nullable=False),
        sa.Column('evaluator_id', sa.Integer(), nullable=True),
        sa.Column('technical_score', sa.Integer(), nullable=True),
        sa.Column('communication_score', sa.Integer(), nullable=True),
        sa.Column('problem_solving_score', sa.Integer(), nullable=True),
        sa.Column('cultural_fit_score', sa.Integer(), nullable=True),
        sa.Column('overall_rating', sa.Integer(), nullable=True),
        sa.Column('technical_comments', sa.Text(), nullable=True),
        sa.Column('communication_comments', sa.Text(), nullable=True),
        sa.Column('problem_solving_comments', sa.Text(), nullable=True),
        sa.Column('cultural_fit_comments', sa.Text(), nullable=True),
        sa.Column('overall_comments', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['interview_id'], ['interviews.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['evaluator_id'], ['users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('interview_id'),
    )

    # offers
    op.create_table(
        'offers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('candidate_id', sa.Integer(), nullable=False),
        sa.Column('approved_by_id', sa.Integer(), nullable=True),
        sa.Column('offer_type', sa.String(50), nullable=False, server_default='Full-time'),
        sa.Column('compensation', sa.String(255), nullable=False, server_default='Competitive'),
        sa.Column('start_date', sa.DateTime(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='draft'),
        sa.Column('sent_date', sa.DateTime(), nullable=True),
        sa.Column('responded_at', sa.DateTime(), nullable=True),
        sa.Column('contract_url', sa.String(1000), nullable=True),
        sa.Column('acceptance_token', sa.String(64), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approved_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.UniqueConstraint('acceptance_token'),
    )
    op.create_index('idx_offers_candidate', 'offers', ['candidate_id'])

    # =====================
    # Audit, email, notifications
    # =====================

    # activity_logs
    op.create_table(
        'activity_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(100), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('details', sa.Text(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')")),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='SET NULL'),
    )
    op.create_index('idx_activity_logs_entity', 'activity_logs', ['entity_type', 'entity_id'])
    op.create_index('idx_activity_logs_account', 'activity_logs', ['account_id'])

    # email_templates
    op.create_table(
        'email_templates',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('template_type', sa.String(50), nullable=False),
        sa.Column('subject', sa.String(500), nullable=False),
        sa.Column('body_html', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('is_default', sa.Boolean(), server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_index('idx_email_templates_account_type', 'email_templates', ['account_id', 'template_type'])

    # email_log
    op.create_table(
        'email_log',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=True),
        sa.Column('to_email', sa.String(255), nullable=False),
        sa.Column('template_type', sa.String(50), nullable=True),
        sa.Column('subject', sa.String(500), nullable=True),
        sa.Column('candidate_id', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(50), server_default='sent'),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('message_id', sa.String(255), nullable=True),
        sa.Column('sent_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')")),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['candidate_id'], ['candidates.id'], ondelete='SET NULL'),
    )

    # notification_queue
    op.create_table(
        'notification_queue',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('payload', sa.Text(), nullable=False),
        sa.Column('process_after', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('attempts', sa.Integer(), server_default='0'),
        sa.Column('error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')")),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
    )
    op.create_index('idx_notification_queue_pending', 'notification_queue', ['status', 'process_after'])

    # in_app_notifications
    op.create_table(
        'in_app_notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('link', sa.String(500), nullable=True),
        sa.Column('metadata', sa.Text(), nullable=True),
        sa.Column('read', sa.Boolean(), server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')")),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
    )
    op.create_index('idx_in_app_notifications_user', 'in_app_notifications', ['user_id', 'read'])

    # =====================
    # Integrations
    # =====================

    # platform_integrations
    op.create_table(
        'platform_integrations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('account_id', sa.Integer(), nullable=False),
        sa.Column('platform_id', sa.String(50), nullable=False),
        sa.Column('platform_type', sa.String(20), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='connected'),
        sa.Column('is_enabled', sa.Boolean(), server_default=sa.true()),
        sa.Column('credentials', sa.Text(), nullable=True),
        sa.Column('settings', sa.Text(), nullable=True),
        sa.Column('last_sync_at', sa.DateTime(), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('last_error_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text("(now() at time zone 'utc')"), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('account_id', 'platform_id', name='uq_platform_integrations_account_platform'),
    )


def downgrade() -> None:
    # Drop in reverse order of creation (respecting foreign keys)
    op.drop_table('platform_integrations')
    op.drop_table('in_app_notifications')
    op.drop_table('notification_queue')
    op.drop_table('email_log')
    op.drop_table('email_templates')
    op.drop_table('activity_logs')
    op.drop_table('offers')
    op.drop_table('evaluations')
    op.drop_table('interviews')
    op.drop_table('candidates')
    op.drop_table('jobs')
    op.drop_table('account_members')
    op.drop_table('users')
    op.drop_table('accounts')
