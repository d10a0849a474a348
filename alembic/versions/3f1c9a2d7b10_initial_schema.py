"""initial_schema

Revision ID: 3f1c9a2d7b10
Revises:
Create Date: 2026-10-19 09:12:44.501237

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f1c9a2d7b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

JSONType = sa.JSON().with_variant(postgresql.JSONB(), 'postgresql')


def _timestamps(with_updated: bool = True) -> list:
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)]
    if with_updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False))
    return columns


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False, comment='Internal user id (uuid4)'),
        sa.Column('user_hash', sa.String(length=64), nullable=False, comment='Public handle: sha256(user_id)'),
        sa.Column('telegram_id', sa.String(length=64), nullable=True, comment='Telegram user ID (nullable for app users)'),
        sa.Column('email', sa.String(length=255), nullable=True, comment='Email for app registration'),
        sa.Column('password_hash', sa.String(length=255), nullable=True, comment='bcrypt hash'),
        sa.Column('name', sa.String(length=255), nullable=True),
        sa.Column('nickname', sa.String(length=255), nullable=True),
        sa.Column('wallet_address', sa.String(length=255), nullable=True),
        sa.Column('proof_of_passport_id', sa.String(length=255), nullable=True),
        sa.Column('check_ins', sa.Integer(), nullable=False, comment='Total accepted check-ins'),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('last_check_in', sa.DateTime(timezone=True), nullable=True, comment='Instant of last accepted check-in (UTC)'),
        sa.Column('current_streak', sa.Integer(), nullable=False),
        sa.Column('longest_streak', sa.Integer(), nullable=False),
        sa.Column('streak_history', JSONType, nullable=False, comment='Last 7 check-in dates (YYYY-MM-DD)'),
        sa.Column('is_registered', sa.Boolean(), nullable=False),
        sa.Column('is_gender_verified', sa.Boolean(), nullable=False),
        sa.Column('current_health_data_id', sa.String(length=36), nullable=True, comment='HealthData.health_data_id of current profile'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_user_id', 'users', ['user_id'], unique=True)
    op.create_index('ix_users_user_hash', 'users', ['user_hash'], unique=False)
    op.create_index('ix_users_telegram_id', 'users', ['telegram_id'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'check_ins',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('checkin_id', sa.String(length=64), nullable=False, comment='checkin_<epoch-millis>_<16 hex>'),
        sa.Column('schema_version', sa.String(length=8), nullable=False),
        sa.Column('user_hash', sa.String(length=64), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('mood', sa.String(length=255), nullable=True),
        sa.Column('health_comment', sa.Text(), nullable=True),
        sa.Column('doctor_visit', sa.Boolean(), nullable=True),
        sa.Column('health_profile_update', sa.Boolean(), nullable=True),
        sa.Column('anxiety_level', sa.Integer(), nullable=True),
        sa.Column('anxiety_details', sa.Text(), nullable=True),
        sa.Column('pain_level', sa.Integer(), nullable=True),
        sa.Column('pain_details', sa.Text(), nullable=True),
        sa.Column('fatigue_level', sa.Integer(), nullable=True),
        sa.Column('fatigue_details', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('checkin_id'),
    )
    op.create_index('ix_check_ins_user_hash_timestamp', 'check_ins', ['user_hash', 'timestamp'], unique=False)

    op.create_table(
        'migration_codes',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('code', sa.String(length=6), nullable=False, comment='6 ASCII digits (100000-999999)'),
        sa.Column('telegram_id', sa.String(length=64), nullable=False, comment='Telegram user the code was generated for'),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('user_hash', sa.String(length=64), nullable=True),
        sa.Column('is_linked', sa.Boolean(), nullable=False),
        sa.Column('linked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False, comment='Purged by cleanup job after this'),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_migration_codes_code', 'migration_codes', ['code'], unique=True)
    op.create_index('ix_migration_codes_telegram_id', 'migration_codes', ['telegram_id'], unique=False)
    op.create_index('ix_migration_codes_expires_at', 'migration_codes', ['expires_at'], unique=False)

    op.create_table(
        'research_invites',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=64), nullable=True),
        sa.Column('client', sa.String(length=255), nullable=False),
        sa.Column('link', sa.String(length=1024), nullable=False),
        sa.Column('is_private', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'research_invitees',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invite_id', sa.Integer(), nullable=False),
        sa.Column('user_hash', sa.String(length=64), nullable=False),
        sa.Column('invited_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['invite_id'], ['research_invites.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invite_id', 'user_hash', name='uq_research_invitee'),
    )
    op.create_index('ix_research_invitees_invite_id', 'research_invitees', ['invite_id'], unique=False)

    op.create_table(
        'research_invite_responses',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('invite_id', sa.Integer(), nullable=False),
        sa.Column('user_hash', sa.String(length=64), nullable=False),
        sa.Column('response', sa.String(length=3), nullable=False, comment='yes | no'),
        sa.Column('responded_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['invite_id'], ['research_invites.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invite_id', 'user_hash', name='uq_research_invite_response'),
    )
    op.create_index('ix_research_invite_responses_invite_id', 'research_invite_responses', ['invite_id'], unique=False)

    op.create_table(
        'data_union_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('schema_version', sa.String(length=8), nullable=False),
        sa.Column('user_hash', sa.String(length=64), nullable=False),
        sa.Column('data_type', sa.String(length=16), nullable=False, comment='health | checkin'),
        sa.Column('data_id', sa.String(length=128), nullable=False),
        sa.Column('akave_is_synced', sa.Boolean(), nullable=False),
        sa.Column('akave_error_message', sa.Text(), nullable=True),
        sa.Column('akave_retry_data', JSONType, nullable=True),
        sa.Column('akave_key', sa.String(length=512), nullable=True),
        sa.Column('akave_url', sa.String(length=1024), nullable=True),
        sa.Column('vana_is_synced', sa.Boolean(), nullable=False),
        sa.Column('vana_error_message', sa.Text(), nullable=True),
        sa.Column('vana_retry_data', JSONType, nullable=True),
        sa.Column('vana_file_id', sa.String(length=128), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_hash', 'data_type', 'data_id', name='uq_data_union_reference'),
    )
    op.create_index('ix_data_union_records_akave_is_synced', 'data_union_records', ['akave_is_synced'], unique=False)
    op.create_index('ix_data_union_records_vana_is_synced', 'data_union_records', ['vana_is_synced'], unique=False)
    op.create_index('ix_data_union_records_updated_at', 'data_union_records', ['updated_at'], unique=False)

    op.create_table(
        'health_data',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('health_data_id', sa.String(length=36), nullable=False),
        sa.Column('schema_version', sa.String(length=8), nullable=False),
        sa.Column('user_hash', sa.String(length=64), nullable=False),
        sa.Column('research_opt_in', sa.Boolean(), nullable=False),
        sa.Column('profile', JSONType, nullable=True, comment='age_range, ethnicity, location, is_pregnant'),
        sa.Column('conditions', JSONType, nullable=False),
        sa.Column('medications', JSONType, nullable=False),
        sa.Column('treatments', JSONType, nullable=False),
        sa.Column('caretaker', JSONType, nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('health_data_id'),
    )
    op.create_index('ix_health_data_user_hash', 'health_data', ['user_hash'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('type', sa.String(length=32), nullable=False),
        sa.Column('scheduled_time', sa.String(length=32), nullable=False),
        sa.Column('reminder_schedule', sa.String(length=16), nullable=False),
        sa.Column('reminder_days', JSONType, nullable=False, comment='Weekday names for specific_days/weekly'),
        sa.Column('reminder_time', sa.String(length=8), nullable=False),
        sa.Column('email_notifications', sa.Boolean(), nullable=False),
        sa.Column('substack', sa.Boolean(), nullable=False),
        sa.Column('last_sent', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'], unique=True)

    op.create_table(
        'docs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('type', sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_docs_type', 'docs', ['type'], unique=False)

    op.create_table(
        'feedback',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('type', sa.String(length=64), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('user_hash', sa.String(length=64), nullable=True),
        sa.Column('resolved', sa.Boolean(), nullable=False),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_feedback_type', 'feedback', ['type'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_feedback_type', table_name='feedback')
    op.drop_table('feedback')
    op.drop_index('ix_docs_type', table_name='docs')
    op.drop_table('docs')
    op.drop_index('ix_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_health_data_user_hash', table_name='health_data')
    op.drop_table('health_data')
    op.drop_index('ix_data_union_records_updated_at', table_name='data_union_records')
    op.drop_index('ix_data_union_records_vana_is_synced', table_name='data_union_records')
    op.drop_index('ix_data_union_records_akave_is_synced', table_name='data_union_records')
    op.drop_table('data_union_records')
    op.drop_index('ix_research_invite_responses_invite_id', table_name='research_invite_responses')
    op.drop_table('research_invite_responses')
    op.drop_index('ix_research_invitees_invite_id', table_name='research_invitees')
    op.drop_table('research_invitees')
    op.drop_table('research_invites')
    op.drop_index('ix_migration_codes_expires_at', table_name='migration_codes')
    op.drop_index('ix_migration_codes_telegram_id', table_name='migration_codes')
    op.drop_index('ix_migration_codes_code', table_name='migration_codes')
    op.drop_table('migration_codes')
    op.drop_index('ix_check_ins_user_hash_timestamp', table_name='check_ins')
    op.drop_table('check_ins')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_telegram_id', table_name='users')
    op.drop_index('ix_users_user_hash', table_name='users')
    op.drop_index('ix_users_user_id', table_name='users')
    op.drop_table('users')
