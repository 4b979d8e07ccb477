"""Create membership tables"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3a7d2e91c4b0'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default='1'),
    ]


def upgrade():
    # Create colleges table
    op.create_table(
        'colleges',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('code', sa.String(10), nullable=False),
        sa.Column('location', sa.String(200), nullable=False),
        sa.Column('address', sa.String(500), nullable=False),
        sa.Column('contact_info', sa.JSON(), nullable=False),
        sa.Column('tenure_heads', sa.JSON(), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sa.UniqueConstraint('code')
    )
    op.create_index(op.f('ix_colleges_code'), 'colleges', ['code'])
    op.create_index(op.f('ix_colleges_is_active'), 'colleges', ['is_active'])

    # Create admins table
    op.create_table(
        'admins',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('username', sa.String(20), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(100), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('assigned_college_id', sa.String(36), nullable=True),
        sa.Column('batch_year', sa.Integer(), nullable=True),
        sa.Column('tenure', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['assigned_college_id'], ['colleges.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_admins_username'), 'admins', ['username'], unique=True)
    op.create_index(op.f('ix_admins_email'), 'admins', ['email'], unique=True)
    op.create_index(op.f('ix_admins_role'), 'admins', ['role'])
    op.create_index(op.f('ix_admins_is_active'), 'admins', ['is_active'])
    # One active tenure head per (college, batch year); NULL college ids never collide
    op.create_index('uq_admins_active_tenure', 'admins', ['assigned_college_id', 'batch_year'], unique=True)

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('full_name', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('college', sa.String(200), nullable=False),
        sa.Column('college_id', sa.String(36), nullable=True),
        sa.Column('batch_year', sa.String(10), nullable=False),
        sa.Column('role', sa.String(20), nullable=False, server_default='other'),
        sa.Column('photo_url', sa.String(), nullable=True),
        sa.Column('member_id', sa.String(30), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['college_id'], ['colleges.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_email'), 'users', ['email'], unique=True)
    op.create_index(op.f('ix_users_member_id'), 'users', ['member_id'], unique=True)
    op.create_index(op.f('ix_users_college_id'), 'users', ['college_id'])
    op.create_index(op.f('ix_users_batch_year'), 'users', ['batch_year'])
    op.create_index(op.f('ix_users_role'), 'users', ['role'])
    op.create_index(op.f('ix_users_is_active'), 'users', ['is_active'])

    # Create events table
    op.create_table(
        'events',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('time', sa.String(5), nullable=False),
        sa.Column('location', sa.String(200), nullable=False),
        sa.Column('event_type', sa.String(20), nullable=False),
        sa.Column('target_college_id', sa.String(36), nullable=True),
        sa.Column('max_attendees', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(20), nullable=False, server_default='other'),
        sa.Column('organizer', sa.JSON(), nullable=False),
        sa.Column('registrations', sa.JSON(), nullable=False),
        sa.Column('requirements', sa.JSON(), nullable=False),
        sa.Column('prizes', sa.JSON(), nullable=False),
        sa.Column('registration_deadline', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['target_college_id'], ['colleges.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('max_attendees BETWEEN 1 AND 10000', name='ck_events_max_attendees')
    )
    op.create_index(op.f('ix_events_date'), 'events', ['date'])
    op.create_index(op.f('ix_events_event_type'), 'events', ['event_type'])
    op.create_index(op.f('ix_events_target_college_id'), 'events', ['target_college_id'])
    op.create_index(op.f('ix_events_is_active'), 'events', ['is_active'])

    # Create activity_logs table
    op.create_table(
        'activity_logs',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('admin_id', sa.String(36), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('resource_type', sa.String(50), nullable=True),
        sa.Column('resource_id', sa.String(36), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_activity_logs_admin_id'), 'activity_logs', ['admin_id'])
    op.create_index(op.f('ix_activity_logs_action'), 'activity_logs', ['action'])
    op.create_index(op.f('ix_activity_logs_resource_id'), 'activity_logs', ['resource_id'])
    op.create_index(op.f('ix_activity_logs_created_at'), 'activity_logs', ['created_at'])


def downgrade():
    op.drop_table('activity_logs')
    op.drop_table('events')
    op.drop_table('users')
    op.drop_table('admins')
    op.drop_table('colleges')
