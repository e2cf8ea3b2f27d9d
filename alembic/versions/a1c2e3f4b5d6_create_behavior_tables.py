"""Create behaviour management tables

Revision ID: a1c2e3f4b5d6
Revises:
Create Date: 2026-10-16 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB

# revision identifiers, used by Alembic.
revision = 'a1c2e3f4b5d6'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Staff members and parents
    op.create_table('tbl_profiles',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('role', sa.String(length=30), nullable=False),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('notification_preferences', JSONB(), nullable=True),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('tbl_students',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=150), nullable=False),
        sa.Column('student_id', sa.String(length=30), nullable=False),
        sa.Column('grade', sa.String(length=20), nullable=False),
        sa.Column('behavior_score', sa.Float(), nullable=True),
        sa.Column('gender', sa.String(length=20), nullable=True),
        sa.Column('boarding_status', sa.String(length=20), nullable=True),
        sa.Column('needs_counseling', sa.Boolean(), nullable=True),
        sa.Column('counseling_reason', sa.Text(), nullable=True),
        sa.Column('counseling_flagged_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('shadow_parent_id', UUID(as_uuid=True), nullable=True),
        sa.Column('parent_contacts', JSONB(), nullable=True),
        sa.Column('profile_image', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['shadow_parent_id'], ['tbl_profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('student_id')
    )
    op.create_index('idx_students_grade', 'tbl_students', ['grade'])
    op.create_index('idx_students_name', 'tbl_students', ['name'])

    op.create_table('tbl_misdemeanors',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('location', sa.String(length=50), nullable=False),
        sa.Column('category', sa.String(length=100), nullable=True),
        sa.Column('severity_level', sa.Integer(), nullable=True),
        sa.Column('sanctions', JSONB(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_misdemeanors_location', 'tbl_misdemeanors', ['location'])

    op.create_table('tbl_behavior_records',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False),
        sa.Column('student_id', UUID(as_uuid=True), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(length=50), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reported_by', UUID(as_uuid=True), nullable=True),
        sa.Column('misdemeanor_id', UUID(as_uuid=True), nullable=True),
        sa.Column('offense_number', sa.Integer(), nullable=True),
        sa.Column('sanction', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('merit_tier', sa.String(length=20), nullable=True),
        sa.Column('points', sa.Float(), nullable=True),
        sa.Column('attachment_url', sa.String(length=500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['student_id'], ['tbl_students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['reported_by'], ['tbl_profiles.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['misdemeanor_id'], ['tbl_misdemeanors.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    # Offense history lookups by student and misdemeanor
    op.create_index('idx_behavior_records_student_misdemeanor', 'tbl_behavior_records', ['student_id', 'misdemeanor_id'])
    op.create_index('idx_behavior_records_timestamp', 'tbl_behavior_records', ['timestamp'])

    op.create_table('tbl_counseling_alerts',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('student_id', UUID(as_uuid=True), nullable=False),
        sa.Column('alert_type', sa.String(length=50), nullable=False),
        sa.Column('severity_level', sa.String(length=20), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('triggered_by_record_id', UUID(as_uuid=True), nullable=True),
        sa.Column('is_resolved', sa.Boolean(), nullable=True),
        sa.Column('resolved_by', UUID(as_uuid=True), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['student_id'], ['tbl_students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['triggered_by_record_id'], ['tbl_behavior_records.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['resolved_by'], ['tbl_profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_counseling_alerts_unresolved', 'tbl_counseling_alerts', ['is_resolved'])

    op.create_table('tbl_shadow_parent_assignments',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('shadow_parent_id', UUID(as_uuid=True), nullable=False),
        sa.Column('student_id', UUID(as_uuid=True), nullable=False),
        sa.Column('assigned_by', UUID(as_uuid=True), nullable=True),
        sa.Column('assignment_notes', sa.Text(), nullable=True),
        sa.Column('priority_score', sa.Float(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('assigned_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['shadow_parent_id'], ['tbl_profiles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['student_id'], ['tbl_students.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_by'], ['tbl_profiles.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_shadow_assignments_parent_active', 'tbl_shadow_parent_assignments', ['shadow_parent_id', 'is_active'])

    op.create_table('tbl_notifications',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('type', sa.String(length=30), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('reference_id', sa.String(length=64), nullable=True),
        sa.Column('reference_type', sa.String(length=30), nullable=True),
        sa.Column('is_read', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['tbl_profiles.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_notifications_user_id', 'tbl_notifications', ['user_id'])

    op.create_table('tbl_notification_delivery_log',
        sa.Column('id', UUID(as_uuid=True), nullable=False),
        sa.Column('notification_id', UUID(as_uuid=True), nullable=False),
        sa.Column('delivery_method', sa.String(length=20), nullable=False),
        sa.Column('delivery_status', sa.String(length=20), nullable=True),
        sa.Column('delivery_attempt', sa.Integer(), nullable=True),
        sa.Column('error_message', sa.Text(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['notification_id'], ['tbl_notifications.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    op.drop_table('tbl_notification_delivery_log')
    op.drop_index('idx_notifications_user_id', table_name='tbl_notifications')
    op.drop_table('tbl_notifications')
    op.drop_index('idx_shadow_assignments_parent_active', table_name='tbl_shadow_parent_assignments')
    op.drop_table('tbl_shadow_parent_assignments')
    op.drop_index('idx_counseling_alerts_unresolved', table_name='tbl_counseling_alerts')
    op.drop_table('tbl_counseling_alerts')
    op.drop_index('idx_behavior_records_timestamp', table_name='tbl_behavior_records')
    op.drop_index('idx_behavior_records_student_misdemeanor', table_name='tbl_behavior_records')
    op.drop_table('tbl_behavior_records')
    op.drop_index('idx_misdemeanors_location', table_name='tbl_misdemeanors')
    op.drop_table('tbl_misdemeanors')
    op.drop_index('idx_students_name', table_name='tbl_students')
    op.drop_index('idx_students_grade', table_name='tbl_students')
    op.drop_table('tbl_students')
    op.drop_table('tbl_profiles')
