"""create tuition tables

Revision ID: a41c2e7d9b10
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "a41c2e7d9b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'students',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('class', sa.String(length=50), nullable=True),
        sa.Column('contact', sa.String(length=30), nullable=True),
        sa.Column('monthly_target_classes', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('fees_per_month', sa.Numeric(10, 2), nullable=False, server_default=sa.text('0')),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_students_name', 'students', ['name'])

    op.create_table(
        'classes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.String(length=10), nullable=True),
        sa.Column('completed_count', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_classes_student_id', 'classes', ['student_id'])
    op.create_index('ix_classes_date', 'classes', ['date'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('month', sa.String(length=20), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_payments_student_id', 'payments', ['student_id'])

    op.create_table(
        'notes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('note_text', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notes_student_id', 'notes', ['student_id'])

    op.create_table(
        'settings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(length=100), nullable=False),
        sa.Column('value', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ux_settings_key', 'settings', ['key'], unique=True)


def downgrade():
    op.drop_index('ux_settings_key', table_name='settings')
    op.drop_table('settings')
    op.drop_index('ix_notes_student_id', table_name='notes')
    op.drop_table('notes')
    op.drop_index('ix_payments_student_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_classes_date', table_name='classes')
    op.drop_index('ix_classes_student_id', table_name='classes')
    op.drop_table('classes')
    op.drop_index('ix_students_name', table_name='students')
    op.drop_table('students')
