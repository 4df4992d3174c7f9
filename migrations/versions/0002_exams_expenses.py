"""exams, exam results and center expenses

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0002'
down_revision = '0001'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('exams',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('exam_date', sa.Date(), nullable=False),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_marks', sa.Integer(), nullable=False),
        sa.Column('passing_marks', sa.Integer(), nullable=False),
        sa.Column('questions', sa.JSON(), nullable=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='scheduled'),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_exams_class_id', 'exams', ['class_id'])
    op.create_index('ix_exams_exam_date', 'exams', ['exam_date'])

    op.create_table('exam_centers',
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('so_center_id', sa.Integer(), sa.ForeignKey('so_centers.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table('exam_chapters',
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('chapter_id', sa.Integer(), sa.ForeignKey('chapters.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table('exam_results',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('marks_obtained', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('answered_questions', sa.String(24), nullable=False, server_default='not_answered'),
        sa.Column('question_marks', sa.JSON(), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        sa.Column('submitted_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('exam_id', 'student_id', name='uq_exam_result_exam_student'),
    )
    op.create_index('ix_exam_results_student_id', 'exam_results', ['student_id'])

    op.create_table('center_expenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('so_center_id', sa.Integer(), sa.ForeignKey('so_centers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expense_type', sa.String(24), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('electric_bill_number', sa.String(64), nullable=True),
        sa.Column('internet_bill_number', sa.String(64), nullable=True),
        sa.Column('internet_service_provider', sa.String(128), nullable=True),
        sa.Column('service_name', sa.String(255), nullable=True),
        sa.Column('service_phone', sa.String(20), nullable=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('requested_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('requested_at', sa.DateTime(), nullable=False),
        sa.Column('approved_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('payment_method', sa.String(32), nullable=True),
        sa.Column('payment_reference', sa.String(128), nullable=True),
        sa.Column('transaction_id', sa.String(64), nullable=True, unique=True),
        sa.Column('paid_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_center_expenses_so_center_id', 'center_expenses', ['so_center_id'])
    op.create_index('ix_center_expenses_status', 'center_expenses', ['status'])


def downgrade():
    for table in ('center_expenses', 'exam_results', 'exam_chapters', 'exam_centers', 'exams'):
        op.drop_table(table)
