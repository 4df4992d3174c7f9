"""initial tables

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(10, 2)


def _money(name, nullable=False):
    return sa.Column(name, MONEY, nullable=nullable, server_default=None if nullable else '0')


def _flag(name, default):
    return sa.Column(name, sa.Boolean(), nullable=False, server_default=sa.text('1' if default else '0'))


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('role', sa.String(32), nullable=False),
        _flag('is_active', True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('so_centers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('center_code', sa.String(20), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('manager_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, unique=True),
        _money('wallet_balance'),
        _flag('is_active', True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_so_centers_center_code', 'so_centers', ['center_code'], unique=True)

    # academic hierarchy
    op.create_table('classes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        _flag('is_active', True),
    )
    op.create_table('subjects',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        _flag('is_active', True),
        sa.UniqueConstraint('class_id', 'name', name='uq_subject_class_name'),
    )
    op.create_index('ix_subjects_class_id', 'subjects', ['class_id'])
    op.create_table('chapters',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        _flag('is_active', True),
        sa.UniqueConstraint('subject_id', 'name', name='uq_chapter_subject_name'),
    )
    op.create_index('ix_chapters_subject_id', 'chapters', ['subject_id'])
    op.create_table('topics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('chapter_id', sa.Integer(), sa.ForeignKey('chapters.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        _flag('is_important', False),
        _flag('is_moderate', False),
        _flag('is_active', True),
        sa.UniqueConstraint('chapter_id', 'name', name='uq_topic_chapter_name'),
    )
    op.create_index('ix_topics_chapter_id', 'topics', ['chapter_id'])

    # students & fees
    op.create_table('students',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_code', sa.String(32), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('so_center_id', sa.Integer(), sa.ForeignKey('so_centers.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('parent_name', sa.String(255), nullable=True),
        sa.Column('parent_phone', sa.String(20), nullable=False),
        sa.Column('father_name', sa.String(255), nullable=True),
        sa.Column('mother_name', sa.String(255), nullable=True),
        sa.Column('aadhar_number', sa.String(12), nullable=True, unique=True),
        sa.Column('course_type', sa.String(16), nullable=False, server_default='monthly'),
        sa.Column('enrollment_date', sa.Date(), nullable=True),
        _flag('admission_fee_paid', False),
        _money('total_fee_amount'),
        _money('paid_amount'),
        _money('pending_amount'),
        sa.Column('payment_status', sa.String(16), nullable=False, server_default='paid'),
        sa.Column('qr_code', sa.String(64), nullable=False, unique=True),
        _flag('is_active', True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_students_student_code', 'students', ['student_code'], unique=True)
    op.create_index('ix_students_class_id', 'students', ['class_id'])
    op.create_index('ix_students_so_center_id', 'students', ['so_center_id'])
    op.create_index('ix_students_is_active', 'students', ['is_active'])

    op.create_table('class_fees',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('course_type', sa.String(16), nullable=False),
        _money('admission_fee'),
        _money('monthly_fee'),
        _money('yearly_fee', nullable=True),
        _flag('is_active', True),
        sa.UniqueConstraint('class_id', 'course_type', name='uq_class_fee_class_course'),
    )

    op.create_table('payments',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('payment_method', sa.String(32), nullable=False, server_default='cash'),
        sa.Column('fee_type', sa.String(32), nullable=False),
        sa.Column('receipt_number', sa.String(64), nullable=False, unique=True),
        sa.Column('transaction_id', sa.String(64), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('month', sa.String(16), nullable=True),
        sa.Column('year', sa.Integer(), nullable=True),
        sa.Column('recorded_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_payments_student_id', 'payments', ['student_id'])
    op.create_index('ix_payments_created_at', 'payments', ['created_at'])

    op.create_table('center_wallet_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('so_center_id', sa.Integer(), sa.ForeignKey('so_centers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('type', sa.String(10), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('payment_id', sa.Integer(), sa.ForeignKey('payments.id', ondelete='SET NULL'), nullable=True),
        sa.Column('collection_agent_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_center_wallet_transactions_so_center_id', 'center_wallet_transactions', ['so_center_id'])

    # attendance & progress
    op.create_table('attendance',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('so_center_id', sa.Integer(), sa.ForeignKey('so_centers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('marked_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('student_id', 'date', name='uq_attendance_student_date'),
    )
    op.create_index('ix_attendance_date', 'attendance', ['date'])
    op.create_index('ix_attendance_center_date', 'attendance', ['so_center_id', 'date'])

    op.create_table('topic_progress',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('topic_id', sa.Integer(), sa.ForeignKey('topics.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('completed_date', sa.Date(), nullable=True),
        sa.Column('updated_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('teacher_feedback', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('student_id', 'topic_id', name='uq_progress_student_topic'),
    )
    op.create_index('ix_topic_progress_student_id', 'topic_progress', ['student_id'])

    op.create_table('homework_activities',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('homework_date', sa.Date(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False),
        sa.Column('completion_type', sa.String(32), nullable=True),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('student_id', 'homework_date', name='uq_homework_student_date'),
    )

    # teachers
    op.create_table('teachers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('qualification', sa.String(255), nullable=True),
        sa.Column('salary_type', sa.String(16), nullable=False, server_default='fixed'),
        _money('salary_amount'),
        _flag('is_active', True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_table('teacher_classes',
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('teachers.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table('teacher_subjects',
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('teachers.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id', ondelete='CASCADE'), primary_key=True),
    )
    op.create_table('teacher_daily_records',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('teacher_id', sa.Integer(), sa.ForeignKey('teachers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('record_date', sa.Date(), nullable=False),
        sa.Column('class_id', sa.Integer(), sa.ForeignKey('classes.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('subject_id', sa.Integer(), sa.ForeignKey('subjects.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('chapter_id', sa.Integer(), sa.ForeignKey('chapters.id', ondelete='SET NULL'), nullable=True),
        sa.Column('topic_id', sa.Integer(), sa.ForeignKey('topics.id', ondelete='SET NULL'), nullable=True),
        sa.Column('teaching_duration', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_teacher_records_teacher_date', 'teacher_daily_records', ['teacher_id', 'record_date'])

    op.create_table('announcements',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('target_audience', sa.String(16), nullable=False, server_default='all'),
        sa.Column('priority', sa.String(16), nullable=False, server_default='normal'),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('from_date', sa.Date(), nullable=False),
        sa.Column('to_date', sa.Date(), nullable=False),
        _flag('is_active', True),
        _flag('show_on_qr_code', False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    # wallets & commissions
    op.create_table('wallets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        _money('course_wallet_balance'),
        _money('commission_wallet_balance'),
        _money('total_earnings'),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_table('wallet_transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('transaction_id', sa.String(64), nullable=False, unique=True),
        sa.Column('type', sa.String(32), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.String(16), nullable=False, server_default='completed'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_wallet_transactions_user_id', 'wallet_transactions', ['user_id'])
    op.create_table('withdrawal_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('withdrawal_id', sa.String(64), nullable=False, unique=True),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('payment_mode', sa.String(16), nullable=True),
        sa.Column('payment_details', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('requested_at', sa.DateTime(), nullable=False),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('processed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
    )
    op.create_index('ix_withdrawal_requests_user_id', 'withdrawal_requests', ['user_id'])
    op.create_index('ix_withdrawal_requests_status', 'withdrawal_requests', ['status'])
    op.create_table('products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False, unique=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('commission_percentage', sa.Numeric(5, 2), nullable=False, server_default='0'),
        _flag('is_active', True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_table('product_purchases',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('agent_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('transaction_id', sa.String(64), nullable=False, unique=True),
        sa.Column('student_name', sa.String(255), nullable=False),
        sa.Column('student_class', sa.String(100), nullable=True),
        sa.Column('student_education', sa.String(255), nullable=True),
        sa.Column('student_address', sa.Text(), nullable=True),
        sa.Column('student_mobile', sa.String(20), nullable=True),
        sa.Column('course_price', MONEY, nullable=False),
        sa.Column('commission_percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('commission_amount', MONEY, nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_product_purchases_agent_id', 'product_purchases', ['agent_id'])
    op.create_table('admin_notifications',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        _flag('is_read', False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_admin_notifications_type', 'admin_notifications', ['type'])

    op.create_table('dropout_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('students.id', ondelete='CASCADE'), nullable=False),
        sa.Column('so_center_id', sa.Integer(), sa.ForeignKey('so_centers.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='pending'),
        sa.Column('requested_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('processed_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('processed_at', sa.DateTime(), nullable=True),
        sa.Column('admin_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_dropout_requests_student_id', 'dropout_requests', ['student_id'])
    op.create_index('ix_dropout_requests_so_center_id', 'dropout_requests', ['so_center_id'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('action', sa.String(50), nullable=False),
        sa.Column('entity', sa.String(50), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )


def downgrade():
    for table in (
        'audit_logs', 'dropout_requests', 'admin_notifications', 'product_purchases', 'products',
        'withdrawal_requests', 'wallet_transactions', 'wallets', 'announcements',
        'teacher_daily_records', 'teacher_subjects', 'teacher_classes', 'teachers',
        'homework_activities', 'topic_progress', 'attendance', 'center_wallet_transactions',
        'payments', 'class_fees', 'students', 'topics', 'chapters', 'subjects', 'classes',
        'so_centers', 'users',
    ):
        op.drop_table(table)
