from datetime import datetime, date
from decimal import Decimal
from enum import Enum as PyEnum

from flask_login import UserMixin
from sqlalchemy import (
    ForeignKey, UniqueConstraint, Index, Boolean, Date, DateTime,
    Integer, Numeric, String, Text, JSON
)
from sqlalchemy.orm import relationship, Mapped, mapped_column

from extensions import db

MONEY = Numeric(10, 2)
ZERO = Decimal("0.00")

# ---------- Enums ----------
# Columns store the plain string value so the schema stays portable between
# SQLite (dev/tests) and Postgres.
class UserRole(str, PyEnum):
    ADMIN = "admin"
    SO_CENTER = "so_center"
    TEACHER = "teacher"
    ACADEMIC_ADMIN = "academic_admin"
    AGENT = "agent"
    OFFICE_STAFF = "office_staff"
    COLLECTION_AGENT = "collection_agent"
    MARKETING_STAFF = "marketing_staff"

class CourseType(str, PyEnum):
    MONTHLY = "monthly"
    YEARLY = "yearly"

class PaymentStatus(str, PyEnum):
    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"

class AttendanceStatus(str, PyEnum):
    PRESENT = "present"
    ABSENT = "absent"
    HOLIDAY = "holiday"

class TopicStatus(str, PyEnum):
    PENDING = "pending"
    LEARNED = "learned"

class HomeworkStatus(str, PyEnum):
    COMPLETED = "completed"
    NOT_COMPLETED = "not_completed"
    NOT_GIVEN = "not_given"

class RequestStatus(str, PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Audience(str, PyEnum):
    STUDENTS = "students"
    TEACHERS = "teachers"
    SO_CENTERS = "so_centers"
    ADMIN = "admin"
    ALL = "all"

class Priority(str, PyEnum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"

class ExamStatus(str, PyEnum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class AnswerState(str, PyEnum):
    FULLY_ANSWERED = "fully_answered"
    PARTIALLY_ANSWERED = "partially_answered"
    NOT_ANSWERED = "not_answered"

class ExpenseType(str, PyEnum):
    RENT = "rent"
    ELECTRIC_BILL = "electric_bill"
    INTERNET_BILL = "internet_bill"
    SO_SALARY = "so_salary"
    OTHERS = "others"

class ExpenseStatus(str, PyEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PAID = "paid"


# ---------- Association Tables ----------
teacher_classes = db.Table(
    "teacher_classes",
    db.Column("teacher_id", db.Integer, db.ForeignKey("teachers.id", ondelete="CASCADE"), primary_key=True),
    db.Column("class_id", db.Integer, db.ForeignKey("classes.id", ondelete="CASCADE"), primary_key=True),
)

teacher_subjects = db.Table(
    "teacher_subjects",
    db.Column("teacher_id", db.Integer, db.ForeignKey("teachers.id", ondelete="CASCADE"), primary_key=True),
    db.Column("subject_id", db.Integer, db.ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True),
)

exam_centers = db.Table(
    "exam_centers",
    db.Column("exam_id", db.Integer, db.ForeignKey("exams.id", ondelete="CASCADE"), primary_key=True),
    db.Column("so_center_id", db.Integer, db.ForeignKey("so_centers.id", ondelete="CASCADE"), primary_key=True),
)

exam_chapters = db.Table(
    "exam_chapters",
    db.Column("exam_id", db.Integer, db.ForeignKey("exams.id", ondelete="CASCADE"), primary_key=True),
    db.Column("chapter_id", db.Integer, db.ForeignKey("chapters.id", ondelete="CASCADE"), primary_key=True),
)


# ---------- Users & Centers ----------
class User(UserMixin, db.Model):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20))
    role: Mapped[str] = mapped_column(String(32), nullable=False, index=True, default=UserRole.SO_CENTER.value)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    managed_center = relationship("SoCenter", back_populates="manager", uselist=False)
    teacher = relationship("Teacher", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User {self.email}>"


class SoCenter(db.Model):
    __tablename__ = "so_centers"

    id: Mapped[int] = mapped_column(primary_key=True)
    center_code: Mapped[str] = mapped_column(String(20), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(String(20))
    manager_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), unique=True)
    wallet_balance: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    manager = relationship("User", back_populates="managed_center")

    def __repr__(self):
        return f"<SoCenter {self.center_code}>"


class CenterWalletTransaction(db.Model):
    __tablename__ = "center_wallet_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    so_center_id: Mapped[int] = mapped_column(ForeignKey("so_centers.id", ondelete="CASCADE"), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)  # credit | debit
    description: Mapped[str | None] = mapped_column(Text)
    payment_id: Mapped[int | None] = mapped_column(ForeignKey("payments.id", ondelete="SET NULL"))
    collection_agent_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


# ---------- Academic hierarchy: Class -> Subject -> Chapter -> Topic ----------
class SchoolClass(db.Model):
    __tablename__ = "classes"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    subjects = relationship("Subject", back_populates="school_class", order_by="Subject.name")

    def __repr__(self):
        return f"<SchoolClass {self.name}>"


class Subject(db.Model):
    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(primary_key=True)
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    school_class = relationship("SchoolClass", back_populates="subjects")
    chapters = relationship("Chapter", back_populates="subject", order_by="[Chapter.order_index, Chapter.name]")

    __table_args__ = (
        UniqueConstraint("class_id", "name", name="uq_subject_class_name"),
    )


class Chapter(db.Model):
    __tablename__ = "chapters"

    id: Mapped[int] = mapped_column(primary_key=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    subject = relationship("Subject", back_populates="chapters")
    topics = relationship("Topic", back_populates="chapter", order_by="[Topic.order_index, Topic.name]")

    __table_args__ = (
        UniqueConstraint("subject_id", "name", name="uq_chapter_subject_name"),
    )


class Topic(db.Model):
    __tablename__ = "topics"

    id: Mapped[int] = mapped_column(primary_key=True)
    chapter_id: Mapped[int] = mapped_column(ForeignKey("chapters.id", ondelete="RESTRICT"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    order_index: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    is_important: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_moderate: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    chapter = relationship("Chapter", back_populates="topics")

    __table_args__ = (
        UniqueConstraint("chapter_id", "name", name="uq_topic_chapter_name"),
    )


# ---------- Students & fees ----------
class Student(db.Model):
    __tablename__ = "students"

    id: Mapped[int] = mapped_column(primary_key=True)
    student_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False, index=True)
    so_center_id: Mapped[int] = mapped_column(ForeignKey("so_centers.id", ondelete="RESTRICT"), nullable=False, index=True)
    parent_name: Mapped[str | None] = mapped_column(String(255))
    parent_phone: Mapped[str] = mapped_column(String(20), nullable=False)
    father_name: Mapped[str | None] = mapped_column(String(255))
    mother_name: Mapped[str | None] = mapped_column(String(255))
    aadhar_number: Mapped[str | None] = mapped_column(String(12), unique=True)
    course_type: Mapped[str] = mapped_column(String(16), nullable=False, default=CourseType.MONTHLY.value)
    enrollment_date: Mapped[date | None] = mapped_column(Date)
    admission_fee_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    total_fee_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    paid_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    pending_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default=PaymentStatus.PAID.value)
    qr_code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    school_class = relationship("SchoolClass")
    so_center = relationship("SoCenter")

    def __repr__(self):
        return f"<Student {self.student_code}>"


class ClassFee(db.Model):
    __tablename__ = "class_fees"

    id: Mapped[int] = mapped_column(primary_key=True)
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    course_type: Mapped[str] = mapped_column(String(16), nullable=False)
    admission_fee: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    monthly_fee: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    yearly_fee: Mapped[Decimal | None] = mapped_column(MONEY)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    school_class = relationship("SchoolClass")

    __table_args__ = (
        UniqueConstraint("class_id", "course_type", name="uq_class_fee_class_course"),
    )


class Payment(db.Model):
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False, default="cash")
    fee_type: Mapped[str] = mapped_column(String(32), nullable=False)
    receipt_number: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    month: Mapped[str | None] = mapped_column(String(16))
    year: Mapped[int | None] = mapped_column(Integer)
    recorded_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    student = relationship("Student")


# ---------- Attendance & progress ----------
class Attendance(db.Model):
    __tablename__ = "attendance"

    id: Mapped[int] = mapped_column(primary_key=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    so_center_id: Mapped[int] = mapped_column(ForeignKey("so_centers.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    marked_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student")

    __table_args__ = (
        UniqueConstraint("student_id", "date", name="uq_attendance_student_date"),
        Index("ix_attendance_center_date", "so_center_id", "date"),
    )


class TopicProgress(db.Model):
    __tablename__ = "topic_progress"

    id: Mapped[int] = mapped_column(primary_key=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    topic_id: Mapped[int] = mapped_column(ForeignKey("topics.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=TopicStatus.PENDING.value)
    completed_date: Mapped[date | None] = mapped_column(Date)
    updated_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    teacher_feedback: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("student_id", "topic_id", name="uq_progress_student_topic"),
    )


class HomeworkActivity(db.Model):
    __tablename__ = "homework_activities"

    id: Mapped[int] = mapped_column(primary_key=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    homework_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    completion_type: Mapped[str | None] = mapped_column(String(32))
    reason: Mapped[str | None] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("student_id", "homework_date", name="uq_homework_student_date"),
    )


# ---------- Teachers ----------
class Teacher(db.Model):
    __tablename__ = "teachers"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20))
    email: Mapped[str | None] = mapped_column(String(255))
    qualification: Mapped[str | None] = mapped_column(String(255))
    salary_type: Mapped[str] = mapped_column(String(16), default="fixed", nullable=False)
    salary_amount: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="teacher")
    classes = relationship("SchoolClass", secondary=teacher_classes, order_by="SchoolClass.name")
    subjects = relationship("Subject", secondary=teacher_subjects, order_by="Subject.name")

    def __repr__(self):
        return f"<Teacher {self.name}>"


class TeacherDailyRecord(db.Model):
    __tablename__ = "teacher_daily_records"

    id: Mapped[int] = mapped_column(primary_key=True)
    teacher_id: Mapped[int] = mapped_column(ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    record_date: Mapped[date] = mapped_column(Date, nullable=False)
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False)
    chapter_id: Mapped[int | None] = mapped_column(ForeignKey("chapters.id", ondelete="SET NULL"))
    topic_id: Mapped[int | None] = mapped_column(ForeignKey("topics.id", ondelete="SET NULL"))
    teaching_duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    teacher = relationship("Teacher")
    school_class = relationship("SchoolClass")
    subject = relationship("Subject")
    chapter = relationship("Chapter")
    topic = relationship("Topic")

    __table_args__ = (
        Index("ix_teacher_records_teacher_date", "teacher_id", "record_date"),
    )


# ---------- Announcements ----------
class Announcement(db.Model):
    __tablename__ = "announcements"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str | None] = mapped_column(Text)
    target_audience: Mapped[str] = mapped_column(String(16), nullable=False, default=Audience.ALL.value)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default=Priority.NORMAL.value)
    image_url: Mapped[str | None] = mapped_column(String(500))
    from_date: Mapped[date] = mapped_column(Date, nullable=False)
    to_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    show_on_qr_code: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


# ---------- Wallets, products, withdrawals ----------
class Wallet(db.Model):
    __tablename__ = "wallets"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    course_wallet_balance: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    commission_wallet_balance: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    total_earnings: Mapped[Decimal] = mapped_column(MONEY, default=ZERO, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    user = relationship("User")


class WalletTransaction(db.Model):
    __tablename__ = "wallet_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="completed")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class WithdrawalRequest(db.Model):
    __tablename__ = "withdrawal_requests"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    withdrawal_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=RequestStatus.PENDING.value, index=True)
    payment_mode: Mapped[str | None] = mapped_column(String(16))
    payment_details: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    requested_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime)
    processed_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))

    user = relationship("User", foreign_keys=[user_id])


class Product(db.Model):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    commission_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=ZERO)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class ProductPurchase(db.Model):
    __tablename__ = "product_purchases"

    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    agent_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    transaction_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    student_name: Mapped[str] = mapped_column(String(255), nullable=False)
    student_class: Mapped[str | None] = mapped_column(String(100))
    student_education: Mapped[str | None] = mapped_column(String(255))
    student_address: Mapped[str | None] = mapped_column(Text)
    student_mobile: Mapped[str | None] = mapped_column(String(20))
    course_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    commission_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    commission_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    product = relationship("Product")


class AdminNotification(db.Model):
    __tablename__ = "admin_notifications"

    id: Mapped[int] = mapped_column(primary_key=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    data: Mapped[dict | None] = mapped_column(JSON)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


# ---------- Exams ----------
class Exam(db.Model):
    __tablename__ = "exams"

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    class_id: Mapped[int] = mapped_column(ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False, index=True)
    subject_id: Mapped[int] = mapped_column(ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False)
    exam_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_marks: Mapped[int] = mapped_column(Integer, nullable=False)
    passing_marks: Mapped[int] = mapped_column(Integer, nullable=False)
    # [{"question_number": 1, "marks": 5, "question_text": "..."}]
    questions: Mapped[list | None] = mapped_column(JSON)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ExamStatus.SCHEDULED.value)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    school_class = relationship("SchoolClass")
    subject = relationship("Subject")
    centers = relationship("SoCenter", secondary=exam_centers, order_by="SoCenter.center_code")
    chapters = relationship("Chapter", secondary=exam_chapters, order_by="Chapter.order_index")
    results = relationship("ExamResult", back_populates="exam", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Exam {self.title}>"


class ExamResult(db.Model):
    __tablename__ = "exam_results"

    id: Mapped[int] = mapped_column(primary_key=True)
    exam_id: Mapped[int] = mapped_column(ForeignKey("exams.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    marks_obtained: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    answered_questions: Mapped[str] = mapped_column(String(24), nullable=False, default=AnswerState.NOT_ANSWERED.value)
    # [{"question_number": 1, "marks": 3}]
    question_marks: Mapped[list | None] = mapped_column(JSON)
    remarks: Mapped[str | None] = mapped_column(Text)
    submitted_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    exam = relationship("Exam", back_populates="results")
    student = relationship("Student")

    __table_args__ = (
        UniqueConstraint("exam_id", "student_id", name="uq_exam_result_exam_student"),
    )


# ---------- SO center expenses ----------
class CenterExpense(db.Model):
    __tablename__ = "center_expenses"

    id: Mapped[int] = mapped_column(primary_key=True)
    so_center_id: Mapped[int] = mapped_column(ForeignKey("so_centers.id", ondelete="CASCADE"), nullable=False, index=True)
    expense_type: Mapped[str] = mapped_column(String(24), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    electric_bill_number: Mapped[str | None] = mapped_column(String(64))
    internet_bill_number: Mapped[str | None] = mapped_column(String(64))
    internet_service_provider: Mapped[str | None] = mapped_column(String(128))
    service_name: Mapped[str | None] = mapped_column(String(255))
    service_phone: Mapped[str | None] = mapped_column(String(20))
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=ExpenseStatus.PENDING.value, index=True)
    admin_notes: Mapped[str | None] = mapped_column(Text)
    requested_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    requested_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    approved_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime)
    payment_method: Mapped[str | None] = mapped_column(String(32))
    payment_reference: Mapped[str | None] = mapped_column(String(128))
    transaction_id: Mapped[str | None] = mapped_column(String(64), unique=True)
    paid_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    paid_at: Mapped[datetime | None] = mapped_column(DateTime)

    so_center = relationship("SoCenter")
    approver = relationship("User", foreign_keys=[approved_by])


# ---------- Dropouts & audit ----------
class DropoutRequest(db.Model):
    __tablename__ = "dropout_requests"

    id: Mapped[int] = mapped_column(primary_key=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    so_center_id: Mapped[int] = mapped_column(ForeignKey("so_centers.id", ondelete="CASCADE"), nullable=False, index=True)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=RequestStatus.PENDING.value)
    requested_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    processed_by: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    processed_at: Mapped[datetime | None] = mapped_column(DateTime)
    admin_notes: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    student = relationship("Student")
    so_center = relationship("SoCenter")


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int | None] = mapped_column(Integer)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[int | None] = mapped_column(Integer)
    payload: Mapped[dict | None] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
