"""
Idempotent seed script.
Usage:
  python seed.py --reset         # drop + recreate tables, demo data and admin@example.com/admin
  python seed.py --ensure-admin  # create only the admin user (no demo data)
  python seed.py                 # soft fill of missing demo data (idempotent)
"""
from datetime import date, timedelta
from decimal import Decimal
import argparse

from sqlalchemy.exc import SQLAlchemyError
from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import (
    Announcement, Chapter, ClassFee, Exam, Product, SchoolClass, SoCenter, Student, Subject,
    Teacher, Topic, User, UserRole,
)
from blueprints.students.schemas import StudentIn
from blueprints.students.services import create_student

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin"

CURRICULUM = {
    "Class 8": {
        "Mathematics": {
            "Rational Numbers": ["Properties of rational numbers", "Representation on number line"],
            "Linear Equations": ["Equations with one variable", "Word problems"],
        },
        "Science": {
            "Crop Production": ["Agricultural practices", "Storage of grains"],
        },
    },
    "Class 9": {
        "Mathematics": {
            "Number Systems": ["Irrational numbers", "Real numbers and decimals"],
            "Polynomials": ["Zeroes of a polynomial", "Factorisation"],
        },
    },
}

# ---- helpers ----
def get_or_create(model, defaults=None, **by):
    """Idempotent create keyed by unique columns."""
    inst = db.session.query(model).filter_by(**by).first()
    if inst:
        return inst, False
    data = dict(defaults or {})
    data.update(by)
    inst = model(**data)
    db.session.add(inst)
    db.session.flush()
    return inst, True

def ensure_user(email, password, role, name):
    user, created = get_or_create(User, email=email, defaults=dict(
        name=name, role=role, is_active=True, password_hash=generate_password_hash(password)))
    return user, created

# ---- demo data ----
def seed_curriculum():
    ids = {}
    for c_name, subjects in CURRICULUM.items():
        cls, _ = get_or_create(SchoolClass, name=c_name)
        ids[c_name] = cls.id
        for s_name, chapters in subjects.items():
            subj, _ = get_or_create(Subject, class_id=cls.id, name=s_name)
            for ch_idx, (ch_name, topics) in enumerate(chapters.items(), start=1):
                ch, _ = get_or_create(Chapter, subject_id=subj.id, name=ch_name, defaults=dict(order_index=ch_idx))
                for t_idx, t_name in enumerate(topics, start=1):
                    get_or_create(Topic, chapter_id=ch.id, name=t_name,
                                  defaults=dict(order_index=t_idx, is_important=(t_idx == 1)))
        get_or_create(ClassFee, class_id=cls.id, course_type="monthly",
                      defaults=dict(admission_fee=Decimal("500"), monthly_fee=Decimal("1000")))
        get_or_create(ClassFee, class_id=cls.id, course_type="yearly",
                      defaults=dict(admission_fee=Decimal("500"), monthly_fee=Decimal("900"),
                                    yearly_fee=Decimal("10000")))
    db.session.commit()
    return ids

def seed_center_and_students(admin, class_ids):
    manager, _ = ensure_user("center@example.com", "pass", UserRole.SO_CENTER.value, "Center Manager")
    center, _ = get_or_create(SoCenter, center_code="NNASOC00001",
                              defaults=dict(name="Main Road Center", address="1 Main Road", manager_id=manager.id))
    db.session.commit()

    demo = [
        ("Anil Kumar", "Class 8", "9876500001", date.today().replace(day=5)),
        ("Sita Devi", "Class 8", "9876500002", date.today().replace(day=15)),
        ("Ravi Teja", "Class 9", "9876500003", (date.today().replace(day=1) - timedelta(days=40))),
    ]
    for name, c_name, phone, enrolled in demo:
        if Student.query.filter_by(name=name, so_center_id=center.id).first():
            continue
        create_student(admin, StudentIn(
            name=name, class_id=class_ids[c_name], parent_phone=phone,
            enrollment_date=enrolled, so_center_id=center.id,
        ))
    return center

def seed_exam(admin, center):
    maths = Subject.query.join(SchoolClass).filter(SchoolClass.name == "Class 8", Subject.name == "Mathematics").first()
    exam, created = get_or_create(Exam, title="Class 8 Maths unit test", defaults=dict(
        class_id=maths.class_id, subject_id=maths.id, exam_date=date.today() + timedelta(days=7),
        duration=45, total_questions=2, total_marks=20, passing_marks=8, created_by=admin.id,
        questions=[
            {"question_number": 1, "marks": 10, "question_text": "Solve 3x - 5 = 10"},
            {"question_number": 2, "marks": 10, "question_text": "Represent -3/4 on the number line"},
        ]))
    if created:
        exam.chapters = list(maths.chapters)
        exam.centers = [center]
    db.session.commit()

def seed_misc():
    ensure_user("agent@example.com", "pass", UserRole.AGENT.value, "Field Agent")
    t_user, _ = ensure_user("teacher@example.com", "pass", UserRole.TEACHER.value, "Lakshmi Rao")
    teacher, _ = get_or_create(Teacher, name="Lakshmi Rao", defaults=dict(user_id=t_user.id, phone="9876500010"))
    if not teacher.classes:
        teacher.classes = SchoolClass.query.all()
    get_or_create(Product, name="Foundation Course", defaults=dict(
        description="Year-long foundation course", price=Decimal("5000"), commission_percentage=Decimal("10")))
    get_or_create(Announcement, title="Welcome", defaults=dict(
        description="New academic year starts this month", from_date=date.today(),
        to_date=date.today() + timedelta(days=30), show_on_qr_code=True))
    db.session.commit()

# ---- admin ----
def ensure_admin():
    _, created = ensure_user(ADMIN_EMAIL, ADMIN_PASSWORD, UserRole.ADMIN.value, "Administrator")
    db.session.commit()
    return created

def full_seed():
    ensure_admin()
    admin = User.query.filter_by(email=ADMIN_EMAIL).first()
    class_ids = seed_curriculum()
    center = seed_center_and_students(admin, class_ids)
    seed_exam(admin, center)
    seed_misc()

# ---- main ----
def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--reset", action="store_true", help="drop + create + full seed (demo)")
    parser.add_argument("--ensure-admin", action="store_true", help="create only the admin user")
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.reset:
            try:
                db.drop_all()
            except SQLAlchemyError as ex:
                app.logger.warning("drop_all failed: %s", ex)
            db.create_all()
            full_seed()
            print("[seed] reset+seed complete")
            return

        if args.ensure_admin:
            db.create_all()
            created = ensure_admin()
            print("Admin created." if created else "Admin already exists.")
            return

        # default: fill in whatever is missing
        db.create_all()
        full_seed()
        print("[seed] soft seed complete")

if __name__ == "__main__":
    main()
