# scripts/dev_db_init.py
from decimal import Decimal

from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import ClassFee, SchoolClass, SoCenter, User, UserRole

def seed_minimal():
    admin = User.query.filter_by(email="admin@example.com").first()
    if not admin:
        admin = User(email="admin@example.com", name="Admin", role=UserRole.ADMIN.value,
                     password_hash=generate_password_hash("pass"))
        db.session.add(admin)

    manager = User.query.filter_by(email="center@example.com").first()
    if not manager:
        manager = User(email="center@example.com", name="Center Manager", role=UserRole.SO_CENTER.value,
                       password_hash=generate_password_hash("pass"))
        db.session.add(manager)
    db.session.flush()

    if not SoCenter.query.filter_by(center_code="NNASOC00001").first():
        db.session.add(SoCenter(center_code="NNASOC00001", name="Main Center", manager_id=manager.id))

    cls = SchoolClass.query.filter_by(name="Class 8").first()
    if not cls:
        cls = SchoolClass(name="Class 8")
        db.session.add(cls)
        db.session.flush()

    if not ClassFee.query.filter_by(class_id=cls.id, course_type="monthly").first():
        db.session.add(ClassFee(class_id=cls.id, course_type="monthly",
                                admission_fee=Decimal("500"), monthly_fee=Decimal("1000")))

    db.session.commit()

if __name__ == "__main__":
    app = create_app("dev")
    with app.app_context():
        db.create_all()
        seed_minimal()
        print("DB initialized and seeded")
