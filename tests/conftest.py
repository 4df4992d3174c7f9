from __future__ import annotations
from decimal import Decimal
from types import SimpleNamespace

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from extensions import db
from models import (
    Chapter, ClassFee, SchoolClass, SoCenter, Subject, Teacher, Topic, User,
)

from tests.helpers import PASSWORD, bearer


@pytest.fixture()
def app():
    app = create_app("test")
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def world(app):
    """Two centers with managers, staff users and one class with a small syllabus."""
    with app.app_context():
        def user(email, role, name):
            u = User(email=email, name=name, role=role, is_active=True,
                     password_hash=generate_password_hash(PASSWORD))
            db.session.add(u)
            return u

        admin = user("admin@example.com", "admin", "Admin")
        manager = user("center@example.com", "so_center", "Center One")
        other_manager = user("center2@example.com", "so_center", "Center Two")
        agent = user("agent@example.com", "agent", "Agent")
        teacher_user = user("teacher@example.com", "teacher", "Teacher")
        db.session.flush()

        c1 = SoCenter(center_code="NNASOC00001", name="Center One", manager_id=manager.id)
        c2 = SoCenter(center_code="NNASOC00002", name="Center Two", manager_id=other_manager.id)
        cls = SchoolClass(name="Class 8")
        db.session.add_all([c1, c2, cls])
        db.session.flush()

        maths = Subject(class_id=cls.id, name="Mathematics")
        db.session.add(maths)
        db.session.flush()
        ch = Chapter(subject_id=maths.id, name="Linear Equations", order_index=1)
        db.session.add(ch)
        db.session.flush()
        t1 = Topic(chapter_id=ch.id, name="One variable", order_index=1)
        t2 = Topic(chapter_id=ch.id, name="Word problems", order_index=2)
        db.session.add_all([t1, t2])
        db.session.add(ClassFee(class_id=cls.id, course_type="monthly",
                                admission_fee=Decimal("500"), monthly_fee=Decimal("1000")))
        teacher = Teacher(name="Teacher", user_id=teacher_user.id)
        db.session.add(teacher)
        db.session.commit()

        return SimpleNamespace(
            admin_id=admin.id, manager_id=manager.id, other_manager_id=other_manager.id,
            agent_id=agent.id, teacher_user_id=teacher_user.id, teacher_id=teacher.id,
            center_id=c1.id, other_center_id=c2.id, class_id=cls.id, subject_id=maths.id,
            chapter_id=ch.id, topic_ids=[t1.id, t2.id],
        )


@pytest.fixture()
def admin_h(app, world):
    return bearer(app, "admin@example.com")


@pytest.fixture()
def center_h(app, world):
    return bearer(app, "center@example.com")


@pytest.fixture()
def other_center_h(app, world):
    return bearer(app, "center2@example.com")


@pytest.fixture()
def agent_h(app, world):
    return bearer(app, "agent@example.com")


@pytest.fixture()
def teacher_h(app, world):
    return bearer(app, "teacher@example.com")

