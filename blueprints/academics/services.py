# blueprints/academics/services.py
from __future__ import annotations
import logging
from typing import Optional, Type

from sqlalchemy import func

from extensions import db
from models import Chapter, SchoolClass, Student, Subject, Topic
from blueprints.core.audit import log_action
from blueprints.core.errors import Conflict, NotFound

log = logging.getLogger(__name__)

# model -> (entity name, parent fk column name, child model, child fk column name)
HIERARCHY: dict[type, tuple[str, Optional[str], Optional[type], Optional[str]]] = {
    SchoolClass: ("class", None, Subject, "class_id"),
    Subject: ("subject", "class_id", Chapter, "subject_id"),
    Chapter: ("chapter", "subject_id", Topic, "chapter_id"),
    Topic: ("topic", "chapter_id", None, None),
}
PARENT_OF = {Subject: SchoolClass, Chapter: Subject, Topic: Chapter}


# ---------- serializers ----------
def class_out(c: SchoolClass) -> dict:
    return {"id": c.id, "name": c.name, "description": c.description, "is_active": c.is_active}

def subject_out(s: Subject) -> dict:
    return {"id": s.id, "class_id": s.class_id, "name": s.name,
            "description": s.description, "is_active": s.is_active}

def chapter_out(ch: Chapter) -> dict:
    return {"id": ch.id, "subject_id": ch.subject_id, "name": ch.name, "description": ch.description,
            "order_index": ch.order_index, "is_active": ch.is_active}

def topic_out(t: Topic) -> dict:
    return {"id": t.id, "chapter_id": t.chapter_id, "name": t.name, "description": t.description,
            "order_index": t.order_index, "is_important": t.is_important,
            "is_moderate": t.is_moderate, "is_active": t.is_active}

SERIALIZERS = {SchoolClass: class_out, Subject: subject_out, Chapter: chapter_out, Topic: topic_out}


# ---------- generic helpers ----------
def get_or_404(model: Type, obj_id: int):
    obj = db.session.get(model, obj_id)
    if not obj:
        raise NotFound(f"{HIERARCHY[model][0]}_not_found")
    return obj


def list_query(model: Type, parent_id: Optional[int] = None, q: Optional[str] = None,
               active: Optional[bool] = None):
    _, parent_col, _, _ = HIERARCHY[model]
    query = model.query
    if parent_col and parent_id is not None:
        query = query.filter(getattr(model, parent_col) == parent_id)
    if q:
        query = query.filter(model.name.ilike(f"%{q.strip()}%"))
    if active is not None:
        query = query.filter(model.is_active.is_(active))
    if hasattr(model, "order_index"):
        return query.order_by(model.order_index.asc(), model.name.asc(), model.id.asc())
    return query.order_by(model.name.asc(), model.id.asc())


def _ensure_unique_name(model: Type, name: str, parent_id: Optional[int], exclude_id: Optional[int] = None) -> None:
    _, parent_col, _, _ = HIERARCHY[model]
    query = model.query.filter(func.lower(model.name) == name.lower())
    if parent_col:
        query = query.filter(getattr(model, parent_col) == parent_id)
    if exclude_id:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise Conflict("duplicate_name")


def create_node(model: Type, data):
    entity, parent_col, _, _ = HIERARCHY[model]
    fields = data.model_dump()
    parent_id = fields.get(parent_col) if parent_col else None
    if parent_col:
        get_or_404(PARENT_OF[model], parent_id)
    fields["name"] = fields["name"].strip()
    _ensure_unique_name(model, fields["name"], parent_id)
    obj = model(**fields)
    db.session.add(obj)
    db.session.flush()
    log_action("create", entity, obj.id, {"name": obj.name})
    db.session.commit()
    return obj


def update_node(model: Type, obj_id: int, data):
    entity, parent_col, _, _ = HIERARCHY[model]
    obj = get_or_404(model, obj_id)
    fields = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
    if "name" in fields:
        fields["name"] = fields["name"].strip()
        _ensure_unique_name(model, fields["name"], getattr(obj, parent_col) if parent_col else None,
                            exclude_id=obj.id)
    for key, val in fields.items():
        setattr(obj, key, val)
    log_action("update", entity, obj.id, fields)
    db.session.commit()
    return obj


def delete_node(model: Type, obj_id: int) -> None:
    entity, _, child_model, child_col = HIERARCHY[model]
    obj = get_or_404(model, obj_id)
    if child_model is not None:
        has_children = db.session.query(
            child_model.query.filter(getattr(child_model, child_col) == obj.id).exists()).scalar()
        if has_children:
            raise Conflict("has_children")
    if model is SchoolClass and Student.query.filter_by(class_id=obj.id).first():
        raise Conflict("has_students")
    log_action("delete", entity, obj.id, {"name": obj.name})
    db.session.delete(obj)
    db.session.commit()
    log.info("%s %s deleted", entity, obj_id)


def set_topic_flags(topic_id: int, data) -> Topic:
    t = get_or_404(Topic, topic_id)
    if data.is_important is not None:
        t.is_important = data.is_important
    if data.is_moderate is not None:
        t.is_moderate = data.is_moderate
    db.session.commit()
    return t


def class_tree(class_id: int) -> dict:
    c = get_or_404(SchoolClass, class_id)
    out = class_out(c)
    out["subjects"] = []
    for s in c.subjects:
        s_out = subject_out(s)
        s_out["chapters"] = []
        for ch in s.chapters:
            ch_out = chapter_out(ch)
            ch_out["topics"] = [topic_out(t) for t in ch.topics]
            s_out["chapters"].append(ch_out)
        out["subjects"].append(s_out)
    return out
