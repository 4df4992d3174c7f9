# blueprints/academics/routes.py
from __future__ import annotations

from flask import Blueprint, request
from flask_login import login_required

from models import Chapter, SchoolClass, Subject, Topic, UserRole
from blueprints.auth.routes import roles_required
from blueprints.core.http import arg_bool, arg_int, created, json_body, ok, page_args, paginate
from . import services as svc
from .schemas import (
    ChapterIn, ChapterUpdate,
    ClassIn, ClassUpdate,
    SubjectIn, SubjectUpdate,
    TopicFlagsIn,
    TopicIn, TopicUpdate,
)

api_bp = Blueprint("academics_api", __name__)

content_admin = roles_required(UserRole.ACADEMIC_ADMIN)

# url segment -> (model, parent query arg, create schema, update schema)
RESOURCES = {
    "classes": (SchoolClass, None, ClassIn, ClassUpdate),
    "subjects": (Subject, "class_id", SubjectIn, SubjectUpdate),
    "chapters": (Chapter, "subject_id", ChapterIn, ChapterUpdate),
    "topics": (Topic, "chapter_id", TopicIn, TopicUpdate),
}


def _register(segment: str) -> None:
    model, parent_arg, in_schema, upd_schema = RESOURCES[segment]
    serializer = svc.SERIALIZERS[model]

    @login_required
    def list_view():
        page, per_page = page_args(default_per_page=50)
        q = svc.list_query(
            model,
            parent_id=arg_int(parent_arg) if parent_arg else None,
            q=request.args.get("q"),
            active=arg_bool("active"),
        )
        return ok(paginate(q, serializer, page=page, per_page=per_page))

    @login_required
    def get_view(obj_id: int):
        return ok(serializer(svc.get_or_404(model, obj_id)))

    @content_admin
    def create_view():
        obj = svc.create_node(model, in_schema.model_validate(json_body()))
        return created(serializer(obj), location=f"/api/v1/{segment}/{obj.id}")

    @content_admin
    def update_view(obj_id: int):
        return ok(serializer(svc.update_node(model, obj_id, upd_schema.model_validate(json_body()))))

    @content_admin
    def delete_view(obj_id: int):
        svc.delete_node(model, obj_id)
        return ok({"ok": True})

    api_bp.add_url_rule(f"/{segment}", f"{segment}_list", list_view, methods=["GET"])
    api_bp.add_url_rule(f"/{segment}", f"{segment}_create", create_view, methods=["POST"])
    api_bp.add_url_rule(f"/{segment}/<int:obj_id>", f"{segment}_get", get_view, methods=["GET"])
    api_bp.add_url_rule(f"/{segment}/<int:obj_id>", f"{segment}_update", update_view, methods=["PUT"])
    api_bp.add_url_rule(f"/{segment}/<int:obj_id>", f"{segment}_delete", delete_view, methods=["DELETE"])


for _segment in RESOURCES:
    _register(_segment)


@api_bp.get("/classes/<int:class_id>/tree")
@login_required
def class_tree(class_id: int):
    return ok(svc.class_tree(class_id))


@api_bp.patch("/topics/<int:topic_id>/flags")
@content_admin
def topic_flags(topic_id: int):
    t = svc.set_topic_flags(topic_id, TopicFlagsIn.model_validate(json_body()))
    return ok(svc.topic_out(t))
