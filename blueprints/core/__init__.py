from flask import Blueprint

bp = Blueprint("core", __name__)
# routes must be imported so that they register on the blueprint
from . import routes  # noqa: E402,F401
