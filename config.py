from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory unless DATABASE_URL points at Postgres
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'app.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # auth
    AUTH_TOKEN_MAX_AGE = int(os.getenv("AUTH_TOKEN_MAX_AGE", 12 * 60 * 60))
    AUTH_RL_MAX = 5
    AUTH_RL_WINDOW = 300
    API_CSRF_ENABLED = True

    # business rules
    MIN_WITHDRAWAL_AMOUNT = 1000
    FEE_FULL_MONTH_UNTIL_DAY = 10
    FEE_HALF_MONTH_UNTIL_DAY = 20
    WALLET_TRANSACTIONS_LIMIT = 50
    CENTER_CODE_PREFIX = "NNASOC"

    SEED_TEST_DATA = False
    DEFAULT_USERS: list[dict] = []

class DevConfig(BaseConfig):
    DEBUG = True
    SEED_TEST_DATA = True
    DEFAULT_USERS = [
        {"email": "admin@example.com", "password": "pass", "role": "admin", "name": "Admin"},
        {"email": "center@example.com", "password": "pass", "role": "so_center", "name": "Center Manager"},
        {"email": "agent@example.com", "password": "pass", "role": "agent", "name": "Field Agent"},
    ]

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    API_CSRF_ENABLED = False
    AUTH_RL_MAX = 50

class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_TEST_DATA = False
    DEFAULT_USERS = []

config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
