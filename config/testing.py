import os

from .config import FANOUT_WORKERS, db_config_from_env

SECRET_KEY = "test-secret"

DB_CONFIG = db_config_from_env()

STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")
STORE_TIMEZONE = "Asia/Kolkata"

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = False
AUTO_SEED_DB = False
