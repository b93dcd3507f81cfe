import os

from .config import FANOUT_WORKERS, STORE_TIMEZONE, db_config_from_env, env_flag

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = db_config_from_env()

# mysql | memory
STORE_BACKEND = os.getenv("STORE_BACKEND", "mysql")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, the app creates the database and one table per collection on startup
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also seed the demo admin/employee
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")
