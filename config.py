import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./sessions.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    JWT_SECRET = data.get("JWT_SECRET", "dev-secret-key-change-in-production")
    ACCESS_TOKEN_TTL_SECONDS = int(data.get("ACCESS_TOKEN_TTL_SECONDS", 3600))
    MAX_SESSIONS_PER_USER = int(data.get("MAX_SESSIONS_PER_USER", 5))
    SESSION_RETENTION_DAYS = int(data.get("SESSION_RETENTION_DAYS", 30))
    NEVER_USED_GRACE_HOURS = int(data.get("NEVER_USED_GRACE_HOURS", 24))
    SESSION_CLEANUP_INTERVAL_HOURS = float(data.get("SESSION_CLEANUP_INTERVAL_HOURS", 0))
    ADMIN_API_KEY = data.get("ADMIN_API_KEY", "test-admin-key-12345")
