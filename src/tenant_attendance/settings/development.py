import os

from . import parse_email_list

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# firestore | mysql | memory
STORE_BACKEND = os.getenv("STORE_BACKEND", "memory")
# firebase | memory
IDENTITY_BACKEND = os.getenv("IDENTITY_BACKEND", "memory")

FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS") or os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "tenant_attendance"),
}

# If enabled with the mysql backend, the documents table is created on startup
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

SUPER_ADMIN_EMAILS = parse_email_list(os.getenv("SUPER_ADMIN_EMAILS", ""))

INVITE_VALID_DAYS = int(os.getenv("INVITE_VALID_DAYS", "7"))
INVITE_MAX_USES = int(os.getenv("INVITE_MAX_USES", "100"))

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:5000/")
