SECRET_KEY = "test-secret"

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

STORE_BACKEND = "memory"
IDENTITY_BACKEND = "memory"

FIREBASE_CREDENTIALS = None
FIREBASE_PROJECT_ID = None

DB_CONFIG = {
    "host": "localhost",
    "port": 3306,
    "user": "root",
    "password": "",
    "database": "tenant_attendance_test",
}

AUTO_INIT_DB = False

SUPER_ADMIN_EMAILS = ("owner@example.com",)

INVITE_VALID_DAYS = 7
INVITE_MAX_USES = 100

PUBLIC_BASE_URL = "http://testserver/"
