"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

INVITE_TOKEN_LENGTH = 32
INVITE_TOKEN_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"
DEFAULT_INVITE_VALID_DAYS = 7
DEFAULT_INVITE_MAX_USES = 100
DEFAULT_INVITE_HISTORY_LIMIT = 50

TENANT_ID_MAX_LENGTH = 50
TENANT_ID_SUGGESTION_LENGTH = 30
COMPANY_NAME_MAX_LENGTH = 100

MIN_PASSWORD_LENGTH = 6

# Firestore caps a batch at 500 writes; flush well before that.
MIGRATION_BATCH_LIMIT = 450
LEGACY_DEFAULT_COMPANY = "default-company"

DEFAULT_HISTORY_LIMIT = 30

DEFAULT_TENANT_SETTINGS = {
    "workStartTime": "09:00",
    "workEndTime": "18:00",
    "breakTime": 60,
    "timezone": "Asia/Tokyo",
}
