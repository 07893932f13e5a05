import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module, defaulting to development
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "tenant_attendance.settings.production"

    if env in {"test", "testing"}:
        return "tenant_attendance.settings.testing"

    return "tenant_attendance.settings.development"


def parse_email_list(value: str) -> tuple[str, ...]:
    """Comma-separated addresses, lowercased, blanks dropped."""
    return tuple(e.strip().lower() for e in (value or "").split(",") if e.strip())
