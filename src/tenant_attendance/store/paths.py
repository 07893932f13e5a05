"""Collection names and path helpers (schema-in-code).

The document store has no DDL; these constants are the single source of
truth for where each kind of document lives.
"""

from __future__ import annotations

TENANTS = "tenants"
GLOBAL_USERS = "global_users"
INVITE_CODES = "invite_codes"
ADMIN_REQUESTS = "admin_requests"

# Pre-multi-tenant flat collections. Only the migrator and the role
# resolver's last-resort lookup read these.
LEGACY_USERS = "users"
LEGACY_ATTENDANCE = "attendance"
LEGACY_BREAKS = "breaks"

# Subcollections under tenants/{tenantId}/
TENANT_USERS = "users"
TENANT_ATTENDANCE = "attendance"
TENANT_BREAKS = "breaks"


def _segment(value: str, what: str) -> str:
    value = str(value or "")
    if not value or "/" in value:
        raise ValueError(f"Invalid {what}: {value!r}")
    return value


def doc_path(collection: str, doc_id: str) -> str:
    return f"{collection}/{_segment(doc_id, 'document id')}"


def split_path(path: str) -> tuple[str, str]:
    if "/" not in path:
        raise ValueError(f"Not a document path: {path!r}")
    collection, doc_id = path.rsplit("/", 1)
    return collection, _segment(doc_id, "document id")


def tenant_doc(tenant_id: str) -> str:
    return doc_path(TENANTS, tenant_id)


def tenant_collection(tenant_id: str, name: str) -> str:
    return f"{tenant_doc(tenant_id)}/{_segment(name, 'collection')}"
