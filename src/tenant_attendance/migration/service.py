"""Move pre-multi-tenant flat data into per-tenant subcollections.

Legacy layout::

    users/{uid}          (company field groups users into companies)
    attendance/{id}      (uid or userId names the owner)
    breaks/{id}          (attendanceId links to a record)

Target layout::

    tenants/{tenantId}
    tenants/{tenantId}/users/{uid}
    tenants/{tenantId}/attendance/{id}
    tenants/{tenantId}/breaks/{id}
    global_users/{uid}

Every step is safe to re-run: migrated tenants are matched by company name,
a user counts as migrated once its tenant-scoped record exists, and records
that already exist at the target are not copied again. Attendance copies
carry the current field names (userId, startTime, endTime).
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from ..common.datetime_utils import coerce_datetime, now_utc
from ..core.constants import DEFAULT_TENANT_SETTINGS, LEGACY_DEFAULT_COMPANY, MIGRATION_BATCH_LIMIT
from ..core.enums import Role
from ..core.exceptions import NotFoundError
from ..store.base import DocumentStore
from ..store.document import Document
from ..store.paths import (
    GLOBAL_USERS,
    LEGACY_ATTENDANCE,
    LEGACY_BREAKS,
    LEGACY_USERS,
    TENANT_ATTENDANCE,
    TENANT_BREAKS,
    TENANT_USERS,
    TENANTS,
    doc_path,
    tenant_collection,
    tenant_doc,
)
from ..store.values import SERVER_TIMESTAMP, Increment
from ..tenants.service import generate_tenant_id

logger = logging.getLogger(__name__)


@dataclass
class MigrationAnalysis:
    legacy_users: list[dict] = field(default_factory=list)
    global_user_count: int = 0
    tenants: list[dict] = field(default_factory=list)
    legacy_attendance_count: int = 0
    legacy_break_count: int = 0
    records_by_user: dict[str, dict[str, int]] = field(default_factory=dict)


@dataclass
class UserMigrationResult:
    dry_run: bool
    tenants_created: dict[str, str] = field(default_factory=dict)
    tenants_reused: dict[str, str] = field(default_factory=dict)
    users_migrated: int = 0
    users_skipped: int = 0
    roles_mapped: int = 0
    batches_committed: int = 0


@dataclass
class AttendanceMigrationResult:
    dry_run: bool
    attendance_copied: int = 0
    breaks_copied: int = 0
    already_migrated: int = 0
    purged: int = 0
    skipped: list[str] = field(default_factory=list)
    per_tenant: dict[str, int] = field(default_factory=dict)
    batches_committed: int = 0


@dataclass
class VerificationReport:
    global_user_count: int
    tenant_count: int
    global_users: list[dict]
    tenants: list[dict]


class _BatchWriter:
    """Stage writes and commit them before a batch grows past ``limit`` ops.

    Callers ``reserve`` room for a group of writes that must land in the same
    commit; a group larger than ``limit`` is committed on its own.
    """

    def __init__(self, store: DocumentStore, *, limit: int, dry_run: bool):
        self._store = store
        self._limit = limit
        self._dry_run = dry_run
        self._batch = store.batch()
        self.staged = 0
        self.commits = 0

    def reserve(self, ops: int) -> None:
        if self._dry_run:
            return
        if len(self._batch) and len(self._batch) + ops > self._limit:
            self.flush()

    def set(self, path: str, data: dict, *, merge: bool = False) -> None:
        self.staged += 1
        if not self._dry_run:
            self._batch.set(path, data, merge=merge)

    def delete(self, path: str) -> None:
        self.staged += 1
        if not self._dry_run:
            self._batch.delete(path)

    def flush(self) -> None:
        if self._dry_run or not len(self._batch):
            return
        logger.info("Committing migration batch (%d ops)", len(self._batch))
        self._batch.commit()
        self.commits += 1
        self._batch = self._store.batch()


_KNOWN_ROLES = {role.value for role in Role}


def _owner(data: dict) -> Optional[str]:
    return data.get("userId") or data.get("uid")


def _timestamp(doc: Document, *fields: str):
    value = next((doc.get(f) for f in fields if doc.get(f)), None)
    try:
        return coerce_datetime(value)
    except (TypeError, ValueError):
        logger.warning("Keeping unparsed %s on %s: %r", fields[0], doc.path, value)
        return value


def _attendance_fields(doc: Document) -> dict:
    """Rename legacy clock fields to the ones attendance queries filter on."""
    data = dict(doc.data)
    if _owner(data):
        data["userId"] = _owner(data)
    data["startTime"] = _timestamp(doc, "startTime", "clockInTime", "clockIn")
    data["endTime"] = _timestamp(doc, "endTime", "clockOutTime", "clockOut")
    if not data.get("date") and isinstance(data["startTime"], datetime):
        data["date"] = data["startTime"].date().isoformat()
    return data


def _break_fields(doc: Document) -> dict:
    data = dict(doc.data)
    if _owner(data):
        data["userId"] = _owner(data)
    for name, legacy in (("startTime", "breakStart"), ("endTime", "breakEnd")):
        value = _timestamp(doc, name, legacy)
        if value is not None:
            data[name] = value
    return data


class LegacyMigrator:
    def __init__(
        self,
        store: DocumentStore,
        *,
        clock: Callable[[], datetime] = now_utc,
        batch_limit: int = MIGRATION_BATCH_LIMIT,
    ):
        if batch_limit < 1:
            raise ValueError("batch_limit must be positive")
        self._store = store
        self._clock = clock
        self._batch_limit = batch_limit

    def analyze(self) -> MigrationAnalysis:
        analysis = MigrationAnalysis()

        for doc in self._store.list(LEGACY_USERS):
            analysis.legacy_users.append(
                {
                    "uid": doc.id,
                    "email": doc.get("email"),
                    "role": doc.get("role"),
                    "tenantId": doc.get("tenantId"),
                    "company": doc.get("company"),
                }
            )

        analysis.global_user_count = len(self._store.list(GLOBAL_USERS))

        for doc in self._store.list(TENANTS):
            analysis.tenants.append(
                {
                    "tenantId": doc.id,
                    "companyName": doc.get("companyName"),
                    "adminEmail": doc.get("adminEmail"),
                    "userCount": len(self._store.list(tenant_collection(doc.id, TENANT_USERS))),
                    "createdAt": doc.get("createdAt"),
                }
            )

        counts: dict[str, dict[str, int]] = defaultdict(lambda: {"attendance": 0, "breaks": 0})
        attendance = self._store.list(LEGACY_ATTENDANCE)
        breaks = self._store.list(LEGACY_BREAKS)
        for doc in attendance:
            counts[_owner(doc.data) or "(unknown)"]["attendance"] += 1
        for doc in breaks:
            counts[_owner(doc.data) or "(unknown)"]["breaks"] += 1

        analysis.legacy_attendance_count = len(attendance)
        analysis.legacy_break_count = len(breaks)
        analysis.records_by_user = dict(counts)
        return analysis

    def migrate_users(self, *, dry_run: bool = False) -> UserMigrationResult:
        result = UserMigrationResult(dry_run=dry_run)
        writer = _BatchWriter(self._store, limit=self._batch_limit, dry_run=dry_run)

        companies: dict[str, list[Document]] = defaultdict(list)
        for doc in self._store.list(LEGACY_USERS):
            companies[doc.get("company") or LEGACY_DEFAULT_COMPANY].append(doc)
        logger.info("Found %d legacy users in %d companies", sum(map(len, companies.values())), len(companies))

        existing = {
            doc.get("companyName"): doc.id
            for doc in self._store.list(TENANTS, filters=[("migrated", "==", True)])
        }
        claimed: set[str] = set()

        for company, users in companies.items():
            pending = [u for u in users if not self._user_migrated(u.id)]
            result.users_skipped += len(users) - len(pending)
            if not pending:
                logger.info("Company %r already migrated", company)
                continue

            tenant_id = existing.get(company)
            if tenant_id:
                result.tenants_reused[company] = tenant_id
            else:
                tenant_id = self._new_tenant_id(company, claimed)
                result.tenants_created[company] = tenant_id
                admin = next((u for u in users if u.get("role") in ("admin", "super_admin")), users[0])
                writer.reserve(1)
                writer.set(
                    tenant_doc(tenant_id),
                    {
                        "id": tenant_id,
                        "companyName": company,
                        "adminEmail": admin.get("email"),
                        "adminName": admin.get("displayName") or admin.get("name") or "",
                        "department": "",
                        "phone": "",
                        "isActive": True,
                        "status": "active",
                        "userCount": 0,
                        "settings": dict(DEFAULT_TENANT_SETTINGS),
                        "createdAt": SERVER_TIMESTAMP,
                        "updatedAt": SERVER_TIMESTAMP,
                        "migrated": True,
                    },
                )
            claimed.add(tenant_id)
            logger.info("Company %r -> tenant %s (%d users)", company, tenant_id, len(pending))

            for user in pending:
                role = user.get("role") or Role.EMPLOYEE.value
                if role not in _KNOWN_ROLES:
                    logger.warning("Legacy user %s has unknown role %r, migrating as employee", user.id, role)
                    role = Role.EMPLOYEE.value
                    result.roles_mapped += 1

                # Both user documents and the count bump share one commit.
                writer.reserve(3)
                writer.set(
                    doc_path(GLOBAL_USERS, user.id),
                    {
                        "uid": user.id,
                        "email": user.get("email"),
                        "displayName": user.get("displayName") or user.get("name") or "",
                        "role": role,
                        "tenantId": tenant_id,
                        "createdAt": SERVER_TIMESTAMP,
                        "updatedAt": SERVER_TIMESTAMP,
                        "migrated": True,
                    },
                )
                writer.set(
                    doc_path(tenant_collection(tenant_id, TENANT_USERS), user.id),
                    {
                        **user.data,
                        "role": role,
                        "tenantId": tenant_id,
                        "updatedAt": SERVER_TIMESTAMP,
                        "migrated": True,
                    },
                )
                writer.set(
                    tenant_doc(tenant_id),
                    {"userCount": Increment(1), "updatedAt": SERVER_TIMESTAMP},
                    merge=True,
                )
                result.users_migrated += 1

        writer.flush()
        result.batches_committed = writer.commits
        logger.info(
            "User migration %s: %d migrated, %d skipped, %d roles mapped, %d tenants created",
            "planned" if dry_run else "done",
            result.users_migrated,
            result.users_skipped,
            result.roles_mapped,
            len(result.tenants_created),
        )
        return result

    def migrate_attendance(
        self,
        *,
        default_tenant_id: Optional[str] = None,
        purge_legacy: bool = False,
        dry_run: bool = False,
    ) -> AttendanceMigrationResult:
        if default_tenant_id and self._store.get(tenant_doc(default_tenant_id)) is None:
            raise NotFoundError(f"Tenant not found: {default_tenant_id}")

        result = AttendanceMigrationResult(dry_run=dry_run)
        writer = _BatchWriter(self._store, limit=self._batch_limit, dry_run=dry_run)
        home_tenants: dict[str, Optional[str]] = {}
        record_tenants: dict[str, str] = {}
        copied: list[str] = []

        def tenant_for_owner(uid: Optional[str]) -> Optional[str]:
            if uid and uid not in home_tenants:
                doc = self._store.get(doc_path(GLOBAL_USERS, uid))
                home_tenants[uid] = doc.get("tenantId") if doc else None
            return (home_tenants.get(uid) if uid else None) or default_tenant_id

        def copy(doc: Document, tenant_id: str, name: str, data: dict) -> bool:
            target = doc_path(tenant_collection(tenant_id, name), doc.id)
            copied.append(doc.path)
            result.per_tenant[tenant_id] = result.per_tenant.get(tenant_id, 0) + 1
            if self._store.get(target) is not None:
                result.already_migrated += 1
                return False
            writer.reserve(1)
            writer.set(target, {**data, "tenantId": tenant_id, "migrated": True, "migratedAt": SERVER_TIMESTAMP})
            return True

        for doc in self._store.list(LEGACY_ATTENDANCE):
            tenant_id = tenant_for_owner(_owner(doc.data))
            if not tenant_id:
                result.skipped.append(doc.path)
                logger.warning("No tenant for attendance %s (owner=%s)", doc.id, _owner(doc.data))
                continue
            record_tenants[doc.id] = tenant_id
            if copy(doc, tenant_id, TENANT_ATTENDANCE, _attendance_fields(doc)):
                result.attendance_copied += 1

        for doc in self._store.list(LEGACY_BREAKS):
            tenant_id = record_tenants.get(doc.get("attendanceId")) or tenant_for_owner(_owner(doc.data))
            if not tenant_id:
                result.skipped.append(doc.path)
                logger.warning("No tenant for break %s (attendance=%s)", doc.id, doc.get("attendanceId"))
                continue
            if copy(doc, tenant_id, TENANT_BREAKS, _break_fields(doc)):
                result.breaks_copied += 1

        writer.flush()

        if purge_legacy:
            for path in copied:
                writer.reserve(1)
                writer.delete(path)
                result.purged += 1
            writer.flush()

        result.batches_committed = writer.commits
        logger.info(
            "Attendance migration %s: %d records, %d breaks, %d skipped, %d purged",
            "planned" if dry_run else "done",
            result.attendance_copied,
            result.breaks_copied,
            len(result.skipped),
            result.purged,
        )
        return result

    def verify(self) -> VerificationReport:
        global_users = [
            {"uid": d.id, "role": d.get("role"), "tenantId": d.get("tenantId")} for d in self._store.list(GLOBAL_USERS)
        ]
        tenants = [
            {"tenantId": d.id, "companyName": d.get("companyName"), "adminEmail": d.get("adminEmail")}
            for d in self._store.list(TENANTS)
        ]
        return VerificationReport(
            global_user_count=len(global_users),
            tenant_count=len(tenants),
            global_users=global_users,
            tenants=tenants,
        )

    def _user_migrated(self, uid: str) -> bool:
        global_doc = self._store.get(doc_path(GLOBAL_USERS, uid))
        tenant_id = global_doc.get("tenantId") if global_doc else None
        if not tenant_id:
            return False
        return self._store.get(doc_path(tenant_collection(tenant_id, TENANT_USERS), uid)) is not None

    def _new_tenant_id(
self, company: str, claimed: set[str]) -> str:
        base = generate_tenant_id(company, now=self._clock())
        tenant_id, n = base, 1
        while tenant_id in claimed or self._store.get(tenant_doc(tenant_id)) is not None:
            n += 1
            tenant_id = f"{base}-{n}"
        return tenant_id
