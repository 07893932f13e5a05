from __future__ import annotations

import logging
from dataclasses import dataclass
from types import ModuleType
from typing import Optional

from .attendance.document_attendance_repository import DocumentAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_INVITE_MAX_USES, DEFAULT_INVITE_VALID_DAYS
from .database.bootstrap import apply_schema, list_tables
from .database.connection import DBConfig, DatabaseConnection
from .identity.firebase_provider import FirebaseIdentityProvider
from .identity.memory_provider import InMemoryIdentityProvider
from .identity.provider import IdentityProvider
from .invites.document_invite_repository import DocumentInviteRepository
from .invites.service import InviteService
from .migration.service import LegacyMigrator
from .reporting.service import AdminReportService
from .store.base import DocumentStore
from .store.firestore_store import FirestoreDocumentStore, get_firebase_app
from .store.memory_store import InMemoryDocumentStore
from .store.mysql_store import MySQLDocumentStore
from .tenants.document_tenant_repository import DocumentTenantRepository
from .tenants.service import TenantService
from .users.document_user_repository import DocumentUserRepository
from .users.registration import RegistrationService
from .users.role_resolver import RoleResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    store: DocumentStore
    identity: IdentityProvider

    tenants_repo: DocumentTenantRepository
    users_repo: DocumentUserRepository
    invites_repo: DocumentInviteRepository
    attendance_repo: DocumentAttendanceRepository

    tenant_service: TenantService
    role_resolver: RoleResolver
    invite_service: InviteService
    registration_service: RegistrationService
    attendance_service: AttendanceService
    report_service: AdminReportService
    migrator: LegacyMigrator

    public_base_url: str = ""


def build_store(settings: ModuleType) -> DocumentStore:
    backend = str(getattr(settings, "STORE_BACKEND", "memory")).lower()

    if backend == "firestore":
        return FirestoreDocumentStore.from_settings(
            credentials_path=getattr(settings, "FIREBASE_CREDENTIALS", None),
            project_id=getattr(settings, "FIREBASE_PROJECT_ID", None),
        )

    if backend == "mysql":
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(getattr(settings, "DB_CONFIG")))
        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(conn)
            logger.info("MySQL schema ready (tables=%d)", len(list_tables(conn)))
        return MySQLDocumentStore(conn)

    if backend == "memory":
        return InMemoryDocumentStore()

    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")


def build_identity(settings: ModuleType) -> IdentityProvider:
    backend = str(getattr(settings, "IDENTITY_BACKEND", "memory")).lower()

    if backend == "firebase":
        app = get_firebase_app(
            credentials_path=getattr(settings, "FIREBASE_CREDENTIALS", None),
            project_id=getattr(settings, "FIREBASE_PROJECT_ID", None),
        )
        return FirebaseIdentityProvider(app)

    if backend == "memory":
        return InMemoryIdentityProvider()

    raise ValueError(f"Unknown IDENTITY_BACKEND: {backend!r}")


def build_container(
    settings: ModuleType,
    *,
    store: Optional[DocumentStore] = None,
    identity: Optional[IdentityProvider] = None,
) -> Container:
    store = store if store is not None else build_store(settings)
    identity = identity if identity is not None else build_identity(settings)

    tenants_repo = DocumentTenantRepository(store)
    users_repo = DocumentUserRepository(store)
    invites_repo = DocumentInviteRepository(store)
    attendance_repo = DocumentAttendanceRepository(store)

    tenant_service = TenantService(tenants_repo)
    role_resolver = RoleResolver(users_repo, super_admin_emails=getattr(settings, "SUPER_ADMIN_EMAILS", ()))
    invite_service = InviteService(
        invites_repo,
        tenants_repo,
        valid_days=getattr(settings, "INVITE_VALID_DAYS", DEFAULT_INVITE_VALID_DAYS),
        max_uses=getattr(settings, "INVITE_MAX_USES", DEFAULT_INVITE_MAX_USES),
    )
    registration_service = RegistrationService(
        identity,
        users_repo,
        tenants_repo,
        invite_service,
        batch_factory=store.batch,
    )
    attendance_service = AttendanceService(attendance_repo, users_repo)
    report_service = AdminReportService(attendance_repo, users_repo)
    migrator = LegacyMigrator(store)

    return Container(
        store=store,
        identity=identity,
        tenants_repo=tenants_repo,
        users_repo=users_repo,
        invites_repo=invites_repo,
        attendance_repo=attendance_repo,
        tenant_service=tenant_service,
        role_resolver=role_resolver,
        invite_service=invite_service,
        registration_service=registration_service,
        attendance_service=attendance_service,
        report_service=report_service,
        migrator=migrator,
        public_base_url=str(getattr(settings, "PUBLIC_BASE_URL", "") or ""),
    )
