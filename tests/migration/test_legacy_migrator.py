from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from tenant_attendance.attendance.document_attendance_repository import DocumentAttendanceRepository
from tenant_attendance.attendance.service import AttendanceService
from tenant_attendance.context import RequestContext
from tenant_attendance.core.enums import ReportMode, Role, UserSource
from tenant_attendance.core.exceptions import NotFoundError
from tenant_attendance.migration.service import LegacyMigrator
from tenant_attendance.reporting.service import AdminReportService, ReportFilter
from tenant_attendance.store.memory_store import InMemoryDocumentStore
from tenant_attendance.tenants.document_tenant_repository import DocumentTenantRepository
from tenant_attendance.users.document_user_repository import DocumentUserRepository
from tenant_attendance.users.model import ResolvedIdentity
from tenant_attendance.users.role_resolver import RoleResolver


class RecordingStore(InMemoryDocumentStore):
    """In-memory store that remembers the size of every committed batch."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.commit_sizes: list[int] = []

    def batch(self):
        batch = super().batch()
        commit = batch.commit

        def recording_commit():
            self.commit_sizes.append(len(batch))
            commit()

        batch.commit = recording_commit
        return batch


@pytest.fixture
def store(clock) -> RecordingStore:
    return RecordingStore(clock=clock)


@pytest.fixture
def legacy(store):
    store.set("users/u1", {"email": "taro@acme.example.com", "displayName": "Taro", "role": "employee", "company": "Acme"})
    store.set("users/u2", {"email": "hanako@acme.example.com", "name": "Hanako", "role": "admin", "company": "Acme"})
    store.set("users/u3", {"email": "solo@example.com", "displayName": "Solo"})
    store.set("users/u4", {"email": "kenji@beta.example.com", "displayName": "Kenji", "company": "Beta"})
    return store


@pytest.fixture
def migrator(store, clock) -> LegacyMigrator:
    return LegacyMigrator(store, clock=clock)


def _tenant_for(store, company):
    return next(d for d in store.list("tenants") if d.data["companyName"] == company)


def test_analyze_counts_legacy_data(legacy, migrator, store):
    store.set("attendance/a1", {"uid": "u1", "date": "2026-01-10"})
    store.set("attendance/a2", {"userId": "u1", "date": "2026-01-11"})
    store.set("breaks/b1", {"uid": "u1", "attendanceId": "a1"})

    analysis = migrator.analyze()

    assert len(analysis.legacy_users) == 4
    assert analysis.global_user_count == 0
    assert analysis.tenants == []
    assert analysis.legacy_attendance_count == 2
    assert analysis.legacy_break_count == 1
    assert analysis.records_by_user["u1"] == {"attendance": 2, "breaks": 1}


def test_migrate_users_groups_by_company(legacy, migrator, store):
    result = migrator.migrate_users()

    assert set(result.tenants_created) == {"Acme", "Beta", "default-company"}
    assert result.users_migrated == 4

    acme = _tenant_for(store, "Acme")
    assert acme.data["adminEmail"] == "hanako@acme.example.com"
    assert acme.data["adminName"] == "Hanako"
    assert acme.data["isActive"] is True
    assert acme.data["migrated"] is True
    assert acme.data["userCount"] == 2

    beta = _tenant_for(store, "Beta")
    assert beta.data["adminEmail"] == "kenji@beta.example.com"

    global_u1 = store.get("global_users/u1").data
    assert global_u1["tenantId"] == acme.id
    assert global_u1["role"] == "employee"
    assert global_u1["migrated"] is True

    tenant_u2 = store.get(f"tenants/{acme.id}/users/u2").data
    assert tenant_u2["company"] == "Acme"
    assert tenant_u2["tenantId"] == acme.id
    assert tenant_u2["migrated"] is True

    solo = store.get("global_users/u3").data
    assert solo["role"] == "employee"
    assert store.get(f"tenants/{solo['tenantId']}").data["companyName"] == "default-company"


def test_migrate_users_dry_run_writes_nothing(legacy, migrator, store):
    result = migrator.migrate_users(dry_run=True)

    assert result.dry_run
    assert result.users_migrated == 4
    assert len(result.tenants_created) == 3
    assert store.list("tenants") == []
    assert store.list("global_users") == []
    assert store.commit_sizes == []


def test_migrate_users_is_idempotent(legacy, migrator, store):
    migrator.migrate_users()
    again = migrator.migrate_users()

    assert again.users_migrated == 0
    assert again.users_skipped == 4
    assert again.tenants_created == {}
    assert len(store.list("tenants")) == 3


def test_late_legacy_user_joins_existing_tenant(legacy, migrator, store):
    migrator.migrate_users()
    acme = _tenant_for(store, "Acme")
    store.set("users/u5", {"email": "late@acme.example.com", "company": "Acme"})

    result = migrator.migrate_users()

    assert result.tenants_reused == {"Acme": acme.id}
    assert store.get("global_users/u5").data["tenantId"] == acme.id
    assert store.get(f"tenants/{acme.id}").data["userCount"] == 3
    assert store.get(f"tenants/{acme.id}").data["adminEmail"] == "hanako@acme.example.com"


def test_batches_are_committed_below_the_limit(store, clock):
    for i in range(3):
        store.set(f"users/u{i}", {"email": f"u{i}@example.com", "company": "Acme"})

    result = LegacyMigrator(store, clock=clock, batch_limit=4).migrate_users()

    # tenant document, then per user: global user, tenant user, count bump
    assert store.commit_sizes == [4, 3, 3]
    assert result.batches_committed == 3
    assert len(store.list("global_users")) == 3
    assert store.get(f"tenants/{_tenant_for(store, 'Acme').id}").data["userCount"] == 3



class FailingCommitStore(RecordingStore):
    """Rejects the n-th batch commit."""

    def __init__(self, *, fail_on: int, **kwargs):
        super().__init__(**kwargs)
        self.fail_on = fail_on

    def batch(self):
        batch = super().batch()
        commit = batch.commit

        def failing_commit():
            if len(self.commit_sizes) + 1 == self.fail_on:
                self.fail_on = 0
                raise RuntimeError("commit rejected")
            commit()

        batch.commit = failing_commit
        return batch


def test_failed_commit_is_repaired_by_rerun(clock):
    store = FailingCommitStore(fail_on=3, clock=clock)
    store.set("users/u1", {"email": "taro@acme.example.com", "company": "Acme"})
    store.set("users/u2", {"email": "hanako@acme.example.com", "company": "Acme"})
    migrator = LegacyMigrator(store, clock=clock, batch_limit=3)

    with pytest.raises(RuntimeError):
        migrator.migrate_users()

    acme = _tenant_for(store, "Acme").id
    assert store.get("global_users/u1") is not None
    assert store.get("global_users/u2") is None

    result = migrator.migrate_users()

    assert result.users_migrated == 1
    assert result.tenants_reused == {"Acme": acme}
    assert sorted(d.id for d in store.list(f"tenants/{acme}/users")) == ["u1", "u2"]
    assert store.get(f"tenants/{acme}").data["userCount"] == 2


def test_user_without_tenant_record_is_migrated_again(legacy, migrator, store):
    migrator.migrate_users()
    acme = _tenant_for(store, "Acme").id
    store.delete(f"tenants/{acme}/users/u1")

    result = migrator.migrate_users()

    assert result.users_migrated == 1
    assert result.users_skipped == 3
    assert store.get(f"tenants/{acme}/users/u1").data["tenantId"] == acme


def test_unknown_legacy_role_becomes_employee(store, migrator):
    store.set("users/u1", {"email": "boss@acme.example.com", "role": "manager", "company": "Acme"})
    store.set("users/u2", {"email": "lead@acme.example.com", "role": "admin", "company": "Acme"})

    result = migrator.migrate_users()

    assert result.roles_mapped == 1
    acme = _tenant_for(store, "Acme").id
    assert store.get("global_users/u1").data["role"] == "employee"
    assert store.get(f"tenants/{acme}/users/u1").data["role"] == "employee"
    assert store.get("global_users/u2").data["role"] == "admin"

    identity = RoleResolver(DocumentUserRepository(store)).resolve(uid="u1", email="boss@acme.example.com", tenant_id=acme)
    assert identity.role == Role.EMPLOYEE


@pytest.fixture
def migrated(legacy, migrator, store):
    migrator.migrate_users()
    store.set("attendance/a1", {"uid": "u1", "date": "2026-01-10", "siteName": "Shibuya"})
    store.set("attendance/a2", {"uid": "u4", "date": "2026-01-10", "siteName": "Umeda"})
    store.set("attendance/a3", {"uid": "stranger", "date": "2026-01-10"})
    store.set("breaks/b1", {"uid": "u1", "attendanceId": "a1", "duration": 30})
    store.set("breaks/b2", {"uid": "stranger", "attendanceId": "a3"})
    return {
        "acme": _tenant_for(store, "Acme").id,
        "beta": _tenant_for(store, "Beta").id,
    }


def test_attendance_follows_owner_tenant(migrated, migrator, store):
    result = migrator.migrate_attendance()

    assert result.attendance_copied == 2
    assert result.breaks_copied == 1
    assert sorted(result.skipped) == ["attendance/a3", "breaks/b2"]

    acme, beta = migrated["acme"], migrated["beta"]
    copied = store.get(f"tenants/{acme}/attendance/a1").data
    assert copied["tenantId"] == acme
    assert copied["migrated"] is True
    assert "migratedAt" in copied
    assert store.get(f"tenants/{beta}/attendance/a2") is not None
    assert store.get(f"tenants/{acme}/breaks/b1").data["duration"] == 30

    # Flat copies are kept unless purging was requested.
    assert store.get("attendance/a1") is not None


def test_unroutable_records_use_default_tenant(migrated, migrator, store):
    beta = migrated["beta"]
    result = migrator.migrate_attendance(default_tenant_id=beta)

    assert result.skipped == []
    assert store.get(f"tenants/{beta}/attendance/a3") is not None
    assert store.get(f"tenants/{beta}/breaks/b2") is not None


def test_default_tenant_must_exist(migrated, migrator):
    with pytest.raises(NotFoundError):
        migrator.migrate_attendance(default_tenant_id="ghost")


def test_purge_removes_flat_copies(migrated, migrator, store):
    result = migrator.migrate_attendance(purge_legacy=True)

    assert result.purged == 3
    assert store.get("attendance/a1") is None
    assert store.get("breaks/b1") is None
    # skipped documents stay where they are
    assert store.get("attendance/a3") is not None


def test_attendance_dry_run(migrated, migrator, store):
    result = migrator.migrate_attendance(purge_legacy=True, dry_run=True)

    assert result.attendance_copied == 2
    assert store.get(f"tenants/{migrated['acme']}/attendance/a1") is None
    assert store.get("attendance/a1") is not None


def test_attendance_rerun_does_not_copy_twice(migrated, migrator, store):
    migrator.migrate_attendance()
    store.update(f"tenants/{migrated['acme']}/attendance/a1", {"notes": "edited after migration"})

    result = migrator.migrate_attendance()

    assert result.attendance_copied == 0
    assert result.already_migrated == 3
    assert store.get(f"tenants/{migrated['acme']}/attendance/a1").data["notes"] == "edited after migration"


def test_migrated_records_are_readable(migrated, migrator, store):
    migrator.migrate_attendance()
    repo = DocumentAttendanceRepository(store)

    record = repo.get(migrated["acme"], "a1")
    assert record.user_id == "u1"
    assert record.site_name == "Shibuya"
    assert [b.break_id for b in repo.list_breaks(migrated["acme"], "a1")] == ["b1"]


def test_verify(migrated, migrator):
    report = migrator.verify()
    assert report.global_user_count == 4
    assert report.tenant_count == 3
    assert {u["uid"] for u in report.global_users} == {"u1", "u2", "u3", "u4"}


def _ctx(store, tenant_id: str, uid: str, role: Role = Role.EMPLOYEE) -> RequestContext:
    identity = ResolvedIdentity(
        uid=uid,
        email=f"{uid}@example.com",
        display_name=uid.title(),
        role=role,
        tenant_id=tenant_id,
        source=UserSource.TENANT,
    )
    return RequestContext(tenant=DocumentTenantRepository(store).get(tenant_id), identity=identity)


@pytest.fixture
def clocked_legacy(legacy, migrator, store):
    migrator.migrate_users()
    store.set(
        "attendance/old",
        {
            "uid": "u1",
            "userName": "Taro",
            "siteName": "Shibuya",
            "clockInTime": "2026-01-10T00:00:00Z",
            "clockOutTime": "2026-01-10T09:00:00Z",
        },
    )
    store.set(
        "breaks/old-lunch",
        {
            "uid": "u1",
            "attendanceId": "old",
            "startTime": "2026-01-10T03:00:00Z",
            "endTime": "2026-01-10T04:00:00Z",
            "duration": 60,
        },
    )
    migrator.migrate_attendance()
    return _tenant_for(store, "Acme").id


@pytest.fixture
def attendance_service(store, clock) -> AttendanceService:
    return AttendanceService(DocumentAttendanceRepository(store), DocumentUserRepository(store), clock=clock)


def test_legacy_clock_fields_are_renamed(clocked_legacy, store):
    copied = store.get(f"tenants/{clocked_legacy}/attendance/old").data

    assert copied["userId"] == "u1"
    assert copied["startTime"] == datetime(2026, 1, 10, 0, 0, tzinfo=timezone.utc)
    assert copied["endTime"] == datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)
    assert copied["date"] == "2026-01-10"
    assert store.get(f"tenants/{clocked_legacy}/breaks/old-lunch").data["userId"] == "u1"


def test_migrated_history_is_listed_for_its_owner(clocked_legacy, store, attendance_service):
    history = attendance_service.list_for_user(_ctx(store, clocked_legacy, "u1"))

    assert [r.record_id for r in history] == ["old"]
    assert not history[0].is_open
    assert [b.break_id for b in history[0].breaks] == ["old-lunch"]


def test_closed_migrated_record_does_not_block_clock_in(clocked_legacy, store, attendance_service):
    ctx = _ctx(store, clocked_legacy, "u1")

    record = attendance_service.clock_in(ctx, site_name="Umeda")
    closed = attendance_service.clock_out(ctx)

    assert closed.record_id == record.record_id
    old = store.get(f"tenants/{clocked_legacy}/attendance/old").data
    assert old["endTime"] == datetime(2026, 1, 10, 9, 0, tzinfo=timezone.utc)


def test_employee_report_includes_migrated_records(clocked_legacy, store):
    service = AdminReportService(DocumentAttendanceRepository(store), DocumentUserRepository(store))

    report = service.build(
        _ctx(store, clocked_legacy, "u2", Role.ADMIN),
        ReportFilter(mode=ReportMode.EMPLOYEE, user_id="u1"),
        today=date(2026, 2, 2),
    )

    assert [row.record.record_id for row in report.rows] == ["old"]
    assert report.rows[0].break_minutes == 60
    assert report.rows[0].working_minutes == 480
