"""Legacy flat-collection to multi-tenant migration.

Usage::

    python scripts/migrate_legacy.py analyze
    python scripts/migrate_legacy.py users --dry-run
    python scripts/migrate_legacy.py attendance --default-tenant acme-k3x9 --purge
    python scripts/migrate_legacy.py verify
"""

from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from dotenv import load_dotenv

from tenant_attendance.container import build_store
from tenant_attendance.core.exceptions import DomainError
from tenant_attendance.logging_config import configure_logging
from tenant_attendance.migration.service import LegacyMigrator
from tenant_attendance.settings import get_settings_module

logger = logging.getLogger("migrate_legacy")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Migrate legacy users/attendance/breaks into tenant subcollections")
    parser.add_argument("--settings", help="Settings module (defaults to APP_ENV selection)")
    parser.add_argument("--batch-limit", type=int, default=None, help="Max writes per committed batch")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("analyze", help="Count legacy and migrated documents")

    users = sub.add_parser("users", help="Create tenants per company and copy users")
    users.add_argument("--dry-run", action="store_true")

    attendance = sub.add_parser("attendance", help="Copy attendance and breaks into owner tenants")
    attendance.add_argument("--default-tenant", help="Tenant for records whose owner has no global user")
    attendance.add_argument("--purge", action="store_true", help="Delete flat documents after copying")
    attendance.add_argument("--dry-run", action="store_true")

    sub.add_parser("verify", help="Show global users and tenants after migration")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    load_dotenv(override=False)
    settings = importlib.import_module(args.settings or get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    store = build_store(settings)
    migrator = LegacyMigrator(store) if args.batch_limit is None else LegacyMigrator(store, batch_limit=args.batch_limit)

    try:
        if args.command == "analyze":
            analysis = migrator.analyze()
            logger.info("Legacy users: %d", len(analysis.legacy_users))
            for u in analysis.legacy_users:
                logger.info("  %s %s role=%s company=%s", u["uid"], u["email"], u["role"], u["company"])
            logger.info("Global users: %d", analysis.global_user_count)
            for t in analysis.tenants:
                logger.info("  tenant %s (%s) admin=%s users=%d", t["tenantId"], t["companyName"], t["adminEmail"], t["userCount"])
            logger.info("Legacy attendance: %d, breaks: %d", analysis.legacy_attendance_count, analysis.legacy_break_count)
            for uid, counts in analysis.records_by_user.items():
                logger.info("  %s: attendance=%d breaks=%d", uid, counts["attendance"], counts["breaks"])

        elif args.command == "users":
            result = migrator.migrate_users(dry_run=args.dry_run)
            for company, tenant_id in result.tenants_created.items():
                logger.info("  created %s -> %s", company, tenant_id)
            for company, tenant_id in result.tenants_reused.items():
                logger.info("  reused %s -> %s", company, tenant_id)

        elif args.command == "attendance":
            result = migrator.migrate_attendance(
                default_tenant_id=args.default_tenant, purge_legacy=args.purge, dry_run=args.dry_run
            )
            for path in result.skipped:
                logger.warning("  skipped %s", path)

        elif args.command == "verify":
            report = migrator.verify()
            logger.info("Global users: %d, tenants: %d", report.global_user_count, report.tenant_count)
            for u in report.global_users:
                logger.info("  %s: %s @ %s", u["uid"], u["role"], u["tenantId"])
            for t in report.tenants:
                logger.info("  %s: %s (%s)", t["tenantId"], t["companyName"], t["adminEmail"])
    except DomainError as e:
        logger.error("Migration failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
