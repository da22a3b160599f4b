"""
Startup diagnostics — runs once when the Flask app starts.

Checks the database and logs a summary banner.
"""

import logging
import sys

from flask import Flask

from bcp.models import db

logger = logging.getLogger(__name__)

EXPECTED_TABLES = ("bcps", "processes", "bia_data", "communications", "risks")


def run_startup_diagnostics(app: Flask):
    """Run diagnostic checks during app startup (inside app context)."""
    if app.config.get("TESTING"):
        return  # skip during tests for speed

    issues: list[str] = []

    with app.app_context():
        py = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"

        # ── Database connectivity ────────────────────────────────────
        db_status = "ok"
        db_uri = str(app.config.get("SQLALCHEMY_DATABASE_URI", ""))
        db_type = "PostgreSQL" if "postgresql" in db_uri else "SQLite" if "sqlite" in db_uri else "unknown"
        try:
            db.session.execute(db.text("SELECT 1"))
        except Exception as exc:
            db_status = "FAILED"
            issues.append(f"Database unreachable: {exc}")

        # ── Plan tables ──────────────────────────────────────────────
        try:
            from sqlalchemy import inspect as sa_inspect
            tables = set(sa_inspect(db.engine).get_table_names())
            missing = [t for t in EXPECTED_TABLES if t not in tables]
            table_status = "all present" if not missing else f"missing {', '.join(missing)}"
            if missing:
                issues.append(f"Plan tables missing: {', '.join(missing)} — run 'flask db upgrade'")
        except Exception:
            table_status = "?"

        banner = f"""
╔══════════════════════════════════════════════════════════════╗
║  BCP Wizard Backend — Startup Diagnostics                    ║
╠══════════════════════════════════════════════════════════════╣
║  Python      : {py:<46s}║
║  Debug       : {str(app.debug):<46s}║
║  Database    : {f'{db_type} ({db_status})':<46s}║
║  Tables      : {table_status[:46]:<46s}║
║  Fan-out     : {str(app.config.get('REPORT_FANOUT_WORKERS')) + ' workers':<46s}║
╚══════════════════════════════════════════════════════════════╝"""
        logger.info(banner)

        if issues:
            logger.warning("Startup issues detected:")
            for issue in issues:
                logger.warning("  ⚠ %s", issue)
        else:
            logger.info("✅ All startup checks passed")
