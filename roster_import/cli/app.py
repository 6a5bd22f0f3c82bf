from __future__ import annotations

import argparse
import asyncio
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from roster_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from roster_import.db.linker import PostgresClientLinker
from roster_import.db.roster import RosterLoadError, RosterSnapshot, fetch_roster_emails, load_roster_file
from roster_import.logging.error_log import ErrorLogBuffer, ErrorRecord, records_for_rows
from roster_import.logging.init import log_summary, set_debug, setup_logging
from roster_import.parsing.reader import TEMPLATE_FILENAME, ParseError, generate_template_csv
from roster_import.services.progress import ProgressTracker
from roster_import.services.session import ImportSession, NoValidRowsError
from roster_import.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env and config/import.yml
- Open the practice database (or fall back to preview-only mode)
- Capture the roster snapshot, load + validate the uploaded file
- Link valid rows one by one, write the error log, print the SUMMARY line

Exit codes: 0 every row imported, 2 some rows failed / were invalid or
nothing was importable, 1 fatal (config, unreadable file, database).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Connection string, highest priority first:

    1. DATABASE_URL / PGDSN (``.env`` loaded with override)
    2. config ``database.dsn``
    3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back to
       the individual ``database`` keys
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def _db_cursor(conn: Any):  # pragma: no cover (thin wrapper; tested via mocks)
    """Yield a cursor; each link statement commits on its own (autocommit)."""
    conn.autocommit = True
    cur = conn.cursor()
    try:
        yield cur
    finally:
        cur.close()
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Bulk client roster import")
    p.add_argument("file", nargs="?", type=Path, help="CSV / text / .xlsx file with one email per row")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML path")
    p.add_argument("--dry-run", action="store_true", help="Validate and preview only, no linking")
    p.add_argument(
        "--template",
        nargs="?",
        const=Path(TEMPLATE_FILENAME),
        type=Path,
        metavar="PATH",
        help=f"Write the import template (default ./{TEMPLATE_FILENAME}) and exit",
    )
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _write_template(path: Path, logger) -> int:
    try:
        path.write_text(generate_template_csv() + "\n", encoding="utf-8")
    except OSError as e:
        logger.error(f"template: {e}")
        return EXIT_FATAL
    logger.info(f"template written: {path}")
    return EXIT_SUCCESS_ALL


def _load_roster(cfg: ImportConfig, cursor: Any, logger) -> RosterSnapshot:
    if cursor is not None:
        return fetch_roster_emails(cursor, cfg.professional_id)
    if cfg.roster_file:
        return load_roster_file(Path(cfg.roster_file))
    logger.warning("no roster source configured; roster duplicates will not be detected")
    return RosterSnapshot.from_emails(())


def _run(cfg: ImportConfig, path: Path, cursor: Any, *, preview_only: bool, logger) -> int:
    error_log = ErrorLogBuffer(Path(cfg.error_log_dir))
    session = ImportSession(
        delay_seconds=cfg.delay_seconds,
        timeout_seconds=cfg.link_timeout_seconds,
    )

    try:
        roster = _load_roster(cfg, cursor, logger)
    except RosterLoadError as e:
        logger.error(f"roster: {e}")
        return EXIT_FATAL
    logger.debug(f"roster snapshot: {len(roster)} email(s)")

    try:
        session.load_file(path, roster)
    except ParseError as e:
        logger.error(f"parse: {e}")
        error_log.append(ErrorRecord.create(path.name, -1, "", "file", str(e)))
        error_log.flush()
        return EXIT_FATAL

    counts = session.preview_counts()
    if preview_only:
        logger.info(f"PREVIEW valid={counts.valid} duplicate={counts.duplicate} invalid={counts.invalid}")
        for row in session.rows:
            logger.info(f"  line {row.original_line_number} {row.email}: {row.status.value} ({row.message})")
        error_log.extend(records_for_rows(path.name, session.rows))
        log_path = error_log.flush()
        if log_path is not None:
            logger.info(f"error log: {log_path}")
        return EXIT_PARTIAL_FAILURE if counts.invalid else EXIT_SUCCESS_ALL

    if cfg.link_timeout_seconds is not None:
        # server-side limit matching the per-link deadline
        timeout_ms = max(1, int(cfg.link_timeout_seconds * 1000))
        cursor.execute("SET statement_timeout = %s", (timeout_ms,))
    linker = PostgresClientLinker(cursor, cfg.professional_id)
    try:
        with ProgressTracker(counts.valid) as tracker:
            summary = asyncio.run(session.start(linker, on_progress=tracker.record))
    except NoValidRowsError as e:
        logger.warning(f"import: {e}")
        error_log.extend(records_for_rows(path.name, session.rows))
        error_log.flush()
        return EXIT_PARTIAL_FAILURE

    error_log.extend(records_for_rows(path.name, session.rows))
    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log: {log_path}")

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(summary)[len("SUMMARY "):])
    return EXIT_PARTIAL_FAILURE if summary.has_failures else EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む ([] はテストからの明示指定)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    if args.template is not None:
        return _write_template(args.template, logger)

    if args.file is None:
        logger.error("no input file given")
        return EXIT_FATAL

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    logger.info(f"Importing clients from: {args.file}")

    if args.dry_run or os.getenv("DISABLE_DB_CONNECT") == "1":
        return _run(cfg, args.file, cursor=None, preview_only=True, logger=logger)

    try:
        conn = psycopg2.connect(_resolve_dsn(cfg))
    except psycopg2.Error as e:
        logger.info(f"DB connection failed -> preview only: {e}")
        return _run(cfg, args.file, cursor=None, preview_only=True, logger=logger)

    with _db_cursor(conn) as cur:
        return _run(cfg, args.file, cursor=cur, preview_only=False, logger=logger)
