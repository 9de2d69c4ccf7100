from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Mapping

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parents[4] / "database"


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql may name a database; the configured one wins.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside quoted strings and '--' line comments."""
    buf: list[str] = []
    quote: str | None = None
    escape = False
    in_comment = False

    for i, ch in enumerate(sql):
        if in_comment:
            if ch == "\n":
                in_comment = False
                buf.append(ch)
            continue

        if escape:
            buf.append(ch)
            escape = False
            continue

        if quote:
            buf.append(ch)
            if ch == "\\":
                escape = True
            elif ch == quote:
                quote = None
            continue

        if ch in ("'", '"'):
            quote = ch
            buf.append(ch)
            continue

        if ch == "-" and sql[i : i + 2] == "--":
            in_comment = True
            continue

        if ch == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def _run_script(conn_factory: DatabaseConnection, sql: str) -> int:
    conn = conn_factory.connect()
    count = 0
    try:
        cur = conn.cursor()
        for stmt in iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
    finally:
        conn.close()
    return count


def ensure_database_exists(db_config: Mapping) -> None:
    target = DBConfig.from_mapping(db_config)
    conn = DatabaseConnection(target).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: Mapping, *, schema_path: str | Path | None = None) -> None:
    ensure_database_exists(db_config)
    path = Path(schema_path) if schema_path else SCHEMA_DIR / "schema.sql"
    sql = _strip_create_db_and_use(path.read_text(encoding="utf-8"))
    count = _run_script(DatabaseConnection(DBConfig.from_mapping(db_config)), sql)
    logger.info("Applied %s (%d statements)", path.name, count)


def apply_seed_sql(db_config: Mapping, *, seed_path: str | Path | None = None) -> None:
    path = Path(seed_path) if seed_path else SCHEMA_DIR / "seed.sql"
    sql = _strip_create_db_and_use(path.read_text(encoding="utf-8"))
    count = _run_script(DatabaseConnection(DBConfig.from_mapping(db_config)), sql)
    logger.info("Applied %s (%d statements)", path.name, count)


def list_tables(db_config: Mapping) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
