"""
Download the crates.io database dump and load the tables we need into SQLite.
"""
from __future__ import annotations

import asyncio
import codecs
import csv
import logging
import sqlite3
import sys
import tarfile
import time
from pathlib import Path
from typing import IO, Dict, List, Optional, Tuple
import httpx
import aiofiles

logger = logging.getLogger(__name__)


CRATES_IO_DUMP_URL = "https://static.crates.io/db-dump.tar.gz"
DUMP_ARCHIVE_NAME = "db-dump.tar.gz"
DUMP_DB_NAME = "crates_io.db"
CSV_FIELD_SIZE_LIMIT = 2**31 - 1

# Columns kept from each CSV of the dump, with their SQLite types.
DUMP_TABLES: Dict[str, List[Tuple[str, str]]] = {
    "crates": [("id", "INTEGER PRIMARY KEY"), ("name", "TEXT")],
    "versions": [
        ("id", "INTEGER PRIMARY KEY"),
        ("crate_id", "INTEGER"),
        ("num", "TEXT"),
        ("license", "TEXT"),
    ],
    "dependencies": [
        ("id", "INTEGER PRIMARY KEY"),
        ("version_id", "INTEGER"),
        ("crate_id", "INTEGER"),
        ("req", "TEXT"),
        ("kind", "INTEGER"),
    ],
}

DUMP_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_crates_name ON crates(name)",
    "CREATE INDEX IF NOT EXISTS idx_versions_crate ON versions(crate_id)",
    "CREATE INDEX IF NOT EXISTS idx_dependencies_version ON dependencies(version_id)",
    "CREATE INDEX IF NOT EXISTS idx_dependencies_crate ON dependencies(crate_id)",
]


async def download_crates_dump(cache_dir: Path, url: str = CRATES_IO_DUMP_URL) -> Path:
    """
    Download the crates.io database dump archive.

    Args:
        cache_dir: Directory to store the downloaded archive

    Returns:
        Path to the downloaded db-dump.tar.gz
    """
    cache_dir.mkdir(parents=True, exist_ok=True)
    archive_path = cache_dir / DUMP_ARCHIVE_NAME
    archive_tmp_path = cache_dir / f"{DUMP_ARCHIVE_NAME}.tmp"

    logger.info(f"Downloading crates.io dump from {url}...")
    # Download to a temp file first to avoid leaving a partial archive behind.
    for attempt in range(1, 4):
        try:
            async with httpx.AsyncClient(follow_redirects=True, timeout=60.0) as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()

                    total_size = int(response.headers.get("content-length", 0))
                    downloaded = 0
                    last_logged = 0

                    async with aiofiles.open(archive_tmp_path, "wb") as f:
                        async for chunk in response.aiter_bytes():
                            await f.write(chunk)
                            downloaded += len(chunk)
                            if total_size > 0:
                                percent = int((downloaded / total_size) * 100)
                                if percent >= last_logged + 10:
                                    last_logged = percent
                                    logger.info(f"Progress: {percent}%")
            break
        except Exception as e:
            archive_tmp_path.unlink(missing_ok=True)
            if attempt < 3:
                logger.warning(f"Download failed (attempt {attempt}/3): {e}. Retrying...")
                await asyncio.sleep(1.0 * attempt)
            else:
                raise

    archive_tmp_path.replace(archive_path)
    logger.info(f"crates.io dump downloaded to: {archive_path}")
    return archive_path


def _table_for_member(member: tarfile.TarInfo) -> Optional[str]:
    # Members look like "2024-01-01-020017/data/crates.csv".
    if not member.isfile():
        return None
    for table in DUMP_TABLES:
        if member.name.endswith(f"data/{table}.csv"):
            return table
    return None


def _load_table(conn: sqlite3.Connection, table: str, raw: IO[bytes]) -> int:
    columns = DUMP_TABLES[table]
    column_defs = ", ".join(f"{name} {sql_type}" for name, sql_type in columns)
    conn.execute(f"CREATE TABLE {table} ({column_defs})")

    names = [name for name, _ in columns]
    placeholders = ", ".join("?" for _ in names)
    insert_sql = f"INSERT INTO {table} ({', '.join(names)}) VALUES ({placeholders})"

    # Members of a streamed archive are not seekable, so decode line by line.
    reader = csv.DictReader(codecs.iterdecode(raw, "utf-8"))
    missing = [name for name in names if name not in (reader.fieldnames or [])]
    if missing:
        raise ValueError(f"{table}.csv is missing columns: {missing}")
    rows = (tuple(row[name] or None for name in names) for row in reader)
    conn.executemany(insert_sql, rows)

    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def load_dump_into_sqlite(archive_path: Path, db_path: Path) -> Path:
    """
    Extract the crates, versions and dependencies tables from the dump archive
    into a fresh SQLite database, keeping only the columns listed in DUMP_TABLES.

    The archive is read in a single streaming pass.

    Returns:
        Path to the SQLite database
    """
    # Some dump columns (readmes, descriptions) exceed the default csv field limit.
    # A C long is 32 bits on Windows, so sys.maxsize would overflow there.
    csv.field_size_limit(CSV_FIELD_SIZE_LIMIT)

    db_tmp_path = db_path.with_name(f"{db_path.name}.tmp")
    db_tmp_path.unlink(missing_ok=True)

    conn = sqlite3.connect(str(db_tmp_path))
    try:
        loaded = set()
        with tarfile.open(archive_path, "r|gz") as archive:
            for member in archive:
                table = _table_for_member(member)
                if table is None or table in loaded:
                    continue
                raw = archive.extractfile(member)
                if raw is None:
                    raise ValueError(f"Could not read {member.name} from {archive_path}")
                count = _load_table(conn, table, raw)
                loaded.add(table)
                logger.info(f"Loaded {count} rows into {table}")

        missing_tables = [table for table in DUMP_TABLES if table not in loaded]
        if missing_tables:
            raise ValueError(f"Tables not found in {archive_path}: {missing_tables}")

        for statement in DUMP_INDEXES:
            conn.execute(statement)
        conn.commit()
    except Exception:
        conn.close()
        db_tmp_path.unlink(missing_ok=True)
        raise
    conn.close()

    db_tmp_path.replace(db_path)
    logger.info(f"crates.io database written to: {db_path}")
    return db_path


def _is_fresh(path: Path, max_age_hours: float) -> bool:
    if not path.exists():
        return False
    age_seconds = time.time() - path.stat().st_mtime
    return age_seconds < max_age_hours * 3600


def prepare_crates_db(cache_dir: Path, max_age_hours: float = 24) -> Path:
    """
    Return a crates.io database no older than ``max_age_hours``,
    downloading and rebuilding it when needed.
    """
    db_path = cache_dir / DUMP_DB_NAME
    if _is_fresh(db_path, max_age_hours):
        logger.info(f"Reusing crates.io database: {db_path}")
        return db_path

    archive_path = asyncio.run(download_crates_dump(cache_dir))
    return load_dump_into_sqlite(archive_path, db_path)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if len(sys.argv) > 1:
        cache_dir = Path(sys.argv[1])
    else:
        cache_dir = Path.cwd() / ".cache"

    logger.info(f"Preparing crates.io database in: {cache_dir}")

    try:
        db_path = prepare_crates_db(cache_dir, max_age_hours=0)
        logger.info(f"Success! Database available at: {db_path}")
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
