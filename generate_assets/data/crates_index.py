"""
Query the crates.io database dump (loaded into SQLite) for reverse dependencies.
"""
from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Dict, List, Optional

from generate_assets.domain.models import ReverseDependency

logger = logging.getLogger(__name__)


class CratesIndexReader:
    """Reads and queries the SQLite database built from the crates.io dump."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None

    def connect(self):
        """Open connection to the dump database."""
        if self.conn is None:
            if not self.db_path.exists():
                logger.error(f"crates.io database not found: {self.db_path}")
                raise FileNotFoundError(f"crates.io database not found: {self.db_path}")
            logger.debug(f"Connecting to crates.io database: {self.db_path}")
            self.conn = sqlite3.connect(str(self.db_path))
            self.conn.row_factory = sqlite3.Row
            logger.debug("Successfully connected to crates.io database")

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def get_reverse_dependencies(
        self,
        crate_name: str,
        target_name: str,
    ) -> List[ReverseDependency]:
        """
        Find every published version of ``crate_name`` that depends on ``target_name``.

        Returns:
            One record per version, oldest version first. Each record carries the
            version's license and its requirements on the target crate.
        """
        logger.debug(f"Querying reverse dependencies of {target_name} for {crate_name}")
        self.connect()
        cursor = self.conn.cursor()

        try:
            cursor.execute("""
                SELECT
                    c.name AS crate_name,
                    v.id AS version_id,
                    v.num AS version,
                    v.license AS license,
                    d.req AS req
                FROM crates c
                JOIN versions v ON v.crate_id = c.id
                JOIN dependencies d ON d.version_id = v.id
                JOIN crates target ON target.id = d.crate_id
                WHERE c.name = ? AND target.name = ?
                ORDER BY v.id, d.id
            """, (crate_name, target_name))
            rows = cursor.fetchall()
        except sqlite3.OperationalError as e:
            logger.error(f"Database error querying reverse dependencies for {crate_name}: {e}", exc_info=True)
            raise ValueError(f"Failed to query reverse dependencies: {e}")

        records: Dict[int, ReverseDependency] = {}
        for row in rows:
            record = records.get(row["version_id"])
            if record is None:
                record = ReverseDependency(
                    crate_name=row["crate_name"],
                    version=str(row["version"]),
                    license=row["license"] or None,
                )
                records[row["version_id"]] = record
            if row["req"]:
                record.requirements.append(row["req"])

        logger.debug(f"Found {len(records)} versions of {crate_name} depending on {target_name}")
        return list(records.values())

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
