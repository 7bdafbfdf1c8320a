"""SQLite storage for saved network documents."""

import json
import logging
import sqlite3
import uuid

from movienet.config import Config
from movienet.errors import NetworkNotFoundError
from movienet.models import NetworkDocument, NetworkMetadata, SavedNetworkRow
from movienet.serialization import from_persistable_document

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS networks (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT,
    seed_movie TEXT,
    document TEXT NOT NULL,
    total_movies INTEGER DEFAULT 0,
    total_connections INTEGER DEFAULT 0,
    max_depth INTEGER DEFAULT 0,
    average_rating REAL,
    genres TEXT,
    created_at TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_networks_name ON networks(name);
CREATE INDEX IF NOT EXISTS idx_networks_created ON networks(created_at);
"""

SUMMARY_COLUMNS = (
    "id, name, description, seed_movie, total_movies, total_connections, "
    "max_depth, average_rating, genres, created_at, updated_at"
)


class NetworkDB:
    """SQLite database wrapper for saved networks."""

    def __init__(self, config: Config) -> None:
        self.db_path = config.resolved_db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database not initialized. Call init_db() first.")
        return self._conn

    def init_db(self) -> None:
        """Create database and tables."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self.db_path))
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(SCHEMA_SQL)
        logger.info("Database initialized at %s", self.db_path)

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    # --- Helpers ---

    @staticmethod
    def _snapshot(document: NetworkDocument) -> NetworkDocument:
        """Validate the document and stamp fresh metadata on a copy.

        Raises DocumentIntegrityError for inconsistent documents, so nothing
        unloadable is ever stored.
        """
        network = from_persistable_document(document)
        return document.model_copy(update={"metadata": network.summary()})

    @staticmethod
    def _row_to_summary(row: sqlite3.Row) -> SavedNetworkRow:
        return SavedNetworkRow(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            seed_movie=row["seed_movie"],
            metadata=NetworkMetadata(
                total_movies=row["total_movies"] or 0,
                total_connections=row["total_connections"] or 0,
                max_depth=row["max_depth"] or 0,
                average_rating=row["average_rating"],
                genres=json.loads(row["genres"]) if row["genres"] else [],
            ),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    @staticmethod
    def _metadata_params(document: NetworkDocument) -> tuple[int, int, int, float | None, str]:
        meta = document.metadata or NetworkMetadata()
        return (
            meta.total_movies,
            meta.total_connections,
            meta.max_depth,
            meta.average_rating,
            json.dumps(meta.genres),
        )

    # --- Network operations ---

    def save_network(self, document: NetworkDocument) -> str:
        """Store a new network document. Returns its id."""
        document = self._snapshot(document)
        network_id = uuid.uuid4().hex
        self.conn.execute(
            """INSERT INTO networks
               (id, name, description, seed_movie, document,
                total_movies, total_connections, max_depth, average_rating, genres)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                network_id,
                document.name,
                document.description,
                document.seed_movie,
                document.model_dump_json(),
                *self._metadata_params(document),
            ),
        )
        self.conn.commit()
        logger.info("Saved network %r as %s", document.name, network_id)
        return network_id

    def update_network(self, network_id: str, document: NetworkDocument) -> None:
        """Replace a stored document. Raises NetworkNotFoundError for unknown ids."""
        document = self._snapshot(document)
        cursor = self.conn.execute(
            """UPDATE networks SET name = ?, description = ?, seed_movie = ?, document = ?,
                   total_movies = ?, total_connections = ?, max_depth = ?, average_rating = ?,
                   genres = ?, updated_at = datetime('now')
               WHERE id = ?""",
            (
                document.name,
                document.description,
                document.seed_movie,
                document.model_dump_json(),
                *self._metadata_params(document),
                network_id,
            ),
        )
        if cursor.rowcount == 0:
            raise NetworkNotFoundError(network_id)
        self.conn.commit()
        logger.info("Updated network %r (%s)", document.name, network_id)

    def save_or_update_by_name(self, document: NetworkDocument) -> tuple[str, bool]:
        """Update the network with the same name if one exists, else create it.

        Returns (network_id, created).
        """
        existing = self.get_network_by_name(document.name)
        if existing is not None:
            self.update_network(existing.id, document)
            return existing.id, False
        return self.save_network(document), True

    def get_network(self, network_id: str) -> NetworkDocument | None:
        row = self.conn.execute(
            "SELECT document FROM networks WHERE id = ?", (network_id,)
        ).fetchone()
        if row:
            return NetworkDocument.model_validate_json(row["document"])
        return None

    def get_network_summary(self, network_id: str) -> SavedNetworkRow | None:
        row = self.conn.execute(
            f"SELECT {SUMMARY_COLUMNS} FROM networks WHERE id = ?", (network_id,)
        ).fetchone()
        if row:
            return self._row_to_summary(row)
        return None

    def get_network_by_name(self, name: str) -> SavedNetworkRow | None:
        row = self.conn.execute(
            f"SELECT {SUMMARY_COLUMNS} FROM networks WHERE name = ? ORDER BY created_at DESC LIMIT 1",
            (name,),
        ).fetchone()
        if row:
            return self._row_to_summary(row)
        return None

    def list_networks(self, limit: int = 100) -> list[SavedNetworkRow]:
        """Saved network summaries, newest first, without node/edge payload."""
        rows = self.conn.execute(
            f"SELECT {SUMMARY_COLUMNS} FROM networks ORDER BY created_at DESC, rowid DESC LIMIT ?",
            (limit,),
        ).fetchall()
        return [self._row_to_summary(r) for r in rows]

    def delete_network(self, network_id: str) -> bool:
        cursor = self.conn.execute("DELETE FROM networks WHERE id = ?", (network_id,))
        self.conn.commit()
        return cursor.rowcount > 0

    def count_networks(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) as cnt FROM networks").fetchone()
        return row["cnt"] if row else 0
