"""
Saved configurations and quotes (SQLite implementation)
Records are stored as JSON documents alongside a few indexed columns
"""
import json
import sqlite3
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from configurator.config import Config
from configurator.errors import RecordNotFoundError
from configurator.models.component_models import ProductConfiguration
from configurator.models.quote_models import Quote

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    """Everything the repository holds, for bulk load/save"""
    configurations: List[ProductConfiguration] = field(default_factory=list)
    quotes: List[Quote] = field(default_factory=list)


class ConfigurationRepository:
    """Persistence for configurations and quotes"""

    def __init__(self, db_path: str = None):
        self.db_path = db_path or Config.DB_PATH
        self.conn = None
        self._init_database()

    def _init_database(self):
        """Create database schema if not exists"""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

        cursor = self.conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS configurations (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                component_count INTEGER DEFAULT 0,
                payload TEXT NOT NULL,
                created_at TEXT,
                updated_at TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS quotes (
                id TEXT PRIMARY KEY,
                quote_number TEXT NOT NULL,
                configuration_id TEXT NOT NULL,
                company_name TEXT,
                status TEXT NOT NULL,
                total TEXT,
                payload TEXT NOT NULL,
                created_at TEXT,
                valid_until TEXT
            )
        """)

        self.conn.commit()
        logger.info(f"Configurator database initialized: {self.db_path}")

    # ================================================================
    # Configurations
    # ================================================================
    @staticmethod
    def _write_configuration(cursor, configuration: ProductConfiguration):
        """Upsert without committing"""
        cursor.execute("""
            INSERT INTO configurations (
                id, name, component_count, payload, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                name = excluded.name,
                component_count = excluded.component_count,
                payload = excluded.payload,
                updated_at = excluded.updated_at
        """, (
            configuration.id,
            configuration.name,
            len(configuration.selected_components),
            json.dumps(configuration.to_dict()),
            configuration.created_date.isoformat(),
            configuration.last_modified_date.isoformat()
        ))

    def save_configuration(self, configuration: ProductConfiguration):
        """Insert or replace a configuration"""
        cursor = self.conn.cursor()
        try:
            self._write_configuration(cursor, configuration)
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Save failed for configuration {configuration.id}: {e}")
            self.conn.rollback()
            raise
        logger.info(f"Saved configuration {configuration.id} ({configuration.name})")

    def get_configuration(self, configuration_id: str) -> Optional[ProductConfiguration]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT payload FROM configurations WHERE id = ?", (configuration_id,))
        row = cursor.fetchone()
        if row is None:
            return None
        return ProductConfiguration.from_dict(json.loads(row["payload"]))

    def require_configuration(self, configuration_id: str) -> ProductConfiguration:
        configuration = self.get_configuration(configuration_id)
        if configuration is None:
            raise RecordNotFoundError("Configuration", configuration_id)
        return configuration

    def list_configurations(self) -> List[ProductConfiguration]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT payload FROM configurations ORDER BY updated_at DESC, id")
        return [ProductConfiguration.from_dict(json.loads(row["payload"])) for row in cursor.fetchall()]

    def delete_configuration(self, configuration_id: str) -> bool:
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM configurations WHERE id = ?", (configuration_id,))
        self.conn.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted configuration {configuration_id}")
        return deleted

    # ================================================================
    # Quotes
    # ================================================================
    @staticmethod
    def _write_quote(cursor, quote: Quote):
        """Upsert without committing"""
        cursor.execute("""
            INSERT INTO quotes (
                id, quote_number, configuration_id, company_name, status,
                total, payload, created_at, valid_until
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status = excluded.status,
                total = excluded.total,
                payload = excluded.payload
        """, (
            quote.id,
            quote.quote_number,
            quote.configuration.id,
            quote.customer_info.company_name,
            quote.status.value,
            str(quote.total),
            json.dumps(quote.to_dict()),
            quote.created_date.isoformat(),
            quote.valid_until_date.isoformat()
        ))

    def save_quote(self, quote: Quote):
        """Insert or replace a quote"""
        cursor = self.conn.cursor()
        try:
            self._write_quote(cursor, quote)
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Save failed for quote {quote.quote_number}: {e}")
            self.conn.rollback()
            raise
        logger.info(f"Saved quote {quote.quote_number} ({quote.status.value})")

    def get_quote(self, quote_id: str) -> Optional[Quote]:
        cursor = self.conn.cursor()
        cursor.execute("SELECT payload FROM quotes WHERE id = ?", (quote_id,))
        row = cursor.fetchone()
        if row is None:
            return None
        return Quote.from_dict(json.loads(row["payload"]))

    def require_quote(self, quote_id: str) -> Quote:
        quote = self.get_quote(quote_id)
        if quote is None:
            raise RecordNotFoundError("Quote", quote_id)
        return quote

    def list_quotes(self, configuration_id: Optional[str] = None) -> List[Quote]:
        """Quotes newest first; quote numbers sort as opaque strings"""
        cursor = self.conn.cursor()
        if configuration_id:
            cursor.execute("""
                SELECT payload FROM quotes WHERE configuration_id = ?
                ORDER BY quote_number DESC, id
            """, (configuration_id,))
        else:
            cursor.execute("SELECT payload FROM quotes ORDER BY quote_number DESC, id")
        return [Quote.from_dict(json.loads(row["payload"])) for row in cursor.fetchall()]

    def delete_quote(self, quote_id: str) -> bool:
        cursor = self.conn.cursor()
        cursor.execute("DELETE FROM quotes WHERE id = ?", (quote_id,))
        self.conn.commit()
        deleted = cursor.rowcount > 0
        if deleted:
            logger.info(f"Deleted quote {quote_id}")
        return deleted

    def get_expired_quotes(self, now: Optional[datetime] = None) -> List[Quote]:
        now = now or datetime.now()
        return [q for q in self.list_quotes() if q.is_expired(now)]

    # ================================================================
    # Bulk snapshot
    # ================================================================
    def load(self) -> Snapshot:
        return Snapshot(configurations=self.list_configurations(), quotes=self.list_quotes())

    def save(self, snapshot: Snapshot):
        """Replace the stored records with the snapshot in a single transaction"""
        cursor = self.conn.cursor()
        try:
            cursor.execute("DELETE FROM quotes")
            cursor.execute("DELETE FROM configurations")
            for configuration in snapshot.configurations:
                self._write_configuration(cursor, configuration)
            for quote in snapshot.quotes:
                self._write_quote(cursor, quote)
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error(f"Snapshot save failed, previous records kept: {e}")
            self.conn.rollback()
            raise

        logger.info(
            f"Saved snapshot: {len(snapshot.configurations)} configurations, "
            f"{len(snapshot.quotes)} quotes"
        )

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
