"""SQLite-backed catalog repository."""

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Sequence

from loguru import logger

from catalog_search.exceptions import SourceRepositoryError
from catalog_search.schemas.catalog import CatalogRecord
from catalog_search.sources.base import SourceRepository

_COLUMNS = (
    "product_id, product_name, unit_price, units_in_stock, "
    "category_id, user_id, created_by, created_date"
)


class SQLiteCatalogRepository(SourceRepository):
    """Catalog stored in a SQLite `products` table.
    
    Opens a connection per call, so instances can be shared across threads.
    """

    def __init__(self, db_path: Path):
        """Initialize repository, creating the table if missing.
        
        Args:
            db_path: Path to SQLite database file (will be created if missing)
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()
        logger.info(f"Using catalog database at {self.db_path}")

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS products (
                    product_id INTEGER PRIMARY KEY,
                    product_name TEXT NOT NULL,
                    unit_price REAL NOT NULL,
                    units_in_stock INTEGER NOT NULL,
                    category_id INTEGER NOT NULL,
                    user_id TEXT NOT NULL DEFAULT '',
                    created_by TEXT NOT NULL DEFAULT '',
                    created_date TEXT NOT NULL
                )
            """)
            conn.commit()

    @staticmethod
    def _to_record(row: sqlite3.Row) -> CatalogRecord:
        return CatalogRecord(
            product_id=row["product_id"],
            product_name=row["product_name"],
            unit_price=row["unit_price"],
            units_in_stock=row["units_in_stock"],
            category_id=row["category_id"],
            user_id=row["user_id"],
            created_by=row["created_by"],
            created_date=datetime.fromisoformat(row["created_date"]),
        )

    def fetch_all(self) -> List[CatalogRecord]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM products ORDER BY product_id"
                ).fetchall()
        except sqlite3.Error as e:
            raise SourceRepositoryError(f"Cannot read catalog: {e}") from e
        return [self._to_record(row) for row in rows]

    def count(self) -> int:
        try:
            with self._connect() as conn:
                return conn.execute("SELECT COUNT(*) FROM products").fetchone()[0]
        except sqlite3.Error as e:
            raise SourceRepositoryError(f"Cannot count catalog: {e}") from e

    def fetch_page(self, offset: int, limit: int) -> List[CatalogRecord]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT {_COLUMNS} FROM products ORDER BY product_id LIMIT ? OFFSET ?",
                    (limit, offset)
                ).fetchall()
        except sqlite3.Error as e:
            raise SourceRepositoryError(f"Cannot read catalog page: {e}") from e
        return [self._to_record(row) for row in rows]

    def add_records(self, records: Sequence[CatalogRecord]) -> int:
        rows = [
            (
                r.product_id, r.product_name, r.unit_price, r.units_in_stock,
                r.category_id, r.user_id, r.created_by, r.created_date.isoformat()
            )
            for r in records
        ]
        try:
            with self._connect() as conn:
                conn.executemany(
                    f"INSERT INTO products ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                    rows
                )
                conn.commit()
        except sqlite3.Error as e:
            raise SourceRepositoryError(f"Cannot insert catalog records: {e}") from e
        return len(rows)

    def next_id(self) -> int:
        with self._connect() as conn:
            value = conn.execute("SELECT MAX(product_id) FROM products").fetchone()[0]
        return (value or 0) + 1
