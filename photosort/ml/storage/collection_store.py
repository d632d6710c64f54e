"""SQLite-backed category collections holding JSON documents."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from photosort.ml.types import utc_now

PERSON = "person"
PET = "pet"
NATURE = "nature"
VEHICLE = "vehicle"
TAG = "tag"
UNCATEGORIZED = "uncategorized"

# Lookup order when one image lives in several collections
COLLECTIONS: Tuple[str, ...] = (PERSON, PET, NATURE, VEHICLE, TAG, UNCATEGORIZED)


class CollectionStore:
    """
    Category documents shaped like::

        {categoryKey, images: [ImageRecord...], sampleImageUrl,
         metadata: {imageCount, firstSeen, lastSeen}, createdAt, updatedAt}

    One document per (collection, key). The same image can be embedded in
    many documents; ``document_images`` indexes which documents hold which
    filename.
    """

    # Class-level lock for write serialization
    _write_lock = threading.Lock()

    def __init__(self, db_path: str = "photosort.db"):
        self.db_path = str(db_path)
        self._init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=30)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA busy_timeout=30000")
        return conn

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Write transaction, serialized across threads."""
        with self._write_lock:
            conn = self._connect()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise
            finally:
                conn.close()

    def _init_schema(self) -> None:
        with self._transaction() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS category_documents (
                    collection TEXT NOT NULL,
                    category_key TEXT NOT NULL,
                    document TEXT NOT NULL,
                    image_count INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (collection, category_key)
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS document_images (
                    collection TEXT NOT NULL,
                    category_key TEXT NOT NULL,
                    filename TEXT NOT NULL,
                    PRIMARY KEY (collection, category_key, filename)
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_document_images_filename ON document_images(filename)"
            )

    @staticmethod
    def _new_document(collection: str, key: str, now: str) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "collection": collection,
            "categoryKey": key,
            "images": [],
            "sampleImageUrl": None,
            "metadata": {"imageCount": 0, "firstSeen": now, "lastSeen": now},
            "createdAt": now,
            "updatedAt": now,
        }
        if collection == PERSON:
            document["personId"] = key
            document["displayName"] = None
        else:
            document["category"] = key
        return document

    @staticmethod
    def _load(conn: sqlite3.Connection, collection: str, key: str) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            "SELECT document FROM category_documents WHERE collection = ? AND category_key = ?",
            (collection, key),
        ).fetchone()
        return json.loads(row[0]) if row else None

    @staticmethod
    def _save(conn: sqlite3.Connection, document: Dict[str, Any]) -> None:
        conn.execute(
            """
            INSERT INTO category_documents
                (collection, category_key, document, image_count, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(collection, category_key) DO UPDATE SET
                document = excluded.document,
                image_count = excluded.image_count,
                updated_at = excluded.updated_at
            """,
            (
                document["collection"],
                document["categoryKey"],
                json.dumps(document),
                document["metadata"]["imageCount"],
                document["createdAt"],
                document["updatedAt"],
            ),
        )

    def add_image(
        self,
        collection: str,
        key: str,
        image: Dict[str, Any],
        sample_image_url: Optional[str] = None,
    ) -> bool:
        """
        Append an image to a category document, creating the document if needed.

        Returns:
            False if the document already holds an image with that filename
            (nothing is written), True otherwise.
        """
        filename = image["filename"]
        with self._transaction() as conn:
            document = self._load(conn, collection, key)
            now = utc_now()
            if document is None:
                document = self._new_document(collection, key, now)
            elif any(i.get("filename") == filename for i in document["images"]):
                return False

            document["images"].append(image)
            document["metadata"]["imageCount"] = document["metadata"].get("imageCount", 0) + 1
            document["metadata"]["lastSeen"] = now
            document["sampleImageUrl"] = sample_image_url
            document["updatedAt"] = now
            self._save(conn, document)
            conn.execute(
                "INSERT OR IGNORE INTO document_images (collection, category_key, filename) VALUES (?, ?, ?)",
                (collection, key, filename),
            )
            return True

    def remove_image(self, filename: str) -> List[Tuple[str, str]]:
        """
        Pull every entry for ``filename`` out of every document.

        Each affected document's imageCount drops by the number of entries
        removed; documents left with imageCount <= 0 are deleted.

        Returns:
            (collection, key) pairs the image was removed from
        """
        affected: List[Tuple[str, str]] = []
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT collection, category_key FROM document_images WHERE filename = ?",
                (filename,),
            ).fetchall()
            for collection, key in rows:
                document = self._load(conn, collection, key)
                if document is None:
                    continue
                kept = [i for i in document["images"] if i.get("filename") != filename]
                removed = len(document["images"]) - len(kept)
                if removed == 0:
                    continue
                document["images"] = kept
                document["metadata"]["imageCount"] = document["metadata"].get("imageCount", 0) - removed
                document["updatedAt"] = utc_now()
                self._save(conn, document)
                affected.append((collection, key))

            conn.execute("DELETE FROM document_images WHERE filename = ?", (filename,))
            self._delete_empty(conn)
        return affected

    @staticmethod
    def _delete_empty(conn: sqlite3.Connection) -> int:
        empty = conn.execute(
            "SELECT collection, category_key FROM category_documents WHERE image_count <= 0"
        ).fetchall()
        for collection, key in empty:
            conn.execute(
                "DELETE FROM document_images WHERE collection = ? AND category_key = ?",
                (collection, key),
            )
        conn.execute("DELETE FROM category_documents WHERE image_count <= 0")
        return len(empty)

    def update_image(self, filename: str, fields: Dict[str, Any]) -> int:
        """Set fields on every embedded copy of an image. Returns documents touched."""
        touched = 0
        with self._transaction() as conn:
            rows = conn.execute(
                "SELECT collection, category_key FROM document_images WHERE filename = ?",
                (filename,),
            ).fetchall()
            for collection, key in rows:
                document = self._load(conn, collection, key)
                if document is None:
                    continue
                changed = False
                for image in document["images"]:
                    if image.get("filename") == filename:
                        image.update(fields)
                        changed = True
                if changed:
                    document["updatedAt"] = utc_now()
                    self._save(conn, document)
                    touched += 1
        return touched

    def locations(self, filename: str) -> List[Tuple[str, str]]:
        """(collection, key) pairs that currently hold ``filename``."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT collection, category_key FROM document_images WHERE filename = ?",
                (filename,),
            ).fetchall()
        order = {name: i for i, name in enumerate(COLLECTIONS)}
        return sorted(((c, k) for c, k in rows), key=lambda r: (order.get(r[0], len(order)), r[1]))

    def find_image(self, filename: str) -> Optional[Dict[str, Any]]:
        """First embedded copy of an image, with ``collection``/``categoryKey`` added."""
        for collection, key in self.locations(filename):
            document = self.get_document(collection, key)
            if document is None:
                continue
            for image in document["images"]:
                if image.get("filename") == filename:
                    return {**image, "collection": collection, "categoryKey": key}
        return None

    def get_document(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        with self._get_connection() as conn:
            return self._load(conn, collection, key)

    def list_documents(self, collection: Optional[str] = None) -> List[Dict[str, Any]]:
        query = "SELECT collection, document FROM category_documents"
        params: Tuple = ()
        if collection:
            query += " WHERE collection = ?"
            params = (collection,)
        query += " ORDER BY created_at, category_key"
        with self._get_connection() as conn:
            rows = conn.execute(query, params).fetchall()
        order = {name: i for i, name in enumerate(COLLECTIONS)}
        documents = [json.loads(doc) for _, doc in rows]
        documents.sort(key=lambda d: order.get(d["collection"], len(order)))
        return documents

    def set_document_field(self, collection: str, key: str, field: str, value: Any) -> bool:
        with self._transaction() as conn:
            document = self._load(conn, collection, key)
            if document is None:
                return False
            document[field] = value
            document["updatedAt"] = utc_now()
            self._save(conn, document)
            return True

    def clear_all(self) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM document_images")
            conn.execute("DELETE FROM category_documents")
