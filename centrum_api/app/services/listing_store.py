"""
Persistence of listings.

``ListingStore`` is the interface API handlers work against.  Three
implementations are provided:

* ``FileListingStore`` keeps every listing in one JSON document
  ``{"listings": [...]}``.  Writes go to a temporary file that is then
  renamed over the original, so a crash never leaves a half-written
  store behind.  A missing or corrupt file reads as an empty
  collection.
* ``SqliteListingStore`` keeps one JSON document per row and lets each
  operation run in its own transaction.  Database errors surface as
  ``StorageError``.
* ``MemoryListingStore`` keeps listings in a list; handy for tests.

None of the stores lock across requests.  Two concurrent writers to
the file store race on the whole read-modify-write cycle and the last
one wins; deployments that need more should serialise writes or use
the SQLite store.
"""

import contextlib
import json
import logging
import os
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from pydantic import ValidationError

from ..core.config import Settings
from ..core.db import get_connection, init_db, transaction
from ..schemas.listing import Listing
from .normalizer import new_listing_id, normalize_listing


logger = logging.getLogger(__name__)


class ListingNotFoundError(ValueError):
    """Raised when no listing has the requested identifier."""

    def __init__(self, listing_id: str) -> None:
        super().__init__(f"Listing {listing_id} not found")
        self.listing_id = listing_id


class StorageError(RuntimeError):
    """Raised when the underlying storage medium fails."""


def sort_newest_first(listings: Iterable[Listing]) -> List[Listing]:
    """Order by ``createdAt`` descending; ties keep their stored order."""
    return sorted(listings, key=lambda item: item.created_at, reverse=True)


def merge_patch(existing: Listing, patch: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Overlay ``patch`` on a stored listing, protecting server-managed fields.

    A patch that replaces the gallery without naming a cover gets the
    cover recomputed from the new gallery, unless the stored cover was
    set explicitly (it differs from the old first image).
    """
    patch = patch or {}
    merged = existing.to_document()
    merged.update(patch)
    if "images" in patch and "image" not in patch:
        old_first = existing.images[0] if existing.images else ""
        if not existing.image or existing.image == old_first:
            merged.pop("image", None)
    merged["id"] = existing.id
    merged["createdAt"] = existing.created_at
    merged["updatedAt"] = existing.updated_at
    return merged


def _with_unique_id(listing: Listing, taken: Iterable[str]) -> Listing:
    taken = set(taken)
    if listing.id and listing.id not in taken:
        return listing
    new_id = new_listing_id()
    while new_id in taken:
        new_id = new_listing_id()
    return listing.model_copy(update={"id": new_id})


class ListingStore(ABC):
    """CRUD access to listings, independent of the storage medium."""

    @abstractmethod
    def list_all(self) -> List[Listing]:
        """Return every listing, newest first."""

    @abstractmethod
    def get_by_id(self, listing_id: str) -> Listing:
        """Return one listing or raise ``ListingNotFoundError``."""

    @abstractmethod
    def insert(self, listing: Listing) -> Listing:
        """Persist a new listing and return it as stored.

        The returned identifier may differ from ``listing.id``.
        """

    @abstractmethod
    def delete(self, listing_id: str) -> None:
        """Remove a listing or raise ``ListingNotFoundError``."""

    @abstractmethod
    def _replace(self, listing: Listing) -> None:
        """Overwrite the stored record that has ``listing.id``."""

    def update(self, listing_id: str, patch: Optional[Mapping[str, Any]]) -> Listing:
        """Merge ``patch`` into a stored listing, re-validate and persist it.

        ``id`` and ``createdAt`` are always taken from the stored record
        and ``updatedAt`` moves strictly forward.  Raises
        ``ListingNotFoundError`` for an unknown id and
        ``ListingValidationError`` if the merged record is invalid; in
        both cases nothing is written.
        """
        existing = self.get_by_id(listing_id)
        listing = normalize_listing(merge_patch(existing, patch), is_update=True)
        self._replace(listing)
        logger.info("Updated listing %s", listing.id)
        return listing


class MemoryListingStore(ListingStore):
    """Listings held in process memory, in insertion order."""

    def __init__(self, listings: Optional[Iterable[Listing]] = None) -> None:
        self._items: List[Listing] = list(listings or [])

    def list_all(self) -> List[Listing]:
        return sort_newest_first(self._items)

    def get_by_id(self, listing_id: str) -> Listing:
        for item in self._items:
            if item.id == listing_id:
                return item
        raise ListingNotFoundError(listing_id)

    def insert(self, listing: Listing) -> Listing:
        listing = _with_unique_id(listing, (item.id for item in self._items))
        self._items.append(listing)
        logger.info("Created listing %s", listing.id)
        return listing

    def delete(self, listing_id: str) -> None:
        for index, item in enumerate(self._items):
            if item.id == listing_id:
                del self._items[index]
                logger.info("Deleted listing %s", listing_id)
                return
        raise ListingNotFoundError(listing_id)

    def _replace(self, listing: Listing) -> None:
        for index, item in enumerate(self._items):
            if item.id == listing.id:
                self._items[index] = listing
                return
        raise ListingNotFoundError(listing.id)


class FileListingStore(ListingStore):
    """Listings kept in a single JSON document on disk."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read(self) -> List[Listing]:
        """Load stored listings in insertion order.

        Never fails: an unreadable, corrupt or wrongly shaped file reads
        as an empty collection, and entries that are not valid listings
        are skipped.
        """
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as exc:
            logger.warning("Cannot read %s, treating store as empty: %s", self.path, exc)
            return []

        raw_items = data.get("listings") if isinstance(data, dict) else None
        if not isinstance(raw_items, list):
            logger.warning("Unexpected layout in %s, treating store as empty", self.path)
            return []

        listings = []
        for raw in raw_items:
            try:
                listings.append(Listing.model_validate(raw))
            except ValidationError as exc:
                logger.warning("Skipping malformed entry in %s: %s", self.path, exc.errors()[:1])
        return listings

    def _write(self, listings: List[Listing]) -> None:
        """Atomically replace the store file with ``listings``."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"listings": [item.to_document() for item in listings]}
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh, ensure_ascii=False)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise

    def list_all(self) -> List[Listing]:
        return sort_newest_first(self._read())

    def get_by_id(self, listing_id: str) -> Listing:
        for item in self._read():
            if item.id == listing_id:
                return item
        raise ListingNotFoundError(listing_id)

    def insert(self, listing: Listing) -> Listing:
        listings = self._read()
        listing = _with_unique_id(listing, (item.id for item in listings))
        listings.append(listing)
        self._write(listings)
        logger.info("Created listing %s", listing.id)
        return listing

    def delete(self, listing_id: str) -> None:
        listings = self._read()
        remaining = [item for item in listings if item.id != listing_id]
        if len(remaining) == len(listings):
            raise ListingNotFoundError(listing_id)
        self._write(remaining)
        logger.info("Deleted listing %s", listing_id)

    def _replace(self, listing: Listing) -> None:
        listings = self._read()
        for index, item in enumerate(listings):
            if item.id == listing.id:
                listings[index] = listing
                self._write(listings)
                return
        # Deleted by a concurrent request between read and write.
        raise ListingNotFoundError(listing.id)


class SqliteListingStore(ListingStore):
    """Document store on SQLite: one JSON document per listing.

    Identifiers are always issued by the store on insert; whatever id
    the caller supplied is discarded.
    """

    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = db_path
        with self._connect() as conn:
            init_db(conn)

    @contextlib.contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = get_connection(self.db_path)
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        try:
            yield conn
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc
        finally:
            conn.close()

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Listing:
        try:
            return Listing.model_validate(json.loads(row["document"]))
        except (ValueError, TypeError) as exc:
            # ValidationError and JSONDecodeError are both ValueErrors.
            raise StorageError(f"Corrupt listing document: {exc}") from exc

    def list_all(self) -> List[Listing]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT document FROM listings ORDER BY created_at DESC, rowid ASC"
            ).fetchall()
        return [self._from_row(row) for row in rows]

    def get_by_id(self, listing_id: str) -> Listing:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT document FROM listings WHERE id = ?", (listing_id,)
            ).fetchone()
        if row is None:
            raise ListingNotFoundError(listing_id)
        return self._from_row(row)

    def insert(self, listing: Listing) -> Listing:
        listing = listing.model_copy(update={"id": new_listing_id()})
        with self._connect() as conn, transaction(conn) as cursor:
            cursor.execute(
                "INSERT INTO listings (id, created_at, document) VALUES (?, ?, ?)",
                (listing.id, listing.created_at, json.dumps(listing.to_document(), ensure_ascii=False)),
            )
        logger.info("Created listing %s", listing.id)
        return listing

    def delete(self, listing_id: str) -> None:
        with self._connect() as conn, transaction(conn) as cursor:
            cursor.execute("DELETE FROM listings WHERE id = ?", (listing_id,))
            deleted = cursor.rowcount
        if not deleted:
            raise ListingNotFoundError(listing_id)
        logger.info("Deleted listing %s", listing_id)

    def _replace(self, listing: Listing) -> None:
        with self._connect() as conn, transaction(conn) as cursor:
            cursor.execute(
                "UPDATE listings SET document = ? WHERE id = ?",
                (json.dumps(listing.to_document(), ensure_ascii=False), listing.id),
            )
            updated = cursor.rowcount
        if not updated:
            raise ListingNotFoundError(listing.id)


def create_store(app_settings: Settings) -> ListingStore:
    """Build the store named by ``app_settings.store_backend``."""
    backend = app_settings.store_backend.lower()
    if backend == "file":
        path = app_settings.resolve_path(app_settings.data_file)
        logger.info("Using file listing store at %s", path)
        return FileListingStore(path)
    if backend == "sqlite":
        if app_settings.database_url == ":memory:":
            raise ValueError("The sqlite store needs a database file, not :memory:")
        path = app_settings.resolve_path(app_settings.database_url)
        logger.info("Using SQLite listing store at %s", path)
        return SqliteListingStore(path)
    if backend == "memory":
        logger.info("Using in-memory listing store")
        return MemoryListingStore()
    raise ValueError(f"Unknown store backend: {app_settings.store_backend}")
