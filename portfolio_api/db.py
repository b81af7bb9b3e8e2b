"""
Document store abstraction for SQL databases and an in-memory test implementation.
"""

from __future__ import annotations

import copy
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Protocol

from sqlalchemy import JSON, Column, Integer, String, create_engine, delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from portfolio_api.errors import DuplicateKeyError, NotFound, StaleDocumentError

USERS = "users"
PROJECTS = "projects"
BLOGS = "blogs"
RESUMES = "resumes"
VISITORS = "visitors"
ANNOUNCEMENTS = "announcements"

# Dotted paths walk into lists, so "invoices.invoice_number" covers every
# invoice embedded in every project.
UNIQUE_KEYS: Dict[str, tuple[str, ...]] = {
    USERS: ("email",),
    BLOGS: ("slug",),
    PROJECTS: ("invoices.invoice_number",),
}

# Compare-and-swap retries for SqlDocumentStore.modify before giving up.
MODIFY_ATTEMPTS = 10


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def new_id() -> str:
    return uuid.uuid4().hex


def get_path(doc: dict, path: str) -> Any:
    value: Any = doc
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def values_at(doc: Any, path: str) -> list:
    """Collect every value at ``path``, flattening embedded lists."""
    head, _, rest = path.partition(".")
    if isinstance(doc, list):
        found: list = []
        for item in doc:
            found.extend(values_at(item, path))
        return found
    if not isinstance(doc, dict) or head not in doc:
        return []
    value = doc[head]
    if rest:
        return values_at(value, rest)
    if isinstance(value, list):
        return [v for v in value if v is not None]
    return [] if value is None else [value]


def matches(doc: dict, filters: Optional[dict]) -> bool:
    if not filters:
        return True
    return all(get_path(doc, key) == expected for key, expected in filters.items())


def check_unique(collection: str, doc: dict, others: Iterable[dict]) -> None:
    paths = UNIQUE_KEYS.get(collection, ())
    if not paths:
        return
    others = [o for o in others if o.get("id") != doc.get("id")]
    for path in paths:
        values = values_at(doc, path)
        if len(values) != len(set(values)):
            raise DuplicateKeyError(f"Duplicate value for {path}")
        taken = set(values)
        if not taken:
            continue
        for other in others:
            clash = taken.intersection(values_at(other, path))
            if clash:
                raise DuplicateKeyError(
                    f"Duplicate value for {path}: {sorted(clash)[0]}"
                )


def sort_docs(
    docs: list[dict], sort_by: Optional[str], descending: bool
) -> list[dict]:
    if not sort_by:
        return docs
    return sorted(
        docs,
        key=lambda d: (get_path(d, sort_by) is not None, get_path(d, sort_by) or ""),
        reverse=descending,
    )


class DocumentStore(Protocol):
    """Interface for document persistence."""

    def insert(self, collection: str, doc: dict) -> dict:
        ...

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        ...

    def find(
        self,
        collection: str,
        filters: Optional[dict] = None,
        *,
        sort_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        ...

    def find_one(self, collection: str, filters: Optional[dict] = None) -> Optional[dict]:
        ...

    def count(self, collection: str, filters: Optional[dict] = None) -> int:
        ...

    def replace(
        self, collection: str, doc: dict, *, expected_version: Optional[int] = None
    ) -> dict:
        ...

    def delete(self, collection: str, doc_id: str) -> bool:
        ...

    def modify(
        self, collection: str, doc_id: str, change: Callable[[dict], None]
    ) -> Optional[dict]:
        """
        Apply ``change`` to the latest copy of a document and save it, without
        failing on concurrent writers. Returns ``None`` when the document is gone.
        """
        ...

    def update_many(self, collection: str, filters: Optional[dict], changes: dict) -> int:
        ...


class InMemoryDocumentStore:
    """Simple in-memory document store for development and tests."""

    backend = "memory"

    def __init__(self):
        self.collections: Dict[str, Dict[str, dict]] = {}
        self._lock = threading.Lock()

    def _docs(self, collection: str) -> Dict[str, dict]:
        return self.collections.setdefault(collection, {})

    def insert(self, collection: str, doc: dict) -> dict:
        now = utcnow_iso()
        record = copy.deepcopy(doc)
        record.setdefault("id", new_id())
        record["version"] = 1
        record.setdefault("created_at", now)
        record["updated_at"] = now
        with self._lock:
            docs = self._docs(collection)
            if record["id"] in docs:
                raise DuplicateKeyError(f"Duplicate id {record['id']}")
            check_unique(collection, record, docs.values())
            docs[record["id"]] = record
        return copy.deepcopy(record)

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self._lock:
            doc = self._docs(collection).get(doc_id)
            return copy.deepcopy(doc) if doc else None

    def find(
        self,
        collection: str,
        filters: Optional[dict] = None,
        *,
        sort_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        with self._lock:
            docs = [d for d in self._docs(collection).values() if matches(d, filters)]
            docs = copy.deepcopy(docs)
        docs = sort_docs(docs, sort_by, descending)
        if limit is not None:
            docs = docs[:limit]
        return docs

    def find_one(self, collection: str, filters: Optional[dict] = None) -> Optional[dict]:
        found = self.find(collection, filters, limit=1)
        return found[0] if found else None

    def count(self, collection: str, filters: Optional[dict] = None) -> int:
        with self._lock:
            return sum(
                1 for d in self._docs(collection).values() if matches(d, filters)
            )

    def replace(
        self, collection: str, doc: dict, *, expected_version: Optional[int] = None
    ) -> dict:
        with self._lock:
            docs = self._docs(collection)
            current = docs.get(doc.get("id"))
            if current is None:
                raise NotFound(f"Document {doc.get('id')} not found")
            if expected_version is None:
                expected_version = doc.get("version", current["version"])
            if current["version"] != expected_version:
                raise StaleDocumentError()
            record = copy.deepcopy(doc)
            record["version"] = current["version"] + 1
            record["created_at"] = current.get("created_at")
            record["updated_at"] = utcnow_iso()
            check_unique(collection, record, docs.values())
            docs[record["id"]] = record
        return copy.deepcopy(record)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            return self._docs(collection).pop(doc_id, None) is not None

    def modify(
        self, collection: str, doc_id: str, change: Callable[[dict], None]
    ) -> Optional[dict]:
        with self._lock:
            docs = self._docs(collection)
            current = docs.get(doc_id)
            if current is None:
                return None
            record = copy.deepcopy(current)
            change(record)
            record["version"] = current["version"] + 1
            record["updated_at"] = utcnow_iso()
            check_unique(collection, record, docs.values())
            docs[doc_id] = record
        return copy.deepcopy(record)

    def update_many(self, collection: str, filters: Optional[dict], changes: dict) -> int:
        updated = 0
        now = utcnow_iso()
        with self._lock:
            for doc in self._docs(collection).values():
                if matches(doc, filters):
                    doc.update(copy.deepcopy(changes))
                    doc["version"] += 1
                    doc["updated_at"] = now
                    updated += 1
        return updated

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.collections.clear()


class SqlDocumentStore:
    """
    SQLAlchemy-backed implementation storing each document as a JSON row.
    Accepts any SQLAlchemy URL (e.g., Postgres, or SQLite for tests).
    """

    backend = "sql"

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDocumentStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _to_doc(row: "DocumentRow") -> dict:
        doc = copy.deepcopy(row.data)
        doc["id"] = row.id
        doc["version"] = row.version
        doc["created_at"] = row.created_at
        doc["updated_at"] = row.updated_at
        return doc

    def _all(self, session: Session, collection: str) -> list[dict]:
        rows = session.execute(
            select(DocumentRow)
            .where(DocumentRow.collection == collection)
            .order_by(DocumentRow.created_at.asc())
        ).scalars()
        return [self._to_doc(row) for row in rows]

    def insert(self, collection: str, doc: dict) -> dict:
        now = utcnow_iso()
        record = copy.deepcopy(doc)
        record.setdefault("id", new_id())
        record["version"] = 1
        record.setdefault("created_at", now)
        record["updated_at"] = now
        with self.Session() as session:
            if session.get(DocumentRow, (collection, record["id"])) is not None:
                raise DuplicateKeyError(f"Duplicate id {record['id']}")
            check_unique(collection, record, self._all(session, collection))
            session.add(
                DocumentRow(
                    collection=collection,
                    id=record["id"],
                    version=1,
                    data=record,
                    created_at=record["created_at"],
                    updated_at=now,
                )
            )
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise DuplicateKeyError(f"Duplicate id {record['id']}")
        return record

    def get(self, collection: str, doc_id: str) -> Optional[dict]:
        with self.Session() as session:
            row = session.get(DocumentRow, (collection, doc_id))
            return self._to_doc(row) if row else None

    def find(
        self,
        collection: str,
        filters: Optional[dict] = None,
        *,
        sort_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        with self.Session() as session:
            docs = [d for d in self._all(session, collection) if matches(d, filters)]
        docs = sort_docs(docs, sort_by, descending)
        if limit is not None:
            docs = docs[:limit]
        return docs

    def find_one(self, collection: str, filters: Optional[dict] = None) -> Optional[dict]:
        found = self.find(collection, filters, limit=1)
        return found[0] if found else None

    def count(self, collection: str, filters: Optional[dict] = None) -> int:
        return len(self.find(collection, filters))

    def replace(
        self, collection: str, doc: dict, *, expected_version: Optional[int] = None
    ) -> dict:
        now = utcnow_iso()
        with self.Session() as session:
            current = session.get(DocumentRow, (collection, doc.get("id")))
            if current is None:
                raise NotFound(f"Document {doc.get('id')} not found")
            if expected_version is None:
                expected_version = doc.get("version", current.version)
            record = copy.deepcopy(doc)
            record["version"] = expected_version + 1
            record["created_at"] = current.created_at
            record["updated_at"] = now
            check_unique(collection, record, self._all(session, collection))
            # Compare-and-swap on the version column.
            result = session.execute(
                update(DocumentRow)
                .where(
                    DocumentRow.collection == collection,
                    DocumentRow.id == record["id"],
                    DocumentRow.version == expected_version,
                )
                .values(data=record, version=record["version"], updated_at=now)
            )
            if result.rowcount == 0:
                session.rollback()
                raise StaleDocumentError()
            session.commit()
        return record

    def delete(self, collection: str, doc_id: str) -> bool:
        with self.Session() as session:
            result = session.execute(
                delete(DocumentRow).where(
                    DocumentRow.collection == collection, DocumentRow.id == doc_id
                )
            )
            session.commit()
            return (result.rowcount or 0) > 0

    def modify(
        self, collection: str, doc_id: str, change: Callable[[dict], None]
    ) -> Optional[dict]:
        for _ in range(MODIFY_ATTEMPTS):
            doc = self.get(collection, doc_id)
            if doc is None:
                return None
            change(doc)
            try:
                return self.replace(collection, doc, expected_version=doc["version"])
            except StaleDocumentError:
                continue
            except NotFound:
                return None
        raise StaleDocumentError()

    def update_many(self, collection: str, filters: Optional[dict], changes: dict) -> int:
        updated = 0
        for doc in self.find(collection, filters):
            doc.update(copy.deepcopy(changes))
            self.replace(collection, doc, expected_version=doc["version"])
            updated += 1
        return updated


def build_store(settings) -> DocumentStore:
    if settings.use_in_memory_backends or not settings.database_url:
        return InMemoryDocumentStore()
    return SqlDocumentStore(settings.database_url)


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    collection = Column(String, primary_key=True)
    id = Column(String, primary_key=True)
    version = Column(Integer, nullable=False, default=1)
    data = Column(JSON, nullable=False)
    created_at = Column(String, nullable=False, index=True)
    updated_at = Column(String, nullable=False)
