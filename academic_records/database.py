# academic_records/database.py
import logging
import threading
from contextlib import contextmanager

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from academic_records.authz import ClassesOverlap, ClassSectionIn, CreatedByIn, SelfOnly, Unrestricted
from academic_records.errors import DependencyError, NotFoundError

logger = logging.getLogger(__name__)


class Database:
    """Owns the MongoClient for one process.

    The client is created on first use; concurrent first calls share a
    single client.
    """

    def __init__(self, uri, name, timeout_ms=5000, client_factory=MongoClient):
        self.uri = uri
        self.name = name
        self.timeout_ms = timeout_ms
        self._client_factory = client_factory
        self._client = None
        self._lock = threading.Lock()

    @property
    def client(self):
        if self._client is None:
            with self._lock:
                if self._client is None:
                    logger.info("Connecting to MongoDB database %s", self.name)
                    self._client = self._client_factory(
                        self.uri,
                        serverSelectionTimeoutMS=self.timeout_ms,
                        connectTimeoutMS=self.timeout_ms,
                        socketTimeoutMS=self.timeout_ms,
                    )
        return self._client

    @property
    def db(self):
        return self.client[self.name]

    # COLLECTIONS
    @property
    def accounts(self):
        return self.db["accounts"]

    @property
    def students(self):
        return self.db["students"]

    @property
    def results(self):
        return self.db["results"]

    def ensure_indexes(self):
        with translate_errors():
            self.accounts.create_index("email", unique=True)
            self.accounts.create_index("admin_code", unique=True, sparse=True)
            self.accounts.create_index("created_by")
            self.students.create_index("user_name", unique=True)
            self.students.create_index(
                [("class", ASCENDING), ("section", ASCENDING), ("roll", ASCENDING)], unique=True
            )
            self.students.create_index("created_by")
            self.results.create_index([("student", ASCENDING), ("exam_type", ASCENDING),
                                       ("created_at", DESCENDING)])

    def close(self):
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None


@contextmanager
def translate_errors():
    """Surface driver failures as DependencyError, keeping the detail in the log.

    DuplicateKeyError passes through so callers can map or retry it.
    """
    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as e:
        logger.error("MongoDB failure: %s", e)
        raise DependencyError(str(e))


def object_id(value, label="Record"):
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFoundError(f"{label} not found")


def _object_ids(ids):
    out = []
    for value in ids:
        try:
            out.append(object_id(value))
        except NotFoundError:
            continue
    return out


def scope_query(scope):
    """Translate an authorization scope into a MongoDB filter."""
    if isinstance(scope, Unrestricted):
        return {}
    if isinstance(scope, CreatedByIn):
        return {"created_by": {"$in": _object_ids(sorted(scope.ids))}}
    if isinstance(scope, ClassSectionIn):
        if not scope.pairs:
            return {"_id": {"$in": []}}
        return {"$or": [{"class": k, "section": s} for k, s in sorted(scope.pairs)]}
    if isinstance(scope, SelfOnly):
        return {"_id": object_id(scope.id)}
    if isinstance(scope, ClassesOverlap):
        return {"assigned_classes": {"$elemMatch": {"class": {"$in": sorted(scope.classes)}}}}
    raise TypeError(f"Unsupported scope: {scope!r}")
