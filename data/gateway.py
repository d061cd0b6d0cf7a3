"""Persistence gateway: CRUD over typed entity rows, one table per entity type."""

import copy
import logging
import re
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple

from config.defaults import ALL_TABLES, UNIQUE_KEYS, SCHEMA_MISSING_CODES, SCHEMA_MISSING_MESSAGES
from engine.errors import ConflictError, NotFoundError, SchemaMissingError

logger = logging.getLogger(__name__)


class PersistenceGateway(ABC):
    """
    CRUD contract consumed by the allocation services.

    ``list`` filters are equality matches on entity attributes; a key ending in
    ``__in`` matches any value of the given collection.
    """

    @abstractmethod
    def get(self, table: str, entity_id: str) -> Any:
        pass

    @abstractmethod
    def list(self, table: str, **filters) -> List[Any]:
        pass

    @abstractmethod
    def create(self, table: str, entity: Any) -> Any:
        pass

    @abstractmethod
    def update(self, table: str, entity: Any) -> Any:
        pass

    @abstractmethod
    def delete(self, table: str, entity_id: str) -> None:
        pass

    def exists(self, table: str, **filters) -> bool:
        return len(self.list(table, **filters)) > 0


def _matches(entity: Any, filters: Dict[str, Any]) -> bool:
    for key, expected in filters.items():
        if key.endswith("__in"):
            if getattr(entity, key[:-4]) not in expected:
                return False
        elif getattr(entity, key) != expected:
            return False
    return True


class InMemoryGateway(PersistenceGateway):
    """Dict-backed gateway. Rows are stored and returned as copies.

    Writes are conditional: ``update`` requires the caller's ``version`` to
    match the stored row, and ``create``/``update`` enforce ``UNIQUE_KEYS``.
    Either failure raises ``ConflictError``.
    """

    def __init__(
        self,
        provisioned_tables: Optional[Iterable[str]] = None,
        unique_keys: Optional[Dict[str, Tuple[str, ...]]] = None,
    ):
        tables = ALL_TABLES if provisioned_tables is None else list(provisioned_tables)
        self._rows: Dict[str, Dict[str, Any]] = {t: {} for t in tables}
        self._unique_keys = UNIQUE_KEYS if unique_keys is None else unique_keys

    def _table(self, table: str) -> Dict[str, Any]:
        if table not in self._rows:
            raise SchemaMissingError(table)
        return self._rows[table]

    def _check_unique(self, table: str, entity: Any):
        key = self._unique_keys.get(table)
        if not key:
            return
        values = tuple(getattr(entity, k) for k in key)
        for row in self._rows[table].values():
            if row.id != entity.id and tuple(getattr(row, k) for k in key) == values:
                raise ConflictError(table, f"a row already exists for {dict(zip(key, values))}")

    def get(self, table: str, entity_id: str) -> Any:
        rows = self._table(table)
        if entity_id not in rows:
            raise NotFoundError(table, entity_id)
        return copy.deepcopy(rows[entity_id])

    def list(self, table: str, **filters) -> List[Any]:
        rows = self._table(table)
        return [copy.deepcopy(r) for r in rows.values() if _matches(r, filters)]

    def create(self, table: str, entity: Any) -> Any:
        rows = self._table(table)
        stored = copy.deepcopy(entity)
        if not stored.id:
            stored.id = uuid.uuid4().hex
        if stored.id in rows:
            raise ConflictError(table, f"id '{stored.id}' already exists")
        self._check_unique(table, stored)
        stored.version = 1
        rows[stored.id] = stored
        return copy.deepcopy(stored)

    def update(self, table: str, entity: Any) -> Any:
        rows = self._table(table)
        current = rows.get(entity.id)
        if current is None:
            raise NotFoundError(table, entity.id)
        if current.version != entity.version:
            raise ConflictError(
                table,
                f"row '{entity.id}' was modified by someone else "
                f"(expected version {entity.version}, found {current.version})",
            )
        self._check_unique(table, entity)
        stored = copy.deepcopy(entity)
        stored.version = current.version + 1
        rows[stored.id] = stored
        return copy.deepcopy(stored)

    def delete(self, table: str, entity_id: str) -> None:
        rows = self._table(table)
        if entity_id not in rows:
            raise NotFoundError(table, entity_id)
        del rows[entity_id]


def is_schema_missing(exc: Exception) -> bool:
    """True when a backend error means the table itself is absent."""
    if isinstance(exc, SchemaMissingError):
        return True
    code = getattr(exc, "code", None)
    if code in SCHEMA_MISSING_CODES:
        return True
    message = str(exc).lower()
    return any(re.search(pattern, message) for pattern in SCHEMA_MISSING_MESSAGES)


class SchemaGuardGateway(PersistenceGateway):
    """Wraps another gateway and remembers tables found to be missing.

    Once a table is known to be missing, calls against it raise
    ``SchemaMissingError`` without touching the wrapped gateway again.
    """

    def __init__(self, inner: PersistenceGateway):
        self.inner = inner
        self.missing_tables: Set[str] = set()

    def reset_schema_cache(self, table: Optional[str] = None):
        if table is None:
            self.missing_tables.clear()
        else:
            self.missing_tables.discard(table)

    def _call(self, table: str, fn: Callable, *args, **kwargs):
        if table in self.missing_tables:
            raise SchemaMissingError(table)
        try:
            return fn(table, *args, **kwargs)
        except (NotFoundError, ConflictError):
            raise
        except Exception as exc:
            if not is_schema_missing(exc):
                raise
            logger.warning("Table '%s' is not provisioned; further calls will short-circuit", table)
            self.missing_tables.add(table)
            if isinstance(exc, SchemaMissingError):
                raise
            raise SchemaMissingError(table, str(exc)) from exc

    def get(self, table: str, entity_id: str) -> Any:
        return self._call(table, self.inner.get, entity_id)

    def list(self, table: str, **filters) -> List[Any]:
        return self._call(table, self.inner.list, **filters)

    def create(self, table: str, entity: Any) -> Any:
        return self._call(table, self.inner.create, entity)

    def update(self, table: str, entity: Any) -> Any:
        return self._call(table, self.inner.update, entity)

    def delete(self, table: str, entity_id: str) -> None:
        return self._call(table, self.inner.delete, entity_id)
