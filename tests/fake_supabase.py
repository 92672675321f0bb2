"""
In-memory stand-in for the Supabase client.

Covers the query-builder calls the services make. Each ``execute`` runs under
one lock, so a filtered UPDATE behaves like the single conditional statement
Postgres would run.
"""

import copy
import threading
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from app.core.clock import as_utc, utcnow

TABLE_DEFAULTS = {
    "events": {"is_cancelled": False, "is_public": False, "bell_sound": None, "updated_at": None},
    "event_guests": {"user_id": None, "wants_reminders": True, "arrival_status": None},
    "bring_items": {
        "status": "unclaimed",
        "claimed_by_guest_id": None,
        "claimed_quantity": None,
        "is_claimable": True,
        "is_required": False,
        "sort_order": 0,
    },
    "notification_schedules": {"sent_at": None},
    "profiles": {"push_token": None, "name": None, "phone": None, "avatar_url": None, "email": None},
}

UNIQUE_KEYS = {
    "event_guests": ("event_id", "guest_phone_or_email"),
    "event_co_hosts": ("event_id", "user_id"),
}


class FakeAPIError(Exception):
    pass


class FakeResponse:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str) and len(value) >= 19 and value[4] == "-" and value[10] in "T ":
        try:
            return as_utc(value)
        except ValueError:
            return value
    return value


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.columns = "*"
        self.count_mode = None
        self.payload: Any = None
        self.filters: List[Callable[[Dict[str, Any]], bool]] = []
        self.order_by: List[tuple] = []
        self.limit_n: Optional[int] = None
        self.offset_n = 0
        self.single_mode: Optional[str] = None

    # actions
    def select(self, columns: str = "*", count: Optional[str] = None):
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def delete(self):
        self.action = "delete"
        return self

    # filters
    def _add(self, column: str, predicate: Callable[[Any], bool]):
        self.filters.append(lambda row: predicate(row.get(column)))
        return self

    def eq(self, column: str, value: Any):
        return self._add(column, lambda v: _comparable(v) == _comparable(value))

    def neq(self, column: str, value: Any):
        return self._add(column, lambda v: _comparable(v) != _comparable(value))

    def in_(self, column: str, values: List[Any]):
        wanted = [_comparable(v) for v in values]
        return self._add(column, lambda v: _comparable(v) in wanted)

    def is_(self, column: str, value: Any):
        if value in ("null", None):
            return self._add(column, lambda v: v is None)
        return self._add(column, lambda v: v is value)

    def lt(self, column: str, value: Any):
        return self._add(column, lambda v: v is not None and _comparable(v) < _comparable(value))

    def lte(self, column: str, value: Any):
        return self._add(column, lambda v: v is not None and _comparable(v) <= _comparable(value))

    def gt(self, column: str, value: Any):
        return self._add(column, lambda v: v is not None and _comparable(v) > _comparable(value))

    def gte(self, column: str, value: Any):
        return self._add(column, lambda v: v is not None and _comparable(v) >= _comparable(value))

    # modifiers
    def order(self, column: str, desc: bool = False):
        self.order_by.append((column, desc))
        return self

    def limit(self, n: int):
        self.limit_n = n
        return self

    def offset(self, n: int):
        self.offset_n = n
        return self

    def single(self):
        self.single_mode = "single"
        return self

    def maybe_single(self):
        self.single_mode = "maybe"
        return self

    # execution
    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(f(row) for f in self.filters)

    def _project(self, row: Dict[str, Any]) -> Dict[str, Any]:
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        names = [c.strip() for c in self.columns.split(",") if c.strip()]
        return {n: copy.deepcopy(row.get(n)) for n in names}

    def execute(self):
        with self.db.lock:
            self.db.calls.append((self.table_name, self.action))
            if self.table_name in self.db.failing_tables:
                raise FakeAPIError(f"relation {self.table_name} is unavailable")
            rows = self.db.tables.setdefault(self.table_name, [])
            if self.action == "insert":
                return FakeResponse(self._insert(rows))
            if self.action == "update":
                updated = []
                for row in rows:
                    if self._matches(row):
                        row.update(copy.deepcopy(self.payload))
                        updated.append(copy.deepcopy(row))
                return FakeResponse(updated)
            if self.action == "delete":
                kept, removed = [], []
                for row in rows:
                    (removed if self._matches(row) else kept).append(row)
                self.db.tables[self.table_name] = kept
                return FakeResponse(removed)
            return self._select(rows)

    def _insert(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        payload = self.payload if isinstance(self.payload, list) else [self.payload]
        inserted = []
        for values in payload:
            row = {**TABLE_DEFAULTS.get(self.table_name, {}), **copy.deepcopy(values)}
            row.setdefault("id", str(uuid.uuid4()))
            row.setdefault("created_at", utcnow().isoformat())
            keys = UNIQUE_KEYS.get(self.table_name)
            if keys and any(all(r.get(k) == row.get(k) for k in keys) for r in rows + inserted):
                raise FakeAPIError(f"duplicate key value violates unique constraint on {self.table_name}")
            inserted.append(row)
        rows.extend(inserted)
        return copy.deepcopy(inserted)

    def _select(self, rows: List[Dict[str, Any]]):
        matched = [r for r in rows if self._matches(r)]
        for column, desc in reversed(self.order_by):
            present = [r for r in matched if r.get(column) is not None]
            missing = [r for r in matched if r.get(column) is None]
            present.sort(key=lambda r: _comparable(r[column]), reverse=desc)
            matched = present + missing
        count = len(matched) if self.count_mode else None
        matched = matched[self.offset_n:]
        if self.limit_n is not None:
            matched = matched[:self.limit_n]
        data = [self._project(r) for r in matched]
        if self.single_mode:
            if len(data) > 1:
                raise FakeAPIError("JSON object requested, multiple (or no) rows returned")
            if not data:
                if self.single_mode == "maybe":
                    return None
                raise FakeAPIError("JSON object requested, multiple (or no) rows returned")
            return FakeResponse(data[0], count)
        return FakeResponse(data, count)


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: Dict[str, Any]):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        handler = self.db.rpc_handlers.get(self.name)
        if handler is None:
            raise FakeAPIError(f"function {self.name} does not exist")
        with self.db.lock:
            return FakeResponse(handler(self.db, self.params))


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.lock = threading.RLock()
        self.failing_tables = set()
        self.calls: List[tuple] = []
        self.rpc_handlers: Dict[str, Callable[["FakeSupabase", Dict[str, Any]], Any]] = {
            "get_push_token_by_phone": _push_token_by_phone,
        }

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> FakeRpc:
        return FakeRpc(self, name, params or {})

    def seed(self, table: str, **values) -> Dict[str, Any]:
        """Insert one row and return it."""
        return self.table(table).insert(values).execute().data[0]

    def rows(self, table: str, **filters) -> List[Dict[str, Any]]:
        return [
            copy.deepcopy(r) for r in self.tables.get(table, [])
            if all(r.get(k) == v for k, v in filters.items())
        ]


def _push_token_by_phone(db: FakeSupabase, params: Dict[str, Any]) -> Optional[str]:
    wanted = params.get("p_normalized_phone")
    for profile in db.tables.get("profiles", []):
        digits = "".join(ch for ch in (profile.get("phone") or "") if ch.isdigit())
        if digits and digits == wanted and profile.get("push_token"):
            return profile["push_token"]
    return None
