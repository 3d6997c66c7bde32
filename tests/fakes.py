"""In-memory stand-in for the supabase-py client used by the services."""

import copy
import re
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace


class FakeResponse:
    def __init__(self, data, count=None):
        self.data = data
        self.count = count


class FakeDatabaseError(Exception):
    pass


def _split_top_level(expr):
    """Split on commas that are not inside parentheses."""
    parts, depth, current = [], 0, ""
    for char in expr:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
        else:
            current += char
    if current:
        parts.append(current)
    return parts


def _like(value, pattern):
    regex = "^" + ".*".join(re.escape(p) for p in pattern.split("%")) + "$"
    return value is not None and re.match(regex, str(value), re.IGNORECASE) is not None


def _compare(op, left, right):
    if op == "eq":
        return left == right or (left is not None and str(left) == str(right))
    if op == "neq":
        return not _compare("eq", left, right)
    if op == "ilike":
        return _like(left, right)
    if op == "is":
        return left is None if str(right) == "null" else left == right
    if left is None:
        return False
    if op == "gt":
        return left > right
    if op == "gte":
        return left >= right
    if op == "lt":
        return left < right
    if op == "lte":
        return left <= right
    raise ValueError(f"Unsupported operator {op}")


def _parse_condition(clause):
    clause = clause.strip()
    if clause.startswith("and(") and clause.endswith(")"):
        conditions = [_parse_condition(c) for c in _split_top_level(clause[4:-1])]
        return lambda row: all(c(row) for c in conditions)
    if clause.startswith("or(") and clause.endswith(")"):
        conditions = [_parse_condition(c) for c in _split_top_level(clause[3:-1])]
        return lambda row: any(c(row) for c in conditions)
    column, op, value = clause.split(".", 2)
    return lambda row: _compare(op, row.get(column), value)


class FakeQuery:
    def __init__(self, db, table):
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.payload = None
        self.on_conflict = None
        self.count_mode = None
        self.filters = []
        self.orders = []
        self.limit_count = None
        self.range_bounds = None

    # operations

    def select(self, *columns, count=None):
        self.count_mode = count
        return self

    def insert(self, data):
        self.operation, self.payload = "insert", data
        return self

    def update(self, data):
        self.operation, self.payload = "update", data
        return self

    def upsert(self, data, on_conflict=None, **kwargs):
        self.operation, self.payload, self.on_conflict = "upsert", data, on_conflict
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # filters

    def _filter(self, column, op, value):
        self.filters.append(lambda row: _compare(op, row.get(column), value))
        return self

    def eq(self, column, value):
        return self._filter(column, "eq", value)

    def neq(self, column, value):
        return self._filter(column, "neq", value)

    def gt(self, column, value):
        return self._filter(column, "gt", value)

    def gte(self, column, value):
        return self._filter(column, "gte", value)

    def lt(self, column, value):
        return self._filter(column, "lt", value)

    def lte(self, column, value):
        return self._filter(column, "lte", value)

    def ilike(self, column, pattern):
        return self._filter(column, "ilike", pattern)

    def is_(self, column, value):
        return self._filter(column, "is", value)

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: any(_compare("eq", row.get(column), v) for v in values))
        return self

    def or_(self, expr):
        conditions = [_parse_condition(c) for c in _split_top_level(expr)]
        self.filters.append(lambda row: any(c(row) for c in conditions))
        return self

    # modifiers

    def order(self, column, desc=False, **kwargs):
        self.orders.append((column, desc))
        return self

    def limit(self, count):
        self.limit_count = count
        return self

    def range(self, start, end):
        self.range_bounds = (start, end)
        return self

    # execution

    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def _sorted(self, rows):
        for column, desc in reversed(self.orders):
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: r[column], reverse=desc)
            rows = present + missing
        return rows

    def _new_row(self, data):
        row = copy.deepcopy(data)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", self.db.next_timestamp())
        return row

    def _check_unique(self, rows, row, ignore=None):
        for columns in self.db.unique.get(self.table_name, []):
            for existing in rows:
                if existing is ignore:
                    continue
                if all(row.get(c) is not None and existing.get(c) == row.get(c) for c in columns):
                    raise FakeDatabaseError(f"duplicate key value violates unique constraint on {columns}")

    def execute(self):
        if self.db.fail_tables.get(self.table_name) == self.operation:
            raise FakeDatabaseError(f"{self.operation} on {self.table_name} failed")
        rows = self.db.tables.setdefault(self.table_name, [])

        if self.operation == "select":
            matched = self._sorted([r for r in rows if self._matches(r)])
            count = len(matched) if self.count_mode else None
            if self.range_bounds:
                matched = matched[self.range_bounds[0]:self.range_bounds[1] + 1]
            if self.limit_count is not None:
                matched = matched[:self.limit_count]
            return FakeResponse(copy.deepcopy(matched), count)

        if self.operation == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            inserted = []
            for item in items:
                row = self._new_row(item)
                self._check_unique(rows, row)
                rows.append(row)
                inserted.append(copy.deepcopy(row))
            return FakeResponse(inserted)

        if self.operation == "upsert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
            result = []
            for item in items:
                existing = next(
                    (r for r in rows if all(k in item and r.get(k) == item[k] for k in keys)), None
                )
                if existing is not None:
                    existing.update(copy.deepcopy(item))
                    result.append(copy.deepcopy(existing))
                else:
                    row = self._new_row(item)
                    rows.append(row)
                    result.append(copy.deepcopy(row))
            return FakeResponse(result)

        if self.operation == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        if self.operation == "delete":
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResponse(copy.deepcopy(removed))

        raise ValueError(self.operation)


class FakeRpc:
    def __init__(self, db, name, params):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.rpc_calls.append((self.name, self.params))
        handler = self.db.rpc_handlers.get(self.name)
        return FakeResponse(handler(self.db, self.params) if handler else None)


class FakeBucket:
    def __init__(self, storage, name):
        self.storage = storage
        self.name = name
        self.files = storage.files.setdefault(name, {})

    def upload(self, path, file, file_options=None):
        if path in self.files and (file_options or {}).get("upsert") != "true":
            raise FakeDatabaseError("The resource already exists")
        self.files[path] = {"content": file, "options": file_options or {}}
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://storage.test/storage/v1/object/public/{self.name}/{path}"

    def remove(self, paths):
        removed = [p for p in paths if p in self.files]
        for path in removed:
            del self.files[path]
        return [{"name": p} for p in removed]

    def list(self, path=None, options=None):
        prefix = f"{path}/" if path else ""
        return [{"name": p[len(prefix):]} for p in self.files if p.startswith(prefix)]


class FakeStorage:
    def __init__(self):
        self.files = {}

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeAuth:
    def __init__(self):
        self.users_by_token = {}

    def get_user(self, jwt=None):
        user = self.users_by_token.get(jwt)
        if user is None:
            raise FakeDatabaseError("invalid JWT")
        return SimpleNamespace(user=user)


class FakeSupabase:
    """Tables are lists of dict rows; no row-level security."""

    def __init__(self):
        self.tables = {}
        self.unique = {}
        self.fail_tables = {}
        self.rpc_calls = []
        self.rpc_handlers = {}
        self.storage = FakeStorage()
        self.auth = FakeAuth()
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def next_timestamp(self):
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def table(self, name):
        return FakeQuery(self, name)

    def rpc(self, name, params=None):
        return FakeRpc(self, name, params or {})

    def rows(self, name):
        return self.tables.setdefault(name, [])

    def seed(self, name, *rows):
        inserted = [self.table(name).insert(row).execute().data[0] for row in rows]
        return inserted[0] if len(inserted) == 1 else inserted

    def add_user(self, token, user_id, email=None):
        self.auth.users_by_token[token] = SimpleNamespace(
            id=user_id,
            email=email or f"{user_id}@example.com",
            user_metadata={},
            created_at="2026-01-01T00:00:00+00:00",
        )
