"""
In-memory stand-in for the Supabase async client.

Implements the slice of the PostgREST query builder the repositories use:
select (with count), insert, update, delete, the eq/neq/gt/gte/lt/lte/ilike/in_
filters, raw `or` expressions, order, range, limit, maybe_single and rpc.
Every executed request is logged so tests can assert which calls were (or
were not) made, and failures can be injected per table and action.

Embedded resources in select strings are not resolved; seed rows with the
embedded shape a test needs.
"""
import copy
import itertools
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError


class FakeResponse:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _equal(left: Any, right: Any) -> bool:
    if left == right:
        return True
    if left is None or right is None or isinstance(left, bool) or isinstance(right, bool):
        return False
    return str(left) == str(right)


def _compare(left: Any, right: Any) -> Optional[int]:
    """-1/0/1 comparing numbers numerically and anything else as text."""
    if left is None or right is None:
        return None
    a, b = _number(left), _number(right)
    if a is None or b is None:
        a, b = str(left), str(right)
    return (a > b) - (a < b)


def _like(pattern: str) -> re.Pattern:
    parts = [".*" if ch == "%" else "." if ch == "_" else re.escape(ch) for ch in pattern]
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def split_top_level(expression: str) -> List[str]:
    """Split a PostgREST `or` expression on commas outside parentheses."""
    parts, depth, current = [], 0, []
    for ch in expression:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    if current:
        parts.append("".join(current))
    return [part for part in parts if part]


def _predicate(op: str, column: str, value: Any) -> Callable[[Dict[str, Any]], bool]:
    if op == "eq":
        return lambda row: _equal(row.get(column), value)
    if op == "neq":
        return lambda row: not _equal(row.get(column), value)
    if op in ("gt", "gte", "lt", "lte"):
        accept = {"gt": (1,), "gte": (0, 1), "lt": (-1,), "lte": (-1, 0)}[op]
        return lambda row: _compare(row.get(column), value) in accept
    if op == "ilike":
        regex = _like(str(value))
        return lambda row: row.get(column) is not None and regex.fullmatch(str(row.get(column))) is not None
    if op == "in":
        wanted = {str(v) for v in value}
        return lambda row: row.get(column) is not None and str(row.get(column)) in wanted
    raise ValueError(f"Unsupported operator in fake: {op}")


def parse_clause(clause: str) -> Callable[[Dict[str, Any]], bool]:
    """Turn `column.op.value` (value may be `(a,b)` for `in`) into a predicate."""
    column, op, value = clause.split(".", 2)
    if op == "in":
        value = [v for v in value.strip("()").split(",") if v]
    return _predicate(op, column, value)


class FakeQuery:
    """One request against one table of a FakeSupabase."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.values: Any = None
        self.columns = "*"
        self.count_mode: Optional[str] = None
        self.predicates: List[Callable[[Dict[str, Any]], bool]] = []
        self.filters: List[Tuple[str, str, Any]] = []
        self.ordering: List[Tuple[str, bool]] = []
        self.window: Optional[Tuple[int, int]] = None
        self.max_rows: Optional[int] = None
        self.single = False

    # ─── Actions ──────────────────────────────────────────────────────────────

    def select(self, columns: str = "*", count: Optional[str] = None) -> "FakeQuery":
        self.columns = columns
        self.count_mode = count
        return self

    def insert(self, values: Any) -> "FakeQuery":
        self.action, self.values = "insert", values
        return self

    def update(self, values: Dict[str, Any]) -> "FakeQuery":
        self.action, self.values = "update", values
        return self

    def delete(self) -> "FakeQuery":
        self.action = "delete"
        return self

    # ─── Filters ──────────────────────────────────────────────────────────────

    def _filter(self, op: str, column: str, value: Any) -> "FakeQuery":
        self.filters.append((op, column, value))
        self.predicates.append(_predicate(op, column, value))
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        return self._filter("eq", column, value)

    def neq(self, column: str, value: Any) -> "FakeQuery":
        return self._filter("neq", column, value)

    def gt(self, column: str, value: Any) -> "FakeQuery":
        return self._filter("gt", column, value)

    def gte(self, column: str, value: Any) -> "FakeQuery":
        return self._filter("gte", column, value)

    def lt(self, column: str, value: Any) -> "FakeQuery":
        return self._filter("lt", column, value)

    def lte(self, column: str, value: Any) -> "FakeQuery":
        return self._filter("lte", column, value)

    def ilike(self, column: str, pattern: str) -> "FakeQuery":
        return self._filter("ilike", column, pattern)

    def in_(self, column: str, values: List[Any]) -> "FakeQuery":
        return self._filter("in", column, list(values))

    def or_(self, expression: str) -> "FakeQuery":
        clauses = [parse_clause(clause) for clause in split_top_level(expression)]
        self.filters.append(("or", expression, None))
        self.predicates.append(lambda row: any(match(row) for match in clauses))
        return self

    # ─── Shaping ──────────────────────────────────────────────────────────────

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self.ordering.append((column, desc))
        return self

    def range(self, start: int, end: int) -> "FakeQuery":
        self.window = (start, end)
        return self

    def limit(self, size: int) -> "FakeQuery":
        self.max_rows = size
        return self

    def maybe_single(self) -> "FakeQuery":
        self.single = True
        return self

    # ─── Execution ────────────────────────────────────────────────────────────

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(match(row) for match in self.predicates)

    def _sorted(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        for column, desc in reversed(self.ordering):
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: (_number(r[column]) if _number(r[column]) is not None else str(r[column])), reverse=desc)
            rows = present + missing
        return rows

    async def execute(self):
        self.db.calls.append((self.table, self.action))
        error = self.db.failures.get((self.table, self.action))
        if error is not None:
            raise APIError({"message": error, "code": "XX000", "details": None, "hint": None})

        rows = self.db.tables.setdefault(self.table, [])

        if self.action == "insert":
            new_rows = self.values if isinstance(self.values, list) else [self.values]
            stored = [self.db.prepare_row(self.table, dict(row)) for row in new_rows]
            rows.extend(stored)
            self.db.writes.append((self.table, "insert", copy.deepcopy(self.values)))
            return FakeResponse(copy.deepcopy(stored))

        if self.action == "update":
            matched = [row for row in rows if self._matches(row)]
            for row in matched:
                row.update(copy.deepcopy(self.values))
            self.db.writes.append((self.table, "update", copy.deepcopy(self.values)))
            return FakeResponse(copy.deepcopy(matched))

        if self.action == "delete":
            matched = [row for row in rows if self._matches(row)]
            self.db.tables[self.table] = [row for row in rows if not self._matches(row)]
            self.db.writes.append((self.table, "delete", len(matched)))
            return FakeResponse(copy.deepcopy(matched))

        matched = self._sorted([row for row in rows if self._matches(row)])
        total = len(matched)
        if self.window is not None:
            start, end = self.window
            matched = matched[start:end + 1]
        if self.max_rows is not None:
            matched = matched[:self.max_rows]
        matched = copy.deepcopy(matched)

        if self.single:
            if not matched:
                return None
            return FakeResponse(matched[0])
        return FakeResponse(matched, count=total if self.count_mode else None)


class FakeRpc:
    def __init__(self, db: "FakeSupabase", function: str, params: Dict[str, Any]):
        self.db = db
        self.function = function
        self.params = params

    async def execute(self):
        self.db.calls.append(("rpc", self.function))
        error = self.db.failures.get(("rpc", self.function))
        if error is not None:
            raise APIError({"message": error, "code": "XX000", "details": None, "hint": None})
        self.db.rpc_calls.append((self.function, self.params))
        return FakeResponse(None)


class FakeSupabase:
    """
    Table store plus call log.

    Usage:
        db = FakeSupabase({"categories": [{"id": "c1", "name": "Shoes"}]})
        db.fail("products", "update", "permission denied")
        app.dependency_overrides[get_client] = lambda: db
    """

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = copy.deepcopy(tables or {})
        self.calls: List[Tuple[str, str]] = []
        self.writes: List[Tuple[str, str, Any]] = []
        self.rpc_calls: List[Tuple[str, Dict[str, Any]]] = []
        self.failures: Dict[Tuple[str, str], str] = {}
        self._ids = itertools.count(1)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> FakeRpc:
        return FakeRpc(self, function, params or {})

    def fail(self, table: str, action: str, message: str) -> None:
        """Make every `action` on `table` (or ("rpc", function)) raise APIError."""
        self.failures[(table, action)] = message

    def prepare_row(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        row.setdefault("id", f"{table}-{next(self._ids)}")
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        return row

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.get(table, [])

    def writes_to(self, table: str) -> List[Tuple[str, str, Any]]:
        return [write for write in self.writes if write[0] == table]

    def calls_to(self, table: str) -> List[Tuple[str, str]]:
        return [call for call in self.calls if call[0] == table]
