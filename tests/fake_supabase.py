"""테스트용 인메모리 Supabase(PostgREST) 클라이언트

실제 AsyncClient 가 노출하는 쿼리 빌더 체인 중 리포지토리가 쓰는 부분만 흉내냅니다.
- select("*, schedules!inner (id, title)", count="exact", head=True)
- insert / update / delete, eq / neq / gt / gte / lt / lte / is_ / in_ / not_
- order / limit / range / single
- 중첩 select (inner / optional), "answers (count)" 집계
- users.email UNIQUE, *_id 외래 키 검사
- fail_on() 으로 특정 테이블/연산 실패 주입
"""
import copy
import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError

TABLE_COLUMNS: Dict[str, List[str]] = {
    "users": ["id", "name", "email", "created_at"],
    "schedules": ["id", "user_id", "title", "description", "created_at"],
    "activities": ["id", "schedule_id", "title", "description", "start_date", "end_date", "status"],
    "goals": ["id", "user_id", "title", "description", "expected_value", "due_date", "achieved"],
    "progress": ["id", "user_id", "date", "hours_studied"],
    "quizzes": ["id", "user_id", "title", "created_at"],
    "questions": [
        "id", "quiz_id", "statement", "option_a", "option_b", "option_c", "option_d", "correct_option",
    ],
    "answers": ["id", "question_id", "user_id", "chosen_option", "is_correct", "answered_at"],
    "texts": [
        "id", "user_id", "title", "content", "kind", "original_prompt", "saved", "created_at", "updated_at",
    ],
    "conversations": ["id", "text_id", "prompt", "response", "created_at"],
}

# 테이블 -> 그 테이블을 가리키는 외래 키 컬럼 이름
FOREIGN_KEYS: Dict[str, str] = {
    "users": "user_id",
    "schedules": "schedule_id",
    "quizzes": "quiz_id",
    "questions": "question_id",
    "texts": "text_id",
}

UNIQUE_COLUMNS: Dict[str, List[str]] = {"users": ["email"]}

DEFAULTS: Dict[str, Dict[str, Any]] = {
    "activities": {"status": "pending"},
    "goals": {"achieved": False},
    "texts": {"kind": "text", "saved": False},
}

# 삽입 시 시계 값으로 채우는 컬럼
TIMESTAMP_COLUMNS = {"created_at", "answered_at", "updated_at"}

EMBED_PATTERN = re.compile(r"^(\w+)(!inner)?\s*\((.*)\)$", re.DOTALL)
NUMBER_PATTERN = re.compile(r"^-?\d+(\.\d+)?$")


def _api_error(code: str, message: str, details: Optional[str] = None) -> APIError:
    return APIError({"code": code, "message": message, "details": details, "hint": None})


def _norm(value: Any) -> Any:
    """PostgREST 는 필터 값을 문자열로 보내므로 비교 전에 정규화"""
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return float(value)
    if hasattr(value, "value"):
        return _norm(value.value)
    if isinstance(value, str):
        if NUMBER_PATTERN.match(value):
            return float(value)
        return value
    return value


def _compare(left: Any, right: Any, op: str) -> bool:
    a, b = _norm(left), _norm(right)
    if op == "eq":
        return a == b
    if op == "neq":
        return a != b
    if a is None or b is None:
        return False
    if type(a) is not type(b):
        a, b = str(a), str(b)
    if op == "gt":
        return a > b
    if op == "gte":
        return a >= b
    if op == "lt":
        return a < b
    if op == "lte":
        return a <= b
    raise ValueError(f"unsupported operator {op}")


def _split_top_level(text: str) -> List[str]:
    parts, depth, current = [], 0, []
    for ch in text:
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        if ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return [p for p in parts if p]


def parse_select(columns: str) -> List[Tuple[str, Any]]:
    """select 문자열 -> [("*", None) | ("col", None) | ("embed", (name, inner, sub))]"""
    items = []
    for part in _split_top_level(columns):
        match = EMBED_PATTERN.match(part)
        if match:
            name, inner, sub = match.groups()
            items.append(("embed", (name, bool(inner), parse_select(sub))))
        else:
            items.append((part, None))
    return items


class FakeResponse:
    def __init__(self, data: Any, count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    """테이블 하나에 대한 쿼리 빌더 (체인 메서드는 self 반환)"""

    def __init__(self, client: "FakeSupabase", table: str):
        self.client = client
        self.table = table
        self.operation = "select"
        self.columns = "*"
        self.count_mode: Optional[str] = None
        self.head = False
        self.payload: Any = None
        self.filters: List[Tuple[str, str, Any, bool]] = []
        self.orders: List[Tuple[str, bool]] = []
        self.limit_count: Optional[int] = None
        self.offset = 0
        self.is_single = False
        self._negate_next = False

    # ============================================
    # 연산
    # ============================================

    def select(self, *columns: str, count: Optional[str] = None, head: bool = False):
        self.operation = "select"
        self.columns = ", ".join(columns) if columns else "*"
        self.count_mode = count
        self.head = head
        return self

    def insert(self, payload):
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self):
        self.operation = "delete"
        return self

    # ============================================
    # 필터
    # ============================================

    def _add(self, column: str, op: str, value: Any):
        self.filters.append((column, op, value, self._negate_next))
        self._negate_next = False
        return self

    @property
    def not_(self):
        self._negate_next = True
        return self

    def eq(self, column: str, value: Any):
        return self._add(column, "eq", value)

    def neq(self, column: str, value: Any):
        return self._add(column, "neq", value)

    def gt(self, column: str, value: Any):
        return self._add(column, "gt", value)

    def gte(self, column: str, value: Any):
        return self._add(column, "gte", value)

    def lt(self, column: str, value: Any):
        return self._add(column, "lt", value)

    def lte(self, column: str, value: Any):
        return self._add(column, "lte", value)

    def is_(self, column: str, value: Any):
        return self._add(column, "is", value)

    def in_(self, column: str, values):
        return self._add(column, "in", list(values))

    def order(self, column: str, desc: bool = False):
        self.orders.append((column, desc))
        return self

    def limit(self, count: int):
        self.limit_count = count
        return self

    def range(self, start: int, end: int):
        self.offset = start
        self.limit_count = end - start + 1
        return self

    def single(self):
        self.is_single = True
        return self

    # ============================================
    # 실행
    # ============================================

    async def execute(self) -> FakeResponse:
        self.client.calls.append((self.table, self.operation))
        self.client.check_failure(self.table, self.operation)
        if self.table not in TABLE_COLUMNS:
            raise _api_error("42P01", f'relation "public.{self.table}" does not exist')

        if self.operation == "insert":
            return self._execute_insert()
        if self.operation == "update":
            return self._execute_update()
        if self.operation == "delete":
            return self._execute_delete()
        return self._execute_select()

    def _root_filters(self):
        return [f for f in self.filters if "." not in f[0]]

    def _matching_rows(self) -> List[Dict[str, Any]]:
        rows = self.client.tables[self.table]
        return [row for row in rows if self.client.row_matches(self.table, row, self._root_filters())]

    def _execute_insert(self) -> FakeResponse:
        items = self.payload if isinstance(self.payload, list) else [self.payload]
        prepared = [self.client.prepare_insert(self.table, item) for item in items]
        self.client.tables[self.table].extend(prepared)
        return FakeResponse(copy.deepcopy(prepared))

    def _execute_update(self) -> FakeResponse:
        self.client.check_columns(self.table, self.payload.keys())
        rows = self._matching_rows()
        for row in rows:
            row.update(copy.deepcopy(self.payload))
        return FakeResponse(copy.deepcopy(rows))

    def _execute_delete(self) -> FakeResponse:
        rows = self._matching_rows()
        ids = {id(row) for row in rows}
        self.client.tables[self.table] = [r for r in self.client.tables[self.table] if id(r) not in ids]
        return FakeResponse(copy.deepcopy(rows))

    def _execute_select(self) -> FakeResponse:
        items = parse_select(self.columns)
        rows = []
        for row in self._matching_rows():
            shaped = self.client.shape_row(self.table, row, items, self.filters, prefix="")
            if shaped is not None:
                rows.append(shaped)

        for column, desc in reversed(self.orders):
            present = [r for r in rows if r.get(column) is not None]
            missing = [r for r in rows if r.get(column) is None]
            present.sort(key=lambda r: _norm(r[column]), reverse=desc)
            rows = missing + present if desc else present + missing

        total = len(rows)
        rows = rows[self.offset:]
        if self.limit_count is not None:
            rows = rows[:self.limit_count]

        count = total if self.count_mode == "exact" else None
        if self.head:
            return FakeResponse([], count)

        if self.is_single:
            if len(rows) != 1:
                raise _api_error(
                    "PGRST116",
                    "JSON object requested, multiple (or no) rows returned",
                    f"The result contains {len(rows)} rows",
                )
            return FakeResponse(rows[0], count)
        return FakeResponse(rows, count)


class FakeSupabase:
    """AsyncClient 대용 (table() 만 제공)"""

    def __init__(self, clock_start: Optional[datetime] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {name: [] for name in TABLE_COLUMNS}
        self.calls: List[Tuple[str, str]] = []
        self._failures: List[Dict[str, Any]] = []
        self._clock = clock_start or datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    # ============================================
    # 테스트 헬퍼
    # ============================================

    def now(self) -> str:
        """삽입할 때마다 1초씩 흐르는 시계 (정렬 테스트용)"""
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def set_clock(self, moment: datetime) -> None:
        self._clock = moment

    def fail_on(self, table: str, operation: str, after: int = 0, times: int = 1,
                code: Optional[str] = "XX000", message: str = "injected failure",
                error: Optional[Exception] = None) -> None:
        """table.operation 호출 중 after 번째 이후 times 번 실패시킴

        error 를 주면 APIError 대신 그 예외를 그대로 올립니다.
        """
        self._failures.append({
            "table": table,
            "operation": operation,
            "skip": after,
            "times": times,
            "code": code,
            "message": message,
            "error": error,
        })

    def check_failure(self, table: str, operation: str) -> None:
        for failure in self._failures:
            if failure["table"] != table or failure["operation"] != operation or failure["times"] <= 0:
                continue
            if failure["skip"] > 0:
                failure["skip"] -= 1
                continue
            failure["times"] -= 1
            if failure["error"] is not None:
                raise failure["error"]
            raise _api_error(failure["code"], failure["message"])

    def count_calls(self, table: str, operation: Optional[str] = None) -> int:
        return sum(1 for t, op in self.calls if t == table and (operation is None or op == operation))

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.tables[table])

    def seed(self, table: str, **values) -> Dict[str, Any]:
        """제약 검사 없이 행을 직접 넣음 (created_at 등을 고정할 때)"""
        row = {column: None for column in TABLE_COLUMNS[table]}
        row.update(DEFAULTS.get(table, {}))
        row["id"] = values.pop("id", None) or str(uuid.uuid4())
        row.update(values)
        self.tables[table].append(row)
        return copy.deepcopy(row)

    # ============================================
    # 내부 동작
    # ============================================

    def check_columns(self, table: str, columns) -> None:
        unknown = set(columns) - set(TABLE_COLUMNS[table])
        if unknown:
            raise _api_error("42703", f"column {sorted(unknown)[0]} of relation {table} does not exist")

    def prepare_insert(self, table: str, item: Dict[str, Any]) -> Dict[str, Any]:
        self.check_columns(table, item.keys())

        row = {column: None for column in TABLE_COLUMNS[table]}
        row.update(DEFAULTS.get(table, {}))
        for column in TIMESTAMP_COLUMNS & set(TABLE_COLUMNS[table]):
            row[column] = self.now()
        row["id"] = str(uuid.uuid4())
        row.update({k: v for k, v in copy.deepcopy(item).items() if v is not None or k != "id"})

        for parent, fk in FOREIGN_KEYS.items():
            if fk in row and row[fk] is not None:
                if not any(r["id"] == row[fk] for r in self.tables[parent]):
                    raise _api_error(
                        "23503",
                        f'insert or update on table "{table}" violates foreign key constraint',
                        f'Key ({fk})=({row[fk]}) is not present in table "{parent}".',
                    )

        for column in UNIQUE_COLUMNS.get(table, []):
            if any(r.get(column) == row.get(column) for r in self.tables[table]):
                raise _api_error(
                    "23505",
                    f'duplicate key value violates unique constraint "{table}_{column}_key"',
                    f"Key ({column})=({row[column]}) already exists.",
                )
        return row

    def row_matches(self, table: str, row: Dict[str, Any], filters) -> bool:
        for column, op, value, negate in filters:
            if column not in TABLE_COLUMNS[table]:
                raise _api_error("42703", f"column {table}.{column} does not exist")
            current = row.get(column)
            if op == "is":
                result = current is None if value in (None, "null") else _norm(current) == _norm(value)
            elif op == "in":
                result = _norm(current) in [_norm(v) for v in value]
            else:
                result = _compare(current, value, op)
            if result == negate:
                return False
        return True

    def _relation(self, parent: str, child: str) -> str:
        if FOREIGN_KEYS.get(child) in TABLE_COLUMNS[parent]:
            return "many_to_one"
        if FOREIGN_KEYS.get(parent) in TABLE_COLUMNS[child]:
            return "one_to_many"
        raise _api_error("PGRST200", f"Could not find a relationship between '{parent}' and '{child}'")

    def shape_row(self, table: str, row: Dict[str, Any], items, filters, prefix: str) -> Optional[Dict[str, Any]]:
        """select 항목대로 행을 투영하고 중첩 리소스를 붙임

        inner 조인 리소스가 비면 None (상위 행 제외).
        prefix 는 "schedules." 처럼 중첩 필터를 고르기 위한 경로입니다.
        """
        shaped: Dict[str, Any] = {}
        for name, _ in items:
            if name == "*":
                shaped.update(copy.deepcopy(row))
            elif name == "count":
                continue
            elif name != "embed":
                shaped[name] = copy.deepcopy(row.get(name))

        for name, embed in items:
            if name != "embed":
                continue
            child, inner, sub_items = embed
            path = f"{prefix}{child}."
            child_filters = [
                (column[len(path):], op, value, negate)
                for column, op, value, negate in filters
                if column.startswith(path) and "." not in column[len(path):]
            ]
            relation = self._relation(table, child)

            if relation == "many_to_one":
                candidates = [r for r in self.tables[child] if r["id"] == row.get(FOREIGN_KEYS[child])]
            else:
                candidates = [r for r in self.tables[child] if r.get(FOREIGN_KEYS[table]) == row["id"]]
            candidates = [r for r in candidates if self.row_matches(child, r, child_filters)]

            if any(n == "count" for n, _ in sub_items):
                shaped[child] = [{"count": len(candidates)}]
                if inner and not candidates:
                    return None
                continue

            nested = []
            for candidate in candidates:
                value = self.shape_row(child, candidate, sub_items, filters, path)
                if value is not None:
                    nested.append(value)

            if inner and not nested:
                return None
            if relation == "many_to_one":
                shaped[child] = nested[0] if nested else None
            else:
                shaped[child] = nested
        return shaped
