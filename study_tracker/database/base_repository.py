"""리포지토리 계약 + Supabase 범용 구현

모든 엔티티 리포지토리는 SupabaseRepository 를 상속하고 테이블 하나에 묶입니다.
- 단건 조회(find_by_id)는 single() 요청의 "0건" 신호(PGRST116)를 None 으로 바꿉니다.
- 단건 수정(update_by_id)은 갱신된 행이 없으면 None 입니다.
- 일괄 연산(find_where, update_where, delete_where)은 빈 리스트/0 도 정상 결과입니다.
- 그 외 실패는 모두 연산 이름 + 테이블 이름을 담은 BackendError 로 올립니다.
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Generic, Iterable, List, Mapping, Optional, Type, TypeVar, Union
import logging

from postgrest.exceptions import APIError
from pydantic import BaseModel
from supabase import AsyncClient

from .errors import BackendError, InvalidFilterError, NO_ROWS_CODE

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
CreateT = TypeVar("CreateT", bound=BaseModel)
UpdateT = TypeVar("UpdateT", bound=BaseModel)
RowT = TypeVar("RowT", bound=BaseModel)

# {컬럼: 값} - None 값은 조건에서 제외
Filters = Mapping[str, Any]


class RepositoryContract(ABC, Generic[ModelT, CreateT, UpdateT]):
    """모든 엔티티 리포지토리가 지원해야 하는 연산"""

    @abstractmethod
    async def create(self, data: Union[CreateT, Mapping[str, Any]]) -> ModelT:
        """행 생성 (FK/UNIQUE 위반 시 BackendError)"""

    @abstractmethod
    async def find_by_id(self, record_id: str) -> Optional[ModelT]:
        """id 로 조회, 0건이면 None"""

    @abstractmethod
    async def find_all(self) -> List[ModelT]:
        ...

    @abstractmethod
    async def find_where(self, filters: Filters) -> List[ModelT]:
        """값이 있는 필드들의 등치 조건 AND 조회"""

    @abstractmethod
    async def find_one_where(self, filters: Filters) -> Optional[ModelT]:
        ...

    @abstractmethod
    async def update_by_id(self, record_id: str, data: Union[UpdateT, Mapping[str, Any]]) -> Optional[ModelT]:
        """id 로 수정, 일치하는 행이 없으면 None"""

    @abstractmethod
    async def update_where(self, filters: Filters, data: Union[UpdateT, Mapping[str, Any]]) -> List[ModelT]:
        ...

    @abstractmethod
    async def delete_by_id(self, record_id: str) -> bool:
        """멱등 삭제 - 행이 없어도 True"""

    @abstractmethod
    async def delete_where(self, filters: Filters) -> int:
        """실제로 삭제된 행 수"""

    @abstractmethod
    async def count(self, filters: Optional[Filters] = None) -> int:
        ...

    @abstractmethod
    async def exists(self, filters: Filters) -> bool:
        ...


class SupabaseRepository(RepositoryContract[ModelT, CreateT, UpdateT]):
    """Supabase(PostgREST) 테이블 하나에 묶인 범용 리포지토리"""

    def __init__(
        self,
        client: AsyncClient,
        table_name: str,
        model: Type[ModelT],
        create_model: Type[CreateT],
        update_model: Type[UpdateT],
    ):
        self.client = client
        self.table_name = table_name
        self.model = model
        self.create_model = create_model
        self.update_model = update_model

    # ============================================
    # 계약 연산
    # ============================================

    async def create(self, data: Union[CreateT, Mapping[str, Any]]) -> ModelT:
        payload = self._dump_create(data)
        response = await self._execute("create", self._table().insert(payload))
        if not response.data:
            raise BackendError("create", self.table_name, "insert 결과 행이 반환되지 않았습니다")
        return self._to_model(response.data[0])

    async def create_many(self, items: Iterable[Union[CreateT, Mapping[str, Any]]]) -> List[ModelT]:
        """여러 행을 한 번의 요청으로 생성 (PostgREST 요청 단위로 원자적)"""
        payload = [self._dump_create(item) for item in items]
        if not payload:
            return []
        response = await self._execute("create_many", self._table().insert(payload))
        return self._to_models(response.data)

    async def find_by_id(self, record_id: str) -> Optional[ModelT]:
        query = self._table().select("*").eq("id", record_id)
        return await self._fetch_one("find_by_id", query)

    async def find_all(self) -> List[ModelT]:
        return await self._fetch_many("find_all", self._table().select("*"))

    async def find_where(self, filters: Filters) -> List[ModelT]:
        query = self._apply_filters(self._table().select("*"), filters)
        return await self._fetch_many("find_where", query)

    async def find_one_where(self, filters: Filters) -> Optional[ModelT]:
        query = self._apply_filters(self._table().select("*"), filters).limit(1)
        rows = await self._fetch_many("find_one_where", query)
        return rows[0] if rows else None

    async def update_by_id(self, record_id: str, data: Union[UpdateT, Mapping[str, Any]]) -> Optional[ModelT]:
        payload = self._dump_update(data)
        response = await self._execute("update_by_id", self._table().update(payload).eq("id", record_id))
        return self._to_model(response.data[0]) if response.data else None

    async def update_where(self, filters: Filters, data: Union[UpdateT, Mapping[str, Any]]) -> List[ModelT]:
        payload = self._dump_update(data)
        query = self._apply_filters(self._table().update(payload), filters, require=True)
        response = await self._execute("update_where", query)
        return self._to_models(response.data)

    async def delete_by_id(self, record_id: str) -> bool:
        await self._execute("delete_by_id", self._table().delete().eq("id", record_id))
        return True

    async def delete_where(self, filters: Filters) -> int:
        query = self._apply_filters(self._table().delete(), filters, require=True)
        response = await self._execute("delete_where", query)
        return len(response.data or [])

    async def delete_by_ids(self, record_ids: Iterable[str]) -> int:
        """id 목록으로 한 번에 삭제, 삭제된 행 수 반환"""
        ids = list(record_ids)
        if not ids:
            return 0
        response = await self._execute("delete_by_ids", self._table().delete().in_("id", ids))
        return len(response.data or [])

    async def count(self, filters: Optional[Filters] = None) -> int:
        query = self._table().select("*", count="exact", head=True)
        if filters:
            query = self._apply_filters(query, filters)
        return await self._count("count", query)

    async def exists(self, filters: Filters) -> bool:
        return await self.count(filters) > 0

    # ============================================
    # 하위 클래스용 헬퍼
    # ============================================

    def _table(self, table_name: Optional[str] = None):
        return self.client.table(table_name or self.table_name)

    def _check_columns(self, columns: Iterable[str]) -> None:
        unknown = set(columns) - set(self.model.model_fields)
        if unknown:
            raise InvalidFilterError(self.table_name, f"알 수 없는 컬럼 {sorted(unknown)}")

    @staticmethod
    def _filter_value(value: Any) -> Any:
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, bool):
            return "true" if value else "false"
        return value

    def _apply_filters(self, query, filters: Optional[Filters], require: bool = False):
        """{컬럼: 값} 을 eq 조건으로 누적 (None 값은 건너뜀)

        Args:
            query: PostgREST 필터 빌더
            filters: 컬럼-값 매핑 (엔티티에 선언된 컬럼만 허용)
            require: True면 실제 조건이 하나도 없을 때 InvalidFilterError
        """
        filters = filters or {}
        self._check_columns(filters.keys())

        applied = 0
        for column, value in filters.items():
            if value is None:
                continue
            query = query.eq(column, self._filter_value(value))
            applied += 1

        if require and applied == 0:
            raise InvalidFilterError(self.table_name, "일괄 수정/삭제에는 최소 하나의 조건이 필요합니다")
        return query

    def _dump_create(self, data: Union[BaseModel, Mapping[str, Any]]) -> Dict[str, Any]:
        if not isinstance(data, BaseModel):
            data = self.create_model.model_validate(data)
        return data.model_dump(mode="json", exclude_none=True)

    def _dump_update(self, data: Union[BaseModel, Mapping[str, Any]]) -> Dict[str, Any]:
        # 명시적으로 설정한 필드만 전송 (None 으로 지우는 것도 허용)
        if not isinstance(data, BaseModel):
            data = self.update_model.model_validate(data)
        return data.model_dump(mode="json", exclude_unset=True)

    def _to_model(self, row: Mapping[str, Any], model: Optional[Type[RowT]] = None) -> Union[ModelT, RowT]:
        """원격 행(dict) -> 타입 모델 변환 (변환 지점은 여기 하나)"""
        return (model or self.model).model_validate(row)

    def _to_models(self, rows: Optional[List[Mapping[str, Any]]], model: Optional[Type[RowT]] = None) -> List[Any]:
        return [self._to_model(row, model) for row in rows or []]

    async def _execute(self, operation: str, query, table_name: Optional[str] = None, allow_missing: bool = False):
        """쿼리 1회 왕복 + 오류 정규화

        Returns:
            APIResponse, allow_missing=True 이고 single() 결과가 0건이면 None
        """
        table_name = table_name or self.table_name
        try:
            response = await query.execute()
        except APIError as e:
            if allow_missing and e.code == NO_ROWS_CODE:
                logger.debug(f"[BaseRepo] {table_name}.{operation} - 데이터 없음 ({NO_ROWS_CODE})")
                return None
            logger.error(f"[BaseRepo] ❌ {table_name}.{operation} 실패: code={e.code}, message={e.message}")
            raise BackendError(operation, table_name, e.message or str(e), code=e.code, details=e.details) from e
        except Exception as e:
            logger.error(f"[BaseRepo] ❌ {table_name}.{operation} 실패: {e}")
            raise BackendError(operation, table_name, str(e)) from e

        logger.debug(f"[BaseRepo] {table_name}.{operation} 완료")
        return response

    async def _fetch_many(self, operation: str, query, model: Optional[Type[RowT]] = None,
                          table_name: Optional[str] = None) -> List[Any]:
        response = await self._execute(operation, query, table_name)
        return self._to_models(response.data, model)

    async def _fetch_one(self, operation: str, query, model: Optional[Type[RowT]] = None,
                         table_name: Optional[str] = None) -> Optional[Any]:
        """single() 단건 조회, 0건이면 None"""
        response = await self._execute(operation, query.single(), table_name, allow_missing=True)
        if response is None or not response.data:
            return None
        return self._to_model(response.data, model)

    async def _count(self, operation: str, query, table_name: Optional[str] = None) -> int:
        response = await self._execute(operation, query, table_name)
        return response.count or 0

    async def _update_one_where(self, operation: str, filters: Filters,
                                data: Union[UpdateT, Mapping[str, Any]]) -> Optional[ModelT]:
        """자연 키로 수정 후 단건 기대값으로 축약 (없으면 None)"""
        payload = self._dump_update(data)
        query = self._apply_filters(self._table().update(payload), filters, require=True)
        response = await self._execute(operation, query)
        if not response.data:
            return None
        if len(response.data) > 1:
            logger.warning(f"[BaseRepo] {self.table_name}.{operation} - {len(response.data)}건 수정됨, 첫 행만 반환")
        return self._to_model(response.data[0])

    async def _delete_one_where(self, operation: str, filters: Filters) -> bool:
        """자연 키로 삭제 (멱등, 항상 True)"""
        query = self._apply_filters(self._table().delete(), filters, require=True)
        await self._execute(operation, query)
        return True
