"""벤더 전략 (Capability Set)

엔진은 하나이고, 벤더 간 차이는 아래 조합 데이터로만 표현됩니다.
- resolver / cross_ref_resolver : 카테고리 코드 결정
- encoder                       : 필터 → 쿼리 문법
- requests                      : 요청 조립 (GET / form POST / JSON POST)
- grid_parser / cross_ref_sections : 응답 파싱
- warmup                        : (선택) 세션 워밍업
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Protocol

from partsearch.core.config import VendorConfig
from partsearch.core.logging import logger
from partsearch.crawlers.http_client import HttpExecutor
from partsearch.crawlers.warmup import SessionWarmup
from partsearch.engine.ai_lookup import ResilientClassifier
from partsearch.engine.category import CategoryResolver
from partsearch.engine.encoder import EncodedQuery, FilterEncoder
from partsearch.engine.session import SessionContext
from partsearch.parsers.base import GridParser


class SearchKind(str, Enum):
    MPN = "mpn"
    PARAMETRIC = "parametric"
    CROSS_REFERENCE = "cross_reference"


class RequestMethod(str, Enum):
    GET = "GET"
    POST_FORM = "POST_FORM"
    POST_JSON = "POST_JSON"


@dataclass(frozen=True)
class VendorRequest:
    method: RequestMethod
    url: str
    form: tuple[tuple[str, str], ...] = ()
    json_body: Optional[Mapping[str, Any]] = None
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ParametricQuery:
    category_code: Optional[str]
    category: Optional[str]
    subcategory: Optional[str]
    identifier: str
    query: EncodedQuery
    max_results: int


class RequestBuilder(Protocol):
    def mpn_request(self, category_code: Optional[str], identifier: str) -> VendorRequest:
        ...

    def parametric_request(self, params: ParametricQuery) -> VendorRequest:
        ...


class CrossReferenceRequestBuilder(Protocol):
    def cross_ref_request(self, category_code: str, identifier: str) -> VendorRequest:
        ...


@dataclass
class VendorStrategy:
    name: str
    config: VendorConfig
    capabilities: frozenset[SearchKind]
    session: SessionContext
    http: HttpExecutor
    requests: RequestBuilder
    grid_parser: GridParser
    encoder: FilterEncoder
    resolver: Optional[CategoryResolver] = None
    cross_ref_requests: Optional[CrossReferenceRequestBuilder] = None
    cross_ref_resolver: Optional[CategoryResolver] = None
    cross_ref_sections: Mapping[str, GridParser] = field(default_factory=dict)
    warmup: Optional[SessionWarmup] = None
    ai: Optional[ResilientClassifier] = None
    closers: list[Any] = field(default_factory=list)

    def supports(self, kind: SearchKind) -> bool:
        return kind in self.capabilities

    async def close(self) -> None:
        await self.http.close()
        for closer in self.closers:
            try:
                await closer.close()
            except Exception as e:
                logger.info(f"[VENDOR] {self.name} close failed: {type(e).__name__}: {e}")
