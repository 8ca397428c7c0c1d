"""Pydantic 스키마 정의 (검색 요청/응답)"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from partsearch.core.config import settings
from partsearch.core.exceptions import InvalidFilterException
from partsearch.engine.filters import parse_filter_value


RESERVED_PARAMETER_KEYS = ("mpn", "details")


def _require_text(v: str, label: str) -> str:
    if not v or not v.strip():
        raise ValueError(f"{label}은(는) 공백만으로 구성될 수 없습니다")
    return v.strip()


class MpnSearchRequest(BaseModel):
    """부품번호 검색 요청"""
    vendor: str = Field(..., min_length=1, max_length=50, description="벤더 이름 (murata, tdk, kemet)")
    mpn: str = Field(..., min_length=1, max_length=100, description="제조사 부품번호")

    @field_validator("vendor")
    @classmethod
    def validate_vendor(cls, v: str) -> str:
        return _require_text(v, "vendor").lower()

    @field_validator("mpn")
    @classmethod
    def validate_mpn(cls, v: str) -> str:
        return _require_text(v, "mpn")


class ParametricSearchRequest(BaseModel):
    """카테고리 + 필터 검색 요청

    parameters 값 모양:
    - 단일 값: "X7R", 10, true
    - 목록:    ["C0G", "X7R"]
    - 범위:    {"min": 10, "max": 125} (한쪽 생략 가능)
    """
    vendor: str = Field(..., min_length=1, max_length=50)
    category: Optional[str] = Field(None, max_length=200, description="카테고리 또는 코드")
    subcategory: Optional[str] = Field(None, max_length=200, description="하위 카테고리")
    mpn: Optional[str] = Field(None, max_length=100, description="함께 검색할 부품번호")
    parameters: Dict[str, Any] = Field(default_factory=dict, description="필터 맵")
    details: Optional[str] = Field(None, max_length=1000, description="자유 서술 요구사항 (AI 분류)")
    max_results: int = Field(settings.api_default_max_results, ge=1, le=1000, description="최대 결과 수")

    @field_validator("vendor")
    @classmethod
    def validate_vendor(cls, v: str) -> str:
        return _require_text(v, "vendor").lower()

    @field_validator("parameters")
    @classmethod
    def validate_parameters(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """필터 값 모양은 경계에서 먼저 검증"""
        for key, raw in v.items():
            if not key or not key.strip():
                raise ValueError("parameter key must not be blank")
            if key in RESERVED_PARAMETER_KEYS:
                continue
            try:
                parse_filter_value(key, raw)
            except InvalidFilterException as e:
                raise ValueError(e.message) from e
        return v


class CrossReferenceRequest(BaseModel):
    """경쟁사 부품번호 교차 참조 요청"""
    vendor: str = Field(..., min_length=1, max_length=50)
    competitor_mpn: str = Field(..., min_length=1, max_length=100)
    category_path: Optional[str] = Field(None, max_length=200, description="예: Inductors/Power Inductors")

    @field_validator("vendor")
    @classmethod
    def validate_vendor(cls, v: str) -> str:
        return _require_text(v, "vendor").lower()

    @field_validator("competitor_mpn")
    @classmethod
    def validate_competitor_mpn(cls, v: str) -> str:
        return _require_text(v, "competitor_mpn")


class SearchResponse(BaseModel):
    """MPN / Parametric 검색 응답"""
    vendor: str
    count: int = Field(..., ge=0)
    rows: List[Dict[str, str]]


class CrossReferenceResponse(BaseModel):
    """교차 참조 응답 ({"competitor": [...], "<vendor>": [...]})"""
    vendor: str
    sections: Dict[str, List[Dict[str, str]]]


class VendorInfo(BaseModel):
    name: str
    operations: List[str]
    ai_enabled: bool = False


class VendorListResponse(BaseModel):
    vendors: List[VendorInfo]


class FilterDefinitionInfo(BaseModel):
    caption: str
    param: str
    type: str


class FilterListResponse(BaseModel):
    vendor: str
    category: str
    filters: List[FilterDefinitionInfo]


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    timestamp: datetime
    version: str
    vendors: int = 0
