"""Search Routes - HTTP → VendorRegistry → SearchOrchestrator

HTTP 레이어는 요청 검증과 예외 → 상태 코드 변환만 담당합니다.
"""

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from partsearch.core.config import settings
from partsearch.core.exceptions import (
    CategoryMappingException,
    ConfigurationException,
    PartSearchException,
    ValidationException,
)
from partsearch.core.logging import logger
from partsearch.engine.registry import VendorRegistry
from partsearch.engine.vendor import SearchKind
from partsearch.schemas.search_schema import (
    CrossReferenceRequest,
    CrossReferenceResponse,
    FilterDefinitionInfo,
    FilterListResponse,
    MpnSearchRequest,
    ParametricSearchRequest,
    SearchResponse,
    VendorInfo,
    VendorListResponse,
)

router = APIRouter(prefix="/api/v1", tags=["search"])

# 싱글톤 레지스트리
_registry: Optional[VendorRegistry] = None


def get_registry() -> VendorRegistry:
    """VendorRegistry 싱글톤"""
    global _registry
    if _registry is None:
        _registry = VendorRegistry.from_resources()
    return _registry


async def shutdown_registry() -> None:
    global _registry
    if _registry is not None:
        registry, _registry = _registry, None
        await registry.close()


def _to_http(e: PartSearchException) -> HTTPException:
    """설정 오류 → 400, 입력/매핑 오류 → 422"""
    if isinstance(e, (ValidationException, CategoryMappingException)):
        status = 422
    elif isinstance(e, ConfigurationException):
        status = 400
    else:
        status = 500
    return HTTPException(status_code=status, detail={"error_code": e.error_code, "message": e.message})


@router.get("/vendors", response_model=VendorListResponse)
async def list_vendors(registry: VendorRegistry = Depends(get_registry)):
    """등록된 벤더와 지원 연산 목록"""
    vendors = [
        VendorInfo(
            name=cfg.name,
            operations=[k.value for k in SearchKind if k.value in cfg.capabilities],
            ai_enabled=cfg.ai_enabled,
        )
        for cfg in registry.vendors()
    ]
    return VendorListResponse(vendors=vendors)


@router.get("/vendors/{vendor}/filters/{category}", response_model=FilterListResponse)
async def list_filters(vendor: str, category: str, registry: VendorRegistry = Depends(get_registry)):
    """카테고리 코드별 필터 정의 (caption / param / type)"""
    try:
        defs = registry.filters(vendor, category)
    except PartSearchException as e:
        logger.warning(f"[API] filters lookup failed: {e}")
        raise _to_http(e)
    return FilterListResponse(
        vendor=vendor.lower(),
        category=category,
        filters=[FilterDefinitionInfo(caption=d.caption, param=d.param, type=d.type) for d in defs],
    )


@router.post("/search/mpn", response_model=SearchResponse)
async def search_mpn(request: MpnSearchRequest, registry: VendorRegistry = Depends(get_registry)):
    """부품번호 검색"""
    logger.info(f"[API] mpn search vendor={request.vendor} mpn={request.mpn}")
    try:
        orchestrator = await registry.get(request.vendor)
        rows = await asyncio.wait_for(
            orchestrator.search_by_mpn(request.mpn),
            timeout=settings.api_search_timeout_s,
        )
    except asyncio.TimeoutError:
        logger.warning(f"[API] mpn search timed out after {settings.api_search_timeout_s}s: {request.vendor}")
        rows = []
    except PartSearchException as e:
        logger.warning(f"[API] mpn search rejected: {e}")
        raise _to_http(e)

    return SearchResponse(vendor=request.vendor, count=len(rows), rows=[r.as_dict() for r in rows])


@router.post("/search/parametric", response_model=SearchResponse)
async def search_parametric(request: ParametricSearchRequest, registry: VendorRegistry = Depends(get_registry)):
    """카테고리 + 필터 검색"""
    logger.info(
        f"[API] parametric search vendor={request.vendor} category={request.category} "
        f"subcategory={request.subcategory} filters={len(request.parameters)}"
    )
    try:
        orchestrator = await registry.get(request.vendor)
        rows = await asyncio.wait_for(
            orchestrator.search_by_parameters(
                request.category,
                request.subcategory,
                request.parameters,
                mpn=request.mpn,
                details=request.details,
                max_results=request.max_results,
            ),
            timeout=settings.api_search_timeout_s,
        )
    except asyncio.TimeoutError:
        logger.warning(f"[API] parametric search timed out after {settings.api_search_timeout_s}s: {request.vendor}")
        rows = []
    except PartSearchException as e:
        logger.warning(f"[API] parametric search rejected: {e}")
        raise _to_http(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail={"error_code": "VALIDATION_ERROR", "message": str(e)})

    return SearchResponse(vendor=request.vendor, count=len(rows), rows=[r.as_dict() for r in rows])


@router.post("/search/cross-reference", response_model=CrossReferenceResponse)
async def search_cross_reference(request: CrossReferenceRequest, registry: VendorRegistry = Depends(get_registry)):
    """경쟁사 부품번호 → 경쟁사 / 자사 대응 부품"""
    logger.info(f"[API] cross-ref search vendor={request.vendor} competitor={request.competitor_mpn}")
    try:
        orchestrator = await registry.get(request.vendor)
        sections = await asyncio.wait_for(
            orchestrator.search_by_cross_reference(request.competitor_mpn, request.category_path),
            timeout=settings.api_search_timeout_s,
        )
    except asyncio.TimeoutError:
        logger.warning(f"[API] cross-ref search timed out after {settings.api_search_timeout_s}s: {request.vendor}")
        sections = {name: [] for name in ("competitor", request.vendor)}
    except PartSearchException as e:
        logger.warning(f"[API] cross-ref search rejected: {e}")
        raise _to_http(e)

    return CrossReferenceResponse(
        vendor=request.vendor,
        sections={name: [r.as_dict() for r in rows] for name, rows in sections.items()},
    )
