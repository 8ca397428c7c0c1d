"""헬스 체크 엔드포인트"""
from datetime import datetime

from fastapi import APIRouter, Depends

from partsearch import __version__
from partsearch.api.routes.search_routes import get_registry
from partsearch.core.logging import logger
from partsearch.engine.registry import VendorRegistry
from partsearch.schemas.search_schema import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(registry: VendorRegistry = Depends(get_registry)):
    """
    헬스 체크 엔드포인트

    - 서버 상태
    - 등록된 벤더 수 (0이면 degraded)
    """
    vendors = len(registry.vendors())
    if vendors == 0:
        logger.warning("[API] health: no vendors configured")
    return HealthResponse(
        status="ok" if vendors else "degraded",
        timestamp=datetime.now(),
        version=__version__,
        vendors=vendors,
    )


@router.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "service": "부품 검색 서비스",
        "version": __version__,
        "docs": "/docs"
    }
