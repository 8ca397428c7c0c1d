"""API 엔드포인트 패키지 - export only."""

from .routes import health_router, search_router, get_registry, shutdown_registry

__all__ = ["health_router", "search_router", "get_registry", "shutdown_registry"]
