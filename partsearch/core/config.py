"""설정 관리 - 환경 변수 로드 및 검증"""
from typing import Any, Dict, Optional
from pydantic_settings import BaseSettings
from pydantic import BaseModel, ConfigDict, field_validator


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 벤더 HTTP 클라이언트
    # - http_timeout_s: 단일 요청 전체 타임아웃
    # - http_connect_timeout_s: TCP/TLS 연결 타임아웃
    # - http_pool_acquire_timeout_s: 커넥션 풀 슬롯 대기 상한 (초과 시 전송 실패로 취급)
    http_timeout_s: float = 25.0
    http_connect_timeout_s: float = 20.0
    http_max_connections: int = 50
    http_pool_acquire_timeout_s: float = 2.0
    http_impersonate: str = "chrome110"
    http_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/125.0.0.0 Safari/537.36"
    )

    # 세션 워밍업 (TDK 등 HTML 엔트리 페이지에서 상수를 읽어야 하는 벤더)
    warmup_timeout_s: float = 30.0
    warmup_max_bytes: int = 512 * 1024

    # AI 분류기 (OpenAI 호환)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-3.5-turbo"
    ai_timeout_s: float = 10.0
    ai_retry_attempts: int = 3
    ai_retry_wait_s: float = 0.5

    # AI 회로차단(CB): 실패율이 임계값을 넘으면 잠시 AI 호출 스킵
    ai_breaker_failure_rate: float = 0.5
    ai_breaker_window_size: int = 10
    ai_breaker_min_calls: int = 4
    ai_breaker_open_seconds: float = 60.0
    ai_breaker_half_open_calls: int = 1

    # 리소스 파일 (partsearch/resources 기준 상대경로)
    vendors_resource: str = "vendors.yaml"
    filters_resource: str = "parametric_filters.yaml"
    category_paths_resource: str = "category_paths.yaml"

    # API
    api_title: str = "Parts Search Service"
    api_version: str = "0.1.0"
    api_description: str = "벤더별 MPN / Parametric / Cross-Reference 검색을 하나의 API로 제공합니다."
    api_default_max_results: int = 100
    api_search_timeout_s: float = 60.0

    # 로깅
    log_level: str = "INFO"

    @field_validator(
        "http_timeout_s",
        "http_connect_timeout_s",
        "http_pool_acquire_timeout_s",
        "warmup_timeout_s",
        "ai_timeout_s",
        "ai_breaker_open_seconds",
        "api_search_timeout_s",
    )
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("http_max_connections", "warmup_max_bytes", "api_default_max_results")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("ai_retry_attempts", "ai_breaker_window_size", "ai_breaker_min_calls", "ai_breaker_half_open_calls")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("ai_retry_wait_s")
    @classmethod
    def validate_retry_wait(cls, v: float) -> float:
        if v < 0:
            raise ValueError("ai_retry_wait_s must be >= 0")
        return v

    @field_validator("ai_breaker_failure_rate")
    @classmethod
    def validate_failure_rate(cls, v: float) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError("ai_breaker_failure_rate must be in (0, 1]")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()


class VendorConfig(BaseModel):
    """벤더별 불변 설정 (resources/vendors.yaml 한 항목)"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    kind: str
    enabled: bool = True
    capabilities: tuple[str, ...] = ("mpn",)

    base_url: str
    discovery_base_url: Optional[str] = None
    mpn_search_path: str = ""
    parametric_search_path: Optional[str] = None
    cross_ref_path: Optional[str] = None
    discovery_path: Optional[str] = None
    warmup_path: Optional[str] = None
    referer_path: Optional[str] = None

    default_category: Optional[str] = None
    cross_ref_default_category: Optional[str] = None
    categories: Dict[str, str] = {}
    cross_ref_categories: Dict[str, str] = {}
    known_categories: tuple[str, ...] = ()

    page_size: int = 20
    cross_ref_rows: int = 20
    timeout_s: Optional[float] = None
    locale: str = "en-us"
    grammar: str = "scon"
    ai_enabled: bool = False

    detail_url_template: Optional[str] = None
    session_defaults: Dict[str, str] = {}
    request_constants: Dict[str, Any] = {}
    parser: Dict[str, Any] = {}

    @field_validator("name", "kind")
    @classmethod
    def validate_lower(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if not v:
            raise ValueError("vendor name/kind must not be empty")
        return v

    @field_validator("page_size", "cross_ref_rows")
    @classmethod
    def validate_rows(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("page_size/cross_ref_rows must be positive")
        return v

    @field_validator("categories", "cross_ref_categories")
    @classmethod
    def validate_prefixes(cls, v: Dict[str, str]) -> Dict[str, str]:
        return {str(k).strip().upper(): str(code).strip() for k, code in (v or {}).items()}

    @field_validator("grammar")
    @classmethod
    def validate_grammar(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in ("scon", "fn"):
            raise ValueError(f"unsupported query grammar: {v}")
        return v

    @field_validator("capabilities")
    @classmethod
    def validate_capabilities(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        allowed = {"mpn", "parametric", "cross_reference"}
        normalized = tuple(str(c).strip().lower() for c in v)
        unknown = [c for c in normalized if c not in allowed]
        if unknown:
            raise ValueError(f"unknown capabilities: {unknown}")
        return normalized
