"""커스텀 예외 정의 (Structured Exception Hierarchy)

벤더 측 장애(네트워크, 스키마 변경, AI 불가)는 예외가 아니라 '빈 결과'로 강등됩니다.
여기 정의된 예외는 호출자에게 그대로 전달되어야 하는 구조적 오류만 다룹니다.
"""
from typing import Any, Optional


# 기본 예외 클래스
class PartSearchException(Exception):
    """기본 예외 클래스 - 모든 커스텀 예외의 부모"""
    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[dict[str, Any]] = None):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# 설정 관련 예외
class ConfigurationException(PartSearchException):
    """설정 관련 예외의 기본 클래스"""
    def __init__(self, message: str, error_code: str = "CONFIG_ERROR", details: Optional[dict[str, Any]] = None):
        super().__init__(message, error_code or "CONFIG_ERROR", details)


class VendorConfigurationException(ConfigurationException):
    """벤더 설정 오류 (예: 해석 불가능한 base URL)"""
    def __init__(self, vendor: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Invalid configuration for vendor '{vendor}': {reason}"
        super().__init__(message, "VENDOR_CONFIG_ERROR", details or {"vendor": vendor, "reason": reason})


class UnknownVendorException(ConfigurationException):
    """등록되지 않은 벤더 요청"""
    def __init__(self, vendor: str, details: Optional[dict[str, Any]] = None):
        message = f"Unknown vendor: {vendor}"
        super().__init__(message, "UNKNOWN_VENDOR", details or {"vendor": vendor})


class UnsupportedOperationException(ConfigurationException):
    """벤더가 지원하지 않는 검색 종류"""
    def __init__(self, vendor: str, operation: str, details: Optional[dict[str, Any]] = None):
        message = f"Vendor '{vendor}' does not support '{operation}' search"
        super().__init__(message, "UNSUPPORTED_OPERATION",
                        details or {"vendor": vendor, "operation": operation})


class CategoryMappingException(ConfigurationException):
    """카테고리 코드를 결정할 수 없고 기본값도 없음"""
    def __init__(self, vendor: str, subject: str, details: Optional[dict[str, Any]] = None):
        message = f"No category mapping or default for vendor '{vendor}' (input: {subject!r})"
        super().__init__(message, "NO_CATEGORY_MAPPING",
                        details or {"vendor": vendor, "input": subject})


# 유효성 검증 관련 예외
class ValidationException(PartSearchException):
    """유효성 검증 예외"""
    def __init__(self, field: str, reason: str, details: Optional[dict[str, Any]] = None):
        message = f"Validation failed for '{field}': {reason}"
        super().__init__(message, "VALIDATION_ERROR",
                        details or {"field": field, "reason": reason})


class InvalidFilterException(ValidationException):
    """스칼라/범위/목록 어느 것에도 해당하지 않는 필터 값"""
    def __init__(self, field: str, value: Any, details: Optional[dict[str, Any]] = None):
        reason = f"unsupported filter value shape {type(value).__name__}: {value!r}"
        super().__init__(field, reason, details)
        self.error_code = "INVALID_FILTER"


# 회로차단 (AI 래퍼 내부에서만 사용, 호출자에게 노출되지 않음)
class CircuitOpenException(PartSearchException):
    """회로 개방 상태에서 호출 시도"""
    def __init__(self, name: str, remaining_s: float, details: Optional[dict[str, Any]] = None):
        message = f"Circuit '{name}' is open ({remaining_s:.1f}s remaining)"
        super().__init__(message, "CIRCUIT_OPEN",
                        details or {"circuit": name, "remaining_s": remaining_s})
