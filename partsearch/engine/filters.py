"""FilterValue - 필터 조건 하나를 표현하는 태그드 유니온

API 경계에서 느슨한 JSON 값(str/number/dict/list)을 받아
Scalar / Range / ListValue 중 하나로 검증 변환합니다.
이후 인코더는 런타임 타입 분기 없이 세 가지 경우만 다룹니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from partsearch.core.exceptions import InvalidFilterException


ScalarType = Union[str, int, float, bool]

_RANGE_KEYS = frozenset({"min", "max"})


def _render_scalar(value: ScalarType) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class Scalar:
    value: ScalarType

    def render(self) -> str:
        return _render_scalar(self.value)


@dataclass(frozen=True)
class Range:
    min: Optional[ScalarType] = None
    max: Optional[ScalarType] = None

    @property
    def is_empty(self) -> bool:
        return _is_absent(self.min) and _is_absent(self.max)

    def render(self, separator: str = "|") -> str:
        low = "" if _is_absent(self.min) else _render_scalar(self.min)
        high = "" if _is_absent(self.max) else _render_scalar(self.max)
        return f"{low}{separator}{high}"


@dataclass(frozen=True)
class ListValue:
    items: tuple[Scalar, ...]


FilterValue = Union[Scalar, Range, ListValue]


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_scalar(value: Any) -> bool:
    return isinstance(value, (str, int, float, bool))


def parse_filter_value(field: str, raw: Any) -> FilterValue:
    """느슨한 입력값 → FilterValue.

    - str/int/float/bool → Scalar
    - {"min": .., "max": ..} (키 일부 또는 전부 생략 가능) → Range
    - list/tuple of scalars → ListValue

    Raises:
        InvalidFilterException: 그 외 모양 (중첩 리스트, 알 수 없는 키를 가진 dict, None 등)
    """
    if isinstance(raw, (Scalar, Range, ListValue)):
        return raw
    if _is_scalar(raw):
        return Scalar(raw)
    if isinstance(raw, Mapping):
        keys = {str(k).lower() for k in raw.keys()}
        if not keys <= _RANGE_KEYS:
            raise InvalidFilterException(field, raw)
        lowered = {str(k).lower(): v for k, v in raw.items()}
        low, high = lowered.get("min"), lowered.get("max")
        for bound in (low, high):
            if bound is not None and not _is_scalar(bound):
                raise InvalidFilterException(field, raw)
        return Range(min=low, max=high)
    if isinstance(raw, (list, tuple)):
        items = []
        for item in raw:
            if not _is_scalar(item):
                raise InvalidFilterException(field, raw)
            items.append(Scalar(item))
        return ListValue(tuple(items))
    raise InvalidFilterException(field, raw)


def parse_filter_map(raw: Optional[Mapping[str, Any]]) -> dict[str, FilterValue]:
    """필터 dict 전체 검증 (첫 번째 잘못된 값에서 즉시 실패)"""
    if not raw:
        return {}
    return {str(field): parse_filter_value(str(field), value) for field, value in raw.items()}
