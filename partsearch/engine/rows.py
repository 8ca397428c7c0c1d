"""CanonicalRow - 벤더 그리드 한 행의 표준 표현"""

from __future__ import annotations

from typing import Iterator, Mapping


class CanonicalRow(Mapping[str, str]):
    """caption → value 순서 보존 레코드 (불변).

    컬럼 순서는 벤더 응답 순서를 따르고, 파생 필드(url, mpn 등)는 맨 뒤에 붙습니다.
    """

    __slots__ = ("_data",)

    def __init__(self, fields: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(fields or {})

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CanonicalRow):
            return list(self._data.items()) == list(other._data.items())
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._data.items()))

    def with_fields(self, **derived: str) -> "CanonicalRow":
        """파생 필드를 끝에 추가한 새 행 반환"""
        merged = dict(self._data)
        for key, value in derived.items():
            merged.pop(key, None)
            merged[key] = value
        return CanonicalRow(merged)

    def identity(self, captions: tuple[str, ...]) -> str:
        """식별 필드 중 처음으로 비어있지 않은 값"""
        for caption in captions:
            value = self._data.get(caption, "")
            if value and value.strip():
                return value.strip()
        return ""

    def as_dict(self) -> dict[str, str]:
        return dict(self._data)

    def __repr__(self) -> str:
        return f"CanonicalRow({self._data!r})"
