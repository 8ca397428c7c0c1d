"""SessionContext - 벤더 엔진 인스턴스 하나가 소유하는 가변 세션 상태"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional


@dataclass
class SessionContext:
    """워밍업으로 발견한 상수 + 안티봇 쿠키 저장소.

    같은 이벤트 루프 위에서만 접근하므로 별도 락 없이 last-writer-wins로 동작합니다.
    """

    vendor: str
    constants: dict[str, str] = field(default_factory=dict)
    cookies: dict[str, str] = field(default_factory=dict)

    @classmethod
    def with_defaults(cls, vendor: str, defaults: Optional[Mapping[str, str]] = None) -> "SessionContext":
        return cls(vendor=vendor, constants=dict(defaults or {}))

    def constant(self, name: str, default: str = "") -> str:
        return self.constants.get(name, default)

    def update_constants(self, values: Mapping[str, str]) -> None:
        self.constants.update({k: v for k, v in values.items() if v})

    def merge_cookies(self, cookies: Optional[Mapping[str, str]]) -> list[str]:
        """응답 쿠키 병합, 새로 들어온 쿠키 이름 반환"""
        if not cookies:
            return []
        merged = []
        for name, value in cookies.items():
            if value is None:
                continue
            self.cookies[str(name)] = str(value)
            merged.append(str(name))
        return merged

    def cookie_snapshot(self) -> dict[str, str]:
        return dict(self.cookies)

    def anti_bot_cookie_names(self, prefixes: tuple[str, ...] = ("bm_", "ak_bmsc", "_abck")) -> list[str]:
        return sorted(n for n in self.cookies if n.startswith(prefixes))
