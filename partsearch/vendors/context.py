"""벤더 전략 조립에 필요한 공용 재료"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional, Sequence

from partsearch.core.config import VendorConfig
from partsearch.crawlers.http_client import HttpExecutor
from partsearch.engine.ai_lookup import CategoryClassifier, ResilientClassifier
from partsearch.engine.encoder import FilterDefinition
from partsearch.engine.session import SessionContext
from partsearch.utils.url import join_url


@dataclass
class BuildContext:
    filter_definitions: Mapping[str, Sequence[FilterDefinition]] = field(default_factory=dict)
    forward_paths: Mapping[str, str] = field(default_factory=dict)
    cross_ref_paths: Mapping[str, str] = field(default_factory=dict)
    classifier: Optional[CategoryClassifier] = None
    session_factory: Optional[Callable[[], Any]] = None


def make_session(config: VendorConfig) -> SessionContext:
    return SessionContext.with_defaults(config.name, config.session_defaults)


def make_http(
    config: VendorConfig,
    session: SessionContext,
    ctx: BuildContext,
    extra_headers: Optional[Mapping[str, str]] = None,
) -> HttpExecutor:
    headers = dict(extra_headers or {})
    if config.referer_path and "Referer" not in headers:
        headers["Referer"] = join_url(config.base_url, config.referer_path)
    return HttpExecutor(
        config.name,
        config.base_url,
        session,
        timeout_s=config.timeout_s,
        extra_headers=headers,
        session_factory=ctx.session_factory,
    )


def known_category_codes(config: VendorConfig, ctx: BuildContext) -> set[str]:
    """AI 응답 허용 목록"""
    codes: set[str] = set(config.known_categories)
    codes.update(config.categories.values())
    codes.update(ctx.forward_paths.values())
    codes.update(ctx.filter_definitions.keys())
    if config.default_category:
        codes.add(config.default_category)
    return {c for c in codes if c}


def make_ai(config: VendorConfig, ctx: BuildContext, valid_codes: Iterable[str]) -> Optional[ResilientClassifier]:
    if not config.ai_enabled or ctx.classifier is None:
        return None
    return ResilientClassifier(ctx.classifier, config.name, valid_codes=valid_codes)
