"""Vendor Registry - YAML 설정 → 벤더별 SearchOrchestrator

벤더 이름(소문자) 하나당 오케스트레이터 하나를 지연 생성해 재사용합니다.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Mapping, Optional

from partsearch.core.config import VendorConfig, settings
from partsearch.core.exceptions import UnknownVendorException, VendorConfigurationException
from partsearch.core.logging import logger
from partsearch.crawlers.ai_client import OpenAICategoryClassifier
from partsearch.engine.ai_lookup import CategoryClassifier
from partsearch.engine.encoder import FilterDefinition
from partsearch.engine.orchestrator import SearchOrchestrator
from partsearch.utils.resource_loader import (
    load_category_paths,
    load_filter_definitions,
    load_vendor_configs,
)
from partsearch.utils.url import join_url
from partsearch.vendors import BUILDERS
from partsearch.vendors.context import BuildContext


ClassifierFactory = Callable[[VendorConfig], Optional[CategoryClassifier]]


def default_classifier_factory(config: VendorConfig) -> Optional[CategoryClassifier]:
    """API 키가 있고 벤더가 AI를 허용할 때만 OpenAI 분류기 생성"""
    if not config.ai_enabled or not settings.openai_api_key:
        return None
    endpoint = join_url(config.base_url, config.parametric_search_path or config.mpn_search_path)
    return OpenAICategoryClassifier(config.name, endpoint, config.default_category or "")


def _definitions(raw: Mapping[str, Any]) -> Dict[str, list[FilterDefinition]]:
    result: Dict[str, list[FilterDefinition]] = {}
    for code, entries in raw.items():
        defs = []
        for entry in entries:
            if not entry.get("caption") or not entry.get("param"):
                logger.warning(f"[REGISTRY] filter definition without caption/param skipped: {code} {entry}")
                continue
            defs.append(
                FilterDefinition(
                    caption=str(entry["caption"]),
                    param=str(entry["param"]),
                    type=str(entry.get("type", "single")),
                )
            )
        result[code] = defs
    return result


class VendorRegistry:
    def __init__(
        self,
        configs: Mapping[str, VendorConfig],
        filter_definitions: Optional[Mapping[str, Mapping[str, list[FilterDefinition]]]] = None,
        category_paths: Optional[Mapping[str, Mapping[str, Mapping[str, str]]]] = None,
        *,
        classifier_factory: ClassifierFactory = default_classifier_factory,
        session_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        self._configs = {name.lower(): cfg for name, cfg in configs.items() if cfg.enabled}
        self._filters = dict(filter_definitions or {})
        self._paths = dict(category_paths or {})
        self._classifier_factory = classifier_factory
        self._session_factory = session_factory
        self._orchestrators: Dict[str, SearchOrchestrator] = {}
        self._lock = asyncio.Lock()

        for name, cfg in self._configs.items():
            if cfg.kind not in BUILDERS:
                raise VendorConfigurationException(name, f"unknown vendor kind '{cfg.kind}'")

    @classmethod
    def from_resources(
        cls,
        *,
        vendors_resource: Optional[str] = None,
        filters_resource: Optional[str] = None,
        category_paths_resource: Optional[str] = None,
        **kwargs: Any,
    ) -> "VendorRegistry":
        raw_vendors = load_vendor_configs(vendors_resource or settings.vendors_resource)
        configs: Dict[str, VendorConfig] = {}
        for name, raw in raw_vendors.items():
            try:
                configs[name] = VendorConfig(name=name, **{k: v for k, v in raw.items() if k != "name"})
            except ValueError as e:
                raise VendorConfigurationException(name, str(e)) from e

        raw_filters = load_filter_definitions(filters_resource or settings.filters_resource)
        filters = {vendor: _definitions(per_vendor) for vendor, per_vendor in raw_filters.items()}
        paths = load_category_paths(category_paths_resource or settings.category_paths_resource)
        logger.info(f"[REGISTRY] loaded vendors={sorted(configs)}")
        return cls(configs, filters, paths, **kwargs)

    def vendors(self) -> list[VendorConfig]:
        return [self._configs[name] for name in sorted(self._configs)]

    def config(self, vendor: str) -> VendorConfig:
        key = (vendor or "").strip().lower()
        cfg = self._configs.get(key)
        if cfg is None:
            raise UnknownVendorException(vendor)
        return cfg

    def filters(self, vendor: str, category: str) -> list[FilterDefinition]:
        cfg = self.config(vendor)
        return list(self._filters.get(cfg.name, {}).get(category, []))

    def _build(self, cfg: VendorConfig) -> SearchOrchestrator:
        paths = self._paths.get(cfg.name, {})
        classifier = self._classifier_factory(cfg)
        ctx = BuildContext(
            filter_definitions=self._filters.get(cfg.name, {}),
            forward_paths=paths.get("forward", {}),
            cross_ref_paths=paths.get("cross_reference", {}),
            classifier=classifier,
            session_factory=self._session_factory,
        )
        strategy = BUILDERS[cfg.kind](cfg, ctx)
        if classifier is not None and hasattr(classifier, "close"):
            strategy.closers.append(classifier)
        logger.info(
            f"[REGISTRY] built {cfg.name} capabilities={sorted(k.value for k in strategy.capabilities)} "
            f"ai={'on' if strategy.ai is not None else 'off'}"
        )
        return SearchOrchestrator(strategy)

    async def get(self, vendor: str) -> SearchOrchestrator:
        """벤더 오케스트레이터 반환 (최초 호출 시 생성)

        Raises:
            UnknownVendorException: 등록되지 않았거나 비활성화된 벤더
        """
        cfg = self.config(vendor)
        orchestrator = self._orchestrators.get(cfg.name)
        if orchestrator is not None:
            return orchestrator
        async with self._lock:
            orchestrator = self._orchestrators.get(cfg.name)
            if orchestrator is None:
                orchestrator = self._build(cfg)
                self._orchestrators[cfg.name] = orchestrator
        return orchestrator

    async def close(self) -> None:
        orchestrators = list(self._orchestrators.values())
        self._orchestrators.clear()
        for orchestrator in orchestrators:
            await orchestrator.close()
