"""KEMET 전략 - JSON POST (/en/us/search.products.json) + 부품 목록 파서"""

from __future__ import annotations

from typing import Any, Optional

from partsearch.core.config import VendorConfig
from partsearch.engine.encoder import GRAMMARS, FilterEncoder
from partsearch.engine.vendor import (
    ParametricQuery,
    RequestMethod,
    SearchKind,
    VendorRequest,
    VendorStrategy,
)
from partsearch.parsers.parts_list import PartsListParser
from partsearch.utils.url import join_url
from partsearch.vendors.context import BuildContext, make_http, make_session


DEFAULT_DEFINITION_ID = 482


class KemetRequests:
    def __init__(self, config: VendorConfig) -> None:
        self.config = config
        self.definition_id = int(config.request_constants.get("definition_id", DEFAULT_DEFINITION_ID))

    def _headers(self) -> dict[str, str]:
        base = self.config.base_url.rstrip("/")
        return {"Origin": base, "Referer": base + "/"}

    def _body(self, identifier: str, parameters: list[Any]) -> dict[str, Any]:
        return {"definitionId": self.definition_id, "input": identifier, "parameters": parameters}

    def mpn_request(self, category_code: Optional[str], identifier: str) -> VendorRequest:
        cfg = self.config
        return VendorRequest(
            RequestMethod.POST_JSON,
            join_url(cfg.base_url, cfg.mpn_search_path),
            json_body=self._body(identifier, []),
            headers=self._headers(),
        )

    def parametric_request(self, params: ParametricQuery) -> VendorRequest:
        cfg = self.config
        return VendorRequest(
            RequestMethod.POST_JSON,
            join_url(cfg.base_url, cfg.parametric_search_path or cfg.mpn_search_path),
            json_body=self._body(params.identifier, list(params.query.clauses)),
            headers=self._headers(),
        )


def build_kemet(config: VendorConfig, ctx: BuildContext) -> VendorStrategy:
    session = make_session(config)
    http = make_http(config, session, ctx)
    return VendorStrategy(
        name=config.name,
        config=config,
        capabilities=frozenset(SearchKind(c) for c in config.capabilities) - {SearchKind.CROSS_REFERENCE},
        session=session,
        http=http,
        requests=KemetRequests(config),
        grid_parser=PartsListParser(label=f"{config.name}-parts"),
        encoder=FilterEncoder(config.name, GRAMMARS[config.grammar], ctx.filter_definitions),
    )
