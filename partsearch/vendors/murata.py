"""Murata 전략 - GET + scon 문법 + JSON 헤더 그리드

- MPN 검색:      /webapi/PsdispRest?cate=..&partno=..&stype=1&rows=..&lang=en-us
- Parametric:    같은 엔드포인트 + 반복 scon 파라미터
- Cross-ref:     /webapi/SearchCrossReference?cate=..&partno=..&stype=1&pageno=1&rows=20&lang=en-us
- 카테고리 탐색: sitesearch.murata.com/search/product (categories / crossreference 배열)
"""

from __future__ import annotations

from typing import Mapping, Optional
from urllib.parse import quote

from partsearch.core.config import VendorConfig
from partsearch.engine.category import (
    AiLookupStage,
    CategoryResolver,
    CategoryStage,
    DiscoveryStage,
    PrefixTableStage,
)
from partsearch.engine.encoder import GRAMMARS, FilterEncoder
from partsearch.engine.rows import CanonicalRow
from partsearch.engine.vendor import (
    ParametricQuery,
    RequestMethod,
    SearchKind,
    VendorRequest,
    VendorStrategy,
)
from partsearch.parsers.json_grid import JsonHeaderGridParser
from partsearch.utils.url import build_url
from partsearch.vendors.context import (
    BuildContext,
    known_category_codes,
    make_ai,
    make_http,
    make_session,
)


DEFAULT_DETAIL_URL = "{base_url}/en-us/products/productdetail?partno={part}%23"


def detail_url(config: VendorConfig, part_number: str) -> str:
    template = config.detail_url_template or DEFAULT_DETAIL_URL
    base = part_number.replace("#", "").strip()
    return template.format(base_url=config.base_url.rstrip("/"), part=quote(base, safe=""))


class MurataRequests:
    def __init__(self, config: VendorConfig) -> None:
        self.config = config

    def mpn_request(self, category_code: Optional[str], identifier: str) -> VendorRequest:
        cfg = self.config
        params = [
            ("cate", category_code or ""),
            ("partno", identifier),
            ("stype", "1"),
            ("rows", str(cfg.page_size)),
            ("lang", cfg.locale),
        ]
        return VendorRequest(RequestMethod.GET, build_url(cfg.base_url, cfg.mpn_search_path, params))

    def parametric_request(self, params: ParametricQuery) -> VendorRequest:
        cfg = self.config
        pairs = [
            ("cate", params.category_code or ""),
            ("partno", params.identifier),
            ("stype", "1"),
            ("rows", str(params.max_results)),
            ("lang", cfg.locale),
        ]
        pairs.extend(params.query.as_params())
        path = cfg.parametric_search_path or cfg.mpn_search_path
        return VendorRequest(RequestMethod.GET, build_url(cfg.base_url, path, pairs))

    def cross_ref_request(self, category_code: str, identifier: str) -> VendorRequest:
        cfg = self.config
        pairs = [
            ("cate", category_code),
            ("partno", identifier),
            ("stype", "1"),
            ("pageno", "1"),
            ("rows", str(cfg.cross_ref_rows)),
            ("lang", cfg.locale),
        ]
        return VendorRequest(RequestMethod.GET, build_url(cfg.base_url, cfg.cross_ref_path or "", pairs))


def build_murata(config: VendorConfig, ctx: BuildContext) -> VendorStrategy:
    session = make_session(config)
    http = make_http(config, session, ctx)
    ai = make_ai(config, ctx, known_category_codes(config, ctx))

    discovery_base = config.discovery_base_url or config.base_url
    discovery_params = {"op": "AND", "src": "product", "region": config.locale}

    stages: list[CategoryStage] = []
    if config.discovery_path:
        stages.append(DiscoveryStage(http, discovery_base, config.discovery_path, params=discovery_params))
    if ai is not None:
        stages.append(AiLookupStage(ai))
    stages.append(PrefixTableStage(config.categories))
    resolver = CategoryResolver(
        config.name,
        stages,
        path_table=ctx.forward_paths,
        default=config.default_category,
    )

    xref_stages: list[CategoryStage] = []
    if config.discovery_path:
        xref_stages.append(
            DiscoveryStage(
                http, discovery_base, config.discovery_path,
                array_key="crossreference", params=discovery_params,
            )
        )
    xref_stages.append(PrefixTableStage(config.cross_ref_categories))
    cross_ref_resolver = CategoryResolver(
        config.name,
        xref_stages,
        path_table=ctx.cross_ref_paths,
        path_match="keyword",
        path_before="prefix",
        default=config.cross_ref_default_category,
    )

    layout: Mapping[str, object] = config.parser
    identity = tuple(layout.get("identity_captions", ("Part Number",)))  # type: ignore[arg-type]
    competitor_identity = tuple(layout.get("competitor_identity_captions", ("Part Number",)))  # type: ignore[arg-type]

    def forward_fields(row: CanonicalRow, pn: str) -> dict[str, str]:
        return {"mpn": pn.replace("#", "").strip(), "url": detail_url(config, pn)}

    def own_fields(row: CanonicalRow, pn: str) -> dict[str, str]:
        return {"url": detail_url(config, pn)}

    grid = JsonHeaderGridParser(("Result",), identity, derive=forward_fields, label=f"{config.name}-grid")
    sections = {
        "competitor": JsonHeaderGridParser(
            ("otherPsDispRest", "Result"), competitor_identity, label=f"{config.name}-xref-competitor"
        ),
        config.name: JsonHeaderGridParser(
            ("murataPsDispRest", "Result"), identity, derive=own_fields, label=f"{config.name}-xref-own"
        ),
    }

    requests = MurataRequests(config)
    return VendorStrategy(
        name=config.name,
        config=config,
        capabilities=frozenset(SearchKind(c) for c in config.capabilities),
        session=session,
        http=http,
        requests=requests,
        cross_ref_requests=requests,
        grid_parser=grid,
        encoder=FilterEncoder(config.name, GRAMMARS[config.grammar], ctx.filter_definitions, ai),
        resolver=resolver,
        cross_ref_resolver=cross_ref_resolver,
        cross_ref_sections=sections,
        ai=ai,
    )
