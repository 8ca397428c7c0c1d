"""TDK 전략 - 세션 워밍업 + form POST + 임베디드 HTML 그리드

검색 API(/pdc_api/en/search/list/search_result)는 엔트리 페이지(/en/search/list)에
박혀있는 site/group/design 상수와 bm_* 쿠키를 요구합니다.
"""

from __future__ import annotations

from typing import Optional

from partsearch.core.config import VendorConfig
from partsearch.crawlers.warmup import SessionWarmup
from partsearch.engine.encoder import GRAMMARS, FilterEncoder
from partsearch.engine.session import SessionContext
from partsearch.engine.vendor import (
    ParametricQuery,
    RequestMethod,
    SearchKind,
    VendorRequest,
    VendorStrategy,
)
from partsearch.parsers.html_grid import HtmlTableGridParser
from partsearch.utils.url import join_url
from partsearch.vendors.context import BuildContext, make_http, make_session


HANDSHAKE_CONSTANTS = ("site", "group", "design")

DEFAULT_CONSTANTS = {
    "site": "FBNXDO0R",
    "group": "tdk_pdc_en",
    "design": "producttdkcom-en",
}


class TdkRequests:
    def __init__(self, config: VendorConfig, session: SessionContext) -> None:
        self.config = config
        self.session = session

    def _base_form(self, page_size: int) -> list[tuple[str, str]]:
        s = self.session
        return [
            ("site", s.constant("site", DEFAULT_CONSTANTS["site"])),
            ("charset", "UTF-8"),
            ("group", s.constant("group", DEFAULT_CONSTANTS["group"])),
            ("design", s.constant("design", DEFAULT_CONSTANTS["design"])),
            ("fromsyncsearch", "1"),
            ("_l", str(page_size)),
            ("_p", "1"),
            ("_c", "part_no-part_no"),
            ("_d", "0"),
        ]

    def _headers(self) -> dict[str, str]:
        return {"Origin": self.config.base_url.rstrip("/")}

    def mpn_request(self, category_code: Optional[str], identifier: str) -> VendorRequest:
        cfg = self.config
        form = self._base_form(cfg.page_size) + [("pn", identifier)]
        return VendorRequest(
            RequestMethod.POST_FORM,
            join_url(cfg.base_url, cfg.mpn_search_path),
            form=tuple(form),
            headers=self._headers(),
        )

    def parametric_request(self, params: ParametricQuery) -> VendorRequest:
        cfg = self.config
        form = self._base_form(params.max_results)
        if params.identifier:
            form.append(("pn", params.identifier))
        form.append(("category", params.category or ""))
        if params.subcategory:
            form.append(("sub_category", params.subcategory))
        form.extend(params.query.as_params())
        return VendorRequest(
            RequestMethod.POST_FORM,
            join_url(cfg.base_url, cfg.parametric_search_path or cfg.mpn_search_path),
            form=tuple(form),
            headers=self._headers(),
        )


def build_tdk(config: VendorConfig, ctx: BuildContext) -> VendorStrategy:
    defaults = dict(DEFAULT_CONSTANTS)
    defaults.update(config.session_defaults)
    session = make_session(config)
    session.update_constants(defaults)
    http = make_http(config, session, ctx)

    warmup = SessionWarmup(
        http,
        session,
        join_url(config.base_url, config.warmup_path or "/en/search/list"),
        HANDSHAKE_CONSTANTS,
        defaults,
    )

    layout = config.parser
    grid = HtmlTableGridParser(
        config.base_url,
        identity_caption=str(layout.get("identity_caption", "Part No.")),
        document_caption=str(layout.get("document_caption", "Catalog / Data Sheet")),
        header_rows=int(layout.get("header_rows", 2)),
        footer_rows=int(layout.get("footer_rows", 0)),
        leading_cols=int(layout.get("leading_cols", 2)),
        trailing_cols=int(layout.get("trailing_cols", 2)),
        order_multiplier=int(layout.get("order_multiplier", 10)),
        label=f"{config.name}-grid",
    )

    return VendorStrategy(
        name=config.name,
        config=config,
        capabilities=frozenset(SearchKind(c) for c in config.capabilities) - {SearchKind.CROSS_REFERENCE},
        session=session,
        http=http,
        requests=TdkRequests(config, session),
        grid_parser=grid,
        encoder=FilterEncoder(config.name, GRAMMARS[config.grammar], ctx.filter_definitions),
        warmup=warmup,
    )
