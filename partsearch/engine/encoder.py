"""FilterEncoder - FilterValue 맵 → 벤더 쿼리 문법

문법별 절(clause) 형식:
    scalar  field;value            (fn 문법은 field:value)
    range   field;min|max          (빈 경계는 빈 문자열, 둘 다 없으면 절 없음)
    list    field;v1, field;v2 ... (원소마다 별도 절 → 벤더 쪽에서 OR)

필드명은 카테고리별 caption → field 테이블로 해석합니다.
정확히 일치 → 필드명 자체 → 단어 집합 일치 순서로 찾고, 못 찾으면 그 필터 하나만 건너뜁니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence

from partsearch.core.exceptions import InvalidFilterException
from partsearch.core.logging import logger
from partsearch.engine.ai_lookup import ResilientClassifier
from partsearch.engine.filters import FilterValue, ListValue, Range, Scalar, parse_filter_value
from partsearch.utils.text import caption_tokens


@dataclass(frozen=True)
class QueryGrammar:
    name: str
    param: str
    separator: str
    range_separator: str = "|"


SCON_GRAMMAR = QueryGrammar(name="scon", param="scon", separator=";")
FN_GRAMMAR = QueryGrammar(name="fn", param="fn", separator=":")

GRAMMARS = {g.name: g for g in (SCON_GRAMMAR, FN_GRAMMAR)}


@dataclass(frozen=True)
class FilterDefinition:
    caption: str
    param: str
    type: str = "single"


@dataclass(frozen=True)
class EncodedQuery:
    grammar: QueryGrammar
    clauses: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()

    def as_params(self) -> list[tuple[str, str]]:
        """반복 쿼리 파라미터 형태 [("scon", "field;v"), ...]"""
        return [(self.grammar.param, clause) for clause in self.clauses]

    def composite(self, joiner: str = ",") -> str:
        """단일 문자열 형태"""
        return joiner.join(self.clauses)

    def merged(self, other: "EncodedQuery") -> "EncodedQuery":
        return EncodedQuery(self.grammar, self.clauses + other.clauses, self.skipped + other.skipped)


def render_clauses(field_name: str, value: FilterValue, grammar: QueryGrammar) -> list[str]:
    sep = grammar.separator
    if isinstance(value, Scalar):
        return [f"{field_name}{sep}{value.render()}"]
    if isinstance(value, Range):
        if value.is_empty:
            return []
        return [f"{field_name}{sep}{value.render(grammar.range_separator)}"]
    if isinstance(value, ListValue):
        return [f"{field_name}{sep}{item.render()}" for item in value.items]
    raise InvalidFilterException(field_name, value)


class CaptionResolver:
    """UI caption → 벤더 내부 필드명"""

    def __init__(self, definitions: Iterable[FilterDefinition]) -> None:
        self.definitions = list(definitions)
        self._by_caption = {d.caption: d.param for d in self.definitions}
        self._by_lower = {d.caption.strip().lower(): d.param for d in self.definitions}
        self._params = {d.param for d in self.definitions}
        self._by_tokens = [(caption_tokens(d.caption), d.param) for d in self.definitions]

    @property
    def captions(self) -> list[str]:
        return [d.caption for d in self.definitions]

    def resolve(self, caption: str) -> Optional[str]:
        if caption in self._by_caption:
            return self._by_caption[caption]
        lowered = caption.strip().lower()
        if lowered in self._by_lower:
            return self._by_lower[lowered]
        if caption in self._params:
            return caption
        wanted = caption_tokens(caption)
        if not wanted:
            return None
        for tokens, param in self._by_tokens:
            if tokens == wanted:
                return param
        return None


class FilterEncoder:
    def __init__(
        self,
        vendor: str,
        grammar: QueryGrammar,
        definitions: Optional[Mapping[str, Sequence[FilterDefinition]]] = None,
        ai: Optional[ResilientClassifier] = None,
    ) -> None:
        self.vendor = vendor
        self.grammar = grammar
        self.definitions = {k: list(v) for k, v in (definitions or {}).items()}
        self.ai = ai

    def resolver_for(self, category: Optional[str]) -> Optional[CaptionResolver]:
        defs = self.definitions.get(category or "")
        return CaptionResolver(defs) if defs else None

    def encode(self, category: Optional[str], filters: Mapping[str, Any]) -> EncodedQuery:
        """필터 맵 인코딩.

        정의 테이블이 없는 카테고리는 키를 필드명으로 그대로 사용합니다.

        Raises:
            InvalidFilterException: 지원하지 않는 값 모양
        """
        resolver = self.resolver_for(category)
        clauses: list[str] = []
        skipped: list[str] = []
        for caption, raw in filters.items():
            value = parse_filter_value(caption, raw)
            field_name = resolver.resolve(caption) if resolver else caption
            if not field_name:
                logger.warning(f"[ENCODER] {self.vendor} no field mapping for caption '{caption}' in {category} (ignored)")
                skipped.append(caption)
                continue
            clauses.extend(render_clauses(field_name, value, self.grammar))
        return EncodedQuery(self.grammar, tuple(clauses), tuple(skipped))

    async def encode_details(self, category: Optional[str], details: Optional[str]) -> EncodedQuery:
        """자유 서술 필터 → AI classify → 동일한 caption 해석/인코딩 경로"""
        if not details or not details.strip():
            return EncodedQuery(self.grammar)
        if self.ai is None:
            logger.warning(f"[ENCODER] {self.vendor} details given but no AI classifier configured (ignored)")
            return EncodedQuery(self.grammar, skipped=("details",))

        resolver = self.resolver_for(category)
        answer = await self.ai.classify(details, resolver.captions if resolver else ())
        if not answer:
            return EncodedQuery(self.grammar)
        if resolver is None:
            logger.warning(f"[ENCODER] {self.vendor} no filter definitions for {category}; details ignored")
            return EncodedQuery(self.grammar, skipped=tuple(str(k) for k in answer))

        clauses: list[str] = []
        skipped: list[str] = []
        for caption, raw in answer.items():
            caption = str(caption)
            field_name = resolver.resolve(caption)
            if not field_name:
                logger.warning(f"[ENCODER] {self.vendor} no field mapping for caption '{caption}' (ignored)")
                skipped.append(caption)
                continue
            try:
                value = parse_filter_value(caption, raw)
            except InvalidFilterException as e:
                logger.warning(f"[ENCODER] {self.vendor} AI value for '{caption}' ignored: {e}")
                skipped.append(caption)
                continue
            clauses.extend(render_clauses(field_name, value, self.grammar))
        logger.info(f"[ENCODER] {self.vendor} details -> {len(clauses)} clause(s), skipped={skipped}")
        return EncodedQuery(self.grammar, tuple(clauses), tuple(skipped))
