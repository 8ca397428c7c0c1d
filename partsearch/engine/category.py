"""CategoryResolver - 벤더 카테고리 코드 결정 (순서 있는 폴백 체인)

부품번호 기준:  live discovery → AI lookup → prefix table → default
경로 기준:      category/subcategory 경로 매칭 → default
cross-reference: discovery → 경로 키워드 매칭 → prefix table → default
둘 다 실패하고 기본값도 없으면 CategoryMappingException (체인에서 유일한 하드 실패).
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from partsearch.core.exceptions import CategoryMappingException
from partsearch.core.logging import logger
from partsearch.crawlers.http_client import Document, HttpExecutor
from partsearch.engine.ai_lookup import ResilientClassifier
from partsearch.utils.text import PREFIX_LENGTH, part_prefix
from partsearch.utils.url import build_url


PATH_DELIMITER = "/"


class CategoryStage(Protocol):
    name: str

    async def resolve(self, identifier: str) -> Optional[str]:
        ...


def first_category(doc: Document, array_key: str) -> Optional[str]:
    """첫 결과의 첫 자식 category_id, 없으면 첫 결과 자신의 category_id"""
    nodes = doc.get(array_key) if doc else None
    if not isinstance(nodes, list) or not nodes:
        return None
    first = nodes[0]
    if not isinstance(first, Mapping):
        return None
    children = first.get("children")
    if isinstance(children, list) and children and isinstance(children[0], Mapping):
        child_code = str(children[0].get("category_id") or "").strip()
        if child_code:
            return child_code
    code = str(first.get("category_id") or "").strip()
    return code or None


class DiscoveryStage:
    """사이트 검색 엔드포인트로 카테고리 탐색"""

    name = "discovery"

    def __init__(
        self,
        http: HttpExecutor,
        base_url: str,
        path: str,
        *,
        array_key: str = "categories",
        query_param: str = "q",
        params: Optional[Mapping[str, str]] = None,
        min_length: int = PREFIX_LENGTH,
    ) -> None:
        self.http = http
        self.base_url = base_url
        self.path = path
        self.array_key = array_key
        self.query_param = query_param
        self.params = dict(params or {})
        self.min_length = min_length

    def build_uri(self, identifier: str) -> str:
        pairs = list(self.params.items())
        # op=AND 다음에 검색어가 오도록 순서 유지
        pairs.insert(min(1, len(pairs)), (self.query_param, identifier))
        return build_url(self.base_url, self.path, pairs)

    async def resolve(self, identifier: str) -> Optional[str]:
        if len(identifier.strip()) < self.min_length:
            return None
        doc = await self.http.get(self.build_uri(identifier.strip()))
        return first_category(doc, self.array_key)


class AiLookupStage:
    name = "ai"

    def __init__(self, ai: ResilientClassifier) -> None:
        self.ai = ai

    async def resolve(self, identifier: str) -> Optional[str]:
        return await self.ai.suggest_category(identifier)


class PrefixTableStage:
    name = "prefix"

    def __init__(self, table: Mapping[str, str], length: int = PREFIX_LENGTH) -> None:
        self.table = {str(k).strip().upper(): str(v) for k, v in table.items()}
        self.length = length

    async def resolve(self, identifier: str) -> Optional[str]:
        prefix = part_prefix(identifier, self.length)
        if not prefix:
            return None
        return self.table.get(prefix)


def normalize_path(category: Optional[str], subcategory: Optional[str] = None) -> str:
    parts = [p.strip() for p in (category, subcategory) if p and p.strip()]
    return PATH_DELIMITER.join(parts).lower()


class CategoryResolver:
    def __init__(
        self,
        vendor: str,
        stages: Sequence[CategoryStage] = (),
        *,
        path_table: Optional[Mapping[str, str]] = None,
        path_match: str = "prefix",
        path_before: Optional[str] = None,
        default: Optional[str] = None,
    ) -> None:
        if path_match not in ("prefix", "keyword"):
            raise ValueError(f"Unsupported path_match: {path_match}")
        self.vendor = vendor
        self.stages = list(stages)
        self.path_table = {k.strip().lower(): v for k, v in (path_table or {}).items() if k and v}
        self.path_match = path_match
        # 이 이름의 스테이지 직전에 경로 매칭 (None이면 모든 스테이지 뒤)
        self.path_before = path_before
        self.default = (default or "").strip() or None

    async def resolve_for_part(self, part_number: str) -> str:
        return await self.resolve(part_number=part_number)

    def resolve_for_path(self, category: Optional[str], subcategory: Optional[str] = None) -> str:
        path = normalize_path(category, subcategory)
        code = self._path_code(path)
        if code:
            return code
        return self._default_or_fail(path)

    async def resolve(
        self,
        part_number: Optional[str] = None,
        category: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> str:
        """부품번호 스테이지와 경로 매칭을 순서대로 시도, 모두 실패하면 기본값"""
        identifier = (part_number or "").strip()
        path = normalize_path(category, subcategory)
        path_tried = False

        for stage in self.stages if identifier else ():
            if not path_tried and stage.name == self.path_before:
                path_tried = True
                code = self._path_code(path)
                if code:
                    return code
            code = await self._run_stage(stage, identifier)
            if code:
                return code

        if not path_tried:
            code = self._path_code(path)
            if code:
                return code

        return self._default_or_fail(identifier or path)

    async def _run_stage(self, stage: CategoryStage, identifier: str) -> Optional[str]:
        try:
            code = await stage.resolve(identifier)
        except Exception as e:
            logger.warning(
                f"[CATEGORY] {self.vendor} stage '{stage.name}' error for {identifier}: "
                f"{type(e).__name__}: {e}"
            )
            return None
        if code:
            logger.info(f"[CATEGORY] {self.vendor} {identifier} -> {code} (via {stage.name})")
        return code

    def _path_code(self, path: str) -> Optional[str]:
        code = self.match_path(path)
        if code:
            logger.info(f"[CATEGORY] {self.vendor} path '{path}' -> {code}")
        return code

    def match_path(self, path: str) -> Optional[str]:
        if not path:
            return None
        exact = self.path_table.get(path)
        if exact:
            return exact
        if self.path_match == "prefix":
            candidates = [k for k in self.path_table if path.startswith(k + PATH_DELIMITER)]
        else:
            candidates = [k for k in self.path_table if k in path]
        if not candidates:
            return None
        return self.path_table[max(candidates, key=len)]

    def _default_or_fail(self, subject: Any) -> str:
        if self.default:
            logger.info(f"[CATEGORY] {self.vendor} {subject!r} -> {self.default} (default)")
            return self.default
        raise CategoryMappingException(self.vendor, str(subject))
