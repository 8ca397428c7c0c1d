"""리소스 파일(YAML) 로더 유틸리티"""
import os
import yaml
from typing import Any, Dict, List
from functools import lru_cache

from partsearch.core.logging import logger


def get_resource_path(relative_path: str) -> str:
    """패키지 리소스 디렉터리 기준 절대 경로 반환"""
    # partsearch/utils/resource_loader.py -> partsearch/utils -> partsearch
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(base_dir, "resources", relative_path)


@lru_cache(maxsize=32)
def load_yaml_resource(relative_path: str) -> Dict[str, Any]:
    """YAML 리소스 로드 및 캐싱"""
    path = get_resource_path(relative_path)
    if not os.path.exists(path):
        logger.warning(f"Resource not found: {path}")
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except Exception as e:
        logger.error(f"Failed to load YAML resource {path}: {e}")
        return {}


def load_vendor_configs(relative_path: str = "vendors.yaml") -> Dict[str, Dict[str, Any]]:
    """벤더별 설정 로드 (vendor 이름 → raw dict)"""
    data = load_yaml_resource(relative_path)
    vendors = data.get("vendors", {}) or {}
    return {str(name).lower(): (cfg or {}) for name, cfg in vendors.items()}


def load_filter_definitions(relative_path: str = "parametric_filters.yaml") -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    """Parametric 필터 정의 로드 (vendor → category code → [{caption, param, type}])"""
    data = load_yaml_resource(relative_path)
    result: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
    for vendor, categories in (data.get("filters", {}) or {}).items():
        per_vendor: Dict[str, List[Dict[str, Any]]] = {}
        for code, body in (categories or {}).items():
            per_vendor[str(code)] = list((body or {}).get("filters", []) or [])
        result[str(vendor).lower()] = per_vendor
    return result


def load_category_paths(relative_path: str = "category_paths.yaml") -> Dict[str, Dict[str, Dict[str, str]]]:
    """카테고리 경로 → 코드 테이블 로드

    Returns:
        {vendor: {"forward": {path: code}, "cross_reference": {keyword: code}}}
    """
    data = load_yaml_resource(relative_path)
    result: Dict[str, Dict[str, Dict[str, str]]] = {}
    for vendor, tables in (data.get("category_paths", {}) or {}).items():
        tables = tables or {}
        result[str(vendor).lower()] = {
            "forward": {str(e["path"]): str(e["code"]) for e in tables.get("forward", []) or []},
            "cross_reference": {str(e["path"]): str(e["code"]) for e in tables.get("cross_reference", []) or []},
        }
    return result
