"""partsearch - 전자부품 벤더 검색 엔진 (MPN / Parametric / Cross-Reference)"""

__version__ = "0.1.0"
