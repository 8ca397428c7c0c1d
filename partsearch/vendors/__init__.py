"""벤더별 전략 빌더 (VendorConfig.kind → builder)"""

from .kemet import build_kemet
from .murata import build_murata
from .tdk import build_tdk

BUILDERS = {
    "murata": build_murata,
    "tdk": build_tdk,
    "kemet": build_kemet,
}

__all__ = ["BUILDERS", "build_murata", "build_tdk", "build_kemet"]
