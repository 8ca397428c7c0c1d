"""요청 스키마 검증 테스트"""

import pytest
from pydantic import ValidationError

from partsearch.schemas.search_schema import (
    CrossReferenceRequest,
    MpnSearchRequest,
    ParametricSearchRequest,
)


def test_vendor_is_normalized():
    assert MpnSearchRequest(vendor=" Murata ", mpn=" GRM188 ").vendor == "murata"
    assert MpnSearchRequest(vendor="murata", mpn=" GRM188 ").mpn == "GRM188"


def test_parametric_defaults():
    req = ParametricSearchRequest(vendor="murata")
    assert req.max_results == 100
    assert req.parameters == {}


@pytest.mark.parametrize("max_results", [0, -1])
def test_max_results_must_be_positive(max_results):
    with pytest.raises(ValidationError):
        ParametricSearchRequest(vendor="murata", max_results=max_results)


def test_parameter_shapes_validated_at_boundary():
    ok = ParametricSearchRequest(
        vendor="murata",
        parameters={"Capacitance": {"min": 1}, "Series": ["GRM"], "New": True, "mpn": "GRM", "details": "x"},
    )
    assert ok.parameters["Capacitance"] == {"min": 1}

    with pytest.raises(ValidationError):
        ParametricSearchRequest(vendor="murata", parameters={"Capacitance": {"from": 1}})
    with pytest.raises(ValidationError):
        ParametricSearchRequest(vendor="murata", parameters={"Capacitance": None})


def test_cross_reference_requires_competitor_mpn():
    with pytest.raises(ValidationError):
        CrossReferenceRequest(vendor="murata", competitor_mpn="  ")
