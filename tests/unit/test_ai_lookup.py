"""ResilientClassifier (재시도 + 회로차단 + 캐시 + 허용 목록) 단위 테스트"""

import asyncio

import pytest

from partsearch.engine.ai_lookup import ResilientClassifier
from partsearch.engine.category import AiLookupStage, CategoryResolver, PrefixTableStage
from partsearch.engine.circuit_breaker import CircuitBreaker, CircuitState
from tests.fakes import FakeClassifier, no_sleep


VALID = {"luCeramicCapacitorsSMD", "luInductorWirewound"}


def make_ai(classifier, **kwargs):
    defaults = dict(valid_codes=VALID, attempts=3, wait_s=0.0, timeout_s=1.0, sleep=no_sleep)
    defaults.update(kwargs)
    return ResilientClassifier(classifier, "murata", **defaults)


@pytest.mark.asyncio
async def test_valid_answer_is_cached():
    classifier = FakeClassifier(category="luInductorWirewound")
    ai = make_ai(classifier)

    assert await ai.suggest_category("lqw18an") == "luInductorWirewound"
    assert await ai.suggest_category(" LQW18AN ") == "luInductorWirewound"
    assert classifier.category_calls == 1


@pytest.mark.asyncio
async def test_unknown_code_is_rejected_and_not_cached():
    classifier = FakeClassifier(category="luMadeUpCategory")
    ai = make_ai(classifier)

    assert await ai.suggest_category("GRM188") is None
    assert await ai.suggest_category("GRM188") is None
    assert classifier.category_calls == 2


@pytest.mark.asyncio
async def test_failure_retries_then_returns_none():
    classifier = FakeClassifier(error=RuntimeError("upstream 500"))
    ai = make_ai(classifier)

    assert await ai.suggest_category("GRM188") is None
    assert classifier.category_calls == 3


@pytest.mark.asyncio
async def test_classify_failure_returns_empty_dict():
    classifier = FakeClassifier(error=ValueError("not json"))
    ai = make_ai(classifier, attempts=1)
    assert await ai.classify("10uF 16V") == {}


@pytest.mark.asyncio
async def test_timeouts_open_breaker_and_resolution_falls_through_to_prefix():
    """AI가 계속 타임아웃이면 회로가 열리고, 이후 요청은 AI 호출 없이 prefix로 결정"""
    classifier = FakeClassifier(category="luCeramicCapacitorsSMD", delay_s=1.0)
    breaker = CircuitBreaker("murata-ai-category", failure_rate_threshold=0.5, window_size=4, min_calls=2)
    ai = make_ai(classifier, attempts=1, timeout_s=0.01, category_breaker=breaker)
    resolver = CategoryResolver(
        "murata",
        [AiLookupStage(ai), PrefixTableStage({"GRM": "luCeramicCapacitorsSMD"})],
    )

    assert await resolver.resolve_for_part("GRM0115C1C100GE01") == "luCeramicCapacitorsSMD"
    assert await resolver.resolve_for_part("GRM0335C1H1R0BA01") == "luCeramicCapacitorsSMD"
    assert breaker.state == CircuitState.OPEN
    calls_when_open = classifier.category_calls

    for pn in ("GRM155R71C104KA88", "GRM188R61A106KE69"):
        assert await resolver.resolve_for_part(pn) == "luCeramicCapacitorsSMD"
    assert classifier.category_calls == calls_when_open


@pytest.mark.asyncio
async def test_open_breaker_is_not_retried():
    classifier = FakeClassifier(error=RuntimeError("down"))
    breaker = CircuitBreaker("b", failure_rate_threshold=0.5, window_size=2, min_calls=1)
    ai = make_ai(classifier, attempts=5, category_breaker=breaker)

    assert await ai.suggest_category("GRM1") is None
    calls = classifier.category_calls
    assert await ai.suggest_category("GRM2") is None
    assert classifier.category_calls == calls


@pytest.mark.asyncio
async def test_concurrent_lookups_do_not_raise():
    classifier = FakeClassifier(category="luCeramicCapacitorsSMD")
    ai = make_ai(classifier)
    results = await asyncio.gather(*(ai.suggest_category(f"GRM{i}") for i in range(10)))
    assert set(results) == {"luCeramicCapacitorsSMD"}
