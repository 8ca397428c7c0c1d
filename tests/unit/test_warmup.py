"""SessionWarmup 단위 테스트 (single-flight + 상수 추출)"""

import asyncio

import pytest

from partsearch.crawlers.http_client import HttpExecutor
from partsearch.crawlers.warmup import SessionWarmup, extract_constants, has_all_markers
from partsearch.engine.session import SessionContext
from tests.fakes import FakeResponse


NAMES = ("site", "group", "design")
DEFAULTS = {"site": "FBNXDO0R", "group": "tdk_pdc_en", "design": "producttdkcom-en"}
ENTRY_PAGE = b'<script>var cfg = {site: "SITE42", group : "tdk_pdc_jp", design: "producttdkcom-jp"};</script>'


def make_warmup(factory, session=None):
    session = session or SessionContext.with_defaults("tdk", DEFAULTS)
    http = HttpExecutor("tdk", "https://product.tdk.com", session, session_factory=factory)
    return SessionWarmup(
        http, session, "https://product.tdk.com/en/search/list", NAMES, DEFAULTS, timeout_s=1.0, max_bytes=4096
    ), session


def test_extract_constants_with_fallback():
    found = extract_constants('site: "S1" design:"D1"', NAMES, DEFAULTS)
    assert found == {"site": "S1", "group": "tdk_pdc_en", "design": "D1"}


def test_has_all_markers():
    assert has_all_markers('site: "a" group: "b" design: "c"', NAMES)
    assert not has_all_markers('site: "a"', NAMES)


@pytest.mark.asyncio
async def test_concurrent_first_requests_share_one_warmup(fake_session_factory):
    def handler(method, url, kwargs):
        return FakeResponse(chunks=[ENTRY_PAGE[:30], ENTRY_PAGE[30:]], chunk_delay_s=0.01, cookies={"bm_sv": "x"})

    session_fake, factory = fake_session_factory(handler)
    warmup, session = make_warmup(factory)

    await asyncio.gather(*(warmup.ensure_warmed_up() for _ in range(8)))
    await warmup.ensure_warmed_up()

    assert len(session_fake.stream_calls) == 1
    assert warmup.attempts == 1
    assert session.constants == {"site": "SITE42", "group": "tdk_pdc_jp", "design": "producttdkcom-jp"}
    assert session.cookies == {"bm_sv": "x"}


@pytest.mark.asyncio
async def test_failed_warmup_keeps_defaults(fake_session_factory):
    session_fake, factory = fake_session_factory(lambda m, u, kw: ConnectionError("reset"))
    warmup, session = make_warmup(factory)

    await warmup.ensure_warmed_up()
    await warmup.ensure_warmed_up()

    assert session.constants == DEFAULTS
    assert warmup.attempts == 1


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_shared_warmup(fake_session_factory):
    def handler(method, url, kwargs):
        return FakeResponse(chunks=[ENTRY_PAGE], chunk_delay_s=0.05)

    _, factory = fake_session_factory(handler)
    warmup, session = make_warmup(factory)

    impatient = asyncio.ensure_future(warmup.ensure_warmed_up())
    await asyncio.sleep(0.01)
    impatient.cancel()
    with pytest.raises(asyncio.CancelledError):
        await impatient

    await warmup.ensure_warmed_up()
    assert session.constant("site") == "SITE42"
    assert warmup.attempts == 1
