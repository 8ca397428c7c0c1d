"""OpenAICategoryClassifier 단위 테스트 (AsyncOpenAI는 mock)"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from partsearch.core.logging import sanitize_for_log
from partsearch.crawlers.ai_client import OpenAICategoryClassifier


def completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def make_client(content):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion(content))
    client.close = AsyncMock()
    return client


@pytest.mark.asyncio
async def test_suggest_category_strips_quotes():
    client = make_client(' "luCeramicCapacitorsSMD" ')
    classifier = OpenAICategoryClassifier(
        "murata", "https://www.murata.com/webapi/PsdispRest", "luCeramicCapacitorsSMD", client=client, model="m"
    )

    assert await classifier.suggest_category("GRM188") == "luCeramicCapacitorsSMD"
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "m"
    assert kwargs["temperature"] == 0
    assert "GRM188" in kwargs["messages"][1]["content"]


@pytest.mark.asyncio
async def test_classify_parses_json_object():
    client = make_client('{"Capacitance": {"min": 1, "max": 10}}')
    classifier = OpenAICategoryClassifier("murata", "endpoint", client=client)

    answer = await classifier.classify("1 to 10 pF", ["Capacitance"])

    assert answer == {"Capacitance": {"min": 1, "max": 10}}
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert "Capacitance" in kwargs["messages"][0]["content"]


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["not json", "[1, 2]"])
async def test_classify_rejects_non_object(content):
    classifier = OpenAICategoryClassifier("murata", "endpoint", client=make_client(content))
    with pytest.raises(ValueError):
        await classifier.classify("anything")


@pytest.mark.asyncio
async def test_close():
    client = make_client("")
    await OpenAICategoryClassifier("murata", "endpoint", client=client).close()
    client.close.assert_awaited_once()


@pytest.mark.parametrize(
    "value, expected",
    [
        ("sk-live-1234567890", "***"),
        ("Authorization: Bearer abc", "***"),
        ("", "[empty]"),
        ("luCeramicCapacitorsSMD", "luCeramicCapacitorsSMD"),
    ],
)
def test_sanitize_for_log_masks_keys(value, expected):
    assert sanitize_for_log(value) == expected


def test_sanitize_for_log_truncates():
    assert sanitize_for_log("x" * 30, max_length=10) == "x" * 10 + "..."
