"""OpenAI 호환 Chat Completions 어댑터

두 가지 질의만 제공합니다.
- suggest_category(identifier): 부품번호 → 벤더 카테고리 코드 (문자열 하나)
- classify(text): 자유 서술 필터 → {caption: value} JSON

재시도/회로차단/검증은 engine.ai_lookup.ResilientClassifier가 담당하고,
이 모듈은 실패 시 예외를 그대로 올립니다.
"""

from __future__ import annotations

import json
from typing import Any, Optional, Sequence

from openai import AsyncOpenAI

from partsearch.core.config import settings
from partsearch.core.logging import logger, sanitize_for_log


CATEGORY_SYSTEM_PROMPT = (
    "You are an expert on the {vendor} parametric product search API. Given the part number, "
    "return ONLY the exact value of the category code query parameter you would use on {endpoint}. "
    "Example: {example}. Do not include any extra text or punctuation."
)

CLASSIFY_SYSTEM_PROMPT = (
    "You convert a free-text component requirement into search filters. "
    "Return ONLY a JSON object. Keys are filter captions{caption_hint}. "
    "Values are a string or number, a list of strings for multiple choices, "
    'or an object {{"min": x, "max": y}} for ranges (omit a bound that is not given).'
)


class OpenAICategoryClassifier:
    def __init__(
        self,
        vendor: str,
        endpoint: str,
        example_code: str = "",
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        self.vendor = vendor
        self.endpoint = endpoint
        self.example_code = example_code
        self._model = model or settings.openai_model
        self._client = client or AsyncOpenAI(
            api_key=api_key or settings.openai_api_key,
            base_url=base_url or settings.openai_base_url,
            max_retries=0,
        )

    async def _complete(self, system: str, user: str, *, json_mode: bool = False) -> str:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": 0,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = await self._client.chat.completions.create(**kwargs)
        content = response.choices[0].message.content if response.choices else None
        return (content or "").strip()

    async def suggest_category(self, identifier: str) -> str:
        system = CATEGORY_SYSTEM_PROMPT.format(
            vendor=self.vendor, endpoint=self.endpoint, example=self.example_code or "n/a"
        )
        answer = await self._complete(system, f'Part number: "{identifier}"')
        logger.debug(f"[AI] {self.vendor} suggest_category({identifier}) -> {sanitize_for_log(answer)}")
        return answer.strip().strip('"').strip("'").strip()

    async def classify(self, text: str, captions: Sequence[str] = ()) -> dict[str, Any]:
        hint = ""
        if captions:
            hint = " chosen from this list: " + json.dumps(list(captions), ensure_ascii=False)
        system = CLASSIFY_SYSTEM_PROMPT.format(caption_hint=hint)
        raw = await self._complete(system, text, json_mode=True)
        logger.debug(f"[AI] {self.vendor} classify({sanitize_for_log(text, 60)}) -> {sanitize_for_log(raw, 200)}")
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError(f"classification answer is not a JSON object: {type(parsed).__name__}")
        return parsed

    async def close(self) -> None:
        await self._client.close()
