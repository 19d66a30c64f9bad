from __future__ import annotations

import json
from typing import Any

import anthropic

from app.config import settings
from app.llm.base import ChatTurn, LLMProvider


class ClaudeProvider(LLMProvider):
    def __init__(self) -> None:
        self.client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
        self._model = settings.anthropic_model

    @property
    def provider_name(self) -> str:
        return "claude"

    @property
    def model_name(self) -> str:
        return self._model

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        return await self.chat(system_prompt, [{"role": "user", "content": user_prompt}])

    async def complete_json(self, system_prompt: str, user_prompt: str) -> dict[str, Any]:
        raw_text = await self.complete(system_prompt, user_prompt)
        return self._parse_json_response(raw_text)

    async def chat(self, system_prompt: str, messages: list[ChatTurn]) -> str:
        response = await self.client.messages.create(
            model=self._model,
            max_tokens=settings.llm_max_tokens,
            temperature=settings.llm_temperature,
            system=system_prompt,
            messages=messages,
        )
        return response.content[0].text

    @staticmethod
    def _parse_json_response(text: str) -> dict[str, Any]:
        text = text.strip()
        if text.startswith("```"):
            text = text.split("\n", 1)[1]
            text = text.rsplit("```", 1)[0]
        return json.loads(text.strip())
