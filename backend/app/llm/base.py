from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

# {"role": "user" | "assistant", "content": str}
ChatTurn = dict[str, str]


class LLMProvider(ABC):
    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str) -> str: ...

    @abstractmethod
    async def complete_json(self, system_prompt: str, user_prompt: str) -> dict[str, Any]: ...

    @abstractmethod
    async def chat(self, system_prompt: str, messages: list[ChatTurn]) -> str: ...

    @property
    @abstractmethod
    def provider_name(self) -> str: ...

    @property
    @abstractmethod
    def model_name(self) -> str: ...
