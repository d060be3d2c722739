from __future__ import annotations

import time

from city_research.config import settings
from city_research.errors import UnknownCategoryError
from city_research.llm_client import (
    TextGenerationClient,
    client as llm_client,
    first_message_content,
    get_model,
    usage_tokens,
)
from city_research.models.research import CATEGORY_ELEMENT_TYPES
from city_research.services import logger as log_service
from city_research.services.prompt_store import category_prompt, system_prompt


class CategoryResearcher:
    """Builds a category prompt and asks the text-generation service for items.

    Client errors propagate unchanged; isolating them is the coordinator's job.
    """

    def __init__(
        self,
        client: TextGenerationClient | None = None,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ):
        self._client = client
        self.model = model or get_model()
        self.max_tokens = max_tokens or settings.research_max_tokens
        self.temperature = (
            settings.research_temperature if temperature is None else temperature
        )

    @property
    def client(self) -> TextGenerationClient:
        if self._client is None:
            self._client = llm_client()
        return self._client

    @staticmethod
    def supports(category: str) -> bool:
        return category in CATEGORY_ELEMENT_TYPES

    def build_prompt(self, category: str, city_name: str, custom_prompt: str | None = None) -> str:
        element_type = CATEGORY_ELEMENT_TYPES.get(category)
        if element_type is None:
            raise UnknownCategoryError(category)
        return category_prompt(element_type, city_name, custom_prompt)

    def build_messages(
        self, category: str, city_name: str, custom_prompt: str | None = None
    ) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt()},
            {"role": "user", "content": self.build_prompt(category, city_name, custom_prompt)},
        ]

    async def fetch(self, category: str, city_name: str, custom_prompt: str | None = None) -> str:
        messages = self.build_messages(category, city_name, custom_prompt)
        started = time.perf_counter()
        try:
            response = await self.client.complete(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except Exception as exc:
            log_service.log_llm_call(
                model=self.model,
                caller=f"research.{category}",
                duration_ms=int((time.perf_counter() - started) * 1000),
                status="error",
                error=str(exc),
            )
            raise

        input_tokens, output_tokens = usage_tokens(response)
        log_service.log_llm_call(
            model=self.model,
            caller=f"research.{category}",
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return first_message_content(response)
