from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from city_research.models.research import DEFAULT_CATEGORIES


# --- Requests ---


class ResearchRequest(BaseModel):
    city_id: str
    city_name: str
    categories: list[str] = Field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    custom_prompt: str | None = None

    @field_validator("city_id", "city_name")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("categories")
    @classmethod
    def _default_when_empty(cls, value: list[str]) -> list[str]:
        cleaned = [c.strip() for c in value if c and c.strip()]
        return cleaned or list(DEFAULT_CATEGORIES)

    @field_validator("custom_prompt")
    @classmethod
    def _blank_prompt_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value


# --- Responses ---


class ElementValueResponse(BaseModel):
    name: str
    description: str
    source: str


class ElementResponse(BaseModel):
    city_id: str
    element_type: str
    element_key: str
    element_value: ElementValueResponse
    status: str


class ResearchResponse(BaseModel):
    elements: list[ElementResponse]
    synthesis: str
    savedToDatabase: bool
    warning: str | None = None
