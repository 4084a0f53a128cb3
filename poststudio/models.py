"""
Pydantic models for the generation payload.

The ``result`` event carries one GenerationResult serialised as JSON. Every
field is optional on the wire: absent or ``null`` values fall back to empty
defaults so the renderer never has to guard against them.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ModerationResult(BaseModel):
    """Moderation verdict for the suggested post."""

    flagged: bool = False
    categories: dict[str, bool] = Field(default_factory=dict)
    scores: dict[str, float] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("scores", "category_scores"),
    )

    @field_validator("flagged", mode="before")
    @classmethod
    def _none_to_false(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("categories", "scores", mode="before")
    @classmethod
    def _none_to_empty_map(cls, value: Any) -> Any:
        return {} if value is None else value


class SummaryResult(BaseModel):
    """Summary, keywords, bullets and a suggested post for a topic."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str = ""
    suggested_post: str = Field(
        default="",
        validation_alias=AliasChoices("suggested_post", "suggestedPost"),
    )
    keywords: list[str] = Field(default_factory=list)
    bullets: list[str] = Field(default_factory=list)

    @field_validator("summary", "suggested_post", mode="before")
    @classmethod
    def _none_to_empty_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("keywords", "bullets", mode="before")
    @classmethod
    def _none_to_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value


class SourceItem(BaseModel):
    """A single source post shown in the feed. Identity is positional."""

    model_config = ConfigDict(populate_by_name=True)

    author_name: str = Field(default="", alias="authorName")
    author_username: str = Field(default="", alias="authorUsername")
    text: str = ""
    created_at: str = Field(default="", alias="createdAt")

    @field_validator("author_name", "author_username", "text", "created_at", mode="before")
    @classmethod
    def _none_to_empty_text(cls, value: Any) -> Any:
        return "" if value is None else value


class GenerationResult(BaseModel):
    """Terminal payload of a generation session."""

    model_config = ConfigDict(populate_by_name=True)

    topic: str = ""
    generated_at: str = ""
    model: str = ""
    cache: bool = False
    moderation: ModerationResult = Field(default_factory=ModerationResult)
    summary: SummaryResult = Field(default_factory=SummaryResult)
    items: list[SourceItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("items", "tweets"),
    )

    @field_validator("moderation", "summary", mode="before")
    @classmethod
    def _none_to_empty_model(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("items", mode="before")
    @classmethod
    def _none_to_empty_list(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("topic", "generated_at", "model", mode="before")
    @classmethod
    def _none_to_empty_text(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_wire(self) -> str:
        """Serialise with the wire field names used on the ``result`` event."""
        return self.model_dump_json(by_alias=True)
