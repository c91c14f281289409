from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject_domain: str
    excluded_titles: List[str] = Field(default_factory=list)

    @field_validator("excluded_titles", mode="before")
    @classmethod
    def _clean_excluded_titles(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            return []
        return [str(item).strip() for item in value if str(item).strip()]


class TitleCandidateSet(BaseModel):
    titles: List[str] = Field(default_factory=list)


class ArticleDraft(BaseModel):
    title: str = Field(min_length=1)
    body: str = Field(min_length=1)
    excerpt: str = Field(min_length=1)

    @field_validator("title", "body", "excerpt")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class RenderedLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    vertical_offset: float


class PipelineResult(BaseModel):
    ok: bool
    stage: str
    dry_run: bool = False
    domain: Optional[str] = None
    title: Optional[str] = None
    media_id: Optional[int] = None
    post_url: Optional[str] = None
    image_path: Optional[str] = None
    history_recorded: bool = False
    error: Optional[str] = None


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    details: Optional[Dict[str, Any]] = None
