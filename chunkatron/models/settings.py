"""Scheduler configuration model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.enums import DataFormat, HTTPMethod, RequestEncoding
from ..core.exceptions import ConfigurationError


class ChunkatronSettings(BaseModel):
    """Settings for a chunked download run.

    Either ``chunks`` or ``chunks_url`` supplies the work. Both are optional at
    the model level because a caller may provide its own chunk source port;
    the facade enforces that exactly one source exists.
    """

    url: str | None = None
    base_url: str | None = None
    chunks: list[list[Any]] | None = None
    chunks_url: str | None = None
    data_format: DataFormat = DataFormat.JSON
    method: HTTPMethod = HTTPMethod.POST
    request_encoding: RequestEncoding = RequestEncoding.JSON
    max_download_retries: int = Field(default=3, ge=0)
    concurrent_downloads_max: int = Field(default=10, gt=0)
    fetch_timeout: float | None = Field(default=None, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    verbose: bool = False

    @field_validator("chunks")
    @classmethod
    def validate_chunks(cls, v: list[list[Any]] | None) -> list[list[Any]] | None:
        """Every chunk needs a first identifier."""
        if v is not None:
            for index, chunk in enumerate(v):
                if not chunk:
                    raise ValueError(f"chunk {index} is empty")
        return v

    @field_validator("url", "base_url", "chunks_url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            raise ValueError("url must not be blank")
        return v

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="forbid")

    @classmethod
    def build(cls, **options: Any) -> ChunkatronSettings:
        """Validate options, surfacing failures as ConfigurationError."""
        try:
            return cls(**options)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings: {e}") from e

    def merged(self, **overrides: Any) -> ChunkatronSettings:
        """Return a copy with ``overrides`` applied and re-validated."""
        if not overrides:
            return self
        return self.build(**{**self.model_dump(), **overrides})
