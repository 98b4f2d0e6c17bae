"""
library-wide options.

    >>> import apinqy
    >>> apinqy.configure(log_level="DEBUG", observer_buffer_limit=1000)
    >>> apinqy.get_options().observer_buffer_limit
    1000
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Options(BaseModel):
    """validated, immutable option set. replace it through configure()."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    log_level: Optional[str] = Field(default=None, description="level applied to the 'apinqy' logger; None leaves it alone")
    observer_buffer_limit: Optional[PositiveInt] = Field(
        default=None,
        description="max values a from_observable adapter queues between advances; None is unbounded",
    )
    numpy_reductions: bool = Field(default=True, description="let stats.sum reduce numeric data with numpy")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        level = str(v).upper()
        if level not in _LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LEVELS)}, got {v!r}")
        return level


_options = Options()


def get_options() -> Options:
    """the active options"""
    return _options


def configure(**overrides) -> Options:
    """validate overrides on top of the active options and make the result active"""
    global _options
    options = Options(**{**_options.model_dump(), **overrides})
    if options.log_level is not None:
        logging.getLogger("apinqy").setLevel(options.log_level)
    _options = options
    return options
