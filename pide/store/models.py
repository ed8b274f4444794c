"""The selection record shared between editor writers and assistant readers."""

from __future__ import annotations

import time

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import STALE_AFTER_MS


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


class SelectionRecord(BaseModel):
    """What is currently focused in one editor instance.

    Serialized with the camelCase wire names (``startLine``/``endLine``);
    Python code uses the snake_case attributes.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    file: str = Field(min_length=1)
    selection: str | None = None
    start_line: int | None = Field(default=None, alias="startLine", ge=1)
    end_line: int | None = Field(default=None, alias="endLine", ge=1)
    ide: str | None = None
    timestamp: int

    @model_validator(mode="after")
    def _check_line_range(self) -> SelectionRecord:
        if (self.start_line is None) != (self.end_line is None):
            raise ValueError("startLine and endLine must be given together")
        if self.start_line is not None and self.end_line < self.start_line:
            raise ValueError("endLine must not be before startLine")
        return self

    @classmethod
    def create(
        cls,
        file: str,
        selection: str | None = None,
        start_line: int | None = None,
        end_line: int | None = None,
        ide: str | None = None,
        timestamp: int | None = None,
    ) -> SelectionRecord:
        """Build a record from raw editor state.

        An empty selection counts as no selection, and line numbers are only
        kept alongside selected text. Ranges selected upwards are swapped.
        """
        if not selection:
            selection = None
            start_line = end_line = None
        elif start_line is None or end_line is None:
            start_line = end_line = None
        elif start_line > end_line:
            start_line, end_line = end_line, start_line

        return cls(
            file=file,
            selection=selection,
            start_line=start_line,
            end_line=end_line,
            ide=ide,
            timestamp=now_ms() if timestamp is None else timestamp,
        )

    @property
    def has_range(self) -> bool:
        return self.start_line is not None and self.end_line is not None

    def is_stale(self, now: int | None = None, max_age_ms: int = STALE_AFTER_MS) -> bool:
        """True once the record is older than ``max_age_ms``."""
        current = now_ms() if now is None else now
        return current - self.timestamp > max_age_ms

    def to_wire(self) -> dict:
        """Return the JSON-ready dict with wire names and no empty fields."""
        return self.model_dump(by_alias=True, exclude_none=True)
