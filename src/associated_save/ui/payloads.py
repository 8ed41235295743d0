"""Pydantic models describing payload documents read by the CLI."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, cast

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

if TYPE_CHECKING:
    from pathlib import Path


class PayloadDocument(BaseModel):
    """A submitted payload: a JSON list of objects (or nulls for blank rows).

    The list may also be wrapped as ``{"entries": [...]}``.
    """

    model_config = ConfigDict(extra="forbid")

    entries: list[dict[str, Any] | None] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _wrap_bare_list(cls, value: object) -> object:
        if isinstance(value, list):
            return {"entries": value}
        return value

    @field_validator("entries", mode="before")
    @classmethod
    def _stringify_keys(cls, value: object) -> object:
        if not isinstance(value, list):
            return value
        entries: list[object] = []
        for item in cast(list[object], value):
            if isinstance(item, Mapping):
                mapping = cast(Mapping[object, object], item)
                entries.append({str(key): entry for key, entry in mapping.items()})
            else:
                entries.append(item)
        return entries


def load_payload_document(path: Path) -> PayloadDocument:
    """Read and validate a payload document from ``path``."""

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    return PayloadDocument.model_validate(raw)
