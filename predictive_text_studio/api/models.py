"""Keyman catalog response parsing.

WHY: The Keyman language endpoint returns loosely shaped JSON. The rest
of the package wants a flat list of KeyboardData (language name plus
BCP-47 tag), so the parsing lives here, next to the client.

HOW: LanguageRecord.from_dict() maps one JSON object; parse_language_list()
accepts either a bare list or an object wrapping the list under
"languages" and returns KeyboardData in response order.

RULES:
- Each item needs "name" and "id" (the BCP-47 tag)
- Items missing either field, or with an empty one, are skipped
- Any other top-level shape is a KeymanAPIError
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from predictive_text_studio.core.types import KeyboardData


class KeymanAPIError(Exception):
    """Raised when the Keyman API returns an error or an unusable response.

    RULES:
    - Always carries status_code and message
    - status_code is 0 when the HTTP exchange succeeded but the body was unusable
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Keyman API error {status_code}: {message}")


@dataclass
class LanguageRecord:
    """One language object from the Keyman catalog."""

    name: str
    id: str

    @classmethod
    def from_dict(cls, data: dict) -> Optional[LanguageRecord]:
        name = data.get("name")
        tag = data.get("id")
        if not name or not tag:
            return None
        return cls(name=str(name), id=str(tag))

    def to_keyboard_data(self) -> KeyboardData:
        return KeyboardData(language=self.name, bcp47_tag=self.id)


def parse_language_list(payload: Any) -> list[KeyboardData]:
    """Turn a catalog response body into KeyboardData entries."""
    if isinstance(payload, dict):
        payload = payload.get("languages")
    if not isinstance(payload, list):
        raise KeymanAPIError(0, "Unexpected catalog response shape")

    entries: list[KeyboardData] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        record = LanguageRecord.from_dict(item)
        if record is not None:
            entries.append(record.to_keyboard_data())
    return entries
