"""Field-name matching.

One normalization step shared by field lookup and strict-mode extras
computation, so the two can never disagree about which input key fed a field.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, Iterable, Mapping

_MISSING = object()


def textual_form(key: Hashable) -> str:
    """Text form of an input key: str as-is, bytes decoded, Enum by value."""
    if isinstance(key, str): return key
    if isinstance(key, Enum): return textual_form(key.value)
    if isinstance(key, (bytes, bytearray)): return bytes(key).decode("utf-8", errors="replace")
    return str(key)


@dataclass(frozen=True, slots=True)
class KeyMatcher:
    case_sensitive: bool = True

    def normalize(self, key: Hashable) -> str:
        text = textual_form(key)
        return text if self.case_sensitive else text.casefold()

    def lookup(self, data: Mapping[Any, Any], name: str) -> tuple[Any, Any]:
        """Find ``name`` in ``data``: native key first, then textual form.

        Returns ``(input_key, value)``; ``input_key`` is None when absent.
        """
        if (value := data.get(name, _MISSING)) is not _MISSING:
            return name, value
        wanted = self.normalize(name)
        for key, value in data.items():
            if self.normalize(key) == wanted:
                return key, value
        return None, None

    def unmatched(self, data: Mapping[Any, Any], consumed: Iterable[Hashable]) -> list[str]:
        """Textual forms of input keys other than the ``consumed`` ones.

        ``consumed`` holds the actual input keys returned by ``lookup``, so a
        second spelling of a consumed field is still reported.
        """
        taken = set(consumed)
        return sorted({textual_form(key) for key in data if key not in taken})
