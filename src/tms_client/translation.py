"""Protocols for the local translation storage collaborators.

The client never inspects translation entries. Readers and writers are opaque
handles that the translation manager moves entries between; the client only
decides when that happens relative to the remote job.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class TranslationReader(Protocol):
    """Source of translation entries (a database, or the downloaded import file)."""


@runtime_checkable
class TranslationWriter(Protocol):
    """Sink of translation entries (the export staging file, or local storage)."""


class TranslationManager(Protocol):
    def copy_translations(self, reader: TranslationReader, writer: TranslationWriter) -> None: ...

    def get_languages(self) -> Sequence[str]: ...


__all__ = ["TranslationManager", "TranslationReader", "TranslationWriter"]
