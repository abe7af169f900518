"""Per-document diagnostic storage."""

from typing import Callable, Dict, Iterator, List, Optional

from ..models import Diagnostic
from ..utils.logging import get_logger

logger = get_logger(__name__)

Publisher = Callable[[str, List[Diagnostic]], None]


class DiagnosticCollection:
    """
    Diagnostics keyed by document URI.

    Every set replaces the document's previous diagnostics; nothing is
    merged. The optional publisher sees each change, with an empty list
    for deletions.
    """

    def __init__(self, name: str = "basescan", publisher: Optional[Publisher] = None):
        self.name = name
        self.publisher = publisher
        self._entries: Dict[str, List[Diagnostic]] = {}

    def _publish(self, uri: str, diagnostics: List[Diagnostic]) -> None:
        if self.publisher is not None:
            self.publisher(uri, list(diagnostics))

    def set(self, uri: str, diagnostics: List[Diagnostic]) -> None:
        """Replace the diagnostics of a document; an empty list clears it."""
        if diagnostics:
            self._entries[uri] = list(diagnostics)
        else:
            self._entries.pop(uri, None)
        logger.debug(f"{uri}: {len(diagnostics)} diagnostic(s)")
        self._publish(uri, diagnostics)

    def get(self, uri: str) -> List[Diagnostic]:
        return list(self._entries.get(uri, []))

    def delete(self, uri: str) -> None:
        """Remove everything published for a document."""
        if self._entries.pop(uri, None) is not None:
            logger.debug(f"{uri}: diagnostics removed")
        self._publish(uri, [])

    def clear(self) -> None:
        """Remove the diagnostics of every document."""
        for uri in list(self._entries):
            self.delete(uri)

    def __contains__(self, uri: str) -> bool:
        return uri in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
