"""Editor event handling.

DocumentWatcher receives editor lifecycle events and keeps the
DiagnosticCollection in sync with the documents being edited.

Scans are debounced per document. Each event bumps the document's
generation; a scan publishes only if no newer event arrived while it was
running, so a slow scan of an old version can never overwrite the result
of a newer one.
"""

import asyncio
from typing import Dict, Optional

from ..models import TextDocument
from ..utils.logging import get_logger
from .diagnostics import DiagnosticCollection
from .scanner import DockerfileScanner

logger = get_logger(__name__)


class DocumentWatcher:
    """Drives rescans from editor events. Must be used inside a running event loop."""

    def __init__(
        self,
        scanner: DockerfileScanner,
        collection: DiagnosticCollection,
        debounce_seconds: float = 0.3,
    ):
        self.scanner = scanner
        self.collection = collection
        self.debounce_seconds = debounce_seconds
        self._generations: Dict[str, int] = {}
        self._tasks: Dict[str, asyncio.Task] = {}
        self._documents: Dict[str, TextDocument] = {}

    def activate(self, active_document: Optional[TextDocument] = None) -> None:
        """Scan the active document right away, if there is one."""
        if active_document is not None:
            self._schedule(active_document, delay=0)

    def on_active_editor_changed(self, document: Optional[TextDocument]) -> None:
        if document is not None:
            self._schedule(document, delay=0)

    def on_document_changed(self, document: TextDocument) -> None:
        self._schedule(document, delay=self.debounce_seconds)

    def on_document_closed(self, document: TextDocument) -> None:
        """Drop pending work, cached results and the document's diagnostics."""
        uri = document.uri
        self._next_generation(uri)
        self._cancel(uri)
        self.scanner.forget_document(self._documents.pop(uri, document))
        self.collection.delete(uri)

    def generation(self, uri: str) -> int:
        return self._generations.get(uri, 0)

    @property
    def pending(self) -> int:
        """Number of scheduled or running scans."""
        return sum(1 for task in self._tasks.values() if not task.done())

    async def wait_idle(self) -> None:
        """Wait until no scan is scheduled or running."""
        while True:
            tasks = [task for task in self._tasks.values() if not task.done()]
            if not tasks:
                return
            await asyncio.gather(*tasks, return_exceptions=True)

    def dispose(self) -> None:
        """Cancel all work and clear every published diagnostic and cached result."""
        for uri in list(self._tasks):
            self._next_generation(uri)
            self._cancel(uri)
        self._documents.clear()
        self.scanner.cache.clear()
        self.collection.clear()

    def _next_generation(self, uri: str) -> int:
        generation = self._generations.get(uri, 0) + 1
        self._generations[uri] = generation
        return generation

    def _cancel(self, uri: str) -> None:
        task = self._tasks.pop(uri, None)
        if task is not None and not task.done():
            task.cancel()

    def _schedule(self, document: TextDocument, delay: float) -> None:
        if not document.is_dockerfile:
            logger.debug(f"Ignoring non-Dockerfile document {document.uri}")
            return

        generation = self._next_generation(document.uri)
        self._cancel(document.uri)
        self._documents[document.uri] = document
        loop = asyncio.get_running_loop()
        self._tasks[document.uri] = loop.create_task(
            self._scan(document, generation, delay)
        )

    async def _scan(self, document: TextDocument, generation: int, delay: float) -> None:
        uri = document.uri
        if delay > 0:
            await asyncio.sleep(delay)

        loop = asyncio.get_running_loop()
        try:
            diagnostics = await loop.run_in_executor(None, self.scanner.scan_document, document)
        except asyncio.CancelledError:
            logger.debug(f"Scan of {uri} (generation {generation}) cancelled")
            raise
        except Exception as e:
            logger.error(f"Scan of {uri} failed: {e}")
            return

        if self._generations.get(uri) != generation:
            logger.debug(f"Discarding stale result for {uri} (generation {generation})")
            return

        self.collection.set(uri, diagnostics)
