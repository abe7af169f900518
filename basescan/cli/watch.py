"""CLI that watches Dockerfiles on disk and rescans them on change.

File system events stand in for editor events: the first Dockerfile seen
activates the watcher, other new files count as focused editors, modified
files as text changes and removed files as closed documents.
"""

import argparse
import asyncio
import os
from typing import Any, Callable, Dict, List, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..core.diagnostics import DiagnosticCollection
from ..core.scanner import build_scanner
from ..core.watcher import DocumentWatcher
from ..models import Diagnostic, TextDocument
from ..utils.logging import get_logger
from .options import add_common_arguments, configure, discover_dockerfiles, format_diagnostic

logger = get_logger(__name__)

Dispatch = Callable[[str, str], None]


def create_watch_parser(subparsers: Any) -> argparse.ArgumentParser:
    """Create the watch subparser."""
    parser = subparsers.add_parser(
        "watch",
        help="Rescan Dockerfiles whenever they change",
        description="""
Watch Dockerfiles (or directories containing them) and print fresh
diagnostics every time a file changes. Rapid successive changes are
debounced; results of superseded scans are discarded.
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Watch a single Dockerfile
  basescan watch Dockerfile

  # Watch a project tree
  basescan watch .
""",
    )

    parser.add_argument(
        "paths",
        nargs="+",
        help="Dockerfiles or directories to watch",
    )
    add_common_arguments(parser)

    return parser


def print_publication(uri: str, diagnostics: List[Diagnostic]) -> None:
    """Publisher that writes every diagnostic change to stdout."""
    path = TextDocument(uri=uri, text="").path or uri
    if not diagnostics:
        print(f"{path}: no diagnostics", flush=True)
        return
    for diagnostic in diagnostics:
        print(format_diagnostic(path, diagnostic), flush=True)


class DockerfileEventHandler(FileSystemEventHandler):
    """
    Forward file events for watched Dockerfiles to the event loop.

    watchdog calls the handler from its observer thread; every event is
    handed to the loop with ``call_soon_threadsafe``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop, dispatch: Dispatch, paths: List[str]):
        self.loop = loop
        self.dispatch = dispatch
        self.directories = [os.path.abspath(p) for p in paths if os.path.isdir(p)]
        self.files = {os.path.abspath(p) for p in paths if not os.path.isdir(p)}

    def accepts(self, path: str) -> bool:
        """Whether path is a watched file or a Dockerfile below a watched directory."""
        path = os.path.abspath(path)
        if path in self.files:
            return True
        if not TextDocument.from_path(path, text="").is_dockerfile:
            return False
        for directory in self.directories:
            if not path.startswith(directory + os.sep):
                continue
            subdirs = os.path.relpath(path, directory).split(os.sep)[:-1]
            if not any(part.startswith(".") for part in subdirs):
                return True
        return False

    def _forward(self, kind: str, path: Any) -> None:
        path = os.fsdecode(path)
        if self.accepts(path):
            self.loop.call_soon_threadsafe(self.dispatch, kind, os.path.abspath(path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward("created", event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward("modified", event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward("deleted", event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._forward("deleted", event.src_path)
            self._forward("created", event.dest_path)


class FileEventBridge:
    """Turns file events into DocumentWatcher events. Runs on the event loop."""

    def __init__(self, watcher: DocumentWatcher):
        self.watcher = watcher
        self.activated = False
        self._versions: Dict[str, int] = {}
        self._texts: Dict[str, str] = {}

    def _read(self, path: str) -> Optional[TextDocument]:
        version = self._versions.get(path, 0) + 1
        try:
            document = TextDocument.from_path(path, version=version)
        except OSError as e:
            logger.warn_verbose(f"Cannot read {path}: {e}")
            return None
        self._versions[path] = version
        return document

    def open(self, path: str) -> None:
        """A Dockerfile appeared."""
        if path in self._texts:
            self.change(path)
            return
        document = self._read(path)
        if document is None:
            return
        self._texts[path] = document.text
        if not self.activated:
            self.activated = True
            self.watcher.activate(document)
        else:
            self.watcher.on_active_editor_changed(document)

    def change(self, path: str) -> None:
        """A Dockerfile was written to."""
        if path not in self._texts:
            self.open(path)
            return
        document = self._read(path)
        if document is None or document.text == self._texts[path]:
            return
        self._texts[path] = document.text
        self.watcher.on_document_changed(document)

    def close(self, path: str) -> None:
        """A Dockerfile was removed."""
        if self._texts.pop(path, None) is None:
            return
        self.watcher.on_document_closed(TextDocument.from_path(path, text=""))

    def handle(self, kind: str, path: str) -> None:
        handlers = {
            "created": self.open,
            "modified": self.change,
            "deleted": self.close,
        }
        handlers[kind](path)


async def watch_paths(
    paths: List[str],
    watcher: DocumentWatcher,
    stop: Optional[asyncio.Event] = None,
    observer: Optional[Any] = None,
) -> None:
    """
    Watch paths and translate file events into watcher events.

    Args:
        paths: Files or directories to watch
        watcher: Watcher receiving the events
        stop: Returns once this is set (None runs until cancelled)
        observer: watchdog observer (a new Observer when None)
    """
    loop = asyncio.get_running_loop()
    bridge = FileEventBridge(watcher)
    handler = DockerfileEventHandler(loop, bridge.handle, paths)
    observer = observer or Observer()

    for path in paths:
        if os.path.isdir(path):
            observer.schedule(handler, os.path.abspath(path), recursive=True)
        else:
            observer.schedule(handler, os.path.dirname(os.path.abspath(path)), recursive=False)

    for path in discover_dockerfiles(paths):
        if os.path.isfile(path):
            bridge.open(os.path.abspath(path))

    observer.start()
    try:
        await (stop or asyncio.Event()).wait()
    finally:
        observer.stop()
        observer.join()

    await watcher.wait_idle()


async def _run(args: argparse.Namespace) -> None:
    config = configure(args)
    collection = DiagnosticCollection(publisher=print_publication)
    scanner = build_scanner(config)
    watcher = DocumentWatcher(scanner, collection, debounce_seconds=config.debounce_seconds)
    logger.step(f"Watching {', '.join(args.paths)} (Ctrl+C to stop)")
    try:
        await watch_paths(args.paths, watcher)
    finally:
        stats = scanner.cache.get_stats()
        logger.result(f"Cache: {stats.hits} hit(s), {stats.misses} miss(es)")
        watcher.dispose()


def run_watch(args: argparse.Namespace) -> int:
    """
    Run the watcher until interrupted.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    asyncio.run(_run(args))
    return 0
