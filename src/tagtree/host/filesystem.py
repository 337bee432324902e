"""
Markdown vault host - a directory of markdown files on disk.

Frontmatter is parsed with PyYAML; inline labels are collected from the
body. The walk skips the usual VCS and tooling directories and every
hidden directory, so a vault's ``.obsidian``/``.trash`` never shows up.
"""

import asyncio
import fnmatch
import os
import re
from pathlib import Path
from typing import Any, Iterator

import structlog
import yaml

from .base import Document, DocumentHost, DocumentMetadata, HostEvent

logger = structlog.get_logger()

__all__ = [
    "MarkdownVaultHost",
    "extract_inline_labels",
    "parse_frontmatter",
]

# Directories ignored by default
DEFAULT_IGNORE_DIRS: frozenset[str] = frozenset({
    ".git",
    "node_modules",
    "__pycache__",
    ".venv",
    "venv",
    ".obsidian",
    ".trash",
    "*.egg-info",
})

MARKDOWN_PATTERNS: tuple[str, ...] = ("*.md", "*.markdown")

# A label is '#' followed by word characters, '-' or '/', with at least one
# non-digit character; it must start a line or follow whitespace.
_INLINE_LABEL = re.compile(r"(?<!\S)#([\w\-/]*[^\W\d][\w\-/]*)")
_FENCE = re.compile(r"^\s*(```|~~~)")


def parse_frontmatter(content: str) -> tuple[dict[str, Any] | None, str]:
    """Split YAML frontmatter from a markdown document.

    Returns:
        (frontmatter, body). Frontmatter is None when the document has no
        ``---`` block, and an empty dict when the block is not valid YAML
        or not a mapping.
    """
    lines = content.split("\n")
    if not lines or lines[0].strip() != "---":
        return None, content

    end_idx = None
    for i, line in enumerate(lines[1:], 1):
        if line.strip() in ("---", "..."):
            end_idx = i
            break

    if end_idx is None:
        return None, content

    body = "\n".join(lines[end_idx + 1:])
    try:
        data = yaml.safe_load("\n".join(lines[1:end_idx]))
    except yaml.YAMLError as e:
        logger.warning("host.frontmatter_invalid", error=str(e))
        return {}, body

    if data is None:
        return {}, body
    if not isinstance(data, dict):
        logger.warning("host.frontmatter_not_mapping", type=type(data).__name__)
        return {}, body
    return data, body


def extract_inline_labels(body: str) -> list[str]:
    """Collect ``#label`` occurrences outside fenced code blocks."""
    labels: list[str] = []
    in_fence = False
    for line in body.split("\n"):
        if _FENCE.match(line):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        for match in _INLINE_LABEL.finditer(line):
            label = match.group(1).rstrip("/")
            if label and label not in labels:
                labels.append(label)
    return labels


class MarkdownVaultHost(DocumentHost):
    """Host backed by a directory tree of markdown files.

    The metadata store becomes ready after the first full scan. ``reload``,
    ``remove`` and ``rename`` update the cache for one file and emit the
    matching host event, which is how a file watcher feeds the indexer.
    """

    def __init__(
        self,
        root: Path,
        exclude_dirs: list[str] | None = None,
    ) -> None:
        """Initialize the host.

        Args:
            root: Vault root directory.
            exclude_dirs: Additional directory names or patterns to skip.
        """
        super().__init__()
        self.root = Path(root).resolve()
        self.ignore_dirs = DEFAULT_IGNORE_DIRS | frozenset(exclude_dirs or [])
        self._documents: dict[str, Document] = {}
        self._metadata: dict[Document, DocumentMetadata] = {}
        self._scanned = False
        self.log = logger.bind(component="vault_host", root=str(self.root))

    # -- DocumentHost --------------------------------------------------------

    def documents(self) -> list[Document]:
        return list(self._documents.values())

    def get_metadata(self, document: Document) -> DocumentMetadata | None:
        return self._metadata.get(document)

    @property
    def is_ready(self) -> bool:
        return self._scanned

    async def wait_until_ready(self) -> None:
        if not self._scanned:
            # Scanning is synchronous; yield once so callers stay cooperative
            await asyncio.sleep(0)
            self.scan()

    # -- Scanning ------------------------------------------------------------

    def scan(self) -> int:
        """Read every markdown file under the root.

        Returns:
            Number of documents found.
        """
        self._documents.clear()
        self._metadata.clear()
        for file_path in self._walk():
            rel_path = file_path.relative_to(self.root).as_posix()
            document = self._make_document(file_path, rel_path)
            self._documents[rel_path] = document
            self._load(document, file_path)

        was_ready = self._scanned
        self._scanned = True
        self.log.info("host.scanned", documents=len(self._documents))
        if not was_ready:
            self.events.emit(HostEvent.RESOLVED)
        return len(self._documents)

    def _walk(self) -> Iterator[Path]:
        """Walk the vault, pruning ignored directories in place."""
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(
                d for d in dirnames
                if d not in self.ignore_dirs
                and not d.startswith(".")
                and not any(fnmatch.fnmatch(d, p) for p in self.ignore_dirs)
            )
            for filename in sorted(filenames):
                if any(fnmatch.fnmatch(filename.lower(), p) for p in MARKDOWN_PATTERNS):
                    yield Path(dirpath) / filename

    def _make_document(self, path: Path, rel_path: str) -> Document:
        try:
            stat = path.stat()
            return Document(
                path=rel_path,
                ctime=stat.st_ctime,
                mtime=stat.st_mtime,
                size=stat.st_size,
            )
        except OSError:
            return Document(path=rel_path)

    def _load(self, document: Document, path: Path) -> None:
        """Parse one file into the metadata cache (cache miss on read errors)."""
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self._metadata.pop(document, None)
            self.log.warning("host.read_failed", path=document.path, error=str(e))
            return

        frontmatter, body = parse_frontmatter(content)
        self._metadata[document] = DocumentMetadata(
            labels=extract_inline_labels(body),
            frontmatter=frontmatter,
        )

    # -- Incremental changes ---------------------------------------------------

    def reload(self, rel_path: str) -> Document:
        """Re-read one file (created or modified) and emit CHANGED."""
        file_path = self.root / rel_path
        document = self._documents.get(rel_path)
        if document is None:
            document = self._make_document(file_path, rel_path)
            self._documents[rel_path] = document
        else:
            fresh = self._make_document(file_path, rel_path)
            document.mtime, document.size = fresh.mtime, fresh.size
        self._load(document, file_path)
        self.events.emit(HostEvent.CHANGED, document)
        return document

    def remove(self, rel_path: str) -> Document | None:
        """Forget a deleted file and emit DELETED."""
        document = self._documents.pop(rel_path, None)
        if document is None:
            return None
        self._metadata.pop(document, None)
        self.events.emit(HostEvent.DELETED, document)
        return document

    def rename(self, old_path: str, new_path: str) -> Document | None:
        """Track a moved file and emit RENAMED."""
        document = self._documents.pop(old_path, None)
        if document is None:
            return None
        document.path = new_path
        self._documents[new_path] = document
        self._load(document, self.root / new_path)
        self.events.emit(HostEvent.RENAMED, document, old_path)
        return document
