"""Markdown document discovery and front-matter parsing."""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

from quartz_expert.exceptions import IngestionError

logger = logging.getLogger(__name__)

FRONT_MATTER_PATTERN = re.compile(r"^---\n(.*?)\n---", re.DOTALL)
TITLE_PATTERN = re.compile(r"^#\s+(.+)$", re.MULTILINE)

MARKDOWN_SUFFIX = ".md"
DEFAULT_TITLE = "Untitled"
DEFAULT_CATEGORY = "general"

# Order matters: the first matching keyword wins.
CATEGORY_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("plugins",), "plugins"),
    (("features",), "features"),
    (("configuration",), "configuration"),
    (("advanced",), "advanced"),
    (("hosting", "deploy"), "deployment"),
)


@dataclass(frozen=True)
class Document:
    """A markdown document loaded from the docs tree."""

    path: str
    raw_content: str
    content: str
    title: str
    category: str
    tags: frozenset[str] = frozenset()
    front_matter: dict[str, str] = field(default_factory=dict)

    @property
    def metadata(self) -> dict[str, str]:
        """Flat metadata inherited by every chunk of this document."""
        return {
            **self.front_matter,
            "source": self.path,
            "title": self.title,
            "tags": ", ".join(sorted(self.tags)),
            "category": self.category,
        }


def parse_front_matter(content: str) -> tuple[dict[str, str], str]:
    """Split a leading ``---`` block into key/value pairs and the body.

    Each line is split on its first colon. Multi-line and nested values are
    not supported.

    Returns:
        Tuple of (front matter mapping, body). The body is stripped when a
        front-matter block was found and returned untouched otherwise.
    """
    match = FRONT_MATTER_PATTERN.match(content)
    if not match:
        return {}, content

    front_matter: dict[str, str] = {}
    for line in match.group(1).split("\n"):
        key, sep, value = line.partition(":")
        if sep and key.strip():
            front_matter[key.strip()] = value.strip()

    return front_matter, content[match.end() :].strip()


def parse_tags(value: str) -> frozenset[str]:
    """Parse ``a, b`` or ``[a, b]`` into a set of tags."""
    value = value.strip().strip("[]")
    return frozenset(
        tag.strip().strip("\"'") for tag in value.split(",") if tag.strip().strip("\"'")
    )


def extract_title(body: str) -> str:
    """Return the first level-1 heading of the body, or ``Untitled``."""
    match = TITLE_PATTERN.search(body)
    return match.group(1).strip() if match else DEFAULT_TITLE


def categorize(path: str) -> str:
    """Classify a document by the first matching keyword in its path."""
    for keywords, category in CATEGORY_KEYWORDS:
        if any(keyword in path for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


class DocumentLoader:
    """Loads every markdown document under a root directory."""

    def load(self, root_path: Path | str) -> list[Document]:
        """Discover and parse all markdown files under ``root_path``.

        Hidden entries are skipped. Unreadable directories and files are
        logged and skipped; the load itself never aborts.

        Args:
            root_path: Root of the documentation tree.

        Returns:
            Documents in deterministic (sorted path) order.
        """
        root = Path(root_path)
        documents = []

        for file_path in self.find_markdown_files(root):
            try:
                documents.append(self.load_file(file_path, root))
            except IngestionError as e:
                logger.error("Skipping document: %s", e)

        logger.info("Loaded %d documents from %s", len(documents), root)
        return documents

    def find_markdown_files(self, directory: Path) -> list[Path]:
        """Recursively collect markdown files, skipping hidden entries."""
        try:
            entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
        except OSError as e:
            logger.error("Error reading directory %s: %s", directory, e)
            return []

        files = []
        for entry in entries:
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                files.extend(self.find_markdown_files(Path(entry.path)))
            elif entry.is_file() and entry.name.endswith(MARKDOWN_SUFFIX):
                files.append(Path(entry.path))
        return files

    def load_file(self, file_path: Path, root: Path) -> Document:
        """Read and parse a single markdown file.

        Raises:
            IngestionError: If the file cannot be read or decoded.
        """
        relative_path = file_path.relative_to(root).as_posix()
        try:
            raw_content = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise IngestionError(f"Cannot read {relative_path}: {e}", path=relative_path) from e

        front_matter, body = parse_front_matter(raw_content)

        return Document(
            path=relative_path,
            raw_content=raw_content,
            content=body,
            title=front_matter.get("title") or extract_title(body),
            category=categorize(relative_path),
            tags=parse_tags(front_matter.get("tags", "")),
            front_matter=front_matter,
        )
