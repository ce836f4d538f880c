"""Chart discovery and ignore-file handling."""

from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Iterable, Iterator, List, Optional, Sequence

__all__ = [
    "CHART_MANIFEST",
    "IgnorePattern",
    "IgnoreRules",
    "find_chart_dirs",
    "load_ignore_rules",
    "read_text_file",
]

CHART_MANIFEST = "Chart.yaml"

# Never worth descending into while searching for charts.
_ALWAYS_SKIPPED = {".git", ".hg", ".svn", "node_modules", "__pycache__"}


@dataclass(frozen=True)
class IgnorePattern:
    """A single parsed line from an ignore file."""

    pattern: str
    negated: bool = False
    directory_only: bool = False
    anchored: bool = False

    def matches(self, relative: PurePosixPath, *, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        text = relative.as_posix()
        if self.anchored or "/" in self.pattern:
            return fnmatch.fnmatchcase(text, self.pattern)
        if fnmatch.fnmatchcase(text, self.pattern):
            return True
        return any(
            fnmatch.fnmatchcase(part, self.pattern) for part in relative.parts
        )


@dataclass(frozen=True)
class IgnoreRules:
    """Ordered ignore patterns; the last matching pattern decides."""

    patterns: tuple[IgnorePattern, ...] = ()

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "IgnoreRules":
        parsed: List[IgnorePattern] = []
        for raw in lines:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            negated = line.startswith("!")
            if negated:
                line = line[1:].strip()
            directory_only = line.endswith("/")
            anchored = line.startswith("/")
            line = line.strip("/")
            if not line:
                continue
            parsed.append(
                IgnorePattern(
                    pattern=line,
                    negated=negated,
                    directory_only=directory_only,
                    anchored=anchored,
                )
            )
        return cls(patterns=tuple(parsed))

    def is_ignored(self, relative: PurePosixPath, *, is_dir: bool) -> bool:
        ignored = False
        for pattern in self.patterns:
            if pattern.matches(relative, is_dir=is_dir):
                ignored = not pattern.negated
        return ignored


def load_ignore_rules(root: Path, ignore_file: Optional[str]) -> IgnoreRules:
    """Read ``ignore_file`` under ``root``; a missing file ignores nothing."""

    if not ignore_file:
        return IgnoreRules()
    path = Path(ignore_file)
    if not path.is_absolute():
        path = root / path
    if not path.is_file():
        return IgnoreRules()
    return IgnoreRules.from_lines(read_text_file(path).splitlines())


def find_chart_dirs(
    root: Path,
    *,
    ignore_file: Optional[str] = None,
) -> Iterator[Path]:
    """Yield chart directories under ``root`` in sorted, depth-first order.

    A chart directory is any directory holding a ``Chart.yaml``. Ignored
    directories are pruned, so nothing beneath them is reported.
    """

    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"Chart search root not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(
            f"Chart search root is not a directory: {root}"
        )

    rules = load_ignore_rules(root, ignore_file)
    yield from _walk(root, root, rules)


def _walk(root: Path, current: Path, rules: IgnoreRules) -> Iterator[Path]:
    if (current / CHART_MANIFEST).is_file():
        yield current
    for child in _sorted_subdirectories(current):
        if child.name in _ALWAYS_SKIPPED:
            continue
        relative = PurePosixPath(child.relative_to(root).as_posix())
        if rules.is_ignored(relative, is_dir=True):
            continue
        yield from _walk(root, child, rules)


def _sorted_subdirectories(directory: Path) -> Sequence[Path]:
    try:
        entries = list(os.scandir(directory))
    except PermissionError:
        return ()
    return sorted(
        (
            Path(entry.path)
            for entry in entries
            if entry.is_dir(follow_symlinks=False)
        ),
        key=lambda p: p.name,
    )


def read_text_file(path: Path) -> str:
    """Read a text file as UTF-8 with replacement for decode errors.

    A leading byte order mark is dropped.
    """
    with Path(path).open("r", encoding="utf-8-sig", errors="replace") as fh:
        return fh.read()
