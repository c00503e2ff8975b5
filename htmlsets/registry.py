# htmlsets — composable HTML template sets on top of Jinja2
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Registry of named template sources.

Sources come from two places:

1. **Scanned** files under the configured directories.  Directories are
   walked lowest priority first, so a higher-priority directory overwrites
   any same-named entry found earlier.
2. **Explicit** registrations via :meth:`SourceRegistry.add_file` and
   :meth:`SourceRegistry.add_text`.  These always win over scanned entries,
   no matter whether the scan happens before or after them.

Files whose name starts with an underscore are never scanned; they are
include-only partials.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

from htmlsets.config import DEFAULT_EXTENSION
from htmlsets.errors import DirectoryNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Source:
    """A named template input, backed by a file or by inline text.

    Attributes:
        name: Registry name, e.g. ``"pages/home"``.
        file_path: Path of the backing file, empty for inline sources.
        content: Inline template text, unused for file-backed sources.
    """

    name: str
    file_path: str = ""
    content: str = ""

    @property
    def is_inline(self) -> bool:
        return not self.file_path

    @property
    def identity(self) -> str:
        return self.name if self.is_inline else self.file_path

    def read(self) -> str:
        """Return the template text, reading the backing file if needed."""
        if self.is_inline:
            return self.content
        return Path(self.file_path).read_text(encoding="utf-8")


class SourceRegistry:
    """Name -> :class:`Source` mapping built from template directories.

    Args:
        directories: Template directories, highest priority first.
        extension: File suffix that marks a template source.
        lock: Lock shared with the owning loader.  A private one is created
            when omitted.
    """

    def __init__(
        self,
        directories: list[Path] | None = None,
        extension: str = DEFAULT_EXTENSION,
        lock: threading.RLock | None = None,
    ) -> None:
        self.directories = [Path(d) for d in (directories or [])]
        self.extension = extension
        self._lock = lock if lock is not None else threading.RLock()
        self._scanned: dict[str, Source] = {}
        self._explicit: dict[str, Source] = {}

    def scan(self) -> None:
        """Replace all scanned entries with the current directory contents.

        Raises :class:`~htmlsets.errors.DirectoryNotFoundError` if any
        configured directory is missing; the previous entries are kept in
        that case.
        """
        scanned: dict[str, Source] = {}
        for directory in reversed(self.directories):
            if not directory.is_dir():
                raise DirectoryNotFoundError(str(directory))
            for path in sorted(directory.rglob(f"*{self.extension}")):
                if not self._qualifies(path):
                    continue
                name = self._source_name(directory, path)
                scanned[name] = Source(name=name, file_path=str(path))

        with self._lock:
            self._scanned = scanned
        logger.debug(
            "Scanned %d template source(s) from %d directories",
            len(scanned), len(self.directories),
        )

    def _qualifies(self, path: Path) -> bool:
        return (
            path.is_file()
            and not path.name.startswith("_")
            and path.name.endswith(self.extension)
        )

    def _source_name(self, root: Path, path: Path) -> str:
        relative = path.relative_to(root).as_posix()
        return relative[: -len(self.extension)]

    def add_file(self, name: str, path: str | Path) -> None:
        """Register (or replace) a file-backed source under *name*."""
        path = Path(path).expanduser()
        if not path.exists():
            logger.warning("Template file for %r does not exist yet: %s", name, path)
        with self._lock:
            self._explicit[name] = Source(name=name, file_path=str(path))

    def add_text(self, name: str, content: str) -> None:
        """Register (or replace) an inline source under *name*."""
        with self._lock:
            self._explicit[name] = Source(name=name, content=content)

    def get(self, name: str) -> Source | None:
        with self._lock:
            source = self._explicit.get(name)
            if source is None:
                source = self._scanned.get(name)
            return source

    def sources(self) -> list[Source]:
        """Return a snapshot of all registered sources (unordered)."""
        with self._lock:
            merged = {**self._scanned, **self._explicit}
        return list(merged.values())

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._scanned.keys() | self._explicit.keys())
