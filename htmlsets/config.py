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

"""Loader configuration.

Directories are listed by *descending* priority: a template found in the
first directory hides a same-named template in any later one.

Configuration can be given directly, built from a mapping (for example a
parsed TOML or JSON section), or read from the environment::

    HTMLSETS_DIRECTORIES=~/.myapp/templates:/usr/share/myapp/templates
    HTMLSETS_AUTO_RELOAD=1
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_LEFT_DELIMITER = "{{"
DEFAULT_RIGHT_DELIMITER = "}}"
DEFAULT_BLOCK_START = "{%"
DEFAULT_BLOCK_END = "%}"
DEFAULT_EXTENSION = ".html"

_TRUTHY = ("1", "true", "yes", "on")


@dataclass
class LoaderConfig:
    """Settings consumed by :class:`~htmlsets.loader.Loader`.

    Attributes:
        directories: Template directories, highest priority first.
        auto_reload: Rebuild views on every render (development mode).
        left_delimiter: Start of an expression action.
        right_delimiter: End of an expression action.
        block_start: Start of a statement action.
        block_end: End of a statement action.
        extension: File suffix that marks a template source.
    """

    directories: list[Path] = field(default_factory=list)
    auto_reload: bool = False
    left_delimiter: str = DEFAULT_LEFT_DELIMITER
    right_delimiter: str = DEFAULT_RIGHT_DELIMITER
    block_start: str = DEFAULT_BLOCK_START
    block_end: str = DEFAULT_BLOCK_END
    extension: str = DEFAULT_EXTENSION

    def __post_init__(self) -> None:
        self.directories = [Path(d).expanduser() for d in self.directories]
        # Empty delimiters mean "engine default"
        self.left_delimiter = self.left_delimiter or DEFAULT_LEFT_DELIMITER
        self.right_delimiter = self.right_delimiter or DEFAULT_RIGHT_DELIMITER
        self.block_start = self.block_start or DEFAULT_BLOCK_START
        self.block_end = self.block_end or DEFAULT_BLOCK_END
        self.extension = self.extension or DEFAULT_EXTENSION

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoaderConfig:
        directories = data.get("directories", [])
        if isinstance(directories, (str, Path)):
            directories = [directories]
        return cls(
            directories=list(directories),
            auto_reload=bool(data.get("auto_reload", False)),
            left_delimiter=data.get("left_delimiter", ""),
            right_delimiter=data.get("right_delimiter", ""),
            block_start=data.get("block_start", ""),
            block_end=data.get("block_end", ""),
            extension=data.get("extension", ""),
        )

    @classmethod
    def from_env(cls, prefix: str = "HTMLSETS_") -> LoaderConfig:
        """Read configuration from ``<prefix>*`` environment variables."""
        raw_dirs = os.environ.get(f"{prefix}DIRECTORIES", "")
        directories = [d for d in raw_dirs.split(os.pathsep) if d]
        auto_reload = os.environ.get(f"{prefix}AUTO_RELOAD", "").lower() in _TRUTHY
        return cls(
            directories=directories,
            auto_reload=auto_reload,
            left_delimiter=os.environ.get(f"{prefix}LEFT_DELIMITER", ""),
            right_delimiter=os.environ.get(f"{prefix}RIGHT_DELIMITER", ""),
            block_start=os.environ.get(f"{prefix}BLOCK_START", ""),
            block_end=os.environ.get(f"{prefix}BLOCK_END", ""),
            extension=os.environ.get(f"{prefix}EXTENSION", ""),
        )
