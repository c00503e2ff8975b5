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

"""Template loader: registry, environment and build coordination.

Resolution order for ``{% include "partials/_nav.html" %}``:

1. ``<directories[0]>/partials/_nav.html``
2. ``<directories[1]>/partials/_nav.html``
3. ...

This mirrors the scan, where earlier directories override later ones, and
is how include-only partials (``_``-prefixed files) are reached.

Usage::

    from htmlsets import Loader, LoaderConfig

    loader = Loader(LoaderConfig(directories=["~/.myapp/templates", "defaults"]))
    view = loader.new_set().add("layout", "pages/home").view()
    html = view.render({"title": "Home"})
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from jinja2 import BaseLoader, Environment, TemplateNotFound

from htmlsets.assemble import Program, build_program
from htmlsets.config import LoaderConfig
from htmlsets.fragments import FragmentExtension, ParsedSource
from htmlsets.funcs import create_func_map
from htmlsets.registry import Source, SourceRegistry
from htmlsets.set import TemplateSet

logger = logging.getLogger(__name__)


def _uptodate(path: Path, mtime: float) -> Callable[[], bool]:
    def uptodate() -> bool:
        try:
            return path.stat().st_mtime == mtime
        except OSError:
            return False

    return uptodate


class _IncludeLoader(BaseLoader):
    """Jinja2 loader that checks the configured directories in order."""

    def __init__(self, directories: list[Path]) -> None:
        self.directories = directories

    def get_source(
        self, environment: Environment, template: str,
    ) -> tuple[str, str, Callable[[], bool]]:
        for directory in self.directories:
            path = directory / template
            if path.is_file():
                source = path.read_text(encoding="utf-8")
                mtime = path.stat().st_mtime
                return source, str(path), _uptodate(path, mtime)
        raise TemplateNotFound(template)


class Loader:
    """Collects template sources and builds programs for template sets.

    Args:
        config: Loader settings.  Without one the loader scans nothing and
            only knows sources added via :meth:`add_file`/:meth:`add_text`.

    Raises :class:`~htmlsets.errors.DirectoryNotFoundError` if a configured
    directory does not exist.
    """

    def __init__(self, config: LoaderConfig | None = None) -> None:
        self.config = config if config is not None else LoaderConfig()
        self._lock = threading.RLock()
        self._registry = SourceRegistry(
            self.config.directories, self.config.extension, lock=self._lock,
        )
        self._tree_cache: dict[str, ParsedSource] = {}
        self._env = Environment(
            loader=_IncludeLoader(self.config.directories),
            extensions=[FragmentExtension],
            autoescape=True,
            auto_reload=self.config.auto_reload,
            keep_trailing_newline=True,
            variable_start_string=self.config.left_delimiter,
            variable_end_string=self.config.right_delimiter,
            block_start_string=self.config.block_start,
            block_end_string=self.config.block_end,
        )
        self._registry.scan()

    @property
    def auto_reload(self) -> bool:
        return self.config.auto_reload

    @property
    def environment(self) -> Environment:
        return self._env

    def rescan(self) -> None:
        """Scan the directories again, e.g. to pick up new template files.

        Sources added explicitly keep precedence over scanned ones.
        """
        with self._lock:
            self._registry.scan()
            self._tree_cache.clear()

    # --- Sources ------------------------------------------------------------

    def add_file(self, name: str, path: str | Path) -> Loader:
        """Add a file-based source, replacing any source named *name*."""
        self._registry.add_file(name, path)
        return self

    def add_text(self, name: str, content: str) -> Loader:
        """Add an inline source, replacing any source named *name*."""
        self._registry.add_text(name, content)
        return self

    def sources(self) -> list[Source]:
        return self._registry.sources()

    def has_template(self, name: str) -> bool:
        """Check whether a source named *name* is registered."""
        return name in self._registry

    # --- Sets and programs --------------------------------------------------

    def new_set(self) -> TemplateSet:
        """Return an empty set with the default helper functions."""
        return TemplateSet(self, create_func_map(self))

    def build_program(self, template_set: TemplateSet) -> Program:
        """Compose *template_set* into a validated program.

        Builds are serialized; parsed trees are cached per file unless the
        loader runs in auto-reload mode.
        """
        tree_cache = None if self.auto_reload else self._tree_cache
        with self._lock:
            logger.debug("Building %r", template_set)
            return build_program(
                self._env,
                template_set.source_refs(),
                template_set.funcs(),
                self._registry.get,
                tree_cache,
            )
