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

"""Composable template sets.

A :class:`TemplateSet` is a value: every method that changes it returns a
new set and leaves the receiver untouched, so a base set (say, a layout with
its helpers) can be shared by any number of derived views::

    base = loader.new_set().add("layout")
    home = base.add("pages/home").view()
    about = base.set("content", "pages/about").view()
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from htmlsets.assemble import SourceRef
from htmlsets.errors import BuildError, FatalTemplateError
from htmlsets.fragments import ROOT_FRAGMENT
from htmlsets.view import View

if TYPE_CHECKING:
    from htmlsets.loader import Loader


class TemplateSet:
    """Source references plus helper functions, bound to a loader."""

    def __init__(
        self,
        loader: Loader,
        funcs: Mapping[str, Callable[..., Any]] | None = None,
        refs: tuple[SourceRef, ...] = (),
    ) -> None:
        self._loader = loader
        self._funcs = dict(funcs or {})
        self._refs = refs

    @property
    def loader(self) -> Loader:
        return self._loader

    def _derive(
        self,
        refs: tuple[SourceRef, ...] | None = None,
        funcs: dict[str, Callable[..., Any]] | None = None,
    ) -> TemplateSet:
        return TemplateSet(
            self._loader,
            funcs if funcs is not None else self._funcs,
            refs if refs is not None else self._refs,
        )

    # --- Composition --------------------------------------------------------

    def add(self, *names: str) -> TemplateSet:
        """Add registry sources whose bodies form the root fragment."""
        refs = tuple(SourceRef(name=ROOT_FRAGMENT, source=name) for name in names)
        return self._derive(refs=self._refs + refs)

    def set(self, local_name: str, source_name: str) -> TemplateSet:
        """Add a registry source whose body becomes fragment *local_name*."""
        ref = SourceRef(name=local_name, source=source_name)
        return self._derive(refs=self._refs + (ref,))

    def merge(self, *others: TemplateSet) -> TemplateSet:
        """Append the sources and functions of *others*.

        Functions of later sets replace same-named ones.
        """
        refs = self._refs
        funcs = dict(self._funcs)
        for other in others:
            refs += other._refs
            funcs.update(other._funcs)
        return self._derive(refs=refs, funcs=funcs)

    def add_func(self, name: str, fn: Callable[..., Any]) -> TemplateSet:
        return self._derive(funcs={**self._funcs, name: fn})

    def add_funcs(self, funcs: Mapping[str, Callable[..., Any]]) -> TemplateSet:
        return self._derive(funcs={**self._funcs, **funcs})

    # --- Accessors ----------------------------------------------------------

    def funcs(self) -> dict[str, Callable[..., Any]]:
        return dict(self._funcs)

    def source_refs(self) -> list[SourceRef]:
        return list(self._refs)

    # --- Views --------------------------------------------------------------

    def view(self) -> View:
        """Build a view of this set.

        Raises a :class:`~htmlsets.errors.BuildError` if the sources cannot
        be composed into a complete program.
        """
        view = View(self)
        view.build()
        return view

    def view_or_panic(self) -> View:
        """Like :meth:`view`, but a build failure is fatal.

        Meant for start-up code where a broken template set should stop the
        process.  Render errors of the returned view stay recoverable.
        """
        try:
            return self.view()
        except (BuildError, OSError) as exc:
            raise FatalTemplateError(str(exc)) from exc

    def __repr__(self) -> str:
        sources = ", ".join(
            ref.source if ref.name == ROOT_FRAGMENT else f"{ref.name}={ref.source}"
            for ref in self._refs
        )
        return f"<TemplateSet [{sources}]>"
