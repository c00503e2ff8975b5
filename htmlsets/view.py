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

"""Render-ready views.

A :class:`View` is created by :meth:`~htmlsets.set.TemplateSet.view`.  It
keeps the compiled program of its set and only rebuilds it when the loader
runs in auto-reload mode, in which case every render picks up changed
template files.
"""

from __future__ import annotations

import io
from typing import TYPE_CHECKING, Any, Protocol

from htmlsets.errors import ExecutionError
from htmlsets.fragments import data_context

if TYPE_CHECKING:
    from htmlsets.assemble import Program
    from htmlsets.set import TemplateSet


class TextSink(Protocol):
    def write(self, text: str, /) -> Any: ...


class View:
    """A composed template that can be rendered repeatedly."""

    def __init__(self, template_set: TemplateSet) -> None:
        self._set = template_set
        self._program: Program | None = None

    @property
    def template_set(self) -> TemplateSet:
        return self._set

    @property
    def is_built(self) -> bool:
        return self._program is not None

    def build(self) -> Program:
        """Build the program unless a usable one exists already.

        Raises a :class:`~htmlsets.errors.BuildError` on failure; the view
        keeps its previous state.
        """
        loader = self._set.loader
        if self._program is None or loader.auto_reload:
            self._program = loader.build_program(self._set)
        return self._program

    def write_to(self, sink: TextSink, data: Any = None) -> None:
        """Render the root fragment, writing output chunks to *sink*."""
        program = self.build()
        try:
            for chunk in program.root.generate(data_context(data)):
                sink.write(chunk)
        except ExecutionError:
            raise
        except Exception as exc:
            raise ExecutionError(f"{self._set!r}: {exc}") from exc

    def render(self, data: Any = None) -> str:
        """Render the root fragment and return the output as text."""
        buffer = io.StringIO()
        self.write_to(buffer, data)
        return buffer.getvalue()

    def __repr__(self) -> str:
        state = "built" if self.is_built else "unbuilt"
        return f"<View {state} {self._set!r}>"
