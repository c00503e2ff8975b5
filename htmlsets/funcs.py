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

"""Helper functions bound into every template set.

``raw`` and ``nl2br`` are plain text transforms.  ``runView``, ``runSet``
and ``runTemplate`` render other views inline, which lets a template embed
a view that was composed elsewhere::

    {{ runTemplate("widgets/clock", data) }}
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from markupsafe import Markup, escape

from htmlsets.errors import ExecutionError, TemplateSetError
from htmlsets.set import TemplateSet
from htmlsets.view import View

if TYPE_CHECKING:
    from htmlsets.loader import Loader


def raw(text: str) -> Markup:
    """Skip escaping for *text*."""
    return Markup(text)


def nl2br(text: str) -> Markup:
    """Escape *text* and turn newlines into ``<br>``."""
    return Markup(str(escape(text)).replace("\n", "<br>"))


DEFAULT_FUNCS: dict[str, Callable[..., Any]] = {
    "raw": raw,
    "nl2br": nl2br,
}


def _wrong_type(helper: str, expected: str, value: Any) -> ExecutionError:
    return ExecutionError(
        f"error calling {helper}: wrong type for value; "
        f"expected {expected}; got {type(value).__name__}"
    )


def create_func_map(loader: Loader) -> dict[str, Callable[..., Any]]:
    """Return the default helpers plus the ones bound to *loader*."""

    def run_view(view: View, data: Any = None) -> Markup:
        if not isinstance(view, View):
            raise _wrong_type("runView", "View", view)
        try:
            return Markup(view.render(data))
        except TemplateSetError as exc:
            raise ExecutionError(f"error calling runView: {exc}") from exc

    def run_set(template_set: TemplateSet, data: Any = None) -> Markup:
        if not isinstance(template_set, TemplateSet):
            raise _wrong_type("runSet", "TemplateSet", template_set)
        try:
            view = loader.new_set().merge(template_set).view()
            return Markup(view.render(data))
        except TemplateSetError as exc:
            raise ExecutionError(f"error calling runSet: {exc}") from exc

    def run_template(name: str, data: Any = None) -> Markup:
        try:
            view = loader.new_set().add(name).view()
            return Markup(view.render(data))
        except TemplateSetError as exc:
            raise ExecutionError(f"error calling runTemplate: {exc}") from exc

    funcs = dict(DEFAULT_FUNCS)
    funcs["runView"] = run_view
    funcs["runSet"] = run_set
    funcs["runTemplate"] = run_template
    return funcs
