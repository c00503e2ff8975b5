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

"""Exception hierarchy.

Everything raised while scanning, building or rendering derives from
:class:`TemplateSetError`, except :class:`FatalTemplateError`, which
:meth:`~htmlsets.set.TemplateSet.view_or_panic` raises for call sites that
treat a broken template set as a programming error.
"""

from __future__ import annotations


class TemplateSetError(Exception):
    """Base class for recoverable template errors."""


class DirectoryNotFoundError(TemplateSetError):
    """A configured template directory does not exist."""

    def __init__(self, directory: str) -> None:
        super().__init__(f"template directory {directory!r} not found")
        self.directory = directory


class BuildError(TemplateSetError):
    """Composing a set into a renderable program failed."""


class SourceNotFoundError(BuildError):
    """A set references a template the registry does not know."""

    def __init__(self, name: str) -> None:
        super().__init__(f'template "{name}" not found')
        self.name = name


class FragmentSyntaxError(BuildError):
    """Template text could not be parsed."""

    def __init__(self, source_name: str, message: str) -> None:
        super().__init__(f'template "{source_name}": {message}')
        self.source_name = source_name


class UndefinedFunctionError(BuildError):
    """A template calls a helper function that is not registered."""

    def __init__(self, source_name: str, function: str) -> None:
        super().__init__(
            f'template "{source_name}": function "{function}" not defined'
        )
        self.source_name = source_name
        self.function = function


class DuplicateRootError(BuildError):
    """More than one source in a set contributes the root fragment."""

    def __init__(self, source_name: str) -> None:
        super().__init__(
            f'redefinition of root template by "{source_name}"'
        )
        self.source_name = source_name


class MissingRootError(BuildError):
    """No source in a set contributes the root fragment."""

    def __init__(self) -> None:
        super().__init__("missing root template")


class MissingFragmentsError(BuildError):
    """Fragments referenced from the root are not defined anywhere."""

    def __init__(self, names: list[str]) -> None:
        quoted = ", ".join(f'"{name}"' for name in names)
        super().__init__(f"missing template(s) [{quoted}]")
        self.names = names


class ExecutionError(TemplateSetError):
    """Rendering a built program failed."""


class FatalTemplateError(RuntimeError):
    """A template set failed to build where failure is not recoverable."""
