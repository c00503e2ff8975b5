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

"""Composable HTML template sets on top of Jinja2.

Scans template directories (earlier directories override later ones),
composes layouts, pages and partials into sets, validates that a set forms
one complete document, and renders it with autoescaping.

Usage::

    from htmlsets import Loader, LoaderConfig

    loader = Loader(LoaderConfig(directories=["templates"]))
    base = loader.new_set().add("layout")
    html = base.add("pages/home").view().render({"user": "ada"})
"""

from htmlsets.assemble import Program, SourceRef
from htmlsets.config import LoaderConfig
from htmlsets.errors import (
    BuildError,
    DirectoryNotFoundError,
    DuplicateRootError,
    ExecutionError,
    FatalTemplateError,
    FragmentSyntaxError,
    MissingFragmentsError,
    MissingRootError,
    SourceNotFoundError,
    TemplateSetError,
    UndefinedFunctionError,
)
from htmlsets.fragments import ROOT_FRAGMENT
from htmlsets.loader import Loader
from htmlsets.registry import Source
from htmlsets.set import TemplateSet
from htmlsets.view import View

__all__ = [
    "Loader",
    "LoaderConfig",
    "TemplateSet",
    "View",
    "Source",
    "SourceRef",
    "Program",
    "ROOT_FRAGMENT",
    "TemplateSetError",
    "DirectoryNotFoundError",
    "BuildError",
    "SourceNotFoundError",
    "FragmentSyntaxError",
    "UndefinedFunctionError",
    "DuplicateRootError",
    "MissingRootError",
    "MissingFragmentsError",
    "ExecutionError",
    "FatalTemplateError",
]
