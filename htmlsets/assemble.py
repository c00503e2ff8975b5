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

"""Compose a set's sources into one validated, renderable program.

Building a program runs five steps: resolve every referenced source,
parse it into fragment trees (reusing cached trees where allowed), merge
the trees while making sure only one source contributes the root, check
that every fragment reachable from the root is defined, and finally
compile each tree into a :class:`jinja2.Template`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from jinja2 import Environment, Template, nodes
from jinja2.exceptions import TemplateSyntaxError

from htmlsets.errors import (
    DuplicateRootError,
    FragmentSyntaxError,
    MissingFragmentsError,
    MissingRootError,
    SourceNotFoundError,
)
from htmlsets.fragments import (
    PROGRAM_VAR,
    ROOT_FRAGMENT,
    ParsedSource,
    parse_source,
    referenced_fragments,
)
from htmlsets.registry import Source

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceRef:
    """A set's reference to a registry source.

    Attributes:
        name: Local fragment name the source's body is bound to; the empty
            string binds it as the root.
        source: Registry name of the source.
    """

    name: str
    source: str


@dataclass
class Program:
    """Compiled fragments of one set, keyed by fragment name."""

    fragments: dict[str, Template]

    @property
    def root(self) -> Template:
        return self.fragments[ROOT_FRAGMENT]


def build_program(
    environment: Environment,
    refs: Iterable[SourceRef],
    funcs: Mapping[str, Any],
    resolve: Callable[[str], Source | None],
    tree_cache: dict[str, ParsedSource] | None = None,
) -> Program:
    """Resolve, parse, merge, validate and compile *refs*.

    Args:
        environment: Environment used for parsing and compiling.
        refs: Source references in the order they were added to the set.
        funcs: Helper functions available to the templates.
        resolve: Registry lookup by source name.
        tree_cache: Parsed trees by file path.  ``None`` disables caching.
    """
    trees: dict[str, nodes.Template] = {}
    origins: dict[str, str] = {}

    for ref in refs:
        parsed = _load(environment, ref, resolve, tree_cache)
        parsed.check_functions(funcs, environment)

        if parsed.body is not None:
            if ref.name == ROOT_FRAGMENT and ROOT_FRAGMENT in trees:
                raise DuplicateRootError(ref.source)
            trees[ref.name] = parsed.body
            origins[ref.name] = ref.source
        for name, tree in parsed.definitions.items():
            trees[name] = tree
            origins[name] = ref.source

    validate(trees)
    return _compile(environment, trees, origins, funcs)


def _load(
    environment: Environment,
    ref: SourceRef,
    resolve: Callable[[str], Source | None],
    tree_cache: dict[str, ParsedSource] | None,
) -> ParsedSource:
    source = resolve(ref.source)
    if source is None:
        raise SourceNotFoundError(ref.source)

    cacheable = tree_cache is not None and not source.is_inline
    if cacheable and source.file_path in tree_cache:
        logger.debug("Parse tree cache hit: %s", source.file_path)
        return tree_cache[source.file_path]

    try:
        text = source.read()
    except UnicodeDecodeError as exc:
        raise FragmentSyntaxError(source.name, f"not valid UTF-8: {exc.reason}") from exc

    parsed = parse_source(environment, source.name, text)
    if cacheable:
        tree_cache[source.file_path] = parsed
    return parsed


def validate(trees: Mapping[str, nodes.Template]) -> None:
    """Check that *trees* has a root and defines everything it needs.

    Fragments are followed transitively from the root; fragments that are
    defined but unreachable are not checked.
    """
    if ROOT_FRAGMENT not in trees:
        raise MissingRootError()

    missing: set[str] = set()
    seen = {ROOT_FRAGMENT}
    pending = [ROOT_FRAGMENT]
    while pending:
        for name in referenced_fragments(trees[pending.pop()]):
            if name in seen:
                continue
            seen.add(name)
            if name in trees:
                pending.append(name)
            else:
                missing.add(name)

    if missing:
        raise MissingFragmentsError(sorted(missing))


def _compile(
    environment: Environment,
    trees: Mapping[str, nodes.Template],
    origins: Mapping[str, str],
    funcs: Mapping[str, Any],
) -> Program:
    fragments: dict[str, Template] = {}
    template_globals = {**funcs, PROGRAM_VAR: fragments}
    for name, tree in trees.items():
        try:
            fragments[name] = environment.from_string(tree, globals=template_globals)
        except TemplateSyntaxError as exc:
            # Compile-time checks, e.g. unknown filters
            raise FragmentSyntaxError(origins[name], exc.message or str(exc)) from exc
    logger.debug("Compiled program with %d fragment(s)", len(fragments))
    return Program(fragments=fragments)
