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

"""Fragment syntax and parse-tree analysis.

Two tags are added to Jinja2 by :class:`FragmentExtension`::

    {% define "content" %}<h1>Home</h1>{% enddefine %}
    {% fragment "content" %}
    {% fragment "row" with item %}

``define`` declares a named fragment at the top level of a source;
``fragment`` renders a named fragment in place with the current context,
loop and ``with`` variables included.  An optional ``with`` value is exposed
to the fragment as ``data`` (and, for a mapping, by its keys).
Everything outside ``define`` blocks is the source's body.  A layout file
typically has a body that references fragments, a page file typically
consists of ``define`` blocks only.

The rest of this module works on parsed trees: splitting a source into its
body and definitions, finding fragment references and finding calls to
functions nobody registered.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from jinja2 import Environment, nodes
from jinja2.exceptions import TemplateSyntaxError
from jinja2.ext import Extension
from markupsafe import Markup

from htmlsets.errors import ExecutionError, FragmentSyntaxError, UndefinedFunctionError

ROOT_FRAGMENT = ""

# Name under which a compiled program exposes its fragment table
PROGRAM_VAR = "__htmlsets_fragments__"

# Names Jinja2 resolves itself, even when they are called like functions
_BUILTIN_CALLABLES = frozenset({"caller", "loop", "super", "self", "varargs", "kwargs"})


def data_context(data: Any) -> dict[str, Any]:
    """Variables for a render value: ``data``, plus its keys if a mapping."""
    context: dict[str, Any] = {"data": data}
    if isinstance(data, Mapping):
        context.update((str(key), value) for key, value in data.items())
    return context


class FragmentExtension(Extension):
    """Adds the ``define`` and ``fragment`` tags."""

    tags = {"define", "fragment"}

    def parse(self, parser):
        token = next(parser.stream)
        name = self._parse_name(parser, token.value, token.lineno)
        if token.value == "define":
            if name == ROOT_FRAGMENT:
                parser.fail("the root fragment cannot be defined by name", token.lineno)
            body = parser.parse_statements(("name:enddefine",), drop_needle=True)
            return nodes.CallBlock(
                self.call_method("_define", [nodes.Const(name)]), [], [], body
            ).set_lineno(token.lineno)

        args = [nodes.DerivedContextReference(), nodes.Const(name)]
        if parser.stream.skip_if("name:with"):
            args.append(parser.parse_expression())
        call = self.call_method("_render_fragment", args, lineno=token.lineno)
        return nodes.Output([call]).set_lineno(token.lineno)

    @staticmethod
    def _parse_name(parser, tag: str, lineno: int) -> str:
        expr = parser.parse_expression()
        if not isinstance(expr, nodes.Const) or not isinstance(expr.value, str):
            parser.fail(f"'{tag}' expects a string literal fragment name", lineno)
        return expr.value

    def _define(self, name, caller):
        # Definitions are lifted out before compiling; one that survives
        # (e.g. inside an included partial) renders nothing.
        return ""

    def _render_fragment(self, context, name, *data):
        fragments = context.get(PROGRAM_VAR)
        if fragments is None or name not in fragments:
            raise ExecutionError(f'fragment "{name}" not defined')
        variables = dict(context.get_all())
        if data:
            variables.update(data_context(data[0]))
        return Markup(fragments[name].render(variables))


# ---------------------------------------------------------------------------
# Tree helpers
# ---------------------------------------------------------------------------


def walk(root: nodes.Node) -> Iterator[nodes.Node]:
    """Yield *root* and all of its descendants.

    Uses an explicit stack, so deeply nested templates cannot hit the
    recursion limit.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(node.iter_child_nodes())


def _is_marker(node: nodes.Node, method: str) -> bool:
    return (
        isinstance(node, nodes.Call)
        and isinstance(node.node, nodes.ExtensionAttribute)
        and node.node.identifier == FragmentExtension.identifier
        and node.node.name == method
    )


def _is_definition(node: nodes.Node) -> bool:
    return isinstance(node, nodes.CallBlock) and _is_marker(node.call, "_define")


def _is_blank(body: Iterable[nodes.Node]) -> bool:
    for node in body:
        if not isinstance(node, nodes.Output):
            return False
        for child in node.nodes:
            if not isinstance(child, nodes.TemplateData) or child.data.strip():
                return False
    return True


def _as_template(body: list[nodes.Node], environment: Environment) -> nodes.Template:
    lineno = body[0].lineno if body else 1
    return nodes.Template(body, lineno=lineno).set_environment(environment)


def referenced_fragments(tree: nodes.Node) -> set[str]:
    """Return the names of all fragments *tree* renders with ``fragment``.

    Branches of ``if``/``for`` and any other nesting are included.
    """
    names: set[str] = set()
    for node in walk(tree):
        if _is_marker(node, "_render_fragment"):
            names.add(node.args[1].value)
    return names


def _bound_names(tree: nodes.Node) -> set[str]:
    """Names a template binds itself: macros, imports, loop and set targets."""
    bound: set[str] = set()
    for node in walk(tree):
        if isinstance(node, nodes.Name) and node.ctx in ("store", "param"):
            bound.add(node.name)
        elif isinstance(node, nodes.Macro):
            bound.add(node.name)
        elif isinstance(node, nodes.Import):
            bound.add(node.target)
        elif isinstance(node, nodes.FromImport):
            for entry in node.names:
                bound.add(entry[1] if isinstance(entry, tuple) else entry)
    return bound


# ---------------------------------------------------------------------------
# Parsed sources
# ---------------------------------------------------------------------------


@dataclass
class ParsedSource:
    """One template source split into fragment trees.

    Attributes:
        name: Registry name of the source, used in error messages.
        tree: The complete parse tree.
        body: Top-level content outside ``define`` blocks, or ``None`` if
            the source only holds definitions.
        definitions: Fragment name -> tree for every ``define`` block.
    """

    name: str
    tree: nodes.Template
    body: nodes.Template | None = None
    definitions: dict[str, nodes.Template] = field(default_factory=dict)

    def check_functions(
        self, funcs: Mapping[str, object], environment: Environment,
    ) -> None:
        """Raise if the source calls a function that is not available.

        A called name is available when it is one of *funcs*, a Jinja2
        global, or bound by the template itself.
        """
        known = set(funcs) | set(environment.globals) | _BUILTIN_CALLABLES
        known |= _bound_names(self.tree)
        for node in walk(self.tree):
            if (
                isinstance(node, nodes.Call)
                and isinstance(node.node, nodes.Name)
                and node.node.name not in known
            ):
                raise UndefinedFunctionError(self.name, node.node.name)


def parse_source(environment: Environment, name: str, text: str) -> ParsedSource:
    """Parse *text* and split it into body and named definitions.

    Raises :class:`~htmlsets.errors.FragmentSyntaxError` for malformed
    template text and for ``define`` blocks that are not at the top level.
    """
    try:
        tree = environment.parse(text, name=name)
    except TemplateSyntaxError as exc:
        raise FragmentSyntaxError(name, f"line {exc.lineno}: {exc.message}") from exc

    parsed = ParsedSource(name=name, tree=tree)
    body: list[nodes.Node] = []
    for node in tree.body:
        if not _is_definition(node):
            body.append(node)
            continue
        fragment_name = node.call.args[0].value
        _reject_nested_definitions(name, node.body)
        # Redefinition within one source: last one wins
        parsed.definitions[fragment_name] = _as_template(node.body, environment)
    _reject_nested_definitions(name, body)

    if not parsed.definitions or not _is_blank(body):
        parsed.body = _as_template(body, environment)
    return parsed


def _reject_nested_definitions(source_name: str, body: list[nodes.Node]) -> None:
    for top in body:
        for node in walk(top):
            if _is_definition(node):
                raise FragmentSyntaxError(
                    source_name,
                    f"line {node.lineno}: 'define' is only allowed at the top level",
                )
