"""Shared fixtures: a template directory modelled on a small web site."""

from __future__ import annotations

from pathlib import Path

import pytest

from htmlsets import Loader, LoaderConfig

FIXTURES = {
    "layout.html": "<html>\n<body>\n{% fragment \"content\" %}\n</body>\n</html>\n",
    "pages/home.html": '{% define "content" %}<h1>Home</h1>{% enddefine %}\n',
    "pages/content.html": "<h1>Content</h1>",
    "pages/with_partial.html": '{% include "partials/_nav.html" %}',
    "partials/_nav.html": "<nav>{{ data }}</nav>",
    "funcs/raw.html": '{{ raw("<br>") }}',
    "funcs/nl2br.html": "{{ nl2br(data) }}",
    "funcs/run_set.html": "{{ runSet(data) }}",
    "funcs/run_view.html": "{{ runView(data) }}",
    "funcs/run_template.html": "{{ runTemplate(data) }}",
    "funcs/dynamic1.html": '{{ customFunc("abc") }}',
    "funcs/dynamic2.html": '{{ customFunc2(customFunc1("abc")) }}',
    "invalid_syntax.html": '{{ "unterminated }}',
    "invalid_func.html": "{{ invalid() }}",
    "dynamic.html": "",
    "notes.txt": "not a template",
}

# Everything above except the underscore partial and the .txt file
FIXTURE_SOURCE_COUNT = 14


def write_tree(root: Path, files: dict[str, str]) -> Path:
    for name, content in files.items():
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def fixtures_dir(tmp_path):
    return write_tree(tmp_path / "fixtures", FIXTURES)


@pytest.fixture
def loader(fixtures_dir):
    return Loader(LoaderConfig(directories=[fixtures_dir]))


@pytest.fixture
def reload_loader(fixtures_dir):
    return Loader(LoaderConfig(directories=[fixtures_dir], auto_reload=True))
