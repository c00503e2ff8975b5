"""Rendering composed views."""

from __future__ import annotations

import io
import threading

import pytest

from htmlsets import Loader, LoaderConfig
from htmlsets.errors import (
    ExecutionError,
    FatalTemplateError,
    FragmentSyntaxError,
    MissingFragmentsError,
    MissingRootError,
    SourceNotFoundError,
    TemplateSetError,
    UndefinedFunctionError,
)

PAGE = "<html> <body> <h1>{}</h1> </body> </html>"


def trim(out: str) -> str:
    return " ".join(out.split())


class TestCompose:
    def test_add_templates(self, loader):
        view = loader.new_set().add("layout", "pages/home").view()
        assert trim(view.render()) == PAGE.format("Home")

    def test_add_and_set_template(self, loader):
        view = loader.new_set().add("layout").set("content", "pages/content").view()
        assert trim(view.render()) == PAGE.format("Content")

    def test_merge_sets(self, loader):
        base = loader.new_set().add("layout")
        view = loader.new_set().merge(base).add("pages/home").view()
        assert trim(view.render()) == PAGE.format("Home")

    def test_base_set_is_reusable(self, loader):
        base = loader.new_set().add("layout")
        home = base.add("pages/home")
        content = base.set("content", "pages/content")

        assert len(base.source_refs()) == 1
        assert trim(home.view().render()) == PAGE.format("Home")
        assert trim(content.view().render()) == PAGE.format("Content")

    def test_render_data(self, loader):
        loader.add_text("greet", "Hello {{ name }} / {{ data.name }}")
        view = loader.new_set().add("greet").view()
        assert view.render({"name": "Ada"}) == "Hello Ada / Ada"

    def test_absent_data(self, loader):
        loader.add_text("maybe", "[{% if data is none %}none{% endif %}]")
        assert loader.new_set().add("maybe").view().render() == "[none]"

    def test_escapes_plain_values(self, loader):
        loader.add_text("echo", "{{ data }}")
        assert loader.new_set().add("echo").view().render("<b>") == "&lt;b&gt;"

    def test_fragments_share_context(self, loader):
        loader.add_text("page", '{% define "content" %}<h1>{{ title }}</h1>{% enddefine %}')
        view = loader.new_set().add("layout", "page").view()
        assert trim(view.render({"title": "Hi"})) == PAGE.format("Hi")

    def test_write_to_stream(self, loader):
        sink = io.StringIO()
        loader.new_set().add("layout", "pages/home").view().write_to(sink)
        assert trim(sink.getvalue()) == PAGE.format("Home")

    def test_include_partial(self, loader):
        view = loader.new_set().add("pages/with_partial").view()
        assert view.render("menu") == "<nav>menu</nav>"

    def test_fragment_sees_loop_variables(self, loader):
        loader.add_text("list", '<ul>{% for item in data %}{% fragment "row" %}{% endfor %}</ul>')
        loader.add_text("row", '{% define "row" %}<li>{{ item }}</li>{% enddefine %}')
        view = loader.new_set().add("list", "row").view()
        assert view.render(["a", "b"]) == "<ul><li>a</li><li>b</li></ul>"

    def test_fragment_sees_with_variables(self, loader):
        loader.add_text("page", '{% with title="T" %}{% fragment "h" %}{% endwith %}')
        loader.add_text("h", '{% define "h" %}<h1>{{ title }}</h1>{% enddefine %}')
        assert loader.new_set().add("page", "h").view().render() == "<h1>T</h1>"

    def test_fragment_with_explicit_value(self, loader):
        loader.add_text(
            "list",
            '{% for user in data %}{% fragment "card" with user %}{% endfor %}',
        )
        loader.add_text("card", '{% define "card" %}[{{ name }}/{{ data.name }}]{% enddefine %}')
        view = loader.new_set().add("list", "card").view()
        assert view.render([{"name": "a"}, {"name": "b"}]) == "[a/a][b/b]"


class TestBuildErrors:
    def test_missing_template(self, loader):
        with pytest.raises(SourceNotFoundError, match='template "not-existing" not found'):
            loader.new_set().add("not-existing").view()

    def test_invalid_syntax(self, loader):
        with pytest.raises(FragmentSyntaxError, match="invalid_syntax"):
            loader.new_set().add("invalid_syntax").view()

    def test_missing_function(self, loader):
        with pytest.raises(UndefinedFunctionError, match='function "invalid" not defined'):
            loader.new_set().add("invalid_func").view()

    def test_incomplete_template(self, loader):
        with pytest.raises(MissingRootError, match="missing root template"):
            loader.new_set().add("pages/home").view()
        with pytest.raises(MissingFragmentsError, match=r'missing template\(s\) \["content"\]'):
            loader.new_set().add("layout").view()

    def test_view_or_panic(self, loader):
        with pytest.raises(FatalTemplateError) as exc_info:
            loader.new_set().add("not-existing").view_or_panic()
        assert isinstance(exc_info.value.__cause__, SourceNotFoundError)
        assert not isinstance(exc_info.value, TemplateSetError)

    def test_undecodable_file_is_syntax_error(self, loader, fixtures_dir):
        (fixtures_dir / "bad.html").write_bytes(b"\xff\xfe<b>")
        loader.rescan()
        with pytest.raises(FragmentSyntaxError, match="not valid UTF-8"):
            loader.new_set().add("bad").view()
        with pytest.raises(FatalTemplateError):
            loader.new_set().add("bad").view_or_panic()

    def test_unknown_filter_is_syntax_error(self, loader):
        loader.add_text("filtered", "{{ data|nosuchfilter }}")
        with pytest.raises(FragmentSyntaxError):
            loader.new_set().add("filtered").view()


class TestExecutionErrors:
    def test_helper_exception_is_execution_error(self, loader):
        def boom(value):
            raise ValueError("boom")

        view = loader.new_set().add("funcs/dynamic1").add_func("customFunc", boom).view()
        with pytest.raises(ExecutionError, match="boom"):
            view.render()

    def test_fragment_missing_at_runtime(self, tmp_path):
        templates = tmp_path / "t"
        templates.mkdir()
        (templates / "_partial.html").write_text('{% fragment "nowhere" %}')
        loader = Loader(LoaderConfig(directories=[templates]))
        loader.add_text("page", '{% include "_partial.html" %}')
        view = loader.new_set().add("page").view()
        with pytest.raises(ExecutionError, match='fragment "nowhere" not defined'):
            view.render()


class TestReload:
    def test_reload_template_source(self, reload_loader, fixtures_dir):
        dynamic = fixtures_dir / "dynamic.html"
        view = reload_loader.new_set().add("dynamic").view_or_panic()
        assert trim(view.render()) == ""

        dynamic.write_text("dynamic")
        assert trim(view.render()) == "dynamic"

        dynamic.write_text("{{ invalid() }}")
        with pytest.raises(UndefinedFunctionError, match='function "invalid" not defined'):
            view.render()

    def test_no_reload_keeps_built_program(self, loader, fixtures_dir):
        view = loader.new_set().add("dynamic").view()
        (fixtures_dir / "dynamic.html").write_text("changed")
        assert view.render() == ""

    def test_reload_picks_up_add_text(self, fixtures_dir):
        loader = Loader(LoaderConfig(directories=[fixtures_dir], auto_reload=True))
        loader.add_text("inline", "one")
        view = loader.new_set().add("inline").view()
        loader.add_text("inline", "two")
        assert view.render() == "two"


def test_concurrent_renders(loader):
    view = loader.new_set().add("layout", "pages/home").view()
    results: list[str] = []
    lock = threading.Lock()

    def work():
        for _ in range(20):
            out = trim(loader.new_set().add("layout", "pages/home").view().render())
            out2 = trim(view.render())
            with lock:
                results.extend([out, out2])

    threads = [threading.Thread(target=work) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 160
    assert set(results) == {PAGE.format("Home")}
