import json
from datetime import datetime

from click.testing import CliRunner

from conftest import write
from quire import __version__
from quire.cli import cli


def invoke(blog, *args):
    return CliRunner().invoke(cli, ["--root", str(blog), *args])


def test_check_passes_on_clean_blog(blog):
    result = invoke(blog, "check")
    assert result.exit_code == 0, result.output
    assert "3 entries, 8 routes: 0 errors, 0 warnings, 0 notes" in result.output


def test_check_reports_collisions_and_fails(blog):
    write(
        blog,
        "_posts/2020-01-01-continuous-delivery-in-ios.md",
        "---\nlayout: post\nauthor: asalom\ndescription: d\ncategories: automation\n---\n",
    )
    result = invoke(blog, "check")
    assert result.exit_code == 1
    assert "route-collision" in result.output
    assert "1 errors" in result.output

    result = invoke(blog, "check", "--skip", "route", "--format", "json")
    assert result.exit_code == 0
    assert json.loads(result.output) == {
        "ok": True,
        "errors": 0,
        "warnings": 0,
        "infos": 0,
        "issues": [],
    }


def test_check_strict_and_drafts(blog):
    write(blog, "_drafts/untitled.md", "---\ntitle: Untitled\n---\n")
    assert invoke(blog, "check").exit_code == 0

    result = invoke(blog, "check", "--drafts", "--format", "json")
    assert result.exit_code == 1
    payload = json.loads(result.output)
    assert [issue["code"] for issue in payload["issues"]] == ["layout-missing"]

    write(blog, "_posts/2020-01-01-anonymous.md", "---\nlayout: post\ndescription: d\n---\n")
    assert invoke(blog, "check").exit_code == 0
    assert invoke(blog, "check", "--strict").exit_code == 1
    assert invoke(blog, "check", "--select", "description").exit_code == 0


def test_routes_command(blog):
    result = invoke(blog, "routes")
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].startswith("/ ")
    assert "8 routes" in lines[-1]
    assert any("_posts/2019-03-04-continuous-delivery-in-ios.md" in line for line in lines)

    result = invoke(blog, "routes", "--json")
    payload = json.loads(result.output)
    assert payload[0] == {"url": "/", "output": "index.html", "source": "index.html", "kind": "page"}
    assert {"url": "/feed.xml", "output": "feed.xml", "source": "jekyll-feed", "kind": "feed"} in payload


def test_tags_and_authors_commands(blog):
    write(
        blog,
        "_posts/2020-01-01-fastlane.md",
        "---\nlayout: post\nauthor: [asalom, guest]\ntags: [ios]\n---\n" + "word " * 250,
    )
    result = invoke(blog, "tags")
    assert result.exit_code == 0
    assert result.output.splitlines() == ["   2  ios", "   1  ci", "2 tags"]

    result = invoke(blog, "authors")
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0] == "asalom: Alex Salom - 2 posts, 3 min"
    assert lines[1].startswith("guest: ")
    assert "(undefined)" in lines[1]
    assert lines[1].endswith("1 posts, 2 min")


def test_new_command_creates_post(blog, monkeypatch):
    answers = iter(["Shipping with Fastlane", "fastlane ci", "Automating releases"])

    class FakePrompt:
        def __init__(self, answer):
            self.answer = answer

        def ask(self):
            return self.answer

    def fake_text(*args, **kwargs):
        return FakePrompt(next(answers))

    def fake_select(message, choices, **kwargs):
        assert choices == ["asalom"]
        return FakePrompt("asalom")

    monkeypatch.setattr("quire.cli.questionary.text", fake_text)
    monkeypatch.setattr("quire.cli.questionary.select", fake_select)

    result = invoke(blog, "new")
    assert result.exit_code == 0, result.output

    date_prefix = datetime.now().strftime("%Y-%m-%d")
    created = blog / "_posts" / f"{date_prefix}-shipping-with-fastlane.md"
    assert "-> /shipping-with-fastlane/" in result.output
    content = created.read_text(encoding="utf-8")
    assert "title: Shipping with Fastlane\n" in content
    assert "author: asalom\n" in content
    assert "tags: [fastlane, ci]\n" in content
    assert "description: Automating releases\n" in content

    assert invoke(blog, "check").exit_code == 0


def test_new_command_aborts_and_reports_collisions(blog, monkeypatch):
    class FakePrompt:
        def __init__(self, answer):
            self.answer = answer

        def ask(self):
            return self.answer

    monkeypatch.setattr("quire.cli.questionary.text", lambda *a, **k: FakePrompt(None))
    result = invoke(blog, "new")
    assert result.exit_code == 1
    assert "Aborted" in result.output

    write(blog, "_posts/2019-01-01-hello.md", "---\nlayout: post\n---\n")
    answers = iter(["Hello", "", ""])
    monkeypatch.setattr("quire.cli.questionary.text", lambda *a, **k: FakePrompt(next(answers)))
    monkeypatch.setattr("quire.cli.questionary.select", lambda *a, **k: FakePrompt("asalom"))
    result = invoke(blog, "new")
    assert result.exit_code == 1
    assert "already used by _posts/2019-01-01-hello.md" in result.output


def test_load_errors(blog, tmp_path):
    (blog / "_config.yml").write_text("title: [unclosed\n", encoding="utf-8")
    result = invoke(blog, "check")
    assert result.exit_code == 1
    assert "Load failed" in result.output
    assert "_config.yml" in result.output

    result = invoke(tmp_path / "missing", "check")
    assert result.exit_code != 0


def test_watch_runs_checks_once(blog, monkeypatch):
    started = []

    def fake_start(self):
        started.append(self.project_root)
        self.run_once()

    monkeypatch.setattr("quire.watcher.CheckWatcher.start", fake_start)
    result = invoke(blog, "watch")
    assert result.exit_code == 0
    assert started == [blog.resolve()]
    assert "0 errors" in result.output


def test_version_and_main(monkeypatch):
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output

    import quire.cli as cli_mod

    called = {}
    monkeypatch.setattr(cli_mod, "cli", lambda: called.setdefault("ran", True))
    cli_mod.main()
    assert called == {"ran": True}

    from quire.__main__ import main

    assert callable(main)
