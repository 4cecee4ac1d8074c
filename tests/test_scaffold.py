from datetime import datetime

import pytest

from conftest import write
from quire.extractors import extract_frontmatter
from quire.scaffold import ScaffoldError, plan_post, write_post
from quire.site import load_site

WHEN = datetime(2024, 5, 6, 8, 0)


def test_plan_post_renders_front_matter(blog):
    site = load_site(blog)
    post = plan_post(
        site,
        "Hello World",
        author="asalom",
        tags=["swift", "ios"],
        date=WHEN,
    )
    assert post.path == blog / "_posts" / "2024-05-06-hello-world.md"
    assert post.url == "/hello-world/"
    assert post.content == (
        "---\nlayout: post\ntitle: Hello World\nauthor: asalom\ntags: [swift, ios]\n---\n\n"
    )


def test_plan_post_quotes_awkward_values(blog):
    site = load_site(blog)
    post = plan_post(site, "Xcode: tips & tricks", description="Yes: really", date=WHEN)
    data, body = extract_frontmatter(post.content)
    assert data == {
        "layout": "post",
        "title": "Xcode: tips & tricks",
        "description": "Yes: really",
    }
    assert body == "\n"
    assert post.path.name == "2024-05-06-xcode-tips-tricks.md"


def test_plan_post_uses_post_defaults_for_layout(tmp_path):
    write(
        tmp_path,
        "_config.yml",
        "defaults:\n  - scope: {path: '', type: posts}\n    values: {layout: article}\n",
    )
    site = load_site(tmp_path)
    post = plan_post(site, "First", date=WHEN)
    assert post.url == "/2024/05/06/first.html"
    assert post.content.startswith("---\nlayout: article\n")
    assert plan_post(site, "First", date=WHEN, layout="custom").content.startswith(
        "---\nlayout: custom\n"
    )


def test_plan_post_refuses_collisions(blog):
    site = load_site(blog)
    with pytest.raises(ScaffoldError, match="usable slug"):
        plan_post(site, "!!!", date=WHEN)

    write(blog, "_posts/2024-05-06-taken.md", "---\nlayout: post\n---\n")
    with pytest.raises(ScaffoldError, match="already exists"):
        plan_post(load_site(blog), "Taken", date=WHEN)

    # An older post already claims /hello-world/
    write(blog, "_posts/2019-01-01-hello-world.md", "---\nlayout: post\n---\n")
    with pytest.raises(ScaffoldError, match="/hello-world/"):
        plan_post(load_site(blog), "Hello World", date=WHEN)


def test_write_post_creates_file(tmp_path):
    site = load_site(tmp_path)
    post = plan_post(site, "Fresh Start", date=WHEN)
    path = write_post(post)
    assert path == tmp_path / "_posts" / "2024-05-06-fresh-start.md"
    assert path.read_text(encoding="utf-8") == post.content
    assert [e.relative_path for e in load_site(tmp_path).entries] == [
        "_posts/2024-05-06-fresh-start.md"
    ]
