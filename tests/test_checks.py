from conftest import CONFIG, write
from quire.checks import (
    CheckRegistry,
    CodeLanguageCheck,
    Issue,
    Report,
    Severity,
    run_checks,
)
from quire.site import load_site


def check(root, **kwargs):
    return run_checks(load_site(root), **kwargs)


def set_config(root, text):
    (root / "_config.yml").write_text(text, encoding="utf-8")


def test_clean_blog_passes(blog):
    report = check(blog)
    assert report.issues == []
    assert report.ok
    assert report.to_dict() == {"ok": True, "errors": 0, "warnings": 0, "infos": 0, "issues": []}


def test_unknown_and_missing_authors(blog):
    write(blog, "_posts/2020-01-01-guest.md", "---\nlayout: post\nauthor: nobody\ndescription: d\n---\n")
    write(blog, "_posts/2020-01-02-anonymous.md", "---\nlayout: post\ndescription: d\n---\n")
    report = check(blog)

    by_code = {i.code: i for i in report.issues}
    unknown = by_code["author-unknown"]
    assert unknown.severity is Severity.ERROR
    assert unknown.path == "_posts/2020-01-01-guest.md"
    assert "'nobody'" in unknown.message
    assert "asalom" in unknown.message

    missing = by_code["author-missing"]
    assert missing.severity is Severity.WARNING
    assert missing.path == "_posts/2020-01-02-anonymous.md"
    assert not report.ok


def test_author_without_name(blog):
    set_config(blog, CONFIG.replace("    name:             Alex Salom\n", ""))
    report = check(blog, select=["author"])
    assert [(i.code, i.path) for i in report.issues] == [
        ("author-incomplete", "_posts/2019-03-04-continuous-delivery-in-ios.md")
    ]


def test_layout_missing_and_unresolved(blog):
    write(blog, "_pages/faq.md", "---\ntitle: FAQ\n---\n")
    write(blog, "_pages/talks.md", "---\nlayout: talks\n---\n")
    report = check(blog, select=["layout"])
    assert [(i.severity, i.code, i.path) for i in report.issues] == [
        (Severity.ERROR, "layout-missing", "_pages/faq.md"),
        (Severity.WARNING, "layout-unresolved", "_pages/talks.md"),
    ]


def test_unresolved_layouts_ignored_without_layout_dir(blog):
    for layout in blog.joinpath("_layouts").iterdir():
        layout.unlink()
    blog.joinpath("_layouts").rmdir()
    write(blog, "_pages/talks.md", "---\nlayout: talks\n---\n")
    assert check(blog, select=["layout"]).issues == []


def test_tag_page_layout_must_exist(blog):
    (blog / "_layouts" / "tag_page.html").unlink()
    report = check(blog, select=["layout"])
    assert [(i.code, i.path) for i in report.issues] == [("layout-unresolved", "_config.yml")]


def test_route_collision_between_posts(blog):
    write(
        blog,
        "_posts/2020-01-01-continuous-delivery-in-ios.md",
        "---\nlayout: post\nauthor: asalom\ndescription: Again\ncategories: automation\n---\n",
    )
    report = check(blog)
    assert report.codes() == {"route-collision"}
    issue = report.errors[0]
    assert "/automation/continuous-delivery-in-ios/" in issue.message
    assert "_posts/2019-03-04-continuous-delivery-in-ios.md" in issue.message
    assert "_posts/2020-01-01-continuous-delivery-in-ios.md" in issue.message
    assert not report.ok


def test_invalid_configuration_values(blog):
    config = (
        CONFIG.replace("paginate: 13", "paginate: 0")
        .replace("tag_permalink_style:  pretty", "tag_permalink_style:  fancy")
        .replace("permalink: /:categories/:title/", "permalink: weird")
        .replace("markdown: kramdown", "markdown: maruku")
        .replace("  - jekyll-tidy\n", "  - jekyll-tidy\n  - jekyll-feed\n  - jekyll-octopodes\n")
    )
    set_config(blog, config)
    report = check(blog, select=["paginate", "tag-style", "permalink", "engine", "plugin"])
    assert sorted((i.severity.value, i.code) for i in report.issues) == [
        ("error", "paginate-invalid"),
        ("error", "permalink-invalid"),
        ("error", "tag-style-invalid"),
        ("warning", "engine-unknown"),
        ("warning", "plugin-duplicate"),
        ("warning", "plugin-unknown"),
    ]
    assert all(i.path == "_config.yml" for i in report.issues)


def test_paginate_unset_and_known_plugins_setting(blog):
    config = CONFIG.replace("paginate: 13\n", "") + "quire:\n  known_plugins: [jekyll-octopodes]\n"
    config = config.replace("  - jekyll-tidy\n", "  - jekyll-tidy\n  - jekyll-octopodes\n")
    set_config(blog, config)
    report = check(blog)
    assert report.codes() == {"paginate-unset"}
    assert report.ok


def test_front_matter_dates_and_permalinks(blog):
    write(blog, "_posts/2020-01-02-broken.md", "---\ntitle: [unclosed\n---\nBody\n")
    write(blog, "_posts/no-date.md", "---\nlayout: post\nauthor: asalom\ndescription: d\n---\n")
    write(
        blog,
        "_posts/2020-01-03-odd.md",
        "---\nlayout: post\nauthor: asalom\ndescription: d\npermalink: /:nope/\n---\n",
    )
    report = check(blog, skip=["author", "description"])
    assert [(i.code, i.path) for i in report.issues] == [
        ("frontmatter-invalid", "_posts/2020-01-02-broken.md"),
        ("permalink-invalid", "_posts/2020-01-03-odd.md"),
        ("post-undated", "_posts/no-date.md"),
    ]


def test_tag_spellings_and_code_languages(blog):
    write(
        blog,
        "_posts/2020-01-01-fastlane.md",
        "---\nlayout: post\nauthor: asalom\ndescription: d\ntags: [iOS]\n---\n\n"
        "```ruby\nlane :beta\n```\n\n```klingon\nQapla'\n```\n\n```yml\na: 1\n```\n",
    )
    report = check(blog)
    assert [(i.code, i.path) for i in report.issues] == [
        ("code-language-unknown", "_posts/2020-01-01-fastlane.md"),
        ("tag-inconsistent", "_posts/2020-01-01-fastlane.md"),
    ]
    tag_issue = report.warnings[1]
    assert "'iOS' (1)" in tag_issue.message
    assert "'ios' (1)" in tag_issue.message
    assert "klingon" in report.warnings[0].message


def test_description_missing_is_informational(blog):
    write(blog, "_posts/2020-01-01-short.md", "---\nlayout: post\nauthor: asalom\n---\nShort.\n")
    report = check(blog)
    assert [(i.severity, i.code) for i in report.issues] == [(Severity.INFO, "description-missing")]
    assert report.ok
    assert report.infos == report.issues


def test_select_skip_and_strict(blog):
    write(blog, "_posts/2020-01-01-anonymous.md", "---\nlayout: post\n---\nText\n")
    assert check(blog).codes() == {"author-missing", "description-missing"}
    assert check(blog, select=["author-missing"]).codes() == {"author-missing"}
    assert check(blog, skip=["author"]).codes() == {"description-missing"}

    assert check(blog).ok
    assert not check(blog, strict=True).ok


def test_configured_skip_and_strict(blog):
    write(blog, "_posts/2020-01-01-anonymous.md", "---\nlayout: post\n---\nText\n")
    set_config(blog, CONFIG + "quire:\n  skip: [description]\n  strict: true\n")
    report = check(blog)
    assert report.codes() == {"author-missing"}
    assert report.strict
    assert not report.ok
    assert check(blog, strict=False).ok


def test_report_orders_by_severity_then_path():
    report = Report(
        [
            Issue(Severity.INFO, "description-missing", "m", "a.md"),
            Issue(Severity.WARNING, "post-undated", "m", "b.md"),
            Issue(Severity.ERROR, "route-collision", "m", "c.md"),
            Issue(Severity.ERROR, "author-unknown", "m", "a.md"),
        ]
    )
    assert [i.code for i in report.issues] == [
        "author-unknown",
        "route-collision",
        "post-undated",
        "description-missing",
    ]


def test_registry_accepts_custom_checks(blog):
    class AlwaysComplains:
        code = "custom"
        description = "Always reports one issue"

        def run(self, site):
            return [Issue(Severity.WARNING, "custom-issue", "Custom", "")]

    registry = CheckRegistry([CodeLanguageCheck()])
    registry.register(AlwaysComplains())
    report = registry.run(load_site(blog))
    assert report.codes() == {"custom-issue"}


def test_undated_post_with_front_matter_date_is_flagged(blog):
    write(
        blog,
        "_posts/continuous-delivery-in-ios.md",
        "---\nlayout: post\nauthor: asalom\ndescription: d\ndate: 2020-01-01\n"
        "categories: automation\n---\n",
    )
    report = check(blog)
    assert [(i.code, i.path) for i in report.issues] == [
        ("post-undated", "_posts/continuous-delivery-in-ios.md")
    ]


def test_tool_settings_accept_a_single_string(blog):
    write(blog, "_posts/2020-01-01-short.md", "---\nlayout: post\nauthor: asalom\n---\nShort.\n")
    config = CONFIG.replace("  - jekyll-tidy\n", "  - jekyll-tidy\n  - jekyll-octopodes\n")
    set_config(blog, config + "quire:\n  skip: description\n  known_plugins: jekyll-octopodes\n")
    assert check(blog).issues == []
