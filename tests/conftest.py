from pathlib import Path

import pytest

CONFIG = """\
title: Swift Talking
description: A blog about Swift, tooling and Continuous Integration.
baseurl: ''
url: 'https://www.swifttalking.com'

markdown: kramdown
highlighter: rouge
permalink: /:categories/:title/
paginate: 13

plugins:
  - jekyll-paginate
  - jekyll/tagging
  - jekyll-time-to-read
  - jekyll-seo-tag
  - jekyll-feed
  - jekyll-sitemap
  - jekyll-tidy

include:
  - _pages

exclude:
  - vendor
  - Gemfile
  - Gemfile.lock

tag_page_dir:         tag
tag_page_layout:      tag_page
tag_permalink_style:  pretty

defaults:
  - scope:
      path: '_pages'
    values:
      permalink: /:basename

authors:
  asalom:
    name:             Alex Salom
    bio:              'Hi! I am an iOS Engineer.'
    github_username:  asalom
    twitter_username: empatiia
"""

POST = """\
---
layout: post
title: Continuous Delivery in iOS
description: Shipping an iOS app on every merge.
author: asalom
categories: automation
tags: [ios, ci]
---

Continuous delivery means every change can go to the App Store.

```swift
let lane = "beta"
```
"""


def write(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def create_blog(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    write(root, "_config.yml", CONFIG)
    for layout in ("default", "post", "page", "tag_page"):
        write(root, f"_layouts/{layout}.html", "{{ content }}")
    write(root, "_includes/head.html", "<head></head>")
    write(root, "_posts/2019-03-04-continuous-delivery-in-ios.md", POST)
    write(root, "_pages/about.md", "---\nlayout: page\ntitle: About\n---\n\nHi there.\n")
    write(root, "index.html", "---\nlayout: default\n---\n<ul></ul>\n")
    write(root, "README.md", "# Swift Talking\n\nSource of the blog.\n")
    write(root, "vendor/bundle/gem/docs.md", "---\nlayout: nope\n---\n")
    write(root, "Gemfile", "source 'https://rubygems.org'\n")
    return root


@pytest.fixture
def blog(tmp_path) -> Path:
    return create_blog(tmp_path / "blog")
