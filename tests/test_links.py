"""Tests for candidate link collection."""

from apkfetch.links import collect_links, extract_title

BASE = "https://www.apkmirror.com/apk/acme/widget/"


def test_collects_anchors_data_attributes_and_handlers() -> None:
    html = """
    <a href="release/">release</a>
    <div data-href="/apk/acme/widget/download/">button</div>
    <span data-url="https://cdn.example.com/file.apk"></span>
    <button onclick="window.location.href = '/next/';">next</button>
    <button onclick="location.assign(&quot;/assigned/&quot;)">assign</button>
    """
    assert collect_links(html, BASE) == [
        "https://www.apkmirror.com/apk/acme/widget/release/",
        "https://www.apkmirror.com/apk/acme/widget/download/",
        "https://cdn.example.com/file.apk",
        "https://www.apkmirror.com/next/",
        "https://www.apkmirror.com/assigned/",
    ]


def test_duplicates_are_dropped() -> None:
    html = '<a href="/a/">1</a><a href="https://www.apkmirror.com/a/">2</a><a href="/a/">3</a>'
    assert collect_links(html, BASE) == ["https://www.apkmirror.com/a/"]


def test_unresolvable_and_non_http_links_are_dropped() -> None:
    html = """
    <a href="javascript:void(0)">js</a>
    <a href="mailto:team@example.com">mail</a>
    <a href="#top">anchor</a>
    <a href="http://[broken">bad</a>
    <a href="/ok/">ok</a>
    """
    assert collect_links(html, BASE) == ["https://www.apkmirror.com/ok/"]


def test_base_tag_changes_resolution() -> None:
    html = '<head><base href="https://mirror.example.com/root/"></head><a href="file/">f</a>'
    assert collect_links(html, BASE) == ["https://mirror.example.com/root/file/"]


def test_extract_title() -> None:
    assert extract_title("<title> Widget 1.0 </title>") == "Widget 1.0"
    assert extract_title("<p>no title</p>") == ""
