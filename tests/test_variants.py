"""Tests for APKCombo variant parsing and ranking."""

import pytest

from apkfetch.config import VariantWeights
from apkfetch.errors import NoVariantsFound
from apkfetch.models import Variant
from apkfetch.variants import (
    extract_site_error,
    parse_variants,
    rank_variants,
    score_variant,
    select_variant,
)

BASE = "https://apkcombo.com/downloader/"

FILE_LIST = """
<ul class="file-list">
  <li><a href="/d?u=x86"><span class="name">widget_x86.apk</span> APK x86 nodpi</a></li>
  <li><a href="/d?u=xapk"><span class="name">widget.xapk</span> XAPK universal</a></li>
  <li><a href="/d?u=arm64"><span class="name">widget_arm64.apk</span> APK arm64-v8a</a></li>
  <li><span>no link here</span></li>
</ul>
"""


def _variant(descriptor: str, href: str = "https://example.com/d") -> Variant:
    return Variant(href=href, descriptor=descriptor, filename="f.apk")


def test_parse_variants_reads_file_list() -> None:
    variants = parse_variants(FILE_LIST, BASE)

    assert [v.href for v in variants] == [
        "https://apkcombo.com/d?u=x86",
        "https://apkcombo.com/d?u=xapk",
        "https://apkcombo.com/d?u=arm64",
    ]
    assert variants[0].filename == "widget_x86.apk"
    assert "nodpi" in variants[0].descriptor
    assert variants[1].descriptor == variants[1].descriptor.lower()


def test_missing_name_uses_fallback_filename() -> None:
    html = '<ul class="file-list"><li><a href="/d?u=1">APK</a></li></ul>'
    assert parse_variants(html, BASE)[0].filename == "download.apk"


def test_scores_follow_weights() -> None:
    weights = VariantWeights()
    assert score_variant(_variant("apk arm64-v8a"), weights) == 120
    assert score_variant(_variant("xapk universal"), weights) == 60
    assert score_variant(_variant("apk x86 nodpi"), weights) == -25
    assert score_variant(_variant("widget.xapk"), weights) == 10


def test_best_variant_is_selected() -> None:
    best = select_variant(parse_variants(FILE_LIST, BASE))
    assert best.href == "https://apkcombo.com/d?u=arm64"


def test_ties_keep_page_order() -> None:
    first = _variant("apk universal", href="https://example.com/1")
    second = _variant("apk universal", href="https://example.com/2")
    weaker = _variant("xapk", href="https://example.com/3")

    ranked = rank_variants([weaker, first, second], VariantWeights())

    assert ranked == [first, second, weaker]
    assert select_variant([weaker, first, second]) is first


def test_selected_variant_has_maximal_score() -> None:
    weights = VariantWeights()
    variants = [_variant(text) for text in ("x86", "apk nodpi", "arm64 xapk", "universal apk")]
    best = select_variant(variants, weights)
    assert all(score_variant(best, weights) >= score_variant(v, weights) for v in variants)


def test_custom_weights_change_preference() -> None:
    weights = VariantWeights(preferred_arch_keywords=("x86",), mismatched_arch_keywords=("arm64",))
    variants = [_variant("apk arm64"), _variant("apk x86", href="https://example.com/x86")]
    assert select_variant(variants, weights).href == "https://example.com/x86"


def test_empty_list_raises() -> None:
    with pytest.raises(NoVariantsFound):
        select_variant([])


def test_extract_site_error() -> None:
    assert extract_site_error('<div class="alert alert-danger"> Not found </div>') == "Not found"
    assert extract_site_error(FILE_LIST) is None
