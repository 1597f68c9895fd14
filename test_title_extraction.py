"""
Tests for recovering titles from overlong headings.
"""

import pytest

from deck_pipeline.outline.title_extraction import (
    GenericTitle,
    TitleFallback,
    TitleFound,
    extract_title,
    extract_title_result,
)

FILLER = " and then the model kept writing about the request at great length without stopping"


def test_short_title_is_returned_trimmed():
    assert extract_title_result("  Quarterly Results  ") == TitleFound("Quarterly Results", "verbatim")


def test_labeled_title():
    result = extract_title_result("Title: Building Better Teams\n" + FILLER)
    assert result == TitleFound("Building Better Teams", "labeled_title")


def test_japanese_labeled_title():
    raw = "【タイトル案】データ分析の基礎と実践\n" + "説明" * 60
    assert extract_title_result(raw) == TitleFound("データ分析の基礎と実践", "labeled_title")


def test_quoted_text():
    result = extract_title_result('We could call this deck "Winning the Next Quarter"' + FILLER)
    assert result == TitleFound("Winning the Next Quarter", "quoted_text")


def test_symbol_prefixed_on_its_own_line():
    raw = "★ Customer Retention Playbook\n" + "details " * 20
    assert extract_title_result(raw) == TitleFound("Customer Retention Playbook", "symbol_prefixed")


def test_first_line_of_plausible_length():
    raw = "Pricing Strategy Review\n" + "more words " * 10
    assert extract_title_result(raw) == TitleFound("Pricing Strategy Review", "first_line_of_plausible_length")


def test_first_sentence():
    raw = "Cloud costs explained. " + "x" * 100
    assert extract_title_result(raw) == TitleFound("Cloud costs explained", "first_sentence")


def test_reasoning_text_skips_to_keyword_category():
    raw = "1. User intent: the user wants a leadership workshop deck for new managers" + FILLER
    result = extract_title_result(raw)
    assert isinstance(result, TitleFallback)
    assert result.title == "Leadership Training"


def test_japanese_reasoning_text_uses_category():
    raw = "構成案：" + "ロジカルシンキングを学ぶための資料です。" * 6
    assert extract_title_result(raw) == TitleFallback("ロジカルシンキング研修", "ロジカルシンキング")


def test_acronym_keyword_needs_word_boundary():
    raw = "Audience: people who explain things and maintain systems every day" + FILLER
    assert isinstance(extract_title_result(raw), GenericTitle)


def test_generic_fallback():
    raw = "Audience: " + "zzz " * 40
    assert extract_title_result(raw) == GenericTitle()
    assert extract_title(raw) == "Presentation"


@pytest.mark.parametrize("raw", [
    "x" * 500,
    "Title: " + "y" * 300,
    "「" + "z" * 200 + "」",
    "★" + "w" * 200,
    "",
])
def test_result_never_exceeds_limit(raw):
    assert 0 < len(extract_title(raw)) <= 80
