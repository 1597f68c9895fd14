"""
Title extraction for overlong slide headings.

Models sometimes put their reasoning (or a whole paragraph) on the heading line. The cascade
below recovers a usable title: named extractors are tried in order, then a keyword category,
then the generic placeholder.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from config import DEFAULT_PRESENTATION_TITLE, TITLE_MAX_LENGTH

MIN_CANDIDATE_LENGTH = 6


@dataclass(frozen=True)
class TitleFound:
    """A title recovered from the raw text by one of the extractors."""
    title: str
    extractor: str


@dataclass(frozen=True)
class TitleFallback:
    """A category title chosen from a keyword found in the raw text."""
    title: str
    keyword: str


@dataclass(frozen=True)
class GenericTitle:
    title: str = DEFAULT_PRESENTATION_TITLE


TitleResult = Union[TitleFound, TitleFallback, GenericTitle]

# Heading lines that are the model talking about the task rather than a title
REASONING_PATTERNS = [
    re.compile(r"^\d+\.\s*(?:the\s+)?user", re.IGNORECASE),
    re.compile(r"^\d+\.\s*slide\s+(?:structure|composition)", re.IGNORECASE),
    re.compile(r"^(?:proposed\s+)?(?:structure|composition)\s*[:：]", re.IGNORECASE),
    re.compile(r"^(?:target\s+)?audience\s*[:：]", re.IGNORECASE),
    re.compile(r"^visual\s+(?:representation|approach)\s*[:：]", re.IGNORECASE),
    re.compile(r"^(?:with\s+this\s+structure|based\s+on\s+the\s+following\s+requirements)", re.IGNORECASE),
    re.compile(r"^(?:let me|i will|i'll|okay,|sure,)", re.IGNORECASE),
    re.compile(r"^\d+\.\s*ユーザー"),
    re.compile(r"^\d+\.\s*スライド構成"),
    re.compile(r"^構成案[：:]"),
    re.compile(r"^対象者[：:]"),
    re.compile(r"^視覚的表現[：:]"),
    re.compile(r"^この構成で"),
    re.compile(r"^以下の要件"),
]

# Keyword -> category title, checked in order
CATEGORY_KEYWORDS: List[Tuple[str, str]] = [
    ("logical thinking", "Logical Thinking Training"),
    ("critical thinking", "Critical Thinking Training"),
    ("design thinking", "Design Thinking Training"),
    ("project management", "Project Management Training"),
    ("leadership", "Leadership Training"),
    ("communication", "Communication Training"),
    ("marketing", "Marketing Training"),
    ("data analysis", "Data Analysis Training"),
    ("machine learning", "Machine Learning Training"),
    ("security", "Security Training"),
    ("compliance", "Compliance Training"),
    ("DX", "DX Training"),
    ("AI", "AI Training"),
    ("ロジカルシンキング", "ロジカルシンキング研修"),
    ("クリティカルシンキング", "クリティカルシンキング研修"),
    ("デザイン思考", "デザイン思考研修"),
    ("プロジェクトマネジメント", "プロジェクトマネジメント研修"),
    ("リーダーシップ", "リーダーシップ研修"),
    ("コミュニケーション", "コミュニケーション研修"),
    ("マーケティング", "マーケティング研修"),
    ("データ分析", "データ分析研修"),
    ("機械学習", "機械学習研修"),
    ("セキュリティ", "セキュリティ研修"),
    ("コンプライアンス", "コンプライアンス研修"),
]

_LABELED_TITLE = (
    re.compile(r"【(?:タイトル案?|研修タイトル|プレゼン?タイトル)】\s*([^\n【]*)"),
    re.compile(r"(?:proposed\s+title|title|タイトル案?|研修タイトル)\s*[：:]\s*([^\n]*)", re.IGNORECASE),
)
_QUOTED_TEXT = re.compile(r"[「『\"“](.+?)[」』\"”]", re.DOTALL)
_SYMBOL_PREFIXED = re.compile(r"[★■▲●]\s*([^\n]*)")
_PLAUSIBLE_FIRST_LINE = re.compile(r"^([^\n]{8,60})(?:\n|$)")
_KEYWORD_PHRASE = re.compile(
    r"((?:practical|introduction to|fundamentals of|workshop|seminar|training"
    r"|実践的?|基礎|応用|入門|研修|講座|セミナー|トレーニング)[^\n]{0,30})",
    re.IGNORECASE,
)
_SENTENCE_BREAK = re.compile(r"[。\n]|\.\s")
_REASONING_WORDS = ("user", "structure", "ユーザー", "構成")


def _clean_candidate(text: str) -> Optional[str]:
    cleaned = re.sub(r"[「」『』【】]", "", text.strip())
    cleaned = re.sub(r"^\*+\s*", "", cleaned)
    cleaned = re.sub(r"\s*\*+$", "", cleaned)
    cleaned = re.sub(r"^#+\s*", "", cleaned)
    cleaned = re.sub(r"[：:]\s*$", "", cleaned).strip()
    if MIN_CANDIDATE_LENGTH <= len(cleaned) <= TITLE_MAX_LENGTH:
        return cleaned
    return None


def _first_group(patterns, text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match and match.group(1):
            candidate = _clean_candidate(match.group(1))
            if candidate:
                return candidate
    return None


def labeled_title(text: str) -> Optional[str]:
    """`Title: ...` or `【タイトル案】...`"""
    return _first_group(_LABELED_TITLE, text)


def quoted_text(text: str) -> Optional[str]:
    return _first_group((_QUOTED_TEXT,), text)


def symbol_prefixed(text: str) -> Optional[str]:
    return _first_group((_SYMBOL_PREFIXED,), text)


def first_line_of_plausible_length(text: str) -> Optional[str]:
    return _first_group((_PLAUSIBLE_FIRST_LINE,), text)


def keyword_phrase(text: str) -> Optional[str]:
    return _first_group((_KEYWORD_PHRASE,), text)


def first_sentence(text: str) -> Optional[str]:
    sentence = _SENTENCE_BREAK.split(text, maxsplit=1)[0]
    lowered = sentence.lower()
    if any(word in lowered for word in _REASONING_WORDS):
        return None
    return _clean_candidate(sentence)


EXTRACTORS: List[Tuple[str, Callable[[str], Optional[str]]]] = [
    ("labeled_title", labeled_title),
    ("quoted_text", quoted_text),
    ("symbol_prefixed", symbol_prefixed),
    ("first_line_of_plausible_length", first_line_of_plausible_length),
    ("keyword_phrase", keyword_phrase),
    ("first_sentence", first_sentence),
]


def is_reasoning_text(text: str) -> bool:
    return any(pattern.search(text) for pattern in REASONING_PATTERNS)


def _keyword_matches(keyword: str, text: str) -> bool:
    if keyword.isascii():
        # Short acronyms must match as whole words ("AI" is not in "explain")
        flags = 0 if keyword.isupper() else re.IGNORECASE
        return re.search(rf"\b{re.escape(keyword)}\b", text, flags) is not None
    return keyword in text


def category_title(text: str) -> Optional[TitleFallback]:
    for keyword, title in CATEGORY_KEYWORDS:
        if _keyword_matches(keyword, text):
            return TitleFallback(title=title, keyword=keyword)
    return None


def extract_title_result(raw_title: str) -> TitleResult:
    """
    Recover a presentable title from a raw heading.

    Args:
        raw_title: Heading text as produced by the model

    Returns:
        TitleFound when the text (or an extractor) yields a title, TitleFallback when only a
        keyword category matched, GenericTitle otherwise
    """
    text = (raw_title or "").strip()
    if not text:
        return GenericTitle()
    if len(text) <= TITLE_MAX_LENGTH:
        return TitleFound(title=text, extractor="verbatim")

    if not is_reasoning_text(text):
        for name, extractor in EXTRACTORS:
            candidate = extractor(text)
            if candidate:
                return TitleFound(title=candidate, extractor=name)

    return category_title(text) or GenericTitle()


def extract_title(raw_title: str) -> str:
    """String form of `extract_title_result`; never longer than TITLE_MAX_LENGTH."""
    return extract_title_result(raw_title).title[:TITLE_MAX_LENGTH]
