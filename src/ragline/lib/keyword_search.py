"""Synonym-aware keyword extraction and set-overlap scoring.

The keyword side of hybrid retrieval does not tokenize text. Instead it maps
text onto a fixed vocabulary: a main term is present when the text contains
the term or any of its synonyms, and short numeric/time expressions are
captured literally. Two texts are then compared by the Jaccard overlap of
their keyword sets.

Usage:
    from ragline.lib.keyword_search import KeywordExtractor, jaccard_similarity

    extractor = KeywordExtractor()
    score = jaccard_similarity(
        extractor.extract("投稿時間はいつ？"),
        extractor.extract("黄金タイムは19:00です"),
    )
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from types import MappingProxyType

# Main term -> synonyms. Matching is case-insensitive substring containment.
# Read-only: derive a new table instead of editing this one.
DEFAULT_KEYWORD_SYNONYMS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "黄金タイム": ("ベストタイム", "最適な時間", "投稿時間", "タイム", "時間"),
        "ベストタイム": ("黄金タイム", "最適な時間", "投稿時間", "タイム", "時間"),
        "最適な時間": ("黄金タイム", "ベストタイム", "投稿時間", "タイム", "時間"),
        "投稿時間": ("黄金タイム", "ベストタイム", "最適な時間", "タイム", "時間"),
        "ハッシュタグ": ("タグ", "ハッシュ", "hashtag"),
        "タグ": ("ハッシュタグ", "ハッシュ", "hashtag"),
        "バズ": ("バズる", "人気", "話題", "トレンド"),
        "バズる": ("バズ", "人気", "話題", "トレンド"),
        "アルゴリズム": ("algorithm", "仕組み", "システム"),
        "エンゲージメント": ("engagement", "反応", "いいね", "コメント"),
        "リーチ": ("reach", "到達", "表示"),
        "フォロワー": ("follower", "フォロー", "読者"),
        "投稿頻度": ("頻度", "何回", "回数", "投稿回数"),
        "頻度": ("投稿頻度", "何回", "回数", "投稿回数"),
        "写真": ("画像", "動画", "ビジュアル", "コンテンツ"),
        "動画": ("写真", "画像", "ビジュアル", "コンテンツ"),
        "キャプション": ("文章", "テキスト", "説明文", "書き方"),
        "文章": ("キャプション", "テキスト", "説明文", "書き方"),
        "コメント": ("comment", "反応", "エンゲージメント"),
        "保存": ("save", "ブックマーク", "お気に入り"),
        "リール": ("reel", "ショート動画", "動画"),
        "プロフィール": ("profile", "アカウント", "自己紹介"),
        "分析": ("analytics", "インサイト", "データ", "指標"),
        "指標": ("分析", "analytics", "インサイト", "データ"),
        "ブランディング": ("ブランド", "一貫性", "統一感"),
        "ブランド": ("ブランディング", "一貫性", "統一感"),
        "収益化": ("収益", "マネタイズ", "アフィリエイト", "PR"),
        "収益": ("収益化", "マネタイズ", "アフィリエイト", "PR"),
    }
)

# Numeric and time expressions captured verbatim: 7:00, 7時, 1時間, 1回, 3個, 10%
NUMERIC_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\d{1,2}:\d{2}", re.ASCII),
    re.compile(r"\d{1,2}時", re.ASCII),
    re.compile(r"\d{1,2}時間", re.ASCII),
    re.compile(r"\d{1,2}回", re.ASCII),
    re.compile(r"\d{1,2}個", re.ASCII),
    re.compile(r"\d{1,2}%?", re.ASCII),
)


class KeywordExtractor:
    """Map text onto a synonym vocabulary plus literal numeric tokens.

    The extractor keeps its own copy of the synonym table, so later changes
    to the mapping passed in do not affect it.

    Example:
        >>> extractor = KeywordExtractor({"営業時間": ["営業", "開店"]})
        >>> sorted(extractor.extract("開店は9時です"))
        ['9', '9時', '営業時間']
        """

    def __init__(self, synonyms: Mapping[str, Sequence[str]] | None = None) -> None:
        """Initialize the extractor.

        Args:
            synonyms: Main term to synonyms mapping. Defaults to
                DEFAULT_KEYWORD_SYNONYMS.
        """
        source = DEFAULT_KEYWORD_SYNONYMS if synonyms is None else synonyms
        self._vocabulary: dict[str, tuple[str, ...]] = {
            term: tuple(s.lower() for s in variants) for term, variants in source.items()
        }

    @property
    def terms(self) -> list[str]:
        """Main terms known to this extractor."""
        return list(self._vocabulary)

    def extract(self, text: str) -> frozenset[str]:
        """Extract the keyword set of a text.

        Args:
            text: Query or chunk text.

        Returns:
            Main terms whose term or synonym occurs in the lowercased text,
            together with every literal numeric/time match.
        """
        normalized = text.lower()
        keywords: set[str] = set()

        for term, synonyms in self._vocabulary.items():
            if term.lower() in normalized or any(s in normalized for s in synonyms):
                keywords.add(term)

        for pattern in NUMERIC_PATTERNS:
            keywords.update(pattern.findall(normalized))

        return frozenset(keywords)


def jaccard_similarity(a: frozenset[str] | set[str], b: frozenset[str] | set[str]) -> float:
    """Compute the Jaccard overlap of two keyword sets.

    Args:
        a: First keyword set.
        b: Second keyword set.

    Returns:
        ``|a & b| / |a | b|``, or 0.0 when either set is empty.

    Example:
        >>> jaccard_similarity({"x", "y"}, {"y", "z"})
        0.3333333333333333
        """
    if not a or not b:
        return 0.0
    union = len(a | b)
    return len(a & b) / union if union else 0.0
