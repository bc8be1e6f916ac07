"""Tests for synonym-aware keyword extraction and Jaccard scoring."""

import pytest

from ragline.lib.keyword_search import (
    DEFAULT_KEYWORD_SYNONYMS,
    KeywordExtractor,
    jaccard_similarity,
)


class TestKeywordExtractor:
    """Tests for KeywordExtractor.extract()."""

    def test_main_term_and_overlapping_terms(self) -> None:
        """Test a main term is found along with terms it contains."""
        keywords = KeywordExtractor().extract("ハッシュタグの付け方")
        assert keywords == frozenset({"ハッシュタグ", "タグ"})

    def test_synonym_maps_to_main_term(self) -> None:
        """Test a synonym occurrence adds its main term, case-insensitively."""
        keywords = KeywordExtractor().extract("Best HashTag ideas")
        assert "ハッシュタグ" in keywords
        assert "hashtag" not in keywords

    def test_numeric_and_time_expressions(self) -> None:
        """Test time, count and percentage expressions are captured literally."""
        keywords = KeywordExtractor().extract("19:30に1時間、3回、2個で10%")
        assert {"19:30", "1時", "1時間", "3回", "2個", "10%"} <= keywords

    def test_full_width_digits_are_not_numeric_tokens(self) -> None:
        """Test only ASCII digits form numeric tokens."""
        keywords = KeywordExtractor({}).extract("１９時")
        assert keywords == frozenset()

    def test_custom_synonyms(self) -> None:
        """Test a custom vocabulary replaces the default one."""
        extractor = KeywordExtractor({"営業時間": ["営業", "開店"]})
        assert extractor.extract("開店は9時です") == frozenset({"営業時間", "9時", "9"})
        assert extractor.terms == ["営業時間"]

    def test_synonym_table_is_copied(self) -> None:
        """Test later changes to the source mapping do not leak in."""
        synonyms = {"営業時間": ["営業"]}
        extractor = KeywordExtractor(synonyms)
        synonyms["営業時間"].append("開店")
        synonyms["定休日"] = ["休み"]
        assert extractor.extract("開店 休み") == frozenset()

    def test_empty_text(self) -> None:
        """Test empty text yields an empty frozenset."""
        result = KeywordExtractor().extract("")
        assert isinstance(result, frozenset)
        assert result == frozenset()

    def test_default_vocabulary_loaded(self) -> None:
        """Test the default extractor knows the default main terms."""
        assert set(KeywordExtractor().terms) == set(DEFAULT_KEYWORD_SYNONYMS)


class TestJaccardSimilarity:
    """Tests for jaccard_similarity()."""

    def test_partial_overlap(self) -> None:
        """Test intersection over union for partial overlap."""
        assert jaccard_similarity({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)

    def test_identical_sets(self) -> None:
        """Test identical sets score 1.0."""
        assert jaccard_similarity(frozenset({"a"}), frozenset({"a"})) == 1.0

    @pytest.mark.parametrize(
        "a,b", [(set(), {"a"}), ({"a"}, set()), (set(), set())]
    )
    def test_empty_side_scores_zero(self, a: set[str], b: set[str]) -> None:
        """Test an empty keyword set on either side scores 0.0."""
        assert jaccard_similarity(a, b) == 0.0

    def test_disjoint_sets(self) -> None:
        """Test disjoint sets score 0.0."""
        assert jaccard_similarity({"a"}, {"b"}) == 0.0
