"""
Tests for semantic scoring of lexicon entries.
"""
import pytest

from lexicon_lookup.scoring import ScoreWeights, SemanticScorer
from lexicon_lookup.scoring.categories import infer_category, infer_part_of_speech


@pytest.fixture
def scorer():
    return SemanticScorer()


class TestScoreWeights:
    """Tests for ScoreWeights validation."""

    def test_default_weights_favor_primary_match(self):
        """Test that primary match carries the largest weight by default."""
        weights = ScoreWeights()

        assert weights.primary > max(
            weights.context, weights.position, weights.definition,
            weights.completeness, weights.category,
        )

    def test_primary_must_be_largest(self):
        """Test that weights where primary is not dominant are rejected."""
        with pytest.raises(ValueError):
            ScoreWeights(primary=0.1, context=0.5)

    def test_negative_weight_rejected(self):
        """Test that negative weights are rejected."""
        with pytest.raises(ValueError):
            ScoreWeights(category=-0.1)


class TestSemanticScorer:
    """Tests for SemanticScorer signals and ranking."""

    def test_exact_source_term_is_exact_match(self, scorer, make_entry):
        """Test that a query equal to the source term is an exact primary match."""
        entry = make_entry("hello", "nno", gloss="A greeting used when meeting someone")

        match = scorer.analyze_match("Hello", entry)

        assert match.match_type == "exact"
        assert match.primary == 1.0
        assert match.context == 1.0

    def test_synonym_list_item_scores_high(self, scorer, make_entry):
        """Test that a query listed among comma-separated synonyms is a strong match."""
        entry = make_entry("stop", "tịre", gloss="stop, halt, cease")

        match = scorer.analyze_match("halt", entry)

        assert match.match_type == "synonym-list"
        assert match.primary == pytest.approx(0.94)
        assert match.total >= 0.7

    def test_earlier_synonym_beats_later_one(self, scorer, make_entry):
        """Test that the first synonym in a list scores above later ones."""
        entry = make_entry("cease", "tịre", gloss="halt, stop, cease")

        assert scorer.score("halt", entry) > scorer.score("stop", entry)

    def test_compound_usage_is_penalized(self, scorer, make_entry):
        """Test that a gloss using the query only inside a causative phrase scores low."""
        compound = make_entry(
            "prevent", "kpeme", gloss="to prevent someone from leaving", part_of_speech="verb"
        )
        direct = make_entry("leave", "kpọn̄", gloss="to leave, go away", part_of_speech="verb")

        compound_score = scorer.analyze_match("leave", compound)

        assert compound_score.total < 0.3
        assert compound_score.context == pytest.approx(0.2)
        assert scorer.score("leave", direct) > compound_score.total

    def test_direct_synonym_outranks_compound_mention(self, scorer, make_entry):
        """Test that a synonym-list sense outranks an entry that only mentions the word."""
        direct = make_entry("stop", "tịre", gloss="stop, halt, cease")
        compound = make_entry("freeze", "ye", gloss="to make someone halt suddenly")

        ranked = scorer.rank("halt", [compound, direct])

        assert ranked[0][0] is direct

    def test_near_miss_spelling(self, scorer, make_entry):
        """Test that a close misspelling of the source term gets partial credit."""
        entry = make_entry("hello", "nno", gloss="A greeting")

        match = scorer.analyze_match("helo", entry)

        assert match.match_type == "near-miss"
        assert 0.0 < match.primary < 0.5

    def test_unrelated_entry_scores_zero_primary(self, scorer, make_entry):
        """Test that an unrelated entry gets no primary credit."""
        entry = make_entry("water", "mmong", gloss="Clear liquid essential for life")

        match = scorer.analyze_match("mountain", entry)

        assert match.match_type == "none"
        assert match.primary == 0.0

    def test_empty_query_scores_zero(self, scorer, make_entry):
        """Test that an empty query scores nothing."""
        entry = make_entry("water", "mmong", gloss="liquid")

        assert scorer.score("   ", entry) == 0.0

    def test_total_is_clipped_to_unit_range(self, scorer, make_entry):
        """Test that the composite score stays within [0, 1]."""
        entry = make_entry(
            "water", "mmong",
            gloss="water, the clear liquid essential for life found in every river",
            part_of_speech="noun",
            examples=[("I need water", "Ami nyom mmong"), ("Cold water", "Mmong")],
            pronunciation="m-mong",
            cultural_note="Sacred in many traditions",
            category="food",
        )

        assert 0.0 <= scorer.score("water", entry) <= 1.0

    def test_completeness_rewards_curated_entries(self, scorer, make_entry):
        """Test that examples and pronunciation raise the completeness signal."""
        bare = make_entry("water", "mmong", gloss="liquid")
        curated = make_entry(
            "water", "mmong", gloss="liquid", part_of_speech="noun",
            examples=[("I need water", "Ami nyom mmong")], pronunciation="m-mong",
        )

        assert scorer.analyze_match("water", curated).completeness > \
            scorer.analyze_match("water", bare).completeness

    def test_rank_applies_floor_and_limit(self, scorer, make_entry):
        """Test that rank drops entries under the floor and honors the limit."""
        entries = [
            make_entry("stop", "tịre", gloss="stop, halt, cease", entry_id="a"),
            make_entry("halt", "tịbe", gloss="halt", entry_id="b"),
            make_entry("water", "mmong", gloss="liquid", entry_id="c"),
        ]

        ranked = scorer.rank("halt", entries, floor=0.3, limit=1)

        assert len(ranked) == 1
        assert ranked[0][0].id == "b"

    def test_explain_mentions_signals(self, scorer, make_entry):
        """Test that explain produces a readable breakdown."""
        entry = make_entry("stop", "tịre", gloss="stop, halt, cease")

        text = scorer.explain("halt", entry)

        assert "tịre" in text
        assert "synonym-list" in text
        assert "primary=" in text


class TestCategoryInference:
    """Tests for category and part-of-speech inference."""

    def test_infer_category_from_keywords(self):
        """Test that keywords select a category."""
        assert infer_category(["a", "greeting", "used"]) == "greeting"
        assert infer_category(["god"]) == "spiritual"

    def test_infer_category_default(self):
        """Test that unknown words fall back to general."""
        assert infer_category(["zzz"]) == "general"

    def test_infer_part_of_speech(self):
        """Test part-of-speech guesses from word shape."""
        assert infer_part_of_speech("hello") == "interjection"
        assert infer_part_of_speech("running") == "verb"
        assert infer_part_of_speech("quickly") == "adverb"
        assert infer_part_of_speech("beautiful") == "adjective"
        assert infer_part_of_speech("house") == "noun"
