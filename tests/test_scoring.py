"""
================================================================================
UNIT TESTS -- DOCUMENT SENTIMENT SCORER
================================================================================
Tests cover:
    1. Valence shifting (cluster, bigram, none) and adversative policies
    2. Within-document rules, including zero-safety of proportionalPol
    3. Corpus scoring: layout, ordering, feature weighting, parallelism

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

import numpy as np
import pandas as pd
import pytest

from sentiment_measures.config import AggregationConfig, ValenceConfig
from sentiment_measures.corpus import Corpus, Document, tokenize
from sentiment_measures.exceptions import EmptyDocumentSet, UnknownLexiconReference
from sentiment_measures.scoring import compute_sentiment, shifted_polarities, within_document

SCORES = {"good": 1.0, "bad": -1.0, "great": 2.0}


@pytest.fixture
def valence(valence_table):
    return {w: (s.role, s.value) for w, s in valence_table.entries.items()}


def polarity(text, valence, **kwargs):
    return shifted_polarities(tokenize(text), SCORES, valence, ValenceConfig(**kwargs))


# ============================================================================
# TEST: VALENCE SHIFTING
# ============================================================================

class TestClusterShifting:

    def test_plain_hits(self, valence):
        assert np.allclose(polarity("good and bad", valence), [1, 0, -1])

    def test_negation(self, valence):
        assert polarity("this is not good", valence).sum() == pytest.approx(-1.0)

    def test_double_negation_cancels(self, valence):
        assert polarity("not hardly good", valence).sum() == pytest.approx(1.0)

    def test_negator_outside_window(self, valence):
        text = "not one two three four good"
        assert polarity(text, valence).sum() == pytest.approx(1.0)
        assert polarity(text, valence, n_before=5).sum() == pytest.approx(-1.0)

    def test_negator_after_hit(self, valence):
        assert polarity("good not", valence).sum() == pytest.approx(-1.0)
        assert polarity("good not", valence, n_after=0).sum() == pytest.approx(1.0)

    def test_amplifier_default_and_table_value(self, valence):
        assert polarity("very good", valence).sum() == pytest.approx(1.8)
        assert polarity("extremely good", valence).sum() == pytest.approx(2.0)

    def test_deamplifier(self, valence):
        assert polarity("slightly good", valence).sum() == pytest.approx(0.5)

    def test_amplifier_under_negation_deamplifies(self, valence):
        assert polarity("not very good", valence).sum() == pytest.approx(-0.2)

    def test_no_table(self):
        s = shifted_polarities(tokenize("not good"), SCORES, None, ValenceConfig())
        assert s.sum() == pytest.approx(1.0)


class TestOtherModes:

    def test_bigram_preceding_only(self, valence):
        assert polarity("not good", valence, mode="bigram").sum() == pytest.approx(-1.0)
        assert polarity("good not", valence, mode="bigram").sum() == pytest.approx(1.0)
        assert polarity("very good", valence, mode="bigram").sum() == pytest.approx(1.8)

    def test_none_ignores_shifters(self, valence):
        assert polarity("not very good", valence, mode="none").sum() == pytest.approx(1.0)


class TestAdversative:

    def test_default_leaves_hits(self, valence):
        assert polarity("good but bad", valence).sum() == pytest.approx(0.0)

    def test_suppress_preceding(self, valence):
        s = polarity("good but bad", valence, adversative="suppress_preceding")
        assert np.allclose(s, [0, 0, -1])

    def test_downweight_preceding(self, valence):
        s = polarity("good but bad", valence, adversative="downweight_preceding")
        assert s.sum() == pytest.approx(0.75 - 1.25)

    def test_clause_scope(self, valence):
        s = polarity("good. but bad", valence, adversative="suppress_preceding")
        assert s.sum() == pytest.approx(0.0)


# ============================================================================
# TEST: WITHIN-DOCUMENT RULES
# ============================================================================

class TestWithinDocument:

    S = np.array([1.0, 0.0, -1.0, 0.0, 2.0])

    def test_counts(self):
        assert within_document(self.S, "counts") == (pytest.approx(2.0), 3)

    def test_proportional(self):
        assert within_document(self.S, "proportional")[0] == pytest.approx(0.4)

    def test_proportional_pol(self):
        assert within_document(self.S, "proportionalPol")[0] == pytest.approx(2.0 / 3)

    def test_proportional_pol_zero_safe(self):
        value, n_pol = within_document(np.zeros(4), "proportionalPol")
        assert value == 0.0
        assert n_pol == 0
        assert not np.isnan(value)

    def test_empty_document(self):
        assert within_document(np.zeros(0), "proportional") == (0.0, 0)

    def test_square_root(self):
        value = within_document(self.S, "proportionalSquareRoot")[0]
        assert value == pytest.approx(2.0 / np.sqrt(5))

    def test_u_shaped(self):
        # weights (i - 3)^2 = [4, 1, 0, 1, 4] / 10
        assert within_document(self.S, "UShaped")[0] == pytest.approx(1.2)

    def test_inverse_u_shaped(self):
        # weights 9 - (i - 3)^2 = [5, 8, 9, 8, 5] / 35
        assert within_document(self.S, "inverseUShaped")[0] == pytest.approx(6.0 / 35)

    def test_exponential_favours_end(self):
        s = np.array([1.0, 0.0, 0.0, 0.0, -1.0])
        assert within_document(s, "exponential")[0] < 0
        assert within_document(s, "inverseExponential")[0] > 0


# ============================================================================
# TEST: CORPUS SCORING
# ============================================================================

class TestComputeSentiment:

    @pytest.fixture
    def corpus(self):
        return Corpus([
            Document("b", "2021-01-02", "bad news", {"x": 0.5, "y": 1.0}),
            Document("a", "2021-01-01", "good good great", {"x": 1.0, "y": 0.0}),
        ])

    def test_layout_and_order(self, corpus, toy_lexicons):
        raw = compute_sentiment(corpus, toy_lexicons, AggregationConfig(within="counts"))
        df = raw.frame
        assert len(raw) == 2 * 2 * 2
        keys = list(zip(df["id"], df["feature"], df["lexicon"]))
        assert keys == sorted(keys)
        assert raw.features == ("x", "y")
        assert raw.lexicons == ("lex_a", "lex_b")

    def test_feature_weighting(self, corpus, toy_lexicons):
        raw = compute_sentiment(corpus, toy_lexicons, AggregationConfig(within="counts"))
        df = raw.frame.set_index(["id", "feature", "lexicon"])
        assert df.loc[("a", "x", "lex_a"), "score"] == pytest.approx(4.0)
        # zero relevance contributes 0 but keeps its row
        assert df.loc[("a", "y", "lex_a"), "score"] == 0.0
        assert df.loc[("b", "x", "lex_a"), "score"] == pytest.approx(-0.5)
        assert df.loc[("a", "x", "lex_b"), "n_polarized"] == 2

    def test_parallel_matches_serial(self, synthetic_corpus, news_lexicons):
        serial = compute_sentiment(synthetic_corpus, news_lexicons,
                                   AggregationConfig(n_jobs=1, chunk_size=50))
        parallel = compute_sentiment(synthetic_corpus, news_lexicons,
                                     AggregationConfig(n_jobs=2, chunk_size=17))
        pd.testing.assert_frame_equal(serial.frame, parallel.frame)

    def test_lexicon_subset(self, corpus, toy_lexicons):
        raw = compute_sentiment(corpus, toy_lexicons, lexicon_names=["lex_b"])
        assert set(raw.frame["lexicon"]) == {"lex_b"}

    def test_unknown_lexicon_name(self, corpus, toy_lexicons):
        with pytest.raises(UnknownLexiconReference):
            compute_sentiment(corpus, toy_lexicons, lexicon_names=["nope"])

    def test_unknown_document_language(self, toy_lexicons):
        corpus = Corpus([Document("a", "2021-01-01", "good", {"x": 1}, language="fr")])
        with pytest.raises(UnknownLexiconReference):
            compute_sentiment(corpus, toy_lexicons)

    def test_word_count_uses_clause_breaks(self, toy_lexicons):
        corpus = Corpus([Document("a", "2021-01-01", "good , bad", {"x": 1.0},
                                  tokens=("good", ",", "bad"))])
        config = AggregationConfig(valence=ValenceConfig(clause_breaks=(".", ",")))
        raw = compute_sentiment(corpus, toy_lexicons, config)
        assert set(raw.frame["word_count"]) == {2}
        assert corpus.to_frame(config.valence.clause_breaks)["word_count"].iloc[0] == 2

    def test_empty_corpus(self, toy_lexicons):
        with pytest.raises(EmptyDocumentSet):
            compute_sentiment(Corpus([]), toy_lexicons)

    def test_wide_view(self, corpus, toy_lexicons):
        wide = compute_sentiment(corpus, toy_lexicons).to_wide()
        assert "x--lex_a" in wide.columns
        assert len(wide) == 2
