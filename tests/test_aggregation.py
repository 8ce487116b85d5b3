"""
================================================================================
UNIT TESTS -- AGGREGATION ENGINE
================================================================================
Tests cover:
    1. Across-documents rules, ignore_zeros and empty buckets
    2. Fill policies and the across-time stage
    3. Measure naming, ordering and document counts
    4. End-to-end: three documents, counts + equal weights, lag 3

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

from dataclasses import replace

import numpy as np
import pandas as pd
import pytest

from sentiment_measures.aggregation import (SentimentAggregator, aggregate_documents,
                                            aggregate_time, fill_buckets,
                                            measures_from_buckets, sento_measures)
from sentiment_measures.config import AggregationConfig
from sentiment_measures.corpus import Corpus, Document
from sentiment_measures.exceptions import (ConfigurationError, DataAlignmentError,
                                           EmptyDocumentSet, InsufficientHistoryError)
from sentiment_measures.lexicons import Lexicon, LexiconSet
from sentiment_measures.scoring import compute_sentiment
from sentiment_measures.weighting import build_schemes


@pytest.fixture
def positive_lexicon():
    return LexiconSet([Lexicon("pos", "en", {"good": 1.0, "great": 1.0})])


@pytest.fixture
def gap_corpus():
    """Documents on day 1 and day 3; day 2 has none."""
    return Corpus([
        Document("a", "2021-01-01", "good good", {"f": 1.0}),
        Document("b", "2021-01-01", "good news today", {"f": 0.0}),
        Document("c", "2021-01-03", "great", {"f": 1.0}),
    ])


def bucket_of(corpus, lexicons, **kwargs):
    config = AggregationConfig(within="counts", **kwargs)
    return aggregate_documents(compute_sentiment(corpus, lexicons, config), config)


# ============================================================================
# TEST: END-TO-END SCENARIO
# ============================================================================

class TestScenarioThreeDocuments:

    def test_day_three_is_mean_of_counts(self, three_day_corpus, positive_lexicon):
        config = AggregationConfig(within="counts", docs="equal_weight",
                                   time=("equal_weight",), lag=3, by="day")
        measures = sento_measures(three_day_corpus, positive_lexicon, config)
        assert measures.names == ["topic--pos--equal_weight"]
        assert list(measures.dates) == [pd.Timestamp("2021-01-03")]
        # per-document counts 3, 1 and 2
        assert measures["topic--pos--equal_weight"].iloc[0] == pytest.approx(2.0)


# ============================================================================
# TEST: ACROSS DOCUMENTS
# ============================================================================

class TestAggregateDocuments:

    def test_empty_bucket_is_missing(self, gap_corpus, positive_lexicon):
        bucket = bucket_of(gap_corpus, positive_lexicon)
        assert list(bucket.frame.index) == list(pd.date_range("2021-01-01", "2021-01-03"))
        assert np.isnan(bucket.frame.loc["2021-01-02", "f--pos"])
        assert list(bucket.doc_counts) == [2, 0, 1]

    def test_zero_relevance_in_denominator(self, gap_corpus, positive_lexicon):
        bucket = bucket_of(gap_corpus, positive_lexicon)
        # (2 * 1 + 1 * 0) / 2 documents
        assert bucket.frame.loc["2021-01-01", "f--pos"] == pytest.approx(1.0)

    def test_ignore_zeros(self, gap_corpus, positive_lexicon):
        bucket = bucket_of(gap_corpus, positive_lexicon, ignore_zeros=True)
        assert bucket.frame.loc["2021-01-01", "f--pos"] == pytest.approx(2.0)

    def test_all_irrelevant_bucket_is_missing(self, positive_lexicon):
        corpus = Corpus([Document("a", "2021-01-01", "good", {"f": 0.0, "g": 1.0})])
        bucket = bucket_of(corpus, positive_lexicon, ignore_zeros=True)
        assert np.isnan(bucket.frame.loc["2021-01-01", "f--pos"])
        assert bucket.frame.loc["2021-01-01", "g--pos"] == pytest.approx(1.0)

    def test_proportional_docs(self, positive_lexicon):
        corpus = Corpus([
            Document("a", "2021-01-01", "good", {"f": 1.0}),
            Document("b", "2021-01-01", "no sentiment here", {"f": 1.0}),
        ])
        bucket = bucket_of(corpus, positive_lexicon, docs="proportional")
        # word-count weights 1 and 3
        assert bucket.frame.iloc[0, 0] == pytest.approx(0.25)

    def test_inverse_proportional_docs(self, positive_lexicon):
        corpus = Corpus([
            Document("a", "2021-01-01", "good", {"f": 1.0}),
            Document("b", "2021-01-01", "no sentiment here", {"f": 1.0}),
        ])
        bucket = bucket_of(corpus, positive_lexicon, docs="inverseProportional")
        assert bucket.frame.iloc[0, 0] == pytest.approx(1.0 / (1.0 + 1.0 / 3))

    def test_custom_doc_weights(self, gap_corpus, positive_lexicon):
        bucket = bucket_of(gap_corpus, positive_lexicon, docs="custom",
                           doc_weights={"a": 3.0, "b": 1.0, "c": 1.0})
        assert bucket.frame.loc["2021-01-01", "f--pos"] == pytest.approx(6.0 / 4)

    def test_custom_doc_weights_missing_id(self, gap_corpus, positive_lexicon):
        with pytest.raises(ConfigurationError):
            bucket_of(gap_corpus, positive_lexicon, docs="custom",
                      doc_weights={"a": 1.0})

    def test_weekly_buckets_start_monday(self, positive_lexicon):
        corpus = Corpus([
            Document("a", "2021-01-06", "good", {"f": 1.0}),   # Wednesday
            Document("b", "2021-01-10", "great", {"f": 1.0}),  # Sunday
            Document("c", "2021-01-11", "good", {"f": 1.0}),   # Monday
        ])
        bucket = bucket_of(corpus, positive_lexicon, by="week")
        assert list(bucket.frame.index) == [pd.Timestamp("2021-01-04"),
                                            pd.Timestamp("2021-01-11")]
        assert list(bucket.doc_counts) == [2, 1]


# ============================================================================
# TEST: ACROSS TIME
# ============================================================================

class TestAggregateTime:

    def test_fill_policies(self):
        frame = pd.DataFrame({"f--l": [np.nan, 1.0, np.nan, 3.0]},
                             index=pd.date_range("2021-01-01", periods=4))
        assert list(fill_buckets(frame, "zero")["f--l"]) == [0.0, 1.0, 0.0, 3.0]
        assert list(fill_buckets(frame, "latest")["f--l"]) == [0.0, 1.0, 1.0, 3.0]
        assert fill_buckets(frame, "drop")["f--l"].isna().sum() == 2

    def test_first_lag_minus_one_buckets_absent(self, gap_corpus, positive_lexicon):
        config = AggregationConfig(within="counts", lag=2)
        bucket = aggregate_documents(compute_sentiment(gap_corpus, positive_lexicon,
                                                       config), config)
        measures = aggregate_time(bucket, config=config)
        assert list(measures.dates) == list(pd.date_range("2021-01-02", "2021-01-03"))

    def test_fill_changes_gap_value(self, gap_corpus, positive_lexicon):
        values = {}
        for fill in ("zero", "latest", "drop"):
            config = AggregationConfig(within="counts", lag=1, fill=fill)
            m = sento_measures(gap_corpus, positive_lexicon, config)
            values[fill] = m["f--pos--equal_weight"].loc["2021-01-02"]
        assert values["zero"] == 0.0
        assert values["latest"] == pytest.approx(1.0)
        assert np.isnan(values["drop"])

    def test_drop_renormalises_windows(self, gap_corpus, positive_lexicon):
        config = AggregationConfig(within="counts", lag=2, fill="drop")
        m = sento_measures(gap_corpus, positive_lexicon, config)
        # each window holds one observed bucket, which gets the full weight
        assert list(m["f--pos--equal_weight"]) == pytest.approx([1.0, 1.0])

    def test_insufficient_history(self, gap_corpus, positive_lexicon):
        config = AggregationConfig(within="counts", lag=4)
        with pytest.raises(InsufficientHistoryError):
            sento_measures(gap_corpus, positive_lexicon, config)

    def test_naming_and_order(self, news_measures):
        assert news_measures.names[:4] == [
            "economy--general--equal_weight", "economy--general--linear",
            "economy--finance--equal_weight", "economy--finance--linear",
        ]
        assert len(news_measures.names) == 3 * 2 * 2
        assert news_measures.features == ["economy", "markets", "politics"]

    def test_doc_counts_carried(self, news_measures, synthetic_articles):
        daily = synthetic_articles.groupby(synthetic_articles["date"].dt.normalize()).size()
        counts = news_measures.doc_counts
        assert counts.sum() == daily.reindex(counts.index, fill_value=0).sum()

    def test_keys_carry_structured_names(self):
        lexicons = LexiconSet([Lexicon("lm-fin", "en", {"good": 1.0})])
        corpus = Corpus([Document("a", "2021-01-01", "good", {"us-econ": 1.0})])
        measures = sento_measures(corpus, lexicons, AggregationConfig(lag=1))
        key = measures.key(measures.names[0])
        assert (key.feature, key.lexicon, key.time) == ("us-econ", "lm-fin", "equal_weight")

    def test_keys_come_from_pairs_not_columns(self):
        dates = pd.date_range("2021-01-01", periods=3)
        filled = pd.DataFrame({"col0": [1.0, 2.0, 3.0]}, index=dates)
        config = AggregationConfig(lag=2)
        measures = measures_from_buckets(filled, pd.Series(1, index=dates),
                                         (("econ", "lm"),), build_schemes(config), config)
        assert measures.names == ["econ--lm--equal_weight"]
        assert list(measures["econ--lm--equal_weight"]) == [1.5, 2.5]

    def test_pairs_must_match_columns(self):
        dates = pd.date_range("2021-01-01", periods=3)
        filled = pd.DataFrame({"a": [1.0] * 3, "b": [2.0] * 3}, index=dates)
        config = AggregationConfig(lag=1)
        with pytest.raises(DataAlignmentError):
            measures_from_buckets(filled, pd.Series(1, index=dates), (("a", "l"),),
                                  build_schemes(config), config)

    def test_reaggregate_after_merge_keeps_names(self, news_measures):
        merged = news_measures.merge(features={"econmkt": ["economy", "markets"]})
        out = merged.reaggregate(build_schemes(AggregationConfig(lag=3)))
        assert out.features == ["economy", "markets", "politics"]
        assert out.time == ["equal_weight"]

    def test_corpus_without_features(self, positive_lexicon):
        corpus = Corpus([Document("a", "2021-01-01", "good"),
                         Document("b", "2021-01-02", "great good")])
        measures = sento_measures(corpus, positive_lexicon,
                                  AggregationConfig(within="counts", lag=1))
        assert measures.names == ["dummyFeature--pos--equal_weight"]
        assert list(measures["dummyFeature--pos--equal_weight"]) == [1.0, 2.0]

    def test_no_scores_to_aggregate(self, gap_corpus, positive_lexicon):
        raw = compute_sentiment(gap_corpus, positive_lexicon)
        empty = replace(raw, frame=raw.frame.iloc[:0])
        with pytest.raises(EmptyDocumentSet):
            aggregate_documents(empty)

    def test_aggregator_stages(self, synthetic_corpus, news_lexicons):
        agg = SentimentAggregator(AggregationConfig(time=("exponential",), lag=3,
                                                    alphas_exp=(0.2, 0.8)))
        assert [s.name for s in agg.schemes] == ["exponential_0.2", "exponential_0.8"]
        raw = agg.score(synthetic_corpus, news_lexicons)
        measures = agg.aggregate_time(agg.aggregate_documents(raw))
        assert measures.time == ["exponential_0.2", "exponential_0.8"]
