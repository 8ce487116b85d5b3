"""
conftest.py
-----------
Shared fixtures: small injected lexicons and valence tables (the built-in
lexicons are only exercised by their own loader test), toy corpora, and a
factory building measures containers directly from arrays.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import numpy as np
import pandas as pd
import pytest

from sentiment_measures.aggregation import SentimentAggregator
from sentiment_measures.config import AggregationConfig
from sentiment_measures.corpus import Corpus, Document
from sentiment_measures.data_acquisition import SyntheticCorpusGenerator
from sentiment_measures.lexicons import Lexicon, LexiconSet, Shifter, ValenceTable
from sentiment_measures.measures import Component, MeasureKey, SentimentMeasures


# =============================================================================
# Lexicons
# =============================================================================

@pytest.fixture
def valence_table():
    return ValenceTable({
        "not": Shifter("negator"),
        "hardly": Shifter("negator"),
        "very": Shifter("amplifier"),
        "extremely": Shifter("amplifier", 1.0),
        "slightly": Shifter("deamplifier"),
        "but": Shifter("adversative"),
    })


@pytest.fixture
def toy_lexicons():
    """Two lexicons without valence shifters."""
    return LexiconSet([
        Lexicon("lex_a", "en", {"good": 1.0, "great": 2.0, "bad": -1.0, "poor": -1.5}),
        Lexicon("lex_b", "en", {"good": 0.5, "bad": -0.5, "awful": -1.0}),
    ])


@pytest.fixture
def news_lexicons(valence_table):
    """Lexicons covering the synthetic news vocabulary, with shifters."""
    positive = ["strong", "gains", "solid", "growth", "good", "excellent",
                "improve", "optimistic", "robust", "rebounds", "progress",
                "resilient", "confidence", "better"]
    negative = ["losses", "decline", "weak", "deteriorate", "crisis", "worsen",
                "slumps", "turmoil", "fragile", "failure", "uncertainty", "fear"]
    general = {w: 1.0 for w in positive}
    general.update({w: -1.0 for w in negative})
    finance = {w: 0.5 for w in positive[:7]}
    finance.update({w: -0.5 for w in negative[:7]})
    return LexiconSet([Lexicon("general", "en", general),
                       Lexicon("finance", "en", finance)],
                      valence=valence_table)


# =============================================================================
# Corpora
# =============================================================================

@pytest.fixture
def three_day_corpus():
    """Three documents on consecutive days, one feature of weight 1."""
    return Corpus([
        Document("d1", "2021-01-01", "good good great", {"topic": 1.0}),
        Document("d2", "2021-01-02", "good", {"topic": 1.0}),
        Document("d3", "2021-01-03", "great news great", {"topic": 1.0}),
    ])


@pytest.fixture
def synthetic_articles():
    gen = SyntheticCorpusGenerator(seed=7)
    return gen.generate("2021-01-01", "2021-03-31", articles_per_day=3.0)


@pytest.fixture
def synthetic_corpus(synthetic_articles):
    return SyntheticCorpusGenerator.to_corpus(synthetic_articles)


@pytest.fixture
def news_measures(synthetic_corpus, news_lexicons):
    """Daily measures: 3 features x 2 lexicons x 2 schemes, lag 5."""
    config = AggregationConfig(within="proportionalPol", time=("equal_weight", "linear"),
                               by="day", lag=5, fill="zero")
    return SentimentAggregator(config).run(synthetic_corpus, news_lexicons)


# =============================================================================
# Measures factory
# =============================================================================

def build_measures(values, start="2021-01-01", by="day", scheme="equal_weight"):
    """
    Container whose measures equal the given arrays, each decomposed as a
    single bucket series with lag weight [1].

    values : dict feature -> 1-d array
    """
    values = {f: np.asarray(v, dtype=float) for f, v in values.items()}
    n = len(next(iter(values.values())))
    freq = {"day": "D", "week": "W-MON", "month": "MS", "year": "YS"}[by]
    dates = pd.date_range(start, periods=n, freq=freq, name="date")
    keys, cols, buckets, comps = {}, {}, {}, {}
    for feature, arr in values.items():
        key = MeasureKey(feature, "lex", scheme)
        keys[key.name] = key
        cols[key.name] = arr
        buckets[f"{feature}--lex"] = arr
        comps[key.name] = (Component(f"{feature}--lex", [1.0]),)
    return SentimentMeasures(
        measures=pd.DataFrame(cols, index=dates),
        keys=keys,
        by=by,
        bucket_sentiment=pd.DataFrame(buckets, index=dates),
        doc_counts=pd.Series(1, index=dates),
        components=comps,
    )


@pytest.fixture
def make_measures():
    return build_measures
