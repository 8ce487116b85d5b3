"""
================================================================================
AGGREGATION ENGINE
================================================================================
Turns a corpus into sentiment time series in three stages:

    1. within-document   : token polarities -> one value per document
                           (see scoring.py)
    2. across documents  : documents -> one value per calendar bucket,
                           a weighted mean over the documents in the bucket
    3. across time       : bucket series -> measures, a trailing weighted
                           sum over the last L buckets for every scheme

Across-documents weights
    equal_weight          1
    proportional          word count
    inverseProportional   1 / word count
    custom                user mapping document id -> weight

With ignore_zeros the documents with zero relevance for a feature are left
out of that feature's denominator. A bucket without contributing documents
is missing (NaN), never 0; the fill policy decides what the time stage
does with it.

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from sentiment_measures.config import AggregationConfig
from sentiment_measures.corpus import Corpus
from sentiment_measures.exceptions import (ConfigurationError, DataAlignmentError,
                                           EmptyDocumentSet, InsufficientHistoryError)
from sentiment_measures.lexicons import SEPARATOR, LexiconSet
from sentiment_measures.measures import Component, MeasureKey, SentimentMeasures
from sentiment_measures.scoring import RawScores, compute_sentiment
from sentiment_measures.utils import bucket_range, floor_dates, get_logger, timeit
from sentiment_measures.weighting import WeightingScheme, build_schemes, rolling_weighted_sum

log = get_logger(__name__)


@dataclass(frozen=True)
class BucketSentiment:
    """
    Per-bucket sentiment before time aggregation.

    frame      : complete cadence index, one 'feature--lexicon' column per
                 pair, NaN where no document contributed
    doc_counts : documents per bucket (0 for empty buckets)
    pairs      : (feature, lexicon) per column, in column order
    """
    frame: pd.DataFrame
    doc_counts: pd.Series
    pairs: Tuple[Tuple[str, str], ...]
    by: str


def _document_weights(frame: pd.DataFrame, config: AggregationConfig) -> pd.Series:
    rule = config.docs
    if rule == "equal_weight":
        return pd.Series(1.0, index=frame.index)
    if rule == "proportional":
        return frame["word_count"].astype(float)
    if rule == "inverseProportional":
        wc = frame["word_count"].to_numpy(dtype=float)
        return pd.Series(np.where(wc > 0, 1.0 / np.where(wc > 0, wc, 1.0), 0.0),
                         index=frame.index)
    weights = frame["id"].map(config.doc_weights)
    missing = frame.loc[weights.isna(), "id"].unique()
    if len(missing):
        raise ConfigurationError("No custom weight for some documents",
                                 {"documents": list(missing[:10])})
    return weights.astype(float)


@timeit
def aggregate_documents(raw: RawScores, config: Optional[AggregationConfig] = None
                        ) -> BucketSentiment:
    """
    Weighted mean of the raw scores per (bucket, feature, lexicon).

    The denominator counts every document in the bucket, or only the
    relevant ones (feature weight > 0) when ``ignore_zeros`` is set.
    """
    config = config or AggregationConfig()
    if raw.frame.empty:
        raise EmptyDocumentSet("No document scores to aggregate")
    df = raw.frame.copy()
    df["bucket"] = floor_dates(df["date"], config.by)
    w = _document_weights(df, config)
    relevant = (df["feature_weight"] > 0) if config.ignore_zeros else True
    df["num"] = w * df["score"]
    df["den"] = w * relevant

    sums = (df.sort_values(["bucket", "feature", "lexicon"], kind="mergesort")
              .groupby(["bucket", "feature", "lexicon"], sort=True)[["num", "den"]]
              .sum())
    value = sums["num"].where(sums["den"] > 0) / sums["den"].where(sums["den"] > 0)

    pairs = tuple((f, l) for f in raw.features for l in raw.lexicons)
    columns = [f + SEPARATOR + l for f, l in pairs]
    index = bucket_range(df["bucket"].min(), df["bucket"].max(), config.by)
    frame = pd.DataFrame(np.nan, index=index, columns=columns)
    for (bucket, feature, lexicon), v in value.items():
        frame.at[bucket, feature + SEPARATOR + lexicon] = v

    counts = df.groupby("bucket")["id"].nunique().reindex(index, fill_value=0)
    counts.name = "documents"
    n_empty = int((counts == 0).sum())
    log.info("Across-documents stage: %d buckets (%s), %d empty, %d pairs",
             len(index), config.by, n_empty, len(columns))
    return BucketSentiment(frame, counts, pairs, config.by)


def fill_buckets(frame: pd.DataFrame, fill: str) -> pd.DataFrame:
    """Apply the missing-bucket policy ('latest', 'zero' or 'drop')."""
    if fill == "zero":
        return frame.fillna(0.0)
    if fill == "latest":
        # leading gaps have nothing to carry forward
        return frame.ffill().fillna(0.0)
    if fill == "drop":
        return frame.copy()
    raise ConfigurationError(f"Unknown fill policy {fill!r}")


def measures_from_buckets(
    filled: pd.DataFrame,
    doc_counts: pd.Series,
    pairs: Sequence[Tuple[str, str]],
    schemes: Sequence[WeightingScheme],
    config: AggregationConfig,
) -> SentimentMeasures:
    """
    Across-time stage on an already filled bucket frame.

    ``pairs`` names the (feature, lexicon) of each bucket column, in column
    order. Measures are ordered by feature, then lexicon, then scheme.
    """
    if not schemes:
        raise ConfigurationError("At least one weighting scheme is required")
    if len(pairs) != filled.shape[1]:
        raise DataAlignmentError("Bucket columns do not match their pairs",
                                 {"columns": filled.shape[1], "pairs": len(pairs)})
    n_buckets = len(filled)
    lag = max(s.lag for s in schemes)
    if n_buckets < lag:
        raise InsufficientHistoryError(
            f"{n_buckets} bucket(s) cannot fill a lag of {lag}",
            required=lag, available=n_buckets)

    renormalize = config.fill == "drop"
    dates = filled.index[lag - 1:]
    values, keys, components = {}, {}, {}
    for column, (feature, lexicon) in zip(filled.columns, pairs):
        series = filled[column].to_numpy(dtype=float)
        for scheme in schemes:
            key = MeasureKey(feature, lexicon, scheme.name)
            out = rolling_weighted_sum(series, scheme.weights, renormalize)
            values[key.name] = out[len(out) - len(dates):]
            keys[key.name] = key
            components[key.name] = (Component(column, scheme.weights),)

    measures = pd.DataFrame(values, index=pd.DatetimeIndex(dates, name="date"))
    log.info("Across-time stage: %d measures x %d dates (lag=%d)",
             len(keys), len(dates), lag)
    return SentimentMeasures(
        measures=measures,
        keys=keys,
        by=config.by,
        bucket_sentiment=filled,
        doc_counts=doc_counts,
        components=components,
        schemes={s.name: s for s in schemes},
        config=config,
        bucket_pairs=pairs,
    )


@timeit
def aggregate_time(
    bucket: BucketSentiment,
    schemes: Optional[Sequence[WeightingScheme]] = None,
    config: Optional[AggregationConfig] = None,
) -> SentimentMeasures:
    """Fill the bucket series and apply every time weighting scheme."""
    config = config or AggregationConfig(by=bucket.by)
    schemes = list(schemes) if schemes is not None else build_schemes(config)
    filled = fill_buckets(bucket.frame, config.fill)
    return measures_from_buckets(filled, bucket.doc_counts, bucket.pairs, schemes, config)


class SentimentAggregator:
    """
    Full corpus -> measures pipeline for one configuration.

    Parameters
    ----------
    config : AggregationConfig
    schemes : sequence of WeightingScheme, optional
        Overrides the grid built from ``config``.
    """

    def __init__(self, config: Optional[AggregationConfig] = None,
                 schemes: Optional[Sequence[WeightingScheme]] = None):
        self.config = config or AggregationConfig()
        self.schemes: List[WeightingScheme] = (
            list(schemes) if schemes is not None else build_schemes(self.config))

    def score(self, corpus: Corpus, lexicons, lexicon_names=None) -> RawScores:
        return compute_sentiment(corpus, lexicons, self.config, lexicon_names)

    def aggregate_documents(self, raw: RawScores) -> BucketSentiment:
        return aggregate_documents(raw, self.config)

    def aggregate_time(self, bucket: BucketSentiment) -> SentimentMeasures:
        return aggregate_time(bucket, self.schemes, self.config)

    def run(
        self,
        corpus: Corpus,
        lexicons: Union[LexiconSet, Mapping[str, LexiconSet]],
        lexicon_names: Optional[Sequence[str]] = None,
    ) -> SentimentMeasures:
        log.info("Aggregating %d documents | within=%s docs=%s time=%s by=%s lag=%d",
                 len(corpus), self.config.within, self.config.docs,
                 list(self.config.time), self.config.by, self.config.lag)
        raw = self.score(corpus, lexicons, lexicon_names)
        return self.aggregate_time(self.aggregate_documents(raw))


def sento_measures(
    corpus: Corpus,
    lexicons: Union[LexiconSet, Mapping[str, LexiconSet]],
    config: Optional[AggregationConfig] = None,
) -> SentimentMeasures:
    """One-call corpus -> SentimentMeasures."""
    return SentimentAggregator(config).run(corpus, lexicons)
