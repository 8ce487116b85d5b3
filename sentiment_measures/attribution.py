"""
================================================================================
PREDICTION ATTRIBUTION
================================================================================
Decomposes every prediction of a fitted SentimentModel back onto the
dimensions that generated its sentiment measures.

For the window anchored at date t, with coefficients beta_m:

    prediction_t = intercept_t + sum_m beta_m x_m(t) + sum_o beta_o z_o(t)

where z_o are the non-sentiment explanatory series (autoregressive terms).
The contribution of a dimension value v (a feature, a lexicon or a time
weighting scheme) is the sum of beta_m x_m(t) over the measures whose key
carries v. The intercept and the other terms are kept in the reserved
columns '(intercept)' and '(other)', so each un-normalised row sums to the
prediction.

Lag attribution splits every x_m(t) through the measure's stored linear
decomposition: column lag_l collects beta_m w_{m,l} b_m(t - l), and
'(offset)' the constants introduced by scaling.

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from sentiment_measures.exceptions import ConfigurationError, DataAlignmentError
from sentiment_measures.measures import DIMENSIONS, SentimentMeasures
from sentiment_measures.regression import INTERCEPT, SentimentModel
from sentiment_measures.utils import get_logger, safe_divide

log = get_logger(__name__)

OTHER = "(other)"
OFFSET = "(offset)"
RESERVED = (INTERCEPT, OTHER, OFFSET)


@dataclass
class Attribution:
    """Date-indexed contribution frames, one per attributed dimension."""
    frames: Dict[str, pd.DataFrame] = field(default_factory=dict)
    normalized: bool = False

    @property
    def dimensions(self) -> List[str]:
        return list(self.frames)

    def __getitem__(self, dimension: str) -> pd.DataFrame:
        try:
            return self.frames[dimension]
        except KeyError:
            raise ConfigurationError(f"No attribution for {dimension!r}",
                                     {"available": self.dimensions}) from None

    def total(self, dimension: Optional[str] = None) -> pd.Series:
        """Row sums, equal to the predictions when not normalised."""
        dim = dimension or self.dimensions[0]
        return self[dim].sum(axis=1).rename("total")

    def to_measures(self) -> Dict[str, pd.DataFrame]:
        """Per dimension, a table with a 'date' column and one column per value."""
        return {dim: frame.drop(columns=[c for c in RESERVED if c in frame.columns])
                          .reset_index()
                for dim, frame in self.frames.items()}


def _normalize(frame: pd.DataFrame) -> pd.DataFrame:
    """
    Rescale the dimension columns so their absolute values add up to the
    absolute prediction of the row. Reserved columns keep their scale.
    """
    values = [c for c in frame.columns if c not in RESERVED]
    magnitude = frame.sum(axis=1).abs().to_numpy()
    denom = frame[values].abs().sum(axis=1).to_numpy()
    share = safe_divide(frame[values].to_numpy(), denom[:, None])
    out = frame.copy()
    out[values] = share * magnitude[:, None]
    return out


def attributions(
    model: SentimentModel,
    measures: Optional[SentimentMeasures] = None,
    dimensions: Iterable[str] = DIMENSIONS,
    do_lags: bool = False,
    normalize: bool = False,
    ref_dates: Optional[Sequence] = None,
) -> Attribution:
    """
    Attribute the model predictions to sentiment dimensions.

    Parameters
    ----------
    model : SentimentModel
    measures : SentimentMeasures, optional
        Defaults to the measures the model was fitted on.
    dimensions : iterable of str
        Any of 'features', 'lexicons', 'time'.
    do_lags : bool
        Also attribute to the lags of the time aggregation ('lags').
    normalize : bool
        Rescale the dimension contributions of each row so their absolute
        values sum to the absolute prediction; reserved columns unchanged.
    ref_dates : sequence of dates, optional
        Dates to attribute; default every prediction date.

    Returns
    -------
    Attribution
    """
    measures = measures if measures is not None else model.measures
    dimensions = list(dimensions)
    unknown = [d for d in dimensions if d not in DIMENSIONS]
    if unknown:
        raise ConfigurationError("Unknown attribution dimensions",
                                 {"dimensions": unknown, "allowed": DIMENSIONS})
    if not model.windows:
        raise RuntimeError("Model not fitted: no successful window")

    preds = model.predictions()
    dates = (pd.DatetimeIndex(pd.to_datetime(list(ref_dates)), name="date")
             if ref_dates is not None else preds.index)
    missing = dates.difference(measures.dates)
    if len(missing):
        raise DataAlignmentError("Attribution dates outside the measures",
                                 {"dates": list(missing[:5])})

    names = [c for c in model.explanatory if c in measures]
    others = [c for c in model.explanatory if c not in measures]
    x = measures.measures.loc[dates, names]
    z = model.design.loc[dates, others]

    coef = pd.DataFrame([model.window_at(d).coefficients for d in dates],
                        index=dates).reindex(columns=model.explanatory)
    intercept = pd.Series([model.window_at(d).intercept for d in dates], index=dates)
    contrib = x * coef[names]
    other = (z * coef[others]).sum(axis=1) if others else pd.Series(0.0, index=dates)

    available = measures.get_dimensions()
    frames: Dict[str, pd.DataFrame] = {}
    for dim in dimensions:
        values = available[dim]
        cols = {}
        for v in values:
            members = [n for n in names if measures.key(n).get(dim) == v]
            cols[v] = contrib[members].sum(axis=1) if members else 0.0
        frame = pd.DataFrame(cols, index=dates)
        frame[INTERCEPT] = intercept
        frame[OTHER] = other
        frames[dim] = frame

    if do_lags:
        n_lags = max(len(c.weights) for n in names for c in measures.components(n)) \
            if names else 0
        lag_frame = pd.DataFrame(0.0, index=dates,
                                 columns=[f"lag_{i}" for i in range(n_lags)])
        offset = pd.Series(0.0, index=dates)
        for n in names:
            parts = measures.decompose_lags(n).loc[dates]
            lag_frame[parts.columns] = lag_frame[parts.columns].add(
                parts.mul(coef[n], axis=0))
            offset += coef[n] * measures.offset(n)
        lag_frame[OFFSET] = offset
        lag_frame[INTERCEPT] = intercept
        lag_frame[OTHER] = other
        frames["lags"] = lag_frame

    if normalize:
        frames = {dim: _normalize(f) for dim, f in frames.items()}
    log.info("Attributed %d predictions over %s%s", len(dates), dimensions,
             " + lags" if do_lags else "")
    return Attribution(frames, normalize)
