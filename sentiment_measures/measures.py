"""
================================================================================
SENTIMENT MEASURES CONTAINER
================================================================================
A set of sentiment time series sharing one strictly increasing,
constant-cadence date index. Each series is identified by a structured
MeasureKey (feature, lexicon, time weighting scheme); the 'a--b--c' name is
only its serialised form.

Besides the values, the container carries what produced them: the
aggregation config, the weighting schemes, the per-bucket document counts
and the filled per-bucket sentiment before time aggregation. Every measure
is kept as a linear decomposition

    x_m(t) = offset_m + sum_c sum_l  w_{c,l} * b_c(t - l)

over bucket series b_c. Merging, scaling and differencing are linear, so
the decomposition is updated alongside the values and measures remain
re-aggregable and attributable per lag after any transform.

All transforms return a new container; the receiver is never modified.

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

import warnings
from dataclasses import dataclass, field
from typing import (Callable, Dict, Iterable, List, Mapping, Optional,
                    Sequence, Tuple, Union)

import numpy as np
import pandas as pd

from sentiment_measures.config import AggregationConfig
from sentiment_measures.exceptions import (AmbiguousMeasureName, ConfigurationError,
                                           DataAlignmentError, InsufficientHistoryError,
                                           NumericDegeneracyWarning)
from sentiment_measures.lexicons import SEPARATOR
from sentiment_measures.utils import CADENCE_FREQ, get_logger
from sentiment_measures.weighting import WeightingScheme

log = get_logger(__name__)

DIMENSIONS = ("features", "lexicons", "time")


# -----------------------------------------------------------------------------
# Keys and decomposition
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class MeasureKey:
    """Structured identity of a sentiment measure."""
    feature: str
    lexicon: str
    time: str

    @property
    def name(self) -> str:
        return SEPARATOR.join((self.feature, self.lexicon, self.time))

    @classmethod
    def parse(cls, name: str) -> "MeasureKey":
        parts = name.split(SEPARATOR)
        if len(parts) != 3 or not all(parts):
            raise AmbiguousMeasureName(name, SEPARATOR, "measure")
        return cls(*parts)

    def get(self, dimension: str) -> str:
        if dimension == "features":
            return self.feature
        if dimension == "lexicons":
            return self.lexicon
        if dimension == "time":
            return self.time
        raise ConfigurationError(f"Unknown dimension {dimension!r}",
                                 {"allowed": DIMENSIONS})

    def replace(self, dimension: str, value: str) -> "MeasureKey":
        values = {"features": self.feature, "lexicons": self.lexicon,
                  "time": self.time}
        self.get(dimension)
        values[dimension] = value
        return MeasureKey(values["features"], values["lexicons"], values["time"])

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Component:
    """One bucket series with its lag weights (index 0 = current date)."""
    column: str
    weights: np.ndarray = field(compare=False)

    def __post_init__(self):
        w = np.array(self.weights, dtype=float)
        w.setflags(write=False)
        object.__setattr__(self, "weights", w)

    def scaled(self, factor: float) -> "Component":
        return Component(self.column, self.weights * factor)


def _collapse(components: Iterable[Component]) -> Tuple[Component, ...]:
    """Sum components sharing a bucket column, padding to the longest lag."""
    merged: Dict[str, np.ndarray] = {}
    for c in components:
        prev = merged.get(c.column)
        if prev is None:
            merged[c.column] = np.array(c.weights)
            continue
        n = max(len(prev), len(c.weights))
        total = np.zeros(n)
        total[:len(prev)] += prev
        total[:len(c.weights)] += c.weights
        merged[c.column] = total
    return tuple(Component(col, w) for col, w in merged.items())


# -----------------------------------------------------------------------------
# Container
# -----------------------------------------------------------------------------
class SentimentMeasures:
    """
    Ordered set of sentiment measures on a shared date index.

    Parameters
    ----------
    measures : pd.DataFrame
        Date-indexed values, one column per measure name.
    keys : mapping
        Measure name -> MeasureKey, in column order.
    by : str
        Bucket cadence of the index.
    bucket_sentiment : pd.DataFrame
        Filled per-bucket sentiment ('feature--lexicon' columns) covering
        the full history, including the buckets before the first measure date.
    doc_counts : pd.Series
        Documents per bucket.
    components, offsets : mapping
        Linear decomposition of every measure (see module docstring).
    schemes : mapping
        Scheme name -> WeightingScheme.
    config : AggregationConfig, optional
        Configuration that produced the measures.
    bucket_pairs : sequence of (feature, lexicon), optional
        Structured name of every bucket sentiment column, in column order.
    """

    def __init__(
        self,
        measures: pd.DataFrame,
        keys: Mapping[str, MeasureKey],
        by: str,
        bucket_sentiment: pd.DataFrame,
        doc_counts: pd.Series,
        components: Mapping[str, Sequence[Component]],
        offsets: Optional[Mapping[str, float]] = None,
        schemes: Optional[Mapping[str, WeightingScheme]] = None,
        config: Optional[AggregationConfig] = None,
        bucket_pairs: Optional[Sequence[Tuple[str, str]]] = None,
    ):
        if by not in CADENCE_FREQ:
            raise ConfigurationError(f"Unknown bucket cadence {by!r}")
        self._by = by
        self._measures = measures.copy()
        self._measures.index = pd.DatetimeIndex(self._measures.index, name="date")
        self._keys: Dict[str, MeasureKey] = dict(keys)
        self._bucket = bucket_sentiment
        self._doc_counts = doc_counts
        self._components = {n: tuple(c) for n, c in components.items()}
        self._offsets = {n: float((offsets or {}).get(n, 0.0)) for n in self._keys}
        self._schemes = dict(schemes or {})
        self._config = config
        self._bucket_pairs = (tuple(tuple(p) for p in bucket_pairs)
                              if bucket_pairs is not None else None)
        self._validate()

    def _validate(self) -> None:
        idx = self._measures.index
        if len(idx) == 0:
            raise DataAlignmentError("A measures container needs at least one date")
        if idx.has_duplicates:
            raise DataAlignmentError("Duplicate dates in measures index",
                                     {"duplicates": list(idx[idx.duplicated()][:5])})
        if not idx.is_monotonic_increasing:
            raise DataAlignmentError("Measures index is not increasing")
        expected = pd.date_range(idx[0], periods=len(idx), freq=CADENCE_FREQ[self._by])
        if not expected.equals(pd.DatetimeIndex(idx.values)):
            raise DataAlignmentError(
                f"Measures index does not follow the {self._by!r} cadence",
                {"start": idx[0], "end": idx[-1], "length": len(idx)})
        names = list(self._measures.columns)
        if names != list(self._keys):
            raise DataAlignmentError("Measure columns do not match their keys",
                                     {"columns": names[:5], "keys": list(self._keys)[:5]})
        for name, key in self._keys.items():
            if key.name != name:
                raise DataAlignmentError("Measure name does not match its key",
                                         {"measure": name, "key": key.name})
            if name not in self._components:
                raise DataAlignmentError("Missing decomposition for measure",
                                         {"measure": name})

    def _derive(self, measures: pd.DataFrame, keys: Mapping[str, MeasureKey],
                components=None, offsets=None) -> "SentimentMeasures":
        components = components if components is not None else self._components
        offsets = offsets if offsets is not None else self._offsets
        return SentimentMeasures(
            measures=measures,
            keys=keys,
            by=self._by,
            bucket_sentiment=self._bucket,
            doc_counts=self._doc_counts,
            components={n: components[n] for n in keys},
            offsets={n: offsets.get(n, 0.0) for n in keys},
            schemes=self._schemes,
            config=self._config,
            bucket_pairs=self._bucket_pairs,
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def measures(self) -> pd.DataFrame:
        return self._measures.copy()

    @property
    def names(self) -> List[str]:
        return list(self._keys)

    @property
    def keys(self) -> List[MeasureKey]:
        return list(self._keys.values())

    def key(self, name: str) -> MeasureKey:
        try:
            return self._keys[name]
        except KeyError:
            raise ConfigurationError(f"Unknown measure {name!r}") from None

    def _dimension_values(self, dimension: str) -> List[str]:
        seen: Dict[str, None] = {}
        for k in self._keys.values():
            seen.setdefault(k.get(dimension), None)
        return list(seen)

    @property
    def features(self) -> List[str]:
        return self._dimension_values("features")

    @property
    def lexicons(self) -> List[str]:
        return self._dimension_values("lexicons")

    @property
    def time(self) -> List[str]:
        return self._dimension_values("time")

    def get_dimensions(self) -> Dict[str, List[str]]:
        return {d: self._dimension_values(d) for d in DIMENSIONS}

    @property
    def dates(self) -> pd.DatetimeIndex:
        return self._measures.index

    @property
    def by(self) -> str:
        return self._by

    @property
    def config(self) -> Optional[AggregationConfig]:
        return self._config

    @property
    def schemes(self) -> Dict[str, WeightingScheme]:
        return dict(self._schemes)

    @property
    def bucket_sentiment(self) -> pd.DataFrame:
        return self._bucket.copy()

    @property
    def doc_counts(self) -> pd.Series:
        """Documents per bucket on the measure dates."""
        return self._doc_counts.reindex(self.dates, fill_value=0)

    def components(self, name: str) -> Tuple[Component, ...]:
        self.key(name)
        return self._components[name]

    def offset(self, name: str) -> float:
        self.key(name)
        return self._offsets[name]

    @property
    def max_lag(self) -> int:
        return max(len(c.weights) for comps in self._components.values()
                   for c in comps)

    def __getitem__(self, name: str) -> pd.Series:
        self.key(name)
        return self._measures[name].copy()

    def __len__(self) -> int:
        return len(self._measures)

    def __contains__(self, name) -> bool:
        return name in self._keys

    def __repr__(self) -> str:
        return (f"SentimentMeasures(measures={len(self._keys)}, dates={len(self)}, "
                f"by={self._by!r}, {self.dates[0].date()}..{self.dates[-1].date()})")

    def to_frame(self) -> pd.DataFrame:
        """Rectangular table: 'date' column plus one column per measure."""
        return self._measures.reset_index()

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    def _date_mask(self, dates) -> np.ndarray:
        idx = self.dates
        if dates is None:
            return np.ones(len(idx), dtype=bool)
        if callable(dates):
            return np.asarray(dates(idx), dtype=bool)
        if isinstance(dates, slice):
            lo = pd.Timestamp(dates.start) if dates.start is not None else idx[0]
            hi = pd.Timestamp(dates.stop) if dates.stop is not None else idx[-1]
            return np.asarray((idx >= lo) & (idx <= hi))
        if isinstance(dates, tuple) and len(dates) == 2:
            return self._date_mask(slice(*dates))
        return np.asarray(idx.isin(pd.DatetimeIndex(pd.to_datetime(list(dates)))))

    def subset(
        self,
        dates=None,
        names: Union[Sequence[str], Callable[[str], bool], None] = None,
        features: Optional[Sequence[str]] = None,
        lexicons: Optional[Sequence[str]] = None,
        time: Optional[Sequence[str]] = None,
    ) -> "SentimentMeasures":
        """
        Select dates and/or measures.

        Parameters
        ----------
        dates : slice, (start, end), list of dates or callable(index) -> mask
            The selected dates must form one contiguous block.
        names : list of names or callable(name) -> bool
        features, lexicons, time : list of str
            Keep measures whose component is in the list.
        """
        mask = self._date_mask(dates)
        pos = np.flatnonzero(mask)
        if len(pos) == 0:
            raise DataAlignmentError("Date selection is empty")
        if pos[-1] - pos[0] + 1 != len(pos):
            raise DataAlignmentError(
                "Date selection must be contiguous to keep the cadence",
                {"first": self.dates[pos[0]], "last": self.dates[pos[-1]],
                 "selected": len(pos)})

        selected = list(self._keys)
        if names is not None:
            if callable(names):
                selected = [n for n in selected if names(n)]
            else:
                unknown = [n for n in names if n not in self._keys]
                if unknown:
                    raise ConfigurationError("Unknown measures", {"measures": unknown})
                wanted = set(names)
                selected = [n for n in selected if n in wanted]
        for dim, values in (("features", features), ("lexicons", lexicons),
                            ("time", time)):
            if values is None:
                continue
            values = [values] if isinstance(values, str) else list(values)
            unknown = set(values) - set(self._dimension_values(dim))
            if unknown:
                raise ConfigurationError(f"Unknown {dim}", {dim: sorted(unknown)})
            selected = [n for n in selected if self._keys[n].get(dim) in values]
        if not selected:
            raise DataAlignmentError("Measure selection is empty")

        frame = self._measures.iloc[pos[0]:pos[-1] + 1][selected]
        return self._derive(frame, {n: self._keys[n] for n in selected})

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------
    def _group_key(self, group: str, members: Sequence[str]) -> MeasureKey:
        if SEPARATOR in group:
            return MeasureKey.parse(group)
        parts = []
        for dim in DIMENSIONS:
            values = {self._keys[m].get(dim) for m in members}
            parts.append(values.pop() if len(values) == 1 else group)
        return MeasureKey(*parts)

    def merge_group(self, groups: Mapping[str, Sequence[str]],
                    keep: bool = False) -> "SentimentMeasures":
        """
        Replace each group of measures by its unweighted mean.

        Parameters
        ----------
        groups : dict
            Group name -> member measure names. The merged key takes, per
            dimension, the value shared by all members, or else the group
            name. A group name in 'feature--lexicon--time' form is used as
            the key directly.
        keep : bool
            Keep the original measures next to the merged ones.

        Returns
        -------
        SentimentMeasures with exactly one new series per group.
        """
        if not groups:
            raise ConfigurationError("No groups to merge")
        seen: Dict[str, str] = {}
        for group, members in groups.items():
            if not members:
                raise ConfigurationError(f"Group {group!r} has no members")
            for m in members:
                self.key(m)
                if m in seen:
                    raise ConfigurationError(
                        f"Measure {m!r} belongs to more than one group",
                        {"groups": [seen[m], group]})
                seen[m] = group

        keys = {n: k for n, k in self._keys.items() if keep or n not in seen}
        components = dict(self._components)
        offsets = dict(self._offsets)
        columns = {n: self._measures[n] for n in keys}
        for group, members in groups.items():
            key = self._group_key(group, members)
            if key.name in keys:
                raise ConfigurationError(
                    f"Merged measure {key.name!r} collides with an existing measure",
                    {"group": group})
            n = len(members)
            keys[key.name] = key
            columns[key.name] = self._measures[list(members)].mean(axis=1, skipna=False)
            components[key.name] = _collapse(
                c.scaled(1.0 / n) for m in members for c in self._components[m])
            offsets[key.name] = sum(self._offsets[m] for m in members) / n

        frame = pd.DataFrame(columns, index=self.dates)
        log.info("Merged %d measures into %d groups (keep=%s)", len(seen), len(groups), keep)
        return self._derive(frame, keys, components, offsets)

    def merge(
        self,
        features: Optional[Mapping[str, Sequence[str]]] = None,
        lexicons: Optional[Mapping[str, Sequence[str]]] = None,
        time: Optional[Mapping[str, Sequence[str]]] = None,
        keep: bool = False,
    ) -> "SentimentMeasures":
        """
        Merge dimension values, e.g. features={'econ': ['fed', 'gdp']}
        averages every pair of measures that differ only in those features.
        """
        rename: Dict[str, Dict[str, str]] = {}
        for dim, merges in (("features", features), ("lexicons", lexicons),
                            ("time", time)):
            if not merges:
                continue
            existing = set(self._dimension_values(dim))
            mapping: Dict[str, str] = {}
            for new, olds in merges.items():
                if SEPARATOR in new:
                    raise AmbiguousMeasureName(new, SEPARATOR, dim)
                unknown = set(olds) - existing
                if unknown:
                    raise ConfigurationError(f"Unknown {dim}", {dim: sorted(unknown)})
                for old in olds:
                    if old in mapping:
                        raise ConfigurationError(
                            f"{old!r} is merged into more than one {dim} value")
                    mapping[old] = new
            rename[dim] = mapping
        if not rename:
            raise ConfigurationError("Nothing to merge")

        groups: Dict[str, List[str]] = {}
        for name, key in self._keys.items():
            new_key = key
            for dim, mapping in rename.items():
                value = key.get(dim)
                if value in mapping:
                    new_key = new_key.replace(dim, mapping[value])
            if new_key != key:
                groups.setdefault(new_key.name, []).append(name)
        return self.merge_group(groups, keep=keep)

    # ------------------------------------------------------------------
    # Linear transforms
    # ------------------------------------------------------------------
    def _per_measure(self, value, default: pd.Series, what: str) -> pd.Series:
        if value is True:
            return default
        if value is False or value is None:
            return pd.Series(0.0 if what == "center" else 1.0, index=self.names)
        if isinstance(value, (int, float, np.number)):
            return pd.Series(float(value), index=self.names)
        series = pd.Series(dict(value), dtype=float)
        missing = [n for n in self.names if n not in series.index]
        if missing:
            raise ConfigurationError(f"No {what} value for some measures",
                                     {"measures": missing[:5]})
        return series.reindex(self.names)

    def scale(self, center=True, scale=True, period=None) -> "SentimentMeasures":
        """
        Center and/or scale every measure.

        Parameters
        ----------
        center, scale : bool, scalar or mapping name -> value
            True derives the mean (std) per measure.
        period : slice or (start, end), optional
            Dates over which the mean and std are computed; the result is
            applied to the full series.
        """
        ref = self._measures
        if period is not None:
            ref = ref[self._date_mask(period)]
            if ref.empty:
                raise DataAlignmentError("Scaling period selects no dates",
                                         {"period": period})
        c = self._per_measure(center, ref.mean(), "center")
        s = self._per_measure(scale, ref.std(ddof=1), "scale")

        bad = [n for n in self.names if not np.isfinite(s[n]) or s[n] == 0]
        if bad:
            warnings.warn(
                f"Zero or undefined scale for {len(bad)} measure(s); using 1",
                NumericDegeneracyWarning, stacklevel=2)
            log.warning("Degenerate scale replaced by 1 for %s", bad[:5])
            s[bad] = 1.0
        c = c.fillna(0.0)

        frame = (self._measures - c) / s
        components = {n: tuple(comp.scaled(1.0 / s[n]) for comp in self._components[n])
                      for n in self.names}
        offsets = {n: (self._offsets[n] - c[n]) / s[n] for n in self.names}
        return self._derive(frame, self._keys, components, offsets)

    def difference(self, k: int = 1) -> "SentimentMeasures":
        """Differences at lag k; the first k dates are dropped."""
        if not isinstance(k, (int, np.integer)) or k < 1:
            raise ConfigurationError("Difference lag must be an integer >= 1", {"k": k})
        if k >= len(self):
            raise InsufficientHistoryError(
                "Not enough dates to difference", required=k + 1, available=len(self))
        frame = self._measures.diff(k).iloc[k:]
        components = {}
        for n in self.names:
            out = []
            for comp in self._components[n]:
                w = comp.weights
                dw = np.zeros(len(w) + k)
                dw[:len(w)] += w
                dw[k:] -= w
                out.append(Component(comp.column, dw))
            components[n] = tuple(out)
        offsets = {n: 0.0 for n in self.names}
        return self._derive(frame, self._keys, components, offsets)

    def reaggregate(self, schemes: Sequence[WeightingScheme]) -> "SentimentMeasures":
        """
        Rebuild the measures from the stored bucket sentiment with other
        time weighting schemes. Features and lexicons are those of the
        bucket sentiment, not of any earlier merge.
        """
        from sentiment_measures.aggregation import measures_from_buckets

        if self._config is None or self._bucket_pairs is None:
            raise ConfigurationError("Container has no aggregation config to reuse")
        return measures_from_buckets(self._bucket, self._doc_counts,
                                     self._bucket_pairs, schemes, self._config)

    # ------------------------------------------------------------------
    # Derived series and statistics
    # ------------------------------------------------------------------
    def _dimension_weight(self, dimension: str, weights: Optional[Mapping[str, float]]
                          ) -> pd.Series:
        values = self._dimension_values(dimension)
        if weights is None:
            return pd.Series(1.0, index=values)
        unknown = set(weights) - set(values)
        if unknown:
            raise ConfigurationError(f"Unknown {dimension}", {dimension: sorted(unknown)})
        return pd.Series({v: float(weights.get(v, 0.0)) for v in values})

    def to_global(
        self,
        feature_weights: Optional[Mapping[str, float]] = None,
        lexicon_weights: Optional[Mapping[str, float]] = None,
        time_weights: Optional[Mapping[str, float]] = None,
    ) -> pd.Series:
        """
        Weighted average across all measures. The weight of a measure is
        the product of the weights of its feature, lexicon and scheme
        (equal by default).
        """
        wf = self._dimension_weight("features", feature_weights)
        wl = self._dimension_weight("lexicons", lexicon_weights)
        wt = self._dimension_weight("time", time_weights)
        w = pd.Series({n: wf[k.feature] * wl[k.lexicon] * wt[k.time]
                       for n, k in self._keys.items()})
        if w.sum() <= 0:
            raise ConfigurationError("Global weights sum to zero")
        values = self._measures[w.index] @ w / w.sum()
        return values.rename("global")

    def stats(self) -> pd.DataFrame:
        """Per measure: mean, sd, max, min and mean correlation with the others."""
        m = self._measures
        out = pd.DataFrame({
            "mean": m.mean(),
            "sd": m.std(ddof=1),
            "max": m.max(),
            "min": m.min(),
        }).T
        if m.shape[1] > 1:
            corr = m.corr().to_numpy(copy=True)
            np.fill_diagonal(corr, np.nan)
            out.loc["meanCorr"] = np.nanmean(corr, axis=0)
        else:
            out.loc["meanCorr"] = np.nan
        return out

    def peak_dates(self, n: int = 10, kind: str = "both") -> pd.DatetimeIndex:
        """Dates of the n most extreme values of the global measure."""
        g = self.to_global().dropna()
        if kind == "both":
            order = g.abs().sort_values(ascending=False, kind="mergesort")
        elif kind == "pos":
            order = g.sort_values(ascending=False, kind="mergesort")
        elif kind == "neg":
            order = g.sort_values(ascending=True, kind="mergesort")
        else:
            raise ConfigurationError(f"Unknown peak kind {kind!r}",
                                     {"allowed": ("both", "pos", "neg")})
        return pd.DatetimeIndex(order.index[:n], name="date")

    def decompose_lags(self, name: str) -> pd.DataFrame:
        """
        Split a measure into its per-lag contributions.

        Returns
        -------
        pd.DataFrame indexed by date with columns lag_0 .. lag_{L-1}; each
        row plus the measure's offset gives its value (missing buckets
        count as zero).
        """
        comps = self.components(name)
        n_lags = max(len(c.weights) for c in comps)
        pos = self._bucket.index.get_indexer(self.dates)
        if np.any(pos < 0) or pos[0] - (n_lags - 1) < 0:
            raise InsufficientHistoryError(
                "Bucket history does not cover the measure lags",
                required=n_lags, details={"measure": name})
        out = np.zeros((len(pos), n_lags))
        for c in comps:
            col = self._bucket[c.column].fillna(0.0).to_numpy()
            for lag, w in enumerate(c.weights):
                if w != 0:
                    out[:, lag] += w * col[pos - lag]
        return pd.DataFrame(out, index=self.dates,
                            columns=[f"lag_{i}" for i in range(n_lags)])
