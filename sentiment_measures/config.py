"""
config.py
---------
Centralised, immutable configuration for the sentiment measures pipeline.

Every option set is enumerated below and validated eagerly in
``__post_init__``: an invalid or contradictory combination raises
ConfigurationError at construction time rather than mid-pipeline.
Process-level settings are read from environment variables with defaults.
"""

import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

import numpy as np

from sentiment_measures.exceptions import ConfigurationError


WITHIN_RULES = (
    "counts", "proportional", "proportionalPol", "proportionalSquareRoot",
    "UShaped", "inverseUShaped", "exponential", "inverseExponential",
)
DOCS_RULES = ("equal_weight", "proportional", "inverseProportional", "custom")
TIME_RULES = ("equal_weight", "linear", "exponential", "beta", "almon", "custom")
CADENCES = ("day", "week", "month", "year")
FILL_RULES = ("latest", "zero", "drop")
VALENCE_MODES = ("cluster", "bigram", "none")
ADVERSATIVE_POLICIES = ("none", "suppress_preceding", "downweight_preceding")
CRITERIA = ("BIC", "AIC", "Cp", "cv")


@dataclass(frozen=True)
class Settings:
    """Process-level settings read from the environment."""
    log_level: str = os.getenv("SENTIMENT_LOG_LEVEL", "INFO")
    log_dir:   str = os.getenv("SENTIMENT_LOG_DIR", "")
    n_jobs:    int = int(os.getenv("SENTIMENT_N_JOBS", "1"))


# Singleton instance used throughout the project
SETTINGS = Settings()


def _freeze_mapping(obj, name: str, value) -> None:
    if value is not None:
        object.__setattr__(obj, name, MappingProxyType(dict(value)))


def _as_tuple(obj, name: str, value) -> None:
    if isinstance(value, str):
        value = (value,)
    object.__setattr__(obj, name, tuple(value))


@dataclass(frozen=True)
class ValenceConfig:
    """
    Valence shifting rules applied around every lexicon hit.

    Parameters
    ----------
    mode : str
        'cluster' scans a context window for shifters, 'bigram' applies the
        shifter directly preceding a hit, 'none' ignores shifters.
    n_before, n_after : int
        Context window (in tokens) before and after a hit for 'cluster'.
    amplifier_weight, deamplifier_weight : float
        Default modifier values when a shifter table entry gives none.
    adversative : str
        Effect of adversative conjunctions ('none' by default).
    adversative_weight : float
        Default down/up-weighting for 'downweight_preceding'.
    clause_breaks : tuple of str
        Tokens that end a clause for adversative scoping.
    """
    mode:               str   = "cluster"
    n_before:           int   = 4
    n_after:            int   = 2
    amplifier_weight:   float = 0.8
    deamplifier_weight: float = 0.5
    adversative:        str   = "none"
    adversative_weight: float = 0.25
    clause_breaks:      Tuple[str, ...] = (".", "!", "?", ";")

    def __post_init__(self):
        _as_tuple(self, "clause_breaks", self.clause_breaks)
        if self.mode not in VALENCE_MODES:
            raise ConfigurationError(
                f"Unknown valence mode {self.mode!r}", {"allowed": VALENCE_MODES})
        if self.adversative not in ADVERSATIVE_POLICIES:
            raise ConfigurationError(
                f"Unknown adversative policy {self.adversative!r}",
                {"allowed": ADVERSATIVE_POLICIES})
        if self.n_before < 0 or self.n_after < 0:
            raise ConfigurationError(
                "Valence context window sizes must be non-negative",
                {"n_before": self.n_before, "n_after": self.n_after})
        if self.amplifier_weight < 0 or self.deamplifier_weight < 0:
            raise ConfigurationError("Shifter weights must be non-negative")
        if not 0 <= self.adversative_weight <= 1:
            raise ConfigurationError(
                "adversative_weight must lie in [0, 1]",
                {"adversative_weight": self.adversative_weight})


@dataclass(frozen=True)
class AggregationConfig:
    """
    Three-stage aggregation options (within-document, across documents,
    across time) and the weighting-scheme grid.

    Parameters
    ----------
    within : str
        Within-document rule, one of WITHIN_RULES.
    within_alpha : float
        Steepness of the (inverse) exponential within-document weights.
    docs : str
        Across-documents rule, one of DOCS_RULES.
    doc_weights : mapping, optional
        Document id -> weight, required when docs='custom'.
    time : sequence of str
        Time weighting families, any of TIME_RULES.
    by : str
        Bucket cadence: 'day', 'week', 'month' or 'year'.
    lag : int
        Number of buckets L in every time weighting scheme.
    fill : str
        Missing-bucket policy applied before time aggregation.
    ignore_zeros : bool
        Exclude zero-relevance documents from the across-documents denominator.
    alphas_exp : sequence of float
        Decay parameters for the exponential family, each in (0, 1].
    beta_params : sequence of (a, b)
        Shape pairs for the beta family.
    almon_orders : sequence of int
        Polynomial orders for the Almon family (max order = largest value).
    almon_inverse : bool
        Also produce the inverted Almon curves.
    custom_weights : mapping, optional
        Scheme name -> weight vector of length ``lag`` for time='custom'.
    normalize_weights : bool
        Normalise every time weight vector to sum to one.
    valence : ValenceConfig
        Valence shifting rules.
    n_jobs : int
        Worker count for document scoring (joblib semantics, -1 = all cores).
    chunk_size : int
        Documents per scoring task.
    show_progress : bool
        Display a tqdm progress bar while scoring.
    """
    within:            str   = "proportionalPol"
    within_alpha:      float = 5.0
    docs:              str   = "equal_weight"
    doc_weights:       Optional[Mapping[str, float]] = None
    time:              Tuple[str, ...] = ("equal_weight",)
    by:                str   = "day"
    lag:               int   = 1
    fill:              str   = "zero"
    ignore_zeros:      bool  = False
    alphas_exp:        Tuple[float, ...] = (0.1, 0.5, 0.9)
    beta_params:       Tuple[Tuple[float, float], ...] = ((1.0, 3.0), (3.0, 3.0))
    almon_orders:      Tuple[int, ...] = (1, 2, 3)
    almon_inverse:     bool  = True
    custom_weights:    Optional[Mapping[str, Sequence[float]]] = None
    normalize_weights: bool  = True
    valence:           ValenceConfig = field(default_factory=ValenceConfig)
    n_jobs:            int   = field(default_factory=lambda: SETTINGS.n_jobs)
    chunk_size:        int   = 500
    show_progress:     bool  = False

    def __post_init__(self):
        _as_tuple(self, "time", self.time)
        _as_tuple(self, "alphas_exp", self.alphas_exp)
        _as_tuple(self, "almon_orders", self.almon_orders)
        object.__setattr__(self, "beta_params",
                           tuple(tuple(p) for p in self.beta_params))
        _freeze_mapping(self, "doc_weights", self.doc_weights)
        if self.custom_weights is not None:
            object.__setattr__(self, "custom_weights", MappingProxyType({
                k: tuple(float(x) for x in v)
                for k, v in self.custom_weights.items()
            }))
        self._validate()

    def _validate(self) -> None:
        if self.within not in WITHIN_RULES:
            raise ConfigurationError(
                f"Unknown within-document rule {self.within!r}",
                {"allowed": WITHIN_RULES})
        if self.docs not in DOCS_RULES:
            raise ConfigurationError(
                f"Unknown across-documents rule {self.docs!r}",
                {"allowed": DOCS_RULES})
        if self.docs == "custom" and not self.doc_weights:
            raise ConfigurationError("docs='custom' requires doc_weights")
        if self.doc_weights and any(w < 0 for w in self.doc_weights.values()):
            raise ConfigurationError("Document weights must be non-negative")
        if self.by not in CADENCES:
            raise ConfigurationError(
                f"Unknown bucket cadence {self.by!r}", {"allowed": CADENCES})
        if self.fill not in FILL_RULES:
            raise ConfigurationError(
                f"Unknown fill policy {self.fill!r}", {"allowed": FILL_RULES})
        if not isinstance(self.lag, (int, np.integer)) or self.lag < 1:
            raise ConfigurationError("lag must be an integer >= 1",
                                     {"lag": self.lag})
        if not self.time:
            raise ConfigurationError("At least one time weighting rule is required")
        unknown = [t for t in self.time if t not in TIME_RULES]
        if unknown:
            raise ConfigurationError(
                f"Unknown time weighting rule(s) {unknown}",
                {"allowed": TIME_RULES})
        if self.within_alpha <= 0:
            raise ConfigurationError("within_alpha must be positive")
        if "exponential" in self.time:
            if not self.alphas_exp:
                raise ConfigurationError("time='exponential' requires alphas_exp")
            bad = [a for a in self.alphas_exp if not 0 < a <= 1]
            if bad:
                raise ConfigurationError(
                    "Exponential decay parameters must lie in (0, 1]",
                    {"alphas_exp": bad})
        if "beta" in self.time:
            if not self.beta_params:
                raise ConfigurationError("time='beta' requires beta_params")
            for pair in self.beta_params:
                if len(pair) != 2 or min(pair) <= 0:
                    raise ConfigurationError(
                        "Beta shape parameters must be positive (a, b) pairs",
                        {"pair": pair})
        if "almon" in self.time:
            if not self.almon_orders or min(self.almon_orders) < 1:
                raise ConfigurationError(
                    "Almon orders must be positive integers",
                    {"almon_orders": self.almon_orders})
        if "custom" in self.time:
            if not self.custom_weights:
                raise ConfigurationError("time='custom' requires custom_weights")
            for name, vec in self.custom_weights.items():
                if len(vec) != self.lag:
                    raise ConfigurationError(
                        f"Custom weights {name!r} must have length lag={self.lag}",
                        {"scheme": name, "length": len(vec)})
                if min(vec) < 0 or sum(vec) <= 0:
                    raise ConfigurationError(
                        f"Custom weights {name!r} must be non-negative with a "
                        "positive sum", {"scheme": name})
        if self.n_jobs == 0:
            raise ConfigurationError("n_jobs must be non-zero")
        if self.chunk_size < 1:
            raise ConfigurationError("chunk_size must be >= 1")


@dataclass(frozen=True)
class RegressionConfig:
    """
    Walk-forward penalised regression options.

    Parameters
    ----------
    h : int
        Forecast horizon in periods (0 = nowcast).
    n_sample : int, optional
        Training window length. Required when do_iter=True.
    oos : int, optional
        Periods skipped between training end and the prediction row.
        Defaults to max(h - 1, 0), the smallest leak-free value.
    step : int
        Number of periods the anchor advances per window.
    alphas : sequence of float
        Elastic-net mixing grid (0 = ridge, 1 = lasso).
    lambdas : sequence of float, optional
        Regularisation grid; default is a log-spaced path from lambda_max.
    n_lambdas, lambda_ratio : int, float
        Size and min/max ratio of the default lambda path.
    criterion : str
        'BIC', 'AIC', 'Cp' or 'cv'.
    train_window, test_window : int
        Rolling fold sizes for criterion='cv'.
    do_iter : bool
        Walk-forward iteration; False fits once over the full sample.
    ar_lags : int
        Number of autoregressive target lags added as explanatory series.
    intercept : bool
        Fit an intercept.
    do_difference : bool
        First-difference measures and target before fitting.
    abort_on_failure : bool
        Stop the run at the first failed window.
    tolerance : str, optional
        Maximum distance (pandas timedelta string) when matching target
        dates onto measure dates.
    """
    h:                int   = 0
    n_sample:         Optional[int] = None
    oos:              Optional[int] = None
    step:             int   = 1
    alphas:           Tuple[float, ...] = (0.0, 0.2, 0.4, 0.6, 0.8, 1.0)
    lambdas:          Optional[Tuple[float, ...]] = None
    n_lambdas:        int   = 50
    lambda_ratio:     float = 1e-4
    criterion:        str   = "BIC"
    train_window:     Optional[int] = None
    test_window:      int   = 1
    do_iter:          bool  = True
    ar_lags:          int   = 0
    intercept:        bool  = True
    do_difference:    bool  = False
    abort_on_failure: bool  = False
    tolerance:        Optional[str] = None
    max_iter:         int   = 10_000
    n_jobs:           int   = field(default_factory=lambda: SETTINGS.n_jobs)
    show_progress:    bool  = False

    def __post_init__(self):
        _as_tuple(self, "alphas", self.alphas)
        if self.lambdas is not None:
            _as_tuple(self, "lambdas", sorted(self.lambdas, reverse=True))
        if self.oos is None:
            object.__setattr__(self, "oos", max(self.h - 1, 0))
        self._validate()

    def _validate(self) -> None:
        if self.h < 0:
            raise ConfigurationError("h must be >= 0", {"h": self.h})
        if self.oos < max(self.h - 1, 0):
            raise ConfigurationError(
                "oos smaller than h - 1 would leak future target values",
                {"h": self.h, "oos": self.oos})
        if self.step < 1:
            raise ConfigurationError("step must be >= 1", {"step": self.step})
        if self.do_iter and (self.n_sample is None or self.n_sample < 2):
            raise ConfigurationError(
                "do_iter=True requires n_sample >= 2", {"n_sample": self.n_sample})
        if not self.alphas or any(not 0 <= a <= 1 for a in self.alphas):
            raise ConfigurationError(
                "alphas must be a non-empty grid within [0, 1]",
                {"alphas": self.alphas})
        if self.lambdas is not None and (
                not self.lambdas or min(self.lambdas) <= 0):
            raise ConfigurationError("lambdas must be positive")
        if self.n_lambdas < 1 or not 0 < self.lambda_ratio < 1:
            raise ConfigurationError("Invalid default lambda path settings")
        if self.criterion not in CRITERIA:
            raise ConfigurationError(
                f"Unknown selection criterion {self.criterion!r}",
                {"allowed": CRITERIA})
        if self.criterion == "cv":
            if self.train_window is None or self.train_window < 2:
                raise ConfigurationError("criterion='cv' requires train_window >= 2")
            if self.test_window < 1:
                raise ConfigurationError("test_window must be >= 1")
            if (self.n_sample is not None
                    and self.train_window + self.test_window > self.n_sample):
                raise ConfigurationError(
                    "train_window + test_window exceeds n_sample",
                    {"train_window": self.train_window,
                     "test_window": self.test_window,
                     "n_sample": self.n_sample})
        if self.ar_lags < 0:
            raise ConfigurationError("ar_lags must be >= 0")
        if self.n_jobs == 0:
            raise ConfigurationError("n_jobs must be non-zero")
