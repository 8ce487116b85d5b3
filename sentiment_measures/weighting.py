"""
================================================================================
WEIGHTING-CURVE LIBRARY
================================================================================
Pure functions producing a lag-length weight vector for the across-time
aggregation stage. Index 0 is the most recent bucket, index L-1 the oldest.

Families (x_i denotes a position in (0, 1], i = 0 most recent):

    equal        : w_i = 1 / L
    linear       : w_i ∝ L - i
    exponential  : w_i ∝ alpha^i,                       alpha in (0, 1]
    beta         : w_i ∝ Beta(a, b) pdf at (i + 1) / (L + 1)
    almon        : w_i ∝ (1 - (1 - x_i)^b) (1 - x_i)^(B - b),  x_i = (i + 1) / L
    custom       : any non-negative vector

Every family returns a vector summing to one unless normalize=False. A
small alpha concentrates the exponential curve on the most recent bucket;
beta shapes (a < b) load on recent buckets, (a > b) on older ones.

The beta density is evaluated strictly inside (0, 1) so that shapes below
one remain finite at the window edges.

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

import numpy as np
from scipy import stats

from sentiment_measures.config import AggregationConfig
from sentiment_measures.exceptions import ConfigurationError
from sentiment_measures.lexicons import check_component_name


def _finish(w: np.ndarray, normalize: bool) -> np.ndarray:
    w = np.asarray(w, dtype=float)
    if not normalize:
        return w
    total = w.sum()
    if not np.isfinite(total) or total <= 0:
        raise ConfigurationError("Weight vector cannot be normalised",
                                 {"sum": float(total)})
    return w / total


def _check_lag(lag: int) -> None:
    if lag < 1:
        raise ConfigurationError("lag must be >= 1", {"lag": lag})


def equal_weights(lag: int, normalize: bool = True) -> np.ndarray:
    _check_lag(lag)
    return _finish(np.ones(lag), normalize)


def linear_weights(lag: int, normalize: bool = True) -> np.ndarray:
    """Linearly decaying weights, highest on the most recent bucket."""
    _check_lag(lag)
    return _finish(np.arange(lag, 0, -1, dtype=float), normalize)


def exponential_weights(lag: int, alpha: float, normalize: bool = True) -> np.ndarray:
    """
    Exponential decay w_i ∝ alpha^i.

    alpha = 1 reproduces equal weights; alpha -> 0 approximates using
    the most recent bucket only.
    """
    _check_lag(lag)
    if not 0 < alpha <= 1:
        raise ConfigurationError("alpha must lie in (0, 1]", {"alpha": alpha})
    return _finish(alpha ** np.arange(lag, dtype=float), normalize)


def beta_weights(lag: int, a: float, b: float, normalize: bool = True) -> np.ndarray:
    """Beta-density weights; (a, b) control location and skew of the hump."""
    _check_lag(lag)
    if a <= 0 or b <= 0:
        raise ConfigurationError("Beta shapes must be positive", {"a": a, "b": b})
    x = np.arange(1, lag + 1, dtype=float) / (lag + 1)
    return _finish(stats.beta.pdf(x, a, b), normalize)


def almon_weights(
    lag: int,
    order: int,
    max_order: int,
    inverse: bool = False,
    normalize: bool = True,
) -> np.ndarray:
    """
    Almon polynomial weights of a given order (1 <= order <= max_order).

    The inverted curve reverses the ordering over the lags.
    """
    _check_lag(lag)
    if not 1 <= order <= max_order:
        raise ConfigurationError("Almon order must lie in [1, max_order]",
                                 {"order": order, "max_order": max_order})
    x = np.arange(1, lag + 1, dtype=float) / lag
    w = (1 - (1 - x) ** order) * (1 - x) ** (max_order - order)
    if lag == 1 or not np.any(w > 0):
        w = np.ones(lag)
    if inverse:
        w = w[::-1]
    return _finish(w, normalize)


def custom_weights(vector: Sequence[float], normalize: bool = True) -> np.ndarray:
    """User-supplied weights, normalised to sum to one."""
    w = np.asarray(vector, dtype=float)
    if w.ndim != 1 or len(w) < 1:
        raise ConfigurationError("Custom weights must be a non-empty vector")
    if np.any(w < 0) or not np.all(np.isfinite(w)):
        raise ConfigurationError("Custom weights must be finite and non-negative")
    return _finish(w, normalize)


@dataclass(frozen=True)
class WeightingScheme:
    """A named time weighting curve of fixed lag."""
    name: str
    family: str
    lag: int
    params: Tuple[Tuple[str, float], ...] = ()
    weights: np.ndarray = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        check_component_name(self.name, "time weighting scheme")
        w = np.asarray(self.weights, dtype=float)
        if w.shape != (self.lag,):
            raise ConfigurationError(
                f"Scheme {self.name!r} weights do not match lag {self.lag}",
                {"scheme": self.name, "shape": w.shape})
        w.setflags(write=False)
        object.__setattr__(self, "weights", w)

    @property
    def param_dict(self) -> Dict[str, float]:
        return dict(self.params)


def _fmt(x: float) -> str:
    return f"{x:g}"


def build_schemes(config: AggregationConfig) -> List[WeightingScheme]:
    """
    Expand the configured time families into a grid of named schemes.

    One scheme per parameter combination: every alpha for 'exponential',
    every (a, b) pair for 'beta', every order (and optionally its inverse)
    for 'almon', every named vector for 'custom'.
    """
    lag, norm = config.lag, config.normalize_weights
    schemes: List[WeightingScheme] = []
    for family in config.time:
        if family == "equal_weight":
            schemes.append(WeightingScheme("equal_weight", family, lag, (),
                                           equal_weights(lag, norm)))
        elif family == "linear":
            schemes.append(WeightingScheme("linear", family, lag, (),
                                           linear_weights(lag, norm)))
        elif family == "exponential":
            for alpha in config.alphas_exp:
                schemes.append(WeightingScheme(
                    f"exponential_{_fmt(alpha)}", family, lag,
                    (("alpha", alpha),), exponential_weights(lag, alpha, norm)))
        elif family == "beta":
            for a, b in config.beta_params:
                schemes.append(WeightingScheme(
                    f"beta_{_fmt(a)}_{_fmt(b)}", family, lag,
                    (("a", a), ("b", b)), beta_weights(lag, a, b, norm)))
        elif family == "almon":
            max_order = max(config.almon_orders)
            variants = (False, True) if config.almon_inverse else (False,)
            for inverse in variants:
                for order in config.almon_orders:
                    prefix = "almon_inv" if inverse else "almon"
                    schemes.append(WeightingScheme(
                        f"{prefix}_{order}_{max_order}", family, lag,
                        (("order", order), ("max_order", max_order),
                         ("inverse", float(inverse))),
                        almon_weights(lag, order, max_order, inverse, norm)))
        elif family == "custom":
            for name, vec in config.custom_weights.items():
                schemes.append(WeightingScheme(
                    name, family, lag, (), custom_weights(vec, norm)))

    names = [s.name for s in schemes]
    if len(set(names)) != len(names):
        raise ConfigurationError("Duplicate weighting scheme names", {"names": names})
    return schemes


def rolling_weighted_sum(values: np.ndarray, weights: np.ndarray,
                         renormalize: bool = False) -> np.ndarray:
    """
    Trailing weighted sum sum_l w_l * x_{t-l} for every t >= L - 1.

    Parameters
    ----------
    values : np.ndarray
        (T,) per-bucket series, oldest first.
    weights : np.ndarray
        (L,) weights, index 0 = most recent.
    renormalize : bool
        Skip missing buckets and rescale the remaining weights to the
        full weight mass; NaN only when a window has no observation.

    Returns
    -------
    np.ndarray of length T - L + 1 (the first L - 1 buckets are excluded).
    """
    values = np.asarray(values, dtype=float)
    w_rev = np.asarray(weights, dtype=float)[::-1]
    windows = np.lib.stride_tricks.sliding_window_view(values, len(w_rev))
    if not renormalize:
        return windows @ w_rev
    observed = ~np.isnan(windows)
    num = np.where(observed, windows, 0.0) @ w_rev
    mass = observed.astype(float) @ w_rev
    out = np.full(len(num), np.nan)
    ok = mass > 0
    out[ok] = num[ok] * (w_rev.sum() / mass[ok])
    return out
