"""
================================================================================
ROLLING (WALK-FORWARD) PENALISED REGRESSION
================================================================================
Forecasts a target series h periods ahead from sentiment measures with an
elastic-net regression refitted on a rolling window.

For an anchor row p (the prediction origin) the model is trained on the
pairs (x_j, y_{j+h}) for the n_sample rows

    j in [p - oos - n_sample, p - oos - 1]

and predicts y_{p+h} from x_p. With oos >= h - 1 every training target is
realised at the anchor, so no future information enters a window.

Per window:
    1. Standardise the explanatory series (StandardScaler).
    2. For every mixing parameter alpha (0 = ridge, 1 = lasso) fit the
       lambda path: ElasticNet, or Ridge when alpha = 0.
    3. Pick (alpha, lambda) minimising BIC, AIC, Mallows' Cp (elastic-net
       degrees of freedom) or the rolling cross-validation error.
    4. Map the coefficients back to the original scale.

Elastic-net degrees of freedom on the active set A (Zou & Hastie, 2005):

    df = tr( X_A (X_A'X_A + n·lambda·(1 - alpha)·I)^-1 X_A' )

Windows only read realised data and are fitted in parallel with joblib.
A window with a missing value in its prediction row, or with fewer than
n_sample complete training rows, fails and is recorded.

References:
    Ardia, Bluteau, Borms & Boudt (2019), Zou & Hastie (2005),
    Friedman, Hastie & Tibshirani (2010)

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

import warnings
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import ElasticNet, Ridge
from sklearn.preprocessing import StandardScaler
from tqdm import tqdm

from sentiment_measures.config import RegressionConfig
from sentiment_measures.exceptions import (ConfigurationError, DataAlignmentError,
                                           InsufficientHistoryError, TargetMisaligned)
from sentiment_measures.measures import SentimentMeasures
from sentiment_measures.utils import CADENCE_FREQ, get_logger, timeit

log = get_logger(__name__)

INTERCEPT = "(intercept)"
_RSS_FLOOR = 1e-12


# -----------------------------------------------------------------------------
# Window lifecycle
# -----------------------------------------------------------------------------
class WindowState(Enum):
    WINDOW_READY = "window_ready"
    FITTED = "fitted"
    SCORED = "scored"
    FAILED = "failed"
    ADVANCE = "advance"
    DONE = "done"


_TRANSITIONS = {
    WindowState.WINDOW_READY: (WindowState.FITTED, WindowState.FAILED),
    WindowState.FITTED: (WindowState.SCORED, WindowState.FAILED),
    WindowState.SCORED: (WindowState.ADVANCE, WindowState.DONE),
    WindowState.FAILED: (WindowState.ADVANCE, WindowState.DONE),
    WindowState.ADVANCE: (WindowState.WINDOW_READY,),
    WindowState.DONE: (),
}


class WalkForwardState:
    """
    Run-level state machine of the walk-forward loop:
    WINDOW_READY -> FITTED -> SCORED -> (ADVANCE -> WINDOW_READY | DONE).
    """

    def __init__(self):
        self.state = WindowState.WINDOW_READY
        self.history: List[WindowState] = [self.state]

    def transition(self, new: WindowState) -> None:
        if new not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal window transition {self.state.name} -> {new.name}")
        self.state = new
        self.history.append(new)


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------
@dataclass
class FittedWindow:
    """One walk-forward window: training span, selection and prediction."""
    index: int
    start: pd.Timestamp
    end: pd.Timestamp
    anchor: pd.Timestamp
    target_date: pd.Timestamp
    alpha: float
    lambda_: float
    coefficients: pd.Series
    intercept: float
    criterion: float
    rmse: float
    r2: float
    n_train: int
    prediction: float
    realized: float = np.nan
    reference: float = np.nan
    state: WindowState = WindowState.SCORED


@dataclass
class WindowFailure:
    index: int
    anchor: pd.Timestamp
    error: InsufficientHistoryError


# -----------------------------------------------------------------------------
# Target alignment
# -----------------------------------------------------------------------------
def align_target(target: pd.Series, dates: pd.DatetimeIndex,
                 tolerance: Optional[str] = None) -> pd.Series:
    """
    Map a target series onto the measure dates.

    Each measure date takes the latest target value dated on or before it
    and no further back than ``tolerance`` (exact date match when None).
    Unmatched dates are NaN.
    """
    if not isinstance(target, pd.Series):
        raise DataAlignmentError("Target must be a date-indexed pandas Series")
    try:
        t_index = pd.DatetimeIndex(pd.to_datetime(target.index))
    except (TypeError, ValueError) as exc:
        raise DataAlignmentError("Target index is not made of dates") from exc
    if t_index.has_duplicates:
        raise DataAlignmentError("Duplicate dates in target",
                                 {"duplicates": list(t_index[t_index.duplicated()][:5])})

    right = pd.DataFrame({"target_date": t_index.astype("datetime64[ns]"),
                          "y": target.to_numpy(dtype=float)})
    right = right.dropna().sort_values("target_date")
    left = pd.DataFrame({"date": pd.DatetimeIndex(dates).astype("datetime64[ns]")})
    tol = pd.Timedelta(tolerance) if tolerance is not None else pd.Timedelta(0)
    matched = pd.merge_asof(left, right, left_on="date", right_on="target_date",
                            direction="backward", tolerance=tol)
    y = pd.Series(matched["y"].to_numpy(), index=pd.DatetimeIndex(dates, name="date"),
                  name=target.name or "target")
    if y.notna().sum() == 0:
        raise TargetMisaligned(
            "Target dates do not overlap the measure dates",
            {"target": f"{t_index.min()}..{t_index.max()}" if len(t_index) else "empty",
             "measures": f"{dates[0]}..{dates[-1]}", "tolerance": tolerance})
    return y


# -----------------------------------------------------------------------------
# Single-window fit
# -----------------------------------------------------------------------------
def _lambda_grid(Xs: np.ndarray, y: np.ndarray, alpha: float,
                 config: RegressionConfig) -> np.ndarray:
    if config.lambdas is not None:
        return np.asarray(config.lambdas, dtype=float)
    n = len(y)
    yc = y - y.mean() if config.intercept else y
    lam_max = np.max(np.abs(Xs.T @ yc)) / (n * max(alpha, 1e-3)) if Xs.size else 0.0
    if not np.isfinite(lam_max) or lam_max <= 0:
        lam_max = 1.0
    return lam_max * np.logspace(0, np.log10(config.lambda_ratio), config.n_lambdas)


def _fit_one(Xs: np.ndarray, y: np.ndarray, alpha: float, lam: float,
             config: RegressionConfig) -> Tuple[np.ndarray, float]:
    if alpha == 0:
        model = Ridge(alpha=len(y) * lam, fit_intercept=config.intercept)
    else:
        model = ElasticNet(alpha=lam, l1_ratio=alpha, fit_intercept=config.intercept,
                           max_iter=config.max_iter)
    # small lambdas on the path seldom converge within max_iter
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", category=ConvergenceWarning)
        model.fit(Xs, y)
    return np.array(model.coef_, dtype=float).ravel(), float(model.intercept_)


def enet_degrees_of_freedom(Xs: np.ndarray, coef: np.ndarray, alpha: float,
                            lam: float) -> float:
    """Effective number of parameters of an elastic-net fit."""
    if alpha > 0:
        active = np.flatnonzero(np.abs(coef) > 1e-10)
    else:
        active = np.arange(len(coef))
    if len(active) == 0:
        return 0.0
    XA = Xs[:, active]
    gram = XA.T @ XA
    m = gram + len(Xs) * lam * (1.0 - alpha) * np.eye(len(active))
    return float(np.trace(np.linalg.pinv(m) @ gram))


def information_criterion(rss: float, n: int, df: float, criterion: str,
                          sigma2: float = 1.0) -> float:
    rss = max(rss, _RSS_FLOOR)
    if criterion == "BIC":
        return n * np.log(rss / n) + np.log(n) * df
    if criterion == "AIC":
        return n * np.log(rss / n) + 2.0 * df
    if criterion == "Cp":
        return rss / sigma2 - n + 2.0 * df
    raise ConfigurationError(f"Unknown information criterion {criterion!r}")


def _select_ic(Xs, y, config):
    n = len(y)
    fits = []
    for alpha in config.alphas:
        for lam in _lambda_grid(Xs, y, alpha, config):
            coef, icpt = _fit_one(Xs, y, alpha, lam, config)
            rss = float(np.sum((y - Xs @ coef - icpt) ** 2))
            df = enet_degrees_of_freedom(Xs, coef, alpha, lam) + int(config.intercept)
            fits.append((alpha, lam, coef, icpt, rss, df))

    sigma2 = 1.0
    if config.criterion == "Cp":
        _, _, _, _, rss_min, df_min = min(fits, key=lambda f: f[4])
        sigma2 = max(rss_min / max(n - df_min, 1.0), _RSS_FLOOR)
    scores = [information_criterion(f[4], n, f[5], config.criterion, sigma2) for f in fits]
    best = int(np.argmin(scores))
    alpha, lam, coef, icpt, _, _ = fits[best]
    return alpha, lam, coef, icpt, float(scores[best])


def _select_cv(X, y, config):
    n = len(y)
    train, test = config.train_window, config.test_window
    if n < train + test:
        raise InsufficientHistoryError(
            "Window too short for the cross-validation folds",
            required=train + test, available=n)

    scaler = StandardScaler(with_mean=config.intercept).fit(X)
    Xs_full = scaler.transform(X)
    grids = {a: _lambda_grid(Xs_full, y, a, config) for a in config.alphas}
    errors = {a: np.zeros(len(g)) for a, g in grids.items()}
    n_folds = n - train - test + 1
    for k in range(n_folds):
        tr = slice(k, k + train)
        te = slice(k + train, k + train + test)
        fold_scaler = StandardScaler(with_mean=config.intercept).fit(X[tr])
        X_tr, X_te = fold_scaler.transform(X[tr]), fold_scaler.transform(X[te])
        for a, grid in grids.items():
            for i, lam in enumerate(grid):
                coef, icpt = _fit_one(X_tr, y[tr], a, lam, config)
                errors[a][i] += np.mean((y[te] - X_te @ coef - icpt) ** 2) / n_folds

    best_alpha, best_i, best_err = None, None, np.inf
    for a in config.alphas:
        i = int(np.argmin(errors[a]))
        if errors[a][i] < best_err:
            best_alpha, best_i, best_err = a, i, errors[a][i]
    lam = grids[best_alpha][best_i]
    coef, icpt = _fit_one(Xs_full, y, best_alpha, lam, config)
    return best_alpha, lam, coef, icpt, float(best_err)


def fit_window(X: np.ndarray, y: np.ndarray, config: RegressionConfig) -> Dict:
    """
    Select and fit the penalised regression on one training window.

    Returns
    -------
    dict with alpha, lambda, coef and intercept (original scale),
    criterion, rmse, r2.
    """
    n = len(y)
    if n < 2:
        raise InsufficientHistoryError("Too few complete training rows",
                                       required=2, available=n)
    scaler = StandardScaler(with_mean=config.intercept).fit(X)
    Xs = scaler.transform(X)
    if config.criterion == "cv":
        alpha, lam, coef_s, icpt_s, crit = _select_cv(X, y, config)
    else:
        alpha, lam, coef_s, icpt_s, crit = _select_ic(Xs, y, config)

    coef = coef_s / scaler.scale_
    mean = scaler.mean_ if config.intercept else np.zeros(X.shape[1])
    intercept = icpt_s - float(coef @ mean)

    resid = y - X @ coef - intercept
    rss = float(resid @ resid)
    tss = float(np.sum((y - y.mean()) ** 2))
    if tss > 0:
        r2 = 1.0 - rss / tss
    else:
        r2 = 1.0 if rss <= _RSS_FLOOR else 0.0
    return {"alpha": float(alpha), "lambda": float(lam), "coef": coef,
            "intercept": intercept, "criterion": crit,
            "rmse": float(np.sqrt(rss / n)), "r2": r2}


def shift_date(dates: pd.DatetimeIndex, row: int, by: str) -> pd.Timestamp:
    """Date of ``row``, extrapolated along the cadence past the index end."""
    if row < len(dates):
        return dates[row]
    ahead = row - len(dates) + 1
    return pd.date_range(dates[-1], periods=ahead + 1, freq=CADENCE_FREQ[by])[-1]


def _run_window(X_train, y_train, x_new, config):
    # Runs in a joblib worker; errors travel back as plain data.
    try:
        if not np.all(np.isfinite(x_new)):
            raise InsufficientHistoryError("Prediction row has missing values")
        complete = np.all(np.isfinite(X_train), axis=1) & np.isfinite(y_train)
        if complete.sum() < config.n_sample:
            raise InsufficientHistoryError("Too few complete training rows",
                                           required=config.n_sample,
                                           available=int(complete.sum()))
        fit = fit_window(X_train[complete], y_train[complete], config)
    except InsufficientHistoryError as exc:
        return "failed", exc.message, exc.details
    fit["n_train"] = int(complete.sum())
    fit["prediction"] = float(fit["intercept"] + x_new @ fit["coef"])
    return "ok", fit, None


# -----------------------------------------------------------------------------
# Fitted model
# -----------------------------------------------------------------------------
class SentimentModel:
    """
    Outcome of a rolling regression: one FittedWindow per anchor date plus
    the recorded failures.

    Attributes
    ----------
    windows : list of FittedWindow
    failures : list of WindowFailure
    measures : SentimentMeasures
        The explanatory measures as fitted (differenced if requested).
    design : pd.DataFrame
        Explanatory series per date (measures plus autoregressive terms).
    target : pd.Series
        Target aligned on the design dates.
    """

    def __init__(self, windows, failures, config, measures, design, target,
                 state_history=None):
        self.windows: List[FittedWindow] = list(windows)
        self.failures: List[WindowFailure] = list(failures)
        self.config: RegressionConfig = config
        self.measures: SentimentMeasures = measures
        self.design: pd.DataFrame = design
        self.target: pd.Series = target
        self.state_history = state_history or []
        self._by_anchor = {w.anchor: w for w in self.windows}

    @property
    def explanatory(self) -> List[str]:
        return list(self.design.columns)

    @property
    def anchors(self) -> pd.DatetimeIndex:
        return pd.DatetimeIndex([w.anchor for w in self.windows], name="date")

    def window_at(self, date) -> FittedWindow:
        """The window whose coefficients produce the prediction at ``date``."""
        date = pd.Timestamp(date)
        if not self.config.do_iter and self.windows:
            return self.windows[0]
        try:
            return self._by_anchor[date]
        except KeyError:
            raise DataAlignmentError("No fitted window anchored at date",
                                     {"date": date}) from None

    def predictions(self) -> pd.DataFrame:
        """Per anchor date: predicted target date, prediction, realised value."""
        if not self.config.do_iter:
            w = self.windows[0]
            x = self.design.dropna()
            pred = w.intercept + x.to_numpy() @ w.coefficients.reindex(x.columns).to_numpy()
            shifted = self.target.shift(-self.config.h).reindex(x.index)
            rows = self.design.index.get_indexer(x.index) + self.config.h
            target_dates = [shift_date(self.design.index, r, self.measures.by)
                            for r in rows]
            return pd.DataFrame({"target_date": target_dates, "prediction": pred,
                                 "realized": shifted.to_numpy()},
                                index=pd.DatetimeIndex(x.index, name="date"))
        return pd.DataFrame(
            {"target_date": [w.target_date for w in self.windows],
             "prediction": [w.prediction for w in self.windows],
             "realized": [w.realized for w in self.windows]},
            index=self.anchors)

    def coefficients(self) -> pd.DataFrame:
        """Original-scale coefficients per anchor date, intercept first."""
        rows = []
        for w in self.windows:
            row = {INTERCEPT: w.intercept}
            row.update(w.coefficients.to_dict())
            rows.append(row)
        return pd.DataFrame(rows, index=self.anchors,
                            columns=[INTERCEPT] + self.explanatory)

    def performance(self) -> pd.Series:
        """
        Out-of-sample accuracy over windows with a realised target:
        RMSFE, MAD and MDA (share of correctly predicted directions
        relative to the last target value before the predicted one).
        """
        real = np.array([w.realized for w in self.windows], dtype=float)
        pred = np.array([w.prediction for w in self.windows], dtype=float)
        ref = np.array([w.reference for w in self.windows], dtype=float)
        ok = np.isfinite(real) & np.isfinite(pred)
        err = pred[ok] - real[ok]
        if not ok.any():
            return pd.Series({"RMSFE": np.nan, "MAD": np.nan, "MDA": np.nan,
                              "n_predictions": 0})
        dir_ok = ok & np.isfinite(ref)
        mda = (np.mean(np.sign(pred[dir_ok] - ref[dir_ok])
                       == np.sign(real[dir_ok] - ref[dir_ok]))
               if dir_ok.any() else np.nan)
        return pd.Series({
            "RMSFE": float(np.sqrt(np.mean(err ** 2))),
            "MAD": float(np.mean(np.abs(err))),
            "MDA": float(mda),
            "n_predictions": int(ok.sum()),
        })

    def predict(self, x: Union[pd.DataFrame, pd.Series, np.ndarray],
                date=None) -> np.ndarray:
        """
        Predict with the latest window, or the window anchored at ``date``.
        Columns of a DataFrame/Series are matched by explanatory name.
        """
        if not self.windows:
            raise RuntimeError("Model not fitted: no successful window")
        w = self.window_at(date) if date is not None else self.windows[-1]
        if isinstance(x, pd.Series):
            x = x.to_frame().T
        if isinstance(x, pd.DataFrame):
            missing = [c for c in self.explanatory if c not in x.columns]
            if missing:
                raise ConfigurationError("Missing explanatory series",
                                         {"columns": missing[:5]})
            x = x[self.explanatory].to_numpy(dtype=float)
        x = np.atleast_2d(np.asarray(x, dtype=float))
        return w.intercept + x @ w.coefficients.reindex(self.explanatory).to_numpy()

    def to_frame(self) -> pd.DataFrame:
        """One row per window: selection, coefficients, prediction, realised."""
        meta = pd.DataFrame({
            "start": [w.start for w in self.windows],
            "end": [w.end for w in self.windows],
            "target_date": [w.target_date for w in self.windows],
            "alpha": [w.alpha for w in self.windows],
            "lambda": [w.lambda_ for w in self.windows],
            "criterion": [w.criterion for w in self.windows],
            "prediction": [w.prediction for w in self.windows],
            "realized": [w.realized for w in self.windows],
        }, index=self.anchors)
        return meta.join(self.coefficients()).reset_index()

    def __repr__(self) -> str:
        return (f"SentimentModel(windows={len(self.windows)}, "
                f"failures={len(self.failures)}, h={self.config.h}, "
                f"criterion={self.config.criterion!r})")


# -----------------------------------------------------------------------------
# Walk-forward engine
# -----------------------------------------------------------------------------
class RollingRegression:
    """
    Walk-forward penalised regression of a target on sentiment measures.

    Parameters
    ----------
    config : RegressionConfig
    """

    def __init__(self, config: Optional[RegressionConfig] = None):
        self.config = config or RegressionConfig(do_iter=False)

    def _design(self, measures: SentimentMeasures, target: pd.Series
                ) -> Tuple[SentimentMeasures, pd.DataFrame, pd.Series]:
        cfg = self.config
        y = align_target(target, measures.dates, cfg.tolerance)
        if cfg.do_difference:
            measures = measures.difference(1)
            y = y.diff().reindex(measures.dates)
        design = measures.measures
        for k in range(1, cfg.ar_lags + 1):
            design[f"(ar_{k})"] = y.shift(k)
        return measures, design, y

    @timeit
    def fit(self, measures: SentimentMeasures, target: pd.Series) -> SentimentModel:
        cfg = self.config
        measures, design, y = self._design(measures, target)
        dates = design.index
        X = design.to_numpy(dtype=float)
        yv = y.to_numpy(dtype=float)
        n_rows = len(dates)
        y_ahead = y.shift(-cfg.h).to_numpy(dtype=float)

        if not cfg.do_iter:
            return self._fit_full(measures, design, y, X, y_ahead)

        first = cfg.n_sample + cfg.oos
        if first >= n_rows:
            raise InsufficientHistoryError(
                "History shorter than one training window plus gap",
                required=first + 1, available=n_rows,
                details={"n_sample": cfg.n_sample, "oos": cfg.oos})
        anchors = list(range(first, n_rows, cfg.step))
        log.info("Walk-forward: %d windows | n_sample=%d h=%d oos=%d step=%d "
                 "criterion=%s | %d explanatory series",
                 len(anchors), cfg.n_sample, cfg.h, cfg.oos, cfg.step,
                 cfg.criterion, X.shape[1])

        tasks = []
        for p in anchors:
            lo, hi = p - cfg.oos - cfg.n_sample, p - cfg.oos
            tasks.append(delayed(_run_window)(X[lo:hi], y_ahead[lo:hi], X[p], cfg))
        if cfg.show_progress:
            tasks = tqdm(tasks, desc="Windows")
        results = Parallel(n_jobs=cfg.n_jobs)(tasks)

        machine = WalkForwardState()
        windows, failures = [], []
        for i, (p, (status, payload, details)) in enumerate(zip(anchors, results)):
            if i > 0:
                machine.transition(WindowState.WINDOW_READY)
            last = i == len(anchors) - 1
            lo, hi = p - cfg.oos - cfg.n_sample, p - cfg.oos
            if status == "failed":
                machine.transition(WindowState.FAILED)
                error = InsufficientHistoryError(
                    payload, details=dict(details, anchor=dates[p]))
                log.warning("Window %d (anchor %s) failed: %s", i, dates[p].date(), error)
                if cfg.abort_on_failure:
                    raise error
                failures.append(WindowFailure(i, dates[p], error))
            else:
                machine.transition(WindowState.FITTED)
                ref_row = p + cfg.h - 1
                window = FittedWindow(
                    index=i,
                    start=dates[lo],
                    end=dates[hi - 1],
                    anchor=dates[p],
                    target_date=shift_date(dates, p + cfg.h, measures.by),
                    alpha=payload["alpha"],
                    lambda_=payload["lambda"],
                    coefficients=pd.Series(payload["coef"], index=design.columns),
                    intercept=payload["intercept"],
                    criterion=payload["criterion"],
                    rmse=payload["rmse"],
                    r2=payload["r2"],
                    n_train=payload["n_train"],
                    prediction=payload["prediction"],
                    realized=float(y_ahead[p]),
                    reference=float(yv[ref_row]) if 0 <= ref_row < n_rows else np.nan,
                )
                machine.transition(WindowState.SCORED)
                windows.append(window)
            machine.transition(WindowState.DONE if last else WindowState.ADVANCE)

        if failures:
            log.warning("%d of %d windows failed", len(failures), len(anchors))
        log.info("Walk-forward done: %d windows fitted", len(windows))
        return SentimentModel(windows, failures, cfg, measures, design, y,
                              machine.history)

    def _fit_full(self, measures, design, y, X, y_ahead) -> SentimentModel:
        cfg = self.config
        complete = np.all(np.isfinite(X), axis=1) & np.isfinite(y_ahead)
        if complete.sum() < 2:
            raise InsufficientHistoryError("Too few complete rows for a full-sample fit",
                                           required=2, available=int(complete.sum()))
        machine = WalkForwardState()
        fit = fit_window(X[complete], y_ahead[complete], cfg)
        machine.transition(WindowState.FITTED)
        rows = np.flatnonzero(complete)
        dates = design.index
        last = rows[-1]
        window = FittedWindow(
            index=0,
            start=dates[rows[0]],
            end=dates[last],
            anchor=dates[last],
            target_date=shift_date(dates, last + cfg.h, measures.by),
            alpha=fit["alpha"],
            lambda_=fit["lambda"],
            coefficients=pd.Series(fit["coef"], index=design.columns),
            intercept=fit["intercept"],
            criterion=fit["criterion"],
            rmse=fit["rmse"],
            r2=fit["r2"],
            n_train=int(complete.sum()),
            prediction=float(fit["intercept"] + X[last] @ fit["coef"]),
            realized=float(y_ahead[last]),
        )
        machine.transition(WindowState.SCORED)
        machine.transition(WindowState.DONE)
        log.info("Full-sample fit on %d rows | alpha=%.2f lambda=%.4g R2=%.3f",
                 window.n_train, window.alpha, window.lambda_, window.r2)
        return SentimentModel([window], [], cfg, measures, design, y, machine.history)


def sento_model(measures: SentimentMeasures, target: pd.Series,
                config: Optional[RegressionConfig] = None) -> SentimentModel:
    """One-call rolling regression of ``target`` on ``measures``."""
    return RollingRegression(config).fit(measures, target)
