"""
================================================================================
UNIT TESTS -- PREDICTION ATTRIBUTION
================================================================================
Tests cover:
    1. Dimension attributions sum to the predictions
    2. Lag attribution through scaling and merging
    3. Autoregressive terms, reference dates, normalisation
    4. Error handling and the per-dimension tables

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

import numpy as np
import pandas as pd
import pytest

from sentiment_measures.attribution import OFFSET, OTHER, attributions
from sentiment_measures.config import RegressionConfig
from sentiment_measures.data_acquisition import SyntheticCorpusGenerator
from sentiment_measures.exceptions import ConfigurationError, DataAlignmentError
from sentiment_measures.regression import INTERCEPT, sento_model

FAST = dict(h=1, n_sample=30, step=7, alphas=(0.0, 0.5), n_lambdas=10)


@pytest.fixture
def news_target():
    gen = SyntheticCorpusGenerator(seed=7)
    gen.generate("2021-01-01", "2021-03-31", articles_per_day=3.0)
    return gen.generate_target()


@pytest.fixture
def news_model(news_measures, news_target):
    return sento_model(news_measures, news_target, RegressionConfig(**FAST))


def predictions_of(model):
    return model.predictions()["prediction"]


# ============================================================================
# TEST: DIMENSION ATTRIBUTION
# ============================================================================

class TestDimensionAttribution:

    def test_totals_equal_predictions(self, news_model):
        attr = attributions(news_model)
        preds = predictions_of(news_model)
        assert attr.dimensions == ["features", "lexicons", "time"]
        for dim in attr.dimensions:
            assert np.allclose(attr.total(dim), preds, atol=1e-10)

    def test_columns_are_dimension_values(self, news_model, news_measures):
        attr = attributions(news_model)
        assert list(attr["features"].columns) == news_measures.features + [INTERCEPT, OTHER]
        assert list(attr["lexicons"].columns) == news_measures.lexicons + [INTERCEPT, OTHER]
        assert (attr["time"][OTHER] == 0.0).all()

    def test_intercept_column(self, news_model):
        attr = attributions(news_model)
        expected = [w.intercept for w in news_model.windows]
        assert np.allclose(attr["features"][INTERCEPT], expected)

    def test_full_sample_model(self, news_measures, news_target):
        model = sento_model(news_measures, news_target,
                            RegressionConfig(h=1, do_iter=False, alphas=(0.5,),
                                             n_lambdas=10))
        attr = attributions(model, dimensions=["features"])
        assert np.allclose(attr.total(), predictions_of(model), atol=1e-10)

    def test_autoregressive_terms_in_other(self, news_measures, news_target):
        model = sento_model(news_measures, news_target, RegressionConfig(ar_lags=1, **FAST))
        attr = attributions(model)
        assert np.allclose(attr.total("lexicons"), predictions_of(model), atol=1e-10)
        ar = model.design.loc[attr["lexicons"].index, "(ar_1)"]
        coef = model.coefficients().loc[attr["lexicons"].index, "(ar_1)"]
        assert np.allclose(attr["lexicons"][OTHER], ar * coef)

    def test_reference_dates(self, news_model):
        dates = news_model.anchors[:3]
        attr = attributions(news_model, ref_dates=dates)
        assert list(attr["time"].index) == list(dates)


# ============================================================================
# TEST: LAG ATTRIBUTION
# ============================================================================

class TestLagAttribution:

    def test_lags_sum_to_predictions(self, news_model):
        attr = attributions(news_model, do_lags=True)
        lags = attr["lags"]
        assert [c for c in lags.columns if c.startswith("lag_")] == \
            [f"lag_{i}" for i in range(5)]
        assert np.allclose(attr.total("lags"), predictions_of(news_model), atol=1e-10)

    def test_scaled_measures_use_offset(self, news_measures, news_target):
        scaled = news_measures.scale()
        # ridge only, so no coefficient is exactly zero
        model = sento_model(scaled, news_target, RegressionConfig(**dict(FAST, alphas=(0.0,))))
        attr = attributions(model, do_lags=True)
        assert np.allclose(attr.total("lags"), predictions_of(model), atol=1e-10)
        assert (attr["lags"][OFFSET] != 0.0).any()

    def test_merged_measures(self, news_measures, news_target):
        merged = news_measures.merge(time={"mix": ["equal_weight", "linear"]})
        model = sento_model(merged, news_target, RegressionConfig(**FAST))
        attr = attributions(model, do_lags=True)
        assert list(attr["time"].columns[:1]) == ["mix"]
        assert np.allclose(attr.total("lags"), predictions_of(model), atol=1e-10)


# ============================================================================
# TEST: NORMALISATION AND ERRORS
# ============================================================================

class TestNormalisationAndErrors:

    def test_normalised_rows_match_prediction_magnitude(self, news_model):
        raw = attributions(news_model, do_lags=True)
        attr = attributions(news_model, normalize=True, do_lags=True)
        assert attr.normalized
        magnitude = predictions_of(news_model).abs()
        for dim in ("features", "lags"):
            frame = attr[dim]
            reserved = [c for c in (INTERCEPT, OTHER, OFFSET) if c in frame.columns]
            sums = frame.drop(columns=reserved).abs().sum(axis=1)
            nonzero = raw[dim].drop(columns=reserved).abs().sum(axis=1) > 0
            assert nonzero.any()
            assert np.allclose(sums[nonzero], magnitude[nonzero])
            pd.testing.assert_frame_equal(frame[reserved], raw[dim][reserved])

    def test_normalised_signs_follow_contributions(self, news_model):
        raw = attributions(news_model, dimensions=["lexicons"])["lexicons"]
        norm = attributions(news_model, dimensions=["lexicons"], normalize=True)["lexicons"]
        values = [c for c in raw.columns if c not in (INTERCEPT, OTHER)]
        assert (np.sign(norm[values]) == np.sign(raw[values])).all().all()

    def test_unknown_dimension(self, news_model):
        with pytest.raises(ConfigurationError):
            attributions(news_model, dimensions=["sources"])

    def test_lags_not_requested(self, news_model):
        with pytest.raises(ConfigurationError):
            attributions(news_model)["lags"]

    def test_dates_outside_measures(self, news_model):
        with pytest.raises(DataAlignmentError):
            attributions(news_model, ref_dates=["2019-01-01"])

    def test_to_measures(self, news_model, news_measures):
        tables = attributions(news_model).to_measures()
        features = tables["features"]
        assert list(features.columns) == ["date"] + news_measures.features
        assert isinstance(features["date"].iloc[0], pd.Timestamp)
