"""
Textual Sentiment Measures - Main Entry Point
==============================================
Demonstrates the complete text-to-prediction pipeline: synthetic corpus
generation, lexicon scoring with valence shifters, three-stage aggregation
into sentiment measures, measure transforms, walk-forward elastic-net
regression, and attribution of the predictions.

Author: Jose Orlando Bobadilla Fuentes, CQF
"""

from sentiment_measures import (AggregationConfig, RegressionConfig,
                                SentimentAggregator, attributions,
                                load_builtin_lexicons, sento_model)
from sentiment_measures.data_acquisition import SyntheticCorpusGenerator
from sentiment_measures.utils import get_logger


def main():
    """Run the complete sentiment measures pipeline."""
    print("=" * 70)
    print("TEXTUAL SENTIMENT MEASURES")
    print("=" * 70)

    get_logger("sentiment_measures")

    # --- Configuration ---
    config = {
        "start_date": "2020-01-01",
        "end_date": "2021-06-30",
        "articles_per_day": 4.0,
        "lag": 14,
        "n_sample": 120,
        "h": 1,
    }
    print(f"\n  Period: {config['start_date']} to {config['end_date']}")

    # --- Step 1: Data ---
    print("\n[1/6] Generating synthetic news corpus and target...")
    generator = SyntheticCorpusGenerator(seed=42)
    articles = generator.generate(config["start_date"], config["end_date"],
                                  articles_per_day=config["articles_per_day"])
    target = generator.generate_target(delay=2)
    corpus = generator.to_corpus(articles)
    print(f"  {corpus}")
    print(f"  Target observations: {len(target)}")

    # --- Step 2: Lexicons ---
    print("\n[2/6] Loading built-in lexicons...")
    lexicons = load_builtin_lexicons()
    for name in lexicons.names:
        print(f"  {lexicons[name]}")

    # --- Step 3: Aggregation ---
    print("\n[3/6] Aggregating into sentiment measures...")
    agg_config = AggregationConfig(
        within="proportionalPol",
        docs="proportional",
        time=("equal_weight", "linear", "exponential", "beta"),
        alphas_exp=(0.3, 0.7),
        beta_params=((1.0, 3.0),),
        by="day",
        lag=config["lag"],
        fill="zero",
    )
    measures = SentimentAggregator(agg_config).run(corpus, lexicons)
    print(f"  {measures}")
    print(f"  Dimensions: {measures.get_dimensions()}")

    # --- Step 4: Transforms ---
    print("\n[4/6] Merging and scaling measures...")
    merged = measures.merge(time={"smooth": ["equal_weight", "linear"]})
    scaled = merged.scale()
    peaks = scaled.peak_dates(n=3)
    print(f"  After merge: {len(merged.names)} measures")
    print(f"  Peak global sentiment dates: {[d.date() for d in peaks]}")

    # --- Step 5: Rolling Regression ---
    print("\n[5/6] Walk-forward elastic-net regression...")
    reg_config = RegressionConfig(
        h=config["h"],
        n_sample=config["n_sample"],
        alphas=(0.2, 0.6, 1.0),
        n_lambdas=20,
        criterion="BIC",
        step=5,
    )
    model = sento_model(scaled, target, reg_config)
    perf = model.performance()
    print(f"  {model}")
    print(f"  RMSFE: {perf['RMSFE']:.4f} | MAD: {perf['MAD']:.4f} | MDA: {perf['MDA']:.1%}")

    # --- Step 6: Attribution ---
    print("\n[6/6] Attributing predictions...")
    attrib = attributions(model, do_lags=True)
    features = attrib["features"].drop(columns=["(intercept)", "(other)"])
    print("  Mean absolute contribution per feature:")
    for name, value in features.abs().mean().items():
        print(f"    {name:<10s} {value:.4f}")
    gap = (attrib.total("features") - model.predictions()["prediction"]).abs().max()
    print(f"  Max |attribution total - prediction|: {gap:.2e}")

    print("\n" + "=" * 70)
    print("PIPELINE COMPLETE")
    print("=" * 70)


if __name__ == "__main__":
    main()
