"""
================================================================================
SYNTHETIC NEWS CORPUS AND TARGET GENERATOR
================================================================================
Generates a realistic synthetic corpus of economic news for testing and
demonstration purposes. No data feeds or API keys required.

A latent daily sentiment state follows an AR(1) process; each day's
articles are drawn positive, negative or neutral with probabilities driven
by the state, and a target series responds to the state with a delay. The
measures built from the corpus therefore carry real predictive content.

Every article carries relevance weights for a fixed set of topics
(features): 1 for its main topic, a random partial weight for topics it
touches in passing, 0 otherwise.

Output columns: [id, date, texts, <topics...>, true_sentiment]

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

from typing import List, Optional

import numpy as np
import pandas as pd

from sentiment_measures.corpus import Corpus
from sentiment_measures.utils import get_logger

log = get_logger(__name__)


class SyntheticCorpusGenerator:
    """
    Synthetic economic news with controlled sentiment dynamics.

    Parameters
    ----------
    seed : int
        Random seed for reproducibility.
    persistence : float
        AR(1) coefficient of the latent sentiment state.
    """

    TOPICS = ["economy", "markets", "politics"]

    POSITIVE_TEMPLATES = [
        "The {subject} shows strong gains as {actor} reports solid growth.",
        "{actor} sees a very good quarter; the {subject} continues to improve.",
        "Analysts are optimistic about the {subject} after excellent results.",
        "The {subject} rebounds and {actor} expects further progress.",
        "{actor} praises the resilient {subject}; confidence is rising.",
        "Outlook for the {subject} improves, {actor} says gains are robust.",
    ]

    NEGATIVE_TEMPLATES = [
        "The {subject} suffers heavy losses as {actor} warns of a decline.",
        "{actor} reports a weak quarter; the {subject} continues to deteriorate.",
        "Analysts fear the {subject} crisis will worsen, {actor} says.",
        "The {subject} slumps and {actor} cuts its forecast amid turmoil.",
        "{actor} criticizes the fragile {subject}; uncertainty is rising.",
        "Outlook for the {subject} is not good, {actor} warns of failure.",
    ]

    NEUTRAL_TEMPLATES = [
        "{actor} publishes its monthly report on the {subject}.",
        "The {subject} is expected to be discussed by {actor} next week.",
        "{actor} schedules a meeting on the {subject} for Thursday.",
        "Data on the {subject} will be released by {actor} tomorrow.",
    ]

    SHIFTED_TEMPLATES = [
        "The {subject} is not strong, but {actor} sees slightly better signs.",
        "{actor} says the {subject} is hardly weak and extremely resilient.",
    ]

    SUBJECTS = {
        "economy": ["economy", "labour market", "housing sector", "industry"],
        "markets": ["stock market", "bond market", "currency market", "equity index"],
        "politics": ["government budget", "trade policy", "election campaign",
                     "regulatory agenda"],
    }
    ACTORS = [
        "the central bank", "the finance ministry", "a leading bank",
        "the statistics office", "a major insurer", "the treasury",
    ]

    def __init__(self, seed: int = 42, persistence: float = 0.9):
        self.rng = np.random.RandomState(seed)
        self.persistence = persistence
        self.latent_: Optional[pd.Series] = None

    def _latent_state(self, dates: pd.DatetimeIndex) -> pd.Series:
        s = np.zeros(len(dates))
        shocks = self.rng.normal(0.0, 0.4, len(dates))
        for t in range(1, len(dates)):
            s[t] = self.persistence * s[t - 1] + shocks[t]
        return pd.Series(s, index=dates, name="latent_sentiment")

    def _fill_template(self, template: str, topic: str) -> str:
        return template.format(
            subject=self.rng.choice(self.SUBJECTS[topic]),
            actor=self.rng.choice(self.ACTORS),
        )

    def _features(self, topic: str) -> dict:
        feats = {}
        for t in self.TOPICS:
            if t == topic:
                feats[t] = 1.0
            elif self.rng.random() < 0.25:
                feats[t] = round(self.rng.uniform(0.1, 0.6), 2)
            else:
                feats[t] = 0.0
        return feats

    def generate(
        self,
        start_date: str = "2020-01-01",
        end_date: str = "2021-12-31",
        articles_per_day: float = 4.0,
        business_days: bool = False,
    ) -> pd.DataFrame:
        """
        Generate the synthetic article dataset.

        Parameters
        ----------
        start_date, end_date : str
            Date range.
        articles_per_day : float
            Poisson mean of the daily article count (days may be empty).
        business_days : bool
            Publish on business days only.

        Returns
        -------
        pd.DataFrame with columns [id, date, texts, <topics>, true_sentiment].
        """
        dates = (pd.bdate_range(start_date, end_date) if business_days
                 else pd.date_range(start_date, end_date, freq="D"))
        self.latent_ = self._latent_state(dates)
        records = []

        for date, state in self.latent_.items():
            p_pos = 1.0 / (1.0 + np.exp(-2.0 * state))
            for _ in range(self.rng.poisson(articles_per_day)):
                topic = self.rng.choice(self.TOPICS)
                roll = self.rng.random()
                if roll < 0.15:
                    template = self.rng.choice(self.NEUTRAL_TEMPLATES)
                    true_sent = 0
                elif roll < 0.22:
                    template = self.rng.choice(self.SHIFTED_TEMPLATES)
                    true_sent = 0
                elif self.rng.random() < p_pos:
                    template = self.rng.choice(self.POSITIVE_TEMPLATES)
                    true_sent = 1
                else:
                    template = self.rng.choice(self.NEGATIVE_TEMPLATES)
                    true_sent = -1

                hour = self.rng.randint(6, 20)
                minute = self.rng.randint(0, 59)
                record = {
                    "id": f"doc{len(records):06d}",
                    "date": date + pd.Timedelta(hours=hour, minutes=minute),
                    "texts": self._fill_template(template, topic),
                }
                record.update(self._features(topic))
                record["true_sentiment"] = true_sent
                records.append(record)

        df = pd.DataFrame(records)
        df = df.sort_values(["date", "id"]).reset_index(drop=True)
        log.info("Generated %d synthetic articles over %d days", len(df), len(dates))
        return df

    def generate_target(self, delay: int = 1, beta: float = 1.0,
                        noise: float = 0.3) -> pd.Series:
        """
        Target driven by the latent state ``delay`` days earlier:
            y_t = beta * s_{t - delay} + noise * e_t
        Call after ``generate``.
        """
        if self.latent_ is None:
            raise RuntimeError("Call generate() before generate_target()")
        lagged = self.latent_.shift(delay)
        y = beta * lagged + noise * self.rng.normal(size=len(lagged))
        return y.dropna().rename("target")

    @staticmethod
    def to_corpus(df: pd.DataFrame, topics: Optional[List[str]] = None) -> Corpus:
        """Corpus with the topic columns as features."""
        topics = topics or [t for t in SyntheticCorpusGenerator.TOPICS if t in df.columns]
        return Corpus.from_frame(df, feature_columns=topics)
