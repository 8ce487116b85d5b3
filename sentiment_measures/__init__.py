"""
Textual Sentiment Measures and Sentiment-Based Prediction
==========================================================
Aggregates document-level textual sentiment into time series indexed by
(feature, lexicon, time weighting scheme), and uses them as explanatory
variables in a walk-forward penalised regression whose predictions can be
attributed back to features, lexicons, weighting schemes and lags.

Modules:
    config            - Immutable, validated configuration dataclasses
    exceptions        - Error taxonomy
    lexicons          - Lexicon and valence shifter store, built-in lexicons
    corpus            - Documents, corpus and feature generation
    data_acquisition  - Synthetic news corpus and target generator
    weighting         - Time weighting curves (equal, linear, exponential,
                        beta, Almon, custom)
    scoring           - Document sentiment scoring with valence shifting
    aggregation       - Within-document, across-document, across-time stages
    measures          - Sentiment measures container and its transforms
    regression        - Rolling elastic-net regression
    attribution       - Prediction attribution to sentiment dimensions

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
"""

from sentiment_measures.aggregation import (BucketSentiment, SentimentAggregator,
                                            aggregate_documents, aggregate_time,
                                            sento_measures)
from sentiment_measures.attribution import Attribution, attributions
from sentiment_measures.config import (SETTINGS, AggregationConfig, RegressionConfig,
                                       ValenceConfig)
from sentiment_measures.corpus import Corpus, Document, tokenize
from sentiment_measures.exceptions import (AmbiguousMeasureName, ConfigurationError,
                                           DataAlignmentError, EmptyDocumentSet,
                                           InsufficientHistoryError,
                                           NumericDegeneracyWarning,
                                           SentimentMeasuresError, TargetMisaligned,
                                           UnknownLexiconReference)
from sentiment_measures.lexicons import (Lexicon, LexiconSet, Shifter, ValenceTable,
                                         load_builtin_lexicons)
from sentiment_measures.measures import MeasureKey, SentimentMeasures
from sentiment_measures.regression import (FittedWindow, RollingRegression,
                                           SentimentModel, WindowState, sento_model)
from sentiment_measures.scoring import RawScores, compute_sentiment
from sentiment_measures.weighting import WeightingScheme, build_schemes

__version__ = "1.0.0"
__author__ = "Jose Orlando Bobadilla Fuentes"
