"""
================================================================================
CORPUS: TIME-STAMPED DOCUMENTS WITH FEATURE RELEVANCE WEIGHTS
================================================================================
A corpus is an ordered, immutable collection of documents. Every document
carries a date, its text (and token sequence), and a relevance weight in
[0, 1] for each feature (topic, source, ...). The same feature names must
be present on every document; a weight of 0 means "not relevant" and is
kept, not dropped, so that bucket document counts stay consistent.

Tokenisation is an external concern. A simple regex tokenizer is supplied
as default; pre-tokenised documents bypass it.

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

import re
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from sentiment_measures.config import ValenceConfig
from sentiment_measures.exceptions import ConfigurationError
from sentiment_measures.lexicons import check_component_name
from sentiment_measures.utils import floor_dates, get_logger

log = get_logger(__name__)

DUMMY_FEATURE = "dummyFeature"

_TOKEN_RE = re.compile(r"[a-z]+(?:'[a-z]+)?|[.!?;]")


def tokenize(text: str) -> Tuple[str, ...]:
    """
    Lowercase word tokenizer keeping sentence punctuation as tokens.
    For production, consider spaCy or NLTK word_tokenize.
    """
    if not isinstance(text, str):
        return ()
    return tuple(_TOKEN_RE.findall(text.lower()))


def count_words(tokens: Sequence[str], clause_breaks: Optional[Sequence[str]] = None) -> int:
    """Number of tokens that are not clause breaks (ValenceConfig defaults)."""
    breaks = set(clause_breaks if clause_breaks is not None
                 else ValenceConfig().clause_breaks)
    return sum(1 for t in tokens if t not in breaks)


@dataclass(frozen=True)
class Document:
    """One time-stamped text with its feature relevance weights."""
    id: str
    date: pd.Timestamp
    text: str
    features: Mapping[str, float] = field(default_factory=dict)
    tokens: Optional[Tuple[str, ...]] = None
    language: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "date", pd.Timestamp(self.date))
        feats = {str(k): float(v) for k, v in dict(self.features).items()}
        for name, weight in feats.items():
            if not 0.0 <= weight <= 1.0 or np.isnan(weight):
                raise ConfigurationError(
                    f"Feature weight outside [0, 1] for document {self.id!r}",
                    {"document": self.id, "feature": name, "weight": weight})
        object.__setattr__(self, "features", MappingProxyType(feats))
        if self.tokens is not None:
            object.__setattr__(self, "tokens", tuple(self.tokens))

    def __reduce__(self):
        return (Document, (self.id, self.date, self.text, dict(self.features),
                           self.tokens, self.language))

    @property
    def word_count(self) -> int:
        """Number of word tokens (default clause breaks excluded)."""
        return count_words(self.tokens or ())


class Corpus:
    """
    Ordered, immutable document collection.

    Parameters
    ----------
    documents : iterable of Document
        Documents; ids must be unique and every document must carry the
        same feature names.
    tokenizer : callable, optional
        Applied to documents without tokens (default ``tokenize``).
    """

    def __init__(
        self,
        documents: Iterable[Document],
        tokenizer: Optional[Callable[[str], Sequence[str]]] = None,
    ):
        tokenizer = tokenizer or tokenize
        docs = []
        for doc in documents:
            if doc.tokens is None:
                doc = replace(doc, tokens=tuple(tokenizer(doc.text)))
            docs.append(doc)

        ids = [d.id for d in docs]
        if len(set(ids)) != len(ids):
            seen, dup = set(), []
            for i in ids:
                if i in seen:
                    dup.append(i)
                seen.add(i)
            raise ConfigurationError("Document ids must be unique",
                                     {"duplicates": dup[:10]})

        if docs and not any(d.features for d in docs):
            docs = [replace(d, features={DUMMY_FEATURE: 1.0}) for d in docs]
        features = list(docs[0].features) if docs else []
        for d in docs:
            if set(d.features) != set(features):
                raise ConfigurationError(
                    f"Document {d.id!r} does not carry the corpus features",
                    {"document": d.id, "expected": features,
                     "found": list(d.features)})
        for name in features:
            check_component_name(name, "feature")

        self._docs: Tuple[Document, ...] = tuple(docs)
        self._features: Tuple[str, ...] = tuple(features)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------
    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        id_column: str = "id",
        date_column: str = "date",
        text_column: str = "texts",
        feature_columns: Optional[Sequence[str]] = None,
        language_column: Optional[str] = None,
        tokenizer: Optional[Callable[[str], Sequence[str]]] = None,
    ) -> "Corpus":
        """
        Build a corpus from a DataFrame.

        Feature columns default to every numeric column other than the id,
        date and language columns. A corpus without features receives a
        single 'dummyFeature' with weight 1 for all documents.
        """
        reserved = {id_column, date_column, text_column, language_column}
        if feature_columns is None:
            feature_columns = [
                c for c in df.columns
                if c not in reserved and pd.api.types.is_numeric_dtype(df[c])
            ]
        dates = pd.to_datetime(df[date_column])
        docs = []
        for i, rec in enumerate(df.to_dict("records")):
            feats = {c: rec[c] for c in feature_columns} if feature_columns \
                else {DUMMY_FEATURE: 1.0}
            docs.append(Document(
                id=rec[id_column],
                date=dates.iloc[i],
                text=rec[text_column],
                features=feats,
                language=rec[language_column] if language_column else None,
            ))
        return cls(docs, tokenizer=tokenizer)

    def to_frame(self, clause_breaks: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """
        Rectangular view: id, date, texts, language, word_count, one column
        per feature. Word counts exclude ``clause_breaks`` as scoring does.
        """
        rows = []
        for d in self._docs:
            row = {"id": d.id, "date": d.date, "texts": d.text,
                   "language": d.language,
                   "word_count": count_words(d.tokens or (), clause_breaks)}
            row.update(d.features)
            rows.append(row)
        cols = ["id", "date", "texts", "language", "word_count"] + list(self._features)
        return pd.DataFrame(rows, columns=cols)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def features(self) -> List[str]:
        return list(self._features)

    @property
    def documents(self) -> Tuple[Document, ...]:
        return self._docs

    @property
    def dates(self) -> pd.DatetimeIndex:
        return pd.DatetimeIndex([d.date for d in self._docs])

    def __len__(self) -> int:
        return len(self._docs)

    def __iter__(self):
        return iter(self._docs)

    def __getitem__(self, i: int) -> Document:
        return self._docs[i]

    def __repr__(self) -> str:
        if not self._docs:
            return "Corpus(documents=0)"
        return (f"Corpus(documents={len(self)}, features={self.features}, "
                f"dates={self.dates.min().date()}..{self.dates.max().date()})")

    # ------------------------------------------------------------------
    # Non-destructive transforms
    # ------------------------------------------------------------------
    def subset(
        self,
        start=None,
        end=None,
        predicate: Optional[Callable[[Document], bool]] = None,
    ) -> "Corpus":
        """Documents dated within [start, end] that satisfy ``predicate``."""
        lo = pd.Timestamp(start) if start is not None else None
        hi = pd.Timestamp(end) if end is not None else None
        keep = [
            d for d in self._docs
            if (lo is None or d.date >= lo)
            and (hi is None or d.date <= hi)
            and (predicate is None or predicate(d))
        ]
        return Corpus(keep)

    def add_features(
        self,
        keywords: Optional[Mapping[str, Sequence[str]]] = None,
        regex: bool = False,
        values: Optional[Mapping[str, Sequence[float]]] = None,
    ) -> "Corpus":
        """
        Add features, either from keyword hits or from explicit values.

        Parameters
        ----------
        keywords : dict
            Feature name -> keywords. The feature is 1 for documents whose
            text contains any keyword (case-insensitive, whole words unless
            ``regex`` is True, in which case the keywords are patterns).
        values : dict
            Feature name -> one weight per document, in corpus order.
        """
        new: Dict[str, np.ndarray] = {}
        for name, words in (keywords or {}).items():
            check_component_name(name, "feature")
            patterns = list(words) if regex else [
                r"\b" + re.escape(w.lower()) + r"\b" for w in words
            ]
            rx = re.compile("|".join(patterns), flags=re.IGNORECASE)
            new[name] = np.array([
                1.0 if rx.search(d.text or "") else 0.0 for d in self._docs
            ])
        for name, vals in (values or {}).items():
            check_component_name(name, "feature")
            vals = np.asarray(vals, dtype=float)
            if len(vals) != len(self._docs):
                raise ConfigurationError(
                    f"Feature {name!r} needs one value per document",
                    {"expected": len(self._docs), "found": len(vals)})
            new[name] = vals

        docs = []
        for i, d in enumerate(self._docs):
            feats = dict(d.features)
            feats.update({name: arr[i] for name, arr in new.items()})
            docs.append(replace(d, features=feats))
        log.info("Added features %s | corpus of %d documents", list(new), len(docs))
        return Corpus(docs)

    def drop_features(self, names: Iterable[str]) -> "Corpus":
        """Remove features; at least one must remain."""
        drop = set(names)
        unknown = drop - set(self._features)
        if unknown:
            raise ConfigurationError("Unknown features", {"features": sorted(unknown)})
        if drop == set(self._features):
            raise ConfigurationError("A corpus must keep at least one feature")
        return Corpus(
            replace(d, features={k: v for k, v in d.features.items() if k not in drop})
            for d in self._docs
        )

    def summarize(self, by: str = "day", clause_breaks: Optional[Sequence[str]] = None
                  ) -> Dict[str, pd.DataFrame]:
        """
        Corpus statistics per calendar bucket.

        Returns
        -------
        dict with keys:
            'stats'    : per bucket -- documents, mean/min/max word count and
                         the number of documents relevant (> 0) to each feature
            'features' : per feature -- documents relevant, mean weight

        Word counts exclude ``clause_breaks`` (ValenceConfig defaults).
        """
        df = self.to_frame(clause_breaks)
        if df.empty:
            return {"stats": pd.DataFrame(), "features": pd.DataFrame()}
        df["bucket"] = floor_dates(df["date"], by)
        grouped = df.groupby("bucket")
        stats = grouped["word_count"].agg(
            documents="count", mean_words="mean",
            min_words="min", max_words="max",
        )
        for f in self._features:
            stats[f] = grouped[f].apply(lambda x: int((x > 0).sum()))
        stats.index.name = "date"

        feats = pd.DataFrame({
            "documents": [(df[f] > 0).sum() for f in self._features],
            "mean_weight": [df[f].mean() for f in self._features],
        }, index=pd.Index(self._features, name="feature"))
        return {"stats": stats, "features": feats}
