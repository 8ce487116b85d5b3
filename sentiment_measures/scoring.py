"""
================================================================================
DOCUMENT SENTIMENT SCORER
================================================================================
Scores every document against every lexicon, applying valence shifters,
and collapses the shifted polarity hits into one scalar per
(document, lexicon) through a within-document rule. The document's feature
relevance weights then give one raw score per (document, feature, lexicon).

Valence shifting ('cluster' mode) for a hit with polarity p at position i,
scanning the window [i - n_before, i + n_after]:

    s_i = p * (-1)^(#negators) * (1 + A) * max(0, 1 - D)

where A and D sum the amplifier and deamplifier modifiers in the window.
Under an odd number of negators amplifiers act as deamplifiers.

Within-document rules (N word tokens, P polarised hits):

    counts                 : sum s_i
    proportional           : sum s_i / N
    proportionalPol        : sum s_i / P          (0 when P = 0)
    proportionalSquareRoot : sum s_i / sqrt(N)
    UShaped / inverseUShaped / exponential / inverseExponential :
                             sum w_i s_i with positional weights w (sum 1)

Scoring is embarrassingly parallel: documents are split into chunks scored
by joblib workers and the result is sorted by (id, feature, lexicon), so the
output does not depend on the worker count or completion order.

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from tqdm import tqdm

from sentiment_measures.config import AggregationConfig, ValenceConfig
from sentiment_measures.corpus import Corpus, count_words
from sentiment_measures.exceptions import EmptyDocumentSet, UnknownLexiconReference
from sentiment_measures.lexicons import SEPARATOR, LexiconSet, resolve_lexicons
from sentiment_measures.utils import get_logger, safe_divide, timeit

log = get_logger(__name__)

RAW_COLUMNS = ["id", "date", "word_count", "feature", "lexicon",
               "feature_weight", "score", "n_polarized"]


# -----------------------------------------------------------------------------
# Token-level scoring
# -----------------------------------------------------------------------------
def _split_clauses(tokens: Sequence[str], breaks: Sequence[str]
                   ) -> Tuple[List[str], List[int]]:
    words, clause_of = [], []
    clause = 0
    for tok in tokens:
        if tok in breaks:
            clause += 1
            continue
        words.append(tok)
        clause_of.append(clause)
    return words, clause_of


def shifted_polarities(
    tokens: Sequence[str],
    scores: Mapping[str, float],
    valence: Optional[Mapping[str, Tuple[str, Optional[float]]]],
    config: ValenceConfig,
) -> np.ndarray:
    """
    Polarity of every word position after valence shifting.

    Parameters
    ----------
    tokens : sequence of str
        Document tokens, sentence punctuation included.
    scores : mapping
        Lexicon word -> polarity.
    valence : mapping, optional
        Shifter word -> (role, modifier or None).
    config : ValenceConfig

    Returns
    -------
    np.ndarray of length N (word tokens), zero where no lexicon hit.
    """
    words, clause_of = _split_clauses(tokens, config.clause_breaks)
    n = len(words)
    s = np.zeros(n)
    hits = [i for i, w in enumerate(words) if w in scores]
    if not hits:
        return s
    for i in hits:
        s[i] = scores[words[i]]

    if not valence or config.mode == "none":
        return s

    roles = [valence.get(w) for w in words]

    if config.mode == "bigram":
        defaults = {
            "negator": -1.0,
            "amplifier": 1.0 + config.amplifier_weight,
            "deamplifier": 1.0 - config.deamplifier_weight,
        }
        for i in hits:
            prev = roles[i - 1] if i > 0 else None
            if prev is not None and prev[0] in defaults:
                factor = prev[1] if prev[1] is not None else defaults[prev[0]]
                s[i] *= factor
    else:
        for i in hits:
            lo, hi = max(0, i - config.n_before), min(n, i + config.n_after + 1)
            n_neg, amp, deamp = 0, 0.0, 0.0
            for j in range(lo, hi):
                if j == i or roles[j] is None:
                    continue
                role, value = roles[j]
                if role == "negator":
                    n_neg += 1
                elif role == "amplifier":
                    amp += value if value is not None else config.amplifier_weight
                elif role == "deamplifier":
                    deamp += value if value is not None else config.deamplifier_weight
            if n_neg % 2 == 1:
                deamp, amp = deamp + amp, 0.0
                s[i] = -s[i]
            s[i] *= (1.0 + amp) * max(0.0, 1.0 - deamp)

    if config.adversative != "none":
        for j, r in enumerate(roles):
            if r is None or r[0] != "adversative":
                continue
            same = [i for i in hits if clause_of[i] == clause_of[j]]
            if config.adversative == "suppress_preceding":
                for i in same:
                    if i < j:
                        s[i] = 0.0
            else:
                w = r[1] if r[1] is not None else config.adversative_weight
                for i in same:
                    s[i] *= (1.0 - w) if i < j else (1.0 + w)
    return s


def _positional_weights(n: int, rule: str, alpha: float) -> np.ndarray:
    pos = np.arange(1, n + 1, dtype=float)
    mid = (n + 1) / 2.0
    if rule == "UShaped":
        w = (pos - mid) ** 2
    elif rule == "inverseUShaped":
        w = mid ** 2 - (pos - mid) ** 2
    elif rule == "exponential":
        w = np.exp(alpha * pos / n)
    else:
        w = np.exp(-alpha * pos / n)
    total = w.sum()
    if total <= 0:
        return np.full(n, 1.0 / n)
    return w / total


def within_document(s: np.ndarray, rule: str, alpha: float = 5.0) -> Tuple[float, int]:
    """
    Collapse shifted polarities into one value.

    Returns
    -------
    (value, n_polarized) -- n_polarized counts non-zero contributions.
    """
    n = len(s)
    n_pol = int(np.count_nonzero(s))
    if n == 0:
        return 0.0, 0
    total = float(s.sum())
    if rule == "counts":
        return total, n_pol
    if rule == "proportional":
        return total / n, n_pol
    if rule == "proportionalPol":
        return float(safe_divide(total, n_pol)), n_pol
    if rule == "proportionalSquareRoot":
        return total / np.sqrt(n), n_pol
    w = _positional_weights(n, rule, alpha)
    return float(np.dot(w, s)), n_pol


# -----------------------------------------------------------------------------
# Corpus-level scoring
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class RawScores:
    """
    Long table of raw scores, one row per (document, feature, lexicon),
    sorted by (id, feature, lexicon).
    """
    frame: pd.DataFrame
    features: Tuple[str, ...]
    lexicons: Tuple[str, ...]
    within: str

    def to_wide(self) -> pd.DataFrame:
        """One row per document, one 'feature--lexicon' column per pair."""
        df = self.frame.copy()
        df["pair"] = df["feature"] + SEPARATOR + df["lexicon"]
        wide = df.pivot_table(index=["id", "date", "word_count"], columns="pair",
                              values="score", sort=False).reset_index()
        wide.columns.name = None
        return wide

    def __len__(self) -> int:
        return len(self.frame)


def _plain_lexicons(lex_set: LexiconSet, names: Sequence[str]):
    out = []
    for name in names:
        lex, table = lex_set.get(name)
        valence = None
        if table is not None:
            valence = {w: (sh.role, sh.value) for w, sh in table.entries.items()}
        out.append((name, dict(lex.scores), valence))
    return out


def _score_chunk(docs, lexicons_by_lang, within: str, alpha: float,
                 valence_cfg: ValenceConfig) -> List[tuple]:
    rows = []
    for doc_id, date, tokens, language, features in docs:
        words = count_words(tokens, valence_cfg.clause_breaks)
        for lex_name, scores, valence in lexicons_by_lang[language]:
            s = shifted_polarities(tokens, scores, valence, valence_cfg)
            value, n_pol = within_document(s, within, alpha)
            for feature, weight in features:
                rows.append((doc_id, date, words, feature, lex_name,
                             weight, value * weight, n_pol))
    return rows


@timeit
def compute_sentiment(
    corpus: Corpus,
    lexicons: Union[LexiconSet, Mapping[str, LexiconSet]],
    config: Optional[AggregationConfig] = None,
    lexicon_names: Optional[Sequence[str]] = None,
) -> RawScores:
    """
    Score every (document, feature, lexicon) triple.

    Parameters
    ----------
    corpus : Corpus
    lexicons : LexiconSet or dict language -> LexiconSet
        Documents are scored with the set of their language; a single set
        also scores documents without a language.
    config : AggregationConfig
        Supplies the within rule, valence settings and parallelism.
    lexicon_names : sequence of str, optional
        Restrict scoring to these lexicons.

    Returns
    -------
    RawScores
    """
    config = config or AggregationConfig()
    if len(corpus) == 0:
        raise EmptyDocumentSet("No documents to score")

    by_lang = resolve_lexicons(lexicons)
    any_set = next(iter(by_lang.values()))
    names = list(lexicon_names) if lexicon_names is not None else any_set.names
    plain = {lang: _plain_lexicons(s, names) for lang, s in by_lang.items()}

    docs = []
    for d in corpus:
        if d.language not in plain:
            raise UnknownLexiconReference(
                f"No lexicons for the language of document {d.id!r}",
                language=d.language, details={"document": d.id})
        docs.append((d.id, d.date, d.tokens, d.language,
                     tuple(sorted(d.features.items()))))

    size = config.chunk_size
    chunks = [docs[i:i + size] for i in range(0, len(docs), size)]
    if config.show_progress:
        chunks = tqdm(chunks, desc="Scoring")
    parts = Parallel(n_jobs=config.n_jobs)(
        delayed(_score_chunk)(chunk, plain, config.within,
                              config.within_alpha, config.valence)
        for chunk in chunks
    )
    rows = [row for part in parts for row in part]

    frame = pd.DataFrame(rows, columns=RAW_COLUMNS)
    frame = frame.sort_values(["id", "feature", "lexicon"], kind="mergesort")
    frame = frame.reset_index(drop=True)
    log.info("Scored %d documents x %d features x %d lexicons (%s)",
             len(docs), len(corpus.features), len(names), config.within)
    return RawScores(frame, tuple(corpus.features), tuple(names), config.within)
