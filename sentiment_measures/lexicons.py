"""
================================================================================
LEXICON STORE
================================================================================
Normalised, immutable tables of (word, polarity score) per lexicon and of
(word, valence-shifter role, modifier value) per valence table.

A LexiconSet groups lexicons of one language, each paired with an optional
valence shifter table, and is the object every scoring call consumes.

Valence shifter roles:
    1. negator      -- flips the sign of nearby polarised words
    2. amplifier    -- scales magnitude up      (e.g. "very", "highly")
    3. deamplifier  -- scales magnitude down    (e.g. "slightly", "barely")
    4. adversative  -- conjunction re-weighting its clause ("but", "however")

Two small built-in English lexicons are loaded once on first use and shared
read-only across the process:
    - lm_en    : a condensed Loughran-McDonald (2011) financial word list
    - vader_en : the VADER lexicon (Hutto & Gilbert, 2014) rescaled to [-1, 1]

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
================================================================================
"""

import functools
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

from sentiment_measures.exceptions import (
    ConfigurationError, UnknownLexiconReference, AmbiguousMeasureName,
)
from sentiment_measures.utils import get_logger

log = get_logger(__name__)

SEPARATOR = "--"

ROLES = ("negator", "amplifier", "deamplifier", "adversative")
# numeric role codes accepted in user tables
ROLE_CODES = {1: "negator", 2: "amplifier", 3: "deamplifier", 4: "adversative"}


def check_component_name(name: str, kind: str) -> str:
    """Reject names that would make joined measure names unparseable."""
    # a leading or trailing '-' would fuse with the separator once joined
    if not name or SEPARATOR in name or name.startswith("-") or name.endswith("-"):
        raise AmbiguousMeasureName(name, SEPARATOR, kind)
    return name


@dataclass(frozen=True)
class Shifter:
    """One valence shifter entry. ``value`` None means 'use the default'."""
    role: str
    value: Optional[float] = None


@dataclass(frozen=True)
class Lexicon:
    """Word -> polarity mapping for one language."""
    name: str
    language: str
    scores: Mapping[str, float]

    def __post_init__(self):
        check_component_name(self.name, "lexicon")
        object.__setattr__(self, "scores", MappingProxyType(
            {str(w).lower(): float(s) for w, s in dict(self.scores).items()}
        ))

    @classmethod
    def from_frame(
        cls,
        table: pd.DataFrame,
        name: str,
        language: str = "en",
        word_column: str = "word",
        value_column: str = "value",
    ) -> "Lexicon":
        """
        Build a lexicon from a (word, value) table.

        Words are lower-cased and stripped; exact duplicate rows are
        collapsed, conflicting duplicates raise ConfigurationError.
        """
        df = table[[word_column, value_column]].dropna().copy()
        df[word_column] = df[word_column].astype(str).str.strip().str.lower()
        df = df.drop_duplicates()
        dup = df[word_column][df[word_column].duplicated()]
        if len(dup):
            raise ConfigurationError(
                f"Lexicon {name!r} has conflicting entries",
                {"words": sorted(set(dup))[:10]})
        return cls(name, language, dict(zip(df[word_column], df[value_column])))

    def without(self, words: Iterable[str]) -> "Lexicon":
        """Copy of the lexicon without the given words."""
        drop = set(words)
        return Lexicon(self.name, self.language,
                       {w: s for w, s in self.scores.items() if w not in drop})

    def __reduce__(self):
        # read-only mappings are not picklable
        return (Lexicon, (self.name, self.language, dict(self.scores)))

    def __contains__(self, word: str) -> bool:
        return word in self.scores

    def __len__(self) -> int:
        return len(self.scores)

    def __repr__(self) -> str:
        return f"Lexicon(name={self.name!r}, language={self.language!r}, words={len(self)})"


@dataclass(frozen=True)
class ValenceTable:
    """Word -> Shifter mapping."""
    entries: Mapping[str, Shifter]

    def __post_init__(self):
        clean = {}
        for word, shifter in dict(self.entries).items():
            if not isinstance(shifter, Shifter):
                shifter = Shifter(*shifter) if isinstance(shifter, tuple) \
                    else Shifter(shifter)
            role = ROLE_CODES.get(shifter.role, shifter.role)
            if role not in ROLES:
                raise ConfigurationError(
                    f"Unknown valence shifter role {shifter.role!r}",
                    {"word": word, "allowed": ROLES})
            clean[str(word).lower()] = Shifter(role, shifter.value)
        object.__setattr__(self, "entries", MappingProxyType(clean))

    @classmethod
    def from_frame(
        cls,
        table: pd.DataFrame,
        word_column: str = "word",
        role_column: str = "role",
        value_column: str = "value",
    ) -> "ValenceTable":
        """
        Build a table from columns (word, role, optional value).

        Roles may be given by name or by code 1-4 (negator, amplifier,
        deamplifier, adversative). A table with only (word, value) columns
        is a pure bigram table: negative values act as negators, values
        above one as amplifiers, values in [0, 1) as deamplifiers.
        """
        entries = {}
        has_role = role_column in table.columns
        has_value = value_column in table.columns
        if not has_role and not has_value:
            raise ConfigurationError(
                "Valence table needs a role or a value column",
                {"columns": list(table.columns)})
        for _, row in table.iterrows():
            word = str(row[word_column]).strip().lower()
            value = None
            if has_value and pd.notna(row[value_column]):
                value = float(row[value_column])
            if has_role:
                role = row[role_column]
                role = int(role) if isinstance(role, float) else role
            elif value is None:
                raise ConfigurationError(
                    "Valence entry without role needs a value", {"word": word})
            elif value < 0:
                role = "negator"
            elif value > 1:
                role = "amplifier"
            else:
                role = "deamplifier"
            entries[word] = Shifter(role, value)
        return cls(entries)

    def __reduce__(self):
        return (ValenceTable, (dict(self.entries),))

    def get(self, word: str) -> Optional[Shifter]:
        return self.entries.get(word)

    def words(self, role: Optional[str] = None) -> List[str]:
        return [w for w, s in self.entries.items() if role is None or s.role == role]

    def __contains__(self, word: str) -> bool:
        return word in self.entries

    def __len__(self) -> int:
        return len(self.entries)


class LexiconSet:
    """
    Named, ordered collection of (Lexicon, ValenceTable) pairs of one language.

    Words that are also valence shifters are removed from the lexicons so
    that a token is either a polarity hit or a shifter, never both.

    Parameters
    ----------
    lexicons : iterable of Lexicon
        Lexicons sharing one language.
    valence : ValenceTable or dict, optional
        One table applied to every lexicon, or lexicon name -> table.
    """

    def __init__(
        self,
        lexicons: Iterable[Lexicon],
        valence: Union[ValenceTable, Mapping[str, ValenceTable], None] = None,
    ):
        lexicons = list(lexicons)
        if not lexicons:
            raise ConfigurationError("A LexiconSet needs at least one lexicon")
        languages = {lex.language for lex in lexicons}
        if len(languages) != 1:
            raise ConfigurationError(
                "All lexicons in a set must share one language",
                {"languages": sorted(languages)})
        self.language = languages.pop()

        names = [lex.name for lex in lexicons]
        if len(set(names)) != len(names):
            raise ConfigurationError("Duplicate lexicon names", {"names": names})

        if isinstance(valence, Mapping):
            unknown = set(valence) - set(names)
            if unknown:
                raise UnknownLexiconReference(
                    "Valence tables given for unknown lexicons",
                    lexicon=sorted(unknown)[0], language=self.language)
            tables = {n: valence.get(n) for n in names}
        else:
            tables = {n: valence for n in names}

        self._entries: Dict[str, Tuple[Lexicon, Optional[ValenceTable]]] = {}
        for lex in lexicons:
            table = tables[lex.name]
            if table is not None:
                overlap = [w for w in lex.scores if w in table]
                if overlap:
                    log.warning("Lexicon %s: %d valence shifter words removed "
                                "from polarity entries", lex.name, len(overlap))
                    lex = lex.without(overlap)
            self._entries[lex.name] = (lex, table)

    @property
    def names(self) -> List[str]:
        return list(self._entries)

    def get(self, name: str, language: Optional[str] = None
            ) -> Tuple[Lexicon, Optional[ValenceTable]]:
        """Return the (Lexicon, ValenceTable) pair for a name/language."""
        if language is not None and language != self.language:
            raise UnknownLexiconReference(
                f"Lexicon {name!r} not available in language {language!r}",
                lexicon=name, language=language)
        if name not in self._entries:
            raise UnknownLexiconReference(
                f"Unknown lexicon {name!r}", lexicon=name, language=self.language,
                details={"available": self.names})
        return self._entries[name]

    def select(self, names: Iterable[str]) -> "LexiconSet":
        """New set restricted to the given lexicon names (in that order)."""
        pairs = [self.get(n) for n in names]
        return LexiconSet([p[0] for p in pairs], {p[0].name: p[1] for p in pairs})

    def items(self):
        return self._entries.items()

    def __getitem__(self, name: str) -> Lexicon:
        return self.get(name)[0]

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __repr__(self) -> str:
        return f"LexiconSet(language={self.language!r}, lexicons={self.names})"


def resolve_lexicons(
    lexicons: Union[LexiconSet, Mapping[str, LexiconSet]],
) -> Dict[Optional[str], LexiconSet]:
    """
    Normalise the lexicon argument to a language -> LexiconSet mapping.

    A single set is also registered under ``None`` so that documents
    without a language use it. Sets of different languages must expose
    the same lexicon names, otherwise the measures would not line up.
    """
    if isinstance(lexicons, LexiconSet):
        return {None: lexicons, lexicons.language: lexicons}
    by_lang = dict(lexicons)
    if not by_lang:
        raise ConfigurationError("No lexicon sets supplied")
    name_sets = {tuple(s.names) for s in by_lang.values()}
    if len(name_sets) != 1:
        raise ConfigurationError(
            "Lexicon sets of different languages must share lexicon names",
            {"names": sorted(name_sets)})
    for lang, lex_set in by_lang.items():
        if lex_set.language != lang:
            raise UnknownLexiconReference(
                f"Lexicon set registered under {lang!r} has language "
                f"{lex_set.language!r}", language=lang)
    if len(by_lang) == 1:
        by_lang[None] = next(iter(by_lang.values()))
    return by_lang


# -----------------------------------------------------------------------------
# Built-in lexicons
# -----------------------------------------------------------------------------
# Condensed Loughran-McDonald categories. The full dictionary is available at
# https://sraf.nd.edu/loughranmcdonald-master-dictionary/
LM_NEGATIVE = frozenset({
    "abandon", "adverse", "allegation", "bankrupt", "bankruptcy", "breach",
    "burden", "catastrophe", "closure", "collapse", "complaint", "concern",
    "crisis", "critical", "decline", "default", "deficit", "delay", "deteriorate",
    "disadvantage", "discontinue", "dispute", "distress", "downgrade",
    "downturn", "erode", "fail", "failure", "fraud", "halt", "harm", "hazard",
    "illegal", "impair", "inadequate", "insolvent", "instability", "investigate",
    "lawsuit", "layoff", "litigation", "loss", "losses", "misconduct", "negative",
    "penalty", "plummet", "recession", "restate", "scandal", "setback", "severe",
    "shortfall", "shutdown", "slump", "stagnate", "turmoil", "unfavorable",
    "unprofitable", "unstable", "violate", "volatile", "weak", "weaken", "worsen",
    "writedown", "writeoff",
})

LM_POSITIVE = frozenset({
    "achieve", "advance", "advantage", "attractive", "benefit", "boost",
    "breakthrough", "confident", "deliver", "effective", "efficient", "enable",
    "encourage", "enhance", "excellent", "exceptional", "expand", "favorable",
    "gain", "gains", "good", "great", "improve", "improvement", "innovative",
    "lucrative", "momentum", "opportunity", "optimism", "optimistic",
    "outperform", "positive", "profit", "profitability", "profitable",
    "progress", "prosper", "rebound", "recover", "recovery", "resolve",
    "reward", "robust", "stabilize", "strength", "strong", "succeed", "success",
    "superior", "surpass", "thrive", "upgrade", "upside", "upturn", "win",
})

ADVERSATIVES = ("but", "however", "although", "though", "yet", "whereas",
                "nevertheless", "nonetheless")


def _builtin_valence() -> ValenceTable:
    from vaderSentiment.vaderSentiment import NEGATE, BOOSTER_DICT

    entries = {w: Shifter("negator") for w in NEGATE
               if w.replace("'", "").isalpha()}
    for word, incr in BOOSTER_DICT.items():
        if " " in word:
            continue
        role = "amplifier" if incr > 0 else "deamplifier"
        entries[word] = Shifter(role, abs(float(incr)))
    for word in ADVERSATIVES:
        entries[word] = Shifter("adversative")
    return ValenceTable(entries)


@functools.lru_cache(maxsize=1)
def load_builtin_lexicons() -> LexiconSet:
    """
    Load the built-in English lexicons once and return the shared set.

    Returns
    -------
    LexiconSet with 'lm_en' and 'vader_en', paired with a valence table
    built from VADER's negation and booster word lists.
    """
    from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

    lm = {w: 1.0 for w in LM_POSITIVE}
    lm.update({w: -1.0 for w in LM_NEGATIVE})

    # VADER valences lie in [-4, 4]; single-token entries only
    vader = {
        w: v / 4.0
        for w, v in SentimentIntensityAnalyzer().lexicon.items()
        if w.isalpha()
    }
    lexicons = LexiconSet(
        [Lexicon("lm_en", "en", lm), Lexicon("vader_en", "en", vader)],
        valence=_builtin_valence(),
    )
    log.info("Built-in lexicons loaded | %s", lexicons)
    return lexicons
