"""
NLP Backend

Two tiers behind one interface:
1. Statistical: a trained spaCy pipeline (POS tags, noun chunks, NER)
2. Rule-based: a blank English pipeline with a sentencizer, plus
   stop-word and capitalisation heuristics

The statistical tier is used when the configured model is installed.
Both tiers are deterministic for identical input.
"""

import logging
import re
from typing import List, Tuple

import spacy
from spacy.lang.en.stop_words import STOP_WORDS

logger = logging.getLogger(__name__)


MEANINGFUL_POS = {"NOUN", "PROPN", "ADJ", "VERB"}
NOUN_POS = {"NOUN", "PROPN"}

ENTITY_LABELS = {
    "PERSON": "person",
    "GPE": "place",
    "LOC": "place",
    "FAC": "place",
    "ORG": "organization",
}

ORG_SUFFIXES = {
    "inc", "corp", "corporation", "llc", "ltd", "company", "co",
    "group", "university", "institute", "agency", "foundation",
}
PLACE_PREPOSITIONS = {"in", "at", "from", "near", "across"}

WORD_PATTERN = re.compile(r"[A-Za-z0-9']+")


class TextProcessor:
    """
    Tokenisation, sentence splitting and term extraction.

    Usage:
        processor = TextProcessor("en_core_web_sm")
        processor.noun_phrases("Content marketing drives organic growth.")
    """

    def __init__(self, model_name: str = "en_core_web_sm"):
        self.model_name = model_name
        self.nlp = None
        self.statistical = False
        self._initialize_model()

    def _initialize_model(self):
        """Load the spaCy model, falling back to a blank English pipeline."""
        try:
            self.nlp = spacy.load(self.model_name, disable=["lemmatizer"])
            self.statistical = True
            logger.info(f"Loaded spaCy model: {self.model_name}")
        except OSError:
            logger.warning(
                f"spaCy model '{self.model_name}' not installed, using rule-based tier"
            )
            self.nlp = spacy.blank("en")
            self.nlp.add_pipe("sentencizer")
            self.statistical = False

        if "sentencizer" not in self.nlp.pipe_names and not self.nlp.has_pipe("parser"):
            self.nlp.add_pipe("sentencizer")

    @property
    def tier(self) -> str:
        return "statistical" if self.statistical else "rule_based"

    def parse(self, text: str):
        return self.nlp(text or "")

    # =========================================================================
    # Counting
    # =========================================================================

    @staticmethod
    def words(text: str) -> List[str]:
        return WORD_PATTERN.findall(text or "")

    def sentences(self, text: str) -> List[str]:
        doc = self.parse(text)
        return [s.text.strip() for s in doc.sents if s.text.strip()]

    @staticmethod
    def paragraphs(text: str) -> List[str]:
        return [p for p in re.split(r"\n\s*\n", text or "") if p.strip()]

    # =========================================================================
    # Term extraction
    # =========================================================================

    @staticmethod
    def is_stop(token_text: str) -> bool:
        return token_text.lower() in STOP_WORDS

    def noun_phrases(self, text: str) -> List[str]:
        """Multi-word noun phrases, in document order."""
        doc = self.parse(text)
        if self.statistical:
            phrases = []
            for chunk in doc.noun_chunks:
                tokens = [t.text for t in chunk if not t.is_stop and t.is_alpha]
                if len(tokens) >= 2:
                    phrases.append(" ".join(tokens))
            return phrases

        # Runs of two or three adjacent content words inside a sentence
        phrases = []
        for sent in doc.sents:
            run: List[str] = []
            for token in list(sent) + [None]:
                if token is not None and token.is_alpha and not token.is_stop and len(token.text) > 2:
                    run.append(token.text)
                    continue
                if 2 <= len(run) <= 3:
                    phrases.append(" ".join(run))
                elif len(run) > 3:
                    phrases.append(" ".join(run[-2:]))
                run = []
        return phrases

    def nouns(self, text: str) -> List[str]:
        doc = self.parse(text)
        if self.statistical:
            return [t.text for t in doc if t.pos_ in NOUN_POS and t.is_alpha]
        return [t.text for t in doc if t.is_alpha and not t.is_stop and len(t.text) > 3]

    def meaningful_terms(self, text: str) -> List[str]:
        """Nouns, adjectives and verbs longer than two characters, lowercased."""
        doc = self.parse(text)
        if self.statistical:
            terms = [t.text for t in doc if t.pos_ in MEANINGFUL_POS]
        else:
            terms = [t.text for t in doc if t.is_alpha and not t.is_stop]
        return [t.lower() for t in terms if len(t) > 2 and t.isalpha()]

    def entities(self, text: str) -> List[Tuple[str, str]]:
        """(text, type) pairs with type in person/place/organization."""
        doc = self.parse(text)
        if self.statistical:
            return [
                (ent.text, ENTITY_LABELS[ent.label_])
                for ent in doc.ents
                if ent.label_ in ENTITY_LABELS
            ]
        return self._capitalised_entities(doc)

    def _capitalised_entities(self, doc) -> List[Tuple[str, str]]:
        """Title-case spans that do not open a sentence."""
        found = []
        for sent in doc.sents:
            tokens = list(sent)
            i = 1
            while i < len(tokens):
                if not (tokens[i].is_alpha and tokens[i].text[0].isupper() and not tokens[i].is_stop):
                    i += 1
                    continue
                start = i
                while i < len(tokens) and tokens[i].is_alpha and tokens[i].text[0].isupper():
                    i += 1
                span = [t.text for t in tokens[start:i]]
                previous = tokens[start - 1].text.lower()
                if span[-1].lower().rstrip(".") in ORG_SUFFIXES:
                    kind = "organization"
                elif previous in PLACE_PREPOSITIONS:
                    kind = "place"
                elif len(span) == 2:
                    kind = "person"
                else:
                    kind = "organization"
                found.append((" ".join(span), kind))
        return found
