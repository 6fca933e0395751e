# In neuraltokenizer/abbreviations.py

import logging
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

# One "<iso-code>.txt" file per managed language, one abbreviation per line
ABBREVIATIONS_DIR = Path(__file__).parent / "abbreviations"


class AbbreviationTable:
    """The set of common abbreviations of a language (stored lower case)."""

    def __init__(self, abbreviations):
        self.entries = frozenset(a.strip().lower() for a in abbreviations if a.strip())
        # The length of the longest abbreviation bounds the backward search
        self.max_length = max((len(a) for a in self.entries), default=0)

    @classmethod
    def from_file(cls, file_path):
        with open(file_path, 'r', encoding='utf-8') as f:
            return cls(f.read().splitlines())

    def __contains__(self, candidate):
        return candidate.lower() in self.entries

    def __len__(self):
        return len(self.entries)

    def is_end_of_abbreviation(self, text, focus_index):
        """
        Checks if the char at `focus_index` closes a known abbreviation.

        Every substring ending with the focus char is a candidate, going back
        until the first whitespace or until the candidate would be longer
        than the longest abbreviation of the table.
        """
        if focus_index <= 0 or focus_index >= len(text) or text[focus_index] != '.':
            return False

        lower_bound = max(0, focus_index - self.max_length + 1)
        start = focus_index - 1

        while start >= lower_bound and not text[start].isspace():
            start -= 1

        # The focus char is always '.', so candidates have at least one more char
        for candidate_start in range(start + 1, focus_index):
            if text[candidate_start:focus_index + 1].lower() in self.entries:
                return True

        return False


@lru_cache(maxsize=None)
def load_abbreviations(language):
    """
    Returns the AbbreviationTable of the given ISO 639-1 code, or None when the
    language has no abbreviations resource.
    """
    file_path = ABBREVIATIONS_DIR / f"{language}.txt"

    if not file_path.is_file():
        logger.debug("No abbreviations resource for language '%s'", language)
        return None

    table = AbbreviationTable.from_file(file_path)
    logger.debug("Loaded %d abbreviations for language '%s'", len(table), language)

    return table
