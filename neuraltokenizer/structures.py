# In neuraltokenizer/structures.py

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple


class CharClass(IntEnum):
    """What follows a character, as predicted by the boundary classifier."""
    TOKEN_BOUNDARY = 0
    SENTENCE_BOUNDARY = 1
    NO_BOUNDARY = 2


@dataclass(frozen=True)
class Position:
    """Inclusive character offsets into the original text."""
    start: int
    end: int
    index: int

    @property
    def length(self):
        return self.end - self.start + 1

    def shifted(self, offset):
        return Position(start=self.start + offset, end=self.end + offset, index=self.index)


@dataclass(frozen=True)
class Token:
    form: str
    position: Position
    is_space: bool = False

    def shifted(self, offset):
        return Token(form=self.form, position=self.position.shifted(offset), is_space=self.is_space)


@dataclass(frozen=True)
class Sentence:
    tokens: Tuple[Token, ...]
    position: Position
    text: str

    def shifted(self, offset):
        """Copy of this sentence (tokens included) moved by `offset` characters."""
        return Sentence(
            tokens=tuple(token.shifted(offset) for token in self.tokens),
            position=self.position.shifted(offset),
            text=self.text,
        )
