# In neuraltokenizer/tokenizer.py

import logging
from dataclasses import dataclass, field
from typing import List

import torch

from .feature_extractor import FeatureExtractor
from .structures import CharClass, Position, Sentence, Token

logger = logging.getLogger(__name__)


@dataclass
class SegmenterState:
    """
    The buffers of a single `tokenize` call.

    The token buffer holds a run of non-spacing chars, preceded in the text by
    `skipped_spacing_chars` spacing chars that follow the last boundary.
    """
    text: str
    sentences: List[Sentence] = field(default_factory=list)
    cur_sentence_tokens: List[Token] = field(default_factory=list)
    cur_token_buffer: List[str] = field(default_factory=list)
    skipped_spacing_chars: int = 0

    def last_boundary_end(self):
        """The end index of the last completed token or sentence (-1 if none)."""
        if self.cur_sentence_tokens:
            return self.cur_sentence_tokens[-1].position.end
        if self.sentences:
            return self.sentences[-1].position.end
        return -1

    def next_token_index(self):
        if self.cur_sentence_tokens:
            return self.cur_sentence_tokens[-1].position.index + 1
        if self.sentences:
            return self.sentences[-1].tokens[-1].position.index + 1
        return 0

    def next_segment_start(self):
        return self.last_boundary_end() + self.skipped_spacing_chars + len(self.cur_token_buffer) + 1


class NeuralTokenizer:
    """
    Splits a text into sentences and tokens, classifying its chars with a
    BoundaryModel over a sliding window of at most `max_segment_size` chars.

    After each window the buffers are shifted so that the next window starts
    right after the last reliable boundary:
      - new sentences completed: everything after the last one is discarded;
      - only new tokens completed: the tokens covering the first half of the
        window are kept, the others are classified again in the next window;
      - no boundaries, but leading spacing chars: the window restarts after them;
      - no boundaries at all: half window is removed from the tail of the
        buffered token.
    """

    def __init__(self, model, max_segment_size=None):
        self.model = model
        self.max_segment_size = max_segment_size or model.max_segment_size
        if self.max_segment_size < 2:
            raise ValueError(f"The max segment size must be at least 2, got {self.max_segment_size}")

        self.feature_extractor = FeatureExtractor(model)

    def tokenize(self, text):
        """
        Returns the list of sentences which compose the text, each containing
        its tokens. Spacing chars never belong to a token.
        """
        state = SegmenterState(text=text)

        was_training = self.model.training
        self.model.eval()

        try:
            for start, end in self.iter_segments(state):
                self.process_segment(state, start, end)
        finally:
            self.model.train(was_training)

        return state.sentences

    def iter_segments(self, state):
        """Yields the (start, end) indices (end exclusive) of each window, following the buffer shifts."""
        text_length = len(state.text)
        start = 0

        while start < text_length:
            end = min(start + self.max_segment_size, text_length)

            yield start, end

            start = state.next_segment_start()

    def classify_chars(self, text, start, end):
        """
        Returns a [end - start, 3] tensor with the classification of each char
        of text[start:end]: 0 = token boundary follows, 1 = sentence boundary
        follows, 2 = no boundary follows.
        """
        char_ids, flags = self.feature_extractor.segment_features(text, start, end)

        with torch.no_grad():
            return self.model.predict_proba(char_ids, flags)

    def process_segment(self, state, start, end):
        # argmax returns the first max index: ties go to the lowest class
        chars_classes = self.classify_chars(state.text, start, end).argmax(dim=-1).tolist()
        assert len(chars_classes) == end - start, "The classifier must return one class per char"

        prev_sentences_count = len(state.sentences)
        prev_tokens_count = len(state.cur_sentence_tokens)
        prev_skipped_chars = state.skipped_spacing_chars
        last_index = len(state.text) - 1

        for offset, char_class in enumerate(chars_classes):
            char_index = start + offset
            self.process_char(state, char_index, char_class, is_last=char_index == last_index)

        self.shift_buffer(state, prev_sentences_count, prev_tokens_count, prev_skipped_chars)

        logger.debug("Segment [%d, %d): %d sentences, %d buffered tokens, next start %d",
                     start, end, len(state.sentences), len(state.cur_sentence_tokens),
                     state.next_segment_start())

    def process_char(self, state, char_index, char_class, is_last):
        char = state.text[char_index]

        if char.isspace():
            # A spacing char always ends the buffered token and is never part of one
            if state.cur_token_buffer:
                self.add_token(state, end=char_index - 1)
            state.skipped_spacing_chars += 1

        else:
            state.cur_token_buffer.append(char)

            if is_last:
                self.add_token(state, end=char_index)

            elif not self.is_mid_word(state.text, char_index):
                if char_class == CharClass.TOKEN_BOUNDARY:
                    self.add_token(state, end=char_index)
                elif char_class == CharClass.SENTENCE_BOUNDARY:
                    self.add_token(state, end=char_index)
                    self.add_sentence(state, end=char_index)

        if is_last:
            self.add_sentence(state, end=char_index)

    def is_mid_word(self, text, char_index):
        """Boundaries are ignored between two alphanumeric chars, unless the language has no spaces."""
        if self.model.no_whitespace_segmentation or char_index + 1 >= len(text):
            return False
        return text[char_index].isalnum() and text[char_index + 1].isalnum()

    def add_token(self, state, end):
        start = state.last_boundary_end() + 1 + state.skipped_spacing_chars
        form = ''.join(state.cur_token_buffer)

        state.cur_sentence_tokens.append(Token(
            form=form,
            position=Position(start=start, end=end, index=state.next_token_index()),
            is_space=len(form) == 1 and form.isspace()))

        state.cur_token_buffer.clear()
        state.skipped_spacing_chars = 0

    def add_sentence(self, state, end):
        # Trailing spacing chars alone do not make a sentence
        if not state.cur_sentence_tokens:
            return

        start = state.sentences[-1].position.end + 1 if state.sentences else 0

        state.sentences.append(Sentence(
            tokens=tuple(state.cur_sentence_tokens),
            position=Position(start=start, end=end, index=len(state.sentences)),
            text=state.text[start:end + 1]))

        state.cur_sentence_tokens = []
        state.skipped_spacing_chars = 0

    def shift_buffer(self, state, prev_sentences_count, prev_tokens_count, prev_skipped_chars):
        if len(state.sentences) > prev_sentences_count:
            self.shift_buffer_by_sentences(state)

        elif len(state.cur_sentence_tokens) > prev_tokens_count:
            self.shift_buffer_by_tokens(state, prev_tokens_count)

        elif state.skipped_spacing_chars > prev_skipped_chars:
            # No boundaries: the spacing chars met are all at the start of the window
            state.cur_token_buffer.clear()

        else:
            self.shift_half_buffer(state)

    def shift_buffer_by_sentences(self, state):
        state.cur_sentence_tokens = []
        state.cur_token_buffer.clear()
        state.skipped_spacing_chars = 0

    def shift_buffer_by_tokens(self, state, prev_tokens_count):
        """Keeps the new tokens until the one that crosses the middle of the window."""
        half_segment_size = self.max_segment_size // 2
        new_tokens = state.cur_sentence_tokens[prev_tokens_count:]
        tokens_chars_count = 0
        tokens_to_keep = 0

        while tokens_to_keep < len(new_tokens) and tokens_chars_count < half_segment_size:
            tokens_chars_count += new_tokens[tokens_to_keep].position.length
            tokens_to_keep += 1

        del state.cur_sentence_tokens[prev_tokens_count + tokens_to_keep:]
        state.cur_token_buffer.clear()
        state.skipped_spacing_chars = 0

    def shift_half_buffer(self, state):
        half_segment_size = self.max_segment_size // 2
        del state.cur_token_buffer[max(0, len(state.cur_token_buffer) - half_segment_size):]
