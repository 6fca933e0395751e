# In neuraltokenizer/evaluator.py

import logging
import math
import time

from .dataset import merge_dataset
from .structures import CharClass, Position, Sentence, Token
from .tokenizer import NeuralTokenizer

logger = logging.getLogger(__name__)


class SpanMetric:
    """Precision, recall and F1 score of predicted spans against gold spans."""

    def __init__(self, correct=0, predicted_total=0, gold_total=0):
        self.correct = correct
        self.predicted_total = predicted_total
        self.gold_total = gold_total

    @property
    def precision(self):
        return self.correct / self.predicted_total if self.predicted_total > 0 else 0.0

    @property
    def recall(self):
        return self.correct / self.gold_total if self.gold_total > 0 else 0.0

    @property
    def f1_score(self):
        if self.predicted_total == 0 or self.gold_total == 0:
            return 0.0
        return 2 * self.correct / (self.predicted_total + self.gold_total)

    def __str__(self):
        return "Precision: %.2f%%  |  Recall: %.2f%%  |  F1 Score: %.2f%%" % (
            100.0 * self.precision, 100.0 * self.recall, 100.0 * self.f1_score)


class EvaluationStats:

    def __init__(self, tokens, sentences):
        self.tokens = tokens
        self.sentences = sentences

    @property
    def accuracy(self):
        """Overall accuracy, giving an higher weight to the sentences metric."""
        return self.tokens.f1_score * math.sqrt(self.sentences.f1_score)

    def to_dict(self):
        stats = {'accuracy': self.accuracy}
        for name, metric in (('tokens', self.tokens), ('sentences', self.sentences)):
            stats[name] = {
                'precision': metric.precision,
                'recall': metric.recall,
                'f1_score': metric.f1_score,
            }
        return stats

    def __str__(self):
        return "\n".join([
            "- Overall accuracy : %.2f %%" % (100.0 * self.accuracy),
            f"- Tokens           : {self.tokens}",
            f"- Sentences        : {self.sentences}",
        ])


def build_gold_tokens(text, classification, sentence_start, first_index=0):
    """
    The tokens of a dataset sentence, with positions in the merged text.
    A token is closed by any class but NO_BOUNDARY; single spacing chars are
    not tokens.
    """
    tokens = []
    start = 0

    for i, char_class in enumerate(classification):
        if char_class == CharClass.NO_BOUNDARY:
            continue

        is_space = start == i and text[i].isspace()
        if not is_space:
            tokens.append(Token(
                form=text[start:i + 1],
                position=Position(start=sentence_start + start, end=sentence_start + i,
                                  index=first_index + len(tokens))))

        start = i + 1

    return tokens


def build_gold_sentences(dataset):
    """The sentences of the dataset laid out as a unique text, one after the other."""
    sentences = []
    start = 0
    token_index = 0

    for i, (text, classification) in enumerate(dataset):
        tokens = build_gold_tokens(text, classification, sentence_start=start, first_index=token_index)
        sentences.append(Sentence(
            tokens=tuple(tokens),
            position=Position(start=start, end=start + len(text) - 1, index=i),
            text=text))

        start += len(text)
        token_index += len(tokens)

    return sentences


def fix_offset(sentences):
    """
    Copies the sentences moving each one right after the previous, as if they
    composed a unique text.
    """
    fixed = []
    offset = 0

    for sentence in sentences:
        # Make the current sentence start from the running offset
        fixed.append(sentence.shifted(offset - sentence.position.start))
        offset += sentence.position.length

    return fixed


def count_same_position_elements(elements1, elements2):
    spans1 = {(e.position.start, e.position.end) for e in elements1}
    spans2 = {(e.position.start, e.position.end) for e in elements2}

    return len(spans1 & spans2)


def build_metric(predicted_elements, gold_elements):
    return SpanMetric(
        correct=count_same_position_elements(predicted_elements, gold_elements),
        predicted_total=len(predicted_elements),
        gold_total=len(gold_elements))


class Evaluator:
    """Evaluates the tokenization of a model against the gold annotations of a dataset."""

    def __init__(self, model, max_segment_size=None):
        self.tokenizer = NeuralTokenizer(model, max_segment_size=max_segment_size)

    def evaluate(self, dataset):
        start_time = time.time()

        text, _ = merge_dataset(dataset)
        predicted_sentences = fix_offset(self.tokenizer.tokenize(text))
        gold_sentences = build_gold_sentences(dataset)

        predicted_tokens = [t for s in predicted_sentences for t in s.tokens]
        gold_tokens = [t for s in gold_sentences for t in s.tokens]

        logger.info("Evaluated %d sentences in %.3f s", len(dataset), time.time() - start_time)

        return EvaluationStats(
            tokens=build_metric(predicted_tokens, gold_tokens),
            sentences=build_metric(predicted_sentences, gold_sentences))
