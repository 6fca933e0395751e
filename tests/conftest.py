import pytest
import torch

from neuraltokenizer import BoundaryModel, CharClass


def one_hot_probabilities(classes):
    probabilities = torch.full((len(classes), 3), 0.05)
    for i, char_class in enumerate(classes):
        probabilities[i, int(char_class)] = 0.9
    return probabilities


def script_classifier(tokenizer, rule):
    """Replaces the model predictions of the tokenizer with `rule(text, index) -> CharClass`."""
    def classify_chars(text, start, end):
        return one_hot_probabilities([rule(text, i) for i in range(start, end)])

    tokenizer.classify_chars = classify_chars
    return tokenizer


def punctuation_rule(text, i):
    """Sentence boundary after '.', '!' and '?', token boundary after letter runs and other punctuation."""
    char = text[i]
    next_char = text[i + 1] if i + 1 < len(text) else ' '

    if char in '.!?':
        return CharClass.SENTENCE_BOUNDARY
    if char.isalnum() and not next_char.isalnum():
        return CharClass.TOKEN_BOUNDARY
    if not char.isalnum() and not char.isspace():
        return CharClass.TOKEN_BOUNDARY
    return CharClass.NO_BOUNDARY


def gold_rule(classification):
    return lambda text, i: CharClass(classification[i])


def forms(sentences):
    return [[token.form for token in sentence.tokens] for sentence in sentences]


@pytest.fixture
def model():
    torch.manual_seed(0)
    return BoundaryModel(language='en', max_segment_size=20, char_embeddings_size=8, hidden_size=8)


@pytest.fixture
def small_dataset():
    return [
        ("Hello world.", [2, 2, 2, 2, 0, 0, 2, 2, 2, 2, 0, 1]),
        (" Bye!", [0, 2, 2, 0, 1]),
        (" It is 5 p.m. now.", [0, 2, 0, 0, 2, 0, 0, 0, 0, 2, 2, 2, 0, 0, 2, 2, 0, 1]),
    ]
