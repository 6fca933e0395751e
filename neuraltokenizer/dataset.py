# In neuraltokenizer/dataset.py

import json
import logging

import numpy as np
import pandas as pd

from .errors import InvalidDataset
from .structures import CharClass

logger = logging.getLogger(__name__)

VALID_CLASSES = frozenset(int(c) for c in CharClass)


def read_dataset(file_path):
    """
    Reads a dataset file: a JSON array of sentences, each one a 2-element
    array [text, classification] where the classification holds one class
    per char of the text.

    Returns a list of (text, classification) tuples.
    """
    logger.info("Reading dataset from '%s'", file_path)

    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            examples = json.load(f)
        except json.JSONDecodeError as e:
            raise InvalidDataset(f"'{file_path}' is not a valid JSON file: {e}") from e

    if not isinstance(examples, list):
        raise InvalidDataset(f"'{file_path}' must contain a JSON array of sentences")

    dataset = []
    for i, example in enumerate(examples):
        if not isinstance(example, list) or len(example) != 2 or not isinstance(example[0], str):
            raise InvalidDataset(f"Sentence {i} must be a [text, classification] pair")

        text, classification = example
        # JSON true/false and 1.0 compare equal to the int classes
        if not isinstance(classification, list) or any(
                type(c) is not int or c not in VALID_CLASSES for c in classification):
            raise InvalidDataset(f"Sentence {i} has an invalid chars classification")

        dataset.append((text, classification))

    logger.info("Read %d sentences", len(dataset))

    return dataset


def merge_dataset(dataset):
    """
    Concatenates the sentences of the dataset into a unique text, with the
    classification of all its chars.
    """
    texts = []
    classifications = []

    for text, classification in dataset:
        if len(text) != len(classification):
            raise InvalidDataset("Sentence and chars classification have different lengths")

        texts.append(text)
        classifications.extend(classification)

    return ''.join(texts), classifications


def shuffle_dataset(dataset, rng):
    """Returns the sentences of the dataset in the order given by `rng` (a numpy Generator)."""
    return [dataset[i] for i in rng.permutation(len(dataset))]


def dataset_statistics(dataset):
    """The distribution of the chars classes over the whole dataset."""
    _, classifications = merge_dataset(dataset)

    labels = pd.Series(np.asarray(classifications, dtype=np.int64)).map(lambda c: CharClass(c).name)

    return labels.value_counts(normalize=True)  # normalize=True gives percentages
