"""Neural sentence and token boundary tagger."""

from .abbreviations import AbbreviationTable, load_abbreviations
from .boundary_model import BoundaryModel
from .dataset import dataset_statistics, merge_dataset, read_dataset, shuffle_dataset
from .errors import InvalidDataset, ModelFileError, NeuralTokenizerError
from .evaluator import EvaluationStats, Evaluator, SpanMetric
from .feature_extractor import FeatureExtractor
from .optimizer import TokenizerOptimizer
from .structures import CharClass, Position, Sentence, Token
from .tokenizer import NeuralTokenizer, SegmenterState
from .trainer import TrainingHelper

__version__ = "0.1.0"

__all__ = [
    "AbbreviationTable",
    "BoundaryModel",
    "CharClass",
    "EvaluationStats",
    "Evaluator",
    "FeatureExtractor",
    "InvalidDataset",
    "ModelFileError",
    "NeuralTokenizer",
    "NeuralTokenizerError",
    "Position",
    "SegmenterState",
    "Sentence",
    "SpanMetric",
    "Token",
    "TokenizerOptimizer",
    "TrainingHelper",
    "dataset_statistics",
    "load_abbreviations",
    "merge_dataset",
    "read_dataset",
    "shuffle_dataset",
]
