"""Command-line interface of the neural tokenizer."""

import argparse
import json
import logging
import sys

import numpy as np
import torch

from . import boundary_model as bm
from .boundary_model import BoundaryModel
from .dataset import dataset_statistics, read_dataset
from .errors import InvalidDataset, ModelFileError
from .evaluator import Evaluator
from .tokenizer import NeuralTokenizer
from .trainer import TrainingHelper

logger = logging.getLogger(__name__)

# Defaults of the training command
NUM_EPOCHS = 30
BATCH_SIZE = 100


def setup_logging(verbose=False):
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser():
    parser = argparse.ArgumentParser(
        prog="neuraltokenizer",
        description="Train, evaluate and run a neural sentence and token boundary tagger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  neuraltokenizer train -l en -m model.pt -t train.json -v valid.json -e 30 -b 100
  neuraltokenizer evaluate -m model.pt -t test.json
  echo "Hello world. Bye!" | neuraltokenizer tokenize -m model.pt
        """,
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    train_parser = subparsers.add_parser("train", help="Train a new model")
    train_parser.add_argument("-l", "--language", default=bm.UNKNOWN_LANGUAGE,
                              help='The language ISO 639-1 code ("--" for unknown language)')
    train_parser.add_argument("-m", "--model-path", required=True,
                              help="The file path in which to serialize the model")
    train_parser.add_argument("-t", "--training-set-path", required=True,
                              help="The file path of the training dataset")
    train_parser.add_argument("-v", "--validation-set-path",
                              help="The file path of the validation dataset (validated after each epoch)")
    train_parser.add_argument("-e", "--epochs", type=int, default=NUM_EPOCHS,
                              help=f"The number of training epochs (default: {NUM_EPOCHS})")
    train_parser.add_argument("-b", "--batch-size", type=int, default=BATCH_SIZE,
                              help=f"The number of segments of a training batch (default: {BATCH_SIZE})")
    train_parser.add_argument("--max-segment-size", type=int, default=bm.MAX_SEGMENT_SIZE,
                              help=f"The max size of the text window (default: {bm.MAX_SEGMENT_SIZE})")
    train_parser.add_argument("--char-embeddings-size", type=int, default=bm.CHAR_EMBEDDINGS_SIZE,
                              help=f"The size of the char embeddings (default: {bm.CHAR_EMBEDDINGS_SIZE})")
    train_parser.add_argument("--hidden-size", type=int, default=bm.HIDDEN_SIZE,
                              help=f"The size of the hidden arrays of the encoder (default: {bm.HIDDEN_SIZE})")
    train_parser.add_argument("--rnn-type", choices=sorted(bm.RNN_TYPES), default=bm.RNN_TYPE,
                              help=f"The recurrent layer of the encoder (default: {bm.RNN_TYPE})")
    train_parser.add_argument("--dropout", type=float, default=bm.DROPOUT_PROB,
                              help=f"The dropout of the encoder output (default: {bm.DROPOUT_PROB})")
    train_parser.add_argument("--no-shuffle", action="store_true",
                              help="Do not shuffle the training sentences before each epoch")
    train_parser.add_argument("--seed", type=int, help="Random seed for weights and shuffling")

    evaluate_parser = subparsers.add_parser("evaluate", help="Evaluate a model on a test set")
    evaluate_parser.add_argument("-m", "--model-path", required=True, help="The file path of the model")
    evaluate_parser.add_argument("-t", "--test-set-path", required=True, help="The file path of the test dataset")
    evaluate_parser.add_argument("--json", action="store_true", help="Print the statistics as JSON")

    tokenize_parser = subparsers.add_parser("tokenize", help="Tokenize a text")
    tokenize_parser.add_argument("-m", "--model-path", required=True, help="The file path of the model")
    tokenize_parser.add_argument("-i", "--input", help="The file to tokenize (default: stdin)")
    tokenize_parser.add_argument("--json", action="store_true", help="Print sentences and tokens as JSON")

    return parser


def load_model(model_path):
    logger.info("Loading tokenizer model from '%s'", model_path)
    model = BoundaryModel.load(model_path)
    logger.info("Model:\n%s", model.describe())
    return model


def run_train(args):
    if args.seed is not None:
        torch.manual_seed(args.seed)

    training_set = read_dataset(args.training_set_path)
    validation_set = read_dataset(args.validation_set_path) if args.validation_set_path else None

    print("\nClass distribution of the training set:")
    print(dataset_statistics(training_set).to_string())

    model = BoundaryModel(
        language=args.language.lower(),
        max_segment_size=args.max_segment_size,
        char_embeddings_size=args.char_embeddings_size,
        hidden_size=args.hidden_size,
        rnn_type=args.rnn_type,
        dropout_prob=args.dropout)

    helper = TrainingHelper(model)

    helper.train(
        training_set,
        batch_size=args.batch_size,
        epochs=args.epochs,
        validation_set=validation_set,
        shuffler=None if args.no_shuffle else np.random.default_rng(args.seed),
        model_path=args.model_path)

    print("\n-- MODEL\n")
    print(model.describe())


def run_evaluate(args):
    model = load_model(args.model_path)
    test_set = read_dataset(args.test_set_path)

    logger.info("Start validation on %d test sentences (language: %s)", len(test_set), model.language)

    stats = Evaluator(model).evaluate(test_set)

    if args.json:
        print(json.dumps(stats.to_dict(), indent=2))
    else:
        print(f"Tokens accuracy     ->   {stats.tokens}")
        print(f"Sentences accuracy  ->   {stats.sentences}")
        print(f"Overall accuracy    ->   {100.0 * stats.accuracy:.2f}%")


def run_tokenize(args):
    model = load_model(args.model_path)

    if args.input:
        with open(args.input, 'r', encoding='utf-8') as f:
            text = f.read()
    else:
        text = sys.stdin.read()

    sentences = NeuralTokenizer(model).tokenize(text)

    if args.json:
        print(json.dumps([sentence_to_dict(s) for s in sentences], ensure_ascii=False, indent=2))
    else:
        for sentence in sentences:
            print(" ".join(token.form for token in sentence.tokens))


def sentence_to_dict(sentence):
    return {
        'index': sentence.position.index,
        'start': sentence.position.start,
        'end': sentence.position.end,
        'text': sentence.text,
        'tokens': [
            {
                'index': token.position.index,
                'form': token.form,
                'start': token.position.start,
                'end': token.position.end,
            }
            for token in sentence.tokens
        ],
    }


COMMANDS = {
    'train': run_train,
    'evaluate': run_evaluate,
    'tokenize': run_tokenize,
}


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        COMMANDS[args.command](args)
    except FileNotFoundError as e:
        logger.error("File not found: %s", e)
        return 1
    except (InvalidDataset, ModelFileError, ValueError) as e:
        logger.error("%s", e)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
