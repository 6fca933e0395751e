# In neuraltokenizer/trainer.py

import logging
import time

import torch
import torch.nn as nn
from sklearn.metrics import precision_recall_fscore_support
from tqdm import tqdm

from .dataset import merge_dataset, shuffle_dataset
from .evaluator import Evaluator
from .feature_extractor import FeatureExtractor
from .optimizer import TokenizerOptimizer
from .structures import CharClass

logger = logging.getLogger(__name__)

# --- 1. Configuration ---
BATCH_SIZE = 1
NUM_EPOCHS = 3


# --- 2. Gold-driven segmentation ---
def get_middle_token_boundary(segment_gold):
    """
    Returns the index of the boundary of the token that crosses the middle of
    the segment, or -1 if the segment has no token boundaries.
    The second half is searched first, starting from the middle, then the
    first half backwards.
    """
    segment_size = len(segment_gold)
    middle = segment_size // 2

    for i in range(middle, segment_size):
        if segment_gold[i] == CharClass.TOKEN_BOUNDARY:
            return i

    for i in range(min(middle, segment_size - 1), -1, -1):
        if segment_gold[i] == CharClass.TOKEN_BOUNDARY:
            return i

    return -1


def get_shift_char_index(segment_gold):
    """
    Returns the index of the last char to remove from the segment when
    shifting it to the left: the last sentence boundary if any, otherwise the
    boundary of the middle token, otherwise the middle of the segment.
    """
    for i in range(len(segment_gold) - 1, -1, -1):
        if segment_gold[i] == CharClass.SENTENCE_BOUNDARY:
            return i

    middle_token_boundary = get_middle_token_boundary(segment_gold)

    return middle_token_boundary if middle_token_boundary >= 0 else len(segment_gold) // 2


# --- 3. Training helper ---
class TrainingHelper:
    """
    Trains a BoundaryModel on the segments of a dataset, extracted shifting
    the merged text as the tokenizer would do with a perfect classifier.
    """

    def __init__(self, model, optimizer=None, max_segment_size=None):
        self.model = model
        self.max_segment_size = max_segment_size or model.max_segment_size
        self.feature_extractor = FeatureExtractor(model)
        self.optimizer = optimizer or TokenizerOptimizer(model)
        # Summed over the chars: the error of each char is its predicted distribution minus the gold one-hot
        self.criterion = nn.CrossEntropyLoss(reduction='sum')
        self.evaluator = Evaluator(model, max_segment_size=self.max_segment_size)
        self.best_accuracy = 0.0

    def train(self, training_set, batch_size=BATCH_SIZE, epochs=NUM_EPOCHS, validation_set=None,
              shuffler=None, model_path=None):
        """
        Trains the model for the given epochs, updating the parameters every
        `batch_size` segments.

        shuffler: a numpy Generator used to shuffle the sentences before each
                  epoch (no shuffling if None)
        model_path: where to save the model. With a validation set only the
                    model with the best accuracy is saved, otherwise it is saved
                    after each epoch.

        Returns the list of the epochs summaries.
        """
        if batch_size < 1:
            raise ValueError(f"The batch size must be positive, got {batch_size}")

        logger.info("Start training on %d sentences", len(training_set))

        self.best_accuracy = 0.0
        self.init_embeddings(training_set)

        history = []

        for epoch in range(epochs):
            logger.info("Epoch %d of %d", epoch + 1, epochs)
            start_time = time.time()

            dataset = shuffle_dataset(training_set, shuffler) if shuffler is not None else training_set
            text, gold_classification = merge_dataset(dataset)

            summary = self.train_epoch(text, gold_classification, batch_size)
            summary['epoch'] = epoch + 1

            logger.info("Train Loss: %.4f | Train P: %.4f | Train R: %.4f | Train F1: %.4f",
                        summary['loss'], summary['precision'], summary['recall'], summary['f1'])
            logger.info("Elapsed time: %.3f s", time.time() - start_time)

            if validation_set is not None:
                summary['validation'] = self.validate_and_save_model(validation_set, model_path)
            elif model_path is not None:
                self.model.dump(model_path)
                logger.info("Model saved to '%s'", model_path)

            history.append(summary)

        return history

    def init_embeddings(self, training_set):
        """Associates an embedding to each char of the training set."""
        chars = set()
        for text, _ in training_set:
            chars.update(text)

        if self.model.extend_vocabulary(chars) > 0:
            self.optimizer.refresh_embeddings()

    def train_epoch(self, text, gold_classification, batch_size):
        self.model.train()
        self.optimizer.new_epoch()
        self.optimizer.zero_grad()

        examples_count = 0
        total_loss = 0.0
        all_preds = []
        all_labels = []

        for start, end in self.iter_segments(text, gold_classification):
            examples_count += 1

            loss, preds = self.learn_from_example(text, gold_classification, start, end)

            total_loss += loss
            all_preds.extend(preds)
            all_labels.extend(gold_classification[start:end])

            if examples_count % batch_size == 0:
                self.end_of_batch()

        if examples_count % batch_size > 0:  # last batch with the remaining examples
            self.end_of_batch()

        if examples_count == 0:
            logger.warning("No training segments: the training set has no text")
            precision = recall = f1 = 0.0
        else:
            precision, recall, f1, _ = precision_recall_fscore_support(
                all_labels, all_preds, labels=[int(c) for c in CharClass], average='macro', zero_division=0)

        return {
            'examples': examples_count,
            'loss': total_loss / examples_count if examples_count > 0 else 0.0,
            'precision': precision,
            'recall': recall,
            'f1': f1,
        }

    def iter_segments(self, text, gold_classification):
        """Yields the (start, end) indices (end exclusive) of the training segments."""
        start = 0

        with tqdm(total=len(text), desc="Training", unit="char") as progress:
            while start < len(text):
                end = min(start + self.max_segment_size, len(text))

                yield start, end

                shift = get_shift_char_index(gold_classification[start:end]) + 1
                progress.update(shift)
                start += shift

    def learn_from_example(self, text, gold_classification, start, end):
        """
        Classifies the segment text[start:end] and propagates the errors
        against its gold classification. The gradients accumulate until the
        end of the batch.

        Returns the loss and the predicted classes.
        """
        self.optimizer.new_example()

        char_ids, flags = self.feature_extractor.segment_features(text, start, end)
        target = torch.tensor(gold_classification[start:end], dtype=torch.long, device=self.model.device)

        logits = self.model(char_ids, flags)
        loss = self.criterion(logits, target)
        loss.backward()

        return loss.item(), logits.argmax(dim=-1).tolist()

    def end_of_batch(self):
        self.optimizer.new_batch()
        self.optimizer.update()

    def validate_and_save_model(self, validation_set, model_path):
        logger.info("Epoch validation on %d sentences", len(validation_set))

        stats = self.evaluator.evaluate(validation_set)

        logger.info("Tokens accuracy     ->   %s", stats.tokens)
        logger.info("Sentences accuracy  ->   %s", stats.sentences)

        if model_path is not None and stats.accuracy > self.best_accuracy:
            self.best_accuracy = stats.accuracy
            self.model.dump(model_path)
            logger.info("NEW BEST ACCURACY! Model saved to '%s'", model_path)

        return stats
