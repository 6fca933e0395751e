# In neuraltokenizer/boundary_model.py

import logging

import torch
import torch.nn as nn

from .errors import ModelFileError

logger = logging.getLogger(__name__)

# --- 1. Configuration and Constants ---
UNKNOWN_LANGUAGE = '--'
MAX_SEGMENT_SIZE = 50
CHAR_EMBEDDINGS_SIZE = 30
HIDDEN_SIZE = 100
RNN_TYPE = 'gru'
DROPOUT_PROB = 0.0
NUM_CLASSES = 3

# isLetter, isDigit, "end of abbreviation", "next end of abbreviation"
ADDING_FEATURES_SIZE = 4

PAD_TOKEN = '<PAD>'
UNK_TOKEN = '<UNK>'
PAD_IDX = 0
UNK_IDX = 1

# Writing systems without spaces between words: every char is a potential boundary
SCRIPTIO_CONTINUA_LANGUAGES = frozenset({'zh', 'ja', 'th', 'lo', 'km', 'my'})

RNN_TYPES = {
    'gru': nn.GRU,
    'lstm': nn.LSTM,
    'rnn': nn.RNN,  # tanh activation
}


def validate_language(language):
    if len(language) != 2:
        raise ValueError(f"The language iso-code must be 2 chars long, got '{language}'")
    if language != language.lower():
        raise ValueError(f"The language iso-code must be lower case, got '{language}'")


# --- 2. Define the BiRNN + Softmax Model Architecture ---
class BoundaryModel(nn.Module):
    """
    Character-level boundary classifier.

    Each char of a segment is represented by its embedding concatenated with
    the orthographic and abbreviation flags of the FeatureExtractor. A
    bidirectional recurrent encoder reads the whole segment and a feedforward
    layer scores the 3 classes of each char (token boundary, sentence
    boundary, no boundary).
    """

    def __init__(self, language=UNKNOWN_LANGUAGE, max_segment_size=MAX_SEGMENT_SIZE,
                 char_embeddings_size=CHAR_EMBEDDINGS_SIZE, hidden_size=HIDDEN_SIZE,
                 rnn_type=RNN_TYPE, dropout_prob=DROPOUT_PROB, char_to_idx=None):
        super(BoundaryModel, self).__init__()

        validate_language(language)
        if max_segment_size < 2:
            raise ValueError(f"The max segment size must be at least 2, got {max_segment_size}")
        if rnn_type not in RNN_TYPES:
            raise ValueError(f"Unknown rnn type '{rnn_type}', expected one of {sorted(RNN_TYPES)}")

        self.language = language
        self.max_segment_size = max_segment_size
        self.char_embeddings_size = char_embeddings_size
        self.hidden_size = hidden_size
        self.rnn_type = rnn_type
        self.dropout_prob = dropout_prob
        self.no_whitespace_segmentation = language in SCRIPTIO_CONTINUA_LANGUAGES

        if char_to_idx is None:
            char_to_idx = {PAD_TOKEN: PAD_IDX, UNK_TOKEN: UNK_IDX}
        self.char_to_idx = dict(char_to_idx)

        self.embedding = nn.Embedding(len(self.char_to_idx), char_embeddings_size, padding_idx=PAD_IDX)

        self.encoder = RNN_TYPES[rnn_type](
            input_size=char_embeddings_size + ADDING_FEATURES_SIZE,
            hidden_size=hidden_size,
            batch_first=True,
            bidirectional=True)

        self.dropout = nn.Dropout(dropout_prob)

        # Output is one score per class
        self.classifier = nn.Linear(2 * hidden_size, NUM_CLASSES)

    @property
    def device(self):
        return self.embedding.weight.device

    @property
    def vocab_size(self):
        return len(self.char_to_idx)

    def char_index(self, char):
        """Index of the embedding of `char`, falling back to <UNK> for unseen chars."""
        return self.char_to_idx.get(char, UNK_IDX)

    def encode_chars(self, chars):
        return torch.tensor([self.char_index(c) for c in chars], dtype=torch.long, device=self.device)

    def extend_vocabulary(self, chars):
        """
        Adds an embedding for each char not in the vocabulary yet (training only).
        Existing embeddings are preserved.

        Returns the number of chars added.
        """
        new_chars = sorted(set(chars) - self.char_to_idx.keys())

        if not new_chars:
            return 0

        for char in new_chars:
            self.char_to_idx[char] = len(self.char_to_idx)

        old_weight = self.embedding.weight.detach()
        embedding = nn.Embedding(len(self.char_to_idx), self.char_embeddings_size, padding_idx=PAD_IDX)
        embedding = embedding.to(old_weight.device)

        with torch.no_grad():
            embedding.weight[:old_weight.size(0)] = old_weight

        self.embedding = embedding
        logger.debug("Vocabulary extended with %d chars (size %d)", len(new_chars), self.vocab_size)

        return len(new_chars)

    def forward(self, char_ids, flags):
        # char_ids shape: [sequence_length] or [batch_size, sequence_length]
        single_sequence = char_ids.dim() == 1
        if single_sequence:
            char_ids = char_ids.unsqueeze(0)
            flags = flags.unsqueeze(0)

        embedded = self.embedding(char_ids)
        # embedded shape: [batch_size, sequence_length, char_embeddings_size]

        features = torch.cat([embedded, flags], dim=-1)
        # features shape: [batch_size, sequence_length, char_embeddings_size + 4]

        encoded, _ = self.encoder(features)
        # encoded shape: [batch_size, sequence_length, 2 * hidden_size]

        logits = self.classifier(self.dropout(encoded))
        # logits shape: [batch_size, sequence_length, 3]

        return logits.squeeze(0) if single_sequence else logits

    def predict_proba(self, char_ids, flags):
        return torch.softmax(self.forward(char_ids, flags), dim=-1)

    def hyperparameters(self):
        return {
            'language': self.language,
            'max_segment_size': self.max_segment_size,
            'char_embeddings_size': self.char_embeddings_size,
            'hidden_size': self.hidden_size,
            'rnn_type': self.rnn_type,
            'dropout_prob': self.dropout_prob,
        }

    def dump(self, file):
        """Serializes hyperparameters, vocabulary and weights to a path or a binary stream."""
        torch.save({
            'hyperparameters': self.hyperparameters(),
            'char_to_idx': self.char_to_idx,
            'state_dict': self.state_dict(),
        }, file)

    @classmethod
    def load(cls, file, map_location='cpu'):
        """Reads a model written by `dump`. A missing file raises FileNotFoundError."""
        try:
            checkpoint = torch.load(file, map_location=map_location, weights_only=True)
            model = cls(char_to_idx=checkpoint['char_to_idx'], **checkpoint['hyperparameters'])
            model.load_state_dict(checkpoint['state_dict'])
        except FileNotFoundError:
            raise
        except Exception as e:
            raise ModelFileError(f"Cannot load the tokenizer model: {e}") from e

        model.eval()
        return model

    def describe(self):
        return "\n".join([
            f"- Language: {self.language}",
            f"- BiRNN type: {self.rnn_type.upper()}",
            f"- BiRNN output size: {2 * self.hidden_size}",
            f"- Embeddings size: {self.char_embeddings_size}",
            f"- Vocabulary size: {self.vocab_size}",
            f"- Max segment size: {self.max_segment_size}",
        ])
