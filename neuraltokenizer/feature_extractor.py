# In neuraltokenizer/feature_extractor.py

import numpy as np
import torch

from .abbreviations import load_abbreviations


class FeatureExtractor:
    """
    Builds the input features of the chars of a text for a BoundaryModel.

    The features of a char are its embedding followed by 4 flags:
    is letter, is digit, is the end of an abbreviation, the next char is the
    end of an abbreviation. The flags are computed here, the embedding lookup
    happens inside the model (see `segment_features`).
    """

    def __init__(self, model):
        self.model = model
        # None for languages without an abbreviations resource: the flags stay 0
        self.abbreviations = load_abbreviations(model.language)

    def is_end_of_abbreviation(self, text, focus_index):
        if self.abbreviations is None:
            return False
        return self.abbreviations.is_end_of_abbreviation(text, focus_index)

    def char_flags(self, text, focus_index):
        """The 4 non-embedding features of the char at `focus_index`."""
        char = text[focus_index]
        next_end_of_abbreviation = (
            focus_index < len(text) - 1 and self.is_end_of_abbreviation(text, focus_index + 1))

        return [
            1.0 if char.isalpha() else 0.0,
            1.0 if char.isdigit() else 0.0,
            1.0 if self.is_end_of_abbreviation(text, focus_index) else 0.0,
            1.0 if next_end_of_abbreviation else 0.0,
        ]

    def segment_features(self, text, start, end):
        """
        Features of the segment text[start:end] (end exclusive).

        Returns the tensor of the char indices (for the model embeddings) and
        the [end - start, 4] tensor of the flags.
        """
        flags = np.array([self.char_flags(text, i) for i in range(start, end)], dtype=np.float32)
        flags = flags.reshape(end - start, 4)

        char_ids = self.model.encode_chars(text[start:end])

        return char_ids, torch.from_numpy(flags).to(self.model.device)

    def extract(self, text, focus_index):
        """The full feature vector of the char at `focus_index`, as seen by the encoder."""
        if not 0 <= focus_index < len(text):
            raise IndexError(f"Focus index {focus_index} out of range for a text of {len(text)} chars")

        char_ids, flags = self.segment_features(text, focus_index, focus_index + 1)

        with torch.no_grad():
            embedding = self.model.embedding(char_ids)

        return torch.cat([embedding, flags], dim=-1)[0]
