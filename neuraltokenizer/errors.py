# In neuraltokenizer/errors.py


class NeuralTokenizerError(Exception):
    """Base class for the errors raised by this package."""


class InvalidDataset(NeuralTokenizerError):
    """A dataset sentence is malformed or its text and classification lengths differ."""


class ModelFileError(NeuralTokenizerError):
    """A serialized model could not be read back."""
