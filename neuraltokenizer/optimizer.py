# In neuraltokenizer/optimizer.py

import torch.optim as optim

# --- Default update methods ---
ENCODER_LEARNING_RATE = 1e-3
CLASSIFIER_LEARNING_RATE = 1e-3
EMBEDDINGS_LEARNING_RATE = 1e-2


class TokenizerOptimizer:
    """
    Optimizers of the sub-networks of a BoundaryModel.

    Gradients are accumulated in the parameters by each backward and applied
    once with `update`, at the end of a batch of examples.
    """

    def __init__(self, model, encoder_lr=ENCODER_LEARNING_RATE, classifier_lr=CLASSIFIER_LEARNING_RATE,
                 embeddings_lr=EMBEDDINGS_LEARNING_RATE):
        self.model = model
        self.embeddings_lr = embeddings_lr

        self.networks_optimizer = optim.Adam([
            {'params': model.encoder.parameters(), 'lr': encoder_lr},
            {'params': model.classifier.parameters(), 'lr': classifier_lr},
        ])
        self.embeddings_optimizer = self._build_embeddings_optimizer()

        self.epochs_count = 0
        self.batches_count = 0
        self.examples_count = 0

    def _build_embeddings_optimizer(self):
        return optim.Adagrad(self.model.embedding.parameters(), lr=self.embeddings_lr)

    def refresh_embeddings(self):
        """Must be called after the vocabulary of the model has been extended."""
        self.embeddings_optimizer = self._build_embeddings_optimizer()

    def new_epoch(self):
        self.epochs_count += 1
        self.batches_count = 0

    def new_batch(self):
        self.batches_count += 1

    def new_example(self):
        self.examples_count += 1

    def zero_grad(self):
        self.networks_optimizer.zero_grad()
        self.embeddings_optimizer.zero_grad()

    def update(self):
        """Applies the accumulated gradients and resets them."""
        self.networks_optimizer.step()
        self.embeddings_optimizer.step()
        self.zero_grad()
