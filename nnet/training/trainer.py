"""Deterministic mini-batch SGD training loop for NNet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Protocol, Sequence

import numpy as np

from ..core.network import Network
from ..core.types import Array, BatchSlice, EpochResult
from ..data.dataset import Dataset

DEFAULT_SEED = 0


class BatchProcessor(Protocol):
    """Strategy invoked once per mini-batch slice."""

    def update_batch(self, network: Network, data: Dataset, batch: BatchSlice) -> None:
        """Consume the samples of ``batch``."""


@dataclass
class GradientDescentUpdate:
    """Accumulate per-sample gradients over a slice and apply one SGD step."""

    def update_batch(self, network: Network, data: Dataset, batch: BatchSlice) -> None:
        if batch.size == 0:
            raise ValueError("cannot update on an empty mini-batch")

        network.zero_gradients()
        for index in batch:
            sample, label = data.sample(index)
            network.backpropagate(sample, label)

        # Average over the slice actually processed, not the nominal batch size.
        network.apply_gradients(network.eta / batch.size)


def process_mini_batches(
    network: Network,
    data: Dataset,
    rand_index: Array,
    processor: BatchProcessor,
    *,
    verbose: bool = False,
) -> int:
    """Hand consecutive windows of ``rand_index`` to ``processor``.

    Windows hold ``network.mini_batch_size`` indices; a shorter trailing
    window carries any remainder.  Returns the number of windows processed.
    """

    items = data.items
    batch_size = network.mini_batch_size
    if items == 0:
        raise ValueError("cannot train on an empty dataset")
    if batch_size <= 0:
        raise ValueError("mini_batch_size must be positive")
    if rand_index.shape[0] < items:
        raise ValueError(
            f"index permutation has {rand_index.shape[0]} entries for {items} items"
        )

    batches = items // batch_size
    if verbose:
        print(f"Iterating over {batches} batches...")

    offset = 0
    for _ in range(batches):
        processor.update_batch(
            network, data, BatchSlice(rand_index[offset : offset + batch_size], offset)
        )
        offset += batch_size

    remainder = items % batch_size
    if remainder:
        processor.update_batch(
            network, data, BatchSlice(rand_index[offset : offset + remainder], offset)
        )
    return batches + (1 if remainder else 0)


def evaluate(network: Network, test_data: Dataset) -> int:
    """Count held-out samples whose arg-max output matches the label."""

    correct = 0
    for i in range(test_data.items):
        sample, label = test_data.sample(i)
        network.bind_input(sample)
        if network.evaluate_output() == label:
            correct += 1
    return correct


class Trainer:
    """Run seeded SGD epochs and report held-out accuracy after each."""

    def __init__(
        self,
        network: Network,
        processor: BatchProcessor | None = None,
        callbacks: Sequence[object] | None = None,
        *,
        seed: int = DEFAULT_SEED,
        verbose: bool = True,
    ) -> None:
        self.network = network
        self.processor = processor or GradientDescentUpdate()
        self.callbacks = list(callbacks or [])
        self.seed = seed
        self.verbose = verbose

    def run(self, data: Dataset, test_data: Dataset) -> List[EpochResult]:
        if data.items == 0:
            raise ValueError("cannot train on an empty dataset")

        rng = np.random.default_rng(self.seed)
        # Index array used to address images and labels in random order.
        rand_index = np.arange(data.items, dtype=np.int64)

        history: List[EpochResult] = []
        for epoch in range(self.network.epochs):
            rng.shuffle(rand_index)
            process_mini_batches(
                self.network, data, rand_index, self.processor, verbose=self.verbose
            )

            result = EpochResult(
                epoch=epoch,
                correct=evaluate(self.network, test_data),
                total=test_data.items,
            )
            # Release the borrowed held-out sample.
            self.network.outputs.unbind()
            history.append(result)
            if self.verbose:
                print(f"Epoch {epoch} complete, {result.correct}/{result.total} correct.")
            self._emit_epoch(epoch, result)
        return history

    def _emit_epoch(self, epoch: int, result: EpochResult) -> None:
        metrics = result.as_metrics()
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


def sgd(
    network: Network,
    data: Dataset,
    test_data: Dataset,
    *,
    seed: int = DEFAULT_SEED,
    callbacks: Sequence[object] | None = None,
    verbose: bool = True,
) -> List[EpochResult]:
    """Train ``network`` for ``network.epochs`` epochs."""

    trainer = Trainer(network, callbacks=callbacks, seed=seed, verbose=verbose)
    return trainer.run(data, test_data)


__all__ = [
    "BatchProcessor",
    "GradientDescentUpdate",
    "Trainer",
    "evaluate",
    "process_mini_batches",
    "sgd",
]
