from __future__ import annotations

from typing import List

import numpy as np
import pytest

from nnet.core.network import Network
from nnet.core.types import INPUT_INDEX, BatchSlice
from nnet.data import Dataset, make_blobs
from nnet.training.trainer import (
    GradientDescentUpdate,
    Trainer,
    evaluate,
    process_mini_batches,
    sgd,
)


class _Capture:
    """Batch processor that records every slice it receives."""

    def __init__(self) -> None:
        self.slices: List[List[int]] = []
        self.offsets: List[int] = []

    def update_batch(self, network: Network, data: Dataset, batch: BatchSlice) -> None:
        self.slices.append(list(batch))
        self.offsets.append(batch.offset)


def _blank_dataset(items: int) -> Dataset:
    return Dataset(np.zeros((items, 2)), np.zeros(items, dtype=np.int64))


@pytest.mark.parametrize(
    "items, batch_size, index, expected_sizes",
    [
        (4, 2, [0, 1, 0, 1], [2, 2]),
        (8, 3, [0, 1, 2, 0, 1, 2, 0, 1], [3, 3, 2]),
        (5, 6, [0, 1, 2, 3, 4], [5]),
    ],
)
def test_mini_batch_partitioning(items, batch_size, index, expected_sizes):
    network = Network([2, 2], mini_batch_size=batch_size)
    capture = _Capture()

    count = process_mini_batches(
        network, _blank_dataset(items), np.array(index), capture
    )

    assert count == len(expected_sizes)
    assert [len(s) for s in capture.slices] == expected_sizes
    for batch in capture.slices:
        assert batch == list(range(len(batch)))
    assert capture.offsets == [batch_size * i for i in range(len(expected_sizes))]


def test_slices_are_views_of_the_permutation():
    network = Network([2, 2], mini_batch_size=2)
    rand_index = np.array([3, 1, 2, 0])
    seen = []

    class _Views:
        def update_batch(self, network, data, batch):
            seen.append(np.shares_memory(batch.indices, rand_index))

    process_mini_batches(network, _blank_dataset(4), rand_index, _Views())
    assert seen == [True, True]


def test_partitioning_preconditions():
    network = Network([2, 2], mini_batch_size=2)
    with pytest.raises(ValueError):
        process_mini_batches(network, _blank_dataset(0), np.array([], dtype=int), _Capture())
    with pytest.raises(ValueError):
        process_mini_batches(network, _blank_dataset(4), np.array([0, 1]), _Capture())
    with pytest.raises(ValueError):
        GradientDescentUpdate().update_batch(
            network, _blank_dataset(2), BatchSlice(np.array([], dtype=int), 0)
        )


@pytest.mark.parametrize("indices", [[2], [0, 1, 2]])
def test_update_averages_over_actual_slice_size(indices):
    data = make_blobs(3, 4, 2, seed=1)
    network = Network([4, 3, 2], eta=2.0, mini_batch_size=2)
    network.random_init(1.0, seed=3)
    weights_before, biases_before = network.state_arrays()

    network.zero_gradients()
    for i in indices:
        network.backpropagate(data.images[i], int(data.labels[i]))
    total_w = [g.copy() for g in network.nabla_w]
    total_b = [g.copy() for g in network.nabla_b]

    # Stale accumulator contents must be discarded by the update.
    for g in network.nabla_w:
        g.fill(123.0)
    GradientDescentUpdate().update_batch(network, data, BatchSlice(np.array(indices), 0))

    factor = network.eta / len(indices)
    for layer in range(2):
        assert np.allclose(network.weights[layer], weights_before[layer] - factor * total_w[layer])
        assert np.allclose(network.biases[layer], biases_before[layer] - factor * total_b[layer])


def test_evaluate_counts_matches_without_touching_parameters():
    network = Network([2, 2])
    network.weights[0][...] = [[10.0, 0.0], [0.0, 10.0]]
    data = Dataset(
        np.array([[1.0, 0.0], [0.0, 1.0], [1.0, 0.0]]),
        np.array([0, 1, 1]),
    )
    weights_before, _ = network.state_arrays()

    assert evaluate(network, data) == 2
    assert np.array_equal(network.weights[0], weights_before[0])


def test_sgd_learns_separable_blobs(capsys):
    dataset = make_blobs(600, 16, 4, noise=0.1, seed=0)
    train, test = dataset.partition(100)
    network = Network([16, 12, 4], eta=3.0, mini_batch_size=10, epochs=20)
    network.random_init(1.0, seed=0)

    history = sgd(network, train, test, seed=0)

    assert len(history) == 20
    assert all(item.total == 100 for item in history)
    assert history[-1].accuracy > 0.75
    out = capsys.readouterr().out
    assert "Iterating over 50 batches..." in out
    assert "Epoch 19 complete," in out


def test_trainer_reports_each_epoch_to_callbacks():
    dataset = make_blobs(60, 4, 2, seed=2)
    train, test = dataset.partition(20)
    network = Network([4, 3, 2], eta=1.0, mini_batch_size=7, epochs=3)
    network.random_init(seed=1)

    records = []

    class _OnEpoch:
        def on_epoch(self, epoch, metrics):
            records.append(("obj", epoch, metrics["total"]))

    def _plain(epoch, metrics):
        records.append(("fn", epoch, metrics["accuracy"]))

    history = Trainer(network, callbacks=[_OnEpoch(), _plain], seed=4, verbose=False).run(
        train, test
    )

    assert [r[1] for r in records if r[0] == "obj"] == [0, 1, 2]
    assert [r[2] for r in records if r[0] == "obj"] == [20.0, 20.0, 20.0]
    assert [r[2] for r in records if r[0] == "fn"] == [h.accuracy for h in history]


def test_trainer_uses_injected_processor():
    dataset = make_blobs(10, 4, 2, seed=0)
    network = Network([4, 2], mini_batch_size=4, epochs=2)
    capture = _Capture()

    Trainer(network, processor=capture, seed=0, verbose=False).run(dataset, dataset)

    assert [len(s) for s in capture.slices] == [4, 4, 2, 4, 4, 2]
    first_epoch = sorted(i for s in capture.slices[:3] for i in s)
    assert first_epoch == list(range(10))


def test_trainer_releases_input_slot_after_each_epoch():
    dataset = make_blobs(20, 4, 2, seed=0)
    train, test = dataset.partition(5)
    network = Network([4, 3, 2], mini_batch_size=4, epochs=1)
    network.random_init(seed=0)

    Trainer(network, seed=0, verbose=False).run(train, test)

    with pytest.raises(LookupError):
        network.outputs[INPUT_INDEX]
