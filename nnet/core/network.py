"""Fully-connected sigmoid network trained by backpropagation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from . import linalg
from .activations import cost_derivative, sigmoid, sigmoid_prime
from .layers import MatrixArray, VectorArray, check_compatible
from .types import INPUT_INDEX, Array


@dataclass(eq=False)
class Network:
    """Layer arrays plus the SGD hyperparameters that drive them.

    ``layer_sizes[0]`` is the input dimensionality and ``layer_sizes[-1]`` the
    number of output classes.  Per-layer vectors exist for the ``L - 1``
    non-input layers only; the input sample is reachable through
    ``outputs[INPUT_INDEX]`` once bound.
    """

    layer_sizes: Sequence[int]
    eta: float = 3.0
    mini_batch_size: int = 10
    epochs: int = 10
    outputs: VectorArray = field(init=False, repr=False)
    zs: VectorArray = field(init=False, repr=False)
    biases: VectorArray = field(init=False, repr=False)
    nabla_b: VectorArray = field(init=False, repr=False)
    output_delta: VectorArray = field(init=False, repr=False)
    weights: MatrixArray = field(init=False, repr=False)
    nabla_w: MatrixArray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        sizes = [int(s) for s in self.layer_sizes]
        if len(sizes) < 2:
            raise ValueError("a network needs at least an input and an output layer")
        if any(s <= 0 for s in sizes):
            raise ValueError(f"layer sizes must be positive, got {sizes}")
        if self.mini_batch_size <= 0:
            raise ValueError("mini_batch_size must be positive")
        if self.epochs < 0:
            raise ValueError("epochs must be non-negative")
        self.layer_sizes = tuple(sizes)
        self._allocated = False
        self.allocate()

    # ------------------------------------------------------------------
    # Storage lifecycle

    def allocate(self) -> None:
        """Allocate every layer array; on failure nothing is assigned."""

        sizes = list(self.layer_sizes)
        dims = sizes[1:]
        weights = MatrixArray(sizes)
        nabla_w = MatrixArray(sizes)
        zs = VectorArray(dims)
        nabla_b = VectorArray(dims)
        output_delta = VectorArray(dims)
        biases = VectorArray(dims)
        outputs = VectorArray(dims, offset=1)
        scratch = VectorArray(dims)
        cost = linalg.vector_alloc(dims[-1])

        check_compatible(biases, weights)
        self.weights, self.nabla_w = weights, nabla_w
        self.zs, self.nabla_b, self.output_delta = zs, nabla_b, output_delta
        self.biases, self.outputs = biases, outputs
        self._scratch = scratch
        self._cost = cost
        self._allocated = True

    def free(self) -> None:
        if not self._allocated:
            return
        for array in (
            self.outputs,
            self.zs,
            self.nabla_b,
            self.output_delta,
            self.biases,
            self.weights,
            self.nabla_w,
            self._scratch,
        ):
            array.free()
        self._cost = None
        self._allocated = False

    @property
    def allocated(self) -> bool:
        return self._allocated

    def __enter__(self) -> "Network":
        return self

    def __exit__(self, *exc_info) -> None:
        self.free()

    def random_init(self, variance: float = 1.0, seed: int = 0) -> None:
        """Draw biases then weights from N(0, variance)."""

        rng = np.random.default_rng(seed)
        self.biases.set_rand(rng, variance)
        self.weights.set_rand(rng, variance)

    # ------------------------------------------------------------------
    # Forward / backward passes

    @property
    def output_index(self) -> int:
        return self.outputs.last_index

    def bind_input(self, sample: Array) -> None:
        if np.shape(sample) != (self.layer_sizes[0],):
            raise ValueError(
                f"input sample has shape {np.shape(sample)}, expected ({self.layer_sizes[0]},)"
            )
        self.outputs.bind(INPUT_INDEX, sample)

    def feed_forward(self, store_z: bool = False) -> None:
        """Propagate the bound input through every layer in place."""

        for i in range(len(self.layer_sizes) - 1):
            # a^l = sigmoid(w^l a^(l-1) + b^l)
            linalg.gemv(1.0, self.weights[i], self.outputs[i - 1], 0.0, self.outputs[i])
            linalg.axpy(1.0, self.biases[i], self.outputs[i])
            if store_z:
                self.zs[i][...] = self.outputs[i]
            linalg.vectorise(self.outputs[i], sigmoid)

    def get_output_error(self, label: int) -> None:
        last = self.output_index
        cost_derivative(self.outputs[last], label, out=self._cost)
        delta = self.output_delta[last]
        delta[...] = self.zs[last]
        linalg.vectorise(delta, sigmoid_prime)
        linalg.mul(delta, self._cost)

    def accumulate_gradients(self, layer: int) -> None:
        """Add this sample's contribution at ``layer`` to the accumulators."""

        linalg.axpy(1.0, self.output_delta[layer], self.nabla_b[layer])
        linalg.ger(
            1.0, self.output_delta[layer], self.outputs[layer - 1], self.nabla_w[layer]
        )

    def backpropagate(self, sample: Array, label: int) -> None:
        self.bind_input(sample)
        self.feed_forward(store_z=True)
        self.get_output_error(label)

        last = self.output_index
        self.accumulate_gradients(last)

        for l in range(last - 1, -1, -1):
            delta = self.output_delta[l]
            delta[...] = self.zs[l]
            linalg.vectorise(delta, sigmoid_prime)

            tmp = self._scratch[l]
            linalg.gemv(
                1.0, self.weights[l + 1], self.output_delta[l + 1], 0.0, tmp, trans=True
            )
            linalg.mul(delta, tmp)

            self.accumulate_gradients(l)

    def zero_gradients(self) -> None:
        self.nabla_b.zero()
        self.nabla_w.zero()

    def apply_gradients(self, scale_fac: float) -> None:
        """W -= scale_fac * nabla_w and b -= scale_fac * nabla_b, per layer."""

        for i in range(len(self.layer_sizes) - 1):
            linalg.scale(scale_fac, self.nabla_w[i])
            linalg.sub(self.weights[i], self.nabla_w[i])

            linalg.scale(scale_fac, self.nabla_b[i])
            linalg.sub(self.biases[i], self.nabla_b[i])

    def evaluate_output(self) -> int:
        self.feed_forward(store_z=False)
        # Lowest index wins on ties.
        return linalg.max_index(self.outputs[self.output_index])

    def predict(self, sample: Array) -> int:
        self.bind_input(sample)
        return self.evaluate_output()

    # ------------------------------------------------------------------
    # Introspection

    def parameter_count(self) -> int:
        sizes = self.layer_sizes
        return int(sum(sizes[i] * sizes[i + 1] + sizes[i + 1] for i in range(len(sizes) - 1)))

    def state_arrays(self) -> tuple[List[Array], List[Array]]:
        """Copies of the current weights and biases."""

        return [w.copy() for w in self.weights], [b.copy() for b in self.biases]


def feed_forward(network: Network, cache_preactivations: bool = False) -> None:
    network.feed_forward(store_z=cache_preactivations)


def backpropagate(network: Network, input_sample: Array, true_label: int) -> None:
    network.backpropagate(input_sample, true_label)


__all__ = ["Network", "feed_forward", "backpropagate"]
