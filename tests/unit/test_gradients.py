"""Analytic gradients against central differences."""

import numpy as np
import pytest

from neurostudio.core.network import Network
from neurostudio.core.rng import seed_global

H = 1e-6


def _numeric_gradients(net: Network, points, targets):
    weights = [W.copy() for W in net.weights]
    biases = [b.copy() for b in net.biases]

    def loss_with(ws, bs):
        net.load_parameters(ws, bs)
        return net.compute_batch_gradients(points, targets).loss

    grad_w = [np.zeros_like(W) for W in weights]
    grad_b = [np.zeros_like(b) for b in biases]
    for l, W in enumerate(weights):
        for idx in np.ndindex(W.shape):
            plus = [w.copy() for w in weights]
            minus = [w.copy() for w in weights]
            plus[l][idx] += H
            minus[l][idx] -= H
            grad_w[l][idx] = (loss_with(plus, biases) - loss_with(minus, biases)) / (2 * H)
    for l, b in enumerate(biases):
        for j in range(b.shape[0]):
            plus = [v.copy() for v in biases]
            minus = [v.copy() for v in biases]
            plus[l][j] += H
            minus[l][j] -= H
            grad_b[l][j] = (loss_with(weights, plus) - loss_with(weights, minus)) / (2 * H)
    net.load_parameters(weights, biases)
    return grad_w, grad_b


def _batch(seed: int, n: int, task: str):
    rng = np.random.default_rng(seed)
    points = rng.uniform(-2.0, 2.0, size=(n, 2))
    if task == "classification":
        targets = (points[:, 0] * points[:, 1] < 0).astype(np.float64)
    else:
        targets = 0.6 * points[:, 0] - 0.3 * points[:, 1] + 0.2
    return points, targets


@pytest.mark.parametrize(
    "sizes,activation,task",
    [
        ((2, 3, 1), "tanh", "classification"),
        ((2, 3, 1), "tanh", "regression"),
        ((2, 4, 3, 1), "tanh", "classification"),
        ((2, 5, 4, 3, 1), "tanh", "regression"),
        ((2, 4, 1), "relu", "regression"),
        ((2, 1), "tanh", "classification"),
    ],
)
def test_backprop_matches_central_differences(sizes, activation, task):
    seed_global(7)
    net = Network(sizes, activation=activation, task=task)
    points, targets = _batch(3, 12, task)
    analytic = net.compute_batch_gradients(points, targets)
    numeric_w, numeric_b = _numeric_gradients(net, points, targets)
    for got, want in zip(analytic.weights, numeric_w):
        np.testing.assert_allclose(got, want, rtol=1e-4, atol=1e-7)
    for got, want in zip(analytic.biases, numeric_b):
        np.testing.assert_allclose(got, want, rtol=1e-4, atol=1e-7)


def test_gradients_are_batch_averages():
    seed_global(5)
    net = Network((2, 3, 1), task="regression")
    points, targets = _batch(1, 6, "regression")
    full = net.compute_batch_gradients(points, targets)
    singles = [net.compute_batch_gradients(points[i : i + 1], targets[i : i + 1]) for i in range(6)]
    assert full.loss == pytest.approx(np.mean([g.loss for g in singles]))
    for l in range(2):
        np.testing.assert_allclose(full.weights[l], np.mean([g.weights[l] for g in singles], axis=0))
        np.testing.assert_allclose(full.biases[l], np.mean([g.biases[l] for g in singles], axis=0))


def test_output_delta_is_prediction_minus_target():
    seed_global(6)
    for task in ("classification", "regression"):
        net = Network((2, 1), task=task)
        point = np.array([[0.4, -1.1]])
        target = np.array([1.0])
        yhat = net.forward(0.4, -1.1).yhat
        grads = net.compute_batch_gradients(point, target)
        np.testing.assert_allclose(grads.biases[0], [yhat - 1.0])
        np.testing.assert_allclose(grads.weights[0][:, 0], point[0] * (yhat - 1.0))


def test_gradient_shapes_match_parameters():
    seed_global(0)
    net = Network((2, 7, 5, 1))
    points, targets = _batch(0, 4, "classification")
    grads = net.compute_batch_gradients(points, targets)
    assert [g.shape for g in grads.weights] == [W.shape for W in net.weights]
    assert [g.shape for g in grads.biases] == [b.shape for b in net.biases]
