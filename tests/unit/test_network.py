import dataclasses
import math

import numpy as np
import pytest

from neurostudio.core.errors import EmptyBatch, InvalidArchitecture, UnknownActivation
from neurostudio.core.network import Network, layer_sizes, sigmoid
from neurostudio.core.rng import seed_global
from neurostudio.core.types import DataPoint, TaskKind


def _worked_network() -> Network:
    net = Network((2, 2, 1), activation="tanh", task="regression")
    net.load_parameters(
        weights=[[[1.0, 0.5], [-1.0, 0.5]], [[1.0], [1.0]]],
        biases=[[0.0, 0.0], [0.0]],
    )
    return net


@pytest.mark.parametrize("sizes", [(2, 1), (2, 3, 1), (2, 8, 8, 1), (2, 1, 32, 4, 1)])
def test_parameter_shapes_follow_layer_sizes(sizes):
    seed_global(0)
    net = Network(sizes)
    assert net.layer_sizes == sizes
    assert len(net.weights) == len(sizes) - 1
    for l, (W, b) in enumerate(zip(net.weights, net.biases)):
        assert W.shape == (sizes[l], sizes[l + 1])
        assert b.shape == (sizes[l + 1],)
    assert net.parameter_count() == sum(
        sizes[l] * sizes[l + 1] + sizes[l + 1] for l in range(len(sizes) - 1)
    )


@pytest.mark.parametrize("sizes", [(2,), (), (2, 0, 1), (2, -3, 1), (3, 4, 1), (2, 4, 2), (2, 2.5, 1)])
def test_invalid_architectures_are_rejected(sizes):
    with pytest.raises(InvalidArchitecture):
        Network(sizes)


def test_failed_reinitialisation_keeps_parameters():
    seed_global(0)
    net = Network((2, 3, 1))
    weights = net.weights
    with pytest.raises(InvalidArchitecture):
        net.initialize((2, 0, 1))
    with pytest.raises(UnknownActivation):
        net.initialize((2, 5, 1), activation="softplus")
    assert net.layer_sizes == (2, 3, 1)
    assert net.weights == weights


def test_reinitialisation_replaces_every_layer():
    seed_global(0)
    net = Network((2, 3, 1))
    old = net.weights
    net.initialize(layer_sizes([4, 4]))
    assert net.layer_sizes == (2, 4, 4, 1)
    assert all(new is not prev for new, prev in zip(net.weights, old))


def test_unknown_activation_and_task():
    with pytest.raises(UnknownActivation):
        Network((2, 3, 1), activation="swish")
    with pytest.raises(ValueError):
        Network((2, 3, 1), task="multiclass")


def test_initialisation_scale():
    seed_global(3)
    net = Network((2, 400, 400, 1))
    hidden = net.weights[1]
    assert abs(float(np.std(hidden)) - 1.0 / math.sqrt(400)) < 0.005
    assert abs(float(np.std(np.concatenate(net.biases[:2])))) < 0.08


def test_worked_forward_example():
    trace = _worked_network().forward(1.0, 0.0)
    np.testing.assert_array_equal(trace.activations[0], [1.0, 0.0])
    np.testing.assert_allclose(trace.pre_activations[0], [1.0, 0.5])
    np.testing.assert_allclose(trace.activations[1], [math.tanh(1.0), math.tanh(0.5)])
    assert trace.yhat == pytest.approx(math.tanh(1.0) + math.tanh(0.5), rel=1e-15)
    assert len(trace.activations) == 3
    assert len(trace.pre_activations) == 2


def test_weights_are_indexed_input_by_output():
    net = Network((2, 2, 1), activation="tanh", task="regression")
    net.load_parameters(
        weights=[[[1.0, -1.0], [0.5, 0.5]], [[1.0], [1.0]]],
        biases=[[0.0, 0.0], [0.0]],
    )
    trace = net.forward(1.0, 0.0)
    np.testing.assert_allclose(trace.pre_activations[0], [1.0, -1.0])


def test_classification_output_is_sigmoid():
    net = Network((2, 1), task=TaskKind.CLASSIFICATION)
    net.load_parameters(weights=[[[2.0], [-1.0]]], biases=[[0.5]])
    trace = net.forward(1.0, 1.0)
    assert trace.pre_activations[0][0] == pytest.approx(1.5)
    assert trace.yhat == pytest.approx(1.0 / (1.0 + math.exp(-1.5)))


def test_sigmoid_is_stable_for_large_inputs():
    with np.errstate(over="raise"):
        values = sigmoid(np.array([-1000.0, -30.0, 0.0, 30.0, 1000.0]))
    assert values[0] == 0.0
    assert values[2] == 0.5
    assert values[-1] == 1.0
    assert np.all(np.diff(values) >= 0)


def test_forward_is_deterministic_and_pure():
    seed_global(1)
    net = Network((2, 5, 5, 1), activation="relu")
    weights = [W.copy() for W in net.weights]
    first = net.forward(0.3, -0.7)
    second = net.forward(0.3, -0.7)
    assert first.yhat == second.yhat
    for W, before in zip(net.weights, weights):
        np.testing.assert_array_equal(W, before)


def test_predict_batch_matches_forward():
    seed_global(2)
    net = Network((2, 4, 3, 1), activation="tanh", task="classification")
    points = [(0.1, 0.2), (-1.5, 0.7), (2.0, -2.0)]
    preds = net.predict_batch(points)
    expected = [net.forward(x, y).yhat for x, y in points]
    np.testing.assert_allclose(preds, expected, rtol=1e-12)
    dp = net.predict_batch([DataPoint(0.1, 0.2, 1.0)])
    np.testing.assert_allclose(dp, expected[:1], rtol=1e-12)
    assert net.predict_batch([]).shape == (0,)


def test_parameters_are_read_only_snapshots():
    seed_global(0)
    net = Network((2, 3, 1))
    W = net.weights[0]
    with pytest.raises(ValueError):
        W[0, 0] = 10.0
    net.step([(1.0, 1.0)], [1.0], 0.5)
    assert net.weights[0] is not W


def test_step_applies_gradient_descent_update():
    seed_global(4)
    net = Network((2, 3, 1), task="regression")
    points = np.array([[0.5, -0.2], [1.0, 1.0], [-0.3, 0.8]])
    targets = np.array([0.2, -0.4, 1.0])
    before_w = [W.copy() for W in net.weights]
    before_b = [b.copy() for b in net.biases]
    grads = net.compute_batch_gradients(points, targets)
    loss = net.step(points, targets, 0.1)
    assert loss == grads.loss
    for W, W0, g in zip(net.weights, before_w, grads.weights):
        np.testing.assert_allclose(W, W0 - 0.1 * g)
    for b, b0, g in zip(net.biases, before_b, grads.biases):
        np.testing.assert_allclose(b, b0 - 0.1 * g)


def test_empty_batch_is_rejected_without_mutation():
    seed_global(0)
    net = Network((2, 3, 1))
    weights, biases = net.weights, net.biases
    with pytest.raises(EmptyBatch):
        net.compute_batch_gradients([], [])
    with pytest.raises(EmptyBatch):
        net.step([], [], 0.1)
    with pytest.raises(EmptyBatch):
        net.step(np.zeros((0, 2)), np.zeros(0), 0.1)
    assert net.weights == weights
    assert net.biases == biases


def test_batch_argument_errors():
    seed_global(0)
    net = Network((2, 3, 1))
    with pytest.raises(ValueError):
        net.compute_batch_gradients([(0.0, 1.0)], [1.0, 0.0])
    with pytest.raises(ValueError):
        net.step([(0.0, 1.0)], [1.0], 0.0)
    with pytest.raises(ValueError):
        net.predict_batch(np.zeros((3, 3)))


def test_classification_loss_uses_epsilon_offsets():
    net = Network((2, 1), task="classification")
    net.load_parameters(weights=[[[0.0], [0.0]]], biases=[[1000.0]])
    grads = net.compute_batch_gradients([(0.0, 0.0)], [0.0])
    assert np.isfinite(grads.loss)
    assert grads.loss == pytest.approx(-math.log(1e-8), rel=1e-6)


def test_load_parameters_validates_shapes():
    net = Network((2, 3, 1))
    with pytest.raises(InvalidArchitecture):
        net.load_parameters(weights=[np.zeros((2, 3))], biases=[np.zeros(3)])
    with pytest.raises(InvalidArchitecture):
        net.load_parameters(
            weights=[np.zeros((3, 2)), np.zeros((3, 1))],
            biases=[np.zeros(3), np.zeros(1)],
        )


def test_describe():
    net = Network((2, 6, 1), activation="relu", task="regression")
    description = net.describe()
    assert description.layer_sizes == (2, 6, 1)
    assert description.activation == "relu"
    assert description.task is TaskKind.REGRESSION
    assert description.parameter_count == 2 * 6 + 6 + 6 + 1
    assert [f.name for f in dataclasses.fields(description)] == [
        "layer_sizes",
        "activation",
        "task",
        "parameter_count",
    ]
