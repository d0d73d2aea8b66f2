import numpy as np
import pytest

from neurostudio.core.activations import REGISTRY, get_activation
from neurostudio.core.errors import UnknownActivation


def test_registry_names():
    assert list(REGISTRY.names()) == ["relu", "tanh"]
    assert "TANH" in REGISTRY


def test_tanh_and_derivative():
    act = get_activation("tanh")
    z = np.array([-2.0, 0.0, 0.5])
    np.testing.assert_allclose(act(z), np.tanh(z))
    np.testing.assert_allclose(act.deriv(z), 1.0 - np.tanh(z) ** 2)
    assert act.deriv(np.array([0.0]))[0] == 1.0


def test_relu_subgradient_at_zero_is_zero():
    act = get_activation("relu")
    z = np.array([-1.0, 0.0, 2.5])
    np.testing.assert_array_equal(act(z), [0.0, 0.0, 2.5])
    np.testing.assert_array_equal(act.deriv(z), [0.0, 0.0, 1.0])
    assert act.label == "ReLU"


def test_unknown_activation_is_rejected():
    with pytest.raises(UnknownActivation) as excinfo:
        get_activation("sigmoid")
    assert isinstance(excinfo.value, KeyError)
    assert "sigmoid" in str(excinfo.value)
    assert excinfo.value.context == {"name": "sigmoid"}
