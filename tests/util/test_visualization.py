import numpy as np

from hsreg.util.visualization import flow_to_color


def test_flow_to_color_shape_and_range():
    u = np.linspace(-2, 2, 64).reshape(8, 8)
    v = np.flipud(u)
    rgb = flow_to_color(u, v)
    assert rgb.shape == (8, 8, 3)
    assert rgb.dtype == np.float32
    assert rgb.min() >= 0.0 and rgb.max() <= 1.0


def test_zero_flow_is_black():
    zeros = np.zeros((5, 5))
    np.testing.assert_array_equal(flow_to_color(zeros, zeros, max_magnitude=1.0), 0.0)
