"""
Unit tests for the elementary transfer functions.
"""

import numpy as np
import pytest

from fem_frequency_response.core.frequency_response import (
    BesselFilter,
    FirstOrderLowPass,
    LogSpaceRange,
    PICompensator,
    logspace,
)


def control_response(system, frequencies_hz):
    s = 2j * np.pi * np.asarray(frequencies_hz)
    return np.squeeze(system(s, squeeze=False))


class TestFirstOrderLowPass:
    """Test suite for FirstOrderLowPass."""

    def test_corner_frequency(self):
        folp = FirstOrderLowPass()
        wc = 2.0 * np.pi * 4e3
        h = folp.frequency_response(4e3)[0]
        assert abs(h) == pytest.approx(wc / np.sqrt(2), rel=1e-12)
        assert np.angle(h) == pytest.approx(np.pi / 4, rel=1e-12)

    def test_low_frequency_derivative(self):
        h = FirstOrderLowPass().frequency_response(1.0)[0]
        assert h == pytest.approx(2j * np.pi, rel=1e-3)


class TestBesselFilter:
    """Test suite for BesselFilter."""

    def test_unit_dc_gain(self):
        h = BesselFilter().frequency_response(1e-3)[0]
        assert abs(h) == pytest.approx(1.0, rel=1e-9)

    def test_low_pass(self):
        magnitude = np.abs(BesselFilter().frequency_response(LogSpaceRange(1.0, 8e3, 1000)))
        assert np.all(np.diff(magnitude) < 0)
        assert magnitude[-1] < 0.1

    def test_fourth_order_roll_off(self):
        h = BesselFilter().frequency_response([1e6, 1e7])
        assert abs(h[0]) / abs(h[1]) == pytest.approx(1e4, rel=1e-3)

    def test_coefficient_count(self):
        with pytest.raises(ValueError):
            BesselFilter(beta=[1.0, 2.0, 1.0])


class TestPICompensator:
    """Test suite for PICompensator."""

    def test_formula(self):
        pic = PICompensator()
        jw = 2j * np.pi * 50.0
        assert pic.j_omega(jw) == 7e4 + 5e5 / jw

    def test_high_frequency_proportional(self):
        h = PICompensator().frequency_response(1e6)[0]
        assert h.real == pytest.approx(7e4)
        assert abs(h.imag) < 1.0


class TestControlCrossCheck:
    """Agreement with python-control transfer functions."""

    @pytest.mark.parametrize('element', [FirstOrderLowPass(), BesselFilter(), PICompensator()])
    def test_to_control(self, element):
        grid = logspace(1.0, 8e3, 200)
        np.testing.assert_allclose(element.frequency_response(grid),
                                   control_response(element.to_control(),
                                                    grid.frequencies_hz),
                                   rtol=1e-9)

    def test_derivatives(self):
        pic = PICompensator()
        jw = 2j * np.pi * np.array([1.0, 10.0])
        np.testing.assert_allclose(pic.j_omega_first(jw), (7e4 + 5e5 / jw) * jw)
        np.testing.assert_allclose(pic.j_omega_second(jw), (7e4 + 5e5 / jw) * jw**2)
