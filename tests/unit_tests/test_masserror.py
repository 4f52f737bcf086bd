"""This module provides unit tests for alphapsm.masserror."""

import pytest

from alphapsm.mass import MASS_C13_C12, neutral_mass_to_mz
from alphapsm.masserror import (
    NO_MASS_ERROR,
    correct_isotope_error,
    corrected_error,
    corrected_mass_error,
)


def test_corrected_mass_error_selected_c13_peak():
    """Test an observed mass one isotope above the theoretical mass is corrected by one isotope."""
    # when
    mass_error = corrected_mass_error(1000.50, 999.50)

    # then
    assert mass_error.error_da == pytest.approx(1.0 - MASS_C13_C12)
    assert mass_error.error_da == pytest.approx(-0.00335, abs=1e-5)
    assert mass_error.isotope_error == 1
    assert mass_error.error_ppm == pytest.approx(
        (1.0 - MASS_C13_C12) / 999.50 * 1e6
    )


@pytest.mark.parametrize("delta", [-0.5, -0.2, 0.0, 0.3, 0.5])
def test_correct_isotope_error_within_tolerance_is_unchanged(delta):
    """Test deltas within the tolerance are returned unchanged."""
    assert correct_isotope_error(delta) == (delta, 0)


@pytest.mark.parametrize(
    "delta,expected_delta,expected_count",
    [
        (2.01, 2.01 - 2 * MASS_C13_C12, 2),
        (-1.0, -1.0 + MASS_C13_C12, -1),
        (-2.5, -2.5 + 2 * MASS_C13_C12, -2),
    ],
)
def test_correct_isotope_error(delta, expected_delta, expected_count):
    """Test deltas outside the tolerance are corrected in whole isotopes."""
    # when
    corrected, count = correct_isotope_error(delta)

    # then
    assert corrected == pytest.approx(expected_delta)
    assert count == expected_count
    assert -0.5 <= corrected <= 0.5


def test_corrected_mass_error_unparsable_observed_mass():
    """Test unparsable observed masses result in no mass error."""
    assert corrected_mass_error("n/a", 1000.0) == NO_MASS_ERROR


def test_corrected_mass_error_zero_theoretical_mass():
    """Test a theoretical mass of zero results in 0 ppm without raising."""
    # when
    mass_error = corrected_mass_error(0.2, 0.0)

    # then
    assert mass_error.error_da == pytest.approx(0.2)
    assert mass_error.error_ppm == 0.0


def test_corrected_error_from_mz():
    """Test the mass error of a precursor m/z matching the theoretical mass."""
    # given
    theoretical_mass = 1234.5678
    observed_mz = neutral_mass_to_mz(theoretical_mass + 0.001, 3)

    # when
    mass_error = corrected_error(observed_mz, 3, theoretical_mass)

    # then
    assert mass_error.error_da == pytest.approx(0.001)
    assert mass_error.error_ppm == pytest.approx(0.001 / theoretical_mass * 1e6)
    assert mass_error.isotope_error == 0


@pytest.mark.parametrize("observed_mz,charge", [("", 2), (500.0, 0), (None, 2)])
def test_corrected_error_invalid_input(observed_mz, charge):
    """Test missing m/z values and invalid charges result in no mass error."""
    assert corrected_error(observed_mz, charge, 1000.0) == NO_MASS_ERROR
