"""Precursor mass error with correction for the selection of a non-monoisotopic peak.

The instrument may have picked the 2nd or 3rd isotopic peak as precursor instead of the monoisotopic one.
Mass differences larger than the isotope tolerance are therefore corrected in multiples of the C13-C12 mass difference.
"""

import math
from dataclasses import dataclass

from alphapsm.mass import MASS_C13_C12, mass_to_ppm, mz_to_neutral_mass

ISOTOPE_TOLERANCE = 0.5


@dataclass(frozen=True)
class MassError:
    """Signed precursor mass error (observed - theoretical) after isotope correction.

    Parameters
    ----------
    error_da : float
        Mass error in Da.

    error_ppm : float
        Mass error in ppm of the theoretical mass, 0 if the theoretical mass is unknown.

    isotope_error : int
        Number of C13 isotopes the observed precursor was corrected by, negative for corrections towards higher masses.

    """

    error_da: float = 0.0
    error_ppm: float = 0.0
    isotope_error: int = 0


NO_MASS_ERROR = MassError()


def correct_isotope_error(
    delta: float,
    isotope_mass: float = MASS_C13_C12,
    tolerance: float = ISOTOPE_TOLERANCE,
) -> tuple[float, int]:
    """Shift a mass difference by whole isotopes until it lies within [-tolerance, tolerance].

    Parameters
    ----------
    delta : float
        Observed minus theoretical neutral mass in Da.

    isotope_mass : float, default MASS_C13_C12
        Mass difference between two isotopic peaks.

    tolerance : float, default 0.5
        Largest absolute mass difference that is not corrected.

    Returns
    -------
    tuple[float, int]
        Corrected mass difference and the number of isotopes it was corrected by.
    """
    isotope_count = 0

    if delta >= -tolerance:
        while delta > tolerance:
            delta -= isotope_mass
            isotope_count += 1
    else:
        while delta < -tolerance:
            delta += isotope_mass
            isotope_count -= 1

    return delta, isotope_count


def corrected_mass_error(
    observed_mass: float | str, theoretical_mass: float
) -> MassError:
    """Mass error between an observed and a theoretical neutral mass.

    Unparsable observed masses result in `NO_MASS_ERROR`, a theoretical mass of 0 in an error of 0 ppm.
    """
    try:
        observed_mass = float(observed_mass)
    except (TypeError, ValueError):
        return NO_MASS_ERROR

    if not math.isfinite(observed_mass) or not math.isfinite(theoretical_mass):
        return NO_MASS_ERROR

    delta, isotope_count = correct_isotope_error(observed_mass - theoretical_mass)

    return MassError(
        error_da=delta,
        error_ppm=mass_to_ppm(delta, theoretical_mass),
        isotope_error=isotope_count,
    )


def corrected_error(
    observed_mz: float | str, charge: int, theoretical_mass: float
) -> MassError:
    """Mass error between an observed precursor m/z and the theoretical neutral mass of the peptide.

    Parameters
    ----------
    observed_mz : float or str
        Observed precursor m/z, unparsable values result in no mass error.

    charge : int
        Precursor charge, values below 1 result in no mass error.

    theoretical_mass : float
        Theoretical neutral monoisotopic mass of the peptide.

    Returns
    -------
    MassError
    """
    try:
        observed_mz = float(observed_mz)
    except (TypeError, ValueError):
        return NO_MASS_ERROR

    if charge < 1:
        return NO_MASS_ERROR

    return corrected_mass_error(
        mz_to_neutral_mass(observed_mz, charge), theoretical_mass
    )
