"""
Conversion of uncertain dates into distributions of calendar age.

A date is turned into one of two age sources:

* an AgeGrid, a discrete probability mass function over calendar years BP,
  used for known collection dates and for terrestrial radiocarbon dates
  calibrated against a curve;
* a NormalLaw, used for isotopic (e.g. 230Th/234U) ages that are already
  calendar ages with a symmetric uncertainty.
"""

from __future__ import annotations

from collections import namedtuple
from enum import Enum
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np
from scipy.stats import t as student_t

from deltar.config import get_option
from deltar.constants import BP_REFERENCE_YEAR
from deltar.curves import CalibrationTable, DataRegistry, default_registry
from deltar.utils import ComputationError, ConfigurationError


# A radiocarbon or isotopic age: mean and one-sigma uncertainty
DatedMeasurement = namedtuple('DatedMeasurement', ['value', 'sd'])


class NormalLaw(namedtuple('NormalLaw', ['mean', 'sd'])):
    """A continuous normal distribution of calendar ages."""

    def sample(self, rng: np.random.Generator, size: int) -> np.ndarray:
        return rng.normal(self.mean, self.sd, size)


class AgeGrid:
    """A discrete probability distribution over calendar years.

    Weights are normalized to sum to one on construction. Both arrays are
    read-only.
    """

    def __init__(self, years: Sequence[float], weights: Sequence[float]):
        years = np.array(years, dtype=float).ravel()
        weights = np.array(weights, dtype=float).ravel()
        if years.size == 0:
            raise ComputationError("An age grid needs at least one calendar year.")
        if years.size != weights.size:
            raise ConfigurationError("Age grid years and weights differ in length.")
        if np.any(weights < 0) or not np.all(np.isfinite(weights)):
            raise ConfigurationError("Age grid weights must be finite and non-negative.")
        total = weights.sum()
        if total <= 0:
            raise ComputationError("Age grid carries no probability mass.")
        weights = weights / total
        years.setflags(write=False)
        weights.setflags(write=False)
        self.years = years
        self.weights = weights

    def __len__(self):
        return self.years.size

    def __repr__(self):
        return f"AgeGrid(n_years={len(self)}, mean={self.mean():.1f})"

    def mean(self) -> float:
        return float(np.dot(self.years, self.weights))


AgeSource = Union[AgeGrid, NormalLaw]


class CalibrationMode(Enum):
    """How the true age of a sample is turned into calendar years."""
    DIRECT = 'direct'
    NORMAL = 'normal'
    CURVE = 'curve'


def convolve_with_curve(measurement: DatedMeasurement, curve: CalibrationTable,
                        probability_floor: Optional[float] = None,
                        t_dof: Optional[float] = None) -> AgeGrid:
    """Calibrate a terrestrial radiocarbon date against a calibration curve.

    The curve is linearly interpolated onto a one year grid over its span.
    Each year is weighted by the Student-t density of the standardized
    difference between the measured age and the curve, using the measured
    and curve uncertainties combined in quadrature. Years whose normalized
    probability does not exceed the floor are dropped and the rest are
    renormalized.

    Parameters
    ----------
    measurement : DatedMeasurement
        Radiocarbon age and its one-sigma uncertainty.
    curve : CalibrationTable
        The terrestrial calibration curve.
    probability_floor : float, optional
        Minimum probability a year must exceed to be kept. Defaults to the
        configured probability_floor.
    t_dof : float, optional
        Degrees of freedom of the Student-t likelihood. Defaults to the
        configured t_dof.

    Returns
    -------
    AgeGrid
        Calendar years BP and their probabilities.
    """
    if probability_floor is None:
        probability_floor = get_option('probability_floor')
    if t_dof is None:
        t_dof = get_option('t_dof')
    if not measurement.sd > 0:
        raise ConfigurationError(
            f"A radiocarbon date needs a positive sd to be calibrated, got {measurement.sd}")

    lo, hi = curve.span
    grid = np.arange(np.floor(lo), np.ceil(hi) + 1)
    order = curve.order
    mu = np.interp(grid, curve.years[order], curve.ages[order])
    sigma = np.interp(grid, curve.years[order], curve.age_sds[order])
    tau = np.sqrt(measurement.sd ** 2 + sigma ** 2)
    dens = student_t.pdf((measurement.value - mu) / tau, df=t_dof)

    total = dens.sum()
    if not total > 0:
        raise ComputationError(
            f"Date {measurement.value} ± {measurement.sd} has no probability on curve '{curve.name}'.")
    dens = dens / total
    keep = dens > probability_floor
    if not keep.any():
        raise ComputationError(
            f"No calendar year of curve '{curve.name}' exceeds probability {probability_floor} "
            f"for date {measurement.value} ± {measurement.sd}.")
    return AgeGrid(grid[keep], dens[keep])


Convolver = Callable[[DatedMeasurement, CalibrationTable], AgeGrid]


class AgeCalibrator:
    """Turns a dated measurement into an age source for resampling."""

    def __init__(self, registry: Optional[DataRegistry] = None,
                 convolver: Optional[Convolver] = None,
                 terrestrial_curves: Optional[Sequence[str]] = None):
        """
        Args:
        registry: DataRegistry
            Source of the terrestrial calibration curves. Defaults to the
            process-wide registry.
        convolver: callable
            Takes a DatedMeasurement and a CalibrationTable and returns an
            AgeGrid. Defaults to convolve_with_curve.
        terrestrial_curves: sequence of str
            Curve names accepted as calibration modes. Defaults to the
            configured terrestrial_curves.
        """
        self.registry = registry if registry is not None else default_registry()
        self.convolver = convolver if convolver is not None else convolve_with_curve
        if terrestrial_curves is None:
            terrestrial_curves = get_option('terrestrial_curves')
        self.terrestrial_curves = tuple(terrestrial_curves)

    def resolve_mode(self, name: str) -> Tuple[CalibrationMode, Optional[str]]:
        """Map a user supplied calibration name to a mode and curve name.

        'direct' and 'normal' select those modes, a terrestrial curve name
        selects CURVE with that curve.
        """
        if name in (CalibrationMode.DIRECT.value, CalibrationMode.NORMAL.value):
            return CalibrationMode(name), None
        if name in self.terrestrial_curves:
            return CalibrationMode.CURVE, name
        allowed = ', '.join(self.terrestrial_curves + ('normal', 'direct'))
        raise ConfigurationError(f"calCurves must be one of {allowed}; got {name!r}")

    def calibrate(self, measurement: DatedMeasurement,
                  mode: Union[CalibrationMode, str],
                  curve: Union[str, CalibrationTable, None] = None) -> AgeSource:
        """Produce the calendar age source for a measurement.

        DIRECT treats measurement.value as a collection year AD and returns a
        single year BP with weight one. NORMAL returns a NormalLaw with the
        measurement's mean and sd. CURVE calibrates the measurement against
        curve, given by name or as a table.
        """
        try:
            mode = CalibrationMode(mode)
        except ValueError:
            raise ConfigurationError(f"Unsupported calibration mode {mode!r}")

        if mode is CalibrationMode.DIRECT:
            return AgeGrid([BP_REFERENCE_YEAR - measurement.value], [1.0])
        if mode is CalibrationMode.NORMAL:
            return NormalLaw(float(measurement.value), float(measurement.sd))

        if curve is None:
            raise ConfigurationError("Calibration mode 'curve' needs a calibration curve.")
        if isinstance(curve, str):
            curve = self.registry.curve(curve)
        return self.convolver(measurement, curve)
