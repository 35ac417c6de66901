"""
Delta R for a single marine sample.

Delta R is the difference between the measured radiocarbon age of a marine
sample and the modeled marine radiocarbon age at the sample's true calendar
age (Stuiver and Braziunas, 1993). The true age is known either from the
collection date of the sample (shell_offset) or from a second date of the
same context, a 230Th/234U age or a terrestrial radiocarbon age
(pair_offset).

Results differ slightly between calls with the same arguments unless a seed
is given, since they come from Monte Carlo resampling.
"""

from __future__ import annotations

from collections import namedtuple
from typing import Optional

from deltar.calibration import AgeCalibrator, CalibrationMode, DatedMeasurement
from deltar.config import get_option
from deltar.constants import PAIR_ROWS, SHELL_ROWS
from deltar.curves import CalibrationTable, DataRegistry, default_registry
from deltar.sampling import OffsetSampler
from deltar.statistics import summarize
from deltar.utils import check_confidence_level, check_dates, check_iterations
from deltar.viz import plot_offset_histogram


# statistics is an OffsetStatistics, delta the array of N realizations
OffsetResult = namedtuple('OffsetResult', ['name', 'statistics', 'delta'])


def resolve_run_options(n, confidence_level):
    """Fill in configured defaults and validate N and the confidence level."""
    if n is None:
        n = get_option('iterations')
    if confidence_level is None:
        confidence_level = get_option('confidence_level')
    return check_iterations(n), check_confidence_level(confidence_level)


def reservoir_curve_from(registry: DataRegistry, reservoir_curve=None) -> CalibrationTable:
    """The reservoir curve given by name or table, defaulting to the configured one."""
    if reservoir_curve is None:
        reservoir_curve = get_option('reservoir_curve')
    if isinstance(reservoir_curve, CalibrationTable):
        return reservoir_curve
    return registry.curve(reservoir_curve)


def estimate_offset(measured_age: DatedMeasurement, age_source,
                    reservoir_curve: CalibrationTable, n: int,
                    confidence_level: float, rng=None, name: str = '') -> OffsetResult:
    """Resample the offset and summarize it."""
    delta = OffsetSampler(reservoir_curve).sample(measured_age, age_source, n, rng=rng)
    return OffsetResult(name, summarize(delta, confidence_level), delta)


def shell_offset(dates, name: str = '', n=None, confidence_level=None, rng=None,
                 registry: Optional[DataRegistry] = None, reservoir_curve=None,
                 make_plot: bool = False) -> OffsetResult:
    """
    Delta R of a marine sample with a known collection date.

    Parameters
    ----------
    dates : sequence of 3 numbers
        Collection date (calendar year AD), measured radiocarbon age and its sd.
    name : str
        Sample identifier, used as the plot title.
    n : int, optional
        Number of iterations. Defaults to the configured iterations.
    confidence_level : float, optional
        Probability of the reported interval. Defaults to the configured value.
    rng : numpy Generator, seed or None
        Source of randomness.
    registry : DataRegistry, optional
        Source of the reservoir curve.
    reservoir_curve : str or CalibrationTable, optional
        Marine calibration curve. Defaults to the configured reservoir_curve.
    make_plot : bool
        Draw a histogram of the realizations with the fitted normal curve.

    Returns
    -------
    OffsetResult
    """
    n, confidence_level = resolve_run_options(n, confidence_level)
    year, age, sd = check_dates(dates, SHELL_ROWS)
    registry = registry if registry is not None else default_registry()
    reservoir = reservoir_curve_from(registry, reservoir_curve)

    source = AgeCalibrator(registry).calibrate(DatedMeasurement(year, 0.0), CalibrationMode.DIRECT)
    result = estimate_offset(DatedMeasurement(age, sd), source, reservoir, n,
                             confidence_level, rng=rng, name=name)
    if make_plot:
        plot_offset_histogram(result.delta, name=name)
    return result


def pair_offset(dates, name: str = '', n=None, confidence_level=None, cal_curves=None,
                rng=None, registry: Optional[DataRegistry] = None, reservoir_curve=None,
                calibrator: Optional[AgeCalibrator] = None,
                make_plot: bool = False) -> OffsetResult:
    """
    Delta R of a marine sample whose true age is known from a second date.

    Parameters
    ----------
    dates : sequence of 4 numbers
        True age (terrestrial radiocarbon or 230Th age) and its sd, then the
        measured marine radiocarbon age and its sd.
    cal_curves : str, optional
        'normal' when the true age needs no calibration (e.g. 230Th dates),
        or the name of a terrestrial calibration curve such as 'intcal13'
        or 'shcal13'. Defaults to the configured calibration_curve.
    calibrator : AgeCalibrator, optional
        Overrides the calibrator built from the registry.

    The remaining parameters are as in shell_offset.

    Returns
    -------
    OffsetResult
    """
    n, confidence_level = resolve_run_options(n, confidence_level)
    true_age, true_sd, age, sd = check_dates(dates, PAIR_ROWS)
    registry = registry if registry is not None else default_registry()
    if calibrator is None:
        calibrator = AgeCalibrator(registry)
    if cal_curves is None:
        cal_curves = get_option('calibration_curve')
    mode, curve = calibrator.resolve_mode(cal_curves)
    reservoir = reservoir_curve_from(registry, reservoir_curve)

    source = calibrator.calibrate(DatedMeasurement(true_age, true_sd), mode, curve)
    result = estimate_offset(DatedMeasurement(age, sd), source, reservoir, n,
                             confidence_level, rng=rng, name=name)
    if make_plot:
        plot_offset_histogram(result.delta, name=name)
    return result
