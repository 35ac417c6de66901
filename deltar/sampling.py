"""
Monte Carlo resampling of the marine reservoir offset.

Every iteration draws a calendar year from the age source, looks up the
modeled marine radiocarbon age nearest to that year on the reservoir curve,
draws a modeled age and a measured age from their normal distributions and
records measured minus modeled. Iterations are independent, so all N of
them are drawn at once as arrays.
"""

import warnings

import numpy as np

from deltar.calibration import AgeGrid, DatedMeasurement, NormalLaw
from deltar.curves import CalibrationTable
from deltar.utils import ComputationError, ConfigurationError, check_iterations


def as_generator(rng=None) -> np.random.Generator:
    """Return a numpy Generator from None, a seed, a SeedSequence or a Generator."""
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


class WeightedChoice:
    """Sampling with replacement from a finite set of values with given weights.

    Uniform draws are mapped through the cumulative weights by binary search.
    Values with zero weight are dropped up front and can never be drawn.
    """

    def __init__(self, values, weights):
        values = np.asarray(values, dtype=float).ravel()
        weights = np.asarray(weights, dtype=float).ravel()
        if values.size != weights.size:
            raise ConfigurationError("values and weights differ in length.")
        keep = weights > 0
        if not keep.any():
            raise ComputationError("Cannot sample from values that all have zero weight.")
        self.values = values[keep]
        self.cdf = np.cumsum(weights[keep])

    def draw(self, rng: np.random.Generator, size: int) -> np.ndarray:
        u = rng.random(size) * self.cdf[-1]
        idx = np.searchsorted(self.cdf, u, side='right')
        # u is strictly below cdf[-1] except for rounding
        idx = np.minimum(idx, self.values.size - 1)
        return self.values[idx]


class OffsetSampler:
    """Draws realizations of the offset against a reservoir calibration curve."""

    def __init__(self, reservoir_curve: CalibrationTable):
        self.reservoir_curve = reservoir_curve

    def draw_years(self, age_source, rng: np.random.Generator, n: int) -> np.ndarray:
        """Draw n calendar years from an AgeGrid or a NormalLaw."""
        if isinstance(age_source, AgeGrid):
            return WeightedChoice(age_source.years, age_source.weights).draw(rng, n)
        if isinstance(age_source, NormalLaw):
            return age_source.sample(rng, n)
        raise ConfigurationError(
            f"Age source must be an AgeGrid or a NormalLaw, got {type(age_source).__name__}")

    def sample(self, measured_age: DatedMeasurement, age_source, n, rng=None) -> np.ndarray:
        """Draw n independent realizations of measured minus modeled age.

        Args:
        measured_age: DatedMeasurement
            Measured radiocarbon age of the marine sample and its sd.
        age_source: AgeGrid or NormalLaw
            Distribution of the sample's calendar age in years BP.
        n: int
            Number of iterations, a positive integer.
        rng: numpy Generator, seed or None
            Source of randomness owned by this call.

        Returns:
        np.ndarray of length n.
        """
        n = check_iterations(n)
        if measured_age.sd < 0:
            raise ConfigurationError(f"Measured age sd must be non-negative, got {measured_age.sd}")
        rng = as_generator(rng)

        years = self.draw_years(age_source, rng, n)
        outside = ~self.reservoir_curve.covers(years)
        if outside.any():
            lo, hi = self.reservoir_curve.span
            warnings.warn(
                f"{outside.sum()} of {n} calendar years fall outside the span "
                f"({lo:g}, {hi:g}) of curve '{self.reservoir_curve.name}'; "
                "the nearest endpoint was used.", stacklevel=2)

        model_mean, model_sd = self.reservoir_curve.lookup_nearest(years)
        modeled = rng.normal(model_mean, model_sd)
        measured = rng.normal(measured_age.value, measured_age.sd, n)
        return measured - modeled


def sample_offsets(measured_age: DatedMeasurement, age_source,
                   reservoir_curve: CalibrationTable, n, rng=None) -> np.ndarray:
    """Convenience wrapper around OffsetSampler(reservoir_curve).sample()."""
    return OffsetSampler(reservoir_curve).sample(measured_age, age_source, n, rng=rng)
