from collections import namedtuple

import numpy as np
from scipy.stats import kstest

from deltar.utils import ComputationError, check_confidence_level


# Summary of a vector of offset realizations. ci_low and ci_high bound the
# interval that contains the true offset with the requested probability,
# p_value is from a KS test of normality.
OffsetStatistics = namedtuple('OffsetStatistics',
                              ['mean', 'median', 'sd', 'ci_low', 'ci_high', 'p_value'])


def summarize(sample, confidence_level: float = 0.95) -> OffsetStatistics:
    """
    Summarize offset realizations.

    Parameters
    ----------
    sample : array-like
        Offset realizations, one per Monte Carlo iteration.
    confidence_level : float
        Probability mass of the two-sided interval, strictly between 0 and 1.

    Returns
    -------
    OffsetStatistics
        Mean, median, sample standard deviation, the interval limits given
        by the (1 - CI)/2 and 1 - (1 - CI)/2 quantiles (linear interpolation
        between order statistics) and the p value of a two-sided
        Kolmogorov-Smirnov test against the normal distribution with the
        sample's own mean and sd.
    """
    confidence_level = check_confidence_level(confidence_level)
    x = np.asarray(sample, dtype=float).ravel()
    if x.size < 2:
        raise ComputationError(
            f"At least two realizations are needed to summarize a sample, got {x.size}.")
    if not np.all(np.isfinite(x)):
        raise ComputationError("Sample contains non-finite values.")

    mean = float(np.mean(x))
    sd = float(np.std(x, ddof=1))
    if not sd > 0:
        raise ComputationError("Sample has no spread; the normality test is undefined.")

    alpha = (1 - confidence_level) / 2
    ci_low, median, ci_high = np.quantile(x, [alpha, 0.5, 1 - alpha])
    p_value = kstest(x, 'norm', args=(mean, sd)).pvalue

    return OffsetStatistics(mean=mean, median=float(median), sd=sd,
                            ci_low=float(ci_low), ci_high=float(ci_high),
                            p_value=float(p_value))
