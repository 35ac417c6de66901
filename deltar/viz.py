import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from scipy.stats import norm

from deltar.constants import DENSITY_POINTS
from deltar.utils import ConfigurationError

XLABEL = 'Delta R, years'


def color_palette():
    """
    Returns a dictionary of the PBOC color palette
    """
    return {'green': '#7AA974', 'light_green': '#BFD598',
            'yellow': '#EAC264', 'blue': '#738FC1', 'light_blue': '#A9BFE3',
            'red': '#D56C55', 'light_red': '#E8B19D', 'purple': '#AB85AC',
            'dark_green': '#7E9D90', 'dark_brown': '#905426',
            'dark_blue': '#535D87', 'dark_grey': '#363737', 'dark_purple': '#887191'}


def _check_lim(lim):
    if len(lim) != 2:
        raise ConfigurationError(f"lim must be a vector of length 2, got {lim!r}")
    return float(lim[0]), float(lim[1])


def plot_offset_histogram(delta, name='', ax=None):
    """Density histogram of offset realizations with the fitted normal curve."""
    if ax is None:
        _, ax = plt.subplots()
    delta = np.asarray(delta, dtype=float)
    colors = color_palette()

    xs = np.linspace(delta.min(), delta.max(), DENSITY_POINTS)
    pdf = norm.pdf(xs, delta.mean(), delta.std(ddof=1))
    ax.hist(delta, bins='auto', density=True, color=colors['light_blue'],
            edgecolor=colors['dark_blue'])
    ax.plot(xs, pdf, color=colors['red'])
    ax.set_title(name)
    ax.set_xlabel(XLABEL)
    ax.set_ylabel('Density')
    return ax


def plot_quantiles(result, name='', lim=(0, 0), ax=None):
    """Medians with their intervals, one row per sample ordered by median.

    result is a BatchResult (or anything with a statistics DataFrame).
    lim widens the x axis to the left and right.
    """
    lo_pad, hi_pad = _check_lim(lim)
    if ax is None:
        _, ax = plt.subplots()
    stats = result.statistics.sort_values('median')
    n = np.arange(1, len(stats) + 1)

    err = np.vstack([stats['median'] - stats['ci_low'], stats['ci_high'] - stats['median']])
    ax.errorbar(stats['median'], n, xerr=err, fmt='o', capsize=4,
                color=color_palette()['dark_grey'])
    for y, (label, row) in zip(n, stats.iterrows()):
        ax.annotate(str(label), (row['ci_high'], y), xytext=(4, 0),
                    textcoords='offset points', va='center')

    ax.set_xlim(stats['ci_low'].min() - lo_pad, stats['ci_high'].max() + hi_pad)
    ax.set_yticks([])
    ax.set_title(name)
    ax.set_xlabel(XLABEL)
    sns.despine(ax=ax, left=True)
    return ax


def plot_densities(result, name='', lim=(0, 0), ax=None):
    """Overlaid kernel density curves of the offset draws of every sample."""
    lo_pad, hi_pad = _check_lim(lim)
    if ax is None:
        _, ax = plt.subplots()
    draws: pd.DataFrame = result.draws

    for col in draws.columns:
        sns.kdeplot(x=draws[col].values, ax=ax, label=str(col))
    values = draws.values
    ax.set_xlim(values.min() - lo_pad, values.max() + hi_pad)
    ax.set_title(name)
    ax.set_xlabel(XLABEL)
    ax.legend(loc='upper left')
    return ax
