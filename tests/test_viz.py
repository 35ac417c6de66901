import unittest

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from deltar.batch import BatchResult
from deltar.constants import STAT_COLUMNS
from deltar.utils import ConfigurationError
from deltar.viz import plot_densities, plot_offset_histogram, plot_quantiles


def make_result():
    rng = np.random.default_rng(0)
    draws = pd.DataFrame({'P1': rng.normal(300, 40, 500),
                          'P2': rng.normal(150, 30, 500),
                          'P3': rng.normal(220, 60, 500)})
    stats = pd.DataFrame(
        [[d.mean(), d.median(), d.std(), d.quantile(0.025), d.quantile(0.975), 0.5]
         for _, d in draws.items()],
        index=draws.columns, columns=STAT_COLUMNS)
    return BatchResult(statistics=stats, draws=draws)


class TestPlots(unittest.TestCase):

    def tearDown(self):
        plt.close('all')

    def test_histogram(self):
        delta = np.random.default_rng(1).normal(276, 46, 1000)
        ax = plot_offset_histogram(delta, name='TERRA-072305a15')
        self.assertEqual(ax.get_title(), 'TERRA-072305a15')
        self.assertEqual(len(ax.lines), 1)

    def test_quantiles_ordered_by_median(self):
        ax = plot_quantiles(make_result(), name='Adak', lim=(100, 200))
        labels = [t.get_text() for t in ax.texts]
        self.assertEqual(labels, ['P2', 'P3', 'P1'])
        lo, hi = ax.get_xlim()
        stats = make_result().statistics
        self.assertAlmostEqual(lo, stats['ci_low'].min() - 100)
        self.assertAlmostEqual(hi, stats['ci_high'].max() + 200)

    def test_densities(self):
        _, ax = plt.subplots()
        out = plot_densities(make_result(), name='Adak', ax=ax)
        self.assertIs(out, ax)
        self.assertEqual(len(ax.lines), 3)
        legend = [t.get_text() for t in ax.get_legend().get_texts()]
        self.assertEqual(legend, ['P1', 'P2', 'P3'])

    def test_bad_lim(self):
        with self.assertRaises(ConfigurationError):
            plot_quantiles(make_result(), lim=(1, 2, 3))
        with self.assertRaises(ConfigurationError):
            plot_densities(make_result(), lim=(1,))


if __name__ == '__main__':
    unittest.main()
