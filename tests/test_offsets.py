import unittest
from unittest.mock import patch

import numpy as np

from deltar.curves import CalibrationTable, DataRegistry
from deltar.offsets import OffsetResult, pair_offset, shell_offset
from deltar.utils import ConfigurationError


def make_registry():
    years = np.arange(0, 5001)
    marine = CalibrationTable(years, years + 400.0, np.zeros(years.shape), name='marine13')
    intcal = CalibrationTable(years, years.astype(float), np.full(years.shape, 15.0), name='intcal13')
    return DataRegistry(data_dir='unused', curves={'marine13': marine, 'intcal13': intcal})


class TestShellOffset(unittest.TestCase):

    def setUp(self):
        self.registry = make_registry()

    def test_result(self):
        res = shell_offset([1906, 826, 35], name='TERRA-072305a15', n=5000, rng=1,
                           registry=self.registry)
        self.assertIsInstance(res, OffsetResult)
        self.assertEqual(res.name, 'TERRA-072305a15')
        self.assertEqual(res.delta.shape, (5000,))
        # curve age at 44 BP is 444 with no uncertainty
        self.assertAlmostEqual(res.statistics.mean, 826 - 444, delta=3)
        self.assertAlmostEqual(res.statistics.sd, 35, delta=2)

    def test_reservoir_curve_override(self):
        curve = CalibrationTable([0, 100], [100, 200], [0, 0], name='flat')
        res = shell_offset([1906, 826, 35], n=2000, rng=2, registry=self.registry,
                           reservoir_curve=curve)
        self.assertAlmostEqual(res.statistics.mean, 726, delta=4)

    def test_bad_dates(self):
        for dates in ([1906, 826], [1906, 826, 35, 1], [1906, 826, -35], [1906, None, 35]):
            with self.assertRaises(ConfigurationError):
                shell_offset(dates, n=10, registry=self.registry)

    def test_bad_n_and_ci(self):
        with self.assertRaises(ConfigurationError):
            shell_offset([1906, 826, 35], n=0, registry=self.registry)
        with self.assertRaises(ConfigurationError):
            shell_offset([1906, 826, 35], n=-5, registry=self.registry)
        with self.assertRaises(ConfigurationError):
            shell_offset([1906, 826, 35], n=10, confidence_level=1.2, registry=self.registry)

    @patch('deltar.offsets.plot_offset_histogram')
    def test_make_plot(self, mock_plot):
        res = shell_offset([1906, 826, 35], name='Ps', n=100, rng=0,
                           registry=self.registry, make_plot=True)
        mock_plot.assert_called_once()
        self.assertIs(mock_plot.call_args[0][0], res.delta)


class TestPairOffset(unittest.TestCase):

    def setUp(self):
        self.registry = make_registry()

    def test_normal(self):
        res = pair_offset([2170, 15, 2550, 30], name='M2-3', n=20000, rng=3,
                          cal_curves='normal', registry=self.registry)
        self.assertAlmostEqual(res.statistics.mean, 2550 - 2170 - 400, delta=2)
        self.assertAlmostEqual(res.statistics.sd, np.sqrt(15 ** 2 + 30 ** 2), delta=1.5)

    def test_terrestrial_curve(self):
        res = pair_offset([835, 20, 1765, 20], name='Adak, pair 9', n=5000, rng=4,
                          cal_curves='intcal13', registry=self.registry)
        self.assertAlmostEqual(res.statistics.mean, 1765 - 835 - 400, delta=5)
        self.assertLessEqual(res.statistics.ci_low, res.statistics.median)
        self.assertLessEqual(res.statistics.median, res.statistics.ci_high)

    def test_unknown_curve(self):
        with self.assertRaises(ConfigurationError):
            pair_offset([835, 20, 1765, 20], n=10, cal_curves='intcal98', registry=self.registry)

    def test_bad_dates(self):
        with self.assertRaises(ConfigurationError):
            pair_offset([835, 20, 1765], n=10, cal_curves='normal', registry=self.registry)

    def test_seeded_runs_match(self):
        a = pair_offset([2170, 15, 2550, 30], n=300, rng=9, cal_curves='normal', registry=self.registry)
        b = pair_offset([2170, 15, 2550, 30], n=300, rng=9, cal_curves='normal', registry=self.registry)
        np.testing.assert_array_equal(a.delta, b.delta)
        self.assertEqual(a.statistics, b.statistics)


if __name__ == '__main__':
    unittest.main()
