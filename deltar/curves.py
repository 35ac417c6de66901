"""
Calibration curves and the registry that serves them.

Curves are tabulated as (calendar year BP, modeled radiocarbon age,
modeled radiocarbon age sd). They are read once and never modified.
"""

from __future__ import annotations

import functools
import os
from typing import Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd

from deltar.config import get_option
from deltar.utils import ConfigurationError, download_file


CURVE_COLUMNS = ['calendar_year', 'age', 'age_sd']


def _read_only(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


class CalibrationTable:
    """An immutable calibration curve supporting nearest-neighbour lookups.

    Rows keep the order they were given in. Lookups search a stably sorted
    view of the calendar years and resolve ties by row position.
    """

    def __init__(self, calendar_years, ages, age_sds, name: str = ''):
        """
        Args:
        calendar_years: array-like
            Calendar ages of the tabulated points, in years BP.
        ages: array-like
            Modeled radiocarbon age at each calendar year.
        age_sds: array-like
            One-sigma uncertainty of the modeled radiocarbon age.
        name: str
            Name of the curve, used in messages only.
        """
        years = np.asarray(calendar_years, dtype=float).ravel()
        ages = np.asarray(ages, dtype=float).ravel()
        age_sds = np.asarray(age_sds, dtype=float).ravel()
        if years.size == 0:
            raise ConfigurationError(f"Calibration table '{name}' is empty.")
        if not (years.size == ages.size == age_sds.size):
            raise ConfigurationError(
                f"Calibration table '{name}' has columns of unequal length.")
        if np.any(np.isnan(years)):
            raise ConfigurationError(
                f"Calibration table '{name}' has missing calendar years.")

        self.name = name
        self._years = _read_only(years)
        self._ages = _read_only(ages)
        self._age_sds = _read_only(age_sds)
        order = np.argsort(years, kind='stable')
        order.setflags(write=False)
        self._order = order
        self._sorted_years = _read_only(years[order])

    @classmethod
    def from_frame(cls, df: pd.DataFrame, name: str = '') -> 'CalibrationTable':
        """Build a table from a DataFrame.

        Uses the columns calendar_year, age and age_sd when present and the
        first three columns otherwise.
        """
        if set(CURVE_COLUMNS).issubset(df.columns):
            cols = df[CURVE_COLUMNS]
        else:
            if df.shape[1] < 3:
                raise ConfigurationError(
                    f"Calibration table '{name}' needs three columns, got {df.shape[1]}.")
            cols = df.iloc[:, :3]
        return cls(cols.iloc[:, 0].values, cols.iloc[:, 1].values,
                   cols.iloc[:, 2].values, name=name)

    @property
    def years(self) -> np.ndarray:
        return self._years

    @property
    def ages(self) -> np.ndarray:
        return self._ages

    @property
    def age_sds(self) -> np.ndarray:
        return self._age_sds

    @property
    def order(self) -> np.ndarray:
        """Row indices that sort the table by ascending calendar year."""
        return self._order

    @property
    def span(self) -> Tuple[float, float]:
        """The (min, max) calendar years covered by the table."""
        return float(self._sorted_years[0]), float(self._sorted_years[-1])

    def __len__(self):
        return self._years.size

    def __repr__(self):
        lo, hi = self.span
        return f"CalibrationTable(name={self.name!r}, rows={len(self)}, span=({lo:g}, {hi:g}))"

    def nearest_index(self, calendar_year) -> np.ndarray:
        """Index of the row nearest to each queried calendar year.

        Ties are resolved in favour of the row that comes first in the table.
        """
        years = self._sorted_years
        q = np.asarray(calendar_year, dtype=float)
        last = years.size - 1
        right = np.clip(np.searchsorted(years, q, side='left'), 0, last)
        left = np.clip(right - 1, 0, last)
        # first row in table order among rows sharing a calendar year
        row_left = self._order[np.searchsorted(years, years[left], side='left')]
        row_right = self._order[np.searchsorted(years, years[right], side='left')]
        d_left = np.abs(q - years[left])
        d_right = np.abs(years[right] - q)
        return np.where(d_left < d_right, row_left,
                        np.where(d_right < d_left, row_right,
                                 np.minimum(row_left, row_right)))

    def lookup_nearest(self, calendar_year):
        """Modeled age and its sd at the tabulated year nearest to calendar_year.

        No interpolation is done between rows. Accepts a scalar (returns a
        pair of floats) or an array (returns a pair of arrays).
        """
        idx = self.nearest_index(calendar_year)
        if np.ndim(idx) == 0:
            return float(self._ages[idx]), float(self._age_sds[idx])
        return self._ages[idx], self._age_sds[idx]

    def covers(self, calendar_year) -> np.ndarray:
        """True where the calendar year lies within the span of the table."""
        lo, hi = self.span
        q = np.asarray(calendar_year, dtype=float)
        return (q >= lo) & (q <= hi)


def read_curve(path: str, name: Optional[str] = None) -> CalibrationTable:
    """Read a calibration curve from a CSV or a .14c file.

    .14c files have '#' comment lines followed by comma separated rows of
    calendar age BP, radiocarbon age, error and further columns that are
    ignored here.
    """
    if name is None:
        name = os.path.splitext(os.path.basename(path))[0]
    if path.lower().endswith('.14c'):
        df = pd.read_csv(path, comment='#', header=None, skipinitialspace=True)
    else:
        df = pd.read_csv(path)
    return CalibrationTable.from_frame(df, name=name)


def read_table(path: str) -> pd.DataFrame:
    """Read a table of dates: a descriptor column followed by one column per sample."""
    return pd.read_csv(path)


def fetch_curve(name: str, data_dir: Optional[str] = None) -> str:
    """Download a calibration curve listed under curve_urls in the configuration."""
    url = get_option('curve_urls')[name]
    data_dir = data_dir if data_dir is not None else get_option('data_dir')
    return download_file(url, os.path.join(data_dir, 'curves'), f'{name}.14c')


class DataRegistry:
    """Read-only provider of calibration curves and example tables.

    Objects given at construction are served as is; anything else is read
    from data_dir on first request and kept for later calls. Curves live in
    data_dir/curves/<name>.csv or <name>.14c, tables in
    data_dir/tables/<name>.csv.
    """

    CURVE_EXTENSIONS = ('.csv', '.14c')

    def __init__(self, data_dir: Optional[str] = None,
                 curves: Optional[Dict[str, Union[CalibrationTable, pd.DataFrame]]] = None,
                 tables: Optional[Dict[str, pd.DataFrame]] = None):
        self.data_dir = data_dir if data_dir is not None else get_option('data_dir')
        self._curves: Dict[str, CalibrationTable] = {}
        for name, curve in (curves or {}).items():
            if isinstance(curve, pd.DataFrame):
                curve = CalibrationTable.from_frame(curve, name=name)
            self._curves[name] = curve
        self._tables: Dict[str, pd.DataFrame] = dict(tables or {})

    def _curve_path(self, name: str) -> str:
        folder = os.path.join(self.data_dir, 'curves')
        for fname in (name, name.lower()):
            for ext in self.CURVE_EXTENSIONS:
                path = os.path.join(folder, fname + ext)
                if os.path.exists(path):
                    return path
        raise FileNotFoundError(
            f"No calibration curve '{name}' in {folder}; "
            f"add {name}.csv or fetch it with deltar.curves.fetch_curve('{name}').")

    def curve(self, name: str) -> CalibrationTable:
        """Return the calibration curve called name."""
        if name not in self._curves:
            self._curves[name] = read_curve(self._curve_path(name), name=name)
        return self._curves[name]

    def table(self, name: str) -> pd.DataFrame:
        """Return a copy of the example table called name."""
        if name not in self._tables:
            path = os.path.join(self.data_dir, 'tables', f'{name}.csv')
            if not os.path.exists(path):
                raise FileNotFoundError(f"No example table '{name}' at {path}.")
            self._tables[name] = read_table(path)
        return self._tables[name].copy()


@functools.lru_cache(maxsize=None)
def default_registry() -> DataRegistry:
    """The process-wide registry built from the configured data_dir."""
    return DataRegistry()
