"""
Delta R for every sample of a table.

The first column of the table describes the rows; every other column holds
one sample. The row layout depends on the method:

* shell: collection date (calendar year AD), radiocarbon age, its sd;
* pair: true age (terrestrial radiocarbon or 230Th), its sd, marine
  radiocarbon age, its sd.

Column names identify the samples in the results.
"""

from __future__ import annotations

import warnings
from collections import namedtuple
from enum import Enum
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from tqdm import tqdm

from deltar.calibration import AgeCalibrator, CalibrationMode, DatedMeasurement
from deltar.config import get_option
from deltar.constants import PAIR_ROWS, SHELL_ROWS, STAT_COLUMNS
from deltar.curves import DataRegistry, default_registry
from deltar.offsets import estimate_offset, reservoir_curve_from, resolve_run_options
from deltar.utils import ConfigurationError, check_dates
from deltar.viz import plot_offset_histogram


class Method(Enum):
    """Layout of the input table."""
    PAIR = 'pair'
    SHELL = 'shell'

    @property
    def n_rows(self) -> int:
        return PAIR_ROWS if self is Method.PAIR else SHELL_ROWS


# statistics: DataFrame indexed by sample with one column per statistic
# draws: DataFrame with the N realizations of each sample as columns
BatchResult = namedtuple('BatchResult', ['statistics', 'draws'])


def _parse_method(method) -> Method:
    try:
        return Method(method)
    except ValueError:
        raise ConfigurationError(f"Specify method: 'pair' or 'shell', got {method!r}")


def _estimate_column(measured, source, reservoir, n, confidence_level, rng, name):
    """Run estimate_offset and return its result with the warnings it raised.

    Warnings from joblib worker processes are returned to run_batch, which
    re-issues them in the calling process.
    """
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter('always')
        result = estimate_offset(measured, source, reservoir, n, confidence_level,
                                 rng=rng, name=name)
    return result, [(w.category, str(w.message)) for w in caught]


def table_columns(table: pd.DataFrame, method: Method) -> List[Tuple[object, np.ndarray]]:
    """Validate a table of dates and return (column id, dates) for each sample."""
    if not isinstance(table, pd.DataFrame):
        raise ConfigurationError("df argument must be a data frame")
    if table.shape[1] < 2:
        raise ConfigurationError("The table has no sample columns after the descriptor column.")
    if table.shape[0] != method.n_rows:
        raise ConfigurationError(
            f"Method '{method.value}' expects {method.n_rows} rows per column, "
            f"the table has {table.shape[0]}.")
    names = table.columns[1:]
    if names.has_duplicates:
        raise ConfigurationError(f"Sample column names must be unique: {list(names)}")

    columns = []
    for i, name in enumerate(names, start=1):
        values = pd.to_numeric(table.iloc[:, i], errors='coerce').values
        try:
            dates = check_dates(values, method.n_rows)
        except ConfigurationError as e:
            raise ConfigurationError(f"Column {name!r}: {e}")
        columns.append((name, dates))
    return columns


def run_batch(table: pd.DataFrame, method='pair', n=None, confidence_level=None,
              calibration_mode: Optional[str] = None, seed=None,
              registry: Optional[DataRegistry] = None, reservoir_curve=None,
              calibrator: Optional[AgeCalibrator] = None, n_jobs: Optional[int] = None,
              verbose: bool = False, make_plot: bool = False) -> BatchResult:
    """
    Compute Delta R for every sample column of a table.

    Parameters
    ----------
    table : pd.DataFrame
        Descriptor column followed by one column per sample or pair.
    method : Method or str
        'pair' for dates amalgamated in pairs, 'shell' for samples with a
        known collection date.
    n : int, optional
        Number of iterations per sample. Defaults to the configured iterations.
    confidence_level : float, optional
        Probability of the reported interval. Defaults to the configured value.
    calibration_mode : str, optional
        How the true age of a pair is calibrated: 'normal', 'direct' or a
        terrestrial curve name. Ignored by the shell method, which always
        uses the collection date directly. Defaults to the configured
        calibration_curve.
    seed : int or SeedSequence, optional
        Seeds one independent random stream per column, so results do not
        depend on n_jobs.
    registry : DataRegistry, optional
        Source of calibration curves.
    reservoir_curve : str or CalibrationTable, optional
        Marine calibration curve. Defaults to the configured reservoir_curve.
    calibrator : AgeCalibrator, optional
        Overrides the calibrator built from the registry.
    n_jobs : int, optional
        Number of columns processed in parallel (joblib).
    verbose : bool
        Show a progress bar over the columns.
    make_plot : bool
        Draw one histogram figure per column.

    Returns
    -------
    BatchResult
        Statistics and draws, both keyed by the table's column names in
        input order.
    """
    n, confidence_level = resolve_run_options(n, confidence_level)
    method = _parse_method(method)
    registry = registry if registry is not None else default_registry()
    if calibrator is None:
        calibrator = AgeCalibrator(registry)
    if calibration_mode is None:
        calibration_mode = get_option('calibration_curve')
    mode, curve = calibrator.resolve_mode(calibration_mode)
    if method is Method.SHELL:
        mode, curve = CalibrationMode.DIRECT, None
    columns = table_columns(table, method)
    if n_jobs is None:
        n_jobs = get_option('n_jobs')

    reservoir = reservoir_curve_from(registry, reservoir_curve)
    if curve is not None:
        curve = registry.curve(curve)

    # calibrate every column before any sampling starts
    jobs = []
    for name, dates in columns:
        if method is Method.SHELL:
            true_age, measured = DatedMeasurement(dates[0], 0.0), DatedMeasurement(dates[1], dates[2])
        else:
            true_age, measured = DatedMeasurement(dates[0], dates[1]), DatedMeasurement(dates[2], dates[3])
        jobs.append((name, measured, calibrator.calibrate(true_age, mode, curve)))

    seeds = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    streams = seeds.spawn(len(jobs))
    outputs = Parallel(n_jobs=n_jobs)(
        delayed(_estimate_column)(measured, source, reservoir, n, confidence_level,
                                  np.random.default_rng(stream), name)
        for (name, measured, source), stream in tqdm(
            zip(jobs, streams), total=len(jobs), desc='samples', disable=not verbose)
    )
    results = []
    for (name, _, _), (result, caught) in zip(jobs, outputs):
        for category, message in caught:
            warnings.warn(f"Column {name!r}: {message}", category, stacklevel=2)
        results.append(result)

    names = [name for name, _, _ in jobs]
    index = pd.Index(names, name=table.columns[0])
    statistics = pd.DataFrame([r.statistics for r in results], index=index,
                              columns=STAT_COLUMNS)
    draws = pd.DataFrame(np.column_stack([r.delta for r in results]),
                         columns=pd.Index(names))

    if make_plot:
        for name in names:
            _, ax = plt.subplots()
            plot_offset_histogram(draws[name].values, name=str(name), ax=ax)

    return BatchResult(statistics=statistics, draws=draws)
