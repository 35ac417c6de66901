import numbers
import os

import numpy as np
import requests


class ConfigurationError(ValueError):
    """Raised when arguments or input data are invalid, before any sampling."""


class ComputationError(ArithmeticError):
    """Raised when a computation cannot produce a meaningful result."""


def download_file(url, folder, filename, timeout=60):
    """
    Download a file from a given URL and save it to a specified folder with a specified filename.

    Parameters
    ----------
    url : str
        The URL of the file to download.
    folder : str
        The folder where the file will be saved.
    filename : str
        The name of the file to save.
    timeout : float
        Seconds to wait for the server before giving up.

    Returns
    -------
    str
        The path of the downloaded (or already present) file.
    """
    dest = os.path.join(folder, filename)
    if not os.path.exists(dest):
        os.makedirs(folder, exist_ok=True)

        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        with open(dest, 'wb') as f:
            f.write(response.content)
    else:
        print("Data already downloaded")
    return dest


def check_iterations(n) -> int:
    """Validate the number of Monte Carlo iterations and return it as an int.

    Integral floats such as 1e4 are accepted, fractional or non-positive
    values are not.
    """
    if isinstance(n, bool) or not isinstance(n, numbers.Real):
        raise ConfigurationError(f"N must be a positive integer, got {n!r}")
    if not np.isfinite(n) or n <= 0 or n % 1 != 0:
        raise ConfigurationError(f"N must be a positive integer, got {n!r}")
    return int(n)


def check_confidence_level(ci) -> float:
    """Validate a confidence level, which must lie strictly between 0 and 1."""
    if isinstance(ci, bool) or not isinstance(ci, numbers.Real):
        raise ConfigurationError(f"CI must be a number between 0 and 1, got {ci!r}")
    if not 0 < ci < 1:
        raise ConfigurationError(f"CI must be a number between 0 and 1, got {ci!r}")
    return float(ci)


def check_dates(dates, length: int) -> np.ndarray:
    """Validate a vector of dates of the expected length.

    Standard deviations are found at odd offsets from the end of the vector,
    i.e. the last entry is always the sd of the measured marine age. They
    must be non-negative.
    """
    try:
        arr = np.asarray(dates, dtype=float)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Check dates supplied to the function: {dates!r}")
    if arr.ndim != 1 or arr.size != length:
        raise ConfigurationError(
            f"Check dates supplied to the function: expected {length} values, got {dates!r}")
    if not np.all(np.isfinite(arr)):
        raise ConfigurationError(f"Dates must be finite numbers, got {dates!r}")
    sds = arr[-1::-2][:length // 2]
    if np.any(sds < 0):
        raise ConfigurationError(f"Standard deviations must be non-negative, got {dates!r}")
    return arr
