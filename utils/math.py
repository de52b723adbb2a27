__all__ = ["ewma", "rolling_mean"]

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view


def ewma(arr, lam: float, x0: float):
    """
    Exponentially Weighted Moving Average (EWMA) recurrence.

    Parameters
    ----------
    arr : np.ndarray
        1D array of observations.
    lam : float
        Weight given to each new observation, in (0,1].
        lam=1 tracks the last observation exactly.
    x0 : float
        Baseline the statistic starts from before any observation.

    Returns
    -------
    np.ndarray
        Array of length len(arr) + 1 holding z_0 .. z_n, where
        z_0 = x0 and z_m = lam * arr[m-1] + (1 - lam) * z_{m-1}.
        Element k is the statistic after k observations.
    """
    arr = np.asarray(arr, dtype=float)
    out = np.empty(arr.size + 1, dtype=float)
    out[0] = x0
    decay = 1 - lam

    for m in range(1, arr.size + 1):
        out[m] = lam * arr[m-1] + decay * out[m-1]
    return out


def rolling_mean(arr, window: int):
    """Trailing rolling average over a shrinking-then-sliding window.

    The window shrinks at the start of the series instead of padding, so
    element i is the mean of arr[max(0, i-window+1) .. i]. Seen from the
    offset side, element k-1 is the moving average after k observations.

    Each full window is summed on its own through a strided view, never as a
    difference of running totals.

    Parameters
    ----------
    arr : array-like
        1D numeric data.
    window : int
        Window size in elements (> 0).

    Returns
    -------
    np.ndarray
        Rolling mean of same length as input.
    """
    x = np.asarray(arr, dtype=float)
    n = x.size
    if window <= 0:
        raise ValueError("window must be > 0")
    if n == 0:
        return np.array([], dtype=float)

    out = np.empty(n, dtype=float)
    head = min(window - 1, n)
    if head > 0:
        # partial windows x[0 .. i] for i < window-1
        out[:head] = np.cumsum(x[:head]) / np.arange(1, head + 1, dtype=float)
    if n >= window:
        out[window-1:] = sliding_window_view(x, window).sum(axis=1) / float(window)
    return out
