from __future__ import annotations

from typing import Any, Callable, Iterable, Optional, Tuple
import logging
import warnings

import numpy as np
from joblib import Parallel, delayed, effective_n_jobs
from numpy.typing import NDArray

from evaluation_config import METHODS, EvaluationConfig
from utils.math import ewma, rolling_mean


logger = logging.getLogger(__name__)

ON_EMPTY_POLICIES = ("raise", "nan")


class StatisticError(ValueError):
    """Base class for every failure raised by the control statistics."""


class InvalidOffset(StatisticError, IndexError):
    """A query offset is negative, beyond the series, or not an integer."""

    def __init__(self, offset: Any, position: int, length: int) -> None:
        self.offset = offset
        self.position = position
        self.length = length
        super().__init__(
            f"offset {offset!r} at position {position} is not an integer in [0, {length}]"
        )


class UndefinedStatistic(StatisticError, ZeroDivisionError):
    """The moving average was asked for at offset 0, where no observation exists."""

    def __init__(self, position: int) -> None:
        self.position = position
        super().__init__(
            f"moving average at offset 0 (position {position}) has no observations to average"
        )


class InvalidParameter(StatisticError):
    def __init__(self, name: str, value: Any, reason: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"{name} {reason}, got {value!r}")


# ---- input coercion ----
def _ensure_series(x: Iterable[Any]) -> NDArray[np.float64]:
    try:
        arr = np.asarray(x, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidParameter("x", x, "must be a 1D sequence of real numbers") from exc
    if arr.ndim != 1:
        raise InvalidParameter("x", x, "must be a 1D sequence of real numbers")
    return np.ascontiguousarray(arr)


def _ensure_offsets(t: Any, length: int) -> NDArray[np.int64]:
    """Convert offsets to int64 and bounds-check them against the series length.

    Integral floats are accepted (R integer vectors often arrive as doubles);
    fractional or non-finite values are reported as InvalidOffset.
    """
    arr = np.atleast_1d(np.asarray(t))
    if arr.ndim != 1:
        raise InvalidParameter("t", t, "must be a 1D sequence of offsets")
    if arr.size == 0:
        return np.empty(0, dtype=np.int64)

    if arr.dtype == object:
        # Python ints too large for int64 land here
        for pos, value in enumerate(arr):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidParameter("t", t, "must contain integer offsets")
            if value < 0 or value > length:
                raise InvalidOffset(value, pos, length)
        return arr.astype(np.int64)

    if np.issubdtype(arr.dtype, np.bool_) or not (
        np.issubdtype(arr.dtype, np.integer) or np.issubdtype(arr.dtype, np.floating)
    ):
        raise InvalidParameter("t", t, "must contain integer offsets")

    if np.issubdtype(arr.dtype, np.floating):
        not_integral = ~np.isfinite(arr) | (arr != np.floor(arr))
        bad = np.flatnonzero(not_integral)
        if bad.size:
            pos = int(bad[0])
            raise InvalidOffset(arr[pos].item(), pos, length)

    offsets = arr.astype(np.int64)
    bad = np.flatnonzero((offsets < 0) | (offsets > length))
    if bad.size:
        pos = int(bad[0])
        raise InvalidOffset(arr[pos].item(), pos, length)
    return offsets


def _validate_lambda(lam: Any) -> float:
    if isinstance(lam, (bool, np.bool_)):
        raise InvalidParameter("lam", lam, "must be a real number in (0, 1]")
    try:
        value = float(lam)
    except (TypeError, ValueError) as exc:
        raise InvalidParameter("lam", lam, "must be a real number in (0, 1]") from exc
    if not np.isfinite(value) or not (0.0 < value <= 1.0):
        raise InvalidParameter("lam", lam, "must be a real number in (0, 1]")
    return value


def _validate_baseline(x0: Any) -> float:
    if isinstance(x0, (bool, np.bool_)):
        raise InvalidParameter("x0", x0, "must be a finite real number")
    try:
        value = float(x0)
    except (TypeError, ValueError) as exc:
        raise InvalidParameter("x0", x0, "must be a finite real number") from exc
    if not np.isfinite(value):
        raise InvalidParameter("x0", x0, "must be a finite real number")
    return value


def _validate_window(omega: Any) -> int:
    if isinstance(omega, bool) or not isinstance(omega, (int, np.integer)):
        raise InvalidParameter("omega", omega, "must be an integer >= 1")
    if omega < 1:
        raise InvalidParameter("omega", omega, "must be an integer >= 1")
    return int(omega)


def _resolve_evaluation(
    method: Optional[str], n_jobs: Optional[int], config: Optional[EvaluationConfig]
) -> Tuple[str, Optional[int]]:
    if config is not None:
        method = config.method if method is None else method
        n_jobs = config.n_jobs if n_jobs is None else n_jobs
    method = "direct" if method is None else method
    if method not in METHODS:
        raise InvalidParameter("method", method, f"must be one of {METHODS}")
    if n_jobs is not None and (isinstance(n_jobs, bool) or not isinstance(n_jobs, (int, np.integer)) or n_jobs == 0):
        raise InvalidParameter("n_jobs", n_jobs, "must be None or a non-zero integer")
    return method, n_jobs


# ---- per-offset kernels ----
def _ewma_direct(x: NDArray[np.float64], offsets: NDArray[np.int64], lam: float, x0: float) -> NDArray[np.float64]:
    decay = 1.0 - lam
    out = np.empty(offsets.size, dtype=np.float64)
    for i, k in enumerate(offsets):
        # most recent observation first: weights (1-lam)^0, (1-lam)^1, ...
        weights = decay ** np.arange(k, dtype=np.float64)
        out[i] = x0 * decay ** k + lam * float(np.dot(weights, x[:k][::-1]))
    return out


def _ma_direct(x: NDArray[np.float64], offsets: NDArray[np.int64], omega: int) -> NDArray[np.float64]:
    out = np.empty(offsets.size, dtype=np.float64)
    for i, k in enumerate(offsets):
        if k == 0:
            out[i] = np.nan
            continue
        start = k - omega if k >= omega else 0
        out[i] = float(np.sum(x[start:k])) / (k - start)
    return out


def _map_offsets(
    kernel: Callable[..., NDArray[np.float64]],
    x: NDArray[np.float64],
    offsets: NDArray[np.int64],
    n_jobs: Optional[int],
    *args: Any,
) -> NDArray[np.float64]:
    """Evaluate `kernel` over contiguous chunks of offsets, preserving order."""
    if n_jobs is None or n_jobs == 1 or offsets.size < 2:
        return kernel(x, offsets, *args)

    n_chunks = min(effective_n_jobs(n_jobs), offsets.size)
    chunks = np.array_split(offsets, n_chunks)
    parts = Parallel(n_jobs=n_jobs, prefer="threads")(
        delayed(kernel)(x, chunk, *args) for chunk in chunks
    )
    return np.concatenate(parts)


# ---- public API ----
def ewma_statistic(
    x: Iterable[Any],
    t: Any,
    lam: float,
    x0: float,
    *,
    method: Optional[str] = None,
    n_jobs: Optional[int] = None,
    config: Optional[EvaluationConfig] = None,
) -> NDArray[np.float64]:
    """EWMA control statistic evaluated at each query offset.

    For offset k (the number of observations seen so far):

        z(k) = x0 * (1-lam)^k + lam * sum_{j=0}^{k-1} (1-lam)^j * x[k-1-j]

    which is the recurrence z_m = lam * x[m-1] + (1-lam) * z_{m-1}, z_0 = x0,
    evaluated independently per offset.

    Parameters
    ----------
    x : array-like
        1D series of observations.
    t : array-like of int
        Offsets in [0, len(x)]. Order and duplicates are preserved.
    lam : float
        Smoothing weight in (0, 1].
    x0 : float
        Baseline returned at offset 0.
    method : {"direct", "recursive"}, optional
        "direct" (default) sums each offset from scratch; "recursive" runs the
        recurrence once and gathers. Both agree to floating-point rounding.
    n_jobs : int, optional
        joblib worker count for the "direct" method. None or 1 is sequential.
    config : EvaluationConfig, optional
        Fallback for `method` and `n_jobs` when they are not given.

    Returns
    -------
    np.ndarray
        float64 array with one statistic per offset.
    """
    lam = _validate_lambda(lam)
    x0 = _validate_baseline(x0)
    method, n_jobs = _resolve_evaluation(method, n_jobs, config)
    series = _ensure_series(x)
    offsets = _ensure_offsets(t, series.size)

    logger.debug("ewma_statistic: n=%d offsets=%d method=%s n_jobs=%s", series.size, offsets.size, method, n_jobs)
    if offsets.size == 0:
        return np.empty(0, dtype=np.float64)

    if method == "recursive":
        return ewma(series, lam, x0)[offsets]
    return _map_offsets(_ewma_direct, series, offsets, n_jobs, lam, x0)


def ma_statistic(
    x: Iterable[Any],
    t: Any,
    omega: int,
    *,
    on_empty: str = "raise",
    method: Optional[str] = None,
    n_jobs: Optional[int] = None,
    config: Optional[EvaluationConfig] = None,
) -> NDArray[np.float64]:
    """Moving-average control statistic evaluated at each query offset.

    For offset k the result is the mean of x[k-omega .. k-1] when k >= omega,
    and the mean of x[0 .. k-1] when 0 < k < omega (the window shrinks at
    the start of the series rather than padding).

    Offset 0 has no observations. With on_empty="raise" (default) it raises
    UndefinedStatistic; with on_empty="nan" those positions are NaN and a
    RuntimeWarning is emitted once per call.

    `method`, `n_jobs` and `config` behave as in `ewma_statistic`.
    """
    omega = _validate_window(omega)
    if on_empty not in ON_EMPTY_POLICIES:
        raise InvalidParameter("on_empty", on_empty, f"must be one of {ON_EMPTY_POLICIES}")
    method, n_jobs = _resolve_evaluation(method, n_jobs, config)
    series = _ensure_series(x)
    offsets = _ensure_offsets(t, series.size)

    logger.debug("ma_statistic: n=%d offsets=%d omega=%d method=%s n_jobs=%s", series.size, offsets.size, omega, method, n_jobs)
    if offsets.size == 0:
        return np.empty(0, dtype=np.float64)

    empty = np.flatnonzero(offsets == 0)
    if empty.size:
        if on_empty == "raise":
            raise UndefinedStatistic(int(empty[0]))
        warnings.warn(
            f"Mean of empty window at {empty.size} offset(s) equal to 0; returning nan.",
            RuntimeWarning,
            stacklevel=2,
        )

    if method == "recursive":
        means = np.concatenate(([np.nan], rolling_mean(series, omega)))
        return means[offsets]
    return _map_offsets(_ma_direct, series, offsets, n_jobs, omega)


__all__ = [
    "ewma_statistic",
    "ma_statistic",
    "StatisticError",
    "InvalidOffset",
    "UndefinedStatistic",
    "InvalidParameter",
    "ON_EMPTY_POLICIES",
]
