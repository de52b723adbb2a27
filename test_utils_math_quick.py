import numpy as np
import pytest

import utils
from utils.math import ewma, rolling_mean


def test_autoload_exports():
    assert utils.ewma is ewma
    assert utils.rolling_mean is rolling_mean
    assert sorted(utils.__all__) == ["ewma", "rolling_mean"]


def test_ewma_path():
    path = ewma([10.0, 10.0, 10.0, 10.0], lam=0.5, x0=0.0)
    assert path.tolist() == [0.0, 5.0, 7.5, 8.75, 9.375]


def test_ewma_empty_series_is_baseline_only():
    assert ewma([], lam=0.3, x0=2.0).tolist() == [2.0]


def test_rolling_mean_shrinks_at_start():
    out = rolling_mean([1, 2, 3, 4, 5, 6], window=3)
    assert np.allclose(out, [1.0, 1.5, 2.0, 3.0, 4.0, 5.0])


def test_rolling_mean_window_longer_than_series():
    assert np.allclose(rolling_mean([2, 4, 6], window=5), [2.0, 3.0, 4.0])


def test_rolling_mean_full_windows_ignore_earlier_magnitude():
    x = [1e16, 1.0, 1.0, 1.0, 2.0]
    assert rolling_mean(x, window=1).tolist() == x
    assert rolling_mean(x, window=2)[2:].tolist() == [1.0, 1.0, 1.5]


def test_rolling_mean_edge_cases():
    assert rolling_mean([], window=2).size == 0
    with pytest.raises(ValueError):
        rolling_mean([1.0], window=0)


def main() -> None:
    test_autoload_exports()
    test_ewma_path()
    test_ewma_empty_series_is_baseline_only()
    test_rolling_mean_shrinks_at_start()
    test_rolling_mean_window_longer_than_series()
    test_rolling_mean_full_windows_ignore_earlier_magnitude()
    test_rolling_mean_edge_cases()
    print("UTILS MATH TESTS PASSED")


if __name__ == "__main__":
    main()
