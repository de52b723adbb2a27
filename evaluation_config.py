from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import os

from dotenv import find_dotenv, load_dotenv


METHODS = ("direct", "recursive")
METHOD_ENV_VAR = "SPC_STATISTICS_METHOD"
N_JOBS_ENV_VAR = "SPC_STATISTICS_N_JOBS"


@dataclass(frozen=True)
class EvaluationConfig:
    """How the control statistics are evaluated, not what they compute.

    - method: "direct" recomputes each offset from its closed form;
      "recursive" runs the recurrence once over the series and gathers offsets.
    - n_jobs: None or 1 for sequential evaluation, otherwise passed to joblib.

    The statistic functions never read the environment; build a config with
    `from_env()` at the call site and pass it in explicitly.
    """

    method: str = "direct"
    n_jobs: Optional[int] = None

    def __post_init__(self) -> None:
        if self.method not in METHODS:
            raise ValueError(f"method must be one of {METHODS}, got {self.method!r}")
        if self.n_jobs is not None and self.n_jobs == 0:
            raise ValueError("n_jobs must be non-zero (use None or 1 for sequential)")

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> "EvaluationConfig":
        """Read SPC_STATISTICS_METHOD / SPC_STATISTICS_N_JOBS.

        Loads the nearest .env above the working directory first when `dotenv`
        is True. Unset variables keep the dataclass defaults.
        """
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True))

        method = (os.getenv(METHOD_ENV_VAR) or "direct").strip().lower()
        if method not in METHODS:
            raise ValueError(f"{METHOD_ENV_VAR} must be one of {METHODS}, got {method!r}")

        raw_jobs = (os.getenv(N_JOBS_ENV_VAR) or "").strip()
        n_jobs: Optional[int] = None
        if raw_jobs:
            try:
                n_jobs = int(raw_jobs)
            except ValueError:
                raise ValueError(f"{N_JOBS_ENV_VAR} must be an integer, got {raw_jobs!r}") from None
            if n_jobs == 0:
                raise ValueError(f"{N_JOBS_ENV_VAR} must be non-zero")

        return cls(method=method, n_jobs=n_jobs)


__all__ = ["EvaluationConfig", "METHODS", "METHOD_ENV_VAR", "N_JOBS_ENV_VAR"]
