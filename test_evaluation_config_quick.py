import pytest

from evaluation_config import METHOD_ENV_VAR, N_JOBS_ENV_VAR, EvaluationConfig


def _clear_env(monkeypatch):
    # setenv first so monkeypatch restores the variables even if .env loading sets them
    for var in (METHOD_ENV_VAR, N_JOBS_ENV_VAR):
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


def test_defaults(monkeypatch):
    _clear_env(monkeypatch)
    cfg = EvaluationConfig.from_env(dotenv=False)
    assert cfg == EvaluationConfig(method="direct", n_jobs=None)


def test_reads_environment(monkeypatch):
    monkeypatch.setenv(METHOD_ENV_VAR, " Recursive ")
    monkeypatch.setenv(N_JOBS_ENV_VAR, "-1")
    cfg = EvaluationConfig.from_env(dotenv=False)
    assert cfg.method == "recursive"
    assert cfg.n_jobs == -1


def test_reads_dotenv_file(monkeypatch, tmp_path):
    _clear_env(monkeypatch)
    (tmp_path / ".env").write_text(f"{METHOD_ENV_VAR}=recursive\n{N_JOBS_ENV_VAR}=2\n")
    monkeypatch.chdir(tmp_path)
    cfg = EvaluationConfig.from_env()
    assert cfg == EvaluationConfig(method="recursive", n_jobs=2)


@pytest.mark.parametrize("var,value", [
    (METHOD_ENV_VAR, "fastest"),
    (N_JOBS_ENV_VAR, "two"),
    (N_JOBS_ENV_VAR, "0"),
])
def test_rejects_bad_environment(monkeypatch, var, value):
    _clear_env(monkeypatch)
    monkeypatch.setenv(var, value)
    with pytest.raises(ValueError, match=var):
        EvaluationConfig.from_env(dotenv=False)


def test_direct_construction_is_validated():
    with pytest.raises(ValueError):
        EvaluationConfig(method="vectorized")
    with pytest.raises(ValueError):
        EvaluationConfig(n_jobs=0)


def test_bad_n_jobs_error_does_not_chain(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv(N_JOBS_ENV_VAR, "many")
    with pytest.raises(ValueError) as info:
        EvaluationConfig.from_env(dotenv=False)
    assert info.value.__cause__ is None
    assert info.value.__suppress_context__
