import pytest

from config import RetryPolicy, load_settings

ENV_VARS = [
    "GEMINI_API_KEY", "GOOGLE_API_KEY", "GEMINI_MODEL", "GEMINI_BASE_URL", "ANALYSIS_TIMEOUT",
    "ANALYSIS_MAX_ATTEMPTS", "ANALYSIS_BACKOFF_BASE", "ANALYSIS_BACKOFF_FACTOR",
    "ANALYSIS_BACKOFF_MAX", "MIN_RESUME_LENGTH",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_key():
    s = load_settings()
    assert s.api_key is None
    assert s.model == "gemini-2.5-flash"
    assert s.retry.max_attempts == 3
    assert s.min_resume_length == 50


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", " abc ")
    monkeypatch.setenv("ANALYSIS_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("GEMINI_BASE_URL", "https://proxy.test/v1/")
    s = load_settings()
    assert s.api_key == "abc"
    assert s.retry.max_attempts == 5
    assert s.base_url == "https://proxy.test/v1"
    assert "abc" not in repr(s)


def test_bad_number_is_rejected(monkeypatch):
    monkeypatch.setenv("ANALYSIS_MAX_ATTEMPTS", "lots")
    with pytest.raises(ValueError, match="ANALYSIS_MAX_ATTEMPTS"):
        load_settings()


def test_delays_grow_and_are_bounded():
    policy = RetryPolicy(max_attempts=5, base_delay=0.5, factor=3, max_delay=4)
    assert [policy.delay_before(n) for n in range(1, 6)] == [0.0, 0.5, 1.5, 4, 4]


@pytest.mark.parametrize("kwargs", [
    {"max_attempts": 0},
    {"factor": 0.5},
    {"factor": 1},
    {"base_delay": -1},
    {"base_delay": 5, "max_delay": 2},
])
def test_invalid_policy(kwargs):
    with pytest.raises(ValueError):
        RetryPolicy(**kwargs)
