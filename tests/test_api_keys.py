import pytest

from aiready.core.errors import ExternalServiceError, ServiceUnavailableError
from aiready.services.api_keys import ApiKeyManager


def test_round_robin_rotation():
    m = ApiKeyManager(["a", "b", "c"])
    assert [m.next_key() for _ in range(4)] == ["a", "b", "c", "a"]


def test_duplicate_and_blank_keys_are_dropped():
    m = ApiKeyManager(["a", "", "a", "b"])
    assert len(m) == 2


def test_least_used_strategy():
    m = ApiKeyManager(["a", "b"], strategy="least_used")
    assert m.next_key() == "a"
    assert m.next_key() == "b"
    assert m.next_key() == "a"


def test_unknown_strategy():
    with pytest.raises(ValueError):
        ApiKeyManager(["a"], strategy="fastest")


def test_key_disabled_after_max_errors_and_reset():
    m = ApiKeyManager(["a", "b"], max_errors=2)
    m.report_error("a")
    m.report_error("a")
    assert [m.next_key() for _ in range(3)] == ["b", "b", "b"]

    m.reset()
    assert {m.next_key() for _ in range(2)} == {"a", "b"}


def test_success_clears_error_count():
    m = ApiKeyManager(["a"], max_errors=2)
    m.report_error("a")
    m.report_success("a")
    m.report_error("a")
    assert m.next_key() == "a"


def test_no_keys_is_service_unavailable():
    with pytest.raises(ServiceUnavailableError):
        ApiKeyManager([]).next_key()


def test_execute_with_retry_backs_off_and_rotates():
    sleeps = []
    used = []
    m = ApiKeyManager(["a", "b", "c"], retry_delay=0.5, sleep=sleeps.append)

    def call(key):
        used.append(key)
        if len(used) < 3:
            raise ExternalServiceError("Google Search")
        return "done"

    assert m.execute_with_retry(call) == "done"
    assert used == ["a", "b", "c"]
    assert sleeps == [0.5, 1.0]
    assert [s["errors"] for s in m.stats()] == [1, 1, 0]


def test_execute_with_retry_exhausted():
    sleeps = []
    m = ApiKeyManager(["a"], max_retries=2, sleep=sleeps.append)

    def call(key):
        raise ValueError("bad body")

    with pytest.raises(ServiceUnavailableError) as exc:
        m.execute_with_retry(call)
    assert exc.value.details["attempts"] == 2
    assert sleeps == [1.0]


def test_stats_hides_keys():
    m = ApiKeyManager(["abcdefghij"])
    m.next_key()
    (s,) = m.stats()
    assert s["key_prefix"] == "abcde..."
    assert s["uses"] == 1
    assert s["last_used"] is not None
