import logging

from identitylab.utils.logging import (
    CorrelationIdFilter,
    get_correlation_id,
    get_logger,
    redact_params,
    resolve_slow_query_ms,
    set_correlation_id,
    time_call,
)


def test_correlation_id_round_trip():
    token = set_correlation_id("test-token")
    assert token == "test-token"
    assert get_correlation_id() == "test-token"


def test_correlation_filter_stamps_records():
    set_correlation_id("stamped")
    record = logging.LogRecord("identitylab.x", logging.INFO, __file__, 1, "msg", None, None)
    assert CorrelationIdFilter().filter(record) is True
    assert record.correlation_id == "stamped"


def test_get_logger_is_namespaced():
    assert get_logger("persistence.session").name == "identitylab.persistence.session"
    assert logging.getLogger("identitylab").handlers


def test_time_call_logs_duration(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with time_call("unit-test", logger, threshold_ms=0):
        pass
    records = [record for record in caplog.records if record.name == logger.name]
    assert any("unit-test took" in record.message for record in records)
    assert records[-1].levelno == logging.WARNING


def test_redact_params_masks_secret_like_strings():
    assert redact_params(["alice", "my password", 3, None]) == ["alice", "***", 3, None]
    assert redact_params(None) == []


def test_resolve_slow_query_ms_precedence(monkeypatch):
    monkeypatch.setenv("IDENTITYLAB_SLOW_QUERY_MS", "250")
    assert resolve_slow_query_ms(default=100) == 250
    assert resolve_slow_query_ms(default=100, override=5) == 5
    monkeypatch.setenv("IDENTITYLAB_SLOW_QUERY_MS", "slow")
    assert resolve_slow_query_ms(default=100) == 100
    monkeypatch.delenv("IDENTITYLAB_SLOW_QUERY_MS")
    assert resolve_slow_query_ms(default=100) == 100
