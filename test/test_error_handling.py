"""
Tests for the exception hierarchy, error handling helpers and logging setup.
"""

import io
import json
import logging

import pytest

from ticker.common.error_handler import retry_on_failure, safe_execute
from ticker.exceptions import ConfigError, FormatContractError, SourceError, TickerError
from ticker.logging_config import (
    ContextualFormatter,
    JsonFormatter,
    log_with_context,
    record_fields,
    setup_logging,
)

logger = logging.getLogger("ticker.test")


class TestExceptions:
    def test_context_in_str(self):
        error = ConfigError("Bad speed", field='speed', value=-1)
        assert str(error) == "Bad speed (field=speed, value=-1)"
        assert isinstance(error, TickerError)

    def test_plain_message(self):
        assert str(TickerError("boom")) == "boom"

    def test_format_contract_error(self):
        error = FormatContractError("Expected pair", record={'id': 1}, output='text')
        assert error.context['output_type'] == 'str'
        assert error.record == {'id': 1}

    def test_source_error(self):
        error = SourceError("Missing Symbols List.", source_id='quotes')
        assert error.context == {'source_id': 'quotes'}


class TestSafeExecute:
    def test_returns_result(self):
        assert safe_execute(lambda: 5, "failed", logger) == 5

    def test_returns_default_on_error(self):
        assert safe_execute(lambda: 1 / 0, "failed", logger, default=-1) == -1

    def test_wraps_when_asked(self):
        with pytest.raises(TickerError) as exc_info:
            safe_execute(lambda: 1 / 0, "failed", logger, raise_on_error=True)
        assert 'original_error' in exc_info.value.context

    def test_ticker_errors_propagate(self):
        def operation():
            raise FormatContractError("bad", output=1)

        with pytest.raises(FormatContractError):
            safe_execute(operation, "failed", logger)


class TestRetryOnFailure:
    def test_succeeds_after_retries(self):
        attempts = []
        delays = []

        @retry_on_failure(max_attempts=3, delay=1.0, backoff=2.0,
                          exceptions=(IOError,), sleep=delays.append)
        def flaky():
            attempts.append(1)
            if len(attempts) < 3:
                raise IOError("try again")
            return 'ok'

        assert flaky() == 'ok'
        assert delays == [1.0, 2.0]

    def test_raises_last_error(self):
        @retry_on_failure(max_attempts=2, delay=0, exceptions=(IOError,), sleep=lambda s: None)
        def always_fails():
            raise IOError("down")

        with pytest.raises(IOError):
            always_fails()

    def test_other_exceptions_not_retried(self):
        attempts = []

        @retry_on_failure(max_attempts=3, exceptions=(IOError,), sleep=lambda s: None)
        def wrong_kind():
            attempts.append(1)
            raise ValueError("no")

        with pytest.raises(ValueError):
            wrong_kind()
        assert len(attempts) == 1


class TestLogging:
    def _record(self, **extra):
        record = logging.LogRecord("ticker", logging.INFO, __file__, 1, "Ticker started", None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_record_fields(self):
        record = self._record(ticker_id='t1', source_id=None, context={'delay_ms': 500})
        assert record_fields(record) == {'ticker_id': 't1', 'delay_ms': 500}

    def test_contextual_formatter(self):
        record = self._record(ticker_id='t1', source_id='s1')
        output = ContextualFormatter().format(record)
        assert "[ticker_id=t1] [source_id=s1] Ticker started" in output
        # Other handlers see the record untouched
        assert record.getMessage() == "Ticker started"
        assert record.message == "Ticker started"

    def test_contextual_formatter_without_fields(self):
        output = ContextualFormatter(include_location=True).format(self._record())
        assert output.endswith(" - Ticker started")
        assert "[" not in output

    def test_json_formatter(self):
        output = json.loads(JsonFormatter().format(self._record(ticker_id='t1', context={'k': 'v'})))
        assert output['message'] == "Ticker started"
        assert output['ticker_id'] == 't1'
        assert output['k'] == 'v'
        assert output['level'] == 'INFO'
        assert output['logger'] == 'ticker'

    def test_log_with_context(self, caplog):
        with caplog.at_level(logging.INFO, logger="ticker.test"):
            log_with_context(logger, logging.INFO, "hello", ticker_id='t9', context={'k': 'v'})
        record = caplog.records[-1]
        assert record.ticker_id == 't9'
        assert record.context == {'k': 'v'}

    def test_setup_logging_debug_env(self, monkeypatch):
        monkeypatch.setenv('TICKER_DEBUG', 'true')
        package_logger = setup_logging()
        assert package_logger.name == 'ticker'
        assert package_logger.level == logging.DEBUG
        assert len(package_logger.handlers) == 1
        assert package_logger.propagate is False
        assert logging.getLogger().handlers == []

    def test_setup_logging_json_to_stream(self):
        stream = io.StringIO()
        setup_logging(level=logging.WARNING, json_format=True, stream=stream)
        handler = logging.getLogger('ticker').handlers[0]
        assert isinstance(handler.formatter, JsonFormatter)

        log_with_context(logger, logging.WARNING, "Refresh failed", source_id='quotes')
        logging.getLogger('ticker.other').info("filtered out")

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        assert json.loads(lines[0])['source_id'] == 'quotes'
