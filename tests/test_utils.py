"""Tests for logging and timezone helpers."""

import json
import logging

import pandas as pd
import pytest
import pytz

from vptsviz.utils.logging import JsonFormatter, configure_logging
from vptsviz.utils.timezone import localize_series, resolve_pytz


class TestJsonFormatter:
    """Structured log output."""

    def _record(self, **extra):
        record = logging.LogRecord(
            name="vptsviz.test", level=logging.WARNING, pathname=__file__,
            lineno=1, msg="dropped %d rows", args=(3,), exc_info=None,
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_payload(self):
        payload = json.loads(JsonFormatter().format(self._record()))
        assert payload["level"] == "WARNING"
        assert payload["logger"] == "vptsviz.test"
        assert payload["msg"] == "dropped 3 rows"
        assert payload["ts"].endswith("Z")

    def test_timestamp_is_utc(self):
        record = self._record()
        record.created = 1472688120.0  # 2016-09-01T00:02:00Z
        payload = json.loads(JsonFormatter().format(record))
        assert payload["ts"] == "2016-09-01T00:02:00.000000Z"

    def test_extra_fields_merged(self):
        payload = json.loads(JsonFormatter().format(self._record(dropped_rows=3)))
        assert payload["dropped_rows"] == 3

    def test_non_serialisable_extra(self):
        ts = pd.Timestamp("2016-09-01", tz="UTC")
        payload = json.loads(JsonFormatter().format(self._record(when=ts)))
        assert payload["when"].startswith("2016-09-01")


class TestConfigureLogging:
    """Package logger setup."""

    def test_level_by_name(self):
        configure_logging("info")
        assert logging.getLogger("vptsviz").level == logging.INFO

    def test_repeated_calls_replace_handler(self):
        configure_logging("WARNING")
        configure_logging("DEBUG", json_format=True)
        handlers = logging.getLogger("vptsviz").handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, JsonFormatter)

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            configure_logging("LOUD")


class TestTimezone:
    """Timezone resolution."""

    def test_none_is_utc(self):
        assert resolve_pytz(None) is pytz.utc

    def test_known(self):
        assert resolve_pytz("Europe/Brussels").zone == "Europe/Brussels"

    def test_unknown_falls_back_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="vptsviz.utils.timezone"):
            assert resolve_pytz("Mars/Olympus_Mons") is pytz.utc
        assert "Mars/Olympus_Mons" in caplog.text

    def test_localize_naive_series(self):
        series = pd.Series(pd.to_datetime(["2016-09-01 00:00"]))
        local = localize_series(series, "Europe/Brussels")
        assert local.iloc[0].hour == 2

    def test_localize_aware_series(self):
        series = pd.Series(pd.to_datetime(["2016-09-01 00:00"], utc=True))
        assert localize_series(series, None).iloc[0].hour == 0
