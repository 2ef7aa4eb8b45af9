"""Tests for profile record parsing and grouping."""

import logging

import numpy as np
import pandas as pd
import pytest

from conftest import T1, T2, T3
from vptsviz.analysis.profiles import (
    ProfileRecord,
    VptsParseError,
    frame_to_records,
    group_by_timestamp,
    infer_interval,
    infer_vvp_threshold,
    parse_float,
    parse_frame,
    parse_height,
    parse_record,
    parse_timestamp,
    records_to_frame,
)


class TestFieldParsers:
    """Tests for the per-field parse functions."""

    def test_timestamp_with_zulu(self):
        assert parse_timestamp("2016-09-01T00:02:00Z") == T1

    def test_naive_timestamp_is_utc(self):
        ts = parse_timestamp("2016-09-01 00:02:00")
        assert ts == T1
        assert str(ts.tz) == "UTC"

    def test_offset_timestamp_converted_to_utc(self):
        assert parse_timestamp("2016-09-01T02:02:00+02:00") == T1

    @pytest.mark.parametrize("bad", ["", "   ", None, "not a date"])
    def test_bad_timestamp(self, bad):
        with pytest.raises(VptsParseError):
            parse_timestamp(bad)

    def test_float(self):
        assert parse_float(" 2.5 ", "ff") == 2.5
        assert parse_float(3, "ff") == 3.0

    @pytest.mark.parametrize("bad", ["", "NA", "nan", "abc", None, True])
    def test_bad_float(self, bad):
        with pytest.raises(VptsParseError, match="ff"):
            parse_float(bad, "ff")

    @pytest.mark.parametrize("raw, expected", [("200", 200), ("250.9", 250), ("-3.7", -3), (400.0, 400)])
    def test_height_truncates(self, raw, expected):
        assert parse_height(raw) == expected

    @pytest.mark.parametrize("bad", ["inf", "", "x"])
    def test_bad_height(self, bad):
        with pytest.raises(VptsParseError):
            parse_height(bad)


class TestParseRecord:
    """Tests for row -> ProfileRecord conversion."""

    def test_typed_record(self):
        row = {
            "radar": "bejab", "datetime": "2016-09-01T00:02:00Z", "height": "200",
            "dd": "180", "ff": "10", "dens": "5", "sd_vvp": "3",
        }
        assert parse_record(row) == ProfileRecord(T1, 200, 180.0, 10.0, 5.0, 3.0)

    def test_missing_field(self):
        with pytest.raises(VptsParseError, match="sd_vvp"):
            parse_record({"datetime": "2016-09-01", "height": "0", "dd": "0", "ff": "1", "dens": "1"})

    def test_records_are_immutable(self):
        record = ProfileRecord(T1, 200, 0.0, 10.0, 5.0, 3.0)
        with pytest.raises(AttributeError):
            record.height = 400


class TestParseFrame:
    """Tests for vectorised DataFrame typing."""

    def test_types(self, profiles):
        assert str(profiles["datetime"].dt.tz) == "UTC"
        assert profiles["height"].dtype == np.int64
        for col in ("dd", "ff", "dens", "sd_vvp"):
            assert profiles[col].dtype == np.float64

    def test_bad_row_dropped_with_warning(self, raw_frame, caplog):
        with caplog.at_level(logging.WARNING, logger="vptsviz.analysis.profiles"):
            df = parse_frame(raw_frame)
        assert len(df) == 7
        assert not ((df["datetime"] == T2) & (df["height"] == 400)).any()
        assert any("Dropped 1 of 8" in r.getMessage() for r in caplog.records)

    def test_strict_raises(self, raw_frame):
        with pytest.raises(VptsParseError, match="Row 5"):
            parse_frame(raw_frame, strict=True)

    def test_missing_column(self, raw_frame):
        with pytest.raises(VptsParseError, match="dens"):
            parse_frame(raw_frame.drop(columns=["dens"]))

    def test_extra_columns_kept(self, profiles):
        assert "radar" in profiles.columns
        assert "sd_vvp_threshold" in profiles.columns

    def test_input_not_mutated(self, raw_frame):
        before = raw_frame.copy()
        parse_frame(raw_frame)
        pd.testing.assert_frame_equal(raw_frame, before)

    def test_index_reset(self, profiles):
        assert list(profiles.index) == list(range(len(profiles)))

    def test_mixed_timestamp_forms_agree_with_record_parser(self, caplog):
        raw = pd.DataFrame({
            "datetime": [
                "2016-09-01T00:02:00Z",
                "2016-09-01 00:07:00",
                "2016-09-01T00:12:00+02:00",
            ],
            "height": ["200"] * 3,
            "dd": ["180"] * 3,
            "ff": ["10"] * 3,
            "dens": ["5"] * 3,
            "sd_vvp": ["3"] * 3,
        })
        with caplog.at_level(logging.WARNING, logger="vptsviz.analysis.profiles"):
            df = parse_frame(raw)
        records = [parse_record(row) for row in raw.to_dict("records")]

        assert len(df) == len(records) == 3
        assert df["datetime"].tolist() == [r.timestamp for r in records]
        assert df["datetime"].iloc[2] == pd.Timestamp("2016-08-31T22:12:00Z")
        assert not caplog.records


class TestConversions:
    """Frame <-> record conversion."""

    def test_frame_to_records(self, profiles, records):
        assert len(records) == len(profiles)
        assert records[0] == ProfileRecord(T1, 0, 180.0, 10.0, 5.0, 3.0)

    def test_records_to_frame(self, records, profiles):
        frame = records_to_frame(records)
        expected = profiles[["datetime", "height", "dd", "ff", "dens", "sd_vvp"]]
        pd.testing.assert_frame_equal(frame, expected, check_dtype=False)

    def test_empty_records_to_frame(self):
        frame = records_to_frame([])
        assert frame.empty
        assert list(frame.columns) == ["datetime", "height", "dd", "ff", "dens", "sd_vvp"]


class TestGrouping:
    """Tests for group_by_timestamp."""

    def test_groups_in_first_seen_order(self, records):
        groups = group_by_timestamp(records)
        assert [g.timestamp for g in groups] == [T1, T2, T3]
        assert [len(g.records) for g in groups] == [3, 2, 2]

    def test_interleaved_timestamps(self):
        a = ProfileRecord(T2, 0, 0.0, 1.0, 1.0, 3.0)
        b = ProfileRecord(T1, 0, 0.0, 1.0, 1.0, 3.0)
        c = ProfileRecord(T2, 200, 90.0, 2.0, 2.0, 3.0)
        groups = group_by_timestamp([a, b, c])
        assert [g.timestamp for g in groups] == [T2, T1]
        assert groups[0].records == (a, c)

    def test_equal_records_share_group(self):
        a = ProfileRecord(T1, 0, 0.0, 1.0, 1.0, 3.0)
        groups = group_by_timestamp([a, a])
        assert len(groups) == 1
        assert len(groups[0].records) == 2

    def test_empty(self):
        assert group_by_timestamp([]) == []


class TestInference:
    """Bin interval and quality threshold inference."""

    def test_interval(self, profiles):
        assert infer_interval(profiles) == 200.0

    def test_interval_ignores_duplicates(self):
        df = pd.DataFrame({"height": [0, 0, 50, 100, 100]})
        assert infer_interval(df) == 50.0

    def test_interval_needs_two_heights(self):
        with pytest.raises(ValueError):
            infer_interval(pd.DataFrame({"height": [200, 200]}))

    def test_vvp_threshold_from_column(self, profiles):
        assert infer_vvp_threshold(profiles) == 2.0

    def test_vvp_threshold_default(self, profiles):
        assert infer_vvp_threshold(profiles.drop(columns=["sd_vvp_threshold"]), default=1.5) == 1.5
