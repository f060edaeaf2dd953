"""Unit tests for timestamp and byte-size helpers."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from datetime import datetime, timedelta, timezone
from clip_sync.utils.timestamps import (
    object_name_for,
    oldest_object_name,
    parse_event_timestamp,
    try_parse_event_timestamp,
)
from clip_sync.utils.byte_size import MB, format_bytes, megabytes


class TestParseEventTimestamp:
    def test_bosch_timestamp_with_zone_name(self):
        parsed = parse_event_timestamp("2021-12-08T17:52:47.339+01:00[Europe/Berlin]")
        assert parsed == datetime(2021, 12, 8, 16, 52, 47, 339000, tzinfo=timezone.utc)

    def test_object_name_parses_like_its_timestamp(self):
        ts = "2021-12-08T17:52:47.339+01:00[Europe/Berlin]"
        assert parse_event_timestamp(object_name_for(ts)) == parse_event_timestamp(ts)

    def test_spaces_in_place_of_colons(self):
        parsed = parse_event_timestamp("2021-12-08T17 52 47.339+01 00[Europe/Berlin].mp4")
        assert parsed == datetime(2021, 12, 8, 17, 52, 47, 339000, tzinfo=timezone(timedelta(hours=1)))

    def test_zulu_and_short_fraction(self):
        parsed = parse_event_timestamp("2022-01-01T00:00:00.5Z")
        assert parsed == datetime(2022, 1, 1, 0, 0, 0, 500000, tzinfo=timezone.utc)

    def test_naive_value_is_utc(self):
        assert parse_event_timestamp("2022-01-01T10:00:00").tzinfo == timezone.utc

    def test_garbage_raises(self):
        with pytest.raises(ValueError):
            parse_event_timestamp("holiday-video.mp4")
        assert try_parse_event_timestamp("holiday-video.mp4") is None


class TestOldestObjectName:
    def test_picks_oldest_instant_not_oldest_string(self):
        names = {
            "2022-01-01T10:00:00.000+01:00[Europe/Paris].mp4",   # 09:00 UTC
            "2022-01-01T09:30:00.000+00:00[Europe/London].mp4",  # 09:30 UTC
        }
        assert oldest_object_name(names) == "2022-01-01T10:00:00.000+01:00[Europe/Paris].mp4"

    def test_ignores_foreign_files(self):
        names = {"notes.txt", "2022-01-01T10:00:00.000+01:00[Europe/Paris].mp4"}
        assert oldest_object_name(names) == "2022-01-01T10:00:00.000+01:00[Europe/Paris].mp4"

    def test_nothing_to_pick(self):
        assert oldest_object_name(set()) is None
        assert oldest_object_name({"notes.txt"}) is None


class TestByteSize:
    def test_megabytes(self):
        assert megabytes(10) == 10 * 1024 * 1024
        assert megabytes(0.5) == MB // 2

    def test_format_bytes(self):
        assert format_bytes(512) == "512 B"
        assert format_bytes(10 * MB) == "10.0 MB"
        assert format_bytes(float("inf")) == "unlimited"
