"""Tests for parsing raw family documents into ActivitySnapshots."""

from datetime import datetime, timedelta, timezone

import pytest

from love_everyday.adapters.family_document import FamilyDocumentAdapter, parse_timestamp
from love_everyday.domain.enums import ActivitySource
from love_everyday.domain.snapshot import ALL_WEEKDAYS, ActivitySnapshot, SleepSchedule

_BASE = datetime(2026, 1, 5, 12, 0, 0, tzinfo=timezone.utc)


def _family_document(**overrides) -> dict:
    """Return a realistic family document, with optional top-level overrides."""
    base = {
        "elderlyName": "김순자",
        "lastPhoneActivity": _BASE.isoformat(),
        "survivalAlert": {"isActive": False},
        "settings": {
            "alertHours": 12,
            "survivalSignalEnabled": True,
        },
    }
    base.update(overrides)
    return base


@pytest.fixture
def adapter() -> FamilyDocumentAdapter:
    return FamilyDocumentAdapter()


class TestParseTimestamp:
    def test_aware_datetime_passes_through(self) -> None:
        assert parse_timestamp(_BASE) == _BASE

    def test_naive_datetime_gets_utc(self) -> None:
        parsed = parse_timestamp(datetime(2026, 1, 5, 12, 0))
        assert parsed == _BASE

    def test_iso_string_with_z_suffix(self) -> None:
        assert parse_timestamp("2026-01-05T12:00:00Z") == _BASE

    def test_iso_string_with_offset(self) -> None:
        assert parse_timestamp("2026-01-05T21:00:00+09:00") == _BASE

    def test_epoch_milliseconds(self) -> None:
        millis = int(_BASE.timestamp() * 1000)
        assert parse_timestamp(millis) == _BASE

    def test_firestore_timestamp_map(self) -> None:
        raw = {"seconds": int(_BASE.timestamp()), "nanoseconds": 500_000_000}
        assert parse_timestamp(raw) == _BASE + timedelta(milliseconds=500)

    def test_firestore_json_map_with_underscores(self) -> None:
        raw = {"_seconds": int(_BASE.timestamp()), "_nanoseconds": 0}
        assert parse_timestamp(raw) == _BASE

    @pytest.mark.parametrize("value", ["yesterday", "", True, [1, 2], {"foo": 1}, None])
    def test_garbage_returns_none(self, value) -> None:
        assert parse_timestamp(value) is None

    @pytest.mark.parametrize(
        "value",
        [
            float("nan"),
            float("inf"),
            10**20,
            {"seconds": 10**15},
            {"seconds": float("nan")},
            {"_seconds": float("-inf")},
            {"seconds": 0, "nanoseconds": float("nan")},
        ],
    )
    def test_unrepresentable_numbers_return_none(self, value) -> None:
        assert parse_timestamp(value) is None


class TestActivityResolution:
    def test_phone_activity_preferred(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(lastActive=(_BASE + timedelta(hours=1)).isoformat())
        snap = adapter.adapt("4821", doc)
        assert snap.last_activity_at == _BASE
        assert snap.activity_source == ActivitySource.PHONE

    def test_legacy_misspelled_phone_key(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(lastPhoneActivity=None, blastPhoneActivity=_BASE.isoformat())
        snap = adapter.adapt("4821", doc)
        assert snap.last_activity_at == _BASE
        assert snap.activity_source == ActivitySource.PHONE

    def test_falls_back_to_app_activity(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(lastPhoneActivity=None, lastActive=_BASE.isoformat())
        snap = adapter.adapt("4821", doc)
        assert snap.activity_source == ActivitySource.APP

    def test_unparseable_phone_activity_skipped(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(
            lastPhoneActivity="not a time",
            lastMeal={"timestamp": _BASE.isoformat()},
        )
        snap = adapter.adapt("4821", doc)
        assert snap.last_activity_at == _BASE
        assert snap.activity_source == ActivitySource.MEAL

    def test_out_of_range_phone_activity_falls_back(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(
            lastPhoneActivity={"seconds": 10**15},
            lastActive=_BASE.isoformat(),
        )
        snap = adapter.adapt("4821", doc)
        assert snap.last_activity_at == _BASE
        assert snap.activity_source == ActivitySource.APP

    def test_location_is_last_resort(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(lastPhoneActivity=None, location={"timestamp": _BASE.isoformat()})
        snap = adapter.adapt("4821", doc)
        assert snap.activity_source == ActivitySource.LOCATION

    def test_no_activity_at_all(self, adapter: FamilyDocumentAdapter) -> None:
        snap = adapter.adapt("4821", _family_document(lastPhoneActivity=None))
        assert snap.last_activity_at is None
        assert snap.activity_source is None
        assert not adapter.has_valid_activity(_family_document(lastPhoneActivity=None))


class TestDefaults:
    def test_empty_document_gets_every_default(self, adapter: FamilyDocumentAdapter) -> None:
        snap = adapter.adapt("4821", {})
        assert snap.elderly_name == "부모님"
        assert snap.alert_threshold_hours == 12
        assert snap.survival_signal_enabled is True
        assert snap.sleep_schedule is None
        assert snap.manual_alert_active is False
        assert snap.manual_alert_message is None

    def test_legacy_alert_hours_key(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(settings={"survivalAlertHours": 6})
        assert adapter.adapt("4821", doc).alert_threshold_hours == 6

    @pytest.mark.parametrize("hours", [0, 73, -5, "12", 1.5, True])
    def test_out_of_domain_alert_hours_use_default(
        self, adapter: FamilyDocumentAdapter, hours
    ) -> None:
        doc = _family_document(settings={"alertHours": hours})
        assert adapter.adapt("4821", doc).alert_threshold_hours == 12
        assert not adapter.has_valid_alert_hours(doc)

    @pytest.mark.parametrize("hours", [1, 72])
    def test_alert_hours_domain_is_inclusive(self, adapter: FamilyDocumentAdapter, hours) -> None:
        doc = _family_document(settings={"alertHours": hours})
        assert adapter.adapt("4821", doc).alert_threshold_hours == hours
        assert adapter.has_valid_alert_hours(doc)

    def test_blank_name_uses_default(self, adapter: FamilyDocumentAdapter) -> None:
        assert adapter.adapt("4821", _family_document(elderlyName="  ")).elderly_name == "부모님"

    def test_non_bool_enabled_flag_keeps_monitoring_on(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(settings={"survivalSignalEnabled": "no"})
        assert adapter.adapt("4821", doc).survival_signal_enabled is True

    def test_custom_default_hours(self) -> None:
        adapter = FamilyDocumentAdapter(default_alert_hours=24)
        assert adapter.adapt("4821", {}).alert_threshold_hours == 24

    def test_default_outside_range_rejected(self) -> None:
        with pytest.raises(ValueError):
            FamilyDocumentAdapter(default_alert_hours=100)


class TestManualAlert:
    def test_active_alert_with_message(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(survivalAlert={"isActive": True, "message": "응답이 없습니다"})
        snap = adapter.adapt("4821", doc)
        assert snap.manual_alert_active is True
        assert snap.manual_alert_message == "응답이 없습니다"

    def test_truthy_non_bool_is_not_active(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(survivalAlert={"isActive": "true"})
        assert adapter.adapt("4821", doc).manual_alert_active is False

    def test_blank_message_becomes_none(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(survivalAlert={"isActive": True, "message": ""})
        assert adapter.adapt("4821", doc).manual_alert_message is None


class TestSleepSchedule:
    def _doc(self, **sleep) -> dict:
        return _family_document(settings={"alertHours": 12, "sleepTimeSettings": sleep})

    def test_full_schedule(self, adapter: FamilyDocumentAdapter) -> None:
        doc = self._doc(
            enabled=True, sleepStartHour=23, sleepStartMinute=30,
            sleepEndHour=7, sleepEndMinute=15, activeDays=[1, 2, 3],
        )
        schedule = adapter.adapt("4821", doc).sleep_schedule
        assert schedule == SleepSchedule(
            enabled=True, start_hour=23, start_minute=30,
            end_hour=7, end_minute=15, active_weekdays=frozenset({1, 2, 3}),
        )
        assert schedule.window_label == "23:30 - 07:15"

    def test_missing_fields_use_overnight_defaults(self, adapter: FamilyDocumentAdapter) -> None:
        schedule = adapter.adapt("4821", self._doc(enabled=True)).sleep_schedule
        assert schedule.window_label == "22:00 - 06:00"
        assert schedule.active_weekdays == ALL_WEEKDAYS

    def test_null_fields_use_defaults(self, adapter: FamilyDocumentAdapter) -> None:
        schedule = adapter.adapt("4821", self._doc(enabled=True, sleepStartHour=None)).sleep_schedule
        assert schedule.start_hour == 22

    def test_enabled_defaults_to_false(self, adapter: FamilyDocumentAdapter) -> None:
        assert adapter.adapt("4821", self._doc()).sleep_schedule.enabled is False

    def test_invalid_weekdays_dropped(self, adapter: FamilyDocumentAdapter) -> None:
        doc = self._doc(enabled=True, activeDays=[0, 1, 8, "2", 7])
        assert adapter.adapt("4821", doc).sleep_schedule.active_weekdays == frozenset({1, 7})

    @pytest.mark.parametrize(
        "field,value",
        [("sleepStartHour", 24), ("sleepEndHour", -1), ("sleepStartMinute", 60), ("sleepEndMinute", 7.5)],
    )
    def test_malformed_schedule_fails_open(
        self, adapter: FamilyDocumentAdapter, field: str, value
    ) -> None:
        doc = self._doc(enabled=True, **{field: value})
        assert adapter.adapt("4821", doc).sleep_schedule is None


class TestSnapshotModel:
    def test_snapshot_is_immutable(self, adapter: FamilyDocumentAdapter) -> None:
        snap = adapter.adapt("4821", _family_document())
        with pytest.raises(Exception):
            snap.alert_threshold_hours = 3

    def test_naive_timestamp_gets_utc(self) -> None:
        snap = ActivitySnapshot(family_code="4821", last_activity_at=datetime(2026, 1, 5, 12, 0))
        assert snap.last_activity_at.tzinfo is not None

    def test_adapter_does_not_mutate_input(self, adapter: FamilyDocumentAdapter) -> None:
        doc = _family_document(settings={"sleepTimeSettings": {"enabled": True}})
        before = repr(doc)
        adapter.adapt("4821", doc)
        assert repr(doc) == before
