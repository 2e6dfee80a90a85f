"""Tests for sleepdebt.analytics.sessions -- session reconstruction."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from sleepdebt.analytics.sessions import (
    SampleStage,
    SleepSample,
    SESSION_GAP,
    group_sessions,
    reconstruct_sessions,
)

from tests.conftest import make_sample


class TestSampleStage:
    @pytest.mark.parametrize("stage", [
        SampleStage.ASLEEP,
        SampleStage.ASLEEP_UNSPECIFIED,
        SampleStage.ASLEEP_CORE,
        SampleStage.ASLEEP_DEEP,
        SampleStage.ASLEEP_REM,
    ])
    def test_asleep_stages(self, stage):
        assert stage.is_asleep

    @pytest.mark.parametrize("stage", [SampleStage.IN_BED, SampleStage.AWAKE])
    def test_non_asleep_stages(self, stage):
        assert not stage.is_asleep

    def test_sample_hours(self):
        s = make_sample(datetime(2026, 3, 1, 23, 0), 1.5)
        assert s.hours == pytest.approx(1.5)


class TestGroupSessions:
    def test_unordered_input_is_sorted(self):
        t0 = datetime(2026, 3, 1, 23, 0)
        late = make_sample(t0 + timedelta(hours=2), 1.0)
        early = make_sample(t0, 1.0)
        sessions = group_sessions([late, early])
        assert len(sessions) == 1
        assert sessions[0] == [early, late]

    def test_gap_of_exactly_two_hours_joins(self):
        t0 = datetime(2026, 3, 1, 23, 0)
        a = make_sample(t0, 1.0)
        b = make_sample(t0 + timedelta(hours=1) + SESSION_GAP, 1.0)
        assert len(group_sessions([a, b])) == 1

    def test_gap_over_two_hours_splits(self):
        t0 = datetime(2026, 3, 1, 23, 0)
        a = make_sample(t0, 1.0)
        b = make_sample(t0 + timedelta(hours=1) + SESSION_GAP + timedelta(minutes=1), 1.0)
        assert len(group_sessions([a, b])) == 2

    def test_empty(self):
        assert group_sessions([]) == []


class TestReconstructSessions:
    def test_overnight_session(self, overnight_samples):
        records = reconstruct_sessions(overnight_samples)
        assert len(records) == 1
        rec = records[0]
        assert rec.bedtime == datetime(2026, 3, 1, 22, 0)
        assert rec.wake_time == datetime(2026, 3, 2, 6, 0)
        assert rec.date == datetime(2026, 3, 1, 22, 0)
        # Only asleep samples count toward duration
        assert rec.duration_hours == pytest.approx(6.0)
        assert not rec.is_planned

    def test_record_id_from_earliest_start(self, overnight_samples):
        rec = reconstruct_sessions(overnight_samples)[0]
        earliest = datetime(2026, 3, 1, 22, 0)
        assert rec.id == f"{earliest.timestamp()}-0"

    def test_in_bed_only_session_dropped(self):
        s = make_sample(datetime(2026, 3, 1, 22, 0), 8.0, SampleStage.IN_BED)
        assert reconstruct_sessions([s]) == []

    def test_in_bed_only_session_kept_as_zero_hours(self):
        s = make_sample(datetime(2026, 3, 1, 22, 0), 8.0, SampleStage.IN_BED)
        records = reconstruct_sessions([s], keep_in_bed_only=True)
        assert len(records) == 1
        assert records[0].duration_hours == 0.0
        assert records[0].wake_time == datetime(2026, 3, 2, 6, 0)

    def test_awake_only_session_dropped(self):
        s = make_sample(datetime(2026, 3, 1, 22, 0), 1.0, SampleStage.AWAKE)
        assert reconstruct_sessions([s], keep_in_bed_only=True) == []

    def test_awake_samples_do_not_extend_bounds(self):
        t0 = datetime(2026, 3, 1, 23, 0)
        samples = [
            make_sample(t0, 7.0, SampleStage.ASLEEP),
            make_sample(t0 + timedelta(hours=7), 0.5, SampleStage.AWAKE),
        ]
        rec = reconstruct_sessions(samples)[0]
        assert rec.wake_time == t0 + timedelta(hours=7)

    def test_two_nights_newest_first(self):
        n1 = datetime(2026, 3, 1, 23, 0)
        n2 = datetime(2026, 3, 2, 23, 0)
        samples = [
            make_sample(n1, 7.0),
            make_sample(n2, 6.0),
        ]
        records = reconstruct_sessions(samples)
        assert [r.bedtime for r in records] == [n2, n1]
        assert records[0].duration_hours == pytest.approx(6.0)

    def test_nap_is_separate_session(self):
        night = datetime(2026, 3, 1, 23, 0)
        nap = datetime(2026, 3, 2, 14, 0)
        records = reconstruct_sessions([make_sample(night, 7.0), make_sample(nap, 0.5)])
        assert len(records) == 2

    def test_degenerate_sample_skipped(self):
        t0 = datetime(2026, 3, 1, 23, 0)
        bad = SleepSample(start=t0, end=t0, stage=SampleStage.ASLEEP)
        records = reconstruct_sessions([bad, make_sample(t0, 7.0)])
        assert len(records) == 1
        assert records[0].duration_hours == pytest.approx(7.0)

    def test_mixed_naive_and_aware_samples(self):
        cet = timezone(timedelta(hours=1))
        samples = [
            make_sample(datetime(2026, 3, 1, 23, 0, tzinfo=cet), 4.0),
            make_sample(datetime(2026, 3, 2, 3, 0), 3.0, SampleStage.ASLEEP_REM),
        ]
        records = reconstruct_sessions(samples)
        assert len(records) == 1
        assert records[0].bedtime == datetime(2026, 3, 1, 23, 0)
        assert records[0].duration_hours == pytest.approx(7.0)

    def test_empty(self):
        assert reconstruct_sessions([]) == []
