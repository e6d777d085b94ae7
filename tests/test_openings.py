"""Tests for opening observations, the hourly heatmap and the check-log report."""

from collections.abc import Callable
from datetime import datetime

from visa_radar.radar.models import MonitorableRecord, OpeningLogEntry
from visa_radar.radar.openings import observe_opening, opening_heatmap
from visa_radar.report.checklog import format_check_log_markdown

RecordFactory = Callable[..., MonitorableRecord]


def _opening(time_of_day: str) -> OpeningLogEntry:
    return OpeningLogEntry(
        destination="France",
        day_of_week="Mardi",
        time_of_day=time_of_day,
        found_at=datetime(2026, 10, 13, 8, 0),
    )


class TestObserveOpening:
    def test_fields(self, make_record: RecordFactory) -> None:
        entry = observe_opening(make_record(destination="Espagne"), datetime(2026, 10, 23, 7, 4))
        assert entry.destination == "Espagne"
        assert entry.day_of_week == "Vendredi"
        assert entry.time_of_day == "07:04"
        assert entry.center == "N/A"


class TestHeatmap:
    def test_counts_per_hour(self) -> None:
        heatmap = opening_heatmap([_opening("08:10"), _opening("08:55"), _opening("23:00")])
        assert len(heatmap) == 24
        assert heatmap["08h"] == 2
        assert heatmap["23h"] == 1
        assert heatmap["00h"] == 0

    def test_malformed_time_ignored(self) -> None:
        assert sum(opening_heatmap([_opening("midi")]).values()) == 0


class TestCheckLogReport:
    GENERATED = datetime(2026, 10, 19, 17, 45)

    def test_with_checks(self, make_record: RecordFactory) -> None:
        record = make_record(
            client_name="Amira Ben Salah",
            center="VFS Global",
            last_checked="19/10 9:05",
            check_log=["19/10 9:05", "18/10 16:40"],
        )

        report = format_check_log_markdown(record, self.GENERATED, "Visa Radar")

        assert report.startswith("# Appointment Check Report")
        assert "- **Client:** Amira Ben Salah" in report
        assert "- **Visa type:** N/A" in report
        assert "- **Center:** VFS Global" in report
        assert "Date & Time  Action        Result" in report
        assert "19/10 9:05   Manual check  Done" in report
        assert "2 check(s) recorded." in report
        assert report.endswith("*Generated by Visa Radar on 2026-10-19 17:45.*")

    def test_without_checks(self, make_record: RecordFactory) -> None:
        report = format_check_log_markdown(make_record(), self.GENERATED, "Visa Radar")

        assert "*No checks recorded yet.*" in report
        assert "- **Center:** Center not specified" in report
        assert "- **Last checked:** never" in report
