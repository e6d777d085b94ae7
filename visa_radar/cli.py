"""Terminal cockpit: work through waiting records one at a time.

Usage:
    python -m visa_radar.cli records.json [openings.json]

Commands: n (next), p (previous), c (mark checked), o (portal URL),
l (check log), q (quit).
"""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler  # type: ignore[import-untyped]
from pydantic import TypeAdapter, ValidationError

from visa_radar.config import get_settings
from visa_radar.radar.actions import RecordRegistry, portal_url
from visa_radar.radar.cockpit import RankedRecord
from visa_radar.radar.models import MonitorableRecord, OpeningLogEntry
from visa_radar.radar.service import RadarService, build_radar_service
from visa_radar.report.checklog import format_check_log_markdown

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)

_RECORDS = TypeAdapter(list[MonitorableRecord])
_OPENINGS = TypeAdapter(list[OpeningLogEntry])


def _describe(entry: RankedRecord, position: int, total: int) -> str:
    record = entry["record"]
    flag = "  [history match]" if entry["history_match"] else ""
    return (
        f"[{position}/{total}] {record.client_name} -> {record.destination}"
        f"  score={entry['urgency_score']}  last check: {entry['time_display']['text']}{flag}"
    )


def _show(service: RadarService) -> RankedRecord | None:
    ranked = service.cockpit.rank(service.registry.records(), service.registry.openings(), datetime.now())
    focused = service.cockpit.focused()
    if focused is None:
        print("No records waiting for an appointment.")
    else:
        print(_describe(focused, service.cockpit.index + 1, len(ranked)))
    return focused


def main() -> None:
    """Run the interactive cockpit loop."""
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)

    try:
        records = _RECORDS.validate_json(Path(sys.argv[1]).read_text())
        openings = _OPENINGS.validate_json(Path(sys.argv[2]).read_text()) if len(sys.argv) > 2 else []
    except (OSError, ValidationError) as e:
        print(f"Failed to load input: {e}")
        sys.exit(1)

    settings = get_settings()
    # The scheduler is never started: the terminal cockpit has no background loops
    service = build_radar_service(BackgroundScheduler(), registry=RecordRegistry(records, openings))
    service.effects.subscribe(lambda effect: print(f"  effect: {json.dumps(effect)}"))

    print(f"{settings.app_title} cockpit (type 'q' or Ctrl+C to exit)")
    print("=" * 50)
    focused = _show(service)

    while True:
        try:
            command = input("> ").strip().lower()
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        if command in ("q", "quit", "exit"):
            print("Goodbye!")
            break
        if command in ("n", "next"):
            service.cockpit.next()
        elif command in ("p", "prev", "previous"):
            service.cockpit.previous()
        elif focused is None:
            pass
        elif command in ("c", "check"):
            service.actions.mark_checked(focused["record"].id)
        elif command in ("o", "open"):
            print(portal_url(focused["record"], settings.centers, settings.default_portal_url))
        elif command in ("l", "log"):
            print(format_check_log_markdown(focused["record"], datetime.now(), settings.app_title))
        elif command:
            print(f"Unknown command: {command}")
        focused = _show(service)


if __name__ == "__main__":
    main()
