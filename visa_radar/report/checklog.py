"""Check-log report: proof of the manual portal checks made for one record."""

from datetime import datetime

from visa_radar.radar.models import MonitorableRecord


def _format_plain_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format a plain-text table with left-aligned padded columns."""
    if not rows:
        return ""
    all_data = [headers, *rows]
    col_widths = [max(len(row[i]) for row in all_data) for i in range(len(headers))]

    def fmt_row(cells: list[str]) -> str:
        return "  ".join(cell.ljust(col_widths[i]) for i, cell in enumerate(cells)).rstrip()

    lines = [fmt_row(headers)]
    lines.append("  ".join("-" * w for w in col_widths))
    lines.extend(fmt_row(row) for row in rows)
    return "\n".join(lines)


def format_check_log_markdown(record: MonitorableRecord, generated_at: datetime, agency: str) -> str:
    """Render a record's check log (newest first) as a markdown report."""
    lines: list[str] = []
    lines.append("# Appointment Check Report")
    lines.append("")
    lines.append(f"- **Client:** {record.client_name}")
    lines.append(f"- **Destination:** {record.destination}")
    lines.append(f"- **Visa type:** {record.visa_type or 'N/A'}")
    lines.append(f"- **Center:** {record.center or 'Center not specified'}")
    lines.append(f"- **Last checked:** {record.last_checked or 'never'}")
    lines.append("")

    lines.append("## Manual Checks")
    lines.append("")
    if record.check_log:
        rows = [[entry, "Manual check", "Done"] for entry in record.check_log]
        lines.append(_format_plain_table(["Date & Time", "Action", "Result"], rows))
        lines.append("")
        lines.append(f"{len(record.check_log)} check(s) recorded.")
    else:
        lines.append("*No checks recorded yet.*")
    lines.append("")

    lines.append(f"*Generated by {agency} on {generated_at.strftime('%Y-%m-%d %H:%M')}.*")
    return "\n".join(lines)
