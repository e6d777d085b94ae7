"""Prometheus metric definitions for radar self-instrumentation.

All metrics are module-level singletons registered with the default
prometheus_client registry.  Import them wherever instrumentation is needed.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# ---------------------------------------------------------------------------
# Histogram bucket definitions
# ---------------------------------------------------------------------------

TICK_DURATION_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0)

# ---------------------------------------------------------------------------
# Radar loop metrics
# ---------------------------------------------------------------------------

RADAR_TICKS_TOTAL = Counter(
    "visa_radar_ticks_total",
    "Total number of radar scans",
    labelnames=["status"],
)

RADAR_TICK_DURATION = Histogram(
    "visa_radar_tick_duration_seconds",
    "Duration of one radar scan in seconds",
    buckets=TICK_DURATION_BUCKETS,
)

RADAR_DUE_RECORDS = Gauge(
    "visa_radar_due_records",
    "Number of records found due on the last scan",
)

RADAR_ACTIVE = Gauge(
    "visa_radar_active",
    "Whether the radar is scanning (1=active, 0=inactive)",
)

# ---------------------------------------------------------------------------
# Alert queue and notification metrics
# ---------------------------------------------------------------------------

ALERT_QUEUE_LENGTH = Gauge(
    "visa_radar_alert_queue_length",
    "Number of pending alerts awaiting acknowledgement",
)

ALERTS_ENQUEUED_TOTAL = Counter(
    "visa_radar_alerts_enqueued_total",
    "Total number of alerts added to the queue",
)

ALERTS_RESOLVED_TOTAL = Counter(
    "visa_radar_alerts_resolved_total",
    "Total number of alerts removed from the queue",
    labelnames=["reason"],
)

NOTIFICATIONS_TOTAL = Counter(
    "visa_radar_notifications_total",
    "Notification channel activations",
    labelnames=["channel", "status"],
)

# ---------------------------------------------------------------------------
# Alarm clock and effects
# ---------------------------------------------------------------------------

ALARMS_FIRED_TOTAL = Counter(
    "visa_radar_alarms_fired_total",
    "Total number of reminder alarms fired",
)

EFFECTS_TOTAL = Counter(
    "visa_radar_effects_total",
    "Outbound effects emitted to collaborators",
    labelnames=["type", "status"],
)

APP_INFO = Info(
    "visa_radar",
    "Visa radar build information",
)
