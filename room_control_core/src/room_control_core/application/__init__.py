from .aggregate_rooms import aggregate_rooms
from .control_cycle import plan_control_cycle, run_control_cycle
from .dispatch_commands import dispatch, resolve_commands
from .evaluate_thresholds import attach_settings, evaluate_room
from .ingest_telemetry import IngestOutcome, TelemetryIngestor

__all__ = [
    "aggregate_rooms",
    "plan_control_cycle",
    "run_control_cycle",
    "dispatch",
    "resolve_commands",
    "attach_settings",
    "evaluate_room",
    "IngestOutcome",
    "TelemetryIngestor",
]
