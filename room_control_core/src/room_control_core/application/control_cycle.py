import logging
import time
from typing import Callable, Optional

from room_control_core.application.aggregate_rooms import aggregate_rooms, load_latest_readings
from room_control_core.application.dispatch_commands import (
    dispatch,
    load_room_devices,
    resolve_commands,
)
from room_control_core.application.evaluate_thresholds import (
    attach_settings,
    evaluate_rooms,
    load_enabled_settings,
)
from room_control_core.domain.models import CyclePlan, CycleReport
from room_control_core.domain.ports import CommandPublisher, UnitOfWork

log = logging.getLogger(__name__)

DEFAULT_WINDOW_S = 60.0


def plan_control_cycle(
    uow_factory: Callable[[], UnitOfWork],
    *,
    now: float,
    window_s: float = DEFAULT_WINDOW_S,
    record_audit: bool = False,
) -> CyclePlan:
    """Read everything a cycle needs and decide, without publishing anything."""
    readings = load_latest_readings(now, window_s, uow_factory())
    if not readings:
        log.debug("No readings within the last %.0fs", window_s)
        return CyclePlan()

    rooms = aggregate_rooms(readings)
    if not rooms:
        return CyclePlan()

    rooms = attach_settings(rooms, load_enabled_settings(uow_factory()))
    if not rooms:
        log.debug("No room with fresh readings has auto control enabled")
        return CyclePlan()

    if record_audit:
        with uow_factory() as uow:
            audit = uow.audit_repo()
            for room in rooms:
                audit.record(room)

    instructions, breaches = evaluate_rooms(rooms)
    devices = []
    if instructions:
        devices = load_room_devices((i.room_id for i in instructions), uow_factory())

    return CyclePlan(rooms=rooms, instructions=instructions, breaches=breaches, devices=devices)


def run_control_cycle(
    uow_factory: Callable[[], UnitOfWork],
    publisher: CommandPublisher,
    *,
    now: Optional[float] = None,
    window_s: float = DEFAULT_WINDOW_S,
    record_audit: bool = False,
) -> CycleReport:
    """
    Run one aggregate → evaluate → dispatch cycle.

    StorageError propagates to the caller, which owns the per-cycle
    containment. Publish failures are counted in the report instead.
    """
    started_at = time.time() if now is None else now
    plan = plan_control_cycle(
        uow_factory, now=started_at, window_s=window_s, record_audit=record_audit
    )
    commands = resolve_commands(plan.instructions, plan.devices)
    sent, failed = dispatch(commands, publisher)

    report = CycleReport(
        started_at=started_at,
        rooms=len(plan.rooms),
        instructions=plan.instructions,
        breaches=plan.breaches,
        commands_sent=sent,
        commands_failed=failed,
    )
    if plan.rooms:
        log.info(
            "Control cycle: %d rooms, %d instructions, %d commands sent, %d failed",
            report.rooms,
            len(report.instructions),
            len(sent),
            len(failed),
        )
    return report
