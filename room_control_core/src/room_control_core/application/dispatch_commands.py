import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from room_control_core.domain.errors import TransportError
from room_control_core.domain.models import Command, Device, Instruction
from room_control_core.domain.ports import CommandPublisher, UnitOfWork

log = logging.getLogger(__name__)


def command_topic(device_id: str) -> str:
    return f"room/device/{device_id}/status"


def load_room_devices(room_ids: Iterable[str], uow: UnitOfWork) -> List[Device]:
    room_ids = sorted(set(room_ids))
    if not room_ids:
        return []
    with uow:
        return uow.device_repo().devices_in_rooms(room_ids)


def group_by_room(devices: Iterable[Device]) -> Dict[str, List[Device]]:
    grouped: Dict[str, List[Device]] = defaultdict(list)
    for device in devices:
        if device.room_id is not None:
            grouped[device.room_id].append(device)
    return dict(grouped)


def resolve_commands(
    instructions: Iterable[Instruction], devices: Iterable[Device]
) -> List[Command]:
    """One command per matching device per instruction; repeats are not suppressed."""
    by_room = group_by_room(devices)
    commands = []
    for instruction in instructions:
        for device in by_room.get(instruction.room_id, []):
            if device.device_type != instruction.device_type:
                continue
            commands.append(
                Command(
                    device_id=device.device_id,
                    topic=command_topic(device.device_id),
                    payload=instruction.target,
                )
            )
    return commands


def dispatch(
    commands: Iterable[Command], publisher: CommandPublisher
) -> Tuple[List[Command], List[Command]]:
    """
    Publish every command once, fire-and-forget.

    Returns:
        (sent, failed) lists. A failed publish is logged and not retried;
        the next cycle re-issues it if the condition persists.
    """
    sent: List[Command] = []
    failed: List[Command] = []
    for command in commands:
        try:
            publisher.publish(command.topic, command.payload)
        except TransportError as exc:
            log.error("Failed to publish %s to %s: %s", command.payload, command.topic, exc)
            failed.append(command)
            continue
        log.info("Published %s to %s", command.payload, command.topic)
        sent.append(command)
    return sent, failed
