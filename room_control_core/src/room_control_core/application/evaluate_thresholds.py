import logging
import operator
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Tuple

from room_control_core.domain.models import (
    AIR_PURIFIER,
    EXHAUST_FAN,
    OFF,
    ON,
    AggregatedRoom,
    Instruction,
    RoomSetting,
    ThresholdBreach,
)
from room_control_core.domain.ports import UnitOfWork

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActuationRule:
    name: str
    quantity: str
    threshold_field: str
    compare: Callable[[float, float], bool]
    device_type: str
    target: str


@dataclass(frozen=True)
class AdvisoryBand:
    quantity: str
    high_field: str
    low_field: str


# The pm25 "on" rule is strict while the co2 "on" rule is inclusive.
ACTUATION_RULES: Tuple[ActuationRule, ...] = (
    ActuationRule("pm25_high", "pm25", "pm25_threshold_high", operator.gt, AIR_PURIFIER, ON),
    ActuationRule("pm25_low", "pm25", "pm25_threshold_low", operator.le, AIR_PURIFIER, OFF),
    ActuationRule("co2_high", "co2", "co2_threshold_high", operator.ge, EXHAUST_FAN, ON),
    ActuationRule("co2_low", "co2", "co2_threshold_low", operator.le, EXHAUST_FAN, OFF),
)

ADVISORY_BANDS: Tuple[AdvisoryBand, ...] = (
    AdvisoryBand("diff_pressure", "diff_pressure_threshold_high", "diff_pressure_threshold_low"),
    AdvisoryBand("temperature", "temperature_threshold_high", "temperature_threshold_low"),
    AdvisoryBand("humidity", "humidity_threshold_high", "humidity_threshold_low"),
)


def load_enabled_settings(uow: UnitOfWork) -> List[RoomSetting]:
    with uow:
        return uow.room_setting_repo().enabled_settings()


def attach_settings(
    rooms: Iterable[AggregatedRoom], settings: Iterable[RoomSetting]
) -> List[AggregatedRoom]:
    """Join rooms to their enabled setting; rooms without one are dropped."""
    by_room = {s.room_id: s for s in settings if s.auto_control_enabled}
    joined = []
    for room in rooms:
        setting = by_room.get(room.room_id)
        if setting is None:
            continue
        joined.append(replace(room, setting=setting))
    return joined


def quantity_value(room: AggregatedRoom, quantity: str) -> Optional[float]:
    if quantity == "diff_pressure":
        return room.diff_pressure
    return getattr(room.indoor, quantity)


def evaluate_room(room: AggregatedRoom) -> Tuple[List[Instruction], List[ThresholdBreach]]:
    setting = room.setting
    if setting is None or not setting.auto_control_enabled:
        return [], []

    instructions = []
    for rule in ACTUATION_RULES:
        value = quantity_value(room, rule.quantity)
        threshold = getattr(setting, rule.threshold_field)
        if value is None or threshold is None:
            continue
        if rule.compare(value, threshold):
            instructions.append(
                Instruction(
                    room_id=room.room_id,
                    device_type=rule.device_type,
                    target=rule.target,
                    rule=rule.name,
                )
            )

    breaches = []
    for band in ADVISORY_BANDS:
        value = quantity_value(room, band.quantity)
        if value is None:
            continue
        high = getattr(setting, band.high_field)
        low = getattr(setting, band.low_field)
        if high is not None and value > high:
            breaches.append(ThresholdBreach(room.room_id, band.quantity, "high", value, high))
        if low is not None and value < low:
            breaches.append(ThresholdBreach(room.room_id, band.quantity, "low", value, low))

    return instructions, breaches


def evaluate_rooms(
    rooms: Iterable[AggregatedRoom],
) -> Tuple[List[Instruction], List[ThresholdBreach]]:
    instructions: List[Instruction] = []
    breaches: List[ThresholdBreach] = []
    for room in rooms:
        room_instructions, room_breaches = evaluate_room(room)
        instructions.extend(room_instructions)
        breaches.extend(room_breaches)
        for breach in room_breaches:
            log.warning(
                "Room %s %s %.2f outside %s threshold %.2f",
                breach.room_id,
                breach.quantity,
                breach.value,
                breach.bound,
                breach.threshold,
            )
    return instructions, breaches
