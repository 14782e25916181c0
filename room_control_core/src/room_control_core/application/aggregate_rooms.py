from typing import Dict, Iterable, List, Optional

from room_control_core.domain.models import AggregatedRoom, LocatedReading, Reading
from room_control_core.domain.ports import UnitOfWork


def load_latest_readings(now: float, window_s: float, uow: UnitOfWork) -> List[LocatedReading]:
    with uow:
        return uow.reading_repo().latest_within_window(now=now, window_s=window_s)


def diff_pressure(indoor: Reading, outdoor: Optional[Reading]) -> Optional[float]:
    if outdoor is None or indoor.pressure is None or outdoor.pressure is None:
        return None
    return round(indoor.pressure - outdoor.pressure, 2)


def aggregate_rooms(readings: Iterable[LocatedReading]) -> List[AggregatedRoom]:
    """
    Pair every indoor reading with the outdoor reading of the same room.

    Readings from devices without a room are dropped. When a room has more
    than one outdoor sensor the last one seen wins.
    """
    indoor: List[LocatedReading] = []
    outdoor_by_room: Dict[str, Reading] = {}
    for located in readings:
        if located.room_id is None:
            continue
        if located.is_outside:
            outdoor_by_room[located.room_id] = located.reading
        else:
            indoor.append(located)

    rooms = []
    for located in indoor:
        outdoor = outdoor_by_room.get(located.room_id)
        rooms.append(
            AggregatedRoom(
                room_id=located.room_id,
                indoor=located.reading,
                outdoor=outdoor,
                diff_pressure=diff_pressure(located.reading, outdoor),
            )
        )
    return rooms
