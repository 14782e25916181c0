from typing import Iterable, List, Protocol

from room_control_core.domain.models import (
    AggregatedRoom,
    Device,
    LocatedReading,
    Reading,
    RoomSetting,
)


class ReadingRepository(Protocol):
    def insert(self, reading: Reading) -> None: ...

    def latest_within_window(self, now: float, window_s: float) -> List[LocatedReading]: ...


class DeviceRepository(Protocol):
    def upsert_status(self, device_id: str, status: str) -> None: ...

    def devices_in_rooms(self, room_ids: Iterable[str]) -> List[Device]: ...


class RoomSettingRepository(Protocol):
    def enabled_settings(self) -> List[RoomSetting]: ...


class AuditRepository(Protocol):
    def record(self, room: AggregatedRoom) -> None: ...


class UnitOfWork(Protocol):
    def reading_repo(self) -> ReadingRepository: ...

    def device_repo(self) -> DeviceRepository: ...

    def room_setting_repo(self) -> RoomSettingRepository: ...

    def audit_repo(self) -> AuditRepository: ...

    def __enter__(self) -> "UnitOfWork": ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None: ...


class CommandPublisher(Protocol):
    def publish(self, topic: str, payload: str) -> None: ...
