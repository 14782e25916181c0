"""In-memory stand-ins for the storage and transport ports, used by the tests."""

from typing import Dict, Iterable, List, Optional, Tuple

from room_control_core.domain.errors import StorageError, TransportError
from room_control_core.domain.models import (
    AggregatedRoom,
    Device,
    LocatedReading,
    Reading,
    RoomSetting,
)


class InMemoryStore:
    def __init__(self):
        self.readings: List[LocatedReading] = []
        self.inserted: List[Reading] = []
        self.devices: Dict[str, Device] = {}
        self.settings: List[RoomSetting] = []
        self.audit: List[AggregatedRoom] = []
        self.fail_with: Optional[Exception] = None
        self.commits = 0

    def add_device(self, device: Device) -> Device:
        self.devices[device.device_id] = device
        return device

    def check(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with


class FakeReadingRepo:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def insert(self, reading: Reading) -> None:
        self.store.check()
        self.store.inserted.append(reading)

    def latest_within_window(self, now: float, window_s: float) -> List[LocatedReading]:
        self.store.check()
        latest: Dict[str, LocatedReading] = {}
        for located in self.store.readings:
            ts = located.reading.recorded_at
            if not now - window_s <= ts <= now:
                continue
            current = latest.get(located.reading.device_id)
            if current is None or current.reading.recorded_at < ts:
                latest[located.reading.device_id] = located
        return list(latest.values())


class FakeDeviceRepo:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def upsert_status(self, device_id: str, status: str) -> None:
        self.store.check()
        device = self.store.devices.setdefault(device_id, Device(device_id=device_id))
        device.status = status

    def devices_in_rooms(self, room_ids: Iterable[str]) -> List[Device]:
        self.store.check()
        wanted = set(room_ids)
        return [d for d in self.store.devices.values() if d.room_id in wanted]


class FakeRoomSettingRepo:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def enabled_settings(self) -> List[RoomSetting]:
        self.store.check()
        return [s for s in self.store.settings if s.auto_control_enabled]


class FakeAuditRepo:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def record(self, room: AggregatedRoom) -> None:
        self.store.check()
        self.store.audit.append(room)


class StubUoW:
    def __init__(self, store: InMemoryStore):
        self.store = store

    def reading_repo(self):
        return FakeReadingRepo(self.store)

    def device_repo(self):
        return FakeDeviceRepo(self.store)

    def room_setting_repo(self):
        return FakeRoomSettingRepo(self.store)

    def audit_repo(self):
        return FakeAuditRepo(self.store)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, *_):
        if exc_type is None:
            self.store.commits += 1


class RecordingPublisher:
    def __init__(self, fail_topics: Iterable[str] = ()):
        self.published: List[Tuple[str, str]] = []
        self.fail_topics = set(fail_topics)

    def publish(self, topic: str, payload: str) -> None:
        if topic in self.fail_topics:
            raise TransportError(f"broker refused {topic}")
        self.published.append((topic, payload))


def storage_down() -> StorageError:
    return StorageError("database unavailable")
