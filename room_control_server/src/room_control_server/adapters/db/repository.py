from typing import Iterable, List

from room_control_core.domain.models import (
    AggregatedRoom,
    Device,
    LocatedReading,
    Reading,
    RoomSetting,
)
from room_control_core.domain.ports import (
    AuditRepository,
    DeviceRepository,
    ReadingRepository,
    RoomSettingRepository,
)
from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from room_control_server.adapters.db.sqlalchemy_models import (
    DeviceORM,
    ReadingDiffORM,
    ReadingORM,
    RoomSettingORM,
)


class SqlReadingRepository(ReadingRepository):
    def __init__(self, session: Session):
        self.session = session

    # READ side
    def latest_within_window(self, now: float, window_s: float) -> List[LocatedReading]:
        """Newest reading per sensor device with ``now - window_s <= recorded_at <= now``."""
        latest = (
            select(
                ReadingORM.device_id.label("device_id"),
                func.max(ReadingORM.recorded_at).label("recorded_at"),
            )
            .where(ReadingORM.recorded_at >= now - window_s)
            .where(ReadingORM.recorded_at <= now)
            .group_by(ReadingORM.device_id)
            .subquery()
        )
        stmt = (
            select(ReadingORM, DeviceORM)
            .join(
                latest,
                and_(
                    ReadingORM.device_id == latest.c.device_id,
                    ReadingORM.recorded_at == latest.c.recorded_at,
                ),
            )
            .join(DeviceORM, DeviceORM.device_id == ReadingORM.device_id)
            .where(DeviceORM.is_sensor_device.is_(True))
            .order_by(ReadingORM.recorded_at.desc(), ReadingORM.id.desc())
        )

        results = []
        seen = set()
        for reading, device in self.session.execute(stmt).all():
            # two rows can share the same max timestamp
            if reading.device_id in seen:
                continue
            seen.add(reading.device_id)
            results.append(
                LocatedReading(
                    reading=self._to_domain(reading),
                    room_id=device.room_id,
                    is_outside=bool(device.is_outside),
                )
            )
        return results

    def insert(self, reading: Reading) -> None:
        row = ReadingORM()
        row.device_id = reading.device_id
        row.recorded_at = reading.recorded_at
        row.pm25 = reading.pm25
        row.co2 = reading.co2
        row.pressure = reading.pressure
        row.temperature = reading.temperature
        row.humidity = reading.humidity
        self.session.add(row)

    # helper
    @staticmethod
    def _to_domain(row: ReadingORM) -> Reading:
        return Reading(
            device_id=row.device_id,
            recorded_at=row.recorded_at,
            pm25=row.pm25,
            co2=row.co2,
            pressure=row.pressure,
            temperature=row.temperature,
            humidity=row.humidity,
        )


class SqlDeviceRepository(DeviceRepository):
    def __init__(self, session: Session):
        self.session = session

    # READ
    def devices_in_rooms(self, room_ids: Iterable[str]) -> List[Device]:
        room_ids = list(room_ids)
        if not room_ids:
            return []
        stmt = (
            select(DeviceORM)
            .where(DeviceORM.room_id.in_(room_ids))
            .order_by(DeviceORM.device_id)
        )
        return [self._to_domain(row) for row in self.session.scalars(stmt).all()]

    # WRITE
    def upsert_status(self, device_id: str, status: str) -> None:
        row = self.session.get(DeviceORM, device_id)
        if row is None:
            row = DeviceORM()
            row.device_id = device_id
            row.is_sensor_device = False
            row.is_outside = False
            self.session.add(row)
        row.status = status

    @staticmethod
    def _to_domain(row: DeviceORM) -> Device:
        return Device(
            device_id=row.device_id,
            device_type=row.device_type,
            room_id=row.room_id,
            is_sensor_device=bool(row.is_sensor_device),
            is_outside=bool(row.is_outside),
            status=row.status,
        )


class SqlRoomSettingRepository(RoomSettingRepository):
    def __init__(self, session: Session):
        self.session = session

    def enabled_settings(self) -> List[RoomSetting]:
        stmt = select(RoomSettingORM).where(RoomSettingORM.auto_control_enabled.is_(True))
        return [self._to_domain(row) for row in self.session.scalars(stmt).all()]

    @staticmethod
    def _to_domain(row: RoomSettingORM) -> RoomSetting:
        return RoomSetting(
            room_id=row.room_id,
            diff_pressure_threshold_high=row.diff_pressure_threshold_high,
            diff_pressure_threshold_low=row.diff_pressure_threshold_low,
            temperature_threshold_high=row.temperature_threshold_high,
            temperature_threshold_low=row.temperature_threshold_low,
            humidity_threshold_high=row.humidity_threshold_high,
            humidity_threshold_low=row.humidity_threshold_low,
            pm25_threshold_high=row.pm25_threshold_high,
            pm25_threshold_low=row.pm25_threshold_low,
            co2_threshold_high=row.co2_threshold_high,
            co2_threshold_low=row.co2_threshold_low,
            auto_control_enabled=bool(row.auto_control_enabled),
        )


class SqlAuditRepository(AuditRepository):
    def __init__(self, session: Session):
        self.session = session

    def record(self, room: AggregatedRoom) -> None:
        row = ReadingDiffORM()
        row.recorded_at = room.indoor.recorded_at
        row.device_id = room.indoor.device_id
        row.pm25 = room.indoor.pm25
        row.co2 = room.indoor.co2
        row.diff_pressure = room.diff_pressure
        row.temperature = room.indoor.temperature
        row.humidity = room.indoor.humidity
        self.session.add(row)
