__all__ = ["Base", "DeviceORM", "ReadingORM", "RoomSettingORM", "ReadingDiffORM"]

from sqlalchemy import Boolean, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from room_control_server.adapters.db.session import Base


class DeviceORM(Base):
    __tablename__ = "device"

    device_id: Mapped[str] = mapped_column("deviceID", String, primary_key=True)
    device_type: Mapped[str | None] = mapped_column("deviceType", String, index=True, nullable=True)
    room_id: Mapped[str | None] = mapped_column("deviceInRoom", String, index=True, nullable=True)
    is_sensor_device: Mapped[bool] = mapped_column(
        "isSensorDevice", Boolean, nullable=False, default=False
    )
    is_outside: Mapped[bool] = mapped_column("isOutside", Boolean, nullable=False, default=False)
    status: Mapped[str | None] = mapped_column("deviceStatus", String, nullable=True)


class ReadingORM(Base):
    __tablename__ = "air_quality"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    device_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    recorded_at: Mapped[float] = mapped_column(Float, index=True, nullable=False)
    pm25: Mapped[float | None] = mapped_column(Float, nullable=True)
    co2: Mapped[float | None] = mapped_column(Float, nullable=True)
    pressure: Mapped[float | None] = mapped_column(Float, nullable=True)
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    humidity: Mapped[float | None] = mapped_column(Float, nullable=True)


class RoomSettingORM(Base):
    __tablename__ = "rooms_setting"

    room_id: Mapped[str] = mapped_column(String, primary_key=True)
    diff_pressure_threshold_high: Mapped[float | None] = mapped_column(
        "diffPressure_threshold_high", Float, nullable=True
    )
    diff_pressure_threshold_low: Mapped[float | None] = mapped_column(
        "diffPressure_threshold_low", Float, nullable=True
    )
    temperature_threshold_high: Mapped[float | None] = mapped_column(Float, nullable=True)
    temperature_threshold_low: Mapped[float | None] = mapped_column(Float, nullable=True)
    humidity_threshold_high: Mapped[float | None] = mapped_column(Float, nullable=True)
    humidity_threshold_low: Mapped[float | None] = mapped_column(Float, nullable=True)
    pm25_threshold_high: Mapped[float | None] = mapped_column(Float, nullable=True)
    pm25_threshold_low: Mapped[float | None] = mapped_column(Float, nullable=True)
    co2_threshold_high: Mapped[float | None] = mapped_column(Float, nullable=True)
    co2_threshold_low: Mapped[float | None] = mapped_column(Float, nullable=True)
    auto_control_enabled: Mapped[bool] = mapped_column(
        Boolean, index=True, nullable=False, default=False
    )


class ReadingDiffORM(Base):
    __tablename__ = "air_quality_diff"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recorded_at: Mapped[float] = mapped_column(Float, index=True, nullable=False)
    device_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    pm25: Mapped[float | None] = mapped_column(Float, nullable=True)
    co2: Mapped[float | None] = mapped_column(Float, nullable=True)
    diff_pressure: Mapped[float | None] = mapped_column("diffPressure", Float, nullable=True)
    temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    humidity: Mapped[float | None] = mapped_column(Float, nullable=True)
