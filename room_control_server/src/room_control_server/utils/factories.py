from datetime import datetime, timezone

import factory
from room_control_core.domain.models import AIR_PURIFIER, Device, Reading, RoomSetting


def utc_second_timestamp() -> float:
    return float(int(datetime.now(tz=timezone.utc).timestamp()))


class ReadingFactory(factory.Factory):
    class Meta:
        model = Reading

    device_id = factory.Sequence(lambda n: f"sensor-{n}")
    recorded_at = factory.LazyFunction(utc_second_timestamp)
    pm25 = 12.5
    co2 = 400.0
    pressure = 1013.0
    temperature = 22.5
    humidity = 45.0


class DeviceFactory(factory.Factory):
    class Meta:
        model = Device

    device_id = factory.Sequence(lambda n: str(n + 1))
    device_type = AIR_PURIFIER
    room_id = "1"
    is_sensor_device = False
    is_outside = False
    status = "off"


class SensorDeviceFactory(DeviceFactory):
    device_type = "Sensor"
    is_sensor_device = True
    status = None


class RoomSettingFactory(factory.Factory):
    class Meta:
        model = RoomSetting

    room_id = "1"
    diff_pressure_threshold_high = 10.0
    diff_pressure_threshold_low = -10.0
    temperature_threshold_high = 28.0
    temperature_threshold_low = 18.0
    humidity_threshold_high = 70.0
    humidity_threshold_low = 30.0
    pm25_threshold_high = 75.0
    pm25_threshold_low = 15.0
    co2_threshold_high = 1000.0
    co2_threshold_low = 600.0
    auto_control_enabled = True
