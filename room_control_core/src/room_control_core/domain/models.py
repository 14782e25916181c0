from dataclasses import dataclass, field
from typing import List, Optional

AIR_PURIFIER = "Air Purifier"
EXHAUST_FAN = "Exhaust fan"

ON = "on"
OFF = "off"


@dataclass(frozen=True)
class Reading:
    device_id: str
    recorded_at: float
    pm25: Optional[float]
    co2: Optional[float]
    pressure: Optional[float]
    temperature: Optional[float]
    humidity: Optional[float]


@dataclass(frozen=True)
class LocatedReading:
    """A reading joined with the placement of the device that produced it."""

    reading: Reading
    room_id: Optional[str]
    is_outside: bool


@dataclass
class Device:
    device_id: str
    device_type: Optional[str] = None
    room_id: Optional[str] = None
    is_sensor_device: bool = False
    is_outside: bool = False
    status: Optional[str] = None


@dataclass
class RoomSetting:
    room_id: str
    diff_pressure_threshold_high: Optional[float] = None
    diff_pressure_threshold_low: Optional[float] = None
    temperature_threshold_high: Optional[float] = None
    temperature_threshold_low: Optional[float] = None
    humidity_threshold_high: Optional[float] = None
    humidity_threshold_low: Optional[float] = None
    pm25_threshold_high: Optional[float] = None
    pm25_threshold_low: Optional[float] = None
    co2_threshold_high: Optional[float] = None
    co2_threshold_low: Optional[float] = None
    auto_control_enabled: bool = False


@dataclass
class AggregatedRoom:
    room_id: str
    indoor: Reading
    outdoor: Optional[Reading] = None
    diff_pressure: Optional[float] = None  # None means no outdoor pair, not zero
    setting: Optional[RoomSetting] = None


@dataclass(frozen=True)
class Instruction:
    room_id: str
    device_type: str
    target: str
    rule: str


@dataclass(frozen=True)
class ThresholdBreach:
    room_id: str
    quantity: str
    bound: str
    value: float
    threshold: float


@dataclass(frozen=True)
class Command:
    device_id: str
    topic: str
    payload: str


@dataclass
class CyclePlan:
    rooms: List[AggregatedRoom] = field(default_factory=list)
    instructions: List[Instruction] = field(default_factory=list)
    breaches: List[ThresholdBreach] = field(default_factory=list)
    devices: List[Device] = field(default_factory=list)


@dataclass
class CycleReport:
    started_at: float
    rooms: int = 0
    instructions: List[Instruction] = field(default_factory=list)
    breaches: List[ThresholdBreach] = field(default_factory=list)
    commands_sent: List[Command] = field(default_factory=list)
    commands_failed: List[Command] = field(default_factory=list)
