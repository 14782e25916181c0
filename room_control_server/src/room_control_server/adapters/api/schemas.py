from typing import List, Optional

from pydantic import BaseModel, Field


class RoomOut(BaseModel):
    room_id: str
    device_id: str = Field(..., description="Indoor sensor the room was evaluated from")
    recorded_at: float
    pm25: Optional[float] = None
    co2: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    diff_pressure: Optional[float] = Field(None, description="Absent without an outdoor reading")

    @classmethod
    def from_domain(cls, room) -> "RoomOut":
        return cls(
            room_id=room.room_id,
            device_id=room.indoor.device_id,
            recorded_at=room.indoor.recorded_at,
            pm25=room.indoor.pm25,
            co2=room.indoor.co2,
            temperature=room.indoor.temperature,
            humidity=room.indoor.humidity,
            diff_pressure=room.diff_pressure,
        )


class CommandOut(BaseModel):
    room_id: str
    device_type: str
    target: str
    rule: str
    device_ids: List[str]


class BreachOut(BaseModel):
    room_id: str
    quantity: str
    bound: str
    value: float
    threshold: float


class PreviewOut(BaseModel):
    rooms: List[RoomOut]
    commands: List[CommandOut]
    breaches: List[BreachOut]
