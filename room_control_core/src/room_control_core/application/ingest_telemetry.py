import logging
import math
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from room_control_core.domain.errors import StorageError, ValidationError
from room_control_core.domain.models import Reading
from room_control_core.domain.ports import UnitOfWork

log = logging.getLogger(__name__)

TOPIC_ROOT = "room"
SENSOR_FIELDS = ("pm25", "co2", "pressure", "temperature", "humidity")
DECIMAL_FIELD = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class IngestOutcome(str, Enum):
    STATUS_UPDATED = "status_updated"
    READING_STORED = "reading_stored"
    READING_SKIPPED = "reading_skipped"
    REJECTED = "rejected"
    FAILED = "failed"
    IGNORED = "ignored"


@dataclass(frozen=True)
class TopicAddress:
    category: str
    device_id: str
    kind: str


def parse_topic(topic: str) -> Optional[TopicAddress]:
    """Split ``room/<category>/<id>/<kind>``; anything else yields None."""
    parts = topic.split("/")
    if len(parts) != 4 or parts[0] != TOPIC_ROOT or not parts[2]:
        return None
    return TopicAddress(category=parts[1], device_id=parts[2], kind=parts[3])


def decode_payload(payload: Union[bytes, str]) -> str:
    if isinstance(payload, bytes):
        try:
            payload = payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ValidationError(f"payload is not valid UTF-8: {exc}") from exc
    return payload.strip()


def parse_status(payload: Union[bytes, str]) -> str:
    status = decode_payload(payload)
    if not status:
        raise ValidationError("empty device status")
    return status


def parse_sensor_payload(device_id: str, payload: Union[bytes, str], recorded_at: float) -> Reading:
    """
    Parse ``"pm25,co2,pressure,temperature,humidity"`` into a Reading.

    Raises:
        ValidationError: wrong field count, or a field that is not a plain finite decimal.
    """
    text = decode_payload(payload)
    fields = text.split(",")
    if len(fields) != len(SENSOR_FIELDS):
        raise ValidationError(
            f"expected {len(SENSOR_FIELDS)} comma-separated fields, got {len(fields)}: {text!r}"
        )

    values = {}
    for name, raw in zip(SENSOR_FIELDS, fields):
        # float() also accepts digit grouping and non-ASCII digits
        if not DECIMAL_FIELD.fullmatch(raw):
            raise ValidationError(f"field {name} is not numeric: {raw!r}")
        value = float(raw)
        if not math.isfinite(value):
            raise ValidationError(f"field {name} is not finite: {raw!r}")
        values[name] = value

    return Reading(device_id=device_id, recorded_at=recorded_at, **values)


def update_device_status(device_id: str, status: str, uow: UnitOfWork) -> None:
    with uow:
        uow.device_repo().upsert_status(device_id, status)


def ingest_reading(reading: Reading, uow: UnitOfWork) -> None:
    with uow:
        uow.reading_repo().insert(reading)


class TelemetryIngestor:
    """Translates inbound broker messages into storage writes.

    Every failure is contained here: a bad payload or an unreachable database
    drops the message and is logged, it never propagates to the caller.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        *,
        store_readings: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        self._uow_factory = uow_factory
        self._store_readings = store_readings
        self._clock = clock

    def handle(self, topic: str, payload: Union[bytes, str]) -> IngestOutcome:
        address = parse_topic(topic)
        if address is None:
            log.debug("Ignoring message on unrecognised topic %s", topic)
            return IngestOutcome.IGNORED

        if address.category == "device" and address.kind == "status":
            return self._handle_status(address.device_id, payload)
        if address.category == "sensor" and address.kind == "data":
            return self._handle_sensor_data(address.device_id, payload)

        log.debug("Ignoring message on unrecognised topic %s", topic)
        return IngestOutcome.IGNORED

    def _handle_status(self, device_id: str, payload: Union[bytes, str]) -> IngestOutcome:
        try:
            status = parse_status(payload)
        except ValidationError as exc:
            log.warning("Rejected status for device %s: %s", device_id, exc)
            return IngestOutcome.REJECTED

        try:
            update_device_status(device_id, status, self._uow_factory())
        except StorageError as exc:
            log.error("Failed to update status of device %s: %s", device_id, exc)
            return IngestOutcome.FAILED

        log.info("Updated device %s status: %s", device_id, status)
        return IngestOutcome.STATUS_UPDATED

    def _handle_sensor_data(self, device_id: str, payload: Union[bytes, str]) -> IngestOutcome:
        recorded_at = float(int(self._clock()))
        try:
            reading = parse_sensor_payload(device_id, payload, recorded_at)
        except ValidationError as exc:
            log.warning("Rejected sensor data from device %s: %s", device_id, exc)
            return IngestOutcome.REJECTED

        if not self._store_readings:
            log.debug("Sensor data from device %s parsed, storage disabled", device_id)
            return IngestOutcome.READING_SKIPPED

        try:
            ingest_reading(reading, self._uow_factory())
        except StorageError as exc:
            log.error("Failed to store sensor data from device %s: %s", device_id, exc)
            return IngestOutcome.FAILED

        log.debug("Inserted sensor data for device %s", device_id)
        return IngestOutcome.READING_STORED
