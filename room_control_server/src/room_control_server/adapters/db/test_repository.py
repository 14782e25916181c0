"""
Repository and unit-of-work tests against in-memory SQLite.
"""

import pytest
from room_control_core.domain.errors import StorageError
from room_control_core.domain.models import AggregatedRoom
from sqlalchemy import create_engine, insert, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from room_control_server.adapters.db.repository import (
    SqlAuditRepository,
    SqlDeviceRepository,
    SqlReadingRepository,
    SqlRoomSettingRepository,
)
from room_control_server.adapters.db.sqlalchemy_models import (
    Base,
    DeviceORM,
    ReadingDiffORM,
    ReadingORM,
    RoomSettingORM,
)
from room_control_server.adapters.db.uow import SqlAlchemyUoW
from room_control_server.utils.factories import ReadingFactory

NOW = 1_700_000_000.0


# ───────── session fixtures ─────────
@pytest.fixture()
def session_factory():
    eng = create_engine(
        "sqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    return sessionmaker(bind=eng, expire_on_commit=False)


@pytest.fixture()
def session(session_factory):
    sess = session_factory()
    yield sess
    sess.close()


# ───────── helpers ─────────
def seed_device(sess, device_id, *, room="1", sensor=True, outside=False, device_type="Sensor"):
    sess.add(
        DeviceORM(
            device_id=device_id,
            device_type=device_type,
            room_id=room,
            is_sensor_device=sensor,
            is_outside=outside,
            status=None,
        )
    )
    sess.flush()


def seed_reading(sess, reading):
    sess.execute(
        insert(ReadingORM).values(
            device_id=reading.device_id,
            recorded_at=reading.recorded_at,
            pm25=reading.pm25,
            co2=reading.co2,
            pressure=reading.pressure,
            temperature=reading.temperature,
            humidity=reading.humidity,
        )
    )


def seed_setting(sess, room_id, *, enabled=True, pm25_high=75.0):
    sess.add(
        RoomSettingORM(
            room_id=room_id,
            pm25_threshold_high=pm25_high,
            pm25_threshold_low=15.0,
            auto_control_enabled=enabled,
        )
    )
    sess.flush()


# ───────── readings ─────────
def test_latest_within_window_picks_newest_per_device(session):
    seed_device(session, "in-1")
    seed_device(session, "out-1", outside=True)
    seed_reading(session, ReadingFactory(device_id="in-1", recorded_at=NOW - 50, pm25=1.0))
    seed_reading(session, ReadingFactory(device_id="in-1", recorded_at=NOW - 5, pm25=2.0))
    seed_reading(session, ReadingFactory(device_id="out-1", recorded_at=NOW - 20, pressure=1005.0))
    session.commit()

    results = SqlReadingRepository(session).latest_within_window(now=NOW, window_s=60)

    by_device = {r.reading.device_id: r for r in results}
    assert set(by_device) == {"in-1", "out-1"}
    assert by_device["in-1"].reading.pm25 == 2.0
    assert by_device["in-1"].room_id == "1"
    assert by_device["in-1"].is_outside is False
    assert by_device["out-1"].is_outside is True
    assert by_device["out-1"].reading.pressure == 1005.0


def test_latest_within_window_excludes_stale_and_future_readings(session):
    seed_device(session, "in-1")
    seed_reading(session, ReadingFactory(device_id="in-1", recorded_at=NOW - 61))
    seed_reading(session, ReadingFactory(device_id="in-1", recorded_at=NOW + 5))
    session.commit()

    assert SqlReadingRepository(session).latest_within_window(now=NOW, window_s=60) == []


def test_latest_within_window_only_uses_sensor_devices(session):
    seed_device(session, "5", sensor=False, device_type="Air Purifier")
    seed_reading(session, ReadingFactory(device_id="5", recorded_at=NOW - 1))
    session.commit()

    assert SqlReadingRepository(session).latest_within_window(now=NOW, window_s=60) == []


def test_latest_within_window_deduplicates_equal_timestamps(session):
    seed_device(session, "in-1")
    seed_reading(session, ReadingFactory(device_id="in-1", recorded_at=NOW - 3))
    seed_reading(session, ReadingFactory(device_id="in-1", recorded_at=NOW - 3))
    session.commit()

    assert len(SqlReadingRepository(session).latest_within_window(now=NOW, window_s=60)) == 1


def test_insert_reading(session):
    SqlReadingRepository(session).insert(ReadingFactory(device_id="in-1", recorded_at=NOW, co2=812.0))
    session.commit()

    row = session.scalars(select(ReadingORM)).one()
    assert (row.device_id, row.recorded_at, row.co2) == ("in-1", NOW, 812.0)


# ───────── devices ─────────
def test_upsert_status_updates_existing_device(session):
    seed_device(session, "5", sensor=False, device_type="Air Purifier")
    session.commit()

    SqlDeviceRepository(session).upsert_status("5", "on")
    session.commit()

    row = session.get(DeviceORM, "5")
    assert row.status == "on"
    assert row.device_type == "Air Purifier"


def test_upsert_status_inserts_unknown_device(session):
    SqlDeviceRepository(session).upsert_status("42", "off")
    session.commit()

    row = session.get(DeviceORM, "42")
    assert row.status == "off"
    assert row.is_sensor_device is False


def test_devices_in_rooms(session):
    seed_device(session, "5", room="1", sensor=False, device_type="Air Purifier")
    seed_device(session, "6", room="2", sensor=False, device_type="Exhaust fan")
    seed_device(session, "7", room="3", sensor=False, device_type="Exhaust fan")
    session.commit()

    devices = SqlDeviceRepository(session).devices_in_rooms(["1", "2"])
    assert [(d.device_id, d.device_type) for d in devices] == [
        ("5", "Air Purifier"),
        ("6", "Exhaust fan"),
    ]
    assert SqlDeviceRepository(session).devices_in_rooms([]) == []


# ───────── settings / audit ─────────
def test_enabled_settings_filters_disabled_rooms(session):
    seed_setting(session, "1", enabled=True)
    seed_setting(session, "2", enabled=False)
    session.commit()

    settings = SqlRoomSettingRepository(session).enabled_settings()
    assert [s.room_id for s in settings] == ["1"]
    assert settings[0].pm25_threshold_high == 75.0
    assert settings[0].co2_threshold_high is None


def test_audit_record(session):
    indoor = ReadingFactory(device_id="in-1", recorded_at=NOW, pm25=33.0)
    SqlAuditRepository(session).record(AggregatedRoom(room_id="1", indoor=indoor, diff_pressure=-5.0))
    session.commit()

    row = session.scalars(select(ReadingDiffORM)).one()
    assert (row.device_id, row.pm25, row.diff_pressure) == ("in-1", 33.0, -5.0)


# ───────── unit of work ─────────
def test_uow_commits_on_success(session_factory):
    with SqlAlchemyUoW(session_factory=session_factory) as uow:
        uow.device_repo().upsert_status("5", "on")

    with session_factory() as sess:
        assert sess.get(DeviceORM, "5").status == "on"


def test_uow_rolls_back_on_error(session_factory):
    with pytest.raises(RuntimeError):
        with SqlAlchemyUoW(session_factory=session_factory) as uow:
            uow.device_repo().upsert_status("5", "on")
            raise RuntimeError("boom")

    with session_factory() as sess:
        assert sess.get(DeviceORM, "5") is None


def test_uow_wraps_database_errors():
    broken = create_engine("sqlite://", future=True)  # no tables
    factory = sessionmaker(bind=broken)

    with pytest.raises(StorageError) as excinfo:
        with SqlAlchemyUoW(session_factory=factory) as uow:
            uow.room_setting_repo().enabled_settings()

    assert isinstance(excinfo.value.__cause__, OperationalError)
