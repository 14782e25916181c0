import pytest

from room_control_core.application.evaluate_thresholds import (
    attach_settings,
    evaluate_room,
    evaluate_rooms,
)
from room_control_core.domain.models import (
    AIR_PURIFIER,
    EXHAUST_FAN,
    AggregatedRoom,
    Reading,
    RoomSetting,
)


def room(room_id="1", *, pm25=50.0, co2=600.0, temperature=21.0, humidity=40.0, diff=None, setting=None):
    indoor = Reading(
        device_id="in",
        recorded_at=100.0,
        pm25=pm25,
        co2=co2,
        pressure=1000.0,
        temperature=temperature,
        humidity=humidity,
    )
    return AggregatedRoom(room_id=room_id, indoor=indoor, diff_pressure=diff, setting=setting)


def setting(room_id="1", **overrides):
    values = dict(
        room_id=room_id,
        pm25_threshold_high=75.0,
        pm25_threshold_low=15.0,
        co2_threshold_high=1000.0,
        co2_threshold_low=500.0,
        auto_control_enabled=True,
    )
    values.update(overrides)
    return RoomSetting(**values)


def targets(instructions):
    return sorted((i.device_type, i.target) for i in instructions)


# ───────── joining ─────────
def test_rooms_without_enabled_setting_are_dropped():
    rooms = [room("1"), room("2"), room("3")]
    joined = attach_settings(
        rooms, [setting("1"), setting("2", auto_control_enabled=False)]
    )
    assert [r.room_id for r in joined] == ["1"]
    assert joined[0].setting.pm25_threshold_high == 75.0


def test_attach_settings_leaves_input_rooms_untouched():
    rooms = [room("1"), room("2")]
    joined = attach_settings(rooms, [setting("1")])
    assert joined[0] is not rooms[0]
    assert joined[0].indoor == rooms[0].indoor
    assert [r.setting for r in rooms] == [None, None]


def test_room_without_setting_never_gets_instructions():
    instructions, breaches = evaluate_room(room(pm25=500.0, co2=5000.0))
    assert instructions == []
    assert breaches == []


def test_disabled_setting_never_gets_instructions():
    disabled = setting(auto_control_enabled=False)
    instructions, _ = evaluate_room(room(pm25=500.0, setting=disabled))
    assert instructions == []


# ───────── pm25 ─────────
def test_pm25_above_high_turns_purifier_on():
    instructions, _ = evaluate_room(room(pm25=80.0, setting=setting()))
    assert targets(instructions) == [(AIR_PURIFIER, "on")]
    assert instructions[0].room_id == "1"


def test_pm25_equal_to_high_does_not_turn_on():
    instructions, _ = evaluate_room(room(pm25=75.0, setting=setting()))
    assert instructions == []


def test_pm25_equal_to_low_turns_purifier_off():
    instructions, _ = evaluate_room(room(pm25=15.0, setting=setting()))
    assert targets(instructions) == [(AIR_PURIFIER, "off")]


def test_pm25_inside_dead_band_does_nothing():
    instructions, _ = evaluate_room(room(pm25=40.0, setting=setting()))
    assert instructions == []


# ───────── co2 ─────────
def test_co2_equal_to_high_turns_fan_on():
    instructions, _ = evaluate_room(room(co2=1000.0, setting=setting()))
    assert targets(instructions) == [(EXHAUST_FAN, "on")]


def test_co2_equal_to_low_turns_fan_off():
    instructions, _ = evaluate_room(room(co2=500.0, setting=setting()))
    assert targets(instructions) == [(EXHAUST_FAN, "off")]


def test_rules_are_independent_per_quantity():
    instructions, _ = evaluate_room(room(pm25=10.0, co2=1200.0, setting=setting()))
    assert targets(instructions) == [(AIR_PURIFIER, "off"), (EXHAUST_FAN, "on")]


# ───────── missing data ─────────
def test_missing_threshold_skips_only_that_rule():
    instructions, _ = evaluate_room(
        room(pm25=80.0, co2=1200.0, setting=setting(pm25_threshold_high=None))
    )
    assert targets(instructions) == [(EXHAUST_FAN, "on")]


def test_missing_value_skips_only_that_rule():
    instructions, _ = evaluate_room(room(pm25=None, co2=400.0, setting=setting()))
    assert targets(instructions) == [(EXHAUST_FAN, "off")]


# ───────── advisory bands ─────────
def test_diff_pressure_breach_is_reported():
    s = setting(diff_pressure_threshold_high=2.0, diff_pressure_threshold_low=-2.0)
    _, breaches = evaluate_room(room(diff=-5.0, setting=s))
    assert [(b.quantity, b.bound, b.value) for b in breaches] == [("diff_pressure", "low", -5.0)]


def test_missing_diff_pressure_skips_its_check():
    s = setting(diff_pressure_threshold_high=2.0, diff_pressure_threshold_low=-2.0)
    _, breaches = evaluate_room(room(diff=None, setting=s))
    assert breaches == []


@pytest.mark.parametrize(
    "temperature, expected",
    [(30.0, [("temperature", "high")]), (15.0, [("temperature", "low")]), (22.0, [])],
)
def test_temperature_band(temperature, expected):
    s = setting(temperature_threshold_high=26.0, temperature_threshold_low=18.0)
    _, breaches = evaluate_room(room(temperature=temperature, setting=s))
    assert [(b.quantity, b.bound) for b in breaches] == expected


def test_evaluate_rooms_collects_all_rooms():
    rooms = [room("1", pm25=80.0, setting=setting("1")), room("2", pm25=5.0, setting=setting("2"))]
    instructions, _ = evaluate_rooms(rooms)
    assert sorted((i.room_id, i.target) for i in instructions) == [("1", "on"), ("2", "off")]
