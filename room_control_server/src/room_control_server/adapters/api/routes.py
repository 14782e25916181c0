import time

from fastapi import APIRouter, Depends
from room_control_core.application.control_cycle import plan_control_cycle
from room_control_core.application.dispatch_commands import group_by_room
from room_control_core.config.environments import get_settings

from room_control_server.adapters.api.schemas import BreachOut, CommandOut, PreviewOut, RoomOut
from room_control_server.adapters.db.uow import SqlAlchemyUoW

router = APIRouter()


def get_uow_factory():
    return SqlAlchemyUoW


def get_clock():
    return time.time


@router.get("/ping")
def ping():
    return {"status": "ok"}


@router.get("/control/preview", response_model=PreviewOut)
def preview(uow_factory=Depends(get_uow_factory), clock=Depends(get_clock)):
    """What the next control cycle would do right now, without publishing."""
    settings = get_settings()
    plan = plan_control_cycle(uow_factory, now=clock(), window_s=settings.FRESHNESS_WINDOW_SEC)
    by_room = group_by_room(plan.devices)
    commands = [
        CommandOut(
            room_id=i.room_id,
            device_type=i.device_type,
            target=i.target,
            rule=i.rule,
            device_ids=[
                d.device_id for d in by_room.get(i.room_id, []) if d.device_type == i.device_type
            ],
        )
        for i in plan.instructions
    ]
    return PreviewOut(
        rooms=[RoomOut.from_domain(r) for r in plan.rooms],
        commands=commands,
        breaches=[BreachOut(**vars(b)) for b in plan.breaches],
    )
