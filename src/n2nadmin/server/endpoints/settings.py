"""Key/value settings endpoints."""

from fastapi import APIRouter, Depends

from n2nadmin.db.base import db
from n2nadmin.db.inventory import Setting
from n2nadmin.server.auth.dependencies import get_current_user

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/settings")
def get_settings():
    return Setting.as_dict()


@router.post("/settings")
def save_settings(values: dict[str, str]):
    with db.atomic():
        for key, value in values.items():
            Setting.set_value(key, value)
    return {"message": "saved"}
