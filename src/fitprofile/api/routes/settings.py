"""Settings page endpoints: view, edit, submit, retry and unmount."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, ValidationError

from fitprofile.api.deps import (
    SettingsSessions,
    get_controller,
    get_current_user_id,
    get_sessions,
)
from fitprofile.errors import SettingsStateError
from fitprofile.schemas.profile import Equipment
from fitprofile.schemas.settings import FormEdit, SettingsView
from fitprofile.settings.bmi import compute_bmi
from fitprofile.settings.controller import SettingsController

router = APIRouter(prefix="/api/settings", tags=["settings"])


class SubmitResponse(BaseModel):
    outcome: str
    message: str
    view: SettingsView


class BmiResponse(BaseModel):
    bmi: float | None


def _validation_detail(e: ValidationError) -> list[dict[str, object]]:
    return [{"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]} for err in e.errors()]


@router.get("", response_model=SettingsView)
async def get_settings_page(
    controller: SettingsController = Depends(get_controller),
) -> SettingsView:
    """Mount the settings page (first call fetches the snapshot) and return its view."""
    return controller.view()


@router.patch("/form", response_model=SettingsView)
async def edit_form(
    body: FormEdit,
    controller: SettingsController = Depends(get_controller),
) -> SettingsView:
    try:
        controller.edit(**body.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=_validation_detail(e)) from None
    except SettingsStateError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return controller.view()


@router.post("/form/equipment/{item}/toggle", response_model=SettingsView)
async def toggle_equipment(
    item: Equipment,
    controller: SettingsController = Depends(get_controller),
) -> SettingsView:
    try:
        controller.toggle_equipment(item)
    except SettingsStateError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return controller.view()


@router.post("/submit", response_model=SubmitResponse)
async def submit_settings(
    controller: SettingsController = Depends(get_controller),
) -> SubmitResponse:
    """Save changed fields. Returns 409 while another save is still running."""
    try:
        result = await controller.submit()
    except SettingsStateError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return SubmitResponse(
        outcome=result.outcome.value, message=result.message, view=controller.view()
    )


@router.post("/retry", response_model=SettingsView)
async def retry_load(
    controller: SettingsController = Depends(get_controller),
) -> SettingsView:
    try:
        await controller.retry()
    except SettingsStateError as e:
        raise HTTPException(status_code=409, detail=str(e)) from None
    return controller.view()


@router.delete("", status_code=204)
async def close_settings_page(
    user_id: str = Depends(get_current_user_id),
    sessions: SettingsSessions = Depends(get_sessions),
) -> Response:
    sessions.close(user_id)
    return Response(status_code=204)


@router.get("/bmi", response_model=BmiResponse)
async def bmi_preview(
    height_cm: str | None = Query(default=None),
    weight_kg: str | None = Query(default=None),
) -> BmiResponse:
    """Live BMI preview for unsaved form values."""
    return BmiResponse(bmi=compute_bmi(height_cm, weight_kg))
