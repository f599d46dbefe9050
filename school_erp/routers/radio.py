import json
from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile

from ..core.exceptions import ValidationError
from ..core.permissions import get_current_user, resolve_school_id
from ..models.user import User
from ..services.radio_service import RadioService
from ..utils.json_store import DepartmentStore, RadioStore, get_department_store, get_radio_store

router = APIRouter(prefix="/api/radio", tags=["Radio"])


class ProgramUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    scheduledFor: Optional[str] = None
    durationSeconds: Optional[int] = None
    content: Optional[str] = None


def get_radio_service(
    store: RadioStore = Depends(get_radio_store),
    departments: DepartmentStore = Depends(get_department_store),
) -> RadioService:
    return RadioService(store, departments)


@router.get("/current")
async def current_program(
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    radio: RadioService = Depends(get_radio_service),
):
    """The program on air right now (with currentOffset), or null"""
    return await radio.current(resolve_school_id(user, school_id))


@router.get("/live")
async def live_programs(
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    radio: RadioService = Depends(get_radio_service),
):
    return await radio.live(resolve_school_id(user, school_id))


@router.get("/schedule")
async def program_schedule(
    day: Optional[date] = Query(None, alias="date"),
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    radio: RadioService = Depends(get_radio_service),
):
    return await radio.schedule(resolve_school_id(user, school_id), day)


@router.get("/programs")
async def list_programs(
    day: Optional[date] = Query(None, alias="date"),
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    radio: RadioService = Depends(get_radio_service),
):
    return await radio.schedule(resolve_school_id(user, school_id), day)


@router.get("/programs/{program_id}/playback")
async def program_playback(
    program_id: str,
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    radio: RadioService = Depends(get_radio_service),
):
    """Where a listener joining now should start: audio seek or speech chunk"""
    return await radio.playback(resolve_school_id(user, school_id), program_id)


@router.post("/programs", status_code=201)
async def create_program(
    title: str = Form(...),
    scheduledFor: str = Form(...),
    durationSeconds: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    school_id: Optional[UUID] = Form(None),
    file: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    radio: RadioService = Depends(get_radio_service),
):
    return await radio.create_program(
        user,
        resolve_school_id(user, school_id),
        title,
        scheduledFor,
        duration_seconds=durationSeconds or None,
        description=description,
        content=content,
        file=file,
    )


@router.put("/programs/{program_id}")
async def update_program(
    program_id: str,
    request: Request,
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    radio: RadioService = Depends(get_radio_service),
):
    """Partial update from a JSON body, or multipart with an optional replacement ``file``"""
    file = None
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        upload = form.get("file")
        if isinstance(upload, StarletteUploadFile) and upload.filename:
            file = upload
        raw = {k: form[k] for k in ProgramUpdate.model_fields if isinstance(form.get(k), str) and form[k] != ""}
    else:
        body = await request.body()
        try:
            raw = json.loads(body) if body else {}
        except json.JSONDecodeError:
            raise ValidationError("Request body must be JSON or multipart form data")
        if not isinstance(raw, dict):
            raise ValidationError("Request body must be a JSON object")

    try:
        payload = ProgramUpdate.model_validate(raw)
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors())

    return await radio.update_program(
        user,
        resolve_school_id(user, school_id),
        program_id,
        payload.model_dump(exclude_unset=True),
        file=file,
    )


@router.delete("/programs/{program_id}")
async def delete_program(
    program_id: str,
    school_id: Optional[UUID] = Query(None),
    user: User = Depends(get_current_user),
    radio: RadioService = Depends(get_radio_service),
):
    await radio.delete_program(user, resolve_school_id(user, school_id), program_id)
    return {"message": "Program deleted successfully"}
