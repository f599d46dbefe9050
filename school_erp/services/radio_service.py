import logging
import os
import uuid
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import UploadFile

from ..core.config import settings
from ..core.exceptions import NotFoundError, PermissionDenied, ValidationError
from ..models.user import User, Role
from ..utils.json_store import DepartmentStore, RadioStore
from ..utils.pdf_text import extract_pdf_text
from ..utils.radio_schedule import (
    build_playback_plan,
    current_offset,
    estimate_duration,
    format_timestamp,
    parse_timestamp,
    programs_for_date,
    select_current_program,
    select_live_programs,
)
from ..utils.uploads import AUDIO_EXTENSIONS, PDF_EXTENSIONS, save_upload

logger = logging.getLogger(__name__)

RADIO_DEPARTMENT = "radio"


class RadioService:
    def __init__(self, store: RadioStore, departments: DepartmentStore):
        self.store = store
        self.departments = departments

    async def can_manage(self, user: User, school_id) -> bool:
        if user.role in (Role.ADMIN, Role.SCHOOL_ADMIN):
            return True
        return await self.departments.is_member(RADIO_DEPARTMENT, school_id, user.id)

    async def ensure_can_manage(self, user: User, school_id):
        if not await self.can_manage(user, school_id):
            raise PermissionDenied("Only school admins or radio department staff can manage programs")

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def live(self, school_id, now: Optional[datetime] = None) -> List[dict]:
        programs = await self.store.get_programs(school_id)
        return select_live_programs(programs, now or self._now(), settings.radio_default_duration_seconds)

    async def current(self, school_id, now: Optional[datetime] = None) -> Optional[dict]:
        programs = await self.store.get_programs(school_id)
        return select_current_program(programs, now or self._now(), settings.radio_default_duration_seconds)

    async def schedule(self, school_id, day: Optional[date] = None) -> List[dict]:
        return programs_for_date(await self.store.get_programs(school_id), day)

    async def get_program(self, school_id, program_id: str) -> dict:
        for program in await self.store.get_programs(school_id):
            if program.get("id") == program_id:
                return program
        raise NotFoundError("Program")

    async def playback(self, school_id, program_id: str, now: Optional[datetime] = None) -> dict:
        program = await self.get_program(school_id, program_id)
        offset = current_offset(program, now or self._now(), settings.radio_default_duration_seconds)
        return {
            "programId": program_id,
            "currentOffset": offset,
            **build_playback_plan(
                program,
                offset,
                words_per_second=settings.radio_words_per_second,
                chunk_size=settings.radio_chunk_words,
            ),
        }

    async def _media_from_upload(self, file: UploadFile) -> dict:
        saved = await save_upload(file)
        if saved.extension in PDF_EXTENSIONS:
            text = extract_pdf_text(saved.path)
            if not text:
                os.unlink(saved.path)
                raise ValidationError(
                    "Could not extract readable text from the PDF. Please upload a text-based PDF.",
                    field="file",
                )
            return {"fileType": "PDF", "fileUrl": saved.url, "content": text}
        if saved.extension in AUDIO_EXTENSIONS:
            return {"fileType": "AUDIO", "fileUrl": saved.url, "content": None}
        os.unlink(saved.path)
        raise ValidationError("Only PDF or audio files can be broadcast", field="file")

    @staticmethod
    def _scheduled_for(value) -> str:
        start = parse_timestamp(value)
        if start is None:
            raise ValidationError("scheduledFor must be an ISO-8601 date-time", field="scheduledFor")
        return format_timestamp(start)

    @staticmethod
    def _duration(provided, text: Optional[str], from_text: bool) -> int:
        try:
            return estimate_duration(
                provided,
                text,
                estimate_from_text=from_text,
                default=settings.radio_default_duration_seconds,
                words_per_second=settings.radio_words_per_second,
            )
        except ValueError as e:
            raise ValidationError(str(e), field="durationSeconds")

    async def create_program(
        self,
        user: User,
        school_id,
        title: str,
        scheduled_for: str,
        duration_seconds=None,
        description: Optional[str] = None,
        content: Optional[str] = None,
        file: Optional[UploadFile] = None,
    ) -> dict:
        await self.ensure_can_manage(user, school_id)
        if not title or not title.strip():
            raise ValidationError("title is required", field="title")
        start = self._scheduled_for(scheduled_for)

        if file is not None and file.filename:
            media = await self._media_from_upload(file)
        elif content and content.strip():
            media = {"fileType": "TEXT", "fileUrl": None, "content": content.strip()}
        else:
            raise ValidationError("Please provide a PDF/audio file or text content")

        program = {
            "id": str(uuid.uuid4()),
            "title": title.strip(),
            "description": description,
            "scheduledFor": start,
            "durationSeconds": self._duration(
                duration_seconds, media["content"], media["fileType"] == "PDF"
            ),
            **media,
            "status": "SCHEDULED",
            "createdAt": format_timestamp(self._now()),
            "createdBy": str(user.id),
        }
        await self.store.add_program(school_id, program)
        logger.info(f"Radio program {program['id']} scheduled for {start} in school {school_id}")
        return program

    async def update_program(
        self,
        user: User,
        school_id,
        program_id: str,
        changes: dict,
        file: Optional[UploadFile] = None,
    ) -> dict:
        """Apply a partial update.

        A new file replaces the media (PDF text is re-extracted). New content
        without a file turns the program into a TEXT broadcast; on an audio
        upload it is kept alongside the recording.
        """
        await self.ensure_can_manage(user, school_id)
        await self.get_program(school_id, program_id)

        update = {}
        if changes.get("title") is not None:
            update["title"] = changes["title"].strip()
        if changes.get("description") is not None:
            update["description"] = changes["description"]
        if changes.get("scheduledFor") is not None:
            update["scheduledFor"] = self._scheduled_for(changes["scheduledFor"])
        if changes.get("durationSeconds") is not None:
            update["durationSeconds"] = self._duration(changes["durationSeconds"], None, False)

        content = changes.get("content")
        has_file = file is not None and bool(file.filename)
        if content is not None and not content.strip() and not has_file:
            raise ValidationError("content cannot be empty", field="content")

        if has_file:
            media = await self._media_from_upload(file)
            if media["fileType"] == "AUDIO" and content and content.strip():
                media["content"] = content.strip()
            update.update(media)
        elif content is not None:
            update.update({"fileType": "TEXT", "fileUrl": None, "content": content.strip()})

        updated = await self.store.update_program(school_id, program_id, update)
        if updated is None:
            raise NotFoundError("Program")
        return updated

    async def delete_program(self, user: User, school_id, program_id: str):
        await self.ensure_can_manage(user, school_id)
        if not await self.store.delete_program(school_id, program_id):
            raise NotFoundError("Program")
