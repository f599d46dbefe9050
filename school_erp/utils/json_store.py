"""Small JSON documents on disk keyed by school id."""
import asyncio
import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Optional

from ..core.config import settings

logger = logging.getLogger(__name__)


class JsonFileStore:
    """A JSON object persisted to one file.

    Writers hold an in-process lock across read-modify-write and replace the
    file atomically, so concurrent requests in one process cannot lose updates
    and readers never see a half-written file.
    """

    def __init__(self, path: str):
        self.path = path
        self._lock = asyncio.Lock()

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read {self.path}, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Unexpected content in {self.path}, treating as empty")
            return {}
        return data

    def _write(self, data: Dict[str, Any]):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    async def _load(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self._read)

    async def _save(self, data: Dict[str, Any]):
        await asyncio.to_thread(self._write, data)


class RadioStore(JsonFileStore):
    """Radio programs: ``{school_id: [program, ...]}``."""

    async def get_programs(self, school_id) -> List[dict]:
        programs = (await self._load()).get(str(school_id), [])
        return programs if isinstance(programs, list) else []

    async def save_programs(self, school_id, programs: List[dict]):
        async with self._lock:
            data = await self._load()
            data[str(school_id)] = programs
            await self._save(data)

    async def add_program(self, school_id, program: dict) -> dict:
        async with self._lock:
            data = await self._load()
            data.setdefault(str(school_id), []).append(program)
            await self._save(data)
        return program

    async def update_program(self, school_id, program_id: str, changes: dict) -> Optional[dict]:
        async with self._lock:
            data = await self._load()
            for program in data.get(str(school_id), []):
                if program.get("id") == program_id:
                    program.update(changes)
                    await self._save(data)
                    return program
        return None

    async def delete_program(self, school_id, program_id: str) -> bool:
        async with self._lock:
            data = await self._load()
            programs = data.get(str(school_id), [])
            remaining = [p for p in programs if p.get("id") != program_id]
            if len(remaining) == len(programs):
                return False
            data[str(school_id)] = remaining
            await self._save(data)
        return True


DEPARTMENTS = ("finance", "library", "transport", "sports", "exams", "radio")


class DepartmentStore(JsonFileStore):
    """Department staff: ``{department: {school_id: [user_id, ...]}}``."""

    async def get_staff(self, department: str, school_id) -> List[str]:
        staff = (await self._load()).get(department, {}).get(str(school_id), [])
        return [str(s) for s in staff] if isinstance(staff, list) else []

    async def set_staff(self, department: str, school_id, user_ids: List[str]) -> List[str]:
        unique_ids = list(dict.fromkeys(str(u) for u in user_ids))
        async with self._lock:
            data = await self._load()
            data.setdefault(department, {})[str(school_id)] = unique_ids
            await self._save(data)
        return unique_ids

    async def is_member(self, department: str, school_id, user_id) -> bool:
        return str(user_id) in await self.get_staff(department, school_id)

    async def departments_of(self, school_id, user_id) -> List[str]:
        data = await self._load()
        return [
            dept for dept in DEPARTMENTS
            if str(user_id) in [str(u) for u in data.get(dept, {}).get(str(school_id), [])]
        ]


radio_store = RadioStore(settings.radio_store_path)
department_store = DepartmentStore(settings.departments_store_path)


def get_radio_store() -> RadioStore:
    return radio_store


def get_department_store() -> DepartmentStore:
    return department_store
