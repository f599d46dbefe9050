"""Shared pytest fixtures: a fresh SQLite database per test and an ASGI client."""
import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="school_erp_tests_")

# Settings are read at import time, so the environment is prepared first
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TMP, 'app.db')}"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["CACHE_ENABLED"] = "false"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["AUDIT_LOG_PATH"] = os.path.join(_TMP, "audit.log")
os.environ["RADIO_STORE_PATH"] = os.path.join(_TMP, "radio-programs.json")
os.environ["DEPARTMENTS_STORE_PATH"] = os.path.join(_TMP, "departments.json")
os.environ["LOG_LEVEL"] = "warning"

from types import SimpleNamespace

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from school_erp.core.database import get_db
from school_erp.core.security import create_access_token
from school_erp.main import app
from school_erp.models import (
    Base,
    ClassSubject,
    Parent,
    ParentStudent,
    Role,
    School,
    SchoolClass,
    Student,
    Subject,
    Teacher,
    User,
)
from school_erp.utils.json_store import DepartmentStore, RadioStore, get_department_store, get_radio_store
from school_erp.utils.tally import TallyClient, get_tally_client

PASSWORD = "secret123"


class FakeTallyBridge:
    """Stands in for the Tally HTTP bridge behind an httpx.MockTransport."""

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.down = False

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.down:
            raise httpx.ConnectError("Connection refused", request=request)
        payload = self.routes.get((request.method, request.url.path))
        if payload is None:
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json=payload)


def auth_headers(user: User) -> dict:
    token = create_access_token({
        "sub": str(user.id),
        "role": user.role.value,
        "school_id": str(user.school_id) if user.school_id else None,
    })
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def radio_store(tmp_path):
    return RadioStore(str(tmp_path / "radio-programs.json"))


@pytest.fixture
def department_store(tmp_path):
    return DepartmentStore(str(tmp_path / "departments.json"))


@pytest.fixture
def tally_bridge():
    return FakeTallyBridge()


@pytest.fixture
async def client(session_factory, radio_store, department_store, tally_bridge, tmp_path, monkeypatch):
    from school_erp.core.config import settings

    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_radio_store] = lambda: radio_store
    app.dependency_overrides[get_department_store] = lambda: department_store
    app.dependency_overrides[get_tally_client] = lambda: TallyClient(
        base_url="http://tally.local",
        transport=httpx.MockTransport(tally_bridge.handler),
    )
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _user(db, school, role: Role, name: str, email: str, **kwargs) -> User:
    user = User(
        school_id=school.id if school else None,
        email=email,
        password=PASSWORD,
        name=name,
        role=role,
        is_active=True,
        **kwargs,
    )
    db.add(user)
    await db.flush()
    return user


@pytest.fixture
async def seed(db):
    """One school with a user of every role, a class, a subject and an assigned teacher."""
    school = School(
        name="Greenfield High",
        code="GFH",
        latitude=12.9716,
        longitude=77.5946,
        radius_meters=200,
    )
    other_school = School(name="Riverside Academy", code="RSA")
    db.add_all([school, other_school])
    await db.flush()

    admin = await _user(db, None, Role.ADMIN, "Super Admin", "admin@system.com")
    school_admin = await _user(db, school, Role.SCHOOL_ADMIN, "Asha Rao", "principal@greenfield.edu")
    staff = await _user(db, school, Role.STAFF, "Ravi Kumar", "office@greenfield.edu")
    teacher_user = await _user(db, school, Role.TEACHER, "Meera Iyer", "meera@greenfield.edu")
    student_user = await _user(db, school, Role.STUDENT, "Arjun Nair", "arjun@greenfield.edu")
    student2_user = await _user(db, school, Role.STUDENT, "Diya Shah", "diya@greenfield.edu")
    parent_user = await _user(db, school, Role.PARENT, "Kavita Nair", "kavita@greenfield.edu")
    other_admin = await _user(db, other_school, Role.SCHOOL_ADMIN, "Tom Hill", "head@riverside.edu")

    school_class = SchoolClass(school_id=school.id, name="Grade 10 A", grade="10", sections=["A"])
    subject = Subject(school_id=school.id, name="Mathematics", code="MATH")
    db.add_all([school_class, subject])
    await db.flush()

    teacher = Teacher(user_id=teacher_user.id, school_id=school.id, qualification="M.Sc")
    student = Student(
        user_id=student_user.id,
        school_id=school.id,
        class_id=school_class.id,
        admission_number="ADM001",
        grade="10",
        section="A",
    )
    student2 = Student(
        user_id=student2_user.id,
        school_id=school.id,
        class_id=school_class.id,
        admission_number="ADM002",
        grade="10",
        section="A",
    )
    parent = Parent(user_id=parent_user.id, school_id=school.id, occupation="Engineer")
    db.add_all([teacher, student, student2, parent])
    await db.flush()

    db.add(ParentStudent(parent_id=parent.id, student_id=student.id, relationship_type="mother", is_primary=True))
    db.add(ClassSubject(class_id=school_class.id, subject_id=subject.id, teacher_id=teacher.id, periods_per_week=5))
    await db.commit()

    return SimpleNamespace(
        school=school,
        other_school=other_school,
        admin=admin,
        school_admin=school_admin,
        staff=staff,
        teacher_user=teacher_user,
        teacher=teacher,
        student_user=student_user,
        student=student,
        student2_user=student2_user,
        student2=student2,
        parent_user=parent_user,
        parent=parent,
        other_admin=other_admin,
        school_class=school_class,
        subject=subject,
    )
