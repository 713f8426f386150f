from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import sessionmaker

from servicedesk.config.settings import Settings
from servicedesk.core.clock import FixedClock
from servicedesk.db.init_db import init_db
from servicedesk.db.session import build_engine
from servicedesk.models.base import CreatorType, UserRole
from servicedesk.schemas.complaint import Creator
from servicedesk.services.analytics.reporting_service import ComplaintReportingService
from servicedesk.services.asset.asset_record_service import AssetRecordService
from servicedesk.services.complaint.complaint_assignment_service import ComplaintAssignmentService
from servicedesk.services.complaint.complaint_lifecycle_service import ComplaintLifecycleService
from servicedesk.services.user.user_directory import UserDirectory


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FakeMediaStore:
    def __init__(self):
        self.forgotten = []

    def upload(self, blob, filename):
        raise NotImplementedError

    def forget(self, stored_id):
        self.forgotten.append(stored_id)


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'servicedesk.db'}", echo=False)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def settings():
    return Settings(
        DEFAULT_TIMEZONE="UTC",
        MAX_COMPLAINT_PHOTOS=5,
        COMPLAINT_REQUIRE_MATERIALS_USED=True,
        DEFAULT_TECHNICIAN_PHONE=None,
    )


@pytest.fixture
def clock():
    return FixedClock(utc(2024, 1, 10, 9, 0))


@pytest.fixture
def media_store():
    return FakeMediaStore()


@pytest.fixture
def lifecycle(db, clock, settings, media_store):
    return ComplaintLifecycleService(db, clock=clock, settings=settings, media_store=media_store)


@pytest.fixture
def assignment(db, clock, settings, lifecycle):
    return ComplaintAssignmentService(db, clock=clock, settings=settings, lifecycle=lifecycle)


@pytest.fixture
def reporting(db, clock, settings):
    return ComplaintReportingService(db, clock=clock, settings=settings)


@pytest.fixture
def assets(db, clock, settings):
    return AssetRecordService(db, clock=clock, settings=settings)


@pytest.fixture
def directory(db, clock, settings):
    return UserDirectory(db, clock=clock, settings=settings)


@pytest.fixture
def admin(directory):
    return directory.create_user({"role": UserRole.ADMIN, "name": "Asha Admin", "phone_number": "9000000001"})


@pytest.fixture
def client_user(directory):
    return directory.create_user({"role": UserRole.CLIENT, "name": "Kiran Client", "phone_number": "9000000002"})


@pytest.fixture
def technician(directory):
    return directory.create_user(
        {"role": UserRole.TECHNICIAN, "name": "Ravi Tech", "phone_number": "+91 98765 43210"}
    )


@pytest.fixture
def other_technician(directory):
    return directory.create_user(
        {"role": UserRole.TECHNICIAN, "name": "Sunil Tech", "phone_number": "9123456780"}
    )


@pytest.fixture
def as_client(client_user):
    return Creator(type=CreatorType.CLIENT, ref=client_user.id)


@pytest.fixture
def as_admin(admin):
    return Creator(type=CreatorType.ADMIN, ref=admin.id)


@pytest.fixture
def complaint_payload():
    return {
        "title": "AC not cooling",
        "description": "Unit on the first floor blows warm air",
        "store_name": "Magarpatta",
    }


@pytest.fixture
def file_complaint(lifecycle, as_client, complaint_payload):
    def _file(**overrides):
        return lifecycle.create({**complaint_payload, **overrides}, as_client)

    return _file


@pytest.fixture
def resolution():
    return {
        "resolution_notes": "Recharged refrigerant",
        "materials_used": "R32 gas, 1 can",
    }
