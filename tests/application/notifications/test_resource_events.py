"""Resource upload, interaction and view notifications."""

from __future__ import annotations

import pytest

from versatileshare.application.use_cases.notifications import (
    NotificationDispatcher,
    notify_resource_interaction,
    notify_resource_upload,
    record_resource_view,
)
from versatileshare.domain.entities import Identity, Resource, User
from versatileshare.domain.errors import ResourceNotFound
from versatileshare.infrastructure.notifications import ConnectionRegistry

pytestmark = pytest.mark.anyio


class Catalog:
    def __init__(self, *resources: Resource) -> None:
        self.resources = {resource.id: resource for resource in resources}

    async def get(self, resource_id):
        return self.resources.get(resource_id)

    async def increment_views(self, resource_id):
        resource = self.resources.get(resource_id)
        if resource is None:
            return None
        resource.views += 1
        return resource.views


class Directory:
    def __init__(self, users=(), semesters=None) -> None:
        self.users = {user.id: user for user in users}
        self.semesters = semesters or {}
        self.calls = []

    async def find_principals_by_role(self, role):
        self.calls.append(("role", role))
        return [uid for uid, user in self.users.items() if user.role == role]

    async def find_principals_by_role_and_semester(self, role, semester):
        self.calls.append(("semester", semester))
        return list(self.semesters.get(semester, []))

    async def find_principals_by_department(self, department):
        return []

    async def get_user(self, user_id):
        return self.users.get(user_id)


class Store:
    def __init__(self) -> None:
        self.records = []

    async def insert(self, record):
        self.records.append(record)
        record.id = len(self.records)
        return record.id

    async def find_by_recipient(self, recipient_id, limit=50):
        return []

    async def mark_read(self, ids, recipient_id):
        return 0


FACULTY = User(id=10, name="Dr. Rao", email="rao@example.com", role="faculty")
STUDENT = User(id=20, name="Asha", email="asha@example.com", role="student", semester=3)
NOTES = Resource(id=5, title="Graph Theory", subject="Maths", semester=3, type="notes", uploaded_by=10)
PLACEMENT = Resource(id=6, title="Aptitude", subject="Placement", semester=0, type="pdf", uploaded_by=10)


def _dispatcher(directory, store=None, registry=None):
    return NotificationDispatcher(registry or ConnectionRegistry(), directory, store or Store())


async def test_upload_targets_the_resource_semester(make_transport) -> None:
    registry = ConnectionRegistry()
    transport = make_transport()
    await registry.register(transport, STUDENT.to_identity())
    store = Store()
    directory = Directory(semesters={3: [20]})

    report = await notify_resource_upload(
        _dispatcher(directory, store, registry), Catalog(NOTES), resource_id=5, faculty_name="Dr. Rao"
    )

    assert directory.calls == [("semester", 3)]
    assert store.records[0].message == 'New resource "Graph Theory" uploaded by Dr. Rao for semester 3'
    assert store.records[0].event_type == "new-resource"
    assert report.live_deliveries == 1
    frame = transport.sent[0]
    assert frame["type"] == "new-resource"
    assert frame["data"]["resource"] == {
        "id": 5,
        "title": "Graph Theory",
        "subject": "Maths",
        "semester": 3,
        "type": "notes",
        "uploadedBy": "Dr. Rao",
    }


async def test_placement_upload_reaches_all_students() -> None:
    directory = Directory(users=[STUDENT, FACULTY])
    store = Store()

    await notify_resource_upload(
        _dispatcher(directory, store), Catalog(PLACEMENT), resource_id=6, faculty_name="Dr. Rao"
    )

    assert directory.calls == [("role", "student")]
    assert store.records[0].message == 'New placement resource "Aptitude" uploaded by Dr. Rao'


async def test_explicit_semester_overrides_the_resource() -> None:
    directory = Directory(semesters={5: [30, 31]})
    store = Store()

    report = await notify_resource_upload(
        _dispatcher(directory, store),
        Catalog(NOTES),
        resource_id=5,
        faculty_name="Dr. Rao",
        resource_title="Graphs II",
        semester=5,
    )

    assert report.persisted_count == 2
    assert store.records[0].message.endswith("for semester 5")
    assert '"Graphs II"' in store.records[0].message


async def test_upload_of_unknown_resource_raises() -> None:
    with pytest.raises(ResourceNotFound):
        await notify_resource_upload(
            _dispatcher(Directory()), Catalog(), resource_id=404, faculty_name="x"
        )


async def test_upload_without_semester_is_rejected() -> None:
    unscoped = Resource(id=7, title="Misc", subject="", semester=None, type="link", uploaded_by=10)

    with pytest.raises(ValueError):
        await notify_resource_upload(
            _dispatcher(Directory()), Catalog(unscoped), resource_id=7, faculty_name="x"
        )


async def test_like_notifies_the_uploader(make_transport) -> None:
    registry = ConnectionRegistry()
    faculty_tab = make_transport()
    await registry.register(faculty_tab, FACULTY.to_identity())
    store = Store()
    directory = Directory(users=[FACULTY, STUDENT])

    report = await notify_resource_interaction(
        _dispatcher(directory, store, registry),
        Catalog(NOTES),
        directory,
        resource_id=5,
        student_id=20,
        interaction_type="like",
    )

    assert report is not None
    assert [record.recipient_id for record in store.records] == [10]
    assert store.records[0].message == 'Asha liked your resource "Graph Theory"'
    data = faculty_tab.sent[0]["data"]
    assert faculty_tab.sent[0]["type"] == "resource-interaction"
    assert data["interactionType"] == "like"
    assert data["student"] == {"id": 20, "name": "Asha"}
    assert data["resourceId"] == 5


async def test_long_comment_is_previewed() -> None:
    store = Store()
    directory = Directory(users=[FACULTY, STUDENT])

    await notify_resource_interaction(
        _dispatcher(directory, store),
        Catalog(NOTES),
        directory,
        resource_id=5,
        student_id=20,
        interaction_type="comment",
        comment="x" * 60,
    )

    assert store.records[0].message == (
        'Asha commented on your resource "Graph Theory": ' + "x" * 50 + "..."
    )


async def test_interaction_without_uploader_is_skipped() -> None:
    orphan = Resource(id=8, title="Old", subject="", semester=2, type="pdf", uploaded_by=None)
    directory = Directory(users=[STUDENT])

    report = await notify_resource_interaction(
        _dispatcher(directory),
        Catalog(orphan),
        directory,
        resource_id=8,
        student_id=20,
        interaction_type="like",
    )

    assert report is None


async def test_unknown_interaction_type_is_rejected() -> None:
    with pytest.raises(ValueError):
        await notify_resource_interaction(
            _dispatcher(Directory()),
            Catalog(NOTES),
            Directory(),
            resource_id=5,
            student_id=20,
            interaction_type="share",
        )


async def test_view_is_counted_and_shared_with_the_room(make_transport) -> None:
    registry = ConnectionRegistry()
    watcher = make_transport()
    await registry.register(watcher, Identity(principal_id=20, role="student", semester=3))
    registry.join(watcher, "resource:5")
    catalog = Catalog(Resource(id=5, title="t", subject="s", semester=3, type="pdf", uploaded_by=10, views=41))

    views = await record_resource_view(registry, catalog, resource_id=5)

    assert views == 42
    assert watcher.sent == [
        {"type": "resource-updated", "data": {"resourceId": 5, "patch": {"views": 42}}}
    ]


async def test_view_of_unknown_resource_raises() -> None:
    with pytest.raises(ResourceNotFound):
        await record_resource_view(ConnectionRegistry(), Catalog(), resource_id=1)
