"""Tests for TaskService."""
import pytest
from datetime import date, datetime

from bson import ObjectId

from conftest import make_collection
from app.models.task import TaskCreate, TaskPriority, TaskStatus, TaskUpdate
from app.services.errors import ConflictError, NotFoundError
from app.services.task_service import TaskService, load_task_summaries


def task_doc(**extra):
    doc = {
        "_id": ObjectId(),
        "user_id": "user1",
        "title": "Patch servers",
        "description": None,
        "halo_ticket_id": None,
        "client_id": None,
        "category_id": None,
        "status": "pending",
        "priority": "medium",
        "due_date": None,
        "created_at": datetime(2024, 1, 1),
        "updated_at": datetime(2024, 1, 1),
    }
    doc.update(extra)
    return doc


@pytest.mark.asyncio
class TestCreateTask:
    """Tests for task creation."""

    async def test_create_task(self, make_db):
        tasks = make_collection()
        service = TaskService(make_db(tasks=tasks))

        task = await service.create_task("user1", TaskCreate(
            title="  Renew certificates ",
            halo_ticket_id="HALO-12",
            priority=TaskPriority.HIGH,
            due_date=date(2024, 2, 1),
        ))

        assert task.title == "Renew certificates"
        assert task.status == TaskStatus.PENDING
        assert task.priority == TaskPriority.HIGH
        assert task.due_date == date(2024, 2, 1)
        assert task.time_log_count == 0

        inserted = tasks.insert_one.call_args[0][0]
        assert inserted["priority"] == "high"
        assert inserted["due_date"] == datetime(2024, 2, 1)

    async def test_create_task_unknown_client(self, make_db):
        tasks = make_collection()
        service = TaskService(make_db(tasks=tasks, clients=make_collection()))

        with pytest.raises(NotFoundError, match="Client not found"):
            await service.create_task("user1", TaskCreate(
                title="Renew certificates", client_id=str(ObjectId()),
            ))

        tasks.insert_one.assert_not_called()

    async def test_create_task_with_client_and_category(self, make_db):
        client = {"_id": ObjectId(), "name": "Acme"}
        category = {"_id": ObjectId(), "name": "Maintenance", "color": "#6B7280"}
        db = make_db(
            tasks=make_collection(),
            clients=make_collection(docs=[client], find_one=client),
            categories=make_collection(docs=[category], find_one=category),
        )
        service = TaskService(db)

        task = await service.create_task("user1", TaskCreate(
            title="Renew certificates",
            client_id=str(client["_id"]),
            category_id=str(category["_id"]),
        ))

        assert task.client_name == "Acme"
        assert task.category_name == "Maintenance"
        assert task.category_color == "#6B7280"


@pytest.mark.asyncio
class TestListAndUpdate:
    """Tests for listing, updating and deleting tasks."""

    async def test_list_tasks_filters(self, make_db):
        tasks = make_collection()
        service = TaskService(make_db(tasks=tasks))

        await service.list_tasks(status="pending, in_progress", halo_ticket_id="HALO-1.")

        query = tasks.find.call_args[0][0]
        assert query["status"] == {"$in": ["pending", "in_progress"]}
        assert query["halo_ticket_id"] == {"$regex": r"HALO\-1\."}
        tasks.find.return_value.sort.assert_called_once_with("created_at", -1)

    async def test_list_tasks_reference_filters_use_stored_form(self, make_db):
        client_id, category_id = ObjectId(), ObjectId()
        tasks = make_collection()
        service = TaskService(make_db(tasks=tasks))

        await service.list_tasks(
            client_id=str(client_id).upper(), category_id=str(category_id).upper()
        )

        query = tasks.find.call_args[0][0]
        assert query["client_id"] == str(client_id)
        assert query["category_id"] == str(category_id)

    async def test_list_tasks_counts_time_logs(self, make_db):
        doc = task_doc()
        time_logs = make_collection()
        time_logs.count_documents.return_value = 3
        service = TaskService(make_db(tasks=make_collection(docs=[doc]), time_logs=time_logs))

        tasks = await service.list_tasks()

        assert tasks[0].time_log_count == 3
        time_logs.count_documents.assert_called_once_with({"task_id": str(doc["_id"])})

    async def test_update_task_converts_enums(self, make_db):
        doc = task_doc()
        tasks = make_collection()
        tasks.find_one_and_update.return_value = {**doc, "status": "completed"}
        service = TaskService(make_db(tasks=tasks))

        task = await service.update_task(
            str(doc["_id"]), TaskUpdate(status=TaskStatus.COMPLETED)
        )

        assert task.status == TaskStatus.COMPLETED
        update = tasks.find_one_and_update.call_args[0][1]["$set"]
        assert update["status"] == "completed"
        assert "title" not in update

    async def test_update_missing_task(self, make_db):
        service = TaskService(make_db(tasks=make_collection()))

        with pytest.raises(NotFoundError, match="Task not found"):
            await service.update_task(str(ObjectId()), TaskUpdate(title="New"))

    async def test_delete_task_with_time_logs(self, make_db):
        doc = task_doc()
        tasks = make_collection(find_one=doc)
        time_logs = make_collection()
        time_logs.count_documents.return_value = 2
        service = TaskService(make_db(tasks=tasks, time_logs=time_logs))

        with pytest.raises(ConflictError, match="existing time logs"):
            await service.delete_task(str(doc["_id"]))

        tasks.delete_one.assert_not_called()

    async def test_delete_task_with_upper_case_id_still_guarded(self, make_db):
        doc = task_doc()
        tasks = make_collection(find_one=doc)
        time_logs = make_collection()
        time_logs.count_documents.side_effect = (
            lambda query: 1 if query == {"task_id": str(doc["_id"])} else 0
        )
        service = TaskService(make_db(tasks=tasks, time_logs=time_logs))

        with pytest.raises(ConflictError, match="existing time logs"):
            await service.delete_task(str(doc["_id"]).upper())

        tasks.delete_one.assert_not_called()

    async def test_delete_task(self, make_db):
        doc = task_doc()
        tasks = make_collection(find_one=doc)
        service = TaskService(make_db(tasks=tasks))

        await service.delete_task(str(doc["_id"]))

        tasks.delete_one.assert_called_once_with({"_id": doc["_id"]})


@pytest.mark.asyncio
class TestLoadTaskSummaries:
    """Tests for load_task_summaries."""

    async def test_skips_invalid_ids(self, make_db):
        tasks = make_collection()
        db = make_db(tasks=tasks)

        summaries = await load_task_summaries(db, ["not-an-id", ""])

        assert summaries == {}
        tasks.find.assert_not_called()

    async def test_missing_client_and_category(self, make_db):
        doc = task_doc(halo_ticket_id="HALO-3")
        db = make_db(tasks=make_collection(docs=[doc]))

        summaries = await load_task_summaries(db, [str(doc["_id"])])

        summary = summaries[str(doc["_id"])]
        assert summary.title == "Patch servers"
        assert summary.halo_ticket_id == "HALO-3"
        assert summary.client_name is None
        assert summary.category_name is None
