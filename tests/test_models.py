"""Tests for request and response models."""
import pytest
from datetime import date, datetime, time

from pydantic import ValidationError

from app.models.category import CategoryCreate
from app.models.client import ClientCreate
from app.models.task import TaskCreate, TaskPriority
from app.models.time_log import BulkDayEntry, TimeLog, TimeLogBulkCreate, TimeLogUpdate
from app.models.user import User, UserCreate, UserRole


class TestTimeLogModels:
    """Tests for time log models."""

    def test_serializes_id_not_underscore_id(self):
        log = TimeLog(
            _id="abc",
            user_id="user1",
            task_id="task1",
            start_time=datetime(2024, 1, 1, 9),
            created_at=datetime(2024, 1, 1, 9),
            updated_at=datetime(2024, 1, 1, 9),
        )

        data = log.model_dump(by_alias=True)

        assert data["id"] == "abc"
        assert "_id" not in data
        assert log.is_running

    def test_json_timestamps_carry_utc_offset(self):
        log = TimeLog(
            _id="abc",
            user_id="user1",
            task_id="task1",
            start_time=datetime(2024, 1, 1, 9),
            end_time=datetime(2024, 1, 1, 10),
            created_at=datetime(2024, 1, 1, 9),
            updated_at=datetime(2024, 1, 1, 10),
        )

        data = log.model_dump(mode="json", by_alias=True)

        assert data["start_time"] == "2024-01-01T09:00:00Z"
        assert data["end_time"] == "2024-01-01T10:00:00Z"
        assert log.model_dump()["start_time"] == datetime(2024, 1, 1, 9)

    def test_update_requires_a_field(self):
        with pytest.raises(ValidationError, match="No fields to update"):
            TimeLogUpdate()

    def test_update_allows_clearing_description(self):
        update = TimeLogUpdate(description=None)

        assert "description" in update.model_fields_set

    def test_bulk_defaults_to_nine_am(self):
        bulk = TimeLogBulkCreate(
            task_id="task1", entries=[BulkDayEntry(date=date(2024, 1, 1), hours=8)]
        )

        assert bulk.start_time_of_day == time(9, 0)

    def test_bulk_requires_entries(self):
        with pytest.raises(ValidationError):
            TimeLogBulkCreate(task_id="task1", entries=[])

    @pytest.mark.parametrize("hours", [0, -1, 24.5])
    def test_bulk_hours_bounds(self, hours):
        with pytest.raises(ValidationError):
            BulkDayEntry(date=date(2024, 1, 1), hours=hours)


class TestReferenceModels:
    """Tests for client, category and task models."""

    def test_client_name_stripped(self):
        assert ClientCreate(name="  Acme ").name == "Acme"

    def test_client_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            ClientCreate(name="   ")

    @pytest.mark.parametrize("color", ["red", "#12345", "#GGGGGG", "3B82F6"])
    def test_category_color_pattern(self, color):
        with pytest.raises(ValidationError):
            CategoryCreate(name="Admin", color=color)

    def test_task_defaults(self):
        task = TaskCreate(title="Patch servers")

        assert task.priority == TaskPriority.MEDIUM
        assert task.halo_ticket_id is None


class TestUserModels:
    """Tests for user models."""

    def test_password_min_length(self):
        with pytest.raises(ValidationError):
            UserCreate(email="sam@example.com", name="Sam", password="12345")

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            UserCreate(email="not-an-email", name="Sam", password="123456")

    def test_is_admin(self):
        user = User(
            _id="u1",
            email="sam@example.com",
            name="Sam",
            role=UserRole.ADMIN,
            created_at=datetime(2024, 1, 1),
            updated_at=datetime(2024, 1, 1),
        )

        assert user.is_admin
