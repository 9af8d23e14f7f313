"""Time log service - timer, manual and bulk entry with overlap checks."""
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from pymongo import ReturnDocument

from app.models.task import TaskStatus
from app.models.time_log import (
    TimeLog,
    TimeLogBulkCreate,
    TimeLogCreate,
    TimeLogStart,
    TimeLogStop,
    TimeLogUpdate,
)
from app.services.errors import IntervalRejected, NotFoundError
from app.services.task_service import load_task_summaries
from app.utils.dates import local_day_bounds, local_to_utc, report_timezone
from app.utils.intervals import (
    IntervalCandidate,
    IntervalOk,
    IntervalRecord,
    OrderError,
    StoredInterval,
    compute_minutes,
    normalize_timestamp,
    validate_interval,
)
from app.utils.object_ids import canonical_id, to_object_id

logger = logging.getLogger(__name__)


class TimeLogService:
    """Service for handling time tracking operations."""

    def __init__(self, db):
        """Initialize service with database connection."""
        self.db = db
        self.time_logs = db["time_logs"]
        self.tasks = db["tasks"]

    def _doc_to_time_log(self, doc: dict, task=None) -> TimeLog:
        """
        Convert database document to TimeLog model.
        """
        return TimeLog(
            _id=str(doc["_id"]),
            user_id=doc["user_id"],
            task_id=str(doc["task_id"]),
            description=doc.get("description"),
            start_time=doc["start_time"],
            end_time=doc.get("end_time"),
            duration_minutes=doc.get("duration_minutes"),
            task=task,
            created_at=doc["created_at"],
            updated_at=doc["updated_at"],
        )

    async def to_time_logs(self, docs: list[dict]) -> list[TimeLog]:
        """Convert documents to TimeLogs with their task summaries attached."""
        summaries = await load_task_summaries(self.db, [str(doc["task_id"]) for doc in docs])
        return [
            self._doc_to_time_log(doc, summaries.get(str(doc["task_id"])))
            for doc in docs
        ]

    async def _get_task_doc(self, task_id: str) -> dict:
        task = await self.tasks.find_one({"_id": to_object_id(task_id, "Task")})
        if not task:
            raise NotFoundError("Task not found")
        return task

    async def _get_own_doc(self, user_id: str, log_id: str) -> dict:
        doc = await self.time_logs.find_one({
            "_id": to_object_id(log_id, "Time log"),
            "user_id": user_id,
        })
        if not doc:
            raise NotFoundError("Time log not found")
        return doc

    async def _find_overlapping(
        self, user_id: str, start_time: datetime, end_time: datetime
    ) -> list[TimeLog]:
        """Closed logs of the user that could overlap [start_time, end_time)."""
        cursor = self.time_logs.find({
            "user_id": user_id,
            "end_time": {"$ne": None, "$gt": start_time},
            "start_time": {"$lt": end_time},
        })
        docs = await cursor.to_list(length=None)
        return [self._doc_to_time_log(doc) for doc in docs]

    async def _check_interval(
        self,
        user_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_id: Optional[str] = None,
        pending: Iterable[StoredInterval] = (),
        index: Optional[int] = None,
    ) -> None:
        """
        Validate a closed interval against the user's stored logs.

        Args:
            user_id: Owner of the interval
            start_time: Interval start (naive UTC)
            end_time: Interval end (naive UTC)
            exclude_id: Log being edited, skipped in the overlap test
            pending: Not-yet-written intervals to also compare against
            index: Position in a bulk request, reported on rejection

        Raises:
            IntervalRejected: If the interval is out of order or overlaps
        """
        candidate = IntervalCandidate(
            user_id=user_id,
            start_time=start_time,
            end_time=end_time,
            exclude_id=exclude_id,
        )

        # Order errors never need storage
        result = validate_interval(candidate, ())
        if isinstance(result, OrderError):
            raise IntervalRejected(result, index)

        existing = await self._find_overlapping(user_id, start_time, end_time)
        result = validate_interval(candidate, [*existing, *pending])
        if not isinstance(result, IntervalOk):
            logger.info(
                "Rejected interval %s-%s for user %s: %s",
                start_time.isoformat(),
                end_time.isoformat(),
                user_id,
                result.error,
            )
            raise IntervalRejected(result, index)

    async def list_time_logs(
        self,
        user_id: str,
        task_id: Optional[str] = None,
        day: Optional[date] = None,
        active: Optional[bool] = None,
    ) -> list[TimeLog]:
        """
        List time logs for a user, most recent first.

        Args:
            user_id: User ID
            task_id: Optional task filter
            day: Optional local day the log started on
            active: If True, only the running log

        Returns:
            List of time logs
        """
        query = {"user_id": user_id}

        if task_id:
            query["task_id"] = canonical_id(task_id)
        if active:
            query["end_time"] = None
        if day:
            start, end = local_day_bounds(day, day, report_timezone())
            query["start_time"] = {"$gte": start, "$lt": end}

        cursor = self.time_logs.find(query).sort("start_time", -1)
        docs = await cursor.to_list(length=None)
        return await self.to_time_logs(docs)

    async def list_range(
        self,
        user_id: str,
        start_date: date,
        end_date: date,
    ) -> list[TimeLog]:
        """
        List time logs started within local days start_date..end_date.

        Raises:
            ValueError: If start_date is after end_date
        """
        if start_date > end_date:
            raise ValueError("Start date must not be after end date")

        start, end = local_day_bounds(start_date, end_date, report_timezone())
        cursor = self.time_logs.find({
            "user_id": user_id,
            "start_time": {"$gte": start, "$lt": end},
        }).sort("start_time", -1)
        docs = await cursor.to_list(length=None)
        return await self.to_time_logs(docs)

    async def get_time_log(self, user_id: str, log_id: str) -> TimeLog:
        """
        Get one of the user's time logs.

        Raises:
            NotFoundError: If the log does not exist
        """
        doc = await self._get_own_doc(user_id, log_id)
        return (await self.to_time_logs([doc]))[0]

    async def get_active(self, user_id: str) -> Optional[TimeLog]:
        """
        Get the currently running time log, if any.

        Args:
            user_id: User ID

        Returns:
            Running time log, or None
        """
        doc = await self.time_logs.find_one({"user_id": user_id, "end_time": None})
        if not doc:
            return None
        return (await self.to_time_logs([doc]))[0]

    async def start(self, user_id: str, timer_start: TimeLogStart) -> TimeLog:
        """
        Start a new timer.

        Args:
            user_id: User ID
            timer_start: Task and optional description

        Returns:
            Created (running) time log

        Raises:
            ValueError: If a timer is already running
            NotFoundError: If the task doesn't exist
        """
        running = await self.time_logs.find_one({"user_id": user_id, "end_time": None})
        if running:
            raise ValueError("You already have an active time log. Please stop it first.")

        task = await self._get_task_doc(timer_start.task_id)

        now = datetime.utcnow()
        doc = {
            "user_id": user_id,
            "task_id": str(task["_id"]),
            "description": timer_start.description,
            "start_time": now,
            "end_time": None,
            "duration_minutes": None,
            "created_at": now,
            "updated_at": now,
        }

        result = await self.time_logs.insert_one(doc)
        doc["_id"] = result.inserted_id

        if task.get("status") == TaskStatus.PENDING.value:
            await self.tasks.update_one(
                {"_id": task["_id"]},
                {"$set": {"status": TaskStatus.IN_PROGRESS.value, "updated_at": now}},
            )

        logger.info("User %s started timer on task %s", user_id, doc["task_id"])
        return (await self.to_time_logs([doc]))[0]

    async def stop(self, user_id: str, timer_stop: TimeLogStop) -> TimeLog:
        """
        Stop the running timer, validating the now-closed interval.

        Args:
            user_id: User ID
            timer_stop: Optional log ID, end time and description

        Returns:
            Closed time log with duration

        Raises:
            NotFoundError: If no timer is running
            IntervalRejected: If the closed interval is invalid
        """
        query = {"user_id": user_id, "end_time": None}
        if timer_stop.id:
            query["_id"] = to_object_id(timer_stop.id, "Time log")

        running = await self.time_logs.find_one(query)
        if not running:
            raise NotFoundError("Active time log not found")

        end_time = (
            normalize_timestamp(timer_stop.end_time)
            if timer_stop.end_time
            else datetime.utcnow()
        )
        log_id = str(running["_id"])
        await self._check_interval(user_id, running["start_time"], end_time, exclude_id=log_id)

        updated = await self.time_logs.find_one_and_update(
            {"_id": running["_id"], "end_time": None},
            {"$set": {
                "end_time": end_time,
                "duration_minutes": compute_minutes(running["start_time"], end_time),
                "description": timer_stop.description or running.get("description"),
                "updated_at": datetime.utcnow(),
            }},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Active time log not found")

        return (await self.to_time_logs([updated]))[0]

    async def create_manual(self, user_id: str, entry: TimeLogCreate) -> TimeLog:
        """
        Create a closed time log, e.g. for a past date.

        Raises:
            NotFoundError: If the task doesn't exist
            IntervalRejected: If the interval is invalid or overlaps
        """
        start_time = normalize_timestamp(entry.start_time)
        end_time = normalize_timestamp(entry.end_time)
        await self._check_interval(user_id, start_time, end_time)

        task = await self._get_task_doc(entry.task_id)
        doc = self._closed_doc(user_id, str(task["_id"]), start_time, end_time, entry.description)

        docs = await self._insert_closed(user_id, [doc])
        return (await self.to_time_logs(docs))[0]

    async def create_bulk(self, user_id: str, bulk: TimeLogBulkCreate) -> list[TimeLog]:
        """
        Create one closed time log per day; nothing is written unless all pass.

        Each entry starts at bulk.start_time_of_day in the report time zone.

        Raises:
            NotFoundError: If the task doesn't exist
            IntervalRejected: For the first invalid entry, with its index
        """
        task = await self._get_task_doc(bulk.task_id)
        task_id = str(task["_id"])
        tz = report_timezone()

        docs = []
        pending: list[IntervalRecord] = []
        for index, day_entry in enumerate(bulk.entries):
            start_time = local_to_utc(day_entry.date, bulk.start_time_of_day, tz)
            end_time = start_time + timedelta(minutes=round(day_entry.hours * 60))
            await self._check_interval(
                user_id, start_time, end_time, pending=pending, index=index
            )

            pending.append(IntervalRecord(
                id=f"bulk-{index}",
                user_id=user_id,
                task_id=task_id,
                start_time=start_time,
                end_time=end_time,
            ))
            description = day_entry.description or f"Bulk entry - {day_entry.hours:g} hours"
            docs.append(self._closed_doc(user_id, task_id, start_time, end_time, description))

        docs = await self._insert_closed(user_id, docs)
        logger.info("User %s bulk-created %d time logs", user_id, len(docs))
        return await self.to_time_logs(docs)

    def _closed_doc(
        self,
        user_id: str,
        task_id: str,
        start_time: datetime,
        end_time: datetime,
        description: Optional[str],
    ) -> dict:
        now = datetime.utcnow()
        return {
            "user_id": user_id,
            "task_id": task_id,
            "description": description,
            "start_time": start_time,
            "end_time": end_time,
            "duration_minutes": compute_minutes(start_time, end_time),
            "created_at": now,
            "updated_at": now,
        }

    async def _insert_closed(self, user_id: str, docs: list[dict]) -> list[dict]:
        """
        Re-validate closed logs against fresh data, then insert them.

        This narrows the window between the first check and the write; it
        does not close it.
        """
        for index, doc in enumerate(docs):
            await self._check_interval(
                user_id,
                doc["start_time"],
                doc["end_time"],
                index=index if len(docs) > 1 else None,
            )

        if len(docs) == 1:
            result = await self.time_logs.insert_one(docs[0])
            docs[0]["_id"] = result.inserted_id
        else:
            result = await self.time_logs.insert_many(docs)
            for doc, inserted_id in zip(docs, result.inserted_ids):
                doc["_id"] = inserted_id
        return docs

    async def update(self, user_id: str, log_id: str, log_update: TimeLogUpdate) -> TimeLog:
        """
        Update a time log, re-validating and recomputing duration if times change.

        Args:
            user_id: User ID
            log_id: Time log ID
            log_update: Fields to change

        Returns:
            Updated time log

        Raises:
            NotFoundError: If the log or new task doesn't exist
            IntervalRejected: If the edited interval is invalid or overlaps
        """
        existing = await self._get_own_doc(user_id, log_id)
        stored_id = str(existing["_id"])

        start_time = (
            normalize_timestamp(log_update.start_time)
            if log_update.start_time
            else existing["start_time"]
        )
        end_time = (
            normalize_timestamp(log_update.end_time)
            if log_update.end_time
            else existing.get("end_time")
        )
        times_changed = log_update.start_time is not None or log_update.end_time is not None

        if times_changed and end_time is not None:
            await self._check_interval(user_id, start_time, end_time, exclude_id=stored_id)

        update_doc = {"updated_at": datetime.utcnow()}
        if log_update.task_id:
            task = await self._get_task_doc(log_update.task_id)
            update_doc["task_id"] = str(task["_id"])
        if "description" in log_update.model_fields_set:
            update_doc["description"] = log_update.description
        if times_changed:
            update_doc["start_time"] = start_time
            update_doc["end_time"] = end_time
            if end_time is not None:
                update_doc["duration_minutes"] = compute_minutes(start_time, end_time)
                # Second pass right before the write
                await self._check_interval(user_id, start_time, end_time, exclude_id=stored_id)

        updated = await self.time_logs.find_one_and_update(
            {"_id": existing["_id"], "user_id": user_id},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFoundError("Time log not found")

        return (await self.to_time_logs([updated]))[0]

    async def delete(self, user_id: str, log_id: str) -> None:
        """
        Delete a time log (hard delete).

        Raises:
            NotFoundError: If the log doesn't exist
        """
        existing = await self._get_own_doc(user_id, log_id)
        await self.time_logs.delete_one({"_id": existing["_id"], "user_id": user_id})
