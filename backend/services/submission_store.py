"""
Submission Store
================
Document-store collaborator for Submission records and user roles.

Two implementations share one interface:
- SupabaseSubmissionStore: cloud storage through supabase-py (production)
- InMemorySubmissionStore: process-local dicts (local runs and tests)

Records are flat dicts keyed by the persisted field names (studentId,
assignmentTitle, rubricScores, ...). Subscriptions deliver the full list of
matching records every time that list changes, starting with the current
snapshot, until cancelled.
"""

import copy
import logging
import threading
import uuid

from backend.errors import StoreError, SubmissionNotFoundError

logger = logging.getLogger(__name__)


class Subscription:
    """Handle returned by subscribe(); cancel() stops further callbacks."""

    def __init__(self, on_cancel=None):
        self._on_cancel = on_cancel
        self._cancelled = threading.Event()

    @property
    def active(self):
        return not self._cancelled.is_set()

    def wait(self, timeout):
        """Block up to `timeout` seconds; True once cancelled."""
        return self._cancelled.wait(timeout)

    def cancel(self):
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        if self._on_cancel:
            self._on_cancel(self)


def _matches(record, filters):
    return all(record.get(key) == value for key, value in filters.items())


def _notify(callback, records):
    try:
        callback(records)
    except Exception as e:
        logger.error("Subscription callback failed: %s", e, exc_info=True)


class SubmissionStore:
    """Interface for the document store. Subclasses implement every method."""

    def create(self, record: dict) -> dict:
        raise NotImplementedError

    def get(self, submission_id: str) -> dict:
        raise NotImplementedError

    def query(self, **filters) -> list:
        raise NotImplementedError

    def update(self, submission_id: str, fields: dict) -> dict:
        raise NotImplementedError

    def get_role(self, user_id: str):
        raise NotImplementedError

    def set_role(self, user_id: str, role: str):
        raise NotImplementedError

    def subscribe(self, callback, **filters) -> Subscription:
        raise NotImplementedError


# =============================================================================
# IN-MEMORY STORE
# =============================================================================

class InMemorySubmissionStore(SubmissionStore):
    """Thread-safe dict-backed store. Subscribers are notified synchronously."""

    def __init__(self):
        self._lock = threading.RLock()
        self._records = {}
        self._roles = {}
        self._subscribers = []

    def create(self, record):
        with self._lock:
            submission_id = record.get("id") or uuid.uuid4().hex
            stored = copy.deepcopy(record)
            stored["id"] = submission_id
            self._records[submission_id] = stored
            created = copy.deepcopy(stored)
        self._publish()
        return created

    def get(self, submission_id):
        with self._lock:
            record = self._records.get(submission_id)
            if record is None:
                raise SubmissionNotFoundError(f"Submission not found: {submission_id}")
            return copy.deepcopy(record)

    def query(self, **filters):
        with self._lock:
            return [copy.deepcopy(r) for r in self._records.values() if _matches(r, filters)]

    def update(self, submission_id, fields):
        with self._lock:
            record = self._records.get(submission_id)
            if record is None:
                raise SubmissionNotFoundError(f"Submission not found: {submission_id}")
            record.update(copy.deepcopy(fields))
            updated = copy.deepcopy(record)
        self._publish()
        return updated

    def get_role(self, user_id):
        with self._lock:
            return self._roles.get(user_id)

    def set_role(self, user_id, role):
        with self._lock:
            self._roles[user_id] = role

    def subscribe(self, callback, **filters):
        entry = {"callback": callback, "filters": filters, "last": None}

        def _remove(_sub):
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        subscription = Subscription(on_cancel=_remove)
        entry["subscription"] = subscription
        with self._lock:
            self._subscribers.append(entry)
        self._publish(only=entry)
        return subscription

    def _publish(self, only=None):
        with self._lock:
            entries = [only] if only is not None else list(self._subscribers)
            pending = []
            for entry in entries:
                snapshot = self.query(**entry["filters"])
                if snapshot != entry["last"]:
                    entry["last"] = snapshot
                    pending.append((entry, copy.deepcopy(snapshot)))
        # Callbacks run outside the lock
        for entry, snapshot in pending:
            if entry["subscription"].active:
                _notify(entry["callback"], snapshot)


# =============================================================================
# SUPABASE STORE
# =============================================================================

class SupabaseSubmissionStore(SubmissionStore):
    """Submissions and roles in Supabase tables.

    Subscriptions poll the table on a background thread and fire when the
    matching rows change.
    """

    def __init__(self, url, key, submissions_table="submissions",
                 roles_table="user_roles", poll_interval=2.0, client=None):
        if client is None:
            if not url or not key:
                raise StoreError(
                    "Supabase credentials not configured. Check SUPABASE_URL and SUPABASE_SERVICE_KEY in .env"
                )
            from supabase import create_client
            client = create_client(url, key)
        self.client = client
        self.submissions_table = submissions_table
        self.roles_table = roles_table
        self.poll_interval = poll_interval

    def _execute(self, action, builder):
        try:
            return builder.execute()
        except Exception as e:
            logger.error("Supabase %s failed: %s", action, e)
            raise StoreError(f"Failed to {action}", cause=e) from e

    def create(self, record):
        result = self._execute(
            "create submission",
            self.client.table(self.submissions_table).insert(record),
        )
        if not result.data:
            raise StoreError("Failed to create submission: no row returned")
        return result.data[0]

    def get(self, submission_id):
        result = self._execute(
            "load submission",
            self.client.table(self.submissions_table).select('*').eq('id', submission_id),
        )
        if not result.data:
            raise SubmissionNotFoundError(f"Submission not found: {submission_id}")
        return result.data[0]

    def query(self, **filters):
        builder = self.client.table(self.submissions_table).select('*')
        for key, value in filters.items():
            builder = builder.eq(key, value)
        result = self._execute("query submissions", builder)
        return list(result.data or [])

    def update(self, submission_id, fields):
        result = self._execute(
            "update submission",
            self.client.table(self.submissions_table).update(fields).eq('id', submission_id),
        )
        if not result.data:
            raise SubmissionNotFoundError(f"Submission not found: {submission_id}")
        return result.data[0]

    def get_role(self, user_id):
        result = self._execute(
            "load role",
            self.client.table(self.roles_table).select('role').eq('user_id', user_id),
        )
        if not result.data:
            return None
        return result.data[0].get('role')

    def set_role(self, user_id, role):
        self._execute(
            "save role",
            self.client.table(self.roles_table).upsert({"user_id": user_id, "role": role}),
        )

    def subscribe(self, callback, **filters):
        subscription = Subscription()
        thread = threading.Thread(
            target=self._poll, args=(subscription, callback, filters),
            name="submission-subscription", daemon=True,
        )
        thread.start()
        return subscription

    def _poll(self, subscription, callback, filters):
        last = None
        while subscription.active:
            try:
                snapshot = self.query(**filters)
            except StoreError as e:
                logger.error("Subscription poll failed for %s: %s", filters, e)
            else:
                if snapshot != last and subscription.active:
                    last = snapshot
                    _notify(callback, snapshot)
            subscription.wait(self.poll_interval)


def create_store(cfg) -> SubmissionStore:
    """Supabase store when credentials are configured, otherwise in-memory."""
    if cfg.use_supabase:
        return SupabaseSubmissionStore(
            cfg.supabase_url, cfg.supabase_service_key,
            submissions_table=cfg.submissions_table,
            roles_table=cfg.user_roles_table,
            poll_interval=cfg.subscription_poll_interval,
        )
    logger.warning("Supabase not configured; submissions are kept in memory only")
    return InMemorySubmissionStore()
