"""Notification ledgers for freshmart.

Notifications are kept in three independent ledgers, one per audience kind,
each persisted under its own key. A record's audience decides its ledger
when it is added and it never moves. Unread counts are always derived from
the records themselves.
"""

import logging
from typing import Callable

from .errors import NotificationNotFoundError
from .kv_store import KeyValueStore, decode_records, load_list, save_json
from .models import (
    ADMIN_LEDGER,
    USER_LEDGER,
    VENDOR_LEDGER,
    Audience,
    Notification,
    Session,
)

logger = logging.getLogger(__name__)

Match = Callable[[Notification], bool]


def unread_count(notifications: list[Notification]) -> int:
    return sum(1 for n in notifications if not n.is_read)


class NotificationLedger:
    """One audience's list of notifications, newest first."""

    def __init__(self, store: KeyValueStore, key: str):
        self.store = store
        self.key = key

    def _load(self) -> list[dict]:
        return load_list(self.store, self.key)

    def _decode(self, records: list[dict]) -> list[Notification]:
        return decode_records(self.key, records, Notification.from_dict)

    def records(self) -> list[Notification]:
        return self._decode(self._load())

    def __len__(self) -> int:
        return len(self._load())

    @property
    def unread_count(self) -> int:
        return unread_count(self.records())

    def find(self, notification_id: str) -> Notification:
        """
        Get a notification by ID (supports partial ID matching).

        Raises:
            NotificationNotFoundError: If no record, or more than one, matches.
        """
        matches = [n for n in self.records() if n.id.startswith(notification_id)]
        if not matches:
            raise NotificationNotFoundError(notification_id)
        if len(matches) > 1:
            raise NotificationNotFoundError(
                f"{notification_id} (ambiguous, matches {len(matches)} notifications)"
            )
        return matches[0]

    def add(self, notification: Notification) -> Notification:
        if notification.audience.ledger_key != self.key:
            raise ValueError(
                f"Notification for {notification.audience.kind} doesn't belong in {self.key}"
            )
        with self.store.lock(self.key):
            records = self._load()
            records.insert(0, notification.to_dict())
            save_json(self.store, self.key, records)
        logger.debug("Added %s notification %s to %s", notification.type.value, notification.id, self.key)
        return notification

    def mark_as_read(self, notification_id: str) -> Notification:
        """
        Flip one record to read.

        Raises:
            NotificationNotFoundError: If the ID isn't in this ledger.
        """
        with self.store.lock(self.key):
            records = self._load()
            for record in records:
                if record.get("id") == notification_id:
                    record["isRead"] = True
                    save_json(self.store, self.key, records)
                    return self._decode([record])[0]
        raise NotificationNotFoundError(notification_id)

    def mark_all_as_read(self, match: Match | None = None) -> int:
        """
        Flip every record (or every record ``match`` accepts) to read.

        Returns:
            Number of records that were unread.
        """
        with self.store.lock(self.key):
            records = self._load()
            selected = [
                record for record, n in zip(records, self._decode(records))
                if match is None or match(n)
            ]
            changed = sum(1 for r in selected if not r.get("isRead"))
            for record in selected:
                record["isRead"] = True
            save_json(self.store, self.key, records)
        return changed

    def clear_all(self, match: Match | None = None) -> int:
        """
        Empty the ledger, or delete only the records ``match`` accepts.
        There is no undo.

        Returns:
            Number of records deleted.
        """
        with self.store.lock(self.key):
            records = self._load()
            if match is None:
                kept = []
            else:
                kept = [
                    record for record, n in zip(records, self._decode(records))
                    if not match(n)
                ]
            count = len(records) - len(kept)
            save_json(self.store, self.key, kept)
        logger.info("Cleared %d notifications from %s", count, self.key)
        return count


def _user_can_see(notification: Notification, user_id: str | None) -> bool:
    return notification.audience.user_id is None or notification.audience.user_id == user_id


class NotificationStore:
    """All notifications, partitioned by audience into three ledgers."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.admin = NotificationLedger(store, ADMIN_LEDGER)
        self.vendor = NotificationLedger(store, VENDOR_LEDGER)
        self.user = NotificationLedger(store, USER_LEDGER)

    def ledger(self, key: str) -> NotificationLedger:
        for ledger in (self.admin, self.vendor, self.user):
            if ledger.key == key:
                return ledger
        raise ValueError(f"Unknown ledger: {key}")

    def ledger_for_audience(self, audience: Audience) -> NotificationLedger:
        return self.ledger(audience.ledger_key)

    def ledger_for(self, session: Session) -> NotificationLedger:
        """The ledger the acting session reads."""
        if session.is_admin:
            return self.admin
        if session.is_vendor:
            return self.vendor
        return self.user

    def add(self, notification: Notification) -> Notification:
        """Append a record to the ledger its audience selects."""
        return self.ledger_for_audience(notification.audience).add(notification)

    def visible_to_user(self, user_id: str | None) -> list[Notification]:
        """User-ledger records with no user scope or scoped to ``user_id``."""
        return [n for n in self.user.records() if _user_can_see(n, user_id)]

    def for_vendor(self, vendor_id: str) -> list[Notification]:
        return [n for n in self.vendor.records() if n.audience.vendor_id == vendor_id]

    def visible_to(self, session: Session) -> list[Notification]:
        """What the session's notification screen shows."""
        if session.is_admin:
            return self.admin.records()
        if session.is_vendor:
            return self.for_vendor(session.vendor_id) if session.vendor_id else []
        return self.visible_to_user(session.user_id)

    def unread_count_for(self, session: Session) -> int:
        return unread_count(self.visible_to(session))

    # Session-scoped writes: vendors and customers share a ledger with
    # others, so they only ever touch their own records.

    def mark_as_read_for(self, session: Session, notification_id: str) -> Notification:
        """
        Raises:
            NotificationNotFoundError: If the record isn't one the session can see.
        """
        if not any(n.id == notification_id for n in self.visible_to(session)):
            raise NotificationNotFoundError(notification_id)
        return self.ledger_for(session).mark_as_read(notification_id)

    def mark_all_as_read_for(self, session: Session) -> int:
        if session.is_admin:
            return self.admin.mark_all_as_read()
        if session.is_vendor:
            vendor_id = session.vendor_id
            return self.vendor.mark_all_as_read(
                lambda n: vendor_id is not None and n.audience.vendor_id == vendor_id
            )
        user_id = session.user_id
        return self.user.mark_all_as_read(lambda n: _user_can_see(n, user_id))

    def clear_for(self, session: Session) -> int:
        """
        Delete the session's records. Customers only delete records addressed
        to them; broadcasts to every user stay for the others.
        """
        if session.is_admin:
            return self.admin.clear_all()
        if session.is_vendor:
            vendor_id = session.vendor_id
            return self.vendor.clear_all(
                lambda n: vendor_id is not None and n.audience.vendor_id == vendor_id
            )
        user_id = session.user_id
        return self.user.clear_all(
            lambda n: user_id is not None and n.audience.user_id == user_id
        )
