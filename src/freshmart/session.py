"""Session flag persistence for freshmart."""

from .kv_store import KeyValueStore, load_json, remove_key, save_json
from .models import Session

SESSION_KEYS = ("isLoggedIn", "isAdmin", "isVendor", "vendorId", "userId")


def load_session(store: KeyValueStore) -> Session:
    """Restore the acting session from stored flags. Missing flags mean a guest."""
    return Session(
        user_id=load_json(store, "userId") or None,
        is_logged_in=bool(load_json(store, "isLoggedIn", default=False)),
        is_admin=bool(load_json(store, "isAdmin", default=False)),
        is_vendor=bool(load_json(store, "isVendor", default=False)),
        vendor_id=load_json(store, "vendorId") or None,
    )


def save_session(store: KeyValueStore, session: Session) -> None:
    save_json(store, "isLoggedIn", session.is_logged_in)
    save_json(store, "isAdmin", session.is_admin)
    save_json(store, "isVendor", session.is_vendor)
    if session.user_id is not None:
        save_json(store, "userId", session.user_id)
    else:
        remove_key(store, "userId")
    if session.vendor_id is not None:
        save_json(store, "vendorId", session.vendor_id)
    else:
        remove_key(store, "vendorId")


def clear_session(store: KeyValueStore) -> None:
    """Log out: drop every session flag."""
    for key in SESSION_KEYS:
        remove_key(store, key)
