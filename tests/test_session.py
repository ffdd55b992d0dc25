"""Tests for session flag persistence."""

from freshmart.kv_store import load_json
from freshmart.models import Session
from freshmart.session import clear_session, load_session, save_session


class TestSessionPersistence:
    def test_empty_store_is_guest(self, store):
        assert load_session(store) == Session.guest()

    def test_vendor_round_trip(self, store):
        session = Session.vendor("vendor2", "user-9")
        save_session(store, session)

        assert load_session(store) == session
        assert load_json(store, "isVendor") is True
        assert load_json(store, "vendorId") == "vendor2"

    def test_switching_role_drops_vendor_id(self, store):
        save_session(store, Session.vendor("vendor2"))
        save_session(store, Session.admin())

        restored = load_session(store)
        assert restored.is_admin
        assert restored.vendor_id is None

    def test_clear_logs_out(self, store):
        save_session(store, Session.customer("user-1"))
        clear_session(store)

        assert load_session(store) == Session.guest()
        assert store.keys() == []
