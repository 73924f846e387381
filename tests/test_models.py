"""
Tests for Tabs Bot models

Test strategy:
1. Unit tests for individual components (models, ledger, interpreter)
2. Flow tests with in-memory fakes for transport and storage
3. No real homeserver calls in tests
"""

import pytest
from pydantic import ValidationError

from tabsbot.models.tab import InboundMessage, LedgerSnapshot, RoomTab
from tabsbot.models.activity import (
    ActivityEvent,
    ActivityEventBuilder,
    ActivityEventType,
    ActivitySeverity,
)


class TestRoomTab:
    """Tests for the RoomTab model."""

    def test_room_tab_defaults_empty(self):
        tab = RoomTab()
        assert tab.users == {}
        assert tab.total == 0

    def test_room_tab_total(self):
        tab = RoomTab(users={"@a:x": 500, "@b:x": -200})
        assert tab.total == 300

    def test_room_tab_rejects_float_balance(self):
        """Test that balances must be ints, never floats."""
        with pytest.raises(ValidationError):
            RoomTab(users={"@a:x": 12.5})

    def test_room_tab_rejects_numeric_string(self):
        with pytest.raises(ValidationError):
            RoomTab.model_validate({"users": {"@a:x": "1250"}})

    def test_room_tab_serialized_shape(self):
        """Test the persisted shape: one field mapping user to cents."""
        tab = RoomTab(users={"@a:x": 1250})
        assert tab.model_dump(mode="json") == {"users": {"@a:x": 1250}}

    def test_room_tab_ignores_unknown_fields(self):
        tab = RoomTab.model_validate({"users": {"@a:x": 1}, "version": 2})
        assert tab.users == {"@a:x": 1}

    def test_find_user_substring(self):
        tab = RoomTab(users={"@bob:x": 0, "@jimbob:x": 0, "@alice:x": 0})
        assert sorted(tab.find_user("bob")) == ["@bob:x", "@jimbob:x"]
        assert tab.find_user("@bob") == ["@bob:x"]
        assert tab.find_user("carol") == []


class TestLedgerSnapshot:
    """Tests for the flat-file ledger representation."""

    def test_snapshot_parses_flat_file(self):
        raw = '{"!r:x": {"users": {"@a:x": 1250, "@b:x": -1250}}}'
        snapshot = LedgerSnapshot.model_validate_json(raw)
        assert snapshot.root["!r:x"].users == {"@a:x": 1250, "@b:x": -1250}

    def test_empty_snapshot(self):
        assert LedgerSnapshot().root == {}
        assert LedgerSnapshot.model_validate_json("{}").root == {}

    def test_snapshot_round_trip(self):
        snapshot = LedgerSnapshot({"!r:x": RoomTab(users={"@a:x": -5})})
        assert LedgerSnapshot.model_validate_json(snapshot.model_dump_json()) == snapshot


class TestInboundMessage:
    """Tests for the normalized inbound message."""

    def test_inbound_message_creation(self):
        msg = InboundMessage(room_id="!r:x", sender="@a:x", body="!balance")
        assert msg.body == "!balance"

    def test_inbound_message_requires_room_and_sender(self):
        with pytest.raises(ValidationError):
            InboundMessage(room_id="", sender="@a:x", body="!balance")

    def test_inbound_message_is_frozen(self):
        msg = InboundMessage(room_id="!r:x", sender="@a:x")
        with pytest.raises(ValidationError):
            msg.body = "changed"


class TestActivityModels:
    """Tests for activity-related models."""

    def test_activity_event_creation(self):
        event = ActivityEvent(
            event_type=ActivityEventType.PAYMENT_RECORDED,
            description="Payment recorded",
        )
        assert event.severity == ActivitySeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_activity_event_to_log_dict(self):
        event = ActivityEventBuilder.transfer_recorded("!r:x", "@a:x", "@b:x", 500)
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transfer_recorded"
        assert log_dict["room_id"] == "!r:x"
        assert log_dict["details"] == {"amount": 500, "recipient": "@b:x"}

    def test_builder_transfer_rejected_is_warning(self):
        event = ActivityEventBuilder.transfer_rejected("!r:x", "@a:x", "bob", "No user")
        assert event.event_type == ActivityEventType.TRANSFER_REJECTED
        assert event.severity == ActivitySeverity.WARNING
        assert event.details["search"] == "bob"

    def test_user_text_stays_out_of_description(self):
        search = "x" * 600
        recipient = "@" + "y" * 600 + ":x"

        rejected = ActivityEventBuilder.transfer_rejected("!r:x", "@a:x", search, "No user")
        recorded = ActivityEventBuilder.transfer_recorded("!r:x", "@a:x", recipient, 500)

        assert rejected.details["search"] == search
        assert recorded.details["recipient"] == recipient
        assert search not in rejected.description
        assert recipient not in recorded.description

    def test_builder_state_publish_failed_is_error(self):
        event = ActivityEventBuilder.state_publish_failed("!r:x", "room_state", "M_FORBIDDEN")
        assert event.severity == ActivitySeverity.ERROR
        assert event.error_message == "M_FORBIDDEN"
        assert event.details == {"backend": "room_state"}

    def test_builder_ledger_restored(self):
        event = ActivityEventBuilder.ledger_restored("file", 3)
        assert event.room_id is None
        assert event.details["room_count"] == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
