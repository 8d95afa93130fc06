"""
Tests for the event picker in ui.event_details.
"""
from datetime import date
from unittest.mock import MagicMock

import streamlit as st

from models.event import Event, EventType
from ui.event_details import event_label, render_event_details


def _event(event_id, description=None):
    return Event(
        id=event_id, type=EventType.CUSTOM, title="Fire drill", date=date(2024, 6, 20),
        related_id=event_id, related_type="custom_event", icon="📌", description=description,
    )


class TestEventPicker:
    def test_same_label_events_stay_selectable(self, monkeypatch):
        events = [_event("custom_A", "east wing"), _event("custom_B", "west wing")]
        seen = {}
        written = []
        shown = []

        def fake_selectbox(label, options, format_func):
            seen["options"] = list(options)
            seen["labels"] = [format_func(o) for o in options]
            return options[1]

        monkeypatch.setattr(st, "selectbox", fake_selectbox)
        monkeypatch.setattr(st, "write", lambda text: written.append(text))
        monkeypatch.setattr(st, "info", lambda text: shown.append(text))

        service = MagicMock()
        service.registry.label.return_value = "Custom"

        assert render_event_details(events, service) is False
        assert seen["options"] == ["custom_A", "custom_B"]
        assert seen["labels"][0] == seen["labels"][1] == event_label(events[0])
        service.registry.label.assert_called_with(EventType.CUSTOM)
        assert "**Type:** Custom" in written
        assert shown == ["west wing"]

    def test_label_shows_date_icon_and_title(self):
        assert event_label(_event("custom_A")).endswith("📌 Fire drill")
