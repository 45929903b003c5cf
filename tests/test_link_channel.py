import pytest

import transfer_codec
from fakes import FailingStore, RecordingStore
from link_channel import IMPORT_PROMPT, LinkChannel, Location, build_link, extract_token
from note_controller import NoteController
from note_state import Note

BASE = "https://monopad.app/"


@pytest.fixture
def ctrl(scheduler):
    return NoteController(RecordingStore(scheduler), scheduler)


def _channel(ctrl, location, answer=True):
    prompts, toasts = [], []

    def confirm(question):
        prompts.append(question)
        return answer

    channel = LinkChannel(ctrl, location, confirm=confirm, notify=toasts.append)
    return channel, prompts, toasts


def test_build_and_extract():
    link = build_link("abc_-123", BASE + "#old")
    assert link == BASE + "#share=abc_-123"
    assert extract_token(link) == "abc_-123"
    assert extract_token("#share=xyz") == "xyz"
    assert extract_token("share=xyz") == "xyz"


@pytest.mark.parametrize("value", ["", BASE, BASE + "#notes", "#share=", "#other=abc", None])
def test_extract_rejects_other_shapes(value):
    assert extract_token(value) is None


def test_link_transfer_on_initial_load(ctrl):
    token = transfer_codec.encode(Note("Hello"))
    location = Location(BASE + "#share=" + token)
    channel, prompts, toasts = _channel(ctrl, location)
    assert channel.handle_navigation() is True
    assert ctrl.note == Note("Hello")
    assert ctrl.store.saves[-1][1] == Note("Hello")
    assert prompts == [IMPORT_PROMPT]
    assert toasts == ["Wireless Import Success"]
    assert location.url == BASE
    assert location.fragment == ""


def test_declined_import_keeps_state_and_clears_fragment(ctrl):
    ctrl.set_content("keep me")
    location = Location(BASE + "#share=" + transfer_codec.encode(Note("Hello")))
    channel, _, toasts = _channel(ctrl, location, answer=False)
    assert channel.handle_navigation() is False
    assert ctrl.note == Note("keep me")
    assert toasts == []
    assert location.url == BASE


def test_malformed_link_is_surfaced_and_ignored(ctrl):
    ctrl.set_content("keep me")
    location = Location(BASE + "#share=not-a-token")
    channel, prompts, toasts = _channel(ctrl, location)
    assert channel.handle_navigation() is False
    assert ctrl.note == Note("keep me")
    assert prompts == []
    assert toasts == ["Invalid transfer link"]
    assert location.fragment == ""


def test_non_transfer_fragment_is_left_alone(ctrl):
    location = Location(BASE + "#section-2")
    channel, prompts, toasts = _channel(ctrl, location)
    assert channel.handle_navigation() is False
    assert location.url == BASE + "#section-2"
    assert prompts == [] and toasts == []


def test_fragment_change_triggers_import(ctrl):
    location = Location(BASE)
    _channel(ctrl, location)
    location.navigate(BASE + "#share=" + transfer_codec.encode(Note("via hashchange")))
    assert ctrl.note == Note("via hashchange")
    assert location.url == BASE


def test_open_link_pasted_by_user(ctrl):
    location = Location("")
    channel, _, toasts = _channel(ctrl, location)
    drawing = "data:image/png;base64,iVBORw0KGgo="
    assert channel.open_link(build_link(transfer_codec.encode(Note("pasted", drawing)))) is True
    assert ctrl.note == Note("pasted", drawing)
    assert channel.open_link("https://example.com/page") is False
    assert toasts[-1] == "Not a transfer link"


def test_open_bare_share_fragment(ctrl):
    location = Location("")
    channel, prompts, toasts = _channel(ctrl, location)
    assert channel.open_link("  share=" + transfer_codec.encode(Note("pasted")) + "\n") is True
    assert ctrl.note == Note("pasted")
    assert prompts == [IMPORT_PROMPT]
    assert toasts == ["Wireless Import Success"]
    assert location.fragment == ""


def test_failed_save_is_not_reported_as_success(scheduler):
    store = FailingStore(scheduler)
    ctrl = NoteController(store, scheduler)
    location = Location(BASE + "#share=" + transfer_codec.encode(Note("Hello")))
    channel, _, toasts = _channel(ctrl, location)
    assert channel.handle_navigation() is False
    assert store.attempts == 1
    assert "Wireless Import Success" not in toasts
    assert toasts == ["Imported note could not be saved"]
    assert location.fragment == ""
