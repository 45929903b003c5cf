from fakes import FailingStore, RecordingStore
from note_controller import NoteController
from note_state import Note, SaveStatus


def _controller(scheduler, store=None):
    store = store if store is not None else RecordingStore(scheduler)
    return NoteController(store, scheduler, delay_ms=1500, indicator_ms=600), store


def test_mutations_are_coalesced_into_one_write(scheduler):
    ctrl, store = _controller(scheduler)
    ctrl.set_content("M")
    scheduler.advance(200)
    ctrl.set_content("Me")
    scheduler.advance(200)
    ctrl.set_content("Meeting")
    scheduler.advance(1499)
    assert store.saves == []
    scheduler.advance(1)
    assert store.saves == [(1900, Note("Meeting"))]
    scheduler.advance(10_000)
    assert len(store.saves) == 1


def test_status_transitions(scheduler):
    ctrl, store = _controller(scheduler)
    seen = []
    ctrl.autosave.add_status_listener(seen.append)
    assert ctrl.status == SaveStatus.SAVED
    ctrl.set_content("a")
    assert ctrl.status == SaveStatus.UNSAVED
    scheduler.advance(1500)
    assert ctrl.status == SaveStatus.SAVING
    assert len(store.saves) == 1
    scheduler.advance(600)
    assert ctrl.status == SaveStatus.SAVED
    assert seen == [SaveStatus.UNSAVED, SaveStatus.SAVING, SaveStatus.SAVED]


def test_mutation_during_saving_restarts_window(scheduler):
    ctrl, store = _controller(scheduler)
    ctrl.set_content("a")
    scheduler.advance(1500)
    assert ctrl.status == SaveStatus.SAVING
    scheduler.advance(100)
    ctrl.set_content("ab")
    assert ctrl.status == SaveStatus.UNSAVED
    # the old indicator timer must not flip the status back to SAVED
    scheduler.advance(600)
    assert ctrl.status == SaveStatus.UNSAVED
    scheduler.advance(900)
    assert ctrl.status == SaveStatus.SAVING
    assert [n.content for _, n in store.saves] == ["a", "ab"]
    assert store.saves[1][0] == 1600 + 1500


def test_identical_content_is_not_a_mutation(scheduler):
    ctrl, store = _controller(scheduler)
    ctrl.set_content("")
    assert ctrl.status == SaveStatus.SAVED
    assert scheduler.pending == []


def test_drawing_stroke_marks_dirty_and_commit_saves_now(scheduler):
    ctrl, store = _controller(scheduler)
    ctrl.mark_drawing_dirty()
    assert ctrl.status == SaveStatus.UNSAVED
    ctrl.commit_drawing("data:image/png;base64,AAAA")
    assert ctrl.status == SaveStatus.SAVING
    assert store.saves == [(0, Note("", "data:image/png;base64,AAAA"))]
    # the debounce that the stroke started is gone
    scheduler.advance(5000)
    assert len(store.saves) == 1
    assert ctrl.status == SaveStatus.SAVED


def test_clear_drawing_removes_drawing(scheduler):
    ctrl, store = _controller(scheduler)
    ctrl.commit_drawing("data:image/png;base64,AAAA")
    ctrl.clear_drawing()
    assert ctrl.note.drawing is None
    assert store.saves[-1][1] == Note("")


def test_store_failure_sets_error_without_retry(scheduler):
    store = FailingStore(scheduler)
    ctrl, _ = _controller(scheduler, store)
    errors = []
    ctrl.autosave.add_error_listener(errors.append)
    ctrl.set_content("a")
    scheduler.advance(1500)
    assert ctrl.status == SaveStatus.ERROR
    assert len(errors) == 1
    scheduler.advance(60_000)
    assert store.attempts == 1
    assert ctrl.status == SaveStatus.ERROR


def test_next_edit_after_error_retries(scheduler):
    store = FailingStore(scheduler)
    ctrl, _ = _controller(scheduler, store)
    ctrl.set_content("a")
    scheduler.advance(1500)
    assert ctrl.status == SaveStatus.ERROR
    store.fail = False
    ctrl.set_content("ab")
    assert ctrl.status == SaveStatus.UNSAVED
    scheduler.advance(2100)
    assert ctrl.status == SaveStatus.SAVED
    assert store.saves[-1][1] == Note("ab")


def test_flush_writes_pending_save(scheduler):
    ctrl, store = _controller(scheduler)
    ctrl.set_content("closing soon")
    ctrl.shutdown()
    assert store.saves == [(0, Note("closing soon"))]
    assert scheduler.pending == []


def test_flush_without_pending_save_does_nothing(scheduler):
    ctrl, store = _controller(scheduler)
    assert ctrl.autosave.flush() is True
    assert store.saves == []


def test_replace_note_persists_immediately(scheduler):
    ctrl, store = _controller(scheduler)
    ctrl.set_content("local edit")
    assert ctrl.replace_note(Note("incoming")) is True
    assert store.saves == [(0, Note("incoming"))]
    scheduler.advance(5000)
    assert len(store.saves) == 1
