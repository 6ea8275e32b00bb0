# tests/test_entity_store.py
from __future__ import annotations

import pytest

from taskboard.models.entities import Milestone, Project, Task
from taskboard.models.schema import comments_key, notes_key
from taskboard.utils.clock import HOUR_MS
from taskboard.viewmodels.entity_store import EntityStore


# --- seed & reads --------------------------------------------------------

def test_default_seed_data(persistent):
    s = EntityStore(persistent)
    assert [p.title for p in s.projects] == ["Website Redesign"]
    assert [m.id for m in s.milestones] == ["m1"]
    t1 = s.get_task_by_id("t1")
    assert t1.title == "Create wireframes"
    assert (t1.notes, t1.comments, t1.comments_sequence) == ("", (), 0)


def test_get_task_by_id_absent(store):
    assert store.get_task_by_id("nope") is None


def test_duplicate_ids_rejected(store, persistent):
    with pytest.raises(ValueError):
        store.add_task(Task(id="t1", project_id="p1", title="dup"))
    with pytest.raises(ValueError):
        EntityStore(persistent, projects=[Project(id="x", title="a"), Project(id="x", title="b")])


# --- updates -------------------------------------------------------------

def test_update_task_merges_fields(store):
    assert store.update_task("t2", title="Build it", status="review") is True
    t2 = store.get_task_by_id("t2")
    assert (t2.title, t2.status, t2.project_id) == ("Build it", "review", "p1")


def test_update_missing_task_returns_false(store):
    assert store.update_task("nope", title="x") is False


def test_update_rejects_unknown_and_protected_fields(store):
    with pytest.raises(ValueError):
        store.update_task("t2", colour="red")
    with pytest.raises(ValueError):
        store.update_task("t2", id="t9")
    with pytest.raises(ValueError):
        store.update_task("t2", comments=())
    with pytest.raises(ValueError):
        store.update_task("t2", comments_sequence=3)


def test_update_entity_field_dispatches_by_id(store, persistent):
    assert store.update_entity_field("p1", "status", "on-hold") is True
    assert store.get_project_by_id("p1").status == "on-hold"
    assert store.update_entity_field("m1", "status", "delayed") is True
    assert store.get_milestone_by_id("m1").status == "delayed"
    assert store.update_entity_field("t2", "notes", "from editor") is True
    assert persistent.get(notes_key("t2")) == "from editor"
    assert store.update_entity_field("ghost", "title", "x") is False


def test_notes_write_through(store, persistent, clock):
    store.update_task("t2", notes="remember the API keys")
    assert persistent.get("task-notes-t2") == "remember the API keys"
    assert persistent.get("task-notes-t2-timestamp") == str(clock.now)


def test_empty_notes_remove_both_keys(store, persistent):
    store.update_task("t2", notes="something")
    assert persistent.get("task-notes-t2") is not None
    store.update_task("t2", notes="")
    assert persistent.get("task-notes-t2") is None
    assert persistent.get("task-notes-t2-timestamp") is None
    assert store.get_task_by_id("t2").notes == ""


def test_whitespace_notes_count_as_empty(store, persistent):
    store.update_task("t2", notes="something")
    store.update_task("t2", notes="  \n ")
    assert persistent.get("task-notes-t2") is None
    # memory keeps what the user typed
    assert store.get_task_by_id("t2").notes == "  \n "


def test_notes_write_failure_keeps_memory(store, persistent, flaky):
    flaky.fail_set = True
    assert store.update_task("t2", notes="offline draft") is True
    assert store.get_task_by_id("t2").notes == "offline draft"
    flaky.fail_set = False
    assert persistent.get("task-notes-t2") is None


def test_non_notes_update_does_not_touch_storage(store, persistent):
    store.update_task("t2", title="renamed")
    assert persistent.list_keys() == []


# --- deletes -------------------------------------------------------------

def test_delete_project_cascades(store):
    assert store.delete_project("p1") is True
    assert store.get_project_by_id("p1") is None
    assert store.milestones == []
    assert store.tasks_for_project("p1") == []
    assert store.task_ids() == set()
    assert store.delete_project("p1") is False


def test_delete_milestone_cascades_to_its_tasks(store):
    assert store.delete_milestone("m1") is True
    assert store.task_ids() == {"t3"}


def test_delete_keeps_persisted_keys(store, persistent):
    store.update_task("t2", notes="n")
    store.add_comment("t2", "c")
    store.delete_task("t2")
    assert persistent.get(notes_key("t2")) == "n"
    assert persistent.get(comments_key("t2")) is not None


# --- comments ------------------------------------------------------------

def test_monotonic_sequencing(store):
    n = 6
    for i in range(n):
        assert store.add_comment("t2", f"comment {i}") is not None
    t2 = store.get_task_by_id("t2")
    assert len(t2.comments) == n
    assert [c.sequence for c in t2.comments] == list(range(1, n + 1))
    assert t2.comments_sequence == n
    assert len({c.id for c in t2.comments}) == n


def test_blank_comment_is_ignored(store):
    assert store.add_comment("t2", "   ") is None
    assert store.get_task_by_id("t2").comments == ()
    assert store.add_comment("ghost", "hello") is None


def test_comment_write_failure_is_session_only(store, flaky, make_store):
    store.add_comment("t2", "persisted")
    flaky.fail_set = True
    c = store.add_comment("t2", "memory only")
    assert c is not None
    assert [x.content for x in store.get_task_by_id("t2").comments] == ["persisted", "memory only"]
    flaky.fail_set = False

    reloaded = make_store()
    reloaded.hydrate()
    t2 = reloaded.get_task_by_id("t2")
    assert [x.content for x in t2.comments] == ["persisted"]
    assert t2.comments_sequence == 1


def test_comment_roundtrip_through_reload(store, make_store, clock):
    store.add_comment("t2", "first")
    clock.advance(1234)
    store.add_comment("t2", "second **md**")
    original = store.get_task_by_id("t2").comments

    reloaded = make_store()
    assert reloaded.get_task_by_id("t2").comments == ()
    reloaded.hydrate()
    t2 = reloaded.get_task_by_id("t2")
    assert t2.comments == original
    assert t2.comments_sequence == 2
    # numbering continues after reload
    assert reloaded.add_comment("t2", "third").sequence == 3


def test_malformed_persisted_comments_fall_back(persistent, make_store):
    persistent.set(comments_key("t2"), '[{"id": 1}]')
    s = make_store()
    s.hydrate()
    assert s.get_task_by_id("t2").comments == ()
    assert s.add_comment("t2", "fresh start").sequence == 1


# --- hydration -----------------------------------------------------------

def test_hydrate_fresh_notes_override(persistent, make_store, clock):
    persistent.set_with_timestamp(notes_key("t3"), "B", clock.now - 1 * HOUR_MS)
    s = make_store(tasks=[Task(id="t3", project_id="p1", title="Ship", notes="A")])
    assert s.hydrate() == 1
    assert s.get_task_by_id("t3").notes == "B"


def test_hydrate_stale_notes_ignored(persistent, make_store, clock):
    persistent.set_with_timestamp(notes_key("t3"), "B", clock.now - 25 * HOUR_MS)
    s = make_store(tasks=[Task(id="t3", project_id="p1", title="Ship", notes="A")])
    assert s.hydrate() == 0
    assert s.get_task_by_id("t3").notes == "A"


def test_hydrate_untimestamped_notes_win(persistent, make_store):
    persistent.set(notes_key("t3"), "B")
    s = make_store(tasks=[Task(id="t3", project_id="p1", title="Ship", notes="A")])
    s.hydrate()
    assert s.get_task_by_id("t3").notes == "B"


def test_hydrate_emits_signal(make_store):
    s = make_store()
    seen = []
    s.hydrated.connect(lambda n: seen.append(n))
    s.hydrate()
    assert seen == [0]


def test_notes_survive_reload(store, make_store, clock):
    store.update_task("t2", notes="draft v2")
    clock.advance_hours(2)
    reloaded = make_store()
    reloaded.hydrate()
    assert reloaded.get_task_by_id("t2").notes == "draft v2"


def test_latest_notes_survive_reload_when_timestamp_write_fails(store, make_store, flaky, clock):
    store.update_task("t2", notes="old")
    clock.advance_hours(30)
    flaky.fail_set_keys = {notes_key("t2") + "-timestamp"}
    store.update_task("t2", notes="new")
    flaky.fail_set_keys = set()

    reloaded = make_store()
    reloaded.hydrate()
    assert reloaded.get_task_by_id("t2").notes == "new"


def test_recover_notes_reads_storage_directly(store, persistent, clock):
    assert store.recover_notes("t2") is None
    persistent.set_with_timestamp(notes_key("t2"), "lost draft", clock.now - 48 * HOUR_MS)
    assert store.recover_notes("t2") == "lost draft"
    assert store.get_task_by_id("t2").notes == ""


# --- derived progress ----------------------------------------------------

def test_dynamic_progress(store):
    # 1 of 3 completed
    assert store.calculate_dynamic_progress("p1") == 33
    assert store.calculate_dynamic_progress("p1") == 33
    store.update_task("t2", status="completed")
    assert store.calculate_dynamic_progress("p1") == 67


def test_dynamic_progress_without_tasks(store):
    assert store.calculate_dynamic_progress("p2") == 0
    assert store.calculate_dynamic_progress("missing") == 0


def test_dynamic_progress_rounds_half_up(persistent):
    tasks = [Task(id=f"t{i}", project_id="p", title="x", status="completed" if i == 0 else "todo")
             for i in range(8)]
    s = EntityStore(persistent, projects=[Project(id="p", title="P")], milestones=[], tasks=tasks)
    # 1/8 = 12.5%
    assert s.calculate_dynamic_progress("p") == 13


# --- signals -------------------------------------------------------------

def test_signals_fire_on_mutations(store):
    events = []
    store.tasksChanged.connect(lambda: events.append("tasks"))
    store.taskUpdated.connect(lambda tid: events.append(("updated", tid)))
    store.commentAdded.connect(lambda tid, seq: events.append(("comment", tid, seq)))
    store.add_task(Task(id="t9", project_id="p1", title="New"))
    store.add_comment("t9", "hi")
    assert events == ["tasks", ("comment", "t9", 1), ("updated", "t9")]


def test_add_and_update_milestone_and_project(store):
    store.add_project(Project(id="p3", title="Third"))
    store.add_milestone(Milestone(id="m3", project_id="p3", title="Kickoff"))
    assert store.update_project("p3", budget=1000.0) is True
    assert store.update_milestone("m3", progress=50) is True
    assert store.get_project_by_id("p3").budget == 1000.0
    assert store.get_milestone_by_id("m3").progress == 50
    assert store.update_milestone("nope", progress=1) is False
