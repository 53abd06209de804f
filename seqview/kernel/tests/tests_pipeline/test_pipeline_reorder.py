"""
seqview Pipeline -- Reorder, Decoration and Determinism Tests

Covers:
  - custom order applied only when it names exactly the declared participants
  - stale custom order reported, declaration order kept
  - keep_orphans
  - inline correlation ids, and restoring the plain message
  - projecting equal snapshots with equal filters gives equal views
"""

from seqview.kernel.events import make_master, make_note, make_signal
from seqview.kernel.pipeline import decorate, project, reorder_actors
from seqview.kernel.settings import FilterState
from seqview.kernel.store import StableStore
from seqview.kernel.types import Participant


def names(participants):
    return [p.name for p in participants]


class TestReorder:
    def test_custom_order_applied(self):
        master = make_master([make_signal(1, "A", "B"), make_signal(2, "B", "C")])
        view = project(master, FilterState(custom_order=["C", "A", "B"]))
        assert names(view.participants) == ["C", "A", "B"]
        assert [p.display_index for p in view.participants] == [0, 1, 2]
        assert view.order_applied
        assert not view.order_stale

    def test_stale_order_keeps_declaration_order(self):
        master = make_master([make_signal(1, "A", "B")])
        view = project(master, FilterState(custom_order=["B", "A", "Gone"]))
        assert names(view.participants) == ["A", "B"]
        assert view.order_stale
        assert not view.order_applied

    def test_partial_order_is_stale(self):
        participants = [Participant("A"), Participant("B"), Participant("C")]
        result, applied, stale = reorder_actors(participants, ["B", "A"])
        assert names(result) == ["A", "B", "C"]
        assert (applied, stale) == (False, True)

    def test_nothing_to_compare_against(self):
        result, applied, stale = reorder_actors([], ["B", "A"])
        assert result == []
        assert (applied, stale) == (False, False)

    def test_no_custom_order(self):
        participants = [Participant("A"), Participant("B")]
        _, applied, stale = reorder_actors(participants, [])
        assert (applied, stale) == (False, False)

    def test_orphans_hidden(self):
        master = make_master([make_signal(1, "A", "B")], ["A", "Idle", "B"])
        view = project(master, FilterState(keep_orphans=False))
        assert names(view.participants) == ["A", "B"]

    def test_orphans_kept_by_default(self):
        master = make_master([make_signal(1, "A", "B")], ["A", "Idle", "B"])
        view = project(master, FilterState())
        assert names(view.participants) == ["A", "Idle", "B"]
        assert view.participant("Idle").is_orphan

    def test_excluded_participant_hidden_as_orphan(self):
        master = make_master([make_signal(1, "A", "B"), make_signal(2, "B", "C")])
        view = project(master, FilterState(excluded=["C"], keep_orphans=False))
        assert names(view.participants) == ["A", "B"]


class TestDecorate:
    def events(self):
        return [
            make_signal(1, "A", "B", "hello", meta={"srcInstanceId": "a1"}),
            make_signal(2, "B", "A", "no ids"),
            make_note(3, "A", "a note"),
        ]

    def test_inline_ids(self):
        events = self.events()
        decorate(events, inline_ids=True)
        assert [e.message for e in events] == ["hello\na1", "no ids", "a note"]

    def test_decoration_does_not_stack(self):
        events = self.events()
        decorate(events, inline_ids=True)
        decorate(events, inline_ids=True)
        assert events[0].message == "hello\na1"

    def test_turning_ids_off_restores_message(self):
        events = self.events()
        decorate(events, inline_ids=True)
        decorate(events, inline_ids=False)
        assert events[0].message == "hello"

    def test_master_never_decorated(self, checkout_source):
        store = StableStore()
        store.load(checkout_source)
        project(store.snapshot(), FilterState(inline_ids=True))
        assert store.snapshot().events[0].message == "POST /checkout"


class TestDeterminism:
    def test_equal_inputs_equal_views(self, checkout_source):
        store = StableStore()
        store.load(checkout_source)
        filters = FilterState(excluded=["Billing"], page_size=2, page_index=1, inline_ids=True)
        first = project(store.snapshot(), filters)
        second = project(store.snapshot(), filters)
        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_seq_identity_survives_projection(self, checkout_source):
        store = StableStore()
        store.load(checkout_source)
        view = project(store.snapshot(), FilterState(excluded=["Billing"]))
        master = {e.seq: e.orig_message for e in store.snapshot().events}
        for event in view.events:
            assert master[event.seq] == event.orig_message
