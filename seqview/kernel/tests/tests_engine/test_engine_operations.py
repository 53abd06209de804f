"""
seqview Engine -- Operation Tests

Covers:
  - load success and failure (failure keeps FilterState, shows nothing)
  - participant toggles, custom order, moving one participant
  - stale custom order dropped after a reload
  - the cursor survives filtering and follows itself across pages
  - marks and detail text for the selected event
  - reset and clear
"""

from seqview.kernel.engine import SeqViewEngine
from seqview.kernel.events import make_chain
from seqview.kernel.marking import RELATED, SAME_INSTANCE, SELECTED, SPECIAL
from seqview.kernel.persistence import CURSOR_KEY, filter_key


def seqs(view):
    return [e.seq for e in view.events]


def names(view):
    return [p.name for p in view.participants]


class TestLoad:
    def test_loaded_view(self, checkout_engine):
        view = checkout_engine.view
        assert seqs(view) == [1, 2, 3, 4, 5, 6, 7]
        assert names(view) == ["Client", "Gateway", "Orders", "Billing"]
        assert view.counts.total == 6
        assert checkout_engine.error is None

    def test_failure_shows_nothing_and_keeps_filters(self, checkout_engine):
        checkout_engine.toggle_participant("Billing")
        result = checkout_engine.load_text("not a diagram\n")
        assert not result.ok
        assert checkout_engine.error.line == 1
        assert len(checkout_engine.view) == 0
        assert checkout_engine.filters.excluded == ["Billing"]

    def test_reload_after_failure(self, checkout_engine, checkout_source):
        checkout_engine.toggle_participant("Billing")
        checkout_engine.load_text("???")
        checkout_engine.load_text(checkout_source)
        assert checkout_engine.error is None
        assert 4 not in seqs(checkout_engine.view)


class TestParticipants:
    def test_toggle_excludes_and_readmits(self, checkout_engine):
        view = checkout_engine.toggle_participant("Billing")
        assert seqs(view) == [1, 2, 3, 6, 7]
        assert view.counts.net == 4
        view = checkout_engine.toggle_participant("Billing")
        assert seqs(view) == [1, 2, 3, 4, 5, 6, 7]

    def test_toggle_unknown_is_ignored(self, checkout_engine):
        checkout_engine.toggle_participant("Nobody")
        assert checkout_engine.filters.excluded == []

    def test_toggle_persists(self, checkout_engine, kv):
        checkout_engine.toggle_participant("Orders")
        assert kv.get(filter_key("excluded")) == '["Orders"]'

    def test_custom_order(self, checkout_engine):
        view = checkout_engine.set_custom_order(["Billing", "Orders", "Gateway", "Client"])
        assert names(view) == ["Billing", "Orders", "Gateway", "Client"]
        assert view.order_applied

    def test_move_participant(self, checkout_engine):
        view = checkout_engine.move_participant("Client", 1)
        assert names(view) == ["Gateway", "Client", "Orders", "Billing"]
        view = checkout_engine.move_participant("Billing", -3)
        assert names(view) == ["Billing", "Gateway", "Client", "Orders"]

    def test_move_participant_at_edge(self, checkout_engine):
        view = checkout_engine.move_participant("Client", -1)
        assert names(view) == ["Client", "Gateway", "Orders", "Billing"]
        assert checkout_engine.filters.custom_order == []

    def test_stale_order_dropped_on_reload(self, checkout_engine, kv):
        checkout_engine.set_custom_order(["Billing", "Orders", "Gateway", "Client"])
        checkout_engine.load_text("A->B: x\n")
        assert names(checkout_engine.view) == ["A", "B"]
        assert checkout_engine.filters.custom_order == []
        assert kv.get(filter_key("custom_order")) == "[]"

    def test_order_survives_failed_parse(self, checkout_engine, checkout_source, kv):
        order = ["Billing", "Orders", "Gateway", "Client"]
        checkout_engine.set_custom_order(order)
        checkout_engine.load_text("not a diagram\n")
        assert checkout_engine.filters.custom_order == order
        assert kv.get(filter_key("custom_order")) == '["Billing", "Orders", "Gateway", "Client"]'
        checkout_engine.load_text(checkout_source)
        assert names(checkout_engine.view) == order
        assert checkout_engine.view.order_applied

    def test_order_set_before_first_load(self, kv, checkout_source):
        engine = SeqViewEngine(kv)
        engine.set_custom_order(["Orders", "Client", "Gateway", "Billing"])
        engine.load_text(checkout_source)
        assert names(engine.view) == ["Orders", "Client", "Gateway", "Billing"]

    def test_saved_order_survives_change_before_load(self, kv, checkout_engine, checkout_source):
        checkout_engine.set_custom_order(["Orders", "Client", "Gateway", "Billing"])
        restarted = SeqViewEngine(kv)
        restarted.set_inline_ids(True)
        restarted.load_text(checkout_source)
        assert names(restarted.view) == ["Orders", "Client", "Gateway", "Billing"]

    def test_keep_orphans(self, checkout_engine):
        checkout_engine.set_window(1, 1)
        view = checkout_engine.set_keep_orphans(False)
        assert names(view) == ["Client", "Gateway"]

    def test_inline_ids(self, checkout_engine):
        view = checkout_engine.set_inline_ids(True)
        assert view.events[0].message == "POST /checkout\nc1"
        view = checkout_engine.set_inline_ids(False)
        assert view.events[0].message == "POST /checkout"


class TestCursor:
    def test_selection_survives_filtering(self, checkout_engine):
        checkout_engine.set_cursor(4)
        checkout_engine.toggle_participant("Billing")
        assert checkout_engine.cursor.get() == 4
        assert checkout_engine.cursor.index() == -1
        checkout_engine.toggle_participant("Billing")
        assert checkout_engine.cursor.index() == 3

    def test_select_toggles(self, checkout_engine):
        assert checkout_engine.select(2) == 2
        assert checkout_engine.select(2) is None

    def test_cursor_persisted(self, checkout_engine, kv):
        checkout_engine.set_cursor(6)
        assert kv.get(CURSOR_KEY) == '{"seq":6}'

    def test_cursor_restored_from_store(self, kv, checkout_source):
        kv.set(CURSOR_KEY, '{"seq": 3}')
        engine = SeqViewEngine(kv)
        engine.load_text(checkout_source)
        assert engine.cursor.index() == 2

    def test_set_cursor_follows_page(self, engine_over):
        engine = engine_over(make_chain(10))
        engine.set_page_size(3)
        engine.set_cursor(8)
        assert engine.view.page_index == 2
        assert engine.cursor.current().seq == 8

    def test_move_cursor_crosses_pages(self, engine_over):
        engine = engine_over(make_chain(10))
        engine.set_page_size(3)
        engine.set_cursor(3)
        engine.move_cursor(1)
        assert engine.cursor.get() == 4
        assert engine.view.page_index == 1
        engine.move_cursor(-10)
        assert engine.cursor.get() == 1
        assert engine.view.page_index == 0

    def test_move_cursor_skips_filtered_events(self, checkout_engine):
        checkout_engine.toggle_participant("Billing")
        checkout_engine.set_cursor(3)
        checkout_engine.move_cursor(1)
        assert checkout_engine.cursor.get() == 6

    def test_page_size_change_keeps_cursor_in_view(self, engine_over):
        engine = engine_over(make_chain(10))
        engine.set_cursor(9)
        engine.set_page_size(2)
        assert engine.cursor.is_valid()
        assert engine.view.page_index == 4


class TestMarksAndDetail:
    def test_marks(self, checkout_engine):
        checkout_engine.set_marking(show_instance=True, show_related=True)
        checkout_engine.set_cursor(2)
        marks = checkout_engine.marks()
        assert marks[2] == {SELECTED, SAME_INSTANCE}
        assert marks[1] == {RELATED}
        assert marks[4] == {RELATED}
        assert marks[6] == {RELATED}
        assert marks[5] == {SPECIAL}
        assert marks[3] == set()
        assert marks[7] == set()

    def test_marks_off(self, checkout_engine):
        checkout_engine.set_cursor(2)
        marks = checkout_engine.marks()
        assert marks[2] == {SELECTED}
        assert marks[1] == set()

    def test_no_selection(self, checkout_engine):
        marks = checkout_engine.marks()
        assert marks[5] == {SPECIAL}
        assert all(SELECTED not in m for m in marks.values())

    def test_detail(self, checkout_engine):
        detail = checkout_engine.detail(4)
        assert detail.notation == "3. Orders -> Billing: charge"
        assert '"dstInstanceId": "b1"' in detail.meta
        assert detail.annotation == "retried once"

    def test_detail_uses_alias(self, checkout_engine):
        checkout_engine.set_cursor(1)
        assert checkout_engine.detail().notation == "1. Web Client -> Gateway: POST /checkout"

    def test_detail_of_note(self, checkout_engine):
        assert checkout_engine.detail(3).notation == "2. Note over Orders: order 42 pending"

    def test_detail_out_of_view(self, checkout_engine):
        checkout_engine.toggle_participant("Billing")
        assert checkout_engine.detail(4) is None


class TestResetAndClear:
    def test_reset(self, checkout_engine):
        checkout_engine.toggle_participant("Billing")
        checkout_engine.set_page_size(2)
        view = checkout_engine.reset()
        assert len(view) == 7
        assert checkout_engine.filters.excluded == []
        assert checkout_engine.filters.page_size == 0

    def test_clear(self, checkout_engine, kv):
        checkout_engine.toggle_participant("Billing")
        checkout_engine.set_cursor(2)
        checkout_engine.clear()
        assert not checkout_engine.store.is_loaded
        assert checkout_engine.cursor.get() is None
        assert len(checkout_engine.view) == 0
        assert kv.get(filter_key("excluded")) is None
        assert kv.get(CURSOR_KEY) is None
