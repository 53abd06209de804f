"""
seqview Cursor -- Navigation and Survival Tests

Covers:
  - movement: home, end, next, prev, move(n), clamping at both ends
  - an invalid cursor: next/home go to the first event, prev/end to the last
  - select_toggle
  - rebinding keeps the seq; a filtered-out selection reads as invalid and
    comes back when its event does
  - on_change fires only on actual change
"""

from seqview.kernel.cursor import Cursor
from seqview.kernel.events import make_chain, make_master, make_signal
from seqview.kernel.pipeline import project
from seqview.kernel.settings import FilterState


class TestMovement:
    def test_home_end(self):
        cursor = Cursor(make_chain(5))
        assert cursor.end() == 4
        assert cursor.get() == 5
        assert cursor.is_at_end()
        assert cursor.home() == 0
        assert cursor.get() == 1
        assert cursor.is_at_home()

    def test_next_prev_clamp(self):
        cursor = Cursor(make_chain(3), seq=3)
        cursor.next()
        assert cursor.get() == 3
        cursor.home()
        cursor.prev()
        assert cursor.get() == 1

    def test_move_n(self):
        cursor = Cursor(make_chain(10), seq=2)
        cursor.move(3)
        assert cursor.get() == 5
        cursor.move(-10)
        assert cursor.get() == 1
        cursor.move(100)
        assert cursor.get() == 10

    def test_invalid_cursor_entry_points(self):
        events = make_chain(4)
        assert Cursor(events).next() == 0
        assert Cursor(events).prev() == 3
        assert Cursor(events, seq=99).move(2) == 0
        assert Cursor(events, seq=99).move(-1) == 3

    def test_empty_collection(self):
        cursor = Cursor([])
        assert cursor.home() == -1
        assert cursor.next() == -1
        assert cursor.current() is None
        assert not cursor.is_at_home()
        assert not cursor.is_at_end()

    def test_set_by_index_clamps(self):
        cursor = Cursor(make_chain(3))
        assert cursor.set_by_index(7) == 2
        assert cursor.set_by_index(-4) == 0

    def test_select_toggle(self):
        cursor = Cursor(make_chain(3))
        assert cursor.select_toggle(2) == 2
        assert cursor.select_toggle(2) is None
        assert cursor.select_toggle(3) == 3


class TestSurvival:
    def master(self):
        return make_master([
            make_signal(1, "A", "B"),
            make_signal(2, "A", "B"),
            make_signal(3, "B", "C"),
            make_signal(4, "A", "B"),
        ])

    def test_filtered_out_selection_is_invalid_then_restored(self):
        master = self.master()
        cursor = Cursor(project(master, FilterState()), seq=3)
        assert cursor.index() == 2

        cursor.bind(project(master, FilterState(excluded=["C"])))
        assert cursor.index() == -1
        assert not cursor.is_valid()
        assert cursor.get() == 3

        cursor.bind(project(master, FilterState()))
        assert cursor.index() == 2
        assert cursor.current().seq == 3

    def test_index_follows_seq_across_rebinds(self):
        master = self.master()
        cursor = Cursor(project(master, FilterState()), seq=4)
        assert cursor.index() == 3
        cursor.bind(project(master, FilterState(excluded=["C"])))
        assert cursor.index() == 2

    def test_plain_list_binding(self):
        cursor = Cursor(make_chain(3), seq=2)
        cursor.bind(make_chain(3)[1:])
        assert cursor.index() == 0


class TestOnChange:
    def test_fires_only_on_change(self):
        seen = []
        cursor = Cursor(make_chain(3), on_change=seen.append)
        cursor.set(2)
        cursor.set(2)
        cursor.next()
        cursor.next()
        cursor.clear()
        assert seen == [2, 3, None]
