"""Tests for the past/present/future snapshot stack."""

import pytest

from mindmap_core import Document, History


def _doc(title):
    return Document(title=title)


class TestHistory:
    def test_commit_pushes_previous_present(self):
        history = History(_doc("a"))
        history.commit(_doc("b"))

        assert history.present.title == "b"
        assert [d.title for d in history.past] == ["a"]
        assert history.future == ()

    def test_replace_does_not_touch_stacks(self):
        history = History(_doc("a"))
        history.commit(_doc("b"))
        history.undo()

        history.replace(_doc("a-zoomed"))

        assert history.present.title == "a-zoomed"
        assert len(history.past) == 0
        assert len(history.future) == 1

    def test_undo_and_redo_order(self):
        history = History(_doc("a"))
        history.commit(_doc("b"))
        history.commit(_doc("c"))

        assert history.undo()
        assert history.present.title == "b"
        assert [d.title for d in history.future] == ["c"]

        assert history.undo()
        assert history.present.title == "a"
        assert [d.title for d in history.future] == ["b", "c"]

        assert history.redo()
        assert history.present.title == "b"
        assert [d.title for d in history.past] == ["a"]
        assert [d.title for d in history.future] == ["c"]

    def test_undo_redo_on_empty_stacks_are_noops(self):
        history = History(_doc("a"))

        assert history.undo() is False
        assert history.redo() is False
        assert history.present.title == "a"

    def test_commit_after_undo_clears_future(self):
        history = History(_doc("a"))
        history.commit(_doc("b"))
        history.undo()

        history.commit(_doc("c"))

        assert history.future == ()
        assert history.can_redo is False
        assert history.redo() is False
        assert history.present.title == "c"

    def test_max_depth_drops_oldest(self):
        history = History(_doc("0"), max_depth=3)
        for i in range(1, 6):
            history.commit(_doc(str(i)))

        assert [d.title for d in history.past] == ["2", "3", "4"]

        for _ in range(3):
            assert history.undo()
        assert history.present.title == "2"
        assert history.undo() is False

    def test_unbounded_history(self):
        history = History(_doc("0"), max_depth=None)
        for i in range(1, 300):
            history.commit(_doc(str(i)))
        assert len(history.past) == 299

    def test_reset(self):
        history = History(_doc("a"))
        history.commit(_doc("b"))
        history.undo()

        history.reset(_doc("loaded"))

        assert history.present.title == "loaded"
        assert history.past == ()
        assert history.future == ()

    def test_past_view_is_a_copy(self):
        history = History(_doc("a"))
        history.commit(_doc("b"))

        past = history.past
        assert isinstance(past, tuple)
        history.commit(_doc("c"))
        assert len(past) == 1

    def test_kept_origin_is_what_commit_records(self):
        history = History(_doc("start"))
        history.replace(_doc("frame 1"), keep_origin=True)
        history.replace(_doc("frame 2"), keep_origin=True)
        assert history.has_pending_origin

        history.commit(_doc("dropped"))

        assert [d.title for d in history.past] == ["start"]
        assert history.present.title == "dropped"
        assert not history.has_pending_origin

    def test_plain_replace_keeps_no_origin(self):
        history = History(_doc("start"))
        history.replace(_doc("zoomed"))
        history.commit(_doc("next"))

        assert [d.title for d in history.past] == ["zoomed"]

    @pytest.mark.parametrize("action", ["undo", "redo", "reset"])
    def test_origin_cleared_by_undo_redo_and_reset(self, action):
        history = History(_doc("a"))
        history.commit(_doc("b"))
        if action == "redo":
            history.undo()
        history.replace(_doc("frame"), keep_origin=True)

        getattr(history, action)()

        assert not history.has_pending_origin
