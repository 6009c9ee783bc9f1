"""
Tests for top-level reduction of batch selections.
"""

from filebox.files import reduce_to_top_level


class TestReduceToTopLevel:
    def test_descendant_is_dropped(self):
        assert reduce_to_top_level(["/docs", "/docs/a.txt"]) == ["/docs"]

    def test_order_does_not_matter(self):
        assert reduce_to_top_level(["/docs/a.txt", "/docs"]) == ["/docs"]

    def test_deep_descendants_are_dropped(self):
        paths = ["/a/b/c/d.txt", "/a/b", "/a/b/c"]
        assert reduce_to_top_level(paths) == ["/a/b"]

    def test_common_string_prefix_is_not_ancestry(self):
        assert reduce_to_top_level(["/docs", "/docs2/a.txt"]) == ["/docs", "/docs2/a.txt"]

    def test_duplicates_collapse(self):
        assert reduce_to_top_level(["/a.txt", "a.txt", "/a.txt/"]) == ["/a.txt"]

    def test_unrelated_paths_keep_input_order(self):
        assert reduce_to_top_level(["/b", "/a", "/c/d"]) == ["/b", "/a", "/c/d"]

    def test_root_covers_everything(self):
        assert reduce_to_top_level(["/docs", "/", "/music/x.mp3"]) == ["/"]

    def test_empty_selection(self):
        assert reduce_to_top_level([]) == []
