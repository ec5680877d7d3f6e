import pytest

from smart_bookmarks.services.ranking import rank_bookmarks, recommend


@pytest.mark.unit
class TestRankBookmarks:
    def test_empty_collection(self):
        assert rank_bookmarks([]) == []

    def test_visit_count_descending_with_recency_tie_break(self, bookmark_factory):
        # Arrange
        bookmarks = [
            bookmark_factory("1", visit_count=3),
            bookmark_factory("2", visit_count=5, visited_minutes=10),
            bookmark_factory("3", visit_count=5, visited_minutes=20),
        ]

        # Act
        ranked = rank_bookmarks(bookmarks)

        # Assert
        assert [b.id for b in ranked] == ["3", "2", "1"]

    def test_higher_count_wins_regardless_of_timestamps(self, bookmark_factory):
        bookmarks = [
            bookmark_factory("old", visit_count=4, created_minutes=0),
            bookmark_factory("new", visit_count=1, created_minutes=500, visited_minutes=900),
        ]

        ranked = rank_bookmarks(bookmarks)

        assert [b.id for b in ranked] == ["old", "new"]

    def test_never_visited_falls_back_to_created_at(self, bookmark_factory):
        bookmarks = [
            bookmark_factory("visited", visit_count=1, created_minutes=0, visited_minutes=30),
            bookmark_factory("created", visit_count=1, created_minutes=60),
        ]

        ranked = rank_bookmarks(bookmarks)

        assert [b.id for b in ranked] == ["created", "visited"]

    def test_equal_keys_keep_collection_order(self, bookmark_factory):
        bookmarks = [bookmark_factory(str(i), visit_count=2) for i in range(5)]

        ranked = rank_bookmarks(bookmarks)

        assert [b.id for b in ranked] == ["0", "1", "2", "3", "4"]

    def test_output_is_permutation_of_input(self, bookmark_factory):
        bookmarks = [
            bookmark_factory("a", visit_count=1),
            bookmark_factory("b", visit_count=7, visited_minutes=3),
            bookmark_factory("c", visit_count=0, created_minutes=9),
            bookmark_factory("d", visit_count=7),
        ]

        ranked = rank_bookmarks(bookmarks)

        assert sorted(b.id for b in ranked) == ["a", "b", "c", "d"]
        assert len(ranked) == len(bookmarks)

    def test_does_not_mutate_input(self, bookmark_factory):
        bookmarks = [bookmark_factory("a"), bookmark_factory("b", visit_count=3)]

        rank_bookmarks(bookmarks)

        assert [b.id for b in bookmarks] == ["a", "b"]


@pytest.mark.unit
class TestRecommend:
    def test_empty_list_has_no_recommendation(self):
        assert recommend([]) is None

    def test_single_entry_is_recommended(self, bookmark_factory):
        only = bookmark_factory("only")

        assert recommend([only]) == only

    def test_first_wins_on_equal_counts(self, bookmark_factory):
        first = bookmark_factory("first", visit_count=2)
        second = bookmark_factory("second", visit_count=2)

        assert recommend([first, second]) == first

    def test_second_wins_with_strictly_greater_count(self, bookmark_factory):
        first = bookmark_factory("first", visit_count=1)
        second = bookmark_factory("second", visit_count=4)

        assert recommend([first, second]) == second

    def test_never_picks_below_top_two(self, bookmark_factory):
        ranked = [
            bookmark_factory("first", visit_count=1),
            bookmark_factory("second", visit_count=1),
            bookmark_factory("third", visit_count=9),
        ]

        assert recommend(ranked).id in {"first", "second"}
