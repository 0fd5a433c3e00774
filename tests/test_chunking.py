"""Tests for attachment batching and message body joining."""

import pytest

from sns_relay.core.errors import MessageTooLongError
from sns_relay.pipeline.chunking import chunk_list, join_message_bodies


class TestChunkList:
    def test_splits_into_chunks(self):
        assert chunk_list([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]

    def test_empty_input(self):
        assert chunk_list([], 2) == []

    def test_chunk_larger_than_input(self):
        assert chunk_list([1, 2, 3], 5) == [[1, 2, 3]]

    def test_chunk_size_one(self):
        assert chunk_list([1, 2, 3], 1) == [[1], [2], [3]]

    @pytest.mark.parametrize("length", [1, 9, 10, 11, 20, 23])
    def test_batch_count_and_concatenation(self, length):
        items = list(range(length))
        batches = chunk_list(items, 10)

        assert len(batches) == -(-length // 10)
        assert all(len(b) == 10 for b in batches[:-1])
        assert [x for b in batches for x in b] == items

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValueError):
            chunk_list([1], 0)


class TestJoinMessageBodies:
    def test_header_and_items_fit_one_body(self):
        assert join_message_bodies(["a", "b"], header="H", limit=1000) == ["H\na\nb\n"]

    def test_no_header(self):
        assert join_message_bodies(["a", "b"]) == ["a\nb\n"]

    def test_empty(self):
        assert join_message_bodies([]) == []
        assert join_message_bodies([], header="H") == ["H\n"]

    def test_splits_without_exceeding_limit(self):
        items = [f"https://cdn.example.com/{i:03d}/" + "x" * 80 for i in range(60)]
        bodies = join_message_bodies(items, header="`title`\n<https://x.com/a/status/1>", limit=2000)

        assert len(bodies) > 1
        assert all(len(body) <= 2000 for body in bodies)
        lines = [line for body in bodies for line in body.splitlines()]
        assert lines == ["`title`", "<https://x.com/a/status/1>"] + items

    def test_header_only_in_first_body(self):
        bodies = join_message_bodies(["aaaa", "bbbb", "cccc"], header="HH", limit=10)

        assert bodies == ["HH\naaaa\n", "bbbb\ncccc\n"]

    def test_exact_fit(self):
        # "abcd\n" is five characters
        assert join_message_bodies(["abcd", "efgh"], limit=10) == ["abcd\nefgh\n"]

    def test_oversized_item_raises(self):
        with pytest.raises(MessageTooLongError):
            join_message_bodies(["a", "x" * 20], limit=10)
