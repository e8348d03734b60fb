"""Tests for StreamBuffer append, normalization and retention."""

import pytest

from kubelogdetails.buffer import StreamBuffer


class TestAppend:
    """Tests for StreamBuffer.append()."""

    def test_partial_line_is_joined_with_next_chunk(self):
        """First fragment of a chunk continues the trailing partial line."""
        buffer = StreamBuffer("web-0")

        buffer.append(b"line 1\nline ")
        buffer.append(b"2\nline 3")

        assert buffer.get_lines() == ["line 1", "line 2", "line 3"]

    def test_trailing_newline_leaves_no_empty_line(self):
        """A completed line is not followed by an empty partial line."""
        buffer = StreamBuffer("web-0")

        buffer.append(b"a\nb\n")

        assert buffer.get_lines() == ["a", "b"]
        assert len(buffer) == 2

    def test_blank_lines_are_kept(self):
        """Consecutive newlines produce empty lines."""
        buffer = StreamBuffer("web-0")

        buffer.append(b"a\n\nb\n")

        assert buffer.get_lines() == ["a", "", "b"]

    def test_accepts_text(self):
        """Already-decoded text is appended the same way."""
        buffer = StreamBuffer("web-0")

        buffer.append("one\ntwo")

        assert buffer.get_text() == "one\ntwo"

    def test_crlf_is_normalized(self):
        """CRLF becomes a single line break."""
        buffer = StreamBuffer("web-0")

        buffer.append(b"a\r\nb\r\n")

        assert buffer.get_lines() == ["a", "b"]

    def test_crlf_split_across_chunks(self):
        """A CRLF straddling two chunks is one line break."""
        buffer = StreamBuffer("web-0")

        buffer.append(b"a\r")
        buffer.append(b"\nb")

        assert buffer.get_lines() == ["a", "b"]

    def test_cr_then_empty_chunk_then_lf(self):
        """An empty chunk between CR and LF does not break the pair."""
        buffer = StreamBuffer("web-0")

        buffer.append(b"a\r")
        buffer.append(b"")
        buffer.append(b"\nb\n\nc")

        assert buffer.get_lines() == ["a", "b", "", "c"]

    def test_lone_cr_is_a_line_break(self):
        """A bare CR ends the line."""
        buffer = StreamBuffer("web-0")

        buffer.append(b"50%\r100%\n")

        assert buffer.get_lines() == ["50%", "100%"]

    def test_multibyte_character_split_across_chunks(self):
        """UTF-8 sequences split at a chunk boundary decode correctly."""
        buffer = StreamBuffer("web-0")
        data = "café €\n".encode()

        buffer.append(data[:4])
        buffer.append(data[4:8])
        buffer.append(data[8:])

        assert buffer.get_lines() == ["café €"]

    def test_invalid_bytes_are_replaced(self):
        """Undecodable bytes become replacement characters."""
        buffer = StreamBuffer("web-0")

        buffer.append(b"ok \xff\n")

        assert buffer.get_lines() == ["ok �"]

    def test_finish_flushes_incomplete_sequence(self):
        """finish() emits pending undecodable bytes at stream end."""
        buffer = StreamBuffer("web-0")

        buffer.append(b"tail \xe2\x82")
        assert buffer.get_text() == "tail "

        buffer.finish()

        assert buffer.get_text() == "tail �"


class TestChunkingIndependence:
    """Splitting input into chunks must not change the result."""

    DATA = (
        "first line\r\nsecond über line\r\n\r\nprogress 10%\rprogress 100%\n"
        "日本語\nno newline at end"
    ).encode()

    def test_every_two_way_split_matches_single_append(self):
        """For each split point, two appends equal one append."""
        whole = StreamBuffer("web-0")
        whole.append(self.DATA)
        expected = whole.get_lines()

        for cut in range(len(self.DATA) + 1):
            split = StreamBuffer("web-0")
            split.append(self.DATA[:cut])
            split.append(self.DATA[cut:])
            assert split.get_lines() == expected, f"split at {cut}"

    def test_byte_by_byte_matches_single_append(self):
        """Appending one byte at a time equals one append."""
        whole = StreamBuffer("web-0")
        whole.append(self.DATA)

        trickle = StreamBuffer("web-0")
        for i in range(len(self.DATA)):
            trickle.append(self.DATA[i : i + 1])

        assert trickle.get_lines() == whole.get_lines()


class TestRetention:
    """Tests for the sliding-window line limit."""

    def test_keeps_most_recent_1000_lines_in_order(self):
        """Appending 1500 lines leaves lines 501..1500."""
        buffer = StreamBuffer("web-0")

        buffer.append("".join(f"line {i}\n" for i in range(1, 1501)).encode())

        lines = buffer.get_lines()
        assert len(lines) == 1000
        assert lines == [f"line {i}" for i in range(501, 1501)]

    def test_retention_across_many_small_chunks(self):
        """The window slides as chunks arrive, never reordering."""
        buffer = StreamBuffer("web-0", max_lines=10)

        for i in range(25):
            buffer.append(f"{i}\n".encode())

        assert buffer.get_lines() == [str(i) for i in range(15, 25)]

    def test_partial_line_counts_toward_limit(self):
        """A non-empty partial line takes one of the retained slots."""
        buffer = StreamBuffer("web-0", max_lines=3)

        buffer.append(b"a\nb\nc\nd")

        assert buffer.get_lines() == ["b", "c", "d"]

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            StreamBuffer("web-0", max_lines=0)


class TestReading:
    """Tests for get_lines/get_text/iteration."""

    def test_get_last_n(self):
        buffer = StreamBuffer("web-0")
        buffer.append(b"1\n2\n3\n4")

        assert buffer.get_lines(2) == ["3", "4"]
        assert buffer.get_text(3) == "2\n3\n4"
        assert buffer.get_lines(0) == []

    def test_iter_and_len(self):
        buffer = StreamBuffer("web-0")
        buffer.append(b"x\ny\n")

        assert list(buffer) == ["x", "y"]
        assert len(buffer) == 2

    def test_clear(self):
        buffer = StreamBuffer("web-0")
        buffer.append(b"x\ny")

        buffer.clear()

        assert buffer.get_lines() == []
        assert len(buffer) == 0


class TestSetError:
    """Tests for StreamBuffer.set_error()."""

    def test_replaces_content_and_marks_failed(self):
        buffer = StreamBuffer("web-0")
        buffer.append(b"old log\n")

        buffer.set_error("Error getting logs: forbidden")

        assert buffer.get_text() == "Error getting logs: forbidden"
        assert buffer.failed

    def test_fresh_buffer_is_not_failed(self):
        assert not StreamBuffer("web-0").failed
