#
# tests/unit/test_buffer.py
#
"""
Tests for OutputBuffer and CompletionSignal.
"""

import threading

from clitester.process import CompletionSignal, OutputBuffer
from clitester.state import ProcessStatus


class TestOutputBuffer:
    def test_append_and_snapshot(self) -> None:
        buffer = OutputBuffer("stdout")

        assert buffer.append(b"hello ") == 6
        assert buffer.append(b"world") == 11
        assert buffer.snapshot() == b"hello world"
        assert buffer.snapshot(6) == b"world"
        assert len(buffer) == 11

    def test_text_decodes_invalid_utf8_with_replacement(self) -> None:
        buffer = OutputBuffer("stdout")
        buffer.append(b"ok \xff")

        assert buffer.text() == "ok �"

    def test_multibyte_character_split_across_chunks(self) -> None:
        buffer = OutputBuffer("stdout")
        encoded = "é".encode()
        buffer.append(encoded[:1])
        buffer.append(encoded[1:])

        assert buffer.text() == "é"

    def test_cursor_only_moves_forward(self) -> None:
        buffer = OutputBuffer("stdout")
        buffer.append(b"abcdef")

        buffer.advance(4)
        buffer.advance(2)

        assert buffer.cursor == 4
        assert buffer.read_from_cursor() == (4, b"ef")

    def test_cursor_is_clamped_to_length(self) -> None:
        buffer = OutputBuffer("stdout")
        buffer.append(b"abc")

        buffer.advance(100)

        assert buffer.cursor == 3
        assert buffer.read_from_cursor() == (3, b"")

    def test_snapshot_is_not_affected_by_cursor(self) -> None:
        buffer = OutputBuffer("stderr")
        buffer.append(b"abc")
        buffer.advance(2)

        assert buffer.snapshot() == b"abc"

    def test_concurrent_appends_keep_chunks_whole(self) -> None:
        buffer = OutputBuffer("stdout")
        chunk_count = 500

        def writer(marker: bytes) -> None:
            for _ in range(chunk_count):
                buffer.append(marker * 8)

        threads = [threading.Thread(target=writer, args=(m,)) for m in (b"a", b"b", b"c")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        data = buffer.snapshot()
        assert len(data) == 3 * chunk_count * 8
        chunks = [data[i : i + 8] for i in range(0, len(data), 8)]
        assert all(len(set(chunk)) == 1 for chunk in chunks)


class TestCompletionSignal:
    def test_first_writer_wins(self) -> None:
        signal = CompletionSignal()

        assert signal.try_set(ProcessStatus(exit_code=0))
        assert not signal.try_set(ProcessStatus.killed_status())

        assert signal.get() == ProcessStatus(exit_code=0)
        assert signal.is_set

    def test_reads_do_not_consume(self) -> None:
        signal = CompletionSignal()
        signal.try_set(ProcessStatus(exit_code=2))

        assert signal.wait(0) == ProcessStatus(exit_code=2)
        assert signal.wait(0) == ProcessStatus(exit_code=2)
        assert signal.get() == ProcessStatus(exit_code=2)

    def test_wait_times_out_with_none(self) -> None:
        signal = CompletionSignal()

        assert signal.wait(0.05) is None
        assert signal.get() is None
        assert not signal.is_set

    def test_wait_wakes_up_when_set_from_another_thread(self) -> None:
        signal = CompletionSignal()
        timer = threading.Timer(0.05, signal.try_set, args=(ProcessStatus(exit_code=5),))
        timer.start()
        try:
            assert signal.wait(5) == ProcessStatus(exit_code=5)
        finally:
            timer.join()

    def test_racing_writers_record_exactly_one_status(self) -> None:
        signal = CompletionSignal()
        barrier = threading.Barrier(8)
        wins: list[int] = []

        def writer(code: int) -> None:
            barrier.wait()
            if signal.try_set(ProcessStatus(exit_code=code)):
                wins.append(code)

        threads = [threading.Thread(target=writer, args=(code,)) for code in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(wins) == 1
        assert signal.get() == ProcessStatus(exit_code=wins[0])


class TestConsume:
    def test_returns_region_and_moves_cursor(self) -> None:
        buffer = OutputBuffer("stdout")
        buffer.append(b"tick 1\ntick 2\n")

        assert buffer.consume(b"tick") == b"tick"
        assert buffer.consume(b"tick") == b" 1\ntick"
        assert buffer.cursor == 11

    def test_no_match_leaves_cursor(self) -> None:
        buffer = OutputBuffer("stdout")
        buffer.append(b"abc")
        buffer.advance(1)

        assert buffer.consume(b"zzz") is None
        assert buffer.cursor == 1

    def test_match_before_cursor_is_ignored(self) -> None:
        buffer = OutputBuffer("stdout")
        buffer.append(b"aaa")

        assert buffer.consume(b"aa") == b"aa"
        assert buffer.consume(b"aa") is None

    def test_racing_consumers_share_one_match(self) -> None:
        buffer = OutputBuffer("stdout")
        buffer.append(b"booting... ready\n")
        barrier = threading.Barrier(8)
        results: list[bytes | None] = []
        results_lock = threading.Lock()

        def consumer() -> None:
            barrier.wait()
            found = buffer.consume(b"ready")
            with results_lock:
                results.append(found)

        threads = [threading.Thread(target=consumer) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert [r for r in results if r is not None] == [b"booting... ready"]
        assert results.count(None) == 7
