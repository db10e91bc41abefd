"""Tests for binswap.confirm: the interactive prompt."""

from __future__ import annotations

import asyncio
import io
import threading

import pytest

from binswap.confirm import ask, confirm, parse_answer


class _BrokenStdin(io.StringIO):
    def readline(self, *args: object) -> str:  # type: ignore[override]
        raise OSError("stdin closed")


class _BlockingStdin(io.StringIO):
    """Blocks in readline until released, then answers yes."""

    def __init__(self) -> None:
        super().__init__()
        self.reading = threading.Event()
        self.release = threading.Event()

    def readline(self, *args: object) -> str:  # type: ignore[override]
        self.reading.set()
        self.release.wait(5)
        return "y\n"


class TestParseAnswer:
    @pytest.mark.parametrize("line", ["yes\n", "y\n", "YES\n", "Y", "  Yes  \n"])
    def test_yes(self, line: str) -> None:
        assert parse_answer(line) is True

    @pytest.mark.parametrize("line", ["no\n", "n\n", "NO\n", "N", "\n", "   \n"])
    def test_no(self, line: str) -> None:
        assert parse_answer(line) is False

    @pytest.mark.parametrize("line", ["maybe\n", "yess\n", "1\n"])
    def test_unrecognized(self, line: str) -> None:
        assert parse_answer(line) is None


class TestAsk:
    def test_reprompts_until_answer(self) -> None:
        stdin = io.StringIO("maybe\nwhat\ny\nno\n")
        stderr = io.StringIO()

        assert ask(stdin, stderr) is True
        assert stderr.getvalue().count("Do you wish to continue?") == 3
        # The line after the answer is left for whoever reads next.
        assert stdin.readline() == "no\n"

    def test_eof_declines(self) -> None:
        assert ask(io.StringIO(""), io.StringIO()) is False

    def test_eof_after_garbage_declines(self) -> None:
        assert ask(io.StringIO("maybe\n"), io.StringIO()) is False

    def test_read_error_declines(self) -> None:
        assert ask(_BrokenStdin(), io.StringIO()) is False


class TestConfirm:
    async def test_yes(self) -> None:
        assert await confirm(io.StringIO("y\n"), io.StringIO()) is True

    async def test_no(self) -> None:
        assert await confirm(io.StringIO("no\n"), io.StringIO()) is False

    async def test_empty_line_declines(self) -> None:
        assert await confirm(io.StringIO("\n"), io.StringIO()) is False

    async def test_prompt_written_to_given_stream(self) -> None:
        stderr = io.StringIO()
        await confirm(io.StringIO("n\n"), stderr)
        assert "yes/[no]" in stderr.getvalue()

    async def test_cancelled_wait_drops_late_answer(self) -> None:
        loop = asyncio.get_running_loop()
        loop_errors: list[dict[str, object]] = []
        loop.set_exception_handler(lambda _loop, context: loop_errors.append(context))
        stdin = _BlockingStdin()
        existing = set(threading.enumerate())

        task = asyncio.create_task(confirm(stdin, io.StringIO()))
        assert await asyncio.to_thread(stdin.reading.wait, 5)
        prompt_thread = next(
            t
            for t in threading.enumerate()
            if t.name == "binswap-confirm" and t not in existing
        )

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        stdin.release.set()
        await asyncio.to_thread(prompt_thread.join, 5)
        # Let the answer handed back by the thread reach the loop.
        await asyncio.sleep(0.05)

        assert not prompt_thread.is_alive()
        assert loop_errors == []
