"""Interactive yes/no confirmation.

The prompt runs on a dedicated thread that is the only reader of stdin.
Its answer is handed back through a one-shot future; if the awaiting task
has been cancelled by then, the answer is dropped.
"""

from __future__ import annotations

import asyncio
import sys
import threading
from typing import TextIO

from binswap.constants import CONFIRM_NO, CONFIRM_YES
from binswap.logging import get_logger

log = get_logger("binswap.confirm")

PROMPT = "\n  Do you wish to continue? yes/[no]\n  ? "


def parse_answer(line: str) -> bool | None:
    """Map one line of input to True/False, or None if it is not an answer."""
    answer = line.strip().lower()
    if answer in CONFIRM_YES:
        return True
    if answer in CONFIRM_NO:
        return False
    return None


def ask(stdin: TextIO, stderr: TextIO) -> bool:
    """Prompt until a recognizable answer is read. EOF or read errors decline."""
    while True:
        try:
            stderr.write(PROMPT)
            stderr.flush()
            line = stdin.readline()
        except (OSError, ValueError) as exc:
            log.debug("binswap_confirm_read_failed", error=str(exc))
            return False

        if not line:
            return False

        answer = parse_answer(line)
        if answer is not None:
            return answer


def _deliver(future: asyncio.Future[bool], answer: bool) -> None:
    if not future.done():
        future.set_result(answer)


async def confirm(stdin: TextIO | None = None, stderr: TextIO | None = None) -> bool:
    """Ask the user to confirm; resolves to True only on an explicit yes."""
    loop = asyncio.get_running_loop()
    future: asyncio.Future[bool] = loop.create_future()
    stdin = stdin if stdin is not None else sys.stdin
    stderr = stderr if stderr is not None else sys.stderr

    def worker() -> None:
        answer = ask(stdin, stderr)
        # The loop may be gone if the process is shutting down.
        try:
            loop.call_soon_threadsafe(_deliver, future, answer)
        except RuntimeError:
            pass

    threading.Thread(target=worker, name="binswap-confirm", daemon=True).start()
    return await future
