"""Interrupt handling for branch-producing commands.

SIGTERM is turned into ``KeyboardInterrupt`` so both signals unwind through
the same ``finally`` blocks. The CLI then reports any incomplete operation
records and exits with ``INTERRUPT_EXIT_CODE``; cleanup is always left to an
explicit ``recover`` run.
"""

from __future__ import annotations

import signal
import sys
import threading

from . import log
from .state import OperationStore

INTERRUPT_EXIT_CODE = 130
FORCED_EXIT_CODE = 1

_watched_store: OperationStore | None = None


def _on_main_thread() -> bool:
    return threading.current_thread() is threading.main_thread()


def _raise_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


def _force_exit(signum, frame) -> None:
    log.warning("Force exiting...")
    sys.exit(FORCED_EXIT_CODE)


def install_handlers() -> None:
    """Route SIGTERM through ``KeyboardInterrupt``."""
    if _on_main_thread():
        signal.signal(signal.SIGTERM, _raise_interrupt)


def watch(store: OperationStore | None) -> None:
    """Remember the store to inspect when an interrupt is reported."""
    global _watched_store
    _watched_store = store


def watched_store() -> OperationStore | None:
    return _watched_store


def report_interrupted(store: OperationStore | None = None) -> None:
    """Print incomplete operations with the commands that recover them.

    A second interrupt while reporting exits immediately with status 1.
    """
    store = store if store is not None else watched_store()
    previous: dict[int, object] = {}
    if _on_main_thread():
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, _force_exit)
    try:
        log.warning("Operation interrupted.")
        if store is None:
            return
        try:
            incomplete = store.list_incomplete()
        except OSError as exc:
            log.error(f"Could not read operation state: {exc}")
            return
        if not incomplete:
            return
        log.warning(f"{len(incomplete)} incomplete operation(s) need recovery:")
        for record in incomplete:
            log.info(f"  {record.id}  ({record.kind}, stage: {record.current_stage})")
        log.info("To recover, run one of:")
        log.info("  codeowners-git recover --list")
        log.info("  codeowners-git recover --auto")
        log.info(f"  codeowners-git recover --id {incomplete[0].id}")
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
