"""
Poller Module.

Generic asynchronous job polling with bounded attempts and cancellation.
"""

from modules.poller.poller import Poller, PollPolicy, TerminalOutcome, TerminalResult, Watch
from modules.poller.scheduler import CancellationToken, ImmediateScheduler, Scheduler

__all__ = [
    "Poller",
    "PollPolicy",
    "TerminalOutcome",
    "TerminalResult",
    "Watch",
    "CancellationToken",
    "ImmediateScheduler",
    "Scheduler",
]
