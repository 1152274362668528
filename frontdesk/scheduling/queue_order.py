"""Walk-in queue ordering and wait estimation.

Active entries (waiting or with a doctor) are ordered by priority tier,
highest first, then by arrival time, then by id so that identical arrival
stamps keep insertion order. An entry already with a doctor waits 0
minutes; the k-th entry still waiting (0-indexed) waits
``k * average_service_minutes``.

The functions work on any object exposing ``id``, ``priority``,
``arrival_time``, ``status``, ``estimated_wait_minutes`` and ``position``,
which is what the ``QueueEntry`` model provides.
"""

from typing import Iterable, Protocol

from frontdesk.scheduling.status import ACTIVE_QUEUE_STATUSES, QueuePriority, QueueStatus


class Queueable(Protocol):
    id: int
    priority: str
    arrival_time: object
    status: str
    estimated_wait_minutes: int | None
    position: int | None


def priority_rank(priority: str | QueuePriority) -> int:
    return QueuePriority(priority).rank


def is_active(entry: Queueable) -> bool:
    return QueueStatus(entry.status) in ACTIVE_QUEUE_STATUSES


def queue_sort_key(entry: Queueable) -> tuple:
    return (-priority_rank(entry.priority), entry.arrival_time, entry.id)


def order_active_entries(entries: Iterable[Queueable]) -> list[Queueable]:
    return sorted((entry for entry in entries if is_active(entry)), key=queue_sort_key)


def estimate_wait_minutes(waiting_index: int, average_service_minutes: float) -> int:
    return int(waiting_index * average_service_minutes)


def apply_queue_order(entries: Iterable[Queueable], average_service_minutes: float) -> list[Queueable]:
    """Order the active entries and stamp position and estimate on each.

    Inactive entries in ``entries`` are cleared (no position, no wait).
    Returns the active entries in queue order.
    """
    entries = list(entries)
    ordered = order_active_entries(entries)

    waiting_index = 0
    for position, entry in enumerate(ordered, start=1):
        entry.position = position
        if QueueStatus(entry.status) == QueueStatus.WITH_DOCTOR:
            entry.estimated_wait_minutes = 0
        else:
            entry.estimated_wait_minutes = estimate_wait_minutes(waiting_index, average_service_minutes)
            waiting_index += 1

    for entry in entries:
        if not is_active(entry):
            entry.position = None
            entry.estimated_wait_minutes = 0

    return ordered
