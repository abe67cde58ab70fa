"""Decoding of the MD disk state bitmask (``mdu_disk_info_t.state``)."""

from typing import Callable, Tuple

# Bit numbers from linux/raid/md_p.h
MD_DISK_FAULTY = 0
MD_DISK_ACTIVE = 1
MD_DISK_SYNC = 2
MD_DISK_REMOVED = 3
MD_DISK_CLUSTER_ADD = 4
MD_DISK_CANDIDATE = 5
MD_DISK_WRITEMOSTLY = 9
MD_DISK_FAILFAST = 10
MD_DISK_JOURNAL = 18


def _bit(number: int) -> Callable[[int], bool]:
    mask = 1 << number
    return lambda state: bool(state & mask)


# Labels are emitted in this order, whatever the bit numbers are
STATE_LABELS: Tuple[Tuple[Callable[[int], bool], str], ...] = (
    (_bit(MD_DISK_FAULTY), "faulty"),
    (_bit(MD_DISK_ACTIVE), "active"),
    (_bit(MD_DISK_SYNC), "sync"),
    (_bit(MD_DISK_REMOVED), "removed"),
    (_bit(MD_DISK_WRITEMOSTLY), "writemostly"),
    (_bit(MD_DISK_FAILFAST), "failfast"),
    (_bit(MD_DISK_JOURNAL), "journal"),
    (_bit(MD_DISK_CANDIDATE), "spare"),
    (_bit(MD_DISK_CLUSTER_ADD), "clusteradd"),
)


def decode_disk_state(state: int) -> str:
    """
    Render a disk state bitmask as space separated labels.

    The kernel leaves a state of 0 undefined; in practice it is only seen on
    a slot that is being rebuilt, so it is reported as ``recovering``.

    Args:
        state: state field of the GET_DISK_INFO result

    Returns:
        Labels such as ``"active sync"`` or ``"faulty"``
    """
    if state == 0:
        return "recovering"

    labels = [label for matches, label in STATE_LABELS if matches(state)]
    return " ".join(labels).strip()
