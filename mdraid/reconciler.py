"""Reconciliation of kernel disk descriptors into a per-slot drive table."""

import logging
from typing import List, Optional

from .device_info import MD_SB_DISKS, DeviceInfoQuerier
from .disk_state import decode_disk_state
from .models import UNRESOLVED, DiskRecord, DriveRow

logger = logging.getLogger(__name__)

REMOVED_DRIVE_NAME = "unknown"
REMOVED_STATE = "removed"


def display_slot(disk: DiskRecord, raw_index: int, raid_disks: int) -> int:
    """
    Work out which slot a disk descriptor should be reported under.

    A negative raid_disk means the kernel no longer associates the disk with
    a slot. If its raw index is inside the array's slot range that index is
    taken as the original slot; beyond it there is nothing to go on.
    """
    if disk.raid_disk >= 0:
        return disk.raid_disk
    if raw_index < raid_disks:
        return raw_index
    return UNRESOLVED


def _find_donor(rows: List[DriveRow]) -> Optional[DriveRow]:
    # The last unresolved row wins: removed and faulty members surface at
    # the higher raw indices first.
    donor = None
    for row in rows:
        if not row.is_resolved:
            donor = row
    return donor


def fill_missing_slots(array_name: str, rows: List[DriveRow], raid_disks: int) -> List[DriveRow]:
    """
    Make sure every slot in ``[0, raid_disks)`` is represented.

    Missing slots are handed to an unresolved row when there is one, otherwise
    a placeholder ``removed`` row is appended. ``rows`` is updated in place.

    Returns:
        The rows followed by any placeholder rows, in slot order
    """
    synthesized = []
    for slot in range(raid_disks):
        if any(row.slot == slot for row in rows):
            continue

        donor = _find_donor(rows)
        if donor is not None:
            donor.slot = slot
            continue

        synthesized.append(DriveRow(
            array_name=array_name,
            drive_name=REMOVED_DRIVE_NAME,
            state=REMOVED_STATE,
            slot=slot,
        ))

    return rows + synthesized


def reconcile_array(array_name: str, querier: DeviceInfoQuerier,
                    max_disks: int = MD_SB_DISKS) -> List[DriveRow]:
    """
    Build the slot table for one array.

    Args:
        array_name: Short array name as listed in mdstat, e.g. 'md0'
        querier: Source of device paths, names and disk descriptors
        max_disks: Number of raw disk indices to scan

    Returns:
        Drive rows in raw scan order followed by placeholders for removed
        slots; empty if the array itself could not be queried
    """
    path = querier.resolve_array_path(array_name)
    if not path:
        logger.error(f"Could not resolve device path for {array_name}")
        return []

    info = querier.get_array_info(path)
    if info is None:
        logger.error(f"Could not get array info for {array_name} ({path})")
        return []

    rows: List[DriveRow] = []
    for raw_index in range(max_disks):
        disk = querier.get_disk_info(path, raw_index)
        if disk is None:
            continue

        # major 0 means no device behind this index
        if disk.major <= 0:
            continue

        rows.append(DriveRow(
            array_name=array_name,
            drive_name=querier.resolve_device_name(disk.major, disk.minor),
            state=decode_disk_state(disk.state),
            slot=display_slot(disk, raw_index, info.raid_disks),
        ))

    logger.debug(f"{array_name}: {len(rows)} disks found for {info.raid_disks} slots")
    return fill_missing_slots(array_name, rows, info.raid_disks)
