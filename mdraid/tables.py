"""Flat row projections of the parsed mdstat report and reconciled slots."""

import logging
from typing import Dict, List

from .device_info import MD_SB_DISKS, DeviceInfoQuerier
from .models import ArrayRecord, StatReport
from .reconciler import reconcile_array

logger = logging.getLogger(__name__)

Row = Dict[str, str]

TABLES = ("drives", "devices", "personalities")

# Annotations of the form "<pct> (<done>/<total>) finish=<t> speed=<r>"
PROGRESS_FIELDS = ('recovery', 'resync', 'reshape', 'check_array')


def _strip_key(value: str, key: str) -> str:
    prefix = f"{key}="
    if value.startswith(prefix):
        return value[len(prefix):]
    return value


def parse_progress(annotation: str, prefix: str) -> Row:
    """
    Split a progress annotation into progress, finish and speed columns.

    Expected form: ``12.6% (37043392/292945152) finish=127.5min speed=33440K/sec``
    """
    pieces = annotation.split()
    if len(pieces) != 4:
        logger.warning(f"Unexpected {prefix} line format: {annotation}")
        return {}

    return {
        f"{prefix}_progress": f"{pieces[0]} {pieces[1]}",
        f"{prefix}_finish": _strip_key(pieces[2], 'finish'),
        f"{prefix}_speed": _strip_key(pieces[3], 'speed'),
    }


def parse_bitmap(annotation: str) -> Row:
    """
    Split a bitmap annotation into its columns.

    Expected form: ``0/1 pages [0KB], 65536KB chunk[, file: /path]``
    """
    parts = [part.strip() for part in annotation.split(',')]
    if len(parts) < 2:
        logger.warning(f"Unexpected bitmap line structure: {annotation}")
        return {}

    row = {
        "bitmap_in_memory": parts[0],
        "bitmap_chunk_size": parts[1],
    }
    if len(parts) > 2:
        pos = parts[2].find('file:')
        if pos != -1:
            row["bitmap_external_file"] = parts[2][pos + len('file:'):].strip()
    return row


def device_row(device: ArrayRecord, unused: str) -> Row:
    row = {
        "device_name": device.name,
        "status": device.status,
        "raid_level": device.raid_level,
        "healthy_drives": device.healthy_drives,
        "usable_size": device.usable_size,
        "other": device.other,
    }

    for field_name in PROGRESS_FIELDS:
        annotation = getattr(device, field_name)
        if annotation:
            row.update(parse_progress(annotation, field_name))

    if device.bitmap:
        row.update(parse_bitmap(device.bitmap))

    row["unused_devices"] = unused
    return row


def md_devices(report: StatReport) -> List[Row]:
    """One row per array in the report."""
    return [device_row(device, report.unused) for device in report.devices]


def md_personalities(report: StatReport) -> List[Row]:
    """One row per personality enabled in the kernel."""
    return [{"name": name} for name in report.personality_names()]


def md_drives(report: StatReport, querier: DeviceInfoQuerier,
              max_disks: int = MD_SB_DISKS) -> List[Row]:
    """
    Reconciled drive rows for every array in the report.

    An array that cannot be queried contributes no rows; the remaining
    arrays are still reported.
    """
    rows: List[Row] = []
    for device in report.devices:
        drives = reconcile_array(device.name, querier, max_disks=max_disks)
        if not drives:
            logger.warning(f"No drive information for {device.name}")
        rows.extend(drive.as_row() for drive in drives)
    return rows


def build_table(name: str, report: StatReport, querier: DeviceInfoQuerier,
                max_disks: int = MD_SB_DISKS) -> List[Row]:
    """
    Compute the named table from a parsed report.

    Args:
        name: One of TABLES
        report: Parsed mdstat report
        querier: Device source; only the drives table queries it
        max_disks: Raw disk indices scanned per array

    Raises:
        ValueError: If the table name is unknown
    """
    if name == "devices":
        return md_devices(report)
    if name == "personalities":
        return md_personalities(report)
    if name == "drives":
        return md_drives(report, querier, max_disks=max_disks)
    raise ValueError(f"Unknown table: {name}")
