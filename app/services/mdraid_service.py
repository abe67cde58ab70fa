from __future__ import annotations

import logging
import os
from typing import Any, Dict, List

from flask import current_app

from mdraid import MD_SB_DISKS, TABLES, SysfsDeviceInfoQuerier, build_table, load_mdstat
from mdraid.device_info import DeviceInfoQuerier

logger = logging.getLogger(__name__)


def _config_value(key: str, default: Any) -> Any:
    try:
        value = current_app.config.get(key)  # type: ignore[attr-defined]
    except RuntimeError:
        value = None
    return value if value is not None else os.getenv(key, default)


def _max_disks() -> int:
    value = _config_value('MD_MAX_DISK_SLOTS', MD_SB_DISKS)
    try:
        return int(value)
    except (TypeError, ValueError):
        return MD_SB_DISKS


def _build_querier() -> DeviceInfoQuerier:
    return SysfsDeviceInfoQuerier(str(_config_value('SYSFS_ROOT', '/sys')))


def get_table(name: str, querier: DeviceInfoQuerier | None = None) -> List[Dict[str, str]]:
    """Compute one of the MD tables from the current kernel state."""
    if name not in TABLES:
        raise ValueError(f"Unknown table: {name}")

    report = load_mdstat(str(_config_value('MDSTAT_PATH', '/proc/mdstat')))
    rows = build_table(name, report, querier or _build_querier(), max_disks=_max_disks())

    logger.info("md table computed", extra={"table": name, "rows": len(rows)})
    return rows
