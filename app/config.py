from __future__ import annotations

import os

from mdraid.device_info import MD_SB_DISKS


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "on"}:
        return True
    if lowered in {"0", "false", "no", "off"}:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Config:
    # MD status sources
    MDSTAT_PATH = os.getenv('MDSTAT_PATH', '/proc/mdstat')
    SYSFS_ROOT = os.getenv('SYSFS_ROOT', '/sys')

    # Raw disk indices scanned per array
    MD_MAX_DISK_SLOTS = _env_int('MD_MAX_DISK_SLOTS', MD_SB_DISKS)

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
    JSON_LOGS = _env_bool('JSON_LOGS', True)
