"""Linux software RAID (MD) inspection: mdstat parsing and slot reconciliation."""

from .device_info import MD_SB_DISKS, DeviceInfoQuerier, SysfsDeviceInfoQuerier
from .mdstat_parser import load_mdstat, parse_mdstat, read_mdstat_lines
from .reconciler import reconcile_array
from .tables import TABLES, build_table, md_devices, md_drives, md_personalities

__all__ = [
    "MD_SB_DISKS",
    "DeviceInfoQuerier",
    "SysfsDeviceInfoQuerier",
    "load_mdstat",
    "parse_mdstat",
    "read_mdstat_lines",
    "reconcile_array",
    "TABLES",
    "build_table",
    "md_devices",
    "md_drives",
    "md_personalities",
]
