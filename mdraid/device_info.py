"""Kernel queries for MD arrays: device naming and GET_*_INFO ioctls."""

import fcntl
import glob
import logging
import os
import struct
from typing import Dict, Optional, Protocol

from .models import ArrayInfo, DiskRecord

logger = logging.getLogger(__name__)

UNKNOWN_DEVICE = "unknown"

# linux/major.h
MD_MAJOR = 9

# linux/raid/md_p.h: disk descriptors in a 0.90 superblock
MD_SB_DISKS = 27

# mdu_array_info_t: 18 ints; raid_disks is the 8th
ARRAY_INFO_FORMAT = "18i"
ARRAY_INFO_RAID_DISKS = 7

# mdu_disk_info_t: number, major, minor, raid_disk, state
DISK_INFO_FORMAT = "5i"

_IOC_READ = 2
_IOC_NRSHIFT = 0
_IOC_TYPESHIFT = 8
_IOC_SIZESHIFT = 16
_IOC_DIRSHIFT = 30


def _ior(ioc_type: int, nr: int, size: int) -> int:
    return ((_IOC_READ << _IOC_DIRSHIFT) | (ioc_type << _IOC_TYPESHIFT) |
            (nr << _IOC_NRSHIFT) | (size << _IOC_SIZESHIFT))


GET_ARRAY_INFO = _ior(MD_MAJOR, 0x11, struct.calcsize(ARRAY_INFO_FORMAT))
GET_DISK_INFO = _ior(MD_MAJOR, 0x12, struct.calcsize(DISK_INFO_FORMAT))


class DeviceInfoQuerier(Protocol):
    """Everything the slot reconciler needs from the kernel.

    Failures are signaled by return value (None, or ``"unknown"`` for names),
    never by raising.
    """

    def resolve_array_path(self, name: str) -> Optional[str]:
        ...

    def resolve_device_name(self, major: int, minor: int) -> str:
        ...

    def get_array_info(self, path: str) -> Optional[ArrayInfo]:
        ...

    def get_disk_info(self, path: str, raw_index: int) -> Optional[DiskRecord]:
        ...


def _read_uevent(path: str) -> Dict[str, str]:
    """Read a sysfs uevent file into a dict of its KEY=value lines."""
    values = {}
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            for line in f:
                key, sep, value = line.strip().partition('=')
                if sep:
                    values[key] = value
    except OSError as e:
        logger.debug(f"Could not read {path}: {e}")
    return values


def _dev_path(devname: str) -> str:
    # DEVNAME in uevent is relative to the udev root
    if devname.startswith('/'):
        return devname
    return f"/dev/{devname}"


class SysfsDeviceInfoQuerier:
    """DeviceInfoQuerier backed by sysfs and the MD ioctls."""

    def __init__(self, sysfs_root: str = '/sys'):
        self.sysfs_root = sysfs_root

    def resolve_array_path(self, name: str) -> Optional[str]:
        """
        Find the device node of a block device by its short name.

        Args:
            name: Short name, e.g. 'md0'

        Returns:
            Device path (e.g. '/dev/md0'), None if no block device matches
        """
        pattern = os.path.join(self.sysfs_root, 'class', 'block', '*', 'uevent')
        for uevent in sorted(glob.glob(pattern)):
            devname = _read_uevent(uevent).get('DEVNAME', '')
            if devname == name or devname.endswith('/' + name):
                return _dev_path(devname)

        logger.error(f"Could not get file path for {name}")
        return None

    def resolve_device_name(self, major: int, minor: int) -> str:
        """
        Map a (major, minor) pair to its device node.

        Returns:
            Device path, or 'unknown' if sysfs has no such device
        """
        uevent = os.path.join(self.sysfs_root, 'dev', 'block', f"{major}:{minor}", 'uevent')
        devname = _read_uevent(uevent).get('DEVNAME')
        if not devname:
            return UNKNOWN_DEVICE
        return _dev_path(devname)

    def get_array_info(self, path: str) -> Optional[ArrayInfo]:
        buf = bytearray(struct.calcsize(ARRAY_INFO_FORMAT))
        try:
            self._ioctl(path, GET_ARRAY_INFO, buf)
        except OSError as e:
            logger.error(f"Call to ioctl 'GET_ARRAY_INFO' for {path} failed: {e}")
            return None

        fields = struct.unpack(ARRAY_INFO_FORMAT, buf)
        return ArrayInfo(raid_disks=fields[ARRAY_INFO_RAID_DISKS])

    def get_disk_info(self, path: str, raw_index: int) -> Optional[DiskRecord]:
        buf = bytearray(struct.pack(DISK_INFO_FORMAT, raw_index, 0, 0, 0, 0))
        try:
            self._ioctl(path, GET_DISK_INFO, buf)
        except OSError as e:
            logger.warning(f"Call to ioctl 'GET_DISK_INFO' {path} index {raw_index} failed: {e}")
            return None

        _, major, minor, raid_disk, state = struct.unpack(DISK_INFO_FORMAT, buf)
        return DiskRecord(
            raw_index=raw_index,
            raid_disk=raid_disk,
            state=state,
            major=major,
            minor=minor,
        )

    def _ioctl(self, path: str, request: int, buf: bytearray) -> None:
        fd = os.open(path, os.O_RDONLY)
        try:
            fcntl.ioctl(fd, request, buf, True)
        finally:
            os.close(fd)
