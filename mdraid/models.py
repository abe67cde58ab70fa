"""Data models for MD RAID inspection."""

from dataclasses import dataclass
from typing import Dict, List, Tuple

# Sentinel for a drive position or slot that could not be determined
UNRESOLVED = -1


@dataclass(frozen=True)
class DriveRef:
    """A drive token as listed on an array header line, e.g. ``sdb1[1](F)``."""
    name: str
    pos: int = UNRESOLVED


@dataclass(frozen=True)
class ArrayRecord:
    """One array block of the mdstat report."""
    name: str
    status: str = ""
    raid_level: str = ""
    drives: Tuple[DriveRef, ...] = ()
    usable_size: str = ""
    healthy_drives: str = ""
    drive_statuses: str = ""
    other: str = ""
    recovery: str = ""
    resync: str = ""
    reshape: str = ""
    check_array: str = ""
    bitmap: str = ""


@dataclass(frozen=True)
class StatReport:
    """Parsed contents of /proc/mdstat."""
    personalities: str = ""
    devices: Tuple[ArrayRecord, ...] = ()
    unused: str = ""

    def personality_names(self) -> List[str]:
        """Names of the enabled personalities, brackets stripped."""
        names = []
        for token in self.personalities.split():
            if token.startswith('[') and token.endswith(']'):
                token = token[1:-1]
            if token:
                names.append(token)
        return names


@dataclass(frozen=True)
class ArrayInfo:
    """Array-wide information reported by GET_ARRAY_INFO."""
    raid_disks: int


@dataclass(frozen=True)
class DiskRecord:
    """Per-index disk descriptor reported by GET_DISK_INFO."""
    raw_index: int
    raid_disk: int
    state: int
    major: int
    minor: int


@dataclass
class DriveRow:
    """A reconciled (slot, drive, state) entry for one array."""
    array_name: str
    drive_name: str
    state: str
    slot: int = UNRESOLVED

    @property
    def is_resolved(self) -> bool:
        return self.slot >= 0

    def as_row(self) -> Dict[str, str]:
        """Flat string-keyed representation used by the drives table."""
        return {
            "md_device_name": self.array_name,
            "drive_name": self.drive_name,
            "state": self.state,
            "slot": str(self.slot),
        }
