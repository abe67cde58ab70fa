"""Parsing of the /proc/mdstat status report."""

import logging
from typing import List, Optional, Sequence, Tuple

from .models import UNRESOLVED, ArrayRecord, DriveRef, StatReport

logger = logging.getLogger(__name__)

MDSTAT_PATH = '/proc/mdstat'

PERSONALITIES_MARKER = 'Personalities :'
UNUSED_MARKER = 'unused devices:'

# Annotation lines that may follow an array's config line, mapped to the
# ArrayRecord field they fill
ANNOTATION_MARKERS: Tuple[Tuple[str, str], ...] = (
    ('recovery =', 'recovery'),
    ('resync =', 'resync'),
    ('reshape =', 'reshape'),
    ('check =', 'check_array'),
    ('bitmap:', 'bitmap'),
)


def read_mdstat_lines(path: str = MDSTAT_PATH) -> List[str]:
    """
    Read the status file as a list of trimmed, non-blank lines.

    Args:
        path: Location of the mdstat file

    Returns:
        List of lines; empty if the file cannot be read
    """
    try:
        with open(path, 'r', encoding='utf-8', errors='replace') as f:
            return [line.strip() for line in f if line.strip()]
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
        return []


def parse_drive_ref(token: str) -> DriveRef:
    """Parse a header drive token such as ``sdb1[2](F)`` into a DriveRef."""
    start = token.find('[')
    end = token.find(']', start + 1)
    if start == -1 or end == -1:
        logger.warning(f"Unexpected drive name format: {token}")
        return DriveRef(name=token)

    try:
        pos = int(token[start + 1:end])
    except ValueError:
        logger.warning(f"Unexpected drive position in: {token}")
        pos = UNRESOLVED

    return DriveRef(name=token, pos=pos)


def _parse_config_line(line: Optional[str]) -> dict:
    """Split the line following an array header into size and health fields."""
    tokens = line.split() if line is not None else []
    if len(tokens) < 4:
        logger.warning(f"Unexpected md device config: {line}")
        return {}

    return {
        'usable_size': f"{tokens[0]} {tokens[1]}",
        'healthy_drives': tokens[-2],
        'drive_statuses': tokens[-1],
        'other': " ".join(tokens[2:-2]),
    }


def _match_annotation(line: str) -> Optional[Tuple[str, str]]:
    for marker, field_name in ANNOTATION_MARKERS:
        pos = line.find(marker)
        if pos != -1:
            return field_name, line[pos + len(marker):].strip()
    return None


def _parse_array(lines: Sequence[str], n: int) -> Tuple[Optional[ArrayRecord], int]:
    """
    Parse one array block starting at the header line ``lines[n]``.

    Returns:
        The record (None if the header is malformed) and the index of the
        last line consumed
    """
    name, sep, settings = lines[n].partition(':')
    if not sep:
        logger.warning(f"Unexpected md device line structure: {lines[n]}")
        return None, n

    fields = {'name': name.strip()}

    tokens = settings.split()
    if len(tokens) >= 2:
        fields['status'] = tokens[0]
        fields['raid_level'] = tokens[1]
        fields['drives'] = tuple(parse_drive_ref(t) for t in tokens[2:])
    else:
        logger.warning(f"Unexpected md device settings: {lines[n]}")

    config_line = lines[n + 1] if n + 1 < len(lines) else None
    fields.update(_parse_config_line(config_line))
    if config_line is not None:
        n += 1

    while n + 1 < len(lines):
        match = _match_annotation(lines[n + 1])
        if match is None:
            break
        field_name, value = match
        fields[field_name] = value
        n += 1

    return ArrayRecord(**fields), n


def parse_mdstat(lines: Sequence[str]) -> StatReport:
    """
    Parse mdstat lines into a StatReport.

    The format has no grammar to speak of, so anything unexpected is logged
    and skipped rather than failing the whole report.

    Args:
        lines: Trimmed, non-blank lines of the status file

    Returns:
        StatReport with personalities, arrays in file order and unused devices
    """
    if not lines:
        return StatReport()

    personalities = ""
    unused = ""
    devices: List[ArrayRecord] = []
    n = 0

    if lines[0].startswith(PERSONALITIES_MARKER):
        personalities = lines[0][len(PERSONALITIES_MARKER):].strip()
        n = 1
    else:
        logger.warning(f"mdstat Personalities not found at line 0: {lines[0]}")

    while n < len(lines):
        line = lines[n]
        first_two = line[:2]

        if first_two == 'md':
            record, n = _parse_array(lines, n)
            if record is not None:
                devices.append(record)
        elif first_two == 'un':
            unused = line[len(UNUSED_MARKER):].strip()
        else:
            logger.warning(f"Unexpected mdstat line: {line}")

        n += 1

    return StatReport(
        personalities=personalities,
        devices=tuple(devices),
        unused=unused,
    )


def load_mdstat(path: str = MDSTAT_PATH) -> StatReport:
    """Read and parse the status file in one step."""
    return parse_mdstat(read_mdstat_lines(path))
