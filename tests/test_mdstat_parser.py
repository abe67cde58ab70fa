"""Unit tests for the mdstat parser."""

import os
import tempfile
import unittest

from mdraid.mdstat_parser import (
    load_mdstat,
    parse_drive_ref,
    parse_mdstat,
    read_mdstat_lines,
)
from mdraid.models import DriveRef, StatReport


RAID1_RESYNC = """Personalities : [raid1] [raid6] [raid5] [raid4]
md0 : active raid1 sdb1[1] sda1[0]
      1953383488 blocks super 1.2 [2/2] [UU]
      [==>..................]  resync = 12.6% (246218944/1953383488) finish=152.4min speed=186658K/sec
      bitmap: 13/15 pages [52KB], 65536KB chunk

md1 : active raid5 sde1[3] sdd1[1] sdc1[0](F)
      585674752 blocks super 1.2 level 5, 512k chunk, algorithm 2 [3/2] [_U_]

unused devices: <none>
"""


def to_lines(text):
    return [line.strip() for line in text.splitlines() if line.strip()]


class TestParseMDStat(unittest.TestCase):
    """Test cases for parse_mdstat."""

    def test_empty_input(self):
        self.assertEqual(parse_mdstat([]), StatReport())

    def test_personalities(self):
        report = parse_mdstat(["Personalities : [raid1] [raid6]"])

        self.assertEqual(report.personalities, "[raid1] [raid6]")
        self.assertEqual(report.personality_names(), ["raid1", "raid6"])
        self.assertEqual(report.devices, ())

    def test_missing_personalities_line(self):
        lines = [
            "md0 : active raid1 sdb1[1] sda1[0]",
            "1953383488 blocks super 1.2 [2/2] [UU]",
        ]

        with self.assertLogs('mdraid.mdstat_parser', level='WARNING'):
            report = parse_mdstat(lines)

        self.assertEqual(report.personalities, "")
        self.assertEqual(len(report.devices), 1)
        self.assertEqual(report.devices[0].name, "md0")

    def test_full_report(self):
        report = parse_mdstat(to_lines(RAID1_RESYNC))

        self.assertEqual(report.personality_names(), ["raid1", "raid6", "raid5", "raid4"])
        self.assertEqual(report.unused, "<none>")
        self.assertEqual([d.name for d in report.devices], ["md0", "md1"])

        md0 = report.devices[0]
        self.assertEqual(md0.status, "active")
        self.assertEqual(md0.raid_level, "raid1")
        self.assertEqual(md0.drives, (DriveRef("sdb1[1]", 1), DriveRef("sda1[0]", 0)))
        self.assertEqual(md0.usable_size, "1953383488 blocks")
        self.assertEqual(md0.other, "super 1.2")
        self.assertEqual(md0.healthy_drives, "[2/2]")
        self.assertEqual(md0.drive_statuses, "[UU]")
        self.assertEqual(md0.resync, "12.6% (246218944/1953383488) finish=152.4min speed=186658K/sec")
        self.assertEqual(md0.bitmap, "13/15 pages [52KB], 65536KB chunk")
        self.assertEqual(md0.recovery, "")

        md1 = report.devices[1]
        self.assertEqual(md1.raid_level, "raid5")
        self.assertEqual(md1.drives[2], DriveRef("sdc1[0](F)", 0))
        self.assertEqual(md1.other, "super 1.2 level 5, 512k chunk, algorithm 2")
        self.assertEqual(md1.healthy_drives, "[3/2]")
        self.assertEqual(md1.drive_statuses, "[_U_]")
        self.assertEqual(md1.bitmap, "")

    def test_all_annotation_kinds(self):
        lines = [
            "Personalities : [raid5]",
            "md2 : active raid5 sdc[2] sdb[1] sda[0]",
            "41909248 blocks level 5, 64k chunk, algorithm 2 [3/2] [UU_]",
            "[>....................]  recovery =  1.5% (320000/20954624) finish=8.6min speed=40000K/sec",
            "[>....................]  reshape =  0.1% (1024/20954624) finish=99.0min speed=1000K/sec",
            "[=>...................]  check =  5.0% (1047731/20954624) finish=3.3min speed=99000K/sec",
            "bitmap: 0/1 pages [0KB], 65536KB chunk, file: /var/md2.bitmap",
            "unused devices: sdd",
        ]

        report = parse_mdstat(lines)

        md2 = report.devices[0]
        self.assertEqual(md2.recovery, "1.5% (320000/20954624) finish=8.6min speed=40000K/sec")
        self.assertEqual(md2.reshape, "0.1% (1024/20954624) finish=99.0min speed=1000K/sec")
        self.assertEqual(md2.check_array, "5.0% (1047731/20954624) finish=3.3min speed=99000K/sec")
        self.assertEqual(md2.bitmap, "0/1 pages [0KB], 65536KB chunk, file: /var/md2.bitmap")
        self.assertEqual(report.unused, "sdd")

    def test_short_config_line_is_skipped(self):
        lines = [
            "Personalities : [raid0]",
            "md3 : inactive sdb[0](S)",
            "1024 blocks",
            "unused devices: <none>",
        ]

        with self.assertLogs('mdraid.mdstat_parser', level='WARNING') as captured:
            report = parse_mdstat(lines)

        md3 = report.devices[0]
        self.assertEqual(md3.status, "inactive")
        self.assertEqual(md3.usable_size, "")
        self.assertEqual(md3.healthy_drives, "")
        self.assertEqual(report.unused, "<none>")
        self.assertTrue(any("config" in message for message in captured.output))

    def test_header_on_last_line(self):
        report = parse_mdstat(["Personalities : [raid1]", "md4 : active raid1 sda[0]"])

        self.assertEqual(len(report.devices), 1)
        self.assertEqual(report.devices[0].usable_size, "")

    def test_header_without_colon_is_skipped(self):
        lines = [
            "Personalities : [raid1]",
            "md5 active raid1",
            "md6 : active raid1 sda[0] sdb[1]",
            "976630336 blocks [2/2] [UU]",
        ]

        report = parse_mdstat(lines)

        self.assertEqual([d.name for d in report.devices], ["md6"])

    def test_unknown_lines_are_skipped(self):
        lines = [
            "Personalities : [raid1]",
            "something new from a future kernel",
            "md7 : active raid1 sda[0] sdb[1]",
            "976630336 blocks [2/2] [UU]",
            "unused devices: <none>",
        ]

        with self.assertLogs('mdraid.mdstat_parser', level='WARNING') as captured:
            report = parse_mdstat(lines)

        self.assertEqual([d.name for d in report.devices], ["md7"])
        self.assertIn("something new", captured.output[0])

    def test_annotation_stops_at_next_array(self):
        lines = [
            "Personalities : [raid1]",
            "md8 : active raid1 sda[0] sdb[1]",
            "976630336 blocks [2/2] [UU]",
            "md9 : active raid1 sdc[0] sdd[1]",
            "976630336 blocks [2/2] [UU]",
            "bitmap: 1/8 pages [4KB], 65536KB chunk",
        ]

        report = parse_mdstat(lines)

        self.assertEqual(report.devices[0].bitmap, "")
        self.assertEqual(report.devices[1].bitmap, "1/8 pages [4KB], 65536KB chunk")

    def test_parse_is_deterministic(self):
        lines = to_lines(RAID1_RESYNC)
        self.assertEqual(parse_mdstat(lines), parse_mdstat(list(lines)))


class TestParseDriveRef(unittest.TestCase):
    """Test cases for parse_drive_ref."""

    def test_position_extracted(self):
        self.assertEqual(parse_drive_ref("sdb1[12]"), DriveRef("sdb1[12]", 12))

    def test_flag_suffix_kept_in_name(self):
        self.assertEqual(parse_drive_ref("nvme0n1p2[3](W)"), DriveRef("nvme0n1p2[3](W)", 3))

    def test_missing_brackets(self):
        with self.assertLogs('mdraid.mdstat_parser', level='WARNING'):
            ref = parse_drive_ref("sdb1")
        self.assertEqual(ref, DriveRef("sdb1", -1))

    def test_non_numeric_position(self):
        with self.assertLogs('mdraid.mdstat_parser', level='WARNING'):
            ref = parse_drive_ref("sdb1[x]")
        self.assertEqual(ref, DriveRef("sdb1[x]", -1))


class TestReadMDStatLines(unittest.TestCase):
    """Test cases for reading the status file."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.path = os.path.join(self.temp_dir, 'mdstat')

    def tearDown(self):
        if os.path.exists(self.path):
            os.remove(self.path)
        os.rmdir(self.temp_dir)

    def test_lines_trimmed_and_blank_lines_dropped(self):
        with open(self.path, 'w') as f:
            f.write(RAID1_RESYNC)

        lines = read_mdstat_lines(self.path)

        self.assertEqual(lines[0], "Personalities : [raid1] [raid6] [raid5] [raid4]")
        self.assertEqual(lines[2], "1953383488 blocks super 1.2 [2/2] [UU]")
        self.assertNotIn("", lines)
        self.assertEqual(len(lines), 8)

    def test_undecodable_bytes_are_replaced(self):
        with open(self.path, 'wb') as f:
            f.write(b"Personalities : [raid1]\n"
                    b"md2 : active raid1 sdd1[1] sdc1[0]\n"
                    b"      976630336 blocks super 1.2 [2/2] [UU]\n"
                    b"      bitmap: 0/1 pages [0KB], 65536KB chunk, file: /var/\xff\xfe.bm\n"
                    b"unused devices: <none>\n")

        report = load_mdstat(self.path)

        self.assertEqual(report.personalities, "[raid1]")
        self.assertEqual(len(report.devices), 1)
        self.assertEqual(report.devices[0].bitmap,
                         "0/1 pages [0KB], 65536KB chunk, file: /var/\ufffd\ufffd.bm")
        self.assertEqual(report.unused, "<none>")

    def test_missing_file_yields_empty_report(self):
        with self.assertLogs('mdraid.mdstat_parser', level='WARNING'):
            report = load_mdstat(self.path)
        self.assertEqual(report, StatReport())


if __name__ == '__main__':
    unittest.main()
