import json
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

from tests.fixtures import write_raw_pcap
from warp.cli import cli
from warp.collectors.pcap_codec import PcapCodec

RECORDS = [
    (10, 0, b"aaaa"),
    (11, 0, b"bbbb"),
    (12, 0, b"cccc"),
    (11, 500000, b"dddd"),
]


class CliTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.runner = CliRunner()
        self.source = str(write_raw_pcap(self.tmp / "in.pcap", RECORDS))

    def tearDown(self):
        self._tmp.cleanup()

    def invoke(self, *args):
        return self.runner.invoke(cli, ["--log-level", "off", *args])

    def test_help_lists_subcommands(self):
        result = self.runner.invoke(cli, ["--help"])
        self.assertEqual(result.exit_code, 0)
        for name in ("time-compress", "time-stretch", "dilute", "augment",
                     "disorder-detect", "compare"):
            self.assertIn(name, result.output)

    def test_time_compress(self):
        out = self.tmp / "fast.pcap"
        result = self.invoke("time-compress", self.source, str(out), "-f", "2")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(PcapCodec().load(out)), 4)

    def test_time_stretch(self):
        out = self.tmp / "slow.pcap"
        result = self.invoke("time-stretch", self.source, str(out), "--factor", "3")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(str(PcapCodec().load(out).span), "4.500000")

    def test_dilute_and_augment(self):
        result = self.invoke("dilute", self.source, str(self.tmp / "d.pcap"), "-f", "2")
        self.assertEqual(result.exit_code, 0, result.output)
        result = self.invoke("augment", self.source, str(self.tmp / "a.pcap"), "-f", "2")
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(len(PcapCodec().load(self.tmp / "d.pcap")), 2)
        self.assertEqual(len(PcapCodec().load(self.tmp / "a.pcap")), 8)

    def test_invalid_factor_exits_with_error(self):
        out = self.tmp / "out.pcap"
        result = self.invoke("dilute", self.source, str(out), "--factor=0")
        self.assertEqual(result.exit_code, 1)
        self.assertIn("dilute", result.output)
        self.assertIn("factor", result.output)
        self.assertFalse(out.exists())

    def test_missing_input_exits_with_error(self):
        result = self.invoke("disorder-detect", str(self.tmp / "nope.pcap"))
        self.assertEqual(result.exit_code, 1)
        self.assertIn("not found", result.output)

    def test_disorder_detect_console(self):
        result = self.invoke("disorder-detect", self.source)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("out of order", result.output)

    def test_disorder_detect_json_report(self):
        report_path = self.tmp / "reports" / "disorder.json"
        result = self.invoke("disorder-detect", self.source, "--format", "json", "-o", str(report_path))
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(report_path.read_text(encoding="utf-8"))
        self.assertEqual(data["operation"], "disorder-detect")
        self.assertEqual(data["results"]["disorder"]["violations"][0]["original_index"], 3)

    def test_compare_identical_and_ignore_timestamp(self):
        shifted = str(write_raw_pcap(
            self.tmp / "shifted.pcap",
            [(sec + 100, frac, data) for sec, frac, data in RECORDS],
        ))
        result = self.invoke("compare", self.source, self.source)
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("identical", result.output)

        result = self.invoke("compare", self.source, shifted, "--format", "json",
                             "-o", str(self.tmp / "strict.json"))
        self.assertEqual(result.exit_code, 0, result.output)
        strict = json.loads((self.tmp / "strict.json").read_text(encoding="utf-8"))
        self.assertEqual(strict["results"]["comparison"]["missing_count"], 4)

        result = self.invoke("compare", self.source, shifted, "--ignore-timestamp",
                             "--format", "json", "-o", str(self.tmp / "loose.json"))
        self.assertEqual(result.exit_code, 0, result.output)
        loose = json.loads((self.tmp / "loose.json").read_text(encoding="utf-8"))
        self.assertTrue(loose["results"]["comparison"]["identical"])

    def test_compare_all_formats_share_stem(self):
        result = self.invoke("compare", self.source, self.source, "--format", "all",
                             "-o", str(self.tmp / "cmp.out"))
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertTrue((self.tmp / "cmp.html").is_file())
        self.assertTrue((self.tmp / "cmp.json").is_file())

    def test_explicit_missing_config_exits(self):
        result = self.runner.invoke(
            cli, ["--config", str(self.tmp / "none.toml"), "disorder-detect", self.source]
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Configuration file not found", result.output)


if __name__ == "__main__":
    unittest.main()
