import json
import tempfile
import unittest
from pathlib import Path

from shared.console import ForgeConsole
from shared.models import RunResult
from tests.fixtures import make_sequence, quiet_logger
from warp.analyzers.comparator import DifferentialComparator
from warp.analyzers.disorder import DisorderDetector
from warp.output.console import WarpConsoleOutput
from warp.output.report import WarpReportGenerator


def comparison_result():
    ref = make_sequence(["1", "2", "3"], [b"a", b"<b>", b"c"])
    cand = make_sequence(["1", "3", "4"], [b"a", b"c", b"d"])
    report = DifferentialComparator(log=quiet_logger()).compare(ref, cand)
    result = RunResult(
        operation="compare",
        target="ref.pcap",
        metadata={"reference": "ref.pcap", "candidate": "cand<1>.pcap"},
        raw_data={"comparison": report.model_dump(mode="json")},
    )
    return result.finalize("Differences found")


class ReportGeneratorTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.generator = WarpReportGenerator(log=quiet_logger())

    def tearDown(self):
        self._tmp.cleanup()

    def test_json_report_carries_full_lists(self):
        path = self.generator.generate_json(comparison_result(), self.tmp / "r.json")
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        self.assertEqual(data["report_type"], "warp_compare")
        comparison = data["results"]["comparison"]
        self.assertEqual([e["original_index"] for e in comparison["missing"]], [1])
        self.assertEqual([e["original_index"] for e in comparison["extra"]], [2])
        self.assertIsNotNone(data["duration_seconds"])

    def test_html_report_is_escaped(self):
        path = self.generator.generate_html(comparison_result(), self.tmp / "r.html")
        html = Path(path).read_text(encoding="utf-8")
        self.assertIn("Missing from Candidate (1)", html)
        self.assertIn("Extra in Candidate (1)", html)
        self.assertIn("cand&lt;1&gt;.pcap", html)
        self.assertNotIn("cand<1>", html)

    def test_html_disorder_section(self):
        report = DisorderDetector(log=quiet_logger()).detect(make_sequence(["2", "1"]))
        result = RunResult(operation="disorder-detect", target="x.pcap",
                           raw_data={"disorder": report.model_dump(mode="json")}).finalize()
        html = Path(self.generator.generate_html(result, self.tmp / "d.html")).read_text(encoding="utf-8")
        self.assertIn("Disorder Detection", html)
        self.assertIn("1 packets are out of order", html)


class ConsoleOutputTests(unittest.TestCase):
    def test_display_limit_notes_omitted_rows(self):
        ref = make_sequence([str(i) for i in range(10)])
        report = DifferentialComparator(log=quiet_logger()).compare(ref, make_sequence([]))
        result = RunResult(operation="compare", target="ref.pcap",
                           raw_data={"comparison": report.model_dump(mode="json")}).finalize()
        console = ForgeConsole(record=True, width=160)
        WarpConsoleOutput(console, display_limit=3).display(result)
        text = console.export_text()
        self.assertIn("7 more not shown", text)
        self.assertIn("Differences found: 10 missing, 0 extra", text)


if __name__ == "__main__":
    unittest.main()
