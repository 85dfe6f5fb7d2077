from __future__ import annotations

import io
import json
import sys
import tempfile
import unittest
import xml.etree.ElementTree as ET
from pathlib import Path
from unittest import mock

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from diascript import cli

SVG = "{http://www.w3.org/2000/svg}"

BOXES = """
<diagram>
  <vbox id="a" x="0" y="0" width="80" height="60"/>
  <vbox id="b" x="200" y="0" width="80" height="60"/>
  <line from="a" to="b" end-marker="arrow"/>
</diagram>
""".strip()


class _StdinCapture(io.StringIO):
    def isatty(self) -> bool:
        return False


class CLIAcceptanceTests(unittest.TestCase):
    def run_cli(self, argv: list[str], stdin_text: str = "") -> tuple[int, str, str]:
        stdout = io.StringIO()
        stderr = io.StringIO()
        stdin = _StdinCapture(stdin_text)
        with mock.patch("sys.stdout", stdout), mock.patch("sys.stderr", stderr), mock.patch("sys.stdin", stdin):
            code = cli.main(argv)
        return code, stdout.getvalue(), stderr.getvalue()

    def test_requires_subcommand(self) -> None:
        code, _out, err = self.run_cli([])
        self.assertEqual(code, 2)
        self.assertIn("E_ARGS", err)
        self.assertIn("subcommand", err)

    def test_compile_file_writes_svg(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "input.xml"
            src.write_text(BOXES)
            code, out, err = self.run_cli(["compile", str(src)])
            self.assertEqual(code, 0, err)
            target = Path(td) / "input.svg"
            self.assertTrue(target.exists())
            self.assertIn("Wrote", out)
            root = ET.fromstring(target.read_text())
            self.assertEqual((root.get("width"), root.get("height")), ("280", "60"))

    def test_compile_explicit_output(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            src = Path(td) / "input.xml"
            src.write_text(BOXES)
            dest = Path(td) / "out" / "diagram.svg"
            dest.parent.mkdir()
            code, _out, err = self.run_cli(["compile", str(src), "-o", str(dest)])
            self.assertEqual(code, 0, err)
            self.assertTrue(dest.exists())

    def test_compile_text_to_stdout_routes_line(self) -> None:
        code, out, err = self.run_cli(["compile", "--text", BOXES])
        self.assertEqual(code, 0, err)
        root = ET.fromstring(out)
        line = root.find(f".//{SVG}line")
        self.assertIsNotNone(line)
        self.assertEqual((line.get("x1"), line.get("y1")), ("80", "30"))
        self.assertEqual((line.get("x2"), line.get("y2")), ("200", "30"))
        marker = root.find(f".//{SVG}path")
        self.assertEqual(marker.get("transform"), "matrix(-1 0 0 -1 200 30)")

    def test_compile_from_stdin_with_text(self) -> None:
        src = '<diagram><vbox x="10" y="10" padding="6"><text font-size="12">Hello</text></vbox></diagram>'
        code, out, err = self.run_cli(["compile"], stdin_text=src)
        self.assertEqual(code, 0, err)
        root = ET.fromstring(out)
        self.assertEqual(root.find(f".//{SVG}text").text, "Hello")

    def test_stdout_and_output_conflict(self) -> None:
        code, _out, err = self.run_cli(["compile", "--text", BOXES, "--stdout", "-o", "x.svg"])
        self.assertEqual(code, 2)
        self.assertIn("mutually exclusive", err)

    def test_missing_input_file(self) -> None:
        code, _out, err = self.run_cli(["compile", "/nonexistent/diagram.xml"])
        self.assertEqual(code, 2)
        self.assertIn("E_IO_READ", err)

    def test_parse_error(self) -> None:
        code, _out, err = self.run_cli(["compile", "--text", "<diagram><vbox></diagram>"])
        self.assertEqual(code, 2)
        self.assertIn("E_PARSE_XML", err)

    def test_configuration_error(self) -> None:
        code, _out, err = self.run_cli(["compile", "--text", "<diagram><blob/></diagram>"])
        self.assertEqual(code, 3)
        self.assertIn("E_CONFIG", err)

    def test_non_finite_offset_is_a_configuration_error(self) -> None:
        src = '<diagram><vbox id="a" x="0" y="0"/><vbox align="a inf 0"/></diagram>'
        code, out, err = self.run_cli(["compile", "--text", src])
        self.assertEqual(code, 3)
        self.assertEqual(out, "")
        self.assertIn("E_CONFIG", err)
        self.assertNotIn("E_INTERNAL", err)

    def test_skipped_elements_warn_but_succeed(self) -> None:
        src = '<diagram><vbox id="a" x="0" y="0"/><line from="a" to="ghost"/></diagram>'
        code, out, err = self.run_cli(["compile", "--text", src])
        self.assertEqual(code, 0, err)
        self.assertIn("WARNING", err)
        self.assertIn("ghost", err)
        self.assertIsNone(ET.fromstring(out).find(f".//{SVG}line"))

    def test_strict_fails_on_warnings(self) -> None:
        src = '<diagram><vbox id="a" x="0" y="0"/><line from="a" to="ghost"/></diagram>'
        code, _out, err = self.run_cli(["compile", "--strict", "--text", src])
        self.assertEqual(code, 3)
        self.assertIn("E_WARNINGS", err)

    def test_markers_lists_registry(self) -> None:
        code, out, err = self.run_cli(["markers"])
        self.assertEqual(code, 0, err)
        names = [row.split("\t", 1)[0] for row in out.splitlines()]
        self.assertIn("arrow", names)
        self.assertEqual(names, sorted(names))

    def test_error_format_json_shape(self) -> None:
        code, _out, err = self.run_cli(["--error-format", "json", "compile", "--text", "<diagram><blob/></diagram>"])
        self.assertEqual(code, 3)
        payload = json.loads(err.strip().splitlines()[-1])
        self.assertFalse(payload["ok"])
        self.assertEqual(payload["code"], "E_CONFIG")
        for key in ("message", "file", "line", "column", "hint", "retryable"):
            self.assertIn(key, payload)


if __name__ == "__main__":
    unittest.main()
