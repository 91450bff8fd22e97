"""
Tests for the CLI entry point.

These tests focus on:
- the `url` command printing exactly the composed URL on stdout
- exit codes for setup problems (no data source, no permission, no base URL)
- filter flags that are rejected by the settings (disabled facet)
- --copy going through the clipboard
"""

import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from regurl.cli import main

FIXTURE = Path(__file__).resolve().parent / "fixtures" / "sample_data.json"
BASE = "https://register.example.org"


def _run(argv: list[str]) -> tuple[int, str]:
    out = io.StringIO()
    with redirect_stdout(out), redirect_stderr(io.StringIO()):
        try:
            main(argv)
        except SystemExit as e:
            return e.code, out.getvalue()
    raise AssertionError("main() did not exit")


class TestCLI(unittest.TestCase):
    def test_program_url(self) -> None:
        code, out = _run(
            ["--data", str(FIXTURE), "url", "-r", "p01", "-t", "program", "--location", "Main Pool"]
        )
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), f"{BASE}?program=Swim%20Team&Location=Main%20Pool")

    def test_course_url_with_days_and_age(self) -> None:
        code, out = _run(
            ["--data", str(FIXTURE), "url", "-r", "c01", "-t", "course", "--day", "Monday", "--day", "Friday", "--age", "8"]
        )
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), f'{BASE}?course=Intro&filters={{"dayOfWeek":["Monday","Friday"],"age":8}}')

    def test_course_session_url(self) -> None:
        code, out = _run(
            [
                "--data",
                str(FIXTURE),
                "--registration-path",
                "/s/registration",
                "url",
                "-r",
                "a01",
                "-t",
                "course_session",
                "--course-option-id",
                "opt1",
            ]
        )
        self.assertEqual(code, 0)
        self.assertEqual(out.strip(), f"{BASE}/registration?courseSessionId=a01&courseOptionId=opt1")

    def test_missing_data_source(self) -> None:
        code, out = _run(["url", "-r", "p01", "-t", "program"])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    def test_disabled_facet_flag(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            settings = Path(d) / "settings.json"
            settings.write_text(json.dumps({"facets": {"age": False}}), encoding="utf-8")
            code, _ = _run(
                ["--settings", str(settings), "--data", str(FIXTURE), "url", "-r", "c01", "-t", "course", "--age", "8"]
            )
        self.assertEqual(code, 2)

    def test_no_permission(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            settings = Path(d) / "settings.json"
            settings.write_text(json.dumps({"canGetPublicUrl": False}), encoding="utf-8")
            code, out = _run(["--settings", str(settings), "--data", str(FIXTURE), "url", "-r", "p01", "-t", "program"])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    def test_missing_base_url(self) -> None:
        data = json.loads(FIXTURE.read_text(encoding="utf-8"))
        del data["baseUrl"]
        with tempfile.TemporaryDirectory() as d:
            p = Path(d) / "data.json"
            p.write_text(json.dumps(data), encoding="utf-8")
            code, out = _run(["--data", str(p), "url", "-r", "p01", "-t", "program"])
        self.assertEqual(code, 1)
        self.assertEqual(out.strip(), "?program=Swim%20Team")

    def test_copy_flag(self) -> None:
        with mock.patch("regurl.actions.pyperclip.copy") as copy:
            code, out = _run(["--data", str(FIXTURE), "url", "-r", "a01", "-t", "course_session", "--copy"])
        self.assertEqual(code, 0)
        copy.assert_called_once_with(f"{BASE}?courseSessionId=a01")
        self.assertEqual(out.strip(), f"{BASE}?courseSessionId=a01")

    def test_options_command(self) -> None:
        code, _ = _run(["--data", str(FIXTURE), "options", "-r", "a01", "-t", "course_session"])
        self.assertEqual(code, 0)

    def test_record_id_required(self) -> None:
        code, _ = _run(["--data", str(FIXTURE), "url", "-t", "program"])
        self.assertNotEqual(code, 0)


if __name__ == "__main__":
    unittest.main()
