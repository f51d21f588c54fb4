from __future__ import annotations

import io
import json
import os
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

import yaml

from envfile import registry
from envfile.cli import main


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        patcher = mock.patch.dict(os.environ)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(registry.clear)

        self.env_path = self.root / "app.env"
        self.env_path.write_text(
            "\n".join(
                [
                    "# app settings",
                    "CLI_HOST = localhost # dev box",
                    'CLI_API_KEY="s3cr3t"',
                    "CLI_QUOTED='a b'",
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    def _run(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_show_redacts_secrets_and_leaves_environment_alone(self) -> None:
        code, out, _ = self._run("show", str(self.env_path))

        self.assertEqual(code, 0)
        self.assertEqual(
            yaml.safe_load(out),
            {"CLI_HOST": "localhost", "CLI_API_KEY": "REDACTED", "CLI_QUOTED": "a b"},
        )
        self.assertNotIn("CLI_HOST", os.environ)

    def test_show_json_reveal_with_flags(self) -> None:
        code, out, _ = self._run("show", "--reveal", "--format", "json", "--keep-quotes", str(self.env_path))

        self.assertEqual(code, 0)
        self.assertEqual(
            json.loads(out),
            {"CLI_HOST": "localhost", "CLI_API_KEY": '"s3cr3t"', "CLI_QUOTED": "'a b'"},
        )

    def test_show_writes_out_file(self) -> None:
        target = self.root / "entries.yaml"
        code, out, _ = self._run("show", "--out", str(target), str(self.env_path))

        self.assertEqual(code, 0)
        self.assertEqual(out, "")
        self.assertEqual(yaml.safe_load(target.read_text(encoding="utf-8"))["CLI_HOST"], "localhost")

    def test_load_prints_keys(self) -> None:
        code, out, _ = self._run("load", str(self.env_path))

        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["CLI_HOST", "CLI_API_KEY", "CLI_QUOTED"])
        self.assertEqual(os.environ["CLI_API_KEY"], "s3cr3t")

    def test_load_respects_option_profile(self) -> None:
        os.environ["CLI_HOST"] = "preset"
        profile = self.root / "options.yaml"
        profile.write_text("overwrite: false\n", encoding="utf-8")

        code, out, _ = self._run("load", "--options", str(profile), str(self.env_path))

        self.assertEqual(code, 0)
        self.assertEqual(os.environ["CLI_HOST"], "preset")
        self.assertNotIn("CLI_HOST", out.splitlines())

    def test_missing_file_exits_nonzero(self) -> None:
        with self.assertLogs("envfile.registry", level="ERROR"):
            code, _, err = self._run("load", str(self.root / "missing.env"))

        self.assertEqual(code, 1)
        self.assertIn("Could not open the .env file", err)

        code, _, err = self._run("show", str(self.root / "missing.env"))
        self.assertEqual(code, 1)
        self.assertIn("cannot read", err)

    def test_bad_option_profile_exits_nonzero(self) -> None:
        profile = self.root / "bad.yaml"
        profile.write_text("expand: true\n", encoding="utf-8")

        code, _, err = self._run("show", "--options", str(profile), str(self.env_path))

        self.assertEqual(code, 1)
        self.assertIn("unknown option", err)

    def test_run_passes_loaded_environment_to_command(self) -> None:
        script = "import os, sys; sys.exit(0 if os.environ.get('CLI_QUOTED') == 'a b' else 3)"
        code, _, _ = self._run("run", str(self.env_path), "--", sys.executable, "-c", script)
        self.assertEqual(code, 0)

        code, _, _ = self._run("run", str(self.env_path), "--", sys.executable, "-c", "import sys; sys.exit(5)")
        self.assertEqual(code, 5)


if __name__ == "__main__":
    unittest.main()
