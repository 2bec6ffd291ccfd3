from __future__ import annotations

import io
import unittest
from contextlib import redirect_stdout

from _testutil import ensure_repo_on_path


class TestFilterRelevantModules(unittest.TestCase):
    def test_keeps_mapped_modules_in_detection_order(self) -> None:
        ensure_repo_on_path()

        from ecs_sync.modules import filter_relevant_modules

        mapping = {"alerts": "index-template-alerts.json", "states-fim": "index-template-fim.json"}
        with redirect_stdout(io.StringIO()) as out:
            relevant, skipped = filter_relevant_modules(["alerts", "unknown-module", "states-fim"], mapping)

        self.assertEqual(relevant, ["alerts", "states-fim"])
        self.assertEqual(skipped, ["unknown-module"])
        lines = [ln for ln in out.getvalue().splitlines() if "unknown-module" in ln]
        self.assertEqual(len(lines), 1)
        self.assertIn("skipping", lines[0])

    def test_membership_is_exact(self) -> None:
        ensure_repo_on_path()

        from ecs_sync.modules import filter_relevant_modules

        mapping = {"states-fim": "index-template-fim.json"}
        with redirect_stdout(io.StringIO()):
            relevant, skipped = filter_relevant_modules(["states", "states-fim-extra", "fim", "states-fim"], mapping)

        self.assertEqual(relevant, ["states-fim"])
        self.assertEqual(skipped, ["states", "states-fim-extra", "fim"])

    def test_duplicates_reported_once(self) -> None:
        ensure_repo_on_path()

        from ecs_sync.modules import filter_relevant_modules

        with redirect_stdout(io.StringIO()):
            relevant, skipped = filter_relevant_modules(["agent", "agent", "x", "x"], {"agent": "index-template-agent.json"})

        self.assertEqual(relevant, ["agent"])
        self.assertEqual(skipped, ["x"])


if __name__ == "__main__":
    unittest.main()
