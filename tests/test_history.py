import importlib
import os
import sys
import tempfile
import unittest
from unittest.mock import patch

from shellmancer.execution import history as history_module
from shellmancer.execution.history import CommandHistory, MAX_HISTORY_SIZE


class TestCommandHistory(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.path = os.path.join(self.tmpdir.name, "history")

    def _write_lines(self, lines):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("\n".join(lines) + "\n")

    def test_load_keeps_most_recent_entries(self):
        self._write_lines([f"command {i}" for i in range(1200)])

        entries = CommandHistory(self.path).load()

        self.assertEqual(len(entries), MAX_HISTORY_SIZE)
        self.assertEqual(entries[0], "command 200")
        self.assertEqual(entries[-1], "command 1199")

    def test_load_skips_blank_lines(self):
        self._write_lines(["ls", "", "   ", "pwd"])
        self.assertEqual(CommandHistory(self.path).load(), ["ls", "pwd"])

    def test_load_missing_file(self):
        self.assertEqual(CommandHistory(self.path).load(), [])

    def test_append_skips_consecutive_duplicates(self):
        history = CommandHistory(self.path)

        self.assertTrue(history.append("ls"))
        self.assertFalse(history.append("ls"))
        self.assertTrue(history.append("pwd"))
        self.assertTrue(history.append("ls"))

        self.assertEqual(history.entries, ["ls", "pwd", "ls"])
        with open(self.path, encoding="utf-8") as f:
            self.assertEqual(f.read().splitlines(), ["ls", "pwd", "ls"])

    def test_append_caps_in_memory_entries(self):
        history = CommandHistory(self.path, max_size=3)
        for line in ("a", "b", "c", "d"):
            history.append(line)
        self.assertEqual(history.entries, ["b", "c", "d"])

    def test_delete_removes_file(self):
        history = CommandHistory(self.path)
        history.append("ls")

        history.delete()

        self.assertFalse(os.path.exists(self.path))

    def test_io_errors_are_logged_not_raised(self):
        history = CommandHistory(os.path.join(self.tmpdir.name, "missing-dir", "history"))

        with self.assertLogs("shellmancer.execution.history", level="WARNING") as logs:
            history.append("ls")

        self.assertIn("Could not save history", logs.output[0])
        self.assertEqual(history.entries, ["ls"])

    @patch("shellmancer.execution.history.os.remove", side_effect=PermissionError("denied"))
    def test_delete_failure_is_a_warning(self, mock_remove):
        self._write_lines(["ls"])

        with self.assertLogs("shellmancer.execution.history", level="WARNING"):
            CommandHistory(self.path).delete()

    @patch("shellmancer.execution.history.readline")
    def test_attach_to_readline(self, mock_readline):
        history = CommandHistory(self.path)
        history.entries = ["ls", "pwd"]

        history.attach_to_readline()

        mock_readline.clear_history.assert_called_once()
        mock_readline.set_history_length.assert_called_once_with(MAX_HISTORY_SIZE)
        self.assertEqual(
            [c.args[0] for c in mock_readline.add_history.call_args_list], ["ls", "pwd"]
        )

    @patch("shellmancer.execution.history.readline")
    def test_collapse_readline_duplicate(self, mock_readline):
        items = {1: "ls", 2: "ls"}
        mock_readline.get_current_history_length.return_value = 2
        mock_readline.get_history_item.side_effect = items.get

        CommandHistory.collapse_readline_duplicate()

        mock_readline.remove_history_item.assert_called_once_with(1)

    @patch("shellmancer.execution.history.readline", None)
    def test_readline_calls_are_skipped_without_readline(self):
        history = CommandHistory(self.path)
        history.entries = ["ls"]

        history.attach_to_readline()
        CommandHistory.collapse_readline_duplicate()

    def test_module_imports_without_readline(self):
        self.addCleanup(importlib.reload, history_module)

        with patch.dict(sys.modules, {"readline": None}):
            module = importlib.reload(history_module)

        self.assertIsNone(module.readline)
        history = module.CommandHistory(self.path)
        history.append("dir")
        history.attach_to_readline()
        self.assertEqual(history.load(), ["dir"])


if __name__ == "__main__":
    unittest.main()
