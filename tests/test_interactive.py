import os
import tempfile
import unittest
from io import StringIO
from unittest.mock import MagicMock, patch

from rich.console import Console

from shellmancer.ai.assistants.interactive import InteractiveShell, ShellState
from shellmancer.config import Config
from shellmancer.execution import POSIX, CommandOutcome, command_exists


class InteractiveShellTestCase(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self.output = StringIO()
        self.agent = MagicMock()
        self.agent.ask.return_value = "A pipe connects two commands."
        self.executor = MagicMock()
        self.history = MagicMock()
        # Only `ls` and `echo` are known commands.
        self.probe = MagicMock(side_effect=lambda token, cwd: token in ("ls", "echo"))
        self.shell = InteractiveShell(
            Config(provider="test", model="test-model"),
            agent=self.agent,
            automation_agent=MagicMock(),
            executor=self.executor,
            history=self.history,
            probe=self.probe,
            console=Console(file=self.output, width=200),
            cwd=self.tmpdir.name,
            platform=POSIX,
        )


class TestHandleLine(InteractiveShellTestCase):
    def test_exit_ends_session_without_recording(self):
        self.assertFalse(self.shell.handle_line("EXIT"))

        self.assertEqual(self.shell.state, ShellState.TERMINATED)
        self.history.append.assert_not_called()

    def test_blank_line_is_ignored(self):
        self.assertTrue(self.shell.handle_line("   "))
        self.probe.assert_not_called()
        self.history.append.assert_not_called()

    def test_query_grows_conversation(self):
        # Act
        self.shell.handle_line("what is a pipe in linux")

        # Assert
        self.assertEqual(len(self.shell.conversation), 2)
        self.agent.ask.assert_called_once_with("User: what is a pipe in linux")
        self.assertIn("A pipe connects two commands.", self.output.getvalue())
        self.history.append.assert_called_once_with("what is a pipe in linux")
        self.assertEqual(self.shell.state, ShellState.READING)

    def test_follow_up_sends_whole_conversation(self):
        self.shell.handle_line("what is a pipe")
        self.agent.ask.return_value = "Yes."
        self.shell.handle_line("can it be chained")

        self.agent.ask.assert_called_with(
            "User: what is a pipe\n"
            "Assistant: A pipe connects two commands.\n"
            "User: can it be chained"
        )
        self.assertEqual(len(self.shell.conversation), 4)

    def test_no_response_keeps_only_question(self):
        self.agent.ask.return_value = None

        self.assertTrue(self.shell.handle_line("hello there"))

        self.assertIn("No response from the model.", self.output.getvalue())
        self.assertEqual(len(self.shell.conversation), 1)

    def test_os_command_runs_in_session_directory(self):
        self.executor.run_command.return_value = CommandOutcome("ls -la", 0)

        self.shell.handle_line("ls -la")

        self.executor.run_command.assert_called_once_with("ls -la", cwd=self.tmpdir.name)
        self.agent.ask.assert_not_called()

    def test_os_command_stderr_is_shown(self):
        self.executor.run_command.return_value = CommandOutcome(
            "ls nope", 2, error="no such file", stderr="ls: nope: No such file or directory\n"
        )

        self.shell.handle_line("ls nope")

        self.assertIn("ls: nope: No such file or directory", self.output.getvalue())

    @patch("shellmancer.ai.assistants.interactive.automation.automate")
    def test_automate_uses_session_directory(self, mock_automate):
        self.shell.handle_line("automate create a folder")

        mock_automate.assert_called_once()
        self.assertEqual(mock_automate.call_args.args[1], "create a folder")
        self.assertEqual(mock_automate.call_args.kwargs["cwd"], self.tmpdir.name)
        self.assertIs(mock_automate.call_args.kwargs["executor"], self.executor)

    @patch("shellmancer.ai.assistants.interactive.system_info")
    def test_system_info(self, mock_system_info):
        self.shell.handle_line("system-info")
        mock_system_info.assert_called_once_with(self.shell.console)


class TestBuiltins(InteractiveShellTestCase):
    def test_cd_updates_session_directory_only(self):
        subdir = os.path.join(self.tmpdir.name, "sub")
        os.mkdir(subdir)
        process_cwd = os.getcwd()

        self.shell.handle_line("cd sub")

        self.assertEqual(self.shell.cwd, subdir)
        self.assertEqual(os.getcwd(), process_cwd)
        self.assertIn("Changed directory to", self.output.getvalue())
        self.probe.assert_not_called()

    @unittest.skipIf(os.name == "nt", "requires POSIX permissions")
    def test_relative_command_resolves_from_session_directory(self):
        subdir = os.path.join(self.tmpdir.name, "sub")
        os.mkdir(subdir)
        script = os.path.join(subdir, "run.sh")
        with open(script, "w") as f:
            f.write("#!/bin/sh\necho ran\n")
        os.chmod(script, 0o755)
        self.shell.probe = command_exists
        self.executor.run_command.return_value = CommandOutcome("./run.sh", 0)

        self.shell.handle_line("cd sub")
        self.shell.handle_line("./run.sh")

        self.executor.run_command.assert_called_once_with("./run.sh", cwd=subdir)
        self.agent.ask.assert_not_called()

    def test_cd_to_missing_directory(self):
        self.shell.handle_line("cd missing")

        self.assertEqual(self.shell.cwd, os.path.abspath(self.tmpdir.name))
        self.assertIn("Error changing directory", self.output.getvalue())

    def test_cd_to_file(self):
        open(os.path.join(self.tmpdir.name, "file.txt"), "w").close()

        self.shell.handle_line("cd file.txt")

        self.assertIn("Error changing directory", self.output.getvalue())

    def test_list_files(self):
        for name in ("b.txt", "a.txt"):
            open(os.path.join(self.tmpdir.name, name), "w").close()

        self.shell.handle_line("list files")

        text = self.output.getvalue()
        self.assertIn(f"Files in {os.path.abspath(self.tmpdir.name)}:", text)
        self.assertLess(text.index("a.txt"), text.index("b.txt"))

    def test_list_files_error(self):
        self.shell.handle_line("list files does-not-exist")

        self.assertIn("Error listing files in", self.output.getvalue())


class TestRun(InteractiveShellTestCase):
    def test_exit_deletes_history(self):
        with patch.object(self.shell.console, "input", side_effect=["hello", "exit"]):
            result = self.shell.run()

        self.assertEqual(result, 0)
        self.history.load.assert_called_once()
        self.history.attach_to_readline.assert_called_once()
        self.history.delete.assert_called_once()
        self.assertEqual(self.shell.state, ShellState.TERMINATED)
        self.assertIn("Exiting shellmancer interactive mode...", self.output.getvalue())

    def test_end_of_input_ends_session(self):
        with patch.object(self.shell.console, "input", side_effect=EOFError):
            self.assertEqual(self.shell.run(), 0)

        self.history.delete.assert_called_once()

    def test_interrupt_ends_session(self):
        with patch.object(self.shell.console, "input", side_effect=KeyboardInterrupt):
            self.assertEqual(self.shell.run(), 0)

        self.assertIn("shellmancer interrupted, exiting...", self.output.getvalue())
        self.history.delete.assert_called_once()


if __name__ == "__main__":
    unittest.main()
