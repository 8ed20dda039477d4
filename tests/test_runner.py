"""Unit tests for the post-generation command runner (scaffoldgen.runner).

Tests cover:
- Sequential execution with combined stdout/stderr capture
- Working directory handling
- Non-zero exits and start failures raising CommandFailure
- Cancellation before start and while a command is running
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from scaffoldgen.errors import CommandFailure
from scaffoldgen.plan.models import CommandEntry
from scaffoldgen.runner import CommandResult, CommandRunner


def _py(code: str) -> CommandEntry:
    return CommandEntry(name=sys.executable, args=("-c", code))


# ---------------------------------------------------------------------------
# Success paths
# ---------------------------------------------------------------------------


class TestRunSuccess:
    @pytest.mark.unit
    async def test_captures_stdout_and_stderr(self):
        code = "import sys; print('out'); sys.stdout.flush(); sys.stderr.write('err\\n')"
        result = await CommandRunner().run(_py(code))
        assert isinstance(result, CommandResult)
        assert result.returncode == 0
        assert "out" in result.output
        assert "err" in result.output

    @pytest.mark.unit
    async def test_runs_in_cwd(self, tmp_path: Path):
        result = await CommandRunner(cwd=tmp_path).run(_py("import os; print(os.getcwd())"))
        assert Path(result.output.strip()).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    async def test_run_all_is_sequential(self, tmp_path: Path):
        commands = [
            _py("open('log', 'a').write('1')"),
            _py("open('log', 'a').write('2')"),
            _py("open('log', 'a').write('3')"),
        ]
        results = await CommandRunner(cwd=tmp_path).run_all(commands)
        assert len(results) == 3
        assert (tmp_path / "log").read_text() == "123"

    @pytest.mark.unit
    async def test_run_all_empty(self):
        assert await CommandRunner().run_all([]) == []

    @pytest.mark.unit
    def test_command_line(self):
        result = CommandResult(name="git", args=["init", "-q"])
        assert result.command_line == "git init -q"


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestRunFailure:
    @pytest.mark.unit
    async def test_non_zero_exit(self):
        with pytest.raises(CommandFailure) as exc_info:
            await CommandRunner().run(_py("import sys; print('bad'); sys.exit(2)"))
        err = exc_info.value
        assert err.returncode == 2
        assert "bad" in err.output
        assert "exit 2" in str(err)

    @pytest.mark.unit
    async def test_missing_executable(self):
        cmd = CommandEntry(name="nonexistent-binary-12345-xyz")
        with pytest.raises(CommandFailure, match="not found") as exc_info:
            await CommandRunner().run(cmd)
        assert exc_info.value.command == "nonexistent-binary-12345-xyz"

    @pytest.mark.unit
    async def test_stops_at_first_failure(self, tmp_path: Path):
        commands = [
            _py("import sys; sys.exit(1)"),
            _py("open('after', 'w').close()"),
        ]
        with pytest.raises(CommandFailure):
            await CommandRunner(cwd=tmp_path).run_all(commands)
        assert not (tmp_path / "after").exists()


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancellation:
    @pytest.mark.unit
    async def test_cancelled_before_start(self, tmp_path: Path):
        event = asyncio.Event()
        event.set()
        with pytest.raises(CommandFailure, match="cancelled"):
            await CommandRunner(cwd=tmp_path, cancel_event=event).run(
                _py("open('ran', 'w').close()")
            )
        assert not (tmp_path / "ran").exists()

    @pytest.mark.unit
    async def test_cancel_kills_running_command(self):
        event = asyncio.Event()
        runner = CommandRunner(cancel_event=event)
        loop = asyncio.get_running_loop()
        loop.call_later(0.2, event.set)
        start = loop.time()
        with pytest.raises(CommandFailure, match="cancelled"):
            await runner.run(_py("import time; time.sleep(30)"))
        assert loop.time() - start < 10

    @pytest.mark.unit
    async def test_event_unset_lets_command_finish(self):
        event = asyncio.Event()
        result = await CommandRunner(cancel_event=event).run(_py("print('done')"))
        assert "done" in result.output
