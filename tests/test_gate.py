"""CommandGate のテスト。"""

from doubles import RecordingRunner, ScriptedUi

from gitwizard.gate import CONFIRM_EXECUTE, CommandGate, ProposedCommand, subprocess_runner


def test_approved_command_runs_and_returns_exit_code() -> None:
    ui = ScriptedUi()
    runner = RecordingRunner(codes={"git pull --ff-only": 128})
    gate = CommandGate(ui, runner)

    rc = gate.execute(["git", "pull", "--ff-only"])

    assert rc == 128
    assert runner.calls == ["git pull --ff-only"]
    assert ui.last_command == "git pull --ff-only"
    assert gate.history[0].approved is True
    assert gate.history[0].exit_code == 128
    assert "128" in ui.text("info")


def test_declined_command_is_skipped_and_returns_zero() -> None:
    ui = ScriptedUi(answers={CONFIRM_EXECUTE: [False]})
    runner = RecordingRunner()
    gate = CommandGate(ui, runner)

    assert gate.execute(["git", "push", "--force-with-lease"]) == 0
    assert runner.calls == []
    assert gate.history[0].approved is False
    assert gate.history[0].exit_code is None
    assert gate.executed() == []


def test_default_answer_is_per_call_site() -> None:
    ui = ScriptedUi()
    runner = RecordingRunner()
    gate = CommandGate(ui, runner)

    gate.execute(["git", "restore", "-SW", "."], default=False)

    assert runner.calls == []
    assert ui.confirms == [(CONFIRM_EXECUTE, False)]


def test_repeated_queries_are_independent() -> None:
    ui = ScriptedUi()
    runner = RecordingRunner()
    gate = CommandGate(ui, runner)

    for _ in range(3):
        assert gate.execute(["git", "status", "-sb"]) == 0
    assert runner.calls == ["git status -sb"] * 3
    assert len(gate.history) == 3


def test_proposed_command_text_is_shell_quoted() -> None:
    cmd = ProposedCommand(argv=["git", "commit", "-m", "fix menu"])
    assert cmd.text == "git commit -m 'fix menu'"


def test_subprocess_runner_missing_executable() -> None:
    assert subprocess_runner(["gitwizard-definitely-missing-binary"]) == 127
