import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from bootcamp.exercise import Exercise, Mode
from bootcamp.run import run
from bootcamp.verify import ExerciseFailed

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
PENDING_TEST = "// I AM NOT DONE\n\n#[test]\nfn it_works() {}\n"


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("NO_EMOJI", "1")
    monkeypatch.delenv("CLICOLOR_FORCE", raising=False)
    (tmp_path / "pending_exercise.rs").write_text(PENDING)
    (tmp_path / "pending_test_exercise.rs").write_text(PENDING_TEST)
    return tmp_path


def _fake(compile_code=0, run_code=0, run_stdout=b"", run_stderr=b""):
    calls = []

    def fake(args, **kwargs):
        calls.append(list(args))
        if args[0] in ("rustc", "cargo"):
            return subprocess.CompletedProcess(args, compile_code, b"", b"expected pattern")
        return subprocess.CompletedProcess(args, run_code, run_stdout, run_stderr)

    return fake, calls


def test_run_compile_exercise_does_not_prompt(workdir, capsys):
    exercise = Exercise("pending_exercise", Path("pending_exercise.rs"), Mode.COMPILE, "")
    fake, _ = _fake(run_stdout=b"program output")
    with patch("subprocess.run", side_effect=fake):
        assert run(exercise, False) is None
    out = capsys.readouterr().out
    assert "I AM NOT DONE" not in out
    assert "program output" in out
    assert "Successfully ran pending_exercise.rs" in out


def test_run_test_exercise_does_not_prompt(workdir, capsys):
    exercise = Exercise(
        "pending_test_exercise", Path("pending_test_exercise.rs"), Mode.TEST, ""
    )
    fake, calls = _fake()
    with patch("subprocess.run", side_effect=fake):
        run(exercise, False)
    assert "I AM NOT DONE" not in capsys.readouterr().out
    assert calls[0][:2] == ["rustc", "--test"]


def test_run_single_test_success_with_output(workdir, capsys):
    exercise = Exercise("testSuccess", Path("pending_test_exercise.rs"), Mode.TEST, "")
    fake, _ = _fake(run_stdout=b"THIS TEST TOO SHALL PASS")
    with patch("subprocess.run", side_effect=fake):
        run(exercise, True)
    assert "THIS TEST TOO SHALL PAS" in capsys.readouterr().out


def test_run_single_test_success_without_output(workdir, capsys):
    exercise = Exercise("testSuccess", Path("pending_test_exercise.rs"), Mode.TEST, "")
    fake, _ = _fake(run_stdout=b"THIS TEST TOO SHALL PASS")
    with patch("subprocess.run", side_effect=fake):
        run(exercise, False)
    assert "THIS TEST TOO SHALL PAS" not in capsys.readouterr().out


def test_run_single_compile_failure(workdir, capsys):
    exercise = Exercise("compFailure", Path("pending_exercise.rs"), Mode.COMPILE, "")
    fake, _ = _fake(compile_code=1)
    with patch("subprocess.run", side_effect=fake):
        with pytest.raises(ExerciseFailed) as info:
            run(exercise, False)
    assert info.value.exercise is exercise
    assert "expected pattern" in capsys.readouterr().out


def test_run_single_test_not_passed(workdir):
    exercise = Exercise("testNotPassed", Path("pending_test_exercise.rs"), Mode.TEST, "")
    fake, _ = _fake(run_code=101)
    with patch("subprocess.run", side_effect=fake):
        with pytest.raises(ExerciseFailed):
            run(exercise, False)


def test_run_binary_with_errors(workdir, capsys):
    exercise = Exercise("panics", Path("pending_exercise.rs"), Mode.COMPILE, "")
    fake, _ = _fake(run_code=101, run_stdout=b"partial", run_stderr=b"panicked")
    with patch("subprocess.run", side_effect=fake):
        with pytest.raises(ExerciseFailed):
            run(exercise, False)
    out = capsys.readouterr().out
    assert "partial" in out
    assert "panicked" in out
    assert "Ran pending_exercise.rs with errors" in out


def test_run_clippy_exercise_runs_binary(workdir, capsys):
    (workdir / "exercises" / "clippy").mkdir(parents=True)
    exercise = Exercise("clippy1", Path("pending_exercise.rs"), Mode.CLIPPY, "")
    fake, calls = _fake(run_stdout=b"clippy output")
    with patch("subprocess.run", side_effect=fake):
        run(exercise, False)
    assert "clippy output" in capsys.readouterr().out
    assert calls[-1][0].startswith("./temp_")