import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from bootcamp.exercise import (
    CompilationError,
    ContextLine,
    Exercise,
    Mode,
    clean,
    load_exercises,
    temp_file,
)

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "pending_exercise.rs").write_text(PENDING)
    (tmp_path / "finished_exercise.rs").write_text(FINISHED)
    return tmp_path


def _fake(compile_code=0, run_code=0, run_stdout=b"", compile_stderr=b""):
    calls = []

    def fake(args, **kwargs):
        calls.append(list(args))
        if args[0] in ("rustc", "cargo"):
            return subprocess.CompletedProcess(args, compile_code, b"", compile_stderr)
        return subprocess.CompletedProcess(args, run_code, run_stdout, b"")

    return fake, calls


def test_clean(workdir):
    Path(temp_file()).touch()
    exercise = Exercise("example", Path("pending_exercise.rs"), Mode.COMPILE, "")
    fake, _ = _fake()
    with patch("subprocess.run", side_effect=fake):
        compiled = exercise.compile()
    compiled.close()
    assert not Path(temp_file()).exists()


def test_context_manager_cleans(workdir):
    Path(temp_file()).touch()
    exercise = Exercise("example", Path("pending_exercise.rs"), Mode.COMPILE, "")
    fake, _ = _fake()
    with patch("subprocess.run", side_effect=fake):
        with exercise.compile():
            assert Path(temp_file()).exists()
    assert not Path(temp_file()).exists()


def test_pending_state(workdir):
    exercise = Exercise("pending_exercise", Path("pending_exercise.rs"), Mode.COMPILE, "")
    expected = [
        ContextLine("// fake_exercise", 1, False),
        ContextLine("", 2, False),
        ContextLine("// I AM NOT DONE", 3, True),
        ContextLine("", 4, False),
        ContextLine("fn main() {", 5, False),
    ]
    assert exercise.state() == expected
    assert exercise.looks_done() is False


def test_finished_exercise(workdir):
    exercise = Exercise("finished_exercise", Path("finished_exercise.rs"), Mode.COMPILE, "")
    assert exercise.state() is None
    assert exercise.looks_done() is True


def test_marker_on_first_line_has_no_lines_before(tmp_path):
    path = tmp_path / "first.rs"
    path.write_text("// I AM NOT DONE\n\n#[test]\nfn it_works() {}\n")
    state = Exercise("first", path, Mode.TEST, "").state()
    assert [line.number for line in state] == [1, 2, 3]
    assert state[0].important


def test_exercise_with_output(workdir):
    exercise = Exercise("exercise_with_output", Path("pending_exercise.rs"), Mode.TEST, "")
    fake, calls = _fake(run_stdout=b"THIS TEST TOO SHALL PASS\n")
    with patch("subprocess.run", side_effect=fake):
        with exercise.compile() as compiled:
            out = compiled.run()
    assert "THIS TEST TOO SHALL PASS" in out.stdout
    assert out.success
    assert calls[0][:2] == ["rustc", "--test"]
    assert calls[1] == [temp_file(), "--show-output"]


def test_compile_failure_raises_and_cleans(workdir):
    Path(temp_file()).touch()
    exercise = Exercise("broken", Path("pending_exercise.rs"), Mode.COMPILE, "")
    fake, _ = _fake(compile_code=1, compile_stderr=b"error: expected pattern")
    with patch("subprocess.run", side_effect=fake):
        with pytest.raises(CompilationError) as info:
            exercise.compile()
    assert info.value.output.stderr == "error: expected pattern"
    assert info.value.output.success is False
    assert not Path(temp_file()).exists()


def test_run_failure_is_reported(workdir):
    exercise = Exercise("failing", Path("pending_exercise.rs"), Mode.COMPILE, "")
    fake, calls = _fake(run_code=101)
    with patch("subprocess.run", side_effect=fake):
        with exercise.compile() as compiled:
            out = compiled.run()
    assert out.success is False
    assert calls[1] == [temp_file()]


def test_clippy_writes_cargo_toml(workdir):
    (workdir / "exercises" / "clippy").mkdir(parents=True)
    exercise = Exercise("clippy1", Path("pending_exercise.rs"), Mode.CLIPPY, "")
    fake, calls = _fake(run_stdout=b"clippy ran\n")
    with patch("subprocess.run", side_effect=fake):
        with exercise.compile() as compiled:
            out = compiled.run()
    assert out.success is True
    assert out.stdout == "clippy ran\n"
    toml = (workdir / "exercises" / "clippy" / "Cargo.toml").read_text()
    assert 'name = "clippy1"' in toml
    assert 'path = "clippy1.rs"' in toml
    assert [call[:2] for call in calls[:3]] == [
        ["rustc", "pending_exercise.rs"],
        ["cargo", "clean"],
        ["cargo", "clippy"],
    ]
    assert calls[2][-5:] == ["--", "-D", "warnings", "-D", "clippy::float_cmp"]
    assert calls[3] == [temp_file()]


def test_clean_without_file_is_silent(workdir):
    clean()
    assert not Path(temp_file()).exists()


def test_load_exercises():
    text = """
[[exercises]]
name = "variables1"
path = "exercises/variables/variables1.rs"
mode = "compile"
hint = "Hello!"

[[exercises]]
name = "tests1"
path = "exercises/tests/tests1.rs"
mode = "test"
hint = ""
"""
    exercises = load_exercises(text)
    assert [e.name for e in exercises] == ["variables1", "tests1"]
    assert exercises[0].mode is Mode.COMPILE
    assert exercises[1].mode is Mode.TEST
    assert exercises[0].hint == "Hello!"
    assert str(exercises[0]) == str(Path("exercises/variables/variables1.rs"))


def test_load_exercises_bad_mode():
    text = '[[exercises]]\nname = "a"\npath = "a.rs"\nmode = "bogus"\nhint = ""\n'
    with pytest.raises(ValueError):
        load_exercises(text)


def test_load_exercises_missing_field():
    with pytest.raises(ValueError):
        load_exercises('[[exercises]]\nname = "a"\npath = "a.rs"\nmode = "test"\n')


def test_load_exercises_missing_list():
    with pytest.raises(ValueError):
        load_exercises("")