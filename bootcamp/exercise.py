"""Exercises: how they are described, compiled, run and checked for completion."""

import enum
import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from pathlib import Path

RUSTC_COLOR_ARGS = ("--color", "always")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"


def temp_file():
    """Name of the binary built for the current process and thread."""
    return f"./temp_{os.getpid()}_{threading.get_ident()}"


def clean():
    """Remove the built binary, if there is one."""
    try:
        os.remove(temp_file())
    except OSError:
        pass


class Mode(enum.Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"


@dataclass(frozen=True)
class ContextLine:
    """A source line around the pending marker of an exercise."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured output of a compiler or of a built binary."""

    stdout: str
    stderr: str
    success: bool = True


class CompilationError(Exception):
    """Raised when an exercise fails to compile."""

    def __init__(self, output):
        super().__init__(output.stderr)
        self.output = output


def _decode(data):
    return (data or b"").decode("utf-8", errors="replace")


def _execute(args):
    return subprocess.run(args, capture_output=True, check=False)


def _lines(source):
    parts = source.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


@dataclass
class Exercise:
    """One exercise as listed in the exercise catalogue."""

    name: str
    path: Path
    mode: Mode
    hint: str

    def __post_init__(self):
        self.path = Path(self.path)
        self.mode = Mode(self.mode)

    def __str__(self):
        return str(self.path)

    def compile(self):
        """Build the exercise; raise CompilationError if the build fails."""
        target = temp_file()
        if self.mode is Mode.COMPILE:
            result = _execute(["rustc", str(self.path), "-o", target, *RUSTC_COLOR_ARGS])
        elif self.mode is Mode.TEST:
            result = _execute(
                ["rustc", "--test", str(self.path), "-o", target, *RUSTC_COLOR_ARGS]
            )
        else:
            result = self._clippy(target)

        if result.returncode != 0:
            clean()
            raise CompilationError(
                ExerciseOutput(_decode(result.stdout), _decode(result.stderr), success=False)
            )
        return CompiledExercise(self)

    def _clippy(self, target):
        cargo_toml = (
            "[package]\n"
            f'name = "{self.name}"\n'
            'version = "0.0.1"\n'
            'edition = "2018"\n'
            "[[bin]]\n"
            f'name = "{self.name}"\n'
            f'path = "{self.name}.rs"'
        )
        if "NO_EMOJI" in os.environ:
            message = "Failed to write Clippy Cargo.toml file."
        else:
            message = "Failed to write 📎 Clippy 📎 Cargo.toml file."
        try:
            Path(CLIPPY_CARGO_TOML_PATH).write_text(cargo_toml, encoding="utf-8")
        except OSError as error:
            raise OSError(message) from error
        # Build an executable too, so clippy exercises can be run afterwards.
        _execute(["rustc", str(self.path), "-o", target, *RUSTC_COLOR_ARGS])
        # A clean is needed for clippy to report every lint.
        _execute(["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH, *RUSTC_COLOR_ARGS])
        return _execute(
            [
                "cargo",
                "clippy",
                "--manifest-path",
                CLIPPY_CARGO_TOML_PATH,
                *RUSTC_COLOR_ARGS,
                "--",
                "-D",
                "warnings",
                "-D",
                "clippy::float_cmp",
            ]
        )

    def _run(self):
        args = [temp_file()]
        if self.mode is Mode.TEST:
            args.append("--show-output")
        result = _execute(args)
        return ExerciseOutput(
            _decode(result.stdout), _decode(result.stderr), success=result.returncode == 0
        )

    def state(self):
        """Return None when done, otherwise the lines around the pending marker."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return None
        lines = _lines(source)
        matched = next(
            (index for index, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if matched is None:
            raise ValueError(f"{self.path}: the pending marker is not on a single line")
        first = max(matched - CONTEXT, 0)
        return [
            ContextLine(line=line, number=index + 1, important=index == matched)
            for index, line in enumerate(lines[first : matched + CONTEXT + 1], start=first)
        ]

    def looks_done(self):
        """Whether the pending marker has been removed from the source."""
        return self.state() is None


class CompiledExercise:
    """A built exercise; closing it removes the built binary."""

    def __init__(self, exercise):
        self.exercise = exercise
        self._closed = False

    def run(self):
        """Run the built binary and capture its output."""
        return self.exercise._run()

    def close(self):
        """Remove the built binary."""
        if not self._closed:
            self._closed = True
            clean()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def load_exercises(text):
    """Parse the TOML exercise catalogue into a list of exercises."""
    data = tomllib.loads(text)
    entries = data.get("exercises")
    if not isinstance(entries, list):
        raise ValueError("missing field `exercises`")
    exercises = []
    for entry in entries:
        missing = [key for key in ("name", "path", "mode", "hint") if key not in entry]
        if missing:
            raise ValueError(f"missing field `{missing[0]}`")
        exercises.append(
            Exercise(
                name=entry["name"],
                path=Path(entry["path"]),
                mode=Mode(entry["mode"]),
                hint=entry["hint"],
            )
        )
    return exercises