"""Command line entry point: hints, single runs, verification and homework watch mode."""

import argparse
import enum
import itertools
import os
import queue
import subprocess
import sys
import threading
import time
from pathlib import Path

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .exercise import load_exercises
from .run import run
from .verify import ExerciseFailed, verify

VERSION = "4.7.0"
_DEBOUNCE_SECONDS = 2.0
_POLL_SECONDS = 1.0

WELCOME = """       welcome to...
   +-------------------------------+
   |    the  b o o t c a m p       |
   |    hands-on Rust exercises    |
   +-------------------------------+"""

DEFAULT_OUT = """Thanks for installing the bootcamp exercises!

Is this your first time? Don't worry, these exercises are made for beginners.
A few notes on how things work:

1. You solve exercises. Each one usually has a syntax error or a logic error
   that makes it fail to compile or fail its tests. Find it and fix it; once the
   exercise compiles (and its tests pass) you can move on to the next one.
2. In homework mode the exercises of one homework are checked in order, starting
   with the first. An error message right away is expected: it is part of the
   exercise, so open the file in an editor and start investigating.
3. Stuck? Type 'hint' in homework mode, or run `bootcamp hint exercise_name`.
4. Each exercise file carries an `I AM NOT DONE` comment; remove it once you
   are happy with your solution to move on.

Got all that? Run `bootcamp homework <number>` to get started, and keep your
editor open!"""

FINISH_LINE = """+----------------------------------------------------+
|      You made it to the end of this homework!      |
+----------------------------------------------------+

We hope you enjoyed learning about the various aspects of Rust!
If you noticed any issues, please report them.
You can also contribute your own exercises to help others learn."""

_HELP_TEXT = """Commands available to you in watch mode:
  hint  - prints the current exercise's hint
  clear - clears the screen
  quit  - quits watch mode
  help  - displays this help message

Watch mode automatically re-evaluates the current exercise
when you edit a file's contents."""


class WatchStatus(enum.Enum):
    """How homework watch mode ended."""

    FINISHED = "finished"
    UNFINISHED = "unfinished"


class ExerciseNotFound(LookupError):
    """Raised when no exercise matches the requested name."""


class _UsageError(Exception):
    pass


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise _UsageError(f"{self.prog}: error: {message}")


def _build_parser():
    parser = _ArgumentParser(
        prog="bootcamp",
        description="A collection of small exercises to get you used to writing and reading Rust code",
    )
    parser.add_argument(
        "--nocapture", action="store_true", help="show outputs from the test exercises"
    )
    parser.add_argument(
        "-v", "--version", action="store_true", help="show the executable version"
    )
    commands = parser.add_subparsers(dest="command")
    commands.add_parser("verify", help="verifies all exercises according to the recommended order")
    run_parser = commands.add_parser("run", help="runs/tests a single exercise")
    run_parser.add_argument("name", help="the name of the exercise")
    hint_parser = commands.add_parser("hint", help="returns a hint for the given exercise")
    hint_parser.add_argument("name", help="the name of the exercise")
    homework_parser = commands.add_parser("homework", help="watches the exercises of one homework")
    homework_parser.add_argument("name", help="the day of the homework")
    return parser


def rustc_exists():
    """Whether the Rust compiler can be started."""
    try:
        result = subprocess.run(
            ["rustc", "--version"], stdout=subprocess.DEVNULL, check=False
        )
    except OSError:
        return False
    return result.returncode == 0


def find_exercise(name, exercises):
    """Return the exercise called ``name``, or the first pending one for ``next``."""
    if name == "next":
        for exercise in exercises:
            if not exercise.looks_done():
                return exercise
        raise ExerciseNotFound(
            "🎉 Congratulations! You have done all the exercises!\n"
            "🔚 There are no more exercises to do next!"
        )
    for exercise in exercises:
        if exercise.name == name:
            return exercise
    raise ExerciseNotFound(f"No exercise found for '{name}'!")


def homework_exercises(exercises, homework_dir):
    """Keep the exercises whose topic directory is present in ``homework_dir``."""
    directory = Path(homework_dir)
    if not directory.is_dir():
        raise FileNotFoundError(
            "Can't find homework. Have you run the wrong homework number?"
        )
    present = {entry.name for entry in directory.iterdir()}
    return [
        exercise
        for exercise in exercises
        if len(exercise.path.parts) > 3 and exercise.path.parts[2] in present
    ]


def _clear_screen():
    print("\x1bc")


def _path_ends_with(full, tail):
    parts = Path(tail).parts
    return bool(parts) and Path(full).parts[-len(parts):] == parts


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, changes):
        super().__init__()
        self._changes = changes

    def on_created(self, event):
        if not event.is_directory:
            self._changes.put(Path(event.src_path))

    def on_modified(self, event):
        if not event.is_directory:
            self._changes.put(Path(event.src_path))


class _WatchShell:
    def __init__(self, hint, should_quit):
        self._lock = threading.Lock()
        self._hint = hint
        self._should_quit = should_quit

    def set_hint(self, hint):
        with self._lock:
            self._hint = hint

    def handle(self, command):
        if command == "hint":
            with self._lock:
                hint = self._hint
            if hint is not None:
                print(hint)
        elif command == "clear":
            print("\x1b[2J\x1b[1;1H")
        elif command == "quit":
            self._should_quit.set()
            print("Bye!")
        elif command == "help":
            print(_HELP_TEXT)
        else:
            print(f"unknown command: {command}")

    def serve(self, stream):
        try:
            for line in stream:
                self.handle(line.strip())
                if self._should_quit.is_set():
                    return
        except (OSError, ValueError) as error:
            print(f"error reading command: {error}")


def _collect_changes(changes):
    """Wait for one change, then gather the rest of the burst as unique paths."""
    first = changes.get(timeout=_POLL_SECONDS)
    seen = {first: None}
    deadline = time.monotonic() + _DEBOUNCE_SECONDS
    while (remaining := deadline - time.monotonic()) > 0:
        try:
            seen[changes.get(timeout=remaining)] = None
        except queue.Empty:
            break
    return list(seen)


def homework(exercises, verbose, homework_number):
    """Verify one homework's exercises and re-check them whenever a file changes."""
    print(f"exercises: {exercises!r}")
    print(f"exercise[0]: {len(exercises)}")

    watched = Path("./homeworks")
    if not watched.is_dir():
        raise FileNotFoundError(f"cannot watch missing directory {watched}")

    changes = queue.Queue()
    should_quit = threading.Event()
    observer = Observer()
    observer.schedule(_ChangeHandler(changes), str(watched), recursive=True)
    observer.start()
    try:
        _clear_screen()
        selected = homework_exercises(exercises, f"./homeworks/homework{homework_number}")
        print("\n")
        try:
            verify(selected, verbose)
        except ExerciseFailed as failure:
            shell = _WatchShell(failure.exercise.hint, should_quit)
        else:
            return WatchStatus.FINISHED

        print("Welcome to watch mode! You can type 'help' to get an overview of the commands you can use here.")
        threading.Thread(target=shell.serve, args=(sys.stdin,), daemon=True).start()

        while not should_quit.is_set():
            try:
                paths = _collect_changes(changes)
            except queue.Empty:
                continue
            for path in paths:
                if path.suffix != ".rs" or not path.exists():
                    continue
                filepath = path.resolve()
                pending = itertools.chain(
                    itertools.dropwhile(
                        lambda e: not _path_ends_with(filepath, e.path), selected
                    ),
                    (
                        e
                        for e in selected
                        if not e.looks_done() and not _path_ends_with(filepath, e.path)
                    ),
                )
                _clear_screen()
                try:
                    verify(pending, verbose)
                except ExerciseFailed as failure:
                    shell.set_hint(failure.exercise.hint)
                else:
                    return WatchStatus.FINISHED
                break
        return WatchStatus.UNFINISHED
    finally:
        observer.stop()
        observer.join()


def main(argv=None):
    """Run the command line; return the process exit status."""
    try:
        args = _build_parser().parse_args(argv)
    except _UsageError as error:
        print(error, file=sys.stderr)
        return 1

    if args.version:
        print(f"v{VERSION}")
        return 0

    if args.command is None:
        print(f"\n{WELCOME}\n")

    if not Path("info.toml").exists():
        print(f"{sys.argv[0]} must be run from the exercises directory")
        print("Try `cd` into the directory that holds info.toml!")
        return 1

    if not rustc_exists():
        print("We cannot find `rustc`.")
        print("Try running `rustc --version` to diagnose your problem.")
        print("For instructions on how to install Rust, check the README.")
        return 1

    exercises = load_exercises(Path("info.toml").read_text(encoding="utf-8"))
    verbose = args.nocapture

    if args.command is None:
        print(f"{DEFAULT_OUT}\n")
        return 0

    print("\n\nEND\n\n")

    if args.command == "verify":
        try:
            verify(exercises, verbose)
        except ExerciseFailed:
            return 1
        return 0

    if args.command in ("run", "hint"):
        try:
            exercise = find_exercise(args.name, exercises)
        except ExerciseNotFound as error:
            print(error)
            return 1
        if args.command == "hint":
            print(exercise.hint)
            return 0
        try:
            run(exercise, verbose)
        except ExerciseFailed:
            return 1
        return 0

    try:
        status = homework(exercises, verbose, args.name)
    except OSError as error:
        print(f"Error: Could not watch your progress. Error message was {error!r}.")
        print("Most likely you've run out of disk space or your 'inotify limit' has been reached.")
        return 1
    if status is WatchStatus.FINISHED:
        emoji = "★" if "NO_EMOJI" in os.environ else "🎉"
        print(f"{emoji} All exercises completed! {emoji}")
        print(f"\n{FINISH_LINE}\n")
    else:
        print("We hope you're enjoying learning about Rust!")
        print(
            "If you want to continue working on the exercises at a later point, "
            "you can simply run `bootcamp homework` again"
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())