"""Checking a sequence of exercises in order, stopping at the first unfinished one."""

import os

from .exercise import CompilationError, Mode
from .ui import bold, style, success, warn


class ExerciseFailed(Exception):
    """Raised when an exercise fails to build, fails to run or is still pending."""

    def __init__(self, exercise):
        super().__init__(f"exercise {exercise} is not finished")
        self.exercise = exercise


def verify(exercises, verbose=False):
    """Check each exercise in turn; raise ExerciseFailed at the first that is not done."""
    for exercise in exercises:
        if exercise.mode is Mode.TEST:
            finished = _compile_and_test(exercise, interactive=True, verbose=verbose)
        elif exercise.mode is Mode.COMPILE:
            finished = _compile_and_run_interactively(exercise)
        else:
            finished = _compile_only(exercise)
        if not finished:
            raise ExerciseFailed(exercise)


def test(exercise, verbose=False):
    """Build and run an exercise's test harness; raise ExerciseFailed on failure."""
    if not _compile_and_test(exercise, interactive=False, verbose=verbose):
        raise ExerciseFailed(exercise)


def _compile(exercise):
    try:
        return exercise.compile()
    except CompilationError as error:
        warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
        print(error.output.stderr)
        return None


def _compile_only(exercise):
    compiled = _compile(exercise)
    if compiled is None:
        return False
    compiled.close()
    success(f"Successfully compiled {exercise}!")
    return prompt_for_completion(exercise, None)


def _compile_and_run_interactively(exercise):
    compiled = _compile(exercise)
    if compiled is None:
        return False
    print(f'Compiling: "{exercise.name}"')
    with compiled:
        output = compiled.run()
    if not output.success:
        warn(f"Ran {exercise} with errors")
        print(output.stdout)
        print(output.stderr)
        return False
    success(f"Successfully ran {exercise}!")
    return prompt_for_completion(exercise, output.stdout)


def _compile_and_test(exercise, interactive, verbose):
    compiled = _compile(exercise)
    if compiled is None:
        return False
    with compiled:
        output = compiled.run()
    if not output.success:
        warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
        print(output.stdout)
        return False
    if verbose:
        print(output.stdout)
    success(f"Successfully tested {exercise}")
    if interactive:
        return prompt_for_completion(exercise, None)
    return True


def _separator():
    return bold("====================")


def prompt_for_completion(exercise, output):
    """Return True if the exercise is done; otherwise show where the marker is and return False."""
    context = exercise.state()
    if context is None:
        return True

    no_emoji = "NO_EMOJI" in os.environ
    if exercise.mode is Mode.COMPILE:
        message = "The code is compiling!"
    elif exercise.mode is Mode.TEST:
        message = "The code is compiling, and the tests pass!"
    elif no_emoji:
        message = "The code is compiling, and Clippy is happy!"
    else:
        message = "The code is compiling, and 📎 Clippy 📎 is happy!"

    print()
    if no_emoji:
        print(f"~*~ {message} ~*~")
    else:
        print(f"🎉 🎉  {message} 🎉 🎉")
    print()

    if output is not None:
        print("Output:")
        print(_separator())
        print(output)
        print(_separator())
        print()

    print("You can keep working on this exercise,")
    print(f"or jump into the next one by removing the {bold('`I AM NOT DONE`')} comment:")
    print()
    for context_line in context:
        line = bold(context_line.line) if context_line.important else context_line.line
        number = style(f"{context_line.number:>2}", "blue", "bold")
        print(f"{number} {style('|', 'blue')}  {line}")

    return False