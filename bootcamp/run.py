"""Running a single exercise without prompting for completion."""

from .exercise import CompilationError, Mode
from .ui import success, warn
from .verify import ExerciseFailed, test


def run(exercise, verbose=False):
    """Build and run one exercise; raise ExerciseFailed on failure."""
    if exercise.mode is Mode.TEST:
        test(exercise, verbose)
    else:
        _compile_and_run(exercise)


def _compile_and_run(exercise):
    print(f'Compiling: "{exercise.name}"')
    try:
        compiled = exercise.compile()
    except CompilationError as error:
        warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
        print(error.output.stderr)
        raise ExerciseFailed(exercise) from error

    with compiled:
        output = compiled.run()

    if output.success:
        print(output.stdout)
        success(f"Successfully ran {exercise}")
    else:
        print(output.stdout)
        print(output.stderr)
        warn(f"Ran {exercise} with errors")
        raise ExerciseFailed(exercise)