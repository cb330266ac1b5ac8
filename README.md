# bootcamp

A command-line runner for small programming exercises organised into
numbered homework sets, together with in-memory simulations of small
on-chain example programs that can be driven from plain Python.

## Installation

```
pip install .
```

The exercise runner compiles exercises with `rustc` (and `cargo clippy` for
lint exercises), so both must be on your `PATH`. Watch mode uses `watchdog`,
which is installed as a dependency.

## The exercise runner

Run `bootcamp` from a directory that holds an `info.toml` file describing the
exercises as an `exercises` array. Each entry has a `name`, a `path`, a
`mode` (`compile`, `test` or `clippy`) and a `hint`.

An exercise counts as unfinished for as long as its source contains an
`// I AM NOT DONE` comment line. Remove that line once the exercise compiles
and behaves as intended to move on to the next one.

```
bootcamp                        # print the welcome text
bootcamp --version              # print the version
bootcamp verify                 # check every exercise in order, stop at the first unfinished one
bootcamp run NAME               # compile and run (or test) a single exercise
bootcamp run next               # run the first exercise that is not done yet
bootcamp hint NAME              # print the hint for an exercise
bootcamp homework N             # check homework N, then re-check on every save
bootcamp --nocapture run NAME   # also show the output of test exercises
```

`bootcamp homework N` selects the exercises whose topic directory (the third
part of the exercise path, as in `homeworks/homework5/functions/functions1.rs`)
exists inside `./homeworks/homeworkN`, verifies them in order, and then
watches `./homeworks` for changes to `.rs` files. While it waits you can type:

- `hint`  – show the hint of the exercise that failed last
- `clear` – clear the screen
- `quit`  – leave homework mode
- `help`  – list these commands

Set the `NO_EMOJI` environment variable to get plain-text status markers.
Colours are used only when standard output is a terminal; `NO_COLOR` turns
them off and `CLICOLOR_FORCE` turns them on.

The runner exits with status 1 on an invalid command line, when the
directory has no `info.toml`, when `rustc` cannot be found, when an exercise
name is unknown, when `run next` finds nothing left to do, or when an exercise
fails to compile, run or pass its tests.

The same pieces are available from Python: `bootcamp.exercise` (`Exercise`,
`Mode`, `load_exercises`, `CompilationError`), `bootcamp.verify` (`verify`,
`test`, `ExerciseFailed`), `bootcamp.run` (`run`) and `bootcamp.cli`
(`main`, `find_exercise`, `homework_exercises`, `homework`).

## Example programs

The `bootcamp.programs` package holds in-memory simulations of small
on-chain programs, built on a tiny runtime (`bootcamp.programs.runtime`)
with `Pubkey`, `AccountInfo`, `Instruction`, `Rent`, `ProgramError` and a
`Runtime` that can `register` programs, `invoke` and `invoke_signed` them,
`transfer` lamports and `create_account`. Program-derived addresses come
from `create_program_address` and `find_program_address`.

- `basic` – `hello_world` and `call_hello_world`, which invokes it through the runtime
- `counter` – `process_instruction` increments a `GreetingStruct` counter kept in an account
- `compute` – `division_based` finds the n-th prime by trial division
- `pda_instruction` – `unpack_instruction` decodes bytes into `PdaCreate` or `PdaWrite`
- `pda` – `create_pda`, `write_pda` and `process_instruction` create a program-derived account and store a `StringAccount` word in it
- `rps` – commit-and-reveal rock, paper, scissors (`new_game`, `Game`, `Hand`, `hash_hand`)
- `consortium` – `ConsortiumProgram`: members, questions, answers, weighted votes and a tally
- `lottery` – `LotteryProgram`: ticket sales, winner selection by an oracle, and pay-out

For example:

```python
from bootcamp.programs.compute import division_based

print(division_based(10))  # 29
```

```python
from bootcamp.programs.rps import hash_hand, new_game
from bootcamp.programs.runtime import Pubkey

alice, bob = Pubkey.new_unique(), Pubkey.new_unique()
game = new_game(alice, bob)
game.place_hash(hash_hand("0 salt"), 0)
game.place_hash(hash_hand("2 pepper"), 1)
game.place_hand("0 salt", 0)
game.place_hand("2 pepper", 1)
print(game.winner == str(alice))  # True: rock beats scissors
```

## What it does not do

- There is no command that lists the exercises with their done or pending
  state; use `verify` or `run next` instead.
- No exercises come with the package: `info.toml` and the exercise sources
  must be supplied in the working directory.
- The example programs run only in memory. Nothing is deployed, no network
  is contacted, and there are no real signatures or transactions.

## Running the tests

```
pip install .[test]
pytest
```