"""The hello-world program and a program that calls it across programs."""

import logging

from .runtime import Instruction, ProgramError

_log = logging.getLogger(__name__)

GREETING = "[lib] Hello World Rust program entrypoint"


def hello_world(program_id, accounts, instruction_data):
    """Emit the greeting and return it; accounts and data are ignored."""
    _log.info(GREETING)
    return GREETING


def call_hello_world(runtime, program_id, accounts, instruction_data):
    """Invoke the program whose account comes first, with no accounts and no data."""
    _log.info("[entrypoint] CPI")
    if not accounts:
        raise ProgramError("NotEnoughAccountKeys", "the hello-world program account is required")
    hello_account = accounts[0]
    instruction = Instruction(hello_account.key, (), b"")
    _log.info("[entrypoint] Calling helloworld")
    return runtime.invoke(instruction, [hello_account])