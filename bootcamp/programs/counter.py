"""A program that counts how many times an account it owns has been greeted."""

import logging
import struct
from dataclasses import dataclass

from .runtime import ProgramError

_log = logging.getLogger(__name__)
_LAYOUT = struct.Struct("<I")


@dataclass
class GreetingStruct:
    """The state kept in a greeted account: a little-endian u32 counter."""

    counter: int = 0

    def pack(self):
        """Serialise to the account layout."""
        if not 0 <= self.counter < 2**32:
            raise ValueError(f"counter out of u32 range: {self.counter}")
        return _LAYOUT.pack(self.counter)

    @staticmethod
    def unpack(data):
        """Read the state from account data that holds exactly one counter."""
        data = bytes(data)
        if len(data) < _LAYOUT.size:
            raise ProgramError("BorshIoError", "unexpected end of data")
        if len(data) > _LAYOUT.size:
            raise ProgramError("BorshIoError", "not all bytes read")
        (counter,) = _LAYOUT.unpack(data)
        return GreetingStruct(counter)


def process_instruction(program_id, accounts, instruction_data):
    """Increment the counter of the first account, which the program must own."""
    _log.info("[lib] Solana Example2 counter program entrypoint")
    if not accounts:
        raise ProgramError("NotEnoughAccountKeys", "the greeted account is required")
    hello_account = accounts[0]
    _log.info("[lib] hello account: %s", hello_account.key)

    if hello_account.owner != program_id:
        _log.info(" Greeted account does not have the correct program id")
        raise ProgramError("IncorrectProgramId", f"{hello_account.key} is not owned by the program")
    _log.info(" Greeted account has the correct program id")

    greeting = GreetingStruct.unpack(hello_account.data)
    if greeting.counter + 1 >= 2**32:
        raise ProgramError("ArithmeticOverflow", "the greeting counter is full")
    greeting.counter += 1

    _log.info(
        "Program added to the greeting counter struct stored at: %s", hello_account.key
    )
    hello_account.data[: _LAYOUT.size] = greeting.pack()
    _log.info(" Greeted %d time(s)!", greeting.counter)
    return greeting.counter