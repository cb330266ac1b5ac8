"""Decoding the instructions understood by the program-derived-address program."""

import logging
from dataclasses import dataclass

from .runtime import ProgramError

_log = logging.getLogger(__name__)

_CREATE_FLAG = 0
_WRITE_FLAG = 1


@dataclass(frozen=True)
class PdaCreate:
    """Create the account derived from ``seed`` and ``bump`` with ``account_size`` bytes."""

    seed: str
    bump: int
    account_size: int


@dataclass(frozen=True)
class PdaWrite:
    """Store ``seed`` as the word held by a program-derived account."""

    seed: str


def _invalid_parameters():
    return ProgramError("BorshIoError", "Invalid parameters passed")


def _seed(rest, key_length):
    if len(rest) < key_length:
        raise ProgramError(
            "InvalidInstructionData",
            f"seed of {key_length} bytes expected, {len(rest)} available",
        )
    try:
        return bytes(rest[:key_length]).decode("utf-8")
    except UnicodeDecodeError as error:
        raise ProgramError("InvalidInstructionData", "seed is not valid UTF-8") from error


def unpack_instruction(data):
    """Decode ``[flag, key_length, seed..., (bump, ..., account_size)]`` into an instruction."""
    data = bytes(data)
    _log.info("[instruction] Total payload: %s", list(data))
    if not data:
        raise _invalid_parameters()
    function_flag, rest = data[0], data[1:]
    _log.info("[instruction] Received function flag: %d", function_flag)
    if not rest:
        raise _invalid_parameters()
    key_length, rest = rest[0], rest[1:]

    if function_flag == _CREATE_FLAG:
        _log.info("[instruction] Initialising PDA")
        seed = _seed(rest, key_length)
        _log.info("[instruction] extracted seed: %r", seed)
        if len(rest) <= key_length:
            raise ProgramError("InvalidInstructionData", "bump byte is missing")
        bump = rest[key_length]
        _log.info("[instruction] extracted bump: %d", bump)
        account_size = rest[-1]
        _log.info("[instruction] extracted account size: %d", account_size)
        return PdaCreate(seed=seed, bump=bump, account_size=account_size)

    if function_flag == _WRITE_FLAG:
        _log.info("[instruction] Writing to PDA")
        return PdaWrite(seed=_seed(rest, key_length))

    raise ProgramError("BorshIoError", "Invalid function flag")