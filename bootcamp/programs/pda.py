"""A program that creates program-derived accounts and stores a word in them."""

import logging
import struct
from dataclasses import dataclass

from .pda_instruction import PdaCreate, PdaWrite, unpack_instruction
from .runtime import SYSTEM_PROGRAM_ID, Instruction, ProgramError, Rent

_log = logging.getLogger(__name__)
_LENGTH = struct.Struct("<I")
_CREATE_ACCOUNT_TAG = 0


@dataclass
class StringAccount:
    """The state kept in a word account: a length-prefixed UTF-8 string."""

    word: str = ""

    def pack(self):
        """Serialise as a little-endian u32 length followed by the UTF-8 bytes."""
        raw = self.word.encode("utf-8")
        return _LENGTH.pack(len(raw)) + raw

    @staticmethod
    def unpack(data):
        """Read the word from the start of ``data``; trailing bytes are ignored."""
        data = bytes(data)
        if len(data) < _LENGTH.size:
            raise ProgramError("BorshIoError", "unexpected end of data")
        (length,) = _LENGTH.unpack_from(data)
        end = _LENGTH.size + length
        if len(data) < end:
            raise ProgramError("BorshIoError", "unexpected end of data")
        try:
            return StringAccount(data[_LENGTH.size:end].decode("utf-8"))
        except UnicodeDecodeError as error:
            raise ProgramError("BorshIoError", "invalid UTF-8 string") from error


def _two_accounts(accounts):
    if len(accounts) < 2:
        raise ProgramError("NotEnoughAccountKeys", "a funder and the account to create are required")
    return accounts[0], accounts[1]


def create_pda(runtime, program_id, seed, bump, account_size, accounts):
    """Create the account derived from ``seed`` and ``bump``, paid by the first account.

    An account that already holds lamports is left as it is.
    """
    funder, account_to_init = _two_accounts(accounts)
    _log.info(
        "[functions] %s will pay to initalise PDA at %s", funder.key, account_to_init.key
    )
    _log.info("The account has %d lamports", account_to_init.lamports)
    if account_to_init.lamports > 0:
        _log.info("This account is already initialised that account, skipping")
        return

    lamports = Rent().minimum_balance(account_size)
    data = struct.pack(
        "<IQQ32s", _CREATE_ACCOUNT_TAG, lamports, account_size, bytes(program_id)
    )
    instruction = Instruction(SYSTEM_PROGRAM_ID, (funder.key, account_to_init.key), data)
    _log.info("[functions] PDA instruction created")

    runtime.invoke_signed(
        instruction,
        [funder, account_to_init],
        [[seed.encode("utf-8"), bytes([bump])]],
    )
    _log.info("[functions] PDA invoked")


def write_pda(program_id, seed, accounts):
    """Store ``seed`` as the word of the first account, which the program must own."""
    if not accounts:
        raise ProgramError("NotEnoughAccountKeys", "the word account is required")
    account = accounts[0]
    _log.info("Word to save in an account: %r", seed)

    if account.owner != program_id:
        _log.info("Word account does not have the correct program id")
        raise ProgramError("IncorrectProgramId", f"{account.key} is not owned by the program")
    _log.info("Word account has the correct program id")

    word_account = StringAccount.unpack(account.data)
    _log.info("Will attempt to serialise %r to account %s", seed, account.key)
    word_account.word = seed

    packed = word_account.pack()
    if len(packed) > len(account.data):
        raise ProgramError("BorshIoError", "failed to write whole buffer")
    account.data[: len(packed)] = packed
    _log.info("Serialisation to PDA successful")


def process_instruction(runtime, program_id, accounts, instruction_data):
    """Decode the instruction data and create or write the program-derived account."""
    _log.info("[entrypoint] multifunc example entrypoint")
    instruction = unpack_instruction(instruction_data)
    _log.info("[processor] Received instruction struct: %r", instruction)
    match instruction:
        case PdaCreate(seed=seed, bump=bump, account_size=account_size):
            create_pda(runtime, program_id, seed, bump, account_size, accounts)
        case PdaWrite(seed=seed):
            write_pda(program_id, seed, accounts)