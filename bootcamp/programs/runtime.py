"""An in-memory model of an on-chain program runtime: keys, accounts and invocation."""

import hashlib
import itertools
import struct
from dataclasses import dataclass, field

_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
PUBKEY_BYTES = 32
MAX_SEEDS = 16
MAX_SEED_LEN = 32
MAX_PERMITTED_DATA_LENGTH = 10 * 1024 * 1024
ACCOUNT_STORAGE_OVERHEAD = 128
_PDA_MARKER = b"ProgramDerivedAddress"

# Edwards25519 field prime and curve constant.
_P = 2**255 - 19
_D = -121665 * pow(121666, -1, _P) % _P

_SYSTEM_CREATE_ACCOUNT = 0
_SYSTEM_TRANSFER = 2


def b58encode(data):
    """Encode bytes with the Bitcoin base-58 alphabet."""
    data = bytes(data)
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, remainder = divmod(number, 58)
        digits.append(_ALPHABET[remainder])
    padding = len(data) - len(data.lstrip(b"\0"))
    return "1" * padding + "".join(reversed(digits))


def b58decode(text):
    """Decode a base-58 string; raise ValueError on characters outside the alphabet."""
    number = 0
    for char in text:
        index = _ALPHABET.find(char)
        if index < 0:
            raise ValueError(f"invalid base-58 character: {char!r}")
        number = number * 58 + index
    padding = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\0" * padding + body


class ProgramError(Exception):
    """An error reported by a program or by the runtime.

    ``kind`` names the failure, for example ``IncorrectProgramId``,
    ``InvalidArgument``, ``NotEnoughAccountKeys``, ``BorshIoError``,
    ``InvalidSeeds``, ``MaxSeedLengthExceeded``, ``InsufficientFunds``,
    ``MissingRequiredSignature`` or ``AccountAlreadyInUse``.
    """

    def __init__(self, kind, detail=""):
        super().__init__(f"{kind}: {detail}" if detail else kind)
        self.kind = kind
        self.detail = detail


_unique_counter = itertools.count(1)


@dataclass(frozen=True)
class Pubkey:
    """A 32-byte public key."""

    data: bytes

    def __post_init__(self):
        raw = bytes(self.data)
        if len(raw) != PUBKEY_BYTES:
            raise ValueError(f"a public key is {PUBKEY_BYTES} bytes, got {len(raw)}")
        object.__setattr__(self, "data", raw)

    def __bytes__(self):
        return self.data

    def __str__(self):
        return b58encode(self.data)

    def __repr__(self):
        return f"Pubkey({self})"

    @staticmethod
    def from_string(text):
        """Parse a base-58 key."""
        return Pubkey(b58decode(text))

    @staticmethod
    def new_unique():
        """A key that differs from every other key made this way in the process."""
        return Pubkey(next(_unique_counter).to_bytes(8, "big") + bytes(24))


SYSTEM_PROGRAM_ID = Pubkey(bytes(PUBKEY_BYTES))


def is_on_curve(data):
    """Whether 32 bytes decompress to a point on the Ed25519 curve."""
    raw = bytes(data)
    if len(raw) != PUBKEY_BYTES:
        raise ValueError(f"a compressed point is {PUBKEY_BYTES} bytes, got {len(raw)}")
    y = (int.from_bytes(raw, "little") & ((1 << 255) - 1)) % _P
    y2 = y * y % _P
    u = (y2 - 1) % _P
    v = (_D * y2 + 1) % _P
    if v == 0:
        return u == 0
    x2 = u * pow(v, -1, _P) % _P
    return x2 == 0 or pow(x2, (_P - 1) // 2, _P) == 1


def _seed_bytes(seed):
    if isinstance(seed, str):
        return seed.encode("utf-8")
    return bytes(seed)


def create_program_address(seeds, program_id):
    """Derive the program address for ``seeds``; the result is never on the curve."""
    seeds = [_seed_bytes(seed) for seed in seeds]
    if len(seeds) > MAX_SEEDS:
        raise ProgramError("MaxSeedLengthExceeded", f"at most {MAX_SEEDS} seeds")
    if any(len(seed) > MAX_SEED_LEN for seed in seeds):
        raise ProgramError("MaxSeedLengthExceeded", f"a seed is at most {MAX_SEED_LEN} bytes")
    digest = hashlib.sha256(b"".join(seeds) + bytes(program_id) + _PDA_MARKER).digest()
    if is_on_curve(digest):
        raise ProgramError("InvalidSeeds", "derived address lies on the curve")
    return Pubkey(digest)


def find_program_address(seeds, program_id):
    """Return the program address and the highest bump seed that yields one."""
    seeds = [_seed_bytes(seed) for seed in seeds]
    for bump in range(255, 0, -1):
        try:
            return create_program_address([*seeds, bytes([bump])], program_id), bump
        except ProgramError as error:
            if error.kind != "InvalidSeeds":
                raise
    raise ProgramError("InvalidSeeds", "no viable bump seed")


@dataclass
class AccountInfo:
    """An account as seen by a program during one invocation."""

    key: Pubkey
    lamports: int = 0
    data: bytearray = field(default_factory=bytearray)
    owner: Pubkey = SYSTEM_PROGRAM_ID
    is_signer: bool = False
    is_writable: bool = True
    executable: bool = False

    def __post_init__(self):
        self.data = bytearray(self.data)


@dataclass(frozen=True)
class Instruction:
    """A call into a program: its id, the keys of the accounts it uses and its data."""

    program_id: Pubkey
    accounts: tuple = ()
    data: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "accounts", tuple(self.accounts))
        object.__setattr__(self, "data", bytes(self.data))


@dataclass(frozen=True)
class Rent:
    """Rent parameters; decide the balance that makes an account rent exempt."""

    lamports_per_byte_year: int = 3480
    exemption_threshold: float = 2.0
    burn_percent: int = 5

    def minimum_balance(self, data_len):
        """Lamports needed for an account of ``data_len`` bytes to be rent exempt."""
        return int(
            (ACCOUNT_STORAGE_OVERHEAD + data_len)
            * self.lamports_per_byte_year
            * self.exemption_threshold
        )


class Runtime:
    """Registered programs plus a built-in system program that moves lamports and creates accounts."""

    def __init__(self, rent=None):
        self.rent = rent or Rent()
        self._programs = {SYSTEM_PROGRAM_ID: self._system_program}
        self._stack = []

    def register(self, program_id, processor):
        """Make ``processor(program_id, accounts, instruction_data)`` answer calls to ``program_id``."""
        if program_id == SYSTEM_PROGRAM_ID:
            raise ValueError("the system program cannot be replaced")
        if not callable(processor):
            raise TypeError("processor must be callable")
        self._programs[program_id] = processor

    def invoke(self, instruction, accounts):
        """Call the instruction's program with the accounts it names, in its order."""
        by_key = {}
        for account in accounts:
            by_key.setdefault(account.key, account)
        selected = []
        for key in instruction.accounts:
            if key not in by_key:
                raise ProgramError("NotEnoughAccountKeys", f"missing account {key}")
            selected.append(by_key[key])
        processor = self._programs.get(instruction.program_id)
        if processor is None:
            raise ProgramError("IncorrectProgramId", f"unknown program {instruction.program_id}")
        self._stack.append(instruction.program_id)
        try:
            return processor(instruction.program_id, selected, instruction.data)
        finally:
            self._stack.pop()

    def invoke_signed(self, instruction, accounts, signer_seeds):
        """Invoke with the program addresses derived from ``signer_seeds`` acting as signers.

        Seeds derive addresses from the calling program; outside any invocation
        they are checked against every registered program.
        """
        if self._stack:
            callers = [self._stack[-1]]
        else:
            callers = [pid for pid in self._programs if pid != SYSTEM_PROGRAM_ID]
        signers = set()
        for seeds in signer_seeds:
            derived = []
            for caller in callers:
                try:
                    derived.append(create_program_address(seeds, caller))
                except ProgramError as error:
                    if error.kind != "InvalidSeeds":
                        raise
            if not derived:
                raise ProgramError("InvalidSeeds", "seeds do not derive a program address")
            signers.update(derived)
        elevated = [a for a in accounts if a.key in signers and not a.is_signer]
        for account in elevated:
            account.is_signer = True
        try:
            return self.invoke(instruction, accounts)
        finally:
            for account in elevated:
                account.is_signer = False

    def transfer(self, source, destination, lamports):
        """Move lamports from a signing, data-free account to another account."""
        if lamports < 0:
            raise ProgramError("InvalidArgument", "cannot transfer a negative amount")
        if not source.is_signer:
            raise ProgramError("MissingRequiredSignature", f"{source.key} must sign")
        if source.data:
            raise ProgramError("InvalidArgument", "transfer source must not carry data")
        if source.lamports < lamports:
            raise ProgramError("InsufficientFunds", f"{source.key} holds {source.lamports}")
        source.lamports -= lamports
        destination.lamports += lamports

    def create_account(self, funder, new_account, lamports, space, owner):
        """Fund ``new_account``, give it ``space`` zeroed bytes and hand it to ``owner``."""
        if not funder.is_signer:
            raise ProgramError("MissingRequiredSignature", f"{funder.key} must sign")
        if not new_account.is_signer:
            raise ProgramError("MissingRequiredSignature", f"{new_account.key} must sign")
        if new_account.lamports or new_account.data or new_account.owner != SYSTEM_PROGRAM_ID:
            raise ProgramError("AccountAlreadyInUse", f"{new_account.key} already exists")
        if space < 0 or space > MAX_PERMITTED_DATA_LENGTH:
            raise ProgramError("InvalidArgument", f"invalid account size {space}")
        if lamports < 0:
            raise ProgramError("InvalidArgument", "cannot fund with a negative amount")
        if funder.lamports < lamports:
            raise ProgramError("InsufficientFunds", f"{funder.key} holds {funder.lamports}")
        funder.lamports -= lamports
        new_account.lamports += lamports
        new_account.data = bytearray(space)
        new_account.owner = owner

    def _system_program(self, program_id, accounts, data):
        try:
            (tag,) = struct.unpack_from("<I", data)
            if tag == _SYSTEM_CREATE_ACCOUNT:
                lamports, space, owner = struct.unpack_from("<QQ32s", data, 4)
            elif tag == _SYSTEM_TRANSFER:
                (lamports,) = struct.unpack_from("<Q", data, 4)
            else:
                raise ProgramError("InvalidInstructionData", f"unknown system instruction {tag}")
        except struct.error as error:
            raise ProgramError("InvalidInstructionData", str(error)) from error
        if len(accounts) < 2:
            raise ProgramError("NotEnoughAccountKeys", "system instructions take two accounts")
        first, second = accounts[0], accounts[1]
        if tag == _SYSTEM_CREATE_ACCOUNT:
            self.create_account(first, second, lamports, space, Pubkey(owner))
        else:
            self.transfer(first, second, lamports)