"""A lottery: players buy numbered tickets, an oracle draws the winning number, the winner takes the pot."""

import logging
from dataclasses import dataclass

from .runtime import PUBKEY_BYTES, ProgramError, Pubkey, Runtime, find_program_address

_log = logging.getLogger(__name__)

PROGRAM_ID = Pubkey.from_string("3JZbrbicNUWvxRPBWoMfyL3fvPv63UtCL45pZuqND3oq")

LOTTERY_SPACE = 8 + 180
TICKET_SPACE = 80

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1


class LotteryError(Exception):
    """A lottery constraint did not hold; ``kind`` names the constraint."""

    def __init__(self, kind, detail=""):
        super().__init__(f"{kind}: {detail}" if detail else kind)
        self.kind = kind
        self.detail = detail


@dataclass
class Lottery:
    """A lottery account and the lamports it holds."""

    address: Pubkey
    authority: Pubkey
    oracle: Pubkey
    ticket_price: int
    winner: Pubkey = Pubkey(bytes(PUBKEY_BYTES))
    winner_index: int = 0
    count: int = 0
    lamports: int = 0


@dataclass
class Ticket:
    """A ticket numbered ``idx``, bought by ``submitter``."""

    address: Pubkey
    submitter: Pubkey
    idx: int
    lamports: int = 0


def _require_signer(account):
    if not account.is_signer:
        raise ProgramError("MissingRequiredSignature", f"{account.key} must sign")


class LotteryProgram:
    """The lottery program together with the accounts it owns."""

    def __init__(self, program_id=PROGRAM_ID, runtime=None):
        self.program_id = program_id
        self.runtime = runtime or Runtime()
        self.accounts = {}

    def _require(self, account, kind):
        if not isinstance(account, kind) or self.accounts.get(account.address) is not account:
            raise LotteryError("AccountNotInitialized", f"{kind.__name__} is not owned by the program")

    def initialise_lottery(self, admin, ticket_price, oracle):
        """Create a lottery paid for by ``admin``; ``oracle`` will draw the winner."""
        if not 0 <= ticket_price <= _U64_MAX:
            raise ValueError(f"ticket price must fit in a u64, got {ticket_price}")
        _require_signer(admin)
        rent = self.runtime.rent.minimum_balance(LOTTERY_SPACE)
        if admin.lamports < rent:
            raise ProgramError("InsufficientFunds", f"{admin.key} holds {admin.lamports}")
        lottery = Lottery(
            address=Pubkey.new_unique(),
            authority=admin.key,
            oracle=oracle,
            ticket_price=ticket_price,
        )
        self.runtime.transfer(admin, lottery, rent)
        self.accounts[lottery.address] = lottery
        return lottery

    def buy_ticket(self, lottery, player):
        """Sell the next ticket to ``player`` for the lottery's ticket price."""
        self._require(lottery, Lottery)
        _require_signer(player)
        if lottery.count >= _U32_MAX:
            raise ProgramError("ArithmeticOverflow", "no more tickets")
        address, _bump = find_program_address(
            [lottery.count.to_bytes(4, "big"), bytes(lottery.address)], self.program_id
        )
        if address in self.accounts:
            raise ProgramError("AccountAlreadyInUse", f"{address} already exists")
        rent = self.runtime.rent.minimum_balance(TICKET_SPACE)
        if player.lamports < rent:
            raise ProgramError("InsufficientFunds", f"{player.key} holds {player.lamports}")
        if player.lamports - rent < lottery.ticket_price:
            raise LotteryError("ConstraintRaw", "the player cannot afford a ticket")

        ticket = Ticket(address=address, submitter=player.key, idx=lottery.count)
        self.runtime.transfer(player, ticket, rent)
        self.runtime.transfer(player, lottery, lottery.ticket_price)
        self.accounts[address] = ticket
        lottery.count += 1
        return ticket

    def pick_winner(self, lottery, oracle, winner):
        """Record the winning ticket number; only the lottery's oracle may."""
        self._require(lottery, Lottery)
        if not 0 <= winner <= _U32_MAX:
            raise ValueError(f"winner index must fit in a u32, got {winner}")
        _require_signer(oracle)
        if lottery.oracle != oracle.key:
            raise LotteryError("ConstraintRaw", "only the oracle may pick the winner")
        lottery.winner_index = winner

    def pay_out_winner(self, lottery, ticket, winner):
        """Move the lottery's whole balance to the holder of the winning ticket."""
        self._require(lottery, Lottery)
        self._require(ticket, Ticket)
        if ticket.submitter != winner.key or ticket.idx != lottery.winner_index:
            raise LotteryError("ConstraintRaw", "this ticket does not win for this account")
        balance = lottery.lamports
        lottery.lamports -= balance
        winner.lamports += balance
        _log.info("paid %d lamports to %s", balance, winner.key)
        return balance