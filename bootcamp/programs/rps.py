"""Rock, paper, scissors with committed hands: players submit a hash, then the hand."""

import enum
import hashlib
import logging
from dataclasses import dataclass, field

from .runtime import Pubkey

_log = logging.getLogger(__name__)

HASH_BYTES = 32
MAXIMUM_SIZE = (32 * 2) + (32 * 2) + 3 * 2
DRAW = "DRAW"


class RpsError(Exception):
    """A game error; ``kind`` is ``MissingPlayer``, ``WrongHandChar`` or ``WrongHash``."""

    def __init__(self, kind, detail=""):
        super().__init__(f"{kind}: {detail}" if detail else kind)
        self.kind = kind
        self.detail = detail


class Hand(enum.Enum):
    """A hand a player can show."""

    ROCK = "0"
    PAPER = "1"
    SCISSORS = "2"

    @staticmethod
    def from_char(char):
        """The hand written as ``0``, ``1`` or ``2``."""
        try:
            return Hand(char)
        except ValueError:
            raise RpsError("WrongHandChar", f"no hand for {char!r}") from None

    def beats(self):
        """The hand this one defeats."""
        return _BEATS[self]


_BEATS = {
    Hand.ROCK: Hand.SCISSORS,
    Hand.PAPER: Hand.ROCK,
    Hand.SCISSORS: Hand.PAPER,
}


class HandResult(enum.Enum):
    """The outcome for the first player."""

    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"


def hash_hand(hand_string):
    """The SHA-256 commitment of a hand string such as ``"0 my secret salt"``."""
    return hashlib.sha256(hand_string.encode("utf-8")).digest()


@dataclass
class Game:
    """The state of one game between two players."""

    players: tuple
    hashed_hand: list = field(default_factory=lambda: [bytes(HASH_BYTES), bytes(HASH_BYTES)])
    hash_submitted: list = field(default_factory=lambda: [False, False])
    hand: list = field(default_factory=lambda: [Hand.ROCK, Hand.ROCK])
    hand_submitted: list = field(default_factory=lambda: [False, False])
    winner: str = ""

    def __post_init__(self):
        self.players = tuple(self.players)
        if len(self.players) != 2:
            raise ValueError("a game has exactly two players")

    def get_player_index(self, player):
        """The seat of ``player``, 0 or 1."""
        try:
            return self.players.index(player)
        except ValueError:
            raise RpsError("MissingPlayer", f"{player} is not in this game") from None

    def pick_winner(self):
        """Compare the two hands from the first player's point of view."""
        first, second = self.hand
        _log.info("player1 hand: %s", first)
        _log.info("player2 hand: %s", second)
        if first.beats() == second:
            return HandResult.WIN
        if second.beats() == first:
            return HandResult.LOSE
        return HandResult.DRAW

    def place_hash(self, hashed_hand, index):
        """Record the commitment of the player in seat ``index``."""
        hashed_hand = bytes(hashed_hand)
        if len(hashed_hand) != HASH_BYTES:
            raise ValueError(f"a hand hash is {HASH_BYTES} bytes, got {len(hashed_hand)}")
        self.hashed_hand[index] = hashed_hand
        self.hash_submitted[index] = True

    def place_hand(self, hand_string, index):
        """Reveal a hand; its hash must match the commitment for seat ``index``.

        The hand is the first character of the first space-separated word.
        Once both hands are in, ``winner`` holds the winner's key or ``DRAW``.
        """
        if hash_hand(hand_string) != self.hashed_hand[index]:
            raise RpsError("WrongHash", "the hand does not match the committed hash")

        first_word = hand_string.split(" ")[0]
        if not first_word:
            raise RpsError("WrongHandChar", "the hand string does not start with a hand")
        self.hand[index] = Hand.from_char(first_word[0])
        self.hand_submitted[index] = True

        if all(self.hand_submitted):
            result = self.pick_winner()
            if result is HandResult.WIN:
                self.winner = str(self.players[0])
            elif result is HandResult.LOSE:
                self.winner = str(self.players[1])
            else:
                self.winner = DRAW


def new_game(player_one, player_two):
    """A fresh game between two players."""
    if not isinstance(player_one, Pubkey) or not isinstance(player_two, Pubkey):
        raise TypeError("players are identified by public keys")
    return Game(players=(player_one, player_two))