"""A consortium whose weighted members propose answers to questions and vote on them."""

import logging
import time
from dataclasses import dataclass

from .runtime import ProgramError, Pubkey, find_program_address

_log = logging.getLogger(__name__)

PROGRAM_ID = Pubkey.from_string("F6SL4uZqqgaeorbx8dAuiRsKavzdqx1d87xxZ6yngpHn")

DISCRIMINATOR_BYTES = 8
CONSORTIUM_SPACE = 80
MEMBER_SPACE = 180
QUESTION_SPACE = 180
ANSWER_SPACE = 100
VOTED_SPACE = 8

_U8_MAX = 2**8 - 1
_U32_MAX = 2**32 - 1


class ConstraintError(Exception):
    """Raised when an account constraint of an instruction does not hold."""


@dataclass
class Consortium:
    """A consortium run by its chairperson."""

    address: Pubkey
    chairperson: Pubkey
    question_count: int = 0


@dataclass
class Member:
    """A member: the wallet ``key``, its voting weight and whether it may propose answers."""

    address: Pubkey
    key: Pubkey
    weight: int
    propose_answers: bool


@dataclass
class Question:
    """A question open for answers and votes until its deadline."""

    address: Pubkey
    question: str
    deadline: int
    ans_counter: int = 0
    winner_idx: int = 0
    winner_selected: bool = False


@dataclass
class Answer:
    """A proposed answer and the weighted votes it received."""

    address: Pubkey
    text: str
    votes: int = 0


@dataclass(frozen=True)
class _Voted:
    member: Pubkey
    question: Pubkey


def _now(now):
    return int(time.time()) if now is None else now


def _check_u8(name, value):
    if not 0 <= value <= _U8_MAX:
        raise ValueError(f"{name} must fit in a u8, got {value}")


def _check_space(label, used, space):
    if used > space:
        raise ProgramError(
            "AccountDidNotSerialize", f"{label} needs {used} bytes, the account holds {space}"
        )


class ConsortiumProgram:
    """The consortium program together with the accounts it owns."""

    def __init__(self, program_id=PROGRAM_ID):
        self.program_id = program_id
        self.accounts = {}

    def _address(self, seeds):
        address, _bump = find_program_address(seeds, self.program_id)
        if address in self.accounts:
            raise ProgramError("AccountAlreadyInUse", f"{address} already exists")
        return address

    def _require(self, account, kind):
        if not isinstance(account, kind) or self.accounts.get(account.address) is not account:
            raise ConstraintError(f"{kind.__name__} account is not owned by the program")

    def initialise_consortium(self, chairperson, seed):
        """Create the consortium derived from ``seed`` and the chairperson's key."""
        address = self._address([seed.encode("utf-8"), bytes(chairperson)])
        consortium = Consortium(address=address, chairperson=chairperson)
        self.accounts[address] = consortium
        return consortium

    def add_member(self, consortium, chairperson, weight, propose_answers, member_acc):
        """Register ``member_acc``; only the chairperson may do so."""
        self._require(consortium, Consortium)
        _check_u8("weight", weight)
        if chairperson != consortium.chairperson:
            raise ConstraintError("only the chairperson may add members")
        address = self._address([bytes(consortium.address), bytes(member_acc)])
        member = Member(
            address=address, key=member_acc, weight=weight, propose_answers=bool(propose_answers)
        )
        self.accounts[address] = member
        return member

    def add_question(self, consortium, chairperson, question, deadline):
        """Open a question numbered by the consortium's question counter."""
        self._require(consortium, Consortium)
        if consortium.question_count >= _U32_MAX:
            raise ProgramError("ArithmeticOverflow", "too many questions")
        _check_space(
            "question",
            DISCRIMINATOR_BYTES + 4 + len(question.encode("utf-8")) + 1 + 8 + 1 + 1,
            QUESTION_SPACE,
        )
        address = self._address(
            [bytes(consortium.address), consortium.question_count.to_bytes(4, "big")]
        )
        record = Question(address=address, question=question, deadline=deadline)
        self.accounts[address] = record
        consortium.question_count += 1
        return record

    def add_answer(self, question, member, text, now=None):
        """Propose an answer; the member must be allowed to and the question still open."""
        self._require(question, Question)
        self._require(member, Member)
        if not member.propose_answers:
            raise ConstraintError("this member may not propose answers")
        if not question.deadline > _now(now):
            raise ConstraintError("the question's deadline has passed")
        if question.winner_selected:
            raise ConstraintError("the question has already been tallied")
        if question.ans_counter >= _U8_MAX:
            raise ProgramError("ArithmeticOverflow", "too many answers")
        _check_space(
            "answer", DISCRIMINATOR_BYTES + 4 + len(text.encode("utf-8")) + 4, ANSWER_SPACE
        )
        address = self._address(
            [bytes(question.address), question.ans_counter.to_bytes(1, "big")]
        )
        answer = Answer(address=address, text=text)
        self.accounts[address] = answer
        question.ans_counter += 1
        return answer

    def vote(self, question, answer, member, now=None):
        """Add the member's weight to ``answer``; each member votes once per question."""
        self._require(question, Question)
        self._require(answer, Answer)
        self._require(member, Member)
        if not question.deadline > _now(now):
            raise ConstraintError("the question's deadline has passed")
        if question.winner_selected:
            raise ConstraintError("the question has already been tallied")
        if answer.votes + member.weight > _U32_MAX:
            raise ProgramError("ArithmeticOverflow", "vote count overflows")
        address = self._address([bytes(member.key), bytes(question.address)])
        self.accounts[address] = _Voted(member=member.key, question=question.address)
        answer.votes += member.weight
        return address

    def tally(self, caller, consortium, question, answers, now=None):
        """Select the answer with the most votes; ties go to the earlier answer."""
        self._require(consortium, Consortium)
        self._require(question, Question)
        allowed = caller == consortium.chairperson or question.deadline < _now(now)
        if not allowed or question.winner_selected:
            raise ConstraintError("the question cannot be tallied by this caller now")

        answers = list(answers)
        _log.info("Receieved %d answers accounts", len(answers))
        if len(answers) != question.ans_counter:
            raise ConstraintError(
                f"expected {question.ans_counter} answers, got {len(answers)}"
            )

        best_votes, best_idx = 0, 0
        for idx, answer in enumerate(answers):
            expected, _bump = find_program_address(
                [bytes(question.address), bytes([idx])], self.program_id
            )
            if expected != answer.address:
                raise ConstraintError(f"answer {idx} is not at its derived address")
            self._require(answer, Answer)
            _log.info("%r votes %d", answer.text, answer.votes)
            if answer.votes > best_votes:
                best_votes, best_idx = answer.votes, idx

        question.winner_idx = best_idx
        question.winner_selected = True
        return best_idx