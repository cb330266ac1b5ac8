import pytest

from bootcamp.programs.consortium import (
    PROGRAM_ID,
    Answer,
    ConsortiumProgram,
    ConstraintError,
)
from bootcamp.programs.runtime import ProgramError, Pubkey, find_program_address

OPEN = 500
DEADLINE = 1_000
CLOSED = 2_000


@pytest.fixture
def setup():
    program = ConsortiumProgram()
    chair = Pubkey.new_unique()
    consortium = program.initialise_consortium(chair, "council")
    return program, chair, consortium


def _member(program, consortium, chair, weight, propose=True):
    return program.add_member(consortium, chair, weight, propose, Pubkey.new_unique())


def test_initialise_sets_chairperson_at_derived_address(setup):
    program, chair, consortium = setup
    expected, _ = find_program_address([b"council", bytes(chair)], PROGRAM_ID)
    assert consortium.address == expected
    assert consortium.chairperson == chair
    assert consortium.question_count == 0


def test_initialise_twice_fails(setup):
    program, chair, _ = setup
    with pytest.raises(ProgramError) as info:
        program.initialise_consortium(chair, "council")
    assert info.value.kind == "AccountAlreadyInUse"


def test_only_chairperson_adds_members(setup):
    program, _, consortium = setup
    with pytest.raises(ConstraintError):
        program.add_member(consortium, Pubkey.new_unique(), 1, True, Pubkey.new_unique())


def test_member_is_stored_and_unique(setup):
    program, chair, consortium = setup
    wallet = Pubkey.new_unique()
    member = program.add_member(consortium, chair, 7, False, wallet)
    assert (member.key, member.weight, member.propose_answers) == (wallet, 7, False)
    with pytest.raises(ProgramError):
        program.add_member(consortium, chair, 7, False, wallet)


def test_weight_must_fit_a_byte(setup):
    program, chair, consortium = setup
    with pytest.raises(ValueError):
        program.add_member(consortium, chair, 256, True, Pubkey.new_unique())


def test_questions_count_up(setup):
    program, chair, consortium = setup
    first = program.add_question(consortium, chair, "Lunch?", DEADLINE)
    second = program.add_question(consortium, chair, "Dinner?", DEADLINE)
    assert consortium.question_count == 2
    assert first.address != second.address
    assert first.question == "Lunch?"


def test_answer_requires_permission_and_open_question(setup):
    program, chair, consortium = setup
    question = program.add_question(consortium, chair, "Lunch?", DEADLINE)
    silent = _member(program, consortium, chair, 1, propose=False)
    speaker = _member(program, consortium, chair, 1)
    with pytest.raises(ConstraintError):
        program.add_answer(question, silent, "Soup", now=OPEN)
    with pytest.raises(ConstraintError):
        program.add_answer(question, speaker, "Soup", now=CLOSED)
    answer = program.add_answer(question, speaker, "Soup", now=OPEN)
    assert answer.text == "Soup"
    assert question.ans_counter == 1


def test_answer_too_long_for_account(setup):
    program, chair, consortium = setup
    question = program.add_question(consortium, chair, "Lunch?", DEADLINE)
    speaker = _member(program, consortium, chair, 1)
    with pytest.raises(ProgramError):
        program.add_answer(question, speaker, "x" * 200, now=OPEN)
    assert question.ans_counter == 0


def test_unregistered_member_rejected(setup):
    program, chair, consortium = setup
    question = program.add_question(consortium, chair, "Lunch?", DEADLINE)
    other = ConsortiumProgram()
    other_consortium = other.initialise_consortium(chair, "council")
    stranger = _member(other, other_consortium, chair, 1)
    with pytest.raises(ConstraintError):
        program.add_answer(question, stranger, "Soup", now=OPEN)


def test_vote_adds_weight_once(setup):
    program, chair, consortium = setup
    question = program.add_question(consortium, chair, "Lunch?", DEADLINE)
    voter = _member(program, consortium, chair, 4)
    answer = program.add_answer(question, voter, "Soup", now=OPEN)
    program.vote(question, answer, voter, now=OPEN)
    assert answer.votes == voter.weight
    with pytest.raises(ProgramError):
        program.vote(question, answer, voter, now=OPEN)
    assert answer.votes == voter.weight


def test_vote_after_deadline_fails(setup):
    program, chair, consortium = setup
    question = program.add_question(consortium, chair, "Lunch?", DEADLINE)
    voter = _member(program, consortium, chair, 4)
    answer = program.add_answer(question, voter, "Soup", now=OPEN)
    with pytest.raises(ConstraintError):
        program.vote(question, answer, voter, now=CLOSED)


def _ballot(program, chair, consortium):
    question = program.add_question(consortium, chair, "Lunch?", DEADLINE)
    light = _member(program, consortium, chair, 1)
    heavy = _member(program, consortium, chair, 5)
    answers = [
        program.add_answer(question, light, "Soup", now=OPEN),
        program.add_answer(question, light, "Salad", now=OPEN),
    ]
    program.vote(question, answers[0], light, now=OPEN)
    program.vote(question, answers[1], heavy, now=OPEN)
    return question, answers


def test_chairperson_tallies_before_deadline(setup):
    program, chair, consortium = setup
    question, answers = _ballot(program, chair, consortium)
    assert program.tally(chair, consortium, question, answers, now=OPEN) == 1
    assert question.winner_selected
    assert question.winner_idx == 1


def test_others_wait_for_deadline(setup):
    program, chair, consortium = setup
    question, answers = _ballot(program, chair, consortium)
    outsider = Pubkey.new_unique()
    with pytest.raises(ConstraintError):
        program.tally(outsider, consortium, question, answers, now=OPEN)
    program.tally(outsider, consortium, question, answers, now=CLOSED)
    assert question.winner_selected


def test_tally_only_once_and_closes_voting(setup):
    program, chair, consortium = setup
    question, answers = _ballot(program, chair, consortium)
    program.tally(chair, consortium, question, answers, now=OPEN)
    with pytest.raises(ConstraintError):
        program.tally(chair, consortium, question, answers, now=OPEN)
    late = _member(program, consortium, chair, 9)
    with pytest.raises(ConstraintError):
        program.vote(question, answers[0], late, now=OPEN)


def test_tally_checks_count_and_order(setup):
    program, chair, consortium = setup
    question, answers = _ballot(program, chair, consortium)
    with pytest.raises(ConstraintError):
        program.tally(chair, consortium, question, answers[:1], now=OPEN)
    with pytest.raises(ConstraintError):
        program.tally(chair, consortium, question, list(reversed(answers)), now=OPEN)
    forged = [answers[0], Answer(address=answers[1].address, text="Salad", votes=99)]
    with pytest.raises(ConstraintError):
        program.tally(chair, consortium, question, forged, now=OPEN)
    assert not question.winner_selected


def test_tie_goes_to_earlier_answer(setup):
    program, chair, consortium = setup
    question = program.add_question(consortium, chair, "Lunch?", DEADLINE)
    a = _member(program, consortium, chair, 3)
    b = _member(program, consortium, chair, 3)
    answers = [
        program.add_answer(question, a, "Soup", now=OPEN),
        program.add_answer(question, a, "Salad", now=OPEN),
    ]
    program.vote(question, answers[0], a, now=OPEN)
    program.vote(question, answers[1], b, now=OPEN)
    assert program.tally(chair, consortium, question, answers, now=OPEN) == 0