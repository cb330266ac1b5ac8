"""A program that finds the n-th prime by trial division."""

import logging

from .runtime import ProgramError

_log = logging.getLogger(__name__)


def is_prime(number):
    """Trial division by every i from 2 up to, not including, number / 2 + 1."""
    upper = int(number / 2.0 + 1.0)
    return all(number % divisor for divisor in range(2, upper))


def division_based(nth_prime):
    """Return the ``nth_prime``-th prime (2 when ``nth_prime`` is 0); ``nth_prime`` is a byte."""
    if not 0 <= nth_prime <= 255:
        raise ValueError(f"nth_prime must fit in a byte, got {nth_prime}")
    primes_found = 0
    number = 2
    latest_prime = 2
    while primes_found < nth_prime:
        if is_prime(number):
            primes_found += 1
            latest_prime = number
            _log.info("%d th prime number is %d", primes_found, latest_prime)
        number += 1
    return latest_prime


def process_instruction(program_id, accounts, instruction_data):
    """Find the prime whose index is the first byte of the instruction data."""
    _log.info("[entrypoint] compute example entrypoint")
    if not instruction_data:
        raise ProgramError("InvalidArgument", "the prime index byte is missing")
    prime_count = instruction_data[0]
    _log.info("[entrypoint] will find %d-prime", prime_count)
    prime = division_based(prime_count)
    _log.info("%d th prime number is %d", prime_count, prime)
    return prime