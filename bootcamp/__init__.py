"""Homework exercise runner and in-memory simulations of small on-chain example programs."""

__version__ = "4.7.0"