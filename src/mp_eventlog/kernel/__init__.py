"""Kernel – errors, time, messaging primitives and store ports."""
