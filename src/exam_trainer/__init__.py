"""Timed multiple-choice practice exam engine."""
