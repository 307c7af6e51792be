"""Memoria voice-notes backend."""
