"""Anamnesis Engine - conditional form evaluation for patient intake forms."""

__version__ = "0.1.0"
