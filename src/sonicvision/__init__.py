"""Sonic Vision: turn an audio clip into a looping AI-generated video."""

__version__ = "0.1.0"
