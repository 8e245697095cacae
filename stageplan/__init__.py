"""Project plans stored as JSON, with planning stages, prompt templates and terminal and file helpers."""

__version__ = "0.1.0"