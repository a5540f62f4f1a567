"""Terminal quiz and flashcard runner."""

__version__ = "0.3.0"
