"""Service layer for the aiblame API."""

from .notes import NotesService

__all__ = ["NotesService"]
