"""
Error taxonomy for the rules engine.

Every error here signals caller misuse or an engine bug, never a transient
condition: the engine raises immediately and does not retry.
"""

from __future__ import annotations


class BlackjackError(Exception):
    """Base class for all rules-engine errors."""


class InvalidPhaseError(BlackjackError):
    """An operation was invoked in a phase that does not support it.

    Examples: ``allowed_actions`` outside the player's turn or on a finished
    hand, ``advance`` on a finished round, ``outcomes`` before game over.
    """


class IllegalActionError(BlackjackError, ValueError):
    """The supplied player action is not in the currently allowed set."""


class UnreachableStateError(BlackjackError, RuntimeError):
    """The dealing step matched no recognised hand/dealer card-count pattern."""


class RulesetError(BlackjackError, ValueError):
    """A ruleset field is unknown or holds an invalid value."""


class ShoeExhaustedError(BlackjackError, ValueError):
    """A card was drawn from an empty shoe."""


class SerializationError(BlackjackError, ValueError):
    """Structured data could not be converted back into an engine value."""
