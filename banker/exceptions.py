"""
Custom exception hierarchy for the banker engine and server.

Admission and protocol errors are advisory: they are reported back to the
peer that caused them and never change game state.
"""


class BankerError(Exception):
    """Base exception for all game-related errors."""

    code = "error"


class AdmissionError(BankerError):
    """A join or start request was refused."""

    code = "admission_refused"


class DuplicatePlayerNameError(AdmissionError):
    """Another player in the room already uses this name."""

    code = "duplicate_name"


class GameInProgressError(AdmissionError):
    """The room is no longer accepting players."""

    code = "game_in_progress"


class RoomFullError(AdmissionError):
    """Every player colour is taken."""

    code = "room_full"


class ClaimRefusedError(AdmissionError):
    """A connection tried to speak for a player it holds no claim on."""

    code = "claim_refused"


class RoomNotFoundError(AdmissionError):
    """No room is registered under this code."""

    code = "room_not_found"


class NotEnoughPlayersError(AdmissionError):
    """A game needs at least two players to start."""

    code = "not_enough_players"


class NotRoomOwnerError(AdmissionError):
    """Only the player who opened the room may start it."""

    code = "not_room_owner"


class InvalidMessageError(BankerError):
    """Message could not be parsed into a known envelope."""

    code = "invalid_message"


class NotJoinedError(BankerError):
    """Connection sent an intent before joining the room."""

    code = "not_joined"


class ConnectionClosed(BankerError):
    """The other end of a connection went away."""

    code = "connection_closed"
