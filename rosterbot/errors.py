class RosterError(Exception):
    """Base class for failures reported back to the user as short text."""


class NotFound(RosterError):
    pass


class DuplicateEntity(RosterError):
    pass


class InvalidName(RosterError):
    pass


class InvalidAmount(RosterError):
    pass


class NoTeamsExist(RosterError):
    def __init__(self, message="No teams exist yet. Create one with /team add first."):
        super().__init__(message)


class StorageReadFailure(Exception):
    """The data file exists but could not be read or parsed."""
