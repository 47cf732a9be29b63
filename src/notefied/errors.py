# SPDX-License-Identifier: GPL-3.0-or-later


class NotesError(Exception):
    """Base class for every failure the sync engine reports."""


class ValidationError(NotesError):
    """Input rejected locally or by the server (HTTP 400)."""


class ApiError(NotesError):

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class UnauthenticatedError(ApiError):
    """Missing, expired or rejected token."""


class NotFoundError(ApiError):
    """The note is gone or owned by someone else."""


class TransientError(ApiError):
    """Network failure or server error; retrying later may succeed."""


class RemoteValidationError(ApiError, ValidationError):
    pass
