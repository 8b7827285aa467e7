"""Domain error taxonomy.

Network failures during verification and health probing never show up
here: they are business outcomes and come back as typed results.
"""


class DomainError(Exception):
    """Base class for errors surfaced at the HTTP boundary."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidDomain(DomainError):
    status_code = 400


class DomainNotFound(DomainError):
    # 404 rather than 403 so foreign domain ids are indistinguishable from missing ones
    status_code = 404

    def __init__(self, message: str = "Domain not found"):
        super().__init__(message)


class DomainUnavailable(DomainError):
    status_code = 409

    def __init__(self, message: str = "This domain is already registered"):
        super().__init__(message)


class PersistenceError(DomainError):
    status_code = 500

    def __init__(self, stage: str, message: str):
        super().__init__(message)
        self.stage = stage
