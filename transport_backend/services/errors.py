class ServiceError(Exception):
    """Storage or transport failure surfaced to callers with a human message."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    pass


class BusinessRuleError(ServiceError):
    """A mutation was refused because it would break a domain rule."""
    pass
