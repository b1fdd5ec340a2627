"""
Error types shared by the certificate services and the HTTP layer.
Each carries the status code the Flask error handler answers with.
"""


class PortalError(Exception):
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class NotFound(PortalError, LookupError):
    status_code = 404


class InvalidInput(PortalError, ValueError):
    status_code = 400


class StoreUnavailable(PortalError):
    status_code = 503
