"""Error vocabulary used across the policy manager."""


class PolicyManagerError(Exception):
    """Base class for policy manager failures."""
    pass


class AWSClientError(PolicyManagerError):
    """A remote AWS call failed; the message is stable and safe to log."""
    pass


class ResourceNotFoundError(AWSClientError):
    """The requested item does not exist."""

    def __init__(self, message: str = "ResourceNotFound"):
        super().__init__(message)


class PolicyNotFoundInManifestError(PolicyManagerError):
    pass


class PolicySaveError(PolicyManagerError):
    pass


class PolicyNotReturnedError(PolicySaveError):
    """FMS accepted the request but returned no policy."""

    def __init__(self, message: str = "error creating policy"):
        super().__init__(message)


class PolicyUpdateTokenMissingError(PolicySaveError):
    def __init__(self, message: str = "policy update token not found"):
        super().__init__(message)


class PolicyIdMissingError(PolicySaveError):
    def __init__(self, message: str = "policy id not found"):
        super().__init__(message)


class RegionsNotFoundError(PolicyManagerError):
    def __init__(self, message: str = "no regions found"):
        super().__init__(message)


class ManifestFetchError(PolicyManagerError):
    def __init__(self, message: str = "error getting policy manifest"):
        super().__init__(message)


class ParameterFetchError(PolicyManagerError):
    pass


class ParameterValidationError(PolicyManagerError):
    pass


class WaiterTimeoutError(PolicyManagerError):
    pass
