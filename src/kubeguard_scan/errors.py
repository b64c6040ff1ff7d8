class KubeguardError(RuntimeError):
    """Fatal condition: the run is aborted with a non-zero exit."""


class MissingDependencyError(KubeguardError):
    pass


class InvalidInputError(KubeguardError):
    pass


class CredentialError(KubeguardError):
    pass


class BucketError(KubeguardError):
    pass


class ArchiveError(KubeguardError):
    pass
