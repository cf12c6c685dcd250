"""
Error taxonomy for the retrieval core.
Only EmbeddingHardFailure is meant to reach callers of the orchestrator; the rest are absorbed where raised.
"""


class VerifactError(Exception):
    """Base exception for retrieval core errors."""
    pass


class InitializationFailure(VerifactError):
    """A configured vector backend could not be reached or provisioned."""
    pass


class EmbeddingServiceFailure(VerifactError):
    """An external embedding call failed or returned an unusable vector."""
    pass


class EmbeddingInternalFailure(VerifactError):
    """The local hash embedding itself failed."""
    pass


class EmbeddingHardFailure(VerifactError):
    """No embedding could be produced at all; retrieval is impossible."""
    pass


class QueryFailure(VerifactError):
    """A vector backend query failed."""
    pass


class UpsertFailure(VerifactError):
    """A vector backend write failed or was refused."""
    pass
