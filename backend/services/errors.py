"""Error taxonomy shared by the saved-search engine."""


class SavedSearchError(Exception):
    """Base class for saved-search engine errors."""
    pass


class ValidationError(SavedSearchError):
    """Raised when a name, filter or alert setting is malformed. Never persisted."""
    pass


class NotFoundError(SavedSearchError):
    """Raised when a saved search id is unknown."""
    pass


class AuthorizationError(SavedSearchError):
    """Raised when a caller touches a saved search they do not own."""
    pass


class IndexUnavailableError(SavedSearchError):
    """Raised when the listing index cannot answer a query. Transient."""
    pass
