class ScrapeError(Exception):
    pass


class ClassificationError(ScrapeError):
    """The URL carries no known listing/property type marker."""


class NavigationError(ScrapeError):
    """The target page did not load in time or answered with an error status."""


class FieldParseError(ScrapeError):
    def __init__(self, field: str, value: str, reason: str = "not numeric"):
        self.field = field
        self.value = value
        super().__init__(f"{field}: {reason} ({value!r})")


class PersistenceError(ScrapeError):
    pass
