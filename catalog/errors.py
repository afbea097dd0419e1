"""Lookup errors for the static catalogs."""


class CatalogError(KeyError):
    """Base exception for catalog lookups."""

    kind = 'Entry'

    def __init__(self, key):
        super().__init__(key)
        self.key = getattr(key, 'value', key)

    def __str__(self):
        return f"{self.kind} not found: {self.key}"


class LocationNotFoundError(CatalogError):
    """No location with the requested id."""
    kind = 'Location'


class ActivityNotFoundError(CatalogError):
    """No activity with the requested id."""
    kind = 'Activity'
