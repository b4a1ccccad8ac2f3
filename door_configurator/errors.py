"""
Exceptions raised by the Door Configurator.

A selection that matches nothing is not an error: it is reported through
``PriceQuote.not_found``. Unresolvable accessory references are reported as
quote warnings.
"""


class ConfiguratorError(Exception):
    """Base class for configurator errors."""


class InvalidSelection(ConfiguratorError, ValueError):
    """The selection is structurally invalid and was rejected before filtering."""

    def __init__(self, reason: str, field: str = None):
        super().__init__(reason)
        self.field = field


class CatalogLoadError(ConfiguratorError):
    """A catalog source could not be read."""


class ConfigError(ConfiguratorError):
    """The configuration file is malformed."""
