"""
Exceptions raised at the edges of the configurator

Resolver and pricing code never raise; these cover quoting an incomplete
configuration, unreadable catalog sources and missing saved records.
"""
from typing import List


class ConfiguratorError(Exception):
    """Base class for configurator errors"""


class IncompleteConfigurationError(ConfiguratorError):
    """Raised when a quote is requested before every required category is selected"""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Configuration incomplete: {'; '.join(self.errors)}")


class CustomerValidationError(ConfiguratorError):
    """Raised by callers that require a usable customer record before quoting"""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Invalid customer: {'; '.join(self.errors)}")


class CatalogLoadError(ConfiguratorError):
    """Raised when a catalog source cannot produce a snapshot"""


class RecordNotFoundError(ConfiguratorError):
    """Raised when a saved configuration or quote does not exist"""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} not found: '{record_id}'")
