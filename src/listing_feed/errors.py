from typing import Optional


class ListingFeedError(Exception):
    """Base class for all listing feed errors."""
    pass


class DataSourceError(ListingFeedError):
    """Transient failure talking to the listing API (network, non-2xx)."""

    def __init__(self, service: str, detail: str = "", status_code: Optional[int] = None):
        self.service = service
        self.detail = detail
        self.status_code = status_code
        self.message = f"Error with listing service '{service}': {detail}"
        super().__init__(self.message)


class ContractViolationError(ListingFeedError):
    """The listing API answered with a body that does not match the contract."""

    def __init__(self, detail: str):
        self.detail = detail
        self.message = f"Malformed listing API response: {detail}"
        super().__init__(self.message)
