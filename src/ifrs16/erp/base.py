"""Abstract ERP gateway interface."""

from abc import ABC, abstractmethod
from typing import Optional

from ifrs16.domain.entities import ERPAsset, ERPPostingRequest, ERPPostingResponse


class ERPGateway(ABC):
    """Abstract interface to the ERP ledger.

    Transport failures and timeouts raise ``IntegrationError``. A request the
    ERP understood but refused comes back as an unsuccessful
    ``ERPPostingResponse`` instead. Any retry policy lives in the
    implementation, never in the callers.
    """

    @abstractmethod
    def post_batch(self, request: ERPPostingRequest, timeout: Optional[float] = None) -> ERPPostingResponse:
        """Submit a batch of journal legs as one atomic request."""
        pass

    @abstractmethod
    def test_connection(self) -> bool:
        """Return True if the ERP answers its health check."""
        pass

    @abstractmethod
    def get_assets(self) -> list[ERPAsset]:
        """List fixed assets known to the ERP."""
        pass

    @abstractmethod
    def get_asset(self, asset_id: str) -> Optional[ERPAsset]:
        """Get an ERP asset by ID, or None if the ERP does not know it."""
        pass
