"""ERP gateway speaking the ERP's JSON HTTP API."""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import requests
from dateutil import parser as date_parser

from ifrs16.config import ERPSettings
from ifrs16.domain.entities import (
    ERPAsset,
    ERPPostingRequest,
    ERPPostingResponse,
    ERPTransaction,
)
from ifrs16.domain.errors import IntegrationError
from ifrs16.erp.base import ERPGateway

logger = logging.getLogger(__name__)

BATCH_PATH = "/api/transactions/batch"
HEALTH_PATH = "/api/health"
ASSETS_PATH = "/api/assets"


def transaction_to_payload(transaction: ERPTransaction) -> dict[str, Any]:
    """Serialize one journal leg. Amounts travel as strings to keep them exact."""
    return {
        "transactionDate": transaction.transaction_date.isoformat(),
        "accountCode": transaction.account_code,
        "accountName": transaction.account_name,
        "debitAmount": str(transaction.debit_amount),
        "creditAmount": str(transaction.credit_amount),
        "description": transaction.description,
        "reference": transaction.reference,
        "currency": transaction.currency,
    }


def request_to_payload(request: ERPPostingRequest) -> dict[str, Any]:
    """Serialize a posting request in the ERP's camelCase format."""
    return {
        "transactions": [transaction_to_payload(t) for t in request.transactions],
        "batchReference": request.batch_reference,
        "postingDate": request.posting_date.isoformat(),
        "description": request.description,
    }


def _field(data: dict[str, Any], name: str, default: Any = None) -> Any:
    """Look up a response field without caring about its casing."""
    lowered = name.lower()
    for key, value in data.items():
        if key.lower() == lowered:
            return value
    return default


def response_from_payload(data: Any) -> ERPPostingResponse:
    """Parse the ERP's posting response."""
    if not isinstance(data, dict):
        return ERPPostingResponse(success=False, message="Invalid response from ERP system")
    errors = _field(data, "errors") or []
    return ERPPostingResponse(
        success=_field(data, "success") is True,
        batch_id=str(_field(data, "batchId", "") or ""),
        message=str(_field(data, "message", "") or ""),
        errors=tuple(str(e) for e in errors),
    )


def _acquisition_date(value: Any) -> Optional[date]:
    if not value:
        return None
    try:
        return date_parser.parse(str(value)).date()
    except (ValueError, OverflowError) as e:
        raise IntegrationError(f"Invalid acquisition date from ERP system: {value!r}") from e


def asset_from_payload(data: dict[str, Any]) -> ERPAsset:
    """Parse one ERP asset record."""
    cost = _field(data, "cost", "0")
    try:
        cost_value = Decimal(str(cost))
    except InvalidOperation:
        cost_value = Decimal("0")
    return ERPAsset(
        asset_id=str(_field(data, "assetId", "")),
        asset_number=str(_field(data, "assetNumber", "") or ""),
        description=str(_field(data, "description", "") or ""),
        asset_class=str(_field(data, "assetClass", "") or ""),
        cost=cost_value,
        acquisition_date=_acquisition_date(_field(data, "acquisitionDate")),
        location=str(_field(data, "location", "") or ""),
        department=str(_field(data, "department", "") or ""),
        cost_center=str(_field(data, "costCenter", "") or ""),
        status=str(_field(data, "status", "") or ""),
    )


class HTTPERPGateway(ERPGateway):
    """ERP gateway backed by a ``requests`` session with bearer authentication."""

    def __init__(self, settings: ERPSettings, session: Optional[requests.Session] = None):
        """Initialize the gateway.

        Args:
            settings: ERP connection settings
            session: Optional pre-built session (tests pass a fake one)
        """
        self.settings = settings
        self.base_url = settings.base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {settings.api_key}",
                "Accept": "application/json",
            }
        )

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def post_batch(self, request: ERPPostingRequest, timeout: Optional[float] = None) -> ERPPostingResponse:
        """Submit a batch of journal legs.

        Raises:
            IntegrationError: If the ERP cannot be reached, times out or
                answers with something that is not JSON
        """
        timeout = timeout if timeout is not None else self.settings.timeout_seconds
        logger.info(
            "Posting %d transactions to ERP system (batch %s)",
            len(request.transactions),
            request.batch_reference,
        )
        try:
            response = self.session.post(
                self._url(BATCH_PATH), json=request_to_payload(request), timeout=timeout
            )
        except requests.Timeout as e:
            logger.error("ERP posting of batch %s timed out after %ss", request.batch_reference, timeout)
            raise IntegrationError(f"ERP request timed out after {timeout}s") from e
        except requests.RequestException as e:
            logger.error("Error posting batch %s to ERP system: %s", request.batch_reference, e)
            raise IntegrationError(f"Failed to post transactions to ERP system: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise IntegrationError(
                f"Invalid response from ERP system (HTTP {response.status_code})"
            ) from e

        posting_response = response_from_payload(data)
        if posting_response.success:
            logger.info("Successfully posted transactions to ERP system. Batch ID: %s", posting_response.batch_id)
        else:
            logger.warning(
                "ERP rejected batch %s: %s",
                request.batch_reference,
                ", ".join(posting_response.errors) or posting_response.message,
            )
        return posting_response

    def test_connection(self) -> bool:
        """Return True if the ERP health check answers with a 2xx status."""
        try:
            response = self.session.get(self._url(HEALTH_PATH), timeout=self.settings.timeout_seconds)
        except requests.RequestException as e:
            logger.error("Error testing connection to ERP system: %s", e)
            return False
        healthy = response.ok
        logger.info("ERP system connection test result: %s", healthy)
        return healthy

    def get_assets(self) -> list[ERPAsset]:
        """List fixed assets known to the ERP.

        Raises:
            IntegrationError: If the request fails
        """
        try:
            response = self.session.get(self._url(ASSETS_PATH), timeout=self.settings.timeout_seconds)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise IntegrationError(f"Failed to fetch assets from ERP system: {e}") from e
        return [asset_from_payload(item) for item in data or []]

    def get_asset(self, asset_id: str) -> Optional[ERPAsset]:
        """Get one ERP asset, None on 404.

        Raises:
            IntegrationError: If the request fails for any other reason
        """
        try:
            response = self.session.get(
                self._url(f"{ASSETS_PATH}/{asset_id}"), timeout=self.settings.timeout_seconds
            )
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            raise IntegrationError(f"Failed to fetch asset {asset_id} from ERP system: {e}") from e
        return asset_from_payload(data)
