"""ERP gateway factory functions."""

from typing import Optional

from ifrs16.config import ERPSettings
from ifrs16.domain.errors import ValidationError
from ifrs16.erp.http_gateway import HTTPERPGateway


def create_erp_gateway(settings: Optional[ERPSettings] = None) -> HTTPERPGateway:
    """Create an HTTP ERP gateway.

    Args:
        settings: ERP settings. If None, they are read from IFRS16_ERP_*
            environment variables (and .env)

    Returns:
        HTTPERPGateway instance

    Raises:
        ValidationError: If no ERP base URL is configured
    """
    if settings is None:
        settings = ERPSettings()

    if not settings.base_url:
        raise ValidationError("ERP base URL is not configured (set IFRS16_ERP_BASE_URL)")

    return HTTPERPGateway(settings)
