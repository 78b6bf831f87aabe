"""ERP integration layer for ifrs16."""

from ifrs16.erp.base import ERPGateway
from ifrs16.erp.factories import create_erp_gateway

__all__ = ["ERPGateway", "create_erp_gateway"]
