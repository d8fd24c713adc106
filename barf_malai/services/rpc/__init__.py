"""
Sheet RPC Client Factory

Provides a single entry point for obtaining an RPC client per role.
The storefront and the admin dashboard talk to separate web app
deployments with different timeouts.

Usage:
    from barf_malai.services.rpc import get_rpc_client

    # Returns MockRpcClient or HttpRpcClient based on ENV_MODE
    client = get_rpc_client("storefront")
    products = await client.get_all_products()

Environment Switching:
    - ENV_MODE=development → MockRpcClient (shared in-memory sheet)
    - ENV_MODE=staging → HttpRpcClient
    - ENV_MODE=production → HttpRpcClient

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from functools import lru_cache

from barf_malai.core.config import get_settings
from barf_malai.services.rpc.base import (
    BaseRpcClient,
    CategoryInUseError,
    PendingCall,
    RemoteServiceError,
    RpcError,
    RpcNetworkError,
    RpcSchemaError,
    RpcTimeoutError,
)
from barf_malai.services.rpc.http import HttpRpcClient
from barf_malai.services.rpc.mock import MockRpcClient, MockSheet

logger = logging.getLogger(__name__)

ROLES = ("storefront", "admin")


@lru_cache()
def get_mock_sheet() -> MockSheet:
    """Sheet shared by every mock client, so admin edits reach the storefront."""
    return MockSheet(admin_password=get_settings().mock_admin_password)


@lru_cache()
def get_rpc_client(role: str = "storefront") -> BaseRpcClient:
    """
    Get the configured RPC client for ``role``.

    Args:
        role: "storefront" or "admin"

    Returns:
        BaseRpcClient: Configured client instance

    Raises:
        ValueError: If ``role`` is unknown
    """
    if role not in ROLES:
        raise ValueError(f"Unknown RPC role: {role}. Options: {ROLES}")

    settings = get_settings()
    if role == "admin":
        url, timeout = settings.admin_sheet_url, settings.admin_rpc_timeout
    else:
        url, timeout = settings.sheet_url, settings.storefront_rpc_timeout

    if settings.is_development:
        logger.info(f"RPC ({role}): Using MockRpcClient (development mode)")
        return MockRpcClient(
            get_mock_sheet(),
            timeout=timeout,
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )

    logger.info(f"RPC ({role}): Using HttpRpcClient ({settings.env_mode.value} mode)")
    return HttpRpcClient(url, timeout=timeout)


def reset_rpc_clients() -> None:
    """
    Clear the cached clients and the shared mock sheet.

    Useful for testing or when configuration changes at runtime.
    """
    get_rpc_client.cache_clear()
    get_mock_sheet.cache_clear()
    logger.debug("RPC client cache cleared")


__all__ = [
    "get_rpc_client",
    "get_mock_sheet",
    "reset_rpc_clients",
    "BaseRpcClient",
    "HttpRpcClient",
    "MockRpcClient",
    "MockSheet",
    "PendingCall",
    "RpcError",
    "RpcNetworkError",
    "RpcTimeoutError",
    "RpcSchemaError",
    "RemoteServiceError",
    "CategoryInUseError",
]
