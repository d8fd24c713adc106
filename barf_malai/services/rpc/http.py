"""
HTTP Sheet RPC Client

Production transport for the spreadsheet web app.
Used when ENV_MODE=production or ENV_MODE=staging.

The web app answers a ``callback`` request with a JSONP body of the form
``<callback>({...});``. The client strips that wrapper for its own callback
name; a plain JSON body is accepted as well. Apps Script serves responses
through a redirect, so redirects are followed.

Author: Khalil Bannouri
Version: 1.0.0
"""

import json
import logging
import re
from typing import Any, Mapping, Optional

import httpx

from barf_malai.services.rpc.base import (
    BaseRpcClient,
    RpcNetworkError,
    RpcTimeoutError,
)

logger = logging.getLogger(__name__)


class HttpRpcClient(BaseRpcClient):
    """
    Sheet RPC client over HTTP.

    Example:
        >>> client = HttpRpcClient("https://script.google.com/macros/s/.../exec")
        >>> products = await client.get_all_products()
        >>> await client.aclose()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url, timeout)
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
        )
        logger.info(f"HttpRpcClient initialized (timeout={timeout}s)")

    @property
    def provider_name(self) -> str:
        return "http"

    def _decode_body(self, body: str, callback_name: str) -> Any:
        """Strip the JSONP wrapper addressed to ``callback_name``."""
        text = body.strip()
        match = re.fullmatch(
            rf"(?:/\*\*/\s*)?{re.escape(callback_name)}\s*\((.*)\)\s*;?",
            text,
            flags=re.DOTALL,
        )
        if match:
            text = match.group(1)
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            raise RpcNetworkError(
                "Network error: Malformed response from the web app. Check your web app URL."
            )

    async def _dispatch(
        self,
        action: str,
        params: dict[str, str],
        callback_name: str,
    ) -> Mapping[str, Any]:
        url = self.build_url(action, params, callback_name)
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException:
            raise RpcTimeoutError("Request timeout", action=action)
        except httpx.HTTPError as e:
            raise RpcNetworkError(f"Network error: {e}", action=action)

        if response.status_code >= 400:
            raise RpcNetworkError(
                f"Network error: HTTP {response.status_code} from web app",
                action=action,
            )

        return self._decode_body(response.text, callback_name)

    async def aclose(self) -> None:
        await self._client.aclose()
