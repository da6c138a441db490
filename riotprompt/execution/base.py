"""
Base classes for execution providers.

A Provider sends a formatted ChatRequest to an LLM API over HTTP and returns
a normalized ProviderResponse. Payload construction and response parsing are
delegated to the provider's adapter; this module only handles keys, headers
and transport.
"""
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from ..adapters.base import PayloadOptions, ProviderAdapter
from ..chat import ChatRequest, ProviderResponse, Usage
from ..constants import API_KEY_ENV_VARS, DEFAULT_TIMEOUT, PROVIDER_BASE_URLS
from ..errors import ExecutionError, sanitize_message


logger = logging.getLogger(__name__)

__all__ = ["ExecutionOptions", "Provider", "ProviderResponse", "Usage"]


@dataclass
class ExecutionOptions:
    """Per-call execution settings.

    Attributes:
        api_key: API key; falls back to the provider's environment variable.
        model: Model override; falls back to the request's model.
        temperature: Sampling temperature.
        max_tokens: Completion token budget.
        timeout: Request timeout in seconds.
        base_url: API base URL override, e.g. for a gateway.
    """
    api_key: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout: float = DEFAULT_TIMEOUT
    base_url: Optional[str] = None


class Provider(ABC):
    """Sends chat requests to one provider family.

    Subclasses name their family and adapter and describe the endpoint and
    authentication headers.
    """

    family: str = ""
    default_model: str = ""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            client: Shared AsyncClient to send requests with. When omitted a
                client is created per call.
            transport: Transport for per-call clients, e.g. a MockTransport.
        """
        self._client = client
        self._transport = transport
        self.adapter = self._create_adapter()

    @abstractmethod
    def _create_adapter(self) -> ProviderAdapter:
        pass

    @abstractmethod
    def _endpoint(self, base_url: str, model: str) -> str:
        """URL for a generation call."""
        pass

    @abstractmethod
    def _headers(self, api_key: str) -> dict[str, str]:
        pass

    def resolve_api_key(self, options: ExecutionOptions) -> str:
        """
        Find the API key for a call.

        Raises:
            ExecutionError: If neither the options nor the environment hold a key.
        """
        env_var = API_KEY_ENV_VARS[self.family]
        api_key = options.api_key or os.environ.get(env_var)
        if not api_key:
            raise ExecutionError(
                f"{self.family} API key is required. Pass one or set {env_var}",
                {"provider": self.family},
            )
        return api_key

    def build_payload(self, request: ChatRequest, options: ExecutionOptions) -> dict[str, Any]:
        return self.adapter.build_payload(
            request,
            PayloadOptions(
                model=self.resolve_model(request, options),
                temperature=options.temperature,
                max_tokens=options.max_tokens,
            ),
        )

    def resolve_model(self, request: ChatRequest, options: ExecutionOptions) -> str:
        return options.model or request.model or self.default_model

    async def _post(self, url: str, headers: dict[str, str], payload: dict[str, Any],
                    timeout: float) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, headers=headers, json=payload, timeout=timeout)
        async with httpx.AsyncClient(transport=self._transport) as client:
            return await client.post(url, headers=headers, json=payload, timeout=timeout)

    async def execute(
        self,
        request: ChatRequest,
        options: Optional[ExecutionOptions] = None,
    ) -> ProviderResponse:
        """
        Send a chat request.

        Args:
            request: The formatted request.
            options: Execution settings.

        Returns:
            The normalized response.

        Raises:
            ExecutionError: On a missing key, a transport failure, an error
                status or an unexpected reply.
            SchemaTranslationError: If the response format cannot be expressed
                for this provider.
        """
        options = options or ExecutionOptions()
        api_key = self.resolve_api_key(options)
        model = self.resolve_model(request, options)
        payload = self.build_payload(request, options)
        base_url = (options.base_url or PROVIDER_BASE_URLS[self.family]).rstrip("/")
        url = self._endpoint(base_url, model)

        logger.debug(f"Sending {self.family} request for model {model}")
        try:
            response = await self._post(url, self._headers(api_key), payload, options.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:200]
            raise ExecutionError(
                sanitize_message(
                    f"{self.family} request failed with status {e.response.status_code}: {detail}"
                ),
                {"provider": self.family, "status": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise ExecutionError(
                sanitize_message(f"{self.family} request failed: {e}"),
                {"provider": self.family},
            ) from e
        except ValueError as e:
            raise ExecutionError(
                f"{self.family} returned a non-JSON response",
                {"provider": self.family},
            ) from e

        result = self.adapter.parse_response(data)
        if result.model is None:
            result.model = model
        return result
