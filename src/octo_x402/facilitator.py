"""HTTP client for an x402 facilitator's REST endpoints.

Verification and settlement happen on the facilitator; this client only
speaks its request/response contract.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from octo_x402.config import DEFAULT_FACILITATOR_TIMEOUT, DEFAULT_FACILITATOR_URL
from octo_x402.errors import FacilitatorError
from octo_x402.types import (
    PaymentPayload,
    PaymentRequirements,
    SettleResponse,
    VerifyResponse,
)

logger = logging.getLogger(__name__)

PayloadLike = Union[PaymentPayload, dict[str, Any]]
RequirementsLike = Union[PaymentRequirements, dict[str, Any]]


@dataclass
class FacilitatorConfig:
    """Configuration for the HTTP facilitator client."""

    url: str = DEFAULT_FACILITATOR_URL
    timeout: float = DEFAULT_FACILITATOR_TIMEOUT
    http_client: Optional[httpx.Client] = None


def _to_wire(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    return obj


def _unwrap(data: Any) -> Any:
    """Unwrap `{success, data}` envelopes some facilitators return."""
    if isinstance(data, dict) and "data" in data and "success" in data:
        if not data["success"]:
            reason = data.get("error") or data.get("message") or "unknown error"
            raise FacilitatorError(f"Facilitator reported failure: {reason}", reason=str(reason))
        return data["data"]
    return data


class FacilitatorClient:
    """Facilitator client over httpx.

    Example:
        ```python
        with FacilitatorClient(FacilitatorConfig(url="https://facilitator.example")) as facilitator:
            result = facilitator.verify(payload, requirements)
            if result.is_valid:
                settlement = facilitator.settle(payload, requirements)
        ```

    Requests are never retried: settlement is not safe to repeat blindly.
    """

    def __init__(self, config: Optional[FacilitatorConfig] = None) -> None:
        config = config or FacilitatorConfig()
        self._url = config.url.rstrip("/")
        self._timeout = config.timeout
        self._http_client = config.http_client
        self._owns_client = config.http_client is None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=self._timeout, follow_redirects=True)
        return self._http_client

    def close(self) -> None:
        """Close HTTP client if we own it."""
        if self._owns_client and self._http_client:
            self._http_client.close()
            self._http_client = None

    def __enter__(self) -> FacilitatorClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def url(self) -> str:
        return self._url

    def _request(self, method: str, path: str, body: Optional[dict[str, Any]] = None) -> Any:
        endpoint = f"{self._url}{path}"
        try:
            response = self._get_client().request(
                method,
                endpoint,
                json=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.warning("Facilitator request %s %s failed: %s", method, path, e)
            raise FacilitatorError(f"Facilitator request to {path} failed: {e}") from e

        if not response.is_success:
            raise FacilitatorError(
                f"Facilitator {path} failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
                reason=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise FacilitatorError(
                f"Facilitator {path} returned invalid JSON",
                status_code=response.status_code,
            ) from e
        return _unwrap(data)

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/health")

    def supported(self) -> dict[str, Any]:
        return self._request("GET", "/supported")

    def stats(self) -> dict[str, Any]:
        return self._request("GET", "/stats")

    def verify(self, payload: PayloadLike, requirements: RequirementsLike) -> VerifyResponse:
        """Verify a payment with the facilitator.

        An invalid payment is a normal result with ``is_valid=False``.

        Raises:
            FacilitatorError: If the request fails or the response is malformed.
        """
        data = self._request("POST", "/verify", self._body(payload, requirements))
        return self._parse(VerifyResponse, data, "/verify")

    def settle(self, payload: PayloadLike, requirements: RequirementsLike) -> SettleResponse:
        """Settle a payment with the facilitator.

        Raises:
            FacilitatorError: If the request fails, the response is malformed,
                or the facilitator reports an unsuccessful settlement.
        """
        data = self._request("POST", "/settle", self._body(payload, requirements))
        result = self._parse(SettleResponse, data, "/settle")
        if not result.success:
            reason = result.error_reason or "settlement failed"
            raise FacilitatorError(f"Facilitator settle failed: {reason}", reason=reason)
        logger.info("Settled payment on %s: %s", result.network, result.reference)
        return result

    @staticmethod
    def _body(payload: PayloadLike, requirements: RequirementsLike) -> dict[str, Any]:
        return {
            "paymentPayload": _to_wire(payload),
            "paymentRequirements": _to_wire(requirements),
        }

    @staticmethod
    def _parse(model: Any, data: Any, path: str) -> Any:
        try:
            return model.model_validate(data)
        except ValueError as e:
            raise FacilitatorError(f"Facilitator {path} returned an unexpected response: {e}") from e
