"""Engine API client that authenticates with HS256 JWTs."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time

import requests

from odometer.engine_api import (
    EngineApiParseError,
    EngineApiRequest,
    EngineApiResponse,
    TimedEngineApiResponse,
)


class JwtError(Exception):
    """Base error for authenticated Engine API calls."""


class RequestError(JwtError):
    """The HTTP request failed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"HTTP error: {message}")


class ResponseDecodeError(JwtError):
    """The response body could not be decoded as an Engine API response."""

    def __init__(self, response_text: str, reason: str) -> None:
        super().__init__(f"could not deserialize response: {response_text}")
        self.response_text = response_text
        self.reason = reason


def _b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _compact_json(value: dict) -> str:
    return json.dumps(value, separators=(",", ":"), sort_keys=True)


class JwtClient:
    """Sends Engine API requests with a freshly signed JWT each time."""

    def __init__(self, secret: bytes, rpc_url: str) -> None:
        self.secret = bytes(secret)
        self.rpc_url = rpc_url
        self._session = requests.Session()

    def create_jwt(self, issued_at: int | None = None) -> str:
        """Build an HS256 token whose `iat` claim is *issued_at* (default: now)."""
        if issued_at is None:
            issued_at = int(time.time())
        header_b64 = _b64url(_compact_json({"alg": "HS256", "typ": "JWT"}).encode())
        payload_b64 = _b64url(_compact_json({"iat": issued_at}).encode())
        unsigned = f"{header_b64}.{payload_b64}"
        signature = hmac.new(self.secret, unsigned.encode(), hashlib.sha256).digest()
        return f"{unsigned}.{_b64url(signature)}"

    def send_request(self, request: EngineApiRequest) -> TimedEngineApiResponse:
        """Send *request* and return the parsed response with its round-trip time."""
        jwt = self.create_jwt()
        body = request.to_json()
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {jwt}",
        }
        start = time.perf_counter_ns()
        try:
            response = self._session.post(self.rpc_url, data=body, headers=headers)
        except requests.RequestException as exc:
            raise RequestError(str(exc)) from exc
        elapsed_us = (time.perf_counter_ns() - start) // 1000

        text = response.text
        try:
            parsed = EngineApiResponse.from_json(text)
        except EngineApiParseError as exc:
            raise ResponseDecodeError(text, str(exc)) from exc
        return TimedEngineApiResponse(time_taken_microseconds=elapsed_us, response=parsed)