"""Signed RPC-style HTTP transport shared by the Aliyun SLB and ECS clients."""

from __future__ import annotations

import base64
import hashlib
import hmac
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterator
from urllib.parse import quote

import requests

from ..exceptions import AliyunAPIError

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


def percent_encode(value: Any) -> str:
    """RFC 3986 encoding as required by the signature (space -> %20, '*' -> %2A, '~' kept)."""
    return quote(str(value), safe="~")


def sign(params: dict[str, Any], secret: str, method: str = "GET") -> str:
    """Compute the HMAC-SHA1 signature (version 1.0) for a parameter set."""
    canonical = "&".join(
        f"{percent_encode(k)}={percent_encode(v)}" for k, v in sorted(params.items())
    )
    string_to_sign = f"{method}&{percent_encode('/')}&{percent_encode(canonical)}"
    digest = hmac.new(f"{secret}&".encode(), string_to_sign.encode(), hashlib.sha1).digest()
    return base64.b64encode(digest).decode()


def client_token() -> str:
    """Fresh idempotency token for create calls."""
    return uuid.uuid4().hex


def paginate(
    rpc: AliyunRPCClient, action: str, collection: str, item: str, **params: Any,
) -> Iterator[dict[str, Any]]:
    """Yield every ``body[collection][item]`` entry of a paged Describe* action."""
    page = 1
    while True:
        body = rpc.call(action, PageNumber=page, PageSize=PAGE_SIZE, **params)
        items = (body.get(collection) or {}).get(item) or []
        yield from items
        total = int(body.get("TotalCount") or 0)
        if not items or page * PAGE_SIZE >= total:
            return
        page += 1


class AliyunRPCClient:
    """Thin wrapper around an Aliyun RPC endpoint (query-string actions, JSON responses)."""

    def __init__(
        self,
        endpoint: str,
        version: str,
        access_key_id: str,
        access_key_secret: str,
        timeout: int = 10,
        verify_ssl: bool = True,
    ):
        self._endpoint = endpoint.rstrip("/") + "/"
        self._version = version
        self._access_key_id = access_key_id
        self._access_key_secret = access_key_secret
        self._timeout = timeout
        self._session = requests.Session()
        self._session.verify = verify_ssl

    def call(self, action: str, **params: Any) -> dict[str, Any]:
        """Invoke an action and return the decoded JSON body."""
        query = self._signed_params(action, params)
        logger.debug("%s %s", action, params)

        try:
            resp = self._session.get(self._endpoint, params=query, timeout=self._timeout)
        except requests.RequestException as exc:
            raise AliyunAPIError(f"Request failed: {exc}") from exc

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.status_code >= 400 or "Code" in body:
            raise AliyunAPIError(
                f"{action} failed ({resp.status_code}): {body.get('Code', '')} {body.get('Message', resp.text)}",
                code=body.get("Code"),
                request_id=body.get("RequestId"),
                status_code=resp.status_code,
            )

        logger.debug("%s completed", action, extra={"request_id": body.get("RequestId")})
        return body

    def _signed_params(self, action: str, params: dict[str, Any]) -> dict[str, str]:
        query: dict[str, Any] = {
            "Format": "JSON",
            "Version": self._version,
            "AccessKeyId": self._access_key_id,
            "SignatureMethod": "HMAC-SHA1",
            "SignatureVersion": "1.0",
            "SignatureNonce": uuid.uuid4().hex,
            "Timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "Action": action,
        }
        query.update({k: v for k, v in params.items() if v is not None})
        query = {k: str(v) for k, v in query.items()}
        query["Signature"] = sign(query, self._access_key_secret)
        return query
