"""Load balancer options decoded from prefixed service annotations.

Example service metadata::

    annotations:
      aliyun.archon.kubeup.com/bandwidth: "1"
      aliyun.archon.kubeup.com/load-balancer-backend-protocol: "http"
      aliyun.archon.kubeup.com/load-balancer-http-health-check: "true"
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any

from .exceptions import OptionsError

logger = logging.getLogger(__name__)

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off", ""}


def _key(name: str) -> dict[str, str]:
    return {"annotation": name}


@dataclass(frozen=True)
class LoadBalancerOptions:
    internet_charge_type: str = field(default="", metadata=_key("internet-charge-type"))
    bandwidth: int = field(default=0, metadata=_key("bandwidth"))
    healthy_threshold: int = field(default=0, metadata=_key("healthy-threshold"))
    unhealthy_threshold: int = field(default=0, metadata=_key("unhealthy-threshold"))
    health_check_connect_timeout: int = field(default=0, metadata=_key("health-check-connect-timeout"))
    health_check_interval: int = field(default=0, metadata=_key("health-check-interval"))
    backend_protocol: str = field(default="", metadata=_key("load-balancer-backend-protocol"))
    health_check: bool = field(default=False, metadata=_key("load-balancer-http-health-check"))
    health_check_uri: str = field(default="", metadata=_key("load-balancer-http-health-check-uri"))
    health_check_timeout: int = field(default=0, metadata=_key("load-balancer-http-health-check-timeout"))

    @property
    def uses_http_backend(self) -> bool:
        return self.backend_protocol.upper() == "HTTP"


HTTP_HEALTH_CHECK_DEFAULTS: dict[str, Any] = {
    "health_check_uri": "/",
    "health_check_timeout": 3,
    "health_check_interval": 5,
    "healthy_threshold": 4,
    "unhealthy_threshold": 4,
}


def with_http_health_check_defaults(options: LoadBalancerOptions) -> LoadBalancerOptions:
    """Return a copy with every unset HTTP health-check field given its default. The input is left unmodified."""
    changes = {
        name: default
        for name, default in HTTP_HEALTH_CHECK_DEFAULTS.items()
        if not getattr(options, name)
    }
    return dataclasses.replace(options, **changes) if changes else options


def _parse(name: str, raw: str, kind: Any) -> Any:
    if kind in (bool, "bool"):
        value = raw.strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        raise OptionsError(f"Annotation '{name}' must be a boolean, got {raw!r}")
    if kind in (int, "int"):
        try:
            return int(raw.strip())
        except ValueError:
            raise OptionsError(f"Annotation '{name}' must be an integer, got {raw!r}") from None
    return raw


def decode_options(annotations: dict[str, str] | None, prefix: str) -> LoadBalancerOptions:
    """Decode prefixed annotations into LoadBalancerOptions.

    Annotations outside the prefix, and unknown keys inside it, are ignored.
    Raises OptionsError if a recognized annotation has a malformed value.
    """
    if not annotations:
        return LoadBalancerOptions()

    by_annotation = {f.metadata["annotation"]: f for f in dataclasses.fields(LoadBalancerOptions)}
    kwargs: dict[str, Any] = {}
    for key, raw in annotations.items():
        if not key.startswith(prefix):
            continue
        name = key[len(prefix):]
        f = by_annotation.get(name)
        if f is None:
            logger.debug("Ignoring unknown load balancer annotation %s", key)
            continue
        kwargs[f.name] = _parse(name, str(raw), f.type)

    return LoadBalancerOptions(**kwargs)
