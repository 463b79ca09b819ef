"""Data models for services, nodes and the SLB resources reconciled against them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

STOPPED = "stopped"

HEALTHY_HTTP_CODES = "http_2xx,http_3xx,http_4xx"


def listener_key(port: int, protocol: str) -> str:
    """Correlation key between a desired service port and a remote listener.

    HTTP listeners are layered over TCP, so they share the TCP key.
    """
    protocol = protocol.lower()
    if protocol == "http":
        protocol = "tcp"
    return f"{port}|{protocol}"


# ── Kubernetes-side inputs ──────────────────────────────────────────


@dataclass(frozen=True)
class ServicePort:
    port: int
    protocol: str
    node_port: int = 0
    name: str = ""

    @property
    def key(self) -> str:
        return listener_key(self.port, self.protocol)

    @classmethod
    def from_manifest(cls, data: dict[str, Any]) -> ServicePort:
        return cls(
            port=int(data["port"]),
            protocol=str(data.get("protocol", "TCP")).upper(),
            node_port=int(data.get("nodePort", 0) or 0),
            name=data.get("name", ""),
        )


@dataclass(frozen=True)
class Service:
    """The parts of a Kubernetes Service a load balancer is derived from."""

    uid: str
    name: str
    namespace: str = "default"
    annotations: dict[str, str] = field(default_factory=dict)
    ports: list[ServicePort] = field(default_factory=list)
    session_affinity: str = "None"
    load_balancer_ip: str = ""

    @property
    def qualified_name(self) -> str:
        return f"{self.namespace}/{self.name}"

    @classmethod
    def from_manifest(cls, data: dict[str, Any]) -> Service:
        metadata = data.get("metadata") or {}
        spec = data.get("spec") or {}
        return cls(
            uid=str(metadata.get("uid", "")),
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", "default"),
            annotations={str(k): str(v) for k, v in (metadata.get("annotations") or {}).items()},
            ports=[ServicePort.from_manifest(p) for p in spec.get("ports") or []],
            session_affinity=spec.get("sessionAffinity") or "None",
            load_balancer_ip=spec.get("loadBalancerIP", "") or "",
        )


@dataclass(frozen=True)
class Node:
    name: str
    provider_id: str = ""
    internal_ip: str = ""

    @classmethod
    def from_manifest(cls, data: dict[str, Any] | str) -> Node:
        if isinstance(data, str):
            return cls(name=data)
        metadata = data.get("metadata") or {}
        spec = data.get("spec") or {}
        status = data.get("status") or {}
        internal_ip = data.get("internalIP", "")
        for address in status.get("addresses") or []:
            if address.get("type") == "InternalIP":
                internal_ip = address.get("address", "")
                break
        return cls(
            name=metadata.get("name") or data.get("name", ""),
            provider_id=spec.get("providerID") or data.get("providerID", ""),
            internal_ip=internal_ip,
        )


# ── SLB-side state ──────────────────────────────────────────────────


@dataclass(frozen=True)
class ListenerRef:
    """A listener as reported in a load balancer's attribute set."""

    port: int
    protocol: str

    @property
    def key(self) -> str:
        return listener_key(self.port, self.protocol)

    @property
    def is_http(self) -> bool:
        return self.protocol.lower() == "http"


@dataclass(frozen=True)
class ListenerAttributes:
    backend_port: int
    status: str


@dataclass(frozen=True)
class BackendServer:
    server_id: str
    weight: int = 100

    def to_api(self) -> dict[str, Any]:
        return {"ServerId": self.server_id, "Weight": self.weight}


@dataclass(frozen=True)
class LoadBalancerStatus:
    """Ingress published for a service. Only the IP form is supported."""

    ip: str


@dataclass
class LoadBalancer:
    load_balancer_id: str
    name: str
    region: str = ""
    address: str = ""
    address_type: str = ""
    internet_charge_type: str = ""
    bandwidth: int = 0
    listeners: list[ListenerRef] = field(default_factory=list)
    backend_servers: list[BackendServer] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> LoadBalancer:
        """Build from a DescribeLoadBalancerAttribute (or summary) payload."""
        listeners = (data.get("ListenerPortsAndProtocol") or {}).get("ListenerPortAndProtocol") or []
        servers = (data.get("BackendServers") or {}).get("BackendServer") or []
        return cls(
            load_balancer_id=data["LoadBalancerId"],
            name=data.get("LoadBalancerName", ""),
            region=data.get("RegionId", ""),
            address=data.get("Address", ""),
            address_type=data.get("AddressType", ""),
            internet_charge_type=data.get("InternetChargeType", ""),
            bandwidth=int(data.get("Bandwidth") or 0),
            listeners=[
                ListenerRef(port=int(item["ListenerPort"]), protocol=item["ListenerProtocol"])
                for item in listeners
            ],
            backend_servers=[
                BackendServer(server_id=item["ServerId"], weight=int(item.get("Weight", 100)))
                for item in servers
            ],
        )

    def to_status(self) -> LoadBalancerStatus:
        return LoadBalancerStatus(ip=self.address)


# ── Listener creation variants ──────────────────────────────────────


def _drop_empty(params: dict[str, Any]) -> dict[str, Any]:
    """Unset (zero/empty) fields are left out so the SLB side applies its own defaults."""
    return {k: v for k, v in params.items() if v not in (0, "", None)}


@dataclass(frozen=True)
class TCPListenerArgs:
    load_balancer_id: str
    listener_port: int
    backend_port: int
    bandwidth: int = 0
    healthy_threshold: int = 0
    unhealthy_threshold: int = 0
    health_check_connect_timeout: int = 0
    health_check_interval: int = 0

    @property
    def health_check_connect_port(self) -> int:
        return self.backend_port

    def to_params(self) -> dict[str, Any]:
        return _drop_empty({
            "LoadBalancerId": self.load_balancer_id,
            "ListenerPort": self.listener_port,
            "BackendServerPort": self.backend_port,
            "Bandwidth": self.bandwidth,
            "HealthCheckType": "tcp",
            "HealthCheckConnectPort": self.health_check_connect_port,
            "HealthyThreshold": self.healthy_threshold,
            "UnhealthyThreshold": self.unhealthy_threshold,
            "HealthCheckConnectTimeout": self.health_check_connect_timeout,
            "HealthCheckInterval": self.health_check_interval,
        })


@dataclass(frozen=True)
class UDPListenerArgs:
    load_balancer_id: str
    listener_port: int
    backend_port: int
    bandwidth: int = 0
    healthy_threshold: int = 0
    unhealthy_threshold: int = 0
    health_check_connect_timeout: int = 0
    health_check_interval: int = 0

    @property
    def health_check_connect_port(self) -> int:
        return self.backend_port

    def to_params(self) -> dict[str, Any]:
        return _drop_empty({
            "LoadBalancerId": self.load_balancer_id,
            "ListenerPort": self.listener_port,
            "BackendServerPort": self.backend_port,
            "Bandwidth": self.bandwidth,
            "HealthCheckConnectPort": self.health_check_connect_port,
            "HealthyThreshold": self.healthy_threshold,
            "UnhealthyThreshold": self.unhealthy_threshold,
            "HealthCheckConnectTimeout": self.health_check_connect_timeout,
            "HealthCheckInterval": self.health_check_interval,
        })


@dataclass(frozen=True)
class HTTPListenerArgs:
    load_balancer_id: str
    listener_port: int
    backend_port: int
    bandwidth: int = 0
    health_check: bool = False
    health_check_uri: str = ""
    health_check_timeout: int = 0
    health_check_interval: int = 0
    healthy_threshold: int = 0
    unhealthy_threshold: int = 0

    def to_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {
            "LoadBalancerId": self.load_balancer_id,
            "ListenerPort": self.listener_port,
            "BackendServerPort": self.backend_port,
            "Bandwidth": self.bandwidth,
            "StickySession": "off",
            "HealthCheck": "on" if self.health_check else "off",
        }
        if self.health_check:
            params.update({
                "HealthCheckConnectPort": self.backend_port,
                "HealthCheckHttpCode": HEALTHY_HTTP_CODES,
                "HealthCheckURI": self.health_check_uri,
                "HealthCheckTimeout": self.health_check_timeout,
                "HealthCheckInterval": self.health_check_interval,
                "HealthyThreshold": self.healthy_threshold,
                "UnhealthyThreshold": self.unhealthy_threshold,
            })
        return _drop_empty(params)


ListenerArgs = TCPListenerArgs | UDPListenerArgs | HTTPListenerArgs
