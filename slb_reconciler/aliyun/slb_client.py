"""Client for the Aliyun Server Load Balancer (SLB) API."""

from __future__ import annotations

import json
import logging
from typing import Any

from ..config import AliyunConfig
from ..models import (
    BackendServer,
    HTTPListenerArgs,
    ListenerArgs,
    ListenerAttributes,
    LoadBalancer,
    TCPListenerArgs,
    UDPListenerArgs,
)
from .rpc import AliyunRPCClient, paginate

logger = logging.getLogger(__name__)

SLB_API_VERSION = "2014-05-15"
INTERNET_ADDRESS_TYPE = "internet"


class SLBClient:
    """Balancer registry: one method per SLB action the reconciler needs."""

    def __init__(self, config: AliyunConfig, rpc: AliyunRPCClient | None = None):
        self._rpc = rpc or AliyunRPCClient(
            endpoint=config.slb_endpoint,
            version=SLB_API_VERSION,
            access_key_id=config.access_key_id,
            access_key_secret=config.access_key_secret,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
        )

    # ── Load balancers ──────────────────────────────────────────────

    def describe_load_balancers(self, region: str) -> list[LoadBalancer]:
        """Summaries of every load balancer in the region (no listeners or backends)."""
        items = paginate(self._rpc, "DescribeLoadBalancers", "LoadBalancers", "LoadBalancer", RegionId=region)
        return [LoadBalancer.from_api(item) for item in items]

    def describe_load_balancer_attribute(self, load_balancer_id: str) -> LoadBalancer:
        body = self._rpc.call("DescribeLoadBalancerAttribute", LoadBalancerId=load_balancer_id)
        return LoadBalancer.from_api(body)

    def create_load_balancer(
        self,
        region: str,
        name: str,
        client_token: str,
        internet_charge_type: str = "",
        bandwidth: int = 0,
        address_type: str = INTERNET_ADDRESS_TYPE,
    ) -> str:
        """Create a load balancer and return its id. The resource may not be queryable yet."""
        body = self._rpc.call(
            "CreateLoadBalancer",
            RegionId=region,
            LoadBalancerName=name,
            AddressType=address_type,
            # Charge types have to be all lower case on the SLB side
            InternetChargeType=internet_charge_type.lower() or None,
            Bandwidth=bandwidth or None,
            ClientToken=client_token,
        )
        return body.get("LoadBalancerId", "")

    def delete_load_balancer(self, load_balancer_id: str) -> None:
        self._rpc.call("DeleteLoadBalancer", LoadBalancerId=load_balancer_id)

    # ── Listeners ───────────────────────────────────────────────────

    def create_listener(self, args: ListenerArgs) -> None:
        match args:
            case TCPListenerArgs():
                action = "CreateLoadBalancerTCPListener"
            case UDPListenerArgs():
                action = "CreateLoadBalancerUDPListener"
            case HTTPListenerArgs():
                action = "CreateLoadBalancerHTTPListener"
            case _:
                raise TypeError(f"Unknown listener arguments: {args!r}")
        self._rpc.call(action, **args.to_params())

    def start_listener(self, load_balancer_id: str, port: int) -> None:
        self._rpc.call("StartLoadBalancerListener", LoadBalancerId=load_balancer_id, ListenerPort=port)

    def delete_listener(self, load_balancer_id: str, port: int) -> None:
        self._rpc.call("DeleteLoadBalancerListener", LoadBalancerId=load_balancer_id, ListenerPort=port)

    def describe_tcp_listener_attribute(self, load_balancer_id: str, port: int) -> ListenerAttributes:
        return self._listener_attributes("DescribeLoadBalancerTCPListenerAttribute", load_balancer_id, port)

    def describe_udp_listener_attribute(self, load_balancer_id: str, port: int) -> ListenerAttributes:
        return self._listener_attributes("DescribeLoadBalancerUDPListenerAttribute", load_balancer_id, port)

    def describe_http_listener_attribute(self, load_balancer_id: str, port: int) -> ListenerAttributes:
        return self._listener_attributes("DescribeLoadBalancerHTTPListenerAttribute", load_balancer_id, port)

    def _listener_attributes(self, action: str, load_balancer_id: str, port: int) -> ListenerAttributes:
        body = self._rpc.call(action, LoadBalancerId=load_balancer_id, ListenerPort=port)
        return ListenerAttributes(
            backend_port=int(body.get("BackendServerPort") or 0),
            status=body.get("Status", ""),
        )

    # ── Backend servers ─────────────────────────────────────────────

    def add_backend_servers(self, load_balancer_id: str, servers: list[BackendServer]) -> list[BackendServer]:
        body = self._rpc.call(
            "AddBackendServers",
            LoadBalancerId=load_balancer_id,
            BackendServers=json.dumps([s.to_api() for s in servers]),
        )
        return self._backend_servers(body)

    def remove_backend_servers(self, load_balancer_id: str, server_ids: list[str]) -> list[BackendServer]:
        body = self._rpc.call(
            "RemoveBackendServers",
            LoadBalancerId=load_balancer_id,
            BackendServers=json.dumps(server_ids),
        )
        return self._backend_servers(body)

    @staticmethod
    def _backend_servers(body: dict[str, Any]) -> list[BackendServer]:
        items = (body.get("BackendServers") or {}).get("BackendServer") or []
        return [BackendServer(server_id=i["ServerId"], weight=int(i.get("Weight", 100))) for i in items]
