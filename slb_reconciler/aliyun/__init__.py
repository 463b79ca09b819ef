"""Aliyun clients: the Protocols the reconciler depends on and their SLB/ECS implementations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..models import BackendServer, ListenerArgs, ListenerAttributes, LoadBalancer, Node


@runtime_checkable
class LoadBalancerRegistry(Protocol):
    """Remote load balancer API. Calls are synchronous; errors propagate verbatim."""

    def describe_load_balancers(self, region: str) -> list[LoadBalancer]: ...

    def describe_load_balancer_attribute(self, load_balancer_id: str) -> LoadBalancer: ...

    def create_load_balancer(
        self,
        region: str,
        name: str,
        client_token: str,
        internet_charge_type: str = "",
        bandwidth: int = 0,
        address_type: str = "internet",
    ) -> str: ...

    def delete_load_balancer(self, load_balancer_id: str) -> None: ...

    def create_listener(self, args: ListenerArgs) -> None: ...

    def start_listener(self, load_balancer_id: str, port: int) -> None: ...

    def delete_listener(self, load_balancer_id: str, port: int) -> None: ...

    def describe_tcp_listener_attribute(self, load_balancer_id: str, port: int) -> ListenerAttributes: ...

    def describe_udp_listener_attribute(self, load_balancer_id: str, port: int) -> ListenerAttributes: ...

    def describe_http_listener_attribute(self, load_balancer_id: str, port: int) -> ListenerAttributes: ...

    def add_backend_servers(self, load_balancer_id: str, servers: list[BackendServer]) -> list[BackendServer]: ...

    def remove_backend_servers(self, load_balancer_id: str, server_ids: list[str]) -> list[BackendServer]: ...


@runtime_checkable
class InstanceResolver(Protocol):
    """Maps cluster nodes to compute instance ids."""

    def resolve(self, nodes: list[Node]) -> list[str]:
        """Return the instance ids backing the given nodes."""
        ...
