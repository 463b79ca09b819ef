"""Listener reconciliation: converge SLB listeners to a service's ports."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..aliyun import LoadBalancerRegistry
from ..exceptions import UnsupportedProtocolError
from ..models import (
    STOPPED,
    HTTPListenerArgs,
    ListenerArgs,
    ListenerAttributes,
    ListenerRef,
    LoadBalancer,
    ServicePort,
    TCPListenerArgs,
    UDPListenerArgs,
)
from ..options import LoadBalancerOptions, with_http_health_check_defaults

logger = logging.getLogger(__name__)


@dataclass
class ListenerPlan:
    """Mutations needed to converge, applied in field order."""

    start: list[int] = field(default_factory=list)
    delete: list[int] = field(default_factory=list)
    create: list[ServicePort] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.start or self.delete or self.create)


def _wants_http(port: ServicePort, options: LoadBalancerOptions) -> bool:
    return port.protocol.upper() == "TCP" and options.uses_http_backend


def build_listener_args(
    load_balancer_id: str, port: ServicePort, options: LoadBalancerOptions,
) -> ListenerArgs:
    """Creation arguments for a service port; HTTP is chosen via the backend protocol option."""
    match port.protocol.upper():
        case "UDP":
            return UDPListenerArgs(
                load_balancer_id=load_balancer_id,
                listener_port=port.port,
                backend_port=port.node_port,
                bandwidth=options.bandwidth,
                healthy_threshold=options.healthy_threshold,
                unhealthy_threshold=options.unhealthy_threshold,
                health_check_connect_timeout=options.health_check_connect_timeout,
                health_check_interval=options.health_check_interval,
            )
        case "TCP" if not options.uses_http_backend:
            return TCPListenerArgs(
                load_balancer_id=load_balancer_id,
                listener_port=port.port,
                backend_port=port.node_port,
                bandwidth=options.bandwidth,
                healthy_threshold=options.healthy_threshold,
                unhealthy_threshold=options.unhealthy_threshold,
                health_check_connect_timeout=options.health_check_connect_timeout,
                health_check_interval=options.health_check_interval,
            )
        case "TCP":
            if not options.health_check:
                return HTTPListenerArgs(
                    load_balancer_id=load_balancer_id,
                    listener_port=port.port,
                    backend_port=port.node_port,
                    bandwidth=options.bandwidth,
                )
            defaulted = with_http_health_check_defaults(options)
            return HTTPListenerArgs(
                load_balancer_id=load_balancer_id,
                listener_port=port.port,
                backend_port=port.node_port,
                bandwidth=defaulted.bandwidth,
                health_check=True,
                health_check_uri=defaulted.health_check_uri,
                health_check_timeout=defaulted.health_check_timeout,
                health_check_interval=defaulted.health_check_interval,
                healthy_threshold=defaulted.healthy_threshold,
                unhealthy_threshold=defaulted.unhealthy_threshold,
            )
        case _:
            raise UnsupportedProtocolError(port.protocol, action="creating service listener")


class ListenerReconciler:
    """Diffs listeners by (port, protocol) and applies start -> delete -> create."""

    def __init__(self, registry: LoadBalancerRegistry):
        self._registry = registry

    def reconcile(
        self, lb: LoadBalancer, ports: list[ServicePort], options: LoadBalancerOptions,
    ) -> ListenerPlan:
        plan = self.plan(lb, ports, options)
        self.apply(lb, plan, options)
        return plan

    def plan(
        self, lb: LoadBalancer, ports: list[ServicePort], options: LoadBalancerOptions,
    ) -> ListenerPlan:
        expected: dict[str, ServicePort] = {}
        for port in ports:
            if port.node_port == 0:
                logger.info("Ignored a service port with no node port: %s", port)
                continue
            expected[port.key] = port

        plan = ListenerPlan()
        for listener in lb.listeners:
            logger.debug("Existing listener: %s", listener.key)
            wanted = expected.get(listener.key)
            if wanted is not None and listener.is_http == _wants_http(wanted, options):
                attrs = self._attributes(lb, listener)
                if attrs.backend_port == wanted.node_port:
                    if attrs.status == STOPPED:
                        plan.start.append(wanted.port)
                    del expected[listener.key]
                    continue
            # Backend port and TCP/HTTP variant changes cannot be applied in place
            plan.delete.append(listener.port)

        plan.create = list(expected.values())
        logger.info(
            "Listeners on %s: existing %s, removing %s, starting %s, creating %s",
            lb.load_balancer_id, [listener.key for listener in lb.listeners], plan.delete, plan.start,
            [p.key for p in plan.create],
            extra={"load_balancer": lb.load_balancer_id},
        )
        return plan

    def apply(self, lb: LoadBalancer, plan: ListenerPlan, options: LoadBalancerOptions) -> None:
        """Apply a plan; the first failing call aborts the rest."""
        lb_id = lb.load_balancer_id

        for port in plan.start:
            logger.info("Starting stopped listener %d", port, extra={"load_balancer": lb_id, "listener_port": port})
            self._registry.start_listener(lb_id, port)

        # Deletions run before creations: SLB rejects a second listener on the same port
        for port in plan.delete:
            logger.info("Deleting listener %d", port, extra={"load_balancer": lb_id, "listener_port": port})
            self._registry.delete_listener(lb_id, port)

        for port in plan.create:
            args = build_listener_args(lb_id, port, options)
            logger.info(
                "Creating %s listener %d -> %d", type(args).__name__.removesuffix("ListenerArgs"),
                port.port, port.node_port,
                extra={"load_balancer": lb_id, "listener_port": port.port, "protocol": port.protocol},
            )
            self._registry.create_listener(args)
            self._registry.start_listener(lb_id, port.port)

    def _attributes(self, lb: LoadBalancer, listener: ListenerRef) -> ListenerAttributes:
        match listener.protocol.lower():
            case "tcp":
                return self._registry.describe_tcp_listener_attribute(lb.load_balancer_id, listener.port)
            case "udp":
                return self._registry.describe_udp_listener_attribute(lb.load_balancer_id, listener.port)
            case "http":
                return self._registry.describe_http_listener_attribute(lb.load_balancer_id, listener.port)
            case _:
                raise UnsupportedProtocolError(listener.protocol, action="getting listener attributes")
