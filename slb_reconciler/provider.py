"""Cloud-provider load balancer contract backed by Aliyun SLB.

Each call re-reads remote state and converges it; nothing is cached between
calls. Calls for the same service must be serialized by the caller (for
example a per-service work queue); calls for different services are
independent.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from .aliyun import InstanceResolver, LoadBalancerRegistry
from .balancer import BackendReconciler, BalancerLocator, ListenerReconciler, load_balancer_name
from .config import AppConfig, RetryPolicy
from .exceptions import LoadBalancerNotFound, OptionsError, ServiceValidationError
from .models import LoadBalancer, LoadBalancerStatus, Node, Service
from .options import LoadBalancerOptions, decode_options

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOLS = ("TCP", "UDP")
AFFINITY_NONE = "None"


def validate_service(service: Service) -> None:
    """Reject services an SLB load balancer cannot serve. Runs before any remote call."""
    if service.session_affinity != AFFINITY_NONE:
        raise ServiceValidationError(f"unsupported load balancer affinity: {service.session_affinity}")

    for port in service.ports:
        if port.protocol.upper() not in SUPPORTED_PROTOCOLS:
            raise ServiceValidationError(
                f"Unsupported server port protocol for Aliyun load balancers: {port.protocol}"
            )

    if service.load_balancer_ip:
        raise ServiceValidationError("LoadBalancerIP can't be set for Aliyun load balancers")


class LoadBalancerProvider:
    """get / ensure / update / delete a service's SLB load balancer."""

    def __init__(
        self,
        registry: LoadBalancerRegistry,
        resolver: InstanceResolver,
        region: str,
        annotation_prefix: str = "aliyun.archon.kubeup.com/",
        retry: RetryPolicy | None = None,
        backend_weight: int = 100,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._resolver = resolver
        self._annotation_prefix = annotation_prefix
        self._locator = BalancerLocator(registry, region, retry=retry, sleep=sleep)
        self._registry = registry
        self._listeners = ListenerReconciler(registry)
        self._backends = BackendReconciler(registry, weight=backend_weight)

    @classmethod
    def from_config(cls, config: AppConfig) -> LoadBalancerProvider:
        from .aliyun.ecs_client import ECSInstanceResolver
        from .aliyun.slb_client import SLBClient

        return cls(
            registry=SLBClient(config.aliyun),
            resolver=ECSInstanceResolver(config.aliyun),
            region=config.aliyun.region,
            annotation_prefix=config.annotations.prefix,
            retry=config.provisioning,
            backend_weight=config.backend.weight,
        )

    def get_load_balancer_name(self, service: Service) -> str:
        return load_balancer_name(service.uid)

    def get_load_balancer(
        self, cluster_name: str, service: Service,
    ) -> tuple[LoadBalancerStatus | None, bool]:
        """Return (status, exists). A missing balancer is not an error."""
        lb = self._locator.find(self.get_load_balancer_name(service))
        if lb is None:
            return None, False
        return lb.to_status(), True

    def ensure_load_balancer(
        self, cluster_name: str, service: Service, nodes: list[Node],
    ) -> LoadBalancerStatus:
        validate_service(service)
        name = self.get_load_balancer_name(service)
        instance_ids = self._resolver.resolve(nodes)
        logger.info(
            "Ensuring load balancer %s for %s with backends %s",
            name, service.qualified_name, [n.name for n in nodes],
            extra={"load_balancer": name, "service": service.qualified_name},
        )

        options = self._options(service)
        lb = self._locator.find_or_create(name, options)
        self._sync(lb, service, instance_ids, options)
        return lb.to_status()

    def update_load_balancer(self, cluster_name: str, service: Service, nodes: list[Node]) -> None:
        validate_service(service)
        name = self.get_load_balancer_name(service)
        lb = self._locator.find(name)
        if lb is None:
            raise LoadBalancerNotFound(f"Load balancer {name} is not found")

        instance_ids = self._resolver.resolve(nodes)
        logger.info(
            "Updating load balancer %s for %s", name, service.qualified_name,
            extra={"load_balancer": name, "service": service.qualified_name},
        )
        self._sync(lb, service, instance_ids, self._options(service))

    def ensure_load_balancer_deleted(self, cluster_name: str, service: Service) -> None:
        name = self.get_load_balancer_name(service)
        logger.info("Deleting service load balancer %s", name, extra={"load_balancer": name})
        lb = self._locator.find(name)
        if lb is None:
            logger.info("Load balancer %s probably already gone, ignoring", name)
            return
        self._registry.delete_load_balancer(lb.load_balancer_id)

    def _sync(
        self, lb: LoadBalancer, service: Service, instance_ids: list[str], options: LoadBalancerOptions,
    ) -> None:
        self._listeners.reconcile(lb, service.ports, options)
        self._backends.reconcile(lb, instance_ids)

    def _options(self, service: Service) -> LoadBalancerOptions:
        try:
            return decode_options(service.annotations, self._annotation_prefix)
        except OptionsError as exc:
            logger.warning(
                "Unable to extract load balancer options from annotations of %s: %s",
                service.qualified_name, exc,
            )
            return LoadBalancerOptions()
