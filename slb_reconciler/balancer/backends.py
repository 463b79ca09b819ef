"""Backend server reconciliation: converge registered ECS instances to the node set."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..aliyun import LoadBalancerRegistry
from ..models import BackendServer, LoadBalancer

logger = logging.getLogger(__name__)

MAX_WEIGHT = 100


@dataclass
class BackendPlan:
    remove: list[str] = field(default_factory=list)
    add: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not (self.remove or self.add)


class BackendReconciler:
    """Registers missing instances and removes stale ones, one batch call each."""

    def __init__(self, registry: LoadBalancerRegistry, weight: int = MAX_WEIGHT):
        self._registry = registry
        self._weight = weight

    def reconcile(self, lb: LoadBalancer, instance_ids: list[str]) -> BackendPlan:
        plan = self.plan(lb, instance_ids)
        self.apply(lb, plan)
        return plan

    @staticmethod
    def plan(lb: LoadBalancer, instance_ids: list[str]) -> BackendPlan:
        # dict keeps the caller's order while dropping duplicates
        expected = dict.fromkeys(instance_ids)
        plan = BackendPlan()
        for server in lb.backend_servers:
            if server.server_id in expected:
                del expected[server.server_id]
                continue
            plan.remove.append(server.server_id)
        plan.add = list(expected)
        return plan

    def apply(self, lb: LoadBalancer, plan: BackendPlan) -> None:
        lb_id = lb.load_balancer_id
        if plan.remove:
            logger.info("Removing backend servers %s", plan.remove, extra={"load_balancer": lb_id})
            self._registry.remove_backend_servers(lb_id, plan.remove)

        if plan.add:
            logger.info("Adding backend servers %s", plan.add, extra={"load_balancer": lb_id})
            self._registry.add_backend_servers(
                lb_id, [BackendServer(server_id=i, weight=self._weight) for i in plan.add],
            )
