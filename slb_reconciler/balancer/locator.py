"""Balancer name derivation, lookup, and create-then-poll provisioning."""

from __future__ import annotations

import logging
import time
from typing import Callable

from ..aliyun import LoadBalancerRegistry
from ..aliyun.rpc import client_token
from ..config import RetryPolicy
from ..exceptions import LoadBalancerError, LoadBalancerNotMaterialized
from ..models import LoadBalancer
from ..options import LoadBalancerOptions

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 32


def load_balancer_name(uid: str) -> str:
    """Stable balancer name for a service UID: 'a' + uid without dashes, at most 32 chars.

    Truncation means two UIDs sharing their first 31 dash-free characters
    would collide; Kubernetes UUIDs make that practically impossible.
    """
    return ("a" + uid).replace("-", "")[:MAX_NAME_LENGTH]


class BalancerLocator:
    """Finds a service's load balancer by name, creating it when asked to."""

    def __init__(
        self,
        registry: LoadBalancerRegistry,
        region: str,
        retry: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._registry = registry
        self._region = region
        self._retry = retry or RetryPolicy()
        self._sleep = sleep

    def find(self, name: str) -> LoadBalancer | None:
        """Return the full attribute set of the named balancer, or None if there is none."""
        for summary in self._registry.describe_load_balancers(self._region):
            if summary.name == name:
                # The list call only returns summaries
                return self._registry.describe_load_balancer_attribute(summary.load_balancer_id)
        return None

    def find_or_create(self, name: str, options: LoadBalancerOptions) -> LoadBalancer:
        lb = self.find(name)
        if lb is not None:
            return lb
        return self.create(name, options)

    def create(self, name: str, options: LoadBalancerOptions) -> LoadBalancer:
        """Create the balancer and poll until it can be looked up.

        Creation is asynchronous on the SLB side, so a successful create call
        is followed by up to ``retry.max_attempts`` sleep-then-lookup rounds.
        """
        token = client_token()
        logger.info("Creating load balancer %s", name, extra={"load_balancer": name})
        self._registry.create_load_balancer(
            region=self._region,
            name=name,
            client_token=token,
            internet_charge_type=options.internet_charge_type,
            bandwidth=options.bandwidth,
        )

        last_error: LoadBalancerError | None = None
        for attempt, delay in enumerate(self._retry.delays(), start=1):
            self._sleep(delay)
            try:
                lb = self.find(name)
            except LoadBalancerError as exc:
                last_error = exc
                logger.warning(
                    "Error checking if load balancer %s has been created (attempt %d/%d): %s",
                    name, attempt, self._retry.max_attempts, exc,
                    extra={"load_balancer": name, "attempt": attempt},
                )
                continue

            last_error = None
            if lb is not None:
                logger.info(
                    "Created load balancer %s (%s)", name, lb.load_balancer_id,
                    extra={"load_balancer": name, "attempt": attempt},
                )
                return lb
            logger.debug("Load balancer %s not visible yet (attempt %d)", name, attempt)

        if last_error is not None:
            raise last_error
        logger.error("Load balancer %s did not appear after creation", name)
        raise LoadBalancerNotMaterialized(
            f"Load balancer {name} was created but did not appear after {self._retry.max_attempts} attempts"
        )
