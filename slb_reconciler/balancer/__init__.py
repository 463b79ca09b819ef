"""Reconciliation engine: locate the balancer, then converge listeners and backends."""

from .backends import BackendPlan, BackendReconciler
from .listeners import ListenerPlan, ListenerReconciler
from .locator import BalancerLocator, load_balancer_name

__all__ = [
    "BackendPlan",
    "BackendReconciler",
    "BalancerLocator",
    "ListenerPlan",
    "ListenerReconciler",
    "load_balancer_name",
]
