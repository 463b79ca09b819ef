"""Reconciles Kubernetes LoadBalancer services against Aliyun SLB."""

__version__ = "0.1.0"
