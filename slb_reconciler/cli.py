"""Argument parsing, configuration loading, and one-shot reconciliation."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from .config import load_config
from .exceptions import ConfigError, LoadBalancerError
from .logging_config import api_error_fields, configure_logging
from .models import Node, Service
from .provider import LoadBalancerProvider

logger = logging.getLogger(__name__)

ACTIONS = ("name", "get", "ensure", "update", "delete")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slb-reconciler",
        description="Reconcile a Kubernetes service's Aliyun SLB load balancer",
    )
    parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to the YAML configuration file",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the configuration file and exit",
    )
    parser.add_argument(
        "action",
        nargs="?",
        choices=ACTIONS,
        help="Operation to run against the service's load balancer",
    )
    parser.add_argument(
        "-m", "--manifest",
        help="YAML file with a 'service' mapping and a 'nodes' list",
    )
    parser.add_argument(
        "--cluster-name",
        default="kubernetes",
        help="Cluster name passed through to the provider",
    )
    return parser


def load_manifest(path: str | Path) -> tuple[Service, list[Node]]:
    """Read the service and node list to reconcile."""
    path = Path(path)
    if not path.is_file():
        raise ConfigError(f"Manifest file not found: {path}")

    with open(path) as f:
        raw: Any = yaml.safe_load(f)

    if not isinstance(raw, dict) or not isinstance(raw.get("service"), dict):
        raise ConfigError("Manifest must be a YAML mapping with a 'service' mapping")

    service = Service.from_manifest(raw["service"])
    if not service.uid:
        raise ConfigError("Manifest service.metadata.uid is required")
    nodes = [Node.from_manifest(n) for n in raw.get("nodes") or []]
    return service, nodes


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Load config (minimal logging until config is loaded)
    try:
        config = load_config(args.config)
    except ConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    configure_logging(config.logging)

    if args.validate:
        logger.info("Configuration is valid")
        return 0

    if not args.action or not args.manifest:
        parser.print_usage(sys.stderr)
        print("an action and --manifest are required unless --validate is given", file=sys.stderr)
        return 1

    try:
        service, nodes = load_manifest(args.manifest)
    except ConfigError as exc:
        print(f"Manifest error: {exc}", file=sys.stderr)
        return 1

    provider = LoadBalancerProvider.from_config(config)

    try:
        return _run(provider, args.action, args.cluster_name, service, nodes)
    except LoadBalancerError as exc:
        logger.error(
            "%s failed for %s: %s", args.action, service.qualified_name, exc,
            extra={"service": service.qualified_name, **api_error_fields(exc)},
        )
        return 1


def _run(provider: LoadBalancerProvider, action: str, cluster: str, service: Service, nodes: list[Node]) -> int:
    if action == "name":
        print(provider.get_load_balancer_name(service))
    elif action == "get":
        status, exists = provider.get_load_balancer(cluster, service)
        print(status.ip if exists and status else "not found")
    elif action == "ensure":
        status = provider.ensure_load_balancer(cluster, service, nodes)
        print(status.ip)
    elif action == "update":
        provider.update_load_balancer(cluster, service, nodes)
    elif action == "delete":
        provider.ensure_load_balancer_deleted(cluster, service)
    return 0
