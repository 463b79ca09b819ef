"""Maps cluster nodes to the ECS instances that back them."""

from __future__ import annotations

import logging
from typing import Any, Iterator

from ..config import AliyunConfig
from ..exceptions import AliyunAPIError, InstanceResolutionError
from ..models import Node
from .rpc import AliyunRPCClient, paginate

logger = logging.getLogger(__name__)

ECS_API_VERSION = "2014-05-26"


def instance_id_from_provider_id(provider_id: str) -> str | None:
    """Extract the instance id from 'aliyun://<region>.<instance-id>' style provider ids."""
    if not provider_id:
        return None
    tail = provider_id.rsplit("/", 1)[-1]
    candidate = tail.split(".", 1)[-1]
    return candidate if candidate.startswith("i-") else None


class ECSInstanceResolver:
    """Resolves nodes by provider id, instance id/name/hostname, or private IP."""

    def __init__(self, config: AliyunConfig, rpc: AliyunRPCClient | None = None):
        self._region = config.region
        self._rpc = rpc or AliyunRPCClient(
            endpoint=config.ecs_endpoint,
            version=ECS_API_VERSION,
            access_key_id=config.access_key_id,
            access_key_secret=config.access_key_secret,
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
        )

    def resolve(self, nodes: list[Node]) -> list[str]:
        """Return instance ids for the nodes, in node order. Unresolvable nodes are skipped."""
        # Nodes may share an empty name, so results stay positional
        found = [instance_id_from_provider_id(node.provider_id) for node in nodes]

        if None in found:
            try:
                index = self._index_instances()
            except AliyunAPIError as exc:
                raise InstanceResolutionError(f"Unable to list ECS instances: {exc}") from exc
            for i, node in enumerate(nodes):
                if found[i] is None:
                    found[i] = index.get(node.name) or (index.get(node.internal_ip) if node.internal_ip else None)
                    if found[i] is None:
                        logger.warning("Unable to find an ECS instance for node %s", node.name or node.internal_ip)

        return [instance_id for instance_id in found if instance_id]

    def _index_instances(self) -> dict[str, str]:
        """Instance id keyed by every identifier a node may carry."""
        index: dict[str, str] = {}
        for raw in self._describe_instances():
            instance_id = raw["InstanceId"]
            keys = [instance_id, raw.get("InstanceName"), raw.get("HostName")]
            keys.extend((raw.get("VpcAttributes") or {}).get("PrivateIpAddress", {}).get("IpAddress") or [])
            keys.extend((raw.get("InnerIpAddress") or {}).get("IpAddress") or [])
            for key in keys:
                if key:
                    index.setdefault(key, instance_id)
        return index

    def _describe_instances(self) -> Iterator[dict[str, Any]]:
        return paginate(self._rpc, "DescribeInstances", "Instances", "Instance", RegionId=self._region)
