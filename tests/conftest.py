"""Shared fixtures: a mocked SLB registry and load balancer builders."""

from unittest.mock import MagicMock

import pytest

from slb_reconciler.models import BackendServer, ListenerAttributes, ListenerRef, LoadBalancer


def _make_lb(listeners=None, servers=None, lb_id="lb-1", name="aabc", address="47.0.0.1"):
    return LoadBalancer(
        load_balancer_id=lb_id,
        name=name,
        region="cn-hangzhou",
        address=address,
        listeners=[ListenerRef(port, proto) for port, proto in (listeners or [])],
        backend_servers=[BackendServer(sid) for sid in (servers or [])],
    )


@pytest.fixture
def make_lb():
    return _make_lb


@pytest.fixture
def registry():
    """Registry whose listener attribute calls answer from ``registry.attributes``.

    ``registry.attributes`` maps listener port -> ListenerAttributes.
    """
    reg = MagicMock()
    reg.attributes = {}

    def _attrs(lb_id, port):
        return reg.attributes.get(port, ListenerAttributes(backend_port=0, status="running"))

    reg.describe_tcp_listener_attribute.side_effect = _attrs
    reg.describe_udp_listener_attribute.side_effect = _attrs
    reg.describe_http_listener_attribute.side_effect = _attrs
    return reg
