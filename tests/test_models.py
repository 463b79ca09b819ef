"""Tests for data models."""

from slb_reconciler.models import (
    BackendServer,
    ListenerRef,
    LoadBalancer,
    Node,
    Service,
    ServicePort,
    TCPListenerArgs,
    UDPListenerArgs,
    listener_key,
)
from slb_reconciler.provider import validate_service


def _attribute_payload():
    return {
        "LoadBalancerId": "lb-1",
        "LoadBalancerName": "aabc",
        "RegionId": "cn-hangzhou",
        "Address": "47.0.0.1",
        "AddressType": "internet",
        "InternetChargeType": "paybytraffic",
        "Bandwidth": 5,
        "ListenerPortsAndProtocol": {
            "ListenerPortAndProtocol": [
                {"ListenerPort": 80, "ListenerProtocol": "http"},
                {"ListenerPort": 53, "ListenerProtocol": "udp"},
            ],
        },
        "BackendServers": {"BackendServer": [{"ServerId": "i-1", "Weight": 100}]},
    }


class TestListenerKey:
    def test_lower_cases_protocol(self):
        assert listener_key(80, "TCP") == "80|tcp"

    def test_http_shares_tcp_key(self):
        assert listener_key(80, "http") == listener_key(80, "TCP")
        assert ListenerRef(80, "http").is_http

    def test_service_port_and_listener_agree(self):
        assert ServicePort(53, "UDP", 30053).key == ListenerRef(53, "udp").key


class TestLoadBalancer:
    def test_from_api(self):
        lb = LoadBalancer.from_api(_attribute_payload())
        assert lb.load_balancer_id == "lb-1"
        assert lb.bandwidth == 5
        assert lb.listeners == [ListenerRef(80, "http"), ListenerRef(53, "udp")]
        assert lb.backend_servers == [BackendServer("i-1", 100)]
        assert lb.to_status().ip == "47.0.0.1"

    def test_from_summary_payload(self):
        lb = LoadBalancer.from_api({"LoadBalancerId": "lb-2", "LoadBalancerName": "axyz"})
        assert lb.listeners == []
        assert lb.backend_servers == []


class TestManifests:
    def test_service_from_manifest(self):
        service = Service.from_manifest({
            "metadata": {
                "uid": "u-1", "name": "web", "namespace": "prod",
                "annotations": {"aliyun.archon.kubeup.com/bandwidth": 1},
            },
            "spec": {
                "ports": [{"port": 80, "protocol": "tcp", "nodePort": 30080}, {"port": 81}],
                "sessionAffinity": "ClientIP",
            },
        })
        assert service.annotations == {"aliyun.archon.kubeup.com/bandwidth": "1"}
        assert service.ports == [ServicePort(80, "TCP", 30080), ServicePort(81, "TCP", 0)]
        assert service.session_affinity == "ClientIP"
        assert service.load_balancer_ip == ""

    def test_null_session_affinity_means_none(self):
        service = Service.from_manifest({
            "metadata": {"uid": "u-1", "name": "web"},
            "spec": {"sessionAffinity": None, "loadBalancerIP": None},
        })
        assert service.session_affinity == "None"
        assert service.load_balancer_ip == ""
        validate_service(service)

    def test_node_from_manifest_internal_ip(self):
        node = Node.from_manifest({
            "metadata": {"name": "node-1"},
            "status": {"addresses": [
                {"type": "Hostname", "address": "node-1"},
                {"type": "InternalIP", "address": "10.0.0.5"},
            ]},
        })
        assert node == Node(name="node-1", internal_ip="10.0.0.5")

    def test_node_from_name(self):
        assert Node.from_manifest("node-2") == Node(name="node-2")


class TestListenerArgs:
    def test_tcp_params_drop_unset_fields(self):
        params = TCPListenerArgs("lb-1", 80, 30080, healthy_threshold=3).to_params()
        assert params == {
            "LoadBalancerId": "lb-1",
            "ListenerPort": 80,
            "BackendServerPort": 30080,
            "HealthCheckType": "tcp",
            "HealthCheckConnectPort": 30080,
            "HealthyThreshold": 3,
        }

    def test_udp_params_have_no_check_type(self):
        params = UDPListenerArgs("lb-1", 53, 30053, bandwidth=-1).to_params()
        assert "HealthCheckType" not in params
        assert params["Bandwidth"] == -1
        assert params["HealthCheckConnectPort"] == 30053
