"""Tests for annotation decoding and HTTP health-check defaults."""

import pytest

from slb_reconciler.exceptions import OptionsError
from slb_reconciler.options import LoadBalancerOptions, decode_options, with_http_health_check_defaults

PREFIX = "aliyun.archon.kubeup.com/"


class TestDecodeOptions:
    def test_empty_annotations(self):
        assert decode_options(None, PREFIX) == LoadBalancerOptions()
        assert decode_options({}, PREFIX) == LoadBalancerOptions()

    def test_all_fields(self):
        annotations = {
            PREFIX + "internet-charge-type": "paybytraffic",
            PREFIX + "bandwidth": "10",
            PREFIX + "healthy-threshold": "3",
            PREFIX + "unhealthy-threshold": "5",
            PREFIX + "health-check-connect-timeout": "4",
            PREFIX + "health-check-interval": "6",
            PREFIX + "load-balancer-backend-protocol": "http",
            PREFIX + "load-balancer-http-health-check": "true",
            PREFIX + "load-balancer-http-health-check-uri": "/healthz",
            PREFIX + "load-balancer-http-health-check-timeout": "7",
        }
        assert decode_options(annotations, PREFIX) == LoadBalancerOptions(
            internet_charge_type="paybytraffic",
            bandwidth=10,
            healthy_threshold=3,
            unhealthy_threshold=5,
            health_check_connect_timeout=4,
            health_check_interval=6,
            backend_protocol="http",
            health_check=True,
            health_check_uri="/healthz",
            health_check_timeout=7,
        )

    def test_ignores_other_prefixes_and_unknown_keys(self):
        annotations = {
            "kubernetes.io/ingress.class": "nginx",
            PREFIX + "not-an-option": "x",
            PREFIX + "bandwidth": "2",
        }
        assert decode_options(annotations, PREFIX) == LoadBalancerOptions(bandwidth=2)

    def test_bad_integer(self):
        with pytest.raises(OptionsError, match="bandwidth"):
            decode_options({PREFIX + "bandwidth": "lots"}, PREFIX)

    def test_bad_boolean(self):
        with pytest.raises(OptionsError, match="health-check"):
            decode_options({PREFIX + "load-balancer-http-health-check": "maybe"}, PREFIX)

    @pytest.mark.parametrize("raw", ["false", "False", "0", "no"])
    def test_false_values(self, raw):
        assert decode_options({PREFIX + "load-balancer-http-health-check": raw}, PREFIX).health_check is False

    def test_uses_http_backend_is_case_insensitive(self):
        assert LoadBalancerOptions(backend_protocol="Http").uses_http_backend
        assert not LoadBalancerOptions(backend_protocol="tcp").uses_http_backend
        assert not LoadBalancerOptions().uses_http_backend


class TestHTTPHealthCheckDefaults:
    def test_fills_unset_fields(self):
        result = with_http_health_check_defaults(LoadBalancerOptions())
        assert result.health_check_uri == "/"
        assert result.health_check_timeout == 3
        assert result.health_check_interval == 5
        assert result.healthy_threshold == 4
        assert result.unhealthy_threshold == 4
        assert result.health_check_connect_timeout == 0

    def test_keeps_set_fields(self):
        opts = LoadBalancerOptions(health_check_uri="/ping", health_check_timeout=9, health_check_interval=2)
        result = with_http_health_check_defaults(opts)
        assert result.health_check_uri == "/ping"
        assert result.health_check_timeout == 9
        assert result.health_check_interval == 2

    def test_input_untouched(self):
        opts = LoadBalancerOptions()
        with_http_health_check_defaults(opts)
        assert opts == LoadBalancerOptions()
