"""Custom exception hierarchy for the SLB load-balancer reconciler."""


class LoadBalancerError(Exception):
    """Base exception for all reconciler errors."""


class ConfigError(LoadBalancerError):
    """Invalid or missing configuration."""


class ServiceValidationError(LoadBalancerError):
    """The service asks for something an SLB load balancer cannot provide."""


class OptionsError(LoadBalancerError):
    """Service annotations could not be decoded into load balancer options."""


class UnsupportedProtocolError(LoadBalancerError):
    """A listener uses a protocol the reconciler does not handle."""

    def __init__(self, protocol: str, action: str = "reconciling listener"):
        super().__init__(f"Error {action}. Unsupported listener protocol: {protocol}")
        self.protocol = protocol


class AliyunAPIError(LoadBalancerError):
    """Error returned by (or while talking to) an Aliyun RPC endpoint."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        request_id: str | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.request_id = request_id
        self.status_code = status_code


class LoadBalancerNotFound(LoadBalancerError):
    """No load balancer exists for the service."""


class LoadBalancerNotMaterialized(LoadBalancerError):
    """A created load balancer never became visible while polling for it."""


class InstanceResolutionError(LoadBalancerError):
    """Nodes could not be mapped to ECS instances."""
