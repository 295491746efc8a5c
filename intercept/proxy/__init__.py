from .interceptor import (
    Interceptor,
    ProxyConfig,
    NOT_FOUND_PAGE,
    UpstreamReadFailure,
    UpstreamTransportFailure,
)
from .injection import body_script_injector

__all__ = [
    "Interceptor",
    "ProxyConfig",
    "NOT_FOUND_PAGE",
    "UpstreamReadFailure",
    "UpstreamTransportFailure",
    "body_script_injector",
]
