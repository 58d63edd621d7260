from enum import StrEnum

DEFAULT_CONSUL_URI = "http://127.0.0.1:8500"
DEFAULT_CHECK_INTERVAL = "1s"
DEFAULT_DEREGISTER_CRITICAL_SERVICE_AFTER = "90m"
DEFAULT_HTTP_TIMEOUT = 5.0

ID_GLUE = "-"
TAG_GLUE = ","


class RpcProtocols(StrEnum):
    """Wire protocols advertised through the ``Meta.Protocol`` tag."""
    JSONRPC="jsonrpc"
    JSONRPC_HTTP="jsonrpc-http"
    JSONRPC_TCP_LENGTH_CHECK="jsonrpc-tcp-length-check"
    MULTIPLEX_DEFAULT="multiplex.default"
