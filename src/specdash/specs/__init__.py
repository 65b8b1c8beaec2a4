"""OpenAPI document loading and operation enumeration."""

from specdash.specs.enumerator import (
    GRPC_EXTENSION,
    Operation,
    RpcMethod,
    enumerate_operations,
    enumerate_rpc_methods,
)
from specdash.specs.loader import ApiDocument, load_api_document, parse_api_document

__all__ = [
    "ApiDocument",
    "load_api_document",
    "parse_api_document",
    "Operation",
    "RpcMethod",
    "GRPC_EXTENSION",
    "enumerate_operations",
    "enumerate_rpc_methods",
]
