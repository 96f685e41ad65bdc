"""Endpoint wrappers over the authenticated request primitive."""

from safenet.api.appendable_data import AppendableDataApi
from safenet.api.cipher import CipherOptsApi
from safenet.api.data_id import DataIdApi
from safenet.api.dns import DnsApi
from safenet.api.immutable_data import ImmutableDataApi
from safenet.api.nfs import NfsApi
from safenet.api.structured_data import StructuredDataApi

__all__ = [
    "AppendableDataApi",
    "CipherOptsApi",
    "DataIdApi",
    "DnsApi",
    "ImmutableDataApi",
    "NfsApi",
    "StructuredDataApi",
]
