"""
Exception hierarchy for FULA Stats.

Exception Categories:
- RetryableException: Transient failures that may succeed on retry or on
  another endpoint (RPC, network, explorer scrape)
- NonRetryableException: Permanent failures for the current cycle (bad data,
  every endpoint down, corrupt cache)
- ConfigurationException: Startup/config errors that prevent operation

Every exception carries an ErrorKind so the presentation layer can branch on
the kind of failure instead of on message text:
- TransientRpcError -> RetryableException (timeouts, non-2xx, malformed body)
- NoContractDataError -> RetryableException (node does not see the contract)
- AllEndpointsUnreachableError -> NonRetryableException (one full pass failed)
- DecodeError -> NonRetryableException (unexpected return data shape)
- SourceUnavailableError -> RetryableException (holder-count sources)
- CacheReadError -> NonRetryableException (holder-count cache entry)
"""

from enum import Enum


class ErrorKind(Enum):
    """Tags for the failure kinds a dashboard field can end up in."""

    TRANSIENT_RPC = "transient_rpc"
    NO_CONTRACT_DATA = "no_contract_data"
    ALL_ENDPOINTS_UNREACHABLE = "all_endpoints_unreachable"
    DECODE = "decode"
    CACHE_READ = "cache_read"
    SOURCE_UNAVAILABLE = "source_unavailable"
    CONFIGURATION = "configuration"


class RetryableException(Exception):
    """
    Base class for exceptions that may succeed on retry.

    Use for transient failures like:
    - RPC timeouts
    - Rate limiting
    - A node that lags behind or lacks the contract
    """

    kind = ErrorKind.TRANSIENT_RPC

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NonRetryableException(Exception):
    """
    Base class for exceptions that won't benefit from retry.

    Use for permanent failures like:
    - Malformed return data
    - Exhausted endpoint list
    - Invalid configuration
    """

    kind = ErrorKind.DECODE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationException(NonRetryableException):
    """
    Exception for configuration/startup errors.

    Use when:
    - The endpoint list is empty
    - An override environment variable cannot be parsed
    """

    kind = ErrorKind.CONFIGURATION


class TransientRpcError(RetryableException):
    """Transport-level RPC failure: timeout, non-2xx, malformed envelope."""

    kind = ErrorKind.TRANSIENT_RPC


class NoContractDataError(RetryableException):
    """
    The call returned no data where data was expected.

    Raised for an empty `eth_call` result or empty `eth_getCode`. This is
    distinct from a real zero answer, which decodes to 0. Callers treat it as
    "try the next endpoint", not as a contract-level failure.
    """

    kind = ErrorKind.NO_CONTRACT_DATA


class SourceUnavailableError(RetryableException):
    """A best-effort data source (explorer page, fallback file) failed."""

    kind = ErrorKind.SOURCE_UNAVAILABLE


class AllEndpointsUnreachableError(NonRetryableException):
    """Every candidate endpoint failed within one selection pass."""

    kind = ErrorKind.ALL_ENDPOINTS_UNREACHABLE


class DecodeError(NonRetryableException):
    """The call returned data that does not match the declared return type."""

    kind = ErrorKind.DECODE


class CacheReadError(NonRetryableException):
    """A persisted cache entry is missing fields or cannot be parsed."""

    kind = ErrorKind.CACHE_READ
