import asyncio
from typing import Any, List, Sequence, Tuple, Union

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from eth_utils import decode_hex, function_signature_to_4byte_selector
from eth_utils import to_checksum_address

from fula_stats.shared.exceptions import DecodeError, NoContractDataError
from fula_stats.shared.services.rpc_session import Connection

SUPPORTED_RETURN_TYPES = ("uint8", "uint256", "address", "string")

CallSpec = Union[str, Tuple[str, Sequence[Any]]]


class ContractReader:
    """
    Read-only contract calls described by a single signature string.

    Signatures use the multicall notation `name(argTypes)(returnType)`, e.g.
    `balanceOf(address)(uint256)`. Calls never carry value, gas or a sender.
    """

    @staticmethod
    def parse_signature(signature: str) -> Tuple[str, List[str], str]:
        """
        Split `balanceOf(address)(uint256)` into
        ("balanceOf(address)", ["address"], "uint256").
        """
        try:
            name, rest = signature.split("(", 1)
            args_part, returns_part = rest.split(")(", 1)
        except ValueError:
            raise ValueError(f"Malformed call signature: {signature}")

        return_type = returns_part.rstrip(")")
        if return_type not in SUPPORTED_RETURN_TYPES:
            raise ValueError(f"Unsupported return type in {signature}")

        arg_types = [t.strip() for t in args_part.split(",") if t.strip()]
        return f"{name}({','.join(arg_types)})", arg_types, return_type

    @classmethod
    def encode_call(cls, signature: str, args: Sequence[Any] = ()) -> str:
        """Selector plus ABI-encoded arguments, as a 0x-prefixed hex string."""
        function_signature, arg_types, _ = cls.parse_signature(signature)
        selector = function_signature_to_4byte_selector(function_signature)
        encoded_args = encode(arg_types, list(args)) if arg_types else b""
        return "0x" + (selector + encoded_args).hex()

    @staticmethod
    def decode_result(return_type: str, raw: Union[bytes, str]) -> Any:
        """
        Decode raw return data.

        Empty data raises NoContractDataError: the node answered but holds no
        code (or no state) for the contract. A real zero decodes to 0.
        """
        if isinstance(raw, str):
            try:
                raw = decode_hex(raw)
            except ValueError as e:
                raise DecodeError(f"Return data is not hex: {raw[:20]}") from e

        if len(raw) == 0:
            raise NoContractDataError("Call returned no data")

        try:
            value = decode([return_type], raw)[0]
        except DecodingError as e:
            raise DecodeError(
                f"Could not decode {len(raw)} bytes as {return_type}: {e}"
            ) from e

        if return_type == "address":
            return to_checksum_address(value)
        return value

    async def call(
        self,
        connection: Connection,
        address: str,
        signature: str,
        args: Sequence[Any] = (),
    ) -> Any:
        """Run one read-only call through `connection` and decode it."""
        _, _, return_type = self.parse_signature(signature)
        data = self.encode_call(signature, args)
        raw = await connection.eth_call(address, data)
        return self.decode_result(return_type, raw)

    async def read_many(
        self,
        connection: Connection,
        address: str,
        calls: Sequence[CallSpec],
    ) -> List[Any]:
        """
        Run several calls against one contract.

        Each entry is a signature or a (signature, args) pair. Calls are sent
        in windows the size of the connection's in-flight cap (1 means
        strictly in order). Results come back in input order. The first
        failure cancels the rest of its window and is raised before any later
        window starts, so a dead endpoint costs one timeout, not one per call.
        """
        specs = [(spec, ()) if isinstance(spec, str) else spec for spec in calls]
        window = max(1, connection.max_in_flight)

        results: List[Any] = []
        for start in range(0, len(specs), window):
            tasks = [
                asyncio.ensure_future(
                    self.call(connection, address, signature, args)
                )
                for signature, args in specs[start : start + window]
            ]
            try:
                results.extend(await asyncio.gather(*tasks))
            except Exception:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise
        return results


contract_reader = ContractReader()
