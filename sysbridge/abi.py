"""
Bridge ABI

Solidity calldata encoding for the CallSystemProgram contract. Selectors are
the first four bytes of keccak256 over the canonical signature, as on any EVM
chain, so calldata built here is what an EVM caller sends to the contract.
"""

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

from .exceptions import UnknownSelectorError


@dataclass(frozen=True)
class BridgeFunction:
    """
    One externally callable bridge function.

    Attributes:
        signature: Canonical Solidity signature, e.g. "getSpace(bytes32)"
        method: Name of the CallSystemProgram method that implements it
        outputs: ABI types of the return values (empty for mutations)
    """
    signature: str
    method: str
    outputs: Tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.signature.split("(", 1)[0]

    @property
    def inputs(self) -> Tuple[str, ...]:
        params = self.signature[self.signature.index("(") + 1:-1]
        return tuple(params.split(",")) if params else ()

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)


BRIDGE_FUNCTIONS: Tuple[BridgeFunction, ...] = (
    # Address derivation
    BridgeFunction("getNeonAddress(address)", "get_neon_address", ("bytes32",)),
    BridgeFunction("getCreateWithSeedAccount(bytes32,bytes32,bytes)", "get_create_with_seed_account", ("bytes32",)),
    # System program instructions
    BridgeFunction("createAccountWithSeed(bytes32,bytes,uint64)", "create_account_with_seed"),
    BridgeFunction("transfer(bytes32,uint64)", "transfer"),
    BridgeFunction("assign(bytes32,bytes)", "assign"),
    BridgeFunction("allocate(bytes32,bytes,uint64)", "allocate"),
    # Account getters
    BridgeFunction("getBalance(bytes32)", "get_balance", ("uint64",)),
    BridgeFunction("getOwner(bytes32)", "get_owner", ("bytes32",)),
    BridgeFunction("getIsExecutable(bytes32)", "get_is_executable", ("bool",)),
    BridgeFunction("getRentEpoch(bytes32)", "get_rent_epoch", ("uint64",)),
    BridgeFunction("getSpace(bytes32)", "get_space", ("uint64",)),
    BridgeFunction("getRawAccountData(bytes32)", "get_raw_account_data", ("bytes",)),
    BridgeFunction("getSystemAccountData(bytes32,uint64)", "get_system_account_data", ("bytes",)),
    # Rent
    BridgeFunction("getRentExemptionBalance(uint64)", "get_rent_exemption_balance", ("uint64",)),
    BridgeFunction("getRentExemptionBalance(uint64,bytes)", "get_rent_exemption_balance", ("uint64",)),
    BridgeFunction("isRentExempt(bytes32)", "is_rent_exempt", ("bool",)),
)


class BridgeInterface:
    """Lookup and (de)serialisation over `BRIDGE_FUNCTIONS`."""

    def __init__(self, functions: Sequence[BridgeFunction] = BRIDGE_FUNCTIONS):
        self._by_signature: Dict[str, BridgeFunction] = {f.signature: f for f in functions}
        self._by_selector: Dict[bytes, BridgeFunction] = {f.selector: f for f in functions}

    def get_function(self, signature: str) -> BridgeFunction:
        try:
            return self._by_signature[signature]
        except KeyError:
            raise UnknownSelectorError(f"Unknown bridge function: {signature}") from None

    def get_function_by_selector(self, selector: bytes) -> BridgeFunction:
        try:
            return self._by_selector[bytes(selector)]
        except KeyError:
            raise UnknownSelectorError(f"Unknown selector: 0x{bytes(selector).hex()}") from None

    def encode_function_data(self, signature: str, args: Sequence[Any] = ()) -> bytes:
        function = self.get_function(signature)
        return function.selector + encode(function.inputs, list(args))

    def decode_function_input(self, calldata: bytes) -> Tuple[BridgeFunction, Tuple[Any, ...]]:
        if len(calldata) < 4:
            raise UnknownSelectorError(f"Calldata too short for a selector: {len(calldata)} bytes")
        function = self.get_function_by_selector(calldata[:4])
        return function, tuple(decode(function.inputs, bytes(calldata[4:])))

    def encode_function_result(self, signature: str, result: Any) -> bytes:
        function = self.get_function(signature)
        if not function.outputs:
            return b""
        return encode(function.outputs, [result])

    def decode_function_result(self, signature: str, data: bytes) -> Any:
        function = self.get_function(signature)
        if not function.outputs:
            return None
        return decode(function.outputs, bytes(data))[0]
