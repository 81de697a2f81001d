"""Contract ABI binding: load ABI documents, encode calls, decode returns.

ABI documents are the JSON arrays emitted by solc. Only function entries are
kept; events, errors and constructors are ignored. Signatures, selectors and
tuple types come from `eth_utils.abi`.
"""

import json
from pathlib import Path
from typing import Any, NamedTuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils.abi import (
    function_abi_to_4byte_selector,
    get_abi_input_types,
    get_abi_output_types,
)
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from src.helpers.config import get_abi_dir
from src.helpers.errors import DecodeError, InitializationError
from src.helpers.logging import get_logger


logger = get_logger(__name__)

HYPERS_ABI_FILE = "hypers.json"
GAS_ABI_FILE = "gas.json"
MULTICALL_ABI_FILE = "multicall.json"


class AbiParam(BaseModel):
    """A single input or output parameter of an ABI entry."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(default="", description="Parameter name")
    type: str = Field(..., description="Solidity type, e.g. uint256 or tuple[]")
    components: list["AbiParam"] | None = Field(
        default=None, description="Tuple members for tuple types"
    )


class AbiEntry(BaseModel):
    """One entry of an ABI document."""

    model_config = ConfigDict(extra="allow")

    type: str = Field(default="function", description="Entry kind")
    name: str = Field(default="", description="Function or event name")
    inputs: list[AbiParam] = Field(default_factory=list)
    outputs: list[AbiParam] = Field(default_factory=list)


_abi_document = TypeAdapter(list[AbiEntry])


class ContractAbi:
    """Function lookup, call encoding and return decoding for one contract."""

    def __init__(self, name: str, abi: list[dict[str, Any]]) -> None:
        self.name = name
        self.functions = {e["name"]: e for e in abi if e["type"] == "function"}

    @classmethod
    def from_file(cls, path: Path) -> "ContractAbi":
        """Load an ABI document.

        Raises:
            InitializationError: If the file is missing or not a valid ABI
        """
        try:
            entries = _abi_document.validate_python(json.loads(path.read_text()))
        except OSError as e:
            msg = f"Cannot read ABI document {path}: {e}"
            raise InitializationError(msg) from e
        except (json.JSONDecodeError, ValidationError) as e:
            msg = f"Malformed ABI document {path}: {e}"
            raise InitializationError(msg) from e

        abi = cls(path.stem, [e.model_dump(exclude_none=True) for e in entries])
        logger.debug("Loaded %s functions from %s", len(abi.functions), path)
        return abi

    def function(self, method: str) -> dict[str, Any]:
        try:
            return self.functions[method]
        except KeyError:
            msg = f"{self.name} ABI has no function {method!r}"
            raise KeyError(msg) from None

    def selector(self, method: str) -> bytes:
        return function_abi_to_4byte_selector(self.function(method))

    def input_types(self, method: str) -> list[str]:
        return list(get_abi_input_types(self.function(method)))

    def output_types(self, method: str) -> list[str]:
        return list(get_abi_output_types(self.function(method)))

    def encode(self, method: str, *args: Any) -> bytes:
        """Encode a call to `method` with positional arguments.

        Addresses must be checksummed or all lowercase.

        Raises:
            KeyError: If the ABI has no such function
            eth_abi.exceptions.EncodingError: If arguments do not fit the inputs
        """
        types = self.input_types(method)
        if len(args) != len(types):
            msg = f"{method} takes {len(types)} arguments, got {len(args)}"
            raise TypeError(msg)
        return self.selector(method) + abi_encode(types, args)


def decode_payload(types: list[str], payload: bytes, name: str = "payload") -> tuple[Any, ...]:
    """Decode a return payload against an ordered list of types.

    Args:
        types: Solidity types, e.g. ["uint256", "uint256"]
        payload: Raw return bytes
        name: Label used in error messages

    Returns:
        Tuple of decoded values, one per type

    Raises:
        DecodeError: If the payload does not match the types
    """
    try:
        return tuple(abi_decode(types, payload))
    except DecodingError as e:
        raise DecodeError(name, types, str(e)) from e


class ContractAbis(NamedTuple):
    """ABI bindings required by the dashboard."""

    hypers: ContractAbi
    gas: ContractAbi
    multicall: ContractAbi


def load_abis(abi_dir: str | Path | None = None) -> ContractAbis:
    """Load the HYPERS, gas and Multicall ABI documents.

    Args:
        abi_dir: Directory override, see `get_abi_dir`

    Returns:
        ContractAbis bundle

    Raises:
        InitializationError: If any document is unreachable or malformed
    """
    directory = get_abi_dir(abi_dir)
    abis = ContractAbis(
        hypers=ContractAbi.from_file(directory / HYPERS_ABI_FILE),
        gas=ContractAbi.from_file(directory / GAS_ABI_FILE),
        multicall=ContractAbi.from_file(directory / MULTICALL_ABI_FILE),
    )
    logger.info("Loaded contract ABIs from %s", directory)
    return abis


__all__ = [
    "AbiEntry",
    "AbiParam",
    "ContractAbi",
    "ContractAbis",
    "decode_payload",
    "load_abis",
]
