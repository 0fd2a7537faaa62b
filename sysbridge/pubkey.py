"""
Host Ledger Public Keys

32-byte account addresses. Parsing, base58 rendering, the ed25519 curve
check and both address derivations the System program relies on come from
`solders.pubkey.Pubkey`:
- create_with_seed: sha256(base || seed || owner)
- program addresses: sha256(seeds || program_id || "ProgramDerivedAddress"),
  required to fall off the ed25519 curve

`Pubkey` here stays a `bytes` subclass so keys can be used directly as ABI
bytes32 values and dict keys; `to_solders()` converts.
"""

from typing import Sequence, Tuple, Union

from eth_utils import to_canonical_address
from solders.pubkey import Pubkey as SoldersPubkey

from .constants import (
    ACCOUNT_SEED_VERSION,
    EVM_LOADER_ADDRESS,
    MAX_SEED_LEN,
    MAX_SEEDS,
    PDA_MARKER,
    PUBKEY_BYTES,
    RENT_SYSVAR_ADDRESS,
    SYSTEM_PROGRAM_ADDRESS,
    TOKEN_PROGRAM_ADDRESS,
)
from .exceptions import (
    IllegalOwnerError,
    InvalidPubkeyError,
    InvalidSeedError,
    MaxSeedLengthExceededError,
)


class Pubkey(bytes):
    """
    A 32-byte ledger address.

    Accepts raw bytes, a base58 string or a `solders` key. `str()` gives the
    base58 form.
    """

    def __new__(cls, value: Union[str, bytes, bytearray, SoldersPubkey, "Pubkey"]):
        if isinstance(value, Pubkey):
            return value
        if isinstance(value, SoldersPubkey):
            return super().__new__(cls, bytes(value))
        if isinstance(value, str):
            try:
                key = SoldersPubkey.from_string(value)
            except ValueError as e:
                raise InvalidPubkeyError(f"Invalid base58 pubkey {value!r}: {e}") from e
            return super().__new__(cls, bytes(key))
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise TypeError(f"Pubkey expects str or bytes, got {type(value).__name__}")

        raw = bytes(value)
        if len(raw) != PUBKEY_BYTES:
            raise InvalidPubkeyError(
                f"Pubkey must be {PUBKEY_BYTES} bytes, got {len(raw)}"
            )
        return super().__new__(cls, raw)

    @classmethod
    def default(cls) -> "Pubkey":
        """The all-zero key, which is also the System program id."""
        return cls(SoldersPubkey.default())

    def to_solders(self) -> SoldersPubkey:
        return SoldersPubkey.from_bytes(bytes(self))

    def to_base58(self) -> str:
        return str(self.to_solders())

    def is_on_curve(self) -> bool:
        return self.to_solders().is_on_curve()

    def __str__(self) -> str:
        return self.to_base58()

    def __repr__(self) -> str:
        return f"Pubkey({self.to_base58()!r})"


SYSTEM_PROGRAM_ID = Pubkey(SYSTEM_PROGRAM_ADDRESS)
TOKEN_PROGRAM_ID = Pubkey(TOKEN_PROGRAM_ADDRESS)
RENT_SYSVAR_ID = Pubkey(RENT_SYSVAR_ADDRESS)
EVM_LOADER_ID = Pubkey(EVM_LOADER_ADDRESS)


def is_on_curve(point: bytes) -> bool:
    """True if `point` decompresses to an ed25519 curve point."""
    return Pubkey(point).is_on_curve()


def _check_seeds(seeds: Sequence[bytes], limit: int = MAX_SEEDS) -> list:
    if len(seeds) > limit:
        raise MaxSeedLengthExceededError(f"At most {limit} seeds allowed, got {len(seeds)}")
    checked = []
    for seed in seeds:
        seed = seed.encode("utf-8") if isinstance(seed, str) else bytes(seed)
        if len(seed) > MAX_SEED_LEN:
            raise MaxSeedLengthExceededError(
                f"Seed is {len(seed)} bytes, maximum is {MAX_SEED_LEN}"
            )
        checked.append(seed)
    return checked


def _seed_text(seed: Union[str, bytes]) -> str:
    # The System program carries seeds as UTF-8 strings
    if isinstance(seed, str):
        text = seed
    else:
        try:
            text = bytes(seed).decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidSeedError(f"Seed is not valid UTF-8: {bytes(seed)!r}") from e
    _check_seeds([text], limit=1)
    return text


def create_with_seed(base: bytes, seed: Union[str, bytes], owner: bytes) -> Pubkey:
    """
    Derive the address owned by `owner` for `base` and `seed`.

    Raises:
        MaxSeedLengthExceededError: seed longer than 32 bytes
        InvalidSeedError: seed bytes are not UTF-8
        IllegalOwnerError: owner ends with the program-address marker
    """
    text = _seed_text(seed)
    owner = Pubkey(owner)
    if bytes(owner).endswith(PDA_MARKER):
        raise IllegalOwnerError(f"Owner {owner} cannot be used with create_with_seed")
    return Pubkey(SoldersPubkey.create_with_seed(Pubkey(base).to_solders(), text, owner.to_solders()))


def create_program_address(seeds: Sequence[bytes], program_id: bytes) -> Pubkey:
    """
    Hash `seeds` under `program_id` into an off-curve address.

    Raises:
        MaxSeedLengthExceededError: too many seeds or a seed over 32 bytes
        InvalidPubkeyError: the hash lands on the curve
    """
    checked = _check_seeds(seeds)
    try:
        key = SoldersPubkey.create_program_address(checked, Pubkey(program_id).to_solders())
    except ValueError as e:
        raise InvalidPubkeyError(f"Invalid program address seeds: {e}") from e
    return Pubkey(key)


def find_program_address(seeds: Sequence[bytes], program_id: bytes) -> Tuple[Pubkey, int]:
    """Highest bump seed (from 255 down) giving an off-curve program address."""
    # One seed slot is reserved for the bump
    checked = _check_seeds(seeds, limit=MAX_SEEDS - 1)
    key, bump = SoldersPubkey.find_program_address(checked, Pubkey(program_id).to_solders())
    return Pubkey(key), bump


def evm_account_address(
    evm_address: Union[str, bytes],
    program_id: bytes = EVM_LOADER_ID,
    seed_version: int = ACCOUNT_SEED_VERSION,
) -> Tuple[Pubkey, int]:
    """Native account the EVM loader derives for a 20-byte EVM address."""
    address = to_canonical_address(evm_address)
    return find_program_address([bytes([seed_version]), address], program_id)
