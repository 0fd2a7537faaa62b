"""
System Program Bridge

Python model of the CallSystemProgram contract: an EVM contract that issues
native System program instructions through the EVM loader, signing as its
own derived native account.

Every mutation uses that derived account as both the seed base and the
funding account. Getters read native account metadata and never fail on a
missing account; they return zero values instead.
"""

from typing import Optional, Union

from eth_utils import to_canonical_address, to_checksum_address

from .abi import BridgeInterface
from .config.loader import BridgeConfig
from .constants import ACCOUNT_SEED_VERSION
from .exceptions import SysbridgeException
from .ledger import Account, Confirmation, InMemoryLedger
from .logger import get_logger
from .pubkey import EVM_LOADER_ID, Pubkey, create_with_seed, evm_account_address
from .rent import BytesLike, RentConfig, decode_rent_config

logger = get_logger(__name__)


class CallSystemProgram:
    """
    Bridge contract deployed at `evm_address`.

    Args:
        ledger: Host ledger the bridge issues instructions against
        evm_address: 20-byte address of the deployed contract
        evm_loader_id: Program that owns EVM-derived native accounts
        seed_version: Leading seed byte of EVM-derived native accounts
    """

    def __init__(
        self,
        ledger: InMemoryLedger,
        evm_address: Union[str, bytes],
        evm_loader_id: bytes = EVM_LOADER_ID,
        seed_version: int = ACCOUNT_SEED_VERSION,
    ):
        self.ledger = ledger
        self.address = to_canonical_address(evm_address)
        self.evm_loader_id = Pubkey(evm_loader_id)
        self.seed_version = seed_version
        self.interface = BridgeInterface()
        self.authority, self.authority_bump = self._derive(self.address)
        logger.debug(
            "CallSystemProgram at %s signs as %s (bump %d)",
            to_checksum_address(self.address), self.authority, self.authority_bump,
        )

    @classmethod
    def from_config(
        cls,
        ledger: InMemoryLedger,
        evm_address: Union[str, bytes],
        config: BridgeConfig,
    ) -> "CallSystemProgram":
        return cls(
            ledger,
            evm_address,
            evm_loader_id=config.evm_loader_pubkey,
            seed_version=config.account_seed_version,
        )

    def _derive(self, evm_address: Union[str, bytes]):
        return evm_account_address(evm_address, self.evm_loader_id, self.seed_version)

    @property
    def target(self) -> str:
        return to_checksum_address(self.address)

    # --- address derivation ---------------------------------------------

    def get_neon_address(self, evm_address: Union[str, bytes]) -> Pubkey:
        """Native account derived for an EVM address."""
        return self._derive(evm_address)[0]

    def get_create_with_seed_account(
        self,
        base: Union[str, bytes],
        program_id: Union[str, bytes],
        seed: Union[str, bytes],
    ) -> Pubkey:
        return create_with_seed(base, seed, program_id)

    # --- System program instructions ------------------------------------

    def create_account_with_seed(
        self,
        program_id: Union[str, bytes],
        seed: Union[str, bytes],
        space: int,
    ) -> Confirmation:
        """Create a seed account owned by `program_id`, funded to rent exemption."""
        account = create_with_seed(self.authority, seed, program_id)
        lamports = self.get_rent_exemption_balance(space)
        return self.ledger.create_account_with_seed(
            payer=self.authority,
            to=account,
            base=self.authority,
            seed=seed,
            lamports=lamports,
            space=space,
            owner=program_id,
            signers=[self.authority],
        )

    def transfer(self, recipient: Union[str, bytes], amount: int) -> Confirmation:
        return self.ledger.transfer(
            source=self.authority,
            destination=recipient,
            lamports=amount,
            signers=[self.authority],
        )

    def assign(self, program_id: Union[str, bytes], seed: Union[str, bytes]) -> Confirmation:
        account = create_with_seed(self.authority, seed, program_id)
        return self.ledger.assign_with_seed(
            account=account,
            base=self.authority,
            seed=seed,
            owner=program_id,
            signers=[self.authority],
        )

    def allocate(
        self,
        program_id: Union[str, bytes],
        seed: Union[str, bytes],
        space: int,
    ) -> Confirmation:
        account = create_with_seed(self.authority, seed, program_id)
        return self.ledger.allocate_with_seed(
            account=account,
            base=self.authority,
            seed=seed,
            space=space,
            owner=program_id,
            signers=[self.authority],
        )

    # --- account getters -------------------------------------------------

    def _account(self, pubkey: Union[str, bytes]) -> Account:
        return self.ledger.get_account_info(pubkey) or Account()

    def get_balance(self, pubkey: Union[str, bytes]) -> int:
        return self._account(pubkey).lamports

    def get_owner(self, pubkey: Union[str, bytes]) -> Pubkey:
        return self._account(pubkey).owner

    def get_is_executable(self, pubkey: Union[str, bytes]) -> bool:
        return self._account(pubkey).executable

    def get_rent_epoch(self, pubkey: Union[str, bytes]) -> int:
        return self._account(pubkey).rent_epoch

    def get_space(self, pubkey: Union[str, bytes]) -> int:
        return self._account(pubkey).space

    def get_raw_account_data(self, pubkey: Union[str, bytes]) -> bytes:
        return self._account(pubkey).data

    def get_system_account_data(self, pubkey: Union[str, bytes], size: int) -> bytes:
        """First `size` bytes of the account's data."""
        if size < 0:
            raise ValueError(f"size must be non-negative, got {size}")
        return self._account(pubkey).data[:size]

    # --- rent ------------------------------------------------------------

    def get_rent_exemption_balance(
        self,
        space: int,
        rent_data: Optional[BytesLike] = None,
    ) -> int:
        """
        Minimum balance for rent exemption of `space` data bytes.

        Reads the ledger's rent sysvar unless `rent_data` is supplied.
        """
        config = self._rent(rent_data)
        return config.minimum_balance(space)

    def is_rent_exempt(self, pubkey: Union[str, bytes]) -> bool:
        account = self._account(pubkey)
        return self._rent(None).is_exempt(account.lamports, account.space)

    def _rent(self, rent_data: Optional[BytesLike]) -> RentConfig:
        if rent_data is None:
            rent_data = self.ledger.get_rent_data()
        return decode_rent_config(rent_data)

    # --- calldata entry point -------------------------------------------

    def call(self, calldata: bytes) -> bytes:
        """
        Execute ABI-encoded calldata against the bridge.

        Returns ABI-encoded return data. Mutations return empty data.
        """
        function, args = self.interface.decode_function_input(calldata)
        handler = getattr(self, function.method)
        try:
            result = handler(*args)
        except SysbridgeException:
            logger.warning("%s reverted", function.signature)
            raise
        if isinstance(result, Confirmation):
            return b""
        return self.interface.encode_function_result(function.signature, result)
