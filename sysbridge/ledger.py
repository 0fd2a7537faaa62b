"""
In-Process Host Ledger

A single-process stand-in for the host ledger the bridge talks to. It keeps
an account map, a rent sysvar account, and enforces System program rules for
the instructions the bridge issues:

- createAccountWithSeed
- transfer
- assignWithSeed
- allocateWithSeed

Query methods mirror the host RPC the harness compares against
(getAccountInfo, getBalance, getMinimumBalanceForRentExemption).
"""

import hashlib
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Union

import base58

from .config.loader import RentSectionConfig
from .constants import (
    MAX_PERMITTED_DATA_LENGTH,
    RENT_EXEMPT_RENT_EPOCH,
    U64_MAX,
)
from .exceptions import (
    AccountAlreadyInUseError,
    AddressWithSeedMismatchError,
    InsufficientFundsError,
    InvalidAccountDataLengthError,
    InvalidAccountOwnerError,
    LamportsOverflowError,
    MissingSignatureError,
)
from .logger import get_logger
from .pubkey import RENT_SYSVAR_ID, SYSTEM_PROGRAM_ID, Pubkey, create_with_seed
from .rent import RentConfig, decode_rent_config, host_minimum_balance

logger = get_logger(__name__)

# Owner of sysvar accounts on the host ledger
SYSVAR_OWNER_ID = Pubkey("Sysvar1111111111111111111111111111111111111")


@dataclass
class Account:
    """
    Native ledger account.

    Attributes:
        lamports: Balance in base units
        owner: Program that owns the account
        executable: Whether the account holds a program
        rent_epoch: Next epoch rent is due (u64 max once exempt)
        data: Raw account data
    """
    lamports: int = 0
    owner: Pubkey = field(default_factory=lambda: SYSTEM_PROGRAM_ID)
    executable: bool = False
    rent_epoch: int = 0
    data: bytes = b""

    @property
    def space(self) -> int:
        return len(self.data)

    def copy(self) -> "Account":
        return Account(
            lamports=self.lamports,
            owner=self.owner,
            executable=self.executable,
            rent_epoch=self.rent_epoch,
            data=self.data,
        )


@dataclass(frozen=True)
class Confirmation:
    """Handle for an executed instruction."""
    signature: str
    instruction: str
    slot: int

    def wait(self, confirmations: int = 1) -> "Confirmation":
        """Instructions apply synchronously, so every confirmation depth is reached."""
        if confirmations < 0:
            raise ValueError("confirmations must be non-negative")
        return self


class InMemoryLedger:
    """
    Host ledger stand-in.

    Accounts returned by `get_account_info` are copies; mutations only happen
    through the instruction methods.
    """

    def __init__(self, rent: Optional[RentConfig] = None, epoch: int = 0):
        self.epoch = epoch
        self.slot = 0
        self._accounts: Dict[Pubkey, Account] = {}
        self.set_rent(rent or RentConfig())

    @classmethod
    def from_config(cls, config: RentSectionConfig, epoch: int = 0) -> "InMemoryLedger":
        return cls(rent=config.to_rent_config(), epoch=epoch)

    # --- sysvars ---------------------------------------------------------

    def set_rent(self, rent: RentConfig) -> None:
        rent_data = rent.to_bytes()
        self._accounts[RENT_SYSVAR_ID] = Account(
            lamports=host_minimum_balance(len(rent_data), rent),
            owner=SYSVAR_OWNER_ID,
            rent_epoch=RENT_EXEMPT_RENT_EPOCH,
            data=rent_data,
        )
        logger.debug(
            "Rent sysvar set: %s lamports/byte/year, threshold %s years, burn %s%%",
            rent.lamports_per_byte_year, rent.exemption_threshold, rent.burn_percent,
        )

    @property
    def rent(self) -> RentConfig:
        return decode_rent_config(self._accounts[RENT_SYSVAR_ID].data)

    def get_rent_data(self) -> bytes:
        return self._accounts[RENT_SYSVAR_ID].data

    # --- queries ---------------------------------------------------------

    def get_account_info(self, pubkey: Union[str, bytes]) -> Optional[Account]:
        account = self._accounts.get(Pubkey(pubkey))
        return account.copy() if account is not None else None

    def get_balance(self, pubkey: Union[str, bytes]) -> int:
        account = self._accounts.get(Pubkey(pubkey))
        return account.lamports if account is not None else 0

    def get_minimum_balance_for_rent_exemption(self, data_len: int) -> int:
        return host_minimum_balance(data_len, self.rent)

    # --- funding ---------------------------------------------------------

    def request_airdrop(self, pubkey: Union[str, bytes], lamports: int) -> Confirmation:
        """Mint `lamports` into `pubkey`, creating a System-owned account if needed."""
        pubkey = Pubkey(pubkey)
        self._check_amount(lamports)
        account = self._accounts.get(pubkey)
        if account is None:
            account = self._new_account(lamports, 0)
            self._accounts[pubkey] = account
        else:
            if account.lamports + lamports > U64_MAX:
                raise LamportsOverflowError(f"Balance of {pubkey} would exceed u64")
            account.lamports += lamports
        logger.debug("airdrop %s lamports to %s", f"{lamports:,}", pubkey)
        return self._confirm("airdrop", bytes(pubkey), lamports.to_bytes(8, "little"))

    # --- System program instructions ------------------------------------

    def create_account_with_seed(
        self,
        payer: Union[str, bytes],
        to: Union[str, bytes],
        base: Union[str, bytes],
        seed: Union[str, bytes],
        lamports: int,
        space: int,
        owner: Union[str, bytes],
        signers: Iterable[bytes],
    ) -> Confirmation:
        payer, to, base, owner = Pubkey(payer), Pubkey(to), Pubkey(base), Pubkey(owner)
        signers = self._signer_set(signers)
        self._check_amount(lamports)
        self._verify_seed_address(to, base, seed, owner)
        self._require_signer(payer, signers)
        self._require_signer(base, signers)

        existing = self._accounts.get(to)
        if existing is not None and (
            existing.lamports > 0 or existing.data or existing.owner != SYSTEM_PROGRAM_ID
        ):
            raise AccountAlreadyInUseError(f"Create Account: account {to} already in use")
        self._check_space(space)

        funder = self._system_account(payer)
        if funder.lamports < lamports:
            raise InsufficientFundsError(
                f"Transfer: insufficient lamports {funder.lamports}, need {lamports}"
            )

        funder.lamports -= lamports
        self._accounts[to] = Account(
            lamports=lamports,
            owner=owner,
            rent_epoch=self._rent_epoch_for(lamports, space),
            data=bytes(space),
        )
        logger.info(
            "createAccountWithSeed %s owner=%s space=%d funded with %s lamports",
            to, owner, space, f"{lamports:,}",
        )
        return self._confirm("createAccountWithSeed", bytes(to), bytes(owner), space.to_bytes(8, "little"))

    def transfer(
        self,
        source: Union[str, bytes],
        destination: Union[str, bytes],
        lamports: int,
        signers: Iterable[bytes],
    ) -> Confirmation:
        source, destination = Pubkey(source), Pubkey(destination)
        signers = self._signer_set(signers)
        self._check_amount(lamports)
        self._require_signer(source, signers)

        funder = self._system_account(source)
        if funder.data:
            raise InvalidAccountOwnerError(f"Transfer: `from` {source} must not carry data")
        if funder.lamports < lamports:
            raise InsufficientFundsError(
                f"Transfer: insufficient lamports {funder.lamports}, need {lamports}"
            )

        recipient = self._accounts.get(destination)
        if recipient is None:
            recipient = self._new_account(0, 0)
            self._accounts[destination] = recipient
        if recipient.lamports + lamports > U64_MAX:
            raise LamportsOverflowError(f"Balance of {destination} would exceed u64")

        funder.lamports -= lamports
        recipient.lamports += lamports
        logger.info("transfer %s lamports %s -> %s", f"{lamports:,}", source, destination)
        return self._confirm("transfer", bytes(source), bytes(destination), lamports.to_bytes(8, "little"))

    def assign_with_seed(
        self,
        account: Union[str, bytes],
        base: Union[str, bytes],
        seed: Union[str, bytes],
        owner: Union[str, bytes],
        signers: Iterable[bytes],
    ) -> Confirmation:
        account, base, owner = Pubkey(account), Pubkey(base), Pubkey(owner)
        signers = self._signer_set(signers)
        self._verify_seed_address(account, base, seed, owner)

        target = self._accounts.get(account) or self._new_account(0, 0)

        if target.owner != owner:
            self._require_signer(base, signers)
            if target.owner != SYSTEM_PROGRAM_ID:
                raise InvalidAccountOwnerError(
                    f"Assign: account {account} is owned by {target.owner}, not the System program"
                )
            target.owner = owner
        self._accounts[account] = target

        logger.info("assignWithSeed %s owner=%s", account, owner)
        return self._confirm("assignWithSeed", bytes(account), bytes(owner))

    def allocate_with_seed(
        self,
        account: Union[str, bytes],
        base: Union[str, bytes],
        seed: Union[str, bytes],
        space: int,
        owner: Union[str, bytes],
        signers: Iterable[bytes],
    ) -> Confirmation:
        account, base, owner = Pubkey(account), Pubkey(base), Pubkey(owner)
        signers = self._signer_set(signers)
        self._verify_seed_address(account, base, seed, owner)
        self._require_signer(base, signers)

        target = self._accounts.get(account)
        if target is not None and (target.data or target.owner != SYSTEM_PROGRAM_ID):
            raise AccountAlreadyInUseError(f"Allocate: account {account} already in use")
        self._check_space(space)

        if target is None:
            target = self._new_account(0, 0)
            self._accounts[account] = target
        target.data = bytes(space)
        target.owner = owner
        logger.info("allocateWithSeed %s owner=%s space=%d", account, owner, space)
        return self._confirm("allocateWithSeed", bytes(account), bytes(owner), space.to_bytes(8, "little"))

    # --- helpers ---------------------------------------------------------

    def _new_account(self, lamports: int, space: int) -> Account:
        return Account(
            lamports=lamports,
            rent_epoch=self._rent_epoch_for(lamports, space),
            data=bytes(space),
        )

    def _rent_epoch_for(self, lamports: int, space: int) -> int:
        if lamports >= self.get_minimum_balance_for_rent_exemption(space):
            return RENT_EXEMPT_RENT_EPOCH
        return self.epoch

    def _system_account(self, pubkey: Pubkey) -> Account:
        account = self._accounts.get(pubkey)
        if account is None:
            raise InsufficientFundsError(f"Account {pubkey} does not exist")
        if account.owner != SYSTEM_PROGRAM_ID:
            raise InvalidAccountOwnerError(f"Account {pubkey} is not owned by the System program")
        return account

    @staticmethod
    def _signer_set(signers: Iterable[bytes]) -> frozenset:
        return frozenset(Pubkey(s) for s in signers)

    @staticmethod
    def _require_signer(pubkey: Pubkey, signers: frozenset) -> None:
        if pubkey not in signers:
            raise MissingSignatureError(f"Account {pubkey} must sign the instruction")

    @staticmethod
    def _verify_seed_address(address: Pubkey, base: Pubkey, seed, owner: Pubkey) -> None:
        expected = create_with_seed(base, seed, owner)
        if expected != address:
            raise AddressWithSeedMismatchError(
                f"Create: address {address} does not match derived address {expected}"
            )

    @staticmethod
    def _check_amount(lamports: int) -> None:
        if not 0 <= lamports <= U64_MAX:
            raise ValueError(f"lamports out of u64 range: {lamports}")

    @staticmethod
    def _check_space(space: int) -> None:
        if not 0 <= space <= MAX_PERMITTED_DATA_LENGTH:
            raise InvalidAccountDataLengthError(
                f"Allocate: requested {space}, max allowed {MAX_PERMITTED_DATA_LENGTH}"
            )

    def _confirm(self, instruction: str, *payload: bytes) -> Confirmation:
        self.slot += 1
        digest = hashlib.sha512(
            self.slot.to_bytes(8, "little") + instruction.encode() + b"".join(payload)
        ).digest()
        return Confirmation(
            signature=base58.b58encode(digest).decode("ascii"),
            instruction=instruction,
            slot=self.slot,
        )
