"""
In-Process Ledger Tests

System program rules enforced by the ledger stand-in: signer checks, seed
address checks, ownership and funding constraints.
"""

import pytest

from sysbridge.config import RentSectionConfig
from sysbridge.constants import (
    LAMPORTS_PER_SOL,
    MAX_PERMITTED_DATA_LENGTH,
    RENT_EXEMPT_RENT_EPOCH,
    SPL_TOKEN_ACCOUNT_SIZE,
    U64_MAX,
)
from sysbridge.exceptions import (
    AccountAlreadyInUseError,
    AddressWithSeedMismatchError,
    InsufficientFundsError,
    InvalidAccountDataLengthError,
    InvalidAccountOwnerError,
    LamportsOverflowError,
    MissingSignatureError,
)
from sysbridge.ledger import InMemoryLedger
from sysbridge.pubkey import (
    RENT_SYSVAR_ID,
    SYSTEM_PROGRAM_ID,
    TOKEN_PROGRAM_ID,
    Pubkey,
    create_with_seed,
)
from sysbridge.rent import RentConfig

BASE = Pubkey(b"\x21" * 32)
OTHER = Pubkey(b"\x42" * 32)


@pytest.fixture
def ledger():
    ledger = InMemoryLedger(epoch=7)
    ledger.request_airdrop(BASE, 10 * LAMPORTS_PER_SOL)
    return ledger


def _seed_account(seed, owner=TOKEN_PROGRAM_ID):
    return create_with_seed(BASE, seed, owner)


# ── Sysvars and queries ───────────────────────────────────────────────

class TestQueries:

    def test_rent_sysvar_account(self, ledger):
        info = ledger.get_account_info(RENT_SYSVAR_ID)
        assert info.data == RentConfig().to_bytes()
        assert len(info.data) == 17

    def test_rent_round_trips(self):
        rent = RentConfig(lamports_per_byte_year=1000, exemption_threshold=3.5, burn_percent=10)
        assert InMemoryLedger(rent=rent).rent == rent

    def test_from_config(self):
        ledger = InMemoryLedger.from_config(RentSectionConfig(exemption_threshold=0.5))
        assert ledger.get_minimum_balance_for_rent_exemption(SPL_TOKEN_ACCOUNT_SIZE) == 509820

    def test_minimum_balance_default(self, ledger):
        assert ledger.get_minimum_balance_for_rent_exemption(SPL_TOKEN_ACCOUNT_SIZE) == 2039280

    def test_missing_account(self, ledger):
        assert ledger.get_account_info(OTHER) is None
        assert ledger.get_balance(OTHER) == 0

    def test_account_info_is_a_copy(self, ledger):
        info = ledger.get_account_info(BASE)
        info.lamports = 0
        assert ledger.get_balance(BASE) == 10 * LAMPORTS_PER_SOL


class TestAirdrop:

    def test_creates_system_account(self, ledger):
        ledger.request_airdrop(OTHER, 5)
        info = ledger.get_account_info(OTHER)
        assert info.owner == SYSTEM_PROGRAM_ID
        assert info.lamports == 5
        assert info.space == 0

    def test_adds_to_existing(self, ledger):
        ledger.request_airdrop(BASE, 1)
        assert ledger.get_balance(BASE) == 10 * LAMPORTS_PER_SOL + 1

    def test_rent_epoch_for_exempt_account(self, ledger):
        assert ledger.get_account_info(BASE).rent_epoch == RENT_EXEMPT_RENT_EPOCH

    def test_rent_epoch_for_non_exempt_account(self, ledger):
        ledger.request_airdrop(OTHER, 1)
        assert ledger.get_account_info(OTHER).rent_epoch == 7

    def test_balance_overflow(self, ledger):
        ledger.request_airdrop(OTHER, U64_MAX)
        with pytest.raises(LamportsOverflowError):
            ledger.request_airdrop(OTHER, 1)
        assert ledger.get_balance(OTHER) == U64_MAX

    def test_confirmation(self, ledger):
        first = ledger.request_airdrop(OTHER, 1)
        second = ledger.request_airdrop(OTHER, 1)
        assert second.slot == first.slot + 1
        assert first.signature != second.signature
        assert first.wait(1) is first


# ── createAccountWithSeed ─────────────────────────────────────────────

class TestCreateAccountWithSeed:

    def _create(self, ledger, seed="create", lamports=2039280, space=SPL_TOKEN_ACCOUNT_SIZE, signers=(BASE,), to=None):
        return ledger.create_account_with_seed(
            payer=BASE,
            to=to or _seed_account(seed),
            base=BASE,
            seed=seed,
            lamports=lamports,
            space=space,
            owner=TOKEN_PROGRAM_ID,
            signers=signers,
        )

    def test_creates_funded_account(self, ledger):
        self._create(ledger)
        info = ledger.get_account_info(_seed_account("create"))
        assert info.owner == TOKEN_PROGRAM_ID
        assert info.lamports == 2039280
        assert info.data == bytes(SPL_TOKEN_ACCOUNT_SIZE)
        assert info.rent_epoch == RENT_EXEMPT_RENT_EPOCH
        assert ledger.get_balance(BASE) == 10 * LAMPORTS_PER_SOL - 2039280

    def test_address_mismatch(self, ledger):
        with pytest.raises(AddressWithSeedMismatchError):
            self._create(ledger, to=OTHER)

    def test_requires_signature(self, ledger):
        with pytest.raises(MissingSignatureError):
            self._create(ledger, signers=())

    def test_account_in_use(self, ledger):
        ledger.request_airdrop(_seed_account("create"), 1)
        with pytest.raises(AccountAlreadyInUseError):
            self._create(ledger)

    def test_insufficient_funds(self, ledger):
        with pytest.raises(InsufficientFundsError):
            self._create(ledger, lamports=11 * LAMPORTS_PER_SOL)
        assert ledger.get_account_info(_seed_account("create")) is None

    def test_space_limit(self, ledger):
        with pytest.raises(InvalidAccountDataLengthError):
            self._create(ledger, space=MAX_PERMITTED_DATA_LENGTH + 1)

    def test_allocated_account_in_use(self, ledger):
        account = _seed_account("create")
        ledger.allocate_with_seed(account, BASE, "create", SPL_TOKEN_ACCOUNT_SIZE, TOKEN_PROGRAM_ID, signers=[BASE])
        with pytest.raises(AccountAlreadyInUseError):
            self._create(ledger, space=10)
        info = ledger.get_account_info(account)
        assert info.space == SPL_TOKEN_ACCOUNT_SIZE
        assert info.lamports == 0

    def test_assigned_account_in_use(self, ledger):
        account = _seed_account("create")
        ledger.assign_with_seed(account, BASE, "create", TOKEN_PROGRAM_ID, signers=[BASE])
        with pytest.raises(AccountAlreadyInUseError):
            self._create(ledger)
        assert ledger.get_balance(BASE) == 10 * LAMPORTS_PER_SOL


# ── transfer ──────────────────────────────────────────────────────────

class TestTransfer:

    def test_moves_lamports(self, ledger):
        ledger.transfer(BASE, OTHER, 1000, signers=[BASE])
        assert ledger.get_balance(OTHER) == 1000
        assert ledger.get_balance(BASE) == 10 * LAMPORTS_PER_SOL - 1000

    def test_requires_signature(self, ledger):
        with pytest.raises(MissingSignatureError):
            ledger.transfer(BASE, OTHER, 1000, signers=[OTHER])

    def test_insufficient_funds(self, ledger):
        with pytest.raises(InsufficientFundsError):
            ledger.transfer(BASE, OTHER, 11 * LAMPORTS_PER_SOL, signers=[BASE])

    def test_missing_source(self, ledger):
        with pytest.raises(InsufficientFundsError):
            ledger.transfer(OTHER, BASE, 1, signers=[OTHER])

    def test_source_with_data_rejected(self, ledger):
        account = _seed_account("data", SYSTEM_PROGRAM_ID)
        ledger.allocate_with_seed(account, BASE, "data", 8, SYSTEM_PROGRAM_ID, signers=[BASE])
        ledger.request_airdrop(account, LAMPORTS_PER_SOL)
        with pytest.raises(InvalidAccountOwnerError, match="must not carry data"):
            ledger.transfer(account, OTHER, 1, signers=[account])

    def test_recipient_overflow(self, ledger):
        ledger.request_airdrop(OTHER, U64_MAX)
        with pytest.raises(OverflowError):
            ledger.transfer(BASE, OTHER, 1, signers=[BASE])
        assert ledger.get_balance(BASE) == 10 * LAMPORTS_PER_SOL

    def test_negative_amount_rejected(self, ledger):
        with pytest.raises(ValueError):
            ledger.transfer(BASE, OTHER, -1, signers=[BASE])


# ── assignWithSeed / allocateWithSeed ─────────────────────────────────

class TestAssignWithSeed:

    def test_assigns_owner(self, ledger):
        account = _seed_account("assign")
        ledger.request_airdrop(account, 890880)
        ledger.assign_with_seed(account, BASE, "assign", TOKEN_PROGRAM_ID, signers=[BASE])
        info = ledger.get_account_info(account)
        assert info.owner == TOKEN_PROGRAM_ID
        assert info.lamports == 890880
        assert info.space == 0

    def test_requires_signature(self, ledger):
        account = _seed_account("assign")
        ledger.request_airdrop(account, 1)
        with pytest.raises(MissingSignatureError):
            ledger.assign_with_seed(account, BASE, "assign", TOKEN_PROGRAM_ID, signers=[])

    def test_same_owner_is_noop(self, ledger):
        account = _seed_account("assign")
        ledger.request_airdrop(account, 1)
        ledger.assign_with_seed(account, BASE, "assign", TOKEN_PROGRAM_ID, signers=[BASE])
        ledger.assign_with_seed(account, BASE, "assign", TOKEN_PROGRAM_ID, signers=[])
        assert ledger.get_account_info(account).owner == TOKEN_PROGRAM_ID

    def test_address_mismatch(self, ledger):
        with pytest.raises(AddressWithSeedMismatchError):
            ledger.assign_with_seed(OTHER, BASE, "assign", TOKEN_PROGRAM_ID, signers=[BASE])


class TestAllocateWithSeed:

    def test_allocates_and_assigns(self, ledger):
        account = _seed_account("allocate")
        ledger.request_airdrop(account, 2039280)
        ledger.allocate_with_seed(account, BASE, "allocate", SPL_TOKEN_ACCOUNT_SIZE, TOKEN_PROGRAM_ID, signers=[BASE])
        info = ledger.get_account_info(account)
        assert info.owner == TOKEN_PROGRAM_ID
        assert info.space == SPL_TOKEN_ACCOUNT_SIZE
        assert info.lamports == 2039280

    def test_already_allocated(self, ledger):
        account = _seed_account("allocate")
        ledger.allocate_with_seed(account, BASE, "allocate", 8, TOKEN_PROGRAM_ID, signers=[BASE])
        with pytest.raises(AccountAlreadyInUseError):
            ledger.allocate_with_seed(account, BASE, "allocate", 8, TOKEN_PROGRAM_ID, signers=[BASE])

    def test_space_limit(self, ledger):
        account = _seed_account("allocate")
        with pytest.raises(InvalidAccountDataLengthError):
            ledger.allocate_with_seed(
                account, BASE, "allocate", MAX_PERMITTED_DATA_LENGTH + 1, TOKEN_PROGRAM_ID, signers=[BASE]
            )

    def test_requires_signature(self, ledger):
        with pytest.raises(MissingSignatureError):
            ledger.allocate_with_seed(_seed_account("allocate"), BASE, "allocate", 8, TOKEN_PROGRAM_ID, signers=[])
