"""
Sysbridge Exceptions

Custom exception classes for the System program bridge harness.
"""


class SysbridgeException(Exception):
    """Base exception for sysbridge."""
    pass


class DecodeError(SysbridgeException, ValueError):
    """Rent sysvar data is truncated or carries an invalid threshold."""
    pass


class RentOverflowError(SysbridgeException, OverflowError):
    """Rent arithmetic left the unsigned 64-bit range."""
    pass


class InvalidPubkeyError(SysbridgeException, ValueError):
    """Malformed public key."""
    pass


class ConfigurationError(SysbridgeException):
    """Configuration error."""
    pass


class UnknownSelectorError(SysbridgeException):
    """Calldata selector does not match any bridge function."""
    pass


# -- System program instruction errors ---------------------------------

class SystemInstructionError(SysbridgeException):
    """A System program instruction was rejected by the ledger."""
    pass


class AccountAlreadyInUseError(SystemInstructionError):
    """Target account already holds lamports or data."""
    pass


class InsufficientFundsError(SystemInstructionError):
    """Funding account cannot cover the requested lamports."""
    pass


class InvalidAccountOwnerError(SystemInstructionError):
    """Account is not owned by the System program."""
    pass


class InvalidAccountDataLengthError(SystemInstructionError):
    """Requested space exceeds the permitted data length."""
    pass


class AddressWithSeedMismatchError(SystemInstructionError):
    """Derived seed address does not match the supplied account."""
    pass


class MaxSeedLengthExceededError(SystemInstructionError):
    """Seed is longer than the ledger allows."""
    pass


class IllegalOwnerError(SystemInstructionError):
    """Owner would make the seed address collide with a program address."""
    pass


class MissingSignatureError(SystemInstructionError):
    """A required signer did not sign the instruction."""
    pass


class InvalidSeedError(SystemInstructionError, ValueError):
    """Seed bytes are not a UTF-8 string."""
    pass


class LamportsOverflowError(SystemInstructionError, OverflowError):
    """Crediting an account would push its balance past u64."""
    pass
