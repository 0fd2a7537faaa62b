"""
Sysbridge

Harness for driving the host ledger's System program from EVM contracts.

Core imports are lazily loaded so that the rent estimator can be used
without pulling in the logging and ledger stack:

    from sysbridge.rent import minimum_balance
    from sysbridge.bridge import CallSystemProgram
    from sysbridge.ledger import InMemoryLedger
"""

__version__ = "1.0.0"


def __getattr__(name):
    if name in ('RentConfig', 'minimum_balance', 'estimate'):
        from . import rent
        return getattr(rent, name)
    elif name == 'InMemoryLedger':
        from .ledger import InMemoryLedger
        return InMemoryLedger
    elif name == 'CallSystemProgram':
        from .bridge import CallSystemProgram
        return CallSystemProgram
    elif name == 'Pubkey':
        from .pubkey import Pubkey
        return Pubkey
    raise AttributeError(f"module 'sysbridge' has no attribute {name!r}")

__all__ = ['RentConfig', 'minimum_balance', 'estimate', 'InMemoryLedger', 'CallSystemProgram', 'Pubkey']
