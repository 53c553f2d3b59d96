"""
Seigniorage Exceptions

Every rejection raised by the protocol. A raised error aborts the whole
entry point and the ledger restores the state it had before the call.
"""


class ProtocolError(Exception):
    """Base exception for the protocol."""
    pass


class ConfigurationError(ProtocolError):
    """Configuration error."""
    pass


# -- Precondition violations --------------------------------------------------

class PreconditionError(ProtocolError):
    """A call was made in a state that does not allow it."""
    pass


class NotStartedError(PreconditionError):
    """The contract's start time has not been reached."""
    pass


class EpochNotCallableError(PreconditionError):
    """The epoch-gated action already ran in the current epoch."""
    pass


class NotInitializedError(PreconditionError):
    """The treasury has not been initialized."""
    pass


class AlreadyInitializedError(PreconditionError):
    """Initialization may only happen once."""
    pass


class MigratedError(PreconditionError):
    """The treasury has migrated; no further mutations are accepted."""
    pass


class ZeroAmountError(PreconditionError):
    """An amount that must be positive was zero."""
    pass


class InsufficientBalanceError(PreconditionError):
    """Balance is too low for the requested transfer or burn."""
    pass


class InsufficientAllowanceError(PreconditionError):
    """Spender allowance is too low."""
    pass


class InvalidAddressError(PreconditionError):
    """Invalid address, e.g. the zero address as a recipient."""
    pass


class InvalidTokenError(PreconditionError):
    """Token is not part of the oracle's pair."""
    pass


class NoReservesError(PreconditionError):
    """Pair has no liquidity to price from."""
    pass


class SlippageError(PreconditionError):
    """Swap output is below the caller's minimum."""
    pass


class PriceNotEligibleError(PreconditionError):
    """Oracle price does not allow the bond operation."""
    pass


class PriceMovedError(PreconditionError):
    """Oracle price moved past the caller's target price."""
    pass


class InsufficientBudgetError(PreconditionError):
    """Treasury does not hold enough cash to redeem bonds."""
    pass


class NoDebtCapacityError(PreconditionError):
    """Treasury is not willing to issue more bonds."""
    pass


class NoStakeError(PreconditionError):
    """Distributor has no stake to reward, or the staker has none."""
    pass


class LockupError(PreconditionError):
    """Staked funds or rewards are still locked."""
    pass


class SameBlockReentryError(PreconditionError):
    """A guarded entry point was already used by this origin in this block."""
    pass


class InvalidParameterError(PreconditionError):
    """A governance parameter is out of range."""
    pass


# -- Arithmetic impossibilities -----------------------------------------------

class MathError(ProtocolError):
    """Arithmetic that would wrap, truncate, or divide by zero."""
    pass


class SubtractionUnderflowError(MathError):
    """Unsigned subtraction would go below zero."""
    pass


class DivisionByZeroError(MathError):
    """Division or modulo by zero."""
    pass


class FixedPointOverflowError(MathError):
    """A fixed-point value does not fit its bit width."""
    pass


# -- External calls -----------------------------------------------------------

class ExternalCallError(ProtocolError):
    """A required call into a collaborator failed."""
    pass


class OracleConsultError(ExternalCallError):
    """The oracle could not price cash."""
    pass


# -- Privilege violations -----------------------------------------------------

class PrivilegeError(ProtocolError):
    """Caller lacks the capability for this call."""
    pass


class NotOwnerError(PrivilegeError):
    """Caller is not the owner."""
    pass


class NotOperatorError(PrivilegeError):
    """Caller is not the operator, or the contract lacks operator rights."""
    pass


class NotPredecessorError(PrivilegeError):
    """Migration handshake from an address other than the predecessor."""
    pass
