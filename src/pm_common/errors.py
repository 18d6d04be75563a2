"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Gateway
  2xxx: Account / Ledger
  3xxx: Market
  4xxx: Trade
  5xxx: Position / Claim
  6xxx: Oracle
  7xxx: Relay
  9xxx: System

Every error is all-or-nothing: it is raised before any mutation, or from
inside a savepoint that the raise rolls back.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- categories ---

class RequestValidationError(AppError):
    """Caller mistake, rejected before any mutation."""


class StateTransitionError(AppError):
    """Illegal transition for the current market/position state."""


class AuthorizationError(AppError):
    """Caller identity not allowed to perform the operation."""


class EconomicError(AppError):
    """Funds or price conditions not met; caller may retry with new parameters."""


class ConsistencyError(AppError):
    """Legitimate redelivery or retry; never a fatal fault."""


# --- 1xxx: Auth/Gateway ---

class InvalidCredentialsError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


# --- 2xxx: Account / Ledger ---

class InsufficientFundsError(EconomicError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient funds: required {required}, available {available}",
            422,
        )


# --- 3xxx: Market ---

class UnknownMarketError(AppError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3001, f"Market not found: {market_id}", 404)


class InvalidScheduleError(RequestValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(3002, f"Invalid resolution time: {detail}", 422)


class InvalidQuestionError(RequestValidationError):
    def __init__(self) -> None:
        super().__init__(3003, "Market question must not be empty", 422)


class MarketResolvedError(StateTransitionError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3004, f"Market already resolved: {market_id}", 409)


class MarketExpiredError(StateTransitionError):
    def __init__(self, market_id: int) -> None:
        super().__init__(3005, f"Market trading window closed: {market_id}", 409)


# --- 4xxx: Trade ---

class InvalidAmountError(RequestValidationError):
    def __init__(self, amount: int) -> None:
        super().__init__(4001, f"Amount must be positive, got {amount}", 422)


class SlippageExceededError(EconomicError):
    def __init__(self, cost: int, max_cost: int) -> None:
        super().__init__(
            4002, f"Slippage exceeded: cost {cost} > max_cost {max_cost}", 422
        )


# --- 5xxx: Position / Claim ---

class MarketNotResolvedError(StateTransitionError):
    def __init__(self, market_id: int) -> None:
        super().__init__(5001, f"Market not resolved yet: {market_id}", 409)


class AlreadyClaimedError(StateTransitionError):
    def __init__(self, market_id: int, account_id: str) -> None:
        super().__init__(
            5002, f"Position already claimed: market={market_id} account={account_id}", 409
        )


# --- 6xxx: Oracle ---

class UnauthorizedResolverError(AuthorizationError):
    def __init__(self, market_id: int) -> None:
        super().__init__(6001, f"Caller is not the resolver of market {market_id}", 403)


class AlreadyResolvedError(StateTransitionError):
    def __init__(self, market_id: int) -> None:
        super().__init__(6002, f"Market already resolved: {market_id}", 409)


class ResolutionTooEarlyError(StateTransitionError):
    def __init__(self, market_id: int) -> None:
        super().__init__(
            6003, f"Market {market_id} cannot be resolved before its resolution time", 409
        )


# --- 7xxx: Relay ---

class UntrustedChannelError(AuthorizationError):
    def __init__(self, detail: str) -> None:
        super().__init__(7001, f"Untrusted message channel: {detail}", 403)


class MalformedPayloadError(RequestValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(7002, f"Malformed relay payload: {detail}", 422)


class DuplicateMessageError(ConsistencyError):
    def __init__(self, source_domain_id: int, nonce: int) -> None:
        super().__init__(
            7003,
            f"Message already applied: domain={source_domain_id} nonce={nonce}",
            409,
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
