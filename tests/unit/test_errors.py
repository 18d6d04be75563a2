"""Tests for pm_common.errors and pm_common.response."""

import pytest

from src.pm_common.errors import (
    AlreadyClaimedError,
    AlreadyResolvedError,
    AppError,
    AuthorizationError,
    ConsistencyError,
    DuplicateMessageError,
    EconomicError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidScheduleError,
    MalformedPayloadError,
    MarketExpiredError,
    MarketNotResolvedError,
    MarketResolvedError,
    RequestValidationError,
    ResolutionTooEarlyError,
    SlippageExceededError,
    StateTransitionError,
    UnauthorizedResolverError,
    UnknownMarketError,
    UntrustedChannelError,
)
from src.pm_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)


class TestCategories:
    @pytest.mark.parametrize(
        "err,category",
        [
            (InvalidScheduleError("past"), RequestValidationError),
            (InvalidAmountError(0), RequestValidationError),
            (MalformedPayloadError("bad"), RequestValidationError),
            (MarketResolvedError(1), StateTransitionError),
            (MarketExpiredError(1), StateTransitionError),
            (MarketNotResolvedError(1), StateTransitionError),
            (AlreadyResolvedError(1), StateTransitionError),
            (AlreadyClaimedError(1, "alice"), StateTransitionError),
            (ResolutionTooEarlyError(1), StateTransitionError),
            (UnauthorizedResolverError(1), AuthorizationError),
            (UntrustedChannelError("x"), AuthorizationError),
            (InsufficientFundsError(2, 1), EconomicError),
            (SlippageExceededError(2, 1), EconomicError),
            (DuplicateMessageError(10, 1), ConsistencyError),
        ],
    )
    def test_category(self, err: AppError, category: type[AppError]) -> None:
        assert isinstance(err, category)


class TestSpecificErrors:
    def test_insufficient_funds(self) -> None:
        err = InsufficientFundsError(required=6500, available=3000)
        assert err.code == 2001
        assert err.http_status == 422
        assert "6500" in err.message
        assert "3000" in err.message

    def test_unknown_market(self) -> None:
        err = UnknownMarketError(42)
        assert err.code == 3001
        assert err.http_status == 404

    def test_unauthorized_resolver(self) -> None:
        err = UnauthorizedResolverError(42)
        assert err.code == 6001
        assert err.http_status == 403

    def test_duplicate_message_names_nonce(self) -> None:
        err = DuplicateMessageError(source_domain_id=10, nonce=7)
        assert err.code == 7003
        assert "nonce=7" in err.message


class TestApiResponse:
    def test_success(self) -> None:
        resp = success_response({"market_id": 1})
        assert resp.code == 0
        assert resp.data == {"market_id": 1}
        assert resp.request_id.startswith("req_")

    def test_error(self) -> None:
        resp = error_response(3001, "Market not found: 1")
        assert resp.code == 3001
        assert resp.data is None

    def test_model(self) -> None:
        model = ApiResponse(code=0, message="success", data=None, timestamp="t")
        assert model.code == 0
