"""
Domain exceptions
Raised by domain services, translated to HTTP responses by the API layer
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.domain.models import UsageLedgerEntry


class AdvisorError(Exception):
    """Base class for all portfolio advisor errors"""


class ValidationError(AdvisorError, ValueError):
    """Holdings input is empty or malformed"""


class QuotaExceededError(AdvisorError):
    """No credits left for today"""

    def __init__(self, usage: "UsageLedgerEntry"):
        self.usage = usage
        super().__init__(
            f"No credits remaining for {usage.date} "
            f"({usage.credits_used} used)"
        )


class QuoteUnavailableError(AdvisorError):
    """Quote could not be resolved for a single ticker"""

    def __init__(self, ticker: str, reason: Optional[str] = None):
        self.ticker = ticker
        self.reason = reason or "no usable price"
        super().__init__(f"Quote unavailable for {ticker}: {self.reason}")


class PersistenceError(AdvisorError):
    """A record could not be written to the store"""


class PortfolioNotFoundError(AdvisorError):
    """Portfolio id does not exist"""

    def __init__(self, portfolio_id: str):
        self.portfolio_id = portfolio_id
        super().__init__(f"Portfolio with id {portfolio_id} not found")


class ConfigError(AdvisorError):
    """Configuration file missing or invalid"""
