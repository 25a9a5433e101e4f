"""
ADVICE ENGINE - CORE
Turns holdings + quotes into a ranked, bounded list of advice items

RESPONSIBILITIES:
- Aggregate portfolio metrics (value, weightage, sector distribution)
- Apply per-stock rules (first match wins, one item per stock)
- Apply portfolio-level sector and size rules
- Rank by confidence and truncate

RULES:
❌ No I/O
❌ No mutation of inputs
❌ No wall-clock or randomness
✅ Deterministic output for fixed input
"""

from typing import Dict, List, Optional, Sequence

from app.domain.models import (
    AdviceItem,
    AdviceType,
    Confidence,
    Holding,
    PortfolioMetrics,
    Quote,
    RiskLevel,
    StockMetrics,
)
from app.domain.services.config_engine import AdviceRules


def format_inr(amount: float) -> str:
    """Format a rupee amount with Indian digit grouping (12,34,567.5)."""
    sign = "-" if amount < 0 else ""
    rounded = round(abs(amount), 2)
    whole = int(rounded)
    fraction = f"{rounded - whole:.2f}"[1:].rstrip("0").rstrip(".")

    digits = str(whole)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}₹{digits}{fraction}"


class AdviceEngine:
    """
    Advice Engine
    Pure rule evaluation over (holding, quote) pairs
    """

    def __init__(self, rules: Optional[AdviceRules] = None):
        self.rules = rules or AdviceRules()

    # ------------------------------------------------------------------
    # METRICS
    # ------------------------------------------------------------------

    def compute_metrics(
        self,
        holdings: Sequence[Holding],
        quotes: Sequence[Optional[Quote]],
    ) -> PortfolioMetrics:
        """
        Aggregate value, weightage and sector distribution.

        Weightage is value divided by the running total accumulated so far
        (this holding included), so it depends on holding order.
        """
        total_value = 0.0
        sector_distribution: Dict[str, float] = {}
        stocks: Dict[str, StockMetrics] = {}

        for index, holding in enumerate(holdings):
            quote = self._quote_at(quotes, index)
            if quote is None:
                continue

            value = holding.quantity * quote.current_price
            total_value += value
            weightage = value / total_value if total_value else 0.0
            sector = quote.sector or self.rules.default_sector
            sector_distribution[sector] = sector_distribution.get(sector, 0.0) + value

            stocks[holding.ticker] = StockMetrics(
                ticker=holding.ticker,
                daily_change_percent=quote.daily_change_percent,
                current_price=quote.current_price,
                moving_average_50=quote.moving_average_50,
                value=value,
                weightage=weightage,
                sector=sector,
                name=quote.name,
            )

        return PortfolioMetrics(
            total_value=total_value,
            stocks=stocks,
            sector_distribution=sector_distribution,
        )

    @staticmethod
    def _quote_at(quotes: Sequence[Optional[Quote]], index: int) -> Optional[Quote]:
        if index >= len(quotes):
            return None
        return quotes[index]

    # ------------------------------------------------------------------
    # ADVICE
    # ------------------------------------------------------------------

    def generate_advice(
        self,
        holdings: Sequence[Holding],
        quotes: Sequence[Optional[Quote]],
    ) -> List[AdviceItem]:
        """
        Generate ranked advice for a portfolio.

        Args:
            holdings: Holdings in submission order
            quotes: Quotes parallel-indexed to holdings (None = unresolved)

        Returns:
            At most max_items advice items, highest confidence first
        """
        metrics = self.compute_metrics(holdings, quotes)
        if not metrics.stocks:
            return []

        advice: List[AdviceItem] = []
        for index, holding in enumerate(holdings):
            quote = self._quote_at(quotes, index)
            stock = metrics.stocks.get(holding.ticker)
            if quote is None or stock is None:
                continue
            item = self._stock_advice(holding.ticker, quote.daily_change_percent, stock)
            if item is not None:
                advice.append(item)

        advice.extend(self._sector_advice(metrics))
        advice.extend(self._size_advice(metrics, len(holdings)))

        return self.rank(advice)

    def rank(self, advice: Sequence[AdviceItem]) -> List[AdviceItem]:
        """Stable sort by confidence (High > Med > Low), then truncate."""
        ranked = sorted(advice, key=lambda item: item.confidence.rank, reverse=True)
        return ranked[: self.rules.max_items]

    def _stock_advice(
        self,
        ticker: str,
        daily_change: float,
        stock: StockMetrics,
    ) -> Optional[AdviceItem]:
        rules = self.rules
        price_vs_ma = stock.price_vs_ma
        name = stock.display_name

        if (
            daily_change > rules.momentum_min_daily_change_pct
            and price_vs_ma > rules.momentum_min_price_vs_ma_pct
        ):
            return AdviceItem(
                type=AdviceType.SELL,
                ticker=ticker,
                message=(
                    f"{name} shows strong momentum (+{daily_change:.1f}% today, "
                    f"{price_vs_ma:.1f}% above 50-day MA). Consider booking partial "
                    f"profits to lock in gains."
                ),
                confidence=Confidence.HIGH,
                icon="📈",
            )

        if (
            daily_change < rules.value_max_daily_change_pct
            and price_vs_ma < rules.value_max_price_vs_ma_pct
            and stock.weightage < rules.value_max_weightage
        ):
            return AdviceItem(
                type=AdviceType.BUY,
                ticker=ticker,
                message=(
                    f"{name} is undervalued ({abs(price_vs_ma):.1f}% below 50-day MA). "
                    f"Quality {stock.sector} stock trading at attractive levels - "
                    f"consider accumulating."
                ),
                confidence=Confidence.HIGH,
                icon="💎",
            )

        if (
            abs(daily_change) > rules.overweight_min_abs_daily_change_pct
            and stock.weightage > rules.overweight_min_weightage
        ):
            return AdviceItem(
                type=AdviceType.SELL,
                ticker=ticker,
                message=(
                    f"{name} makes up {stock.weightage * 100:.1f}% of your portfolio "
                    f"and shows high volatility. Consider reducing position to "
                    f"manage risk."
                ),
                confidence=Confidence.MED,
                icon="⚖️",
            )

        if (
            abs(daily_change) < rules.hold_max_abs_daily_change_pct
            and abs(price_vs_ma) < rules.hold_max_abs_price_vs_ma_pct
        ):
            return AdviceItem(
                type=AdviceType.HOLD,
                ticker=ticker,
                message=(
                    f"{name} trades near fair value with stable performance. Good "
                    f"core holding - maintain current position and monitor "
                    f"quarterly results."
                ),
                confidence=Confidence.MED,
                icon="🤝",
            )

        return None

    def _sector_advice(self, metrics: PortfolioMetrics) -> List[AdviceItem]:
        dominant = metrics.dominant_sector
        concentration = metrics.sector_concentration
        if dominant is None:
            return []
        sector = dominant[0]
        pct = concentration * 100

        if concentration > self.rules.high_sector_concentration:
            return [AdviceItem(
                type=AdviceType.DIVERSIFY,
                message=(
                    f"Portfolio is heavily concentrated ({pct:.0f}%) in {sector} "
                    f"sector. Consider adding Banking, FMCG, or Healthcare stocks "
                    f"for better diversification."
                ),
                confidence=Confidence.HIGH,
                icon="🔄",
            )]
        if concentration > self.rules.moderate_sector_concentration:
            return [AdviceItem(
                type=AdviceType.DIVERSIFY,
                message=(
                    f"Good sector mix, but {sector} dominates at {pct:.0f}%. "
                    f"Consider adding small positions in defensive sectors like "
                    f"Pharmaceuticals or Utilities."
                ),
                confidence=Confidence.MED,
                icon="📊",
            )]
        return []

    def _size_advice(self, metrics: PortfolioMetrics, holding_count: int) -> List[AdviceItem]:
        total = metrics.total_value

        if total < self.rules.small_portfolio_value:
            return [AdviceItem(
                type=AdviceType.BUY,
                message=(
                    f"Small portfolio size ({format_inr(total)}). Focus on 2-3 quality "
                    f"large-cap stocks and consider SIP investment to build "
                    f"substantial wealth over time."
                ),
                confidence=Confidence.HIGH,
                icon="📈",
            )]
        if (
            total > self.rules.large_portfolio_value
            and holding_count < self.rules.min_holdings_for_large
        ):
            return [AdviceItem(
                type=AdviceType.DIVERSIFY,
                message=(
                    f"Substantial portfolio (₹{total / 100_000:.1f}L) with only "
                    f"{holding_count} stocks. Consider adding 2-3 more quality "
                    f"stocks across different sectors."
                ),
                confidence=Confidence.MED,
                icon="🚀",
            )]
        return []

    # ------------------------------------------------------------------
    # DERIVED LABELS
    # ------------------------------------------------------------------

    def assess_risk(self, metrics: PortfolioMetrics) -> RiskLevel:
        """Coarse risk label from sector concentration and holding count"""
        concentration = metrics.sector_concentration
        if concentration > self.rules.high_sector_concentration or len(metrics.stocks) < 3:
            return RiskLevel.HIGH
        if concentration > self.rules.moderate_sector_concentration:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW


def generate_advice(
    holdings: Sequence[Holding],
    quotes: Sequence[Optional[Quote]],
    rules: Optional[AdviceRules] = None,
) -> List[AdviceItem]:
    """Module-level shortcut for AdviceEngine(rules).generate_advice()."""
    return AdviceEngine(rules).generate_advice(holdings, quotes)
