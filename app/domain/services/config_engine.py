"""
CONFIG ENGINE
Load, validate, and expose system configuration

RESPONSIBILITIES:
- Load YAML configuration (config/app.yml)
- Validate configuration integrity
- Expose read-only typed objects

RULES:
✅ Fail fast on invalid config
✅ Deterministic output
"""

import yaml
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

from app.domain.exceptions import ConfigError


DEFAULT_CONFIG_DIR = Path(__file__).resolve().parents[3] / "config"


@dataclass(frozen=True)
class AdviceRules:
    """Thresholds driving the advice engine"""
    max_items: int = 5
    default_sector: str = "Unknown"

    # Rule 1: momentum -> book profits
    momentum_min_daily_change_pct: float = 3
    momentum_min_price_vs_ma_pct: float = 5

    # Rule 2: undervalued -> accumulate
    value_max_daily_change_pct: float = -2
    value_max_price_vs_ma_pct: float = -5
    value_max_weightage: float = 0.4

    # Rule 3: overweight + volatile -> reduce
    overweight_min_abs_daily_change_pct: float = 2
    overweight_min_weightage: float = 0.4

    # Rule 4: near fair value -> hold
    hold_max_abs_daily_change_pct: float = 2
    hold_max_abs_price_vs_ma_pct: float = 3

    # Portfolio level
    high_sector_concentration: float = 0.65
    moderate_sector_concentration: float = 0.45
    small_portfolio_value: float = 50_000
    large_portfolio_value: float = 500_000
    min_holdings_for_large: int = 5


@dataclass(frozen=True)
class MarketIndex:
    symbol: str
    name: str


@dataclass(frozen=True)
class MarketDataConfig:
    provider: str
    fallback_providers: Tuple[str, ...]
    cache_ttl: int
    retries: int
    default_suffix: str
    indices: Tuple[MarketIndex, ...]


@dataclass(frozen=True)
class PortfolioConfig:
    default_name: str
    min_quantity: float


class ConfigEngine:
    """
    Configuration Engine
    Single source of truth for rule and provider configuration
    """

    def __init__(self, config_dir: Path = DEFAULT_CONFIG_DIR):
        """Initialize with config directory"""
        self.config_dir = config_dir
        self._app_config: Dict = None
        self._advice_rules: AdviceRules = None
        self._market_data: MarketDataConfig = None
        self._portfolio: PortfolioConfig = None

    def load_all(self) -> None:
        """Load all configuration sections"""
        self._load_app_config()
        self._load_advice_rules()
        self._load_market_data()
        self._load_portfolio()
        self._validate_all()

    def _load_app_config(self) -> None:
        """Load application config from app.yml"""
        app_file = self.config_dir / "app.yml"
        if not app_file.exists():
            raise ConfigError(f"App config not found: {app_file}")

        with open(app_file, 'r') as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ConfigError(f"App config is empty or malformed: {app_file}")
        self._app_config = data

    def _section(self, name: str) -> Dict[str, Any]:
        section = self._app_config.get(name)
        if not isinstance(section, dict):
            raise ConfigError(f"Missing config section: {name}")
        return section

    def _load_advice_rules(self) -> None:
        advice = self._section("advice")
        try:
            momentum = advice["momentum_sell"]
            value = advice["value_buy"]
            overweight = advice["overweight_sell"]
            hold = advice["fair_value_hold"]
            sector = advice["sector"]
            size = advice["size"]

            self._advice_rules = AdviceRules(
                max_items=int(advice["max_items"]),
                default_sector=str(advice["default_sector"]),
                momentum_min_daily_change_pct=float(momentum["min_daily_change_pct"]),
                momentum_min_price_vs_ma_pct=float(momentum["min_price_vs_ma_pct"]),
                value_max_daily_change_pct=float(value["max_daily_change_pct"]),
                value_max_price_vs_ma_pct=float(value["max_price_vs_ma_pct"]),
                value_max_weightage=float(value["max_weightage"]),
                overweight_min_abs_daily_change_pct=float(overweight["min_abs_daily_change_pct"]),
                overweight_min_weightage=float(overweight["min_weightage"]),
                hold_max_abs_daily_change_pct=float(hold["max_abs_daily_change_pct"]),
                hold_max_abs_price_vs_ma_pct=float(hold["max_abs_price_vs_ma_pct"]),
                high_sector_concentration=float(sector["high_concentration"]),
                moderate_sector_concentration=float(sector["moderate_concentration"]),
                small_portfolio_value=float(size["small_portfolio_value"]),
                large_portfolio_value=float(size["large_portfolio_value"]),
                min_holdings_for_large=int(size["min_holdings_for_large"]),
            )
        except KeyError as exc:
            raise ConfigError(f"Missing advice setting: {exc.args[0]}") from exc

    def _load_market_data(self) -> None:
        market = self._section("market_data")
        indices: List[MarketIndex] = []
        for entry in market.get("indices", []):
            try:
                indices.append(MarketIndex(symbol=entry["symbol"], name=entry["name"]))
            except (KeyError, TypeError) as exc:
                raise ConfigError(f"Invalid market index entry: {entry}") from exc

        self._market_data = MarketDataConfig(
            provider=str(market.get("provider", "yfinance")).lower(),
            fallback_providers=tuple(
                str(p).lower() for p in market.get("fallback_providers", []) if p
            ),
            cache_ttl=int(market.get("cache_ttl", 60)),
            retries=int(market.get("retries", 2)),
            default_suffix=str(market.get("default_suffix", "")),
            indices=tuple(indices),
        )

    def _load_portfolio(self) -> None:
        portfolio = self._section("portfolio")
        self._portfolio = PortfolioConfig(
            default_name=str(portfolio.get("default_name", "My Portfolio")),
            min_quantity=float(portfolio.get("min_quantity", 0.01)),
        )

    def _validate_all(self) -> None:
        """Cross-check loaded values"""
        rules = self._advice_rules
        if rules.max_items < 1:
            raise ConfigError("advice.max_items must be at least 1")
        if not rules.moderate_sector_concentration < rules.high_sector_concentration:
            raise ConfigError(
                "advice.sector.moderate_concentration must be below high_concentration"
            )
        if not 0 < rules.small_portfolio_value < rules.large_portfolio_value:
            raise ConfigError(
                "advice.size.small_portfolio_value must be positive and below large_portfolio_value"
            )
        if self._portfolio.min_quantity <= 0:
            raise ConfigError("portfolio.min_quantity must be positive")

    def _require_loaded(self, value):
        if value is None:
            raise ConfigError("Configuration not loaded. Call load_all() first.")
        return value

    @property
    def advice_rules(self) -> AdviceRules:
        return self._require_loaded(self._advice_rules)

    @property
    def market_data(self) -> MarketDataConfig:
        return self._require_loaded(self._market_data)

    @property
    def portfolio(self) -> PortfolioConfig:
        return self._require_loaded(self._portfolio)

    def get_app_setting(self, key: str) -> Dict[str, Any]:
        """Raw access to a top-level section of app.yml"""
        return dict(self._require_loaded(self._app_config).get(key, {}))


def load_config_engine(config_dir: Path = DEFAULT_CONFIG_DIR) -> ConfigEngine:
    engine = ConfigEngine(config_dir)
    engine.load_all()
    return engine
