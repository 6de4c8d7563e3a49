"""Seed prices and per-instrument parameters for the offline simulator."""

# Starting (and reference) prices for common instruments
SEED_PRICES: dict[str, float] = {
    "AAPL": 190.00,
    "GOOGL": 175.00,
    "MSFT": 420.00,
    "AMZN": 185.00,
    "TSLA": 250.00,
    "NVDA": 800.00,
    "SPY": 520.00,
    "XXBTZEUR": 60000.00,
    "XETHZEUR": 3000.00,
    "SOLEUR": 140.00,
}

# Annualized GBM parameters
# sigma: volatility (higher = more price movement)
# mu: drift / expected return
TICKER_PARAMS: dict[str, dict[str, float]] = {
    "AAPL": {"sigma": 0.22, "mu": 0.05},
    "GOOGL": {"sigma": 0.25, "mu": 0.05},
    "MSFT": {"sigma": 0.20, "mu": 0.05},
    "AMZN": {"sigma": 0.28, "mu": 0.05},
    "TSLA": {"sigma": 0.50, "mu": 0.03},
    "NVDA": {"sigma": 0.40, "mu": 0.08},
    "SPY": {"sigma": 0.15, "mu": 0.06},
    "XXBTZEUR": {"sigma": 0.60, "mu": 0.10},
    "XETHZEUR": {"sigma": 0.75, "mu": 0.10},
    "SOLEUR": {"sigma": 0.90, "mu": 0.10},
}

# Defaults for instruments not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.25, "mu": 0.05}
DEFAULT_CRYPTO_PARAMS: dict[str, float] = {"sigma": 0.70, "mu": 0.10}

# Correlation coefficients
INTRA_EQUITY_CORR = 0.5  # Equities move together
INTRA_CRYPTO_CORR = 0.7  # Crypto moves together even more
CROSS_KIND_CORR = 0.2  # Between equities and crypto
