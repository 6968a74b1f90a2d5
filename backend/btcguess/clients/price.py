from typing import Optional

import requests

from btcguess.errors import ConfigurationError, PriceFetchError


class PriceClient:
    """Reads the current BTC/USD price from an endpoint shaped like
    ``{"bitcoin": {"usd": <number>}}``."""

    def __init__(self, url: str, timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        if not url:
            raise ConfigurationError('Missing BTC Price API URL')
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_usd(self) -> float:
        try:
            resp = self.session.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            raise PriceFetchError(f"Price API request failed: {exc}") from exc
        except ValueError as exc:
            raise PriceFetchError('Price API returned invalid JSON') from exc
        try:
            return float(data['bitcoin']['usd'])
        except (KeyError, TypeError, ValueError) as exc:
            raise PriceFetchError('Price API response is missing bitcoin.usd') from exc


def build_price_client(config) -> PriceClient:
    return PriceClient(
        config.get('BTC_PRICE_API'),
        timeout=float(config.get('HTTP_TIMEOUT_SEC', 10)),
    )
