"""Statistics Netherlands (CBS) open-data source for the Dutch house price index.

Table 83906ENG publishes one index value per month. The value for month M
is released on the 22nd of month M+1 at 02:00 UTC and stays in effect until
the next release, so a historical query is answered by the last release at
or before the requested time (``TieBreakRule.PREVIOUS_SAMPLE``).
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable

from price_feeds.core.models import PriceSample, TieBreakRule

logger = logging.getLogger(__name__)

_BASE_URL = "https://opendata.cbs.nl/ODataApi/odata"
_DEFAULT_TABLE = "83906ENG"
_PRICE_FIELD = "PriceIndexOfExistingOwnHomes_1"
_PERIOD_FIELD = "Periods"

_PUBLICATION_DAY = 22
_PUBLICATION_HOUR = 2

# Monthly periods look like "2023MM01"; yearly ("2023JJ00") and
# quarterly ("2023KW01") periods are not part of the monthly series.
_MONTHLY_PERIOD_RE = re.compile(r"^(\d{4})MM(\d{2})$")


class StatisticsNetherlandsSource:
    """Builds CBS OData requests and parses ``UntypedDataSet`` responses."""

    tie_break = TieBreakRule.PREVIOUS_SAMPLE
    # 15 minutes
    default_min_time_between_updates = 900

    def __init__(self, table: str = _DEFAULT_TABLE, base_url: str = _BASE_URL) -> None:
        self._table = table
        self._base_url = base_url.rstrip("/")

    @property
    def name(self) -> str:
        return f"StatisticsNetherlands-{self._table}"

    def build_url(self, start: int, end: int) -> str:
        # The OData filter only takes a lower bound; everything newer is returned.
        period = format_period(start)
        return (
            f"{self._base_url}/{self._table}/UntypedDataSet"
            f"?$filter={_PERIOD_FIELD} ge '{period}'"
        )

    def parse(self, payload: Any, to_fixed: Callable[[str], int]) -> list[PriceSample]:
        """Parse an ``UntypedDataSet`` response into samples, oldest first.

        Example response::

            {
              "odata.metadata": "...",
              "value": [
                {"ID": 476, "Periods": "2023MM01",
                 "PriceIndexOfExistingOwnHomes_1": "   183.3", ...},
                {"ID": 477, "Periods": "2023MM02",
                 "PriceIndexOfExistingOwnHomes_1": "   180.6", ...}
              ]
            }

        Rows for non-monthly periods and rows whose index is not yet
        published (CBS writes ``"."``) are skipped.
        """
        if not isinstance(payload, dict):
            raise TypeError(f"expected a JSON object, got {type(payload).__name__}")

        rows = payload.get("value")
        if not isinstance(rows, list):
            raise ValueError("response has no 'value' array")

        samples: list[PriceSample] = []
        for row in rows:
            timestamp = period_to_timestamp(str(row[_PERIOD_FIELD]))
            if timestamp is None:
                logger.debug("Skipping non-monthly period %r", row[_PERIOD_FIELD])
                continue

            raw_price = str(row[_PRICE_FIELD]).strip()
            if raw_price in ("", "."):
                logger.debug("Skipping period %r without a published index", row[_PERIOD_FIELD])
                continue

            samples.append(PriceSample(timestamp=timestamp, price=to_fixed(raw_price)))

        return sorted(samples, key=lambda s: s.timestamp)


def format_period(timestamp: int) -> str:
    """Encode the month containing ``timestamp`` as a CBS period (``2023MM01``)."""
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return f"{moment.year:04d}MM{moment.month:02d}"


def period_to_timestamp(period: str) -> int | None:
    """Publication time of a monthly period, or None for any other period.

    ``2023MM01`` -> 2023-02-22 02:00 UTC; ``2023MM12`` -> 2024-01-22 02:00 UTC.
    """
    match = _MONTHLY_PERIOD_RE.match(period.strip())
    if match is None:
        return None

    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None

    year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    published = datetime(
        year, month, _PUBLICATION_DAY, _PUBLICATION_HOUR, tzinfo=timezone.utc
    )
    return int(published.timestamp())
