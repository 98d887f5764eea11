"""
QuickStats query client and the one-shot download script

Run as a script (python src/fetch_data.py) to download the configured
commodity, save the raw records and write the county irrigation table.
"""

import logging
import re
import sys
from typing import Any, Dict, List, Optional
from urllib.parse import quote_plus

import pandas as pd
import requests
from requests.utils import quote

from config import QueryParameters, load_settings
from errors import DecodeError, QuickStatsError, RequestFailed, TransportError
from table_normalizer import normalize_frame

logger = logging.getLogger(__name__)

DATA_ENDPOINT = "/api/api_GET/"
COUNT_ENDPOINT = "/api/get_counts/"


def build_query(params: QueryParameters) -> Dict[str, Any]:
    """Query-string mapping sent with every request"""
    query = {
        "key": params.api_key,
        "commodity_desc": params.commodity,
        "year__GE": params.min_year,
    }
    if params.region_filter:
        query["state_alpha"] = params.region_filter
    return query


def _redact(text: str, secret: str) -> str:
    if not secret:
        return text
    for form in (secret, quote(secret, safe=""), quote_plus(secret)):
        text = text.replace(form, "***")
    return text


def _error_detail(res) -> Optional[str]:
    # QuickStats reports problems as {"error": ["..."]}
    try:
        body = res.json()
    except ValueError:
        return None
    if not isinstance(body, dict) or "error" not in body:
        return None
    error = body["error"]
    if isinstance(error, list):
        return "; ".join(str(e) for e in error)
    return str(error)


def _get_json(params: QueryParameters, endpoint: str, timeout, session):
    url = params.url(endpoint)
    http = session if session is not None else requests

    logger.info(
        "GET %s commodity_desc=%s year__GE=%s state_alpha=%s",
        url, params.commodity, params.min_year, params.region_filter or "-",
    )

    try:
        res = http.get(url, params=build_query(params), timeout=timeout)
    except requests.exceptions.RequestException as e:
        message = _redact(f"{type(e).__name__}: {e}", params.api_key)
        logger.error("Transport failure talking to %s: %s", url, message)
        raise TransportError(message) from None

    if res.status_code != 200:
        detail = _error_detail(res)
        if detail:
            detail = _redact(detail, params.api_key)
        logger.error("QuickStats returned status %s for %s", res.status_code, url)
        raise RequestFailed(res.status_code, detail)

    try:
        return res.json()
    except ValueError:
        raise DecodeError(f"Response from {url} is not valid JSON") from None


def fetch_records(
    params: QueryParameters,
    timeout: float = 60,
    session: Optional[requests.Session] = None,
) -> List[Dict[str, str]]:
    """
    Download every record matching ``params`` in a single GET.

    Returns the list found under the ``data`` key of the response. Raises
    TransportError, RequestFailed or DecodeError; nothing is retried.
    """
    body = _get_json(params, DATA_ENDPOINT, timeout, session)

    if not isinstance(body, dict):
        raise DecodeError(f"Expected a JSON object, got {type(body).__name__}")
    records = body.get("data")
    if not isinstance(records, list):
        raise DecodeError("Response has no 'data' list")
    for i, record in enumerate(records):
        if not isinstance(record, dict):
            raise DecodeError(f"Record {i} is {type(record).__name__}, not an object")

    logger.info("Fetched %d records", len(records))
    return records


def count_records(
    params: QueryParameters,
    timeout: float = 60,
    session: Optional[requests.Session] = None,
) -> int:
    """Number of records a fetch_records call with the same params would return"""
    body = _get_json(params, COUNT_ENDPOINT, timeout, session)

    if not isinstance(body, dict) or "count" not in body:
        raise DecodeError("Response has no 'count' field")
    try:
        return int(body["count"])
    except (TypeError, ValueError):
        raise DecodeError(f"Count is not an integer: {body['count']!r}") from None


def _slug(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", text.lower()).strip("_")


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    settings = load_settings()

    print("Starting data download from QuickStats...\n")

    try:
        params = settings.query()
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        print("Set API_KEY (and optionally MIN_YEAR) in your environment or .env file.")
        return 1

    try:
        records = fetch_records(params, timeout=settings.timeout)
    except QuickStatsError as e:
        print(f"Error fetching data: {e}")
        return 1

    print(f"Download complete! Total records fetched: {len(records)}")

    # --- Save Raw Data ---
    raw_file = f"raw_{_slug(settings.commodity)}.csv"
    pd.DataFrame(records).to_csv(raw_file, index=False)
    print(f"Saved raw data to '{raw_file}'")

    # --- Normalize ---
    try:
        df = normalize_frame(records, domain_category=settings.domain_category)
    except QuickStatsError as e:
        print(f"Error normalizing data: {e}")
        return 1

    df.to_csv(settings.output_file, index=False)
    print(f"Cleaned data saved to '{settings.output_file}' ({len(df)} county-years)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
