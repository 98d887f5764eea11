"""
Turn raw QuickStats records into one row per county and year
with irrigated acres, total acres and the share irrigated
"""

import logging
import math
import re
from dataclasses import asdict, dataclass, fields
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

import pandas as pd

from config import DEFAULT_DOMAIN_CATEGORY
from errors import MalformedValue

logger = logging.getLogger(__name__)

# QuickStats column -> name used throughout this module
RENAME_MAP = {
    "agg_level_desc": "aggregation_level",
    "unit_desc": "unit",
    "domaincat_desc": "domain_category",
    "Value": "value",
    "state_fips_code": "state_code",
    "asd_desc": "subregion_description",
    "prodn_practice_desc": "production_practice_description",
}

TEXT_FIELDS = [
    "aggregation_level",
    "unit",
    "domain_category",
    "value",
    "state_name",
    "state_code",
    "county_code",
    "county_name",
    "subregion_description",
    "year",
    "production_practice_description",
]

# (D) withheld to avoid disclosing individual operations, (Z) less than half the unit
SENTINELS = ("(D)", "(Z)")

IRRIGATED = "irrigated"
ALL_PRACTICES = "all_production_practices"
GROUP_KEYS = ["state_code", "county_code", "year"]


@dataclass(frozen=True)
class NormalizedRow:
    region_id: str
    state_code: str
    state_name: str
    county_code: str
    county_name: str
    year: int
    irrigated_acres: float
    total_acres: float
    percent_irrigated: float


ROW_COLUMNS = [f.name for f in fields(NormalizedRow)]


def parse_value(raw) -> Optional[float]:
    """Numeric value of a QuickStats ``Value`` field, or None for a redaction code"""
    text = "" if raw is None else str(raw).strip()
    if text in SENTINELS:
        return None
    try:
        number = float(text.replace(",", ""))
    except ValueError:
        raise MalformedValue(raw) from None
    if not math.isfinite(number):
        raise MalformedValue(raw)
    return number


def _parse_year(raw) -> int:
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    try:
        return int(str(raw).strip())
    except ValueError:
        raise MalformedValue(raw) from None


def practice_key(label) -> str:
    """'All Production Practices' -> 'all_production_practices'"""
    if label is None:
        return ""
    return re.sub(r"\s+", "_", str(label).strip().lower())


def percent(part: float, whole: float) -> float:
    """part / whole as a percentage, rounded half away from zero to one decimal"""
    ratio = Decimal(repr(part / whole * 100))
    return float(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _rename(record: Dict[str, str]) -> Dict[str, str]:
    return {RENAME_MAP.get(k, k): v for k, v in record.items()}


def _text(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip()


def _empty_frame() -> pd.DataFrame:
    return pd.DataFrame(columns=ROW_COLUMNS)


def normalize_frame(
    records: Iterable[Dict[str, str]],
    domain_category: Optional[str] = DEFAULT_DOMAIN_CATEGORY,
) -> pd.DataFrame:
    """
    Filter, clean and pivot raw records into the county irrigation table.

    Records outside county-level acreage, outside the ``domain_category``
    bucket (None keeps every bucket) or carrying a redaction code are dropped.
    County-years without both an irrigated and an all-practices figure are
    dropped too. With a ``domain_category`` set, records that carry no domain
    category at all are dropped as well. A value or year that is neither
    numeric nor a redaction code raises MalformedValue.
    """
    rows = [_rename(r) for r in records]
    if not rows:
        return _empty_frame()

    # object dtype so a record missing a field cannot turn integer years into floats
    df = pd.DataFrame(rows, dtype=object)
    for col in TEXT_FIELDS:
        if col not in df.columns:
            df[col] = None
    total_in = len(df)

    # --- Filter ---
    mask = (_text(df["aggregation_level"]) == "COUNTY") & (_text(df["unit"]) == "ACRES")
    if domain_category:
        mask &= _text(df["domain_category"]).str.upper().str.contains(
            domain_category.strip().upper(), regex=False
        )
    df = df[mask].copy()
    if df.empty:
        logger.info("No county acreage records among %d input records", total_in)
        return _empty_frame()

    # --- Clean values ---
    df["acres"] = df["value"].map(parse_value)
    redacted = int(df["acres"].isna().sum())
    df = df[df["acres"].notna()].copy()
    df["acres"] = df["acres"].astype(float)

    df["practice"] = df["production_practice_description"].map(practice_key)
    df = df[df["practice"].isin([IRRIGATED, ALL_PRACTICES])].copy()
    if df.empty:
        return _empty_frame()

    df["year"] = df["year"].map(_parse_year)
    for col in ["state_code", "county_code", "state_name", "county_name"]:
        df[col] = _text(df[col])

    # --- Pivot ---
    wide = df.pivot_table(index=GROUP_KEYS, columns="practice", values="acres", aggfunc="sum")
    wide = wide.reindex(columns=[IRRIGATED, ALL_PRACTICES])
    wide = wide.dropna(subset=[IRRIGATED, ALL_PRACTICES])
    wide = wide[wide[ALL_PRACTICES] != 0]
    if wide.empty:
        return _empty_frame()

    names = df.groupby(GROUP_KEYS)[["state_name", "county_name"]].first()
    out = wide.join(names).reset_index()
    out.columns.name = None
    out = out.rename(columns={IRRIGATED: "irrigated_acres", ALL_PRACTICES: "total_acres"})

    out["percent_irrigated"] = [
        percent(irr, tot) for irr, tot in zip(out["irrigated_acres"], out["total_acres"])
    ]
    out["region_id"] = out["state_code"] + out["county_code"]
    out["year"] = out["year"].astype(int)

    out = out.sort_values(GROUP_KEYS).reset_index(drop=True)

    logger.info(
        "Normalized %d records into %d county-years (%d redacted values dropped)",
        total_in, len(out), redacted,
    )
    return out[ROW_COLUMNS]


def normalize(
    records: Iterable[Dict[str, str]],
    domain_category: Optional[str] = DEFAULT_DOMAIN_CATEGORY,
) -> List[NormalizedRow]:
    """normalize_frame, returned as immutable rows"""
    frame = normalize_frame(records, domain_category=domain_category)
    return [
        NormalizedRow(
            region_id=rec["region_id"],
            state_code=rec["state_code"],
            state_name=rec["state_name"],
            county_code=rec["county_code"],
            county_name=rec["county_name"],
            year=int(rec["year"]),
            irrigated_acres=float(rec["irrigated_acres"]),
            total_acres=float(rec["total_acres"]),
            percent_irrigated=float(rec["percent_irrigated"]),
        )
        for rec in frame.to_dict("records")
    ]


def rows_to_frame(rows: Iterable[NormalizedRow]) -> pd.DataFrame:
    return pd.DataFrame([asdict(r) for r in rows], columns=ROW_COLUMNS)
