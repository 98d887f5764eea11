# tests/conftest.py
import pytest


@pytest.fixture
def make_record():
    """Factory for county acreage records that pass every filter by default."""

    def _make(
        county_code="001",
        year="2007",
        practice="Irrigated",
        value="1,000",
        state_code="19",
        **overrides,
    ):
        record = {
            "aggregation_level": "COUNTY",
            "unit": "ACRES",
            "domain_category": "AREA OPERATED: (2,000 OR MORE ACRES)",
            "value": value,
            "state_name": "IOWA",
            "state_code": state_code,
            "county_code": county_code,
            "county_name": "ADAIR",
            "subregion_description": "SOUTHWEST",
            "year": year,
            "production_practice_description": practice,
        }
        record.update(overrides)
        return record

    return _make


@pytest.fixture
def county_pair(make_record):
    """Irrigated + all-practices records for county 001 in 2007."""
    return [
        make_record(practice="Irrigated", value="1,000"),
        make_record(practice="All Production Practices", value="4,000"),
    ]
