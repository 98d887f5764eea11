import importlib

import pytest


@pytest.mark.parametrize(
    "name", ["config", "errors", "fetch_data", "table_normalizer", "data_analyzer"]
)
def test_import_module(name):
    assert importlib.import_module(name) is not None


def test_error_hierarchy():
    errors = importlib.import_module("errors")
    for cls in (errors.TransportError, errors.RequestFailed, errors.DecodeError, errors.MalformedValue):
        assert issubclass(cls, errors.QuickStatsError)
