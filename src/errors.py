"""
Exceptions raised by the QuickStats client and the table normalizer
"""


class QuickStatsError(Exception):
    """Base class for everything this project raises on purpose"""


class TransportError(QuickStatsError):
    """The request never produced an HTTP response (DNS, refused, timeout...)"""


class RequestFailed(QuickStatsError):
    """The API answered with a status other than 200"""

    def __init__(self, status_code: int, detail: str = None):
        self.status_code = status_code
        self.detail = detail
        message = f"QuickStats request failed with status {status_code}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class DecodeError(QuickStatsError):
    """The response body was not the JSON structure we expect"""


class MalformedValue(QuickStatsError):
    """A value field is neither a number nor a known redaction code"""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__(f"Unparseable value field: {raw!r}")
