"""OpenRosa protocol constants, header checks and the XML response envelope."""

import re
from datetime import datetime, timezone
from email.utils import format_datetime
from xml.sax.saxutils import escape

from pydantic import BaseModel, ConfigDict

OPENROSA_VERSION = "1.0"
OPENROSA_ACCEPT_CONTENT_LENGTH = "20000000"
OPENROSA_XMLNS = "http://openrosa.org/http/response"
CONTENT_LANGUAGE = "en"
XML_CONTENT_TYPE = "text/xml"

# ODK Collect sends dates like "... GMT+00:00"; everything after GMT is dropped.
_GMT_SUFFIX = re.compile(r"GMT.*$", re.IGNORECASE)
_LEADING_WEEKDAY = re.compile(r"^\s*([A-Za-z]+),?\s")

# RFC 1123, RFC 850 and asctime, the only forms HTTP allows
_HTTP_DATE_FORMATS = (
    "%a, %d %b %Y %H:%M:%S GMT",
    "%A, %d-%b-%y %H:%M:%S GMT",
    "%a %b %d %H:%M:%S %Y",
)

_WEEKDAYS = (
    ("mon", "monday"),
    ("tue", "tuesday"),
    ("wed", "wednesday"),
    ("thu", "thursday"),
    ("fri", "friday"),
    ("sat", "saturday"),
    ("sun", "sunday"),
)


class OpenRosaMessage(BaseModel):
    """A rendered OpenRosa response: HTTP status plus XML body."""

    model_config = ConfigDict(frozen=True)

    code: int
    body: str


def openrosa_message(code: int, *, nature: str, message: str) -> OpenRosaMessage:
    """Render an OpenRosaResponse envelope around a single message."""
    nature_attr = escape(nature, {'"': "&quot;"})
    body = (
        f'<OpenRosaResponse xmlns="{OPENROSA_XMLNS}" items="0">\n'
        f'  <message nature="{nature_attr}">{escape(message)}</message>\n'
        "</OpenRosaResponse>"
    )
    return OpenRosaMessage(code=code, body=body)


def http_date(moment: datetime | None = None) -> str:
    """Format a moment (default: now) as an RFC 1123 HTTP-date."""
    moment = moment or datetime.now(timezone.utc)
    return format_datetime(moment.astimezone(timezone.utc), usegmt=True)


def openrosa_headers() -> dict[str, str]:
    """Response headers every OpenRosa reply must carry, rejections included."""
    return {
        "Content-Language": CONTENT_LANGUAGE,
        "X-OpenRosa-Version": OPENROSA_VERSION,
        "X-OpenRosa-Accept-Content-Length": OPENROSA_ACCEPT_CONTENT_LENGTH,
        "Date": http_date(),
    }


def normalize_date_header(value: str | None) -> str | None:
    if value is None:
        return None
    return _GMT_SUFFIX.sub("GMT", value)


def parse_http_date(value: str | None) -> datetime | None:
    """Parse an HTTP-date, returning None when it is missing or invalid.

    Only the three HTTP-date forms are accepted, all read as GMT. The
    leading weekday name must agree with the calendar date.
    """
    if not value:
        return None
    for fmt in _HTTP_DATE_FORMATS:
        try:
            parsed = datetime.strptime(value.strip(), fmt).replace(tzinfo=timezone.utc)
            break
        except ValueError:
            continue
    else:
        return None

    weekday = _LEADING_WEEKDAY.match(value)
    if weekday is not None and weekday.group(1).lower() not in _WEEKDAYS[parsed.weekday()]:
        return None
    return parsed
