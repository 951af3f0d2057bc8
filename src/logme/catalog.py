"""Catalog of log code segments.

Each of the six segment domains is a closed ``str`` enum whose member name is the
segment key and whose value is the fixed-width code written into a log code.
"""

from enum import Enum
from types import MappingProxyType
from typing import NamedTuple


class Environment(str, Enum):
    """Runtime environment that produced the event."""

    FE = "FE"
    BE = "BE"


class Service(str, Enum):
    """Service code (4 digits)."""

    FETCH = "1001"
    API = "1002"
    AUTH = "1003"
    USER = "1004"
    PRODUCT = "1005"
    ORDER = "1006"
    PAYMENT = "1007"
    NOTIFICATION = "1008"
    CART = "1009"
    SHIPPING = "1010"
    INVENTORY = "1011"


class Category(str, Enum):
    """Event category (2 digits)."""

    REQUEST = "01"
    RESPONSE = "02"


class Action(str, Enum):
    """Action performed (2 digits)."""

    SEND = "01"
    RECEIVE = "02"
    ERROR = "03"


class Outcome(str, Enum):
    """Result of the action (2 digits)."""

    SUCCESS = "01"
    FAILURE = "02"
    INVALID = "03"
    TIMEOUT = "04"


class Severity(str, Enum):
    """Event severity (one letter)."""

    INFO = "I"
    WARN = "W"
    ERROR = "E"
    DEBUG = "D"


class CatalogEntry(NamedTuple):
    """A single code/key/description triple."""

    code: str
    key: str
    description: str


# Segment name -> (enum, human label used in fallbacks)
SEGMENTS: dict[str, tuple[type[Enum], str]] = {
    "env": (Environment, "Environment"),
    "service": (Service, "Service"),
    "category": (Category, "Category"),
    "action": (Action, "Action"),
    "outcome": (Outcome, "Outcome"),
    "severity": (Severity, "Severity"),
}

_ENV_DESCRIPTIONS = {"FE": "Frontend", "BE": "Backend"}

_CATEGORY_DESCRIPTIONS = {
    "REQUEST": "HTTP Request",
    "RESPONSE": "HTTP Response",
}

_ACTION_DESCRIPTIONS = {
    "SEND": "Send HTTP request",
    "RECEIVE": "Receive HTTP response",
    "ERROR": "Error in HTTP communication",
}

_OUTCOME_DESCRIPTIONS = {
    "SUCCESS": "Successful operation",
    "FAILURE": "Failed operation",
    "INVALID": "Invalid operation",
    "TIMEOUT": "Operation timed out",
}

_SEVERITY_DESCRIPTIONS = {
    "INFO": "Informational",
    "WARN": "Warning",
    "ERROR": "Error",
    "DEBUG": "Debug",
}


def _service_description(key: str) -> str:
    return f"{key.capitalize()} Service"


def _build_domain(enum: type[Enum], describe) -> MappingProxyType:
    return MappingProxyType(
        {member.value: CatalogEntry(member.value, member.name, describe(member.name)) for member in enum}
    )


# Segment name -> {code: CatalogEntry}
CATALOG: MappingProxyType = MappingProxyType(
    {
        "env": _build_domain(Environment, _ENV_DESCRIPTIONS.__getitem__),
        "service": _build_domain(Service, _service_description),
        "category": _build_domain(Category, _CATEGORY_DESCRIPTIONS.__getitem__),
        "action": _build_domain(Action, _ACTION_DESCRIPTIONS.__getitem__),
        "outcome": _build_domain(Outcome, _OUTCOME_DESCRIPTIONS.__getitem__),
        "severity": _build_domain(Severity, _SEVERITY_DESCRIPTIONS.__getitem__),
    }
)


def lookup(segment: str, code: str) -> CatalogEntry | None:
    """Look up a code within one segment domain.

    Args:
        segment: Segment name (``env``, ``service``, ``category``, ``action``,
            ``outcome`` or ``severity``).
        code: The segment code, e.g. ``"1003"``.

    Returns:
        The catalog entry, or None if the code is not part of the domain.

    Raises:
        KeyError: If ``segment`` is not a known segment name.
    """
    return CATALOG[segment].get(code)


def entries(segment: str) -> list[CatalogEntry]:
    """Return all catalog entries for a segment, in declaration order."""
    return list(CATALOG[segment].values())


# Segment name -> plural key used in catalog dumps
_DUMP_KEYS = {
    "env": "envs",
    "service": "services",
    "category": "categories",
    "action": "actions",
    "outcome": "outcomes",
    "severity": "severities",
}


def catalog_dump() -> dict[str, dict[str, dict[str, str]]]:
    """Return the whole catalog as plain data, keyed by segment then by key.

    Example:
        >>> catalog_dump()["services"]["AUTH"]
        {'code': '1003', 'description': 'Auth Service'}
    """
    return {
        _DUMP_KEYS[segment]: {
            entry.key: {"code": entry.code, "description": entry.description}
            for entry in domain.values()
        }
        for segment, domain in CATALOG.items()
    }
