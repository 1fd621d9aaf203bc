"""Security classification enums."""

from enum import Enum


class SecurityType(str, Enum):
    """Marketable security classes in the MSPD securities table."""

    BILL = "BILL"
    NOTE = "NOTE"
    BOND = "BOND"
    TIPS = "TIPS"
    FRN = "FRN"
    OTHER = "OTHER"


class AuctionSecurityType(str, Enum):
    """Security classes reported by auction results; CMB takes the place of OTHER."""

    BILL = "BILL"
    NOTE = "NOTE"
    BOND = "BOND"
    TIPS = "TIPS"
    FRN = "FRN"
    CMB = "CMB"


class DataSource(str, Enum):
    """Where a served result came from."""

    DATABASE = "database"
    API = "api"
    DEFAULT = "default"


class JobStatus(str, Enum):
    """ETL job log row status."""

    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
