"""Environment-driven settings for the Student Risk Dashboard service."""

import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Service settings resolved from the environment."""
    gpa_scale: float
    allow_origins: List[str]
    max_records: int
    use_sample_data: bool
    debug: bool
    log_level: str
    advisor_name: str
    advisor_email: str


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


def load_settings() -> Settings:
    """
    Build Settings from environment variables.

    RISK_GPA_SCALE is the ceiling of the GPA values stored in the record
    source (10.0 for the dashboard's 0-10 records, 4.0 for 0-4 records).
    The engine itself has no default; this is the one place it is chosen.

    Raises:
        ValueError: if a numeric variable cannot be parsed
    """
    gpa_scale = float(os.getenv('RISK_GPA_SCALE', '10.0'))
    if gpa_scale <= 0:
        raise ValueError(f"RISK_GPA_SCALE must be positive, got {gpa_scale}")

    origins = [o.strip() for o in os.getenv('ALLOW_ORIGINS', '*').split(',') if o.strip()]

    return Settings(
        gpa_scale=gpa_scale,
        allow_origins=origins or ['*'],
        max_records=int(os.getenv('MAX_RECORDS', '10000')),
        use_sample_data=_env_flag('USE_SAMPLE_DATA', 'true'),
        debug=_env_flag('DEBUG', 'false'),
        log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        advisor_name=os.getenv('ADVISOR_NAME', 'Academic Advisor'),
        advisor_email=os.getenv('ADVISOR_EMAIL', 'advisor@example.com'),
    )
