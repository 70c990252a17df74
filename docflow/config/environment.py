"""Provider credential checks surfaced to the presentation layer.

Missing credentials never block extraction; they only mean analysis and
translation run on local fallbacks.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

REQUIRED_ENV_VARS: tuple[str, ...] = ("OPENAI_API_KEY",)

OPTIONAL_ENV_VARS: tuple[str, ...] = (
    "AZURE_TEXT_ANALYTICS_KEY",
    "AZURE_TRANSLATOR_KEY",
    "GITHUB_COPILOT_API_KEY",
)


@dataclass(frozen=True)
class EnvironmentStatus:
    """Outcome of an environment check."""

    valid: bool
    missing: list[str] = field(default_factory=list)
    missing_optional: list[str] = field(default_factory=list)


def validate_environment(env: Mapping[str, str] | None = None) -> EnvironmentStatus:
    """Check required and optional provider variables.

    Args:
        env: Variables to inspect. Defaults to ``os.environ``.

    Returns:
        EnvironmentStatus where ``missing`` lists only required variables that
        are absent or empty, and ``missing_optional`` lists absent optional ones.
    """
    source = os.environ if env is None else env
    missing = [name for name in REQUIRED_ENV_VARS if not source.get(name)]
    missing_optional = [name for name in OPTIONAL_ENV_VARS if not source.get(name)]
    return EnvironmentStatus(
        valid=not missing,
        missing=missing,
        missing_optional=missing_optional,
    )
