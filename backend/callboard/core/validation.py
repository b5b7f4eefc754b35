"""
Configuration Validation Module
Checks required environment configuration on startup
"""
import os
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of a configuration validation check."""
    component: str
    setting: str
    is_valid: bool
    message: str


class ConfigValidator:
    """
    Validates environment configuration at startup.

    Missing required settings are errors in production and warnings
    elsewhere, so local development runs without a Supabase project.
    """

    REQUIRED_ENV_VARS = {
        "database": [
            ("SUPABASE_URL", "Supabase database"),
            ("SUPABASE_SERVICE_KEY", "Supabase database"),
        ],
        "voice": [("VOICE_API_BASE_URL", "Voice provider API")],
    }

    OPTIONAL_ENV_VARS = {
        "webhooks": [("WEBHOOK_SECRET", "Voice webhook signing secret")],
    }

    def __init__(self, production: bool = False, strict: bool = False):
        """
        Args:
            production: Missing required settings are errors
            strict: Treat warnings as errors
        """
        self.production = production
        self.strict = strict
        self.results: List[ValidationResult] = []

    def validate_all(self) -> Tuple[bool, List[ValidationResult]]:
        self.results = []

        for component, vars_list in self.REQUIRED_ENV_VARS.items():
            for env_var, description in vars_list:
                if os.getenv(env_var):
                    self._add(component, env_var, True, f"{description} configured")
                elif self.production:
                    self._add(component, env_var, False, f"{description} requires {env_var} to be set")
                else:
                    self._add_warning(component, env_var, f"{description} not configured ({env_var})")

        for component, vars_list in self.OPTIONAL_ENV_VARS.items():
            for env_var, description in vars_list:
                if os.getenv(env_var):
                    self._add(component, env_var, True, f"{description} configured")
                else:
                    # Never fatal, even in strict mode
                    self._add(component, env_var, True, f"WARNING: {description} not configured (optional)")

        all_valid = all(r.is_valid for r in self.results)
        return all_valid, self.results

    def _add(self, component: str, setting: str, is_valid: bool, message: str) -> None:
        self.results.append(ValidationResult(component, setting, is_valid, message))

    def _add_warning(self, component: str, setting: str, message: str) -> None:
        self._add(component, setting, not self.strict, f"WARNING: {message}")

    def log_results(self) -> None:
        for r in self.results:
            if not r.is_valid:
                logger.error(f"  ✗ [{r.component}] {r.message}")
            elif r.message.startswith("WARNING"):
                logger.warning(f"  ⚠ [{r.component}] {r.message}")
            else:
                logger.info(f"  ✓ [{r.component}] {r.message}")

    def get_error_summary(self) -> Optional[str]:
        errors = [r for r in self.results if not r.is_valid]
        if not errors:
            return None
        lines = ["Configuration errors:"]
        lines.extend(f"  - {r.setting}: {r.message}" for r in errors)
        return "\n".join(lines)


def validate_config_on_startup(strict: bool = False, production: Optional[bool] = None) -> None:
    """
    Validate configuration at startup.

    Args:
        strict: If True, fail on warnings too
        production: Defaults to settings.environment == "production"

    Raises:
        RuntimeError: If required configuration is missing
    """
    if production is None:
        from callboard.core.config import get_settings
        production = get_settings().environment == "production"

    validator = ConfigValidator(production=production, strict=strict)
    all_valid, _ = validator.validate_all()
    validator.log_results()

    if not all_valid:
        raise RuntimeError(validator.get_error_summary())

    logger.info("Configuration validated")
