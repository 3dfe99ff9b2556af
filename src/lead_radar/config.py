# config.py
import logging
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class ConfigurationError(ValueError):
    """Raised when required credentials or settings are missing."""

    pass


class LeadRadarConfig:
    """Lead Radar configuration class that loads settings from environment variables."""

    def __init__(self):
        """Initialize the Lead Radar configuration with environment variables."""
        self.logger = logging.getLogger(__name__)

        # Application environment
        self.APP_ENV = self._get_optional("APP_ENV", "dev")
        self.LOG_LEVEL = self._get_optional("LOG_LEVEL", "INFO")

        # Google Custom Search settings
        self.GOOGLE_API_KEY = self._get_optional("GOOGLE_API_KEY")
        self.GOOGLE_CX = self._get_optional("GOOGLE_CX")
        self.GOOGLE_SEARCH_ENDPOINT = self._get_optional(
            "GOOGLE_SEARCH_ENDPOINT", "https://www.googleapis.com/customsearch/v1"
        )

        # Gemini text-completion settings
        self.GEMINI_API_KEY = self._get_optional("GEMINI_API_KEY")
        self.GEMINI_MODEL = self._get_optional("GEMINI_MODEL", "gemini-pro")
        self.GEMINI_ENDPOINT = self._get_optional(
            "GEMINI_ENDPOINT", "https://generativelanguage.googleapis.com"
        )

        # Lead pipeline tuning
        self.LEAD_SCORE_THRESHOLD = int(
            self._get_optional("LEAD_SCORE_THRESHOLD", "60")
        )
        self.LEAD_MAX_QUERIES_PER_PLATFORM = int(
            self._get_optional("LEAD_MAX_QUERIES_PER_PLATFORM", "2")
        )
        self.LEAD_PAGE_DELAY_SECONDS = float(
            self._get_optional("LEAD_PAGE_DELAY_SECONDS", "1.5")
        )
        self.LEAD_PLATFORM_DELAY_SECONDS = float(
            self._get_optional("LEAD_PLATFORM_DELAY_SECONDS", "2.0")
        )
        self.LEAD_AI_ENHANCE_LIMIT = int(
            self._get_optional("LEAD_AI_ENHANCE_LIMIT", "1")
        )
        self.LEAD_PLACEHOLDER_POLICY = self._get_optional(
            "LEAD_PLACEHOLDER_POLICY", "drop"
        ).lower()

        self.HTTP_TIMEOUT_SECONDS = int(self._get_optional("HTTP_TIMEOUT_SECONDS", "30"))

    @property
    def has_completion_credentials(self) -> bool:
        """Whether the optional text-completion service is configured."""
        return bool(self.GEMINI_API_KEY)

    def _get_optional(self, name: str, default: str = "") -> str:
        """Get an optional configuration value from environment variables.

        Args:
            name: The name of the environment variable
            default: Default value if not found (default: "")

        Returns:
            The value of the environment variable or the default value
        """
        if name in os.environ:
            return os.environ[name]
        return default


# Default settings instance; components accept explicit overrides
config = LeadRadarConfig()
