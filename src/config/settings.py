"""
Configuration loader for experiment observation publishing.

Reads publisher selection from environment variables or a YAML file
validated against config/scientist.schema.json, builds the publisher
chain and keeps webhook secrets out of log output.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import jsonschema
import yaml

from src.experiment.exceptions import ExperimentConfigurationError
from src.experiment.publisher import (
    InMemoryObservationPublisher,
    ObservationPublisher,
    set_publisher,
)
from src.monitoring.publishers import (
    CloudWatchObservationPublisher,
    CompositeObservationPublisher,
    LoggingObservationPublisher,
    SlackMismatchPublisher,
)

logger = logging.getLogger(__name__)


class ConfigurationError(ExperimentConfigurationError):
    """Exception raised for configuration-related errors."""

    pass


DEFAULT_REGION = "ap-northeast-2"
DEFAULT_PUBLISHERS = "logging"
DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parents[2] / "config" / "scientist.schema.json"

PUBLISHER_TYPES = ("memory", "logging", "cloudwatch", "slack")


class SecretRedactionFilter(logging.Filter):
    """
    Logging filter that redacts secret values from log records.
    Replaces secret substrings with ***REDACTED*** to prevent accidental leakage.
    """

    def __init__(self, secrets: Optional[Dict[str, Any]] = None):
        """
        Initialize filter with secrets to redact.

        Args:
            secrets: Dictionary of secrets to redact (values will be masked)
        """
        super().__init__()
        self.secrets = secrets or {}
        self.redacted_values: set[str] = set()
        if self.secrets:
            self._extract_secret_values(self.secrets)

    def _extract_secret_values(self, obj: Any, max_depth: int = 5) -> None:
        """Recursively extract all secret values from nested structures."""
        if max_depth <= 0:
            return

        if isinstance(obj, dict):
            for value in obj.values():
                self._extract_secret_values(value, max_depth - 1)
        elif isinstance(obj, (list, tuple)):
            for item in obj:
                self._extract_secret_values(item, max_depth - 1)
        elif isinstance(obj, str) and obj and len(obj) > 3:
            self.redacted_values.add(obj)

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter and redact log record."""
        record.msg = self._redact_string(str(record.msg))
        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._redact_string(str(v)) for k, v in record.args.items()}
            elif isinstance(record.args, (list, tuple)):
                record.args = tuple(self._redact_string(str(arg)) for arg in record.args)
        return True

    def _redact_string(self, text: str) -> str:
        """Redact all secret values from string."""
        for secret in self.redacted_values:
            if secret in text:
                text = text.replace(secret, "***REDACTED***")
        return text


class Settings:
    """
    Publisher configuration for experiment observations.

    Environment variables (read when the instance is created):
        SCIENTIST_PUBLISHERS: comma list of memory, logging, cloudwatch, slack
        SCIENTIST_CLOUDWATCH_NAMESPACE: CloudWatch namespace override
        AWS_REGION: region for CloudWatch
        SLACK_WEBHOOK_URL: webhook for mismatch alerts
        SCIENTIST_CONFIG_FILE: optional YAML file replacing the env selection
    """

    def __init__(self, region_name: Optional[str] = None):
        self.region_name = region_name or os.getenv("AWS_REGION", DEFAULT_REGION)
        self.cloudwatch_namespace = os.getenv("SCIENTIST_CLOUDWATCH_NAMESPACE") or None
        self.slack_webhook_url = os.getenv("SLACK_WEBHOOK_URL") or None
        self.config_file = os.getenv("SCIENTIST_CONFIG_FILE") or None
        self.publisher_specs: List[Dict[str, Any]] = [
            {"type": name} for name in self._read_publisher_names()
        ]

    @staticmethod
    def _read_publisher_names() -> List[str]:
        raw = os.getenv("SCIENTIST_PUBLISHERS", DEFAULT_PUBLISHERS)
        names = [part.strip().lower() for part in raw.split(",") if part.strip()]
        unknown = [name for name in names if name not in PUBLISHER_TYPES]
        if unknown:
            raise ConfigurationError(
                f"Unknown publisher(s) in SCIENTIST_PUBLISHERS: {unknown}. "
                f"Expected any of: {list(PUBLISHER_TYPES)}"
            )
        return names

    def load_config(
        self,
        config_path: str,
        schema_path: Optional[str] = None,
    ) -> None:
        """
        Load publisher configuration from YAML and validate it against the schema.

        Args:
            config_path: Path to the scientist YAML configuration
            schema_path: Path to the JSON schema (defaults to config/scientist.schema.json)

        Raises:
            ConfigurationError: If a file is missing, unparsable or fails validation
        """
        schema_path = schema_path or str(DEFAULT_SCHEMA_PATH)

        try:
            with open(schema_path, "r", encoding="utf-8") as f:
                schema = json.load(f)
                logger.debug(f"Loaded scientist schema from {schema_path}")
        except FileNotFoundError as e:
            raise ConfigurationError(f"Schema file not found: {schema_path}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {schema_path}: {e}") from e

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"Configuration file not found: {config_path}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

        if not config:
            logger.warning(f"Empty scientist configuration: {config_path}; keeping env selection")
            return

        try:
            jsonschema.validate(instance=config, schema=schema)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e.message}") from e
        except jsonschema.SchemaError as e:
            raise ConfigurationError(f"Scientist schema is invalid: {e.message}") from e

        self.publisher_specs = list(config.get("publishers", []))
        logger.info(
            f"Loaded {len(self.publisher_specs)} publisher(s) from {config_path}"
        )

    def build_publisher(self) -> ObservationPublisher:
        """
        Build the configured publisher chain.

        Returns:
            A single publisher, or a composite when several are configured
        """
        publishers = [self._build_one(spec) for spec in self.publisher_specs]
        if not publishers:
            return InMemoryObservationPublisher()
        if len(publishers) == 1:
            return publishers[0]
        return CompositeObservationPublisher(publishers)

    def _build_one(self, spec: Dict[str, Any]) -> ObservationPublisher:
        publisher_type = spec.get("type")

        if publisher_type == "memory":
            return InMemoryObservationPublisher()
        if publisher_type == "logging":
            return LoggingObservationPublisher()
        if publisher_type == "cloudwatch":
            return CloudWatchObservationPublisher(
                namespace=spec.get("namespace") or self.cloudwatch_namespace,
                region_name=spec.get("region") or self.region_name,
            )
        if publisher_type == "slack":
            return SlackMismatchPublisher(
                webhook_url=spec.get("webhook_url") or self.slack_webhook_url,
                max_retries=spec.get("max_retries", 3),
                retry_delay_seconds=spec.get("retry_delay_seconds", 0.5),
            )

        raise ConfigurationError(f"Unknown publisher type: {publisher_type!r}")

    def secrets(self) -> Dict[str, Any]:
        """Values that must never appear in log output."""
        found: Dict[str, Any] = {}
        if self.slack_webhook_url:
            found["slack_webhook_url"] = self.slack_webhook_url
        webhooks = [s["webhook_url"] for s in self.publisher_specs if s.get("webhook_url")]
        if webhooks:
            found["configured_webhooks"] = webhooks

        # requests error messages quote only the path of the URL
        paths = [
            urlparse(url).path
            for url in [self.slack_webhook_url, *webhooks]
            if url and urlparse(url).path.strip("/")
        ]
        if paths:
            found["webhook_paths"] = paths
        return found

    def setup_redaction_filter(
        self, logger_instance: Optional[logging.Logger] = None
    ) -> SecretRedactionFilter:
        """
        Configure logging with secret redaction filter.

        A filter on a logger only sees records created on that logger, so
        without an explicit logger the filter goes on every ``src`` logger
        and on every root handler.

        Args:
            logger_instance: Logger instance to configure (package-wide if None)

        Returns:
            The installed filter
        """
        redaction_filter = SecretRedactionFilter(self.secrets())
        if logger_instance is not None:
            logger_instance.addFilter(redaction_filter)
            return redaction_filter

        for target in redaction_targets():
            target.addFilter(redaction_filter)
        return redaction_filter


def redaction_targets() -> List[logging.Filterer]:
    """Package loggers and root handlers that carry the redaction filter."""
    targets: List[logging.Filterer] = [
        existing
        for name, existing in logging.Logger.manager.loggerDict.items()
        if (name == "src" or name.startswith("src.")) and isinstance(existing, logging.Logger)
    ]
    targets.extend(logging.getLogger().handlers)
    return targets


def configure_from_environment() -> ObservationPublisher:
    """
    Build the publisher chain from the environment and install it process-wide.

    Returns:
        The installed publisher

    Raises:
        ConfigurationError: If the environment or config file is invalid
    """
    settings = Settings()
    if settings.config_file:
        settings.load_config(settings.config_file)

    publisher = settings.build_publisher()
    settings.setup_redaction_filter()
    set_publisher(publisher)
    logger.info(f"Observation publisher configured: {type(publisher).__name__}")
    return publisher
