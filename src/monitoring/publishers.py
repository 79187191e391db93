"""
Observation publishers.

External sinks an experiment run can hand its Observation to:
- structured JSON log lines
- CloudWatch custom metrics under the scientist/experiments namespace
- Slack webhook alerts for mismatches
"""

from __future__ import annotations

import asyncio
import json
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

import boto3
import requests
from botocore.exceptions import BotoCoreError, ClientError

from src.experiment.exceptions import PublishError
from src.experiment.observation import Observation
from src.experiment.publisher import ObservationPublisher
from src.utils.logger import StructuredLogger, get_logger


class LoggingObservationPublisher(ObservationPublisher):
    """
    Writes one structured log line per observation.

    Mismatches are logged at WARNING so they stand out in log queries.
    """

    def __init__(self, logger: Optional[StructuredLogger] = None) -> None:
        self.logger = logger or get_logger(__name__)

    async def publish(self, observation: Observation) -> None:
        context = {"event_type": "experiment_observation", **observation.to_dict()}
        if observation.matched:
            self.logger.info("Experiment matched", operation="publish_observation", context=context)
        else:
            self.logger.warning(
                "Experiment mismatched", operation="publish_observation", context=context
            )


class CloudWatchObservationPublisher(ObservationPublisher):
    """
    Publishes observations as CloudWatch custom metrics.

    Metrics (dimension Experiment=<name>):
    - matched / mismatched: 1 or 0
    - control_duration_ms / candidate_duration_ms
    """

    NAMESPACE = "scientist/experiments"

    def __init__(
        self,
        namespace: Optional[str] = None,
        region_name: str = "ap-northeast-2",
        cloudwatch_client: Any = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Initialize metrics publisher.

        Args:
            namespace: CloudWatch namespace (defaults to NAMESPACE)
            region_name: AWS region for CloudWatch
            cloudwatch_client: Optional pre-built boto3 client (useful for testing)
            logger: Optional structured logger instance
        """
        self.namespace = namespace or self.NAMESPACE
        self.region_name = region_name
        self.cloudwatch_client = cloudwatch_client or boto3.client(
            "cloudwatch", region_name=region_name
        )
        self.logger = logger or get_logger(__name__)

    def build_metric_data(self, observation: Observation) -> List[Dict[str, Any]]:
        timestamp = datetime.now(timezone.utc)
        dimensions = [{"Name": "Experiment", "Value": observation.name}]

        return [
            {
                "MetricName": "matched",
                "Value": 1 if observation.matched else 0,
                "Unit": "Count",
                "Timestamp": timestamp,
                "Dimensions": dimensions,
            },
            {
                "MetricName": "mismatched",
                "Value": 0 if observation.matched else 1,
                "Unit": "Count",
                "Timestamp": timestamp,
                "Dimensions": dimensions,
            },
            {
                "MetricName": "control_duration_ms",
                "Value": observation.control_duration_ms,
                "Unit": "Milliseconds",
                "Timestamp": timestamp,
                "Dimensions": dimensions,
            },
            {
                "MetricName": "candidate_duration_ms",
                "Value": observation.candidate_duration_ms,
                "Unit": "Milliseconds",
                "Timestamp": timestamp,
                "Dimensions": dimensions,
            },
        ]

    def _put_metrics(self, observation: Observation) -> None:
        metric_data = self.build_metric_data(observation)
        try:
            self.cloudwatch_client.put_metric_data(
                Namespace=self.namespace, MetricData=metric_data
            )
        except (ClientError, BotoCoreError) as e:
            raise PublishError(f"CloudWatch put_metric_data failed: {e}") from e

        self.logger.debug(
            f"Published {len(metric_data)} metrics to CloudWatch",
            operation="publish_observation",
            context={"experiment": observation.name, "namespace": self.namespace},
        )

    async def publish(self, observation: Observation) -> None:
        try:
            await asyncio.to_thread(self._put_metrics, observation)
        except PublishError as e:
            # Metrics publishing must not fail the experiment
            self.logger.error(
                "Failed to publish experiment metrics",
                operation="publish_observation",
                context={"experiment": observation.name},
                error=str(e),
            )


class SlackMismatchPublisher(ObservationPublisher):
    """
    Sends a Slack webhook alert for every mismatched observation.

    Matches are ignored. Delivery failures are logged, never raised.
    """

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        http_client: Optional[requests.Session] = None,
        logger: Optional[StructuredLogger] = None,
        max_retries: int = 3,
        retry_delay_seconds: float = 0.5,
    ) -> None:
        """
        Initialize the Slack publisher.

        Args:
            webhook_url: Slack incoming webhook URL (from environment if None)
            http_client: Optional requests-like session (useful for testing)
            logger: Optional structured logger instance
            max_retries: Number of attempts when sending messages
            retry_delay_seconds: Base delay between retries (linear backoff)
        """
        self.logger = logger or get_logger(__name__)
        self.http_client = http_client or requests.Session()
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds

        self.webhook_url = webhook_url or os.getenv("SLACK_WEBHOOK_URL")
        if not self.webhook_url:
            self.logger.warning("Slack webhook URL not configured; mismatch alerts disabled")
            self.webhook_url = None

    @staticmethod
    def build_payload(observation: Observation) -> Dict[str, Any]:
        return {
            "blocks": [
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": f"⚠️ *Experiment Mismatch*\n"
                        f"Experiment: `{observation.name}`\n"
                        f"Control: `{observation.control_duration_ms:.2f}ms`\n"
                        f"Candidate: `{observation.candidate_duration_ms:.2f}ms`",
                    },
                }
            ]
        }

    async def publish(self, observation: Observation) -> None:
        if observation.matched or not self.webhook_url:
            return
        await asyncio.to_thread(self._dispatch, self.build_payload(observation))

    def _dispatch(self, payload: Dict[str, Any]) -> None:
        """Send payload to Slack webhook with retry handling."""
        body = json.dumps(payload)
        target = self._mask_url(self.webhook_url)

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.http_client.post(
                    self.webhook_url,
                    headers={"Content-Type": "application/json"},
                    data=body,
                    timeout=10,
                )

                if response.status_code == 429:
                    retry_after = self._retry_after(response)
                    self.logger.warning(
                        "Slack rate limited",
                        operation="send_mismatch_alert",
                        context={"attempt": attempt, "retry_after": retry_after},
                    )
                    if attempt < self.max_retries:
                        time.sleep(min(retry_after, self.retry_delay_seconds * attempt))
                        continue
                    raise PublishError(f"Rate limited; retry after {retry_after}s")

                if response.status_code >= 400:
                    raise PublishError(f"Slack responded with {response.status_code}")

                self.logger.debug(
                    "Slack mismatch alert delivered",
                    operation="send_mismatch_alert",
                    context={"attempt": attempt},
                )
                return

            except (requests.RequestException, PublishError) as exc:
                # requests errors carry the webhook path; only the type is logged
                reason = str(exc) if isinstance(exc, PublishError) else type(exc).__name__
                if attempt >= self.max_retries:
                    self.logger.error(
                        "Slack delivery failed",
                        operation="send_mismatch_alert",
                        context={"attempt": attempt, "webhook": target},
                        error=reason,
                    )
                    return

                self.logger.warning(
                    "Retrying Slack delivery",
                    operation="send_mismatch_alert",
                    context={"attempt": attempt, "webhook": target},
                    error=reason,
                )
                time.sleep(self.retry_delay_seconds * attempt)

    def _retry_after(self, response: Any) -> float:
        """Seconds to wait from a Retry-After header; HTTP-dates fall back to the base delay."""
        try:
            return float(int(response.headers.get("Retry-After", 60)))
        except (TypeError, ValueError):
            return self.retry_delay_seconds

    @staticmethod
    def _mask_url(url: Optional[str]) -> Optional[str]:
        """Mask webhook URL for logging, keeping only scheme and host."""
        if not url:
            return url
        parsed = urlparse(url)
        if not parsed.netloc:
            return "***"
        return f"{parsed.scheme}://{parsed.netloc}/***"


class CompositeObservationPublisher(ObservationPublisher):
    """Fans one observation out to several publishers, in order."""

    def __init__(
        self,
        publishers: Iterable[ObservationPublisher],
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.publishers = list(publishers)
        self.logger = logger or get_logger(__name__)

    async def publish(self, observation: Observation) -> None:
        for publisher in self.publishers:
            try:
                await publisher.publish(observation)
            except Exception as e:  # noqa: BLE001
                self.logger.error(
                    "Observation publisher failed",
                    operation="publish_observation",
                    context={
                        "experiment": observation.name,
                        "publisher": type(publisher).__name__,
                    },
                    error=str(e),
                )

