"""Pushes timesheet entries to Kimai one at a time."""

import logging
from typing import Callable, List, Optional

from ..api.kimai_client import KimaiClient
from ..config import KimaiConfig
from ..domain.models import SubmissionOutcome, TimeEntry
from ..errors import ConfigurationMissing, RemoteRejection

logger = logging.getLogger(__name__)

ClientFactory = Callable[[KimaiConfig], KimaiClient]


def _default_client_factory(config: KimaiConfig) -> KimaiClient:
    return KimaiClient(config.base_url or "", config.api_token or "", timeout=config.timeout)


class TimesheetPusher:
    """Submits entries independently so one failure never stops the batch."""

    def __init__(
        self, config: KimaiConfig, client_factory: Optional[ClientFactory] = None
    ) -> None:
        self.config = config
        self.client_factory = client_factory or _default_client_factory

    def push(self, entries: List[TimeEntry]) -> List[SubmissionOutcome]:
        """Submit each entry and collect one outcome per entry, in order.

        Raises:
            ConfigurationMissing: If the Kimai URL or token is not set
        """
        if not self.config.is_configured:
            raise ConfigurationMissing(
                "Kimai API URL and/or API Token are not set. Please set "
                "KIMAI_API_URL and KIMAI_API_TOKEN in your environment or .env file "
                "and restart the server."
            )

        client = self.client_factory(self.config)
        outcomes: List[SubmissionOutcome] = []

        for index, entry in enumerate(entries, start=1):
            try:
                data = client.create_timesheet(entry)
                outcomes.append(SubmissionOutcome(index, True, remote_id=data.get("id")))
            except RemoteRejection as e:
                outcomes.append(SubmissionOutcome(index, False, error=e.body))
            except Exception as e:
                logger.warning(f"Entry {index} failed: {e}")
                outcomes.append(SubmissionOutcome(index, False, error=str(e), exception=True))

        succeeded = sum(1 for outcome in outcomes if outcome.success)
        logger.info(f"Pushed {succeeded}/{len(entries)} timesheet entries to Kimai")
        return outcomes

    @staticmethod
    def render(outcomes: List[SubmissionOutcome]) -> str:
        """Join outcomes into the per-entry report."""
        return "\n".join(outcome.render() for outcome in outcomes)
