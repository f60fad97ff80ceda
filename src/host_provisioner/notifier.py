"""Report a provisioned host to the orchestration server."""

from typing import Optional

import requests
import structlog

from host_provisioner.exceptions import NotificationError
from host_provisioner.types import HostIdentity

logger = structlog.get_logger(__name__)


class OrchestratorNotifier:
    """POST ``hostname:ip`` to the collector that registers new hosts."""

    def __init__(
        self, url: str, timeout: Optional[float] = None, dry_run: bool = False
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.dry_run = dry_run

    def notify(self, identity: HostIdentity) -> None:
        """Send the host identity.

        Raises:
            NotificationError: On transport errors or a non-2xx response
        """
        payload = identity.payload()

        if self.dry_run:
            logger.info("dry_run_notify", url=self.url, payload=payload)
            return

        try:
            response = requests.post(
                self.url,
                data=payload,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NotificationError(f"Failed to notify {self.url}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise NotificationError(
                f"Failed to notify {self.url}: HTTP {response.status_code}"
            )

        logger.info("orchestrator_notified", url=self.url, status=response.status_code)
