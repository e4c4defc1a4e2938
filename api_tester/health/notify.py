"""
Health notifications - Better Uptime incidents, heartbeat and stdout fallback.

This module hands the incidents of a run to Better Uptime and signals that the
run happened via a heartbeat.
"""

import logging
from typing import Any, Dict, List, Optional

import requests  # type: ignore

logger = logging.getLogger(__name__)

BETTERUPTIME_API = "https://uptime.betterstack.com/api"
INCIDENTS_URL = f"{BETTERUPTIME_API}/v3/incidents"
HEARTBEAT_URL = f"{BETTERUPTIME_API}/v1/heartbeat/"


class BetterUptime:
    """
    Client for the Better Uptime incident and heartbeat endpoints.
    """

    def __init__(self, config: Dict[str, Any], timeout: int = 10):
        """
        Initialize the client.

        Args:
            config: Validated "betteruptime" config section
            timeout: Request timeout in seconds
        """
        self.config = dict(config)
        # Keep the token off the shared config dict
        self._token: Optional[str] = self.config.pop("token", None)
        self.timeout = timeout

    def create_incident(self, incident: Dict[str, Any]) -> bool:
        """
        Create one incident.

        Args:
            incident: Dict with "summary", optional "name", "description" and
                      "options" (extra request fields)

        Returns:
            True if Better Uptime created the incident (HTTP 201)

        Raises:
            ValueError: If no token is configured or the summary is blank
        """
        if not self._token:
            raise ValueError("token is required!")

        summary = incident.get("summary")
        if not summary or not summary.strip():
            raise ValueError("summary is required!")

        body: Dict[str, Any] = {
            **self.config.get("incident_options", {}),
            "summary": summary,
            "description": incident.get("description"),
            **incident.get("options", {}),
        }
        if incident.get("name"):
            body["name"] = incident["name"]

        response = requests.post(
            INCIDENTS_URL,
            json=body,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json",
            },
            timeout=self.timeout,
        )

        if response.status_code != 201:
            logger.error(
                "Failed to create incident %s: HTTP %d",
                incident.get("name"),
                response.status_code,
            )
            return False

        logger.info("Created incident for %s", incident.get("name"))
        return True

    def create_incidents(self, incidents: List[Dict[str, Any]]) -> None:
        """
        Create one incident per entry.

        Args:
            incidents: Incident dicts
        """
        if self.config.get("create_grouped_incident"):
            logger.error(
                "Creating a grouped incident is not implemented, "
                "falling back to multiple incidents..."
            )

        for incident in incidents:
            self.create_incident(incident)

    def heartbeat(self) -> None:
        """
        Send the heartbeat, if configured. Request errors are only logged.
        """
        heartbeat_id = self.config.get("heartbeat")
        if not heartbeat_id:
            return

        try:
            requests.head(HEARTBEAT_URL + heartbeat_id, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(
                "Error while sending heartbeat request to betteruptime: %s", e
            )
            return

        logger.debug("Heartbeat request sent to betteruptime")


def print_incidents(incidents: List[Dict[str, Any]]) -> None:
    """
    Print incidents to stdout.

    Args:
        incidents: Incident dicts
    """
    if not incidents:
        print()
        print("✅ API tests passed - no incidents")
        print()
        return

    for incident in incidents:
        print()
        print("=" * 80)
        print(f"❌ {incident.get('name')} - {incident.get('summary')}")
        print("=" * 80)
        print(_format_incident(incident))
        print("=" * 80)
        print()


def _format_incident(incident: Dict[str, Any]) -> str:
    """
    Format an incident as human-readable text.

    Args:
        incident: Incident dict

    Returns:
        Formatted text string
    """
    description = incident.get("description")
    return description if description else "No details available"
