"""
Client for the prioritize endpoint.

Sends the in-progress tasks and returns the ranked-priority narrative.
Called only on explicit user action; never retried.
"""
from dataclasses import dataclass
from typing import List, Optional

import requests

from .errors import SummarizationError
from .schema import Task

NETWORK_ERROR = "Network error: Unable to reach the AI service. Check your connection."


@dataclass
class Summary:
    text: str
    task_count: int


class SummarizationClient:
    """POSTs {"tasks": [...]} and expects {"summary": ..., "taskCount": ...}."""

    def __init__(self, url: str, api_key: str = "", timeout: float = 60.0,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def prioritize(self, tasks: List[Task]) -> Summary:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["X-API-Key"] = self.api_key
        try:
            r = self.session.post(
                self.url,
                json={"tasks": [t.to_dict() for t in tasks]},
                headers=headers,
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise SummarizationError(NETWORK_ERROR) from e
        except requests.RequestException as e:
            raise SummarizationError(str(e)) from e

        if not r.ok:
            message = f"HTTP {r.status_code}: {r.reason}"
            try:
                message = r.json().get("error") or message
            except (ValueError, AttributeError):
                if r.text:
                    message = r.text
            raise SummarizationError(message)

        try:
            data = r.json()
            return Summary(text=data["summary"], task_count=int(data.get("taskCount", 0)))
        except (ValueError, KeyError, TypeError) as e:
            raise SummarizationError("Malformed response from the AI service") from e
