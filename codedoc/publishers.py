"""Publish generated documents to Jira issues and Confluence pages.

Deep module: callers pass a title and the document body, and get True or
False back. Lookup of an existing record, create-vs-update and auth are
handled internally. Failures are logged, never raised, so publishing can
never interrupt a run.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

_HEADERS = {"Accept": "application/json", "Content-Type": "application/json"}


class PublisherConfigError(ValueError):
    """A publisher was enabled without the settings it needs."""


def _missing(**fields: str) -> List[str]:
    return [name for name, value in fields.items() if not value]


class JiraPublisher:
    """Create or update one Jira issue per document, matched by summary.

    Args:
        host: Jira site, e.g. ``https://acme.atlassian.net``.
        email: Account email used for basic auth.
        api_token: API token paired with ``email``.
        project_key: Project the issues live in.
        issue_type: Issue type name for new issues.
    """

    name = "Jira"

    def __init__(
        self,
        host: str,
        email: str,
        api_token: str,
        project_key: str,
        issue_type: str = "Task",
        timeout: int = 30,
    ):
        missing = _missing(host=host, email=email, api_token=api_token, project_key=project_key)
        if missing:
            raise PublisherConfigError(
                "Jira integration is enabled but configuration is incomplete "
                f"(missing: {', '.join(missing)})"
            )
        self.base_url = f"{host.rstrip('/')}/rest/api/3"
        self.auth = (email, api_token)
        self.project_key = project_key
        self.issue_type = issue_type or "Task"
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "JiraPublisher":
        return cls(
            host=settings.jira_host,
            email=settings.jira_email,
            api_token=settings.jira_api_token,
            project_key=settings.jira_project_key,
            issue_type=settings.jira_issue_type,
        )

    def _find_issue(self, title: str) -> Optional[str]:
        jql = (
            f'project = "{self.project_key}" AND issuetype = "{self.issue_type}" '
            f'AND summary ~ "{title}"'
        )
        response = requests.get(
            f"{self.base_url}/search",
            params={"jql": jql},
            auth=self.auth,
            headers=_HEADERS,
            timeout=self.timeout,
        )
        response.raise_for_status()
        issues = response.json().get("issues") or []
        return issues[0]["id"] if issues else None

    def _payload(self, title: str, content: str) -> Dict[str, Any]:
        return {
            "fields": {
                "project": {"key": self.project_key},
                "summary": title,
                "description": {
                    "version": 1,
                    "type": "doc",
                    "content": [
                        {"type": "paragraph", "content": [{"type": "text", "text": content}]}
                    ],
                },
                "issuetype": {"name": self.issue_type},
            }
        }

    def publish(self, title: str, content: str) -> bool:
        try:
            issue_id = self._find_issue(title)
            payload = self._payload(title, content)
            if issue_id:
                response = requests.put(
                    f"{self.base_url}/issue/{issue_id}",
                    json=payload, auth=self.auth, headers=_HEADERS, timeout=self.timeout,
                )
            else:
                response = requests.post(
                    f"{self.base_url}/issue",
                    json=payload, auth=self.auth, headers=_HEADERS, timeout=self.timeout,
                )
            response.raise_for_status()
            logger.info("Jira issue %s for %s", "updated" if issue_id else "created", title)
            return True
        except (requests.exceptions.RequestException, ValueError, KeyError) as exc:
            logger.warning("Jira publish failed for %s: %s", title, exc)
            return False


class ConfluencePublisher:
    """Create or update one Confluence page per document, matched by title.

    Updates bump the page version; new pages go under ``parent_page_id``
    when one is configured.
    """

    name = "Confluence"

    def __init__(
        self,
        host: str,
        email: str,
        api_token: str,
        space_key: str,
        parent_page_id: str = "",
        timeout: int = 30,
    ):
        missing = _missing(host=host, email=email, api_token=api_token, space_key=space_key)
        if missing:
            raise PublisherConfigError(
                "Confluence integration is enabled but configuration is incomplete "
                f"(missing: {', '.join(missing)})"
            )
        self.base_url = f"{host.rstrip('/')}/wiki/rest/api"
        self.auth = (email, api_token)
        self.space_key = space_key
        self.parent_page_id = parent_page_id
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "ConfluencePublisher":
        return cls(
            host=settings.confluence_host,
            email=settings.confluence_email,
            api_token=settings.confluence_api_token,
            space_key=settings.confluence_space_key,
            parent_page_id=settings.confluence_parent_page_id,
        )

    def _find_page(self, title: str) -> tuple[Optional[str], int]:
        response = requests.get(
            f"{self.base_url}/content",
            params={"spaceKey": self.space_key, "title": title, "expand": "version"},
            auth=self.auth,
            headers=_HEADERS,
            timeout=self.timeout,
        )
        response.raise_for_status()
        results = response.json().get("results") or []
        if not results:
            return None, 0
        return results[0]["id"], results[0]["version"]["number"]

    def publish(self, title: str, content: str) -> bool:
        try:
            page_id, version = self._find_page(title)
            page: Dict[str, Any] = {
                "type": "page",
                "title": title,
                "space": {"key": self.space_key},
                "body": {"storage": {"value": content, "representation": "storage"}},
            }
            if self.parent_page_id:
                page["ancestors"] = [{"id": self.parent_page_id}]

            if page_id:
                page["version"] = {"number": version + 1}
                response = requests.put(
                    f"{self.base_url}/content/{page_id}",
                    json=page, auth=self.auth, headers=_HEADERS, timeout=self.timeout,
                )
            else:
                response = requests.post(
                    f"{self.base_url}/content",
                    json=page, auth=self.auth, headers=_HEADERS, timeout=self.timeout,
                )
            response.raise_for_status()
            logger.info("Confluence page %s for %s", "updated" if page_id else "created", title)
            return True
        except (requests.exceptions.RequestException, ValueError, KeyError, TypeError) as exc:
            logger.warning("Confluence publish failed for %s: %s", title, exc)
            return False


def build_publishers(settings, jira: bool = False, confluence: bool = False) -> list:
    """Instantiate the enabled publishers.

    Raises:
        PublisherConfigError: an enabled publisher is missing settings.
    """
    publishers = []
    if jira:
        publishers.append(JiraPublisher.from_settings(settings))
    if confluence:
        publishers.append(ConfluencePublisher.from_settings(settings))
    return publishers
