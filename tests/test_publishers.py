"""Tests for the Jira and Confluence publishers (mocked HTTP)."""

import json
from urllib.parse import parse_qs, urlparse

import pytest
import responses

from codedoc.config import Settings
from codedoc.publishers import (
    ConfluencePublisher,
    JiraPublisher,
    PublisherConfigError,
    build_publishers,
)

JIRA = "https://acme.atlassian.net/rest/api/3"
WIKI = "https://acme.atlassian.net/wiki/rest/api"


@pytest.fixture
def jira():
    return JiraPublisher(
        host="https://acme.atlassian.net/", email="dev@acme.test", api_token="tok", project_key="DOC",
    )


@pytest.fixture
def confluence():
    return ConfluencePublisher(
        host="https://acme.atlassian.net", email="dev@acme.test", api_token="tok",
        space_key="ENG", parent_page_id="42",
    )


class TestJiraPublisher:

    @responses.activate
    def test_creates_issue_when_none_found(self, jira):
        responses.add(responses.GET, f"{JIRA}/search", json={"issues": []})
        responses.add(responses.POST, f"{JIRA}/issue", json={"id": "10001"}, status=201)

        assert jira.publish("Documentation: User.php", "# Body") is True

        jql = parse_qs(urlparse(responses.calls[0].request.url).query)["jql"][0]
        assert jql == 'project = "DOC" AND issuetype = "Task" AND summary ~ "Documentation: User.php"'
        fields = json.loads(responses.calls[1].request.body)["fields"]
        assert fields["project"] == {"key": "DOC"}
        assert fields["issuetype"] == {"name": "Task"}
        assert fields["description"]["content"][0]["content"][0]["text"] == "# Body"
        assert responses.calls[1].request.headers["Authorization"].startswith("Basic ")

    @responses.activate
    def test_updates_existing_issue(self, jira):
        responses.add(responses.GET, f"{JIRA}/search", json={"issues": [{"id": "777"}]})
        responses.add(responses.PUT, f"{JIRA}/issue/777", status=204)

        assert jira.publish("Documentation: User.php", "# Body") is True
        assert responses.calls[1].request.method == "PUT"

    @responses.activate
    def test_failure_returns_false(self, jira):
        responses.add(responses.GET, f"{JIRA}/search", status=401, json={"errorMessages": ["no"]})

        assert jira.publish("Documentation: User.php", "# Body") is False

    def test_incomplete_config(self):
        with pytest.raises(PublisherConfigError, match="project_key"):
            JiraPublisher(host="https://x", email="e", api_token="t", project_key="")


class TestConfluencePublisher:

    @responses.activate
    def test_creates_page_under_parent(self, confluence):
        responses.add(responses.GET, f"{WIKI}/content", json={"results": []})
        responses.add(responses.POST, f"{WIKI}/content", json={"id": "1"})

        assert confluence.publish("Documentation: User.php", "<p>Body</p>") is True

        page = json.loads(responses.calls[1].request.body)
        assert page["space"] == {"key": "ENG"}
        assert page["ancestors"] == [{"id": "42"}]
        assert page["body"]["storage"] == {"value": "<p>Body</p>", "representation": "storage"}
        assert "version" not in page

    @responses.activate
    def test_update_bumps_version(self, confluence):
        responses.add(
            responses.GET, f"{WIKI}/content",
            json={"results": [{"id": "99", "version": {"number": 4}}]},
        )
        responses.add(responses.PUT, f"{WIKI}/content/99", json={"id": "99"})

        assert confluence.publish("Documentation: User.php", "Body") is True
        assert json.loads(responses.calls[1].request.body)["version"] == {"number": 5}

    @responses.activate
    def test_malformed_search_result_returns_false(self, confluence):
        responses.add(responses.GET, f"{WIKI}/content", json={"results": [{"id": "99"}]})

        assert confluence.publish("Documentation: User.php", "Body") is False

    def test_incomplete_config(self):
        with pytest.raises(PublisherConfigError, match="space_key"):
            ConfluencePublisher(host="https://x", email="e", api_token="t", space_key="")


class TestBuildPublishers:

    def test_none_enabled(self):
        assert build_publishers(Settings()) == []

    def test_enabled_without_config_raises(self):
        with pytest.raises(PublisherConfigError, match="Jira integration is enabled"):
            build_publishers(Settings(), jira=True)

    def test_both_enabled(self):
        settings = Settings(
            jira_host="https://j", jira_email="e", jira_api_token="t", jira_project_key="P",
            confluence_host="https://c", confluence_email="e", confluence_api_token="t", confluence_space_key="S",
        )
        names = [p.name for p in build_publishers(settings, jira=True, confluence=True)]
        assert names == ["Jira", "Confluence"]
