"""Page fetchers.

Example:
    >>> from auditfeed.fetcher import JiraAuditFetcher, OrgEventsFetcher, PageFetcher
    >>> isinstance(JiraAuditFetcher("https://example.atlassian.net"), PageFetcher)
    True
"""

from auditfeed.fetcher.base import BaseHttpFetcher, PageFetcher
from auditfeed.fetcher.jira import JiraAuditFetcher
from auditfeed.fetcher.org_events import OrgEventsFetcher

__all__ = [
    "BaseHttpFetcher",
    "JiraAuditFetcher",
    "OrgEventsFetcher",
    "PageFetcher",
]
