import logging
import threading
from typing import Any

import requests

from ..config import Config
from ..errors import StoreError
from ..sync.models import DiscussionRef

logger = logging.getLogger(__name__)

STORE = "discussions"
GRAPHQL_URL = "https://api.github.com/graphql"
PAGE_SIZE = 100

REPOSITORY_ID_QUERY = """
query RepositoryId($owner: String!, $name: String!) {
  repository(owner: $owner, name: $name) {
    id
  }
}
"""

LIST_DISCUSSIONS_QUERY = """
query ListDiscussions(
  $owner: String!, $name: String!, $categoryId: ID!, $first: Int!, $after: String
) {
  repository(owner: $owner, name: $name) {
    discussions(categoryId: $categoryId, first: $first, after: $after) {
      nodes {
        id
        url
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
"""

CREATE_DISCUSSION_MUTATION = """
mutation CreateDiscussion(
  $repositoryId: ID!, $categoryId: ID!, $title: String!, $body: String!
) {
  createDiscussion(
    input: {repositoryId: $repositoryId, categoryId: $categoryId, title: $title, body: $body}
  ) {
    discussion {
      id
      url
    }
  }
}
"""

UPDATE_DISCUSSION_MUTATION = """
mutation UpdateDiscussion($discussionId: ID!, $body: String!) {
  updateDiscussion(input: {discussionId: $discussionId, body: $body}) {
    discussion {
      id
    }
  }
}
"""


class DiscussionClient:
    """GitHub Discussions access through the GraphQL API.

    ``validate_connection()`` must be called once before ``create()``: it
    resolves the repository node id that the create mutation requires.
    """

    def __init__(self, config: Config, api_url: str = GRAPHQL_URL):
        self.config = config
        self.api_url = api_url
        self._thread_local = threading.local()
        self._repository_id: str | None = None

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"Bearer {self.config.github_token}",
                "Accept": "application/vnd.github+json",
            }
        )
        return session

    def _graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """
        Execute a GraphQL document and return its ``data`` object.

        Raises:
            StoreError: On transport failure, non-2xx status, or GraphQL
                ``errors`` in the response.
        """
        try:
            response = self._get_session().post(
                self.api_url,
                json={"query": query, "variables": variables},
                timeout=(10, 60),
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            raise StoreError(STORE, f"GraphQL request failed: {exc}") from exc
        except ValueError as exc:
            raise StoreError(STORE, "GraphQL response is not JSON") from exc

        if not isinstance(body, dict):
            raise StoreError(STORE, "GraphQL response is not an object")
        errors = body.get("errors")
        if errors:
            messages = "; ".join(
                str(err.get("message", err)) for err in errors
            )
            raise StoreError(STORE, f"GraphQL errors: {messages}")
        data = body.get("data")
        if not isinstance(data, dict):
            raise StoreError(STORE, "GraphQL response has no data")
        return data

    @property
    def repository_id(self) -> str:
        if self._repository_id is None:
            raise StoreError(
                STORE, "repository id unknown; call validate_connection() first"
            )
        return self._repository_id

    def validate_connection(self) -> str:
        """
        Resolve and cache the repository node id.

        Returns:
            The repository node id.
        """
        data = self._graphql(
            REPOSITORY_ID_QUERY,
            {
                "owner": self.config.repository_owner,
                "name": self.config.repository_name,
            },
        )
        repository = data.get("repository")
        if not repository:
            raise StoreError(
                STORE,
                f"repository {self.config.github_repository} not found",
            )
        self._repository_id = repository["id"]
        return self._repository_id

    def list_all(self, category_id: str) -> list[DiscussionRef]:
        """
        List every discussion in a category, following pagination cursors.
        """
        refs: list[DiscussionRef] = []
        cursor: str | None = None
        while True:
            data = self._graphql(
                LIST_DISCUSSIONS_QUERY,
                {
                    "owner": self.config.repository_owner,
                    "name": self.config.repository_name,
                    "categoryId": category_id,
                    "first": PAGE_SIZE,
                    "after": cursor,
                },
            )
            try:
                page = data["repository"]["discussions"]
                refs.extend(
                    DiscussionRef(id=node["id"], url=node["url"])
                    for node in page["nodes"]
                    if node
                )
                has_next = page["pageInfo"]["hasNextPage"]
                cursor = page["pageInfo"]["endCursor"]
            except (KeyError, TypeError) as exc:
                raise StoreError(
                    STORE, f"unexpected discussion list payload: {exc}"
                ) from exc
            if not has_next:
                break
        logger.info("Listed %d discussions", len(refs))
        return refs

    def create(self, title: str, body: str) -> DiscussionRef:
        """
        Create a discussion in the configured category.
        """
        data = self._graphql(
            CREATE_DISCUSSION_MUTATION,
            {
                "repositoryId": self.repository_id,
                "categoryId": self.config.discussion_category_id,
                "title": title,
                "body": body,
            },
        )
        try:
            discussion = data["createDiscussion"]["discussion"]
            return DiscussionRef(id=discussion["id"], url=discussion["url"])
        except (KeyError, TypeError) as exc:
            raise StoreError(
                STORE, f"unexpected createDiscussion payload: {exc}"
            ) from exc

    def update(self, discussion_id: str, body: str) -> None:
        """
        Replace the body of an existing discussion.
        """
        self._graphql(
            UPDATE_DISCUSSION_MUTATION,
            {"discussionId": discussion_id, "body": body},
        )
