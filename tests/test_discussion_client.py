from unittest.mock import MagicMock, Mock, patch

import pytest
import requests

from troubleshoot_sync.core.discussions import (
    CREATE_DISCUSSION_MUTATION,
    LIST_DISCUSSIONS_QUERY,
    PAGE_SIZE,
    DiscussionClient,
)
from troubleshoot_sync.errors import StoreError
from troubleshoot_sync.sync.models import DiscussionRef


def _response(body):
    response = Mock()
    response.status_code = 200
    response.json.return_value = body
    response.raise_for_status.return_value = None
    return response


def _page(nodes, has_next, cursor=None):
    return _response(
        {
            "data": {
                "repository": {
                    "discussions": {
                        "nodes": nodes,
                        "pageInfo": {
                            "hasNextPage": has_next,
                            "endCursor": cursor,
                        },
                    }
                }
            }
        }
    )


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(mock_config, session):
    forum = DiscussionClient(mock_config)
    with patch.object(forum, "_get_session", return_value=session):
        yield forum


def test_session_headers(mock_config):
    forum = DiscussionClient(mock_config)
    assert forum._get_session().headers["Authorization"] == "Bearer ghp_test"


def test_validate_connection_caches_repository_id(client, session):
    session.post.return_value = _response(
        {"data": {"repository": {"id": "R_1"}}}
    )

    assert client.validate_connection() == "R_1"
    assert client.repository_id == "R_1"
    variables = session.post.call_args.kwargs["json"]["variables"]
    assert variables == {"owner": "acme", "name": "docs"}


def test_validate_connection_missing_repository(client, session):
    session.post.return_value = _response({"data": {"repository": None}})
    with pytest.raises(StoreError, match="not found"):
        client.validate_connection()


def test_repository_id_before_validation_raises(client):
    with pytest.raises(StoreError):
        client.repository_id


def test_list_all_follows_pagination(client, session):
    session.post.side_effect = [
        _page([{"id": "D_1", "url": "u1"}], True, "c1"),
        _page([{"id": "D_2", "url": "u2"}, None], False),
    ]

    refs = client.list_all("DIC_test")

    assert refs == [
        DiscussionRef(id="D_1", url="u1"),
        DiscussionRef(id="D_2", url="u2"),
    ]
    assert session.post.call_count == 2
    first, second = (c.kwargs["json"] for c in session.post.call_args_list)
    assert first["query"] == LIST_DISCUSSIONS_QUERY
    assert first["variables"]["after"] is None
    assert first["variables"]["first"] == PAGE_SIZE
    assert first["variables"]["categoryId"] == "DIC_test"
    assert second["variables"]["after"] == "c1"


def test_list_all_unexpected_payload(client, session):
    session.post.return_value = _response({"data": {"repository": {}}})
    with pytest.raises(StoreError, match="unexpected"):
        client.list_all("DIC_test")


def test_create_uses_repository_and_category(client, session):
    session.post.side_effect = [
        _response({"data": {"repository": {"id": "R_1"}}}),
        _response(
            {
                "data": {
                    "createDiscussion": {
                        "discussion": {"id": "D_5", "url": "u5"}
                    }
                }
            }
        ),
    ]
    client.validate_connection()

    ref = client.create("Title", "Body")

    assert ref == DiscussionRef(id="D_5", url="u5")
    payload = session.post.call_args.kwargs["json"]
    assert payload["query"] == CREATE_DISCUSSION_MUTATION
    assert payload["variables"] == {
        "repositoryId": "R_1",
        "categoryId": "DIC_test",
        "title": "Title",
        "body": "Body",
    }


def test_update_sends_body(client, session):
    session.post.return_value = _response(
        {"data": {"updateDiscussion": {"discussion": {"id": "D_5"}}}}
    )

    client.update("D_5", "New body")

    variables = session.post.call_args.kwargs["json"]["variables"]
    assert variables == {"discussionId": "D_5", "body": "New body"}


def test_graphql_errors_raise(client, session):
    session.post.return_value = _response(
        {"data": None, "errors": [{"message": "Resource not accessible"}]}
    )

    with pytest.raises(StoreError) as excinfo:
        client.update("D_5", "x")

    assert excinfo.value.store == "discussions"
    assert "Resource not accessible" in str(excinfo.value)


def test_http_error_raises(client, session):
    response = _response({})
    response.raise_for_status.side_effect = requests.HTTPError("502")
    session.post.return_value = response

    with pytest.raises(StoreError, match="GraphQL request failed"):
        client.list_all("DIC_test")


def test_non_json_raises(client, session):
    response = _response(None)
    response.json.side_effect = ValueError("nope")
    session.post.return_value = response

    with pytest.raises(StoreError, match="not JSON"):
        client.update("D_5", "x")


@pytest.mark.parametrize("payload", [[{"data": {}}], "rate limited"])
def test_non_object_json_raises(client, session, payload):
    session.post.return_value = _response(payload)

    with pytest.raises(StoreError, match="not an object"):
        client.list_all("DIC_test")
