"""GraphQL documents and their envelope parsers.

The client posts queries verbatim; building a well-formed document and reading
the `data` envelope is the caller's job, and lives here.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from core.domain.models import PinnedRepository
from core.errors import DecodeError
from core.interfaces.github import GraphQLResponse

PINNED_ITEMS_QUERY = """
query PinnedRepositories($login: String!) {
  user(login: $login) {
    pinnedItems(first: 6, types: REPOSITORY) {
      nodes {
        ... on Repository {
          name
          description
          url
          stargazerCount
          forkCount
          primaryLanguage {
            name
            color
          }
          repositoryTopics(first: 5) {
            nodes {
              topic {
                name
              }
            }
          }
          owner {
            login
            avatarUrl
          }
        }
      }
    }
  }
}
"""


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def parse_pinned_items(response: GraphQLResponse) -> list[PinnedRepository]:
    """Extract pinned repositories; a missing user or pin list is an empty result."""

    user = _as_dict(response.data).get("user")
    if not isinstance(user, dict):
        return []
    nodes = _as_dict(user.get("pinnedItems")).get("nodes")
    if not isinstance(nodes, list):
        return []

    out: list[PinnedRepository] = []
    for node in nodes:
        if not isinstance(node, dict) or not node.get("name"):
            continue
        language = _as_dict(node.get("primaryLanguage"))
        owner = _as_dict(node.get("owner"))
        topics = [
            _as_dict(t.get("topic")).get("name")
            for t in _as_dict(node.get("repositoryTopics")).get("nodes") or []
            if isinstance(t, dict)
        ]
        try:
            out.append(
                PinnedRepository(
                    name=node["name"],
                    description=node.get("description"),
                    url=node.get("url"),
                    stargazer_count=node.get("stargazerCount") or 0,
                    fork_count=node.get("forkCount") or 0,
                    primary_language=language.get("name"),
                    primary_language_color=language.get("color"),
                    topics=[t for t in topics if isinstance(t, str)][:5],
                    owner_login=owner.get("login"),
                    owner_avatar_url=owner.get("avatarUrl"),
                )
            )
        except ValidationError as exc:
            raise DecodeError(f"Unexpected pinned item shape for '{node.get('name')}'") from exc
    return out
