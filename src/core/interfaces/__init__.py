"""Core interfaces/abstractions.

Why:
- Defines contracts (Protocol) implemented by concrete adapters.
- Inverts dependencies: the Core depends on abstractions.
"""

from core.interfaces.github import GitHubGateway, GraphQLResponse

__all__ = ["GitHubGateway", "GraphQLResponse"]
