from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from zetsubou.exceptions import ZetsubouGraphQLError
from zetsubou.models import GraphQLResponse
from zetsubou.services.base import BaseService

GRAPHQL_PATH = "/api/graphql"


class GraphQLService(BaseService):
    async def query(
        self,
        query: str,
        variables: Optional[Mapping[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> GraphQLResponse:
        """Run a GraphQL document.

        Raises:
            ZetsubouGraphQLError: If the response carries a non-empty ``errors`` array.
        """
        payload: Dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = dict(variables)
        if operation_name:
            payload["operationName"] = operation_name
        body = await self.client.post(GRAPHQL_PATH, payload) or {}
        errors = body.get("errors") or []
        if errors:
            raise ZetsubouGraphQLError(errors)
        return GraphQLResponse(
            data=body.get("data"), errors=[], extensions=dict(body.get("extensions") or {})
        )

    async def mutate(
        self,
        mutation: str,
        variables: Optional[Mapping[str, Any]] = None,
        operation_name: Optional[str] = None,
    ) -> GraphQLResponse:
        return await self.query(mutation, variables, operation_name)

    async def health_check(self) -> str:
        result = await self.query("{ health }")
        return (result.data or {}).get("health") or "unknown"
