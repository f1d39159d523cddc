"""Pagination response schemas following the GraphQL Connection pattern.

A connection is built per request and discarded once the response is
serialized. Nothing about a page is retained server side; the only state that
survives between calls is the opaque cursor the client sends back.
"""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PageInfo(BaseModel):
    """Pagination metadata following GraphQL Relay specification.

    Attributes:
        has_previous_page: Whether there are items before the current page
        has_next_page: Whether there are items after the current page
        start_cursor: Cursor of the first item in this page
        end_cursor: Cursor of the last item in this page
    """

    has_previous_page: bool = Field(
        default=False,
        description="Whether previous items exist",
    )
    has_next_page: bool = Field(
        default=False,
        description="Whether more items exist",
    )
    start_cursor: str | None = Field(
        default=None,
        description="Cursor of the first item",
    )
    end_cursor: str | None = Field(
        default=None,
        description="Cursor of the last item",
    )


class Edge(BaseModel, Generic[T]):
    """Edge wrapper for paginated items (Relay pattern).

    Attributes:
        node: The actual data item
        cursor: Cursor for this specific item
    """

    node: T = Field(description="The data item")
    cursor: str = Field(description="Cursor for this item")


class Connection(BaseModel, Generic[T]):
    """GraphQL Connection pattern for cursor pagination.

    Usage:
        connection = Connection.build(
            edges,
            has_previous_page=after is not None,
            has_next_page=next_token is not None,
        )

    Attributes:
        edges: List of Edge objects containing nodes and cursors
        page_info: Navigation metadata
    """

    edges: list[Edge[T]] = Field(
        default_factory=list,
        description="List of edges (items with cursors)",
    )
    page_info: PageInfo = Field(
        default_factory=PageInfo,
        description="Pagination metadata",
    )

    @property
    def nodes(self) -> list[T]:
        """Get just the nodes without edge wrappers."""
        return [edge.node for edge in self.edges]

    @classmethod
    def empty(cls) -> Connection[T]:
        """Connection with no edges and both page flags false."""
        return cls(edges=[], page_info=PageInfo())

    @classmethod
    def build(
        cls,
        edges: list[Edge[T]],
        *,
        has_previous_page: bool,
        has_next_page: bool,
    ) -> Connection[T]:
        """Assemble a connection, deriving start/end cursors from the edges."""
        return cls(
            edges=edges,
            page_info=PageInfo(
                has_previous_page=has_previous_page,
                has_next_page=has_next_page,
                start_cursor=edges[0].cursor if edges else None,
                end_cursor=edges[-1].cursor if edges else None,
            ),
        )


__all__ = ["Connection", "Edge", "PageInfo"]
