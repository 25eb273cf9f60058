"""Pydantic request/response models for the HTTP layer and the CLI."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

# ── Requests ──────────────────────────────────────────────────────


class QueryRequest(BaseModel):
    """CONSTRUCT/DESCRIBE query over the local dataset."""

    query: str = Field(min_length=1)
    base_uri: str | None = None


class EndpointQueryRequest(BaseModel):
    """Query of any form against a remote SPARQL endpoint."""

    endpoint: str = Field(min_length=1)
    query: str = Field(min_length=1)


class SelectBuildRequest(BaseModel):
    """Edits applied to a SELECT query through :class:`~spinquery.builder.SelectBuilder`.

    Fields left as ``None`` keep what the query already says.
    """

    query: str = Field(min_length=1)
    base_uri: str | None = None
    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)
    order_by: str | None = None
    desc: bool = False
    distinct: bool | None = None
    reduced: bool | None = None
    result_variables: list[str] | None = None

    @field_validator("order_by")
    @classmethod
    def _strip_marker(cls, value: str | None) -> str | None:
        if value is None:
            return None
        name = value.lstrip("?$")
        if not name:
            raise ValueError("order_by must name a variable")
        return name


# ── Responses ─────────────────────────────────────────────────────


class OrderCondition(BaseModel):
    """One ORDER BY condition."""

    variable: str
    descending: bool = False


class SelectBuildResult(BaseModel):
    """A built SELECT query: SPARQL text, SPIN triples and the read-back clauses."""

    query: str
    spin: str
    result_variables: list[str] = Field(default_factory=list)
    distinct: bool = False
    reduced: bool = False
    limit: int | None = None
    offset: int | None = None
    order_by: list[OrderCondition] = Field(default_factory=list)
