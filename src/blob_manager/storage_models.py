"""Request/response models exchanged with storage backends.

These describe the contract between the managers and a backend: the table
filter going in, the query result and container state coming out.
"""

import uuid
from typing import Any, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from .constants import LEASE_STATE_AVAILABLE, LEASE_STATUS_UNLOCKED


class PropertyCondition(BaseModel):
    """Equality test on one entity property."""
    name: str
    value: Any


class TableQuery(BaseModel):
    """
    Filter for a single partition of a table.

    The partition test is always AND-ed with the conditions, which are
    combined with ``operator``.
    """
    partition_key: str
    conditions: List[PropertyCondition] = Field(default_factory=list)
    operator: Literal["and", "or"] = "and"

    def to_odata(self) -> Tuple[str, Dict[str, Any]]:
        """
        Render as an OData filter with named parameters.

        Returns:
            Tuple of (filter expression, parameters)
        """
        parameters: Dict[str, Any] = {"pk": self.partition_key}
        clauses = []
        for i, cond in enumerate(self.conditions):
            key = f"p{i}"
            parameters[key] = cond.value
            clauses.append(f"{cond.name} eq @{key}")

        expr = "PartitionKey eq @pk"
        if clauses:
            joined = f" {self.operator} ".join(clauses)
            expr += f" and ({joined})" if len(clauses) > 1 else f" and {joined}"
        return expr, parameters

    def matches(self, entity: Dict[str, Any]) -> bool:
        """Evaluate the filter against an entity held in memory."""
        if entity.get("PartitionKey") != self.partition_key:
            return False
        if not self.conditions:
            return True
        results = [
            _same_value(entity.get(cond.name), cond.value) for cond in self.conditions
        ]
        return any(results) if self.operator == "or" else all(results)


def _same_value(actual: Any, expected: Any) -> bool:
    if isinstance(expected, uuid.UUID) or isinstance(actual, uuid.UUID):
        return str(actual).lower() == str(expected).lower()
    return actual == expected


class QueryResult(BaseModel):
    """Table query response."""
    entries: List[Dict[str, Any]] = Field(default_factory=list)
    is_successful: bool = True
    status_code: Optional[int] = None
    error: Any = None


class ContainerState(BaseModel):
    """Existence and lease state of a blob container."""
    exists: bool
    lease_status: Optional[str] = None   # "locked" | "unlocked"
    lease_state: Optional[str] = None    # "available" | "leased" | "expired" | "breaking" | "broken"

    @property
    def is_leased(self) -> bool:
        """True when another party holds the container lease."""
        return (
            self.lease_status != LEASE_STATUS_UNLOCKED
            and self.lease_state != LEASE_STATE_AVAILABLE
        )
