from dataclasses import dataclass
from enum import Enum


class ScopeKind(str, Enum):
    ALL = "all"
    ORGANIZATIONS = "organizations"


@dataclass(slots=True, frozen=True)
class AccessScope:
    """Which organizations' rows a caller may see."""

    kind: ScopeKind
    organization_ids: tuple[str, ...] = ()

    @classmethod
    def all(cls) -> "AccessScope":
        return cls(kind=ScopeKind.ALL)

    @classmethod
    def organizations(cls, organization_ids: list[str] | tuple[str, ...]) -> "AccessScope":
        unique_ids = tuple(dict.fromkeys(org_id for org_id in organization_ids if org_id))
        return cls(kind=ScopeKind.ORGANIZATIONS, organization_ids=unique_ids)

    @property
    def restricted(self) -> bool:
        return self.kind is ScopeKind.ORGANIZATIONS

    @property
    def is_empty(self) -> bool:
        return self.restricted and not self.organization_ids


@dataclass(slots=True)
class UserContext:
    clerk_user_id: str
