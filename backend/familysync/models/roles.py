"""Permission roles assigned to family members on join approval."""
import enum


class PermissionRole(str, enum.Enum):
    admin = "admin"
    member = "member"
    viewer = "viewer"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @property
    def label(self) -> str:
        return ROLE_LABELS[self]

    @property
    def description(self) -> str:
        return ROLE_DESCRIPTIONS[self]

    def outranks(self, other: "PermissionRole") -> bool:
        """True if this role grants strictly more than ``other`` (admin > member > viewer)."""
        return self.rank > PermissionRole(other).rank


_RANKS = {
    PermissionRole.admin: 3,
    PermissionRole.member: 2,
    PermissionRole.viewer: 1,
}

ROLE_LABELS = {
    PermissionRole.admin: "Admin",
    PermissionRole.member: "Member",
    PermissionRole.viewer: "Viewer",
}

ROLE_DESCRIPTIONS = {
    PermissionRole.admin: "Full access to all features and settings",
    PermissionRole.member: "Can create, edit, and delete content",
    PermissionRole.viewer: "Can only view content, no editing",
}
