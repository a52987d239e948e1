from dataclasses import dataclass

CATALOG_READ_SCOPE = "catalog:read"
CATALOG_WRITE_SCOPE = "catalog:write"


@dataclass(slots=True)
class Principal:
    subject: str
    scopes: set[str]
    role: str | None = None

    @property
    def is_admin(self) -> bool:
        """Whether this principal may create, update or delete catalog rows."""
        return CATALOG_WRITE_SCOPE in self.scopes

    def require_scopes(self, required: set[str]) -> None:
        missing = required - self.scopes
        if missing:
            raise PermissionError(f"missing required scopes: {sorted(missing)}")

    def require_admin(self) -> None:
        self.require_scopes({CATALOG_WRITE_SCOPE})
