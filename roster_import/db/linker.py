from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Protocol

"""Client-linking collaborator.

The executor hands one normalized email at a time to a ClientLinker and
gets back a LinkResult. A linker may also raise; the executor turns that
into a row error, so implementations do not need to catch everything.

PostgresClientLinker performs the link against the practice database with
a psycopg2 cursor:

1. find the user profile by email
2. reject unknown users and non-client accounts
3. reject an already active relationship
4. reactivate an inactive relationship, or insert a new active one

The caller owns the connection and its transaction boundary.
"""

__all__ = [
    "ClientProfile",
    "LinkResult",
    "ClientLinker",
    "LinkError",
    "PostgresClientLinker",
    "MSG_NO_USER",
    "MSG_NOT_A_CLIENT",
    "MSG_ALREADY_ACTIVE",
]

MSG_NO_USER = "No user found with that email address"
MSG_NOT_A_CLIENT = "This user is not registered as a client"
MSG_ALREADY_ACTIVE = "This client is already connected to your practice"

_FIND_PROFILE_SQL = (
    "SELECT id, full_name, email, skin_type, concerns, avatar_url, role, phone "
    "FROM user_profiles WHERE email = %s LIMIT 1"
)
_FIND_RELATION_SQL = (
    "SELECT id, status FROM client_professional_relationships "
    "WHERE client_id = %s AND professional_id = %s LIMIT 1"
)
_REACTIVATE_SQL = (
    "UPDATE client_professional_relationships "
    "SET status = 'active', updated_at = NOW() WHERE id = %s"
)
_INSERT_RELATION_SQL = (
    "INSERT INTO client_professional_relationships (client_id, professional_id, status) "
    "VALUES (%s, %s, 'active')"
)


class LinkError(Exception):
    pass


@dataclass(frozen=True)
class ClientProfile:
    """Minimal client profile returned by a successful link."""
    id: str
    full_name: str | None = None
    email: str | None = None
    skin_type: str | None = None
    concerns: list[str] | None = None
    avatar_url: str | None = None
    phone: str | None = None


@dataclass(frozen=True)
class LinkResult:
    success: bool
    client: ClientProfile | None = None
    error: str | None = None  # failure reason (success=False)
    message: str | None = None  # optional confirmation (success=True)

    @staticmethod
    def ok(client: ClientProfile | None = None, message: str | None = None) -> LinkResult:
        return LinkResult(success=True, client=client, message=message)

    @staticmethod
    def failed(error: str | None) -> LinkResult:
        return LinkResult(success=False, error=error)


class ClientLinker(Protocol):
    """Anything that can link one email to the practice.

    ``link`` may be a coroutine function or a plain function.
    """

    def link(self, email: str) -> LinkResult | Awaitable[LinkResult]: ...


class PostgresClientLinker:
    """Link clients to a professional's practice through a psycopg2 cursor."""

    def __init__(self, cursor: Any, professional_id: str) -> None:
        self.cursor = cursor
        self.professional_id = professional_id

    def link(self, email: str) -> LinkResult:
        normalized = email.strip().lower()
        try:
            self.cursor.execute(_FIND_PROFILE_SQL, (normalized,))
            profile = self.cursor.fetchone()
            if profile is None:
                return LinkResult.failed(MSG_NO_USER)

            client_id, full_name, found_email, skin_type, concerns, avatar_url, role, phone = profile
            if role != "client":
                return LinkResult.failed(MSG_NOT_A_CLIENT)

            self.cursor.execute(_FIND_RELATION_SQL, (client_id, self.professional_id))
            relation = self.cursor.fetchone()
            if relation is not None:
                relation_id, status = relation
                if status == "active":
                    return LinkResult.failed(MSG_ALREADY_ACTIVE)
                self.cursor.execute(_REACTIVATE_SQL, (relation_id,))
            else:
                self.cursor.execute(_INSERT_RELATION_SQL, (client_id, self.professional_id))
        except Exception as e:
            raise LinkError(str(e)) from e

        return LinkResult.ok(
            ClientProfile(
                id=str(client_id),
                full_name=full_name,
                email=found_email,
                skin_type=skin_type,
                concerns=list(concerns) if concerns else None,
                avatar_url=avatar_url,
                phone=phone,
            )
        )
