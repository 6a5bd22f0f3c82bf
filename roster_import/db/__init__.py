from .linker import ClientLinker, ClientProfile, LinkError, LinkResult, PostgresClientLinker
from .roster import RosterLoadError, RosterSnapshot, fetch_roster_emails, load_roster_file

__all__ = [
    "ClientLinker",
    "ClientProfile",
    "LinkError",
    "LinkResult",
    "PostgresClientLinker",
    "RosterLoadError",
    "RosterSnapshot",
    "fetch_roster_emails",
    "load_roster_file",
]
