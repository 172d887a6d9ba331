"""Admin console for the device's student database.

Gated by the admin password (read from the environment). Lists and exports
credential-free account summaries and purges accounts without the owner's
password.
"""

from __future__ import annotations

import hmac
import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from edumate.core.accounts import AccountManager
from edumate.core.errors import AdminAccessError, NotFoundError
from edumate.db.repositories import Repositories

logger = structlog.get_logger(__name__)


@dataclass
class AccountSummary:
    """One row of the admin listing."""

    name: str
    email: str
    board: str
    standard: str
    stream: str | None
    subjects: list[str]
    test_count: int
    last_active: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "board": self.board,
            "standard": self.standard,
            "stream": self.stream,
            "subjects": self.subjects,
            "test_count": self.test_count,
            "last_active": self.last_active,
        }


class AdminConsole:
    """Administrative view over every account in the store."""

    def __init__(
        self,
        repos: Repositories,
        accounts: AccountManager,
        admin_password: str | None,
    ):
        self.repos = repos
        self.accounts = accounts
        self._admin_password = admin_password
        self._unlocked = False

    @property
    def unlocked(self) -> bool:
        return self._unlocked

    def unlock(self, password: str) -> None:
        """Unlock the console.

        Raises:
            AdminAccessError: If no admin password is configured or it differs
        """
        if not self._admin_password:
            raise AdminAccessError("Admin access is not configured on this device.")
        if not hmac.compare_digest(password.encode("utf-8"), self._admin_password.encode("utf-8")):
            logger.warning("admin.unlock_rejected")
            raise AdminAccessError()
        self._unlocked = True
        logger.info("admin.unlocked")

    def _require_unlocked(self) -> None:
        if not self._unlocked:
            raise AdminAccessError("Admin console is locked.")

    def list_accounts(self) -> list[AccountSummary]:
        """Summaries of every registered account."""
        self._require_unlocked()

        summaries: list[AccountSummary] = []
        for identity in self.repos.accounts.list_identities():
            account = self.repos.accounts.get(identity)
            if account is None:
                continue
            results = self.repos.results.list(identity)
            last_active = None
            if results:
                last_active = _date_part(results[-1].created_at)
            summaries.append(
                AccountSummary(
                    name=account.name,
                    email=account.email,
                    board=account.board,
                    standard=account.standard,
                    stream=account.stream,
                    subjects=list(account.subjects),
                    test_count=len(results),
                    last_active=last_active,
                )
            )
        return summaries

    def export_accounts(self, path: Path) -> Path:
        """Write the account summaries to a JSON file."""
        summaries = self.list_accounts()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump([s.to_dict() for s in summaries], f, indent=2, ensure_ascii=False)

        logger.info("admin.exported", path=str(path), accounts=len(summaries))
        return path

    def purge_account(self, identity: str) -> None:
        """Delete an account and its records without the owner's password."""
        self._require_unlocked()
        if not self.repos.accounts.exists(identity):
            raise NotFoundError(f"No account for {identity}.")
        self.accounts.purge(identity)
        logger.info("admin.purged", identity=identity)


def _date_part(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp).date().isoformat()
    except ValueError:
        return timestamp
