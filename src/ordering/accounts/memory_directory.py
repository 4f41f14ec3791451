"""In-memory account directory for development and testing."""

from dataclasses import dataclass

from ordering.accounts.port import AccountDirectory


@dataclass(frozen=True)
class Account:
    user_id: str
    name: str
    role: str = "user"


class InMemoryAccountDirectory(AccountDirectory):
    def __init__(self):
        self.accounts: dict[str, Account] = {}

    def register(self, user_id, name, role="user") -> Account:
        account = Account(user_id=str(user_id), name=name, role=role)
        self.accounts[account.user_id] = account
        return account

    def admin_ids(self) -> list[str]:
        return [a.user_id for a in self.accounts.values() if a.role == "admin"]

    def display_name(self, user_id: str) -> str | None:
        account = self.accounts.get(str(user_id))
        return account.name if account else None

    def reset(self):
        self.accounts.clear()
