"""Account directory port.

Authentication and user management live outside the ordering context. It
only needs to know who the administrators are (to notify them) and what to
call a customer in a message.
"""

from abc import ABC, abstractmethod


class AccountDirectory(ABC):
    @abstractmethod
    def admin_ids(self) -> list[str]: ...

    @abstractmethod
    def display_name(self, user_id: str) -> str | None: ...
