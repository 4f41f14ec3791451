"""Account directory factory: get_directory() / set_directory() / reset_directory()."""

from ordering.accounts.memory_directory import InMemoryAccountDirectory
from ordering.accounts.port import AccountDirectory

_current_directory: AccountDirectory | None = None


def get_directory() -> AccountDirectory:
    global _current_directory
    if _current_directory is None:
        _current_directory = InMemoryAccountDirectory()
    return _current_directory


def set_directory(directory: AccountDirectory) -> None:
    global _current_directory
    _current_directory = directory


def reset_directory() -> None:
    global _current_directory
    _current_directory = None
