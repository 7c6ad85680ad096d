"""
World state for the in-process chain.

Holds account balances, nonces, contract storage, deployed code and the event
log. A snapshot captures all of it; restoring a snapshot is how a reverted
message call is rolled back.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Tuple

from eth_utils import to_checksum_address

from .errors import InsufficientBalance

if TYPE_CHECKING:
    from .contract import Contract


@dataclass(frozen=True)
class LogEntry:
    """One emitted event."""

    address: str
    topics: Tuple[bytes, ...]
    data: bytes


@dataclass(frozen=True)
class Snapshot:
    balances: Dict[str, int]
    nonces: Dict[str, int]
    storage: Dict[str, Dict[Any, Any]]
    code: Dict[str, "Contract"]
    log_count: int


@dataclass
class WorldState:
    balances: Dict[str, int] = field(default_factory=dict)
    nonces: Dict[str, int] = field(default_factory=dict)
    storage: Dict[str, Dict[Any, Any]] = field(default_factory=dict)
    code: Dict[str, "Contract"] = field(default_factory=dict)
    logs: List[LogEntry] = field(default_factory=list)

    def get_balance(self, address: str) -> int:
        return self.balances.get(to_checksum_address(address), 0)

    def credit(self, address: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        address = to_checksum_address(address)
        self.balances[address] = self.balances.get(address, 0) + amount

    def debit(self, address: str, amount: int) -> None:
        address = to_checksum_address(address)
        balance = self.balances.get(address, 0)
        if amount > balance:
            raise InsufficientBalance(address, balance, amount)
        self.balances[address] = balance - amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        if amount == 0:
            return
        self.debit(sender, amount)
        self.credit(recipient, amount)

    def get_nonce(self, address: str) -> int:
        return self.nonces.get(to_checksum_address(address), 0)

    def increment_nonce(self, address: str) -> int:
        """Bump the nonce and return the value that was consumed."""
        address = to_checksum_address(address)
        nonce = self.nonces.get(address, 0)
        self.nonces[address] = nonce + 1
        return nonce

    def load(self, address: str, key: Any, default: Any = 0) -> Any:
        return self.storage.get(address, {}).get(key, default)

    def store(self, address: str, key: Any, value: Any) -> None:
        self.storage.setdefault(address, {})[key] = value

    def emit(self, entry: LogEntry) -> None:
        self.logs.append(entry)

    def snapshot(self) -> Snapshot:
        return Snapshot(
            balances=dict(self.balances),
            nonces=dict(self.nonces),
            storage={address: dict(slots) for address, slots in self.storage.items()},
            code=dict(self.code),
            log_count=len(self.logs),
        )

    def restore(self, snapshot: Snapshot) -> None:
        # Copy again so the snapshot can be restored more than once
        self.balances = dict(snapshot.balances)
        self.nonces = dict(snapshot.nonces)
        self.storage = {address: dict(slots) for address, slots in snapshot.storage.items()}
        self.code = dict(snapshot.code)
        del self.logs[snapshot.log_count:]
