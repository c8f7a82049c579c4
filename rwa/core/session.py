from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..utils.wallets import derive_evm_address, generate_private_key, normalize_evm_private_key


@dataclass(frozen=True)
class Identity:
    """A local signing identity.

    Build instances with :meth:`from_private_key` or :meth:`generate`; the
    address is always derived from the key and never supplied separately.
    """

    name: str
    private_key: str
    address: str

    @classmethod
    def from_private_key(cls, name: str, private_key: str) -> "Identity":
        key = normalize_evm_private_key(private_key)
        return cls(name=name, private_key=key, address=derive_evm_address(key))

    @classmethod
    def generate(cls, name: str) -> "Identity":
        return cls.from_private_key(name, generate_private_key())


@dataclass(frozen=True)
class ChainConfig:
    rpc_url: str
    chain_id: int
    factory_address: str
    tx_timeout: float = 120.0


@dataclass
class Session:
    """In-memory state for one run of the token manager.

    Nothing here is persisted. Identities are only ever appended, and
    ``token_address`` is None until a token is created or connected.
    """

    config: ChainConfig
    identities: List[Identity] = field(default_factory=list)
    current_index: int = 0
    token_address: Optional[str] = None

    @property
    def current(self) -> Identity:
        return self.identities[self.current_index]

    @property
    def address(self) -> str:
        return self.current.address

    def add_identity(self, identity: Identity) -> int:
        """Append an identity and return its 0-based index."""
        self.identities.append(identity)
        return len(self.identities) - 1

    def select(self, index: int) -> Identity:
        """Make the identity at 0-based ``index`` current."""
        if not 0 <= index < len(self.identities):
            raise IndexError(f"No account at position {index + 1}")
        self.current_index = index
        return self.identities[index]

    def disconnect_token(self) -> None:
        self.token_address = None
