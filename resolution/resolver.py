"""
Entity resolver: map a display name found in one document to an entity
already established from another document.

Registries hold a few hundred entities, so lookups are linear scans.
"""

from typing import Iterable, List, Mapping, Optional, Protocol, Tuple, TypeVar

from resolution.identifier import Identifier
from utils.logger import get_logger

logger = get_logger(__name__)


class Named(Protocol):
    """Anything exposing the two display names it may be referred to by."""

    @property
    def display_names(self) -> Tuple[str, str]: ...


E = TypeVar("E", bound=Named)


class NotFound(LookupError):
    """No registry entity matches the supplied names."""

    def __init__(self, names: List[str]):
        super().__init__(f"No entity found with name {' or '.join(repr(n) for n in names)}")
        self.names = names


class InvalidArguments(ValueError):
    """resolve() was called without any name to look for."""


def _same(a: str, b: str) -> bool:
    return a.strip().lower() == b.strip().lower()


def _match_registry(name: str, registry: Mapping[Identifier, E]) -> Optional[Tuple[Identifier, E]]:
    for key, entity in registry.items():
        if any(_same(name, n) for n in entity.display_names):
            return key, entity
    return None


def _match_aliases(
    name: str,
    registry: Mapping[Identifier, E],
    alias_table: Mapping[Identifier, Iterable[str]],
) -> Optional[Tuple[Identifier, E]]:
    for key, aliases in alias_table.items():
        if key in registry and any(_same(name, a) for a in aliases):
            return key, registry[key]
    return None


def resolve(
    first_name: Optional[str],
    second_name: Optional[str],
    registry: Mapping[Identifier, E],
    alias_table: Optional[Mapping[Identifier, Iterable[str]]] = None,
) -> Tuple[Identifier, E]:
    """
    Find the single best-matching entity for up to two candidate names.

    Each name is tried in turn, first against the entities' own display
    names and then against the alias table. The first hit wins.

    Args:
        first_name: Preferred candidate, e.g. a link title
        second_name: Fallback candidate, e.g. the link text
        registry: Identifier to entity
        alias_table: Identifier to known alternative names (optional)

    Returns:
        (identifier, entity)

    Raises:
        NotFound: a name was given but nothing matched
        InvalidArguments: neither name was given
    """
    candidates = [n for n in (first_name, second_name) if n is not None]

    if not candidates:
        raise InvalidArguments("resolve() requires at least one candidate name")

    for name in candidates:
        hit = _match_registry(name, registry)
        if hit is None and alias_table:
            hit = _match_aliases(name, registry, alias_table)
            if hit is not None:
                logger.debug(f"Resolved '{name}' to {hit[0]} through the alias table")
        if hit is not None:
            return hit

    raise NotFound(candidates)
