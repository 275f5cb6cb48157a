from dataclasses import dataclass
from typing import Optional, Union

ANONYMOUS = "Anonymous"


@dataclass(frozen=True)
class Registered:
    """Respondent known to the identity provider."""

    owner_id: str
    display_name: Optional[str] = None

    @property
    def key(self) -> str:
        return f"user:{self.owner_id}"

    @property
    def name(self) -> str:
        return self.display_name or self.owner_id


@dataclass(frozen=True)
class Freeform:
    """Anonymous respondent distinguished only by the name they typed."""

    display_name: str

    @property
    def key(self) -> str:
        return f"name:{self.display_name}"

    @property
    def name(self) -> str:
        return self.display_name

    @property
    def owner_id(self) -> None:
        return None


Identity = Union[Registered, Freeform]


def identity_of(owner_id: Optional[str], respondent_name: Optional[str]) -> Identity:
    """Rebuild the identity of a stored answer; unnamed legacy rows fold into one."""
    if owner_id:
        return Registered(owner_id, respondent_name)
    return Freeform(respondent_name or ANONYMOUS)
