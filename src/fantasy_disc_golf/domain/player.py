from dataclasses import dataclass


@dataclass(frozen=True)
class PoolPlayer:
    pdga: str
    name: str
    division: str = ""
