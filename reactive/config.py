"""
Expression manager settings.

Defaults live as module constants; from_env() lets a deployment override
them without code changes.
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_MAX_CASCADE_DEPTH = 100
DEFAULT_SEED_KEY = "seed"

ENV_MAX_CASCADE_DEPTH = "EXPRESSION_MAX_CASCADE_DEPTH"
ENV_SEED_KEY = "EXPRESSION_SEED_KEY"


@dataclass(frozen=True)
class ManagerConfig:
    """
    - max_cascade_depth: how deeply assignment-triggered writes may nest
      inside one transaction before CascadeDepthExceeded is raised.
      None removes the limit (a cyclic assignment graph then recurses
      until Python's RecursionError).
    - seed_key: initial-state key whose value seeds getRandomInt().
    """
    max_cascade_depth: Optional[int] = DEFAULT_MAX_CASCADE_DEPTH
    seed_key: str = DEFAULT_SEED_KEY

    @classmethod
    def from_env(cls, environ=None):
        environ = os.environ if environ is None else environ

        depth = DEFAULT_MAX_CASCADE_DEPTH
        raw = environ.get(ENV_MAX_CASCADE_DEPTH)
        if raw is not None:
            raw = raw.strip()
            if raw.lower() in ("", "none", "off"):
                depth = None
            else:
                try:
                    depth = int(raw)
                except ValueError:
                    raise ValueError(f"{ENV_MAX_CASCADE_DEPTH} must be an integer or 'none', got {raw!r}")

        return cls(
            max_cascade_depth=depth,
            seed_key=environ.get(ENV_SEED_KEY, DEFAULT_SEED_KEY),
        )
