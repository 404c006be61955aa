# Rev 0.1.0
"""planCraft planning core: entities, queries, task hierarchy, allocations, session state."""
from __future__ import annotations

__version__ = "0.1.0"
