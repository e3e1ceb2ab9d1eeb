"""fsroots - sandboxed filesystem tools for agent runtimes.

Exposes read/write/edit/move/list/search/info tools that only ever touch
paths inside a fixed set of allowed root directories:
- Every path is validated against its symlink-resolved real location
- Edits are previewed as unified diffs before being written
- Recursive search tolerates unreadable or vanishing entries
"""

__version__ = "0.5.0"
