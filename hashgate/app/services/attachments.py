"""
Managed-file registries.

A registry maps an application resource id (an upload or attachment id) to
a file on disk. hash_attachment() resolves through a registry and then
hashes the file; a registry that cannot resolve an id returns None.
"""

import logging
from pathlib import Path
from typing import Dict, Mapping, Optional, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)

ResourceId = Union[int, str]


@runtime_checkable
class FileRegistry(Protocol):
    """Resolves resource ids to file paths."""

    def resolve_path(self, resource_id: ResourceId) -> Optional[Path]:
        ...


class NullFileRegistry:
    """Registry that resolves nothing (no managed files configured)."""

    def resolve_path(self, resource_id: ResourceId) -> Optional[Path]:
        return None


class MappingFileRegistry:
    """Registry backed by an explicit id -> path mapping."""

    def __init__(self, paths: Optional[Mapping[ResourceId, Union[str, Path]]] = None):
        self._paths: Dict[str, Path] = {}
        for resource_id, path in (paths or {}).items():
            self.register(resource_id, path)

    def register(self, resource_id: ResourceId, path: Union[str, Path]) -> None:
        self._paths[str(resource_id)] = Path(path)

    def resolve_path(self, resource_id: ResourceId) -> Optional[Path]:
        return self._paths.get(str(resource_id))


class DirectoryFileRegistry:
    """
    Registry for files stored under a single storage root.

    The resource id is a path relative to the root. Ids that are empty,
    absolute, or resolve outside the root are refused.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).resolve()

    def resolve_path(self, resource_id: ResourceId) -> Optional[Path]:
        relative = str(resource_id).strip()
        try:
            if not relative or "\x00" in relative or Path(relative).is_absolute():
                logger.debug("Refusing resource id outside storage root")
                return None
            candidate = (self.root / relative).resolve()
        except (OSError, ValueError) as e:
            # symlink loops or over-long names
            logger.debug("Refusing unresolvable resource id: %s", type(e).__name__)
            return None

        if candidate != self.root and self.root not in candidate.parents:
            logger.debug("Refusing resource id outside storage root")
            return None

        return candidate
