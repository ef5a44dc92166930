"""package.json parsing and dependency diffing.

Diffing is a pure comparison of two ManifestSnapshot objects. It never
raises: malformed manifests are rejected by parse_manifest() before they
get here.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import SCOPE_ORDER, DependencyChange, DependencyScope, ManifestSnapshot

MANIFEST_FILENAME = "package.json"


def parse_manifest(content: str) -> ManifestSnapshot:
    """Parse package.json text into a ManifestSnapshot.

    Raises:
        pydantic.ValidationError: If the text is not JSON, not an object, or
            a dependency block is not a mapping of strings.
    """
    return ManifestSnapshot.model_validate_json(content)


def diff_manifests(
    base: ManifestSnapshot,
    head: ManifestSnapshot,
    scopes: Iterable[DependencyScope] = (DependencyScope.PROD,),
) -> list[DependencyChange]:
    """List dependency changes from base to head within the selected scopes.

    Scopes are walked in manifest order (dependencies, devDependencies,
    peerDependencies, optionalDependencies) and names within a scope in
    sorted order, so the result is deterministic. Each scope is compared on
    its own: a dependency moved from one block to another shows up as a
    removal in one scope and an addition in the other.

    Example:
        base {"lodash": "^4.17.19"}, head {"lodash": "^4.17.21"}
        → [DependencyChange(name="lodash", kind=UPDATED, ...)]
    """
    selected = set(scopes)
    changes: list[DependencyChange] = []

    for scope in SCOPE_ORDER:
        if scope not in selected:
            continue
        base_deps = base.block(scope)
        head_deps = head.block(scope)

        for name in sorted(base_deps.keys() | head_deps.keys()):
            old = base_deps.get(name)
            new = head_deps.get(name)
            if old is not None and new is not None:
                if old != new:
                    changes.append(DependencyChange.updated(name, old, new))
            elif new is not None:
                changes.append(DependencyChange.added(name, new))
            elif old is not None:
                changes.append(DependencyChange.removed(name, old))

    return changes
