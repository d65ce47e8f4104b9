# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Module specifier resolution.

Turns an import specifier such as "./utils" or "../lib" into the canonical
absolute path of an existing file.

Candidate order for a specifier without a recognized extension:
1. The bare path
2. The bare path plus each extension, in configured order
3. <bare path>/index plus each extension

A specifier that already ends in a recognized extension has exactly one
candidate. Bare package names ("react", "@scope/pkg") are never resolved.

Successful resolutions are memoized under the exact request key, the bare
candidate path paired with the extension order, and the winning candidate,
so repeated lookups touch the filesystem zero times. A different extension
order never reuses another order's guess. Failures are not memoized.
"""

import logging
import os
from typing import List, Optional, Sequence, Tuple

from .cache import MemoCache
from .config import DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)


def is_relative_specifier(specifier: str) -> bool:
    return specifier in (".", "..") or specifier.startswith(("./", "../"))


def is_resolvable_specifier(specifier: str) -> bool:
    """Whether a specifier names a file path rather than a package."""
    return is_relative_specifier(specifier) or os.path.isabs(specifier)


class PathResolver:
    """Resolves specifiers to canonical file paths with caching.

    Thread Safety:
        Safe for concurrent use. Two threads racing on the same unresolved
        key may both probe the filesystem; both reach the same answer and
        the first write wins.
    """

    def __init__(
        self,
        extensions: Optional[Sequence[str]] = None,
        cache: Optional[MemoCache] = None,
    ) -> None:
        self.extensions: Tuple[str, ...] = tuple(extensions or DEFAULT_EXTENSIONS)
        self._cache: MemoCache = cache if cache is not None else MemoCache("resolution")

    def candidate_paths(
        self,
        specifier: str,
        base_dir: Optional[str] = None,
        extensions: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """List absolute candidate paths for a specifier, in priority order.

        Returns an empty list for bare package specifiers.
        """
        exts = tuple(extensions) if extensions is not None else self.extensions

        if base_dir is None:
            bare = os.path.abspath(specifier)
        else:
            if not is_resolvable_specifier(specifier):
                return []
            bare = os.path.normpath(os.path.join(os.path.abspath(base_dir), specifier))

        if os.path.splitext(bare)[1] in exts:
            return [bare]

        candidates = [bare]
        candidates.extend(bare + ext for ext in exts)
        candidates.extend(os.path.join(bare, "index" + ext) for ext in exts)
        return candidates

    def resolve(
        self,
        specifier: str,
        base_dir: Optional[str] = None,
        extensions: Optional[Sequence[str]] = None,
    ) -> Optional[str]:
        """Resolve a specifier to a canonical absolute path.

        Args:
            specifier: A user-supplied path (base_dir None) or an import
                specifier relative to base_dir.
            base_dir: Directory of the importing file.
            extensions: Override for the configured extension order.

        Returns:
            Canonical path of the first existing candidate, or None.
        """
        exts = tuple(extensions) if extensions is not None else self.extensions
        key = (specifier, base_dir, exts)

        cached = self._cache.peek(key)
        if cached is not None:
            return cached

        candidates = self.candidate_paths(specifier, base_dir, exts)
        if not candidates:
            logger.debug(f"Skipping bare package specifier '{specifier}'")
            return None

        bare = candidates[0]
        # A path with a recognized extension can only resolve to itself; an
        # extensionless guess depends on the extension order
        guess_key = bare if len(candidates) == 1 else (bare, exts)
        cached = self._cache.peek(guess_key)
        if cached is not None:
            self._cache.put(key, cached)
            return cached

        for candidate in candidates:
            if os.path.isfile(candidate):
                resolved = self._cache.put(candidate, candidate)
                self._cache.put(guess_key, resolved)
                self._cache.put(key, resolved)
                logger.debug(f"Resolved '{specifier}' from {base_dir} -> {resolved}")
                return resolved

        logger.debug(f"Could not resolve '{specifier}' from {base_dir}")
        return None

    def lookup(self, candidate: str) -> Optional[str]:
        """Cache-only probe for a previously resolved candidate path."""
        return self._cache.peek(os.path.abspath(candidate))
