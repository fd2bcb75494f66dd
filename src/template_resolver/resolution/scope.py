from __future__ import annotations

import logging
from collections.abc import Iterable
from collections.abc import Iterator
from contextlib import contextmanager

from ..types import Binding

logger = logging.getLogger(__name__)

ScopeFrame = dict[str, Binding]


class ScopeStack:
    """
    Block-parameter scopes, innermost last.

    Lookups use the head segment of dotted names, so `h.title` is local when
    `h` is bound anywhere on the stack.
    """

    def __init__(self) -> None:
        self._frames: list[ScopeFrame] = []

    def __len__(self) -> int:
        return len(self._frames)

    def push(self, bindings: Iterable[Binding]) -> None:
        frame: ScopeFrame = {}
        for binding in bindings:
            frame[binding.name] = binding
        logger.debug("push scope %s", list(frame))
        self._frames.append(frame)

    def pop(self) -> ScopeFrame:
        if not self._frames:
            raise IndexError("pop from empty scope stack")
        return self._frames.pop()

    @contextmanager
    def frame(self, bindings: Iterable[Binding]) -> Iterator[None]:
        self.push(bindings)
        try:
            yield
        finally:
            self.pop()

    def lookup(self, name: str) -> Binding | None:
        head = name.split(".", 1)[0]
        for frame in reversed(self._frames):
            binding = frame.get(head)
            if binding is not None:
                return binding
        return None

    def is_local(self, name: str) -> bool:
        return self.lookup(name) is not None

    def safety_of(self, path: str) -> tuple[bool, str | None]:
        """
        Whether `path` is statically known to hold a component.

        Returns `(safe, dynamic_source)`. `dynamic_source` is the original
        dynamic expression a local mirrors, when known, so callers can report
        it instead of the local name.
        """
        parts = path.split(".")
        if len(parts) > 2:
            return False, None
        binding = self.lookup(parts[0])
        if binding is None:
            return False, None
        if len(parts) == 1:
            return binding.is_safe and not binding.fields, binding.source_for(None)
        sub_field = parts[1]
        return binding.is_safe and sub_field in binding.fields, binding.source_for(sub_field)
