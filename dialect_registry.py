import logging
from collections import namedtuple
from typing import List, Optional

import magic_lines_dialect
import sample_strategy_dialect
from constants import CONST
from parsed_run import ParsedRun

LOGGER = logging.getLogger(__name__)

# can_handle(text) -> bool must be a cheap, side-effect-free test.
# extract(text, point_value) -> ParsedRun runs the full pipeline.
DialectHandler = namedtuple("DialectHandler", ["name", "can_handle", "extract"])


class DialectRegistry:
    """
    Ordered list of dialect handlers. The first handler whose can_handle accepts
    the text is used, so registration order settles overlapping keywords.
    Build it once at start-up and pass it to whatever parses logs.
    """

    def __init__(self, handlers: Optional[List[DialectHandler]] = None):
        self._handlers: List[DialectHandler] = []
        for handler in handlers or []:
            self.register(handler)

    def register(self, handler: DialectHandler):
        if any(existing.name == handler.name for existing in self._handlers):
            raise ValueError(f"Dialect '{handler.name}' is already registered")
        self._handlers.append(handler)

    def available_dialects(self) -> List[str]:
        return [handler.name for handler in self._handlers]

    def get_handler(self, name: str) -> Optional[DialectHandler]:
        for handler in self._handlers:
            if handler.name == name:
                return handler
        return None

    def select_handler(self, text: str) -> Optional[DialectHandler]:
        for handler in self._handlers:
            if handler.can_handle(text):
                return handler
        return None

    def parse(self, text: str, point_value: float = CONST.DEFAULT_POINT_VALUE) -> Optional[ParsedRun]:
        """
        Parses a complete log dump.

        Returns:
            The ParsedRun, or None when no dialect recognizes the text or the
            selected handler fails. A partial result is never returned.
        """
        handler = self.select_handler(text)
        if handler is None:
            LOGGER.warning("No dialect recognized the log text (%d characters)", len(text))
            return None

        try:
            return handler.extract(text, point_value)
        except Exception:
            LOGGER.exception("Dialect '%s' failed to extract the log", handler.name)
            return None


def build_default_registry() -> DialectRegistry:
    return DialectRegistry([
        DialectHandler(magic_lines_dialect.STRATEGY_NAME, magic_lines_dialect.can_handle, magic_lines_dialect.extract),
        DialectHandler(sample_strategy_dialect.STRATEGY_NAME, sample_strategy_dialect.can_handle,
                       sample_strategy_dialect.extract),
    ])
