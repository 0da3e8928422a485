"""Tree-Sitter Parsing Layer."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

C_LANGUAGE = "c"


class ParserFactory(ABC):
    """Abstract factory for obtaining a language parser."""

    @abstractmethod
    def get_parser(self, language: str): ...


class TreeSitterParserFactory(ParserFactory):
    """Concrete factory that delegates to tree-sitter-language-pack."""

    def get_parser(self, language: str):
        import tree_sitter_language_pack as tslp

        return tslp.get_parser(language)


class Parser:
    """Thin wrapper around a parser factory."""

    def __init__(self, parser_factory: ParserFactory | None = None):
        self._factory = parser_factory or TreeSitterParserFactory()

    def parse(self, source: str | bytes, language: str = C_LANGUAGE):
        parser = self._factory.get_parser(language)
        data = source.encode("utf-8") if isinstance(source, str) else source
        tree = parser.parse(data)
        logger.debug(
            "Parsed %d bytes of %s, has_error=%s",
            len(data),
            language,
            tree.root_node.has_error,
        )
        return tree
