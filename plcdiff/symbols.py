"""IO address to symbol lookup, collected from the hardware configuration."""

import logging
from typing import Dict, Optional

from .constants import ADDRESS_TAG, SYMBOL_TAG
from .document import Document

logger = logging.getLogger(__name__)


class SymbolTable:
    """Maps IO addresses such as ``%I0.1`` to their configured symbol names."""

    def __init__(self, symbols: Optional[Dict[str, str]] = None):
        self.symbols: Dict[str, str] = dict(symbols or {})

    @classmethod
    def from_document(cls, document: Document) -> "SymbolTable":
        """Collect every element carrying both an Address and a Symbol child."""
        table = cls()
        for index in document.iter_preorder():
            if not document.is_element(index):
                continue
            address = document.child_text(index, ADDRESS_TAG)
            symbol = document.child_text(index, SYMBOL_TAG)
            if address and symbol:
                table.symbols[address] = symbol

        logger.info(f"Collected {len(table.symbols)} IO symbols")
        return table

    def get_symbol(self, address: str) -> Optional[str]:
        return self.symbols.get(address)

    def __len__(self) -> int:
        return len(self.symbols)
