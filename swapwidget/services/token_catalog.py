"""
Token catalog

Static, ordered list of swappable tokens. Entries are addressed by index from
the token picker; records use the ``{name, ticker, img, address, decimals}``
shape of the widget's token list JSON.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from ..config import settings
from ..core.swap.models import Token

logger = logging.getLogger(__name__)

BUNDLED_TOKEN_LIST = Path(__file__).resolve().parents[1] / "data" / "token_list.json"


class TokenCatalog:
    """Read-only, index-addressable token list."""

    def __init__(self, tokens: Sequence[Token]):
        if len(tokens) < 2:
            raise ValueError("Token catalog needs at least two tokens for a default pair")
        self._tokens: List[Token] = list(tokens)

    @classmethod
    def from_records(cls, records: Sequence[Dict[str, Any]]) -> "TokenCatalog":
        return cls([Token.from_dict(record) for record in records])

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "TokenCatalog":
        """Load from ``path``, the configured token list, or the bundled list."""
        source = Path(path or settings.token_list_path or BUNDLED_TOKEN_LIST)
        with source.open("r", encoding="utf-8") as handle:
            records = json.load(handle)
        if not isinstance(records, list):
            raise ValueError(f"Token list at {source} must be a JSON array")
        catalog = cls.from_records(records)
        logger.info("Loaded %d tokens from %s", len(catalog), source)
        return catalog

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[Token]:
        return iter(self._tokens)

    def __getitem__(self, index: int) -> Token:
        return self._tokens[index]

    @property
    def default_pair(self) -> tuple[Token, Token]:
        return self._tokens[0], self._tokens[1]

    def by_address(self, address: str) -> Optional[Token]:
        target = address.lower()
        for token in self._tokens:
            if token.address.lower() == target:
                return token
        return None

    def by_ticker(self, ticker: str) -> Optional[Token]:
        target = ticker.upper()
        for token in self._tokens:
            if token.ticker.upper() == target:
                return token
        return None
