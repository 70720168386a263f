"""Tracked symbol configuration."""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from ..exceptions import ConfigurationError

SYMBOLS_FILE = Path(__file__).parent / "symbols.yaml"


class AssetClass(Enum):
    """Asset classes the scanner knows how to display."""

    STOCK = "stock"
    FOREX = "forex"

    @property
    def price_decimals(self) -> int:
        """Decimals used when formatting prices of this class."""
        return 2 if self is AssetClass.STOCK else 4


@dataclass(frozen=True)
class SymbolSpec:
    """Static descriptor of a tracked instrument."""

    symbol: str
    asset_class: AssetClass
    display: str
    provider_key: str

    def format_price(self, price: float) -> str:
        return f"{price:.{self.asset_class.price_decimals}f}"


def load_symbols(path: Optional[str] = None) -> List[SymbolSpec]:
    """
    Load the tracked symbol list.

    Args:
        path: Optional YAML file overriding the bundled symbol list

    Returns:
        Symbols in configuration order

    Raises:
        ConfigurationError: If the file is missing or an entry is invalid
    """
    if path is None:
        return list(_load_bundled_symbols())
    return _parse_symbols_file(Path(path))


@lru_cache(maxsize=1)
def _load_bundled_symbols() -> Tuple[SymbolSpec, ...]:
    return tuple(_parse_symbols_file(SYMBOLS_FILE))


def _parse_symbols_file(path: Path) -> List[SymbolSpec]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigurationError("symbols_file", f"Symbols file not found: {path}")
    except yaml.YAMLError as e:
        raise ConfigurationError("symbols_file", f"Error parsing symbols YAML: {e}")

    entries = data.get("symbols") if isinstance(data, dict) else None
    if not entries:
        raise ConfigurationError("symbols_file", f"No symbols defined in {path}")

    return parse_symbol_entries(entries)


def parse_symbol_entries(entries: List[dict]) -> List[SymbolSpec]:
    """Build SymbolSpec objects from raw mappings, rejecting duplicates."""
    specs: List[SymbolSpec] = []
    seen = set()

    for entry in entries:
        try:
            symbol = str(entry["symbol"]).strip().upper()
            asset_class = AssetClass(str(entry["type"]).lower())
        except KeyError as e:
            raise ConfigurationError("symbols", f"Missing field {e} in entry {entry}")
        except ValueError:
            raise ConfigurationError(
                "symbols", f"Unknown asset class '{entry.get('type')}' for {entry}"
            )

        if symbol in seen:
            raise ConfigurationError("symbols", f"Duplicate symbol '{symbol}'")
        seen.add(symbol)

        specs.append(
            SymbolSpec(
                symbol=symbol,
                asset_class=asset_class,
                display=str(entry.get("display") or symbol),
                provider_key=str(entry.get("provider_key") or symbol),
            )
        )

    return specs
