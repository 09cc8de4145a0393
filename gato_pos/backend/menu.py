import json
import logging
from dataclasses import dataclass
from pathlib import Path

from .config import MENU_FILE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MenuItem:
    category: str
    product: str
    price: float


class MenuCatalog:
    """Static menu, read once from menu.json."""

    def __init__(self, items: list[MenuItem]):
        self.items = list(items)

    @classmethod
    def from_file(cls, path: Path = MENU_FILE) -> "MenuCatalog":
        if not path.exists():
            logger.warning("Menu file not found at %s, menu is empty", path)
            return cls([])
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return cls(
            [MenuItem(category=r["category"], product=r["product"], price=r["price"]) for r in raw]
        )

    def find_item(self, product: str) -> MenuItem | None:
        # first match wins when a name repeats across categories
        return next((item for item in self.items if item.product == product), None)

    def grouped_menu(self) -> dict[str, list[MenuItem]]:
        groups: dict[str, list[MenuItem]] = {}
        for item in self.items:
            groups.setdefault(item.category, []).append(item)
        return groups

    def to_list(self) -> list[dict]:
        return [
            {"category": item.category, "product": item.product, "price": item.price}
            for item in self.items
        ]


_catalog: MenuCatalog | None = None


def get_catalog() -> MenuCatalog:
    global _catalog
    if _catalog is None:
        _catalog = MenuCatalog.from_file()
    return _catalog
