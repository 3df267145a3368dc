"""Vendor catalog helpers."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Iterable, List, Mapping

from bs4 import BeautifulSoup

from supplier_scraper.core.errors import ProtocolShapeError
from supplier_scraper.hotels.models import Vendor
from supplier_scraper.selectors.search_page import SearchSelectors

logger = logging.getLogger(__name__)


def parse_vendor_options(html: str) -> List[Vendor]:
    """Extract the selectable vendors from the search surface, sorted by code."""
    soup = BeautifulSoup(html, "html.parser")
    select = soup.find("select", id=SearchSelectors.vendor_select_id)
    if select is None:
        raise ProtocolShapeError("Vendor select element not found in search page")
    vendors: List[Vendor] = []
    for option in select.find_all("option"):
        code = (option.get("value") or "").strip()
        name = option.get_text(strip=True)
        if code and name:
            vendors.append(Vendor(id=code, name=name))
    return sorted(vendors, key=lambda vendor: vendor.id)


class VendorCatalog:
    """Vendor list persisted to disk for listing operations that need no live session."""

    def __init__(self, vendors: Mapping[str, Vendor], *, source: Path) -> None:
        self._vendors = dict(vendors)
        self._source = source

    @property
    def source(self) -> Path:
        return self._source

    def get(self, code: str) -> Vendor:
        try:
            return self._vendors[code]
        except KeyError as exc:
            known = ", ".join(sorted(self._vendors))
            raise KeyError(f"Vendor '{code}' not found in catalog {self._source}. Known codes: {known}") from exc

    def values(self) -> Iterable[Vendor]:
        return self._vendors.values()

    def __len__(self) -> int:
        return len(self._vendors)

    @classmethod
    def load(cls, path: Path) -> "VendorCatalog":
        if not path.exists():
            raise FileNotFoundError(f"Vendor catalog not found at {path}")
        data = json.loads(path.read_text())
        vendors = {}
        for entry in data.get("vendors", []):
            vendor = Vendor(id=entry["id"], name=entry.get("name", entry["id"]))
            vendors[vendor.id] = vendor
        return cls(vendors, source=path)

    @classmethod
    def save(cls, path: Path, vendors: Iterable[Vendor]) -> "VendorCatalog":
        ordered = sorted(vendors, key=lambda vendor: vendor.id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"vendors": [vendor.to_dict() for vendor in ordered]}, indent=2))
        logger.info("Saved %s vendors to %s", len(ordered), path)
        return cls({vendor.id: vendor for vendor in ordered}, source=path)
