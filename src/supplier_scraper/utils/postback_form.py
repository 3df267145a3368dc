"""Harvesting helpers for stateful form-postback pages."""
from __future__ import annotations

from typing import Dict, Optional

from bs4 import BeautifulSoup

from supplier_scraper.selectors.search_page import SearchSelectors


def parse_hidden_inputs(html: str, form_id: str) -> Dict[str, str]:
    """Return every hidden input of form ``form_id`` as a name/value map."""
    soup = BeautifulSoup(html, "html.parser")
    form = soup.find("form", id=form_id)
    if form is None:
        return {}
    fields: Dict[str, str] = {}
    for element in form.find_all("input", attrs={"type": "hidden"}):
        name = element.get("name")
        if name:
            fields[name] = element.get("value") or ""
    return fields


def find_script_manager_id(html: str) -> Optional[str]:
    """Return the script manager id passed to the page request manager initialiser."""
    soup = BeautifulSoup(html, "html.parser")
    for script in soup.find_all("script"):
        content = script.string or script.get_text()
        if not content or SearchSelectors.script_manager_marker not in content:
            continue
        match = SearchSelectors.script_manager_pattern.search(content)
        if match:
            return match.group(1)
    return None
