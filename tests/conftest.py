from __future__ import annotations

import pytest

from supplier_scraper.config.settings import Settings
from supplier_scraper.selectors.search_page import search_form_id

LOGIN_URL = "https://login.www.vaxvacationaccess.com/default.aspx"
SEARCH_URL = "https://new.www.vaxvacationaccess.com/Search/Default.aspx"
APP_HOST = "new.www.vaxvacationaccess.com"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        tenant_id="12345678",
        username="agent007",
        password="hunter2",
        session_dir=tmp_path / "sessions",
        cache_path=tmp_path / "cache" / "results.sqlite3",
        vendor_catalog_path=tmp_path / "catalog" / "vendors.json",
        log_dir=tmp_path / "logs",
    )


def login_page(*, include_validation: bool = True) -> str:
    validation = (
        '<input type="hidden" name="__EVENTVALIDATION" id="__EVENTVALIDATION" value="EV123" />'
        if include_validation
        else ""
    )
    return f"""
    <html><body><form method="post" id="aspnetForm">
      <input type="hidden" name="__VIEWSTATE" id="__VIEWSTATE" value="VS123" />
      <input type="hidden" name="__VIEWSTATEGENERATOR" id="__VIEWSTATEGENERATOR" value="GEN1" />
      {validation}
    </form></body></html>
    """


def search_page(vendors: dict[str, str] | None = None, *, script_manager: str = "ctl00$ctl00$sm") -> str:
    vendors = vendors if vendors is not None else {"FUN": "Funjet Vacations", "ALG": "Apple Vacations"}
    options = "".join(f'<option value="{code}">{name}</option>' for code, name in vendors.items())
    return f"""
    <html><body>
    <form method="post" action="./Default.aspx" id="aspnetForm">
      <input type="hidden" name="__VIEWSTATE" id="__VIEWSTATE" value="SEARCHVS" />
      <input type="hidden" name="__EVENTVALIDATION" id="__EVENTVALIDATION" value="SEARCHEV" />
      <input type="hidden" name="__PREVIOUSPAGE" id="__PREVIOUSPAGE" value="PP" />
      <input type="text" name="visible" value="ignored" />
      <select id="{search_form_id('vendor')}"><option value="">Select</option>{options}</select>
    </form>
    <script type="text/javascript">
    //<![CDATA[
    Sys.WebForms.PageRequestManager._initialize('{script_manager}', 'aspnetForm', [], [], [], 90, 'ctl00$ctl00');
    //]]>
    </script>
    </body></html>
    """


def hotel_row(
    hotel_id: str | None = "1001",
    name: str = "Hotel One",
    *,
    stars: int = 4,
    vendor: str = "FUN",
    extra: str = "",
) -> str:
    query = f"HotelId={hotel_id}&" if hotel_id else ""
    markers = '<span class="rating_ST"></span>' * stars
    return f"""
    <tr class="room-repeater-visibility"><td>
      <div class="hotel-info-wrapper">
        <a href="#" onclick="openWindow('/HotelInformation/Default.aspx?{query}VendorCode={vendor}&RemoteSourceCode=HBS&DestinationCode=CUN')">{name}</a>
        <div class="rating">{markers}</div>
        <div class="hotel-location-info">Cancun Hotel Zone</div>
        {extra}
      </div>
    </td></tr>
    """


def room_row(code: str = "DLX", name: str = "Deluxe King", price: str = "$1,250.00", extra: str = "") -> str:
    return f"""
    <tr><td>
      <div class="hotel-avail-room-type-wrap"><a href="#" onclick="showRoom('room={code}')">{name}</a></div>
      {extra}
    </td>
    <td class="hotel-room-col-3"><strong>{price}</strong> <span>$625.00 per person</span></td></tr>
    """


def results_page(rows: str, *, header: str = "Check-in - 10JAN26 Check-out - 15JAN26") -> str:
    return f"""
    <html><body>
    <div class="avail-content-wrap"><span>{header}</span></div>
    <table class="results">{rows}</table>
    </body></html>
    """
