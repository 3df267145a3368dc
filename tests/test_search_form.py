from __future__ import annotations

import pytest

from conftest import search_page
from supplier_scraper.selectors.search_page import FORM_ID, search_form_id, search_form_key
from supplier_scraper.services.search_client import build_search_form, market_label
from supplier_scraper.tasks.search_payloads import SearchParams
from supplier_scraper.utils.postback_form import find_script_manager_id, parse_hidden_inputs

PAGE = "ctl00$ctl00$ContentPlaceHolder$ContentPlaceHolder$"
COMPONENTS = PAGE + "scncc$ctl00$NavigationRepeater$ctl00$ctl00$SearchComponents$"
TOOL = COMPONENTS + "scc$rt$"


def test_search_form_key_builds_nested_control_names():
    assert search_form_key("sm", scope="page") == PAGE + "sm"
    assert search_form_key("ReservationToolType", scope="components") == COMPONENTS + "ReservationToolType"
    assert search_form_key("vendor") == TOOL + "vendor"
    assert search_form_key("adults", room=1) == TOOL + "passengers$pr$ctl01$pi$adults"
    assert (
        search_form_key("ChildAgeInput", room=0, child=0)
        == TOOL + "passengers$pr$ctl00$pi$cr$ctl01$ChildAgeInput"
    )
    assert search_form_id("vendor") == (TOOL + "vendor").replace("$", "_")


def test_search_form_key_rejects_bad_arguments():
    with pytest.raises(ValueError):
        search_form_key("vendor", scope="nowhere")
    with pytest.raises(ValueError):
        search_form_key("ChildAgeInput", child=0)


def test_hidden_field_and_script_manager_harvest():
    html = search_page()
    hidden = parse_hidden_inputs(html, FORM_ID)
    assert hidden == {"__VIEWSTATE": "SEARCHVS", "__EVENTVALIDATION": "SEARCHEV", "__PREVIOUSPAGE": "PP"}
    assert find_script_manager_id(html) == "ctl00$ctl00$sm"
    assert find_script_manager_id("<html><script>var x = 1;</script></html>") is None
    assert parse_hidden_inputs(html, "otherForm") == {}


def test_market_label_uses_known_names():
    assert market_label("ATL", {"ATL": "Atlanta, GA"}) == "Atlanta, GA (ATL)"
    assert market_label("CUN", {}) == "CUN"


def test_build_search_form_layers_state_protocol_and_business_fields():
    params = SearchParams(
        origin="ATL",
        destination="CUN",
        check_in="2026-01-10",
        check_out="2026-01-15",
        rooms=2,
        adults_per_room=[2, 1],
        children_per_room=[1, 0],
        child_ages=[[7], []],
    )
    body = build_search_form(
        {"__VIEWSTATE": "SEARCHVS", "__EVENTVALIDATION": "SEARCHEV"},
        "ctl00$ctl00$sm",
        vendor_code="FUN",
        package_type="H02",
        params=params,
        origin_label="Atlanta, GA (ATL)",
        destination_label="CUN",
    )

    assert body["__VIEWSTATE"] == "SEARCHVS"
    assert body[PAGE + "sm"] == "ctl00$ctl00$sm"
    assert body[COMPONENTS + "ReservationToolType"] == "SingleStop"
    assert body[TOOL + "vendor"] == "FUN"
    assert body[TOOL + "package"] == "H02"
    assert body[TOOL + "Origin"] == "Atlanta, GA (ATL)"
    assert body[TOOL + "departure"] == "10JAN26"
    assert body[TOOL + "return"] == "15JAN26"
    assert body[TOOL + "numberOfNights"] == "5"
    assert body[TOOL + "passengers$numrooms"] == "2"
    assert body[TOOL + "passengers$pr$ctl00$pi$adults"] == "2"
    assert body[TOOL + "passengers$pr$ctl01$pi$adults"] == "1"
    assert body[TOOL + "passengers$pr$ctl00$pi$children"] == "1"
    assert body[TOOL + "passengers$pr$ctl00$pi$cr$ctl01$ChildAgeInput"] == "7"
    assert body[TOOL + "passengers$pr$ctl01$pi$cr$ctl01$ChildAgeInput"] == ""
    assert body["__ASYNCPOST"] == "false"


def test_build_search_form_sends_inert_air_and_vehicle_filters():
    params = SearchParams(origin="ATL", destination="CUN", check_in="2026-03-01", check_out="2026-03-04")
    body = build_search_form(
        {},
        "sm",
        vendor_code="ALG",
        package_type="H02",
        params=params,
        origin_label="ATL",
        destination_label="CUN",
    )
    assert body[TOOL + "aircarrier"] == "~"
    assert body[TOOL + "aircabin"] == "Y"
    assert body[TOOL + "airstops"] == "50"
    assert body[TOOL + "vehiclebrand"] == "~"
    assert body[TOOL + "vehiclepickupdate"] == "01MAR26"
    assert body[TOOL + "hotelcheckout"] == "04MAR26"


def test_search_params_validation():
    with pytest.raises(ValueError):
        SearchParams(origin="ATL", destination="CUN", check_in="2026-01-10", check_out="2026-01-10")
    with pytest.raises(ValueError):
        SearchParams(
            origin="ATL",
            destination="CUN",
            check_in="2026-01-10",
            check_out="2026-01-12",
            rooms=2,
            adults_per_room=[2],
            children_per_room=[0, 0],
        )
