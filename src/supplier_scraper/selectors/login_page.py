"""Patterns and fixed form values for the legacy login surface."""
from __future__ import annotations

import re
from dataclasses import dataclass

_LOGIN_CTRL = "ctl00$ContentPlaceHolder$ctl00$ctl01$LoginCtrl$"

SCRIPT_MANAGER_HIDDEN_FIELD = (
    ";AjaxControlToolkit, Version=3.0.20820.100, Culture=neutral, PublicKeyToken=28f01b0e84b6d53e:"
    "en-US:4c3d9860-2e06-4722-a6e5-a622d77d3633:411fea1c:865923e8:e7c87f07:91bd373d:bbfda34c:"
    "30a78ec5:5430d994;Trisept.UI.Web.Shell:en-US:caf83fe0-1a44-48b8-9a4f-67c4484f426a:53482884:"
    "baba344c:4e089d68:e4770b2c:c33b30a7:1aed194b:e234562e:9dda3150:aa92e3ca:eca68493;"
    "Trisept.UI.Web.Shell.Foundation:en-US:5f23006c-37b1-4078-8aba-c57b368ad878:b56c8777"
)


def login_control_key(name: str) -> str:
    return f"{_LOGIN_CTRL}{name}"


@dataclass(frozen=True)
class LoginSelectors:
    view_state_pattern = re.compile(r'id="__VIEWSTATE"\s+value="([^"]*)"')
    view_state_generator_pattern = re.compile(r'id="__VIEWSTATEGENERATOR"\s+value="([^"]*)"')
    event_validation_pattern = re.compile(r'id="__EVENTVALIDATION"\s+value="([^"]*)"')
    failure_markers = ("Login failed", "Invalid credentials")
    redirect_url = "https://www.vaxvacationaccess.com/"
    login_button_value = "Login"

    @staticmethod
    def bookkeeping_fields() -> dict[str, str]:
        """Protocol fields the postback expects with fixed values."""
        return {
            "ctl00_ContentPlaceHolder_sm_HiddenField": SCRIPT_MANAGER_HIDDEN_FIELD,
            "__LASTFOCUS": "",
            "__EVENTTARGET": "",
            "__EVENTARGUMENT": "",
            login_control_key("vceARCRequired_ClientState"): "",
            login_control_key("vceTcvArc_ClientState"): "",
            login_control_key("vceUserNameRequired_ClientState"): "",
            login_control_key("vceTcvUserName_ClientState"): "",
            login_control_key("vcePasswordRequired_ClientState"): "",
            login_control_key("LoginButton"): LoginSelectors.login_button_value,
            "hdnRedirectUrl": LoginSelectors.redirect_url,
        }
