"""
link_channel.py
Transfer through a link: the token rides in the URL fragment as ``#share=<token>``.

A Location holds the current address (set from the command line or a pasted
link). Every change of its fragment, and the initial load, is a navigation event;
LinkChannel reacts to the ones that carry a transfer token.
"""

import logging
from typing import Callable, List, Optional
from urllib.parse import urldefrag

import transfer_codec
from errors import MalformedToken

logger = logging.getLogger(__name__)

SHARE_PREFIX = "share="

IMPORT_PROMPT = "Import shared note from wireless link? Current data will be replaced."


def build_link(token: str, base: str = "") -> str:
    """Embed a token as a URL fragment. base is the address without fragment."""
    base, _ = urldefrag(base or "")
    return f"{base}#{SHARE_PREFIX}{token}"


def extract_token(url_or_fragment: str) -> Optional[str]:
    """Return the token of a transfer link, or None if the address has another shape."""
    if not isinstance(url_or_fragment, str):
        return None
    text = url_or_fragment.strip()
    if "#" in text:
        fragment = text.split("#", 1)[1]
    else:
        fragment = text
    if not fragment.startswith(SHARE_PREFIX):
        return None
    token = fragment[len(SHARE_PREFIX):]
    return token or None


class Location:
    """The application's current address, with change notification."""

    def __init__(self, url: str = ""):
        self._url = url or ""
        self._listeners: List[Callable[[], None]] = []

    @property
    def url(self) -> str:
        return self._url

    @property
    def fragment(self) -> str:
        return urldefrag(self._url)[1]

    def add_listener(self, fn: Callable[[], None]):
        self._listeners.append(fn)

    def navigate(self, url: str):
        """Set a new address; listeners fire when the fragment changed."""
        old_fragment = self.fragment
        self._url = url or ""
        if self.fragment != old_fragment:
            for fn in list(self._listeners):
                fn()

    def replace(self, url: str):
        """Rewrite the address without firing navigation listeners."""
        self._url = url or ""

    def clear_fragment(self):
        self.replace(urldefrag(self._url)[0])


class LinkChannel:
    """Applies transfer links to the controller after user confirmation."""

    def __init__(
        self,
        controller,
        location: Location,
        confirm: Callable[[str], bool],
        notify: Callable[[str], None],
    ):
        self._controller = controller
        self._location = location
        self._confirm = confirm
        self._notify = notify
        location.add_listener(self.handle_navigation)

    def handle_navigation(self) -> bool:
        """Check the current fragment; returns True when a note was imported and saved."""
        token = extract_token("#" + self._location.fragment)
        if token is None:
            return False
        imported = False
        try:
            note = transfer_codec.decode(token)
        except MalformedToken as e:
            logger.info("ignoring malformed transfer link: %s", e)
            self._notify("Invalid transfer link")
        else:
            if self._confirm(IMPORT_PROMPT):
                imported = self._controller.replace_note(note)
                if imported:
                    self._notify("Wireless Import Success")
                else:
                    self._notify("Imported note could not be saved")
        self._location.clear_fragment()
        return imported

    def open_link(self, url: str) -> bool:
        """Treat a pasted link as a navigation to it.

        A bare ``share=<token>`` (no ``#``) is read as a fragment.
        """
        if extract_token(url) is None:
            self._notify("Not a transfer link")
            return False
        url = url.strip()
        if "#" not in url:
            url = "#" + url
        self._location.replace(url)
        return self.handle_navigation()
