"""Documents (browser tabs) and the collaborators that enumerate and fetch them."""

from .applescript import AppleScriptRunner
from .browser import ChromeBrowser, parse_tab_listing
from .document import Document, DocumentRef, Fetched, Unfetched
from .fetcher import BrowserSourceFetcher, HtmlFetcher, HttpFetcher, parse_tree

__all__ = [
    "AppleScriptRunner",
    "BrowserSourceFetcher",
    "ChromeBrowser",
    "Document",
    "DocumentRef",
    "Fetched",
    "HtmlFetcher",
    "HttpFetcher",
    "Unfetched",
    "parse_tab_listing",
    "parse_tree",
]
