import os
import xmlrpc.client

import requests
from dotenv import load_dotenv

from subupload.utils.logger import log

load_dotenv()

XMLRPC_URL = os.getenv("OPENSUBTITLES_XMLRPC_URL", "https://api.opensubtitles.org/xml-rpc")
USER_AGENT = os.getenv("OPENSUBTITLES_USER_AGENT", "TemporaryUserAgent")
TIMEOUT = float(os.getenv("OPENSUBTITLES_TIMEOUT", "30"))
USERNAME = os.getenv("OPENSUBTITLES_USERNAME")
PASSWORD = os.getenv("OPENSUBTITLES_PASSWORD")
LANGUAGE = os.getenv("OPENSUBTITLES_LANGUAGE", "en")


class OpenSubtitlesRPC:
    """
    Minimal XML-RPC caller for the legacy OpenSubtitles API.

    Bodies are marshalled with xmlrpc.client and sent through a requests session,
    so proxies from the environment and the timeout are honored. HTTP errors and
    XML-RPC faults are raised as they come; nothing is retried.
    """

    def __init__(self, url: str = XMLRPC_URL, timeout: float = TIMEOUT, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "text/xml",
            "User-Agent": USER_AGENT,
        })

    def call(self, method: str, args: list):
        body = xmlrpc.client.dumps(tuple(args), methodname=method, encoding="utf-8")
        log.rpc(f"Calling {method}")
        response = self.session.post(self.url, data=body.encode("utf-8"), timeout=self.timeout)
        response.raise_for_status()
        params, _ = xmlrpc.client.loads(response.content)
        return params[0] if params else None

    def close(self):
        self.session.close()
