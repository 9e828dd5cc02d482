"""HTTP client for the message server (GET/POST /message)"""

import requests


class MessageClientError(Exception):
    """Raised when the message server cannot be reached or answers badly."""

    def __init__(self, message, status=None):
        super().__init__(message)
        self.status = status


class MessageClient:
    """
    Talks to the message server:
      GET  /message                   -> {"last_message": "..."}
      POST /message {"text": "..."}   -> {"last_message": "..."}
    """

    def __init__(self, base_url, timeout=5.0, session=None):
        self.base_url = base_url.rstrip('/')
        self.timeout = float(timeout)
        self._session = session or requests.Session()

    @property
    def message_url(self):
        return f"{self.base_url}/message"

    def fetch_last_message(self):
        """Return the server's current message, or None if it has none."""
        data = self._request('GET', self.message_url)
        return data.get('last_message') or None

    def send_message(self, text):
        """Post a message; returns the text the server stored."""
        data = self._request('POST', self.message_url, json={'text': text})
        return data.get('last_message', '')

    def check_connection(self):
        try:
            self._request('GET', self.message_url)
        except MessageClientError:
            return False
        return True

    def close(self):
        self._session.close()

    def _request(self, method, url, **kwargs):
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise MessageClientError(f"Connection error: {e}") from e

        if not response.ok:
            reason = response.reason
            try:
                reason = response.json().get('error', reason)
            except ValueError:
                pass
            raise MessageClientError(f"Error: {response.status_code} {reason}", response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise MessageClientError(f"Bad response from server: {e}", response.status_code) from e
        if not isinstance(data, dict):
            raise MessageClientError("Bad response from server: expected an object", response.status_code)
        return data
