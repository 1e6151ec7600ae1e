"""HTML scraping for identity provider login pages.

Locates the form a browser would submit next and resolves its action
against the page URL, and pulls human-readable error messages out of
provider error pages.
"""

from __future__ import annotations

import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from acmeauth.models.errors import FormParseError
from acmeauth.models.flow import HtmlForm

logger = logging.getLogger(__name__)

DEFAULT_ERROR_ELEMENT_ID = "kc-error-message"
UNKNOWN_ERROR_MESSAGE = "Unknown identity provider error"

# Hidden input or form attribute that carries a server-issued challenge
CHALLENGE_INPUT_NAME = "challenge"
CHALLENGE_ATTRIBUTE = "data-challenge"


def _decode(body: str | bytes) -> str:
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return body


class HtmlFormExtractor:
    """Extracts form targets and error messages from HTML documents."""

    def __init__(self, error_element_id: str = DEFAULT_ERROR_ELEMENT_ID):
        self.error_element_id = error_element_id

    def extract_form(
        self, html_body: str | bytes, form_element_id: str, base_url: str
    ) -> HtmlForm:
        """Find a form by element id and return its submission target.

        Args:
            html_body: Page returned by the identity provider
            form_element_id: id attribute of the form to submit
            base_url: Effective URL of the response, used to resolve a
                relative action (a <base href> in the page takes precedence)

        Returns:
            HtmlForm: Absolute action URL plus hidden fields

        Raises:
            FormParseError: If the page cannot be parsed, the form is absent,
                or it has no action attribute
        """
        try:
            soup = BeautifulSoup(_decode(html_body), "html.parser")
        except Exception as e:
            raise FormParseError(f"Failed to parse HTML page: {e}") from e

        form = soup.find(id=form_element_id)
        if not isinstance(form, Tag):
            raise FormParseError(f"Form {form_element_id} not found in page")

        action = form.get("action")
        if not isinstance(action, str) or not action.strip():
            raise FormParseError(f"Form {form_element_id} has no action")

        page_base = base_url
        base_tag = soup.find("base", href=True)
        if isinstance(base_tag, Tag):
            page_base = urljoin(base_url, str(base_tag["href"]))

        action_url = urljoin(page_base, action.strip())
        fields = self._hidden_fields(form)

        challenge = fields.get(CHALLENGE_INPUT_NAME) or form.get(CHALLENGE_ATTRIBUTE)
        logger.debug(f"Found form {form_element_id} posting to {action_url}")

        return HtmlForm(
            action_url=action_url,
            challenge_context=challenge if isinstance(challenge, str) else None,
            fields=fields,
        )

    def has_form(self, html_body: str | bytes, form_element_id: str) -> bool:
        """Check whether the page contains an element with the given id.

        A page the parser rejects contains no forms.
        """
        try:
            soup = BeautifulSoup(_decode(html_body), "html.parser")
        except Exception as e:
            logger.debug(f"Could not parse page while looking for {form_element_id}: {e}")
            return False
        return soup.find(id=form_element_id) is not None

    def extract_error_message(self, html_body: str | bytes) -> str:
        """Best-effort extraction of the provider's error message.

        Never raises: any parsing problem or a missing element yields the
        same fallback message.
        """
        try:
            soup = BeautifulSoup(_decode(html_body), "html.parser")
            element = soup.find(id=self.error_element_id)
            if element is None:
                return UNKNOWN_ERROR_MESSAGE
            text = element.get_text(" ", strip=True)
            return text or UNKNOWN_ERROR_MESSAGE
        except Exception as e:
            logger.debug(f"Could not extract error message: {e}")
            return UNKNOWN_ERROR_MESSAGE

    def _hidden_fields(self, form: Tag) -> dict[str, str]:
        fields: dict[str, str] = {}
        for field in form.find_all("input", attrs={"type": "hidden"}):
            name = field.get("name")
            if isinstance(name, str) and name:
                value = field.get("value", "")
                fields[name] = value if isinstance(value, str) else ""
        return fields
