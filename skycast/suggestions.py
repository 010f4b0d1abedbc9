"""Generate activity suggestions for the current weather from a schema-constrained Gemini call."""

import logging

from pydantic import TypeAdapter, ValidationError

from skycast.errors import ClientError, MalformedResponse
from skycast.http_client import HttpRequest, RetryingHttpClient
from skycast.models import Suggestion, WeatherSnapshot

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"

SUGGESTION_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "title": {"type": "STRING"},
            "description": {"type": "STRING"},
        },
        "propertyOrdering": ["title", "description"],
    },
}

_suggestion_list = TypeAdapter(list[Suggestion])


def build_prompt(weather: WeatherSnapshot) -> str:
    current = weather.current
    return (
        f"Based on the following weather conditions: a temperature of {current.temperature_c:g}°C "
        f"and a sky condition of '{current.condition_label.lower()}', suggest 3-4 suitable "
        "activities. Provide each activity with a short title and a one-sentence description."
    )


def build_payload(prompt: str) -> dict:
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": SUGGESTION_SCHEMA,
        },
    }


def parse_suggestions(body) -> list[Suggestion]:
    """
    Pull candidates[0].content.parts[0].text out of a generateContent body and
    decode it as a list of suggestions. Raises MalformedResponse.
    """
    try:
        text = body["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise MalformedResponse("Response has no candidate text") from None
    if not isinstance(text, str):
        raise MalformedResponse("Candidate text is not a string")
    try:
        return _suggestion_list.validate_json(text)
    except ValidationError as e:
        raise MalformedResponse(f"Candidate text is not a suggestion list: {e}") from None


class SuggestionService:
    def __init__(
        self,
        api_key: str,
        client: RetryingHttpClient | None = None,
        *,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
    ):
        self.api_key = api_key
        self.client = client or RetryingHttpClient()
        self.model = model
        self.base_url = base_url.rstrip("/")

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def generate(
        self, weather: WeatherSnapshot | None
    ) -> tuple[list[Suggestion], ClientError | None]:
        """
        Ask the model for 3-4 activities suited to `weather`.

        Returns (suggestions, None) on success and ([], error) on failure. With
        no weather there is nothing to ask about: ([], None), no request sent.
        """
        if weather is None:
            return [], None

        request = HttpRequest(
            method="POST",
            url=self.url,
            headers={"Content-Type": "application/json", "x-goog-api-key": self.api_key},
            json=build_payload(build_prompt(weather)),
        )
        body, error = self.client.send(request)
        if error is not None:
            return [], error

        try:
            suggestions = parse_suggestions(body)
        except MalformedResponse as e:
            logger.error("Discarding suggestion response: %s", e)
            return [], e
        logger.debug("Received %d suggestions", len(suggestions))
        return suggestions, None
