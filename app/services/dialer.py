"""Client for the external AI dialer backend.

The dialer is an opaque HTTP service exposing ``POST /start_call``,
``GET /transcript/{call_sid}`` and ``GET /all_transcripts``.
"""
import json
import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.utils.httpx import get_dialer_base_url, get_httpx_headers

logger = logging.getLogger(__name__)

class DialerError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.AI_DIALER_TIMEOUT)

def _raise_for_status(response: httpx.Response, action: str):
    if response.status_code != 200 and response.status_code != 201:
        raise DialerError(response.status_code, f"Failed to {action}: {response.text or 'Unknown Error'}")

def _json_body(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        raise DialerError(502, f"Invalid response from AI dialer: {response.text}")
    if not isinstance(body, dict):
        raise DialerError(502, "Invalid response from AI dialer")
    return body

async def forward_start_call(
    to_number: str,
    system_message: Optional[str] = None,
    initial_message: Optional[str] = None,
) -> httpx.Response:
    """POST /start_call and hand back the raw response."""
    payload = {"to_number": to_number}
    if system_message is not None:
        payload["system_message"] = system_message
    if initial_message is not None:
        payload["initial_message"] = initial_message
    logger.info(f"Starting dialer call to {to_number}")
    try:
        async with _client() as client:
            return await client.post(f"{get_dialer_base_url()}/start_call", json=payload, headers=get_httpx_headers())
    except httpx.HTTPError as e:
        raise DialerError(502, f"AI dialer unreachable: {str(e)}")

async def start_call(
    to_number: str,
    system_message: Optional[str] = None,
    initial_message: Optional[str] = None,
) -> dict:
    response = await forward_start_call(to_number, system_message, initial_message)
    _raise_for_status(response, "initiate call")
    return _json_body(response)

async def get_transcript(call_sid: str) -> list:
    try:
        async with _client() as client:
            response = await client.get(f"{get_dialer_base_url()}/transcript/{call_sid}", headers=get_httpx_headers())
    except httpx.HTTPError as e:
        raise DialerError(502, f"AI dialer unreachable: {str(e)}")
    _raise_for_status(response, "fetch transcript")
    transcript = _json_body(response).get("transcript") or []
    # Older dialer builds return the transcript JSON-encoded
    if isinstance(transcript, str):
        try:
            transcript = json.loads(transcript)
        except ValueError:
            raise DialerError(502, "Transcript from AI dialer is not valid JSON")
    if not isinstance(transcript, list):
        raise DialerError(502, "Transcript from AI dialer is not a list")
    return transcript

async def get_all_transcripts() -> list[dict]:
    try:
        async with _client() as client:
            response = await client.get(f"{get_dialer_base_url()}/all_transcripts", headers=get_httpx_headers())
    except httpx.HTTPError as e:
        raise DialerError(502, f"AI dialer unreachable: {str(e)}")
    _raise_for_status(response, "fetch transcripts")
    transcripts = _json_body(response).get("transcripts") or []
    if not isinstance(transcripts, list):
        raise DialerError(502, "Transcripts from AI dialer are not a list")
    return transcripts
