"""
Episode Enricher Cloud Function

Resolves the playable stream URL behind an Apple Podcasts episode page.

Responsibilities:
- Fetch the episode page (browser headers, one plain-request fallback)
- Extract the serialized server data block and the JSON-LD episode metadata
- Resolve the stream URL through the tiered resolver
- Optionally transcribe the resolved audio

Does NOT:
- Summarize or analyze the transcript
- Write to Notion/Raindrop (n8n's job)
- Handle retries beyond the single header fallback (n8n's job)
"""

import functions_framework
import requests
import assemblyai as aai
from bs4 import BeautifulSoup
from urllib.parse import urlparse
from datetime import datetime
import json
import os
import sys
import traceback

# Add episode_resolver package to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))
from episode_resolver import (
    FETCH_ERROR,
    clean_episode_title,
    parse_iso_duration,
    resolve_stream_url,
    validate_transcription,
)
from episode_resolver.resolver import ERROR_STAGES

# Configuration
ASSEMBLYAI_API_KEY = os.environ.get('ASSEMBLYAI_API_KEY')
PAGE_FETCH_TIMEOUT = int(os.environ.get('PAGE_FETCH_TIMEOUT', '30'))
USER_AGENT = os.environ.get(
    'USER_AGENT',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
)
ACCEPT_LANGUAGE = os.environ.get('ACCEPT_LANGUAGE', 'en-US,en;q=0.9')
SERVER_DATA_ID = 'serialized-server-data'
APPLE_PODCASTS_HOST = 'podcasts.apple.com'


def is_apple_podcast_url(url: str) -> bool:
    """Check if URL points at an Apple Podcasts page."""
    if not url:
        return False
    host = urlparse(url.strip()).netloc.lower()
    return host == APPLE_PODCASTS_HOST or host == f'www.{APPLE_PODCASTS_HOST}'


def fetch_episode_page(url: str) -> tuple:
    """Fetch the episode page. Returns (html, error).

    The first request carries browser headers. If that is rejected with a
    non-2xx status, one plain request is made before giving up.
    """
    try:
        headers = {
            'User-Agent': USER_AGENT,
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': ACCEPT_LANGUAGE,
        }

        response = requests.get(url, headers=headers, timeout=PAGE_FETCH_TIMEOUT, allow_redirects=True)

        if not response.ok:
            print(f"Page fetch returned {response.status_code}, retrying without browser headers")
            response = requests.get(url, timeout=PAGE_FETCH_TIMEOUT, allow_redirects=True)

        response.raise_for_status()

        return response.text, None

    except requests.exceptions.Timeout:
        return None, 'Request timed out'
    except requests.exceptions.HTTPError as e:
        return None, f'HTTP error: {e.response.status_code}'
    except requests.exceptions.RequestException as e:
        return None, f'Request failed: {str(e)}'


def extract_server_data(soup: BeautifulSoup) -> str:
    """Return the inner text of the serialized server data block, or None."""
    if not soup:
        return None

    element = soup.find(id=SERVER_DATA_ID)
    if not element:
        return None

    text = element.string if element.string is not None else element.get_text()
    if not text or not text.strip():
        return None

    return text


def _find_episode_ld_json(soup: BeautifulSoup) -> dict:
    """Find the JSON-LD object describing the episode."""
    fallback = None

    for script in soup.find_all('script', attrs={'type': 'application/ld+json'}):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except ValueError:
            print("Skipping malformed JSON-LD block")
            continue

        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            if item.get('@type') == 'PodcastEpisode':
                return item
            if fallback is None:
                fallback = item

    return fallback


def extract_episode_metadata(soup: BeautifulSoup) -> dict:
    """Extract episode metadata from the page's JSON-LD block."""
    metadata = {
        'title': None,
        'description': None,
        'production_company': None,
        'date_published': None,
        'url': None,
        'show_name': None,
        'show_url': None,
        'thumbnail_url': None,
        'duration_minutes': None,
    }

    if not soup:
        return metadata

    episode = _find_episode_ld_json(soup)
    if not episode:
        return metadata

    series = episode.get('partOfSeries')
    if not isinstance(series, dict):
        series = {}

    date_published = episode.get('datePublished')

    metadata['title'] = clean_episode_title(episode.get('name'))
    metadata['description'] = episode.get('description')
    metadata['production_company'] = episode.get('productionCompany')
    metadata['date_published'] = date_published[:10] if isinstance(date_published, str) else None
    metadata['url'] = episode.get('url')
    metadata['show_name'] = series.get('name')
    metadata['show_url'] = series.get('url')
    metadata['thumbnail_url'] = episode.get('thumbnailUrl')
    metadata['duration_minutes'] = parse_iso_duration(episode.get('duration') or episode.get('timeRequired'))

    return metadata


def transcribe_stream_url(stream_url: str, api_key: str = None) -> dict:
    """Transcribe the resolved stream URL using AssemblyAI.

    Speaker labels and disfluencies are kept so the transcript reads like the
    conversation it came from.
    """
    api_key = api_key or ASSEMBLYAI_API_KEY
    if not api_key:
        return {'success': False, 'error': 'ASSEMBLYAI_API_KEY not configured'}

    try:
        print(f"Starting transcription for: {stream_url}")

        aai.settings.api_key = api_key

        config = aai.TranscriptionConfig(
            punctuate=True,
            format_text=True,
            speaker_labels=True,
            disfluencies=True,
        )

        transcriber = aai.Transcriber(config=config)
        transcript = transcriber.transcribe(stream_url)

        if transcript.status == aai.TranscriptStatus.error:
            return {'success': False, 'error': transcript.error}

        paragraphs = [p.text for p in transcript.get_paragraphs()]
        print(f"Transcription complete. {len(paragraphs)} paragraphs")

        return {
            'success': True,
            'text': transcript.text,
            'paragraphs': paragraphs,
            'confidence': getattr(transcript, 'confidence', None),
            'audio_duration_seconds': getattr(transcript, 'audio_duration', None),
        }
    except Exception as e:
        print(f"Transcription error: {e}")
        return {'success': False, 'error': str(e)}


def _failure_response(url: str, reason: str, error: dict) -> dict:
    return {
        'url': url,
        'reason': reason,
        'error': error,
    }


@functions_framework.http
def resolve_episode(request):
    """
    Main Cloud Function entry point.

    Expected JSON input:
    {
        "url": "https://podcasts.apple.com/us/podcast/.../id123?i=456",
        "options": {
            "transcribe": false
        }
    }
    """
    # Handle CORS
    if request.method == 'OPTIONS':
        headers = {
            'Access-Control-Allow-Origin': '*',
            'Access-Control-Allow-Methods': 'POST',
            'Access-Control-Allow-Headers': 'Content-Type',
            'Access-Control-Max-Age': '3600'
        }
        return ('', 204, headers)

    headers = {'Access-Control-Allow-Origin': '*'}

    try:
        request_json = request.get_json(silent=True)

        if not isinstance(request_json, dict) or not isinstance(request_json.get('url'), str) \
                or not request_json['url'].strip():
            return (json.dumps({
                'error': 'Missing required field: url'
            }), 400, headers)

        url = request_json['url'].strip()
        options = request_json.get('options') or {}
        if not isinstance(options, dict):
            return (json.dumps({
                'error': 'Field options must be an object'
            }), 400, headers)
        transcribe = options.get('transcribe', False)

        if not is_apple_podcast_url(url):
            return (json.dumps({
                'error': 'Please provide a valid Apple Podcasts episode URL'
            }), 400, headers)

        # Fetch the page
        html, fetch_error = fetch_episode_page(url)

        if fetch_error:
            stage, recoverable = ERROR_STAGES[FETCH_ERROR]
            return (json.dumps(_failure_response(url, FETCH_ERROR, {
                'stage': stage,
                'message': fetch_error,
                'recoverable': recoverable
            })), 200, headers)  # Return 200 with error in body

        soup = BeautifulSoup(html, 'html.parser')

        # Resolve the stream URL from the embedded data block
        result = resolve_stream_url(extract_server_data(soup))

        if not result.ok:
            return (json.dumps(_failure_response(url, result.reason, result.to_error())), 200, headers)

        response = {
            'url': url,
            'download_url': result.url,
            'tier': result.tier.value,
            'metadata': extract_episode_metadata(soup),
            'processed_at': datetime.utcnow().isoformat() + 'Z',
        }

        if transcribe:
            transcription = transcribe_stream_url(
                result.url,
                api_key=request_json.get('assemblyai_api_key')
            )
            validation = validate_transcription(transcription)

            if validation['valid']:
                response['transcription'] = {
                    'text': transcription['text'],
                    'paragraphs': transcription['paragraphs'],
                    'confidence': transcription.get('confidence'),
                    'audio_duration_seconds': transcription.get('audio_duration_seconds'),
                }
            else:
                response['transcription'] = None
                response['errors'] = [
                    {'stage': 'transcription', 'message': message, 'recoverable': True}
                    for message in validation['errors']
                ]

        return (json.dumps(response), 200, headers)

    except Exception as e:
        print(f"Error: {str(e)}\n{traceback.format_exc()}")
        return (json.dumps({
            'error': {
                'stage': 'processing',
                'message': str(e),
                'recoverable': False
            }
        }), 500, headers)
