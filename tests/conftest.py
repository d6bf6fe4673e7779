"""
Shared pytest fixtures for Episode Resolver tests.
"""

import pytest
import sys
import json
import importlib.util
from pathlib import Path
from bs4 import BeautifulSoup

# Project root for finding Cloud Function modules
PROJECT_ROOT = Path(__file__).parent.parent


def _load_module_from_path(module_name: str, file_path: Path):
    """Load a module from a specific file path."""
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


# Load the Cloud Function module with a unique name at module load time
_episode_enricher_module = _load_module_from_path(
    'episode_enricher_main',
    PROJECT_ROOT / 'episode-enricher' / 'main.py'
)


STREAM_URL = 'https://audio.example.com/episodes/ep42.mp3?key=abc'
LEGACY_STREAM_URL = 'http://a.example/ep.mp3'


def build_page_html(server_data=None, ld_json=None):
    """Build a minimal episode page with optional data and JSON-LD blocks."""
    blocks = []
    if server_data is not None:
        if not isinstance(server_data, str):
            server_data = json.dumps(server_data)
        blocks.append(
            f'<script type="application/json" id="serialized-server-data">{server_data}</script>'
        )
    if ld_json is not None:
        if not isinstance(ld_json, str):
            ld_json = json.dumps(ld_json)
        blocks.append(
            f'<script name="schema:podcast-episode" type="application/ld+json">{ld_json}</script>'
        )
    return f"""
    <!DOCTYPE html>
    <html>
    <head><title>Episode - Apple Podcasts</title>{''.join(blocks)}</head>
    <body><h1>Episode</h1></body>
    </html>
    """


# ============================================================================
# Page Data Fixtures
# ============================================================================

@pytest.fixture
def strict_document():
    """Current page shape: share/EpisodeLockup nested deep inside shelves."""
    return [
        {
            'data': {
                'shelves': [
                    {
                        'contentType': 'episodeHeader',
                        'items': [
                            {
                                '$kind': 'share',
                                'modelType': 'EpisodeLockup',
                                'model': {
                                    'title': 'Episode 42',
                                    'playAction': {
                                        'episodeOffer': {
                                            'streamUrl': STREAM_URL
                                        }
                                    }
                                }
                            }
                        ]
                    }
                ]
            }
        }
    ]


@pytest.fixture
def legacy_document():
    """Old page shape: bookmark/EpisodeOffer inside headerButtonItems."""
    return {
        'data': [
            {
                'headerButtonItems': [
                    {
                        '$kind': 'bookmark',
                        'modelType': 'EpisodeOffer',
                        'model': {'streamUrl': LEGACY_STREAM_URL}
                    }
                ]
            }
        ]
    }


@pytest.fixture
def fallback_document():
    """No known signature, only loose streamUrl fields."""
    return {
        'x': {'streamUrl': 'https://cdn.example.com/preview'},
        'headerButtonItems': [
            {
                'model': {
                    'playAction': {
                        'episodeOffer': {'streamUrl': 'https://cdn.example.com/full'}
                    }
                }
            }
        ]
    }


@pytest.fixture
def episode_ld_json():
    """Sample JSON-LD block from an episode page."""
    return {
        '@context': 'http://schema.org',
        '@type': 'PodcastEpisode',
        'name': 'Episode 42: The Answer',
        'description': 'We finally find out.',
        'productionCompany': 'Example Media',
        'datePublished': '2024-12-15T10:00:00Z',
        'url': 'https://podcasts.apple.com/us/podcast/episode-42/id123?i=456',
        'partOfSeries': {
            '@type': 'CreativeWorkSeries',
            'name': 'Example Show',
            'url': 'https://podcasts.apple.com/us/podcast/example-show/id123'
        },
        'thumbnailUrl': 'https://example.com/cover.jpg',
        'duration': 'PT1H3M10S'
    }


@pytest.fixture
def page_html():
    """Factory building episode page HTML."""
    return build_page_html


@pytest.fixture
def empty_soup():
    """Returns empty BeautifulSoup."""
    return BeautifulSoup("", 'html.parser')


@pytest.fixture
def mock_flask_request():
    """Factory for creating mock Flask request objects."""
    class MockRequest:
        def __init__(self, json_data=None, method='POST'):
            self._json = json_data or {}
            self.method = method
            self.data = b''

        def get_json(self, force=False, silent=False):
            return self._json

    return MockRequest


# ============================================================================
# Episode Enricher Function Fixtures
# ============================================================================

@pytest.fixture
def episode_enricher_module():
    """Returns the loaded episode-enricher module, for patching its config."""
    return _episode_enricher_module


@pytest.fixture
def is_apple_podcast_url():
    """Returns is_apple_podcast_url function from episode-enricher."""
    return _episode_enricher_module.is_apple_podcast_url


@pytest.fixture
def extract_server_data():
    """Returns extract_server_data function from episode-enricher."""
    return _episode_enricher_module.extract_server_data


@pytest.fixture
def extract_episode_metadata():
    """Returns extract_episode_metadata function from episode-enricher."""
    return _episode_enricher_module.extract_episode_metadata


@pytest.fixture
def fetch_episode_page():
    """Returns fetch_episode_page function from episode-enricher."""
    return _episode_enricher_module.fetch_episode_page


@pytest.fixture
def transcribe_stream_url():
    """Returns transcribe_stream_url function from episode-enricher."""
    return _episode_enricher_module.transcribe_stream_url


@pytest.fixture
def resolve_episode():
    """Returns main entry point from episode-enricher."""
    return _episode_enricher_module.resolve_episode
