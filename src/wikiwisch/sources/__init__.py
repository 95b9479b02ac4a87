"""Content sources — adapters, normalized items, and the feed registry."""

from wikiwisch.sources.apod_adapter import ApodAdapter
from wikiwisch.sources.art_adapter import ArtAdapter
from wikiwisch.sources.arxiv_adapter import ArxivAdapter
from wikiwisch.sources.preprint_adapter import PreprintAdapter
from wikiwisch.sources.registry import register_adapter
from wikiwisch.sources.wiki_adapter import WikiAdapter

register_adapter("wiki", WikiAdapter)
register_adapter("arxiv", ArxivAdapter)
register_adapter("medrxiv", PreprintAdapter)
register_adapter("biorxiv", PreprintAdapter)
register_adapter("art", ArtAdapter)
register_adapter("nasa", ApodAdapter)
