"""Lead Radar: dork-query lead discovery, extraction, scoring and ranking."""

__version__ = "0.1.0"
