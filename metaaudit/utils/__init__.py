"""Utility helpers for the metadata audit."""


from .urls import is_russian_path, locale_for_url, normalise_url, resolve_url

__all__ = ["is_russian_path", "locale_for_url", "normalise_url", "resolve_url"]
