"""Shorty: a URL shortener with write-back visit counting."""
