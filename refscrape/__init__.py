"""Page-section parsing and link resolution for reference-data scrapers.

This package provides the pieces shared by site-specific scrapers: a fetcher
that classifies 404/429 responses, a parser that splits header-delimited
markup into named sections, text cleanup helpers, and a resolver that maps
canonical third-party URLs to internal records.
"""
