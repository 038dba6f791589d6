"""Command line interface for siteledger."""
