"""Crawl core: frontier, crawl state, page processing, download fallback and the driver.

Import from the submodules directly; this package keeps no re-exports so the
dataset module can depend on :mod:`site_harvest.crawler.models` without a cycle.
"""
