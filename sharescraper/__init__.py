"""
Share listing scraper.

This package reads the paginated index components listing of a financial
data site and writes the shares on it to a CSV file named for the listing's
"last updated" date. Parsing (ShareTableScraper) is kept apart from I/O
(ShareDriver and the page fetcher).
"""
