"""
metasearch: fan a query out to several HTML search engines and merge the results.
"""

__version__ = "0.1.0"
