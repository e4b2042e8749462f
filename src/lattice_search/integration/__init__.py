"""Board construction and result export around the search engine."""
