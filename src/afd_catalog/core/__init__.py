"""
Core catalog layer.

This package contains:
- records: row/codelist data model and the immutable record store
- catalog_loader: read the catalog and codelist exports into records
- matcher: literal / wildcard / regex search over one row
- filters: the filter pipeline and the entity resolver
- grouping: entity -> attribute hierarchy with orphan handling
- suggestions: name-based completions for a partial search term
- codelists: codelist lookup and item filtering
- summary: stats, datatype registry, item keys and direct links
- engine: a memoizing facade bound to one record store
"""
