"""
AFD data catalog browser.

Packages:
- core: record store, matching, filtering, grouping, suggestions, codelists
- ui: Streamlit front-end that calls into the core engine
"""
