"""Streamlit front-end for the catalog engine."""
