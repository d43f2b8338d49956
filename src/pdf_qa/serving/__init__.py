"""
Serving — FastAPI application for PDF extraction and question answering.
"""
